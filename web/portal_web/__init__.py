"""
Web-facing components of the portal data service.

This package contains configuration loading, the storage backends (JSON
snapshot, SPARQL endpoint, local RDF graph), the genetic-profile-data
resolution engine, and the request layer used by the Streamlit app and CLI.
"""

__all__ = []
