"""
Offline tooling for the portal data service.

Includes the command-line interface and the snapshot to RDF converter used to
populate a SPARQL endpoint.
"""
