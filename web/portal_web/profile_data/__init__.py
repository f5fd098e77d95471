"""
Genetic-profile-data resolution for the portal service.

The engine only depends on the storage protocols in `portal_web.stores.base`,
so it runs unchanged against the embedded snapshot store, a SPARQL endpoint
or a local RDF graph.
"""
