"""SPARQL transport (HTTP endpoints and local rdflib graphs) and query templates."""
