"""
SPARQL templates, one per storage query shape.

Templates use `{PLACEHOLDER}` markers that are filled with `str.replace`
(SPARQL itself is full of braces, so `str.format` is not an option).
"""

from __future__ import annotations

from typing import Iterable


# Base namespace for portal entities; shared with the RDF exporter.
PORTAL_BASE = "https://w3id.org/portal-data/"

PREFIX_BLOCK = f"""PREFIX portal: <{PORTAL_BASE}>
PREFIX rdfs: <http://www.w3.org/2000/01/rdf-schema#>
"""


def string_literal(value: str) -> str:
    escaped = (
        str(value)
        .replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f'"{escaped}"'


def string_values(values: Iterable[str]) -> str:
    return " ".join(string_literal(v) for v in values)


def integer_values(values: Iterable[int]) -> str:
    return " ".join(str(int(v)) for v in values)


GENES_QUERY = PREFIX_BLOCK + """
SELECT DISTINCT ?hugoGeneSymbol ?entrezGeneId
WHERE {
    ?gene a portal:Gene ;
          portal:hugoGeneSymbol ?hugoGeneSymbol ;
          portal:entrezGeneId ?entrezGeneId .
    FILTER({GENE_FILTER})
}
"""

PROFILES_QUERY = PREFIX_BLOCK + """
SELECT ?profileId ?studyId ?alterationType ?datatype ?name
WHERE {
    VALUES ?profileId { {PROFILE_VALUES} }
    ?profile a portal:GeneticProfile ;
             portal:profileId ?profileId ;
             portal:studyId ?studyId ;
             portal:alterationType ?alterationType .
    OPTIONAL { ?profile portal:datatype ?datatype . }
    OPTIONAL { ?profile rdfs:label ?name . }
}
"""

SAMPLE_LIST_MEMBERS_QUERY = PREFIX_BLOCK + """
SELECT ?sampleListId ?studyId ?name ?sampleId
WHERE {
    VALUES ?sampleListId { {SAMPLE_LIST_VALUES} }
    ?sampleList a portal:SampleList ;
                portal:sampleListId ?sampleListId ;
                portal:studyId ?studyId .
    OPTIONAL { ?sampleList rdfs:label ?name . }
    OPTIONAL {
        ?sampleList portal:hasSample ?sample .
        ?sample portal:stableId ?sampleId .
    }
}
ORDER BY ?sampleId
"""

STABLE_IDS_QUERY = PREFIX_BLOCK + """
SELECT ?internalId ?sampleId
WHERE {
    VALUES ?internalId { {INTERNAL_ID_VALUES} }
    ?sample a portal:Sample ;
            portal:internalId ?internalId ;
            portal:stableId ?sampleId .
}
"""

# {SAMPLE_FILTER} is either empty, a VALUES block over ?sampleId, or a
# sample-list membership join (see SAMPLE_VALUES_FILTER / SAMPLE_LIST_FILTER).
MUTATION_DATA_QUERY = PREFIX_BLOCK + """
SELECT ?sampleId ?profileId ?studyId ?hugoGeneSymbol ?entrezGeneId
       ?proteinChange ?mutationType ?proteinStart ?proteinEnd
WHERE {
    VALUES ?profileId { {PROFILE_VALUES} }
    VALUES ?entrezGeneId { {GENE_VALUES} }
    ?profile portal:profileId ?profileId ;
             portal:studyId ?studyId .
    ?gene portal:entrezGeneId ?entrezGeneId ;
          portal:hugoGeneSymbol ?hugoGeneSymbol .
    ?mutation a portal:Mutation ;
              portal:profile ?profile ;
              portal:gene ?gene ;
              portal:sample ?sample ;
              portal:recordNumber ?recordNumber .
    ?sample portal:stableId ?sampleId .
    {SAMPLE_FILTER}
    OPTIONAL { ?mutation portal:proteinChange ?proteinChange . }
    OPTIONAL { ?mutation portal:mutationType ?mutationType . }
    OPTIONAL { ?mutation portal:proteinStart ?proteinStart . }
    OPTIONAL { ?mutation portal:proteinEnd ?proteinEnd . }
}
ORDER BY ?recordNumber
"""

SAMPLE_VALUES_FILTER = "VALUES ?sampleId { {SAMPLE_VALUES} }"

SAMPLE_LIST_FILTER = """?sampleList portal:sampleListId {SAMPLE_LIST_ID} ;
                portal:hasSample ?sample ."""

ENCODED_ROWS_QUERY = PREFIX_BLOCK + """
SELECT ?profileId ?studyId ?hugoGeneSymbol ?entrezGeneId ?values
WHERE {
    VALUES ?profileId { {PROFILE_VALUES} }
    VALUES ?entrezGeneId { {GENE_VALUES} }
    ?profile portal:profileId ?profileId ;
             portal:studyId ?studyId .
    ?gene portal:entrezGeneId ?entrezGeneId ;
          portal:hugoGeneSymbol ?hugoGeneSymbol .
    ?row a portal:AlterationRow ;
         portal:profile ?profile ;
         portal:gene ?gene ;
         portal:values ?values .
}
ORDER BY ?profileId ?entrezGeneId
"""

ORDERED_SAMPLE_INDEX_QUERY = PREFIX_BLOCK + """
SELECT ?profileId ?orderedSampleList
WHERE {
    VALUES ?profileId { {PROFILE_VALUES} }
    ?profile a portal:GeneticProfile ;
             portal:profileId ?profileId ;
             portal:orderedSampleList ?orderedSampleList .
}
ORDER BY ?profileId
"""

MUTATION_COUNT_QUERY = PREFIX_BLOCK + """
SELECT (COUNT(?mutation) AS ?count)
WHERE {
    ?gene portal:entrezGeneId {ENTREZ_GENE_ID} .
    ?mutation a portal:Mutation ;
              portal:gene ?gene ;
              portal:proteinStart ?proteinStart ;
              portal:proteinEnd ?proteinEnd .
    FILTER(?proteinStart >= {START} && ?proteinEnd <= {END})
}
"""

MUTATION_COUNT_PER_STUDY_QUERY = PREFIX_BLOCK + """
SELECT ?studyId (COUNT(?mutation) AS ?count)
WHERE {
    ?gene portal:entrezGeneId {ENTREZ_GENE_ID} .
    ?mutation a portal:Mutation ;
              portal:gene ?gene ;
              portal:profile ?profile ;
              portal:proteinStart ?proteinStart ;
              portal:proteinEnd ?proteinEnd .
    ?profile portal:studyId ?studyId .
    FILTER(?proteinStart >= {START} && ?proteinEnd <= {END})
}
GROUP BY ?studyId
ORDER BY ?studyId
"""


__all__ = [
    "PORTAL_BASE",
    "PREFIX_BLOCK",
    "string_literal",
    "string_values",
    "integer_values",
    "GENES_QUERY",
    "PROFILES_QUERY",
    "SAMPLE_LIST_MEMBERS_QUERY",
    "STABLE_IDS_QUERY",
    "MUTATION_DATA_QUERY",
    "SAMPLE_VALUES_FILTER",
    "SAMPLE_LIST_FILTER",
    "ENCODED_ROWS_QUERY",
    "ORDERED_SAMPLE_INDEX_QUERY",
    "MUTATION_COUNT_QUERY",
    "MUTATION_COUNT_PER_STUDY_QUERY",
]
