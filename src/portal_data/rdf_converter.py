"""Convert a portal JSON snapshot to RDF (N-Triples by default)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from rdflib import Graph, Literal, Namespace, URIRef
from rdflib.namespace import RDF, RDFS, XSD

from portal_web.snapshot import load_snapshot
from portal_web.sparql.queries import PORTAL_BASE

logger = logging.getLogger(__name__)

PORTAL = Namespace(PORTAL_BASE)


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


def profile_uri(profile_id: str) -> URIRef:
    return PORTAL[f"profile/{_segment(profile_id)}"]


def gene_uri(entrez_gene_id: int) -> URIRef:
    return PORTAL[f"gene/{int(entrez_gene_id)}"]


def sample_uri(study_id: str, sample_id: str) -> URIRef:
    """Samples are keyed by (study, stable id); stable ids are unique per study."""
    return PORTAL[f"sample/{_segment(study_id)}/{_segment(sample_id)}"]


def sample_list_uri(sample_list_id: str) -> URIRef:
    return PORTAL[f"sample-list/{_segment(sample_list_id)}"]


def alteration_row_uri(profile_id: str, entrez_gene_id: int) -> URIRef:
    return PORTAL[f"alteration-row/{_segment(profile_id)}/{int(entrez_gene_id)}"]


def add_optional(graph: Graph, subject: URIRef, predicate: URIRef, value: Any, datatype: Optional[URIRef] = None) -> None:
    """Add a literal property, skipping None and empty strings."""
    if value is None or value == "":
        return
    if datatype == XSD.integer:
        graph.add((subject, predicate, Literal(int(value), datatype=XSD.integer)))
    else:
        graph.add((subject, predicate, Literal(str(value))))


def add_sample_node(graph: Graph, study_id: str, sample_id: str) -> URIRef:
    node = sample_uri(study_id, sample_id)
    graph.add((node, PORTAL.stableId, Literal(str(sample_id))))
    graph.add((node, PORTAL.studyId, Literal(str(study_id))))
    return node


def convert_genes(graph: Graph, genes: List[Dict[str, Any]]) -> Dict[int, URIRef]:
    converted: Dict[int, URIRef] = {}
    for gene in genes:
        entrez = int(gene["entrez_gene_id"])
        node = gene_uri(entrez)
        graph.add((node, RDF.type, PORTAL.Gene))
        graph.add((node, PORTAL.hugoGeneSymbol, Literal(str(gene["hugo_gene_symbol"]))))
        graph.add((node, PORTAL.entrezGeneId, Literal(entrez, datatype=XSD.integer)))
        converted[entrez] = node
    return converted


def convert_profiles(graph: Graph, profiles: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    converted: Dict[str, Dict[str, Any]] = {}
    for profile in profiles:
        profile_id = str(profile["id"])
        node = profile_uri(profile_id)
        graph.add((node, RDF.type, PORTAL.GeneticProfile))
        graph.add((node, PORTAL.profileId, Literal(profile_id)))
        graph.add((node, PORTAL.studyId, Literal(str(profile["study_id"]))))
        graph.add((node, PORTAL.alterationType, Literal(str(profile["genetic_alteration_type"]).upper())))
        add_optional(graph, node, PORTAL.datatype, profile.get("datatype"))
        add_optional(graph, node, RDFS.label, profile.get("name"))
        converted[profile_id] = profile
    return converted


def convert_samples(graph: Graph, samples: List[Dict[str, Any]]) -> None:
    for sample in samples:
        node = add_sample_node(graph, str(sample["study_id"]), str(sample["id"]))
        graph.add((node, RDF.type, PORTAL.Sample))
        graph.add((node, PORTAL.internalId, Literal(int(sample["internal_id"]), datatype=XSD.integer)))
        add_optional(graph, node, PORTAL.patientId, sample.get("patient_id"))


def convert_sample_lists(graph: Graph, sample_lists: List[Dict[str, Any]]) -> None:
    for sample_list in sample_lists:
        study_id = str(sample_list["study_id"])
        node = sample_list_uri(str(sample_list["id"]))
        graph.add((node, RDF.type, PORTAL.SampleList))
        graph.add((node, PORTAL.sampleListId, Literal(str(sample_list["id"]))))
        graph.add((node, PORTAL.studyId, Literal(study_id)))
        add_optional(graph, node, RDFS.label, sample_list.get("name"))
        for sample_id in sample_list.get("sample_ids") or []:
            graph.add((node, PORTAL.hasSample, add_sample_node(graph, study_id, str(sample_id))))


def convert_profile_sample_lists(graph: Graph, indices: List[Dict[str, Any]], profiles: Dict[str, Dict[str, Any]]) -> None:
    for index in indices:
        profile_id = str(index["genetic_profile_id"])
        if profile_id not in profiles:
            logger.warning(f"Skipping ordered sample list for unknown profile '{profile_id}'")
            continue
        graph.add(
            (profile_uri(profile_id), PORTAL.orderedSampleList, Literal(str(index["ordered_sample_list"])))
        )


def convert_alteration_rows(
    graph: Graph,
    rows: List[Dict[str, Any]],
    profiles: Dict[str, Dict[str, Any]],
    genes: Dict[int, URIRef],
) -> int:
    count = 0
    for row in rows:
        profile_id = str(row["genetic_profile_id"])
        entrez = int(row["entrez_gene_id"])
        if profile_id not in profiles or entrez not in genes:
            logger.warning(
                f"Skipping alteration row for profile '{profile_id}' gene {entrez}: "
                "profile or gene missing from snapshot."
            )
            continue
        node = alteration_row_uri(profile_id, entrez)
        graph.add((node, RDF.type, PORTAL.AlterationRow))
        graph.add((node, PORTAL.profile, profile_uri(profile_id)))
        graph.add((node, PORTAL.gene, genes[entrez]))
        graph.add((node, PORTAL.values, Literal(str(row.get("values") or ""))))
        count += 1
    return count


def convert_mutations(
    graph: Graph,
    mutations: List[Dict[str, Any]],
    profiles: Dict[str, Dict[str, Any]],
    genes: Dict[int, URIRef],
) -> int:
    count = 0
    for record_number, mutation in enumerate(mutations):
        profile_id = str(mutation["genetic_profile_id"])
        entrez = int(mutation["entrez_gene_id"])
        profile = profiles.get(profile_id)
        if profile is None or entrez not in genes:
            continue
        node = PORTAL[f"mutation/{record_number}"]
        graph.add((node, RDF.type, PORTAL.Mutation))
        graph.add((node, PORTAL.recordNumber, Literal(record_number, datatype=XSD.integer)))
        graph.add((node, PORTAL.profile, profile_uri(profile_id)))
        graph.add((node, PORTAL.gene, genes[entrez]))
        graph.add(
            (node, PORTAL.sample, add_sample_node(graph, str(profile["study_id"]), str(mutation["sample_id"])))
        )
        add_optional(graph, node, PORTAL.proteinChange, mutation.get("protein_change"))
        add_optional(graph, node, PORTAL.mutationType, mutation.get("mutation_type"))
        add_optional(graph, node, PORTAL.proteinStart, mutation.get("protein_start"), XSD.integer)
        add_optional(graph, node, PORTAL.proteinEnd, mutation.get("protein_end"), XSD.integer)
        count += 1
    skipped = len(mutations) - count
    if skipped:
        logger.warning(f"Skipped {skipped} mutation record(s) whose profile or gene is missing.")
    return count


def snapshot_to_graph(sections: Dict[str, List[Dict[str, Any]]]) -> Graph:
    """Build an rdflib graph from normalized snapshot sections."""
    graph = Graph()
    graph.bind("portal", PORTAL)
    graph.bind("rdf", RDF)
    graph.bind("rdfs", RDFS)
    graph.bind("xsd", XSD)

    genes = convert_genes(graph, sections.get("genes", []))
    profiles = convert_profiles(graph, sections.get("profiles", []))
    convert_samples(graph, sections.get("samples", []))
    convert_sample_lists(graph, sections.get("sample_lists", []))
    convert_profile_sample_lists(graph, sections.get("profile_sample_lists", []), profiles)
    rows = convert_alteration_rows(graph, sections.get("genetic_alteration_rows", []), profiles, genes)
    mutations = convert_mutations(graph, sections.get("mutations", []), profiles, genes)
    logger.info(
        f"Converted {len(genes)} genes, {len(profiles)} profiles, "
        f"{rows} alteration rows and {mutations} mutations"
    )
    return graph


def convert_snapshot_to_rdf(input_path: Path, output_path: Path, rdf_format: str = "nt") -> int:
    """Convert a snapshot file to RDF.

    Args:
        input_path: Path to the snapshot JSON file
        output_path: Path to the RDF output file
        rdf_format: rdflib serialization format ("nt", "turtle", ...)

    Returns:
        Number of triples written
    """
    graph = snapshot_to_graph(load_snapshot(input_path))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("wb") as fh:
        graph.serialize(fh, format=rdf_format, encoding="utf-8")

    logger.info(f"Wrote {len(graph)} triples from {input_path.name} to {output_path}")
    return len(graph)
