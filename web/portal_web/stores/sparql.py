from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from portal_web.errors import StoreError
from portal_web.models import (
    AltCount,
    EncodedRow,
    Gene,
    GeneticProfile,
    MutationDatum,
    OrderedSampleIndex,
    SampleList,
)
from portal_web.sparql import queries
from portal_web.sparql.client import QueryRunner, SourceResult

logger = logging.getLogger(__name__)


def _int_or_none(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(float(value))


class SparqlPortalStore:
    """
    Store backed by SPARQL over the portal RDF vocabulary.

    The runner decides where queries go: `endpoint_runner` for an HTTP
    endpoint, `graph_runner` for a local rdflib graph.
    """

    def __init__(self, run_query: QueryRunner, label: str = "portal") -> None:
        self._run_query = run_query
        self.label = label

    def _select(self, sparql: str, shape: str) -> List[Dict[str, Any]]:
        result: SourceResult = self._run_query(sparql)
        if result.status != "ok":
            raise StoreError(
                f"{shape} query against {result.endpoint_url or self.label} failed: {result.error}"
            )
        logger.debug(f"{shape}: {result.row_count} row(s) in {result.elapsed_ms:.1f} ms")
        return result.rows

    # Gene directory

    def genes(self, identifiers: Iterable[str]) -> List[Gene]:
        idents = [str(i).strip() for i in identifiers]
        entrez = [int(i) for i in idents if i.isdigit()]
        symbols = [i.upper() for i in idents if i and not i.isdigit()]
        conditions = []
        if symbols:
            conditions.append(
                f"UCASE(STR(?hugoGeneSymbol)) IN ({', '.join(queries.string_literal(s) for s in symbols)})"
            )
        if entrez:
            conditions.append(f"?entrezGeneId IN ({', '.join(str(e) for e in entrez)})")
        if not conditions:
            return []

        sparql = queries.GENES_QUERY.replace("{GENE_FILTER}", " || ".join(conditions))
        by_entrez: Dict[int, Gene] = {}
        by_symbol: Dict[str, Gene] = {}
        for row in self._select(sparql, "genes"):
            gene = Gene(
                hugo_gene_symbol=str(row["hugoGeneSymbol"]),
                entrez_gene_id=int(row["entrezGeneId"]),
            )
            by_entrez[gene.entrez_gene_id] = gene
            by_symbol[gene.hugo_gene_symbol.upper()] = gene

        found: List[Gene] = []
        for ident in idents:
            gene = by_entrez.get(int(ident)) if ident.isdigit() else by_symbol.get(ident.upper())
            if gene is not None and gene not in found:
                found.append(gene)
        return found

    # Profile directory

    def profiles(self, profile_ids: Iterable[str]) -> List[GeneticProfile]:
        ids = list(dict.fromkeys(profile_ids))
        if not ids:
            return []
        sparql = queries.PROFILES_QUERY.replace("{PROFILE_VALUES}", queries.string_values(ids))
        by_id: Dict[str, GeneticProfile] = {}
        for row in self._select(sparql, "profiles"):
            profile = GeneticProfile(
                id=str(row["profileId"]),
                study_id=str(row["studyId"]),
                genetic_alteration_type=str(row["alterationType"]).upper(),
                datatype=row.get("datatype"),
                name=row.get("name"),
            )
            by_id[profile.id] = profile
        return [by_id[pid] for pid in ids if pid in by_id]

    # Mutation store

    def _mutation_query(
        self,
        profile_ids: Sequence[str],
        entrez_gene_ids: Sequence[int],
        sample_filter: str,
    ) -> List[MutationDatum]:
        if not profile_ids or not entrez_gene_ids:
            return []
        sparql = (
            queries.MUTATION_DATA_QUERY
            .replace("{PROFILE_VALUES}", queries.string_values(profile_ids))
            .replace("{GENE_VALUES}", queries.integer_values(entrez_gene_ids))
            .replace("{SAMPLE_FILTER}", sample_filter)
        )
        return [
            MutationDatum(
                sample_id=str(row["sampleId"]),
                genetic_profile_id=str(row["profileId"]),
                study_id=str(row["studyId"]),
                hugo_gene_symbol=str(row["hugoGeneSymbol"]),
                entrez_gene_id=int(row["entrezGeneId"]),
                protein_change=row.get("proteinChange"),
                mutation_type=row.get("mutationType"),
                protein_start=_int_or_none(row.get("proteinStart")),
                protein_end=_int_or_none(row.get("proteinEnd")),
            )
            for row in self._select(sparql, "mutation data")
        ]

    def mutation_data(
        self, profile_ids: Sequence[str], entrez_gene_ids: Sequence[int]
    ) -> List[MutationDatum]:
        return self._mutation_query(profile_ids, entrez_gene_ids, "")

    def mutation_data_by_samples(
        self,
        profile_ids: Sequence[str],
        entrez_gene_ids: Sequence[int],
        sample_ids: Iterable[str],
    ) -> List[MutationDatum]:
        wanted = sorted(set(sample_ids))
        if not wanted:
            return []
        sample_filter = queries.SAMPLE_VALUES_FILTER.replace(
            "{SAMPLE_VALUES}", queries.string_values(wanted)
        )
        return self._mutation_query(profile_ids, entrez_gene_ids, sample_filter)

    def mutation_data_by_sample_list(
        self,
        profile_ids: Sequence[str],
        entrez_gene_ids: Sequence[int],
        sample_list_id: str,
    ) -> List[MutationDatum]:
        sample_filter = queries.SAMPLE_LIST_FILTER.replace(
            "{SAMPLE_LIST_ID}", queries.string_literal(sample_list_id)
        )
        return self._mutation_query(profile_ids, entrez_gene_ids, sample_filter)

    def mutation_counts(
        self, entrez_gene_id: int, start: int, end: int, per_study: bool
    ) -> List[AltCount]:
        template = queries.MUTATION_COUNT_PER_STUDY_QUERY if per_study else queries.MUTATION_COUNT_QUERY
        sparql = (
            template
            .replace("{ENTREZ_GENE_ID}", str(int(entrez_gene_id)))
            .replace("{START}", str(int(start)))
            .replace("{END}", str(int(end)))
        )
        rows = self._select(sparql, "mutation counts")
        if per_study:
            return [
                AltCount(count=int(row["count"]), study_id=str(row["studyId"]))
                for row in rows
                if "studyId" in row and int(row.get("count", 0))
            ]
        count = int(rows[0].get("count", 0)) if rows else 0
        return [AltCount(count=count)]

    # Matrix store

    def encoded_rows(
        self, profile_ids: Sequence[str], entrez_gene_ids: Sequence[int]
    ) -> List[EncodedRow]:
        if not profile_ids or not entrez_gene_ids:
            return []
        sparql = (
            queries.ENCODED_ROWS_QUERY
            .replace("{PROFILE_VALUES}", queries.string_values(profile_ids))
            .replace("{GENE_VALUES}", queries.integer_values(entrez_gene_ids))
        )
        return [
            EncodedRow(
                genetic_profile_id=str(row["profileId"]),
                study_id=str(row["studyId"]),
                hugo_gene_symbol=str(row["hugoGeneSymbol"]),
                entrez_gene_id=int(row["entrezGeneId"]),
                values=str(row.get("values", "")),
            )
            for row in self._select(sparql, "encoded rows")
        ]

    def ordered_sample_indices(self, profile_ids: Sequence[str]) -> List[OrderedSampleIndex]:
        ids = sorted(set(profile_ids))
        if not ids:
            return []
        sparql = queries.ORDERED_SAMPLE_INDEX_QUERY.replace(
            "{PROFILE_VALUES}", queries.string_values(ids)
        )
        return [
            OrderedSampleIndex(
                genetic_profile_id=str(row["profileId"]),
                ordered_sample_list=str(row.get("orderedSampleList", "")),
            )
            for row in self._select(sparql, "ordered sample indices")
        ]

    # Sample directory

    def resolve_stable_ids(self, internal_ids: Iterable[int]) -> Dict[int, str]:
        ids = sorted(set(int(i) for i in internal_ids))
        if not ids:
            return {}
        sparql = queries.STABLE_IDS_QUERY.replace(
            "{INTERNAL_ID_VALUES}", queries.integer_values(ids)
        )
        return {
            int(row["internalId"]): str(row["sampleId"])
            for row in self._select(sparql, "stable ids")
        }

    # Cohort directory

    def sample_lists(self, sample_list_ids: Iterable[str]) -> List[SampleList]:
        ids = list(dict.fromkeys(sample_list_ids))
        if not ids:
            return []
        sparql = queries.SAMPLE_LIST_MEMBERS_QUERY.replace(
            "{SAMPLE_LIST_VALUES}", queries.string_values(ids)
        )
        headers: Dict[str, Dict[str, Any]] = {}
        members: Dict[str, List[str]] = {}
        for row in self._select(sparql, "sample lists"):
            lid = str(row["sampleListId"])
            headers.setdefault(lid, {"study_id": str(row["studyId"]), "name": row.get("name")})
            sample_id = row.get("sampleId")
            if sample_id is not None and sample_id not in members.setdefault(lid, []):
                members[lid].append(str(sample_id))
        return [
            SampleList(
                id=lid,
                study_id=headers[lid]["study_id"],
                name=headers[lid]["name"],
                sample_ids=tuple(members.get(lid, [])),
            )
            for lid in ids
            if lid in headers
        ]


__all__ = ["SparqlPortalStore"]
