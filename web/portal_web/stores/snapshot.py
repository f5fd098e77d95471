from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from portal_web.errors import SnapshotError
from portal_web.models import (
    AltCount,
    EncodedRow,
    Gene,
    GeneticProfile,
    MutationDatum,
    OrderedSampleIndex,
    Sample,
    SampleList,
)
from portal_web.snapshot import load_snapshot, normalize_snapshot

logger = logging.getLogger(__name__)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


class SnapshotPortalStore:
    """
    Embedded store answering every collaborator query from a JSON snapshot.

    The snapshot is indexed once at construction; query methods never mutate
    the store, so one instance can serve concurrent requests.
    """

    def __init__(self, sections: Dict[str, List[Dict[str, Any]]], source: str = "<memory>") -> None:
        self.source = source
        try:
            self._build(sections)
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Malformed snapshot {source}: {exc!r}") from exc

    @classmethod
    def from_path(cls, path: Path) -> "SnapshotPortalStore":
        return cls(load_snapshot(path), source=str(path))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SnapshotPortalStore":
        return cls(normalize_snapshot(data))

    def _build(self, sections: Dict[str, List[Dict[str, Any]]]) -> None:
        self._genes_by_entrez: Dict[int, Gene] = {}
        self._genes_by_symbol: Dict[str, Gene] = {}
        for rec in sections.get("genes", []):
            gene = Gene(
                hugo_gene_symbol=str(rec["hugo_gene_symbol"]),
                entrez_gene_id=int(rec["entrez_gene_id"]),
            )
            self._genes_by_entrez[gene.entrez_gene_id] = gene
            self._genes_by_symbol[gene.hugo_gene_symbol.upper()] = gene

        self._profiles: Dict[str, GeneticProfile] = {}
        for rec in sections.get("profiles", []):
            profile = GeneticProfile(
                id=str(rec["id"]),
                study_id=str(rec["study_id"]),
                genetic_alteration_type=str(rec["genetic_alteration_type"]).upper(),
                datatype=_optional_str(rec.get("datatype")),
                name=_optional_str(rec.get("name")),
            )
            self._profiles[profile.id] = profile

        self._samples: Dict[int, Sample] = {}
        for rec in sections.get("samples", []):
            sample = Sample(
                internal_id=int(rec["internal_id"]),
                id=str(rec["id"]),
                study_id=str(rec["study_id"]),
                patient_id=_optional_str(rec.get("patient_id")),
            )
            self._samples[sample.internal_id] = sample

        self._sample_lists: Dict[str, SampleList] = {}
        for rec in sections.get("sample_lists", []):
            sample_list = SampleList(
                id=str(rec["id"]),
                study_id=str(rec["study_id"]),
                name=_optional_str(rec.get("name")),
                sample_ids=tuple(str(s) for s in rec.get("sample_ids") or []),
            )
            self._sample_lists[sample_list.id] = sample_list

        self._indices: Dict[str, OrderedSampleIndex] = {}
        for rec in sections.get("profile_sample_lists", []):
            index = OrderedSampleIndex(
                genetic_profile_id=str(rec["genetic_profile_id"]),
                ordered_sample_list=str(rec["ordered_sample_list"]),
            )
            self._indices[index.genetic_profile_id] = index

        self._rows: Dict[Tuple[str, int], EncodedRow] = {}
        for rec in sections.get("genetic_alteration_rows", []):
            profile_id = str(rec["genetic_profile_id"])
            entrez = int(rec["entrez_gene_id"])
            profile = self._profiles.get(profile_id)
            gene = self._genes_by_entrez.get(entrez)
            if profile is None or gene is None:
                logger.warning(
                    f"Skipping alteration row for profile '{profile_id}' gene {entrez}: "
                    "profile or gene missing from snapshot."
                )
                continue
            self._rows[(profile_id, entrez)] = EncodedRow(
                genetic_profile_id=profile_id,
                study_id=profile.study_id,
                hugo_gene_symbol=gene.hugo_gene_symbol,
                entrez_gene_id=entrez,
                values=str(rec.get("values") or ""),
            )

        # Mutations keep snapshot order; (study, sample) pairs support
        # sample-list joins without crossing studies.
        self._mutations: List[Tuple[Tuple[str, str], MutationDatum]] = []
        skipped = 0
        for rec in sections.get("mutations", []):
            profile_id = str(rec["genetic_profile_id"])
            entrez = int(rec["entrez_gene_id"])
            profile = self._profiles.get(profile_id)
            gene = self._genes_by_entrez.get(entrez)
            if profile is None or gene is None:
                skipped += 1
                continue
            datum = MutationDatum(
                sample_id=str(rec["sample_id"]),
                genetic_profile_id=profile_id,
                study_id=profile.study_id,
                hugo_gene_symbol=gene.hugo_gene_symbol,
                entrez_gene_id=entrez,
                protein_change=_optional_str(rec.get("protein_change")),
                mutation_type=_optional_str(rec.get("mutation_type")),
                protein_start=_optional_int(rec.get("protein_start")),
                protein_end=_optional_int(rec.get("protein_end")),
            )
            self._mutations.append(((profile.study_id, datum.sample_id), datum))

        if skipped:
            logger.warning(
                f"Skipped {skipped} mutation record(s) whose profile or gene is missing "
                "from the snapshot."
            )

    # Gene directory

    def genes(self, identifiers: Iterable[str]) -> List[Gene]:
        found: List[Gene] = []
        for ident in identifiers:
            text = str(ident).strip()
            if text.isdigit():
                gene = self._genes_by_entrez.get(int(text))
            else:
                gene = self._genes_by_symbol.get(text.upper())
            if gene is not None and gene not in found:
                found.append(gene)
        return found

    # Profile directory

    def profiles(self, profile_ids: Iterable[str]) -> List[GeneticProfile]:
        return [self._profiles[pid] for pid in dict.fromkeys(profile_ids) if pid in self._profiles]

    # Mutation store

    def _select_mutations(self, profile_ids: Sequence[str], entrez_gene_ids: Sequence[int]):
        wanted_profiles = set(profile_ids)
        wanted_genes = set(entrez_gene_ids)
        for key, datum in self._mutations:
            if datum.genetic_profile_id in wanted_profiles and datum.entrez_gene_id in wanted_genes:
                yield key, datum

    def mutation_data(
        self, profile_ids: Sequence[str], entrez_gene_ids: Sequence[int]
    ) -> List[MutationDatum]:
        return [datum for _, datum in self._select_mutations(profile_ids, entrez_gene_ids)]

    def mutation_data_by_samples(
        self,
        profile_ids: Sequence[str],
        entrez_gene_ids: Sequence[int],
        sample_ids: Iterable[str],
    ) -> List[MutationDatum]:
        wanted = set(sample_ids)
        return [
            datum
            for _, datum in self._select_mutations(profile_ids, entrez_gene_ids)
            if datum.sample_id in wanted
        ]

    def mutation_data_by_sample_list(
        self,
        profile_ids: Sequence[str],
        entrez_gene_ids: Sequence[int],
        sample_list_id: str,
    ) -> List[MutationDatum]:
        sample_list = self._sample_lists.get(sample_list_id)
        if sample_list is None:
            return []
        members = {(sample_list.study_id, sid) for sid in sample_list.sample_ids}
        return [
            datum
            for key, datum in self._select_mutations(profile_ids, entrez_gene_ids)
            if key in members
        ]

    def mutation_counts(
        self, entrez_gene_id: int, start: int, end: int, per_study: bool
    ) -> List[AltCount]:
        total = 0
        by_study: Dict[str, int] = defaultdict(int)
        for _, datum in self._mutations:
            if datum.entrez_gene_id != entrez_gene_id:
                continue
            if datum.protein_start is None or datum.protein_end is None:
                continue
            if datum.protein_start >= start and datum.protein_end <= end:
                total += 1
                by_study[datum.study_id] += 1

        if per_study:
            return [AltCount(count=by_study[sid], study_id=sid) for sid in sorted(by_study)]
        return [AltCount(count=total)]

    # Matrix store

    def encoded_rows(
        self, profile_ids: Sequence[str], entrez_gene_ids: Sequence[int]
    ) -> List[EncodedRow]:
        wanted_profiles = set(profile_ids)
        wanted_genes = set(entrez_gene_ids)
        return [
            self._rows[key]
            for key in sorted(self._rows)
            if key[0] in wanted_profiles and key[1] in wanted_genes
        ]

    def ordered_sample_indices(self, profile_ids: Sequence[str]) -> List[OrderedSampleIndex]:
        return [self._indices[pid] for pid in sorted(set(profile_ids)) if pid in self._indices]

    def all_encoded_rows(self) -> List[EncodedRow]:
        return [self._rows[key] for key in sorted(self._rows)]

    def profile_ids(self) -> List[str]:
        return list(self._profiles)

    # Sample directory

    def resolve_stable_ids(self, internal_ids: Iterable[int]) -> Dict[int, str]:
        return {
            key: self._samples[key].id
            for key in internal_ids
            if key in self._samples
        }

    # Cohort directory

    def sample_lists(self, sample_list_ids: Iterable[str]) -> List[SampleList]:
        return [
            self._sample_lists[lid]
            for lid in dict.fromkeys(sample_list_ids)
            if lid in self._sample_lists
        ]


__all__ = ["SnapshotPortalStore"]
