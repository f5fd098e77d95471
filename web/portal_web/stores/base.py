"""
Storage interfaces consumed by the profile-data engine.

Each protocol method corresponds to exactly one query shape. Implementations
return already-fetched rows; they do no filtering beyond what the method
signature names.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Protocol, Sequence, runtime_checkable

from portal_web.models import (
    AltCount,
    EncodedRow,
    Gene,
    GeneticProfile,
    MutationDatum,
    OrderedSampleIndex,
    SampleList,
)


@runtime_checkable
class GeneDirectory(Protocol):
    def genes(self, identifiers: Iterable[str]) -> List[Gene]:  # pragma: no cover - protocol
        """Genes matching HUGO symbols (case-insensitive) or Entrez ids."""
        ...


@runtime_checkable
class ProfileDirectory(Protocol):
    def profiles(self, profile_ids: Iterable[str]) -> List[GeneticProfile]:  # pragma: no cover - protocol
        ...


@runtime_checkable
class MutationStore(Protocol):
    def mutation_data(
        self, profile_ids: Sequence[str], entrez_gene_ids: Sequence[int]
    ) -> List[MutationDatum]:  # pragma: no cover - protocol
        ...

    def mutation_data_by_samples(
        self,
        profile_ids: Sequence[str],
        entrez_gene_ids: Sequence[int],
        sample_ids: Iterable[str],
    ) -> List[MutationDatum]:  # pragma: no cover - protocol
        ...

    def mutation_data_by_sample_list(
        self,
        profile_ids: Sequence[str],
        entrez_gene_ids: Sequence[int],
        sample_list_id: str,
    ) -> List[MutationDatum]:  # pragma: no cover - protocol
        ...

    def mutation_counts(
        self, entrez_gene_id: int, start: int, end: int, per_study: bool
    ) -> List[AltCount]:  # pragma: no cover - protocol
        """Mutations in the gene with protein positions inside [start, end]."""
        ...


@runtime_checkable
class MatrixStore(Protocol):
    def encoded_rows(
        self, profile_ids: Sequence[str], entrez_gene_ids: Sequence[int]
    ) -> List[EncodedRow]:  # pragma: no cover - protocol
        ...

    def ordered_sample_indices(
        self, profile_ids: Sequence[str]
    ) -> List[OrderedSampleIndex]:  # pragma: no cover - protocol
        ...


@runtime_checkable
class SampleDirectory(Protocol):
    def resolve_stable_ids(self, internal_ids: Iterable[int]) -> Dict[int, str]:  # pragma: no cover - protocol
        """Map internal sample keys to stable ids; unknown keys are absent."""
        ...


@runtime_checkable
class CohortDirectory(Protocol):
    def sample_lists(self, sample_list_ids: Iterable[str]) -> List[SampleList]:  # pragma: no cover - protocol
        """Sample lists with their member stable ids; unknown ids are absent."""
        ...


@runtime_checkable
class PortalStore(
    GeneDirectory,
    ProfileDirectory,
    MutationStore,
    MatrixStore,
    SampleDirectory,
    CohortDirectory,
    Protocol,
):
    """A single backend implementing every collaborator."""


__all__ = [
    "GeneDirectory",
    "ProfileDirectory",
    "MutationStore",
    "MatrixStore",
    "SampleDirectory",
    "CohortDirectory",
    "PortalStore",
]
