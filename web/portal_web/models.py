from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Gene:
    hugo_gene_symbol: str
    entrez_gene_id: int


@dataclass(frozen=True)
class GeneticProfile:
    """A named molecular data track (mutations, copy number, ...) of a study."""

    id: str
    study_id: str
    genetic_alteration_type: str
    datatype: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class Sample:
    internal_id: int
    id: str
    study_id: str
    patient_id: Optional[str] = None


@dataclass(frozen=True)
class SampleList:
    """A curated set of samples (cohort) usable as a filter scope."""

    id: str
    study_id: str
    name: Optional[str] = None
    sample_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EncodedRow:
    """
    One gene of one matrix-style profile.

    `values` is delimiter-joined; position i belongs to the sample at
    position i of the profile's own ordered sample index.
    """

    genetic_profile_id: str
    study_id: str
    hugo_gene_symbol: str
    entrez_gene_id: int
    values: str


@dataclass(frozen=True)
class OrderedSampleIndex:
    """Delimiter-joined internal sample keys defining a profile's columns."""

    genetic_profile_id: str
    ordered_sample_list: str


@dataclass(frozen=True)
class MutationDatum:
    sample_id: str
    genetic_profile_id: str
    study_id: str
    hugo_gene_symbol: str
    entrez_gene_id: int
    protein_change: Optional[str] = None
    mutation_type: Optional[str] = None
    protein_start: Optional[int] = None
    protein_end: Optional[int] = None

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProfileDatum:
    """A single decoded matrix value for one (sample, gene, profile)."""

    sample_id: str
    genetic_profile_id: str
    study_id: str
    hugo_gene_symbol: str
    entrez_gene_id: int
    profile_data: str
    sample_list_id: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        if row["sample_list_id"] is None:
            del row["sample_list_id"]
        return row


@dataclass(frozen=True)
class MutationCountItem:
    id: Optional[str]
    gene: str
    start: int
    end: int


@dataclass(frozen=True)
class AltCount:
    """
    A mutation count for one query item.

    Echo fields (`id`, `gene`, `start`, `end`) are copied from the query item
    that produced the count; fields not requested stay None.
    """

    count: int
    study_id: Optional[str] = None
    id: Optional[str] = None
    gene: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None

    def to_row(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ProvenanceItem:
    """Lightweight provenance for a single stage of a request."""

    source_label: str
    elapsed_ms: float
    row_count: int
    status: str


@dataclass
class ProfileDataRequest:
    genetic_profile_ids: List[str]
    genes: List[str]
    sample_ids: Optional[List[str]] = None
    sample_list_id: Optional[str] = None


@dataclass
class ProfileDataBundle:
    """
    Aggregated answer returned to the UI / CLI.

    - final_text: short summary of what was resolved.
    - rows: JSON-ready data points (mutation data first, then matrix data).
    - faults: serialized decode faults; fault_count is their number.
    - unclassified_profile_ids: profiles whose alteration type is unknown.
    - provenance: per-stage timing and row counts.
    """

    final_text: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    fault_count: int = 0
    faults: List[Dict[str, Any]] = field(default_factory=list)
    unclassified_profile_ids: List[str] = field(default_factory=list)
    provenance: List[ProvenanceItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MutationCountBundle:
    final_text: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    provenance: List[ProvenanceItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "Gene",
    "GeneticProfile",
    "Sample",
    "SampleList",
    "EncodedRow",
    "OrderedSampleIndex",
    "MutationDatum",
    "ProfileDatum",
    "MutationCountItem",
    "AltCount",
    "ProvenanceItem",
    "ProfileDataRequest",
    "ProfileDataBundle",
    "MutationCountBundle",
]
