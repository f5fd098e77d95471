from __future__ import annotations

import logging
import time
from typing import Any, List, Mapping, Optional

from portal_web.errors import InvalidArgument
from portal_web.models import (
    MutationCountBundle,
    ProfileDataBundle,
    ProfileDataRequest,
    ProvenanceItem,
)
from portal_web.profile_data.mutation_counts import MutationCountQuery, count_mutations
from portal_web.profile_data.service import ProfileDataService, get_profile_data_service

logger = logging.getLogger(__name__)


def _clean_id_list(values: Any, name: str, required: bool) -> Optional[List[str]]:
    if values is None:
        if required:
            raise InvalidArgument(f"'{name}' is required.")
        return None
    if isinstance(values, str) or not isinstance(values, (list, tuple)):
        raise InvalidArgument(f"'{name}' must be a list of strings.")
    cleaned: List[str] = []
    for idx, value in enumerate(values):
        if not isinstance(value, (str, int)) or isinstance(value, bool):
            raise InvalidArgument(f"'{name}[{idx}]' must be a string.")
        text = str(value).strip()
        if not text:
            raise InvalidArgument(f"'{name}[{idx}]' must not be empty.")
        cleaned.append(text)
    if required and not cleaned:
        raise InvalidArgument(f"'{name}' must not be empty.")
    return cleaned


def validate_request(request: ProfileDataRequest) -> ProfileDataRequest:
    """Reject malformed requests before any storage access."""

    sample_list_id = request.sample_list_id
    if sample_list_id is not None:
        if not isinstance(sample_list_id, str) or not sample_list_id.strip():
            raise InvalidArgument("'sample_list_id' must be a non-empty string.")
        sample_list_id = sample_list_id.strip()

    return ProfileDataRequest(
        genetic_profile_ids=_clean_id_list(request.genetic_profile_ids, "genetic_profile_ids", True),
        genes=_clean_id_list(request.genes, "genes", True),
        sample_ids=_clean_id_list(request.sample_ids, "sample_ids", False),
        sample_list_id=sample_list_id,
    )


def request_from_mapping(payload: Mapping[str, Any]) -> ProfileDataRequest:
    """Build a request from a decoded JSON body or query-parameter mapping."""

    unknown = sorted(
        set(payload) - {"genetic_profile_ids", "genes", "sample_ids", "sample_list_id"}
    )
    if unknown:
        raise InvalidArgument(f"Unknown request field(s): {', '.join(unknown)}.")
    return validate_request(
        ProfileDataRequest(
            genetic_profile_ids=payload.get("genetic_profile_ids"),
            genes=payload.get("genes"),
            sample_ids=payload.get("sample_ids"),
            sample_list_id=payload.get("sample_list_id"),
        )
    )


def run_profile_data_request(
    request: ProfileDataRequest,
    service: Optional[ProfileDataService] = None,
    max_rows: Optional[int] = None,
) -> ProfileDataBundle:
    """
    Validate and execute a profile-data request, returning a UI-ready bundle.

    NotFound and InvalidArgument propagate to the caller; decode faults are
    reported on the bundle.
    """

    request = validate_request(request)
    service = service or get_profile_data_service()

    result = service.resolve_profile_data(
        request.genetic_profile_ids,
        request.genes,
        sample_ids=request.sample_ids,
        sample_list_id=request.sample_list_id,
    )

    rows = [datum.to_row() for datum in result.data]
    truncated = max_rows is not None and len(rows) > max_rows
    if truncated:
        rows = rows[:max_rows]

    classification = result.classification
    provenance = [
        ProvenanceItem(
            source_label="mutation",
            elapsed_ms=result.mutation_elapsed_ms,
            row_count=result.mutation_count,
            status="ok" if classification.mutation_profile_ids else "skipped",
        ),
        ProvenanceItem(
            source_label="matrix",
            elapsed_ms=result.matrix_elapsed_ms,
            row_count=result.matrix_count,
            status=(
                "skipped"
                if not classification.matrix_profile_ids
                else ("partial" if result.fault_count else "ok")
            ),
        ),
    ]

    parts = [f"{prov.source_label}: {prov.row_count} rows (status={prov.status})" for prov in provenance]
    if result.fault_count:
        parts.append(f"decode faults: {result.fault_count}")
    if classification.unclassified_profile_ids:
        parts.append(
            "unclassified profiles: " + ", ".join(classification.unclassified_profile_ids)
        )
    if truncated:
        parts.append(f"showing first {max_rows} rows")

    return ProfileDataBundle(
        final_text=" | ".join(parts),
        rows=rows,
        fault_count=result.fault_count,
        faults=[fault.to_row() for fault in result.faults],
        unclassified_profile_ids=list(classification.unclassified_profile_ids),
        provenance=provenance,
    )


def run_mutation_count_request(
    query: MutationCountQuery,
    service: Optional[ProfileDataService] = None,
) -> MutationCountBundle:
    service = service or get_profile_data_service()

    start = time.perf_counter()
    counts = count_mutations(service.store, service.store, query)
    elapsed_ms = (time.perf_counter() - start) * 1000.0

    rows = [count.to_row() for count in counts]
    prov = ProvenanceItem(
        source_label="mutation_counts",
        elapsed_ms=elapsed_ms,
        row_count=len(rows),
        status="ok",
    )
    return MutationCountBundle(
        final_text=f"{prov.source_label}: {prov.row_count} rows (status={prov.status})",
        rows=rows,
        provenance=[prov],
    )


__all__ = [
    "validate_request",
    "request_from_mapping",
    "run_profile_data_request",
    "run_mutation_count_request",
]
