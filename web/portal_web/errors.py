from __future__ import annotations

from typing import Iterable, List, Optional


class PortalDataError(RuntimeError):
    """Base class for errors raised by the portal data service."""


class NotFound(PortalDataError, LookupError):
    """Raised when requested profile, gene or sample list ids do not exist."""

    def __init__(self, kind: str, missing: Iterable[str]) -> None:
        self.kind = kind
        self.missing: List[str] = [str(m) for m in missing]
        super().__init__(f"Unknown {kind} id(s): {', '.join(self.missing)}")


class InvalidArgument(PortalDataError, ValueError):
    """Raised for malformed requests, before any storage access."""


class StoreError(PortalDataError):
    """Raised when a storage backend fails to answer a query."""


class SnapshotError(PortalDataError):
    """Raised when a portal snapshot file is missing or malformed."""


class DecodeFault(PortalDataError):
    """
    A single encoded value that could not be mapped to a sample.

    Decode faults point at index/data corruption upstream. They are recorded
    on the result and logged; they never abort a request.
    """

    def __init__(
        self,
        genetic_profile_id: str,
        reason: str,
        position: Optional[int] = None,
        entrez_gene_id: Optional[int] = None,
        internal_id: Optional[str] = None,
    ) -> None:
        self.genetic_profile_id = genetic_profile_id
        self.reason = reason
        self.position = position
        self.entrez_gene_id = entrez_gene_id
        self.internal_id = internal_id
        where = f"profile '{genetic_profile_id}'"
        if entrez_gene_id is not None:
            where += f", gene {entrez_gene_id}"
        if position is not None:
            where += f", position {position}"
        super().__init__(f"{reason} ({where})")

    def to_row(self) -> dict:
        return {
            "genetic_profile_id": self.genetic_profile_id,
            "entrez_gene_id": self.entrez_gene_id,
            "position": self.position,
            "internal_id": self.internal_id,
            "reason": self.reason,
        }


__all__ = [
    "PortalDataError",
    "NotFound",
    "InvalidArgument",
    "StoreError",
    "SnapshotError",
    "DecodeFault",
]
