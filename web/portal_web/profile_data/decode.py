"""
Positional decoding of matrix-style profile rows.

A matrix profile stores, per gene, one delimiter-joined value string. The
column identities live in a separate delimiter-joined string of internal
sample keys, one per profile. Both are turned into explicit mappings here,
once per profile, and joined by position.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

from portal_web.errors import DecodeFault
from portal_web.models import EncodedRow, OrderedSampleIndex, ProfileDatum
from portal_web.profile_data.scope import INCLUDE_ALL, SampleScope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionIndex:
    """Column layout of one profile: position -> internal sample key."""

    genetic_profile_id: str
    keys: Mapping[int, int]
    width: int
    withdrawn: FrozenSet[int] = frozenset()
    malformed: Mapping[int, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, index: OrderedSampleIndex, delimiter: str = ",") -> "PositionIndex":
        keys: Dict[int, int] = {}
        withdrawn: Set[int] = set()
        malformed: Dict[int, str] = {}
        tokens = index.ordered_sample_list.split(delimiter) if index.ordered_sample_list else []
        for position, token in enumerate(tokens):
            if not token:
                withdrawn.add(position)
                continue
            try:
                keys[position] = int(token)
            except ValueError:
                malformed[position] = token
        return cls(
            genetic_profile_id=index.genetic_profile_id,
            keys=keys,
            width=len(tokens),
            withdrawn=frozenset(withdrawn),
            malformed=malformed,
        )

    def internal_id(self, position: int, entrez_gene_id: Optional[int] = None) -> Optional[int]:
        """
        The internal key at `position`, or None for a withdrawn column.

        Raises DecodeFault when the position lies outside the index or holds
        a token that is not an integer key.
        """

        if position in self.keys:
            return self.keys[position]
        if position in self.withdrawn:
            return None
        if position in self.malformed:
            raise DecodeFault(
                self.genetic_profile_id,
                f"malformed internal sample key '{self.malformed[position]}'",
                position=position,
                entrez_gene_id=entrez_gene_id,
            )
        raise DecodeFault(
            self.genetic_profile_id,
            f"value position beyond ordered sample index (width {self.width})",
            position=position,
            entrez_gene_id=entrez_gene_id,
        )


def build_position_indices(
    indices: Iterable[OrderedSampleIndex], delimiter: str = ","
) -> Dict[str, PositionIndex]:
    """One PositionIndex per profile id."""

    return {index.genetic_profile_id: PositionIndex.parse(index, delimiter) for index in indices}


def referenced_internal_ids(position_indices: Mapping[str, PositionIndex]) -> List[int]:
    seen: Dict[int, None] = {}
    for index in position_indices.values():
        for key in index.keys.values():
            seen.setdefault(key, None)
    return list(seen)


def iter_values(row: EncodedRow, delimiter: str = ",") -> Iterator[Tuple[int, str]]:
    """Non-empty (position, value) pairs of an encoded row."""

    if not row.values:
        return
    for position, token in enumerate(row.values.split(delimiter)):
        if token:
            yield position, token


@dataclass
class DecodeOutcome:
    data: List[ProfileDatum] = field(default_factory=list)
    faults: List[DecodeFault] = field(default_factory=list)


def decode_rows(
    rows: Iterable[EncodedRow],
    position_indices: Mapping[str, PositionIndex],
    stable_ids: Mapping[int, str],
    scope: SampleScope = INCLUDE_ALL,
    delimiter: str = ",",
) -> DecodeOutcome:
    """
    Join encoded rows with their own profile's position index.

    Output follows row order, then position order. Empty value tokens and
    withdrawn columns produce nothing; every other position that cannot be
    mapped to a stable id is recorded as a DecodeFault and skipped.
    """

    outcome = DecodeOutcome()
    for row in rows:
        index = position_indices.get(row.genetic_profile_id)
        if index is None:
            fault = DecodeFault(
                row.genetic_profile_id,
                "no ordered sample index for profile",
                entrez_gene_id=row.entrez_gene_id,
            )
            logger.warning(f"Decode fault: {fault}")
            outcome.faults.append(fault)
            continue

        for position, value in iter_values(row, delimiter):
            try:
                internal_id = index.internal_id(position, row.entrez_gene_id)
                if internal_id is None:
                    continue
                sample_id = stable_ids.get(internal_id)
                if sample_id is None:
                    raise DecodeFault(
                        row.genetic_profile_id,
                        "internal sample key has no stable id",
                        position=position,
                        entrez_gene_id=row.entrez_gene_id,
                        internal_id=str(internal_id),
                    )
            except DecodeFault as fault:
                logger.warning(f"Decode fault for gene {row.hugo_gene_symbol}: {fault}")
                outcome.faults.append(fault)
                continue

            if not scope.contains(sample_id):
                continue
            outcome.data.append(
                ProfileDatum(
                    sample_id=sample_id,
                    genetic_profile_id=row.genetic_profile_id,
                    study_id=row.study_id,
                    hugo_gene_symbol=row.hugo_gene_symbol,
                    entrez_gene_id=row.entrez_gene_id,
                    profile_data=value,
                    sample_list_id=scope.sample_list_id,
                )
            )
    return outcome


__all__ = [
    "PositionIndex",
    "DecodeOutcome",
    "build_position_indices",
    "referenced_internal_ids",
    "iter_values",
    "decode_rows",
]
