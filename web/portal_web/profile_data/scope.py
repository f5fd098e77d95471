from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional

from portal_web.errors import NotFound
from portal_web.stores.base import CohortDirectory


@dataclass(frozen=True)
class SampleScope:
    """
    The stable sample ids a request is restricted to.

    `include_all` is the sentinel for "no sample filter was supplied". Sample
    ids only filter once the scope holds at least one: a supplied-but-empty
    scope lets every decoded matrix datum through, while the mutation path
    treats it as matching no samples.
    """

    sample_ids: FrozenSet[str] = frozenset()
    sample_list_id: Optional[str] = None
    include_all: bool = True
    explicit_sample_ids: bool = False

    def contains(self, sample_id: str) -> bool:
        return not self.sample_ids or sample_id in self.sample_ids

    @property
    def is_empty(self) -> bool:
        return not self.include_all and not self.sample_ids


INCLUDE_ALL = SampleScope()


def cohort_members(directory: CohortDirectory, sample_list_id: str) -> List[str]:
    found = directory.sample_lists([sample_list_id])
    if not found:
        raise NotFound("sample list", [sample_list_id])
    return list(found[0].sample_ids)


def resolve_sample_scope(
    directory: CohortDirectory,
    sample_ids: Optional[Iterable[str]] = None,
    sample_list_id: Optional[str] = None,
) -> SampleScope:
    """Union explicit sample ids and cohort members into one scope."""

    if sample_ids is None and sample_list_id is None:
        return INCLUDE_ALL

    desired = set()
    if sample_list_id is not None:
        desired.update(cohort_members(directory, sample_list_id))
    if sample_ids is not None:
        desired.update(str(s) for s in sample_ids)

    return SampleScope(
        sample_ids=frozenset(desired),
        sample_list_id=sample_list_id,
        include_all=False,
        explicit_sample_ids=sample_ids is not None,
    )


__all__ = ["SampleScope", "INCLUDE_ALL", "cohort_members", "resolve_sample_scope"]
