from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from portal_web.errors import NotFound
from portal_web.models import Gene
from portal_web.stores.base import GeneDirectory, ProfileDirectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileClassification:
    """Requested profile ids split by alteration type, each in input order."""

    mutation_profile_ids: Tuple[str, ...] = ()
    matrix_profile_ids: Tuple[str, ...] = ()
    unclassified_profile_ids: Tuple[str, ...] = ()


def classify_profiles(
    directory: ProfileDirectory,
    profile_ids: Iterable[str],
    mutation_types: Iterable[str],
    matrix_types: Iterable[str],
) -> ProfileClassification:
    """
    Partition profile ids into mutation-style, matrix-style and unclassified.

    All ids are looked up in one directory call. Ids the directory does not
    know raise NotFound; ids with an alteration type in neither list are kept
    apart so callers can report them.
    """

    requested = list(dict.fromkeys(profile_ids))
    by_id = {p.id: p for p in directory.profiles(requested)}
    missing = [pid for pid in requested if pid not in by_id]
    if missing:
        raise NotFound("genetic profile", missing)

    mutation_set = {t.upper() for t in mutation_types}
    matrix_set = {t.upper() for t in matrix_types}

    mutation: List[str] = []
    matrix: List[str] = []
    unclassified: List[str] = []
    for pid in requested:
        alteration_type = by_id[pid].genetic_alteration_type.upper()
        if alteration_type in mutation_set:
            mutation.append(pid)
        elif alteration_type in matrix_set:
            matrix.append(pid)
        else:
            logger.warning(
                f"Profile '{pid}' has unrecognized alteration type '{alteration_type}'; "
                "it contributes no data."
            )
            unclassified.append(pid)

    return ProfileClassification(
        mutation_profile_ids=tuple(mutation),
        matrix_profile_ids=tuple(matrix),
        unclassified_profile_ids=tuple(unclassified),
    )


def resolve_genes(directory: GeneDirectory, identifiers: Iterable[str]) -> List[Gene]:
    """Resolve HUGO symbols / Entrez ids, raising NotFound for any unknown one."""

    requested = [str(i).strip() for i in dict.fromkeys(identifiers)]
    genes = directory.genes(requested)
    symbols = {g.hugo_gene_symbol.upper() for g in genes}
    entrez = {g.entrez_gene_id for g in genes}
    missing = [
        ident
        for ident in requested
        if not ((ident.isdigit() and int(ident) in entrez) or ident.upper() in symbols)
    ]
    if missing:
        raise NotFound("gene", missing)
    return genes


__all__ = ["ProfileClassification", "classify_profiles", "resolve_genes"]
