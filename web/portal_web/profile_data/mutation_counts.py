from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from portal_web.errors import InvalidArgument
from portal_web.models import AltCount, MutationCountItem
from portal_web.profile_data.classifier import resolve_genes
from portal_web.stores.base import GeneDirectory, MutationStore

logger = logging.getLogger(__name__)

ECHO_FIELDS = ("id", "gene", "start", "end")
COUNT_TYPES = ("count",)


@dataclass(frozen=True)
class MutationCountQuery:
    items: Sequence[MutationCountItem]
    type: str = "count"
    per_study: bool = False
    echo: Optional[Sequence[str]] = None


def _validate(query: MutationCountQuery) -> None:
    if query.type not in COUNT_TYPES:
        raise InvalidArgument(
            f"Unsupported mutation query type '{query.type}'; expected one of {', '.join(COUNT_TYPES)}."
        )
    if query.echo is not None:
        unknown = [str(f) for f in query.echo if f not in ECHO_FIELDS]
        if unknown:
            raise InvalidArgument(
                f"Unknown echo field(s): {', '.join(unknown)}; allowed: {', '.join(ECHO_FIELDS)}."
            )
    for idx, item in enumerate(query.items):
        if not item.gene:
            raise InvalidArgument(f"Mutation count item #{idx} has no gene.")
        if item.start > item.end:
            raise InvalidArgument(
                f"Mutation count item #{idx} has start {item.start} after end {item.end}."
            )


def query_from_lists(
    genes: Sequence[str],
    starts: Sequence[Any],
    ends: Sequence[Any],
    ids: Optional[Sequence[str]] = None,
    type: str = "count",
    per_study: bool = False,
    echo: Optional[Sequence[str]] = None,
) -> MutationCountQuery:
    """Build a query from parallel lists, as sent by the legacy GET form."""

    lengths = {"genes": len(genes), "starts": len(starts), "ends": len(ends)}
    if ids is not None:
        lengths["ids"] = len(ids)
    if len(set(lengths.values())) > 1:
        detail = ", ".join(f"{k}={v}" for k, v in lengths.items())
        raise InvalidArgument(f"Mutation count lists differ in length ({detail}).")

    try:
        items = [
            MutationCountItem(
                id=ids[i] if ids is not None else None,
                gene=str(genes[i]),
                start=int(starts[i]),
                end=int(ends[i]),
            )
            for i in range(len(genes))
        ]
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"Mutation count positions must be integers: {exc}") from exc
    return MutationCountQuery(items=items, type=type, per_study=per_study, echo=echo)


def query_from_body(body: Mapping[str, Any]) -> MutationCountQuery:
    """Build a query from the JSON body form: {type, per_study, echo, data: [...]}."""

    data = body.get("data")
    if not isinstance(data, list):
        raise InvalidArgument("Mutation count body must carry a 'data' list.")
    items: List[MutationCountItem] = []
    for idx, entry in enumerate(data):
        if not isinstance(entry, Mapping):
            raise InvalidArgument(f"Mutation count data entry #{idx} must be an object.")
        try:
            items.append(
                MutationCountItem(
                    id=None if entry.get("id") is None else str(entry["id"]),
                    gene=str(entry["gene"]),
                    start=int(entry["start"]),
                    end=int(entry["end"]),
                )
            )
        except KeyError as exc:
            raise InvalidArgument(f"Mutation count data entry #{idx} is missing {exc}.") from exc
        except (TypeError, ValueError) as exc:
            raise InvalidArgument(
                f"Mutation count data entry #{idx} has non-integer positions: {exc}"
            ) from exc
    echo = body.get("echo")
    if echo is not None and (
        not isinstance(echo, list) or not all(isinstance(name, str) for name in echo)
    ):
        raise InvalidArgument("'echo' must be a list of field names.")
    return MutationCountQuery(
        items=items,
        type=str(body.get("type", "count")),
        per_study=bool(body.get("per_study", False)),
        echo=echo,
    )


def _echoed(count: AltCount, item: MutationCountItem, echo: Optional[Iterable[str]]) -> AltCount:
    fields = ECHO_FIELDS if echo is None else tuple(echo)
    values = {name: getattr(item, name) for name in fields}
    return replace(count, **values)


def count_mutations(store: MutationStore, genes: GeneDirectory, query: MutationCountQuery) -> List[AltCount]:
    """
    Count mutations per query item, in item order.

    Every returned AltCount is a new object carrying the echo fields of the
    item that produced it.
    """

    _validate(query)
    resolved = {}
    if query.items:
        for gene in resolve_genes(genes, [item.gene for item in query.items]):
            resolved[gene.hugo_gene_symbol.upper()] = gene
            resolved[str(gene.entrez_gene_id)] = gene

    counts: List[AltCount] = []
    for item in query.items:
        key = item.gene.strip().upper()
        gene = resolved[str(int(key)) if key.isdigit() else key]
        for count in store.mutation_counts(gene.entrez_gene_id, item.start, item.end, query.per_study):
            counts.append(_echoed(count, item, query.echo))
    logger.info(f"Computed {len(counts)} mutation count row(s) for {len(query.items)} item(s).")
    return counts


__all__ = [
    "ECHO_FIELDS",
    "MutationCountQuery",
    "query_from_lists",
    "query_from_body",
    "count_mutations",
]
