"""
Genetic-profile-data resolution.

Mutation-style profiles are fetched row-oriented and already keyed by stable
sample id. Matrix-style profiles are decoded positionally (see `decode`).
Both paths share the sample scope and are concatenated, mutation data first.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Union

from rdflib import Graph

from portal_web.config import AppConfig, ConfigError, ProfileDataConfig, load_config
from portal_web.errors import DecodeFault
from portal_web.models import Gene, MutationDatum, ProfileDatum
from portal_web.profile_data.classifier import (
    ProfileClassification,
    classify_profiles,
    resolve_genes,
)
from portal_web.profile_data.decode import (
    build_position_indices,
    decode_rows,
    referenced_internal_ids,
)
from portal_web.profile_data.scope import SampleScope, resolve_sample_scope
from portal_web.sparql.client import endpoint_runner, graph_runner
from portal_web.sparql.endpoints import get_default_portal_endpoint
from portal_web.stores.base import PortalStore
from portal_web.stores.snapshot import SnapshotPortalStore
from portal_web.stores.sparql import SparqlPortalStore

logger = logging.getLogger(__name__)

Datum = Union[MutationDatum, ProfileDatum]


@dataclass
class ProfileDataResult:
    data: List[Datum] = field(default_factory=list)
    faults: List[DecodeFault] = field(default_factory=list)
    classification: ProfileClassification = field(default_factory=ProfileClassification)
    scope: Optional[SampleScope] = None
    mutation_count: int = 0
    matrix_count: int = 0
    mutation_elapsed_ms: float = 0.0
    matrix_elapsed_ms: float = 0.0

    @property
    def fault_count(self) -> int:
        return len(self.faults)


@dataclass
class ProfileDataService:
    """Resolves (sample, gene, profile) data points from a PortalStore."""

    store: PortalStore
    settings: ProfileDataConfig = field(default_factory=ProfileDataConfig)

    def classify(self, profile_ids: Iterable[str]) -> ProfileClassification:
        return classify_profiles(
            self.store,
            profile_ids,
            mutation_types=self.settings.mutation_alteration_types,
            matrix_types=self.settings.matrix_alteration_types,
        )

    def fetch_mutation_data(
        self,
        profile_ids: Sequence[str],
        genes: Sequence[Gene],
        scope: SampleScope,
    ) -> List[MutationDatum]:
        if not profile_ids or not genes:
            return []
        entrez = [g.entrez_gene_id for g in genes]
        if scope.include_all:
            return list(self.store.mutation_data(profile_ids, entrez))
        if scope.is_empty:
            return []
        if scope.sample_list_id is not None and not scope.explicit_sample_ids:
            return list(self.store.mutation_data_by_sample_list(profile_ids, entrez, scope.sample_list_id))
        return list(self.store.mutation_data_by_samples(profile_ids, entrez, sorted(scope.sample_ids)))

    def decode_matrix_data(
        self,
        profile_ids: Sequence[str],
        genes: Sequence[Gene],
        scope: SampleScope,
    ) -> tuple[List[ProfileDatum], List[DecodeFault]]:
        if not profile_ids or not genes:
            return [], []

        delimiter = self.settings.delimiter
        rows = self.store.encoded_rows(profile_ids, [g.entrez_gene_id for g in genes])
        if not rows:
            return [], []

        position_indices = build_position_indices(
            self.store.ordered_sample_indices(profile_ids), delimiter
        )
        stable_ids = self.store.resolve_stable_ids(referenced_internal_ids(position_indices))
        outcome = decode_rows(rows, position_indices, stable_ids, scope, delimiter)
        return outcome.data, outcome.faults

    def resolve_profile_data(
        self,
        profile_ids: Iterable[str],
        genes: Iterable[str],
        sample_ids: Optional[Iterable[str]] = None,
        sample_list_id: Optional[str] = None,
    ) -> ProfileDataResult:
        """
        Resolve profile data for the given profiles and genes.

        `sample_ids` and `sample_list_id` are independently optional; when
        both are None no sample filtering is applied. Unknown profiles, genes
        or sample lists raise NotFound. Decode faults are returned on the
        result instead of aborting the request.
        """

        classification = self.classify(profile_ids)
        resolved_genes = resolve_genes(self.store, genes)
        scope = resolve_sample_scope(
            self.store,
            sample_ids=list(sample_ids) if sample_ids is not None else None,
            sample_list_id=sample_list_id,
        )

        start = time.perf_counter()
        mutation_data = self.fetch_mutation_data(
            classification.mutation_profile_ids, resolved_genes, scope
        )
        mutation_done = time.perf_counter()
        matrix_data, faults = self.decode_matrix_data(
            classification.matrix_profile_ids, resolved_genes, scope
        )
        matrix_done = time.perf_counter()
        if faults:
            logger.warning(f"{len(faults)} decode fault(s) while resolving profile data.")

        result = ProfileDataResult(
            data=[*mutation_data, *matrix_data],
            faults=faults,
            classification=classification,
            scope=scope,
            mutation_count=len(mutation_data),
            matrix_count=len(matrix_data),
            mutation_elapsed_ms=(mutation_done - start) * 1000.0,
            matrix_elapsed_ms=(matrix_done - mutation_done) * 1000.0,
        )
        logger.info(
            f"Resolved {len(result.data)} data point(s) "
            f"({result.mutation_count} mutation, {result.matrix_count} matrix) "
            f"for {len(classification.mutation_profile_ids) + len(classification.matrix_profile_ids)} "
            f"profile(s) and {len(resolved_genes)} gene(s)."
        )
        return result


def get_portal_store(cfg: Optional[AppConfig] = None) -> PortalStore:
    """
    Factory returning the PortalStore for the configured mode.

    Modes:
    - "snapshot": embedded store loaded from `store.snapshot_path`.
    - "sparql": first configured portal SPARQL endpoint.
    - "rdf": local rdflib graph parsed from `store.rdf_paths`.
    """

    cfg = cfg or load_config()
    mode = cfg.store.mode

    if mode == "sparql":
        endpoint = get_default_portal_endpoint(cfg)
        if endpoint is None:
            raise ConfigError("No portal SPARQL endpoint available from configuration.")
        return SparqlPortalStore(
            endpoint_runner(endpoint.sparql_url, timeout_s=cfg.store.timeout_s),
            label=endpoint.label,
        )

    if mode == "rdf":
        graph = Graph()
        for path in cfg.store.rdf_paths:
            logger.info(f"Loading RDF from {path}")
            graph.parse(str(path))
        logger.info(f"Loaded {len(graph)} triples")
        return SparqlPortalStore(graph_runner(graph), label="local-rdf")

    return SnapshotPortalStore.from_path(cfg.store.snapshot_path)


def get_profile_data_service(cfg: Optional[AppConfig] = None) -> ProfileDataService:
    cfg = cfg or load_config()
    return ProfileDataService(store=get_portal_store(cfg), settings=cfg.profile_data)


__all__ = [
    "ProfileDataResult",
    "ProfileDataService",
    "get_portal_store",
    "get_profile_data_service",
]
