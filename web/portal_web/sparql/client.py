from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests
from rdflib import Graph
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)


@dataclass
class SourceResult:
    rows: List[Dict[str, Any]]
    variables: List[str]
    row_count: int
    elapsed_ms: float
    endpoint_url: str
    status: str
    error: Optional[str] = None


QueryRunner = Callable[[str], SourceResult]


def configure_session(retries: int = 3) -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET", "POST"),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"User-Agent": "portal-data/0.1"})
    return session


def _parse_bindings(payload: Dict[str, Any]) -> tuple[List[str], List[Dict[str, Any]]]:
    """Flatten SPARQL JSON results into (variables, rows of plain values)."""

    head = payload.get("head")
    variables = head.get("vars") if isinstance(head, dict) else None
    results = payload.get("results")
    bindings = results.get("bindings") if isinstance(results, dict) else None

    rows = [
        {
            name: cell.get("value") if isinstance(cell, dict) else cell
            for name, cell in binding.items()
        }
        for binding in (bindings if isinstance(bindings, list) else [])
        if isinstance(binding, dict)
    ]
    return [str(v) for v in (variables if isinstance(variables, list) else [])], rows


def _result(
    endpoint_url: str,
    started: float,
    rows: Optional[List[Dict[str, Any]]] = None,
    variables: Optional[List[str]] = None,
    error: Optional[str] = None,
) -> SourceResult:
    rows = rows or []
    return SourceResult(
        rows=rows,
        variables=variables or [],
        row_count=len(rows),
        elapsed_ms=(time.perf_counter() - started) * 1000.0,
        endpoint_url=endpoint_url,
        status="error" if error else "ok",
        error=error,
    )


def execute_sparql(
    endpoint_url: str,
    query: str,
    timeout_s: float = 30.0,
    method_preference: str = "POST",
    session: Optional[requests.Session] = None,
) -> SourceResult:
    """
    Run a SELECT query against a SPARQL endpoint.

    POST with `application/sparql-query` is tried first; GET with a `query`
    parameter is used when POST is not preferred or does not succeed.
    Transport and decoding problems are reported on the result, not raised.
    """

    http = session or requests
    accept = {"Accept": "application/sparql-results+json"}
    started = time.perf_counter()

    resp: Optional[requests.Response] = None
    if method_preference.upper() == "POST":
        try:
            resp = http.post(
                endpoint_url,
                data=query.encode("utf-8"),
                headers={"Content-Type": "application/sparql-query", **accept},
                timeout=timeout_s,
            )
        except requests.RequestException as exc:
            logger.debug(f"POST to {endpoint_url} failed ({exc}); retrying with GET")

    if resp is None or not resp.ok:
        try:
            resp = http.get(endpoint_url, params={"query": query}, headers=accept, timeout=timeout_s)
        except requests.RequestException as exc:
            return _result(endpoint_url, started, error=str(exc))

    if not resp.ok:
        return _result(endpoint_url, started, error=f"HTTP {resp.status_code}: {resp.text[:500]}")
    try:
        payload = resp.json()
    except ValueError as exc:
        return _result(endpoint_url, started, error=f"Endpoint did not return JSON: {exc}")
    if not isinstance(payload, dict):
        return _result(endpoint_url, started, error="Unexpected JSON structure from SPARQL endpoint.")

    variables, rows = _parse_bindings(payload)
    return _result(endpoint_url, started, rows=rows, variables=variables)


def query_graph(graph: Graph, query: str, label: str = "local") -> SourceResult:
    """Evaluate a SELECT query against an in-process rdflib graph."""

    started = time.perf_counter()
    try:
        result = graph.query(query)
    except Exception as exc:  # rdflib raises parser-specific exception types
        return _result(label, started, error=str(exc))

    variables = [str(v) for v in (result.vars or [])]
    rows = [
        {var: str(value) for var, value in zip(variables, binding) if value is not None}
        for binding in result
    ]
    return _result(label, started, rows=rows, variables=variables)


def endpoint_runner(
    endpoint_url: str,
    timeout_s: float = 30.0,
    session: Optional[requests.Session] = None,
) -> QueryRunner:
    http = session or configure_session()

    def run(query: str) -> SourceResult:
        return execute_sparql(endpoint_url, query, timeout_s=timeout_s, session=http)

    return run


def graph_runner(graph: Graph, label: str = "local") -> QueryRunner:
    def run(query: str) -> SourceResult:
        return query_graph(graph, query, label=label)

    return run


__all__ = [
    "SourceResult",
    "QueryRunner",
    "configure_session",
    "execute_sparql",
    "query_graph",
    "endpoint_runner",
    "graph_runner",
]
