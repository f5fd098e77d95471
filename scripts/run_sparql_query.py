#!/usr/bin/env python3
"""Run a SPARQL query against portal RDF files, a JSON snapshot, or an endpoint."""

from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import Iterable

from rdflib import Graph

from portal_data.rdf_converter import snapshot_to_graph
from portal_web.snapshot import load_snapshot
from portal_web.sparql.client import SourceResult, execute_sparql, query_graph
from portal_web.sparql.queries import PREFIX_BLOCK


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("query_file", type=Path, help="Path to SPARQL query file")
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--rdf-dir",
        type=Path,
        default=Path("data/rdf"),
        help="Directory containing RDF .nt files (default: data/rdf)",
    )
    source.add_argument("--snapshot", type=Path, help="Query a JSON snapshot converted in memory")
    source.add_argument("--endpoint", help="Query a remote SPARQL endpoint URL")
    parser.add_argument("--limit", type=int, help="Override LIMIT in query (if any)")
    parser.add_argument(
        "--no-prefixes",
        action="store_true",
        help="Do not prepend the portal PREFIX block to the query",
    )
    return parser.parse_args(argv)


def _load_graph(args: argparse.Namespace) -> Graph | None:
    if args.snapshot:
        print(f"Converting snapshot {args.snapshot}...")
        return snapshot_to_graph(load_snapshot(args.snapshot))

    rdf_files = sorted(args.rdf_dir.glob("*.nt"))
    if not rdf_files:
        print(f"Error: No .nt files found in {args.rdf_dir}")
        return None
    graph = Graph()
    print(f"Loading {len(rdf_files)} RDF file(s) from {args.rdf_dir}...")
    for rdf_file in rdf_files:
        graph.parse(rdf_file, format="nt")
    return graph


def _print_result(result: SourceResult) -> None:
    if result.status != "ok":
        print(f"Query failed: {result.error}")
        return
    print("=" * 80)
    print(" | ".join(f"{v:30}" for v in result.variables))
    print("-" * 80)
    for row in result.rows:
        print(" | ".join(f"{str(row.get(v, ''))[:30]:30}" for v in result.variables))
    print("-" * 80)
    print(f"Total: {result.row_count} result(s) in {result.elapsed_ms:.1f} ms")


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)

    query_text = args.query_file.read_text()
    if args.limit is not None:
        query_text = re.sub(r"\s+LIMIT\s+\d+", "", query_text, flags=re.IGNORECASE)
        query_text = query_text.rstrip() + f"\nLIMIT {args.limit}"
    if not args.no_prefixes:
        query_text = PREFIX_BLOCK + query_text

    if args.endpoint:
        result = execute_sparql(args.endpoint, query_text)
    else:
        graph = _load_graph(args)
        if graph is None:
            return 1
        print(f"Loaded {len(graph)} triples\n")
        result = query_graph(graph, query_text, label=str(args.snapshot or args.rdf_dir))

    _print_result(result)
    return 0 if result.status == "ok" else 1


if __name__ == "__main__":
    sys.exit(main())
