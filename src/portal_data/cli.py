from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

import click

from portal_data.rdf_converter import convert_snapshot_to_rdf
from portal_web.config import load_config
from portal_web.errors import PortalDataError
from portal_web.executor import run_mutation_count_request, run_profile_data_request
from portal_web.models import ProfileDataRequest
from portal_web.profile_data.decode import build_position_indices, iter_values
from portal_web.profile_data.mutation_counts import query_from_lists
from portal_web.profile_data.service import get_profile_data_service
from portal_web.stores.snapshot import SnapshotPortalStore


def _split_ids(values: Iterable[str]) -> list[str]:
    """Accept both repeated options and comma-separated values."""
    ids: list[str] = []
    for value in values:
        ids.extend(part.strip() for part in value.split(",") if part.strip())
    return ids


def _emit(payload: dict, output: Optional[Path]) -> None:
    text = json.dumps(payload, indent=2)
    if output is None:
        click.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    click.echo(f"Wrote {output}.")


@click.group()
@click.option("--verbose", is_flag=True, help="Enable verbose logging.")
def cli(verbose: bool) -> None:
    """CLI utilities for the portal profile-data service."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)


@cli.command("resolve")
@click.option(
    "--profile",
    "profiles",
    multiple=True,
    required=True,
    help="Genetic profile id (repeat or comma-separate for multiple).",
)
@click.option(
    "--gene",
    "genes",
    multiple=True,
    required=True,
    help="HUGO symbol or Entrez id (repeat or comma-separate for multiple).",
)
@click.option(
    "--sample",
    "samples",
    multiple=True,
    help="Restrict to these stable sample ids.",
)
@click.option(
    "--sample-list",
    "sample_list_id",
    default=None,
    help="Restrict to the members of this sample list (cohort).",
)
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Write JSON to this file instead of stdout.",
)
def resolve_command(
    profiles: Iterable[str],
    genes: Iterable[str],
    samples: Iterable[str],
    sample_list_id: Optional[str],
    output: Optional[Path],
) -> None:
    """Resolve genetic profile data for profiles x genes."""
    request = ProfileDataRequest(
        genetic_profile_ids=_split_ids(profiles),
        genes=_split_ids(genes),
        sample_ids=_split_ids(samples) if samples else None,
        sample_list_id=sample_list_id,
    )
    try:
        bundle = run_profile_data_request(request, service=get_profile_data_service(load_config()))
    except PortalDataError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(bundle.final_text, err=True)
    _emit(bundle.to_dict(), output)


@cli.command("count-mutations")
@click.option("--gene", "genes", multiple=True, required=True, help="Gene per query item.")
@click.option("--start", "starts", multiple=True, type=int, required=True, help="Protein start per item.")
@click.option("--end", "ends", multiple=True, type=int, required=True, help="Protein end per item.")
@click.option("--id", "ids", multiple=True, help="Caller-supplied id per item (echoed back).")
@click.option("--per-study", is_flag=True, help="Return one count per study.")
@click.option(
    "--echo",
    "echo",
    multiple=True,
    help="Fields to echo back (id, gene, start, end). Defaults to all.",
)
@click.option("--output", type=click.Path(path_type=Path), default=None)
def count_mutations_command(
    genes: Iterable[str],
    starts: Iterable[int],
    ends: Iterable[int],
    ids: Iterable[str],
    per_study: bool,
    echo: Iterable[str],
    output: Optional[Path],
) -> None:
    """Count mutations per gene within protein position ranges."""
    try:
        query = query_from_lists(
            genes=list(genes),
            starts=list(starts),
            ends=list(ends),
            ids=list(ids) or None,
            per_study=per_study,
            echo=list(echo) or None,
        )
        bundle = run_mutation_count_request(query, service=get_profile_data_service(load_config()))
    except PortalDataError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(bundle.final_text, err=True)
    _emit(bundle.to_dict(), output)


@cli.command("export-rdf")
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    default=Path("data/rdf/portal.nt"),
    show_default=True,
    help="RDF output path.",
)
@click.option(
    "--format",
    "rdf_format",
    type=click.Choice(["nt", "turtle", "xml"]),
    default="nt",
    show_default=True,
)
def export_rdf_command(snapshot: Path, output: Path, rdf_format: str) -> None:
    """Convert a JSON snapshot to RDF for loading into a SPARQL endpoint."""
    try:
        triples = convert_snapshot_to_rdf(snapshot, output, rdf_format=rdf_format)
    except PortalDataError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Wrote {triples} triples to {output}.")


@cli.command("check-snapshot")
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--delimiter", default=",", show_default=True)
def check_snapshot_command(snapshot: Path, delimiter: str) -> None:
    """Report alteration rows that do not line up with their sample index."""
    try:
        store = SnapshotPortalStore.from_path(snapshot)
    except PortalDataError as exc:
        raise click.ClickException(str(exc)) from exc

    profiles = store.profile_ids()
    indices = build_position_indices(store.ordered_sample_indices(profiles), delimiter)
    known = store.resolve_stable_ids(
        key for index in indices.values() for key in index.keys.values()
    )

    problems = 0
    for row in store.all_encoded_rows():
        index = indices.get(row.genetic_profile_id)
        if index is None:
            click.echo(f"{row.genetic_profile_id}/{row.hugo_gene_symbol}: no ordered sample index")
            problems += 1
            continue
        for position, _ in iter_values(row, delimiter):
            if position in index.withdrawn:
                continue
            key = index.keys.get(position)
            if key is None:
                click.echo(
                    f"{row.genetic_profile_id}/{row.hugo_gene_symbol}: position {position} "
                    f"outside index (width {index.width}) or malformed"
                )
                problems += 1
            elif key not in known:
                click.echo(
                    f"{row.genetic_profile_id}/{row.hugo_gene_symbol}: internal key {key} "
                    "has no sample"
                )
                problems += 1

    if problems:
        raise click.ClickException(f"{problems} problem(s) found in {snapshot}.")
    click.echo(f"No problems found in {snapshot}.")


def main() -> None:  # pragma: no cover
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
