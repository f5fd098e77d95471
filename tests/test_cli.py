from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner
from rdflib import Graph

from portal_data.cli import cli

DEMO_SNAPSHOT = Path(__file__).resolve().parents[1] / "web" / "data" / "demo_snapshot.json"


def test_resolve_writes_bundle(config_path: Path, tmp_path: Path):
    output = tmp_path / "out" / "result.json"
    result = CliRunner().invoke(
        cli,
        ["resolve", "--profile", "P1,study1_mutations", "--gene", "TP53", "--sample", "SAMPLE-C",
         "--output", str(output)],
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert [(row["genetic_profile_id"], row["sample_id"]) for row in payload["rows"]] == [
        ("study1_mutations", "SAMPLE-C"),
        ("P1", "SAMPLE-C"),
    ]


def test_resolve_unknown_profile_fails(config_path: Path):
    result = CliRunner().invoke(cli, ["resolve", "--profile", "P404", "--gene", "TP53"])
    assert result.exit_code != 0
    assert "Unknown genetic profile id(s): P404" in result.output


def test_count_mutations(config_path: Path, tmp_path: Path):
    output = tmp_path / "counts.json"
    result = CliRunner().invoke(
        cli,
        ["count-mutations", "--gene", "TP53", "--start", "1", "--end", "300", "--id", "q1",
         "--echo", "id", "--output", str(output)],
    )
    assert result.exit_code == 0, result.output
    assert json.loads(output.read_text(encoding="utf-8"))["rows"] == [{"count": 3, "id": "q1"}]


def test_count_mutations_rejects_bad_range(config_path: Path):
    result = CliRunner().invoke(cli, ["count-mutations", "--gene", "TP53", "--start", "9", "--end", "1"])
    assert result.exit_code != 0
    assert "after end" in result.output


def test_export_rdf(snapshot_path: Path, tmp_path: Path):
    output = tmp_path / "rdf" / "portal.ttl"
    result = CliRunner().invoke(
        cli, ["export-rdf", str(snapshot_path), "--output", str(output), "--format", "turtle"]
    )
    assert result.exit_code == 0, result.output
    graph = Graph()
    graph.parse(output, format="turtle")
    assert f"Wrote {len(graph)} triples" in result.output


def test_check_snapshot_reports_problems(snapshot_path: Path):
    result = CliRunner().invoke(cli, ["check-snapshot", str(snapshot_path)])
    assert result.exit_code != 0
    assert "P1/KRAS: position 4" in result.output
    assert "P2/TP53: internal key 999" in result.output
    assert "P3/TP53: no ordered sample index" in result.output
    assert "3 problem(s)" in result.output


def test_check_demo_snapshot_is_clean():
    result = CliRunner().invoke(cli, ["check-snapshot", str(DEMO_SNAPSHOT)])
    assert result.exit_code == 0, result.output
    assert "No problems found" in result.output
