from __future__ import annotations

from types import SimpleNamespace

import pytest

from portal_web.errors import InvalidArgument, NotFound
from portal_web.executor import (
    request_from_mapping,
    run_mutation_count_request,
    run_profile_data_request,
    validate_request,
)
from portal_web.models import ProfileDataRequest
from portal_web.profile_data import service as service_module
from portal_web.profile_data.mutation_counts import query_from_lists


@pytest.mark.parametrize(
    "request_kwargs, message",
    [
        ({"genetic_profile_ids": [], "genes": ["TP53"]}, "genetic_profile_ids"),
        ({"genetic_profile_ids": ["P1"], "genes": None}, "'genes' is required"),
        ({"genetic_profile_ids": "P1", "genes": ["TP53"]}, "list of strings"),
        ({"genetic_profile_ids": ["P1", " "], "genes": ["TP53"]}, r"genetic_profile_ids\[1\]"),
        ({"genetic_profile_ids": ["P1"], "genes": ["TP53"], "sample_list_id": ""}, "sample_list_id"),
    ],
)
def test_malformed_requests_are_rejected(request_kwargs, message):
    with pytest.raises(InvalidArgument, match=message):
        validate_request(ProfileDataRequest(**request_kwargs))


def test_validation_keeps_empty_sample_ids_distinct_from_missing():
    request = validate_request(
        ProfileDataRequest(genetic_profile_ids=[" P1 "], genes=[7157], sample_ids=[])
    )
    assert request.genetic_profile_ids == ["P1"]
    assert request.genes == ["7157"]
    assert request.sample_ids == []
    assert validate_request(ProfileDataRequest(["P1"], ["TP53"])).sample_ids is None


def test_request_from_mapping():
    request = request_from_mapping(
        {"genetic_profile_ids": ["P1"], "genes": ["TP53"], "sample_list_id": "study1_cohort"}
    )
    assert request.sample_list_id == "study1_cohort"
    with pytest.raises(InvalidArgument, match="Unknown request field"):
        request_from_mapping({"genetic_profile_ids": ["P1"], "genes": ["TP53"], "cases": []})


def test_bundle_reports_rows_faults_and_provenance(service):
    bundle = run_profile_data_request(
        ProfileDataRequest(["study1_mutations", "P1", "study1_sv"], ["KRAS"]), service=service
    )
    assert [row["sample_id"] for row in bundle.rows] == ["SAMPLE-B", "SAMPLE-A", "SAMPLE-B", "SAMPLE-C"]
    assert bundle.fault_count == 1
    assert bundle.faults[0]["position"] == 4
    assert bundle.unclassified_profile_ids == ["study1_sv"]
    statuses = {p.source_label: (p.row_count, p.status) for p in bundle.provenance}
    assert statuses == {"mutation": (1, "ok"), "matrix": (3, "partial")}
    assert "decode faults: 1" in bundle.final_text
    assert "unclassified profiles: study1_sv" in bundle.final_text


def test_bundle_marks_skipped_paths_and_truncates(service):
    bundle = run_profile_data_request(ProfileDataRequest(["P1"], ["TP53"]), service=service, max_rows=1)
    assert len(bundle.rows) == 1
    assert bundle.rows[0] == {
        "sample_id": "SAMPLE-A",
        "genetic_profile_id": "P1",
        "study_id": "study1",
        "hugo_gene_symbol": "TP53",
        "entrez_gene_id": 7157,
        "profile_data": "5",
    }
    assert [p.status for p in bundle.provenance] == ["skipped", "ok"]
    assert "showing first 1 rows" in bundle.final_text
    assert bundle.to_dict()["provenance"][1]["row_count"] == 2


def test_not_found_propagates(service):
    with pytest.raises(NotFound):
        run_profile_data_request(ProfileDataRequest(["P404"], ["TP53"]), service=service)


def test_mutation_count_bundle(service):
    bundle = run_mutation_count_request(
        query_from_lists(["TP53"], [1], [300], per_study=True), service=service
    )
    assert bundle.rows == [
        {"count": 2, "study_id": "study1", "gene": "TP53", "start": 1, "end": 300},
        {"count": 1, "study_id": "study2", "gene": "TP53", "start": 1, "end": 300},
    ]
    assert bundle.final_text == "mutation_counts: 2 rows (status=ok)"


def test_provenance_times_each_stage_separately(service, monkeypatch):
    ticks = iter([10.0, 10.25, 11.0])
    monkeypatch.setattr(service_module, "time", SimpleNamespace(perf_counter=lambda: next(ticks)))
    bundle = run_profile_data_request(
        ProfileDataRequest(["study1_mutations", "P1"], ["TP53"]), service=service
    )
    elapsed = {p.source_label: p.elapsed_ms for p in bundle.provenance}
    assert elapsed == {"mutation": pytest.approx(250.0), "matrix": pytest.approx(750.0)}
