from __future__ import annotations

import logging
from dataclasses import replace

import pytest

from portal_web.errors import NotFound
from portal_web.models import MutationDatum, ProfileDatum


def _pairs(data):
    return [
        (
            d.sample_id,
            d.genetic_profile_id,
            d.hugo_gene_symbol,
            d.profile_data if isinstance(d, ProfileDatum) else d.protein_change,
        )
        for d in data
    ]


def _untagged(data):
    return [replace(d, sample_list_id=None) if isinstance(d, ProfileDatum) else d for d in data]


def test_matrix_scenario_without_scope(service):
    result = service.resolve_profile_data(["P1"], ["TP53"])
    assert result.data == [
        ProfileDatum("SAMPLE-A", "P1", "study1", "TP53", 7157, "5"),
        ProfileDatum("SAMPLE-C", "P1", "study1", "TP53", 7157, "8"),
    ]
    assert result.fault_count == 0


def test_matrix_scenario_with_sample_ids(service):
    result = service.resolve_profile_data(["P1"], ["TP53"], sample_ids=["SAMPLE-C"])
    assert _pairs(result.data) == [("SAMPLE-C", "P1", "TP53", "8")]


def test_mutation_profile_passes_store_rows_through(service, store):
    result = service.resolve_profile_data(["study1_mutations"], ["TP53"])
    assert result.data == store.mutation_data(["study1_mutations"], [7157])
    assert [d.sample_id for d in result.data] == ["SAMPLE-A", "SAMPLE-C", "SAMPLE-D"]
    assert all(isinstance(d, MutationDatum) for d in result.data)


def test_mutation_data_comes_before_matrix_data(service):
    combined = service.resolve_profile_data(["P1", "study1_mutations"], ["TP53"])
    mutations = service.resolve_profile_data(["study1_mutations"], ["TP53"])
    matrix = service.resolve_profile_data(["P1"], ["TP53"])
    assert combined.data == mutations.data + matrix.data
    assert combined.mutation_count == 3
    assert combined.matrix_count == 2


def test_gene_lookup_accepts_entrez_ids_and_any_case(service):
    by_symbol = service.resolve_profile_data(["P1"], ["TP53"])
    assert service.resolve_profile_data(["P1"], ["7157"]).data == by_symbol.data
    assert service.resolve_profile_data(["P1"], ["tp53"]).data == by_symbol.data


def test_cohort_scope_tags_matrix_data_only(service):
    result = service.resolve_profile_data(
        ["study1_mutations", "P1"], ["TP53"], sample_list_id="study1_cohort"
    )
    mutation_rows = [d for d in result.data if isinstance(d, MutationDatum)]
    matrix_rows = [d for d in result.data if isinstance(d, ProfileDatum)]
    assert [d.sample_id for d in mutation_rows] == ["SAMPLE-A"]
    assert [(d.sample_id, d.sample_list_id) for d in matrix_rows] == [("SAMPLE-A", "study1_cohort")]
    assert "sample_list_id" not in mutation_rows[0].to_row()


def test_sample_ids_and_cohort_are_unioned(service):
    result = service.resolve_profile_data(
        ["study1_mutations", "P1"],
        ["TP53"],
        sample_ids=["SAMPLE-C"],
        sample_list_id="study1_cohort",
    )
    assert [d.sample_id for d in result.data] == ["SAMPLE-A", "SAMPLE-C", "SAMPLE-A", "SAMPLE-C"]
    assert result.scope.sample_ids == frozenset({"SAMPLE-A", "SAMPLE-B", "SAMPLE-C"})
    assert all(d.sample_list_id == "study1_cohort" for d in result.data if isinstance(d, ProfileDatum))


@pytest.mark.parametrize(
    "scope",
    [
        {"sample_ids": ["SAMPLE-A"]},
        {"sample_ids": ["SAMPLE-B", "SAMPLE-C"]},
        {"sample_list_id": "study1_cohort"},
    ],
)
def test_scoped_result_is_subset_of_unscoped(service, scope):
    everything = service.resolve_profile_data(["study1_mutations", "P1", "P2"], ["TP53", "KRAS"])
    scoped = service.resolve_profile_data(["study1_mutations", "P1", "P2"], ["TP53", "KRAS"], **scope)
    unscoped_keys = set(_pairs(everything.data))
    assert set(_pairs(scoped.data)) <= unscoped_keys


def test_supplied_but_empty_sample_ids_do_not_filter_matrix_data(service, store, monkeypatch):
    def _fail(*_args, **_kwargs):
        raise AssertionError("mutation store should not be queried for an empty scope")

    monkeypatch.setattr(store, "mutation_data_by_samples", _fail)
    result = service.resolve_profile_data(["study1_mutations", "P1"], ["TP53"], sample_ids=[])
    assert result.scope.is_empty
    assert result.mutation_count == 0
    assert _pairs(result.data) == [("SAMPLE-A", "P1", "TP53", "5"), ("SAMPLE-C", "P1", "TP53", "8")]


def test_empty_cohort_keeps_tag_on_unfiltered_matrix_data(service):
    result = service.resolve_profile_data(
        ["study1_mutations", "P1"], ["TP53"], sample_list_id="study1_empty"
    )
    assert result.mutation_count == 0
    assert [(d.sample_id, d.profile_data, d.sample_list_id) for d in result.data] == [
        ("SAMPLE-A", "5", "study1_empty"),
        ("SAMPLE-C", "8", "study1_empty"),
    ]


@pytest.mark.parametrize(
    "sample_ids, sample_list_id",
    [(["SAMPLE-C"], "study1_cohort"), (None, "study1_cohort"), (["SAMPLE-D", "SAMPLE-A"], "study1_cohort")],
)
def test_cohort_matches_its_members_as_explicit_ids(service, store, sample_ids, sample_list_id):
    members = store.sample_lists([sample_list_id])[0].sample_ids
    union = sorted(set(sample_ids or []) | set(members))
    profiles = ["study1_mutations", "P1", "P2"]
    genes = ["TP53", "KRAS"]
    with_cohort = service.resolve_profile_data(
        profiles, genes, sample_ids=sample_ids, sample_list_id=sample_list_id
    )
    as_ids = service.resolve_profile_data(profiles, genes, sample_ids=union)
    assert with_cohort.mutation_count > 0
    assert _untagged(with_cohort.data) == as_ids.data


def test_unknown_ids_raise_not_found(service):
    with pytest.raises(NotFound) as excinfo:
        service.resolve_profile_data(["P1", "NOPE"], ["TP53"])
    assert excinfo.value.missing == ["NOPE"]
    assert excinfo.value.kind == "genetic profile"

    with pytest.raises(NotFound, match="gene"):
        service.resolve_profile_data(["P1"], ["TP53", "NOTAGENE"])

    with pytest.raises(NotFound, match="sample list"):
        service.resolve_profile_data(["P1"], ["TP53"], sample_list_id="missing_list")


def test_unclassified_profiles_are_reported(service, caplog):
    caplog.set_level(logging.WARNING)
    result = service.resolve_profile_data(["study1_sv", "P1"], ["TP53"])
    assert result.classification.unclassified_profile_ids == ("study1_sv",)
    assert result.matrix_count == 2
    assert "STRUCTURAL_VARIANT" in caplog.text


def test_decode_faults_are_collected_not_raised(service):
    result = service.resolve_profile_data(["P1", "P2", "P3"], ["TP53", "KRAS"])
    reasons = sorted(f.genetic_profile_id for f in result.faults)
    assert reasons == ["P1", "P2", "P3"]
    assert _pairs(result.data) == [
        ("SAMPLE-A", "P1", "KRAS", "1"),
        ("SAMPLE-B", "P1", "KRAS", "2"),
        ("SAMPLE-C", "P1", "KRAS", "4"),
        ("SAMPLE-A", "P1", "TP53", "5"),
        ("SAMPLE-C", "P1", "TP53", "8"),
        ("SAMPLE-C", "P2", "TP53", "0.1"),
        ("SAMPLE-A", "P2", "TP53", "0.2"),
        ("SAMPLE-D", "P2", "TP53", "0.3"),
    ]


def test_repeated_requests_are_identical(service):
    first = service.resolve_profile_data(["study1_mutations", "P1", "P2"], ["TP53"])
    second = service.resolve_profile_data(["study1_mutations", "P1", "P2"], ["TP53"])
    assert first.data == second.data
