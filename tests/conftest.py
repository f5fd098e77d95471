from __future__ import annotations

import copy
import json
from pathlib import Path

import pytest

from portal_web import config
from portal_web.config import ProfileDataConfig
from portal_web.profile_data.service import ProfileDataService
from portal_web.stores.snapshot import SnapshotPortalStore

# P1: the canonical scenario (index "101,102,,103", TP53 row "5,,7,8").
# KRAS in P1 has one value past the index width, P2 references an internal
# key with no sample and P3 has no ordered sample index at all.
SNAPSHOT = {
    "genes": [
        {"hugo_gene_symbol": "TP53", "entrez_gene_id": 7157},
        {"hugo_gene_symbol": "KRAS", "entrez_gene_id": 3845},
        {"hugo_gene_symbol": "BRCA1", "entrez_gene_id": 672},
    ],
    "profiles": [
        {
            "id": "study1_mutations",
            "study_id": "study1",
            "genetic_alteration_type": "MUTATION_EXTENDED",
            "datatype": "MAF",
            "name": "Mutations",
        },
        {
            "id": "P1",
            "study_id": "study1",
            "genetic_alteration_type": "COPY_NUMBER_ALTERATION",
            "datatype": "DISCRETE",
            "name": "Copy number",
        },
        {
            "id": "P2",
            "study_id": "study1",
            "genetic_alteration_type": "MRNA_EXPRESSION",
            "datatype": "Z-SCORE",
            "name": "mRNA z-scores",
        },
        {
            "id": "P3",
            "study_id": "study1",
            "genetic_alteration_type": "COPY_NUMBER_ALTERATION",
            "datatype": "DISCRETE",
            "name": "Copy number without index",
        },
        {
            "id": "study1_sv",
            "study_id": "study1",
            "genetic_alteration_type": "STRUCTURAL_VARIANT",
            "datatype": "SV",
            "name": "Structural variants",
        },
        {
            "id": "study2_mutations",
            "study_id": "study2",
            "genetic_alteration_type": "MUTATION_EXTENDED",
            "datatype": "MAF",
            "name": "Mutations",
        },
    ],
    "samples": [
        {"internal_id": 101, "id": "SAMPLE-A", "study_id": "study1", "patient_id": "PATIENT-A"},
        {"internal_id": 102, "id": "SAMPLE-B", "study_id": "study1", "patient_id": "PATIENT-B"},
        {"internal_id": 103, "id": "SAMPLE-C", "study_id": "study1", "patient_id": "PATIENT-C"},
        {"internal_id": 104, "id": "SAMPLE-D", "study_id": "study1", "patient_id": "PATIENT-D"},
        {"internal_id": 201, "id": "OTHER-A", "study_id": "study2", "patient_id": "OTHER-PATIENT"},
    ],
    "sample_lists": [
        {
            "id": "study1_cohort",
            "study_id": "study1",
            "name": "Cohort",
            "sample_ids": ["SAMPLE-A", "SAMPLE-B"],
        },
        {"id": "study1_empty", "study_id": "study1", "name": "Empty cohort", "sample_ids": []},
    ],
    "profile_sample_lists": [
        {"genetic_profile_id": "P1", "ordered_sample_list": "101,102,,103"},
        {"genetic_profile_id": "P2", "ordered_sample_list": "103,101,104,999"},
    ],
    "genetic_alteration_rows": [
        {"genetic_profile_id": "P1", "entrez_gene_id": 7157, "values": "5,,7,8"},
        {"genetic_profile_id": "P1", "entrez_gene_id": 3845, "values": "1,2,3,4,5"},
        {"genetic_profile_id": "P2", "entrez_gene_id": 7157, "values": "0.1,0.2,0.3,0.4"},
        {"genetic_profile_id": "P3", "entrez_gene_id": 7157, "values": "1,2"},
    ],
    "mutations": [
        {
            "genetic_profile_id": "study1_mutations",
            "sample_id": "SAMPLE-A",
            "entrez_gene_id": 7157,
            "protein_change": "R175H",
            "mutation_type": "Missense_Mutation",
            "protein_start": 175,
            "protein_end": 175,
        },
        {
            "genetic_profile_id": "study1_mutations",
            "sample_id": "SAMPLE-C",
            "entrez_gene_id": 7157,
            "protein_change": "R273H",
            "mutation_type": "Missense_Mutation",
            "protein_start": 273,
            "protein_end": 273,
        },
        {
            "genetic_profile_id": "study1_mutations",
            "sample_id": "SAMPLE-B",
            "entrez_gene_id": 3845,
            "protein_change": "G12D",
            "mutation_type": "Missense_Mutation",
            "protein_start": 12,
            "protein_end": 12,
        },
        {
            "genetic_profile_id": "study1_mutations",
            "sample_id": "SAMPLE-D",
            "entrez_gene_id": 7157,
            "protein_change": "X125_splice",
            "mutation_type": "Splice_Site",
        },
        {
            "genetic_profile_id": "study2_mutations",
            "sample_id": "OTHER-A",
            "entrez_gene_id": 7157,
            "protein_change": "R248Q",
            "mutation_type": "Missense_Mutation",
            "protein_start": 248,
            "protein_end": 248,
        },
    ],
}


@pytest.fixture
def snapshot_data():
    return copy.deepcopy(SNAPSHOT)


@pytest.fixture
def snapshot_path(tmp_path: Path, snapshot_data) -> Path:
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(snapshot_data), encoding="utf-8")
    return path


@pytest.fixture
def store(snapshot_data) -> SnapshotPortalStore:
    return SnapshotPortalStore.from_dict(snapshot_data)


@pytest.fixture
def service(store) -> ProfileDataService:
    return ProfileDataService(store=store, settings=ProfileDataConfig())


@pytest.fixture
def config_path(tmp_path: Path, snapshot_path: Path, monkeypatch) -> Path:
    path = tmp_path / "portal.yaml"
    path.write_text(
        "store:\n"
        "  mode: snapshot\n"
        f"  snapshot_path: {snapshot_path.name}\n"
        "ui:\n"
        "  max_rows: 50\n",
        encoding="utf-8",
    )
    monkeypatch.setenv(config.CONFIG_ENV_VAR, str(path))
    monkeypatch.setattr(config, "_CACHED_CONFIG", None)
    return path
