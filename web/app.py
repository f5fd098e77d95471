import os
from typing import List, Optional

import streamlit as st

from portal_web import __doc__ as portal_web_doc
from portal_web.config import CONFIG_ENV_VAR, load_config
from portal_web.errors import PortalDataError
from portal_web.executor import run_mutation_count_request, run_profile_data_request
from portal_web.models import MutationCountBundle, ProfileDataBundle, ProfileDataRequest
from portal_web.profile_data.mutation_counts import query_from_lists
from portal_web.profile_data.service import get_profile_data_service


EXAMPLE_REQUESTS: List[dict] = [
    {
        "label": "TP53 copy number and mutations",
        "profiles": "demo_study_mutations, demo_study_gistic",
        "genes": "TP53",
        "samples": "",
        "sample_list": "",
    },
    {
        "label": "mRNA z-scores for the CNA cohort",
        "profiles": "demo_study_mrna",
        "genes": "TP53, EGFR",
        "samples": "",
        "sample_list": "demo_study_cna",
    },
]


def _split(text: str) -> List[str]:
    return [part.strip() for part in text.replace("\n", ",").split(",") if part.strip()]


def _init_session_state() -> None:
    if "history" not in st.session_state:
        st.session_state["history"] = []  # list[tuple[str, ProfileDataBundle]]


@st.cache_resource
def _service():
    return get_profile_data_service(load_config())


def _show_provenance(bundle) -> None:
    with st.expander("Provenance"):
        st.dataframe(
            [
                {
                    "stage": p.source_label,
                    "elapsed_ms": round(p.elapsed_ms, 1),
                    "row_count": p.row_count,
                    "status": p.status,
                }
                for p in bundle.provenance
            ]
        )


def _profile_data_tab(show_provenance: bool, show_faults: bool, max_rows: int) -> None:
    for example in EXAMPLE_REQUESTS:
        if st.button(example["label"], key=f"example-{example['label']}"):
            st.session_state["profiles_input"] = example["profiles"]
            st.session_state["genes_input"] = example["genes"]
            st.session_state["samples_input"] = example["samples"]
            st.session_state["sample_list_input"] = example["sample_list"]

    profiles = st.text_input("Genetic profile ids (comma-separated)", key="profiles_input")
    genes = st.text_input("Genes: HUGO symbols or Entrez ids", key="genes_input")
    samples = st.text_input(
        "Sample ids (optional)",
        key="samples_input",
        help="Leave empty for no explicit sample filter.",
    )
    sample_list = st.text_input("Sample list / cohort id (optional)", key="sample_list_input")

    col_submit, col_clear = st.columns([1, 1])
    with col_submit:
        run_clicked = st.button("Resolve", type="primary")
    with col_clear:
        clear_clicked = st.button("Clear history")

    if clear_clicked:
        st.session_state["history"] = []

    bundle: Optional[ProfileDataBundle] = None
    if run_clicked:
        request = ProfileDataRequest(
            genetic_profile_ids=_split(profiles),
            genes=_split(genes),
            sample_ids=_split(samples) or None,
            sample_list_id=sample_list.strip() or None,
        )
        with st.spinner("Resolving profile data..."):
            try:
                bundle = run_profile_data_request(request, service=_service(), max_rows=max_rows)
            except PortalDataError as exc:
                st.error(str(exc))
        if bundle is not None:
            st.session_state["history"].append((f"{profiles} x {genes}", bundle))

    for prev_request, prev_bundle in st.session_state["history"]:
        st.markdown(f"**Request:** {prev_request}")
        st.markdown(f"**Result:** {prev_bundle.final_text}")

    if bundle is None:
        return

    st.markdown("### Latest result")
    st.write(bundle.final_text)
    st.write(f"{len(bundle.rows)} row(s)")
    if bundle.rows:
        st.dataframe(bundle.rows)

    if bundle.unclassified_profile_ids:
        st.warning(
            "Profiles with an unrecognized alteration type contributed no data: "
            + ", ".join(bundle.unclassified_profile_ids)
        )
    if show_faults and bundle.faults:
        with st.expander(f"Decode faults ({bundle.fault_count})"):
            st.dataframe(bundle.faults)
    if show_provenance and bundle.provenance:
        _show_provenance(bundle)


def _mutation_count_tab(show_provenance: bool) -> None:
    gene = st.text_input("Gene", value="TP53")
    col_start, col_end = st.columns([1, 1])
    with col_start:
        start = st.number_input("Protein start", min_value=1, value=1, step=1)
    with col_end:
        end = st.number_input("Protein end", min_value=1, value=400, step=1)
    per_study = st.checkbox("Per study", value=False)

    if not st.button("Count mutations"):
        return

    bundle: Optional[MutationCountBundle] = None
    try:
        query = query_from_lists([gene.strip()], [int(start)], [int(end)], per_study=per_study)
        bundle = run_mutation_count_request(query, service=_service())
    except PortalDataError as exc:
        st.error(str(exc))
        return

    st.write(bundle.final_text)
    st.dataframe(bundle.rows)
    if show_provenance and bundle.provenance:
        _show_provenance(bundle)


def main() -> None:
    """Streamlit entrypoint for the portal profile-data app."""

    st.set_page_config(page_title="Portal Profile Data", layout="wide")
    _init_session_state()

    config_path_display = os.environ.get(CONFIG_ENV_VAR, "web/configs/demo.local.yaml")
    cfg = load_config()

    st.title("Portal Profile Data")
    st.caption(f"Config: {config_path_display} | Store: {cfg.store.mode}")

    with st.sidebar:
        st.header("Options")
        show_provenance = st.checkbox("Show provenance", value=cfg.ui.show_provenance)
        show_faults = st.checkbox("Show decode faults", value=cfg.ui.show_faults)
        max_rows = st.number_input("Max rows", min_value=1, value=cfg.ui.max_rows, step=50)

    data_tab, counts_tab = st.tabs(["Profile data", "Mutation counts"])
    with data_tab:
        _profile_data_tab(show_provenance, show_faults, int(max_rows))
    with counts_tab:
        _mutation_count_tab(show_provenance)

    with st.expander("About this app"):
        st.write(portal_web_doc or "Portal profile-data web interface components.")


if __name__ == "__main__":
    main()
