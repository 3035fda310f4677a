import logging
from contextlib import contextmanager
from typing import List, Optional

import pandas as pd
import streamlit as st

from core.config import configure_logging, get_settings
from core.data import format_date
from core.engine import ClarificationEngine
from core.errors import IngestionError
from core.export import records_xlsx_bytes, summary_xlsx_bytes
from core.filters import ALL_MODULES, ClarificationFilters, normalize_filters, status_options
from core.metrics_summary import compute_summary_payload

configure_logging()
logger = logging.getLogger(__name__)

FILTER_KEYS = ["filter_status", "filter_from", "filter_to", "filter_modules", "filter_search"]
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: ClarificationFilters) -> str:
    status_chip = f"Status: {filters.status or 'All'}"
    if filters.date_from or filters.date_to:
        start = filters.date_from.isoformat() if filters.date_from else "…"
        end = filters.date_to.isoformat() if filters.date_to else "…"
        date_chip = f"Dates: {start} – {end}"
    else:
        date_chip = "Dates: All"
    module_chip = f"Modules: {', '.join(filters.selected_modules)}" if filters.selected_modules else "Modules: All"
    search_chip = f"Search: {filters.search_text}" if filters.search_text else "Search: none"
    return "".join([f"<span class='chip'>{txt}</span>" for txt in [status_chip, date_chip, module_chip, search_chip]])


def get_engine() -> ClarificationEngine:
    if "engine" not in st.session_state:
        st.session_state["engine"] = ClarificationEngine()
    return st.session_state["engine"]


def clear_filter_widgets():
    for key in FILTER_KEYS:
        st.session_state.pop(key, None)


def load_source(engine: ClarificationEngine, upload, path: str):
    source = upload if upload is not None else path.strip()
    if not source:
        st.warning("Please select a file.")
        return
    try:
        with st.spinner("Loading..."):
            engine.load(source)
    except IngestionError as exc:
        st.error(f"Operation error: {exc}")
        return
    except Exception as exc:
        logger.exception("workbook load failed")
        st.error(f"An unexpected error occurred: {exc}")
        return
    clear_filter_widgets()


def render_diagnostics(messages: List[str]):
    if not messages:
        return
    for message in messages[:5]:
        st.warning(message)
    if len(messages) > 5:
        with st.expander("View all load warnings"):
            st.dataframe(pd.DataFrame({"message": messages}), hide_index=True, use_container_width=True)


def display_frame(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    if not out.empty:
        out["date"] = out["date"].map(format_date)
    return out.rename(
        columns={
            "number": "No",
            "date": "Date",
            "document_name": "Document Name",
            "module": "Module",
            "status": "Status",
            "question": "Question",
            "answer": "Answer",
        }
    )


# ---------- UI setup ----------
st.set_page_config(page_title="Clarification Tracker", layout="wide")
inject_base_styles()
st.title("Clarification Tracker")
st.caption("Load a clarification workbook, filter the log and export details or the module summary.")

engine = get_engine()

with st.sidebar:
    st.markdown("### Workbook")
    upload = st.file_uploader("Excel Files (*.xlsx)", type=["xlsx"])
    path = st.text_input("…or a workbook path", value=get_settings().source_path)
    if st.button("Show Details", type="primary"):
        load_source(engine, upload, path)

    st.markdown("---")
    st.markdown("### Filters")
    status = st.selectbox("Status", options=status_options(engine.records), key="filter_status")
    date_from = st.date_input("From date", value=None, key="filter_from")
    date_to = st.date_input("To date", value=None, key="filter_to")
    module_names = [m.name for m in engine.modules]
    selected_modules = st.multiselect("Modules", options=[ALL_MODULES] + module_names, key="filter_modules")
    search_text = st.text_input("Search", key="filter_search")
    if st.button("Reset filters"):
        engine.reset()
        clear_filter_widgets()
        st.rerun()

if not engine.is_loaded:
    render_diagnostics([d.message for d in engine.diagnostics])
    st.info("No clarifications loaded. Pick a workbook in the sidebar and press Show Details.")
    st.stop()

filters = normalize_filters(
    {
        "status": status,
        "date_from": date_from,
        "date_to": date_to,
        "selected_modules": selected_modules,
        "search_text": search_text,
    }
)
if filters.is_empty and not engine.is_filter_applied:
    view = engine.view
else:
    view = engine.apply_filters(filters)

st.markdown(f"<div class='chip-row'>{format_filter_summary(engine.filters)}</div>", unsafe_allow_html=True)
render_diagnostics([d.message for d in engine.diagnostics])

details_tab, summary_tab = st.tabs(["Details", "Summary"])

with details_tab:
    with card(f"Clarifications ({len(view)} of {len(engine.records)})"):
        if view.empty:
            st.info("No clarifications match the selected filters.")
        else:
            st.dataframe(display_frame(view), use_container_width=True, hide_index=True)
            st.download_button(
                "Export to Excel",
                data=records_xlsx_bytes(view),
                file_name="Clarifications.xlsx",
                mime=XLSX_MIME,
            )

with summary_tab:
    payload = compute_summary_payload(engine.context())
    summary_df = engine.summaries()
    kpis = payload["kpis"]
    cols = st.columns(5)
    cols[0].metric("Closed", f"{kpis['closed']}")
    cols[1].metric("Open", f"{kpis['open']}")
    cols[2].metric("On Hold", f"{kpis['on_hold']}")
    cols[3].metric("Pending", f"{kpis['pending']}")
    cols[4].metric("Total", f"{kpis['total']}")
    with card("Summary by module"):
        if summary_df.empty:
            st.info("No summaries to export.")
        else:
            st.dataframe(
                summary_df.rename(
                    columns={
                        "module": "Module",
                        "closed": "Closed",
                        "open": "Open",
                        "on_hold": "On Hold",
                        "pending": "Pending",
                        "total": "Total",
                    }
                ),
                use_container_width=True,
                hide_index=True,
            )
            chart_spec: Optional[dict] = payload["charts"].get("status_by_module")
            if chart_spec:
                st.vega_lite_chart(chart_spec, use_container_width=True)
            st.download_button(
                "Export to Excel",
                data=summary_xlsx_bytes(summary_df),
                file_name="Summaries.xlsx",
                mime=XLSX_MIME,
                key="export_summary",
            )
