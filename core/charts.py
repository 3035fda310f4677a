from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

STATUS_COLORS = {
    "Closed": "#16a34a",
    "Open": "#2563eb",
    "On Hold": "#f59e0b",
    "Pending": "#dc2626",
    "Other": "#9ca3af",
}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def status_by_module_chart(long_df: pd.DataFrame) -> alt.Chart:
    """Stacked bar of clarification counts per module.

    ``long_df`` has one row per (module, status, count).
    """
    return (
        alt.Chart(long_df)
        .mark_bar()
        .encode(
            x=alt.X("module:N", title="Module", sort=None),
            y=alt.Y("count:Q", title="Clarifications", stack="zero"),
            color=alt.Color(
                "status:N",
                title="Status",
                scale=alt.Scale(domain=list(STATUS_COLORS), range=list(STATUS_COLORS.values())),
            ),
            tooltip=[
                alt.Tooltip("module:N", title="Module"),
                alt.Tooltip("status:N", title="Status"),
                alt.Tooltip("count:Q", title="Count", format=","),
            ],
        )
    )
