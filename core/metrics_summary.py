from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from core.charts import status_by_module_chart, to_vega_spec


# Exact, case-sensitive status tokens counted per module.
STATUS_BUCKETS = {
    "closed": "Closed",
    "open": "Open",
    "on_hold": "On Hold",
    "pending": "Pending",
}

SUMMARY_COLUMNS = ["module", *STATUS_BUCKETS, "total"]


def compute_summary(records: pd.DataFrame) -> pd.DataFrame:
    """Status counts per module, in the order modules first appear.

    ``total`` counts every record of the module, so statuses outside the four
    buckets raise ``total`` without landing in any bucket.
    """
    if records.empty:
        return pd.DataFrame({col: pd.Series(dtype=object if col == "module" else "int64") for col in SUMMARY_COLUMNS})

    counts = pd.DataFrame({"module": records["module"]})
    for col, token in STATUS_BUCKETS.items():
        counts[col] = records["status"].eq(token).astype("int64")
    counts["total"] = 1
    summary = counts.groupby("module", sort=False).sum().reset_index()
    return summary[SUMMARY_COLUMNS]


def compute_summary_payload(ctx: Dict[str, Any]) -> Dict[str, Any]:
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())
    summary = compute_summary(records)

    kpis = {col: int(summary[col].sum()) if not summary.empty else 0 for col in [*STATUS_BUCKETS, "total"]}
    kpis["modules"] = int(len(summary))

    charts: Dict[str, Any] = {}
    if not summary.empty:
        wide = summary.rename(columns={col: token for col, token in STATUS_BUCKETS.items()})
        wide["Other"] = summary["total"] - summary[list(STATUS_BUCKETS)].sum(axis=1)
        long_df = wide.melt(
            id_vars=["module"],
            value_vars=[*STATUS_BUCKETS.values(), "Other"],
            var_name="status",
            value_name="count",
        )
        long_df = long_df[long_df["count"] > 0]
        charts["status_by_module"] = to_vega_spec(status_by_module_chart(long_df))

    return {
        "kpis": kpis,
        "table": summary.to_dict(orient="records"),
        "charts": charts,
    }
