from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from core.data import format_date
from core.filters import ClarificationFilters


def compute_details(filters: ClarificationFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())
    view: pd.DataFrame = ctx.get("view", pd.DataFrame()).copy()

    if not view.empty:
        view["date"] = view["date"].map(format_date)

    status_counts: Dict[str, int] = {}
    if not view.empty:
        status_counts = {str(k): int(v) for k, v in view["status"].value_counts(sort=False).items()}

    return {
        "filters": asdict(filters),
        "filter_applied": bool(ctx.get("filter_applied", False)),
        "kpis": {
            "total": int(len(records)),
            "shown": int(len(view)),
            "by_status": status_counts,
        },
        "table": view.to_dict(orient="records"),
    }
