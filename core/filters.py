from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, List, Optional

import pandas as pd

from core.data import format_date


ALL_STATUS = "All"
ALL_MODULES = "All Modules"
STATUS_OPTIONS = [ALL_STATUS, "Open", "Closed", "On Hold", "Pending"]

SEARCH_COLUMNS = ["number", "document_name", "module", "status", "date", "question", "answer"]


@dataclass(frozen=True)
class ClarificationFilters:
    status: str = ALL_STATUS
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    selected_modules: List[str] = field(default_factory=list)
    search_text: str = ""

    @property
    def is_empty(self) -> bool:
        return (
            _matches_all_statuses(self.status)
            and self.date_from is None
            and self.date_to is None
            and not _effective_modules(self.selected_modules)
            and not self.search_text.strip()
        )


def _as_date(value: object) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and not value.strip():
        return None
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def _matches_all_statuses(status: Optional[str]) -> bool:
    status = (status or "").strip()
    return not status or status.casefold() == ALL_STATUS.casefold()


def _effective_modules(values: Optional[Iterable[object]]) -> List[str]:
    return [str(v) for v in (values or []) if v is not None and str(v) and str(v) != ALL_MODULES]


def normalize_filters(raw: dict) -> ClarificationFilters:
    status = str(raw.get("status") or ALL_STATUS).strip() or ALL_STATUS
    return ClarificationFilters(
        status=status,
        date_from=_as_date(raw.get("date_from")),
        date_to=_as_date(raw.get("date_to")),
        selected_modules=_effective_modules(raw.get("selected_modules")),
        search_text=(raw.get("search_text") or "").strip(),
    )


def status_options(records: pd.DataFrame) -> List[str]:
    options = list(STATUS_OPTIONS)
    if records.empty or "status" not in records.columns:
        return options
    seen = {s.casefold() for s in options}
    for status in records["status"].astype(str):
        if status.strip() and status.casefold() not in seen:
            seen.add(status.casefold())
            options.append(status)
    return options


def search_mask(records: pd.DataFrame, text: str) -> pd.Series:
    """Rows where any searchable field contains ``text``, ignoring case."""
    needle = text.casefold()
    hit = pd.Series(False, index=records.index)
    for col in SEARCH_COLUMNS:
        values = records[col].map(format_date) if col == "date" else records[col].astype(str)
        hit |= values.str.casefold().str.contains(needle, regex=False, na=False)
    return hit


def filter_clarifications(records: pd.DataFrame, filters: ClarificationFilters) -> pd.DataFrame:
    """Return the records passing every active criterion, in source order.

    Criteria combine with AND; only the search text ORs across fields.
    ``records`` is not modified.
    """
    if records.empty:
        return records.copy()

    mask = pd.Series(True, index=records.index)

    if not _matches_all_statuses(filters.status):
        wanted = filters.status.strip().casefold()
        mask &= records["status"].astype(str).str.casefold().eq(wanted)

    modules = _effective_modules(filters.selected_modules)
    if modules:
        mask &= records["module"].isin(modules)

    lower = _as_date(filters.date_from)
    upper = _as_date(filters.date_to)
    if lower is not None:
        mask &= records["date"].map(lambda d: d >= lower).astype(bool)
    if upper is not None:
        mask &= records["date"].map(lambda d: d <= upper).astype(bool)

    if filters.search_text and filters.search_text.strip():
        mask &= search_mask(records, filters.search_text)

    return records[mask].copy()
