from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from core.data import (
    Diagnostic,
    IngestionResult,
    Module,
    Source,
    empty_records,
    load_workbook,
    load_workbook_async,
)
from core.filters import ClarificationFilters, filter_clarifications
from core.metrics_summary import compute_summary


logger = logging.getLogger(__name__)


class ClarificationEngine:
    """Loaded clarifications plus the current filter state.

    One load runs at a time per engine; callers serialize loads. Filtering
    and summaries are synchronous reads of the loaded set.
    """

    def __init__(self) -> None:
        self._records: pd.DataFrame = empty_records()
        self._view: pd.DataFrame = self._records
        self._modules: List[Module] = []
        self._diagnostics: List[Diagnostic] = []
        self._criteria = ClarificationFilters()
        self._missing_modules: List[str] = []
        self._filter_applied = False
        self._source = ""

    # ---------------- Loading ----------------
    def load(self, source: Source, *, cancel_event: Optional[threading.Event] = None) -> IngestionResult:
        result = load_workbook(source, cancel_event=cancel_event)
        self.apply_result(result)
        return result

    async def load_async(
        self, source: Source, *, cancel_event: Optional[threading.Event] = None
    ) -> IngestionResult:
        result = await load_workbook_async(source, cancel_event=cancel_event)
        self.apply_result(result)
        return result

    def apply_result(self, result: IngestionResult) -> None:
        self._records = result.records.copy()
        self._modules = [Module(name=m.name) for m in result.modules]
        self._diagnostics = list(result.diagnostics)
        self._source = result.source
        self._criteria = ClarificationFilters()
        self._missing_modules = []
        self._filter_applied = False
        self._view = self._records

    # ---------------- Modules ----------------
    def set_module_selected(self, name: str, selected: bool) -> None:
        for module in self._modules:
            if module.name == name:
                module.selected = selected
                self._missing_modules = []
                return
        raise KeyError(f"Unknown module: {name}")

    def set_all_modules_selected(self, selected: bool) -> None:
        self._missing_modules = []
        for module in self._modules:
            module.selected = selected

    def selected_modules(self) -> List[str]:
        return [m.name for m in self._modules if m.selected]

    def _sync_module_flags(self, names: Iterable[str]) -> None:
        wanted = list(dict.fromkeys(names))
        known = {m.name for m in self._modules}
        self._missing_modules = [name for name in wanted if name not in known]
        if self._missing_modules:
            logger.warning("Filter names unknown modules: %s", ", ".join(self._missing_modules))
        for module in self._modules:
            module.selected = module.name in wanted

    # ---------------- Filtering ----------------
    @property
    def filters(self) -> ClarificationFilters:
        return replace(self._criteria, selected_modules=self.selected_modules() + self._missing_modules)

    def apply_filters(self, filters: Optional[ClarificationFilters] = None) -> pd.DataFrame:
        """Recompute the view from the full record set.

        With ``filters``, the module toggles are set to its selection first;
        without, the stored criteria and the current toggles are used.
        """
        if filters is not None:
            self._sync_module_flags(filters.selected_modules)
            self._criteria = replace(filters, selected_modules=[])
        self._view = filter_clarifications(self._records, self.filters)
        self._filter_applied = True
        return self.view

    def reset(self) -> pd.DataFrame:
        self._criteria = ClarificationFilters()
        self.set_all_modules_selected(False)
        self._filter_applied = False
        self._view = self._records
        return self.view

    def summaries(self) -> pd.DataFrame:
        return compute_summary(self._records)

    # ---------------- Accessors ----------------
    @property
    def records(self) -> pd.DataFrame:
        return self._records.copy()

    @property
    def view(self) -> pd.DataFrame:
        return self._view.copy()

    @property
    def modules(self) -> List[Module]:
        return [replace(m) for m in self._modules]

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    @property
    def source(self) -> str:
        return self._source

    @property
    def is_filter_applied(self) -> bool:
        return self._filter_applied

    @property
    def is_loaded(self) -> bool:
        return bool(self._modules)

    def context(self) -> Dict[str, Any]:
        return {
            "filters": self.filters,
            "records": self._records,
            "view": self._view,
            "modules": self.modules,
            "diagnostics": self.diagnostics,
            "filter_applied": self._filter_applied,
            "source": self._source,
        }
