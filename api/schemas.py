from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field


class ClarificationFiltersModel(BaseModel):
    status: str = "All"
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    selected_modules: List[str] = Field(default_factory=list)
    search_text: str = ""


class LoadRequest(BaseModel):
    path: Optional[str] = None


class ModuleModel(BaseModel):
    name: str
    selected: bool = False


class DiagnosticModel(BaseModel):
    kind: str
    sheet: str
    message: str
    row: Optional[int] = None


class LoadResponse(BaseModel):
    source: str
    records: int
    modules: List[ModuleModel]
    diagnostics: List[DiagnosticModel]


class ModuleSelection(BaseModel):
    selected: bool = True
