from collections.abc import Callable, Iterator
from datetime import date
from pathlib import Path

import pandas as pd
import pytest
from openpyxl import Workbook

from core.config import get_settings
from core.data import EXPECTED_HEADERS, RECORD_COLUMNS

SheetRows = list[list[object]]


@pytest.fixture(autouse=True)
def reset_caches() -> Iterator[None]:
    from api.main import get_engine

    get_settings.cache_clear()
    get_engine.cache_clear()
    yield
    get_settings.cache_clear()
    get_engine.cache_clear()


def clarification_row(
    number: object,
    when: object,
    document: str,
    question: str,
    answer: str,
    status: str,
) -> list[object]:
    return [number, when, document, 4, "2.1", question, None, answer, "High", status, ""]


def sheet_rows(*data: list[object], headers: list[str] | None = None) -> SheetRows:
    return [["Clarification Log"], list(headers or EXPECTED_HEADERS), *data]


@pytest.fixture
def make_row() -> Callable[..., list[object]]:
    return clarification_row


@pytest.fixture
def make_sheet() -> Callable[..., SheetRows]:
    return sheet_rows


@pytest.fixture
def build_workbook(tmp_path: Path) -> Callable[..., Path]:
    def _build(sheets: dict[str, SheetRows], name: str = "clarifications.xlsx") -> Path:
        workbook = Workbook()
        workbook.remove(workbook.active)
        for title, rows in sheets.items():
            sheet = workbook.create_sheet(title)
            for row in rows:
                sheet.append(row)
        path = tmp_path / name
        workbook.save(path)
        return path

    return _build


@pytest.fixture
def sample_workbook(build_workbook: Callable[..., Path]) -> Path:
    return build_workbook(
        {
            "Design": sheet_rows(
                clarification_row(1, 45292, "SRS 1.2", "Which login flow?", "OAuth", "Closed"),
                clarification_row(2, 45323, "SRS 3.4", "Retry limit?", "", "Open"),
                clarification_row(3, date(2024, 1, 15), "HLD 2.0", "Cache TTL?", "60s", "On Hold"),
            ),
            "Testing": sheet_rows(
                clarification_row(1, 45306, "Test Plan", "Smoke scope?", "", "Pending"),
                clarification_row(2, 45310, "Test Plan", "Load target?", "500 rps", "Closed"),
            ),
        }
    )


@pytest.fixture
def sample_records() -> pd.DataFrame:
    rows = [
        {
            "number": 1,
            "date": date(2024, 1, 1),
            "document_name": "SRS",
            "module": "A",
            "status": "Closed",
            "question": "Which login flow?",
            "answer": "OAuth",
        },
        {
            "number": 2,
            "date": date(2024, 2, 1),
            "document_name": "HLD",
            "module": "A",
            "status": "Open",
            "question": "Retry limit?",
            "answer": "",
        },
        {
            "number": 3,
            "date": date(2024, 1, 15),
            "document_name": "Test Plan",
            "module": "B",
            "status": "Pending",
            "question": "Smoke scope?",
            "answer": "Pending review",
        },
    ]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)
