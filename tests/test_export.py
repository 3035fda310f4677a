import io
from pathlib import Path

import pandas as pd
from openpyxl import load_workbook

from core.data import MIN_DATE, empty_records
from core.export import (
    RECORDS_SHEET,
    SUMMARY_SHEET,
    export_records_xlsx,
    export_summary_xlsx,
    records_csv_bytes,
    records_xlsx_bytes,
    summary_csv_bytes,
    summary_xlsx_bytes,
)
from core.metrics_summary import compute_summary


def sheet_values(content: bytes, sheet: str) -> list[tuple]:
    workbook = load_workbook(io.BytesIO(content))
    return list(workbook[sheet].iter_rows(values_only=True))


def test_records_workbook_layout(sample_records: pd.DataFrame) -> None:
    rows = sheet_values(records_xlsx_bytes(sample_records), RECORDS_SHEET)

    assert rows[0] == ("Number", "Date", "Document Name", "Module", "Question", "Answer", "Status")
    assert rows[1] == (1, "2024-01-01", "SRS", "A", "Which login flow?", "OAuth", "Closed")
    assert len(rows) == 4


def test_summary_workbook_layout(sample_records: pd.DataFrame) -> None:
    rows = sheet_values(summary_xlsx_bytes(compute_summary(sample_records)), SUMMARY_SHEET)

    assert rows[0] == ("Module", "Closed", "Open", "On Hold", "Pending", "Total")
    assert rows[1] == ("A", 1, 1, 0, 0, 2)
    assert rows[2] == ("B", 0, 0, 0, 1, 1)


def test_export_to_path(tmp_path: Path, sample_records: pd.DataFrame) -> None:
    records_path = export_records_xlsx(sample_records, tmp_path / "Clarifications.xlsx")
    summary_path = export_summary_xlsx(compute_summary(sample_records), tmp_path / "Summaries.xlsx")

    assert load_workbook(records_path)[RECORDS_SHEET].max_row == 4
    assert load_workbook(summary_path)[SUMMARY_SHEET].max_row == 3


def test_csv_exports(sample_records: pd.DataFrame) -> None:
    records_lines = records_csv_bytes(sample_records).decode("utf-8").splitlines()
    summary_lines = summary_csv_bytes(compute_summary(sample_records)).decode("utf-8").splitlines()

    assert records_lines[0] == "Number,Date,Document Name,Module,Question,Answer,Status"
    assert summary_lines[0] == "Module,Closed,Open,On Hold,Pending,Total"
    assert summary_lines[1] == "A,1,1,0,0,2"


def test_empty_export_keeps_headers() -> None:
    rows = sheet_values(records_xlsx_bytes(empty_records()), RECORDS_SHEET)

    assert rows == [("Number", "Date", "Document Name", "Module", "Question", "Answer", "Status")]


def test_min_date_is_written_as_text(sample_records: pd.DataFrame) -> None:
    records = sample_records.copy()
    records.loc[0, "date"] = MIN_DATE

    rows = sheet_values(records_xlsx_bytes(records), RECORDS_SHEET)

    assert rows[1][1] == "0001-01-01"
