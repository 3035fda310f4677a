from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Dict, Union

import pandas as pd

from core.data import format_date


logger = logging.getLogger(__name__)

RECORD_EXPORT_HEADERS: Dict[str, str] = {
    "number": "Number",
    "date": "Date",
    "document_name": "Document Name",
    "module": "Module",
    "question": "Question",
    "answer": "Answer",
    "status": "Status",
}

SUMMARY_EXPORT_HEADERS: Dict[str, str] = {
    "module": "Module",
    "closed": "Closed",
    "open": "Open",
    "on_hold": "On Hold",
    "pending": "Pending",
    "total": "Total",
}

RECORDS_SHEET = "Clarifications"
SUMMARY_SHEET = "Summary"


def records_export_frame(records: pd.DataFrame) -> pd.DataFrame:
    df = records.reindex(columns=list(RECORD_EXPORT_HEADERS)).copy()
    df["date"] = df["date"].map(format_date)
    return df.rename(columns=RECORD_EXPORT_HEADERS)


def summary_export_frame(summary: pd.DataFrame) -> pd.DataFrame:
    return summary.reindex(columns=list(SUMMARY_EXPORT_HEADERS)).rename(columns=SUMMARY_EXPORT_HEADERS)


def _xlsx_bytes(df: pd.DataFrame, sheet_name: str) -> bytes:
    buffer = io.BytesIO()
    df.to_excel(buffer, sheet_name=sheet_name, index=False, engine="openpyxl")
    return buffer.getvalue()


def _csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")


def records_xlsx_bytes(records: pd.DataFrame) -> bytes:
    return _xlsx_bytes(records_export_frame(records), RECORDS_SHEET)


def summary_xlsx_bytes(summary: pd.DataFrame) -> bytes:
    return _xlsx_bytes(summary_export_frame(summary), SUMMARY_SHEET)


def records_csv_bytes(records: pd.DataFrame) -> bytes:
    return _csv_bytes(records_export_frame(records))


def summary_csv_bytes(summary: pd.DataFrame) -> bytes:
    return _csv_bytes(summary_export_frame(summary))


def export_records_xlsx(records: pd.DataFrame, destination: Union[str, Path]) -> Path:
    path = Path(destination)
    path.write_bytes(records_xlsx_bytes(records))
    logger.info("Exported %d clarifications to %s", len(records), path)
    return path


def export_summary_xlsx(summary: pd.DataFrame, destination: Union[str, Path]) -> Path:
    path = Path(destination)
    path.write_bytes(summary_xlsx_bytes(summary))
    logger.info("Exported summary of %d modules to %s", len(summary), path)
    return path
