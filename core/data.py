from __future__ import annotations

import asyncio
import logging
import numbers
import threading
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, List, Literal, Mapping, Optional, Sequence, Union

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from core.errors import EmptySourceError, IngestionCancelled, SourceUnreadableError


logger = logging.getLogger(__name__)

Source = Union[str, Path, BinaryIO]

EXPECTED_HEADERS = [
    "No",
    "Date",
    "Document Name and its section",
    "Page No",
    "Section Number",
    "Question",
    "Due Date",
    "Answer",
    "Priority",
    "status",
    "Remarks",
]

# Zero-based sheet rows: a title row, the header row, then data.
HEADER_ROW = 1
FIRST_DATA_ROW = 2

EXCEL_EPOCH = "1899-12-30"
MIN_DATE = date.min
# 9999-12-31, the last day a spreadsheet serial can hold
MAX_EXCEL_SERIAL = 2958465

# Zero-based sheet column for each mapped field; the other header columns are
# validated but not loaded.
FIELD_COLUMNS = {
    "number": 0,
    "date": 1,
    "document_name": 2,
    "question": 5,
    "answer": 7,
    "status": 9,
}

RECORD_COLUMNS = ["number", "date", "document_name", "module", "status", "question", "answer"]


@dataclass
class Module:
    name: str
    selected: bool = False


DiagnosticKind = Literal["invalid_sheet_schema", "row_parse_failure"]


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    sheet: str
    message: str
    row: Optional[int] = None


@dataclass(frozen=True, eq=False)
class IngestionResult:
    """Everything one workbook load produced.

    A fresh value is returned per load; callers replace their state with it
    rather than appending to what an earlier load returned.
    """

    records: pd.DataFrame
    modules: List[Module]
    diagnostics: List[Diagnostic] = field(default_factory=list)
    source: str = ""

    @property
    def module_names(self) -> List[str]:
        return [m.name for m in self.modules]


def empty_records() -> pd.DataFrame:
    df = pd.DataFrame({col: pd.Series(dtype=object) for col in RECORD_COLUMNS})
    df["number"] = df["number"].astype("int64")
    return df


def source_label(source: Source) -> str:
    if isinstance(source, (str, Path)):
        return Path(source).name
    return str(getattr(source, "name", "") or "<upload>")


# ---------------- Cell converters ----------------
def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _is_blank(value: object) -> bool:
    if isinstance(value, str):
        return not value.strip()
    return _is_missing(value)


def parse_text(value: object) -> str:
    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_number(value: object) -> int:
    """Sequence numbers fall back to 0 rather than failing the row."""
    if _is_missing(value) or isinstance(value, bool):
        return 0
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        value = float(value)
        return int(value) if value.is_integer() else 0
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


def parse_serial_date(value: object) -> date:
    """Convert a spreadsheet date cell to a calendar date.

    Numbers are serial days since 1899-12-30; cells openpyxl already typed as
    dates are truncated to the day. Anything unparseable maps to MIN_DATE.
    """
    if _is_missing(value) or isinstance(value, (bool, time)):
        return MIN_DATE
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, numbers.Real) and not 0 <= float(value) <= MAX_EXCEL_SERIAL:
        return MIN_DATE
    try:
        if isinstance(value, numbers.Real):
            parsed = pd.to_datetime(float(value), unit="D", origin=EXCEL_EPOCH, errors="coerce")
        else:
            parsed = pd.to_datetime(str(value).strip(), errors="coerce")
        if pd.isna(parsed):
            return MIN_DATE
        return parsed.date()
    except (ValueError, OverflowError, NotImplementedError, pd.errors.OutOfBoundsDatetime):
        return MIN_DATE


def format_date(value: object) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()[:10]
    return parse_text(value)


# ---------------- Schema validation ----------------
def header_cells(values: Iterable[object]) -> List[str]:
    cells = ["" if _is_blank(v) else parse_text(v) for v in values]
    while cells and not cells[-1]:
        cells.pop()
    return cells


def schema_mismatch(headers: Sequence[object], expected: Sequence[str] = EXPECTED_HEADERS) -> Optional[str]:
    actual = header_cells(headers)
    if len(actual) != len(expected):
        return f"expected {len(expected)} header columns, found {len(actual)}"
    for idx, (want, got) in enumerate(zip(expected, actual), start=1):
        if want.casefold() != got.casefold():
            return f"column {idx} is '{got}', expected '{want}'"
    return None


def is_valid_schema(headers: Sequence[object], expected: Sequence[str] = EXPECTED_HEADERS) -> bool:
    return schema_mismatch(headers, expected) is None


# ---------------- Loaders ----------------
def _cell(values: Sequence[object], idx: int) -> object:
    return values[idx] if idx < len(values) else None


def parse_row(values: Sequence[object], module: str) -> Dict[str, object]:
    return {
        "number": parse_number(_cell(values, FIELD_COLUMNS["number"])),
        "date": parse_serial_date(_cell(values, FIELD_COLUMNS["date"])),
        "document_name": parse_text(_cell(values, FIELD_COLUMNS["document_name"])),
        "module": module,
        "status": parse_text(_cell(values, FIELD_COLUMNS["status"])),
        "question": parse_text(_cell(values, FIELD_COLUMNS["question"])),
        "answer": parse_text(_cell(values, FIELD_COLUMNS["answer"])),
    }


def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise IngestionCancelled("Workbook load was cancelled.")


def ingest_sheets(
    sheets: Mapping[str, pd.DataFrame],
    *,
    source: str = "",
    cancel_event: Optional[threading.Event] = None,
) -> IngestionResult:
    """Validate each raw sheet (read with ``header=None``) and map its rows.

    Sheets with a bad header row are skipped and reported in the diagnostics.
    A row that still fails to convert is skipped on its own; the rest of the
    sheet keeps loading.
    """
    if not sheets:
        raise EmptySourceError(f"The workbook {source or '<memory>'} does not contain any worksheets.")

    rows: List[Dict[str, object]] = []
    modules: List[Module] = []
    diagnostics: List[Diagnostic] = []

    for sheet_name, raw in sheets.items():
        _check_cancelled(cancel_event)
        sheet_name = str(sheet_name)
        header = raw.iloc[HEADER_ROW].tolist() if len(raw) > HEADER_ROW else []
        reason = schema_mismatch(header)
        if reason is not None:
            diagnostics.append(
                Diagnostic(
                    kind="invalid_sheet_schema",
                    sheet=sheet_name,
                    message=f"Invalid headers in sheet '{sheet_name}': {reason}.",
                )
            )
            continue

        modules.append(Module(name=sheet_name))
        data = raw.iloc[FIRST_DATA_ROW:]
        for offset, values in enumerate(data.itertuples(index=False, name=None)):
            _check_cancelled(cancel_event)
            row_number = FIRST_DATA_ROW + offset + 1
            if all(_is_blank(v) for v in values):
                continue
            try:
                rows.append(parse_row(values, sheet_name))
            except (TypeError, ValueError, OverflowError) as exc:
                diagnostics.append(
                    Diagnostic(
                        kind="row_parse_failure",
                        sheet=sheet_name,
                        row=row_number,
                        message=f"Error processing row {row_number} in sheet '{sheet_name}': {exc}",
                    )
                )

    if rows:
        records = pd.DataFrame(rows, columns=RECORD_COLUMNS)
        records["number"] = records["number"].astype("int64")
    else:
        records = empty_records()
    return IngestionResult(records=records, modules=modules, diagnostics=diagnostics, source=source)


def read_sheets(source: Source) -> Dict[str, pd.DataFrame]:
    label = source_label(source)
    try:
        with pd.ExcelFile(source, engine="openpyxl") as xls:
            return {
                str(name): pd.read_excel(xls, sheet_name=name, header=None, dtype=object)
                for name in xls.sheet_names
            }
    except (OSError, ValueError, KeyError, zipfile.BadZipFile, InvalidFileException) as exc:
        raise SourceUnreadableError(f"Could not open workbook {label}: {exc}") from exc


def load_workbook(source: Source, *, cancel_event: Optional[threading.Event] = None) -> IngestionResult:
    label = source_label(source)
    logger.info("Loading clarification workbook %s", label)
    sheets = read_sheets(source)
    result = ingest_sheets(sheets, source=label, cancel_event=cancel_event)
    for diagnostic in result.diagnostics:
        logger.warning(diagnostic.message)
    logger.info(
        "Loaded %d clarifications from %d of %d sheets in %s",
        len(result.records),
        len(result.modules),
        len(sheets),
        label,
    )
    return result


async def load_workbook_async(
    source: Source, *, cancel_event: Optional[threading.Event] = None
) -> IngestionResult:
    return await asyncio.to_thread(load_workbook, source, cancel_event=cancel_event)
