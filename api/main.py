from __future__ import annotations

from dataclasses import asdict
from functools import lru_cache
import logging
import math
from typing import Literal

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response

from api.schemas import ClarificationFiltersModel, LoadRequest, LoadResponse, ModuleSelection
from core.config import configure_logging, get_settings
from core.engine import ClarificationEngine
from core.errors import IngestionError
from core.export import records_csv_bytes, records_xlsx_bytes, summary_csv_bytes, summary_xlsx_bytes
from core.filters import normalize_filters, status_options
from core.metrics_details import compute_details
from core.metrics_summary import compute_summary_payload


configure_logging()
app = FastAPI(title="Clarification Tracker API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
EXPORT_FILENAMES = {"details": "Clarifications", "summary": "Summaries"}


@lru_cache
def get_engine() -> ClarificationEngine:
    return ClarificationEngine()


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.post("/load")
async def load(request: LoadRequest):
    path = (request.path or get_settings().source_path or "").strip()
    if not path:
        return _error(ValueError("Please select a file."), status_code=400)
    try:
        result = await get_engine().load_async(path)
    except IngestionError as exc:
        logger.warning("load failed: %s", exc)
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("load failed")
        return _error(exc)
    payload = LoadResponse(
        source=result.source,
        records=len(result.records),
        modules=[asdict(m) for m in result.modules],
        diagnostics=[asdict(d) for d in result.diagnostics],
    )
    return _json(payload.model_dump())


@app.get("/meta/modules")
def meta_modules():
    return _json({"modules": [asdict(m) for m in get_engine().modules]})


@app.get("/meta/statuses")
def meta_statuses():
    return _json({"statuses": status_options(get_engine().records)})


@app.post("/modules/{name}/selected")
def select_module(name: str, selection: ModuleSelection):
    engine = get_engine()
    try:
        engine.set_module_selected(name, selection.selected)
    except KeyError as exc:
        return _error(exc, status_code=404)
    return _json({"modules": [asdict(m) for m in engine.modules]})


@app.post("/details")
def details(filters: ClarificationFiltersModel):
    try:
        engine = get_engine()
        engine.apply_filters(normalize_filters(filters.model_dump()))
        return _json(compute_details(engine.filters, engine.context()))
    except Exception as exc:
        logger.exception("details failed")
        return _error(exc)


@app.post("/reset")
def reset():
    engine = get_engine()
    engine.reset()
    return _json(compute_details(engine.filters, engine.context()))


@app.get("/summary")
def summary():
    try:
        return _json(compute_summary_payload(get_engine().context()))
    except Exception as exc:
        logger.exception("summary failed")
        return _error(exc)


@app.get("/export/{page}")
def export_page(page: str, fmt: Literal["xlsx", "csv"] = Query(default="xlsx")):
    engine = get_engine()
    if page == "details":
        df = engine.view
        content = records_xlsx_bytes(df) if fmt == "xlsx" else records_csv_bytes(df)
    elif page == "summary":
        df = engine.summaries()
        content = summary_xlsx_bytes(df) if fmt == "xlsx" else summary_csv_bytes(df)
    else:
        return _error(ValueError(f"Unknown export page: {page}"), status_code=404)

    media_type = XLSX_MEDIA_TYPE if fmt == "xlsx" else "text/csv"
    filename = f"{EXPORT_FILENAMES[page]}.{fmt}"
    return Response(content=content, media_type=media_type, headers={"Content-Disposition": f"attachment; filename={filename}"})
