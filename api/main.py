from __future__ import annotations

import logging
import math
from typing import Literal

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import MetaListResponse, ParseRequest, RowsResponse, ViewSettingsModel
from discipline_metrics.data import ParseError, default_data_path, load_dataset, load_rows, parse_rows
from discipline_metrics.metrics import compute_view
from discipline_metrics.settings import ViewSettings, normalize_settings
from presenter.charts import charts_for_payload
from presenter.narrative import build_summary

app = FastAPI(title="Discipline Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

EXPORT_TABLES = {"overview": "ranking", "trends": "records", "disparities": "disparities"}


def _settings_from_model(model: ViewSettingsModel, *, available_years: list[str]) -> ViewSettings:
    raw = model.model_dump()
    return normalize_settings(raw, available_years=available_years)


def _json(data: object, status_code: int = 200) -> JSONResponse:
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
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        ),
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _view_payload(view: str, model: ViewSettingsModel) -> dict:
    data_ctx = load_dataset()
    settings = _settings_from_model(model, available_years=data_ctx.get("years", []))
    rows = data_ctx.get("rows", ())
    payload = compute_view(view, settings, rows)
    payload["charts"] = charts_for_payload(payload) if settings.include_charts else {}
    return payload


@app.get("/meta/years", response_model=MetaListResponse)
def meta_years():
    try:
        data_ctx = load_dataset()
        return _json({"values": list(data_ctx.get("years", []))})
    except ParseError as exc:
        logger.warning("meta_years could not parse data file: %s", exc)
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("meta_years failed")
        return _error(exc)


@app.get("/meta/groups", response_model=MetaListResponse)
def meta_groups():
    try:
        data_ctx = load_dataset()
        return _json({"values": list(data_ctx.get("groups", []))})
    except ParseError as exc:
        logger.warning("meta_groups could not parse data file: %s", exc)
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("meta_groups failed")
        return _error(exc)


@app.get("/rows", response_model=RowsResponse)
async def rows():
    path = default_data_path()
    if not path.exists():
        return _json({"rows": []})
    try:
        loaded = await load_rows(path)
        return _json({"rows": [r.to_dict() for r in loaded]})
    except ParseError as exc:
        logger.warning("rows could not parse data file: %s", exc)
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("rows failed")
        return _error(exc)


@app.post("/parse", response_model=RowsResponse)
def parse(request: ParseRequest):
    try:
        parsed = parse_rows(request.raw_text)
        return _json({"rows": [r.to_dict() for r in parsed]})
    except ParseError as exc:
        return _error(exc, status_code=422)


def _view_endpoint(view: Literal["overview", "trends", "disparities"], settings: ViewSettingsModel) -> JSONResponse:
    try:
        return _json(_view_payload(view, settings))
    except ParseError as exc:
        logger.warning("%s could not parse data file: %s", view, exc)
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("%s failed", view)
        return _error(exc)


@app.post("/overview")
def overview(settings: ViewSettingsModel):
    return _view_endpoint("overview", settings)


@app.post("/trends")
def trends(settings: ViewSettingsModel):
    return _view_endpoint("trends", settings)


@app.post("/disparities")
def disparities(settings: ViewSettingsModel):
    return _view_endpoint("disparities", settings)


@app.post("/summary")
def summary(settings: ViewSettingsModel):
    try:
        data_ctx = load_dataset()
        s = _settings_from_model(settings, available_years=data_ctx.get("years", []))
        return _json({"sections": build_summary(data_ctx.get("rows", ()), s)})
    except ParseError as exc:
        logger.warning("summary could not parse data file: %s", exc)
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("summary failed")
        return _error(exc)


@app.post("/export/{view}")
def export_view(view: str, settings: ViewSettingsModel):
    if view not in EXPORT_TABLES:
        return _error(ValueError(f"Unknown view {view!r}"), status_code=404)
    settings = settings.model_copy(update={"include_charts": False})
    try:
        payload = _view_payload(view, settings)
        export_df = pd.DataFrame(payload.get(EXPORT_TABLES[view], []))
        csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    except ParseError as exc:
        logger.warning("export %s could not parse data file: %s", view, exc)
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("export %s failed", view)
        return _error(exc)
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={view}.csv"},
    )
