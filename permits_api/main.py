from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from permits_api.schemas import MetaListResponse, PipelineOptionsModel, SourceResponse
from permits_core.config import load_settings
from permits_core.data import DatasetError, dataset_from_upload, load_dashboard_data
from permits_core.filters import PipelineOptions, normalize_options
from permits_core.logging_setup import setup_logging
from permits_core.metrics_overview import SERIES_REGISTRY, compute_overview, compute_series

_startup_settings = load_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging(_startup_settings.log_level)
    yield


app = FastAPI(title="Housing Permits Dashboard API", version="0.1.0", lifespan=lifespan)
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_startup_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class DatasetStore:
    """Holds the most recently uploaded dataset; a new upload replaces it."""

    def __init__(self) -> None:
        self._uploaded: Optional[Dict[str, Any]] = None

    def current(self) -> Dict[str, Any]:
        if self._uploaded is not None:
            return self._uploaded
        return load_dashboard_data(load_settings())

    def replace(self, ctx: Dict[str, Any]) -> None:
        self._uploaded = ctx

    def reset(self) -> None:
        self._uploaded = None


store = DatasetStore()


def _options_from_model(model: Optional[PipelineOptionsModel]) -> PipelineOptions:
    raw = model.model_dump() if model is not None else {}
    return normalize_options(raw)


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
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/meta/source")
def meta_source():
    try:
        ctx = store.current()
        return _json(SourceResponse(source=ctx["source"], path=ctx.get("path"), rows=len(ctx["records"])).model_dump())
    except Exception as exc:
        logger.exception("meta_source failed")
        return _error(exc)


@app.get("/meta/counties")
def meta_counties():
    try:
        ctx = store.current()
        counties = sorted({r.county for r in ctx["records"] if r.county})
        return _json(MetaListResponse(values=counties).model_dump())
    except Exception as exc:
        logger.exception("meta_counties failed")
        return _error(exc)


@app.get("/meta/series")
def meta_series():
    return _json(MetaListResponse(values=list(SERIES_REGISTRY)).model_dump())


@app.post("/overview")
def overview(options: Optional[PipelineOptionsModel] = None):
    try:
        ctx = store.current()
        payload = compute_overview(ctx["records"], _options_from_model(options))
        payload["source"] = ctx["source"]
        return _json(payload)
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.post("/series/{name}")
def series(name: str, options: Optional[PipelineOptionsModel] = None):
    if name not in SERIES_REGISTRY:
        return _error(KeyError(f"unknown series: {name}"), status_code=404)
    try:
        ctx = store.current()
        return _json({"name": name, "data": compute_series(name, ctx["records"], _options_from_model(options))})
    except Exception as exc:
        logger.exception("series %s failed", name)
        return _error(exc)


@app.post("/upload")
async def upload(request: Request):
    body = await request.body()
    try:
        ctx = dataset_from_upload(body.decode("utf-8-sig"))
    except (UnicodeDecodeError, DatasetError) as exc:
        logger.warning("upload rejected: %s", exc)
        return _error(exc, status_code=400)
    store.replace(ctx)
    return _json({"source": ctx["source"], "rows": len(ctx["records"])})


@app.delete("/upload")
def reset_upload():
    store.reset()
    ctx = store.current()
    return _json({"source": ctx["source"], "rows": len(ctx["records"])})


@app.post("/export/{name}")
def export_series(name: str, options: Optional[PipelineOptionsModel] = None):
    if name not in SERIES_REGISTRY:
        return _error(KeyError(f"unknown series: {name}"), status_code=404)
    ctx = store.current()
    export_df = pd.DataFrame(compute_series(name, ctx["records"], _options_from_model(options)))
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    filename = f"{name}.csv"
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
