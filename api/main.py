from __future__ import annotations

import logging
import math
from typing import Any, Dict

import numpy as np
import pandas as pd
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import ErrorEnvelope, HealthResponse, SuccessEnvelope
from core.config import get_settings
from core.endpoints import ENDPOINTS, Endpoint
from core.envelope import NO_STORE, ParameterError, SourceError, error_payload, payload_for_error, status_for_error
from core.export import EXPORT_ERROR, ExportRequest, export_csv
from core.service import run_endpoint
from core.sources import RowSource, default_row_source

settings = get_settings()
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Fuel Dashboard Data API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.row_source = default_row_source(settings)


def _json(data: object, status_code: int = 200, headers: Dict[str, str] | None = None) -> JSONResponse:
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
        headers=headers,
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


def _source(request: Request) -> RowSource:
    return request.app.state.row_source


def _error(exc: Exception) -> JSONResponse:
    return _json(payload_for_error(exc), status_code=status_for_error(exc), headers={"Cache-Control": NO_STORE})


def _make_route(endpoint: Endpoint):
    async def route(request: Request):
        try:
            payload = await run_endpoint(endpoint, dict(request.query_params), _source(request), settings=settings)
            return _json(payload, headers={"Cache-Control": endpoint.cache_header})
        except ParameterError as exc:
            logger.info("%s rejected: %s", endpoint.path, exc)
            return _error(exc)
        except SourceError as exc:
            logger.exception("%s failed", endpoint.path)
            return _error(exc)
        except Exception as exc:
            logger.exception("%s failed", endpoint.path)
            return _json(error_payload(endpoint.error, str(exc)), status_code=500, headers={"Cache-Control": NO_STORE})

    route.__name__ = endpoint.path.replace("-", "_").replace("/", "__")
    return route


for _endpoint in ENDPOINTS.values():
    app.add_api_route(
        f"/api/{_endpoint.path}",
        _make_route(_endpoint),
        methods=["GET"],
        response_model=None,
        responses={200: {"model": SuccessEnvelope}, 400: {"model": ErrorEnvelope}, 500: {"model": ErrorEnvelope}},
    )


@app.get("/api/export-data", response_model=None)
async def export_data(request: Request):
    try:
        export = ExportRequest.from_params(dict(request.query_params))
        content, filename = await export_csv(_source(request), export)
        return Response(
            content=content.encode("utf-8"),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    except ParameterError as exc:
        return _error(exc)
    except SourceError as exc:
        logger.exception("export-data failed")
        return _error(exc)
    except Exception as exc:
        logger.exception("export-data failed")
        return _json(error_payload(EXPORT_ERROR, str(exc)), status_code=500, headers={"Cache-Control": NO_STORE})


@app.get("/healthz", response_model=HealthResponse)
def healthz() -> Dict[str, Any]:
    return {
        "status": "ok",
        "warehouse": settings.warehouse_enabled,
        "endpoints": len(ENDPOINTS),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, reload=True)
