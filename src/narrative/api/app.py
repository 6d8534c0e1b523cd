from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from narrative.api.config import load_api_config
from narrative.api.errors import ApiError, from_apply_error
from narrative.api.routes_public import public_router
from narrative.api.security import RequestSizeLimitMiddleware
from narrative.api.structured_logging import RequestLogMiddleware, configure_structured_logging
from narrative.runtime.errors import ApplyError
from narrative.runtime.executor_boot import build_executor as _build_executor


def build_executor():
    """Build a NarrativeExecutor for API runtime.

    This wrapper exists so tests can monkeypatch `narrative.api.app.build_executor`
    without reaching into runtime modules.
    """
    return _build_executor()


async def _api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_json())


async def _apply_error_handler(_request: Request, exc: ApplyError) -> JSONResponse:
    err = from_apply_error(exc)
    return JSONResponse(status_code=err.status_code, content=err.to_json())


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): build the executor from config and attach it
      - False: keep lightweight for unit tests / import-time validation
    """
    cfg = load_api_config()
    configure_structured_logging()

    # Disable docs in production.
    if cfg.mode == "prod":
        app = FastAPI(
            title="Narrative Story Ledger API",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )
    else:
        app = FastAPI(title="Narrative Story Ledger API")

    app.state.cfg = cfg
    app.state.executor = build_executor() if boot_runtime else None

    # --- Error mapping ---
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(ApplyError, _apply_error_handler)

    # --- Middleware ---
    # Added last runs first: the request log wraps the size limiter.
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=cfg.max_request_bytes)
    app.add_middleware(RequestLogMiddleware, enabled=cfg.log_requests)

    # --- Routers ---
    app.include_router(public_router)

    return app
