"""HTTP server accepting monitoring-agent submissions via FastAPI.

The routes are thin: they gate the request (status-check probe, API key),
read the raw body and hand it to :class:`~.ingest.IngestService`. The
acknowledgment is always HTTP 200 with ``{"status": "ok"|"failed"}``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import psutil
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..adapters.influxdb import InfluxDBForwarder
from ..config.models import EnvSettings
from ..domain.pipeline import IntakeMapper
from ..events.writer import EventWriter
from ..observability import setup_logging
from .ingest import IngestService

logger = logging.getLogger(__name__)

STATUS_CHECK_AGENT = "Datadog-Status-Check"
STILL_ALIVE = "STILL-ALIVE\n"

INTAKE_PATHS = ("/intake", "/intake/")
SERIES_PATHS = ("/api/v1/series", "/api/v1/series/")

__all__ = [
    "create_app",
    "_build_app",
    "_check_request",
    "_register_health",
    "_register_intake",
]


class HealthResponse(BaseModel):
    """Simple health/readiness response model."""

    status: str


class AckResponse(BaseModel):
    """Acknowledgment returned to the submitting agent."""

    status: str = Field(..., description='"ok" or "failed"')


class ErrorResponse(BaseModel):
    """Structured JSON error response for HTTP endpoints.

    Fields
    ------
    detail: str
        Human-readable explanation of the error.
    error_type: str
        Machine-readable error classification.
    """

    detail: str = Field(..., description="Human-readable error detail")
    error_type: str = Field(..., description="Machine-readable error type")


def _build_app(lifespan: Any | None = None) -> FastAPI:
    """Create base FastAPI app (optionally with lifespan)."""
    if lifespan is not None:
        return FastAPI(title="ddhouse intake", version=__version__, lifespan=lifespan)
    return FastAPI(title="ddhouse intake", version=__version__)


def _check_request(request: Request, expected_key: str) -> Optional[Response]:
    """Answer status-check probes and reject bad API keys.

    Returns a response to send instead of processing the body, or None when
    the request may proceed.
    """
    if request.headers.get("user-agent") == STATUS_CHECK_AGENT:
        return PlainTextResponse(STILL_ALIVE)
    if not expected_key:
        return None
    if request.query_params.get("api_key") != expected_key:
        logger.warning(
            "http.auth.bad_api_key",
            extra={
                "path": request.url.path,
                "client": request.client.host if request.client else "unknown",
            },
        )
        return PlainTextResponse("Bad API Key", status_code=403)
    return None


def _log_startup_memory() -> None:
    try:
        mem_info = psutil.Process().memory_info()
    except psutil.Error:  # pragma: no cover
        return
    logger.info(
        "http.startup.memory",
        extra={
            "rss_mb": round(mem_info.rss / 1024 / 1024, 1),
            "vms_mb": round(mem_info.vms / 1024 / 1024, 1),
        },
    )


def _register_health(app: FastAPI) -> None:
    """Register health and readiness endpoints."""

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Liveness probe",
    )
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get(
        "/ready",
        response_model=HealthResponse,
        summary="Readiness probe",
    )
    async def ready() -> HealthResponse:
        return HealthResponse(status="ready")


def _register_intake(app: FastAPI, service: IngestService, api_key: str) -> None:
    """Register the agent submission routes (with and without trailing slash)."""

    async def intake(request: Request) -> Response:
        gate = _check_request(request, api_key)
        if gate is not None:
            return gate
        body = await request.body()
        ack = await service.handle_intake(
            body, request.headers.get("content-encoding")
        )
        return JSONResponse(ack)

    async def series(request: Request) -> Response:
        gate = _check_request(request, api_key)
        if gate is not None:
            return gate
        body = await request.body()
        ack = await service.handle_series(
            body, request.headers.get("content-encoding")
        )
        return JSONResponse(ack)

    for path in INTAKE_PATHS:
        app.add_api_route(
            path,
            intake,
            methods=["POST"],
            response_model=AckResponse,
            summary="Generic agent submission",
            include_in_schema=not path.endswith("/"),
        )
    for path in SERIES_PATHS:
        app.add_api_route(
            path,
            series,
            methods=["POST"],
            response_model=AckResponse,
            summary="Typed statsd series submission",
            include_in_schema=not path.endswith("/"),
        )


def create_app(
    settings: Optional[EnvSettings] = None,
    *,
    forwarder: Optional[InfluxDBForwarder] = None,
    writer: Optional[EventWriter] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    settings: Optional[EnvSettings]
        Process settings; read from the environment when omitted.
    forwarder: Optional[InfluxDBForwarder]
        Sink adapter; built from ``settings`` when omitted.
    writer: Optional[EventWriter]
        Event writer; built from ``settings`` when omitted.
    """
    settings = settings or EnvSettings()
    # Respect prior logging configuration from CLI; otherwise use env setting
    if not logging.getLogger().hasHandlers():
        setup_logging(settings.log_level)

    mapper = IntakeMapper(
        tables=settings.load_tables(),
        process_threshold=settings.process_threshold,
    )
    forwarder = forwarder or InfluxDBForwarder(
        settings.db_url,
        settings.db_name,
        settings.db_user,
        settings.db_password,
        settings.db_timeout_seconds,
    )
    writer = writer or EventWriter(
        settings.event_log_path, capacity=settings.event_queue_size
    )
    service = IngestService(mapper, forwarder=forwarder, writer=writer)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logger.info("http.startup")
        _log_startup_memory()
        if not settings.api_key:
            logger.warning("http.startup.api_key_unset")
        await forwarder.ensure_database()
        writer.start()
        try:
            yield
        finally:
            logger.info("http.shutdown", extra={"pending": service.pending})
            await service.drain()
            await writer.stop()
            await forwarder.aclose()

    app = _build_app(lifespan=lifespan)
    app.state.service = service

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: Exception):  # noqa: D401
        err = ErrorResponse(detail=str(exc), error_type="validation_error")
        return JSONResponse(status_code=400, content={"detail": err.model_dump()})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: Any):  # noqa: D401
        detail = getattr(exc, "detail", "")
        err = ErrorResponse(detail=str(detail) or "HTTP error", error_type="http_error")
        return JSONResponse(status_code=exc.status_code, content={"detail": err.model_dump()})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception):  # noqa: D401
        # Avoid leaking internals; log server-side, return generic error
        logger.error("http.unhandled_exception", exc_info=exc)
        err = ErrorResponse(
            detail="Internal error. See server logs.",
            error_type="internal_server_error",
        )
        return JSONResponse(status_code=500, content={"detail": err.model_dump()})

    # Mark handlers as intentionally used (registered via decorators)
    _ = (
        validation_exception_handler,
        http_exception_handler,
        unhandled_exception_handler,
    )

    _register_health(app)
    _register_intake(app, service, settings.api_key)
    routes: List[Dict[str, Any]] = [
        {"path": r.path, "methods": sorted(getattr(r, "methods", None) or [])}
        for r in app.routes
        if r.path.startswith(("/intake", "/api"))
    ]
    logger.info("http.routes", extra={"routes": routes})
    return app
