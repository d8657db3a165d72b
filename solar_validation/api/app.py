"""
FastAPI application for the solar validation service.

A thin HTTP adapter over the ValidationOrchestrator with request
tracking, a standard error envelope and Prometheus exposition.
"""

from __future__ import annotations

import json
import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from solar_validation.config import Settings, get_logger, get_settings
from solar_validation.exceptions import InternalValidationError, RecordValidationError
from solar_validation.validation.orchestrator import ValidationOrchestrator


logger = get_logger(__name__)


API_DESCRIPTION = """
## Solar Validation API

Validates solar-industry records before they are persisted.

### Stages

- **Schema validation**: structural, type and range checks per named schema
- **Custom rules**: dependency-ordered business rules with suggested fixes
- **Cross-validation**: multi-field consistency checks

### Error Handling

Invalid records return `400` with:
- `success`: always `false`
- `error.code`: `VALIDATION_ERROR`
- `error.details`: per-stage results

Failures inside the engine return `500` with `error.code` `VALIDATION_INTERNAL_ERROR`.
"""


def error_response(
    status_code: int,
    code: str,
    message: str,
    request_id: str,
    details: Any = None,
) -> JSONResponse:
    """Build the standard error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {
                "code": code,
                "message": message,
                "details": jsonable_encoder(details),
            },
            "request_id": request_id,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Logs startup and drops cached results on shutdown.
    """
    orchestrator: ValidationOrchestrator = app.state.orchestrator
    logger.info(
        "api_startup",
        version=app.version,
        schemas=len(orchestrator.available_schemas()),
        cross_rules=len(orchestrator.available_cross_rules()),
    )

    yield

    logger.info("api_shutdown")
    orchestrator.clear_cache()


def create_app(
    orchestrator: ValidationOrchestrator | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        orchestrator: Orchestrator to serve, built from settings when omitted.
        settings: Application settings.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api.title,
        description=API_DESCRIPTION,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.orchestrator = (
        orchestrator if orchestrator is not None else ValidationOrchestrator(settings=settings)
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-API-Key", "X-Request-ID"],
    )

    @app.middleware("http")
    async def request_middleware(request: Request, call_next: Any) -> Response:
        """Add request ID and timing to all requests."""
        request_id = request.headers.get("X-Request-ID") or f"req_{uuid.uuid4().hex[:16]}"
        start_time = time.perf_counter()

        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_error",
                request_id=request_id,
                path=request.url.path,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return error_response(
                500,
                "VALIDATION_INTERNAL_ERROR",
                "Validation service failed",
                request_id,
                details=str(exc),
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

        logger.info(
            "request_completed",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        return response

    @app.exception_handler(RecordValidationError)
    async def record_validation_error_handler(
        request: Request,
        exc: RecordValidationError,
    ) -> JSONResponse:
        """Handle invalid records."""
        request_id = getattr(request.state, "request_id", exc.result.request_id)
        return error_response(
            400,
            "VALIDATION_ERROR",
            "Request validation failed",
            request_id,
            details=exc.result.results.to_dict(),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle malformed request bodies."""
        request_id = getattr(request.state, "request_id", "")
        return error_response(
            400,
            "INVALID_REQUEST",
            "Malformed validation request",
            request_id,
            details=exc.errors(),
        )

    @app.exception_handler(InternalValidationError)
    async def internal_validation_error_handler(
        request: Request,
        exc: InternalValidationError,
    ) -> JSONResponse:
        """Handle validation runs that failed inside the engine."""
        request_id = getattr(request.state, "request_id", exc.result.request_id)
        logger.error(
            "validation_run_failed",
            request_id=request_id,
            path=request.url.path,
            error_code=exc.details.get("error_code"),
        )
        return error_response(
            500,
            "VALIDATION_INTERNAL_ERROR",
            "Validation service failed",
            request_id,
            details=exc.details,
        )

    @app.exception_handler(json.JSONDecodeError)
    async def json_decode_error_handler(request: Request, exc: json.JSONDecodeError) -> JSONResponse:
        """Handle unparseable request bodies."""
        request_id = getattr(request.state, "request_id", "")
        return error_response(400, "INVALID_REQUEST", f"Malformed JSON body: {exc.msg}", request_id)

    from solar_validation.api.routes.health import router as health_router
    from solar_validation.api.routes.validation import router as validation_router

    app.include_router(validation_router, prefix="/api/v1", tags=["Validation"])
    app.include_router(health_router, prefix="/api/v1", tags=["Health"])

    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics in text exposition format."""
        current: ValidationOrchestrator = request.app.state.orchestrator
        return Response(content=current.metrics.export(), media_type=current.metrics.content_type())

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint pointing at the docs."""
        return {
            "message": settings.api.title,
            "version": settings.app_version,
            "docs": "/docs",
        }

    return app
