"""
Health check API routes.

Provides endpoints for service health, liveness and readiness checks.
The Prometheus ``/metrics`` endpoint is mounted at the application root.
"""

from __future__ import annotations

import platform
import sys
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request

from solar_validation.api.models import HealthResponse
from solar_validation.config import get_logger, get_settings


logger = get_logger(__name__)
router = APIRouter()

HEALTHY_STATES = ("healthy", "disabled")


def _check_validation_engine(request: Request) -> dict[str, Any]:
    """
    Check the orchestrator and its registries.

    Returns:
        Validation engine status.
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        return {"status": "unhealthy", "error": "Validation engine not initialized"}

    return {
        "status": "healthy",
        "schemas": len(orchestrator.available_schemas()),
        "custom_rules": len(orchestrator.available_rules()),
        "cross_rules": len(orchestrator.available_cross_rules()),
    }


def _check_cache(request: Request) -> dict[str, Any]:
    """Check the result cache."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        return {"status": "unhealthy", "error": "Validation engine not initialized"}
    if not orchestrator.settings.cache.enabled:
        return {"status": "disabled"}
    return {"status": "healthy", **orchestrator.cache.get_stats()}


def _get_system_info() -> dict[str, Any]:
    """Get interpreter and platform information."""
    return {
        "status": "healthy",
        "python_version": sys.version.split()[0],
        "platform": platform.platform(),
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health of the API and the validation engine.",
)
async def health_check(
    http_request: Request,
    deep: bool = False,
) -> HealthResponse:
    """
    Health check endpoint.

    Args:
        http_request: HTTP request object.
        deep: Whether to include cache and system details.

    Returns:
        Health status of the API and its components.
    """
    settings = get_settings()
    timestamp = datetime.now(UTC).isoformat()

    components: dict[str, dict[str, Any]] = {
        "api": {
            "status": "healthy",
            "version": settings.app_version,
        },
        "validation": _check_validation_engine(http_request),
    }

    if deep:
        components["cache"] = _check_cache(http_request)
        components["system"] = _get_system_info()

    all_healthy = all(c.get("status") in HEALTHY_STATES for c in components.values())
    if not all_healthy:
        logger.warning("health_check_degraded", components=components)

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        version=settings.app_version,
        timestamp=timestamp,
        components=components,
    )


@router.get(
    "/health/live",
    summary="Liveness check",
    description="Kubernetes liveness check endpoint.",
)
async def liveness() -> dict[str, str]:
    """
    Liveness check for Kubernetes.

    Returns:
        Simple OK response.
    """
    return {"status": "ok"}


@router.get(
    "/health/ready",
    summary="Readiness check",
    description="Kubernetes readiness check endpoint.",
)
async def readiness(http_request: Request) -> dict[str, Any]:
    """
    Readiness check for Kubernetes.

    Ready once the orchestrator is attached and has at least one schema.

    Returns:
        Readiness status.
    """
    engine = _check_validation_engine(http_request)
    if engine["status"] != "healthy":
        return {"status": "not_ready", "issues": [engine.get("error", "unknown")]}
    if not engine["schemas"]:
        return {"status": "not_ready", "issues": ["No schemas registered"]}
    return {"status": "ready"}
