"""
FastAPI dependencies for the validation API.

``validation_dependency`` validates a route's JSON body before the route
runs, so handlers receive an already-validated record.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import HTTPException, Request

from solar_validation.config import get_logger, get_settings
from solar_validation.exceptions import InternalValidationError, RecordValidationError
from solar_validation.validation.models import ValidationRequest, ValidationResult
from solar_validation.validation.orchestrator import ValidationOrchestrator
from solar_validation.validation.types import RecordCategory, RequestContext


logger = get_logger(__name__)


def get_orchestrator(request: Request) -> ValidationOrchestrator:
    """Get the orchestrator attached to the application."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Validation engine not initialized")
    return orchestrator


def get_request_id(request: Request) -> str:
    """Get the tracking id assigned by the request middleware."""
    return getattr(request.state, "request_id", None) or f"req_{uuid.uuid4().hex[:16]}"


def request_metadata(request: Request) -> dict[str, Any]:
    """
    Collect validation metadata from HTTP headers.

    ``X-API-Key`` and ``Authorization: Bearer`` headers become the
    credentials checked for api_request validations.
    """
    metadata: dict[str, Any] = {}

    user_agent = request.headers.get("user-agent")
    if user_agent:
        metadata["user_agent"] = user_agent
    if request.client is not None:
        metadata["ip"] = request.client.host

    api_key = request.headers.get("x-api-key")
    if api_key:
        metadata["api_key"] = api_key

    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        metadata["bearer_token"] = token.strip()

    return metadata


def validation_dependency(
    schemas: list[str],
    context: RequestContext | str = RequestContext.API_REQUEST,
    category: RecordCategory | str = RecordCategory.SYSTEM_CONFIG,
    *,
    cross_validation_rules: list[str] | None = None,
) -> Callable[[Request], Awaitable[ValidationResult]]:
    """
    Build a dependency that validates the JSON body of a route.

    An invalid body raises RecordValidationError, which the application
    turns into a 400 response. Engine failures surface as a 500.

    Example:
        @router.post("/systems")
        async def create_system(
            result: ValidationResult = Depends(
                validation_dependency(["solar_system_configuration"])
            ),
        ):
            ...

    Args:
        schemas: Schema names the body must satisfy.
        context: Validation context.
        category: Record category.
        cross_validation_rules: Cross-validation rules to apply.

    Returns:
        Async dependency callable returning the passing ValidationResult.
    """
    request_context = RequestContext(context)
    record_category = RecordCategory(category)

    async def dependency(http_request: Request) -> ValidationResult:
        body = await http_request.json()
        settings = get_settings()

        request = ValidationRequest.create(
            body,
            context=request_context,
            category=record_category,
            schemas=list(schemas),
            cross_validation_rules=list(cross_validation_rules or []),
            metadata=request_metadata(http_request),
            request_id=get_request_id(http_request),
            strict_mode=settings.is_production,
            max_errors=10,
            timeout_ms=10000,
        )

        result = await get_orchestrator(http_request).validate(request)
        if result.internal_error is not None:
            raise InternalValidationError(result)
        if not result.overall_valid:
            logger.info(
                "request_body_rejected",
                request_id=result.request_id,
                path=http_request.url.path,
                status=result.status.value,
            )
            raise RecordValidationError(result)
        return result

    return dependency
