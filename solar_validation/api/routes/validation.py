"""
Validation API routes.

Provides the record validation endpoint and catalog listings for
schemas and cross-validation rules.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request

from solar_validation.api.dependencies import (
    get_orchestrator,
    get_request_id,
    request_metadata,
)
from solar_validation.api.models import (
    CrossRuleListResponse,
    ErrorResponse,
    SchemaInfo,
    SchemaListResponse,
    ValidateRequest,
    ValidateResponse,
)
from solar_validation.config import get_logger
from solar_validation.exceptions import InternalValidationError, RecordValidationError
from solar_validation.validation.orchestrator import ValidationOrchestrator


logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "/validate",
    response_model=ValidateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Validate record",
    description="Validate a solar record against schemas, custom rules and cross-validation rules.",
)
async def validate_record(
    body: ValidateRequest,
    http_request: Request,
    orchestrator: ValidationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """
    Validate a record.

    Header credentials are merged under the body's metadata; values in the
    body take precedence.

    Args:
        body: Validation request.
        http_request: HTTP request object.
        orchestrator: Validation orchestrator.

    Returns:
        Passing validation result.

    Raises:
        InternalValidationError: When the run failed inside the engine (rendered as 500).
        RecordValidationError: When the record is invalid (rendered as 400).
    """
    request = body.to_validation_request(get_request_id(http_request))
    request.data.metadata = {**request_metadata(http_request), **request.data.metadata}

    logger.info(
        "validate_request",
        request_id=request.request_id,
        context=request.context.value,
        category=request.category.value,
        schemas=request.rules.schemas,
    )

    result = await orchestrator.validate(request)
    if result.internal_error is not None:
        raise InternalValidationError(result)
    if not result.overall_valid:
        raise RecordValidationError(result)

    return {"success": True, "result": result.to_dict()}


@router.get(
    "/schemas",
    response_model=SchemaListResponse,
    summary="List schemas",
    description="List all registered validation schemas.",
)
async def list_schemas(
    orchestrator: ValidationOrchestrator = Depends(get_orchestrator),
) -> SchemaListResponse:
    """List registered schemas."""
    schemas = []
    for name in orchestrator.available_schemas():
        definition = orchestrator.schema_registry.require(name)
        schemas.append(
            SchemaInfo(
                name=definition.name,
                description=definition.description,
                category=definition.category,
                field_count=definition.field_count(),
                version=definition.version,
            )
        )
    return SchemaListResponse(schemas=schemas, count=len(schemas))


@router.get(
    "/cross-rules",
    response_model=CrossRuleListResponse,
    summary="List cross-validation rules",
    description="List all registered cross-validation rule names.",
)
async def list_cross_rules(
    orchestrator: ValidationOrchestrator = Depends(get_orchestrator),
) -> CrossRuleListResponse:
    """List registered cross-validation rules."""
    rules = orchestrator.available_cross_rules()
    return CrossRuleListResponse(rules=rules, count=len(rules))
