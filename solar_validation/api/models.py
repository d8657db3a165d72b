"""
Pydantic models for API request/response schemas.

Requests arriving over HTTP reference custom rules by id only; inline
predicates are an in-process feature of the orchestrator.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from solar_validation.validation.models import (
    CustomRuleSpec,
    RequestConfig,
    RequestPayload,
    RuleSet,
    ValidationRequest,
)
from solar_validation.validation.types import RecordCategory, RequestContext, Severity


class CustomRuleReference(BaseModel):
    """Reference to a registered custom rule."""

    rule_id: str = Field(..., min_length=1, max_length=50, description="Registered rule id")
    description: str = Field("", max_length=200, description="Rule description")
    severity: Severity = Field(Severity.ERROR, description="Severity override")
    field: str | None = Field(None, description="Target field path")
    dependencies: list[str] = Field(default_factory=list, description="Prerequisite rule ids")


class RuleSelection(BaseModel):
    """Rules selected for an HTTP validation request."""

    schemas: list[str] = Field(default_factory=list, max_length=50, description="Schema names")
    custom_rules: list[CustomRuleReference] = Field(
        default_factory=list,
        description="Registered custom rules to run",
    )
    cross_validation_rules: list[str] = Field(
        default_factory=list,
        description="Cross-validation rule names",
    )


class ValidateRequest(BaseModel):
    """
    Request model for record validation.

    Attributes:
        request_id: Optional caller request id, generated when absent.
        context: Why the validation is being made.
        category: Category of the record.
        config: Per-request switches.
        data: Record and metadata.
        rules: Schemas, custom rules and cross-validation rules.
        context_options: Opaque options passed to rule predicates.
    """

    request_id: str | None = Field(None, max_length=100, description="Request id")
    context: RequestContext = Field(..., description="Validation context")
    category: RecordCategory = Field(..., description="Record category")
    config: RequestConfig = Field(default_factory=RequestConfig, description="Validation switches")
    data: RequestPayload = Field(default_factory=RequestPayload, description="Record payload")
    rules: RuleSelection = Field(default_factory=RuleSelection, description="Rules to apply")
    context_options: dict[str, Any] = Field(default_factory=dict, description="Context options")

    def to_validation_request(self, request_id: str) -> ValidationRequest:
        """Build the orchestrator request."""
        return ValidationRequest(
            request_id=self.request_id or request_id,
            context=self.context,
            category=self.category,
            config=self.config.model_copy(),
            data=self.data.model_copy(deep=True),
            rules=RuleSet(
                schemas=list(self.rules.schemas),
                custom_rules=[
                    CustomRuleSpec(**reference.model_dump(exclude_unset=True))
                    for reference in self.rules.custom_rules
                ],
                cross_validation_rules=list(self.rules.cross_validation_rules),
            ),
            context_options=dict(self.context_options),
        )


class ErrorBody(BaseModel):
    """Error payload of a failed request."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Error message")
    details: Any = Field(None, description="Error details")


class ErrorResponse(BaseModel):
    """
    Standard error response model.

    Attributes:
        success: Always False.
        error: Error payload.
        request_id: Request tracking ID.
        timestamp: Error timestamp.
    """

    success: bool = Field(False, description="Request success flag")
    error: ErrorBody = Field(..., description="Error payload")
    request_id: str = Field("", description="Request ID for tracking")
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="Error timestamp",
    )


class ValidateResponse(BaseModel):
    """Response model for a passing validation."""

    success: bool = Field(True, description="Request success flag")
    result: dict[str, Any] = Field(..., description="Validation result")


class HealthResponse(BaseModel):
    """
    Response model for health check.

    Attributes:
        status: Overall health status.
        version: API version.
        timestamp: Current timestamp.
        components: Component health status.
    """

    status: str = Field(..., description="Overall health status")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp")
    components: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Component health",
    )


class SchemaInfo(BaseModel):
    """Information about a registered schema."""

    name: str = Field(..., description="Schema name")
    description: str = Field("", description="Schema description")
    category: str | None = Field(None, description="Record category")
    field_count: int = Field(0, ge=0, description="Number of top-level fields")
    version: str = Field("1.0.0", description="Schema version")


class SchemaListResponse(BaseModel):
    """Response model for schema listing."""

    schemas: list[SchemaInfo] = Field(default_factory=list, description="Registered schemas")
    count: int = Field(0, ge=0, description="Number of schemas")


class CrossRuleListResponse(BaseModel):
    """Response model for cross-validation rule listing."""

    rules: list[str] = Field(default_factory=list, description="Cross-validation rule names")
    count: int = Field(0, ge=0, description="Number of rules")
