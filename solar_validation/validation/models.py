"""
Request and result models for the validation orchestrator.

ValidationRequest is a Pydantic model so that requests arriving as JSON
at the HTTP boundary are validated the same way as those built in code.
Results are plain dataclasses with ``to_dict()`` serialisation.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from solar_validation.validation.types import (
    RecordCategory,
    RequestContext,
    ResultStatus,
    Severity,
)


# =============================================================================
# Request
# =============================================================================


class RequestConfig(BaseModel):
    """Per-request validation switches."""

    strict_mode: bool = False
    skip_warnings: bool = False
    max_errors: int = Field(default=100, ge=1, le=1000)
    timeout_ms: int = Field(default=30000, ge=1, le=300000)
    enable_caching: bool = True
    enable_metrics: bool = True


class RequestPayload(BaseModel):
    """Record under validation plus side metadata."""

    primary: Any = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    correlation_id: str | None = Field(default=None, max_length=100)


class CustomRuleSpec(BaseModel):
    """
    Reference to a custom rule for one request.

    Either carries an inline ``rule`` (a ValidationRule or a plain
    predicate) or names a rule registered in the orchestrator's registry.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    rule_id: str = Field(min_length=1, max_length=50)
    description: str = Field(default="", max_length=200)
    rule: Any = Field(default=None, exclude=True)
    severity: Severity = Severity.ERROR
    field: str | None = None
    dependencies: list[str] = Field(default_factory=list)


class RuleSet(BaseModel):
    """Validation rules to apply to a request."""

    schemas: list[str] = Field(default_factory=list, max_length=50)
    custom_rules: list[CustomRuleSpec] = Field(default_factory=list)
    cross_validation_rules: list[str] = Field(default_factory=list)

    @property
    def has_inline_rules(self) -> bool:
        """Check whether any custom rule carries an inline predicate."""
        return any(spec.rule is not None for spec in self.custom_rules)


class ValidationRequest(BaseModel):
    """
    A single validation call.

    Attributes:
        request_id: Caller-chosen request identifier.
        timestamp: When the request was built.
        context: Why the validation is being made.
        category: Category of the record under validation.
        config: Per-request switches.
        data: Payload and side metadata.
        rules: Schemas, custom rules and cross-validation rules to apply.
        context_options: Opaque options (e.g. ``operation``, ``actor_id``).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    request_id: str = Field(min_length=1, max_length=100)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    context: RequestContext
    category: RecordCategory
    config: RequestConfig = Field(default_factory=RequestConfig)
    data: RequestPayload = Field(default_factory=RequestPayload)
    rules: RuleSet = Field(default_factory=RuleSet)
    context_options: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def create(
        cls,
        primary: Any,
        *,
        context: RequestContext | str,
        category: RecordCategory | str,
        schemas: list[str] | None = None,
        custom_rules: list[CustomRuleSpec | dict[str, Any]] | None = None,
        cross_validation_rules: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
        request_id: str | None = None,
        **config: Any,
    ) -> ValidationRequest:
        """
        Build a request with a generated id and timestamp.

        Extra keyword arguments are applied to RequestConfig.
        """
        return cls(
            request_id=request_id or f"req_{uuid.uuid4().hex[:16]}",
            context=RequestContext(context),
            category=RecordCategory(category),
            config=RequestConfig(**config),
            data=RequestPayload(primary=primary, metadata=metadata or {}),
            rules=RuleSet(
                schemas=schemas or [],
                custom_rules=[
                    r if isinstance(r, CustomRuleSpec) else CustomRuleSpec(**r)
                    for r in (custom_rules or [])
                ],
                cross_validation_rules=cross_validation_rules or [],
            ),
        )


# =============================================================================
# Result
# =============================================================================

ORCHESTRATOR_ERROR_SCHEMA = "orchestrator_error"

# Orchestrator error codes caused by the caller rather than the engine
CLIENT_ERROR_CODES = frozenset({"AUTHENTICATION_REQUIRED"})



class RecommendationType(str, Enum):
    """Kind of advisory recommendation."""

    DATA_QUALITY = "data_quality"
    PERFORMANCE = "performance"
    SECURITY = "security"
    BEST_PRACTICE = "best_practice"


class RecommendationLevel(str, Enum):
    """Urgency of a recommendation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """
    A single structured issue.

    Attributes:
        path: Location of the offending value inside the record.
        message: Human-readable description.
        code: Machine-readable code.
        severity: Issue severity.
    """

    path: tuple[str | int, ...]
    message: str
    code: str
    severity: Severity = Severity.ERROR

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "path": list(self.path),
            "message": self.message,
            "code": self.code,
            "severity": self.severity.value,
        }


@dataclass(slots=True)
class SchemaResult:
    """Outcome of validating a payload against one named schema."""

    schema_name: str
    valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "schema_name": self.schema_name,
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(slots=True)
class CustomRuleResult:
    """Outcome of one custom rule."""

    rule_id: str
    valid: bool
    skipped: bool = False
    message: str | None = None
    severity: Severity | None = None
    field: str | None = None
    code: str | None = None
    suggested_fix: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "rule_id": self.rule_id,
            "valid": self.valid,
            "skipped": self.skipped,
            "message": self.message,
            "severity": self.severity.value if self.severity else None,
            "field": self.field,
            "code": self.code,
            "suggested_fix": self.suggested_fix,
        }


@dataclass(slots=True)
class CrossValidationResult:
    """Outcome of one named cross-validation rule."""

    rule_name: str
    valid: bool
    details: str | None = None
    known: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "rule_name": self.rule_name,
            "valid": self.valid,
            "details": self.details,
            "known": self.known,
        }


@dataclass(slots=True)
class StageResults:
    """Results of the three validation stages."""

    schema_results: list[SchemaResult] = field(default_factory=list)
    custom_rule_results: list[CustomRuleResult] = field(default_factory=list)
    cross_validation_results: list[CrossValidationResult] = field(default_factory=list)

    @property
    def all_valid(self) -> bool:
        """Check that every stage result is passing."""
        return (
            all(r.valid for r in self.schema_results)
            and all(r.valid for r in self.custom_rule_results)
            and all(r.valid for r in self.cross_validation_results)
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "schema_results": [r.to_dict() for r in self.schema_results],
            "custom_rule_results": [r.to_dict() for r in self.custom_rule_results],
            "cross_validation_results": [r.to_dict() for r in self.cross_validation_results],
        }


@dataclass(slots=True)
class ResultMetrics:
    """Timing and counter block attached to a result."""

    validation_time_ms: float = 0.0
    schema_time_ms: float = 0.0
    custom_rule_time_ms: float = 0.0
    cross_validation_time_ms: float = 0.0
    cache_hit: bool = False
    rules_evaluated: int = 0
    rules_skipped: int = 0
    rules_passed: int = 0
    rules_failed: int = 0
    fields_validated: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "validation_time_ms": round(self.validation_time_ms, 3),
            "schema_time_ms": round(self.schema_time_ms, 3),
            "custom_rule_time_ms": round(self.custom_rule_time_ms, 3),
            "cross_validation_time_ms": round(self.cross_validation_time_ms, 3),
            "cache_hit": self.cache_hit,
            "rules_evaluated": self.rules_evaluated,
            "rules_skipped": self.rules_skipped,
            "rules_passed": self.rules_passed,
            "rules_failed": self.rules_failed,
            "fields_validated": self.fields_validated,
        }


@dataclass(frozen=True, slots=True)
class Recommendation:
    """Advisory, non-gating suggestion attached to a result."""

    type: RecommendationType
    message: str
    level: RecommendationLevel
    action_required: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "type": self.type.value,
            "message": self.message,
            "level": self.level.value,
            "action_required": self.action_required,
        }


@dataclass(slots=True)
class ValidationResult:
    """
    Complete outcome of a validation request.

    Attributes:
        request_id: Identifier of the originating request.
        timestamp: When the result was produced.
        duration_ms: Wall-clock duration of the call.
        status: Overall status.
        overall_valid: True iff every stage result passes.
        results: Per-stage results.
        metrics: Timings and counters.
        recommendations: Advisory suggestions.
        suggested_fixes: Replacement values proposed by failing rules.
        warnings: Non-gating markers (e.g. stale real-time data).
    """

    request_id: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration_ms: float = 0.0
    status: ResultStatus = ResultStatus.SUCCESS
    overall_valid: bool = True
    results: StageResults = field(default_factory=StageResults)
    metrics: ResultMetrics = field(default_factory=ResultMetrics)
    recommendations: list[Recommendation] = field(default_factory=list)
    suggested_fixes: dict[str, Any] = field(default_factory=dict)
    warnings: list[ValidationIssue] = field(default_factory=list)

    def iter_issues(self) -> Iterator[ValidationIssue]:
        """Iterate over blocking issues from every stage."""
        for schema_result in self.results.schema_results:
            yield from schema_result.errors
        for rule_result in self.results.custom_rule_results:
            if not rule_result.valid:
                yield ValidationIssue(
                    path=tuple(rule_result.field.split(".")) if rule_result.field else (),
                    message=rule_result.message or f"Custom rule '{rule_result.rule_id}' failed",
                    code=rule_result.code or "CUSTOM_RULE_FAILED",
                    severity=rule_result.severity or Severity.ERROR,
                )
        for cross_result in self.results.cross_validation_results:
            if not cross_result.valid:
                yield ValidationIssue(
                    path=(),
                    message=cross_result.details
                    or f"Cross-validation rule '{cross_result.rule_name}' failed",
                    code="CROSS_VALIDATION_FAILED",
                    severity=Severity.ERROR,
                )

    @property
    def internal_error(self) -> ValidationIssue | None:
        """
        Get the issue of an orchestrator-internal failure.

        Returns None for ordinary verdicts and for failures caused by the
        request itself, such as missing API credentials.
        """
        for schema_result in self.results.schema_results:
            if schema_result.schema_name != ORCHESTRATOR_ERROR_SCHEMA:
                continue
            for issue in schema_result.errors:
                if issue.code not in CLIENT_ERROR_CODES:
                    return issue
        return None

    def same_verdict(self, other: ValidationResult) -> bool:
        """Compare two results ignoring timestamps, timings and cache flags."""
        return (
            self.overall_valid == other.overall_valid
            and self.results.to_dict() == other.results.to_dict()
            and self.suggested_fixes == other.suggested_fixes
            and [w.to_dict() for w in self.warnings] == [w.to_dict() for w in other.warnings]
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat(),
            "duration_ms": round(self.duration_ms, 3),
            "status": self.status.value,
            "overall_valid": self.overall_valid,
            "results": self.results.to_dict(),
            "metrics": self.metrics.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "suggested_fixes": self.suggested_fixes,
            "warnings": [w.to_dict() for w in self.warnings],
        }
