"""
Exception hierarchy for the solar validation engine.

Only registry and resolver misuse raises to callers. Failures inside a
validation run are converted into structured results by the orchestrator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from solar_validation.validation.models import ValidationResult


class SolarValidationError(Exception):
    """Base exception for validation engine errors."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ENGINE_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation engine error.

        Args:
            message: Error message.
            code: Machine-readable error code.
            details: Additional error details.
        """
        super().__init__(message)
        self.code = code
        self.details = details or {}


class DuplicateRuleError(SolarValidationError):
    """A rule with the same identifier is already registered."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(
            f"Validation rule '{rule_id}' is already registered",
            code="DUPLICATE_RULE",
            details={"rule_id": rule_id},
        )
        self.rule_id = rule_id


class CycleDetectedError(SolarValidationError):
    """Rule dependencies form a cycle."""

    def __init__(self, rule_id: str, cycle: list[str] | None = None) -> None:
        self.rule_id = rule_id
        self.cycle = cycle or [rule_id]
        super().__init__(
            f"Circular dependency detected in validation rules: {rule_id} "
            f"({' -> '.join(self.cycle)})",
            code="CYCLE_DETECTED",
            details={"rule_id": rule_id, "cycle": self.cycle},
        )


class SchemaNotFoundError(SolarValidationError):
    """A schema name has no registered definition."""

    def __init__(self, schema_name: str) -> None:
        super().__init__(
            f"Schema '{schema_name}' not found",
            code="SCHEMA_NOT_FOUND",
            details={"schema_name": schema_name},
        )
        self.schema_name = schema_name


class AuthenticationRequiredError(SolarValidationError):
    """An api_request payload carries no credential in its metadata."""

    def __init__(self) -> None:
        super().__init__("API authentication required", code="AUTHENTICATION_REQUIRED")


class InternalValidationError(SolarValidationError):
    """A validation run failed inside the engine rather than on the record."""

    def __init__(self, result: ValidationResult) -> None:
        issue = result.internal_error
        super().__init__(
            f"Validation run failed: {issue.message if issue else result.status.value}",
            code="VALIDATION_INTERNAL_ERROR",
            details={
                "request_id": result.request_id,
                "error_code": issue.code if issue else None,
            },
        )
        self.result = result


class RecordValidationError(SolarValidationError):
    """Raised by callers that want an exception for an invalid record."""

    def __init__(self, result: ValidationResult) -> None:
        messages = [issue.message for issue in result.iter_issues()]
        summary = ", ".join(messages[:5]) or result.status.value
        super().__init__(
            f"Record validation failed: {summary}",
            code="RECORD_INVALID",
            details={"request_id": result.request_id},
        )
        self.result = result
