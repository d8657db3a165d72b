"""
Schema validation stage.

Validates a payload against named Pydantic schemas and converts each
pydantic error into a ValidationIssue whose severity depends on the
request context.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from solar_validation.config import get_logger
from solar_validation.schemas.registry import SchemaRegistry
from solar_validation.validation.models import SchemaResult, ValidationIssue
from solar_validation.validation.types import RequestContext, Severity


logger = get_logger(__name__)

# Contexts where any schema violation is treated as critical
CRITICAL_CONTEXTS = frozenset({RequestContext.API_REQUEST, RequestContext.SYSTEM_INTERNAL})

# Error types reported as warnings that do not fail the schema; opt-in
ADVISORY_CODES: frozenset[str] = frozenset()


class SchemaValidator:
    """
    Validates payloads against registered schemas.

    Example:
        validator = SchemaValidator(SchemaRegistry.with_builtin_schemas())
        result = validator.validate("contact_form", payload, RequestContext.USER_INPUT)
        if not result.valid:
            for issue in result.errors:
                print(issue.path, issue.message)
    """

    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        advisory_codes: Iterable[str] = ADVISORY_CODES,
    ) -> None:
        """
        Initialize the schema validator.

        Args:
            registry: Schema registry, defaults to the built-in schemas.
            advisory_codes: Error types downgraded to warnings.
        """
        self.registry = registry if registry is not None else SchemaRegistry.with_builtin_schemas()
        self.advisory_codes = frozenset(advisory_codes)

    def severity_for(self, code: str, context: RequestContext | str) -> Severity:
        """
        Map an error code to a severity for the given request context.

        Args:
            code: Pydantic error type or engine error code.
            context: Request context.

        Returns:
            Severity of the issue.
        """
        if RequestContext(context) in CRITICAL_CONTEXTS:
            return Severity.CRITICAL
        if code in self.advisory_codes:
            return Severity.WARNING
        return Severity.ERROR

    def validate(
        self,
        schema_name: str,
        payload: Any,
        context: RequestContext | str = RequestContext.USER_INPUT,
        *,
        strict: bool = False,
        max_errors: int = 100,
    ) -> SchemaResult:
        """
        Validate a payload against one schema.

        Args:
            schema_name: Registered schema name.
            payload: Record under validation.
            context: Request context, drives severities.
            strict: Run pydantic in strict mode (no type coercion).
            max_errors: Maximum number of issues reported.

        Returns:
            SchemaResult with errors and warnings.
        """
        definition = self.registry.get(schema_name)
        if definition is None:
            logger.warning("schema_not_found", schema_name=schema_name)
            return SchemaResult(
                schema_name=schema_name,
                valid=False,
                errors=[
                    ValidationIssue(
                        path=(),
                        message=f"Schema '{schema_name}' not found",
                        code="SCHEMA_NOT_FOUND",
                        severity=Severity.ERROR,
                    )
                ],
            )

        try:
            definition.model.model_validate(payload, strict=strict)
        except ValidationError as e:
            return self._from_pydantic(schema_name, e, context, max_errors)
        except Exception as e:
            logger.error(
                "schema_validation_exception",
                schema_name=schema_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SchemaResult(
                schema_name=schema_name,
                valid=False,
                errors=[
                    ValidationIssue(
                        path=(),
                        message=f"Schema validation failed: {e}",
                        code="VALIDATION_ERROR",
                        severity=self.severity_for("VALIDATION_ERROR", context),
                    )
                ],
            )

        return SchemaResult(schema_name=schema_name, valid=True)

    def validate_many(
        self,
        schema_names: Iterable[str],
        payload: Any,
        context: RequestContext | str = RequestContext.USER_INPUT,
        *,
        strict: bool = False,
        max_errors: int = 100,
    ) -> list[SchemaResult]:
        """Validate a payload against several schemas independently."""
        return [
            self.validate(name, payload, context, strict=strict, max_errors=max_errors)
            for name in schema_names
        ]

    def _from_pydantic(
        self,
        schema_name: str,
        error: ValidationError,
        context: RequestContext | str,
        max_errors: int,
    ) -> SchemaResult:
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        for detail in error.errors()[:max_errors]:
            code = detail.get("type", "value_error")
            issue = ValidationIssue(
                path=tuple(detail.get("loc", ())),
                message=detail.get("msg", "Invalid value"),
                code=code,
                severity=self.severity_for(code, context),
            )
            if issue.severity.is_blocking:
                errors.append(issue)
            else:
                warnings.append(issue)

        logger.debug(
            "schema_validation_failed",
            schema_name=schema_name,
            error_count=len(errors),
            warning_count=len(warnings),
        )

        return SchemaResult(
            schema_name=schema_name,
            valid=not errors,
            errors=errors,
            warnings=warnings,
        )
