"""
Solar Record Validation Engine.

Validates solar-industry records (equipment specs, system configurations,
energy production, financials, customer contacts and real-time sensor
readings) through a staged pipeline: schema validation, dependency-ordered
custom rules and named cross-field consistency checks, with result caching
and Prometheus metrics.

Usage:
    from solar_validation import ValidationOrchestrator, ValidationRequest

    orchestrator = ValidationOrchestrator()
    result = await orchestrator.validate(
        ValidationRequest.create(record, context="user_input", category="equipment",
                                 schemas=["solar_panel_spec"])
    )
"""

from importlib.metadata import PackageNotFoundError, version

from solar_validation.config import get_logger, get_settings
from solar_validation.exceptions import (
    AuthenticationRequiredError,
    CycleDetectedError,
    DuplicateRuleError,
    InternalValidationError,
    RecordValidationError,
    SchemaNotFoundError,
    SolarValidationError,
)
from solar_validation.schemas import SchemaDefinition, SchemaRegistry
from solar_validation.validation import (
    FunctionRule,
    RecordCategory,
    RequestContext,
    ResultStatus,
    RuleOutcome,
    RuleRegistry,
    Severity,
    ValidationContext,
    ValidationOrchestrator,
    ValidationRequest,
    ValidationResult,
    ValidationRule,
    rule,
)


try:
    __version__ = version("solar-validation")
except PackageNotFoundError:
    __version__ = "1.0.0"

__all__ = [
    # Package info
    "__version__",
    # Configuration
    "get_settings",
    "get_logger",
    # Errors
    "SolarValidationError",
    "DuplicateRuleError",
    "CycleDetectedError",
    "SchemaNotFoundError",
    "AuthenticationRequiredError",
    "InternalValidationError",
    "RecordValidationError",
    # Schemas
    "SchemaDefinition",
    "SchemaRegistry",
    # Validation
    "FunctionRule",
    "RecordCategory",
    "RequestContext",
    "ResultStatus",
    "RuleOutcome",
    "RuleRegistry",
    "Severity",
    "ValidationContext",
    "ValidationOrchestrator",
    "ValidationRequest",
    "ValidationResult",
    "ValidationRule",
    "rule",
]
