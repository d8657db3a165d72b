"""
Core validation types.

Defines the enumerations shared across the validation stages, the
per-request ValidationContext handed to rule predicates, the RuleOutcome
returned by a predicate, and the ValidationRule capability with its
FunctionRule implementation.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class Severity(str, Enum):
    """Severity of a validation issue."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def is_blocking(self) -> bool:
        """Check if issues of this severity make a record invalid."""
        return self in (Severity.CRITICAL, Severity.ERROR)


class RuleCategory(str, Enum):
    """Category of a validation rule."""

    TYPE = "type"
    FORMAT = "format"
    BUSINESS = "business"
    INTEGRITY = "integrity"
    PERFORMANCE = "performance"
    SECURITY = "security"


class Operation(str, Enum):
    """Kind of operation the validated record takes part in."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    READ = "read"
    MIGRATION = "migration"
    BATCH = "batch"


class RequestContext(str, Enum):
    """Why a validation request is being made."""

    USER_INPUT = "user_input"
    API_REQUEST = "api_request"
    API_RESPONSE = "api_response"
    SYSTEM_INTERNAL = "system_internal"
    BATCH_PROCESSING = "batch_processing"
    REAL_TIME_MONITORING = "real_time_monitoring"
    DATA_MIGRATION = "data_migration"
    INTEGRATION_SYNC = "integration_sync"

    @property
    def default_operation(self) -> Operation:
        """Operation assumed for rule predicates when none is given."""
        if self == RequestContext.BATCH_PROCESSING:
            return Operation.BATCH
        if self == RequestContext.DATA_MIGRATION:
            return Operation.MIGRATION
        if self in (RequestContext.API_RESPONSE, RequestContext.REAL_TIME_MONITORING):
            return Operation.READ
        return Operation.CREATE


class RecordCategory(str, Enum):
    """Category of solar record under validation."""

    EQUIPMENT = "equipment"
    SYSTEM_CONFIG = "system_config"
    ENERGY_PRODUCTION = "energy_production"
    FINANCIAL = "financial"
    INSTALLATION = "installation"
    CUSTOMER = "customer"
    REAL_TIME = "real_time"
    INTEGRATION = "integration"


class ResultStatus(str, Enum):
    """Overall status of a validation result."""

    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    TIMEOUT = "timeout"
    CACHE_HIT = "cache_hit"


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """
    Per-request context handed to every rule predicate.

    Attributes:
        collection: Record collection or category name.
        operation: Operation the record takes part in.
        environment: Deployment environment tag.
        timestamp: When the request was received.
        actor_id: Identity of the user or service making the call.
        metadata: Opaque caller metadata.
    """

    collection: str
    operation: Operation = Operation.CREATE
    environment: str = "development"
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    actor_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class _NoFix:
    """Sentinel type for an outcome without a suggested fix."""

    _instance: _NoFix | None = None

    def __new__(cls) -> _NoFix:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_FIX"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _NoFix:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _NoFix:
        return self


NO_FIX: Any = _NoFix()


@dataclass(frozen=True, slots=True)
class RuleOutcome:
    """
    Outcome of evaluating a single rule predicate.

    Attributes:
        passed: Whether the record satisfied the rule.
        message: Optional explanation, mostly for failures.
        suggested_fix: Non-authoritative replacement value, NO_FIX if none.
        metadata: Extra details for audit.
    """

    passed: bool
    message: str | None = None
    suggested_fix: Any = NO_FIX
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def has_fix(self) -> bool:
        """Check if the outcome proposes a replacement value."""
        return self.suggested_fix is not NO_FIX

    @classmethod
    def ok(cls) -> RuleOutcome:
        """Build a passing outcome."""
        return cls(passed=True)

    @classmethod
    def fail(cls, message: str, suggested_fix: Any = NO_FIX, **metadata: Any) -> RuleOutcome:
        """Build a failing outcome."""
        return cls(passed=False, message=message, suggested_fix=suggested_fix, metadata=metadata)

    @classmethod
    def coerce(cls, value: RuleOutcome | bool | None) -> RuleOutcome:
        """Normalise a predicate return value into a RuleOutcome."""
        if isinstance(value, RuleOutcome):
            return value
        if value is None:
            return cls.ok()
        return cls(passed=bool(value))


Predicate = Callable[[Any, Any, ValidationContext], "RuleOutcome | bool | Awaitable[RuleOutcome | bool]"]


@runtime_checkable
class ValidationRule(Protocol):
    """
    Capability implemented by every validation rule.

    A rule is identified by ``rule_id``, targets ``field`` (a dotted path,
    or ``"*"``/``None`` for the whole record) and only runs after the rules
    named in ``dependencies`` have passed.
    """

    rule_id: str
    name: str
    description: str
    field: str | None
    severity: Severity
    category: RuleCategory
    dependencies: frozenset[str]

    def validate(
        self,
        value: Any,
        record: Any,
        context: ValidationContext,
    ) -> RuleOutcome | bool | Awaitable[RuleOutcome | bool]: ...


@dataclass(frozen=True, slots=True)
class FunctionRule:
    """
    Validation rule backed by a predicate callable.

    The predicate receives ``(value, record, context)`` and may be a plain
    function or a coroutine function.
    """

    rule_id: str
    predicate: Predicate = field(repr=False, compare=False)
    name: str = ""
    description: str = ""
    field: str | None = None
    severity: Severity = Severity.ERROR
    category: RuleCategory = RuleCategory.BUSINESS
    dependencies: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not self.rule_id:
            raise ValueError("Rule id is required")
        if not callable(self.predicate):
            raise TypeError(f"Predicate for rule '{self.rule_id}' is not callable")
        if not self.name:
            object.__setattr__(self, "name", self.rule_id.replace("_", " ").title())
        object.__setattr__(self, "severity", Severity(self.severity))
        object.__setattr__(self, "category", RuleCategory(self.category))
        object.__setattr__(self, "dependencies", frozenset(self.dependencies))

    @property
    def is_async(self) -> bool:
        """Check if the predicate is a coroutine function."""
        return inspect.iscoroutinefunction(self.predicate)

    @property
    def targets_whole_record(self) -> bool:
        """Check if the rule receives the whole record as its value."""
        return self.field in (None, "*")

    def validate(
        self,
        value: Any,
        record: Any,
        context: ValidationContext,
    ) -> RuleOutcome | bool | Awaitable[RuleOutcome | bool]:
        return self.predicate(value, record, context)

    def describe(self) -> dict[str, Any]:
        """Serialisable description of the rule for audit trails."""
        return {
            "rule_id": self.rule_id,
            "name": self.name,
            "description": self.description,
            "field": self.field,
            "severity": self.severity.value,
            "category": self.category.value,
            "dependencies": sorted(self.dependencies),
            "async": self.is_async,
        }


def rule(
    rule_id: str,
    *,
    name: str = "",
    description: str = "",
    field: str | None = None,
    severity: Severity = Severity.ERROR,
    category: RuleCategory = RuleCategory.BUSINESS,
    dependencies: frozenset[str] | set[str] | list[str] = frozenset(),
) -> Callable[[Predicate], FunctionRule]:
    """
    Decorator turning a predicate function into a FunctionRule.

    Example:
        @rule("positive_power", field="power_rating")
        def positive_power(value, record, context):
            return value > 0
    """

    def decorator(predicate: Predicate) -> FunctionRule:
        return FunctionRule(
            rule_id=rule_id,
            predicate=predicate,
            name=name,
            description=description or (predicate.__doc__ or "").strip(),
            field=field,
            severity=severity,
            category=category,
            dependencies=frozenset(dependencies),
        )

    return decorator
