"""
Cross-field validation for solar records.

Implements validation logic that checks relationships between multiple fields:
- Electrical compatibility (string voltage inside the inverter DC window)
- Size consistency (panel count x wattage matches declared system size)
- Sum validation (cost components and line items equal the total)
- Value ranges (specific yield within a plausible band)
- Required dependencies and mutual exclusivity
- Date ordering

These rules catch logical inconsistencies that single-field validation cannot
detect. Every rule is addressed by name; requests list the names they want.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from solar_validation.config import get_logger
from solar_validation.utils.date_utils import parse_timestamp
from solar_validation.utils.record_utils import get_path, is_empty, to_float
from solar_validation.validation.models import CrossValidationResult
from solar_validation.validation.types import Severity


logger = get_logger(__name__)


class RuleType(str, Enum):
    """Types of cross-field validation rules."""

    DATE_ORDER = "date_order"
    SUM_VALIDATION = "sum_validation"
    NESTED_SUM_VALIDATION = "nested_sum_validation"
    REQUIRED_IF = "required_if"
    MUTUAL_EXCLUSIVE = "mutual_exclusive"
    VALUE_RANGE = "value_range"
    CUSTOM = "custom"


@dataclass(frozen=True, slots=True)
class RuleViolation:
    """
    A violation of a cross-field validation rule.

    Attributes:
        rule_name: Name identifying the rule.
        rule_type: Type of rule violated.
        severity: Severity of the violation.
        fields: Fields involved in the violation.
        message: Human-readable description.
        expected: Expected relationship or value.
        actual: Actual values found.
    """

    rule_name: str
    rule_type: RuleType
    severity: Severity
    fields: tuple[str, ...]
    message: str
    expected: str = ""
    actual: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "rule_name": self.rule_name,
            "rule_type": self.rule_type.value,
            "severity": self.severity.value,
            "fields": list(self.fields),
            "message": self.message,
            "expected": self.expected,
            "actual": self.actual,
        }


CheckOutcome = bool | RuleViolation | None
CrossCheck = Callable[[Any], "CheckOutcome | Awaitable[CheckOutcome]"]


@dataclass
class CrossFieldRule:
    """
    Definition of a declarative cross-field validation rule.

    Attributes:
        name: Unique identifier for the rule.
        rule_type: Type of validation to perform.
        fields: Fields involved in the rule (dotted paths).
        severity: Severity if rule is violated.
        params: Additional parameters for the rule.
        message_template: Template for violation message.
        enabled: Whether rule is active.
    """

    name: str
    rule_type: RuleType
    fields: list[str]
    severity: Severity = Severity.ERROR
    params: dict[str, Any] = field(default_factory=dict)
    message_template: str = ""
    enabled: bool = True


# =============================================================================
# Named solar checks
# =============================================================================


SYSTEM_SIZE_TOLERANCE = 0.1
FINANCIAL_TOLERANCE_USD = 100.0
SPECIFIC_YIELD_RANGE = (800.0, 2500.0)


def check_panel_inverter_compatibility(data: Any) -> RuleViolation | None:
    """String voltage must fall inside the inverter's DC input window."""
    panel_voltage = to_float(get_path(data, "panels.0.stc.voltage"))
    per_string = to_float(get_path(data, "panels_per_string")) or 1.0
    v_min = to_float(get_path(data, "inverter.dc_input.voltage_range.min"))
    v_max = to_float(get_path(data, "inverter.dc_input.voltage_range.max"))

    if not panel_voltage or not v_min or not v_max:
        return None

    string_voltage = panel_voltage * per_string
    if v_min <= string_voltage <= v_max:
        return None

    return RuleViolation(
        rule_name="panel_inverter_compatibility",
        rule_type=RuleType.CUSTOM,
        severity=Severity.ERROR,
        fields=("panels.0.stc.voltage", "panels_per_string", "inverter.dc_input.voltage_range"),
        message=(
            f"String voltage {string_voltage:.1f}V is outside the inverter "
            f"DC input range {v_min:.0f}-{v_max:.0f}V"
        ),
        expected=f"{v_min:.0f}V <= string voltage <= {v_max:.0f}V",
        actual=f"{string_voltage:.1f}V",
    )


def check_system_size_consistency(data: Any) -> RuleViolation | None:
    """Panel count times panel wattage must be within 10% of the system size."""
    system_size = to_float(get_path(data, "system_size"))
    panel_count = to_float(get_path(data, "panel_count"))
    panel_wattage = to_float(get_path(data, "panel_wattage"))

    if not system_size or not panel_count or not panel_wattage:
        return None

    calculated = panel_count * panel_wattage / 1000
    if abs(calculated - system_size) / system_size <= SYSTEM_SIZE_TOLERANCE:
        return None

    return RuleViolation(
        rule_name="system_size_consistency",
        rule_type=RuleType.CUSTOM,
        severity=Severity.ERROR,
        fields=("system_size", "panel_count", "panel_wattage"),
        message=(
            f"Calculated system size {calculated:.2f}kW differs from declared "
            f"{system_size:.2f}kW by more than {SYSTEM_SIZE_TOLERANCE:.0%}"
        ),
        expected=f"{system_size:.2f}kW",
        actual=f"{calculated:.2f}kW",
    )


def check_financial_calculation_accuracy(data: Any) -> RuleViolation | None:
    """Equipment plus installation cost must match the total within $100."""
    total = to_float(get_path(data, "total_cost"))
    equipment = to_float(get_path(data, "equipment_cost"))
    installation = to_float(get_path(data, "installation_cost"))

    if not total or not equipment or not installation:
        return None

    calculated = equipment + installation
    if abs(calculated - total) <= FINANCIAL_TOLERANCE_USD:
        return None

    return RuleViolation(
        rule_name="financial_calculation_accuracy",
        rule_type=RuleType.SUM_VALIDATION,
        severity=Severity.ERROR,
        fields=("equipment_cost", "installation_cost", "total_cost"),
        message=(
            f"Equipment and installation costs (${calculated:,.2f}) do not match "
            f"total cost (${total:,.2f})"
        ),
        expected=f"${total:,.2f} +/- ${FINANCIAL_TOLERANCE_USD:,.0f}",
        actual=f"${calculated:,.2f}",
    )


def check_production_estimate_reasonableness(data: Any) -> RuleViolation | None:
    """Specific yield must fall within 800-2500 kWh/kW/yr when a solar resource is given."""
    annual = to_float(get_path(data, "annual_production"))
    system_size = to_float(get_path(data, "system_size"))
    solar_resource = get_path(data, "solar_resource")

    if not annual or not system_size or is_empty(solar_resource):
        return None

    specific_yield = annual / system_size
    low, high = SPECIFIC_YIELD_RANGE
    if low <= specific_yield <= high:
        return None

    return RuleViolation(
        rule_name="production_estimate_reasonableness",
        rule_type=RuleType.VALUE_RANGE,
        severity=Severity.ERROR,
        fields=("annual_production", "system_size"),
        message=(
            f"Specific yield {specific_yield:.0f} kWh/kW/yr is outside the "
            f"expected range {low:.0f}-{high:.0f}"
        ),
        expected=f"{low:.0f}-{high:.0f} kWh/kW/yr",
        actual=f"{specific_yield:.0f} kWh/kW/yr",
    )


SOLAR_CROSS_CHECKS: dict[str, CrossCheck] = {
    "panel_inverter_compatibility": check_panel_inverter_compatibility,
    "system_size_consistency": check_system_size_consistency,
    "financial_calculation_accuracy": check_financial_calculation_accuracy,
    "production_estimate_reasonableness": check_production_estimate_reasonableness,
}


# =============================================================================
# Engine
# =============================================================================


class CrossValidationEngine:
    """
    Runs named cross-field validation rules.

    Named checks are plain callables taking the payload and returning
    ``True``/``None`` (pass), ``False`` or a RuleViolation (fail), or an
    awaitable of those. Declarative CrossFieldRule definitions are
    registered under their name and evaluated by the generic checkers.

    Example:
        engine = CrossValidationEngine()
        engine.add_sum_rule("cost_total", ["equipment_cost", "installation_cost"], "total_cost")
        results = await engine.run(["cost_total", "system_size_consistency"], payload)

        for result in results:
            if not result.valid:
                print(result.details)
    """

    def __init__(
        self,
        rules: Iterable[CrossFieldRule] | None = None,
        strict_unknown: bool = False,
        include_solar_rules: bool = True,
    ) -> None:
        """
        Initialize the engine.

        Args:
            rules: Declarative rules to register.
            strict_unknown: Fail rule names that are not registered.
            include_solar_rules: Seed the named solar checks.
        """
        self.strict_unknown = strict_unknown
        self._checks: dict[str, CrossCheck] = {}
        self._rules: dict[str, CrossFieldRule] = {}

        if include_solar_rules:
            for name, check in SOLAR_CROSS_CHECKS.items():
                self.register(name, check)
            self.add_nested_sum_rule(
                "itemized_cost_total",
                array_field="line_items",
                item_field="amount",
                total_field="total_cost",
            )

        for rule in rules or []:
            self.add_rule(rule)

    def register(self, name: str, check: CrossCheck) -> None:
        """
        Register a named check, replacing any existing one.

        Args:
            name: Rule name used in requests.
            check: Callable taking the payload.
        """
        if not callable(check):
            raise TypeError(f"Cross-validation check '{name}' is not callable")
        if name in self._checks:
            logger.info("cross_rule_replaced", rule_name=name)
        self._checks[name] = check
        self._rules.pop(name, None)

    def add_rule(self, rule: CrossFieldRule) -> None:
        """Register a declarative rule under its name."""
        self.register(rule.name, lambda data, _rule=rule: self.check_rule(_rule, data))
        self._rules[rule.name] = rule

    def add_date_order_rule(
        self,
        name: str,
        earlier_field: str,
        later_field: str,
        allow_equal: bool = True,
        severity: Severity = Severity.ERROR,
    ) -> None:
        """
        Add a rule requiring one date to be before another.

        Args:
            name: Rule identifier.
            earlier_field: Field that should contain earlier date.
            later_field: Field that should contain later date.
            allow_equal: Whether dates can be equal.
            severity: Severity of violation.
        """
        self.add_rule(
            CrossFieldRule(
                name=name,
                rule_type=RuleType.DATE_ORDER,
                fields=[earlier_field, later_field],
                severity=severity,
                params={"allow_equal": allow_equal},
            )
        )

    def add_sum_rule(
        self,
        name: str,
        component_fields: list[str],
        total_field: str,
        tolerance: float = 0.01,
        severity: Severity = Severity.ERROR,
    ) -> None:
        """
        Add a rule requiring component fields to sum to total.

        Args:
            name: Rule identifier.
            component_fields: Fields that should sum together.
            total_field: Field containing expected total.
            tolerance: Allowed absolute difference.
            severity: Severity of violation.
        """
        self.add_rule(
            CrossFieldRule(
                name=name,
                rule_type=RuleType.SUM_VALIDATION,
                fields=component_fields + [total_field],
                severity=severity,
                params={
                    "component_fields": component_fields,
                    "total_field": total_field,
                    "tolerance": tolerance,
                },
            )
        )

    def add_nested_sum_rule(
        self,
        name: str,
        array_field: str,
        item_field: str,
        total_field: str,
        tolerance: float = 0.01,
        severity: Severity = Severity.ERROR,
    ) -> None:
        """
        Add a rule requiring the sum of a field across array items to equal a total.

        Use this for line items, e.g. sum of ``line_items[].amount`` should
        equal ``total_cost``.

        Args:
            name: Rule identifier.
            array_field: Name of the array field (e.g., "line_items").
            item_field: Field within each array item to sum (e.g., "amount").
            total_field: Field containing expected total.
            tolerance: Allowed absolute difference.
            severity: Severity of violation.
        """
        self.add_rule(
            CrossFieldRule(
                name=name,
                rule_type=RuleType.NESTED_SUM_VALIDATION,
                fields=[array_field, total_field],
                severity=severity,
                params={
                    "array_field": array_field,
                    "item_field": item_field,
                    "total_field": total_field,
                    "tolerance": tolerance,
                },
            )
        )

    def add_required_if_rule(
        self,
        name: str,
        trigger_field: str,
        required_field: str,
        trigger_values: list[Any] | None = None,
        severity: Severity = Severity.ERROR,
    ) -> None:
        """
        Add a rule requiring field B if field A has a specific value.

        Args:
            name: Rule identifier.
            trigger_field: Field that triggers the requirement.
            required_field: Field that becomes required.
            trigger_values: Values that trigger requirement (any non-empty if None).
            severity: Severity of violation.
        """
        self.add_rule(
            CrossFieldRule(
                name=name,
                rule_type=RuleType.REQUIRED_IF,
                fields=[trigger_field, required_field],
                severity=severity,
                params={
                    "trigger_field": trigger_field,
                    "required_field": required_field,
                    "trigger_values": trigger_values,
                },
            )
        )

    def add_mutual_exclusive_rule(
        self,
        name: str,
        field_a: str,
        field_b: str,
        severity: Severity = Severity.ERROR,
    ) -> None:
        """Add a rule that only one of two fields can have a value."""
        self.add_rule(
            CrossFieldRule(
                name=name,
                rule_type=RuleType.MUTUAL_EXCLUSIVE,
                fields=[field_a, field_b],
                severity=severity,
            )
        )

    def add_value_range_rule(
        self,
        name: str,
        value_field: str,
        min_field: str | None = None,
        max_field: str | None = None,
        min_value: float | None = None,
        max_value: float | None = None,
        severity: Severity = Severity.ERROR,
    ) -> None:
        """
        Add a rule requiring a value to be within a range.

        Bounds come from other fields, static values, or both (the tighter
        bound applies).

        Args:
            name: Rule identifier.
            value_field: Field to check.
            min_field: Field containing minimum (optional).
            max_field: Field containing maximum (optional).
            min_value: Static minimum value (optional).
            max_value: Static maximum value (optional).
            severity: Severity of violation.
        """
        fields = [value_field] + [f for f in (min_field, max_field) if f]
        self.add_rule(
            CrossFieldRule(
                name=name,
                rule_type=RuleType.VALUE_RANGE,
                fields=fields,
                severity=severity,
                params={
                    "value_field": value_field,
                    "min_field": min_field,
                    "max_field": max_field,
                    "min_value": min_value,
                    "max_value": max_value,
                },
            )
        )

    def add_custom_rule(
        self,
        name: str,
        fields: list[str],
        validator: Callable[[Any, CrossFieldRule], RuleViolation | None],
        severity: Severity = Severity.ERROR,
    ) -> None:
        """
        Add a custom declarative rule.

        Args:
            name: Rule identifier.
            fields: Fields involved in validation.
            validator: Function receiving (payload, rule), returning a violation or None.
            severity: Severity of violation.
        """
        self.add_rule(
            CrossFieldRule(
                name=name,
                rule_type=RuleType.CUSTOM,
                fields=fields,
                severity=severity,
                params={"validator": validator},
            )
        )

    def names(self) -> list[str]:
        """Get registered rule names."""
        return list(self._checks)

    def has(self, name: str) -> bool:
        """Check if a rule name is registered."""
        return name in self._checks

    def get_rule(self, name: str) -> CrossFieldRule | None:
        """Get the declarative definition behind a name, if any."""
        return self._rules.get(name)

    async def run(self, names: Iterable[str], payload: Any) -> list[CrossValidationResult]:
        """
        Run named rules against a payload.

        Args:
            names: Rule names in request order.
            payload: Record under validation.

        Returns:
            One CrossValidationResult per name, in the same order.
        """
        results = [await self.run_one(name, payload) for name in names]

        logger.debug(
            "cross_validation_complete",
            rules_checked=len(results),
            rules_failed=sum(1 for r in results if not r.valid),
        )
        return results

    async def run_one(self, name: str, payload: Any) -> CrossValidationResult:
        """Run a single named rule."""
        check = self._checks.get(name)
        if check is None:
            logger.warning("cross_rule_unknown", rule_name=name, strict=self.strict_unknown)
            if self.strict_unknown:
                return CrossValidationResult(
                    rule_name=name,
                    valid=False,
                    details="Unknown cross-validation rule",
                    known=False,
                )
            return CrossValidationResult(rule_name=name, valid=True, known=False)

        try:
            outcome = check(payload)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as e:
            logger.warning("cross_rule_error", rule_name=name, error=str(e))
            return CrossValidationResult(
                rule_name=name,
                valid=False,
                details=f"Cross-validation failed: {e}",
            )

        if isinstance(outcome, RuleViolation):
            return CrossValidationResult(
                rule_name=name,
                valid=not outcome.severity.is_blocking,
                details=outcome.message,
            )
        if outcome is None or outcome is True:
            return CrossValidationResult(rule_name=name, valid=True)
        if outcome is False:
            return CrossValidationResult(
                rule_name=name,
                valid=False,
                details=f"Cross-validation rule '{name}' failed",
            )
        return CrossValidationResult(rule_name=name, valid=bool(outcome))

    def check_rule(self, rule: CrossFieldRule, data: Any) -> RuleViolation | None:
        """
        Check a single declarative rule against the data.

        Args:
            rule: Rule to check.
            data: Data to validate.

        Returns:
            RuleViolation if rule is violated, None otherwise.
        """
        if not rule.enabled:
            return None

        checkers = {
            RuleType.DATE_ORDER: self._check_date_order,
            RuleType.SUM_VALIDATION: self._check_sum,
            RuleType.NESTED_SUM_VALIDATION: self._check_nested_sum,
            RuleType.REQUIRED_IF: self._check_required_if,
            RuleType.MUTUAL_EXCLUSIVE: self._check_mutual_exclusive,
            RuleType.VALUE_RANGE: self._check_value_range,
            RuleType.CUSTOM: self._check_custom,
        }

        checker = checkers.get(rule.rule_type)
        if checker:
            return checker(rule, data)

        return None

    def _violation(self, rule: CrossFieldRule, message: str, expected: str = "", actual: str = "") -> RuleViolation:
        return RuleViolation(
            rule_name=rule.name,
            rule_type=rule.rule_type,
            severity=Severity(rule.severity),
            fields=tuple(rule.fields),
            message=rule.message_template or message,
            expected=expected,
            actual=actual,
        )

    def _check_date_order(self, rule: CrossFieldRule, data: Any) -> RuleViolation | None:
        """Check date ordering rule."""
        if len(rule.fields) < 2:
            return None

        earlier_field, later_field = rule.fields[0], rule.fields[1]
        allow_equal = rule.params.get("allow_equal", True)

        earlier = parse_timestamp(get_path(data, earlier_field))
        later = parse_timestamp(get_path(data, later_field))

        # Skip if either is missing or unparseable
        if earlier is None or later is None:
            return None

        is_valid = earlier <= later if allow_equal else earlier < later
        if is_valid:
            return None

        return self._violation(
            rule,
            f"{earlier_field} ({earlier.isoformat()}) must be before {later_field} ({later.isoformat()})",
            expected=f"{earlier_field} <= {later_field}" if allow_equal else f"{earlier_field} < {later_field}",
            actual=f"{earlier.isoformat()} vs {later.isoformat()}",
        )

    def _check_sum(self, rule: CrossFieldRule, data: Any) -> RuleViolation | None:
        """Check sum validation rule."""
        component_fields = rule.params.get("component_fields", [])
        total_field = rule.params.get("total_field")
        tolerance = rule.params.get("tolerance", 0.01)

        if not component_fields or not total_field:
            return None

        total = to_float(get_path(data, total_field))
        if total is None:
            return None

        component_sum = sum(
            value
            for value in (to_float(get_path(data, f)) for f in component_fields)
            if value is not None
        )

        if abs(component_sum - total) <= tolerance:
            return None

        return self._violation(
            rule,
            f"Sum of {', '.join(component_fields)} ({component_sum:.2f}) does not equal "
            f"{total_field} ({total:.2f})",
            expected=f"Sum = {total:.2f}",
            actual=f"Sum = {component_sum:.2f}",
        )

    def _check_nested_sum(self, rule: CrossFieldRule, data: Any) -> RuleViolation | None:
        """Sum a field across all items of an array and compare to a total field."""
        array_field = rule.params.get("array_field")
        item_field = rule.params.get("item_field")
        total_field = rule.params.get("total_field")
        tolerance = rule.params.get("tolerance", 0.01)

        if not array_field or not item_field or not total_field:
            return None

        total = to_float(get_path(data, total_field))
        if total is None:
            return None

        items = get_path(data, array_field)
        if not items or not isinstance(items, list):
            return None

        values = [to_float(get_path(item, item_field)) for item in items if isinstance(item, dict)]
        values = [v for v in values if v is not None]
        if not values:
            return None

        item_sum = sum(values)
        if abs(item_sum - total) <= tolerance:
            return None

        return self._violation(
            rule,
            f"Sum of {array_field}[].{item_field} ({item_sum:.2f}) does not equal "
            f"{total_field} ({total:.2f})",
            expected=f"Sum = {total:.2f}",
            actual=f"Sum = {item_sum:.2f} ({len(values)} items)",
        )

    def _check_required_if(self, rule: CrossFieldRule, data: Any) -> RuleViolation | None:
        """Check required-if rule."""
        trigger_field = rule.params.get("trigger_field")
        required_field = rule.params.get("required_field")
        trigger_values = rule.params.get("trigger_values")

        if not trigger_field or not required_field:
            return None

        trigger_val = get_path(data, trigger_field)
        if trigger_values is not None:
            trigger_met = trigger_val in trigger_values
        else:
            trigger_met = not is_empty(trigger_val)

        if trigger_met and is_empty(get_path(data, required_field)):
            return self._violation(
                rule,
                f"{required_field} is required when {trigger_field} is present",
                expected=f"{required_field} should have a value",
                actual=f"{required_field} is empty",
            )

        return None

    def _check_mutual_exclusive(self, rule: CrossFieldRule, data: Any) -> RuleViolation | None:
        """Check mutual exclusivity rule."""
        if len(rule.fields) < 2:
            return None

        field_a, field_b = rule.fields[0], rule.fields[1]
        if not is_empty(get_path(data, field_a)) and not is_empty(get_path(data, field_b)):
            return self._violation(
                rule,
                f"Only one of {field_a} or {field_b} can have a value",
                expected="At most one value",
                actual="Both fields have values",
            )

        return None

    def _check_value_range(self, rule: CrossFieldRule, data: Any) -> RuleViolation | None:
        """Check value range rule."""
        value_field = rule.params.get("value_field")
        value = to_float(get_path(data, value_field))
        if value is None:
            return None

        bounds_min = [
            b
            for b in (
                rule.params.get("min_value"),
                to_float(get_path(data, rule.params["min_field"])) if rule.params.get("min_field") else None,
            )
            if b is not None
        ]
        bounds_max = [
            b
            for b in (
                rule.params.get("max_value"),
                to_float(get_path(data, rule.params["max_field"])) if rule.params.get("max_field") else None,
            )
            if b is not None
        ]
        low = max(bounds_min) if bounds_min else None
        high = min(bounds_max) if bounds_max else None

        if (low is not None and value < low) or (high is not None and value > high):
            return self._violation(
                rule,
                f"{value_field} ({value}) must be within [{low}, {high}]",
                expected=f"[{low}, {high}]",
                actual=str(value),
            )

        return None

    def _check_custom(self, rule: CrossFieldRule, data: Any) -> RuleViolation | None:
        """Check custom rule using its registered validator."""
        validator = rule.params.get("validator")
        if validator is None:
            return None
        return validator(data, rule)
