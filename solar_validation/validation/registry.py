"""
Rule registry.

Pure storage and indexing of validation rules: lookup by identifier,
category, or target field. No validation logic lives here.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator

from solar_validation.config import get_logger
from solar_validation.exceptions import DuplicateRuleError
from solar_validation.validation.types import RuleCategory, ValidationRule


logger = get_logger(__name__)

WILDCARD_FIELD = "*"


class RuleRegistry:
    """
    Append-only store of validation rules keyed by identifier.

    Rules are immutable once registered and a duplicate identifier is
    always rejected. Writes happen at startup, so only registration takes
    the lock; lookups read the dictionaries directly.

    Example:
        registry = RuleRegistry.with_builtin_rules()
        registry.register(my_rule)
        rules = registry.for_field("efficiency")
    """

    def __init__(self, rules: Iterable[ValidationRule] | None = None) -> None:
        """
        Initialize the registry.

        Args:
            rules: Rules to register immediately.
        """
        self._rules: dict[str, ValidationRule] = {}
        self._by_category: dict[RuleCategory, list[ValidationRule]] = {}
        self._lock = threading.Lock()

        if rules:
            self.register_many(rules)

    @classmethod
    def with_builtin_rules(cls) -> RuleRegistry:
        """Create a registry preloaded with the built-in rule catalog."""
        from solar_validation.validation.builtin_rules import builtin_rules

        return cls(builtin_rules())

    def register(self, rule: ValidationRule) -> None:
        """
        Register a rule.

        Args:
            rule: Rule to add.

        Raises:
            DuplicateRuleError: If the identifier is already registered.
            TypeError: If the object does not implement ValidationRule.
        """
        if not isinstance(rule, ValidationRule):
            raise TypeError(f"Object {rule!r} does not implement ValidationRule")

        with self._lock:
            if rule.rule_id in self._rules:
                raise DuplicateRuleError(rule.rule_id)
            self._rules[rule.rule_id] = rule
            self._by_category.setdefault(RuleCategory(rule.category), []).append(rule)

        logger.debug("rule_registered", rule_id=rule.rule_id, category=RuleCategory(rule.category).value)

    def register_many(self, rules: Iterable[ValidationRule]) -> None:
        """Register several rules in order."""
        for rule in rules:
            self.register(rule)

    def get(self, rule_id: str) -> ValidationRule | None:
        """Get a rule by identifier."""
        return self._rules.get(rule_id)

    def all(self) -> list[ValidationRule]:
        """Get all rules in registration order."""
        return list(self._rules.values())

    def by_category(self, category: RuleCategory | str) -> list[ValidationRule]:
        """Get rules of one category in registration order."""
        return list(self._by_category.get(RuleCategory(category), []))

    def for_field(self, field_path: str) -> list[ValidationRule]:
        """Get rules targeting a field path, including whole-record rules."""
        return [rule for rule in self._rules.values() if rule.field in (field_path, WILDCARD_FIELD, None)]

    def ids(self) -> list[str]:
        """Get registered rule identifiers."""
        return list(self._rules)

    def clear(self) -> None:
        """Remove every rule (for testing)."""
        with self._lock:
            self._rules.clear()
            self._by_category.clear()

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[ValidationRule]:
        return iter(self.all())
