"""
Dependency resolver for validation rules.

Orders a rule set so that every rule comes after the rules named in its
``dependencies``. Uses a depth-first traversal with a "visiting" set for
cycle detection and a "visited" set for completed nodes, driven by an
explicit stack so large rule graphs do not hit the recursion limit.
"""

from __future__ import annotations

from collections.abc import Sequence

from solar_validation.config import get_logger
from solar_validation.exceptions import CycleDetectedError
from solar_validation.validation.types import ValidationRule


logger = get_logger(__name__)


class DependencyResolver:
    """
    Resolves a linear execution order for a list of rules.

    Dependencies that are not part of the input list are ignored, so a
    rule whose prerequisite is absent is immediately eligible. Among
    independent rules the input order is preserved. When an identifier
    appears more than once, the first occurrence wins.
    """

    def resolve(self, rules: Sequence[ValidationRule]) -> list[ValidationRule]:
        """
        Order rules so dependencies come first.

        Args:
            rules: Rules to execute for one request.

        Returns:
            Rules in dependency order.

        Raises:
            CycleDetectedError: If the dependencies form a cycle. No partial
                order is returned.
        """
        by_id: dict[str, ValidationRule] = {}
        for rule in rules:
            by_id.setdefault(rule.rule_id, rule)

        ordered: list[ValidationRule] = []
        visited: set[str] = set()
        visiting: set[str] = set()

        for root_id in by_id:
            if root_id in visited:
                continue

            # Each frame holds a rule id and an iterator over its pending dependencies
            path: list[str] = [root_id]
            visiting.add(root_id)
            stack = [(root_id, iter(self._present_dependencies(by_id[root_id], by_id)))]

            while stack:
                rule_id, pending = stack[-1]
                dep_id = next(pending, None)

                if dep_id is None:
                    stack.pop()
                    path.pop()
                    visiting.discard(rule_id)
                    visited.add(rule_id)
                    ordered.append(by_id[rule_id])
                    continue

                if dep_id in visited:
                    continue

                if dep_id in visiting:
                    cycle = path[path.index(dep_id):] + [dep_id]
                    logger.warning("rule_dependency_cycle", rule_id=dep_id, cycle=cycle)
                    raise CycleDetectedError(dep_id, cycle)

                visiting.add(dep_id)
                path.append(dep_id)
                stack.append((dep_id, iter(self._present_dependencies(by_id[dep_id], by_id))))

        return ordered

    @staticmethod
    def _present_dependencies(
        rule: ValidationRule,
        by_id: dict[str, ValidationRule],
    ) -> list[str]:
        """Dependencies of a rule that are part of the current batch, sorted for determinism."""
        return sorted(dep for dep in rule.dependencies if dep in by_id)

    def tiers(self, ordered: Sequence[ValidationRule]) -> list[list[ValidationRule]]:
        """
        Group an ordered rule list into tiers of mutually independent rules.

        A rule lands one tier after the deepest of its present dependencies,
        so every rule in a tier can run concurrently.

        Args:
            ordered: Output of ``resolve``.

        Returns:
            List of tiers, each preserving the resolved order.
        """
        present = {rule.rule_id for rule in ordered}
        depth: dict[str, int] = {}
        tiers: list[list[ValidationRule]] = []

        for rule in ordered:
            if rule.rule_id in depth:
                continue
            level = 1 + max(
                (depth[dep] for dep in rule.dependencies if dep in present and dep in depth),
                default=-1,
            )
            depth[rule.rule_id] = level
            while len(tiers) <= level:
                tiers.append([])
            tiers[level].append(rule)

        return tiers


def resolve_order(rules: Sequence[ValidationRule]) -> list[ValidationRule]:
    """
    Convenience function to resolve a dependency order.

    Args:
        rules: Rules to order.

    Returns:
        Rules in dependency order.
    """
    return DependencyResolver().resolve(rules)


def dependency_tiers(ordered: Sequence[ValidationRule]) -> list[list[ValidationRule]]:
    """Group a resolved order into tiers of mutually independent rules."""
    return DependencyResolver().tiers(ordered)
