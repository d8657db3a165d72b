"""
Rule executor.

Runs a dependency-ordered list of validation rules against one record.
A rule runs only after every dependency present in the batch has run and
passed; otherwise it is skipped. Predicate exceptions are logged and
recorded as skips so one broken rule never aborts the batch.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from solar_validation.config import get_logger
from solar_validation.utils.record_utils import count_fields, get_path
from solar_validation.validation.models import CustomRuleResult, ValidationIssue
from solar_validation.validation.resolver import DependencyResolver
from solar_validation.validation.types import (
    RuleCategory,
    RuleOutcome,
    Severity,
    ValidationContext,
    ValidationRule,
)


logger = get_logger(__name__)


class RuleStatus(str, Enum):
    """Execution status of a single rule."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(slots=True)
class ExecutionStats:
    """Counters collected while executing a rule batch."""

    rules_evaluated: int = 0
    rules_skipped: int = 0
    rules_passed: int = 0
    rules_failed: int = 0
    fields_validated: int = 0
    execution_time_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "rules_evaluated": self.rules_evaluated,
            "rules_skipped": self.rules_skipped,
            "rules_passed": self.rules_passed,
            "rules_failed": self.rules_failed,
            "fields_validated": self.fields_validated,
            "execution_time_ms": round(self.execution_time_ms, 3),
        }


@dataclass(slots=True)
class RuleExecution:
    """Outcome of one rule within a batch."""

    rule: ValidationRule
    status: RuleStatus
    outcome: RuleOutcome | None = None
    reason: str | None = None

    @property
    def code(self) -> str:
        """Machine-readable failure code, ``<CATEGORY>_<RULE_ID>``."""
        return f"{RuleCategory(self.rule.category).value}_{self.rule.rule_id}".upper()

    @property
    def fix_key(self) -> str:
        """Key under which a suggested fix is reported."""
        if self.rule.field in (None, "*"):
            return self.rule.rule_id
        return self.rule.field

    def to_result(self) -> CustomRuleResult:
        """Convert to the custom-rule result reported to callers."""
        severity = Severity(self.rule.severity)
        if self.status == RuleStatus.SKIPPED:
            return CustomRuleResult(
                rule_id=self.rule.rule_id,
                valid=True,
                skipped=True,
                message=self.reason,
                severity=severity,
                field=self.rule.field,
            )

        outcome = self.outcome or RuleOutcome.ok()
        failed = self.status == RuleStatus.FAILED
        return CustomRuleResult(
            rule_id=self.rule.rule_id,
            valid=not (failed and severity.is_blocking),
            message=outcome.message or (f"{self.rule.name} failed" if failed else None),
            severity=severity,
            field=self.rule.field,
            code=self.code if failed else None,
            suggested_fix=outcome.suggested_fix if outcome.has_fix else None,
        )


@dataclass(slots=True)
class ExecutionReport:
    """
    Result of executing a rule batch.

    Attributes:
        executions: Per-rule outcomes in resolved order.
        errors: Failures of critical or error severity.
        warnings: Failures of warning severity.
        info: Failures of info severity.
        suggested_fixes: Replacement values keyed by field path.
        stats: Execution counters.
    """

    executions: list[RuleExecution] = field(default_factory=list)
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    info: list[ValidationIssue] = field(default_factory=list)
    suggested_fixes: dict[str, Any] = field(default_factory=dict)
    stats: ExecutionStats = field(default_factory=ExecutionStats)

    @property
    def is_valid(self) -> bool:
        """Check that no critical or error failure was recorded."""
        return not self.errors

    @property
    def results(self) -> list[CustomRuleResult]:
        """Custom-rule results in resolved order."""
        return [execution.to_result() for execution in self.executions]

    def status_of(self, rule_id: str) -> RuleStatus | None:
        """Get the execution status of a rule."""
        for execution in self.executions:
            if execution.rule.rule_id == rule_id:
                return execution.status
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "is_valid": self.is_valid,
            "results": [r.to_dict() for r in self.results],
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "info": [i.to_dict() for i in self.info],
            "suggested_fixes": self.suggested_fixes,
            "stats": self.stats.to_dict(),
        }


class RuleExecutor:
    """
    Executes dependency-ordered rules against a record.

    With ``max_concurrency`` of 1 rules run strictly in order. Larger
    values run each dependency tier with ``asyncio.gather`` bounded by a
    semaphore; reported results keep the resolved order either way.

    Example:
        executor = RuleExecutor()
        report = await executor.execute(resolve_order(rules), record, context)
        if not report.is_valid:
            ...
    """

    def __init__(self, max_concurrency: int = 1) -> None:
        """
        Initialize the executor.

        Args:
            max_concurrency: Maximum rules running at once within a tier.
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self._resolver = DependencyResolver()

    async def execute(
        self,
        rules: Sequence[ValidationRule],
        record: Any,
        context: ValidationContext,
    ) -> ExecutionReport:
        """
        Execute rules against a record.

        Args:
            rules: Rules in dependency order (output of ``resolve_order``).
            record: Record under validation.
            context: Per-request validation context.

        Returns:
            ExecutionReport with per-rule outcomes and counters.
        """
        start_time = time.perf_counter()
        report = ExecutionReport()
        report.stats.fields_validated = count_fields(record)

        present = {rule.rule_id for rule in rules}
        passed: set[str] = set()

        if self.max_concurrency == 1:
            for rule in rules:
                execution = await self._run_or_skip(rule, record, context, present, passed)
                self._record(report, execution, passed)
        else:
            semaphore = asyncio.Semaphore(self.max_concurrency)

            async def bounded(rule: ValidationRule) -> RuleExecution:
                async with semaphore:
                    return await self._run_or_skip(rule, record, context, present, passed)

            for tier in self._resolver.tiers(rules):
                executions = await asyncio.gather(*(bounded(rule) for rule in tier))
                for execution in executions:
                    self._record(report, execution, passed)

            order = {rule.rule_id: index for index, rule in enumerate(rules)}
            report.executions.sort(key=lambda e: order.get(e.rule.rule_id, len(order)))

        report.stats.execution_time_ms = (time.perf_counter() - start_time) * 1000

        logger.debug(
            "rules_executed",
            collection=context.collection,
            **{k: v for k, v in report.stats.to_dict().items() if k != "execution_time_ms"},
        )
        return report

    async def _run_or_skip(
        self,
        rule: ValidationRule,
        record: Any,
        context: ValidationContext,
        present: set[str],
        passed: set[str],
    ) -> RuleExecution:
        unmet = sorted(dep for dep in rule.dependencies if dep in present and dep not in passed)
        if unmet:
            return RuleExecution(
                rule=rule,
                status=RuleStatus.SKIPPED,
                reason=f"Dependency not satisfied: {', '.join(unmet)}",
            )

        value = get_path(record, rule.field)
        try:
            raw = rule.validate(value, record, context)
            if inspect.isawaitable(raw):
                raw = await raw
            outcome = RuleOutcome.coerce(raw)
        except Exception as e:
            logger.warning(
                "rule_execution_error",
                rule_id=rule.rule_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return RuleExecution(
                rule=rule,
                status=RuleStatus.SKIPPED,
                reason=f"Rule raised {type(e).__name__}: {e}",
            )

        status = RuleStatus.PASSED if outcome.passed else RuleStatus.FAILED
        return RuleExecution(rule=rule, status=status, outcome=outcome)

    @staticmethod
    def _record(report: ExecutionReport, execution: RuleExecution, passed: set[str]) -> None:
        report.executions.append(execution)
        stats = report.stats

        if execution.status == RuleStatus.SKIPPED:
            stats.rules_skipped += 1
            return

        stats.rules_evaluated += 1
        if execution.status == RuleStatus.PASSED:
            stats.rules_passed += 1
            passed.add(execution.rule.rule_id)
            return

        stats.rules_failed += 1
        rule = execution.rule
        outcome = execution.outcome or RuleOutcome.ok()
        severity = Severity(rule.severity)
        issue = ValidationIssue(
            path=tuple(rule.field.split(".")) if rule.field not in (None, "*") else (),
            message=outcome.message or f"{rule.name} failed",
            code=execution.code,
            severity=severity,
        )

        if severity.is_blocking:
            report.errors.append(issue)
        elif severity == Severity.WARNING:
            report.warnings.append(issue)
        else:
            report.info.append(issue)

        if outcome.has_fix:
            report.suggested_fixes[execution.fix_key] = outcome.suggested_fix
