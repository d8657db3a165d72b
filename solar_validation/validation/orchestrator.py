"""
Validation orchestrator.

Coordinates one validation request through its lifecycle:

    received -> cache check -> preprocessing -> schema stage
    -> custom-rule stage -> cross-validation stage -> aggregation
    -> cache write -> metrics -> response

Stages run strictly in sequence and the whole pipeline is bounded by the
request timeout. Every failure inside ``validate()`` is converted into a
structured result; nothing propagates to the caller.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from datetime import UTC, datetime

from solar_validation.config import Settings, get_logger, get_settings
from solar_validation.exceptions import (
    AuthenticationRequiredError,
    RecordValidationError,
    SolarValidationError,
)
from solar_validation.monitoring.metrics import ValidationMetrics
from solar_validation.schemas.registry import SchemaRegistry
from solar_validation.validation.cache import ValidationCache
from solar_validation.validation.cross_field import CrossValidationEngine
from solar_validation.validation.executor import RuleExecutor
from solar_validation.validation.models import (
    ORCHESTRATOR_ERROR_SCHEMA,
    CustomRuleResult,
    CustomRuleSpec,
    Recommendation,
    RecommendationLevel,
    RecommendationType,
    SchemaResult,
    StageResults,
    ValidationIssue,
    ValidationRequest,
    ValidationResult,
)
from solar_validation.validation.preprocessing import (
    PreprocessOutcome,
    RequestPreprocessor,
    has_credentials,
)
from solar_validation.validation.registry import RuleRegistry
from solar_validation.validation.resolver import DependencyResolver
from solar_validation.validation.schema_validator import SchemaValidator
from solar_validation.validation.types import (
    FunctionRule,
    Operation,
    RequestContext,
    ResultStatus,
    Severity,
    ValidationContext,
    ValidationRule,
)


logger = get_logger(__name__)


class ValidationOrchestrator:
    """
    Entry point for validating solar records.

    Holds the registries, cache, engines and metrics for its lifetime.
    Collaborators can be injected; anything omitted is built from settings.

    Example:
        orchestrator = ValidationOrchestrator()
        request = ValidationRequest.create(
            panel,
            context="user_input",
            category="equipment",
            schemas=["solar_panel_spec"],
            cross_validation_rules=["panel_inverter_compatibility"],
        )
        result = await orchestrator.validate(request)
    """

    def __init__(
        self,
        rule_registry: RuleRegistry | None = None,
        schema_registry: SchemaRegistry | None = None,
        cache: ValidationCache | None = None,
        cross_engine: CrossValidationEngine | None = None,
        executor: RuleExecutor | None = None,
        metrics: ValidationMetrics | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            rule_registry: Registry of custom rules, defaults to the built-in catalog.
            schema_registry: Registry of schemas, defaults to the built-in schemas.
            cache: Result cache.
            cross_engine: Cross-validation engine.
            executor: Rule executor.
            metrics: Metrics collector.
            settings: Application settings.
        """
        self.settings = settings or get_settings()
        validation = self.settings.validation

        self.rule_registry = rule_registry if rule_registry is not None else RuleRegistry.with_builtin_rules()
        self.schema_registry = (
            schema_registry if schema_registry is not None else SchemaRegistry.with_builtin_schemas()
        )
        self.cache = (
            cache
            if cache is not None
            else ValidationCache(
                max_size=self.settings.cache.max_size,
                ttl_seconds=self.settings.cache.ttl_seconds,
            )
        )
        self.cross_engine = (
            cross_engine
            if cross_engine is not None
            else CrossValidationEngine(strict_unknown=validation.strict_unknown_cross_rules)
        )
        self.executor = executor if executor is not None else RuleExecutor(validation.executor_concurrency)
        self.metrics = (
            metrics
            if metrics is not None
            else ValidationMetrics(
                namespace=self.settings.monitoring.namespace,
                enabled=self.settings.monitoring.prometheus_enabled,
            )
        )

        self.schema_validator = SchemaValidator(self.schema_registry, validation.advisory_schema_codes)
        self.preprocessor = RequestPreprocessor(validation.freshness_window_seconds)
        self.resolver = DependencyResolver()

        logger.info(
            "validation_orchestrator_initialized",
            rules=len(self.rule_registry),
            schemas=len(self.schema_registry),
            cross_rules=len(self.cross_engine.names()),
            cache_max_size=self.cache.max_size,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    async def validate(self, request: ValidationRequest) -> ValidationResult:
        """
        Validate a request.

        The request is deep-copied first; the caller's object and payload
        are never modified.

        Args:
            request: Validation request.

        Returns:
            ValidationResult. Internal failures yield an ``error`` result.
        """
        start_time = time.perf_counter()

        try:
            working = request.model_copy(deep=True)
        except Exception as e:
            logger.error("request_copy_failed", request_id=request.request_id, error=str(e))
            result = self._error_result(request.request_id, e)
            return self._finish(request, result, start_time)

        # Credentials gate the cache as well as the pipeline; stale data is never served from it
        if working.context == RequestContext.API_REQUEST and not has_credentials(working.data.metadata):
            logger.warning("api_request_unauthenticated", request_id=working.request_id)
            result = self._error_result(working.request_id, AuthenticationRequiredError())
            return self._finish(request, result, start_time)

        if not self._caching_enabled(working) or self.preprocessor.is_stale(working):
            result = await self._execute(working, start_time)
            return self._finish(request, result, start_time)

        try:
            key = self.cache.make_key(working)
        except Exception as e:
            logger.warning("cache_key_failed", request_id=working.request_id, error=str(e))
            result = await self._execute(working, start_time)
            return self._finish(request, result, start_time)

        result, hit = await self.cache.get_or_compute(key, lambda: self._execute(working, start_time))
        if hit:
            self._record_cache_event(request, "hit")
            result = self._from_cache(result, working.request_id, start_time)
            logger.debug("validation_cache_hit", request_id=working.request_id, key=key[:12])
        else:
            self._record_cache_event(request, "miss")
            if key in self.cache:
                self._record_cache_event(request, "store")

        return self._finish(request, result, start_time)

    async def validate_or_raise(self, request: ValidationRequest) -> ValidationResult:
        """
        Validate a request and raise if the record is invalid.

        Raises:
            RecordValidationError: With the result attached.
        """
        result = await self.validate(request)
        if not result.overall_valid:
            raise RecordValidationError(result)
        return result

    def available_schemas(self) -> list[str]:
        """Get registered schema names."""
        return self.schema_registry.names()

    def available_cross_rules(self) -> list[str]:
        """Get registered cross-validation rule names."""
        return self.cross_engine.names()

    def available_rules(self) -> list[str]:
        """Get registered custom rule ids."""
        return self.rule_registry.ids()

    def clear_cache(self) -> None:
        """Clear cached results."""
        self.cache.clear()
        logger.info("validation_cache_cleared")

    def get_metrics(self) -> dict[str, float]:
        """Get the in-process aggregate metrics."""
        return self.metrics.snapshot()

    def reset(self) -> None:
        """Clear the cache and metrics."""
        self.cache.clear()
        self.metrics.reset()

    # =========================================================================
    # Pipeline
    # =========================================================================

    def _caching_enabled(self, request: ValidationRequest) -> bool:
        return (
            self.settings.cache.enabled
            and request.config.enable_caching
            and request.context != RequestContext.BATCH_PROCESSING
            and not request.rules.has_inline_rules
        )

    def _timeout_seconds(self, request: ValidationRequest) -> float:
        if "timeout_ms" in request.config.model_fields_set:
            return request.config.timeout_ms / 1000
        return self.settings.validation.default_timeout_ms / 1000

    def _max_errors(self, request: ValidationRequest) -> int:
        if "max_errors" in request.config.model_fields_set:
            return request.config.max_errors
        return self.settings.validation.max_errors

    async def _execute(self, request: ValidationRequest, start_time: float) -> ValidationResult:
        """Run preprocessing and the three stages for an already copied request."""
        result = ValidationResult(request_id=request.request_id)
        outcome = PreprocessOutcome()

        try:
            outcome = self.preprocessor.apply(request)
            result.warnings.extend(outcome.warnings)

            try:
                await asyncio.wait_for(
                    self._run_stages(request, result),
                    timeout=self._timeout_seconds(request),
                )
                timed_out = False
            except TimeoutError:
                timed_out = True
                logger.warning(
                    "validation_timeout",
                    request_id=request.request_id,
                    timeout_ms=round(self._timeout_seconds(request) * 1000),
                )

            self._aggregate(result, timed_out)

        except Exception as e:
            logger.error(
                "validation_pipeline_error",
                request_id=request.request_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            result = self._error_result(request.request_id, e)

        result.duration_ms = (time.perf_counter() - start_time) * 1000
        result.metrics.validation_time_ms = result.duration_ms
        result.recommendations = self._recommend(request, result, outcome)
        return result

    async def _run_stages(self, request: ValidationRequest, result: ValidationResult) -> None:
        """Run the schema, custom-rule and cross-validation stages in order."""
        payload = request.data.primary
        skip_warnings = request.config.skip_warnings

        # Schema stage
        stage_start = time.perf_counter()
        for schema_name in request.rules.schemas:
            schema_result = self.schema_validator.validate(
                schema_name,
                payload,
                request.context,
                strict=request.config.strict_mode,
                max_errors=self._max_errors(request),
            )
            if skip_warnings:
                schema_result.warnings = []
            result.results.schema_results.append(schema_result)
        result.metrics.schema_time_ms = (time.perf_counter() - stage_start) * 1000
        await asyncio.sleep(0)

        # Custom rule stage
        stage_start = time.perf_counter()
        if request.rules.custom_rules:
            await self._run_custom_rules(request, result)
        result.metrics.custom_rule_time_ms = (time.perf_counter() - stage_start) * 1000
        await asyncio.sleep(0)

        # Cross-validation stage
        stage_start = time.perf_counter()
        for name in request.rules.cross_validation_rules:
            result.results.cross_validation_results.append(
                await self.cross_engine.run_one(name, payload)
            )
        result.metrics.cross_validation_time_ms = (time.perf_counter() - stage_start) * 1000

    async def _run_custom_rules(self, request: ValidationRequest, result: ValidationResult) -> None:
        rules: list[ValidationRule] = []
        missing: list[CustomRuleResult] = []

        for spec in request.rules.custom_rules:
            rule = self._materialize(spec)
            if rule is None:
                logger.warning("custom_rule_not_found", rule_id=spec.rule_id, request_id=request.request_id)
                missing.append(
                    CustomRuleResult(
                        rule_id=spec.rule_id,
                        valid=False,
                        message=f"Custom rule '{spec.rule_id}' not found",
                        severity=Severity.ERROR,
                        field=spec.field,
                        code="RULE_NOT_FOUND",
                    )
                )
            else:
                rules.append(rule)

        ordered = self.resolver.resolve(rules)
        report = await self.executor.execute(ordered, request.data.primary, self._build_context(request))

        custom_results = report.results
        if request.config.skip_warnings:
            custom_results = [
                r for r in custom_results if r.code is None or r.severity is None or r.severity.is_blocking
            ]

        result.results.custom_rule_results.extend(custom_results)
        result.results.custom_rule_results.extend(missing)
        result.suggested_fixes.update(report.suggested_fixes)

        stats = report.stats
        result.metrics.rules_evaluated = stats.rules_evaluated
        result.metrics.rules_skipped = stats.rules_skipped
        result.metrics.rules_passed = stats.rules_passed
        result.metrics.rules_failed = stats.rules_failed
        result.metrics.fields_validated = stats.fields_validated

    def _materialize(self, spec: CustomRuleSpec) -> ValidationRule | None:
        """Turn a custom rule reference into an executable rule."""
        if spec.rule is None:
            registered = self.rule_registry.get(spec.rule_id)
            if not isinstance(registered, FunctionRule):
                return registered
            # Per-request overrides of a registered rule
            overrides: dict[str, object] = {
                name: getattr(spec, name) for name in ("field", "severity") if name in spec.model_fields_set
            }
            if "dependencies" in spec.model_fields_set:
                overrides["dependencies"] = frozenset(spec.dependencies)
            return replace(registered, **overrides) if overrides else registered
        if isinstance(spec.rule, ValidationRule):
            return spec.rule
        if callable(spec.rule):
            return FunctionRule(
                rule_id=spec.rule_id,
                predicate=spec.rule,
                description=spec.description,
                field=spec.field,
                severity=spec.severity,
                dependencies=frozenset(spec.dependencies),
            )
        raise TypeError(f"Custom rule '{spec.rule_id}' is neither a rule nor a callable")

    def _build_context(self, request: ValidationRequest) -> ValidationContext:
        options = request.context_options
        operation = options.get("operation") or request.context.default_operation
        return ValidationContext(
            collection=options.get("collection") or request.category.value,
            operation=Operation(operation),
            environment=self.settings.app_env.value,
            timestamp=request.timestamp,
            actor_id=options.get("actor_id"),
            metadata=dict(request.data.metadata),
        )

    # =========================================================================
    # Aggregation
    # =========================================================================

    def _aggregate(self, result: ValidationResult, timed_out: bool) -> None:
        if timed_out:
            result.overall_valid = False
            result.status = ResultStatus.TIMEOUT
            return

        result.overall_valid = result.results.all_valid
        if not result.overall_valid:
            result.status = ResultStatus.ERROR
        elif self._has_warnings(result):
            result.status = ResultStatus.WARNING
        else:
            result.status = ResultStatus.SUCCESS

    @staticmethod
    def _has_warnings(result: ValidationResult) -> bool:
        if result.warnings:
            return True
        if any(r.warnings for r in result.results.schema_results):
            return True
        return any(
            r.code is not None and not r.skipped and r.valid
            for r in result.results.custom_rule_results
        )

    def _error_result(self, request_id: str, error: Exception) -> ValidationResult:
        code = error.code if isinstance(error, SolarValidationError) else "ORCHESTRATOR_ERROR"
        return ValidationResult(
            request_id=request_id,
            status=ResultStatus.ERROR,
            overall_valid=False,
            results=_error_stage(str(error) or type(error).__name__, code),
        )

    def _from_cache(self, cached: ValidationResult, request_id: str, start_time: float) -> ValidationResult:
        cached.request_id = request_id
        cached.timestamp = datetime.now(UTC)
        cached.status = ResultStatus.CACHE_HIT
        cached.metrics.cache_hit = True
        cached.duration_ms = (time.perf_counter() - start_time) * 1000
        cached.metrics.validation_time_ms = cached.duration_ms
        return cached

    def _recommend(
        self,
        request: ValidationRequest,
        result: ValidationResult,
        outcome: PreprocessOutcome,
    ) -> list[Recommendation]:
        recommendations: list[Recommendation] = []

        if request.context == RequestContext.USER_INPUT and not result.overall_valid:
            recommendations.append(
                Recommendation(
                    type=RecommendationType.DATA_QUALITY,
                    message="Please review and correct the highlighted fields",
                    level=RecommendationLevel.HIGH,
                    action_required=True,
                )
            )

        if result.duration_ms > self.settings.validation.slow_validation_ms:
            recommendations.append(
                Recommendation(
                    type=RecommendationType.PERFORMANCE,
                    message="Validation took longer than expected. Consider enabling caching.",
                    level=RecommendationLevel.MEDIUM,
                )
            )

        if outcome.stale:
            recommendations.append(
                Recommendation(
                    type=RecommendationType.DATA_QUALITY,
                    message="Real-time data is older than the freshness window; check the data feed",
                    level=RecommendationLevel.MEDIUM,
                )
            )

        unknown = [r.rule_name for r in result.results.cross_validation_results if not r.known]
        if unknown:
            recommendations.append(
                Recommendation(
                    type=RecommendationType.BEST_PRACTICE,
                    message=f"Unknown cross-validation rules were ignored: {', '.join(unknown)}",
                    level=RecommendationLevel.LOW,
                )
            )

        return recommendations

    # =========================================================================
    # Metrics
    # =========================================================================

    def _finish(
        self,
        request: ValidationRequest,
        result: ValidationResult,
        start_time: float,
    ) -> ValidationResult:
        if not result.metrics.cache_hit:
            result.duration_ms = (time.perf_counter() - start_time) * 1000
            result.metrics.validation_time_ms = result.duration_ms

        if request.config.enable_metrics:
            self._record_metrics(request, result)

        logger.info(
            "validation_complete",
            request_id=result.request_id,
            context=request.context.value,
            category=request.category.value,
            status=result.status.value,
            overall_valid=result.overall_valid,
            duration_ms=round(result.duration_ms, 2),
        )
        return result

    def _record_metrics(self, request: ValidationRequest, result: ValidationResult) -> None:
        self.metrics.record_request(
            request.context.value,
            request.category.value,
            result.status.value,
            result.duration_ms,
        )
        if result.metrics.cache_hit:
            return

        stage = result.results
        self.metrics.record_rule_outcomes(
            "schema",
            passed=sum(1 for r in stage.schema_results if r.valid),
            failed=sum(1 for r in stage.schema_results if not r.valid),
        )
        self.metrics.record_rule_outcomes(
            "custom",
            passed=result.metrics.rules_passed,
            failed=result.metrics.rules_failed,
            skipped=result.metrics.rules_skipped,
        )
        self.metrics.record_rule_outcomes(
            "cross",
            passed=sum(1 for r in stage.cross_validation_results if r.valid),
            failed=sum(1 for r in stage.cross_validation_results if not r.valid),
        )

    def _record_cache_event(self, request: ValidationRequest, event: str) -> None:
        if request.config.enable_metrics:
            self.metrics.record_cache_event(event)


def _error_stage(message: str, code: str) -> StageResults:
    return StageResults(
        schema_results=[
            SchemaResult(
                schema_name=ORCHESTRATOR_ERROR_SCHEMA,
                valid=False,
                errors=[
                    ValidationIssue(
                        path=(),
                        message=message,
                        code=code,
                        severity=Severity.CRITICAL,
                    )
                ],
            )
        ]
    )
