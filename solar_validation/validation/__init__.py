"""
Validation module for solar records.

Pipeline stages, in execution order:
- Preprocessing: context-specific request rewriting (preprocessing.py)
- Schema stage: structural validation against named schemas (schema_validator.py)
- Custom rule stage: dependency-ordered rule execution (registry.py, resolver.py, executor.py)
- Cross-validation stage: named multi-field consistency checks (cross_field.py)

The ValidationOrchestrator (orchestrator.py) ties the stages together with
result caching (cache.py) and metrics.

Usage:
    from solar_validation.validation import (
        ValidationOrchestrator,
        ValidationRequest,
        rule,
    )
"""

# Core types
from solar_validation.validation.types import (
    NO_FIX,
    FunctionRule,
    Operation,
    RecordCategory,
    RequestContext,
    ResultStatus,
    RuleCategory,
    RuleOutcome,
    Severity,
    ValidationContext,
    ValidationRule,
    rule,
)

# Request and result models
from solar_validation.validation.models import (
    CrossValidationResult,
    CustomRuleResult,
    CustomRuleSpec,
    Recommendation,
    RecommendationLevel,
    RecommendationType,
    RequestConfig,
    RequestPayload,
    ResultMetrics,
    RuleSet,
    SchemaResult,
    StageResults,
    ValidationIssue,
    ValidationRequest,
    ValidationResult,
)

# Rule storage and ordering
from solar_validation.validation.registry import RuleRegistry
from solar_validation.validation.resolver import (
    DependencyResolver,
    dependency_tiers,
    resolve_order,
)

# Stage engines
from solar_validation.validation.schema_validator import SchemaValidator
from solar_validation.validation.executor import (
    ExecutionReport,
    ExecutionStats,
    RuleExecution,
    RuleExecutor,
    RuleStatus,
)
from solar_validation.validation.cross_field import (
    SOLAR_CROSS_CHECKS,
    CrossFieldRule,
    CrossValidationEngine,
    RuleType,
    RuleViolation,
)

# Built-in rule catalog
from solar_validation.validation.builtin_rules import BUILTIN_RULES, builtin_rules

# Caching and preprocessing
from solar_validation.validation.cache import ValidationCache
from solar_validation.validation.preprocessing import (
    PreprocessOutcome,
    RequestPreprocessor,
    has_credentials,
    sanitize_value,
)

# Orchestration
from solar_validation.validation.orchestrator import ValidationOrchestrator


__all__ = [
    # Types
    "NO_FIX",
    "FunctionRule",
    "Operation",
    "RecordCategory",
    "RequestContext",
    "ResultStatus",
    "RuleCategory",
    "RuleOutcome",
    "Severity",
    "ValidationContext",
    "ValidationRule",
    "rule",
    # Models
    "CrossValidationResult",
    "CustomRuleResult",
    "CustomRuleSpec",
    "Recommendation",
    "RecommendationLevel",
    "RecommendationType",
    "RequestConfig",
    "RequestPayload",
    "ResultMetrics",
    "RuleSet",
    "SchemaResult",
    "StageResults",
    "ValidationIssue",
    "ValidationRequest",
    "ValidationResult",
    # Registry and resolver
    "RuleRegistry",
    "DependencyResolver",
    "dependency_tiers",
    "resolve_order",
    # Engines
    "SchemaValidator",
    "ExecutionReport",
    "ExecutionStats",
    "RuleExecution",
    "RuleExecutor",
    "RuleStatus",
    "SOLAR_CROSS_CHECKS",
    "CrossFieldRule",
    "CrossValidationEngine",
    "RuleType",
    "RuleViolation",
    # Built-in rules
    "BUILTIN_RULES",
    "builtin_rules",
    # Cache and preprocessing
    "ValidationCache",
    "PreprocessOutcome",
    "RequestPreprocessor",
    "has_credentials",
    "sanitize_value",
    # Orchestration
    "ValidationOrchestrator",
]
