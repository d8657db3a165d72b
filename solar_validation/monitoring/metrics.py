"""
Prometheus Metrics Module for the solar validation engine.

Provides request, rule-outcome, cache and latency metrics for validation
runs, plus the in-process aggregate map (count, total and average time per
context and category) exposed through ``snapshot()``.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from solar_validation.config import get_logger


logger = get_logger(__name__)


DURATION_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)


class MetricsRegistry:
    """
    Holder for the Prometheus collectors of one orchestrator.

    Each instance owns its own CollectorRegistry so several orchestrators
    (or tests) can coexist in one process without duplicate registration.
    """

    def __init__(self, namespace: str = "solar") -> None:
        """
        Initialize metrics registry.

        Args:
            namespace: Prefix for every metric name.
        """
        self.namespace = namespace
        self.registry = CollectorRegistry(auto_describe=True)
        self._init_validation_metrics()

    def _init_validation_metrics(self) -> None:
        """Initialize validation-related metrics."""
        self.requests_total = Counter(
            "validation_requests_total",
            "Total validation requests",
            ["context", "category", "status"],
            namespace=self.namespace,
            registry=self.registry,
        )

        self.rule_outcomes_total = Counter(
            "validation_rule_outcomes_total",
            "Validation rule outcomes by stage",
            ["stage", "outcome"],  # stage: schema, custom, cross; outcome: passed, failed, skipped
            namespace=self.namespace,
            registry=self.registry,
        )

        self.cache_events_total = Counter(
            "validation_cache_events_total",
            "Validation cache events",
            ["event"],  # hit, miss, store, refused
            namespace=self.namespace,
            registry=self.registry,
        )

        self.duration_seconds = Histogram(
            "validation_duration_seconds",
            "Validation request duration in seconds",
            ["context", "category"],
            namespace=self.namespace,
            registry=self.registry,
            buckets=DURATION_BUCKETS,
        )

    def get_metrics(self) -> bytes:
        """
        Generate Prometheus metrics output.

        Returns:
            Prometheus metrics in exposition format.
        """
        return generate_latest(self.registry)

    def get_content_type(self) -> str:
        """Get Prometheus content type header."""
        return CONTENT_TYPE_LATEST


@dataclass(slots=True)
class _Aggregate:
    count: int = 0
    total_time_ms: float = 0.0


class ValidationMetrics:
    """
    High-level metrics collection interface for validation runs.

    Example:
        metrics = ValidationMetrics()
        metrics.record_request("user_input", "equipment", "success", 12.5)
        metrics.snapshot()["user_input_equipment_count"]  # 1
    """

    def __init__(self, namespace: str = "solar", enabled: bool = True) -> None:
        """
        Initialize metrics collector.

        Args:
            namespace: Prometheus metric prefix.
            enabled: When False only the in-process aggregates are kept.
        """
        self.namespace = namespace
        self.enabled = enabled
        self._registry = MetricsRegistry(namespace)
        self._aggregates: dict[str, _Aggregate] = {}
        self._lock = threading.Lock()

    @property
    def registry(self) -> MetricsRegistry:
        return self._registry

    def record_request(
        self,
        context: str,
        category: str,
        status: str,
        duration_ms: float,
    ) -> None:
        """Record a completed validation request."""
        key = f"{context}_{category}"
        with self._lock:
            aggregate = self._aggregates.setdefault(key, _Aggregate())
            aggregate.count += 1
            aggregate.total_time_ms += duration_ms

        if not self.enabled:
            return

        self._registry.requests_total.labels(
            context=context,
            category=category,
            status=status,
        ).inc()
        self._registry.duration_seconds.labels(
            context=context,
            category=category,
        ).observe(duration_ms / 1000)

    def record_rule_outcomes(self, stage: str, passed: int = 0, failed: int = 0, skipped: int = 0) -> None:
        """Record rule outcome counts for one stage."""
        if not self.enabled:
            return
        for outcome, count in (("passed", passed), ("failed", failed), ("skipped", skipped)):
            if count:
                self._registry.rule_outcomes_total.labels(stage=stage, outcome=outcome).inc(count)

    def record_cache_event(self, event: str) -> None:
        """Record a cache hit, miss, store or refusal."""
        if self.enabled:
            self._registry.cache_events_total.labels(event=event).inc()

    def snapshot(self) -> dict[str, float]:
        """
        Get the in-process aggregates.

        Returns:
            Map with ``<context>_<category>_count``, ``_total_time`` and
            ``_avg_time`` (milliseconds) for every pair seen.
        """
        with self._lock:
            snapshot: dict[str, float] = {}
            for key, aggregate in self._aggregates.items():
                snapshot[f"{key}_count"] = aggregate.count
                snapshot[f"{key}_total_time"] = aggregate.total_time_ms
                snapshot[f"{key}_avg_time"] = (
                    aggregate.total_time_ms / aggregate.count if aggregate.count else 0.0
                )
            return snapshot

    def export(self) -> str:
        """Get the Prometheus text exposition."""
        return self._registry.get_metrics().decode("utf-8")

    def content_type(self) -> str:
        return self._registry.get_content_type()

    def reset(self) -> None:
        """Drop aggregates and start a fresh Prometheus registry."""
        with self._lock:
            self._aggregates.clear()
            self._registry = MetricsRegistry(self.namespace)
        logger.info("validation_metrics_reset")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {"namespace": self.namespace, "enabled": self.enabled, "aggregates": self.snapshot()}
