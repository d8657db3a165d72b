"""
Monitoring Module for the solar validation engine.

Provides Prometheus metrics collection and exposition for validation runs.
"""

from solar_validation.monitoring.metrics import (
    DURATION_BUCKETS,
    MetricsRegistry,
    ValidationMetrics,
)


__all__ = [
    "DURATION_BUCKETS",
    "MetricsRegistry",
    "ValidationMetrics",
]
