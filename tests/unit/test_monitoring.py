"""
Unit tests for the metrics module.

Tests cover:
- In-process aggregates per context and category
- Prometheus counters and exposition output
- Disabled collection and reset
"""

from solar_validation.monitoring.metrics import MetricsRegistry, ValidationMetrics


class TestMetricsRegistry:
    """Tests for MetricsRegistry."""

    def test_instances_are_isolated(self) -> None:
        first = MetricsRegistry()
        second = MetricsRegistry()

        first.requests_total.labels(context="user_input", category="customer", status="success").inc()

        assert b"solar_validation_requests_total{" in first.get_metrics()
        assert b"solar_validation_requests_total{" not in second.get_metrics()

    def test_namespace(self) -> None:
        registry = MetricsRegistry(namespace="pv")
        assert b"pv_validation_duration_seconds" in registry.get_metrics()

    def test_content_type(self) -> None:
        assert MetricsRegistry().get_content_type().startswith("text/plain")


class TestValidationMetrics:
    """Tests for ValidationMetrics."""

    def test_snapshot_aggregates(self) -> None:
        metrics = ValidationMetrics()

        metrics.record_request("user_input", "equipment", "success", 10.0)
        metrics.record_request("user_input", "equipment", "error", 30.0)
        metrics.record_request("batch_processing", "financial", "success", 5.0)

        snapshot = metrics.snapshot()
        assert snapshot["user_input_equipment_count"] == 2
        assert snapshot["user_input_equipment_total_time"] == 40.0
        assert snapshot["user_input_equipment_avg_time"] == 20.0
        assert snapshot["batch_processing_financial_count"] == 1

    def test_export(self) -> None:
        metrics = ValidationMetrics()

        metrics.record_request("api_request", "integration", "success", 12.0)
        metrics.record_rule_outcomes("custom", passed=3, failed=1)
        metrics.record_cache_event("miss")

        exported = metrics.export()
        assert (
            'solar_validation_requests_total{context="api_request",category="integration",status="success"} 1.0'
            in exported
        )
        assert 'solar_validation_rule_outcomes_total{stage="custom",outcome="passed"} 3.0' in exported
        assert 'solar_validation_rule_outcomes_total{stage="custom",outcome="skipped"' not in exported
        assert 'solar_validation_cache_events_total{event="miss"} 1.0' in exported

    def test_disabled_keeps_aggregates_only(self) -> None:
        metrics = ValidationMetrics(enabled=False)

        metrics.record_request("user_input", "customer", "success", 4.0)
        metrics.record_cache_event("hit")

        assert metrics.snapshot()["user_input_customer_count"] == 1
        exported = metrics.export()
        assert "solar_validation_requests_total{" not in exported
        assert "solar_validation_cache_events_total{" not in exported

    def test_reset(self) -> None:
        metrics = ValidationMetrics()
        metrics.record_request("user_input", "customer", "success", 4.0)

        metrics.reset()

        assert metrics.snapshot() == {}
        assert "solar_validation_requests_total{" not in metrics.export()

    def test_to_dict(self) -> None:
        metrics = ValidationMetrics(namespace="pv", enabled=False)

        assert metrics.to_dict() == {"namespace": "pv", "enabled": False, "aggregates": {}}
