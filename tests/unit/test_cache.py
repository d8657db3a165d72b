"""
Unit tests for the validation result cache.

Tests cover:
- Key stability and sensitivity
- Refusal of failing and warning results
- Oldest-first eviction and TTL expiry
- Copy isolation and single-flight computation
"""

import asyncio
import time
from typing import Any

import pytest

from solar_validation.validation.cache import ValidationCache
from solar_validation.validation.models import (
    ValidationIssue,
    ValidationRequest,
    ValidationResult,
)
from solar_validation.validation.types import Severity


def _request(payload: Any, **kwargs: Any) -> ValidationRequest:
    return ValidationRequest.create(
        payload,
        context="system_internal",
        category="equipment",
        schemas=["solar_panel_spec"],
        **kwargs,
    )


def _ok(request_id: str = "req_1") -> ValidationResult:
    return ValidationResult(request_id=request_id)


class TestCacheKey:
    """Tests for ValidationCache.make_key."""

    def test_key_ignores_request_id_and_bookkeeping_switches(self) -> None:
        first = _request({"model": "X1"}, request_id="req_a")
        second = _request({"model": "X1"}, request_id="req_b", enable_metrics=False, timeout_ms=500)

        assert ValidationCache.make_key(first) == ValidationCache.make_key(second)

    @pytest.mark.parametrize("switch", [{"strict_mode": True}, {"skip_warnings": True}, {"max_errors": 5}])
    def test_key_depends_on_verdict_switches(self, switch: dict[str, Any]) -> None:
        assert ValidationCache.make_key(_request({"model": "X1"})) != ValidationCache.make_key(
            _request({"model": "X1"}, **switch)
        )

    def test_key_ignores_payload_key_order(self) -> None:
        first = _request({"a": 1, "b": 2})
        second = _request({"b": 2, "a": 1})

        assert ValidationCache.make_key(first) == ValidationCache.make_key(second)

    def test_key_depends_on_payload(self) -> None:
        assert ValidationCache.make_key(_request({"model": "X1"})) != ValidationCache.make_key(
            _request({"model": "X2"})
        )

    def test_key_depends_on_rule_overrides(self) -> None:
        plain = _request({}, custom_rules=[{"rule_id": "positive_number"}])
        targeted = _request({}, custom_rules=[{"rule_id": "positive_number", "field": "system_size"}])

        assert ValidationCache.make_key(plain) != ValidationCache.make_key(targeted)

    def test_key_depends_on_context(self) -> None:
        internal = _request({"model": "X1"})
        user = ValidationRequest.create(
            {"model": "X1"},
            context="user_input",
            category="equipment",
            schemas=["solar_panel_spec"],
        )

        assert ValidationCache.make_key(internal) != ValidationCache.make_key(user)


class TestValidationCache:
    """Tests for ValidationCache storage."""

    def test_set_and_get(self) -> None:
        cache = ValidationCache()

        assert cache.set("k", _ok())
        assert cache.get("k").request_id == "req_1"
        assert "k" in cache
        assert len(cache) == 1

    def test_miss(self) -> None:
        cache = ValidationCache()

        assert cache.get("missing") is None
        assert cache.get_stats()["misses"] == 1

    def test_refuses_failing_result(self) -> None:
        cache = ValidationCache()
        failing = ValidationResult(request_id="req_1", overall_valid=False)

        assert cache.set("k", failing) is False
        assert "k" not in cache
        assert cache.get_stats()["rejected"] == 1

    def test_refuses_result_with_warnings(self) -> None:
        cache = ValidationCache()
        stale = _ok()
        stale.warnings.append(
            ValidationIssue(path=("metadata", "timestamp"), message="old", code="STALE_DATA", severity=Severity.WARNING)
        )

        assert cache.set("k", stale) is False

    def test_evicts_oldest_first(self) -> None:
        cache = ValidationCache(max_size=2)
        cache.set("a", _ok("req_a"))
        cache.set("b", _ok("req_b"))
        cache.set("c", _ok("req_c"))

        assert "a" not in cache
        assert "b" in cache
        assert "c" in cache
        assert cache.get_stats()["evictions"] == 1

    def test_reads_do_not_refresh_order(self) -> None:
        cache = ValidationCache(max_size=2)
        cache.set("a", _ok())
        cache.set("b", _ok())
        cache.get("a")
        cache.set("c", _ok())

        assert "a" not in cache

    def test_ttl_expiry(self) -> None:
        cache = ValidationCache(ttl_seconds=0.01)
        cache.set("k", _ok())

        time.sleep(0.03)

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_zero_ttl_means_no_expiry(self) -> None:
        cache = ValidationCache(ttl_seconds=0)
        cache.set("k", _ok())

        assert cache.get("k") is not None

    def test_reads_are_copies(self) -> None:
        cache = ValidationCache()
        original = _ok()
        cache.set("k", original)

        original.overall_valid = False
        first = cache.get("k")
        first.suggested_fixes["x"] = 1

        second = cache.get("k")
        assert second.overall_valid is True
        assert second.suggested_fixes == {}

    def test_invalidate_and_clear(self) -> None:
        cache = ValidationCache()
        cache.set("a", _ok())
        cache.set("b", _ok())

        assert cache.invalidate("a") is True
        assert cache.invalidate("a") is False

        cache.get("b")
        cache.clear()

        stats = cache.get_stats()
        assert stats["size"] == 0
        assert stats["hits"] == 0

    def test_hit_rate(self) -> None:
        cache = ValidationCache()
        cache.set("k", _ok())
        cache.get("k")
        cache.get("missing")

        assert cache.get_stats()["hit_rate_pct"] == 50.0

    def test_invalid_max_size(self) -> None:
        with pytest.raises(ValueError):
            ValidationCache(max_size=0)


class TestGetOrCompute:
    """Tests for single-flight computation."""

    def test_concurrent_callers_compute_once(self) -> None:
        cache = ValidationCache()
        calls = 0

        async def compute() -> ValidationResult:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return _ok()

        async def scenario() -> list[tuple[ValidationResult, bool]]:
            return await asyncio.gather(*(cache.get_or_compute("k", compute) for _ in range(5)))

        outcomes = asyncio.run(scenario())

        assert calls == 1
        assert sorted(hit for _, hit in outcomes) == [False, True, True, True, True]

    def test_failing_results_recomputed(self) -> None:
        cache = ValidationCache()
        calls = 0

        async def compute() -> ValidationResult:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0)
            return ValidationResult(request_id="req_1", overall_valid=False)

        async def scenario() -> None:
            await asyncio.gather(cache.get_or_compute("k", compute), cache.get_or_compute("k", compute))

        asyncio.run(scenario())

        assert calls == 2
        assert len(cache) == 0

    def test_existing_entry_is_hit(self) -> None:
        cache = ValidationCache()
        cache.set("k", _ok("req_cached"))

        async def compute() -> ValidationResult:
            raise AssertionError("should not compute")

        result, hit = asyncio.run(cache.get_or_compute("k", compute))

        assert hit
        assert result.request_id == "req_cached"
