"""
Validation result cache.

Bounded, insertion-ordered cache of successful validation results keyed
by a digest of the request's rule set and payload. Failing results are
never stored, so a corrected record is always re-validated.
"""

from __future__ import annotations

import asyncio
import copy
import threading
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from solar_validation.config import get_logger
from solar_validation.utils.hash_utils import stable_digest
from solar_validation.validation.models import ValidationRequest, ValidationResult


logger = get_logger(__name__)


@dataclass(slots=True)
class CacheEntry:
    """A cached result with its insertion time."""

    value: ValidationResult
    created_at: float = field(default_factory=time.monotonic)


@dataclass(slots=True)
class _InFlight:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    waiters: int = 0


class ValidationCache:
    """
    Bounded cache of validation results with oldest-first eviction.

    Reads hand out deep copies so callers can never alter a stored result.

    Example:
        cache = ValidationCache(max_size=500, ttl_seconds=600)
        key = cache.make_key(request)
        result, hit = await cache.get_or_compute(key, lambda: run(request))
    """

    def __init__(self, max_size: int = 1000, ttl_seconds: float | None = None) -> None:
        """
        Initialize cache.

        Args:
            max_size: Maximum number of entries.
            ttl_seconds: Entry lifetime, None or 0 for no expiry.
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._max_size = max_size
        self._ttl = ttl_seconds or None
        self._lock = threading.RLock()
        self._inflight: dict[str, _InFlight] = {}
        self._stats = {"hits": 0, "misses": 0, "evictions": 0, "rejected": 0}

    @property
    def max_size(self) -> int:
        return self._max_size

    @staticmethod
    def make_key(request: ValidationRequest) -> str:
        """
        Build the cache key for a request.

        The key covers the context, category, the switches that change a
        verdict (strict mode, skipped warnings, error limit), schema names,
        custom rule references with their overrides, cross-validation rule
        names and the payload. Request ids, timestamps, timeouts and the
        caching and metrics switches are not part of it.
        """
        config = request.config
        return stable_digest(
            {
                "context": request.context.value,
                "category": request.category.value,
                "config": {
                    "strict_mode": config.strict_mode,
                    "skip_warnings": config.skip_warnings,
                    "max_errors": config.max_errors,
                },
                "schemas": list(request.rules.schemas),
                "custom_rules": [
                    spec.model_dump(mode="json", exclude_unset=True)
                    for spec in request.rules.custom_rules
                ],
                "cross_validation_rules": list(request.rules.cross_validation_rules),
                "payload": request.data.primary,
            }
        )

    def get(self, key: str) -> ValidationResult | None:
        """
        Get a result from cache.

        Args:
            key: Cache key.

        Returns:
            Copy of the cached result, or None if absent or expired.
        """
        with self._lock:
            value = self._lookup(key)
            if value is None:
                self._stats["misses"] += 1
                return None
            self._stats["hits"] += 1
            return value

    def _lookup(self, key: str) -> ValidationResult | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if self._ttl is not None and time.monotonic() - entry.created_at > self._ttl:
            del self._cache[key]
            return None
        return copy.deepcopy(entry.value)

    def set(self, key: str, result: ValidationResult) -> bool:
        """
        Store a result.

        Args:
            key: Cache key.
            result: Result to store.

        Returns:
            True if stored, False if refused because the result is failing
            or carries request-specific warnings such as staleness.
        """
        if not result.overall_valid or result.warnings:
            with self._lock:
                self._stats["rejected"] += 1
            logger.debug("cache_set_refused", key=key[:12], request_id=result.request_id)
            return False

        with self._lock:
            self._cache[key] = CacheEntry(value=copy.deepcopy(result))
            self._cache.move_to_end(key)
            while len(self._cache) > self._max_size:
                evicted, _ = self._cache.popitem(last=False)
                self._stats["evictions"] += 1
                logger.debug("cache_evicted", key=evicted[:12])
        return True

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[ValidationResult]],
    ) -> tuple[ValidationResult, bool]:
        """
        Get a cached result or compute it once for concurrent callers.

        Concurrent calls with the same key wait on a per-key lock; the
        first computes, later ones read what it stored. When the first
        result was failing (and therefore not stored) each waiter computes
        its own.

        Args:
            key: Cache key.
            compute: Coroutine factory producing a fresh result.

        Returns:
            Tuple of (result, cache_hit).
        """
        cached = self.get(key)
        if cached is not None:
            return cached, True

        inflight = self._inflight.get(key)
        if inflight is None:
            inflight = self._inflight[key] = _InFlight()
        inflight.waiters += 1

        try:
            async with inflight.lock:
                with self._lock:
                    cached = self._lookup(key)
                    if cached is not None:
                        self._stats["hits"] += 1
                if cached is not None:
                    return cached, True

                result = await compute()
                self.set(key, result)
                return result, False
        finally:
            inflight.waiters -= 1
            if inflight.waiters == 0:
                self._inflight.pop(key, None)

    def invalidate(self, key: str) -> bool:
        """
        Invalidate a cache entry.

        Returns:
            True if entry was found and removed.
        """
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> None:
        """Clear all cache entries and statistics."""
        with self._lock:
            self._cache.clear()
            for name in self._stats:
                self._stats[name] = 0

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: object) -> bool:
        return key in self._cache

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            total = self._stats["hits"] + self._stats["misses"]
            hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0

            return {
                "size": len(self._cache),
                "max_size": self._max_size,
                "hits": self._stats["hits"],
                "misses": self._stats["misses"],
                "evictions": self._stats["evictions"],
                "rejected": self._stats["rejected"],
                "hit_rate_pct": hit_rate,
            }
