# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Time-boxed response cache.

Lookups and writes are synchronous and never block, so the scheduler can
run them inline. Expired entries are evicted lazily on lookup and by a
periodic background sweep.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from typing import Any

from ..observability.constants import (
    CACHE_EVICTIONS_TOTAL,
    CACHE_HITS_TOTAL,
    CACHE_MISSES_TOTAL,
)
from ..observability.protocols import MetricsCollectorProtocol
from .models import CacheEntry, CacheMetrics

logger = logging.getLogger(__name__)  # api_request_scheduler.scheduler.cache

DEFAULT_SWEEP_INTERVAL_MS = 300_000.0


def monotonic_ms() -> float:
    """Default clock: monotonic time in milliseconds."""
    return time.monotonic() * 1000


class ResponseCache:
    """
    Key/value store with per-entry expiry and eviction statistics.

    An entry is live up to and including its expiry instant. Reading an
    expired entry removes it and counts both an eviction and a miss.

    Example:
        >>> cache = ResponseCache()
        >>> cache.set("summoner:abc", {"level": 30}, ttl_ms=60_000)
        >>> cache.get("summoner:abc")
        {'level': 30}
    """

    def __init__(
        self,
        clock: Callable[[], float] | None = None,
        sweep_interval_ms: float = DEFAULT_SWEEP_INTERVAL_MS,
        metrics_collector: MetricsCollectorProtocol | None = None,
    ) -> None:
        self._clock = clock or monotonic_ms
        self.sweep_interval_ms = sweep_interval_ms
        self._entries: dict[str, CacheEntry] = {}
        self.metrics = CacheMetrics()

        # Optional unified metrics collector for Prometheus export
        self._metrics_collector = metrics_collector

        # Background sweep
        self._sweep_task: asyncio.Task[None] | None = None
        self._running = False

    # === Lookups and writes ===

    def get(self, key: str, now: float | None = None) -> Any | None:
        """
        Return the cached value for ``key``, or None on a miss.

        Args:
            key: Cache key
            now: Current time in ms (defaults to the cache clock)
        """
        now = self._clock() if now is None else now
        entry = self._entries.get(key)

        if entry is None:
            self._record_miss()
            return None

        if entry.is_expired(now):
            del self._entries[key]
            self._record_evictions(1)
            self._record_miss()
            logger.debug(f"Evicted expired cache entry for key: {key}")
            return None

        self.metrics.hits += 1
        self._emit(CACHE_HITS_TOTAL)
        logger.debug(f"Cache hit for key: {key}")
        return entry.value

    def set(self, key: str, value: Any, ttl_ms: float, now: float | None = None) -> None:
        """Store ``value`` under ``key`` for ``ttl_ms``, replacing any existing entry."""
        now = self._clock() if now is None else now
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            created_at_ms=now,
            expires_at_ms=now + ttl_ms,
        )
        logger.debug(f"Cached response for key: {key} (TTL: {ttl_ms / 1000}s)")

    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if an entry was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry. Statistics are kept."""
        self._entries.clear()

    def sweep(self, now: float | None = None) -> int:
        """
        Remove every expired entry.

        Returns:
            int: Number of entries evicted
        """
        now = self._clock() if now is None else now
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

        if expired:
            self._record_evictions(len(expired))
            logger.debug(f"Evicted {len(expired)} expired cache entries")
        return len(expired)

    def get_stats(self) -> dict[str, Any]:
        return {
            "hits": self.metrics.hits,
            "misses": self.metrics.misses,
            "evictions": self.metrics.evictions,
            "size": len(self._entries),
            "hit_rate_percent": round(self.metrics.hit_ratio * 100, 2),
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    # === Background sweep ===

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._running:
            return

        self._running = True
        self._sweep_task = asyncio.create_task(
            self._sweep_loop(), name=f"cache_sweep_{id(self)}"
        )
        logger.info(
            f"Cache sweep started (interval: {self.sweep_interval_ms / 1000}s)"
        )

    async def stop(self) -> None:
        """Cancel the background sweep task. Entries are left in place."""
        if not self._running:
            return

        self._running = False
        if self._sweep_task is not None and not self._sweep_task.done():
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
        self._sweep_task = None
        logger.info("Cache sweep stopped")

    @property
    def running(self) -> bool:
        return self._running

    async def _sweep_loop(self) -> None:
        """Background sweep loop."""
        while self._running:
            await asyncio.sleep(self.sweep_interval_ms / 1000)

            if not self._running:
                break

            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Error during cache sweep: {e}", exc_info=True)

    # === Metrics ===

    def _record_miss(self) -> None:
        self.metrics.misses += 1
        self._emit(CACHE_MISSES_TOTAL)

    def _record_evictions(self, count: int) -> None:
        self.metrics.evictions += count
        self._emit(CACHE_EVICTIONS_TOTAL, count)

    def _emit(self, name: str, value: int = 1) -> None:
        if self._metrics_collector is None:
            return
        try:
            self._metrics_collector.inc_counter(name, value)
        except Exception as e:
            logger.debug(f"Failed to record cache metric {name}: {e}")


__all__ = ["DEFAULT_SWEEP_INTERVAL_MS", "ResponseCache", "monotonic_ms"]
