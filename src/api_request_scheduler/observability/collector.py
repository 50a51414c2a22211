# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metrics collector backing the scheduler's Prometheus export.

Counters, gauges and histograms are kept in memory (for ``get_metrics()``
snapshots) and mirrored into prometheus_client metrics, optionally served
over HTTP for scraping. ``get_metrics_collector()`` returns the process-wide
instance used by schedulers created with ``metrics_enabled=True``.

Usage:
    >>> from api_request_scheduler.observability.collector import get_metrics_collector
    >>> collector = get_metrics_collector()
    >>> collector.inc_counter('api_scheduler_requests_dispatched_total')
    >>> metrics = collector.get_metrics()
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from .constants import (
    ADMISSION_WAITS_TOTAL,
    CACHE_EVICTIONS_TOTAL,
    CACHE_HITS_TOTAL,
    CACHE_MISSES_TOTAL,
    IN_FLIGHT_REQUESTS,
    LATENCY_BUCKETS,
    QUEUE_DEPTH,
    REQUEST_DURATION_SECONDS,
    REQUESTS_DISPATCHED_TOTAL,
    REQUESTS_FAILED_TOTAL,
    REQUESTS_RATE_LIMITED_TOTAL,
    REQUESTS_SUBMITTED_TOTAL,
    REQUESTS_SUCCEEDED_TOTAL,
    RETRIES_SCHEDULED_TOTAL,
    WINDOW_USAGE,
)

logger = logging.getLogger(__name__)


@dataclass
class MetricDefinition:
    """
    Definition for a metric that can be instantiated.

    This dataclass defines the schema for metrics, including their type,
    description, labels, and histogram buckets.
    """

    name: str
    metric_type: str  # 'counter', 'gauge', 'histogram'
    description: str
    label_names: tuple[str, ...] = ()
    buckets: list[float] | None = None


# Pre-defined metrics for the library
METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    # === Request Counters ===
    REQUESTS_SUBMITTED_TOTAL: MetricDefinition(
        REQUESTS_SUBMITTED_TOTAL,
        "counter",
        "Total requests submitted",
        ("priority",),
    ),
    REQUESTS_DISPATCHED_TOTAL: MetricDefinition(
        REQUESTS_DISPATCHED_TOTAL,
        "counter",
        "Total dispatch attempts",
        ("priority",),
    ),
    REQUESTS_SUCCEEDED_TOTAL: MetricDefinition(
        REQUESTS_SUCCEEDED_TOTAL,
        "counter",
        "Total dispatches completed successfully",
        ("priority",),
    ),
    REQUESTS_FAILED_TOTAL: MetricDefinition(
        REQUESTS_FAILED_TOTAL,
        "counter",
        "Total requests rejected to the caller",
        ("reason",),
    ),
    REQUESTS_RATE_LIMITED_TOTAL: MetricDefinition(
        REQUESTS_RATE_LIMITED_TOTAL,
        "counter",
        "Total dispatches rejected by the downstream rate limit",
        (),
    ),
    RETRIES_SCHEDULED_TOTAL: MetricDefinition(
        RETRIES_SCHEDULED_TOTAL,
        "counter",
        "Total retries scheduled",
        (),
    ),
    ADMISSION_WAITS_TOTAL: MetricDefinition(
        ADMISSION_WAITS_TOTAL,
        "counter",
        "Total waits on a full rate window",
        (),
    ),
    REQUEST_DURATION_SECONDS: MetricDefinition(
        REQUEST_DURATION_SECONDS,
        "histogram",
        "Duration of successful dispatches",
        (),
        buckets=LATENCY_BUCKETS,
    ),
    # === Gauges ===
    QUEUE_DEPTH: MetricDefinition(
        QUEUE_DEPTH,
        "gauge",
        "Current queue depth",
        (),
    ),
    IN_FLIGHT_REQUESTS: MetricDefinition(
        IN_FLIGHT_REQUESTS,
        "gauge",
        "Requests currently being dispatched",
        (),
    ),
    WINDOW_USAGE: MetricDefinition(
        WINDOW_USAGE,
        "gauge",
        "Admissions in the current rate window",
        (),
    ),
    # === Cache Counters ===
    CACHE_HITS_TOTAL: MetricDefinition(
        CACHE_HITS_TOTAL,
        "counter",
        "Total cache hits",
        (),
    ),
    CACHE_MISSES_TOTAL: MetricDefinition(
        CACHE_MISSES_TOTAL,
        "counter",
        "Total cache misses",
        (),
    ),
    CACHE_EVICTIONS_TOTAL: MetricDefinition(
        CACHE_EVICTIONS_TOTAL,
        "counter",
        "Total expired cache entries removed",
        (),
    ),
}


_PROMETHEUS_TYPES: dict[str, Any] = {
    "counter": Counter,
    "gauge": Gauge,
    "histogram": Histogram,
}

# Observations kept per histogram series for get_metrics() summaries
MAX_HISTOGRAM_SAMPLES = 5000


class UnifiedMetricsCollector:
    """
    Scheduler metrics kept in memory and mirrored into Prometheus.

    Every update lands in a dict keyed by metric name and a sorted
    ``k=v,...`` label key, then in the matching prometheus_client metric,
    created on first use from METRIC_DEFINITIONS. A metric that cannot be
    registered (duplicate name in a shared registry) stays dict-only.

    At most MAX_LABEL_COMBINATIONS label keys are tracked per metric; updates
    for further combinations are dropped with a warning.

    Example:
        >>> collector = UnifiedMetricsCollector(registry=CollectorRegistry())
        >>> collector.inc_counter('api_scheduler_requests_submitted_total',
        ...                       labels={'priority': 'high'})
        >>> collector.get_metrics()["counters"]
        {'api_scheduler_requests_submitted_total': {'priority=high': 1}}
    """

    MAX_LABEL_COMBINATIONS: ClassVar[int] = 1000

    def __init__(
        self,
        enable_prometheus: bool = True,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """
        Args:
            enable_prometheus: Mirror updates into Prometheus metrics
            registry: Registry to register into (default: the global REGISTRY)
        """
        self._enable_prometheus = enable_prometheus
        self._registry = registry if registry is not None else REGISTRY
        self._lock = threading.RLock()

        self._counters: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._gauges: dict[str, dict[str, float]] = defaultdict(
            lambda: defaultdict(float)
        )
        self._histograms: dict[str, dict[str, deque[float]]] = defaultdict(
            lambda: defaultdict(lambda: deque(maxlen=MAX_HISTOGRAM_SAMPLES))
        )
        self._series: dict[str, set[str]] = defaultdict(set)
        self._prom_metrics: dict[str, Any] = {}
        self._server_running = False

        logger.debug(
            f"UnifiedMetricsCollector initialized (prometheus={enable_prometheus})"
        )

    # === Updates ===

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """
        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError("Counter increment must be non-negative")

        def apply(series: dict[str, int], key: str) -> None:
            series[key] += value

        self._record("counter", name, labels, self._counters, apply, "inc", value)

    def set_gauge(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        def apply(series: dict[str, float], key: str) -> None:
            series[key] = value

        self._record("gauge", name, labels, self._gauges, apply, "set", value)

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        def apply(series: dict[str, deque[float]], key: str) -> None:
            series[key].append(value)

        self._record(
            "histogram", name, labels, self._histograms, apply, "observe", value
        )

    def _record(
        self,
        metric_type: str,
        name: str,
        labels: dict[str, str] | None,
        store: dict[str, Any],
        apply: Callable[[Any, str], None],
        prom_method: str,
        value: float,
    ) -> None:
        key = ",".join(f"{k}={v}" for k, v in sorted((labels or {}).items()))

        with self._lock:
            if not self._admit_series(name, key):
                return
            apply(store[name], key)

        metric = self._prometheus_metric(name, metric_type)
        if metric is None:
            return
        try:
            target = metric.labels(**labels) if labels else metric
            getattr(target, prom_method)(value)
        except (ValueError, TypeError) as e:
            logger.debug(f"Prometheus {metric_type} update failed for {name}: {e}")

    def _admit_series(self, name: str, key: str) -> bool:
        known = self._series[name]
        if key in known:
            return True
        if len(known) >= self.MAX_LABEL_COMBINATIONS:
            logger.warning(
                f"Cardinality limit ({self.MAX_LABEL_COMBINATIONS}) reached "
                f"for metric {name}. Dropping label combination: {key}"
            )
            return False
        known.add(key)
        return True

    def _prometheus_metric(self, name: str, metric_type: str) -> Any | None:
        if not self._enable_prometheus:
            return None

        with self._lock:
            if name in self._prom_metrics:
                return self._prom_metrics[name]

            defn = METRIC_DEFINITIONS.get(name)
            if defn is None or defn.metric_type != metric_type:
                defn = MetricDefinition(name, metric_type, f"Dynamic {metric_type}: {name}")

            kwargs: dict[str, Any] = {"registry": self._registry}
            if metric_type == "histogram":
                kwargs["buckets"] = defn.buckets or LATENCY_BUCKETS

            metric: Any
            try:
                metric = _PROMETHEUS_TYPES[metric_type](
                    name, defn.description, list(defn.label_names), **kwargs
                )
            except ValueError as e:
                # Already registered in a shared registry
                logger.warning(f"Failed to create Prometheus {metric_type} {name}: {e}")
                metric = None

            self._prom_metrics[name] = metric
            return metric

    # === Snapshot ===

    def get_metrics(self) -> dict[str, Any]:
        """
        Snapshot of the in-memory metrics.

        Counters and gauges map ``name -> {label_key: value}``; histograms map
        ``name -> {label_key: {count, sum, avg, min, max}}`` over the retained
        observations.
        """
        with self._lock:
            return {
                "counters": {n: dict(s) for n, s in self._counters.items()},
                "gauges": {n: dict(s) for n, s in self._gauges.items()},
                "histograms": {
                    n: {k: _summarize(obs) for k, obs in s.items() if obs}
                    for n, s in self._histograms.items()
                },
            }

    def reset(self) -> None:
        """Clear the in-memory metrics. Prometheus metrics are left registered."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._series.clear()

        logger.debug("Metrics collector reset")

    # === Prometheus HTTP Server ===

    def start_http_server(self, host: str = "127.0.0.1", port: int = 9090) -> bool:
        """
        Serve the registry for scraping from a daemon thread.

        Returns:
            True if the exporter is running, False if binding failed
        """
        if self._server_running:
            logger.warning("Prometheus server already running")
            return True

        try:
            start_http_server(port, addr=host, registry=self._registry)
        except OSError as e:
            logger.error(f"Failed to start Prometheus server: {e}")
            return False

        self._server_running = True
        logger.info(f"Prometheus metrics server started on {host}:{port}")
        return True

    @property
    def server_running(self) -> bool:
        return self._server_running


def _summarize(observations: deque[float]) -> dict[str, float]:
    total = sum(observations)
    return {
        "count": len(observations),
        "sum": total,
        "avg": total / len(observations),
        "min": min(observations),
        "max": max(observations),
    }


# =============================================================================
# Singleton Pattern
# =============================================================================

_global_collector: UnifiedMetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector(
    enable_prometheus: bool = True,
) -> UnifiedMetricsCollector:
    """
    Get or create the global metrics collector singleton.

    Args:
        enable_prometheus: Whether to enable Prometheus metrics
            (only used on first call)

    Returns:
        The UnifiedMetricsCollector singleton
    """
    global _global_collector

    if _global_collector is None:
        with _collector_lock:
            if _global_collector is None:
                _global_collector = UnifiedMetricsCollector(
                    enable_prometheus=enable_prometheus
                )

    return _global_collector


def reset_metrics_collector() -> None:
    """
    Reset the global metrics collector singleton (mainly for testing).

    Prometheus metrics already registered in the default registry stay
    registered; a collector created afterwards reuses nothing from the old one
    and logs a warning for each name it cannot re-register.
    """
    global _global_collector
    with _collector_lock:
        if _global_collector:
            _global_collector.reset()
        _global_collector = None


__all__ = [
    "METRIC_DEFINITIONS",
    "MetricDefinition",
    "UnifiedMetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]
