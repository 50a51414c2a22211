# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the `api_scheduler_` prefix.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for time end with `_seconds`
    - Gauges use present-tense descriptive names

Label Best Practices:
    Only categorical labels are used (`priority`, `reason`). Never label by
    request id or cache key; both are unbounded.
"""


# =============================================================================
# Global Prefix
# =============================================================================

METRIC_PREFIX = "api_scheduler"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Request Metrics (scheduler/scheduler.py)
# =============================================================================

REQUESTS_SUBMITTED_TOTAL = f"{METRIC_PREFIX}_requests_submitted_total"
"""Total requests submitted by callers (including cache hits)."""

REQUESTS_DISPATCHED_TOTAL = f"{METRIC_PREFIX}_requests_dispatched_total"
"""Total dispatch attempts sent to the transport (retries included)."""

REQUESTS_SUCCEEDED_TOTAL = f"{METRIC_PREFIX}_requests_succeeded_total"
"""Total dispatches that completed successfully."""

REQUESTS_FAILED_TOTAL = f"{METRIC_PREFIX}_requests_failed_total"
"""Total requests rejected to the caller (permanent, exhausted, terminated)."""

REQUESTS_RATE_LIMITED_TOTAL = f"{METRIC_PREFIX}_requests_rate_limited_total"
"""Total dispatches rejected by the downstream rate limit."""

RETRIES_SCHEDULED_TOTAL = f"{METRIC_PREFIX}_retries_scheduled_total"
"""Total retry timers scheduled after a rate limit rejection."""

ADMISSION_WAITS_TOTAL = f"{METRIC_PREFIX}_admission_waits_total"
"""Total times the drain loop slept because the window was full."""

REQUEST_DURATION_SECONDS = f"{METRIC_PREFIX}_request_duration_seconds"
"""Duration of successful dispatches (histogram)."""


# =============================================================================
# Active State Gauges
# =============================================================================

QUEUE_DEPTH = f"{METRIC_PREFIX}_queue_depth"
"""Current number of queued requests."""

IN_FLIGHT_REQUESTS = f"{METRIC_PREFIX}_in_flight_requests"
"""Number of requests currently being dispatched."""

WINDOW_USAGE = f"{METRIC_PREFIX}_window_usage"
"""Admissions recorded in the current trailing window."""


# =============================================================================
# Cache Metrics (scheduler/cache.py)
# =============================================================================

CACHE_HITS_TOTAL = f"{METRIC_PREFIX}_cache_hits_total"
"""Total cache hits."""

CACHE_MISSES_TOTAL = f"{METRIC_PREFIX}_cache_misses_total"
"""Total cache misses (absent or expired)."""

CACHE_EVICTIONS_TOTAL = f"{METRIC_PREFIX}_cache_evictions_total"
"""Total expired entries removed (lazily or by sweep)."""


# =============================================================================
# Histogram Buckets
# =============================================================================

LATENCY_BUCKETS = [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
"""Buckets for request latency histograms (seconds)."""


__all__ = [
    "ADMISSION_WAITS_TOTAL",
    "CACHE_EVICTIONS_TOTAL",
    "CACHE_HITS_TOTAL",
    "CACHE_MISSES_TOTAL",
    "IN_FLIGHT_REQUESTS",
    "LATENCY_BUCKETS",
    "METRIC_PREFIX",
    "QUEUE_DEPTH",
    "REQUESTS_DISPATCHED_TOTAL",
    "REQUESTS_FAILED_TOTAL",
    "REQUESTS_RATE_LIMITED_TOTAL",
    "REQUESTS_SUBMITTED_TOTAL",
    "REQUESTS_SUCCEEDED_TOTAL",
    "REQUEST_DURATION_SECONDS",
    "RETRIES_SCHEDULED_TOTAL",
    "WINDOW_USAGE",
]
