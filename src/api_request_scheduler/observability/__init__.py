# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability module for the API request scheduler.

This module provides metrics collection and statistics tracking.

Components:
    - StatsCollector: Per-scheduler counters backing ``get_stats()``
    - UnifiedMetricsCollector: Thread-safe dict metrics with Prometheus export
    - MetricsCollectorProtocol: Interface for custom metrics backends
    - Metric name constants (``api_scheduler_*``)
"""

from .collector import (
    METRIC_DEFINITIONS,
    MetricDefinition,
    UnifiedMetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)
from .constants import (
    ADMISSION_WAITS_TOTAL,
    CACHE_EVICTIONS_TOTAL,
    CACHE_HITS_TOTAL,
    CACHE_MISSES_TOTAL,
    IN_FLIGHT_REQUESTS,
    LATENCY_BUCKETS,
    METRIC_PREFIX,
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
from .protocols import MetricsCollectorProtocol
from .stats import EMA_SMOOTHING, StatsCollector

__all__ = [
    "ADMISSION_WAITS_TOTAL",
    "CACHE_EVICTIONS_TOTAL",
    "CACHE_HITS_TOTAL",
    "CACHE_MISSES_TOTAL",
    "EMA_SMOOTHING",
    "IN_FLIGHT_REQUESTS",
    "LATENCY_BUCKETS",
    "METRIC_DEFINITIONS",
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
    "MetricDefinition",
    "MetricsCollectorProtocol",
    "StatsCollector",
    "UnifiedMetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]
