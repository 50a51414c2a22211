# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Passive request statistics for a scheduler instance.

StatsCollector keeps the in-process counters reported by
``RequestScheduler.get_stats()`` and, when given a metrics collector,
mirrors every update into it for Prometheus export.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from .constants import (
    ADMISSION_WAITS_TOTAL,
    IN_FLIGHT_REQUESTS,
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

logger = logging.getLogger(__name__)

EMA_SMOOTHING = 0.1
"""Weight of the newest sample in the moving average of response time."""


@dataclass
class StatsCollector:
    """
    Counters and timings for one scheduler.

    ``total_requests`` counts dispatch attempts, so a request retried twice
    contributes three. ``average_response_time_ms`` is an exponential moving
    average of successful dispatch latency, seeded by the first sample.
    """

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    rate_limited_requests: int = 0
    cached_responses: int = 0
    average_response_time_ms: float = 0.0
    last_request_time_ms: float | None = None
    _samples: int = field(default=0, init=False, repr=False)
    metrics_collector: MetricsCollectorProtocol | None = field(
        default=None, repr=False, compare=False
    )

    def record_submitted(self, priority: str) -> None:
        self._inc(REQUESTS_SUBMITTED_TOTAL, {"priority": priority})

    def record_dispatch(self, now_ms: float, priority: str) -> None:
        """Count a dispatch attempt starting at ``now_ms``."""
        self.total_requests += 1
        self.last_request_time_ms = now_ms
        self._inc(REQUESTS_DISPATCHED_TOTAL, {"priority": priority})

    def record_success(self, latency_ms: float, priority: str) -> None:
        self.successful_requests += 1
        self.update_average_response_time(latency_ms)
        self._inc(REQUESTS_SUCCEEDED_TOTAL, {"priority": priority})
        if self.metrics_collector is not None:
            self.metrics_collector.observe_histogram(
                REQUEST_DURATION_SECONDS, latency_ms / 1000
            )

    def record_failure(self, reason: str) -> None:
        """Count a request rejected to its caller.

        Args:
            reason: ``permanent`` or ``exhausted``
        """
        self.failed_requests += 1
        self._inc(REQUESTS_FAILED_TOTAL, {"reason": reason})

    def record_terminated(self, count: int = 1) -> None:
        """Count requests discarded at shutdown (not included in ``failed_requests``)."""
        if count > 0:
            self._inc(REQUESTS_FAILED_TOTAL, {"reason": "terminated"}, count)

    def record_rate_limited(self) -> None:
        self.rate_limited_requests += 1
        self._inc(REQUESTS_RATE_LIMITED_TOTAL)

    def record_retry_scheduled(self) -> None:
        self._inc(RETRIES_SCHEDULED_TOTAL)

    def record_cached_response(self) -> None:
        self.cached_responses += 1

    def record_admission_wait(self) -> None:
        self._inc(ADMISSION_WAITS_TOTAL)

    def update_average_response_time(self, sample_ms: float) -> None:
        if self._samples == 0:
            self.average_response_time_ms = sample_ms
        else:
            self.average_response_time_ms = (
                self.average_response_time_ms * (1 - EMA_SMOOTHING)
                + sample_ms * EMA_SMOOTHING
            )
        self._samples += 1

    def update_gauges(self, queue_depth: int, in_flight: int, window_usage: int) -> None:
        """Publish point-in-time scheduler state to the metrics collector."""
        if self.metrics_collector is None:
            return
        self.metrics_collector.set_gauge(QUEUE_DEPTH, queue_depth)
        self.metrics_collector.set_gauge(IN_FLIGHT_REQUESTS, in_flight)
        self.metrics_collector.set_gauge(WINDOW_USAGE, window_usage)

    def snapshot(self) -> dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "rate_limited_requests": self.rate_limited_requests,
            "cached_responses": self.cached_responses,
            "average_response_time_ms": round(self.average_response_time_ms, 3),
            "last_request_time_ms": self.last_request_time_ms,
        }

    def _inc(
        self, name: str, labels: dict[str, str] | None = None, value: int = 1
    ) -> None:
        if self.metrics_collector is None:
            return
        try:
            self.metrics_collector.inc_counter(name, value, labels=labels)
        except Exception as e:
            # Metrics must never break request handling
            logger.debug(f"Failed to record metric {name}: {e}")


__all__ = ["EMA_SMOOTHING", "StatsCollector"]
