# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Scheduler Configuration for the API Request Scheduler

This module provides the configuration dataclass for the request scheduler,
covering the rate window, retry backoff, cache and metrics settings. All
durations are in milliseconds.
"""

from dataclasses import dataclass
from enum import Enum


class SchedulerState(Enum):
    """Lifecycle state of a scheduler instance.

    - IDLE: No drain task is running; the queue is empty or about to be
      picked up by the next enqueue or safety tick.
    - DRAINING: The drain task is actively processing the queue.
    - STOPPED: ``shutdown()`` has run; no further submissions are accepted.
    """

    IDLE = "idle"
    DRAINING = "draining"
    STOPPED = "stopped"


@dataclass
class SchedulerConfig:
    """
    Configuration for the request scheduler.

    Defaults describe a conservative client for a service allowing 100
    requests per two minutes.
    """

    # === Rate Window ===

    max_requests_per_window: int = 90
    """Maximum admitted dispatches inside the trailing window."""

    window_size_ms: float = 120_000
    """Length of the trailing window in milliseconds."""

    admission_buffer_ms: float = 100
    """Extra wait added when blocked on the window, absorbs clock skew."""

    min_admission_wait_ms: float = 1000
    """Floor for the wait while blocked on the window, avoids hot looping."""

    # === Retry ===

    max_retries: int = 3
    """Maximum rate-limit retries per request (attempts = 1 + max_retries)."""

    base_retry_delay_ms: float = 1000
    """Base of the exponential backoff: base * 2^retry_count."""

    # === Cache ===

    default_cache_ttl_ms: float = 300_000
    """TTL used when a submission does not give one."""

    cache_sweep_interval_ms: float = 300_000
    """Interval between full sweeps of expired cache entries."""

    # === Queue ===

    queue_safety_tick_ms: float = 1000
    """Interval of the safety-net tick that restarts an idle drain."""

    # === Metrics and Monitoring ===

    metrics_enabled: bool = False
    """Mirror stats into the unified metrics collector (Prometheus)."""

    start_prometheus_server: bool = False
    """Start the Prometheus HTTP exporter when metrics are enabled."""

    prometheus_host: str = "127.0.0.1"
    """Prometheus metrics host."""

    prometheus_port: int = 9090
    """Prometheus metrics port."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_requests_per_window < 1:
            raise ValueError("max_requests_per_window must be at least 1")
        if self.window_size_ms <= 0:
            raise ValueError("window_size_ms must be positive")
        if self.admission_buffer_ms < 0:
            raise ValueError("admission_buffer_ms must be non-negative")
        if self.min_admission_wait_ms < 0:
            raise ValueError("min_admission_wait_ms must be non-negative")
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_retry_delay_ms < 0:
            raise ValueError("base_retry_delay_ms must be non-negative")
        if self.default_cache_ttl_ms <= 0:
            raise ValueError("default_cache_ttl_ms must be positive")
        if self.cache_sweep_interval_ms <= 0:
            raise ValueError("cache_sweep_interval_ms must be positive")
        if self.queue_safety_tick_ms <= 0:
            raise ValueError("queue_safety_tick_ms must be positive")


__all__ = [
    "SchedulerConfig",
    "SchedulerState",
]
