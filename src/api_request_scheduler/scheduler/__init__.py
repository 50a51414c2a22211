# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Scheduler for rate limited, prioritised outbound requests.

This module provides:
- RequestScheduler, create_scheduler: The scheduler and its factory
- SchedulerConfig, SchedulerState: Configuration and lifecycle state
- RequestQueue: Priority-ordered pending requests
- RateWindowTracker: Sliding-window admission control
- ResponseCache, CacheEntry, CacheMetrics: Time-boxed response cache
- RetryCoordinator: Backoff and re-enqueue of rate limited requests
"""

from .cache import ResponseCache
from .config import SchedulerConfig, SchedulerState
from .models import CacheEntry, CacheMetrics
from .queue import RequestQueue
from .retry import RetryCoordinator
from .scheduler import RequestScheduler, create_scheduler
from .window import RateWindowTracker

__all__ = [
    "CacheEntry",
    "CacheMetrics",
    "RateWindowTracker",
    "RequestQueue",
    # Scheduler
    "RequestScheduler",
    "ResponseCache",
    "RetryCoordinator",
    # Config
    "SchedulerConfig",
    "SchedulerState",
    "create_scheduler",
]
