# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""API Request Scheduler - rate limited, prioritised outbound requests.

This library queues outbound API calls and dispatches them under a
sliding-window rate limit, retrying downstream rate limit rejections with
backoff and answering repeat requests from a time-boxed response cache.

Key Features:
    - Sliding-window admission control (default 90 requests per 120s)
    - Priority queue (high, normal, low), FIFO within a priority
    - Retry with exponential backoff honouring retry-after
    - TTL response cache with hit/miss/eviction statistics
    - Prometheus metrics export
    - Transport-agnostic core with a bundled httpx transport

Quick Start:
    >>> from api_request_scheduler import HttpTransport, create_scheduler
    >>>
    >>> async with HttpTransport(base_url="https://api.example.com") as transport:
    ...     async with create_scheduler(transport=transport) as scheduler:
    ...         response = await scheduler.submit_request(
    ...             {"url": "/status"}, priority="high", cache_key="status"
    ...         )

Main Exports:
    - RequestScheduler, create_scheduler: Core scheduling components
    - SchedulerConfig: Configuration options
    - HttpTransport, StatusCodeClassifier: Bundled transport and classifier
    - TransportProtocol, ClassifierProtocol: Protocols for custom transports

Version: 1.0.0
"""

__version__ = "1.0.0"

from .exceptions import (
    HttpStatusError,
    PermanentRequestError,
    RateLimitedError,
    RateLimitExhaustedError,
    SchedulerError,
    SchedulerTerminatedError,
    TransportError,
)
from .protocols import (
    ClassifierProtocol,
    RateLimitVerdict,
    TransportProtocol,
)
from .scheduler import (
    RequestScheduler,
    SchedulerConfig,
    SchedulerState,
    create_scheduler,
)
from .transports import (
    HttpRequest,
    HttpResponse,
    HttpTransport,
    StatusCodeClassifier,
)
from .types import Priority, RequestDescriptor

__all__ = [
    "ClassifierProtocol",
    "HttpRequest",
    "HttpResponse",
    "HttpStatusError",
    # Transports
    "HttpTransport",
    "PermanentRequestError",
    "Priority",
    "RateLimitExhaustedError",
    "RateLimitVerdict",
    "RateLimitedError",
    "RequestDescriptor",
    # Scheduler
    "RequestScheduler",
    "SchedulerConfig",
    # Exceptions
    "SchedulerError",
    "SchedulerState",
    "SchedulerTerminatedError",
    "StatusCodeClassifier",
    "TransportError",
    # Protocols
    "TransportProtocol",
    "__version__",
    "create_scheduler",
]
