# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request descriptor types for the request scheduler.

This module defines the plain data records that flow through the request
queue. The future a caller awaits is deliberately NOT part of the descriptor;
the scheduler keeps it in a separate map keyed by ``request_id``.
"""

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_CACHE_TTL_MS = 300_000.0


class Priority(Enum):
    """Priority class of a request.

    The rank decides queue position: lower rank is dispatched first.
    Within the same class, submission order is preserved.
    """

    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANKS[self]

    @classmethod
    def parse(cls, value: "Priority | str") -> "Priority":
        """Accept either a Priority or its string value (case-insensitive)."""
        if isinstance(value, Priority):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as e:
            raise ValueError(
                f"Unknown priority: {value!r} (expected high, normal or low)"
            ) from e


_PRIORITY_RANKS = {Priority.HIGH: 0, Priority.NORMAL: 1, Priority.LOW: 2}


@dataclass
class RequestDescriptor:
    """
    A request owned by the scheduler from enqueue until resolution.

    Attributes:
        request_id: Unique identifier for this request instance
        request: Opaque request payload handed to the transport
        priority: Priority class controlling queue position
        cache_key: Optional key under which a successful result is cached
        cache_ttl_ms: Lifetime of the cached result in milliseconds
        bypass_cache: Skip both cache lookup and cache population
        retry_count: Number of rate-limit retries already scheduled
        created_at_ms: Submission timestamp on the scheduler clock (ms);
            keyword-only, with no default
    """

    request_id: str
    request: Any
    priority: Priority = Priority.NORMAL
    cache_key: str | None = None
    cache_ttl_ms: float = DEFAULT_CACHE_TTL_MS
    bypass_cache: bool = False
    retry_count: int = 0
    created_at_ms: float = field(kw_only=True)

    @property
    def cacheable(self) -> bool:
        """Whether this request reads from and writes to the response cache."""
        return self.cache_key is not None and not self.bypass_cache


def sequential_id_factory(prefix: str = "req") -> Callable[[], str]:
    """Return a factory producing ``prefix-1``, ``prefix-2``, ... identifiers."""
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


__all__ = [
    "DEFAULT_CACHE_TTL_MS",
    "Priority",
    "RequestDescriptor",
    "sequential_id_factory",
]
