# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Cache models for the API Request Scheduler.

Contains the cache entry model and the cache statistics dataclass.
"""

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, model_validator

logger = logging.getLogger(__name__)  # api_request_scheduler.scheduler.models


@dataclass
class CacheMetrics:
    """Response cache counters."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class CacheEntry(BaseModel):
    """
    A cached response value with its lifetime.

    Timestamps are milliseconds on the owning cache's clock.
    """

    key: str
    value: Any
    created_at_ms: float
    expires_at_ms: float

    @model_validator(mode="after")
    def _validate_expiration(self) -> "CacheEntry":
        """Validate that expires_at_ms is not before created_at_ms."""
        if self.expires_at_ms < self.created_at_ms:
            raise ValueError("expires_at_ms must not be before created_at_ms")
        return self

    def is_expired(self, now_ms: float) -> bool:
        """Check if entry has expired; an entry is still live at its expiry instant."""
        return now_ms > self.expires_at_ms

    def ttl_remaining_ms(self, now_ms: float) -> float:
        return max(0.0, self.expires_at_ms - now_ms)


__all__ = ["CacheEntry", "CacheMetrics"]
