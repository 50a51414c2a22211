# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for rate limit classification of dispatch failures."""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class RateLimitVerdict:
    """
    Outcome of classifying a failed dispatch as a rate limit rejection.

    Attributes:
        retry_after: Server-suggested wait in seconds, or None to fall back
            to exponential backoff.
    """

    retry_after: float | None = None


@runtime_checkable
class ClassifierProtocol(Protocol):
    """
    Protocol for deciding whether a dispatch failure was a rate limit.

    The scheduler core is transport-agnostic; it only needs a boolean
    classification plus an optional suggested delay. Transports pair with
    a classifier that knows how their errors look (status codes, headers).
    """

    def classify(self, error: BaseException) -> RateLimitVerdict | None:
        """
        Classify a dispatch failure.

        Args:
            error: The exception raised by the transport

        Returns:
            RateLimitVerdict when the failure is a rate limit rejection,
            None for every other (permanent) failure.
        """
        ...
