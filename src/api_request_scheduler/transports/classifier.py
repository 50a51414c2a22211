# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Default rate limit classifier.

Recognises the usual shapes of a downstream "too many requests" failure:
our own RateLimitedError, any exception carrying ``status_code == 429``,
and third-party exceptions whose class name mentions a rate limit.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ..exceptions import RateLimitedError
from ..protocols.classifier import RateLimitVerdict

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429


def parse_retry_after(headers: Mapping[str, Any] | None) -> float | None:
    """
    Extract the ``retry-after`` header as seconds.

    Header names are matched case-insensitively. Only the delta-seconds form
    is supported; anything else is logged and ignored.

    Returns:
        Seconds to wait, or None when absent or malformed
    """
    if not headers:
        return None

    raw = None
    for name, value in headers.items():
        if str(name).lower() == "retry-after":
            raw = value
            break
    if raw is None:
        return None

    try:
        seconds = float(raw)
    except (TypeError, ValueError):
        logger.warning(f"Malformed retry-after header: '{raw}', skipping")
        return None

    if seconds < 0:
        logger.warning(f"Negative retry-after header: '{raw}', skipping")
        return None
    return seconds


class StatusCodeClassifier:
    """
    Classifies failures by exception type, status code and class name.

    Example:
        >>> classifier = StatusCodeClassifier()
        >>> classifier.classify(RateLimitedError(retry_after=2.0))
        RateLimitVerdict(retry_after=2.0)
        >>> classifier.classify(ValueError("boom")) is None
        True
    """

    def classify(self, error: BaseException) -> RateLimitVerdict | None:
        if not self._is_rate_limit_error(error):
            return None
        return RateLimitVerdict(retry_after=self._retry_after(error))

    def _is_rate_limit_error(self, error: BaseException) -> bool:
        """Check if an exception represents a 429 rate limit response."""
        if isinstance(error, RateLimitedError):
            return True

        error_name = type(error).__name__.lower()
        if "ratelimit" in error_name:
            return True

        return getattr(error, "status_code", None) == RATE_LIMIT_STATUS

    def _retry_after(self, error: BaseException) -> float | None:
        retry_after = getattr(error, "retry_after", None)
        if retry_after is not None:
            try:
                return max(0.0, float(retry_after))
            except (TypeError, ValueError):
                logger.warning(f"Malformed retry_after attribute: {retry_after!r}, skipping")

        headers = getattr(error, "headers", None)
        if isinstance(headers, Mapping):
            return parse_retry_after(headers)
        return None


__all__ = ["RATE_LIMIT_STATUS", "StatusCodeClassifier", "parse_retry_after"]
