# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Sliding-window admission control.

Tracks the timestamps of recently admitted requests and decides whether a
new dispatch fits inside the trailing window.
"""

import logging

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_MS = 100.0
DEFAULT_MIN_WAIT_MS = 1000.0


class RateWindowTracker:
    """
    Sliding-window counter of admitted requests.

    Timestamps are kept in ascending order and pruned once they fall out of
    the trailing ``window_size_ms``. After pruning, the record length equals
    the number of admissions inside the window.

    Attributes:
        window_size_ms: Length of the trailing window
        max_requests_per_window: Admissions allowed inside the window
        buffer_ms: Added to computed waits to absorb clock skew
        min_wait_ms: Lower bound of any non-zero wait
    """

    def __init__(
        self,
        max_requests_per_window: int,
        window_size_ms: float,
        buffer_ms: float = DEFAULT_BUFFER_MS,
        min_wait_ms: float = DEFAULT_MIN_WAIT_MS,
    ) -> None:
        self.max_requests_per_window = max_requests_per_window
        self.window_size_ms = window_size_ms
        self.buffer_ms = buffer_ms
        self.min_wait_ms = min_wait_ms
        self._admissions: list[float] = []

    def prune(self, now: float) -> int:
        """
        Drop timestamps at or before ``now - window_size_ms``.

        Returns:
            int: Number of timestamps removed
        """
        cutoff = now - self.window_size_ms
        keep_from = 0
        for timestamp in self._admissions:
            if timestamp > cutoff:
                break
            keep_from += 1

        if keep_from:
            del self._admissions[:keep_from]
            logger.debug(f"Cleaned up {keep_from} old request records")
        return keep_from

    def can_admit(self, now: float) -> bool:
        """Check whether one more dispatch fits in the window."""
        self.prune(now)
        return len(self._admissions) < self.max_requests_per_window

    def wait_time_ms(self, now: float) -> float:
        """
        How long to sleep before re-checking admission.

        Returns 0 when nothing is recorded; otherwise the time until the
        oldest admission leaves the window plus the buffer, floored at
        ``min_wait_ms``.
        """
        if not self._admissions:
            return 0.0

        oldest = self._admissions[0]
        time_until_expiry = (oldest + self.window_size_ms) - now
        return max(time_until_expiry + self.buffer_ms, self.min_wait_ms)

    def record_admission(self, now: float) -> None:
        """Record an admitted dispatch at ``now``."""
        self._admissions.append(now)
        self.prune(now)

    def usage(self, now: float) -> int:
        """Number of admissions inside the window ending at ``now``."""
        self.prune(now)
        return len(self._admissions)

    def describe(self, now: float) -> str:
        """Human readable usage, e.g. ``"12/90 in last 120s"``."""
        window_seconds = self.window_size_ms / 1000
        if window_seconds == int(window_seconds):
            window_label = f"{int(window_seconds)}s"
        else:
            window_label = f"{window_seconds}s"
        return f"{self.usage(now)}/{self.max_requests_per_window} in last {window_label}"

    @property
    def admissions(self) -> list[float]:
        """Snapshot of the recorded timestamps (ascending)."""
        return list(self._admissions)

    def __len__(self) -> int:
        return len(self._admissions)


__all__ = ["RateWindowTracker"]
