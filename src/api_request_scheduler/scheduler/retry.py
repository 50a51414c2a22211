# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Retry scheduling for rate limited requests.

A rate limited descriptor is not retried inline. The coordinator arms a
timer on the event loop and hands the descriptor back to the scheduler
when it fires, so the drain loop keeps serving the rest of the queue in
the meantime.
"""

import asyncio
import logging
from collections.abc import Callable

from ..exceptions import RateLimitExhaustedError
from ..types.request import RequestDescriptor

logger = logging.getLogger(__name__)


class RetryCoordinator:
    """
    Backoff and re-enqueue of rate limited requests.

    The delay is the server's ``retry_after`` when given, otherwise
    ``base_retry_delay_ms * 2 ** retry_count`` where ``retry_count`` is the
    number of retries already made (1s, 2s, 4s with the defaults).

    Pending descriptors are tracked by request id so that shutdown can
    cancel their timers and reject them.
    """

    def __init__(
        self,
        max_retries: int,
        base_retry_delay_ms: float,
        requeue: Callable[[RequestDescriptor], None],
    ) -> None:
        """
        Args:
            max_retries: Retries allowed per request
            base_retry_delay_ms: Base of the exponential backoff
            requeue: Called with the descriptor when its timer fires
        """
        self.max_retries = max_retries
        self.base_retry_delay_ms = base_retry_delay_ms
        self._requeue = requeue
        self._pending: dict[str, tuple[RequestDescriptor, asyncio.TimerHandle]] = {}

    def compute_delay_ms(
        self, retry_count: int, retry_after_s: float | None = None
    ) -> float:
        """
        Delay before the next attempt.

        Args:
            retry_count: Retries already made for the request
            retry_after_s: Server-suggested wait in seconds, if any

        Returns:
            Delay in milliseconds
        """
        if retry_after_s is not None:
            return max(0.0, retry_after_s * 1000)
        return self.base_retry_delay_ms * (2**retry_count)

    def can_retry(self, descriptor: RequestDescriptor) -> bool:
        return descriptor.retry_count < self.max_retries

    def schedule(
        self, descriptor: RequestDescriptor, retry_after_s: float | None = None
    ) -> float:
        """
        Arm a retry timer for ``descriptor``.

        Must be called from the event loop thread. The caller checks
        ``can_retry`` first.

        Returns:
            The delay in milliseconds
        """
        delay_ms = self.compute_delay_ms(descriptor.retry_count, retry_after_s)
        descriptor.retry_count += 1

        loop = asyncio.get_running_loop()
        handle = loop.call_later(delay_ms / 1000, self._fire, descriptor.request_id)
        self._pending[descriptor.request_id] = (descriptor, handle)

        logger.info(
            f"Retrying request {descriptor.request_id} in {delay_ms:.0f}ms "
            f"(attempt {descriptor.retry_count})"
        )
        return delay_ms

    def exhausted_error(
        self, descriptor: RequestDescriptor, retry_after_s: float | None = None
    ) -> RateLimitExhaustedError:
        """Build the final error for a descriptor that ran out of retries."""
        attempts = descriptor.retry_count + 1
        return RateLimitExhaustedError(
            f"Request {descriptor.request_id} still rate limited after "
            f"{descriptor.retry_count} retries",
            request_id=descriptor.request_id,
            attempts=attempts,
            retry_after=retry_after_s,
        )

    def cancel_all(self) -> list[RequestDescriptor]:
        """
        Cancel every pending timer.

        Returns:
            The descriptors whose retries were cancelled
        """
        cancelled = []
        for descriptor, handle in self._pending.values():
            handle.cancel()
            cancelled.append(descriptor)
        self._pending.clear()
        if cancelled:
            logger.debug(f"Cancelled {len(cancelled)} pending retries")
        return cancelled

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, request_id: str) -> bool:
        return request_id in self._pending

    def _fire(self, request_id: str) -> None:
        entry = self._pending.pop(request_id, None)
        if entry is None:
            return

        descriptor, _ = entry
        try:
            self._requeue(descriptor)
        except Exception as e:
            logger.error(
                f"Failed to re-enqueue request {request_id}: {e}", exc_info=True
            )


__all__ = ["RetryCoordinator"]
