"""
Unit tests for RetryCoordinator.

Tests cover:
- Backoff computation (exponential and retry-after)
- Timer scheduling and re-enqueue
- Exhaustion error construction
- Cancellation at shutdown
"""

import asyncio
import time
from unittest.mock import Mock

import pytest

from api_request_scheduler.exceptions import RateLimitExhaustedError
from api_request_scheduler.scheduler.retry import RetryCoordinator
from api_request_scheduler.types.request import RequestDescriptor


def make(request_id: str = "req-1", retry_count: int = 0) -> RequestDescriptor:
    return RequestDescriptor(
        request_id=request_id, request=None, retry_count=retry_count, created_at_ms=0
    )


class TestComputeDelay:
    """Tests for compute_delay_ms."""

    @pytest.fixture
    def coordinator(self):
        return RetryCoordinator(max_retries=3, base_retry_delay_ms=1000, requeue=Mock())

    @pytest.mark.parametrize("retry_count,expected", [(0, 1000), (1, 2000), (2, 4000)])
    def test_exponential_backoff(self, coordinator, retry_count, expected):
        """Without retry-after the delay doubles with each retry."""
        assert coordinator.compute_delay_ms(retry_count) == expected

    def test_retry_after_wins(self, coordinator):
        """A server retry-after (seconds) replaces the backoff."""
        assert coordinator.compute_delay_ms(0, retry_after_s=2) == 2000
        assert coordinator.compute_delay_ms(2, retry_after_s=0.5) == 500

    def test_negative_retry_after_clamped(self, coordinator):
        """A negative hint never produces a negative delay."""
        assert coordinator.compute_delay_ms(0, retry_after_s=-1) == 0


class TestRetryScheduling:
    """Tests for schedule, can_retry and exhaustion."""

    def test_can_retry_respects_budget(self):
        """Retries are allowed while retry_count < max_retries."""
        coordinator = RetryCoordinator(max_retries=2, base_retry_delay_ms=10, requeue=Mock())

        assert coordinator.can_retry(make(retry_count=0)) is True
        assert coordinator.can_retry(make(retry_count=1)) is True
        assert coordinator.can_retry(make(retry_count=2)) is False

    @pytest.mark.asyncio
    async def test_schedule_requeues_after_delay(self):
        """The descriptor is handed back once its delay has elapsed."""
        requeue = Mock()
        coordinator = RetryCoordinator(max_retries=3, base_retry_delay_ms=30, requeue=requeue)
        descriptor = make()

        started = time.monotonic()
        delay = coordinator.schedule(descriptor)

        assert delay == 30
        assert descriptor.retry_count == 1
        assert coordinator.pending_count == 1
        assert coordinator.is_pending(descriptor.request_id)

        await asyncio.sleep(0.01)
        requeue.assert_not_called()

        await asyncio.sleep(0.05)
        requeue.assert_called_once_with(descriptor)
        assert (time.monotonic() - started) * 1000 >= 29
        assert coordinator.pending_count == 0

    @pytest.mark.asyncio
    async def test_schedule_uses_retry_after(self):
        """schedule passes retry-after through compute_delay_ms."""
        coordinator = RetryCoordinator(max_retries=3, base_retry_delay_ms=1000, requeue=Mock())

        delay = coordinator.schedule(make(), retry_after_s=0.01)

        assert delay == 10
        coordinator.cancel_all()

    @pytest.mark.asyncio
    async def test_requeue_error_is_contained(self):
        """A failing requeue callback is logged, not raised into the loop."""
        requeue = Mock(side_effect=RuntimeError("boom"))
        coordinator = RetryCoordinator(max_retries=3, base_retry_delay_ms=1, requeue=requeue)

        coordinator.schedule(make())
        await asyncio.sleep(0.02)

        requeue.assert_called_once()
        assert coordinator.pending_count == 0

    @pytest.mark.asyncio
    async def test_cancel_all_returns_descriptors(self):
        """cancel_all stops every timer and returns the waiting descriptors."""
        requeue = Mock()
        coordinator = RetryCoordinator(max_retries=3, base_retry_delay_ms=20, requeue=requeue)
        first, second = make("req-1"), make("req-2")
        coordinator.schedule(first)
        coordinator.schedule(second)

        cancelled = coordinator.cancel_all()
        await asyncio.sleep(0.05)

        assert cancelled == [first, second]
        assert coordinator.pending_count == 0
        requeue.assert_not_called()

    def test_exhausted_error(self):
        """The final error carries the attempt count and last retry-after."""
        coordinator = RetryCoordinator(max_retries=3, base_retry_delay_ms=10, requeue=Mock())

        error = coordinator.exhausted_error(make("req-9", retry_count=3), retry_after_s=2.0)

        assert isinstance(error, RateLimitExhaustedError)
        assert error.request_id == "req-9"
        assert error.attempts == 4
        assert error.retry_after == 2.0
        assert "req-9" in str(error)
