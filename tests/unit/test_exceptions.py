"""Unit tests for the exceptions module.

Tests all exception classes defined in api_request_scheduler.exceptions.
"""

import pytest

from api_request_scheduler.exceptions import (
    HttpStatusError,
    PermanentRequestError,
    RateLimitedError,
    RateLimitExhaustedError,
    SchedulerError,
    SchedulerTerminatedError,
    TransportError,
)


class TestSchedulerError:
    """Tests for the base SchedulerError exception."""

    def test_can_be_caught_as_exception(self):
        """SchedulerError can be caught as a standard Exception."""
        with pytest.raises(Exception):  # noqa: B017
            raise SchedulerError("test error")

    def test_message_preserved(self):
        error = SchedulerError("test message")
        assert str(error) == "test message"

    @pytest.mark.parametrize(
        "error_class",
        [
            RateLimitedError,
            RateLimitExhaustedError,
            PermanentRequestError,
            SchedulerTerminatedError,
            TransportError,
            HttpStatusError,
        ],
    )
    def test_hierarchy(self, error_class):
        """Every library error is a SchedulerError."""
        assert issubclass(error_class, SchedulerError)


class TestRateLimitedError:
    """Tests for RateLimitedError."""

    def test_defaults(self):
        error = RateLimitedError()
        assert str(error) == "Rate limited"
        assert error.retry_after is None

    def test_stores_retry_after(self):
        error = RateLimitedError("slow down", retry_after=5.5)
        assert error.retry_after == 5.5


class TestRateLimitExhaustedError:
    """Tests for RateLimitExhaustedError."""

    def test_stores_attributes(self):
        error = RateLimitExhaustedError(
            "gave up", request_id="req-1", attempts=4, retry_after=2.0
        )
        assert error.request_id == "req-1"
        assert error.attempts == 4
        assert error.retry_after == 2.0

    def test_cause_preserved(self):
        """The last rate limit error can be chained as the cause."""
        last = RateLimitedError()
        with pytest.raises(RateLimitExhaustedError) as exc_info:
            raise RateLimitExhaustedError("gave up") from last
        assert exc_info.value.__cause__ is last


class TestPermanentRequestError:
    """Tests for PermanentRequestError."""

    def test_stores_original(self):
        original = ValueError("bad")
        error = PermanentRequestError("failed", request_id="req-2", original=original)
        assert error.original is original
        assert error.request_id == "req-2"


class TestSchedulerTerminatedError:
    """Tests for SchedulerTerminatedError."""

    def test_default_message(self):
        error = SchedulerTerminatedError()
        assert str(error) == "Scheduler terminated"
        assert error.request_id is None

    def test_request_id(self):
        assert SchedulerTerminatedError(request_id="req-3").request_id == "req-3"


class TestHttpStatusError:
    """Tests for HttpStatusError."""

    def test_default_message(self):
        error = HttpStatusError(503)
        assert str(error) == "HTTP 503"
        assert error.headers == {}
        assert error.body is None

    def test_is_transport_error(self):
        with pytest.raises(TransportError):
            raise HttpStatusError(429, headers={"retry-after": "1"})
