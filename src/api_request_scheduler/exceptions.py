# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the API request scheduler.

This module defines the exception hierarchy used throughout the library.
All exceptions inherit from SchedulerError, making it easy to catch
all scheduler-related exceptions with a single except clause.
"""

from typing import Any


class SchedulerError(Exception):
    """Base exception for all scheduler errors.

    Example:
        try:
            await scheduler.submit(request)
        except SchedulerError as e:
            logger.error(f"Scheduler error: {e}")
    """

    pass


class RateLimitedError(SchedulerError):
    """Raised by a transport when the downstream service rejected a request
    because of its rate limit.

    The scheduler treats this error as retryable: it is recovered locally by
    re-enqueueing the request after a backoff delay and is only surfaced to
    the caller (as RateLimitExhaustedError) once retries run out.

    Attributes:
        retry_after: Server-suggested wait in seconds before retrying.
            None if the server did not provide one.
    """

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class RateLimitExhaustedError(SchedulerError):
    """Raised on a request's future once it has been rate limited more times
    than the configured retry budget allows.

    Attributes:
        request_id: Identifier of the request that gave up.
        attempts: Total number of dispatch attempts made (1 + retries).
        retry_after: Last server-suggested wait in seconds, if any.
    """

    def __init__(
        self,
        message: str,
        request_id: str | None = None,
        attempts: int | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(message)
        self.request_id = request_id
        self.attempts = attempts
        self.retry_after = retry_after


class PermanentRequestError(SchedulerError):
    """Raised on a request's future when dispatch failed for any reason other
    than a rate limit rejection.

    These failures are never retried by the scheduler. The underlying
    exception is available both as ``original`` and as ``__cause__``.

    Attributes:
        request_id: Identifier of the failed request.
        original: The exception raised by the transport.
    """

    def __init__(
        self,
        message: str,
        request_id: str | None = None,
        original: BaseException | None = None,
    ):
        super().__init__(message)
        self.request_id = request_id
        self.original = original


class SchedulerTerminatedError(SchedulerError):
    """Raised for requests discarded because the scheduler was shut down.

    Every request still waiting in the queue (or waiting on a retry timer)
    when ``shutdown()`` runs has its future rejected with this error.
    Submitting to a scheduler that has already been shut down raises it too.

    Attributes:
        request_id: Identifier of the discarded request, if any.
    """

    def __init__(self, message: str = "Scheduler terminated", request_id: str | None = None):
        super().__init__(message)
        self.request_id = request_id


class TransportError(SchedulerError):
    """Base class for errors raised by the bundled transports."""

    pass


class HttpStatusError(TransportError):
    """Raised by the HTTP transport for non-2xx responses.

    Attributes:
        status_code: HTTP status code of the response.
        headers: Response headers with lowercase keys.
        body: Parsed JSON body, or raw text when the body is not JSON.
    """

    def __init__(
        self,
        status_code: int,
        headers: dict[str, str] | None = None,
        body: Any = None,
        message: str | None = None,
    ):
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code
        self.headers = headers or {}
        self.body = body


__all__ = [
    "HttpStatusError",
    "PermanentRequestError",
    "RateLimitExhaustedError",
    "RateLimitedError",
    "SchedulerError",
    "SchedulerTerminatedError",
    "TransportError",
]
