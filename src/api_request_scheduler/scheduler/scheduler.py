# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request scheduler for the API Request Scheduler.

Combines the priority queue, the sliding rate window, the response cache
and the retry coordinator behind a ``submit()`` call that returns a future.
"""

import asyncio
import contextlib
import logging
import math
from collections.abc import Callable
from dataclasses import fields, replace
from typing import Any

from typing_extensions import Self

from ..exceptions import (
    PermanentRequestError,
    SchedulerError,
    SchedulerTerminatedError,
)
from ..observability.collector import get_metrics_collector
from ..observability.protocols import MetricsCollectorProtocol
from ..observability.stats import StatsCollector
from ..protocols.classifier import ClassifierProtocol, RateLimitVerdict
from ..protocols.transport import TransportProtocol
from ..transports.classifier import StatusCodeClassifier
from ..types.request import Priority, RequestDescriptor, sequential_id_factory
from .cache import ResponseCache, monotonic_ms
from .config import SchedulerConfig, SchedulerState
from .queue import RequestQueue
from .retry import RetryCoordinator
from .window import RateWindowTracker

logger = logging.getLogger(__name__)


class RequestScheduler:
    """
    Rate limited, prioritised, cached dispatcher of outbound requests.

    One drain task processes the queue, dispatching a single request at a
    time. A request is admitted only while the trailing window holds fewer
    than ``max_requests_per_window`` successful dispatches. Rate limited
    dispatches are retried with backoff by the RetryCoordinator; every other
    failure is delivered to the caller as PermanentRequestError.

    Instances share nothing, so several schedulers (one per downstream API
    key, for example) can run side by side.

    Example:
        async with create_scheduler(transport=transport) as scheduler:
            profile = await scheduler.submit_request(
                {"url": "/summoner/v4/summoners/by-name/abc"},
                priority="high",
                cache_key="summoner:abc",
            )
    """

    def __init__(
        self,
        transport: TransportProtocol | None = None,
        config: SchedulerConfig | None = None,
        classifier: ClassifierProtocol | None = None,
        metrics_collector: MetricsCollectorProtocol | None = None,
        clock: Callable[[], float] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """
        Initialize the scheduler. Nothing runs until ``start()``.

        Args:
            transport: Performs the request; when None each request payload
                must be a zero-argument async callable
            config: Scheduler configuration (defaults used if None)
            classifier: Decides which failures are rate limits
                (StatusCodeClassifier if None)
            metrics_collector: Metrics backend; when None and
                ``config.metrics_enabled`` the global collector is used
            clock: Millisecond clock (monotonic by default)
            id_factory: Request id generator (``req-1``, ``req-2``, ...)
        """
        self.config = config or SchedulerConfig()
        self._transport = transport
        self._classifier = classifier or StatusCodeClassifier()
        self._clock = clock or monotonic_ms
        self._id_factory = id_factory or sequential_id_factory()

        if metrics_collector is None:
            metrics_collector = self._create_metrics_collector()
        self.metrics_collector = metrics_collector

        self._queue = RequestQueue()
        self._window = RateWindowTracker(
            max_requests_per_window=self.config.max_requests_per_window,
            window_size_ms=self.config.window_size_ms,
            buffer_ms=self.config.admission_buffer_ms,
            min_wait_ms=self.config.min_admission_wait_ms,
        )
        self._cache = ResponseCache(
            clock=self._clock,
            sweep_interval_ms=self.config.cache_sweep_interval_ms,
            metrics_collector=metrics_collector,
        )
        self._retry = RetryCoordinator(
            max_retries=self.config.max_retries,
            base_retry_delay_ms=self.config.base_retry_delay_ms,
            requeue=self._requeue,
        )
        self._stats = StatsCollector(metrics_collector=metrics_collector)

        # Caller futures live outside the descriptors
        self._futures: dict[str, asyncio.Future[Any]] = {}
        self._in_flight: dict[str, RequestDescriptor] = {}

        self._drain_task: asyncio.Task[None] | None = None
        self._tick_task: asyncio.Task[None] | None = None
        self._shutdown_event: asyncio.Event | None = None
        self._shutdown_lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._running = False
        self._stopped = False

        window_seconds = self.config.window_size_ms / 1000
        logger.info(
            f"RequestScheduler initialized: {self.config.max_requests_per_window} "
            f"requests per {window_seconds:g}s"
        )

    def _create_metrics_collector(self) -> MetricsCollectorProtocol | None:
        """
        Return the global UnifiedMetricsCollector when metrics are enabled,
        starting the Prometheus HTTP server if configured.
        """
        if not self.config.metrics_enabled:
            return None

        collector = get_metrics_collector()
        if self.config.start_prometheus_server and not collector.server_running:
            collector.start_http_server(
                self.config.prometheus_host, self.config.prometheus_port
            )
        return collector

    # === Lifecycle ===

    async def start(self) -> None:
        """Start the safety tick and the cache sweep."""
        if self._stopped:
            raise SchedulerTerminatedError("Scheduler has been shut down")
        if self._running:
            return

        self._loop = asyncio.get_running_loop()
        self._shutdown_event = asyncio.Event()
        self._running = True

        await self._cache.start()
        self._tick_task = asyncio.create_task(
            self._safety_tick_loop(), name=f"scheduler_safety_tick_{id(self)}"
        )

        logger.info(f"{self.__class__.__name__} started")

    async def shutdown(self) -> None:
        """
        Stop the scheduler. Safe to call more than once.

        Queued and retry-pending requests are rejected with
        SchedulerTerminatedError. A request already in flight completes and
        resolves normally. The cache is cleared.
        """
        async with self._shutdown_lock:
            if self._stopped:
                return

            self._stopped = True
            self._running = False
            if self._shutdown_event is not None:
                self._shutdown_event.set()

            discarded = self._queue.drain() + self._retry.cancel_all()
            for descriptor in discarded:
                self._reject(
                    descriptor,
                    SchedulerTerminatedError(
                        f"Scheduler terminated before request "
                        f"{descriptor.request_id} was dispatched",
                        request_id=descriptor.request_id,
                    ),
                )
            self._stats.record_terminated(len(discarded))

            if self._tick_task is not None:
                self._tick_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._tick_task
                self._tick_task = None

            # Let the in-flight dispatch finish
            if self._drain_task is not None and not self._drain_task.done():
                with contextlib.suppress(asyncio.CancelledError):
                    await self._drain_task
            self._drain_task = None

            await self._cache.stop()
            self._cache.clear()
            self._update_gauges()

            logger.info(
                f"{self.__class__.__name__} stopped "
                f"({len(discarded)} pending requests rejected)"
            )

    async def stop(self) -> None:
        """Alias of ``shutdown()``."""
        await self.shutdown()

    def is_running(self) -> bool:
        return self._running

    async def __aenter__(self) -> Self:
        """
        Async context manager entry.

        Returns:
            Self: The started scheduler
        """
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.shutdown()

    # === Submission ===

    def submit(
        self,
        request: Any,
        *,
        priority: Priority | str = Priority.NORMAL,
        cache_key: str | None = None,
        cache_ttl_ms: float | None = None,
        bypass_cache: bool = False,
    ) -> "asyncio.Future[Any]":
        """
        Submit a request and return the future of its result.

        A live cache entry for ``cache_key`` resolves the future immediately
        without queueing. Otherwise the request is queued by priority.

        Args:
            request: Opaque payload handed to the transport
            priority: ``"high"``, ``"normal"``, ``"low"`` or a Priority
            cache_key: Cache the successful result under this key
            cache_ttl_ms: Lifetime of the cached result
                (``config.default_cache_ttl_ms`` if None)
            bypass_cache: Neither read nor populate the cache

        Returns:
            Future resolved with the transport result, or failed with
            PermanentRequestError, RateLimitExhaustedError or
            SchedulerTerminatedError

        Raises:
            SchedulerTerminatedError: The scheduler has been shut down
            SchedulerError: The scheduler has not been started
            ValueError: Unknown priority, or a negative or non-finite cache_ttl_ms
        """
        if self._stopped:
            raise SchedulerTerminatedError("Scheduler has been shut down")
        if not self._running or self._loop is None:
            raise SchedulerError("Scheduler is not running; call start() first")

        resolved_priority = Priority.parse(priority)
        if cache_ttl_ms is None:
            cache_ttl_ms = self.config.default_cache_ttl_ms
        elif not math.isfinite(cache_ttl_ms) or cache_ttl_ms < 0:
            raise ValueError(
                f"cache_ttl_ms must be a finite non-negative number, got {cache_ttl_ms!r}"
            )

        future: asyncio.Future[Any] = self._loop.create_future()
        self._stats.record_submitted(resolved_priority.value)

        if cache_key is not None and not bypass_cache:
            cached = self._cache.get(cache_key)
            if cached is not None:
                self._stats.record_cached_response()
                future.set_result(cached)
                return future

        descriptor = RequestDescriptor(
            request_id=self._id_factory(),
            request=request,
            priority=resolved_priority,
            cache_key=cache_key,
            cache_ttl_ms=cache_ttl_ms,
            bypass_cache=bypass_cache,
            created_at_ms=self._clock(),
        )
        self._futures[descriptor.request_id] = future
        self._enqueue(descriptor)
        return future

    async def submit_request(self, request: Any, **options: Any) -> Any:
        """Submit a request and await its result. Takes the same options as ``submit()``."""
        return await self.submit(request, **options)

    # === Stats ===

    def get_stats(self) -> dict[str, Any]:
        """
        Snapshot of scheduler statistics.

        ``current_window_usage`` is a readable string such as
        ``"12/90 in last 120s"``.
        """
        now = self._clock()
        cache_stats = self._cache.get_stats()
        counters = self._stats.snapshot()

        return {
            "total_requests": counters["total_requests"],
            "successful_requests": counters["successful_requests"],
            "failed_requests": counters["failed_requests"],
            "rate_limited_requests": counters["rate_limited_requests"],
            "cached_responses": counters["cached_responses"],
            "average_response_time_ms": counters["average_response_time_ms"],
            "queue_size": len(self._queue),
            "in_flight_count": len(self._in_flight),
            "cache_size": cache_stats["size"],
            "cache_hit_rate_percent": cache_stats["hit_rate_percent"],
            "current_window_usage": self._window.describe(now),
            "last_request_time_ms": counters["last_request_time_ms"],
            "retry_pending_count": self._retry.pending_count,
            "state": self.state.value,
            "cache_stats": cache_stats,
        }

    @property
    def state(self) -> SchedulerState:
        if self._stopped:
            return SchedulerState.STOPPED
        if self._drain_task is not None and not self._drain_task.done():
            return SchedulerState.DRAINING
        return SchedulerState.IDLE

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def window(self) -> RateWindowTracker:
        return self._window

    # === Queue and drain loop ===

    def _enqueue(self, descriptor: RequestDescriptor) -> None:
        self._queue.enqueue(descriptor)
        self._update_gauges()
        self._ensure_draining()

    def _requeue(self, descriptor: RequestDescriptor) -> None:
        """Retry timer callback: put a rate limited request back in the queue."""
        if self._stopped:
            self._reject(
                descriptor,
                SchedulerTerminatedError(request_id=descriptor.request_id),
            )
            return
        logger.debug(f"Re-enqueueing request {descriptor.request_id} for retry")
        self._enqueue(descriptor)

    def _ensure_draining(self) -> None:
        if self._stopped or not self._running:
            return
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.create_task(
                self._drain(), name=f"scheduler_drain_{id(self)}"
            )

    async def _drain(self) -> None:
        """Process the queue until it is empty or the scheduler stops."""
        try:
            while self._queue and not self._stopped:
                now = self._clock()
                if not self._window.can_admit(now):
                    wait_ms = self._window.wait_time_ms(now)
                    logger.info(
                        f"Rate limit reached ({self._window.describe(now)}). "
                        f"Waiting {wait_ms:.0f}ms before next request"
                    )
                    self._stats.record_admission_wait()
                    await self._wait_for_shutdown(wait_ms)
                    continue

                descriptor = self._queue.dequeue()
                if descriptor is None:
                    break

                future = self._futures.get(descriptor.request_id)
                if future is None or future.done():
                    # Caller cancelled while queued
                    self._futures.pop(descriptor.request_id, None)
                    logger.debug(f"Skipping request {descriptor.request_id}: already resolved")
                    continue

                try:
                    await self._dispatch(descriptor)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error(
                        f"Unexpected error processing request {descriptor.request_id}: {e}",
                        exc_info=True,
                    )
                    self._reject(
                        descriptor,
                        PermanentRequestError(
                            f"Request {descriptor.request_id} failed: {e}",
                            request_id=descriptor.request_id,
                            original=e,
                        ),
                    )
        finally:
            self._update_gauges()

    async def _dispatch(self, descriptor: RequestDescriptor) -> None:
        started_at = self._clock()
        self._in_flight[descriptor.request_id] = descriptor
        self._stats.record_dispatch(started_at, descriptor.priority.value)
        self._update_gauges()
        logger.debug(
            f"Dispatching {descriptor.priority.value} priority request "
            f"{descriptor.request_id} (attempt {descriptor.retry_count + 1})"
        )

        try:
            result = await self._perform(descriptor.request)
        except asyncio.CancelledError:
            self._cancel(descriptor)
            raise
        except Exception as error:
            self._handle_failure(descriptor, error)
        else:
            self._handle_success(descriptor, result, started_at)
        finally:
            self._in_flight.pop(descriptor.request_id, None)

    async def _perform(self, request: Any) -> Any:
        if self._transport is not None:
            return await self._transport(request)
        if callable(request):
            return await request()
        raise TypeError(
            "No transport configured and the request is not an async callable"
        )

    def _handle_success(
        self, descriptor: RequestDescriptor, result: Any, started_at: float
    ) -> None:
        finished_at = self._clock()
        self._window.record_admission(started_at)

        if descriptor.cacheable and result is not None:
            self._cache.set(
                descriptor.cache_key,  # type: ignore[arg-type]
                result,
                descriptor.cache_ttl_ms,
                now=finished_at,
            )

        self._stats.record_success(finished_at - started_at, descriptor.priority.value)
        self._resolve(descriptor, result)

    def _handle_failure(self, descriptor: RequestDescriptor, error: Exception) -> None:
        verdict = self._classify(error)

        if verdict is None:
            logger.error(
                f"Request {descriptor.request_id} failed after "
                f"{descriptor.retry_count} retries: {error}"
            )
            self._stats.record_failure("permanent")
            wrapped = PermanentRequestError(
                f"Request {descriptor.request_id} failed: {error}",
                request_id=descriptor.request_id,
                original=error,
            )
            wrapped.__cause__ = error
            self._reject(descriptor, wrapped)
            return

        self._stats.record_rate_limited()
        logger.warning(f"Rate limited! Request {descriptor.request_id}")

        if self._stopped:
            self._reject(
                descriptor, SchedulerTerminatedError(request_id=descriptor.request_id)
            )
            return

        if self._retry.can_retry(descriptor):
            self._retry.schedule(descriptor, verdict.retry_after)
            self._stats.record_retry_scheduled()
            self._update_gauges()
            return

        self._stats.record_failure("exhausted")
        exhausted = self._retry.exhausted_error(descriptor, verdict.retry_after)
        exhausted.__cause__ = error
        logger.error(str(exhausted))
        self._reject(descriptor, exhausted)

    def _classify(self, error: Exception) -> RateLimitVerdict | None:
        try:
            return self._classifier.classify(error)
        except Exception as e:
            logger.error(f"Classifier failed on {type(error).__name__}: {e}", exc_info=True)
            return None

    async def _wait_for_shutdown(self, timeout_ms: float) -> None:
        """Sleep for ``timeout_ms`` or until shutdown, whichever comes first."""
        if self._shutdown_event is None:
            await asyncio.sleep(timeout_ms / 1000)
            return
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout_ms / 1000)

    async def _safety_tick_loop(self) -> None:
        """Restart the drain task if the queue is non-empty while idle."""
        interval_ms = self.config.queue_safety_tick_ms
        while self._running:
            await self._wait_for_shutdown(interval_ms)
            if not self._running:
                break

            try:
                if self._queue and self.state is SchedulerState.IDLE:
                    logger.debug(
                        f"Safety tick restarting drain ({len(self._queue)} queued)"
                    )
                    self._ensure_draining()
                self._update_gauges()
            except Exception as e:
                logger.error(f"Error in safety tick: {e}", exc_info=True)

    # === Future resolution ===

    def _resolve(self, descriptor: RequestDescriptor, result: Any) -> None:
        future = self._futures.pop(descriptor.request_id, None)
        if future is None or future.done():
            logger.debug(f"Dropping result of request {descriptor.request_id}: future already done")
            return
        future.set_result(result)

    def _reject(self, descriptor: RequestDescriptor, error: BaseException) -> None:
        future = self._futures.pop(descriptor.request_id, None)
        if future is None or future.done():
            logger.debug(f"Dropping error of request {descriptor.request_id}: future already done")
            return
        future.set_exception(error)

    def _cancel(self, descriptor: RequestDescriptor) -> None:
        future = self._futures.pop(descriptor.request_id, None)
        if future is not None and not future.done():
            future.cancel()

    def _update_gauges(self) -> None:
        if self.metrics_collector is None:
            return
        try:
            self._stats.update_gauges(
                queue_depth=len(self._queue),
                in_flight=len(self._in_flight),
                window_usage=len(self._window),
            )
        except Exception as e:
            logger.debug(f"Failed to update scheduler gauges: {e}")


def create_scheduler(
    transport: TransportProtocol | None = None,
    config: SchedulerConfig | None = None,
    **kwargs: Any,
) -> RequestScheduler:
    """
    Factory function to create a RequestScheduler.

    Keyword arguments naming a SchedulerConfig field override that field;
    the rest (``classifier``, ``metrics_collector``, ``clock``,
    ``id_factory``) are passed to the RequestScheduler constructor.

    Args:
        transport: Transport performing the requests
        config: Base configuration (defaults if None)
        **kwargs: Config overrides and constructor arguments

    Returns:
        Configured RequestScheduler instance (not started)

    Raises:
        ValueError: If an override fails config validation
        TypeError: If a keyword is neither a config field nor a constructor argument
    """
    config_fields = {f.name for f in fields(SchedulerConfig)}
    overrides = {key: kwargs.pop(key) for key in list(kwargs) if key in config_fields}

    if config is None:
        config = SchedulerConfig(**overrides)
    elif overrides:
        config = replace(config, **overrides)

    return RequestScheduler(transport=transport, config=config, **kwargs)


__all__ = ["RequestScheduler", "create_scheduler"]
