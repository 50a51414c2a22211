"""Unit tests for StatsCollector."""

from unittest.mock import Mock

import pytest

from api_request_scheduler.observability.constants import (
    IN_FLIGHT_REQUESTS,
    QUEUE_DEPTH,
    REQUEST_DURATION_SECONDS,
    REQUESTS_DISPATCHED_TOTAL,
    REQUESTS_FAILED_TOTAL,
    WINDOW_USAGE,
)
from api_request_scheduler.observability.protocols import MetricsCollectorProtocol
from api_request_scheduler.observability.stats import StatsCollector


class TestMovingAverage:
    """Tests for the response time moving average."""

    def test_first_sample_seeds_average(self):
        """The first sample becomes the average."""
        stats = StatsCollector()
        stats.update_average_response_time(100)
        assert stats.average_response_time_ms == 100

    def test_smoothing_factor(self):
        """Later samples are blended 90/10."""
        stats = StatsCollector()
        stats.update_average_response_time(100)
        stats.update_average_response_time(200)
        assert stats.average_response_time_ms == pytest.approx(110)

        stats.update_average_response_time(110)
        assert stats.average_response_time_ms == pytest.approx(110)

    def test_zero_first_sample_still_seeds(self):
        """A 0ms first sample counts as the seed."""
        stats = StatsCollector()
        stats.update_average_response_time(0)
        stats.update_average_response_time(100)
        assert stats.average_response_time_ms == pytest.approx(10)


class TestCounters:
    """Tests for the counter methods."""

    def test_dispatch_and_outcomes(self):
        """Dispatches, successes, failures and rate limits are counted."""
        stats = StatsCollector()
        stats.record_dispatch(1000, "high")
        stats.record_success(50, "high")
        stats.record_dispatch(2000, "normal")
        stats.record_rate_limited()
        stats.record_failure("exhausted")
        stats.record_cached_response()

        snapshot = stats.snapshot()

        assert snapshot == {
            "total_requests": 2,
            "successful_requests": 1,
            "failed_requests": 1,
            "rate_limited_requests": 1,
            "cached_responses": 1,
            "average_response_time_ms": 50,
            "last_request_time_ms": 2000,
        }

    def test_terminated_not_counted_as_failed(self):
        """Shutdown rejections stay out of failed_requests."""
        stats = StatsCollector()
        stats.record_terminated(3)
        assert stats.failed_requests == 0


class TestMetricsForwarding:
    """Tests for forwarding into a metrics collector."""

    @pytest.fixture
    def collector(self):
        return Mock(spec=MetricsCollectorProtocol)

    def test_counters_forwarded_with_labels(self, collector):
        """Counter updates carry their labels."""
        stats = StatsCollector(metrics_collector=collector)
        stats.record_dispatch(0, "low")
        stats.record_failure("permanent")
        stats.record_terminated(2)

        collector.inc_counter.assert_any_call(
            REQUESTS_DISPATCHED_TOTAL, 1, labels={"priority": "low"}
        )
        collector.inc_counter.assert_any_call(
            REQUESTS_FAILED_TOTAL, 1, labels={"reason": "permanent"}
        )
        collector.inc_counter.assert_any_call(
            REQUESTS_FAILED_TOTAL, 2, labels={"reason": "terminated"}
        )

    def test_success_observes_latency_in_seconds(self, collector):
        """Latency is exported in seconds."""
        stats = StatsCollector(metrics_collector=collector)
        stats.record_success(250, "normal")
        collector.observe_histogram.assert_called_once_with(REQUEST_DURATION_SECONDS, 0.25)

    def test_gauges(self, collector):
        """update_gauges sets the three state gauges."""
        stats = StatsCollector(metrics_collector=collector)
        stats.update_gauges(queue_depth=4, in_flight=1, window_usage=12)

        collector.set_gauge.assert_any_call(QUEUE_DEPTH, 4)
        collector.set_gauge.assert_any_call(IN_FLIGHT_REQUESTS, 1)
        collector.set_gauge.assert_any_call(WINDOW_USAGE, 12)

    def test_collector_errors_swallowed(self, collector):
        """A failing collector does not break counting."""
        collector.inc_counter.side_effect = RuntimeError("down")
        stats = StatsCollector(metrics_collector=collector)

        stats.record_rate_limited()

        assert stats.rate_limited_requests == 1

    def test_no_collector_is_fine(self):
        """Without a collector nothing is forwarded."""
        stats = StatsCollector()
        stats.update_gauges(queue_depth=1, in_flight=0, window_usage=0)
        stats.record_success(10, "high")
        assert stats.successful_requests == 1
