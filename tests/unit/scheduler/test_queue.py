"""
Unit tests for RequestQueue.

Covers priority-major / FIFO-minor ordering, retry re-enqueue placement and
the helper operations used at shutdown.
"""

import pytest

from api_request_scheduler.scheduler.queue import RequestQueue
from api_request_scheduler.types.request import Priority, RequestDescriptor


def make(request_id: str, priority: Priority = Priority.NORMAL) -> RequestDescriptor:
    return RequestDescriptor(
        request_id=request_id, request=None, priority=priority, created_at_ms=0
    )


class TestRequestQueueOrdering:
    """Tests for enqueue ordering."""

    @pytest.fixture
    def queue(self):
        return RequestQueue()

    def test_high_normal_high_dequeues_a_c_b(self, queue):
        """A(high), B(normal), C(high) dequeue as A, C, B."""
        queue.enqueue(make("A", Priority.HIGH))
        queue.enqueue(make("B", Priority.NORMAL))
        queue.enqueue(make("C", Priority.HIGH))

        order = [queue.dequeue().request_id for _ in range(3)]

        assert order == ["A", "C", "B"]

    def test_fifo_within_priority(self, queue):
        """Same priority requests keep submission order."""
        for request_id in ("n1", "n2", "n3"):
            queue.enqueue(make(request_id))

        assert [d.request_id for d in queue] == ["n1", "n2", "n3"]

    def test_low_goes_to_tail(self, queue):
        """A low priority request never jumps ahead of normal ones."""
        queue.enqueue(make("low", Priority.LOW))
        queue.enqueue(make("normal", Priority.NORMAL))
        queue.enqueue(make("high", Priority.HIGH))

        assert [d.request_id for d in queue] == ["high", "normal", "low"]

    def test_enqueue_returns_insert_index(self, queue):
        """Enqueue reports where the descriptor landed."""
        assert queue.enqueue(make("n1")) == 0
        assert queue.enqueue(make("l1", Priority.LOW)) == 1
        assert queue.enqueue(make("h1", Priority.HIGH)) == 0
        assert queue.enqueue(make("n2")) == 2

    def test_requeued_descriptor_goes_to_tail_of_its_class(self, queue):
        """A retried descriptor lands behind later arrivals of its priority."""
        first = make("n1")
        queue.enqueue(first)
        queue.enqueue(make("n2"))
        queue.enqueue(make("l1", Priority.LOW))

        retried = queue.dequeue()
        retried.retry_count += 1
        queue.enqueue(retried)

        assert [d.request_id for d in queue] == ["n2", "n1", "l1"]


class TestRequestQueueOperations:
    """Tests for dequeue, peek, remove and drain."""

    def test_dequeue_empty_returns_none(self):
        """Dequeue on an empty queue is None, not an error."""
        assert RequestQueue().dequeue() is None

    def test_peek_does_not_remove(self):
        """Peek returns the head without removing it."""
        queue = RequestQueue()
        queue.enqueue(make("a"))

        assert queue.peek().request_id == "a"
        assert len(queue) == 1

    def test_remove_by_id(self):
        """Remove drops a specific descriptor."""
        queue = RequestQueue()
        queue.enqueue(make("a"))
        queue.enqueue(make("b"))

        assert queue.remove("a") is True
        assert queue.remove("missing") is False
        assert [d.request_id for d in queue] == ["b"]

    def test_drain_empties_in_dispatch_order(self):
        """Drain returns everything head first and leaves the queue empty."""
        queue = RequestQueue()
        queue.enqueue(make("n"))
        queue.enqueue(make("h", Priority.HIGH))

        drained = queue.drain()

        assert [d.request_id for d in drained] == ["h", "n"]
        assert len(queue) == 0
        assert not queue

    def test_iteration_is_a_snapshot(self):
        """Mutating the queue while iterating does not affect the iteration."""
        queue = RequestQueue()
        queue.enqueue(make("a"))
        queue.enqueue(make("b"))

        seen = []
        for descriptor in queue:
            seen.append(descriptor.request_id)
            queue.dequeue()

        assert seen == ["a", "b"]
