# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Priority-ordered, insertion-stable request queue.

The queue is a plain list rather than a heap: expected depth is tens of
requests, and stability within a priority class matters more than the
asymptotic cost of insertion.
"""

import logging
from collections.abc import Iterator

from ..types.request import RequestDescriptor

logger = logging.getLogger(__name__)


class RequestQueue:
    """
    Holding area for pending request descriptors.

    Ordering is priority-major (HIGH before NORMAL before LOW) and FIFO
    within a priority class. A descriptor re-enqueued after a retry lands
    at the tail of its class, behind later arrivals of the same priority.

    Example:
        >>> queue = RequestQueue()
        >>> queue.enqueue(RequestDescriptor("a", None, Priority.HIGH, created_at_ms=0))
        0
        >>> queue.enqueue(RequestDescriptor("b", None, Priority.NORMAL, created_at_ms=0))
        1
        >>> queue.enqueue(RequestDescriptor("c", None, Priority.HIGH, created_at_ms=0))
        1
        >>> [d.request_id for d in queue]
        ['a', 'c', 'b']
    """

    def __init__(self) -> None:
        self._items: list[RequestDescriptor] = []

    def enqueue(self, descriptor: RequestDescriptor) -> int:
        """
        Insert a descriptor before the first element of a strictly lower
        priority class, or at the tail if there is none.

        Returns:
            int: The index the descriptor was inserted at
        """
        rank = descriptor.priority.rank
        insert_index = len(self._items)
        for index, queued in enumerate(self._items):
            if rank < queued.priority.rank:
                insert_index = index
                break

        self._items.insert(insert_index, descriptor)
        logger.debug(
            f"Queued {descriptor.priority.value} priority request "
            f"({descriptor.request_id}). Queue size: {len(self._items)}"
        )
        return insert_index

    def dequeue(self) -> RequestDescriptor | None:
        """Remove and return the head of the queue, or None when empty."""
        if not self._items:
            return None
        return self._items.pop(0)

    def peek(self) -> RequestDescriptor | None:
        return self._items[0] if self._items else None

    def remove(self, request_id: str) -> bool:
        """Remove a queued descriptor by id. Returns True if it was present."""
        for index, queued in enumerate(self._items):
            if queued.request_id == request_id:
                del self._items[index]
                return True
        return False

    def drain(self) -> list[RequestDescriptor]:
        """Remove and return every queued descriptor in dispatch order."""
        items, self._items = self._items, []
        return items

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[RequestDescriptor]:
        return iter(list(self._items))


__all__ = ["RequestQueue"]
