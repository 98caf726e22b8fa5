"""A multi-producer, single-consumer FIFO queue."""

from __future__ import annotations

from collections import deque
from typing import Generic, TypeVar

T = TypeVar("T")


class MpscQueue(Generic[T]):
    """Unbounded FIFO queue that many threads may push to and one thread pops from.

    :meth:`pop` never blocks: it gives ``None`` when nothing is queued.
    """

    def __init__(self) -> None:
        self._items: deque[T] = deque()

    def push(self, value: T) -> None:
        """Append ``value`` at the tail of the queue."""
        self._items.append(value)

    def pop(self) -> T | None:
        """Remove and return the head of the queue, or ``None`` when empty."""
        try:
            return self._items.popleft()
        except IndexError:
            return None

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)