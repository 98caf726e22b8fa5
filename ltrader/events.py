"""Event dispatch: handlers keyed by event type, fired directly or queued."""

from __future__ import annotations

import queue
from collections import defaultdict
from typing import Any, Callable, Hashable, Sequence

Handler = Callable[[Sequence[Any]], None]


class EventDispatch:
    """Holds handlers per event type and calls them in registration order."""

    def __init__(self) -> None:
        self._handles: defaultdict[Hashable, list[Handler]] = defaultdict(list)

    def add_handle(self, event_type: Hashable, handle: Handler) -> None:
        self._handles[event_type].append(handle)

    def clear_handle(self) -> None:
        self._handles.clear()

    def trigger(self, event_type: Hashable, params: Sequence[Any]) -> None:
        for handle in list(self._handles.get(event_type, ())):
            handle(params)


class QueueEventSource(EventDispatch):
    """Queues fired events until :meth:`process` delivers them.

    Firing into a full queue blocks until room is made by a consumer.
    """

    def __init__(self, capacity: int = 1024) -> None:
        super().__init__()
        self._queue: queue.Queue[tuple[Hashable, tuple[Any, ...]]] = queue.Queue(capacity)

    def fire_event(self, event_type: Hashable, *args: Any) -> None:
        self._queue.put((event_type, args))

    def process(self) -> None:
        while True:
            try:
                event_type, params = self._queue.get_nowait()
            except queue.Empty:
                return
            self.trigger(event_type, params)

    def is_empty(self) -> bool:
        return self._queue.empty()

    def is_full(self) -> bool:
        return self._queue.full()


class DirectEventSource(EventDispatch):
    """Calls handlers as soon as an event is fired."""

    def fire_event(self, event_type: Hashable, *args: Any) -> None:
        self.trigger(event_type, args)