"""Market data interfaces: live feeds and replay sources."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Sequence

from .events import DirectEventSource, QueueEventSource
from .types import TickInfo

Handler = Callable[[Sequence[Any]], None]


class MarketEventType(enum.Enum):
    INVALID = 0
    TICK_RECEIVED = 1


class MarketApi(ABC):
    """A source of market data that publishes tick events."""

    @abstractmethod
    def subscribe(self, codes: Iterable[str]) -> None:
        """Subscribe to the given instruments."""

    @abstractmethod
    def unsubscribe(self, codes: Iterable[str]) -> None:
        """Unsubscribe from the given instruments."""

    @abstractmethod
    def update(self) -> None:
        """Advance internal processing."""

    @abstractmethod
    def bind_event(self, event_type: MarketEventType, handle: Handler) -> None:
        """Register a handler for an event type."""

    @abstractmethod
    def clear_event(self) -> None:
        """Drop every registered handler."""


class ActualMarket(MarketApi):
    """A live market connection; maps instrument ids to exchange ids."""

    def __init__(self, id_excg_map: dict[str, str]) -> None:
        self._id_excg_map = id_excg_map

    @abstractmethod
    def login(self) -> bool:
        """Connect and log in."""

    @abstractmethod
    def logout(self) -> None:
        """Log out and disconnect."""


class SyncActualMarket(ActualMarket, DirectEventSource):
    """Live market whose events reach handlers as soon as they are fired."""

    def __init__(self, id_excg_map: dict[str, str]) -> None:
        ActualMarket.__init__(self, id_excg_map)
        DirectEventSource.__init__(self)

    def bind_event(self, event_type: MarketEventType, handle: Handler) -> None:
        self.add_handle(event_type, handle)

    def clear_event(self) -> None:
        self.clear_handle()


class AsyncActualMarket(ActualMarket, QueueEventSource):
    """Live market whose events are queued and delivered by :meth:`update`."""

    def __init__(self, id_excg_map: dict[str, str], capacity: int = 1024) -> None:
        ActualMarket.__init__(self, id_excg_map)
        QueueEventSource.__init__(self, capacity)

    def update(self) -> None:
        self.process()

    def bind_event(self, event_type: MarketEventType, handle: Handler) -> None:
        self.add_handle(event_type, handle)

    def clear_event(self) -> None:
        self.clear_handle()


class DummyMarket(MarketApi, DirectEventSource):
    """A replay market used for back-testing."""

    def __init__(self) -> None:
        DirectEventSource.__init__(self)

    def bind_event(self, event_type: MarketEventType, handle: Handler) -> None:
        self.add_handle(event_type, handle)

    def clear_event(self) -> None:
        self.clear_handle()

    @abstractmethod
    def play(
        self,
        trading_day: int,
        publish_callback: Callable[[Sequence[TickInfo]], None],
    ) -> None:
        """Start replaying ``trading_day``, passing each batch of ticks on."""

    @abstractmethod
    def is_finished(self) -> bool:
        """Whether the replay has ended."""