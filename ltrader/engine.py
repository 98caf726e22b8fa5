"""Strategy engine: routes market data to strategies and drives their lifecycle."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

from .bars import BarGenerator
from .context import Context
from .events import QueueEventSource
from .types import DealDirection, TapeInfo, TickInfo

_log = logging.getLogger(__name__)

_UINT32 = 1 << 32


class ConfigError(ValueError):
    """Raised when an engine configuration file lacks a required part."""


class TickReceiver(Protocol):
    def on_tick(self, tick: TickInfo) -> None: ...


class TapeReceiver(Protocol):
    def on_tape(self, tape: TapeInfo) -> None: ...


class Subscriber:
    """Handed to strategies at start-up so they can register for market data."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def regist_tick_receiver(self, code: str, receiver: TickReceiver) -> None:
        engine = self._engine
        engine._tick_receiver.setdefault(code, {}).setdefault(id(receiver), receiver)
        engine._add_reference(code)

    def regist_tape_receiver(self, code: str, receiver: TapeReceiver) -> None:
        engine = self._engine
        engine._tape_receiver.setdefault(code, {}).setdefault(id(receiver), receiver)
        engine._add_reference(code)

    def regist_bar_receiver(self, code: str, period: int, receiver: Any) -> None:
        engine = self._engine
        generators = engine._bar_generator.setdefault(code, {})
        if period not in generators:
            generators[period] = BarGenerator(period, engine.context.get_price_step(code))
        generators[period].add_receiver(receiver)
        engine._add_reference(code)


class Unsubscriber:
    """Handed to strategies at shutdown so they can drop their registrations."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def unregist_tick_receiver(self, code: str, receiver: TickReceiver) -> None:
        engine = self._engine
        receivers = engine._tick_receiver.get(code)
        if receivers is None:
            return
        receivers.pop(id(receiver), None)
        if not receivers:
            del engine._tick_receiver[code]
        engine._drop_reference(code, floor=0)

    def unregist_tape_receiver(self, code: str, receiver: TapeReceiver) -> None:
        engine = self._engine
        receivers = engine._tape_receiver.get(code)
        if receivers is None:
            return
        receivers.pop(id(receiver), None)
        if not receivers:
            del engine._tape_receiver[code]
        engine._drop_reference(code, floor=1)

    def unregist_bar_receiver(self, code: str, period: int, receiver: Any) -> None:
        engine = self._engine
        generators = engine._bar_generator.get(code)
        if generators is None:
            return
        generator = generators.get(period)
        if generator is None:
            return
        generator.remove_receiver(receiver)
        if generator.invalid():
            del generators[period]
            if not generators:
                del engine._bar_generator[code]
        engine._drop_reference(code, floor=1)


class Engine(QueueEventSource):
    """Owns a :class:`Context` and the registered strategies.

    Strategy parameter changes are fired as events keyed by strategy id and
    delivered on the next :meth:`on_update`.
    """

    def __init__(self) -> None:
        super().__init__()
        self.context = Context(self)
        self._strategy_map: dict[Any, Any] = {}
        self._tick_receiver: dict[str, dict[int, TickReceiver]] = {}
        self._tape_receiver: dict[str, dict[int, TapeReceiver]] = {}
        self._bar_generator: dict[str, dict[int, BarGenerator]] = {}
        self._tick_reference_count: dict[str, int] = {}

    def _add_reference(self, code: str) -> None:
        self._tick_reference_count[code] = self._tick_reference_count.get(code, 0) + 1

    def _drop_reference(self, code: str, floor: int) -> None:
        count = self._tick_reference_count.get(code)
        if count is not None and count > floor:
            self._tick_reference_count[code] = count - 1

    def on_init(self) -> None:
        """Let strategies register, then subscribe every referenced code."""
        subscriber = Subscriber(self)
        for strategy in list(self._strategy_map.values()):
            strategy.init(subscriber)
        codes: set[str] = set()
        for code, count in list(self._tick_reference_count.items()):
            if count == 0:
                del self._tick_reference_count[code]
            else:
                codes.add(code)
        self.context.subscribe(codes, self._dispatch_tick)

    def _dispatch_tick(self, tick: TickInfo) -> None:
        for receiver in list(self._tick_receiver.get(tick.id, {}).values()):
            receiver.on_tick(tick)

        tape_receivers = list(self._tape_receiver.get(tick.id, {}).values())
        if tape_receivers:
            prev = self.context.get_previous_tick(tick.id)
            for receiver in tape_receivers:
                tape = TapeInfo(
                    id=tick.id,
                    time=tick.time,
                    price=tick.price,
                    volume_delta=(tick.volume - prev.volume) % _UINT32,
                    interest_delta=tick.open_interest - prev.open_interest,
                    direction=self.get_deal_direction(prev, tick),
                )
                receiver.on_tape(tape)

        for generator in list(self._bar_generator.get(tick.id, {}).values()):
            generator.insert_tick(tick)

    def on_update(self) -> None:
        """Deliver queued change events, then update every strategy."""
        self.process()
        for strategy in list(self._strategy_map.values()):
            strategy.update()

    def on_destroy(self) -> None:
        """Let strategies unregister, then unsubscribe codes nobody references."""
        unsubscriber = Unsubscriber(self)
        for strategy in list(self._strategy_map.values()):
            strategy.destroy(unsubscriber)
        codes: set[str] = set()
        for code, count in list(self._tick_reference_count.items()):
            if count == 0:
                codes.add(code)
                del self._tick_reference_count[code]
        self.context.unsubscribe(codes)

    def regist_strategy(self, strategies: Iterable[Any]) -> None:
        for strategy in strategies:
            self.add_handle(strategy.id, strategy.handle_change)
            self._strategy_map[strategy.id] = strategy

    def clear_strategy(self) -> None:
        """Forget every strategy, its change handler and its cancel conditions."""
        self.clear_handle()
        self.context.clear_condition()
        self._strategy_map.clear()

    def get_deal_direction(self, prev: TickInfo, tick: TickInfo) -> DealDirection:
        if tick.price >= prev.sell_price() or tick.price >= tick.sell_price():
            return DealDirection.UP
        if tick.price <= prev.buy_price() or tick.price <= tick.buy_price():
            return DealDirection.DOWN
        return DealDirection.FLAT