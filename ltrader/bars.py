"""Aggregation of ticks into fixed-period bars."""

from __future__ import annotations

import copy
from typing import Protocol

from .timeutils import ONE_MINUTE_MILLISECONDS
from .types import BarInfo, TickInfo

_UINT32 = 1 << 32


class BarReceiver(Protocol):
    def on_bar(self, bar: BarInfo) -> None: ...


class BarGenerator:
    """Builds bars of ``period`` minutes from ticks and hands finished bars on.

    Besides OHLC and volume, each bar tracks the point of control (the price
    with the most traded volume) and the volume traded at the bid and ask.
    """

    def __init__(self, period: int, price_step: float) -> None:
        self._period = period
        self._price_step = price_step
        self._minute = 0
        self._prev_volume = 0
        self._bar = BarInfo()
        self._poc_data: dict[float, int] = {}
        self._receivers: dict[int, BarReceiver] = {}

    def insert_tick(self, tick: TickInfo) -> None:
        minute = tick.time // ONE_MINUTE_MILLISECONDS
        # Unsigned difference: a tick earlier than the bar also starts a new one.
        if (minute - self._minute) % _UINT32 >= self._period:
            if self._minute > 0:
                for receiver in list(self._receivers.values()):
                    receiver.on_bar(copy.deepcopy(self._bar))
            self._minute = minute
            self._bar.clear()

        bar = self._bar
        price = tick.price
        delta_volume = (tick.volume - self._prev_volume) % _UINT32
        if bar.open == 0.0:
            self._poc_data.clear()
            bar.id = tick.id
            bar.period = self._period
            bar.open = bar.close = bar.high = bar.low = price
            bar.time = self._minute * ONE_MINUTE_MILLISECONDS
            bar.volume = delta_volume
            bar.price_step = self._price_step
            self._poc_data[price] = delta_volume
            bar.poc = price
        else:
            bar.high = max(bar.high, price)
            bar.low = min(bar.low, price)
            bar.close = price
            bar.volume += delta_volume
            self._poc_data[price] = self._poc_data.get(price, 0) + delta_volume

        if self._poc_data.get(price, 0) > self._poc_data.get(bar.poc, 0):
            bar.poc = price
        if price == tick.buy_price():
            bar.price_sell_volume[price] = bar.price_sell_volume.get(price, 0) + delta_volume
            bar.delta -= delta_volume
        if price == tick.sell_price():
            bar.price_buy_volume[price] = bar.price_buy_volume.get(price, 0) + delta_volume
            bar.delta += delta_volume

        self._prev_volume = tick.volume

    def add_receiver(self, receiver: BarReceiver) -> None:
        self._receivers.setdefault(id(receiver), receiver)

    def remove_receiver(self, receiver: BarReceiver) -> None:
        self._receivers.pop(id(receiver), None)

    def invalid(self) -> bool:
        """Whether no receiver is left."""
        return not self._receivers