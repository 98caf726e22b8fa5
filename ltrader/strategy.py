"""Base class for trading strategies run by an engine."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Callable, Hashable, Sequence

from .types import (
    INVALID_ESTID,
    DirectionType,
    ErrorType,
    MarketInfo,
    OffsetType,
    OrderFlag,
    OrderInfo,
    PositionInfo,
)

if TYPE_CHECKING:
    from .engine import Engine, Subscriber, Unsubscriber

_log = logging.getLogger(__name__)


def _round_half_away(value: float) -> float:
    return math.copysign(math.floor(abs(value) + 0.5), value)


class Strategy:
    """A strategy places orders through its engine's context.

    Subclasses override the ``on_*`` hooks. A strategy is also the order
    listener for every order it places. The default hooks keep simple
    bookkeeping: whether the strategy is running, how many updates it has
    seen, its last parameters, and its live orders with their filled volume.
    """

    def __init__(
        self, strategy_id: Hashable, engine: Engine, openable: bool = True, closeable: bool = True
    ) -> None:
        self._id = strategy_id
        self._engine = engine
        self._openable = openable
        self._closeable = closeable
        self._running = False
        self._update_count = 0
        self._params = ""
        self._live_orders: dict[int, OrderInfo] = {}
        self._filled: dict[int, int] = {}

    @property
    def id(self) -> Hashable:
        return self._id

    @property
    def openable(self) -> bool:
        return self._openable

    @property
    def closeable(self) -> bool:
        return self._closeable

    @property
    def running(self) -> bool:
        return self._running

    @property
    def update_count(self) -> int:
        return self._update_count

    @property
    def params(self) -> str:
        return self._params

    @property
    def live_orders(self) -> dict[int, OrderInfo]:
        return dict(self._live_orders)

    def filled_volume(self, estid: int) -> int:
        """Volume filled so far on a live order."""
        return self._filled.get(estid, 0)

    @property
    def _ctx(self):
        return self._engine.context

    # -------------------------------------------------------------- lifecycle

    def init(self, subscriber: Subscriber) -> None:
        self.on_init(subscriber)

    def update(self) -> None:
        self.on_update()

    def destroy(self, unsubscriber: Unsubscriber) -> None:
        self.on_destroy(unsubscriber)

    def handle_change(self, msg: Sequence[Any]) -> None:
        """Apply ``(openable, closeable, params)`` and pass ``params`` to :meth:`on_change`."""
        if len(msg) < 3:
            return
        self._openable = bool(msg[0])
        self._closeable = bool(msg[1])
        params = str(msg[2])
        self.on_change(params)
        _log.info("strategy change : %s %s %s %s", self._id, self._openable, self._closeable, params)

    # ----------------------------------------------------------------- orders

    def buy_open(self, code: str, count: int, price: float = 0.0,
                 flag: OrderFlag = OrderFlag.NORMAL) -> int:
        if not self._openable:
            return INVALID_ESTID
        return self._ctx.place_order(self, OffsetType.OPEN, DirectionType.LONG, code, count, price, flag)

    def sell_close(self, code: str, count: int, price: float = 0.0, is_close_today: bool = False,
                   flag: OrderFlag = OrderFlag.NORMAL) -> int:
        if not self._closeable:
            return INVALID_ESTID
        offset = OffsetType.CLOSE_TODAY if is_close_today else OffsetType.CLOSE
        return self._ctx.place_order(self, offset, DirectionType.LONG, code, count, price, flag)

    def sell_open(self, code: str, count: int, price: float = 0.0,
                  flag: OrderFlag = OrderFlag.NORMAL) -> int:
        if not self._openable:
            return INVALID_ESTID
        return self._ctx.place_order(self, OffsetType.OPEN, DirectionType.SHORT, code, count, price, flag)

    def buy_close(self, code: str, count: int, price: float = 0.0, is_close_today: bool = False,
                  flag: OrderFlag = OrderFlag.NORMAL) -> int:
        if not self._closeable:
            return INVALID_ESTID
        offset = OffsetType.CLOSE_TODAY if is_close_today else OffsetType.CLOSE
        return self._ctx.place_order(self, offset, DirectionType.SHORT, code, count, price, flag)

    def cancel_order(self, estid: int) -> None:
        """Cancel now, or keep retrying on each update while the order is live."""
        _log.debug("cancel_order : %s", estid)
        if self._ctx.cancel_order(estid):
            self._ctx.remove_condition(estid)
        elif not self._ctx.get_order(estid).invalid():
            self._ctx.set_cancel_condition(estid, lambda _estid: True)

    # ---------------------------------------------------------------- queries

    def get_position(self, code: str) -> PositionInfo:
        return self._ctx.get_position(code)

    def get_order(self, estid: int) -> OrderInfo:
        return self._ctx.get_order(estid)

    def get_last_time(self) -> int:
        return self._ctx.get_last_time()

    def set_cancel_condition(self, estid: int, callback: Callable[[int], bool]) -> None:
        self._ctx.set_cancel_condition(estid, callback)

    def last_order_time(self) -> int:
        return self._ctx.last_order_time()

    def get_trading_day(self) -> int:
        return self._ctx.get_trading_day()

    def get_market_info(self, code: str) -> MarketInfo:
        return self._ctx.get_market_info(code)

    def get_proximate_price(self, code: str, price: float) -> float:
        """Round ``price`` to the nearest multiple of the code's price step."""
        step = self._ctx.get_price_step(code)
        return _round_half_away(price / step) * step

    def get_price_step(self, code: str) -> float:
        return self._ctx.get_price_step(code)

    def regist_order_listener(self, estid: int) -> None:
        self._ctx.regist_order_listener(estid, self)

    # ------------------------------------------------------------------ hooks

    def on_init(self, subscriber: Subscriber) -> None:
        """Called once at start-up; register market data receivers here."""
        self._running = True
        self._update_count = 0

    def on_update(self) -> None:
        """Called on each loop pass during trading hours."""
        self._update_count += 1

    def on_destroy(self, unsubscriber: Unsubscriber) -> None:
        """Called once at shutdown; unregister receivers here."""
        self._running = False

    def on_change(self, params: str) -> None:
        """Called when the strategy's parameters change."""
        self._params = params

    def on_entrust(self, order: OrderInfo) -> None:
        """An order was accepted."""
        self._live_orders[order.estid] = order
        self._filled.setdefault(order.estid, 0)

    def on_deal(self, estid: int, deal_volume: int) -> None:
        """Part of an order was filled."""
        self._filled[estid] = self._filled.get(estid, 0) + deal_volume

    def on_trade(self, estid: int, code: str, offset: OffsetType, direction: DirectionType,
                 price: float, trade_volume: int) -> None:
        """An order was completely filled."""
        self._live_orders.pop(estid, None)
        self._filled.pop(estid, None)

    def on_cancel(self, estid: int, code: str, offset: OffsetType, direction: DirectionType,
                  price: float, cancel_volume: int, total_volume: int) -> None:
        """An order was cancelled."""
        self._live_orders.pop(estid, None)
        self._filled.pop(estid, None)

    def on_error(self, error_type: ErrorType, estid: int, error: int) -> None:
        """An order operation failed."""