"""Trading context: order book-keeping, positions and the realtime loop."""

from __future__ import annotations

import copy
import enum
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Protocol, Sequence

from .market import MarketEventType
from .pricestep import PriceStep
from .session import TradingSection
from .types import (
    INVALID_ESTID,
    DirectionType,
    ErrorType,
    MarketInfo,
    OffsetType,
    OrderFlag,
    OrderInfo,
    OrderStatistic,
    PositionInfo,
    TickExtend,
    TickInfo,
    TraderData,
)

_log = logging.getLogger(__name__)

_UINT32 = 1 << 32

FilterFunction = Callable[[str, OffsetType, DirectionType, int, float, OrderFlag], bool]


class TraderEventType(enum.Enum):
    INVALID = 0
    ORDER_CANCEL = 1
    ORDER_PLACE = 2
    ORDER_DEAL = 3
    ORDER_TRADE = 4
    ORDER_ERROR = 5


class LifecycleListener(Protocol):
    def on_init(self) -> None: ...

    def on_update(self) -> None: ...

    def on_destroy(self) -> None: ...


class OrderListener(Protocol):
    def on_entrust(self, order: OrderInfo) -> None: ...

    def on_deal(self, estid: int, deal_volume: int) -> None: ...

    def on_trade(self, estid: int, code: str, offset: OffsetType, direction: DirectionType,
                 price: float, trade_volume: int) -> None: ...

    def on_cancel(self, estid: int, code: str, offset: OffsetType, direction: DirectionType,
                  price: float, cancel_volume: int, total_volume: int) -> None: ...

    def on_error(self, error_type: ErrorType, estid: int, error: int) -> None: ...


class Context:
    """Holds trading state and runs the update loop on a background thread.

    ``trader`` is any object offering ``get_trader_data``, ``bind_event``,
    ``clear_event``, ``update``, ``place_order``, ``cancel_order`` and
    ``get_trading_day``; ``market`` follows :class:`~ltrader.market.MarketApi`.
    """

    def __init__(self, lifecycle: LifecycleListener | None = None) -> None:
        self._lifecycle = lifecycle
        self._market: Any = None
        self._trader: Any = None
        self._running = False
        self._thread: threading.Thread | None = None
        self._tick_callback: Callable[[TickInfo], None] | None = None
        self._filter_function: FilterFunction | None = None
        self._last_order_time = 0
        self._last_tick_time = 0
        self._bind_cpu_core = -1
        self._loop_interval = 1
        self._ps_config: PriceStep | None = None
        self._section_config: TradingSection | None = None
        self._position_info: dict[str, PositionInfo] = {}
        self._order_info: dict[int, OrderInfo] = {}
        self._order_listener: dict[int, OrderListener | None] = {}
        self._statistic_info: dict[str, OrderStatistic] = {}
        self._market_info: dict[str, MarketInfo] = {}
        self._previous_tick: dict[str, TickInfo] = {}
        self._need_check_condition: dict[int, Callable[[int], bool]] = {}

    # ------------------------------------------------------------------ setup

    def init(
        self,
        control_config: Mapping[str, Any],
        include_config: Mapping[str, Any],
        market: Any,
        trader: Any,
        reset_trading_day: bool = False,
    ) -> None:
        """Attach the market and trader and load the price-step and session files."""
        self._market = market
        self._trader = trader
        self._bind_cpu_core = int(control_config.get("bind_cpu_core", -1))
        self._loop_interval = int(control_config.get("loop_interval", 1))
        self._ps_config = PriceStep(Path(include_config["price_step"]))
        self._section_config = TradingSection(Path(include_config["section_config"]))

    def load_data(self) -> bool:
        """Rebuild positions and open orders from the trader's snapshot."""
        if self._trader is None:
            _log.error("context load trader null")
            return False
        _log.info("context load trader data")
        data: TraderData | None = self._trader.get_trader_data()
        if data is None:
            return False
        self._position_info.clear()
        self._order_info.clear()
        for order in data.orders:
            pos = self._position_info.setdefault(order.code, PositionInfo(id=order.code))
            pos.id = order.code
            if order.offset is OffsetType.OPEN:
                if order.direction is DirectionType.LONG:
                    pos.long_pending += order.total_volume
                elif order.direction is DirectionType.SHORT:
                    pos.short_pending += order.total_volume
            elif order.offset is OffsetType.CLOSE_TODAY:
                if order.direction is DirectionType.LONG:
                    pos.today_long.frozen += order.total_volume
                elif order.direction is DirectionType.SHORT:
                    pos.today_short.frozen += order.total_volume
            else:
                if order.direction is DirectionType.LONG:
                    pos.history_long.frozen += order.total_volume
                elif order.direction is DirectionType.SHORT:
                    pos.history_short.frozen += order.total_volume
            self._order_info[order.estid] = order
        for seed in data.positions:
            pos = self._position_info.setdefault(seed.id, PositionInfo(id=seed.id))
            pos.id = seed.id
            pos.today_long.position = seed.today_long
            pos.today_short.position = seed.today_short
            pos.history_long.position = seed.history_long
            pos.history_short.position = seed.history_short
        return True

    # ---------------------------------------------------------------- service

    def start_service(self) -> bool:
        """Load trader data, bind events and start the realtime thread."""
        if self._running:
            return False
        if not self.load_data():
            return False
        self._running = True
        if self._trader is not None:
            self._trader.bind_event(TraderEventType.ORDER_CANCEL, self.handle_cancel)
            self._trader.bind_event(TraderEventType.ORDER_PLACE, self.handle_entrust)
            self._trader.bind_event(TraderEventType.ORDER_DEAL, self.handle_deal)
            self._trader.bind_event(TraderEventType.ORDER_TRADE, self.handle_trade)
            self._trader.bind_event(TraderEventType.ORDER_ERROR, self.handle_error)
        if self._market is not None:
            self._market.bind_event(MarketEventType.TICK_RECEIVED, self.handle_tick)
        self._thread = threading.Thread(target=self._run, name="realtime", daemon=True)
        self._thread.start()
        return True

    def _bind_core(self) -> None:
        cores = os.cpu_count() or 0
        if not 0 <= self._bind_cpu_core < cores:
            return
        setter = getattr(os, "sched_setaffinity", None)
        try:
            if setter is None:
                raise OSError("cpu affinity unsupported")
            setter(0, {self._bind_cpu_core})
        except OSError:
            _log.warning("bind to core failed : %s", self._bind_cpu_core)

    def _run(self) -> None:
        self._bind_core()
        self.check_crossday()
        if self._lifecycle is not None:
            self._lifecycle.on_init()
        interval = self._loop_interval / 1_000_000
        while self._running:
            begin = time.monotonic()
            self.update()
            used = time.monotonic() - begin
            if used < interval:
                time.sleep(interval - used)
        if self._lifecycle is not None:
            self._lifecycle.on_destroy()

    def update(self) -> None:
        """One pass of the loop: market first, then trader and strategies in session."""
        if self._market is not None:
            self._market.update()
        if self.is_in_trading():
            if self._trader is not None:
                self._trader.update()
            if self._lifecycle is not None:
                self._lifecycle.on_update()
            self.check_condition()

    def stop_service(self) -> bool:
        """Stop the realtime thread and unbind events."""
        if not self._running:
            return False
        self._running = False
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self._trader is not None:
            self._trader.clear_event()
        if self._market is not None:
            self._market.clear_event()
        return True

    # ---------------------------------------------------------------- queries

    def get_all_statistic(self) -> OrderStatistic:
        total = OrderStatistic()
        for stat in self._statistic_info.values():
            total.place_order_amount += stat.place_order_amount
            total.entrust_amount += stat.entrust_amount
            total.trade_amount += stat.trade_amount
            total.cancel_amount += stat.cancel_amount
            total.error_amount += stat.error_amount
        return total

    def get_previous_tick(self, code: str) -> TickInfo:
        return self._previous_tick.get(code) or TickInfo()

    def get_position(self, code: str) -> PositionInfo:
        return self._position_info.get(code) or PositionInfo()

    def get_order(self, estid: int) -> OrderInfo:
        return self._order_info.get(estid) or OrderInfo()

    def find_orders(self, func: Callable[[OrderInfo], bool]) -> list[OrderInfo]:
        return [order for order in self._order_info.values() if func(order)]

    def get_total_position(self) -> int:
        return sum(pos.get_total() for pos in self._position_info.values())

    def get_total_pending(self) -> int:
        return sum(pos.long_pending + pos.short_pending for pos in self._position_info.values())

    def get_last_time(self) -> int:
        return self._last_tick_time

    def last_order_time(self) -> int:
        return self._last_order_time

    def get_order_statistic(self, code: str) -> OrderStatistic:
        return self._statistic_info.get(code) or OrderStatistic()

    def get_trading_day(self) -> int:
        if self._trader is None:
            return 0
        return self._trader.get_trading_day()

    def get_close_time(self) -> int:
        if self._section_config is None:
            _log.critical("section config not init")
            return 0
        return self._section_config.get_close_time()

    def is_in_trading(self) -> bool:
        if self._section_config is None:
            _log.critical("section config not init")
            return False
        return self._section_config.is_in_trading(self._last_tick_time)

    def get_market_info(self, code: str) -> MarketInfo:
        return self._market_info.get(code) or MarketInfo()

    def get_price_step(self, code: str) -> float:
        if self._ps_config is not None:
            return self._ps_config.get_price_step(code)
        _log.warning("_price_step_config null")
        return 0.0

    # ----------------------------------------------------------------- orders

    def place_order(
        self,
        listener: OrderListener | None,
        offset: OffsetType,
        direction: DirectionType,
        code: str,
        count: int,
        price: float,
        flag: OrderFlag = OrderFlag.NORMAL,
    ) -> int:
        """Send an order; returns its estid, or ``INVALID_ESTID`` when refused."""
        _log.info("context place order : %s %s %s %s %s", code, offset, direction, price, count)
        if self._trader is None:
            _log.error("place order trader null")
            return INVALID_ESTID
        if not self.is_in_trading():
            _log.warning("place order code not in trading %s", code)
            return INVALID_ESTID
        if self._filter_function is not None and not self._filter_function(
            code, offset, direction, count, price, flag
        ):
            _log.warning("place order rejected by filter %s", code)
            return INVALID_ESTID
        estid = self._trader.place_order(offset, direction, code, count, price, flag)
        if estid != INVALID_ESTID:
            self._order_listener[estid] = listener
            self._statistic_info.setdefault(code, OrderStatistic()).place_order_amount += 1
        return estid

    def cancel_order(self, estid: int) -> bool:
        if estid == INVALID_ESTID:
            return False
        if self._trader is None:
            _log.error("cancel order trader null")
            return False
        if not self.is_in_trading():
            _log.warning("cancel order not in trading %s", estid)
            return False
        _log.info("context cancel_order : %s", estid)
        return bool(self._trader.cancel_order(estid))

    def subscribe(self, codes: Iterable[str], tick_callback: Callable[[TickInfo], None]) -> None:
        self._tick_callback = tick_callback
        if self._market is not None:
            self._market.subscribe(set(codes))

    def unsubscribe(self, codes: Iterable[str]) -> None:
        if self._market is not None:
            self._market.unsubscribe(set(codes))

    def set_trading_filter(self, callback: FilterFunction | None) -> None:
        self._filter_function = callback

    def regist_order_listener(self, estid: int, listener: OrderListener | None) -> None:
        self._order_listener[estid] = listener

    # ------------------------------------------------------------- conditions

    def set_cancel_condition(self, estid: int, callback: Callable[[int], bool]) -> None:
        if estid != INVALID_ESTID:
            _log.debug("set_cancel_condition : %s", estid)
            self._need_check_condition[estid] = callback

    def check_condition(self) -> None:
        """Cancel every order whose condition holds; drop it once handled."""
        for estid, condition in list(self._need_check_condition.items()):
            if condition(estid) and (self.get_order(estid).invalid() or self.cancel_order(estid)):
                self._need_check_condition.pop(estid, None)

    def remove_condition(self, estid: int) -> None:
        self._need_check_condition.pop(estid, None)

    def clear_condition(self) -> None:
        self._need_check_condition.clear()

    def check_crossday(self) -> None:
        self._last_tick_time = 0
        self._market_info.clear()
        self._statistic_info.clear()
        self._last_order_time = self.get_last_time()
        _log.info("trading ready")

    # --------------------------------------------------------------- handlers

    def _statistic(self, code: str) -> OrderStatistic:
        return self._statistic_info.setdefault(code, OrderStatistic())

    def handle_entrust(self, params: Sequence[Any]) -> None:
        if len(params) < 1:
            return
        order: OrderInfo = params[0]
        self._order_info[order.estid] = order
        if order.offset is OffsetType.OPEN:
            self._record_pending(order.code, order.direction, order.offset, order.total_volume)
        else:
            self._frozen_deduction(order.code, order.direction, order.offset, order.total_volume)
        listener = self._order_listener.get(order.estid)
        if listener is not None:
            listener.on_entrust(order)
        self._last_order_time = order.create_time
        self._statistic(order.code).entrust_amount += 1

    def handle_deal(self, params: Sequence[Any]) -> None:
        if len(params) < 3:
            return
        estid, deal_volume, last_volume = params[0], params[1], params[2]
        order = self._order_info.get(estid)
        if order is not None:
            self._calculate_position(order.code, order.direction, order.offset, deal_volume, order.price)
            order.last_volume = last_volume
        listener = self._order_listener.get(estid)
        if listener is not None:
            listener.on_deal(estid, deal_volume)

    def handle_trade(self, params: Sequence[Any]) -> None:
        if len(params) < 6:
            return
        estid, code, offset, direction, price, trade_volume = params[:6]
        self._order_info.pop(estid, None)
        if estid in self._order_listener:
            listener = self._order_listener[estid]
            if listener is not None:
                listener.on_trade(estid, code, offset, direction, price, trade_volume)
                del self._order_listener[estid]
        self._need_check_condition.pop(estid, None)
        self._statistic(code).trade_amount += 1

    def handle_cancel(self, params: Sequence[Any]) -> None:
        if len(params) < 7:
            return
        estid, code, offset, direction, price, cancel_volume, total_volume = params[:7]
        if estid in self._order_info:
            if offset is OffsetType.OPEN:
                self._recover_pending(code, direction, offset, cancel_volume)
            else:
                self._unfreeze_deduction(code, direction, offset, cancel_volume)
            del self._order_info[estid]
        if estid in self._order_listener:
            listener = self._order_listener[estid]
            if listener is not None:
                listener.on_cancel(estid, code, offset, direction, price, cancel_volume, total_volume)
                del self._order_listener[estid]
        self._need_check_condition.pop(estid, None)
        self._statistic(code).cancel_amount += 1

    def handle_tick(self, params: Sequence[Any]) -> None:
        if len(params) < 2:
            return
        last_tick: TickInfo = params[0]
        if last_tick.time > self._last_tick_time:
            self._last_tick_time = last_tick.time
        prev_tick = self._previous_tick.get(last_tick.id)
        if prev_tick is None:
            self._previous_tick[last_tick.id] = last_tick
            return
        if self.is_in_trading():
            extend: TickExtend = params[1]
            info = self._market_info.setdefault(last_tick.id, MarketInfo())
            info.code = last_tick.id
            info.last_tick_info = last_tick
            info.open_price = extend.open_price
            info.close_price = extend.close_price
            info.standard_price = extend.standard_price
            info.high_price = extend.high_price
            info.low_price = extend.low_price
            info.max_price = extend.max_price
            info.min_price = extend.min_price
            info.trading_day = last_tick.trading_day
            delta = (last_tick.volume - prev_tick.volume) % _UINT32
            info.volume_distribution[last_tick.price] = (
                info.volume_distribution.get(last_tick.price, 0) + delta
            )
            if self._tick_callback is not None:
                self._tick_callback(last_tick)
        self._previous_tick[last_tick.id] = last_tick

    def handle_error(self, params: Sequence[Any]) -> None:
        if len(params) < 3:
            return
        error_type, estid, error = params[0], params[1], params[2]
        is_place = error_type is ErrorType.PLACE_ORDER
        order = self._order_info.get(estid)
        if order is not None:
            self._statistic(order.code).error_amount += 1
            if is_place:
                del self._order_info[estid]
        if estid in self._order_listener:
            listener = self._order_listener[estid]
            if listener is not None:
                listener.on_error(error_type, estid, error)
                if is_place:
                    del self._order_listener[estid]
        if is_place:
            self._need_check_condition.pop(estid, None)

    # -------------------------------------------------------- position upkeep

    def _calculate_position(
        self, code: str, direction: DirectionType, offset: OffsetType, volume: int, price: float
    ) -> None:
        _log.info("calculate_position %s %s %s %s %s", code, direction, offset, volume, price)
        existing = self._position_info.get(code)
        pos = copy.deepcopy(existing) if existing is not None else PositionInfo(id=code)
        if offset is OffsetType.OPEN:
            if direction is DirectionType.LONG:
                pos.today_long.position += volume
                pos.long_pending -= volume
            else:
                pos.today_short.position += volume
                pos.short_pending -= volume
        elif offset is OffsetType.CLOSE_TODAY:
            if direction is DirectionType.LONG:
                pos.today_long.position -= volume
                pos.today_long.frozen -= volume
            elif direction is DirectionType.SHORT:
                pos.today_short.position -= volume
                pos.today_short.frozen -= volume
        else:
            if direction is DirectionType.LONG:
                pos.history_long.position -= volume
                pos.history_long.frozen -= volume
            elif direction is DirectionType.SHORT:
                pos.history_short.position -= volume
                pos.history_short.frozen -= volume
        if not pos.empty():
            self._position_info[code] = pos
        else:
            self._position_info.pop(code, None)

    def _frozen_deduction(
        self, code: str, direction: DirectionType, offset: OffsetType, volume: int
    ) -> None:
        pos = self._position_info.get(code)
        if pos is None:
            return
        cell = self._close_cell(pos, direction, offset)
        if cell is not None:
            cell.frozen += volume

    def _unfreeze_deduction(
        self, code: str, direction: DirectionType, offset: OffsetType, volume: int
    ) -> None:
        pos = self._position_info.get(code)
        if pos is None:
            return
        cell = self._close_cell(pos, direction, offset)
        if cell is not None:
            cell.frozen = cell.frozen - volume if cell.frozen > volume else 0

    @staticmethod
    def _close_cell(pos: PositionInfo, direction: DirectionType, offset: OffsetType):
        if offset is OffsetType.CLOSE_TODAY:
            return pos.today_long if direction is DirectionType.LONG else pos.today_short
        if offset is OffsetType.CLOSE:
            return pos.history_long if direction is DirectionType.LONG else pos.history_short
        return None

    def _record_pending(
        self, code: str, direction: DirectionType, offset: OffsetType, volume: int
    ) -> None:
        if offset is not OffsetType.OPEN:
            return
        pos = self._position_info.setdefault(code, PositionInfo(id=code))
        pos.id = code
        if direction is DirectionType.LONG:
            pos.long_pending += volume
        elif direction is DirectionType.SHORT:
            pos.short_pending += volume

    def _recover_pending(
        self, code: str, direction: DirectionType, offset: OffsetType, volume: int
    ) -> None:
        if offset is not OffsetType.OPEN:
            return
        pos = self._position_info.get(code)
        if pos is None:
            return
        if direction is DirectionType.LONG:
            pos.long_pending -= volume
        elif direction is DirectionType.SHORT:
            pos.short_pending -= volume