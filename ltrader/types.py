"""Data types shared by the market, trading and strategy layers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import NamedTuple

INVALID_ESTID = 0
PRICE_VOLUME_LENGTH = 5


class OffsetType(enum.Enum):
    OPEN = "open"
    CLOSE = "close"
    CLOSE_TODAY = "close_today"


class DirectionType(enum.Enum):
    LONG = "long"
    SHORT = "short"


class OrderFlag(enum.Enum):
    NORMAL = "normal"
    FAK = "fak"
    FOK = "fok"


class ErrorType(enum.Enum):
    PLACE_ORDER = "place_order"
    CANCEL_ORDER = "cancel_order"
    OTHER = "other"


class DealDirection(enum.IntEnum):
    DOWN = -1
    FLAT = 0
    UP = 1


@dataclass
class TickInfo:
    """One market snapshot; order books hold ``(price, volume)`` levels, best first."""

    id: str = ""
    time: int = 0
    price: float = 0.0
    volume: int = 0
    open_interest: float = 0.0
    average_price: float = 0.0
    trading_day: int = 0
    buy_order: list[tuple[float, int]] = field(default_factory=list)
    sell_order: list[tuple[float, int]] = field(default_factory=list)

    def buy_price(self) -> float:
        return self.buy_order[0][0] if self.buy_order else 0.0

    def sell_price(self) -> float:
        return self.sell_order[0][0] if self.sell_order else 0.0


class TickExtend(NamedTuple):
    open_price: float = 0.0
    close_price: float = 0.0
    standard_price: float = 0.0
    high_price: float = 0.0
    low_price: float = 0.0
    max_price: float = 0.0
    min_price: float = 0.0


@dataclass
class BarInfo:
    id: str = ""
    period: int = 0
    time: int = 0
    open: float = 0.0
    close: float = 0.0
    high: float = 0.0
    low: float = 0.0
    volume: int = 0
    price_step: float = 0.0
    poc: float = 0.0
    delta: int = 0
    price_buy_volume: dict[float, int] = field(default_factory=dict)
    price_sell_volume: dict[float, int] = field(default_factory=dict)

    def clear(self) -> None:
        """Reset every field to its default."""
        fresh = BarInfo()
        self.__dict__.update(fresh.__dict__)


@dataclass
class TapeInfo:
    id: str = ""
    time: int = 0
    price: float = 0.0
    volume_delta: int = 0
    interest_delta: float = 0.0
    direction: DealDirection = DealDirection.FLAT


@dataclass
class OrderInfo:
    estid: int = INVALID_ESTID
    code: str = ""
    offset: OffsetType = OffsetType.OPEN
    direction: DirectionType = DirectionType.LONG
    total_volume: int = 0
    last_volume: int = 0
    create_time: int = 0
    price: float = 0.0
    flag: OrderFlag = OrderFlag.NORMAL

    def invalid(self) -> bool:
        return self.estid == INVALID_ESTID


@dataclass
class PositionCell:
    position: int = 0
    frozen: int = 0

    @property
    def usable(self) -> int:
        return self.position - self.frozen


@dataclass
class PositionInfo:
    id: str = ""
    today_long: PositionCell = field(default_factory=PositionCell)
    today_short: PositionCell = field(default_factory=PositionCell)
    history_long: PositionCell = field(default_factory=PositionCell)
    history_short: PositionCell = field(default_factory=PositionCell)
    long_pending: int = 0
    short_pending: int = 0

    def empty(self) -> bool:
        return self.get_total() == 0 and self.long_pending == 0 and self.short_pending == 0

    def get_total(self) -> int:
        return (
            self.today_long.position
            + self.today_short.position
            + self.history_long.position
            + self.history_short.position
        )


@dataclass
class MarketInfo:
    code: str = ""
    last_tick_info: TickInfo = field(default_factory=TickInfo)
    open_price: float = 0.0
    close_price: float = 0.0
    standard_price: float = 0.0
    high_price: float = 0.0
    low_price: float = 0.0
    max_price: float = 0.0
    min_price: float = 0.0
    trading_day: int = 0
    volume_distribution: dict[float, int] = field(default_factory=dict)


@dataclass
class OrderStatistic:
    place_order_amount: int = 0
    entrust_amount: int = 0
    trade_amount: int = 0
    cancel_amount: int = 0
    error_amount: int = 0


@dataclass
class PositionSeed:
    id: str = ""
    today_long: int = 0
    today_short: int = 0
    history_long: int = 0
    history_short: int = 0


@dataclass
class TraderData:
    orders: list[OrderInfo] = field(default_factory=list)
    positions: list[PositionSeed] = field(default_factory=list)


@dataclass
class AccountInfo:
    money: float = 0.0
    frozen_money: float = 0.0