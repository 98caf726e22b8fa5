from ltrader.bars import BarGenerator
from ltrader.timeutils import ONE_MINUTE_MILLISECONDS
from ltrader.types import TickInfo

BASE = 300 * ONE_MINUTE_MILLISECONDS


class Collector:
    def __init__(self):
        self.bars = []

    def on_bar(self, bar):
        self.bars.append(bar)


def tick(time, price, volume, bid=99.0, ask=101.0):
    return TickInfo(
        id="SHFE.rb2405",
        time=time,
        price=price,
        volume=volume,
        buy_order=[(bid, 1)],
        sell_order=[(ask, 1)],
    )


def test_bar_emitted_after_period():
    gen = BarGenerator(1, 0.5)
    rec = Collector()
    gen.add_receiver(rec)
    first = tick(BASE, 100.0, 10)
    second = tick(BASE + 500, 101.0, 15)
    gen.insert_tick(first)
    gen.insert_tick(second)
    assert rec.bars == []
    gen.insert_tick(tick(BASE + ONE_MINUTE_MILLISECONDS, 99.0, 16))
    assert len(rec.bars) == 1
    bar = rec.bars[0]
    assert bar.id == "SHFE.rb2405"
    assert bar.period == 1
    assert bar.price_step == 0.5
    assert bar.time == BASE
    assert (bar.open, bar.high, bar.low, bar.close) == (100.0, 101.0, 100.0, 101.0)
    assert bar.volume == second.volume
    assert bar.poc == 100.0
    assert bar.price_buy_volume == {101.0: second.volume - first.volume}
    assert bar.delta == second.volume - first.volume


def test_no_bar_within_period():
    gen = BarGenerator(5, 1.0)
    rec = Collector()
    gen.add_receiver(rec)
    for minute in range(5):
        gen.insert_tick(tick(BASE + minute * ONE_MINUTE_MILLISECONDS, 100.0, 10 + minute))
    assert rec.bars == []
    gen.insert_tick(tick(BASE + 5 * ONE_MINUTE_MILLISECONDS, 100.0, 20))
    assert len(rec.bars) == 1
    assert rec.bars[0].time == BASE


def test_sell_at_bid_reduces_delta():
    gen = BarGenerator(1, 1.0)
    rec = Collector()
    gen.add_receiver(rec)
    gen.insert_tick(tick(BASE, 100.0, 10))
    gen.insert_tick(tick(BASE + 1, 99.0, 14))
    gen.insert_tick(tick(BASE + ONE_MINUTE_MILLISECONDS, 99.0, 20))
    bar = rec.bars[0]
    assert bar.price_sell_volume == {99.0: 4}
    assert bar.delta == -4
    assert bar.low == 99.0


def test_poc_moves_to_heaviest_price():
    gen = BarGenerator(1, 1.0)
    rec = Collector()
    gen.add_receiver(rec)
    gen.insert_tick(tick(BASE, 100.0, 2))
    gen.insert_tick(tick(BASE + 1, 100.5, 10))
    gen.insert_tick(tick(BASE + ONE_MINUTE_MILLISECONDS, 100.0, 11))
    assert rec.bars[0].poc == 100.5


def test_emitted_bar_is_independent_copy():
    gen = BarGenerator(1, 1.0)
    rec = Collector()
    gen.add_receiver(rec)
    gen.insert_tick(tick(BASE, 100.0, 10))
    gen.insert_tick(tick(BASE + ONE_MINUTE_MILLISECONDS, 105.0, 12))
    gen.insert_tick(tick(BASE + ONE_MINUTE_MILLISECONDS + 1, 106.0, 13))
    assert rec.bars[0].open == 100.0
    assert rec.bars[0].high == 100.0


def test_receivers_are_unique_and_removable():
    gen = BarGenerator(1, 1.0)
    rec = Collector()
    assert gen.invalid()
    gen.add_receiver(rec)
    gen.add_receiver(rec)
    assert not gen.invalid()
    gen.insert_tick(tick(BASE, 100.0, 10))
    gen.insert_tick(tick(BASE + ONE_MINUTE_MILLISECONDS, 100.0, 11))
    assert len(rec.bars) == 1
    gen.remove_receiver(rec)
    assert gen.invalid()
    gen.insert_tick(tick(BASE + 2 * ONE_MINUTE_MILLISECONDS, 100.0, 12))
    assert len(rec.bars) == 1