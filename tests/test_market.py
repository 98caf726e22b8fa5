import pytest

from ltrader.market import (
    ActualMarket,
    AsyncActualMarket,
    DummyMarket,
    MarketApi,
    MarketEventType,
    SyncActualMarket,
)
from ltrader.types import TickExtend, TickInfo


class _Feed:
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.subscribed = set()
        self.logged_in = False

    def subscribe(self, codes):
        self.subscribed |= set(codes)

    def unsubscribe(self, codes):
        self.subscribed -= set(codes)

    def login(self):
        self.logged_in = True
        return True

    def logout(self):
        self.logged_in = False

    def push(self, tick):
        self.fire_event(MarketEventType.TICK_RECEIVED, tick, TickExtend())


class SyncFeed(_Feed, SyncActualMarket):
    def update(self):
        pass


class AsyncFeed(_Feed, AsyncActualMarket):
    pass


class Replay(DummyMarket):
    def __init__(self, ticks):
        super().__init__()
        self._ticks = ticks
        self._done = False

    def subscribe(self, codes):
        pass

    def unsubscribe(self, codes):
        pass

    def update(self):
        pass

    def play(self, trading_day, publish_callback):
        for tick in self._ticks:
            publish_callback([tick])
            self.fire_event(MarketEventType.TICK_RECEIVED, tick, TickExtend())
        self._done = True

    def is_finished(self):
        return self._done


def test_abstract_classes_cannot_be_built():
    with pytest.raises(TypeError):
        MarketApi()
    with pytest.raises(TypeError):
        ActualMarket({})


def test_sync_market_delivers_immediately():
    feed = SyncFeed({"rb2310": "SHFE"})
    received = []
    feed.bind_event(MarketEventType.TICK_RECEIVED, received.append)
    tick = TickInfo(id="rb2310", price=3700.0)
    feed.push(tick)
    assert received[0][0] is tick
    assert feed._id_excg_map == {"rb2310": "SHFE"}


def test_sync_market_clear_event():
    feed = SyncFeed({})
    received = []
    feed.bind_event(MarketEventType.TICK_RECEIVED, received.append)
    feed.clear_event()
    feed.push(TickInfo())
    assert received == []


def test_async_market_delivers_on_update():
    feed = AsyncFeed({})
    received = []
    feed.bind_event(MarketEventType.TICK_RECEIVED, received.append)
    tick = TickInfo(id="ag2312")
    feed.push(tick)
    assert received == []
    feed.update()
    assert [params[0] for params in received] == [tick]


def test_subscribe_login_then_events_flow():
    feed = AsyncFeed({"b": "DCE"})
    feed.subscribe({"a", "b"})
    feed.unsubscribe({"a"})
    assert feed.subscribed == {"b"}
    assert feed.login() is True
    received = []
    feed.bind_event(MarketEventType.TICK_RECEIVED, received.append)
    tick = TickInfo(id="b", price=10.0)
    feed.push(tick)
    assert feed.is_empty() is False
    feed.update()
    assert feed.is_empty() is True
    assert [params[0] for params in received] == [tick]
    feed.logout()
    assert feed.logged_in is False


def test_dummy_market_replay():
    ticks = [TickInfo(id="rb2310", time=1), TickInfo(id="rb2310", time=2)]
    replay = Replay(ticks)
    published = []
    events = []
    replay.bind_event(MarketEventType.TICK_RECEIVED, events.append)
    assert not replay.is_finished()
    replay.play(20230517, published.extend)
    assert replay.is_finished()
    assert published == ticks
    assert [params[0] for params in events] == ticks