# ltrader

An event-driven framework for writing intraday futures trading strategies.
The same strategy code runs against live market and trading gateways
(`ltrader.runtime.RuntimeEngine`) or against a replayed trading day with a
simulated trader (`ltrader.backtest.EvaluateEngine`).

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `ltrader.strategy` – `Strategy`, the base class for strategies. Override
  `on_init(subscriber)`, `on_update()`, `on_destroy(unsubscriber)` and
  `on_change(params)`. Place orders with `buy_open`, `sell_open`,
  `buy_close` and `sell_close`; each returns an order id, or
  `INVALID_ESTID` (0) when the order is refused. `cancel_order` cancels at
  once or, if that fails while the order is still live, retries on every
  loop pass. `set_cancel_condition(estid, callback)` cancels an order once
  the callback returns true. `get_proximate_price` rounds a price to the
  instrument's price step. A strategy is the order listener of its own
  orders; the default `on_entrust`, `on_deal`, `on_trade` and `on_cancel`
  keep `live_orders` and `filled_volume(estid)` up to date.
- `ltrader.engine` – `Engine` owns a `Context` and the registered
  strategies. In `on_init` a strategy gets a `Subscriber` to register tick
  receivers (`on_tick`), tape receivers (`on_tape`, with volume and
  open-interest deltas and a `DealDirection`) and bar receivers (`on_bar`)
  for any period in minutes; at shutdown it gets an `Unsubscriber`.
  `ConfigError` is raised for an incomplete engine configuration.
- `ltrader.context` – `Context` tracks orders, today and history positions
  with their frozen volumes, pending open volumes, per-instrument
  `OrderStatistic`s and per-instrument `MarketInfo`. It runs the update loop
  on a background thread between `start_service()` and `stop_service()`;
  trader and strategy updates happen only inside a trading session.
  `set_trading_filter` installs a function that can veto orders.
- `ltrader.bars` – `BarGenerator` builds bars with open, high, low, close,
  volume, point of control and the buy/sell delta.
- `ltrader.session` – `TradingSection` reads session windows from a CSV
  file with `begin` and `end` columns (`hh:mm:ss`).
- `ltrader.pricestep` – `PriceStep` reads a CSV file with `code` and
  `price_step` columns; unknown codes get 1.0.
- `ltrader.recorder` – `CsvRecorder` appends a settlement row (order counts,
  money, frozen money) to `crossday_flow.csv` under
  `<basic_path>/<yyyy-mm-dd>/`.
- `ltrader.timeutils` – date and time helpers. A *daytm* is milliseconds in
  a trading day shifted so that 16:00 is zero, so a night session opening
  at 21:00 sorts before the next day session.
- `ltrader.market` – `MarketApi` and its bases `SyncActualMarket`,
  `AsyncActualMarket` and `DummyMarket`.
- `ltrader.events` – `EventDispatch`, `DirectEventSource` and the bounded
  `QueueEventSource`.
- `ltrader.types` – the shared data classes and enums (`TickInfo`,
  `BarInfo`, `OrderInfo`, `PositionInfo`, `OffsetType`, `DirectionType`, …).
- `ltrader.mpsc` – `MpscQueue`, a FIFO queue whose `pop` returns `None`
  when empty.
- `ltrader.streambuf` – `StreamCarbureter` and `StreamExtractor`, a compact
  typed encoding of values into a byte buffer and back to text.

## Configuration

Both engines read an INI file. `[include]` names the two CSV files:

```ini
[include]
price_step = price_step.csv
section_config = section.csv

[control]
bind_cpu_core = -1
loop_interval = 1
```

`loop_interval` is in microseconds; `bind_cpu_core` pins the loop thread to
a core where the platform allows it. `EvaluateEngine` also needs
`[dummy_market]` and `[dummy_trader]`, and takes an optional `[recorder]`
with `basic_path`. `RuntimeEngine` needs `[actual_market]` and
`[actual_trader]`. A missing file raises `FileNotFoundError`; a missing
section raises `ConfigError`.

Each engine is given two factories that receive the matching section as a
dict and return the market and trader objects.

## A minimal strategy

```python
from ltrader.strategy import Strategy

CODE = "SHFE.rb2410"


class Breakout(Strategy):
    def on_init(self, subscriber):
        super().on_init(subscriber)
        subscriber.regist_bar_receiver(CODE, 1, self)

    def on_bar(self, bar):
        if bar.close > bar.open and not self.get_position(CODE).get_total():
            self.buy_open(CODE, 1, self.get_proximate_price(CODE, bar.close))

    def on_destroy(self, unsubscriber):
        super().on_destroy(unsubscriber)
        unsubscriber.unregist_bar_receiver(CODE, 1, self)
```

```python
from ltrader.backtest import EvaluateEngine

engine = EvaluateEngine("backtest.ini", make_replay_market, make_sim_trader)
engine.back_test([Breakout("breakout", engine)], 20240102)
```

## What this package does not do

- It ships no gateways. The market and trader objects, live or simulated,
  come from the factories you pass in. A market follows `MarketApi`
  (`DummyMarket` for replays, with `play` and `is_finished`). A trader
  offers `get_trader_data`, `bind_event`, `clear_event`, `update`,
  `place_order`, `cancel_order` and `get_trading_day`. For back tests it
  also offers `crossday`, `push_tick` and `get_account`; for live trading
  it also offers `login` and `logout`.
- It has no command-line program; engines are driven from Python code.
- It has no logger of its own; modules log through the standard `logging`
  package.