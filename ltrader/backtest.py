"""Back-testing engine driven by a replay market and a simulated trader."""

from __future__ import annotations

import configparser
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Iterable

from .engine import ConfigError, Engine
from .recorder import CsvRecorder

_log = logging.getLogger(__name__)

Factory = Callable[[dict[str, str]], Any]


def _read_sections(config_path: str | os.PathLike) -> dict[str, dict[str, str]]:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"config path does not exist: {path}")
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    with open(path, encoding="utf-8") as handle:
        parser.read_file(handle)
    return {name: dict(parser[name]) for name in parser.sections()}


def _require(sections: dict[str, dict[str, str]], name: str, path: Any) -> dict[str, str]:
    try:
        return sections[name]
    except KeyError:
        raise ConfigError(f"{path}: missing [{name}] section") from None


class EvaluateEngine(Engine):
    """Runs strategies over one recorded trading day.

    The INI file needs ``[include]``, ``[dummy_market]``, ``[dummy_trader]`` and
    ``[control]``; ``[recorder]`` with ``basic_path`` is optional. The factories
    build the replay market and simulated trader from their sections.
    """

    def __init__(
        self,
        config_path: str | os.PathLike,
        market_factory: Factory,
        trader_factory: Factory,
        poll_interval: float = 1.0,
    ) -> None:
        super().__init__()
        self._poll_interval = poll_interval
        sections = _read_sections(config_path)
        include = _require(sections, "include", config_path)
        self.market = market_factory(_require(sections, "dummy_market", config_path))
        if self.market is None:
            raise ConfigError(f"{config_path}: could not create dummy market")
        self.trader = trader_factory(_require(sections, "dummy_trader", config_path))
        if self.trader is None:
            raise ConfigError(f"{config_path}: could not create dummy trader")
        self.recorder: CsvRecorder | None = None
        recorder_params = sections.get("recorder")
        if recorder_params is not None:
            self.recorder = CsvRecorder(recorder_params["basic_path"])
        control = _require(sections, "control", config_path)
        self.context.init(control, include, self.market, self.trader, True)

    def back_test(self, strategies: Iterable[Any], trading_day: int) -> None:
        """Replay ``trading_day`` and block until the replay finishes."""
        self.trader.crossday(trading_day)
        self.regist_strategy(strategies)
        if not self.context.start_service():
            return
        self.market.play(self.trader.get_trading_day(), self.trader.push_tick)
        while not self.market.is_finished():
            time.sleep(self._poll_interval)
        if self.recorder is not None:
            self.recorder.record_crossday_flow(
                self.trader.get_trading_day(),
                self.context.get_all_statistic(),
                self.trader.get_account(),
            )
        if self.context.stop_service():
            self.clear_strategy()