"""Live trading engine connected to real market and trading gateways."""

from __future__ import annotations

import configparser
import logging
import os
from pathlib import Path
from typing import Any, Callable, Iterable

from .engine import ConfigError, Engine

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


class RuntimeEngine(Engine):
    """Runs strategies against live gateways.

    The INI file needs ``[include]``, ``[actual_market]``, ``[actual_trader]``
    and ``[control]``; the factories build the gateways from their sections.
    """

    def __init__(
        self,
        config_path: str | os.PathLike,
        market_factory: Factory,
        trader_factory: Factory,
    ) -> None:
        super().__init__()
        sections = _read_sections(config_path)
        include = _require(sections, "include", config_path)
        self.market = market_factory(_require(sections, "actual_market", config_path))
        if self.market is None:
            raise ConfigError(f"{config_path}: could not create market api")
        self.trader = trader_factory(_require(sections, "actual_trader", config_path))
        if self.trader is None:
            raise ConfigError(f"{config_path}: could not create trader api")
        control = _require(sections, "control", config_path)
        self.context.init(control, include, self.market, self.trader)

    def start_trading(self, strategies: Iterable[Any]) -> None:
        """Log in to both gateways, register strategies and start the loop."""
        if self.trader.login() and self.market.login():
            self.regist_strategy(strategies)
            if self.context.start_service():
                _log.info("runtime_engine run in start_trading")

    def stop_trading(self) -> None:
        """Stop the loop, drop strategies and log out of both gateways."""
        if self.context.stop_service():
            self.clear_strategy()
            self.trader.logout()
            self.market.logout()
            _log.info("runtime_engine run end")