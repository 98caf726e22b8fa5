"""CSV records of the daily settlement flow."""

from __future__ import annotations

import csv
import logging
import os
import time
from pathlib import Path

from .timeutils import datetime_to_string
from .types import AccountInfo, OrderStatistic

_log = logging.getLogger(__name__)

CROSSDAY_FLOW_COLUMNS = (
    "trading_day",
    "place_order_amount",
    "entrust_amount",
    "trade_amount",
    "cancel_amount",
    "error_amount",
    "money",
    "frozen",
)


class CsvRecorder:
    """Writes settlement rows under ``<basic_path>/<yyyy-mm-dd>/``.

    The dated directory is that of the day the recorder is created.
    """

    def __init__(self, basic_path: str | os.PathLike) -> None:
        base = Path(basic_path)
        base.mkdir(parents=True, exist_ok=True)
        self._basic_path = base / datetime_to_string(int(time.time()), "%Y-%m-%d")
        self._basic_path.mkdir(parents=True, exist_ok=True)
        self._rows: list[list[str]] = []

    @property
    def basic_path(self) -> Path:
        return self._basic_path

    @property
    def crossday_flow_path(self) -> Path:
        return self._basic_path / "crossday_flow.csv"

    def record_crossday_flow(
        self, trading_day: int, statistic: OrderStatistic, account: AccountInfo
    ) -> None:
        """Append one settlement row and rewrite the flow file.

        A failure to write is logged, not raised.
        """
        self._rows.append(
            [
                str(trading_day),
                str(statistic.place_order_amount),
                str(statistic.entrust_amount),
                str(statistic.trade_amount),
                str(statistic.cancel_amount),
                str(statistic.error_amount),
                f"{account.money:f}",
                f"{account.frozen_money:f}",
            ]
        )
        try:
            with open(self.crossday_flow_path, "w", newline="", encoding="utf-8") as handle:
                writer = csv.writer(handle, lineterminator="\n")
                writer.writerow(CROSSDAY_FLOW_COLUMNS)
                writer.writerows(self._rows)
        except OSError as exc:
            _log.error("csv_recorder record_crossday_flow exception : %s", exc)