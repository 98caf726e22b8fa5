"""Minimum price increments per instrument."""

from __future__ import annotations

import csv
import os
from pathlib import Path

DEFAULT_PRICE_STEP = 1.0


class PriceStep:
    """Price steps read from a CSV file with ``code`` and ``price_step`` columns.

    Rows with an empty code are skipped; unknown codes get a step of 1.0.
    """

    def __init__(self, config_path: str | os.PathLike) -> None:
        self._steps: dict[str, float] = {}
        with open(Path(config_path), newline="", encoding="utf-8") as handle:
            for row in csv.DictReader(handle):
                row = {(key or "").strip(): (value or "").strip() for key, value in row.items()}
                code = row.get("code", "")
                if code:
                    self._steps[code] = float(row["price_step"])

    def get_price_step(self, code: str) -> float:
        return self._steps.get(code, DEFAULT_PRICE_STEP)