"""Trading sessions of a day, expressed on the daytm clock."""

from __future__ import annotations

import csv
import os
from pathlib import Path

from .timeutils import make_daytm


class TradingSection:
    """Session windows read from a CSV file with ``begin`` and ``end`` columns.

    Times are ``"hh:mm:ss"`` strings. Each window is half open:
    ``begin <= t < end``. Windows keep the order of the file.
    """

    def __init__(self, config_path: str | os.PathLike) -> None:
        self._sections: list[tuple[int, int]] = []
        with open(Path(config_path), newline="", encoding="utf-8") as handle:
            reader = csv.DictReader(handle)
            for row in reader:
                row = {(key or "").strip(): (value or "").strip() for key, value in row.items()}
                self._sections.append(
                    (make_daytm(row["begin"], 0), make_daytm(row["end"], 0))
                )

    @property
    def sections(self) -> list[tuple[int, int]]:
        return list(self._sections)

    def is_in_trading(self, last_time: int) -> bool:
        """Whether ``last_time`` falls inside any session window."""
        return any(begin <= last_time < end for begin, end in self._sections)

    def get_open_time(self) -> int:
        """Start of the first window, or 0 when there is none."""
        return self._sections[0][0] if self._sections else 0

    def get_close_time(self) -> int:
        """End of the last window, or 0 when there is none."""
        return self._sections[-1][1] if self._sections else 0

    def next_open_time(self, now: int) -> int:
        """The next window start after ``now``, or 0 when none follows."""
        count = len(self._sections)
        start = next(
            (index for index, (begin, _) in enumerate(self._sections) if begin <= now),
            count,
        )
        for step in range(count):
            begin, _ = self._sections[(start + step) % count]
            if now < begin:
                return begin
        return 0