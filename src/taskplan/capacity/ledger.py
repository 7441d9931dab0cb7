from __future__ import annotations

from datetime import date, timedelta
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

import numpy as np

from taskplan.items import WorkItem


class DailyLedger:
    """
    Minutes already committed per date, owned by a single scheduling run.

    Seeded from existing allocation entries, then updated by the Allocator as
    each item is placed so later items never see capacity claimed earlier.
    """

    def __init__(self, used: Optional[Mapping[date, int]] = None) -> None:
        self._used: dict[date, int] = {}
        for day, minutes in (used or {}).items():
            self.commit(day, minutes)

    @classmethod
    def seeded(
        cls,
        items: Iterable[WorkItem],
        start: date,
        commitments: Optional[Mapping[date, int]] = None,
    ) -> "DailyLedger":
        """
        Ledger holding every entry of ``items`` dated on/after ``start`` plus
        ``commitments`` (capacity claimed by work outside the batch).
        """
        ledger = cls()
        for item in items:
            for entry in item.scheduled_dates:
                if entry.date >= start:
                    ledger.commit(entry.date, entry.duration)
        for day, minutes in (commitments or {}).items():
            if day >= start:
                ledger.commit(day, minutes)
        return ledger

    def commit(self, day: date, minutes: int) -> None:
        if minutes < 0:
            raise ValueError(f"Cannot commit negative minutes ({minutes}) on {day}.")
        if minutes:
            self._used[day] = self._used.get(day, 0) + int(minutes)

    def used(self, day: date) -> int:
        return self._used.get(day, 0)

    def used_window(self, start: date, days: int) -> np.ndarray:
        out = np.zeros(max(days, 0), dtype=np.int64)
        for i in range(len(out)):
            out[i] = self._used.get(start + timedelta(days=i), 0)
        return out

    def snapshot(self) -> Mapping[date, int]:
        return MappingProxyType(dict(sorted(self._used.items())))

    def copy(self) -> "DailyLedger":
        return DailyLedger(self._used)

    @property
    def total(self) -> int:
        return sum(self._used.values())

    def __len__(self) -> int:
        return len(self._used)

    def __repr__(self) -> str:
        return f"DailyLedger(days={len(self._used)}, total_minutes={self.total})"
