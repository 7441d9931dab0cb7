from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from taskplan.items import Allocation

from .ledger import DailyLedger
from .window import CandidateDay

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Placement:
    entries: tuple[Allocation, ...]
    unplaced: int

    @property
    def placed_minutes(self) -> int:
        return sum(e.duration for e in self.entries)

    @property
    def is_split(self) -> bool:
        return len(self.entries) > 1

    @property
    def is_complete(self) -> bool:
        return self.unplaced == 0


def spacing_target(position: int, count: int, n_days: int) -> int:
    """
    Target day index of the ``position``-th of ``count`` items in a window of
    ``n_days`` days, spreading the batch evenly (halves round up).
    """
    if count <= 1 or n_days <= 1:
        return 0
    raw = position * (n_days - 1) / (count - 1)
    return min(int(math.floor(raw + 0.5)), n_days - 1)


def _search_order(target: int, n: int):
    """Indices ``target, target+1, target-1, target+2, …`` within ``[0, n)``."""
    yield target
    for offset in range(1, n):
        if target + offset < n:
            yield target + offset
        if target - offset >= 0:
            yield target - offset


class Allocator:
    """
    Greedy placement of item durations onto candidate days.

    Owns the run's ledger: every placed minute is committed before ``place``
    returns, so subsequent items see only what is left.
    """

    def __init__(self, ledger: Optional[DailyLedger] = None) -> None:
        self._ledger = ledger if ledger is not None else DailyLedger()

    def place(
        self,
        days: Sequence[CandidateDay],
        remaining: int,
        target_index: int = 0,
    ) -> Placement:
        if remaining <= 0:
            return Placement((), 0)
        if not days:
            return Placement((), remaining)

        amount = min(remaining, sum(d.net_minutes for d in days))
        target = max(0, min(target_index, len(days) - 1))

        entries = self._place_single_day(days, amount, target)
        if entries is None:
            entries = self._place_split(days, amount)

        for entry in entries:
            self._ledger.commit(entry.date, entry.duration)

        placement = Placement(tuple(entries), remaining - sum(e.duration for e in entries))
        logger.debug(
            "Placed %d/%d min on %d day(s) from target %d",
            placement.placed_minutes, remaining, len(entries), target,
        )
        return placement

    @staticmethod
    def _place_single_day(
        days: Sequence[CandidateDay], amount: int, target: int
    ) -> Optional[list[Allocation]]:
        for idx in _search_order(target, len(days)):
            if days[idx].net_minutes >= amount:
                return [Allocation(days[idx].date, amount)]
        return None

    @staticmethod
    def _place_split(days: Sequence[CandidateDay], amount: int) -> list[Allocation]:
        entries: list[Allocation] = []
        left = amount
        for day in days:
            if left <= 0:
                break
            take = min(day.net_minutes, left)
            if take > 0:
                entries.append(Allocation(day.date, take))
                left -= take
        return entries

    @property
    def ledger(self) -> DailyLedger:
        return self._ledger

    def __repr__(self) -> str:
        return f"Allocator(ledger={self._ledger!r})"
