from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

import numpy as np

from taskplan.calendar import AvailabilityCalendar

from .ledger import DailyLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CandidateDay:
    date: date
    net_minutes: int


@dataclass(frozen=True, slots=True)
class Window:
    days: tuple[CandidateDay, ...]
    preferred: bool

    @property
    def total_minutes(self) -> int:
        return sum(d.net_minutes for d in self.days)

    def __len__(self) -> int:
        return len(self.days)


class WindowPlanner:
    """
    Candidate-day discovery for one item.

    The preferred window runs from the start date to ``deadline - buffer_days``
    and is used alone when its net capacity covers the item.  Otherwise the
    full window, up to the deadline itself, is searched.  Items without a
    deadline search the horizon window.  Every scan covers at most
    ``horizon_days`` calendar days and keeps at most ``max_days`` days with
    positive net capacity.
    """

    def __init__(
        self,
        calendar: AvailabilityCalendar,
        horizon_days: int = 60,
        max_days: int = 30,
        buffer_days: int = 7,
    ) -> None:
        if horizon_days < 1 or max_days < 1:
            raise ValueError("horizon_days and max_days must be at least 1.")
        if buffer_days < 0:
            raise ValueError("buffer_days must be non-negative.")
        self._calendar = calendar
        self._horizon_days = horizon_days
        self._max_days = max_days
        self._buffer_days = buffer_days

    def candidate_days(
        self,
        start: date,
        end: Optional[date],
        ledger: DailyLedger,
    ) -> list[CandidateDay]:
        """Dates in ``[start, end]`` (inclusive) with positive net capacity."""
        scan = self._horizon_days
        if end is not None:
            if end < start:
                return []
            scan = min(scan, (end - start).days + 1)

        available = self._calendar.minutes_window(start, scan)
        net = available - ledger.used_window(start, scan)
        hits = np.flatnonzero(net > 0)[: self._max_days]
        return [
            CandidateDay(start + timedelta(days=int(i)), int(net[i])) for i in hits
        ]

    def plan(
        self,
        remaining: int,
        deadline: Optional[date],
        start: date,
        ledger: DailyLedger,
    ) -> Window:
        if deadline is None:
            return Window(tuple(self.candidate_days(start, None, ledger)), preferred=True)

        preferred_end = deadline - timedelta(days=self._buffer_days)
        preferred = self.candidate_days(start, preferred_end, ledger)
        if sum(d.net_minutes for d in preferred) >= remaining:
            return Window(tuple(preferred), preferred=True)

        logger.debug(
            "Preferred window to %s too small for %d min; using full window to %s",
            preferred_end, remaining, deadline,
        )
        return Window(tuple(self.candidate_days(start, deadline, ledger)), preferred=False)

    @property
    def calendar(self) -> AvailabilityCalendar:
        return self._calendar

    def __repr__(self) -> str:
        return (
            f"WindowPlanner(horizon_days={self._horizon_days}, "
            f"max_days={self._max_days}, "
            f"buffer_days={self._buffer_days})"
        )
