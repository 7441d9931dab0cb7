from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional, Union

import numpy as np

from ._exceptions import CalendarError
from .dates import weekday_index

logger = logging.getLogger(__name__)

DEFAULT_DAILY_HOURS: float = 8.0


class NoOverride:
    """Override slot that is present but defers to the weekly rule."""

    _instance: Optional["NoOverride"] = None

    def __new__(cls) -> "NoOverride":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_OVERRIDE"


NO_OVERRIDE = NoOverride()


@dataclass(frozen=True, slots=True)
class ExplicitHours:
    """Override with a fixed number of hours; ``ExplicitHours(0)`` is a day off."""

    hours: float


OverrideValue = Union[ExplicitHours, NoOverride]


@dataclass(frozen=True, slots=True)
class AvailabilityRule:
    day_of_week: int  # 0 = Sunday … 6 = Saturday
    hours: float


@dataclass(frozen=True, slots=True)
class AvailabilityOverride:
    date: date
    value: OverrideValue = NO_OVERRIDE

    @classmethod
    def from_hours(cls, day: date, hours: Optional[float]) -> "AvailabilityOverride":
        """Map a nullable hours value (``None`` = no override) onto the variant."""
        if hours is None:
            return cls(day, NO_OVERRIDE)
        return cls(day, ExplicitHours(hours))


def hours_to_minutes(hours: Any) -> int:
    """Hours → whole minutes; negative or non-numeric values count as zero."""
    try:
        value = float(hours)
    except (TypeError, ValueError):
        logger.warning("Non-numeric availability %r treated as 0 hours", hours)
        return 0
    if not math.isfinite(value) or value < 0.0:
        logger.warning("Invalid availability %r treated as 0 hours", hours)
        return 0
    return int(round(value * 60.0))


class AvailabilityCalendar:
    """
    Per-date capacity in minutes for one user.

    Resolution order for a date:

    1. An ``ExplicitHours`` override for that exact date (0 is a day off).
    2. The weekly rule for the date's weekday.
    3. If the user has configured no weekly rules at all, ``default_minutes``
       for every weekday.  Once any rule exists, weekdays without one have
       zero capacity.

    Capacity is also compiled into a dense, origin-anchored minutes array so
    window scans are vectorized.  The array is extended on demand.
    """

    _DEFAULT_BUFFER: int = 366

    def __init__(
        self,
        rules: Iterable[AvailabilityRule] = (),
        overrides: Iterable[AvailabilityOverride] = (),
        origin: Optional[date] = None,
        default_minutes: int = int(DEFAULT_DAILY_HOURS * 60),
        horizon: Optional[int] = None,
    ) -> None:
        if default_minutes < 0:
            raise CalendarError(f"Default capacity must be non-negative; got {default_minutes}.")

        rules = list(rules)
        self._has_rules: bool = bool(rules)
        weekly = np.full(7, default_minutes if not rules else 0, dtype=np.int64)
        for rule in rules:
            dow = int(rule.day_of_week)
            if not 0 <= dow <= 6:
                logger.warning("Ignoring availability rule for weekday %r", rule.day_of_week)
                continue
            weekly[dow] = hours_to_minutes(rule.hours)
        self._weekly: np.ndarray = weekly

        self._overrides: dict[date, int] = {}
        for override in overrides:
            if isinstance(override.value, ExplicitHours):
                self._overrides[override.date] = hours_to_minutes(override.value.hours)
            else:
                self._overrides.pop(override.date, None)

        if origin is None:
            origin = min(self._overrides) if self._overrides else None
        self._origin: Optional[date] = origin
        self._horizon: int = 0
        self._minutes: np.ndarray = np.zeros(0, dtype=np.int64)
        if origin is not None:
            self._compile(origin, horizon if horizon is not None else self._DEFAULT_BUFFER)

    # ── dense array management ───────────────────────────────────────────

    def _compile(self, origin: date, horizon: int) -> None:
        self._origin = origin
        self._horizon = max(horizon, 1)
        offsets = np.arange(self._horizon, dtype=np.int64)
        self._minutes = self._weekly[(weekday_index(origin) + offsets) % 7].copy()
        for day, minutes in self._overrides.items():
            idx = (day - origin).days
            if 0 <= idx < self._horizon:
                self._minutes[idx] = minutes

    def _extend_to(self, new_horizon: int) -> None:
        assert self._origin is not None
        old = self._horizon
        offsets = np.arange(old, new_horizon, dtype=np.int64)
        extra = self._weekly[(weekday_index(self._origin) + offsets) % 7]
        for day, minutes in self._overrides.items():
            idx = (day - self._origin).days
            if old <= idx < new_horizon:
                extra[idx - old] = minutes
        self._minutes = np.concatenate([self._minutes, extra])
        self._horizon = new_horizon

    def _ensure_range(self, start: date, days: int) -> int:
        """Make ``[start, start + days)`` addressable; return start's index."""
        if self._origin is None or start < self._origin:
            self._compile(start, days + self._DEFAULT_BUFFER)
        idx = (start - self._origin).days
        if idx + days > self._horizon:
            self._extend_to(idx + days + self._DEFAULT_BUFFER)
        return idx

    # ── lookups ──────────────────────────────────────────────────────────

    def available_minutes(self, day: date) -> int:
        minutes = self._overrides.get(day)
        if minutes is not None:
            return minutes
        return int(self._weekly[weekday_index(day)])

    def minutes_window(self, start: date, days: int) -> np.ndarray:
        """Capacity for ``days`` consecutive dates from ``start`` (copy)."""
        if days <= 0:
            return np.zeros(0, dtype=np.int64)
        idx = self._ensure_range(start, days)
        return self._minutes[idx:idx + days].copy()

    # ── properties / repr ────────────────────────────────────────────────

    @property
    def has_rules(self) -> bool:
        return self._has_rules

    @property
    def weekly_minutes(self) -> list[int]:
        return [int(m) for m in self._weekly]

    @property
    def overrides(self) -> dict[date, int]:
        return dict(sorted(self._overrides.items()))

    @property
    def origin(self) -> Optional[date]:
        return self._origin

    def __repr__(self) -> str:
        return (
            f"AvailabilityCalendar(weekly_minutes={self.weekly_minutes}, "
            f"has_rules={self._has_rules}, "
            f"overrides={len(self._overrides)}, "
            f"origin={self._origin})"
        )
