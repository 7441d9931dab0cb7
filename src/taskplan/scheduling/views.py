"""
Read-side groupings of allocation entries for daily and calendar displays.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from taskplan.calendar import AvailabilityCalendar
from taskplan.calendar.dates import date_range
from taskplan.config import get_settings
from taskplan.items import WorkItem, ordering_key


@dataclass(frozen=True, slots=True)
class AgendaEntry:
    item_id: str
    minutes: int
    is_split_part: bool = False


@dataclass(frozen=True, slots=True)
class DayUtilization:
    date: date
    available: int
    used: int

    @property
    def free(self) -> int:
        return max(self.available - self.used, 0)

    @property
    def overbooked(self) -> bool:
        return self.used > self.available


def _entries_by_date(
    items: Iterable[WorkItem],
    start: Optional[date] = None,
    end: Optional[date] = None,
    default_priority: Optional[int] = None,
) -> dict[date, list[AgendaEntry]]:
    if default_priority is None:
        default_priority = get_settings().default_priority
    grouped: dict[date, list[tuple[tuple, AgendaEntry]]] = {}
    for item in items:
        split = len(item.scheduled_dates) > 1
        for entry in item.scheduled_dates:
            if start is not None and entry.date < start:
                continue
            if end is not None and entry.date > end:
                continue
            grouped.setdefault(entry.date, []).append(
                (ordering_key(item, default_priority), AgendaEntry(item.id, entry.duration, split))
            )
    return {
        day: [e for _, e in sorted(rows, key=lambda r: r[0])]
        for day, rows in sorted(grouped.items())
    }


def daily_agenda(
    items: Iterable[WorkItem],
    day: date,
    default_priority: Optional[int] = None,
) -> list[AgendaEntry]:
    """
    Work placed on ``day``, in scheduling order.  ``default_priority`` must
    match the one the run used; it defaults to the configured value.
    """
    return _entries_by_date(items, day, day, default_priority).get(day, [])


def calendar_grouping(
    items: Iterable[WorkItem],
    start: Optional[date] = None,
    end: Optional[date] = None,
    default_priority: Optional[int] = None,
) -> dict[date, list[AgendaEntry]]:
    """Allocation entries grouped by date (inclusive bounds, optional)."""
    return _entries_by_date(items, start, end, default_priority)


def utilization(
    items: Iterable[WorkItem],
    calendar: AvailabilityCalendar,
    start: date,
    end: date,
) -> list[DayUtilization]:
    if end < start:
        return []
    days = date_range(start, (end - start).days + 1)
    available = calendar.minutes_window(start, len(days))
    used: dict[date, int] = {}
    for item in items:
        for entry in item.scheduled_dates:
            if start <= entry.date <= end:
                used[entry.date] = used.get(entry.date, 0) + entry.duration
    return [
        DayUtilization(day, int(available[i]), used.get(day, 0))
        for i, day in enumerate(days)
    ]
