"""
taskplan.calendar
~~~~~~~~~~~~~~~~~

Per-date availability.  An AvailabilityCalendar maps calendar dates to
minutes of capacity from a weekly rule set (0 = Sunday … 6 = Saturday) plus
per-date overrides.

Basic usage::

    from datetime import date
    from taskplan.calendar import (
        AvailabilityCalendar, AvailabilityRule, AvailabilityOverride, ExplicitHours,
    )

    cal = AvailabilityCalendar(
        [AvailabilityRule(d, 1.0) for d in range(1, 6)],          # Mon–Fri, 1h
        [AvailabilityOverride(date(2025, 3, 5), ExplicitHours(0))],  # day off
    )
    cal.available_minutes(date(2025, 3, 4))                       # → 60
    cal.available_minutes(date(2025, 3, 5))                       # → 0

Override values are a tagged variant: ``NO_OVERRIDE`` defers to the weekly
rule, ``ExplicitHours(h)`` replaces it.  A user without any weekly rule gets
the default capacity (8h) on every day; once a rule exists, weekdays without
one have no capacity.

Public API
----------
AvailabilityCalendar   Capacity lookup and vectorized windows.
AvailabilityRule       Weekly recurring hours for one weekday.
AvailabilityOverride   Hours for one specific date.
ExplicitHours          Override variant carrying hours.
NO_OVERRIDE            Override variant deferring to the weekly rule.
CalendarError          Raised for uninterpretable dates and timezones.
"""

from __future__ import annotations

from taskplan.calendar._exceptions import CalendarError
from taskplan.calendar.calendar import (
    DEFAULT_DAILY_HOURS,
    NO_OVERRIDE,
    AvailabilityCalendar,
    AvailabilityOverride,
    AvailabilityRule,
    ExplicitHours,
    NoOverride,
    OverrideValue,
    hours_to_minutes,
)
from taskplan.calendar.dates import (
    format_date,
    parse_date,
    resolve_timezone,
    to_calendar_date,
    today,
    weekday_index,
)

__all__ = [
    "AvailabilityCalendar",
    "AvailabilityOverride",
    "AvailabilityRule",
    "CalendarError",
    "DEFAULT_DAILY_HOURS",
    "ExplicitHours",
    "NO_OVERRIDE",
    "NoOverride",
    "OverrideValue",
    "format_date",
    "hours_to_minutes",
    "parse_date",
    "resolve_timezone",
    "to_calendar_date",
    "today",
    "weekday_index",
]
