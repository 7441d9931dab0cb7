"""
Boundary conversions between the caller's date/time values and the canonical
``datetime.date`` used inside the engine.

Nothing inside the engine carries a time of day or a timezone.  Values that
do (aware datetimes, "now") are collapsed to a calendar date in the caller's
IANA timezone here, once.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ._exceptions import CalendarError

DateLike = Union[date, datetime, str]


def resolve_timezone(name: str | ZoneInfo) -> ZoneInfo:
    if isinstance(name, ZoneInfo):
        return name
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as exc:
        raise CalendarError(f"Unknown timezone {name!r}.") from exc


def today(tz: str | ZoneInfo) -> date:
    """Current calendar date in ``tz``."""
    return datetime.now(resolve_timezone(tz)).date()


def parse_date(value: str) -> date:
    """Parse ``YYYY-MM-DD`` (a trailing time part is ignored)."""
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError as exc:
        raise CalendarError(f"Invalid calendar date {value!r}.") from exc


def format_date(day: date) -> str:
    return day.isoformat()


def to_calendar_date(value: DateLike, tz: str | ZoneInfo) -> date:
    """
    Collapse ``value`` to the calendar date it falls on in ``tz``.

    - ``date``: returned as is.
    - aware ``datetime``: converted into ``tz`` first.
    - naive ``datetime``: taken to be wall-clock time in ``tz``.
    - ``str``: a plain ``YYYY-MM-DD`` is a date; anything longer is parsed as
      an ISO datetime and handled as above.
    """
    zone = resolve_timezone(tz)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(zone).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) <= 10:
            return parse_date(text)
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as exc:
            raise CalendarError(f"Invalid datetime {value!r}.") from exc
        return to_calendar_date(parsed, zone)
    raise CalendarError(f"Cannot interpret {value!r} as a calendar date.")


def weekday_index(day: date) -> int:
    """Weekday with 0 = Sunday … 6 = Saturday."""
    return day.isoweekday() % 7


def date_range(start: date, days: int) -> list[date]:
    return [start + timedelta(days=i) for i in range(days)]
