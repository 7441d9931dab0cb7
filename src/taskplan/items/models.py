from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from taskplan.calendar import format_date, to_calendar_date
from taskplan.config import get_settings


class ItemState(Enum):
    """
    Placement state of a work item.

    Transitions:
        UNSCHEDULED -> PARTIALLY_SCHEDULED -> FULLY_SCHEDULED
        any state   -> UNSCHEDULED | PARTIALLY_SCHEDULED   (reset from a cutoff)
    """

    UNSCHEDULED = "unscheduled"
    PARTIALLY_SCHEDULED = "partially_scheduled"
    FULLY_SCHEDULED = "fully_scheduled"


@dataclass(frozen=True, slots=True, order=True)
class Allocation:
    date: date
    duration: int

    def to_dict(self) -> dict[str, Any]:
        return {"date": format_date(self.date), "duration": self.duration}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], tz: str = "UTC") -> "Allocation":
        return cls(to_calendar_date(data["date"], tz), int(data["duration"]))


@dataclass(frozen=True, slots=True)
class Container:
    """A project: default deadline and priority for its items."""

    id: str
    deadline: Optional[date] = None
    priority: Optional[int] = None


def merge_allocations(entries: Iterable[Allocation]) -> tuple[Allocation, ...]:
    """Sort by date and combine entries falling on the same date."""
    totals: dict[date, int] = {}
    for entry in entries:
        totals[entry.date] = totals.get(entry.date, 0) + entry.duration
    return tuple(Allocation(d, m) for d, m in sorted(totals.items()) if m > 0)


@dataclass(frozen=True)
class WorkItem:
    """
    A subtask with a fixed total duration (minutes) that may be split across
    several dates.

    Invariant: ``sum(scheduled_dates.duration) + remaining_duration ==
    total_duration``.  ``remaining_duration`` defaults to whatever the
    existing entries leave over.
    """

    id: str
    total_duration: int
    remaining_duration: Optional[int] = None
    priority: Optional[int] = None
    order: Optional[int] = None
    deadline: Optional[date] = None
    container: Optional[Container] = None
    scheduled_dates: tuple[Allocation, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        entries = tuple(self.scheduled_dates)
        object.__setattr__(self, "scheduled_dates", entries)
        if self.total_duration < 0:
            raise ValueError(f"Item {self.id}: total_duration must be >= 0.")
        if any(e.duration < 0 for e in entries):
            raise ValueError(f"Item {self.id}: allocation durations must be >= 0.")
        scheduled = sum(e.duration for e in entries)
        if self.remaining_duration is None:
            object.__setattr__(self, "remaining_duration", self.total_duration - scheduled)
        if self.remaining_duration < 0 or scheduled + self.remaining_duration != self.total_duration:
            raise ValueError(
                f"Item {self.id}: scheduled ({scheduled}) + remaining "
                f"({self.remaining_duration}) != total ({self.total_duration})."
            )

    # ── derived views ────────────────────────────────────────────────────

    @property
    def effective_deadline(self) -> Optional[date]:
        if self.deadline is not None:
            return self.deadline
        return self.container.deadline if self.container is not None else None

    @property
    def effective_priority(self) -> int:
        """Priority with the configured default for items nobody prioritized."""
        return self.priority_or(get_settings().default_priority)

    def priority_or(self, default: int) -> int:
        """Item priority, else the container's, else ``default``."""
        if self.priority is not None:
            return self.priority
        if self.container is not None and self.container.priority is not None:
            return self.container.priority
        return default

    @property
    def scheduled_minutes(self) -> int:
        return sum(e.duration for e in self.scheduled_dates)

    @property
    def date(self) -> Optional[date]:
        """Date of the last allocation entry."""
        return self.scheduled_dates[-1].date if self.scheduled_dates else None

    @property
    def state(self) -> ItemState:
        if self.remaining_duration == 0 and self.total_duration > 0:
            return ItemState.FULLY_SCHEDULED
        if self.scheduled_dates:
            return ItemState.PARTIALLY_SCHEDULED
        if self.total_duration == 0:
            return ItemState.FULLY_SCHEDULED
        return ItemState.UNSCHEDULED

    # ── transformations ──────────────────────────────────────────────────

    def apply(self, decision: "ScheduleDecision") -> "WorkItem":
        if decision.item_id != self.id:
            raise ValueError(f"Decision for {decision.item_id} applied to item {self.id}.")
        return replace(
            self,
            scheduled_dates=decision.scheduled_dates,
            remaining_duration=decision.remaining_duration,
        )

    def reset_from(self, cutoff: date) -> "WorkItem":
        """Drop entries on/after ``cutoff``; entries before it are kept as is."""
        kept = tuple(e for e in self.scheduled_dates if e.date < cutoff)
        if len(kept) == len(self.scheduled_dates):
            return self
        return replace(
            self,
            scheduled_dates=kept,
            remaining_duration=self.total_duration - sum(e.duration for e in kept),
        )

    def has_entries_from(self, cutoff: date) -> bool:
        return any(e.date >= cutoff for e in self.scheduled_dates)

    # ── boundary ─────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "totalDuration": self.total_duration,
            "remainingDuration": self.remaining_duration,
            "priority": self.priority,
            "order": self.order,
            "deadline": format_date(self.deadline) if self.deadline else None,
            "date": format_date(self.date) if self.date else None,
            "scheduledDates": [e.to_dict() for e in self.scheduled_dates],
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        container: Optional[Container] = None,
        tz: str = "UTC",
    ) -> "WorkItem":
        """
        Build from a collaborator record.  ``duration`` is accepted as an alias
        of ``totalDuration``; a null ``remainingDuration`` is derived.  Dates
        and timestamps are read as calendar dates in ``tz``.
        """
        total = data.get("totalDuration", data.get("duration"))
        deadline = data.get("deadline")
        return cls(
            id=str(data["id"]),
            total_duration=int(total or 0),
            remaining_duration=(
                int(data["remainingDuration"])
                if data.get("remainingDuration") is not None
                else None
            ),
            priority=data.get("priority"),
            order=data.get("order"),
            deadline=to_calendar_date(deadline, tz) if deadline is not None else None,
            container=container,
            scheduled_dates=tuple(
                Allocation.from_dict(e, tz) for e in data.get("scheduledDates") or ()
            ),
        )


@dataclass(frozen=True, slots=True)
class ScheduleDecision:
    """
    Outcome of one scheduling run for one item.

    ``scheduled_dates`` is the item's complete allocation list after the run;
    ``placed`` holds only the entries produced by this run.
    """

    item_id: str
    scheduled_dates: tuple[Allocation, ...]
    remaining_duration: int
    placed: tuple[Allocation, ...] = ()

    @property
    def date(self) -> Optional[date]:
        return self.scheduled_dates[-1].date if self.scheduled_dates else None

    @property
    def is_split(self) -> bool:
        return len(self.placed) > 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "itemId": self.item_id,
            "scheduledDates": [e.to_dict() for e in self.scheduled_dates],
            "remainingDuration": self.remaining_duration,
            "date": format_date(self.date) if self.date else None,
        }
