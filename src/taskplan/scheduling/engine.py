from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from taskplan.calendar import AvailabilityCalendar, format_date
from taskplan.capacity import Allocator, DailyLedger, WindowPlanner, spacing_target
from taskplan.config import PlannerSettings, get_settings
from taskplan.items import (
    Allocation,
    ScheduleDecision,
    WorkItem,
    merge_allocations,
    order_items,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleResult:
    """
    Everything a scheduling run decided.

    ``decisions`` follow scheduling order.  ``split_items`` lists items placed
    on more than one day in this run, ``deadline_issues`` items left with
    unplaced minutes.  ``ledger`` is the final minutes-per-date commitment.
    """

    decisions: tuple[ScheduleDecision, ...] = ()
    split_items: tuple[str, ...] = ()
    deadline_issues: tuple[str, ...] = ()
    ledger: Mapping[date, int] = field(default_factory=dict)

    def decision_for(self, item_id: str) -> Optional[ScheduleDecision]:
        for decision in self.decisions:
            if decision.item_id == item_id:
                return decision
        return None

    def apply_to(self, items: Iterable[WorkItem]) -> list[WorkItem]:
        """Items with this run's decisions applied; others pass through."""
        by_id = {d.item_id: d for d in self.decisions}
        return [item.apply(by_id[item.id]) if item.id in by_id else item for item in items]

    def to_dict(self) -> dict[str, Any]:
        return {
            "decisions": [d.to_dict() for d in self.decisions],
            "splitItems": list(self.split_items),
            "deadlineIssues": list(self.deadline_issues),
            "dailyUsedMinutes": {format_date(d): m for d, m in self.ledger.items()},
        }


def _check_unique(items: list[WorkItem]) -> None:
    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            raise ValueError(f"Duplicate work item id {item.id!r} in batch.")
        seen.add(item.id)


def _combine(item: WorkItem, placed: tuple[Allocation, ...], start: date) -> tuple[Allocation, ...]:
    """Entries before ``start`` verbatim, then later entries merged by date."""
    history = tuple(e for e in item.scheduled_dates if e.date < start)
    upcoming = [e for e in item.scheduled_dates if e.date >= start]
    return history + merge_allocations(upcoming + list(placed))


def schedule_items(
    items: Iterable[WorkItem],
    calendar: AvailabilityCalendar,
    start: date,
    *,
    use_spacing: bool = True,
    commitments: Optional[Mapping[date, int]] = None,
    settings: Optional[PlannerSettings] = None,
) -> ScheduleResult:
    """
    Place the remaining minutes of ``items`` on dates from ``start`` onwards.

    The batch is ordered deterministically, then processed one item at a time
    against a ledger seeded from the items' existing entries on/after
    ``start`` and from ``commitments`` (minutes already claimed by work
    outside the batch).  Items with nothing remaining are skipped.  The
    function performs no I/O and returns the same result for the same inputs.
    """
    settings = settings or get_settings()
    items = list(items)
    _check_unique(items)

    ledger = DailyLedger.seeded(items, start, commitments)
    planner = WindowPlanner(
        calendar,
        horizon_days=settings.horizon_days,
        max_days=settings.max_candidate_days,
        buffer_days=settings.buffer_days,
    )
    allocator = Allocator(ledger)

    batch = [
        item for item in order_items(items, settings.default_priority)
        if item.remaining_duration > 0
    ]
    decisions: list[ScheduleDecision] = []
    split_items: list[str] = []
    deadline_issues: list[str] = []

    for position, item in enumerate(batch):
        window = planner.plan(item.remaining_duration, item.effective_deadline, start, ledger)
        target = spacing_target(position, len(batch), len(window)) if use_spacing else 0
        placement = allocator.place(window.days, item.remaining_duration, target)

        decisions.append(
            ScheduleDecision(
                item_id=item.id,
                scheduled_dates=_combine(item, placement.entries, start),
                remaining_duration=placement.unplaced,
                placed=placement.entries,
            )
        )
        if placement.is_split:
            split_items.append(item.id)
        if not placement.is_complete:
            deadline_issues.append(item.id)
            logger.warning(
                "Item %s: %d of %d min could not be placed (window of %d day(s), deadline %s)",
                item.id, placement.unplaced, item.remaining_duration,
                len(window), item.effective_deadline,
            )

    logger.info(
        "Scheduled %d item(s) from %s: %d split, %d deadline issue(s)",
        len(batch), start, len(split_items), len(deadline_issues),
    )
    return ScheduleResult(
        decisions=tuple(decisions),
        split_items=tuple(split_items),
        deadline_issues=tuple(deadline_issues),
        ledger=ledger.snapshot(),
    )
