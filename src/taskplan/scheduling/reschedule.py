from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional

from taskplan.calendar import AvailabilityCalendar
from taskplan.config import PlannerSettings
from taskplan.items import WorkItem

from .engine import ScheduleResult, schedule_items

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RescheduleResult:
    items: tuple[WorkItem, ...]
    result: ScheduleResult
    reset_items: tuple[str, ...] = ()


def reset_from(items: Iterable[WorkItem], cutoff: date) -> tuple[list[WorkItem], list[str]]:
    """Drop every entry dated on/after ``cutoff``; earlier entries are untouched."""
    updated: list[WorkItem] = []
    reset: list[str] = []
    for item in items:
        if item.has_entries_from(cutoff):
            item = item.reset_from(cutoff)
            reset.append(item.id)
        updated.append(item)
    return updated, reset


def reschedule_from(
    items: Iterable[WorkItem],
    calendar: AvailabilityCalendar,
    cutoff: date,
    *,
    use_spacing: bool = False,
    commitments: Optional[Mapping[date, int]] = None,
    settings: Optional[PlannerSettings] = None,
) -> RescheduleResult:
    """
    Recompute all allocations on/after ``cutoff`` while leaving history
    before it as it was.

    Items are reset, the ledger is seeded from what is still committed, and
    every item with remaining minutes is scheduled again from ``cutoff``.
    """
    reset_items, reset_ids = reset_from(items, cutoff)
    logger.info("Rescheduling from %s: %d item(s) reset", cutoff, len(reset_ids))

    result = schedule_items(
        reset_items,
        calendar,
        cutoff,
        use_spacing=use_spacing,
        commitments=commitments,
        settings=settings,
    )
    return RescheduleResult(
        items=tuple(result.apply_to(reset_items)),
        result=result,
        reset_items=tuple(reset_ids),
    )
