"""
taskplan.items
~~~~~~~~~~~~~~

Work items (subtasks), their projects, allocation entries and the immutable
decision records produced by a scheduling run.

Basic usage::

    from datetime import date
    from taskplan.items import Container, WorkItem, order_items

    project = Container("p1", deadline=date(2025, 4, 30), priority=2)
    items = [
        WorkItem("draft", total_duration=120, container=project),
        WorkItem("review", total_duration=60, priority=1, container=project),
    ]
    order_items(items)          # → [review, draft]

Public API
----------
WorkItem           Schedulable unit; frozen, conservation-checked.
Container          Project defaults (deadline, priority).
Allocation         One ``{date, duration}`` entry.
ScheduleDecision   Per-item result of a scheduling run.
ItemState          Unscheduled / partially / fully scheduled.
order_items        Deterministic batch ordering.
"""

from taskplan.items.models import (
    Allocation,
    Container,
    ItemState,
    ScheduleDecision,
    WorkItem,
    merge_allocations,
)
from taskplan.items.ordering import order_items, ordering_key

__all__ = [
    "Allocation",
    "Container",
    "ItemState",
    "ScheduleDecision",
    "WorkItem",
    "merge_allocations",
    "order_items",
    "ordering_key",
]
