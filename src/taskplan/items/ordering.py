"""
Deterministic batch ordering.

Items are compared on, in turn:

1. explicit ``order`` ascending, items with an order before items without;
2. priority ascending (1 beats 2 beats 3);
3. effective deadline ascending, items with a deadline before items without;
4. item id, lexicographically.

The same sequence decides which item claims capacity first and, in spacing
mode, each item's target position in its window.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from taskplan.config import get_settings

from .models import WorkItem

OrderingKey = tuple[tuple[int, int], int, tuple[int, date], str]


def ordering_key(item: WorkItem, default_priority: Optional[int] = None) -> OrderingKey:
    if default_priority is None:
        default_priority = get_settings().default_priority
    deadline = item.effective_deadline
    return (
        (0, item.order) if item.order is not None else (1, 0),
        item.priority_or(default_priority),
        (0, deadline) if deadline is not None else (1, date.min),
        item.id,
    )


def order_items(
    items: Iterable[WorkItem],
    default_priority: Optional[int] = None,
) -> list[WorkItem]:
    if default_priority is None:
        default_priority = get_settings().default_priority
    return sorted(items, key=lambda item: ordering_key(item, default_priority))
