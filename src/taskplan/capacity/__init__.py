"""
taskplan.capacity
~~~~~~~~~~~~~~~~~

Daily capacity bookkeeping and greedy placement.  A DailyLedger records the
minutes committed per date during one run, a WindowPlanner finds the candidate
days an item may use, and an Allocator places the item's remaining minutes on
them (one day when possible, otherwise split chronologically), committing to
the ledger as it goes.

Basic usage::

    from taskplan.capacity import Allocator, DailyLedger, WindowPlanner

    ledger = DailyLedger()
    planner = WindowPlanner(calendar)
    allocator = Allocator(ledger)

    window = planner.plan(remaining=120, deadline=None, start=start, ledger=ledger)
    placement = allocator.place(window.days, 120)

Public API
----------
DailyLedger      Per-run minutes committed per date.
WindowPlanner    Preferred/full window candidate-day discovery.
Allocator        Single-day preference, chronological split fallback.
spacing_target   Evenly spread target index for spaced batches.
"""

from taskplan.capacity.allocator import Allocator, Placement, spacing_target
from taskplan.capacity.ledger import DailyLedger
from taskplan.capacity.window import CandidateDay, Window, WindowPlanner

__all__ = [
    "Allocator",
    "CandidateDay",
    "DailyLedger",
    "Placement",
    "Window",
    "WindowPlanner",
    "spacing_target",
]
