"""
taskplan.scheduling
~~~~~~~~~~~~~~~~~~~

Scheduling runs over a batch of work items.  A run orders the batch, plans a
candidate window per item and places its remaining minutes, threading one
ledger through the whole batch.  A reschedule drops allocations from a cutoff
date on and runs again from there, leaving earlier history untouched.

Basic usage::

    from datetime import date
    from taskplan.calendar import AvailabilityCalendar, AvailabilityRule
    from taskplan.items import WorkItem
    from taskplan.scheduling import reschedule_from, schedule_items

    cal = AvailabilityCalendar([AvailabilityRule(d, 1.0) for d in range(1, 6)])
    result = schedule_items([WorkItem("a", 120)], cal, date(2025, 3, 3))
    result.decisions[0].scheduled_dates   # Mon 60, Tue 60

    again = reschedule_from(result.apply_to([WorkItem("a", 120)]), cal, date(2025, 3, 4))

Per-user serialization::

    from taskplan.scheduling import ScheduleRequest, SchedulingService

    service = SchedulingService()
    result = service.schedule("user-1", ScheduleRequest.from_payload(payload))

Public API
----------
schedule_items      One scheduling run.
reschedule_from     Reset from a cutoff and schedule again.
SchedulingService   Payload handling and per-user run locks.
ScheduleRequest     Inputs of one run.
ScheduleResult      Decisions, split items, deadline issues.
UserRunLocks        One lock per user.
"""

from taskplan.scheduling.engine import ScheduleResult, schedule_items
from taskplan.scheduling.locks import RunInProgressError, UserRunLocks
from taskplan.scheduling.reschedule import RescheduleResult, reschedule_from, reset_from
from taskplan.scheduling.service import ScheduleRequest, SchedulingService
from taskplan.scheduling.views import (
    AgendaEntry,
    DayUtilization,
    calendar_grouping,
    daily_agenda,
    utilization,
)

__all__ = [
    "AgendaEntry",
    "DayUtilization",
    "RescheduleResult",
    "RunInProgressError",
    "ScheduleRequest",
    "ScheduleResult",
    "SchedulingService",
    "UserRunLocks",
    "calendar_grouping",
    "daily_agenda",
    "reschedule_from",
    "reset_from",
    "schedule_items",
    "utilization",
]
