"""
Entry point for the request layer: turns a collaborator payload into a
scheduling or rescheduling run and serializes runs per user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from taskplan.calendar import (
    AvailabilityCalendar,
    AvailabilityOverride,
    AvailabilityRule,
    resolve_timezone,
    to_calendar_date,
    today,
)
from taskplan.config import PlannerSettings, get_settings
from taskplan.items import Container, WorkItem

from .engine import ScheduleResult, schedule_items
from .locks import UserRunLocks
from .reschedule import RescheduleResult, reschedule_from
from .views import AgendaEntry, daily_agenda

logger = logging.getLogger(__name__)


def _optional_date(value: Any, tz: str) -> Optional[date]:
    if value is None:
        return None
    return to_calendar_date(value, tz)


@dataclass(frozen=True)
class ScheduleRequest:
    """
    Inputs of one run for one user.

    ``start_date`` defaults to today in ``timezone``; ``timezone`` defaults to
    the configured zone.  ``commitments`` are minutes per date already claimed
    by work that is not part of ``items``.
    """

    items: tuple[WorkItem, ...]
    rules: tuple[AvailabilityRule, ...] = ()
    overrides: tuple[AvailabilityOverride, ...] = ()
    start_date: Optional[date] = None
    timezone: Optional[str] = None
    use_spacing: bool = True
    commitments: Mapping[date, int] = field(default_factory=dict)

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        default_timezone: Optional[str] = None,
    ) -> "ScheduleRequest":
        """
        Build from the collaborator's record shapes::

            {
              "items": [{"id", "totalDuration", "remainingDuration", "priority",
                         "order", "deadline", "scheduledDates", "projectId"}],
              "projects": [{"id", "deadline", "priority"}],
              "availabilityRules": [{"dayOfWeek", "hours"}],
              "availabilityOverrides": [{"date", "hours"}],
              "startDate": "YYYY-MM-DD", "timezone": "Europe/Berlin",
              "useSpacing": true, "dailyUsedMinutes": {"YYYY-MM-DD": 90},
            }

        Without a ``timezone`` in the payload, ``default_timezone`` and then the
        configured default zone apply.  Every date or timestamp in the payload
        is read as a calendar date in that zone.
        """
        tz = payload.get("timezone") or default_timezone or get_settings().default_timezone
        resolve_timezone(tz)

        containers = {
            str(p["id"]): Container(
                str(p["id"]),
                deadline=_optional_date(p.get("deadline"), tz),
                priority=p.get("priority"),
            )
            for p in payload.get("projects") or ()
        }
        items = []
        for record in payload.get("items") or ():
            project_id = record.get("projectId")
            items.append(
                WorkItem.from_dict(
                    record,
                    container=containers.get(str(project_id)) if project_id is not None else None,
                    tz=tz,
                )
            )

        rules = tuple(
            AvailabilityRule(int(r["dayOfWeek"]), r.get("hours", 0))
            for r in payload.get("availabilityRules") or ()
        )
        overrides = tuple(
            AvailabilityOverride.from_hours(to_calendar_date(o["date"], tz), o.get("hours"))
            for o in payload.get("availabilityOverrides") or ()
        )
        commitments: dict[date, int] = {}
        for day, minutes in (payload.get("dailyUsedMinutes") or {}).items():
            key = to_calendar_date(day, tz)
            commitments[key] = commitments.get(key, 0) + int(minutes)
        return cls(
            items=tuple(items),
            rules=rules,
            overrides=overrides,
            start_date=_optional_date(payload.get("startDate"), tz),
            timezone=tz,
            use_spacing=bool(payload.get("useSpacing", True)),
            commitments=commitments,
        )


class SchedulingService:
    """Runs scheduling for many users, at most one run per user at a time."""

    def __init__(
        self,
        settings: Optional[PlannerSettings] = None,
        locks: Optional[UserRunLocks] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._locks = locks or UserRunLocks()

    def request_from(self, payload: Mapping[str, Any]) -> ScheduleRequest:
        """Parse ``payload`` with this service's default timezone."""
        return ScheduleRequest.from_payload(payload, self._settings.default_timezone)

    def calendar_for(self, request: ScheduleRequest, origin: date) -> AvailabilityCalendar:
        return AvailabilityCalendar(
            request.rules,
            request.overrides,
            origin=origin,
            default_minutes=self._settings.default_daily_minutes,
        )

    def _timezone(self, request: ScheduleRequest) -> str:
        tz = request.timezone or self._settings.default_timezone
        resolve_timezone(tz)
        return tz

    def _start(self, request: ScheduleRequest) -> date:
        return request.start_date or today(self._timezone(request))

    def schedule(self, user_id: str, request: ScheduleRequest) -> ScheduleResult:
        start = self._start(request)
        with self._locks.hold(user_id, self._settings.lock_timeout):
            logger.info("Scheduling %d item(s) for user %s", len(request.items), user_id)
            return schedule_items(
                request.items,
                self.calendar_for(request, start),
                start,
                use_spacing=request.use_spacing,
                commitments=request.commitments,
                settings=self._settings,
            )

    def reschedule(
        self,
        user_id: str,
        request: ScheduleRequest,
        cutoff: Optional[date] = None,
        use_spacing: bool = False,
    ) -> RescheduleResult:
        """Recompute from ``cutoff`` (defaults to the request's start date)."""
        cutoff = cutoff or self._start(request)
        with self._locks.hold(user_id, self._settings.lock_timeout):
            logger.info("Rescheduling user %s from %s", user_id, cutoff)
            return reschedule_from(
                request.items,
                self.calendar_for(request, cutoff),
                cutoff,
                use_spacing=use_spacing,
                commitments=request.commitments,
                settings=self._settings,
            )

    def on_availability_changed(
        self,
        user_id: str,
        request: ScheduleRequest,
        changed_date: Optional[date] = None,
    ) -> RescheduleResult:
        """
        Reschedule after availability was edited.  An override change
        reschedules from its date, a weekly rule change (``changed_date`` None)
        from today; changes in the past never move earlier allocations.
        """
        current = today(self._timezone(request))
        cutoff = max(changed_date, current) if changed_date is not None else current
        return self.reschedule(user_id, request, cutoff=cutoff)

    def agenda(self, items: Iterable[WorkItem], day: date) -> list[AgendaEntry]:
        """Work placed on ``day`` in the order this service schedules it."""
        return daily_agenda(items, day, self._settings.default_priority)

    @property
    def settings(self) -> PlannerSettings:
        return self._settings

    @property
    def locks(self) -> UserRunLocks:
        return self._locks
