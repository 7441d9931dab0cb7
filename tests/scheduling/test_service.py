"""
tests/scheduling/test_service.py

Covers:
  - Building requests from collaborator payloads
  - Schedule / reschedule through the service
  - Per-user run serialization
"""

import threading
import time
from datetime import date, timedelta

import pytest

from taskplan.calendar import NO_OVERRIDE, CalendarError, ExplicitHours
from taskplan.config import PlannerSettings, reset_settings
from taskplan.items import Allocation
from taskplan.scheduling import (
    RunInProgressError,
    ScheduleRequest,
    SchedulingService,
    UserRunLocks,
)

MONDAY = date(2025, 3, 3)


def day(n):
    return MONDAY + timedelta(days=n)


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def payload():
    return {
        "projects": [{"id": "p1", "deadline": "2025-04-30", "priority": 2}],
        "items": [
            {"id": "a", "totalDuration": 120, "projectId": "p1"},
            {"id": "b", "duration": 60, "priority": 1, "deadline": "2025-03-20"},
        ],
        "availabilityRules": [{"dayOfWeek": d, "hours": 1} for d in range(1, 6)],
        "availabilityOverrides": [
            {"date": "2025-03-03", "hours": 0},
            {"date": "2025-03-04", "hours": None},
        ],
        "startDate": "2025-03-03",
        "timezone": "Europe/Berlin",
        "useSpacing": False,
        "dailyUsedMinutes": {"2025-03-05": 30},
    }


@pytest.fixture
def service():
    return SchedulingService(settings=PlannerSettings())


# ── Payloads ──────────────────────────────────────────────────────────────────

class TestFromPayload:

    def test_items_and_projects(self, payload):
        request = ScheduleRequest.from_payload(payload)
        a, b = request.items
        assert a.container.id == "p1"
        assert a.effective_deadline == date(2025, 4, 30)
        assert a.effective_priority == 2
        assert b.total_duration == 60
        assert b.deadline == date(2025, 3, 20)
        assert b.container is None

    def test_availability(self, payload):
        request = ScheduleRequest.from_payload(payload)
        assert len(request.rules) == 5
        assert request.overrides[0].value == ExplicitHours(0)
        assert request.overrides[1].value is NO_OVERRIDE

    def test_run_parameters(self, payload):
        request = ScheduleRequest.from_payload(payload)
        assert request.start_date == MONDAY
        assert request.timezone == "Europe/Berlin"
        assert request.use_spacing is False
        assert request.commitments == {day(2): 30}

    def test_defaults(self):
        request = ScheduleRequest.from_payload({"items": []}, default_timezone="Asia/Tokyo")
        assert request.timezone == "Asia/Tokyo"
        assert request.start_date is None
        assert request.use_spacing is True

    def test_timezone_falls_back_to_configured_zone(self, monkeypatch):
        monkeypatch.setenv("TASKPLAN_DEFAULT_TIMEZONE", "Asia/Tokyo")
        reset_settings()
        request = ScheduleRequest.from_payload({"items": [{"id": "a", "totalDuration": 30}]})
        assert request.timezone == "Asia/Tokyo"

    def test_configured_zone_converts_timestamps(self, monkeypatch):
        monkeypatch.setenv("TASKPLAN_DEFAULT_TIMEZONE", "Asia/Tokyo")
        reset_settings()
        request = ScheduleRequest.from_payload(
            {"items": [{"id": "a", "totalDuration": 30, "deadline": "2025-03-20T20:00:00Z"}]}
        )
        assert request.items[0].deadline == date(2025, 3, 21)

    def test_service_parses_with_its_own_zone(self):
        service = SchedulingService(settings=PlannerSettings(default_timezone="America/New_York"))
        assert service.request_from({"items": []}).timezone == "America/New_York"
        assert service.request_from({"items": [], "timezone": "UTC"}).timezone == "UTC"

    def test_all_dates_use_the_request_zone(self):
        stamp = "2025-03-04T23:30:00Z"
        request = ScheduleRequest.from_payload({
            "timezone": "Europe/Berlin",
            "items": [{
                "id": "a", "totalDuration": 60,
                "deadline": stamp,
                "scheduledDates": [{"date": stamp, "duration": 30}],
            }],
            "availabilityOverrides": [{"date": stamp, "hours": 0}],
            "dailyUsedMinutes": {stamp: 15, "2025-03-05": 10},
        })
        berlin_day = date(2025, 3, 5)
        item = request.items[0]
        assert item.deadline == berlin_day
        assert item.scheduled_dates == (Allocation(berlin_day, 30),)
        assert request.overrides[0].date == berlin_day
        assert request.commitments == {berlin_day: 25}

    def test_unknown_timezone(self, payload):
        payload["timezone"] = "Nowhere/Special"
        with pytest.raises(CalendarError):
            ScheduleRequest.from_payload(payload)


# ── Runs ──────────────────────────────────────────────────────────────────────

class TestRuns:

    def test_schedule(self, service, payload):
        result = service.schedule("u1", ScheduleRequest.from_payload(payload))
        # Monday is off, Wednesday has 30 minutes committed elsewhere.
        assert result.decision_for("b").scheduled_dates == (Allocation(day(1), 60),)
        assert result.decision_for("a").scheduled_dates == (
            Allocation(day(2), 30),
            Allocation(day(3), 60),
            Allocation(day(4), 30),
        )
        assert result.split_items == ("a",)

    def test_default_start_is_today(self, service):
        request = ScheduleRequest.from_payload(
            {"items": [{"id": "x", "totalDuration": 30}], "timezone": "UTC"}
        )
        result = service.schedule("u1", request)
        placed = result.decision_for("x").scheduled_dates
        assert placed and placed[0].date >= date.today() - timedelta(days=1)

    def test_reschedule(self, service, payload):
        first = service.schedule("u1", ScheduleRequest.from_payload(payload))
        payload["items"] = [
            {**record, "scheduledDates": [e.to_dict() for e in first.decision_for(record["id"]).scheduled_dates],
             "remainingDuration": first.decision_for(record["id"]).remaining_duration}
            for record in payload["items"]
        ]
        outcome = service.reschedule("u1", ScheduleRequest.from_payload(payload), cutoff=day(3))
        by_id = {i.id: i for i in outcome.items}
        assert by_id["a"].scheduled_dates[0] == Allocation(day(2), 30)
        assert outcome.reset_items == ("a",)
        assert by_id["a"].remaining_duration == 0

    def test_availability_change_in_past_uses_today(self, service, payload, monkeypatch):
        captured = {}

        def fake_reschedule(user_id, request, cutoff=None, use_spacing=False):
            captured["cutoff"] = cutoff

        monkeypatch.setattr(service, "reschedule", fake_reschedule)
        monkeypatch.setattr("taskplan.scheduling.service.today", lambda tz: day(10))
        request = ScheduleRequest.from_payload(payload)
        service.on_availability_changed("u1", request, changed_date=day(2))
        assert captured["cutoff"] == day(10)
        service.on_availability_changed("u1", request, changed_date=day(20))
        assert captured["cutoff"] == day(20)
        service.on_availability_changed("u1", request)
        assert captured["cutoff"] == day(10)


# ── Locks ─────────────────────────────────────────────────────────────────────

class TestLocks:

    def test_same_user_is_serialized(self):
        locks = UserRunLocks()
        order = []
        entered = threading.Event()

        def first():
            with locks.hold("u1"):
                entered.set()
                time.sleep(0.05)
                order.append("first")

        def second():
            entered.wait()
            with locks.hold("u1"):
                order.append("second")

        threads = [threading.Thread(target=first), threading.Thread(target=second)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert order == ["first", "second"]

    def test_timeout_raises(self):
        locks = UserRunLocks()
        with locks.hold("u1"):
            assert locks.is_running("u1")
            with pytest.raises(RunInProgressError):
                with locks.hold("u1", timeout=0.01):
                    pass
        assert not locks.is_running("u1")

    def test_users_are_independent(self):
        locks = UserRunLocks()
        with locks.hold("u1"):
            with locks.hold("u2", timeout=0.01):
                assert locks.is_running("u2")
                assert len(locks) == 2
        assert len(locks) == 0

    def test_idle_users_are_forgotten(self):
        locks = UserRunLocks()
        for user in ("u1", "u2", "u3"):
            with locks.hold(user):
                assert len(locks) == 1
        assert len(locks) == 0
        with locks.hold("u1"):
            with pytest.raises(RunInProgressError):
                with locks.hold("u1", timeout=0.01):
                    pass
            assert len(locks) == 1
        assert len(locks) == 0

    def test_lock_released_on_error(self):
        locks = UserRunLocks()
        with pytest.raises(KeyError):
            with locks.hold("u1"):
                raise KeyError("boom")
        assert not locks.is_running("u1")

    def test_service_uses_lock_timeout(self, payload):
        locks = UserRunLocks()
        service = SchedulingService(settings=PlannerSettings(lock_timeout=0.01), locks=locks)
        with locks.hold("u1"):
            with pytest.raises(RunInProgressError):
                service.schedule("u1", ScheduleRequest.from_payload(payload))
