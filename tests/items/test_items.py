"""
tests/items/test_items.py

Covers:
  - Conservation check on construction
  - Effective deadline / priority inheritance from the project
  - State derivation
  - Reset from a cutoff date
  - Applying decisions
  - Record conversion
"""

from datetime import date

import pytest

from taskplan.config import reset_settings
from taskplan.items import (
    Allocation,
    Container,
    ItemState,
    ScheduleDecision,
    WorkItem,
    merge_allocations,
)

MON = date(2025, 3, 3)
TUE = date(2025, 3, 4)
WED = date(2025, 3, 5)


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def project():
    return Container("p1", deadline=date(2025, 4, 30), priority=2)


@pytest.fixture
def spread_item():
    """180 minutes: 60 on each of Mon, Tue, Wed."""
    return WorkItem(
        "a",
        total_duration=180,
        scheduled_dates=(Allocation(MON, 60), Allocation(TUE, 60), Allocation(WED, 60)),
    )


# ── Construction ──────────────────────────────────────────────────────────────

class TestConstruction:

    def test_new_item_is_unscheduled(self):
        item = WorkItem("a", 90)
        assert item.remaining_duration == 90
        assert item.scheduled_dates == ()
        assert item.state is ItemState.UNSCHEDULED
        assert item.date is None

    def test_remaining_derived_from_entries(self):
        item = WorkItem("a", 90, scheduled_dates=[Allocation(MON, 30)])
        assert item.remaining_duration == 60
        assert isinstance(item.scheduled_dates, tuple)

    def test_conservation_violation_raises(self):
        with pytest.raises(ValueError):
            WorkItem("a", 90, remaining_duration=90, scheduled_dates=(Allocation(MON, 30),))

    def test_negative_total_raises(self):
        with pytest.raises(ValueError):
            WorkItem("a", -1)

    def test_over_scheduled_raises(self):
        with pytest.raises(ValueError):
            WorkItem("a", 30, scheduled_dates=(Allocation(MON, 60),))

    def test_states(self, spread_item):
        assert spread_item.state is ItemState.FULLY_SCHEDULED
        partial = WorkItem("b", 120, scheduled_dates=(Allocation(MON, 60),))
        assert partial.state is ItemState.PARTIALLY_SCHEDULED

    def test_date_is_last_entry(self, spread_item):
        assert spread_item.date == WED


# ── Inheritance ───────────────────────────────────────────────────────────────

class TestInheritance:

    def test_deadline_falls_back_to_project(self, project):
        assert WorkItem("a", 10, container=project).effective_deadline == date(2025, 4, 30)

    def test_own_deadline_wins(self, project):
        item = WorkItem("a", 10, deadline=date(2025, 4, 1), container=project)
        assert item.effective_deadline == date(2025, 4, 1)

    def test_priority_falls_back_to_project_then_default(self, project):
        assert WorkItem("a", 10, container=project).effective_priority == 2
        assert WorkItem("a", 10, priority=1, container=project).effective_priority == 1
        assert WorkItem("a", 10).effective_priority == 3
        assert WorkItem("a", 10).priority_or(5) == 5

    def test_priority_default_follows_settings(self, monkeypatch):
        monkeypatch.setenv("TASKPLAN_DEFAULT_PRIORITY", "5")
        reset_settings()
        assert WorkItem("a", 10).effective_priority == 5

    def test_no_deadline_anywhere(self):
        assert WorkItem("a", 10, container=Container("p")).effective_deadline is None


# ── Reset ─────────────────────────────────────────────────────────────────────

class TestResetFrom:

    def test_keeps_entries_before_cutoff(self, spread_item):
        reset = spread_item.reset_from(TUE)
        assert reset.scheduled_dates == (Allocation(MON, 60),)
        assert reset.remaining_duration == 120
        assert reset.date == MON
        assert reset.state is ItemState.PARTIALLY_SCHEDULED

    def test_cutoff_before_everything_unschedules(self, spread_item):
        reset = spread_item.reset_from(date(2025, 3, 1))
        assert reset.scheduled_dates == ()
        assert reset.remaining_duration == 180
        assert reset.state is ItemState.UNSCHEDULED

    def test_cutoff_after_everything_returns_same_item(self, spread_item):
        assert spread_item.reset_from(date(2025, 3, 6)) is spread_item

    def test_has_entries_from(self, spread_item):
        assert spread_item.has_entries_from(WED)
        assert not spread_item.has_entries_from(date(2025, 3, 6))


# ── Decisions ─────────────────────────────────────────────────────────────────

class TestApply:

    def test_apply_decision(self):
        item = WorkItem("a", 120)
        decision = ScheduleDecision(
            "a", (Allocation(MON, 60), Allocation(TUE, 60)), 0,
            placed=(Allocation(MON, 60), Allocation(TUE, 60)),
        )
        updated = item.apply(decision)
        assert updated.remaining_duration == 0
        assert updated.date == TUE
        assert decision.is_split
        assert item.remaining_duration == 120

    def test_apply_wrong_item_raises(self):
        with pytest.raises(ValueError):
            WorkItem("a", 10).apply(ScheduleDecision("b", (), 10))

    def test_merge_allocations(self):
        merged = merge_allocations([Allocation(TUE, 30), Allocation(MON, 20), Allocation(TUE, 10)])
        assert merged == (Allocation(MON, 20), Allocation(TUE, 40))


# ── Records ───────────────────────────────────────────────────────────────────

class TestRecords:

    def test_from_dict(self, project):
        item = WorkItem.from_dict(
            {
                "id": 7,
                "duration": 120,
                "remainingDuration": None,
                "priority": 1,
                "order": None,
                "deadline": "2025-03-20",
                "scheduledDates": [{"date": "2025-03-03", "duration": 45}],
            },
            container=project,
        )
        assert item.id == "7"
        assert item.total_duration == 120
        assert item.remaining_duration == 75
        assert item.deadline == date(2025, 3, 20)
        assert item.scheduled_dates == (Allocation(MON, 45),)
        assert item.container is project

    def test_from_dict_reads_timestamps_in_zone(self):
        item = WorkItem.from_dict(
            {
                "id": "a",
                "totalDuration": 60,
                "deadline": "2025-03-19T22:00:00Z",
                "scheduledDates": [{"date": "2025-03-02T23:15:00Z", "duration": 60}],
            },
            tz="America/New_York",
        )
        assert item.deadline == date(2025, 3, 19)
        assert item.scheduled_dates == (Allocation(date(2025, 3, 2), 60),)

        tokyo = WorkItem.from_dict(
            {"id": "a", "totalDuration": 60,
             "scheduledDates": [{"date": "2025-03-02T23:15:00Z", "duration": 60}]},
            tz="Asia/Tokyo",
        )
        assert tokyo.scheduled_dates == (Allocation(MON, 60),)

    def test_to_dict(self, spread_item):
        record = spread_item.to_dict()
        assert record["totalDuration"] == 180
        assert record["remainingDuration"] == 0
        assert record["date"] == "2025-03-05"
        assert record["scheduledDates"][0] == {"date": "2025-03-03", "duration": 60}

    def test_decision_to_dict(self):
        decision = ScheduleDecision("a", (Allocation(MON, 30),), 30)
        assert decision.to_dict() == {
            "itemId": "a",
            "scheduledDates": [{"date": "2025-03-03", "duration": 30}],
            "remainingDuration": 30,
            "date": "2025-03-03",
        }
