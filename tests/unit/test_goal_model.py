"""Tests for goal progress and status transitions on the model."""

from datetime import datetime, timedelta, timezone

import pytest

from fitvibe.db.models import UserGoal
from fitvibe.errors import DomainRuleError

START = datetime(2026, 10, 1, tzinfo=timezone.utc)
END = datetime(2026, 10, 31, tzinfo=timezone.utc)
MID = datetime(2026, 10, 15, tzinfo=timezone.utc)


def _goal(**overrides) -> UserGoal:
    values = {
        "user_id": 1,
        "title": "Run 50 km",
        "type": "Distance",
        "target_value": 50.0,
        "current_value": 0.0,
        "start_date": START,
        "end_date": END,
        "status": "Active",
        "is_adaptive": False,
        "xp_reward": 50,
        "completed_at": None,
    }
    values.update(overrides)
    return UserGoal(**values)


class TestProgress:
    def test_percentage(self):
        goal = _goal(current_value=12.5)
        assert goal.percentage == 25.0

    def test_percentage_capped(self):
        assert _goal(current_value=80.0).percentage == 100.0

    def test_add_progress(self):
        goal = _goal()
        goal.add_progress(10)
        goal.add_progress(2.5)
        assert goal.current_value == 12.5

    @pytest.mark.parametrize("value", [0, -1])
    def test_add_progress_must_be_positive(self, value):
        with pytest.raises(DomainRuleError):
            _goal().add_progress(value)

    def test_update_progress_rejects_negative(self):
        with pytest.raises(DomainRuleError):
            _goal().update_progress(-5)


class TestStatus:
    def test_completion(self):
        goal = _goal(current_value=50.0)
        assert goal.recompute_status(MID) is True
        assert goal.status == "Completed"
        assert goal.completed_at == MID

    def test_completion_reported_once(self):
        goal = _goal(current_value=50.0)
        goal.recompute_status(MID)
        assert goal.recompute_status(MID + timedelta(days=1)) is False
        assert goal.completed_at == MID

    def test_expiry(self):
        goal = _goal(current_value=10.0)
        assert goal.recompute_status(END + timedelta(days=1)) is False
        assert goal.status == "Expired"

    def test_abandoned_stays_abandoned(self):
        goal = _goal(status="Abandoned", current_value=60.0)
        assert goal.recompute_status(MID) is False
        assert goal.status == "Abandoned"

    def test_extend_reactivates_expired(self):
        goal = _goal(status="Expired")
        goal.extend_deadline(END + timedelta(days=7))
        assert goal.status == "Active"
        assert goal.end_date == END + timedelta(days=7)

    def test_extend_must_be_later(self):
        with pytest.raises(DomainRuleError, match="later"):
            _goal().extend_deadline(END)

    def test_abandon(self):
        goal = _goal()
        goal.abandon()
        assert goal.status == "Abandoned"

    def test_cannot_abandon_completed(self):
        with pytest.raises(DomainRuleError):
            _goal(status="Completed").abandon()

    def test_adapt_requires_adaptive(self):
        with pytest.raises(DomainRuleError, match="adaptive"):
            _goal().adapt_target(40)
        goal = _goal(is_adaptive=True)
        goal.adapt_target(40)
        assert goal.target_value == 40

    def test_overdue_and_remaining(self):
        goal = _goal()
        assert goal.is_overdue(MID) is False
        assert goal.is_overdue(END + timedelta(seconds=1)) is True
        assert goal.time_remaining(MID) == END - MID
        assert goal.time_remaining(END + timedelta(days=3)) == timedelta(0)
