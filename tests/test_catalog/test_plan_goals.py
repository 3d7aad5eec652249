"""Tests for goal descriptors and automatic goal selection."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from training_engine.catalog.plan_goals import GOALS, select_goal
from training_engine.models.enums import PlanGoal

START = date(2025, 1, 6)


class TestSelectGoal:
    @pytest.mark.parametrize(
        "ctl, event_weeks, expected",
        [
            (60.0, 3, PlanGoal.TAPER),
            (60.0, 4, PlanGoal.TAPER),
            (60.0, 5, PlanGoal.EVENT_PREP),
            (20.0, 12, PlanGoal.EVENT_PREP),
            (30.0, None, PlanGoal.BASE_BUILD),
            (40.0, None, PlanGoal.FTP_BUILD),
            (70.0, None, PlanGoal.FTP_BUILD),
        ],
    )
    def test_selection(self, ctl: float, event_weeks: int | None, expected: PlanGoal) -> None:
        event = START + timedelta(weeks=event_weeks) if event_weeks is not None else None
        goal, reason = select_goal(ctl, START, event)
        assert goal == expected
        assert reason

    def test_reason_mentions_ctl(self) -> None:
        _, reason = select_goal(30.0, START, None)
        assert "CTL 30" in reason


class TestGoalDescriptors:
    def test_every_goal_described(self) -> None:
        assert set(GOALS) == set(PlanGoal)

    def test_default_weeks_positive(self) -> None:
        assert all(g.default_weeks > 0 for g in GOALS.values())
