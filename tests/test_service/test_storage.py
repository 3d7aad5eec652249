"""Tests for the in-memory plan store."""

from __future__ import annotations

import dataclasses
from datetime import date

import pytest

from training_engine.errors import InsufficientDataError, PlanNotFoundError, PlanStateError
from training_engine.models.enums import PlanStatus, WorkoutCategory
from training_engine.models.patterns import AthletePattern, SessionOutcome
from training_engine.models.plan import PlanRequest, TrainingPlan
from training_engine.planner import PeriodizationPlanner
from training_engine.storage import InMemoryPlanStore


@pytest.fixture
def plan(event_prep_request: PlanRequest) -> TrainingPlan:
    return PeriodizationPlanner().generate(event_prep_request).plan


class TestPlans:
    @pytest.mark.asyncio
    async def test_persist_and_get(self, store: InMemoryPlanStore, plan: TrainingPlan) -> None:
        await store.persist_plan(plan, plan.days)
        stored = await store.get_plan(plan.id)
        assert stored == plan
        assert await store.get_plan("missing") is None

    @pytest.mark.asyncio
    async def test_replace_days_swaps_whole_set(
        self, store: InMemoryPlanStore, plan: TrainingPlan
    ) -> None:
        await store.persist_plan(plan, plan.days)
        await store.replace_plan_days(plan.id, plan.days[:7])
        stored = await store.get_plan(plan.id)
        assert stored is not None
        assert stored.days == plan.days[:7]
        assert stored.version == plan.version + 1
        assert stored.status == PlanStatus.DRAFT

    @pytest.mark.asyncio
    async def test_replace_with_header(self, store: InMemoryPlanStore, plan: TrainingPlan) -> None:
        await store.persist_plan(plan, plan.days)
        header = dataclasses.replace(plan, weekly_hours_target=6.8)
        await store.replace_plan_days(plan.id, plan.days, plan=header)
        stored = await store.get_plan(plan.id)
        assert stored is not None
        assert stored.weekly_hours_target == 6.8

    @pytest.mark.asyncio
    async def test_replace_unknown_plan(self, store: InMemoryPlanStore, plan: TrainingPlan) -> None:
        with pytest.raises(PlanNotFoundError):
            await store.replace_plan_days("missing", plan.days)

    @pytest.mark.asyncio
    async def test_status_lifecycle(self, store: InMemoryPlanStore, plan: TrainingPlan) -> None:
        await store.persist_plan(plan, plan.days)
        await store.set_plan_status(plan.id, PlanStatus.ACTIVE)
        active = await store.get_active_plan("athlete-1")
        assert active is not None
        assert active.id == plan.id
        await store.set_plan_status(plan.id, PlanStatus.ABANDONED)
        assert await store.get_active_plan("athlete-1") is None

    @pytest.mark.asyncio
    async def test_illegal_transition(self, store: InMemoryPlanStore, plan: TrainingPlan) -> None:
        await store.persist_plan(plan, plan.days)
        with pytest.raises(PlanStateError):
            await store.set_plan_status(plan.id, PlanStatus.COMPLETED)

    @pytest.mark.asyncio
    async def test_status_unknown_plan(self, store: InMemoryPlanStore) -> None:
        with pytest.raises(PlanNotFoundError):
            await store.set_plan_status("missing", PlanStatus.ACTIVE)


class TestAthleteData:
    @pytest.mark.asyncio
    async def test_patterns_respect_min_data_points(
        self, store: InMemoryPlanStore, weak_pattern: AthletePattern
    ) -> None:
        store.set_patterns("athlete-1", weak_pattern)
        with pytest.raises(InsufficientDataError) as excinfo:
            await store.get_athlete_patterns("athlete-1", days=90, min_data_points=5)
        assert (excinfo.value.data_points, excinfo.value.required) == (3, 5)
        assert await store.get_athlete_patterns("athlete-2", days=90, min_data_points=5) is None
        assert await store.get_athlete_patterns("athlete-1", days=90, min_data_points=3) == weak_pattern

    @pytest.mark.asyncio
    async def test_outcomes_since(self, store: InMemoryPlanStore) -> None:
        store.add_outcomes(
            "athlete-1",
            [
                SessionOutcome(date=date(2025, 1, 1), category=WorkoutCategory.TEMPO, completed=True),
                SessionOutcome(date=date(2025, 2, 1), category=WorkoutCategory.TEMPO, completed=True),
            ],
        )
        outcomes = await store.get_session_outcomes("athlete-1", date(2025, 1, 15))
        assert [o.date for o in outcomes] == [date(2025, 2, 1)]

    @pytest.mark.asyncio
    async def test_save_patterns(
        self, store: InMemoryPlanStore, confident_pattern: AthletePattern
    ) -> None:
        await store.save_athlete_patterns("athlete-2", confident_pattern)
        assert store.patterns_for("athlete-2") == confident_pattern

    @pytest.mark.asyncio
    async def test_fitness_and_catalog(self, store: InMemoryPlanStore) -> None:
        assert await store.get_current_fitness("nobody") is None
        assert await store.get_current_fitness("athlete-1") is not None
        assert len(await store.get_workout_catalog()) > 0
