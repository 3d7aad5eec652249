"""Tests for the async PlanService: fallbacks, persistence and lifecycle."""

from __future__ import annotations

import asyncio
import dataclasses
from datetime import date
from typing import Sequence

import pytest

from training_engine.catalog.workout_library import default_catalog
from training_engine.config import EngineDefaults
from training_engine.errors import (
    PersistenceError,
    PlanNotFoundError,
    PlanStateError,
    ValidationError,
)
from training_engine.models.enums import PlanStatus, TrainingPhase, WorkoutCategory
from training_engine.models.fitness import FitnessState
from training_engine.models.patterns import AthletePattern
from training_engine.models.plan import PlanDay, PlanRequest, TrainingPlan
from training_engine.models.workout import WorkoutTemplate
from training_engine.service import PlanModification, PlanService
from training_engine.storage import InMemoryPlanStore

ATHLETE = "athlete-1"


class FailingWriteStore(InMemoryPlanStore):
    async def persist_plan(self, plan: TrainingPlan, days: Sequence[PlanDay]) -> None:
        raise PersistenceError("disk full", "persist_plan")


class SlowPatternStore(InMemoryPlanStore):
    async def get_athlete_patterns(
        self, athlete_id: str, days: int, min_data_points: int
    ) -> AthletePattern | None:
        await asyncio.sleep(5)
        return None


class BrokenCatalogStore(InMemoryPlanStore):
    async def get_workout_catalog(self) -> tuple[WorkoutTemplate, ...]:
        raise PersistenceError("catalog table missing", "get_workout_catalog")


class BrokenActivePlanStore(InMemoryPlanStore):
    async def get_active_plan(self, athlete_id: str) -> TrainingPlan | None:
        raise PersistenceError("connection reset", "get_active_plan")


@pytest.fixture
def stored_fitness_request(event_prep_request: PlanRequest) -> PlanRequest:
    return dataclasses.replace(event_prep_request, starting_fitness=None)


class TestProposePlan:
    @pytest.mark.asyncio
    async def test_stored_fitness(
        self, store: InMemoryPlanStore, stored_fitness_request: PlanRequest
    ) -> None:
        proposal = await PlanService(store).propose_plan(ATHLETE, stored_fitness_request)
        assert proposal.fitness_source == "stored"
        assert proposal.persisted
        assert proposal.persistence_error is None
        saved = await store.get_plan(proposal.result.plan.id)
        assert saved is not None
        assert saved.status == PlanStatus.DRAFT
        assert saved.athlete_id == ATHLETE
        assert len(saved.days) == 56

    @pytest.mark.asyncio
    async def test_request_fitness_wins(
        self, store: InMemoryPlanStore, event_prep_request: PlanRequest
    ) -> None:
        proposal = await PlanService(store).propose_plan(ATHLETE, event_prep_request)
        assert proposal.fitness_source == "request"

    @pytest.mark.asyncio
    async def test_missing_fitness_falls_back(self, stored_fitness_request: PlanRequest) -> None:
        proposal = await PlanService(InMemoryPlanStore()).propose_plan(ATHLETE, stored_fitness_request)
        assert proposal.fitness_source == "default"
        assert "Fitness data not found; assuming CTL 50 / ATL 50" in proposal.warnings
        assert "No pattern data yet; using generic defaults" in proposal.warnings
        start = proposal.result.projection.start_fitness
        assert (start.ctl, start.atl) == (50.0, 50.0)

    @pytest.mark.asyncio
    async def test_stored_patterns_used(
        self,
        store: InMemoryPlanStore,
        event_prep_request: PlanRequest,
        confident_pattern: AthletePattern,
    ) -> None:
        store.set_patterns(ATHLETE, confident_pattern)
        proposal = await PlanService(store).propose_plan(ATHLETE, event_prep_request)
        assert proposal.result.plan.key_workout_days == (2, 6)

    @pytest.mark.asyncio
    async def test_thin_pattern_data_ignored(
        self,
        store: InMemoryPlanStore,
        event_prep_request: PlanRequest,
        weak_pattern: AthletePattern,
    ) -> None:
        store.set_patterns(ATHLETE, weak_pattern)
        proposal = await PlanService(store).propose_plan(ATHLETE, event_prep_request)
        assert "Only 3 sessions of pattern data; using generic defaults" in proposal.warnings
        assert proposal.result.plan.key_workout_days == (2, 4, 6)

    @pytest.mark.asyncio
    async def test_slow_pattern_read_times_out(
        self, baseline_fitness: FitnessState, event_prep_request: PlanRequest
    ) -> None:
        store = SlowPatternStore()
        store.set_fitness(ATHLETE, baseline_fitness)
        service = PlanService(store, EngineDefaults(storage_timeout_s=0.05))
        proposal = await service.propose_plan(ATHLETE, event_prep_request)
        assert "Pattern data unavailable; using generic defaults" in proposal.warnings
        assert proposal.persisted

    @pytest.mark.asyncio
    async def test_persistence_failure_keeps_proposal(self, event_prep_request: PlanRequest) -> None:
        proposal = await PlanService(FailingWriteStore()).propose_plan(ATHLETE, event_prep_request)
        assert not proposal.persisted
        assert proposal.persistence_error == "disk full"
        assert proposal.warnings[-1] == "Plan could not be saved: disk full"
        assert len(proposal.result.plan.days) == 56

    @pytest.mark.asyncio
    async def test_store_catalog_drives_plan(
        self, baseline_fitness: FitnessState, event_prep_request: PlanRequest
    ) -> None:
        reduced = tuple(t for t in default_catalog() if t.category != WorkoutCategory.SWEETSPOT)
        store = InMemoryPlanStore(catalog=reduced)
        store.set_fitness(ATHLETE, baseline_fitness)
        proposal = await PlanService(store).propose_plan(ATHLETE, event_prep_request)
        days = proposal.result.plan.days
        assert all(d.category != WorkoutCategory.SWEETSPOT for d in days)
        allowed = {t.id for t in reduced}
        assert {d.workout_template_ref for d in days if d.workout_template_ref} <= allowed
        assert any(w.startswith("No sweetspot") for w in proposal.warnings)

    @pytest.mark.asyncio
    async def test_catalog_failure_uses_builtin_library(
        self, baseline_fitness: FitnessState, event_prep_request: PlanRequest
    ) -> None:
        store = BrokenCatalogStore()
        store.set_fitness(ATHLETE, baseline_fitness)
        proposal = await PlanService(store).propose_plan(ATHLETE, event_prep_request)
        assert "Workout catalog unavailable; using the built-in workout library" in proposal.warnings
        assert proposal.persisted
        assert len(proposal.result.plan.days) == 56


class TestModifyProposal:
    @pytest.mark.asyncio
    async def test_lower_intensity(
        self, store: InMemoryPlanStore, event_prep_request: PlanRequest
    ) -> None:
        service = PlanService(store)
        await service.propose_plan(ATHLETE, event_prep_request)
        proposal = await service.modify_proposal(
            ATHLETE, "plan-event", PlanModification(intensity="lower")
        )
        plan = proposal.result.plan
        assert plan.id == "plan-event"
        assert plan.weekly_hours_target == pytest.approx(6.8)
        assert plan.duration_weeks == 8
        assert plan.event_date == date(2025, 3, 3)
        saved = await store.get_plan("plan-event")
        assert saved is not None
        assert saved.version == 2
        assert saved.status == PlanStatus.DRAFT
        assert saved.weekly_hours_target == pytest.approx(6.8)

    @pytest.mark.asyncio
    async def test_same_modification_same_result(
        self, store: InMemoryPlanStore, event_prep_request: PlanRequest
    ) -> None:
        service = PlanService(store)
        for plan_id in ("plan-a", "plan-b"):
            await service.propose_plan(ATHLETE, dataclasses.replace(event_prep_request, plan_id=plan_id))
        modification = PlanModification(intensity="higher", key_workout_days=(2, 6))
        first = await service.modify_proposal(ATHLETE, "plan-a", modification)
        second = await service.modify_proposal(ATHLETE, "plan-b", modification)
        assert first.result.week_summaries == second.result.week_summaries

    @pytest.mark.asyncio
    async def test_active_plan_rejected(
        self, store: InMemoryPlanStore, event_prep_request: PlanRequest
    ) -> None:
        service = PlanService(store)
        await service.propose_plan(ATHLETE, event_prep_request)
        await service.accept_proposal(ATHLETE, "plan-event")
        with pytest.raises(PlanStateError):
            await service.modify_proposal(ATHLETE, "plan-event", PlanModification(intensity="lower"))

    @pytest.mark.asyncio
    async def test_unknown_intensity_rejected(
        self, store: InMemoryPlanStore, event_prep_request: PlanRequest
    ) -> None:
        service = PlanService(store)
        await service.propose_plan(ATHLETE, event_prep_request)
        with pytest.raises(ValidationError):
            await service.modify_proposal(
                ATHLETE, "plan-event", PlanModification(intensity="moderate")
            )
        saved = await store.get_plan("plan-event")
        assert saved is not None
        assert saved.version == 1

    @pytest.mark.asyncio
    async def test_modify_uses_store_catalog(
        self, baseline_fitness: FitnessState, event_prep_request: PlanRequest
    ) -> None:
        store = InMemoryPlanStore()
        store.set_fitness(ATHLETE, baseline_fitness)
        service = PlanService(store)
        await service.propose_plan(ATHLETE, event_prep_request)
        store.set_catalog(
            tuple(t for t in default_catalog() if t.category != WorkoutCategory.SWEETSPOT)
        )
        proposal = await service.modify_proposal(
            ATHLETE, "plan-event", PlanModification(intensity="lower")
        )
        assert all(d.category != WorkoutCategory.SWEETSPOT for d in proposal.result.plan.days)

    @pytest.mark.asyncio
    async def test_other_athletes_plan_not_found(
        self, store: InMemoryPlanStore, event_prep_request: PlanRequest
    ) -> None:
        service = PlanService(store)
        await service.propose_plan(ATHLETE, event_prep_request)
        with pytest.raises(PlanNotFoundError):
            await service.modify_proposal("athlete-2", "plan-event", PlanModification())


class TestAcceptProposal:
    @pytest.mark.asyncio
    async def test_previous_plan_abandoned(
        self, store: InMemoryPlanStore, event_prep_request: PlanRequest
    ) -> None:
        service = PlanService(store)
        for plan_id in ("plan-a", "plan-b"):
            await service.propose_plan(ATHLETE, dataclasses.replace(event_prep_request, plan_id=plan_id))
        first = await service.accept_proposal(ATHLETE, "plan-a")
        assert first.status == PlanStatus.ACTIVE
        second = await service.accept_proposal(ATHLETE, "plan-b")
        assert second.status == PlanStatus.ACTIVE
        previous = await store.get_plan("plan-a")
        assert previous is not None
        assert previous.status == PlanStatus.ABANDONED
        active = await store.get_active_plan(ATHLETE)
        assert active is not None and active.id == "plan-b"

    @pytest.mark.asyncio
    async def test_unknown_plan(self, store: InMemoryPlanStore) -> None:
        with pytest.raises(PlanNotFoundError):
            await PlanService(store).accept_proposal(ATHLETE, "missing")

    @pytest.mark.asyncio
    async def test_accept_twice_rejected(
        self, store: InMemoryPlanStore, event_prep_request: PlanRequest
    ) -> None:
        service = PlanService(store)
        await service.propose_plan(ATHLETE, event_prep_request)
        await service.accept_proposal(ATHLETE, "plan-event")
        with pytest.raises(PlanStateError):
            await service.accept_proposal(ATHLETE, "plan-event")


class TestSuggestWorkout:
    @pytest.mark.asyncio
    async def test_form_picks_category(self, store: InMemoryPlanStore) -> None:
        recommendation = await PlanService(store).suggest_workout(ATHLETE, date(2025, 1, 7))
        assert recommendation.phase == TrainingPhase.MAINTENANCE
        assert recommendation.fitness_source == "stored"
        assert recommendation.category_reason == "Good form for quality work"
        best = recommendation.prescription.best
        assert best is not None
        assert best.template.id == "threshold_3x8"
        assert recommendation.ftp_watts == 250
        assert recommendation.weight_kg == 70.0
        assert recommendation.intervals[0].target_power_max == 250

    @pytest.mark.asyncio
    async def test_ftp_override(self, store: InMemoryPlanStore) -> None:
        recommendation = await PlanService(store).suggest_workout(
            ATHLETE, date(2025, 1, 7), category=WorkoutCategory.THRESHOLD, ftp_watts=300
        )
        assert recommendation.category_reason is None
        assert recommendation.intervals[0].target_power_min == 285

    @pytest.mark.asyncio
    async def test_phase_from_active_plan(
        self, store: InMemoryPlanStore, event_prep_request: PlanRequest
    ) -> None:
        service = PlanService(store)
        await service.propose_plan(ATHLETE, event_prep_request)
        await service.accept_proposal(ATHLETE, "plan-event")
        recommendation = await service.suggest_workout(ATHLETE, date(2025, 2, 4))
        assert recommendation.phase == TrainingPhase.BUILD

    @pytest.mark.asyncio
    async def test_default_fitness(self) -> None:
        recommendation = await PlanService(InMemoryPlanStore()).suggest_workout(
            ATHLETE, date(2025, 1, 7)
        )
        assert recommendation.fitness_source == "default"
        assert recommendation.state.date == date(2025, 1, 7)
        assert any(w.startswith("Fitness data not found") for w in recommendation.warnings)

    @pytest.mark.asyncio
    async def test_catalog_failure_raises(self, baseline_fitness: FitnessState) -> None:
        store = BrokenCatalogStore()
        store.set_fitness(ATHLETE, baseline_fitness)
        with pytest.raises(PersistenceError):
            await PlanService(store).suggest_workout(ATHLETE, date(2025, 1, 7))

    @pytest.mark.asyncio
    async def test_active_plan_failure_warns(self, baseline_fitness: FitnessState) -> None:
        store = BrokenActivePlanStore()
        store.set_fitness(ATHLETE, baseline_fitness)
        recommendation = await PlanService(store).suggest_workout(ATHLETE, date(2025, 1, 7))
        assert recommendation.phase == TrainingPhase.MAINTENANCE
        assert "Active plan unavailable; assuming the maintenance phase" in recommendation.warnings
