"""Shared test fixtures: fitness snapshots, plan requests, patterns and outcomes."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from training_engine.catalog.workout_library import default_catalog
from training_engine.config import EngineDefaults
from training_engine.models.enums import (
    PlanGoal,
    RecoveryRate,
    VolumeIntensityPreference,
    WorkoutCategory,
)
from training_engine.models.fitness import FitnessState
from training_engine.models.patterns import (
    AthletePattern,
    SessionOutcome,
    TSBBand,
    TypeSuccess,
)
from training_engine.models.plan import PlanRequest
from training_engine.models.workout import WorkoutTemplate
from training_engine.storage import InMemoryPlanStore


@pytest.fixture
def defaults() -> EngineDefaults:
    return EngineDefaults()


@pytest.fixture
def catalog() -> tuple[WorkoutTemplate, ...]:
    return default_catalog()


@pytest.fixture
def baseline_fitness() -> FitnessState:
    """CTL 50 / ATL 50 the day before a Monday 2025-01-06 start."""
    return FitnessState(date=date(2025, 1, 5), ctl=50.0, atl=50.0)


@pytest.fixture
def event_prep_request(baseline_fitness: FitnessState) -> PlanRequest:
    """8-week event plan from Monday 2025-01-06 to an event on Monday 2025-03-03."""
    return PlanRequest(
        start_date=date(2025, 1, 6),
        goal=PlanGoal.EVENT_PREP,
        duration_weeks=8,
        weekly_hours=8.0,
        event_date=date(2025, 3, 3),
        starting_fitness=baseline_fitness,
        plan_id="plan-event",
        athlete_id="athlete-1",
    )


@pytest.fixture
def confident_pattern() -> AthletePattern:
    """40 sessions: strong Tuesdays and Saturdays, weak Thursdays."""
    return AthletePattern(
        recovery_rate=RecoveryRate.AVERAGE,
        optimal_tsb=TSBBand(-5.0, 5.0),
        day_of_week_affinity={2: 0.3, 4: -0.3, 6: 0.2},
        volume_intensity_preference=VolumeIntensityPreference.BALANCED,
        type_success_rates={
            WorkoutCategory.THRESHOLD: TypeSuccess(
                completion_rate=0.9, avg_rpe=7.0, sample_size=10
            ),
            WorkoutCategory.VO2MAX: TypeSuccess(
                completion_rate=0.4, avg_rpe=8.5, sample_size=8
            ),
        },
        confidence=1.0,
        data_points=40,
    )


@pytest.fixture
def weak_pattern() -> AthletePattern:
    """Three sessions: below every confidence bar."""
    return AthletePattern(
        recovery_rate=RecoveryRate.FAST,
        optimal_tsb=TSBBand(15.0, 30.0),
        day_of_week_affinity={1: 0.9},
        volume_intensity_preference=VolumeIntensityPreference.VOLUME,
        type_success_rates={},
        confidence=0.15,
        data_points=3,
    )


@pytest.fixture
def outcome_history() -> list[SessionOutcome]:
    """Eight weeks of sessions ending Sunday 2025-03-02.

    Tuesday threshold sessions always complete; Thursday VO2max sessions
    are mostly skipped; other days are easy endurance rides.
    """
    outcomes: list[SessionOutcome] = []
    monday = date(2025, 1, 6)
    for week in range(8):
        week_start = monday + timedelta(weeks=week)
        outcomes.append(
            SessionOutcome(
                date=week_start + timedelta(days=1),
                category=WorkoutCategory.THRESHOLD,
                completed=True,
                rpe=7.0,
                tss=80.0,
                duration_minutes=70.0,
            )
        )
        outcomes.append(
            SessionOutcome(
                date=week_start + timedelta(days=3),
                category=WorkoutCategory.VO2MAX,
                completed=week % 4 == 0,
                rpe=9.0 if week % 4 == 0 else None,
                tss=75.0 if week % 4 == 0 else 0.0,
                duration_minutes=60.0 if week % 4 == 0 else 0.0,
            )
        )
        for offset in (2, 5):
            outcomes.append(
                SessionOutcome(
                    date=week_start + timedelta(days=offset),
                    category=WorkoutCategory.ENDURANCE,
                    completed=True,
                    rpe=4.0,
                    tss=60.0,
                    duration_minutes=90.0,
                )
            )
    return outcomes


@pytest.fixture
def store(baseline_fitness: FitnessState) -> InMemoryPlanStore:
    store = InMemoryPlanStore()
    store.set_fitness("athlete-1", baseline_fitness)
    return store
