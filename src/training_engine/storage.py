"""Storage boundary: the async reads and writes the engine depends on.

``PlanStore`` is the interface a deployment implements against its database.
``InMemoryPlanStore`` backs tests and the scheduler's file-based runs.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import date
from typing import Protocol, Sequence

from training_engine.catalog.workout_library import default_catalog
from training_engine.errors import InsufficientDataError, PlanNotFoundError, PlanStateError
from training_engine.models.enums import PlanStatus
from training_engine.models.fitness import FitnessState
from training_engine.models.patterns import AthletePattern, SessionOutcome
from training_engine.models.plan import PlanDay, TrainingPlan
from training_engine.models.workout import WorkoutTemplate

logger = logging.getLogger(__name__)


class PlanStore(Protocol):
    """Async storage operations consumed by the service layer.

    Implementations raise ``PersistenceError`` when a write fails and
    ``InsufficientDataError`` when stored patterns rest on too few sessions.
    """

    async def get_current_fitness(self, athlete_id: str) -> FitnessState | None: ...

    async def get_athlete_patterns(
        self, athlete_id: str, days: int, min_data_points: int
    ) -> AthletePattern | None: ...

    async def get_workout_catalog(self) -> tuple[WorkoutTemplate, ...]: ...

    async def persist_plan(self, plan: TrainingPlan, days: Sequence[PlanDay]) -> None: ...

    async def replace_plan_days(
        self,
        plan_id: str,
        days: Sequence[PlanDay],
        plan: TrainingPlan | None = None,
    ) -> None: ...

    async def set_plan_status(self, plan_id: str, status: PlanStatus) -> None: ...

    async def get_plan(self, plan_id: str) -> TrainingPlan | None: ...

    async def get_active_plan(self, athlete_id: str) -> TrainingPlan | None: ...

    async def get_session_outcomes(
        self, athlete_id: str, since: date
    ) -> list[SessionOutcome]: ...

    async def save_athlete_patterns(self, athlete_id: str, pattern: AthletePattern) -> None: ...


class InMemoryPlanStore:
    """Dictionary-backed PlanStore.

    Plans are immutable records; a write swaps the stored record in a single
    assignment under a lock, so readers see either the old or the new day set,
    never a mix.
    """

    def __init__(
        self,
        catalog: tuple[WorkoutTemplate, ...] | None = None,
    ) -> None:
        self._catalog = catalog if catalog is not None else default_catalog()
        self._fitness: dict[str, FitnessState] = {}
        self._patterns: dict[str, AthletePattern] = {}
        self._outcomes: dict[str, list[SessionOutcome]] = {}
        self._plans: dict[str, TrainingPlan] = {}
        self._lock = asyncio.Lock()

    # --- seeding helpers (synchronous, for setup code) -------------------

    def set_fitness(self, athlete_id: str, state: FitnessState) -> None:
        self._fitness[athlete_id] = state

    def set_patterns(self, athlete_id: str, pattern: AthletePattern) -> None:
        self._patterns[athlete_id] = pattern

    def set_catalog(self, catalog: tuple[WorkoutTemplate, ...]) -> None:
        self._catalog = catalog

    def add_outcomes(self, athlete_id: str, outcomes: Sequence[SessionOutcome]) -> None:
        self._outcomes.setdefault(athlete_id, []).extend(outcomes)

    def athlete_ids(self) -> list[str]:
        return sorted(set(self._outcomes) | set(self._fitness))

    def patterns_for(self, athlete_id: str) -> AthletePattern | None:
        return self._patterns.get(athlete_id)

    # --- reads -----------------------------------------------------------

    async def get_current_fitness(self, athlete_id: str) -> FitnessState | None:
        return self._fitness.get(athlete_id)

    async def get_athlete_patterns(
        self, athlete_id: str, days: int, min_data_points: int
    ) -> AthletePattern | None:
        """Stored patterns are already windowed; ``days`` is informational."""
        pattern = self._patterns.get(athlete_id)
        if pattern is not None and pattern.data_points < min_data_points:
            raise InsufficientDataError(
                f"Patterns for {athlete_id} rest on {pattern.data_points} sessions",
                data_points=pattern.data_points,
                required=min_data_points,
            )
        return pattern

    async def get_workout_catalog(self) -> tuple[WorkoutTemplate, ...]:
        return self._catalog

    async def get_plan(self, plan_id: str) -> TrainingPlan | None:
        return self._plans.get(plan_id)

    async def get_active_plan(self, athlete_id: str) -> TrainingPlan | None:
        for plan in self._plans.values():
            if plan.athlete_id == athlete_id and plan.status == PlanStatus.ACTIVE:
                return plan
        return None

    async def get_session_outcomes(self, athlete_id: str, since: date) -> list[SessionOutcome]:
        return [o for o in self._outcomes.get(athlete_id, []) if o.date >= since]

    # --- writes ----------------------------------------------------------

    async def persist_plan(self, plan: TrainingPlan, days: Sequence[PlanDay]) -> None:
        async with self._lock:
            self._plans[plan.id] = dataclasses.replace(plan, days=tuple(days))
        logger.debug("Persisted plan %s with %d days", plan.id, len(days))

    async def replace_plan_days(
        self,
        plan_id: str,
        days: Sequence[PlanDay],
        plan: TrainingPlan | None = None,
    ) -> None:
        """Replace all days of a plan (and optionally its header) atomically."""
        async with self._lock:
            current = self._plans.get(plan_id)
            if current is None:
                raise PlanNotFoundError(f"Plan {plan_id} not found")
            header = plan if plan is not None else current
            self._plans[plan_id] = dataclasses.replace(
                header,
                days=tuple(days),
                status=current.status,
                version=current.version + 1,
            )

    async def set_plan_status(self, plan_id: str, status: PlanStatus) -> None:
        async with self._lock:
            current = self._plans.get(plan_id)
            if current is None:
                raise PlanNotFoundError(f"Plan {plan_id} not found")
            if not current.status.can_transition_to(status):
                raise PlanStateError(
                    f"Plan {plan_id} cannot move from {current.status.value} to {status.value}"
                )
            self._plans[plan_id] = dataclasses.replace(
                current, status=status, version=current.version + 1
            )

    async def save_athlete_patterns(self, athlete_id: str, pattern: AthletePattern) -> None:
        async with self._lock:
            self._patterns[athlete_id] = pattern
