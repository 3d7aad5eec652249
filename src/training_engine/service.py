"""Async service boundary: plan proposals, modifications, acceptance and
single-day workout suggestions.

The core components are pure and synchronous. This layer does the I/O:
independent storage reads are issued concurrently with a bounded timeout,
missing or slow data falls back to documented defaults (reported through
``warnings`` and ``fitness_source``), and persistence failures never discard
a computed proposal.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Awaitable

from training_engine.catalog.workout_library import personalize_intervals
from training_engine.config import EngineDefaults
from training_engine.errors import (
    InsufficientDataError,
    PersistenceError,
    PlanNotFoundError,
    PlanStateError,
    ValidationError,
)
from training_engine.models.enums import (
    PlanGoal,
    PlanStatus,
    TrainingPhase,
    WorkoutCategory,
)
from training_engine.models.fitness import FitnessState
from training_engine.models.patterns import AthletePattern
from training_engine.models.plan import PlanRequest, PlanResult, TrainingPlan
from training_engine.models.recommendation import Prescription
from training_engine.models.workout import PersonalizedInterval
from training_engine.planner import PeriodizationPlanner
from training_engine.prescriber import WorkoutPrescriber, suggest_category
from training_engine.storage import PlanStore

logger = logging.getLogger(__name__)

# Modification keywords → weekly hours multiplier
_MODIFY_HOURS_MULTIPLIER = {"lower": 0.85, "higher": 1.15}


@dataclass(frozen=True)
class PlanProposal:
    """A generated plan plus how its inputs were sourced."""

    result: PlanResult
    fitness_source: str
    warnings: tuple[str, ...]
    persisted: bool
    persistence_error: str | None = None


@dataclass(frozen=True)
class PlanModification:
    """Changes requested to a draft plan. Unset fields keep the draft's value."""

    intensity: str | None = None  # "lower" | "higher"
    duration_weeks: int | None = None
    weekly_hours: float | None = None
    key_workout_days: tuple[int, ...] | None = None
    event_date: date | None = None
    goal: PlanGoal | None = None


@dataclass(frozen=True)
class Recommendation:
    """Single-day workout suggestion with its context."""

    prescription: Prescription
    state: FitnessState
    phase: TrainingPhase
    fitness_source: str
    ftp_watts: int
    weight_kg: float
    intervals: tuple[PersonalizedInterval, ...] = field(default_factory=tuple)
    category_reason: str | None = None
    warnings: tuple[str, ...] = field(default_factory=tuple)


class PlanService:
    """Orchestrates storage, planner and prescriber for one request at a time.

    Usage:
        service = PlanService(store)
        proposal = await service.propose_plan("athlete-1", PlanRequest(...))
        await service.accept_proposal("athlete-1", proposal.result.plan.id)
    """

    def __init__(
        self,
        store: PlanStore,
        defaults: EngineDefaults | None = None,
        planner: PeriodizationPlanner | None = None,
        prescriber: WorkoutPrescriber | None = None,
    ) -> None:
        self.store = store
        self.defaults = defaults or EngineDefaults()
        self.prescriber = prescriber or WorkoutPrescriber(self.defaults)
        self.planner = planner or PeriodizationPlanner(self.defaults, prescriber=self.prescriber)

    # ------------------------------------------------------------------
    # Concurrent reads with fallbacks
    # ------------------------------------------------------------------

    async def _bounded(self, awaitable: Awaitable[Any]) -> Any:
        return await asyncio.wait_for(awaitable, timeout=self.defaults.storage_timeout_s)

    async def _gather(self, *awaitables: Awaitable[Any]) -> list[Any]:
        """Run reads concurrently; failures come back as exception values."""
        results = await asyncio.gather(
            *(self._bounded(a) for a in awaitables), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
        return list(results)

    def _resolve_fitness(
        self, fetched: Any, as_of: date, warnings: list[str]
    ) -> tuple[FitnessState, str]:
        if isinstance(fetched, FitnessState):
            return fetched, "stored"
        if isinstance(fetched, Exception):
            logger.warning("Fitness fetch failed: %r", fetched)
            reason = "unavailable"
        else:
            reason = "not found"
        warnings.append(
            f"Fitness data {reason}; assuming CTL {self.defaults.ctl:g} / "
            f"ATL {self.defaults.atl:g}"
        )
        return FitnessState(date=as_of, ctl=self.defaults.ctl, atl=self.defaults.atl), "default"

    def _resolve_patterns(self, fetched: Any, warnings: list[str]) -> AthletePattern | None:
        if isinstance(fetched, InsufficientDataError):
            warnings.append(
                f"Only {fetched.data_points} sessions of pattern data; using generic defaults"
            )
            return None
        if isinstance(fetched, Exception):
            logger.warning("Pattern fetch failed, continuing without: %r", fetched)
            warnings.append("Pattern data unavailable; using generic defaults")
            return None
        if fetched is None:
            warnings.append("No pattern data yet; using generic defaults")
            return None
        if fetched.data_points < self.defaults.pattern_min_data_points:
            warnings.append(
                f"Only {fetched.data_points} sessions of pattern data; using generic defaults"
            )
            return None
        return fetched

    def _resolve_planner(self, fetched: Any, warnings: list[str]) -> PeriodizationPlanner:
        if isinstance(fetched, Exception):
            logger.warning("Catalog fetch failed, using the built-in library: %r", fetched)
            warnings.append("Workout catalog unavailable; using the built-in workout library")
            return self.planner
        return self.planner.with_catalog(fetched)

    def _pattern_read(self, athlete_id: str) -> Awaitable[AthletePattern | None]:
        return self.store.get_athlete_patterns(
            athlete_id,
            days=self.defaults.pattern_window_days,
            min_data_points=self.defaults.pattern_min_data_points,
        )

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    async def propose_plan(self, athlete_id: str, request: PlanRequest) -> PlanProposal:
        """Generate and save a draft plan.

        Raises:
            ValidationError: If the request is inconsistent.
        """
        warnings: list[str] = []
        fitness_res, pattern_res, catalog_res = await self._gather(
            self.store.get_current_fitness(athlete_id),
            self._pattern_read(athlete_id),
            self.store.get_workout_catalog(),
        )

        if request.starting_fitness is not None:
            fitness, source = request.starting_fitness, "request"
        else:
            fitness, source = self._resolve_fitness(
                fitness_res, request.start_date - timedelta(days=1), warnings
            )
        patterns = request.patterns
        if patterns is None:
            patterns = self._resolve_patterns(pattern_res, warnings)

        planner = self._resolve_planner(catalog_res, warnings)
        result = planner.generate(
            dataclasses.replace(
                request,
                athlete_id=athlete_id,
                starting_fitness=fitness,
                patterns=patterns,
            )
        )
        return await self._save(result, source, warnings, replace=False)

    async def modify_proposal(
        self,
        athlete_id: str,
        plan_id: str,
        modification: PlanModification,
    ) -> PlanProposal:
        """Regenerate a draft plan with changes and replace its days.

        Raises:
            PlanNotFoundError: If the plan does not exist for this athlete.
            ValidationError: If the intensity change is not "lower" or "higher".
            PlanStateError: If the plan is not a draft.
        """
        plan = await self._owned_plan(athlete_id, plan_id)
        if plan.status != PlanStatus.DRAFT:
            raise PlanStateError(
                f"Only draft plans can be modified; plan {plan_id} is {plan.status.value}"
            )

        if (
            modification.intensity is not None
            and modification.intensity not in _MODIFY_HOURS_MULTIPLIER
        ):
            raise ValidationError(
                f"Intensity change must be one of {sorted(_MODIFY_HOURS_MULTIPLIER)}, "
                f"got {modification.intensity!r}"
            )

        warnings: list[str] = []
        fitness_res, pattern_res, catalog_res = await self._gather(
            self.store.get_current_fitness(athlete_id),
            self._pattern_read(athlete_id),
            self.store.get_workout_catalog(),
        )
        fitness, source = self._resolve_fitness(
            fitness_res, plan.start_date - timedelta(days=1), warnings
        )
        patterns = self._resolve_patterns(pattern_res, warnings)

        hours = modification.weekly_hours or plan.weekly_hours_target
        if modification.intensity is not None:
            hours *= _MODIFY_HOURS_MULTIPLIER[modification.intensity]

        event_date = modification.event_date or plan.event_date
        duration = modification.duration_weeks
        if duration is None and modification.event_date is None:
            duration = plan.duration_weeks

        planner = self._resolve_planner(catalog_res, warnings)
        result = planner.generate(
            PlanRequest(
                start_date=plan.start_date,
                goal=modification.goal or plan.goal,
                duration_weeks=duration,
                weekly_hours=hours,
                event_date=event_date,
                key_workout_days=modification.key_workout_days or plan.key_workout_days,
                starting_fitness=fitness,
                patterns=patterns,
                athlete_id=athlete_id,
                plan_id=plan.id,
            )
        )
        return await self._save(result, source, warnings, replace=True)

    async def accept_proposal(self, athlete_id: str, plan_id: str) -> TrainingPlan:
        """Activate a draft, abandoning the athlete's current active plan.

        Read-check-then-write without a lock: two concurrent accepts for the
        same athlete can both succeed and leave two active plans.

        Raises:
            PlanNotFoundError: If the plan does not exist for this athlete.
            PlanStateError: If the plan is not a draft.
            PersistenceError: If a status write fails.
        """
        plan = await self._owned_plan(athlete_id, plan_id)
        if plan.status != PlanStatus.DRAFT:
            raise PlanStateError(
                f"Only draft plans can be accepted; plan {plan_id} is {plan.status.value}"
            )

        current = await self.store.get_active_plan(athlete_id)
        if current is not None and current.id != plan_id:
            await self.store.set_plan_status(current.id, PlanStatus.ABANDONED)
            logger.info("Abandoned plan %s for athlete %s", current.id, athlete_id)
        await self.store.set_plan_status(plan_id, PlanStatus.ACTIVE)
        logger.info("Activated plan %s for athlete %s", plan_id, athlete_id)

        activated = await self.store.get_plan(plan_id)
        return activated if activated is not None else dataclasses.replace(
            plan, status=PlanStatus.ACTIVE
        )

    async def _owned_plan(self, athlete_id: str, plan_id: str) -> TrainingPlan:
        plan = await self.store.get_plan(plan_id)
        if plan is None or plan.athlete_id != athlete_id:
            raise PlanNotFoundError(f"Plan {plan_id} not found for athlete {athlete_id}")
        return plan

    async def _save(
        self,
        result: PlanResult,
        source: str,
        warnings: list[str],
        replace: bool,
    ) -> PlanProposal:
        all_warnings = tuple(dict.fromkeys(warnings + list(result.warnings)))
        plan = result.plan
        try:
            if replace:
                await self.store.replace_plan_days(plan.id, plan.days, plan=plan)
            else:
                await self.store.persist_plan(plan, plan.days)
        except PersistenceError as exc:
            logger.error("Failed to save plan %s: %s", plan.id, exc)
            return PlanProposal(
                result=result,
                fitness_source=source,
                warnings=all_warnings + (f"Plan could not be saved: {exc}",),
                persisted=False,
                persistence_error=str(exc),
            )
        return PlanProposal(
            result=result,
            fitness_source=source,
            warnings=all_warnings,
            persisted=True,
        )

    # ------------------------------------------------------------------
    # Single-day recommendation
    # ------------------------------------------------------------------

    async def suggest_workout(
        self,
        athlete_id: str,
        on: date,
        *,
        phase: TrainingPhase | None = None,
        category: WorkoutCategory | None = None,
        days_since_hard: int | None = None,
        ftp_watts: int | None = None,
        weight_kg: float | None = None,
    ) -> Recommendation:
        """Recommend a workout for ``on``.

        Args:
            athlete_id: Athlete to prescribe for.
            on: Day of the workout.
            phase: Training phase; taken from the active plan when None,
                else maintenance.
            category: Restrict to a category; None lets current form decide.
            days_since_hard: Days since the last hard session, if known.
            ftp_watts: FTP for interval power; engine default when None.
            weight_kg: Body weight; engine default when None.

        Returns:
            A Recommendation. ``prescription.best`` is None when every
            candidate was gated out.
        """
        warnings: list[str] = []
        fitness_res, pattern_res, catalog_res, active_res = await self._gather(
            self.store.get_current_fitness(athlete_id),
            self._pattern_read(athlete_id),
            self.store.get_workout_catalog(),
            self.store.get_active_plan(athlete_id),
        )
        state, source = self._resolve_fitness(fitness_res, on, warnings)
        patterns = self._resolve_patterns(pattern_res, warnings)
        if isinstance(catalog_res, Exception):
            raise PersistenceError(f"Workout catalog unavailable: {catalog_res}", "get_workout_catalog")

        if phase is None:
            phase = self._phase_from_plan(active_res, on, warnings)

        category_reason: str | None = None
        if category is None:
            category, category_reason = suggest_category(state.tsb, state.ctl, phase)

        prescription = self.prescriber.prescribe(
            state,
            phase,
            catalog_res,
            patterns,
            on=on,
            days_since_hard=days_since_hard,
            category=category,
        )
        ftp = ftp_watts or self.defaults.ftp_watts
        intervals = (
            personalize_intervals(prescription.best.template, ftp)
            if prescription.best is not None
            else ()
        )
        return Recommendation(
            prescription=prescription,
            state=state,
            phase=phase,
            fitness_source=source,
            ftp_watts=ftp,
            weight_kg=weight_kg or self.defaults.weight_kg,
            intervals=intervals,
            category_reason=category_reason,
            warnings=tuple(warnings) + prescription.warnings,
        )

    @staticmethod
    def _phase_from_plan(active: Any, on: date, warnings: list[str]) -> TrainingPhase:
        if isinstance(active, Exception):
            logger.warning("Active plan fetch failed: %r", active)
            warnings.append("Active plan unavailable; assuming the maintenance phase")
            return TrainingPhase.MAINTENANCE
        if isinstance(active, TrainingPlan) and active.start_date <= on <= active.end_date:
            week = (on - active.start_date).days // 7 + 1
            return active.phase_for_week(week)
        return TrainingPhase.MAINTENANCE
