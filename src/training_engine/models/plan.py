"""Training plan records: requests, plan days, phases and week summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from training_engine.models.enums import (
    IntensityPreference,
    PlanGoal,
    PlanStatus,
    TrainingPhase,
    WorkoutCategory,
)
from training_engine.models.fitness import FitnessState, Projection
from training_engine.models.patterns import AthletePattern
from training_engine.models.workout import PersonalizedInterval


@dataclass(frozen=True)
class PlanRequest:
    """Everything the planner needs to generate one plan.

    Attributes:
        start_date: First day of the plan.
        goal: Plan goal; chosen from fitness and event proximity when None.
        duration_weeks: Plan length; derived from the event date when None.
        weekly_hours: Weekly hours target; engine default when None.
        event_date: Target event, if any.
        key_workout_days: ISO weekdays (1=Mon) for key workouts.
        starting_fitness: Fitness snapshot; engine default when None.
        patterns: Athlete patterns, applied only when confident.
        intensity: Scales the weekly hours target.
        days_since_hard: Days since the last hard session before the plan.
        ftp_watts: FTP used to resolve interval power; engine default when None.
        allow_pre_event_training: Skip the forced quiet days before the event.
        athlete_id: Owner of the plan.
        plan_id: Identifier to use; a random one is generated when None.
        name: Display name; derived from the goal when None.
    """

    start_date: date
    goal: PlanGoal | None = None
    duration_weeks: int | None = None
    weekly_hours: float | None = None
    event_date: date | None = None
    key_workout_days: tuple[int, ...] | None = None
    starting_fitness: FitnessState | None = None
    patterns: AthletePattern | None = None
    intensity: IntensityPreference = IntensityPreference.MODERATE
    days_since_hard: int | None = None
    ftp_watts: int | None = None
    allow_pre_event_training: bool = False
    athlete_id: str | None = None
    plan_id: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class PlanDay:
    """One calendar day of a plan.

    Completion fields are written by external events; the planner only
    produces their initial shape.
    """

    date: date
    week_number: int
    day_of_week: int  # ISO weekday, 1=Mon
    workout_template_ref: str | None = None
    workout_name: str | None = None
    category: WorkoutCategory | None = None
    target_tss: float | None = None
    target_duration_minutes: int | None = None
    target_if: float | None = None
    is_key_workout: bool = False
    is_event: bool = False
    intervals: tuple[PersonalizedInterval, ...] = field(default_factory=tuple)
    completed: bool = False
    skipped: bool = False
    actual_tss: float | None = None
    actual_duration_minutes: int | None = None

    @property
    def is_rest(self) -> bool:
        return self.workout_template_ref is None


@dataclass(frozen=True)
class PhaseBlock:
    """A contiguous run of weeks sharing a training phase."""

    phase: TrainingPhase
    start_week: int  # 1-indexed
    end_week: int  # inclusive
    focus_description: str
    target_weekly_tss: float

    @property
    def duration_weeks(self) -> int:
        return self.end_week - self.start_week + 1


@dataclass(frozen=True)
class TrainingPlan:
    """A generated plan owned by one athlete."""

    id: str
    name: str
    goal: PlanGoal
    start_date: date
    end_date: date
    duration_weeks: int
    weekly_hours_target: float
    phases: tuple[PhaseBlock, ...]
    days: tuple[PlanDay, ...]
    event_date: date | None = None
    key_workout_days: tuple[int, ...] = field(default_factory=tuple)
    athlete_id: str | None = None
    status: PlanStatus = PlanStatus.DRAFT
    version: int = 1

    def phase_for_week(self, week: int) -> TrainingPhase:
        for block in self.phases:
            if block.start_week <= week <= block.end_week:
                return block.phase
        raise ValueError(f"Week {week} is outside plan range (1-{self.duration_weeks})")


@dataclass(frozen=True)
class WeekSummary:
    """Per-week view of a plan used by proposal payloads."""

    week_number: int
    phase: TrainingPhase
    focus: str
    target_tss: float
    planned_tss: float
    is_back_off: bool
    days: tuple[PlanDay, ...]
    ramp_clamped: bool = False


@dataclass(frozen=True)
class PlanResult:
    """Planner output: the plan, its preview projection and any warnings."""

    plan: TrainingPlan
    week_summaries: tuple[WeekSummary, ...]
    projection: Projection
    warnings: tuple[str, ...] = field(default_factory=tuple)
    template_reason: str = ""

    @property
    def workout_days(self) -> int:
        return sum(1 for d in self.plan.days if not d.is_rest)

    @property
    def rest_days(self) -> int:
        return sum(1 for d in self.plan.days if d.is_rest and not d.is_event)

    @property
    def average_weekly_tss(self) -> float:
        if not self.week_summaries:
            return 0.0
        return sum(w.planned_tss for w in self.week_summaries) / len(self.week_summaries)
