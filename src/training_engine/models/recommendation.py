"""Prescriber output: scored and excluded candidates plus the final pick."""

from __future__ import annotations

from dataclasses import dataclass, field

from training_engine.models.enums import TrainingPhase, WorkoutCategory
from training_engine.models.patterns import AthletePattern, TSBBand
from training_engine.models.workout import WorkoutTemplate


@dataclass(frozen=True)
class ScoringContext:
    """Everything gates and scoring rules may look at for one day.

    Attributes:
        phase: Training phase of the day being prescribed.
        ctl: Current (or projected) chronic load.
        tsb: Current form; None for future days where it is unknown.
        weekday: ISO weekday (1=Mon) of the day, if known.
        days_since_hard: Full days since the last hard session, if known.
        patterns: Athlete patterns, only set when confident.
        tsb_band: Optimal TSB band in effect (learned or generic).
        tsb_margin: Distance outside the band before a TSB is "clearly outside".
        categories: Restrict candidates to these categories, if set.
        max_duration_minutes: Exclude longer templates, if set.
        type_success_min_samples: Sessions needed before type success scores.
    """

    phase: TrainingPhase
    ctl: float
    tsb: float | None = None
    weekday: int | None = None
    days_since_hard: int | None = None
    patterns: AthletePattern | None = None
    tsb_band: TSBBand = TSBBand(-10.0, 5.0)
    tsb_margin: float = 5.0
    categories: frozenset[WorkoutCategory] | None = None
    max_duration_minutes: int | None = None
    type_success_min_samples: int = 5


@dataclass(frozen=True)
class RuleContribution:
    """Points a single scoring rule awarded to one candidate."""

    rule_id: str
    points: int
    reason: str


@dataclass(frozen=True)
class ScoredCandidate:
    """A template that passed every gate, with its additive score."""

    template: WorkoutTemplate
    score: int
    contributions: tuple[RuleContribution, ...] = field(default_factory=tuple)

    @property
    def reasons(self) -> tuple[str, ...]:
        return tuple(c.reason for c in self.contributions if c.points != 0)


@dataclass(frozen=True)
class ExcludedCandidate:
    """A template removed by a hard gate, with a human-readable reason."""

    template: WorkoutTemplate
    gate_id: str
    requirement: str  # e.g. "minDaysSinceHard=2"
    reason: str


@dataclass(frozen=True)
class Prescription:
    """Best workout, runners-up and diagnostics for one day."""

    best: ScoredCandidate | None
    alternatives: tuple[ScoredCandidate, ...] = field(default_factory=tuple)
    excluded: tuple[ExcludedCandidate, ...] = field(default_factory=tuple)
    warnings: tuple[str, ...] = field(default_factory=tuple)
    used_patterns: bool = False
    tsb: float | None = None
    nominal_tss: float | None = None

    @property
    def selected_because(self) -> str:
        if self.best is None:
            return "; ".join(self.warnings)
        reasons = self.best.reasons
        if not reasons:
            return f"Best available {self.best.template.category.name.lower()} workout"
        return "; ".join(reasons)
