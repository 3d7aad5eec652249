"""Athlete patterns mined from historical session outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping

from training_engine.models.enums import (
    RecoveryRate,
    VolumeIntensityPreference,
    WorkoutCategory,
)


@dataclass(frozen=True)
class SessionOutcome:
    """One planned or performed session and how it went.

    Attributes:
        date: Session date.
        category: Workout category of the session.
        completed: Whether the athlete did the session as planned.
        rpe: Session RPE on a 1-10 scale, if reported.
        tss: Training stress of the session.
        duration_minutes: Session duration.
        tsb: Form (TSB) on the morning of the session, if known.
    """

    date: date
    category: WorkoutCategory
    completed: bool
    rpe: float | None = None
    tss: float = 0.0
    duration_minutes: float = 0.0
    tsb: float | None = None


@dataclass(frozen=True)
class TSBBand:
    """Inclusive TSB window."""

    min: float
    max: float

    def contains(self, tsb: float) -> bool:
        return self.min <= tsb <= self.max


@dataclass(frozen=True)
class TypeSuccess:
    """Per-category completion statistics."""

    completion_rate: float
    avg_rpe: float | None
    sample_size: int
    best_days: tuple[int, ...] = field(default_factory=tuple)
    worst_days: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AthletePattern:
    """Derived, read-mostly tendencies of one athlete.

    Callers must check ``is_confident`` before applying any field.
    ``day_of_week_affinity`` maps ISO weekday (1=Mon) to a score in [-1, 1]
    for intensity sessions.
    """

    recovery_rate: RecoveryRate
    optimal_tsb: TSBBand | None
    day_of_week_affinity: Mapping[int, float]
    volume_intensity_preference: VolumeIntensityPreference
    type_success_rates: Mapping[WorkoutCategory, TypeSuccess]
    confidence: float
    data_points: int
    recovery_days: float | None = None
    weekly_hours_sweet_spot: tuple[float, float] | None = None

    def is_confident(self, min_confidence: float, min_data_points: int) -> bool:
        return self.data_points >= min_data_points and self.confidence >= min_confidence


@dataclass(frozen=True)
class PatternAnalysis:
    """Analyzer result: either a pattern or an explicit "insufficient data"."""

    sufficient: bool
    data_points: int
    pattern: AthletePattern | None = None
    reason: str = ""
