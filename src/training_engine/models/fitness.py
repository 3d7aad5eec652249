"""Fitness snapshots, daily stress entries and projection records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from training_engine.errors import ValidationError
from training_engine.models.enums import EventForm, TrainingPhase


@dataclass(frozen=True)
class FitnessState:
    """CTL/ATL anchored to a date. TSB is always derived, never stored."""

    date: date
    ctl: float
    atl: float

    def __post_init__(self) -> None:
        if self.ctl < 0 or self.atl < 0:
            raise ValidationError(
                f"CTL and ATL must be non-negative, got ctl={self.ctl}, atl={self.atl}"
            )

    @property
    def tsb(self) -> float:
        return self.ctl - self.atl


@dataclass(frozen=True)
class DailyStress:
    """Training stress for one calendar day (0 for rest days)."""

    date: date
    tss: float

    def __post_init__(self) -> None:
        if self.tss is None or self.tss < 0:
            raise ValidationError(f"TSS for {self.date} must be >= 0, got {self.tss}")


@dataclass(frozen=True)
class ProjectionPoint:
    """Simulated fitness at the end of one day."""

    date: date
    ctl: float
    atl: float
    tss: float
    phase: TrainingPhase | None = None
    is_event: bool = False
    is_taper: bool = False

    @property
    def tsb(self) -> float:
        return self.ctl - self.atl


@dataclass(frozen=True)
class Projection:
    """Result of folding the fitness model across a stress series.

    All values are unrounded; rounding happens in the serialization layer.
    """

    points: tuple[ProjectionPoint, ...]
    start_fitness: FitnessState
    end_fitness: FitnessState
    peak_ctl: float
    peak_ctl_date: date
    event_fitness: ProjectionPoint | None = None
    event_form: EventForm | None = None
    total_tss: float = 0.0
    days_in_optimal_band: int = 0

    @property
    def ctl_gain(self) -> float:
        return self.end_fitness.ctl - self.start_fitness.ctl

    @property
    def average_tss(self) -> float:
        if not self.points:
            return 0.0
        return self.total_tss / len(self.points)
