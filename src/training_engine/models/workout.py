"""Workout catalog records: templates, prerequisites and interval structure."""

from __future__ import annotations

from dataclasses import dataclass, field

from training_engine.models.enums import HARD_CATEGORIES, WorkoutCategory


@dataclass(frozen=True)
class Prerequisites:
    """Hard gates a template imposes on the athlete's current state.

    Attributes:
        min_ctl: Minimum chronic load before the workout is appropriate.
        min_days_since_hard: Minimum full days since the last hard session.
    """

    min_ctl: float | None = None
    min_days_since_hard: int | None = None


@dataclass(frozen=True)
class IntervalSet:
    """A repeated work/rest block with power targets as a fraction of FTP."""

    sets: int
    duration_seconds: int
    rest_seconds: int
    power_min_pct: float
    power_max_pct: float


@dataclass(frozen=True)
class PersonalizedInterval:
    """An IntervalSet resolved to watts for a specific FTP."""

    sets: int
    duration_seconds: int
    rest_seconds: int
    target_power_min: int
    target_power_max: int


@dataclass(frozen=True)
class WorkoutTemplate:
    """Immutable catalog entry, not athlete-specific."""

    id: str
    name: str
    category: WorkoutCategory
    target_tss: float
    target_duration_minutes: int
    target_if: float
    prerequisites: Prerequisites = field(default_factory=Prerequisites)
    intervals: tuple[IntervalSet, ...] = field(default_factory=tuple)
    description: str = ""

    @property
    def is_hard(self) -> bool:
        return self.category in HARD_CATEGORIES
