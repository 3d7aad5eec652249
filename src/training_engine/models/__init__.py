"""Data models for the training engine."""

from training_engine.models.enums import (
    EventForm,
    IntensityPreference,
    PlanGoal,
    PlanStatus,
    RecoveryRate,
    TrainingPhase,
    VolumeIntensityPreference,
    WorkoutCategory,
)
from training_engine.models.fitness import (
    DailyStress,
    FitnessState,
    Projection,
    ProjectionPoint,
)
from training_engine.models.patterns import (
    AthletePattern,
    PatternAnalysis,
    SessionOutcome,
    TSBBand,
    TypeSuccess,
)
from training_engine.models.plan import (
    PhaseBlock,
    PlanDay,
    PlanRequest,
    PlanResult,
    TrainingPlan,
    WeekSummary,
)
from training_engine.models.recommendation import (
    ExcludedCandidate,
    Prescription,
    RuleContribution,
    ScoredCandidate,
    ScoringContext,
)
from training_engine.models.workout import (
    IntervalSet,
    PersonalizedInterval,
    Prerequisites,
    WorkoutTemplate,
)

__all__ = [
    "AthletePattern",
    "DailyStress",
    "EventForm",
    "ExcludedCandidate",
    "FitnessState",
    "IntensityPreference",
    "IntervalSet",
    "PatternAnalysis",
    "PersonalizedInterval",
    "PhaseBlock",
    "PlanDay",
    "PlanGoal",
    "PlanRequest",
    "PlanResult",
    "PlanStatus",
    "Prerequisites",
    "Prescription",
    "Projection",
    "ProjectionPoint",
    "RecoveryRate",
    "RuleContribution",
    "ScoredCandidate",
    "ScoringContext",
    "SessionOutcome",
    "TSBBand",
    "TrainingPhase",
    "TrainingPlan",
    "TypeSuccess",
    "VolumeIntensityPreference",
    "WeekSummary",
    "WorkoutCategory",
    "WorkoutTemplate",
]
