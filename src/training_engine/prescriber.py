"""WorkoutPrescriber: pick the best workout for a day from the catalog.

Scoring is an explicit, ordered pipeline:

1. Hard gates (phase-allowed category, requested category, duration limit,
   minCTL, minDaysSinceHard) remove candidates and record why.
2. Scoring rules (phase fit, TSB zone, day-of-week affinity, type success)
   each add a bounded number of points.
3. ``compare_candidates`` orders survivors: score, then closeness of target
   TSS to the nominal daily target, then template id.
"""

from __future__ import annotations

import functools
from datetime import date
from typing import Iterable, Sequence

from training_engine.catalog.workout_library import validate_catalog
from training_engine.config import EngineDefaults
from training_engine.models.enums import (
    PHASE_ALLOWED_CATEGORIES,
    PHASE_DAILY_LOAD_FACTOR,
    TrainingPhase,
    WorkoutCategory,
)
from training_engine.models.fitness import FitnessState
from training_engine.models.patterns import AthletePattern, TSBBand
from training_engine.models.recommendation import (
    ExcludedCandidate,
    Prescription,
    ScoredCandidate,
    ScoringContext,
)
from training_engine.models.workout import WorkoutTemplate
from training_engine.rules.base import GateRule, ScoringRule
from training_engine.rules.day_affinity import DayAffinityRule
from training_engine.rules.gates import (
    CategoryGate,
    DaysSinceHardGate,
    MaxDurationGate,
    MinCTLGate,
    PhaseAllowedGate,
)
from training_engine.rules.phase_fit import PhaseFitRule
from training_engine.rules.tsb_zone import TSBZoneRule
from training_engine.rules.type_success import TypeSuccessRule


def default_gates() -> list[GateRule]:
    """Hard gates in evaluation order."""
    return [
        PhaseAllowedGate(),
        CategoryGate(),
        MaxDurationGate(),
        MinCTLGate(),
        DaysSinceHardGate(),
    ]


def default_scoring_rules() -> list[ScoringRule]:
    """Scoring rules in evaluation order."""
    return [
        PhaseFitRule(),
        TSBZoneRule(),
        DayAffinityRule(),
        TypeSuccessRule(),
    ]


def nominal_daily_tss(ctl: float, phase: TrainingPhase) -> float:
    """Daily TSS the phase aims for at the current fitness level."""
    return ctl * PHASE_DAILY_LOAD_FACTOR[phase]


def compare_candidates(a: ScoredCandidate, b: ScoredCandidate, nominal_tss: float) -> int:
    """Total order over scored candidates; negative means ``a`` ranks first.

    Higher score wins; ties go to the target TSS closer to ``nominal_tss``,
    then to the lexicographically smaller template id.
    """
    if a.score != b.score:
        return -1 if a.score > b.score else 1
    dist_a = abs(a.template.target_tss - nominal_tss)
    dist_b = abs(b.template.target_tss - nominal_tss)
    if dist_a != dist_b:
        return -1 if dist_a < dist_b else 1
    if a.template.id != b.template.id:
        return -1 if a.template.id < b.template.id else 1
    return 0


def _gated_out_warning(excluded: Sequence[ExcludedCandidate]) -> str:
    """Name each blocking requirement; phase exclusions only when nothing else blocks."""
    blocking = [e for e in excluded if e.gate_id != PhaseAllowedGate.gate_id] or list(excluded)
    requirements: list[str] = []
    for item in blocking:
        if item.requirement not in requirements:
            requirements.append(item.requirement)
    return "no candidates satisfy " + ", ".join(requirements)


def suggest_category(
    tsb: float, ctl: float, phase: TrainingPhase
) -> tuple[WorkoutCategory, str]:
    """Suggest a workout category from current form alone.

    Used when the caller asks for "any" workout. The suggestion is bounded
    to the categories the phase allows, falling back to endurance.

    Args:
        tsb: Current training stress balance.
        ctl: Current chronic training load.
        phase: Current training phase.

    Returns:
        Tuple of (category, reason).
    """
    if tsb < -25:
        category, reason = WorkoutCategory.RECOVERY, f"TSB {tsb:.0f} indicates significant fatigue"
    elif tsb < -15:
        category, reason = WorkoutCategory.ENDURANCE, f"TSB {tsb:.0f} suggests building fatigue"
    elif tsb < -5:
        if ctl < 50:
            category, reason = WorkoutCategory.SWEETSPOT, "Moderate fatigue with developing fitness"
        else:
            category, reason = WorkoutCategory.TEMPO, "Moderate fatigue, tempo maintains fitness"
    elif tsb < 10:
        if phase == TrainingPhase.BASE:
            category, reason = WorkoutCategory.SWEETSPOT, "Good training window in the base phase"
        else:
            category, reason = WorkoutCategory.THRESHOLD, "Good form for quality work"
    elif tsb < 25:
        category, reason = WorkoutCategory.VO2MAX, f"Fresh with TSB {tsb:.0f}, a day for high intensity"
    else:
        category, reason = WorkoutCategory.THRESHOLD, f"Very fresh (TSB {tsb:.0f}), train to avoid detraining"

    if category not in PHASE_ALLOWED_CATEGORIES[phase]:
        return WorkoutCategory.ENDURANCE, f"{reason}; {category.name.lower()} is not used in the {phase.name.lower()} phase"
    return category, reason


class WorkoutPrescriber:
    """Scores catalog templates and returns the best match for a day.

    Usage:
        prescriber = WorkoutPrescriber()
        result = prescriber.prescribe(state, TrainingPhase.BUILD, catalog, patterns)
    """

    def __init__(
        self,
        defaults: EngineDefaults | None = None,
        gates: list[GateRule] | None = None,
        rules: list[ScoringRule] | None = None,
    ) -> None:
        self.defaults = defaults or EngineDefaults()
        self.gates = gates if gates is not None else default_gates()
        self.rules = rules if rules is not None else default_scoring_rules()

    def confident_patterns(
        self, patterns: AthletePattern | None
    ) -> tuple[AthletePattern | None, list[str]]:
        """Drop patterns that are below the configured confidence bar."""
        if patterns is None:
            return None, []
        if patterns.is_confident(
            self.defaults.pattern_min_confidence, self.defaults.pattern_min_data_points
        ):
            return patterns, []
        return None, [
            f"Pattern data ({patterns.data_points} sessions, confidence "
            f"{patterns.confidence:.2f}) is below threshold; using generic defaults"
        ]

    def tsb_band(self, patterns: AthletePattern | None) -> TSBBand:
        if patterns is not None and patterns.optimal_tsb is not None:
            return patterns.optimal_tsb
        return TSBBand(self.defaults.generic_tsb_min, self.defaults.generic_tsb_max)

    def prescribe(
        self,
        state: FitnessState,
        phase: TrainingPhase,
        catalog: Iterable[WorkoutTemplate],
        patterns: AthletePattern | None = None,
        *,
        on: date | None = None,
        days_since_hard: int | None = None,
        nominal_tss: float | None = None,
        category: WorkoutCategory | None = None,
    ) -> Prescription:
        """Choose today's workout.

        Args:
            state: Current fitness snapshot; its TSB drives the TSB-zone rule.
            phase: Current training phase.
            catalog: Candidate templates (ids must be unique).
            patterns: Athlete patterns; ignored unless confident.
            on: Day being prescribed; defaults to ``state.date``.
            days_since_hard: Days since the last hard session, if known.
            nominal_tss: Tie-break target; defaults to the phase's nominal
                daily TSS at the current CTL.
            category: Restrict to a single category.

        Returns:
            A Prescription with best, alternatives, excluded and warnings.

        Raises:
            ValidationError: If the catalog contains duplicate ids.
        """
        usable, warnings = self.confident_patterns(patterns)
        day = on or state.date
        context = ScoringContext(
            phase=phase,
            ctl=state.ctl,
            tsb=state.tsb,
            weekday=day.isoweekday(),
            days_since_hard=days_since_hard,
            patterns=usable,
            tsb_band=self.tsb_band(usable),
            tsb_margin=self.defaults.tsb_margin,
            categories=frozenset({category}) if category is not None else None,
            type_success_min_samples=self.defaults.type_success_min_samples,
        )
        target = nominal_tss if nominal_tss is not None else nominal_daily_tss(state.ctl, phase)
        result = self.rank(catalog, context, target)
        return Prescription(
            best=result.best,
            alternatives=result.alternatives,
            excluded=result.excluded,
            warnings=tuple(warnings) + result.warnings,
            used_patterns=usable is not None,
            tsb=state.tsb,
            nominal_tss=target,
        )

    def rank(
        self,
        catalog: Iterable[WorkoutTemplate],
        context: ScoringContext,
        nominal_tss: float,
    ) -> Prescription:
        """Gate, score and order candidates for a prepared context.

        The planner calls this directly for future days, where the context
        carries no TSB.
        """
        templates = validate_catalog(catalog)
        if not templates:
            return Prescription(best=None, warnings=("workout catalog is empty",))

        excluded: list[ExcludedCandidate] = []
        scored: list[ScoredCandidate] = []
        for template in templates:
            failure = self._first_gate_failure(template, context)
            if failure is not None:
                excluded.append(failure)
                continue
            contributions = tuple(
                c for c in (rule.score(template, context) for rule in self.rules) if c is not None
            )
            scored.append(
                ScoredCandidate(
                    template=template,
                    score=sum(c.points for c in contributions),
                    contributions=contributions,
                )
            )

        if not scored:
            return Prescription(
                best=None,
                excluded=tuple(excluded),
                warnings=(_gated_out_warning(excluded),),
                tsb=context.tsb,
                nominal_tss=nominal_tss,
            )

        ordered = sorted(
            scored,
            key=functools.cmp_to_key(lambda a, b: compare_candidates(a, b, nominal_tss)),
        )
        return Prescription(
            best=ordered[0],
            alternatives=tuple(ordered[1 : 1 + self.defaults.alternatives]),
            excluded=tuple(excluded),
            tsb=context.tsb,
            nominal_tss=nominal_tss,
        )

    def _first_gate_failure(
        self, template: WorkoutTemplate, context: ScoringContext
    ) -> ExcludedCandidate | None:
        for gate in self.gates:
            failure = gate.check(template, context)
            if failure is not None:
                return failure
        return None
