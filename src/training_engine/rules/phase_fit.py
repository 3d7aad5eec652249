"""Phase fit: bonus for categories canonical to the current phase.

Reference:
    Bompa & Haff (2009): each mesocycle emphasises specific intensities.
"""

from __future__ import annotations

from training_engine.models.enums import PHASE_CANONICAL_CATEGORIES, PHASE_FIT_BONUS
from training_engine.models.recommendation import RuleContribution, ScoringContext
from training_engine.models.workout import WorkoutTemplate
from training_engine.rules.base import ScoringRule


class PhaseFitRule(ScoringRule):
    """Awards a flat bonus to canonical categories for the phase."""

    rule_id = "phase_fit"
    version = "1.0.0"
    max_points = PHASE_FIT_BONUS

    def score(
        self, template: WorkoutTemplate, context: ScoringContext
    ) -> RuleContribution | None:
        if template.category not in PHASE_CANONICAL_CATEGORIES[context.phase]:
            return None
        return self.contribution(
            PHASE_FIT_BONUS,
            f"{template.category.name.lower()} is core work for the "
            f"{context.phase.name.lower()} phase",
        )
