"""Type success: favour categories the athlete reliably completes.

Reference:
    Foster et al. (2001), A new approach to monitoring exercise training
    (session RPE).
"""

from __future__ import annotations

from training_engine.models.enums import (
    RPE_STRUGGLE_THRESHOLD,
    TYPE_SUCCESS_BONUS,
    TYPE_SUCCESS_COMPLETION_HIGH,
    TYPE_SUCCESS_COMPLETION_LOW,
    TYPE_SUCCESS_PENALTY,
)
from training_engine.models.recommendation import RuleContribution, ScoringContext
from training_engine.models.workout import WorkoutTemplate
from training_engine.rules.base import ScoringRule


class TypeSuccessRule(ScoringRule):
    """±10 from per-category completion rate and average RPE."""

    rule_id = "type_success"
    version = "1.0.0"
    max_points = TYPE_SUCCESS_BONUS

    def score(
        self, template: WorkoutTemplate, context: ScoringContext
    ) -> RuleContribution | None:
        if context.patterns is None:
            return None
        stats = context.patterns.type_success_rates.get(template.category)
        if stats is None or stats.sample_size < context.type_success_min_samples:
            return None

        category = template.category.name.lower()
        struggling = stats.avg_rpe is not None and stats.avg_rpe > RPE_STRUGGLE_THRESHOLD
        if stats.completion_rate < TYPE_SUCCESS_COMPLETION_LOW or struggling:
            return self.contribution(
                TYPE_SUCCESS_PENALTY,
                f"{category} completion {stats.completion_rate:.0%}"
                + (f", avg RPE {stats.avg_rpe:.1f}" if stats.avg_rpe is not None else ""),
            )
        if stats.completion_rate >= TYPE_SUCCESS_COMPLETION_HIGH:
            return self.contribution(
                TYPE_SUCCESS_BONUS,
                f"{category} completed {stats.completion_rate:.0%} of the time",
            )
        return None
