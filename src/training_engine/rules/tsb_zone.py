"""TSB zone: match workout intensity to the athlete's current form.

Hard sessions suit a TSB inside the optimal band and are penalised when the
athlete is clearly fatigued; easy sessions suit fatigue and recovery rides
are penalised when the athlete is clearly fresh. "Clearly" means beyond
``tsb_margin`` outside the band.

Reference:
    Coggan & Allen (2010), Performance Manager: TSB as a readiness proxy.
"""

from __future__ import annotations

from training_engine.models.enums import (
    EASY_CATEGORIES,
    HARD_CATEGORIES,
    TSB_ZONE_MATCH,
    TSB_ZONE_MISMATCH,
    WorkoutCategory,
)
from training_engine.models.recommendation import RuleContribution, ScoringContext
from training_engine.models.workout import WorkoutTemplate
from training_engine.rules.base import ScoringRule


def classify_tsb(tsb: float, low: float, high: float, margin: float) -> str:
    """Place a TSB relative to a band: inside, below, above or edge."""
    if low <= tsb <= high:
        return "inside"
    if tsb < low - margin:
        return "below"
    if tsb > high + margin:
        return "above"
    return "edge"


class TSBZoneRule(ScoringRule):
    """±15 depending on how intensity lines up with the current TSB."""

    rule_id = "tsb_zone"
    version = "1.0.0"
    max_points = TSB_ZONE_MATCH

    def score(
        self, template: WorkoutTemplate, context: ScoringContext
    ) -> RuleContribution | None:
        if context.tsb is None:
            return None

        band = context.tsb_band
        zone = classify_tsb(context.tsb, band.min, band.max, context.tsb_margin)
        label = f"TSB {context.tsb:+.1f} vs optimal [{band.min:g}, {band.max:g}]"
        category = template.category

        if category in EASY_CATEGORIES:
            if zone == "below":
                return self.contribution(TSB_ZONE_MATCH, f"{label}: fatigued, easy day fits")
            if zone == "above" and category == WorkoutCategory.RECOVERY:
                return self.contribution(TSB_ZONE_MISMATCH, f"{label}: too fresh for a recovery ride")
            return None

        if zone == "inside":
            return self.contribution(TSB_ZONE_MATCH, f"{label}: in optimal form for intensity")
        if zone == "below" and category in HARD_CATEGORIES:
            return self.contribution(TSB_ZONE_MISMATCH, f"{label}: too fatigued for hard intervals")
        return None
