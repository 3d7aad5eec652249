"""Day-of-week affinity from the athlete's completion history.

Asymmetric: +15 for a historically good weekday, -20 for a
historically bad one. Per-category best/worst days take precedence over the
general intensity-day affinity.
"""

from __future__ import annotations

from training_engine.models.enums import (
    DAY_AFFINITY_AVOID,
    DAY_AFFINITY_MATCH,
    DAY_AFFINITY_THRESHOLD,
    INTENSITY_CATEGORIES,
)
from training_engine.models.recommendation import RuleContribution, ScoringContext
from training_engine.models.workout import WorkoutTemplate
from training_engine.rules.base import ScoringRule

_DAY_NAMES = ("", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class DayAffinityRule(ScoringRule):
    """Bias toward weekdays on which this athlete completes this kind of work."""

    rule_id = "day_affinity"
    version = "1.0.0"
    max_points = abs(DAY_AFFINITY_AVOID)

    def score(
        self, template: WorkoutTemplate, context: ScoringContext
    ) -> RuleContribution | None:
        patterns = context.patterns
        weekday = context.weekday
        if patterns is None or weekday is None:
            return None

        day_name = _DAY_NAMES[weekday]
        category = template.category.name.lower()
        stats = patterns.type_success_rates.get(template.category)
        if stats is not None and (stats.best_days or stats.worst_days):
            if weekday in stats.worst_days:
                return self.contribution(DAY_AFFINITY_AVOID, f"{category} often goes badly on {day_name}")
            if weekday in stats.best_days:
                return self.contribution(DAY_AFFINITY_MATCH, f"{category} usually goes well on {day_name}")
            return None

        if template.category not in INTENSITY_CATEGORIES:
            return None
        affinity = patterns.day_of_week_affinity.get(weekday)
        if affinity is None:
            return None
        if affinity >= DAY_AFFINITY_THRESHOLD:
            return self.contribution(DAY_AFFINITY_MATCH, f"{day_name} is a strong intensity day")
        if affinity <= -DAY_AFFINITY_THRESHOLD:
            return self.contribution(DAY_AFFINITY_AVOID, f"intensity on {day_name} is often skipped or hard")
        return None
