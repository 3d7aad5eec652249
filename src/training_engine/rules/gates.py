"""Hard gates applied before any scoring.

Order matters only for diagnostics: a template is reported against the
first gate it fails.
"""

from __future__ import annotations

from training_engine.models.enums import PHASE_ALLOWED_CATEGORIES
from training_engine.models.recommendation import ExcludedCandidate, ScoringContext
from training_engine.models.workout import WorkoutTemplate
from training_engine.rules.base import GateRule


class PhaseAllowedGate(GateRule):
    """Categories disallowed in the current phase are excluded entirely."""

    gate_id = "phase_allowed"

    def check(
        self, template: WorkoutTemplate, context: ScoringContext
    ) -> ExcludedCandidate | None:
        if template.category in PHASE_ALLOWED_CATEGORIES[context.phase]:
            return None
        return self.exclude(
            template,
            f"phase={context.phase.name.lower()}",
            f"{template.category.name.lower()} is not prescribed in the "
            f"{context.phase.name.lower()} phase",
        )


class CategoryGate(GateRule):
    """Restricts candidates to the requested categories (slot or user choice)."""

    gate_id = "category"

    def check(
        self, template: WorkoutTemplate, context: ScoringContext
    ) -> ExcludedCandidate | None:
        if context.categories is None or template.category in context.categories:
            return None
        wanted = ",".join(sorted(c.name.lower() for c in context.categories))
        return self.exclude(
            template,
            f"category={wanted}",
            f"{template.category.name.lower()} is not one of the requested categories ({wanted})",
        )


class MaxDurationGate(GateRule):
    """Excludes templates longer than the slot allows (e.g. taper touches)."""

    gate_id = "max_duration"

    def check(
        self, template: WorkoutTemplate, context: ScoringContext
    ) -> ExcludedCandidate | None:
        limit = context.max_duration_minutes
        if limit is None or template.target_duration_minutes <= limit:
            return None
        return self.exclude(
            template,
            f"maxDurationMinutes={limit}",
            f"{template.target_duration_minutes} min exceeds the {limit} min limit",
        )


class MinCTLGate(GateRule):
    """Template requires a minimum chronic load."""

    gate_id = "min_ctl"

    def check(
        self, template: WorkoutTemplate, context: ScoringContext
    ) -> ExcludedCandidate | None:
        min_ctl = template.prerequisites.min_ctl
        if min_ctl is None or context.ctl >= min_ctl:
            return None
        return self.exclude(
            template,
            f"minCTL={min_ctl:g}",
            f"requires CTL >= {min_ctl:g}, current CTL is {context.ctl:.1f}",
        )


class DaysSinceHardGate(GateRule):
    """Template requires rest days since the last hard session.

    An unknown days-since-hard passes.
    """

    gate_id = "min_days_since_hard"

    def check(
        self, template: WorkoutTemplate, context: ScoringContext
    ) -> ExcludedCandidate | None:
        required = template.prerequisites.min_days_since_hard
        if required is None or context.days_since_hard is None:
            return None
        if context.days_since_hard >= required:
            return None
        return self.exclude(
            template,
            f"minDaysSinceHard={required}",
            f"requires {required} days since the last hard session, "
            f"only {context.days_since_hard} elapsed",
        )
