"""Abstract base classes for prescriber gates and scoring rules."""

from __future__ import annotations

from abc import ABC, abstractmethod

from training_engine.models.recommendation import (
    ExcludedCandidate,
    RuleContribution,
    ScoringContext,
)
from training_engine.models.workout import WorkoutTemplate


class GateRule(ABC):
    """Hard gate: a failing template is removed, never merely penalised.

    Subclasses must define:
        gate_id: unique identifier (e.g. "min_ctl")
        check(): return an ExcludedCandidate when the template fails
    """

    gate_id: str

    @abstractmethod
    def check(
        self, template: WorkoutTemplate, context: ScoringContext
    ) -> ExcludedCandidate | None:
        """Return an ExcludedCandidate if ``template`` fails this gate, else None."""
        ...

    def exclude(
        self, template: WorkoutTemplate, requirement: str, reason: str
    ) -> ExcludedCandidate:
        return ExcludedCandidate(
            template=template,
            gate_id=self.gate_id,
            requirement=requirement,
            reason=reason,
        )


class ScoringRule(ABC):
    """One independent, bounded scoring signal.

    Subclasses must define:
        rule_id: unique identifier (e.g. "tsb_zone")
        version: semantic version string
        max_points: absolute bound on the points this rule can award
        score(): the rule's scoring logic
    """

    rule_id: str
    version: str
    max_points: int

    @abstractmethod
    def score(
        self, template: WorkoutTemplate, context: ScoringContext
    ) -> RuleContribution | None:
        """Score one candidate.

        Returns a RuleContribution if the rule has something to say,
        or None if the rule is not applicable.
        """
        ...

    def contribution(self, points: int, reason: str) -> RuleContribution:
        bounded = max(-self.max_points, min(self.max_points, points))
        return RuleContribution(rule_id=self.rule_id, points=bounded, reason=reason)
