"""Plan goal descriptors and goal selection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from training_engine.models.enums import TAPER_GOAL_MAX_WEEKS, PlanGoal


@dataclass(frozen=True)
class GoalDescriptor:
    """Display and applicability data for one plan goal."""

    goal: PlanGoal
    name: str
    description: str
    default_weeks: int
    min_ctl: float


GOALS: dict[PlanGoal, GoalDescriptor] = {
    PlanGoal.BASE_BUILD: GoalDescriptor(
        PlanGoal.BASE_BUILD,
        "Base Building",
        "Aerobic foundation with progressive endurance volume.",
        default_weeks=4,
        min_ctl=0.0,
    ),
    PlanGoal.FTP_BUILD: GoalDescriptor(
        PlanGoal.FTP_BUILD,
        "FTP Builder",
        "Raise threshold power with sweet spot and threshold work.",
        default_weeks=8,
        min_ctl=40.0,
    ),
    PlanGoal.EVENT_PREP: GoalDescriptor(
        PlanGoal.EVENT_PREP,
        "Event Preparation",
        "Full periodized build peaking on the event date.",
        default_weeks=12,
        min_ctl=35.0,
    ),
    PlanGoal.TAPER: GoalDescriptor(
        PlanGoal.TAPER,
        "Pre-Event Taper",
        "Shed fatigue while holding sharpness for the event.",
        default_weeks=3,
        min_ctl=50.0,
    ),
    PlanGoal.MAINTENANCE: GoalDescriptor(
        PlanGoal.MAINTENANCE,
        "Fitness Maintenance",
        "Hold current fitness with balanced weekly load.",
        default_weeks=4,
        min_ctl=30.0,
    ),
}


def select_goal(
    ctl: float, start_date: date, event_date: date | None
) -> tuple[PlanGoal, str]:
    """Pick a goal when the athlete did not name one.

    Args:
        ctl: Current chronic training load.
        start_date: First day of the plan.
        event_date: Target event, if any.

    Returns:
        Tuple of (goal, human-readable reason).
    """
    if event_date is not None:
        weeks_out = (event_date - start_date).days / 7
        if weeks_out <= TAPER_GOAL_MAX_WEEKS:
            return PlanGoal.TAPER, f"Event is {weeks_out:.0f} weeks away, time to taper"
        return PlanGoal.EVENT_PREP, f"Event is {weeks_out:.0f} weeks away, full preparation"
    if ctl < GOALS[PlanGoal.FTP_BUILD].min_ctl:
        return PlanGoal.BASE_BUILD, f"CTL {ctl:.0f} is below {GOALS[PlanGoal.FTP_BUILD].min_ctl:.0f}, build base first"
    return PlanGoal.FTP_BUILD, f"CTL {ctl:.0f} supports threshold development"
