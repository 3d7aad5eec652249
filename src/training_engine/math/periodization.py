"""Periodization math: phase allocation, back-off cadence, weekly TSS schedule.

Implements goal-driven phase layouts over whole weeks:
- ``event_prep`` splits base/build/peak/taper 40/40/10/10, collapsing peak
  into build below 8 weeks and base below 4 weeks
- Back-off weeks every 4th consecutive loading week, counted across phase
  boundaries
- Week-over-week ramp ceiling on planned TSS, clamped and reported

References:
    Bompa & Haff (2009), Periodization: Theory and Methodology of Training.
    Mujika & Padilla (2003), Scientific bases for precompetition tapering.
    Gabbett (2016), The training-injury prevention paradox.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date

from training_engine.models.enums import (
    LOADING_PHASES,
    MAX_PLAN_WEEKS,
    PHASE_WEEKLY_LOAD,
    TAPER_FINAL_WEEK_LOAD,
    PlanGoal,
    TrainingPhase,
)


@dataclass(frozen=True)
class PhaseSpec:
    """Specification for a single training phase within the plan."""

    phase: TrainingPhase
    start_week: int  # 1-indexed
    end_week: int  # inclusive
    duration_weeks: int


@dataclass(frozen=True)
class WeekTarget:
    """Planned weekly stress for one week of the plan."""

    week: int
    phase: TrainingPhase
    target_tss: float
    is_back_off: bool = False
    ramp_clamped: bool = False


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.floor(value + 0.5))


def _whole_weeks(fraction: float, total_weeks: int) -> int:
    return round_half_up(fraction * total_weeks)


def _phase_durations(goal: PlanGoal, n: int) -> list[tuple[TrainingPhase, int]]:
    if goal is PlanGoal.EVENT_PREP:
        if n >= 8:
            taper = max(1, _whole_weeks(0.10, n))
            peak = max(1, _whole_weeks(0.10, n))
            base = _whole_weeks(0.40, n)
            build = n - base - peak - taper
            return [
                (TrainingPhase.BASE, base),
                (TrainingPhase.BUILD, build),
                (TrainingPhase.PEAK, peak),
                (TrainingPhase.TAPER, taper),
            ]
        if n >= 4:
            # Peak collapses into build
            base = _whole_weeks(0.40, n)
            return [
                (TrainingPhase.BASE, base),
                (TrainingPhase.BUILD, n - base - 1),
                (TrainingPhase.TAPER, 1),
            ]
        return [(TrainingPhase.BUILD, n - 1), (TrainingPhase.TAPER, 1)]

    if goal is PlanGoal.FTP_BUILD:
        base = _whole_weeks(0.25, n) if n >= 6 else 0
        return [(TrainingPhase.BASE, base), (TrainingPhase.BUILD, n - base)]

    if goal is PlanGoal.TAPER:
        taper = min(2, n)
        return [(TrainingPhase.PEAK, n - taper), (TrainingPhase.TAPER, taper)]

    if goal is PlanGoal.MAINTENANCE:
        return [(TrainingPhase.MAINTENANCE, n)]

    return [(TrainingPhase.BASE, n)]


def allocate_phases(goal: PlanGoal, total_weeks: int) -> list[PhaseSpec]:
    """Allocate the plan's weeks into phases for a goal.

    Args:
        goal: The plan goal.
        total_weeks: Plan length in whole weeks (1 to MAX_PLAN_WEEKS).

    Returns:
        List of PhaseSpec in chronological order covering every week.

    Raises:
        ValueError: If total_weeks is outside 1..MAX_PLAN_WEEKS.
    """
    if total_weeks < 1 or total_weeks > MAX_PLAN_WEEKS:
        raise ValueError(
            f"Plan must be 1-{MAX_PLAN_WEEKS} weeks, got {total_weeks}"
        )

    phases: list[PhaseSpec] = []
    current_week = 1
    for phase_type, duration in _phase_durations(goal, total_weeks):
        if duration > 0:
            phases.append(
                PhaseSpec(
                    phase=phase_type,
                    start_week=current_week,
                    end_week=current_week + duration - 1,
                    duration_weeks=duration,
                )
            )
            current_week += duration
    return phases


def get_phase_for_week(week: int, phases: list[PhaseSpec]) -> TrainingPhase:
    """Determine which training phase a given week falls in.

    Args:
        week: 1-indexed week number.
        phases: List of PhaseSpec from allocate_phases().

    Returns:
        The TrainingPhase for that week.

    Raises:
        ValueError: If week is outside the plan range.
    """
    for spec in phases:
        if spec.start_week <= week <= spec.end_week:
            return spec.phase
    raise ValueError(
        f"Week {week} is outside plan range "
        f"(1-{phases[-1].end_week if phases else 0})"
    )


def phase_load(phase: TrainingPhase, week_in_phase: int = 0) -> float:
    """Weekly TSS multiple of the athlete's baseline week for a phase.

    Taper weeks step down: the first taper week uses the phase level, later
    taper weeks the final-week level.
    """
    if phase == TrainingPhase.TAPER and week_in_phase > 0:
        return TAPER_FINAL_WEEK_LOAD
    return PHASE_WEEKLY_LOAD[phase]


def baseline_weekly_tss(ctl: float, weekly_hours: float) -> float:
    """Starting weekly TSS blending current fitness with available time.

    Seven days at CTL holds fitness; an hour of endurance riding is roughly
    60 TSS. The two estimates are averaged.
    """
    return (ctl * 7 + weekly_hours * 60) / 2


def weekly_tss_schedule(
    phases: list[PhaseSpec],
    baseline_tss: float,
    ramp_ceiling: float,
    back_off_interval: int,
    back_off_fraction: float,
) -> tuple[list[WeekTarget], list[str]]:
    """Compute the weekly TSS target for every week of the plan.

    Targets are flat within a phase apart from back-off weeks. A loading
    week may not exceed ``(1 + ramp_ceiling)`` times the last non-back-off
    week; larger steps are clamped and reported.

    Args:
        phases: Phase allocation from allocate_phases().
        baseline_tss: Weekly TSS of the athlete's current baseline week.
        ramp_ceiling: Max fractional week-over-week increase.
        back_off_interval: Every Nth consecutive loading week backs off.
        back_off_fraction: Back-off target as a fraction of the prior week.

    Returns:
        Tuple of (week targets in order, warnings).
    """
    targets: list[WeekTarget] = []
    warnings: list[str] = []
    consecutive_loading = 0
    reference: float | None = None
    total_weeks = phases[-1].end_week if phases else 0

    for week in range(1, total_weeks + 1):
        spec = next(s for s in phases if s.start_week <= week <= s.end_week)
        phase = spec.phase

        back_off = False
        if phase in LOADING_PHASES:
            if targets and consecutive_loading >= back_off_interval - 1:
                back_off = True
                consecutive_loading = 0
            else:
                consecutive_loading += 1
        else:
            consecutive_loading = 0

        clamped = False
        if back_off:
            target = float(round_half_up(targets[-1].target_tss * back_off_fraction))
        else:
            target = float(round_half_up(baseline_tss * phase_load(phase, week - spec.start_week)))
            if reference is not None and target > reference * (1 + ramp_ceiling):
                ceiling = float(math.floor(reference * (1 + ramp_ceiling)))
                warnings.append(
                    f"Week {week}: target {target:.0f} TSS exceeds the "
                    f"{ramp_ceiling:.0%} ramp ceiling; clamped to {ceiling:.0f}"
                )
                target = ceiling
                clamped = True
            reference = target

        targets.append(
            WeekTarget(
                week=week,
                phase=phase,
                target_tss=target,
                is_back_off=back_off,
                ramp_clamped=clamped,
            )
        )

    return targets, warnings


# ---------------------------------------------------------------------------
# Date-driven utilities
# ---------------------------------------------------------------------------


def compute_plan_weeks(start_date: date, event_date: date) -> int:
    """Weeks needed so the event falls in the final week or the day after it.

    Args:
        start_date: First day of training.
        event_date: Event day.

    Returns:
        Number of plan weeks (rounded up).

    Raises:
        ValueError: If the event is not after the start date.
    """
    delta_days = (event_date - start_date).days
    if delta_days <= 0:
        raise ValueError(
            f"Event date {event_date} must be after start date {start_date}"
        )
    return math.ceil(delta_days / 7)
