"""Forward projection of fitness across a planned stress series.

A pure fold of the fitness model: safe to call repeatedly for what-if
previews, never performs I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Mapping, Sequence

from training_engine.errors import ValidationError
from training_engine.math.fitness_model import advance
from training_engine.models.enums import (
    EVENT_TSB_OPTIMAL_MAX,
    EVENT_TSB_OPTIMAL_MIN,
    EventForm,
    TrainingPhase,
)
from training_engine.models.fitness import (
    DailyStress,
    FitnessState,
    Projection,
    ProjectionPoint,
)
from training_engine.models.plan import PlanDay


@dataclass(frozen=True)
class ProjectionOptions:
    """Markers applied while folding.

    Attributes:
        event_date: Day to tag as the event.
        optimal_tsb_range: Inclusive TSB band counted in ``days_in_optimal_band``.
        phase_by_date: Phase tag for each planned day.
        taper_dates: Days to tag as taper.
    """

    event_date: date | None = None
    optimal_tsb_range: tuple[float, float] = (-10.0, 5.0)
    phase_by_date: Mapping[date, TrainingPhase] = field(default_factory=dict)
    taper_dates: frozenset[date] = field(default_factory=frozenset)


def classify_event_form(tsb: float) -> EventForm:
    """Classify event-day TSB against the optimal race-form window.

    Reference:
        Coggan & Allen (2010): TSB of +5 to +25 on race day.
    """
    if tsb < EVENT_TSB_OPTIMAL_MIN:
        return EventForm.FATIGUED
    if tsb > EVENT_TSB_OPTIMAL_MAX:
        return EventForm.DETRAINED
    return EventForm.FRESH


def _validate_days(start: FitnessState, days: Sequence[DailyStress]) -> None:
    if not days:
        return
    if days[0].date <= start.date:
        raise ValidationError(
            f"First projected day {days[0].date} must be after the start state {start.date}"
        )
    for prev, cur in zip(days, days[1:]):
        if cur.date != prev.date + timedelta(days=1):
            raise ValidationError(
                f"Daily stress must be date-contiguous: {prev.date} is followed by {cur.date}"
            )


def project(
    start: FitnessState,
    days: Sequence[DailyStress],
    options: ProjectionOptions | None = None,
) -> Projection:
    """Simulate fitness day by day across ``days``.

    Any gap between ``start.date`` and the first entry is simulated as rest
    days, so an older fitness snapshot decays until the plan begins.

    Args:
        start: Fitness snapshot before the first projected day.
        days: Date-contiguous daily stress in ascending order.
        options: Event, taper and phase markers.

    Returns:
        A Projection with one point per simulated day. Peak CTL is taken
        over the points (earliest date wins ties); with no days it is the
        start state.

    Raises:
        ValidationError: If ``days`` is out of order, has gaps, or starts on
            or before ``start.date``.
    """
    opts = options or ProjectionOptions()
    _validate_days(start, days)

    series: list[DailyStress] = []
    if days:
        gap_day = start.date + timedelta(days=1)
        while gap_day < days[0].date:
            series.append(DailyStress(date=gap_day, tss=0.0))
            gap_day += timedelta(days=1)
    series.extend(days)

    low, high = opts.optimal_tsb_range
    points: list[ProjectionPoint] = []
    state = start
    peak_ctl = start.ctl
    peak_date = start.date
    total_tss = 0.0
    in_band = 0
    event_point: ProjectionPoint | None = None

    for day in series:
        state = advance(state, day.tss)
        point = ProjectionPoint(
            date=day.date,
            ctl=state.ctl,
            atl=state.atl,
            tss=day.tss,
            phase=opts.phase_by_date.get(day.date),
            is_event=opts.event_date is not None and day.date == opts.event_date,
            is_taper=day.date in opts.taper_dates,
        )
        points.append(point)
        total_tss += day.tss
        if low <= point.tsb <= high:
            in_band += 1
        # Strictly greater keeps the earliest date on ties
        if len(points) == 1 or point.ctl > peak_ctl:
            peak_ctl = point.ctl
            peak_date = point.date
        if point.is_event:
            event_point = point

    return Projection(
        points=tuple(points),
        start_fitness=start,
        end_fitness=state,
        peak_ctl=peak_ctl,
        peak_ctl_date=peak_date,
        event_fitness=event_point,
        event_form=classify_event_form(event_point.tsb) if event_point else None,
        total_tss=total_tss,
        days_in_optimal_band=in_band,
    )


def daily_stress_from_plan_days(days: Sequence[PlanDay]) -> list[DailyStress]:
    """Convert plan days into the stress series the projector consumes.

    Completed days with an actual TSS use it, skipped days contribute nothing,
    everything else uses the planned target (rest days are 0).
    """
    series: list[DailyStress] = []
    for day in days:
        if day.completed and day.actual_tss is not None:
            tss = day.actual_tss
        elif day.skipped:
            tss = 0.0
        else:
            tss = day.target_tss or 0.0
        series.append(DailyStress(date=day.date, tss=tss))
    return series
