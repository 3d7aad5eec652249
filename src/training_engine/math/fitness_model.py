"""Performance Manager fitness model: CTL, ATL and TSB.

Each day's load is folded into two exponentially weighted averages:

    ctl_t = ctl_{t-1} + (tss_t - ctl_{t-1}) / 42
    atl_t = atl_{t-1} + (tss_t - atl_{t-1}) / 7
    tsb_t = ctl_t - atl_t

State is kept unrounded; ``round_display`` is for presentation only, so a
long simulation never compounds rounding error.

References:
    Banister et al. (1975), A systems model of training for athletic performance.
    Coggan & Allen (2010), Training and Racing with a Power Meter, 2nd ed.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Mapping

from training_engine.models.enums import (
    ATL_TIME_CONSTANT_DAYS,
    CTL_TIME_CONSTANT_DAYS,
    DISPLAY_DECIMALS,
)
from training_engine.models.fitness import DailyStress, FitnessState


def advance(prev: FitnessState, tss: float) -> FitnessState:
    """Advance a fitness snapshot by one day of training stress.

    Args:
        prev: Yesterday's fitness state.
        tss: Today's training stress (0 for a rest day).

    Returns:
        A new FitnessState dated the day after ``prev``.
    """
    ctl = prev.ctl + (tss - prev.ctl) / CTL_TIME_CONSTANT_DAYS
    atl = prev.atl + (tss - prev.atl) / ATL_TIME_CONSTANT_DAYS
    return FitnessState(date=prev.date + timedelta(days=1), ctl=ctl, atl=atl)


def advance_n(prev: FitnessState, series: Iterable[DailyStress]) -> list[FitnessState]:
    """Fold ``advance`` over a daily stress series.

    Args:
        prev: Fitness state on the day before the first entry.
        series: Daily stress entries in date order.

    Returns:
        One FitnessState per entry, dated by the entry.
    """
    states: list[FitnessState] = []
    state = prev
    for day in series:
        stepped = advance(state, day.tss)
        state = FitnessState(date=day.date, ctl=stepped.ctl, atl=stepped.atl)
        states.append(state)
    return states


def fitness_series(
    start: FitnessState,
    tss_by_date: Mapping[date, float],
    end: date,
) -> list[FitnessState]:
    """Simulate every day from ``start.date + 1`` through ``end``.

    Days missing from ``tss_by_date`` are rest days.

    Args:
        start: Fitness state before the first simulated day.
        tss_by_date: Training stress keyed by date.
        end: Last day to simulate (inclusive).

    Returns:
        Contiguous list of daily states; empty if ``end`` is not after ``start``.
    """
    days: list[DailyStress] = []
    current = start.date + timedelta(days=1)
    while current <= end:
        days.append(DailyStress(date=current, tss=float(tss_by_date.get(current, 0.0))))
        current += timedelta(days=1)
    return advance_n(start, days)


def round_display(value: float) -> float:
    """Round a CTL/ATL/TSB value for presentation."""
    return round(value, DISPLAY_DECIMALS)
