"""Mine historical session outcomes into athlete patterns.

Detection:
- Day-of-week affinity: per-weekday success rate of intensity sessions
  relative to the athlete's overall rate
- Optimal TSB: sessions partitioned by TSB at the time of the session,
  bands compared on ``completion * 10 - avg RPE``
- Recovery rate: days for session RPE to return to the easy-day baseline
  after a hard session
- Volume vs intensity: mean RPE of high-volume weeks vs high-intensity weeks

Below the minimum sample size the analyzer returns an explicit
"insufficient data" result instead of a low-confidence guess.

References:
    Foster et al. (2001), A new approach to monitoring exercise training.
    Coggan & Allen (2010), Performance Manager concepts.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable

import numpy as np
import pandas as pd

from training_engine.config import EngineDefaults
from training_engine.math.fitness_model import fitness_series
from training_engine.models.enums import (
    EASY_CATEGORIES,
    HARD_CATEGORIES,
    INTENSITY_CATEGORIES,
    RECOVERY_FAST_DAYS,
    RECOVERY_LOOKAHEAD_DAYS,
    RECOVERY_SLOW_DAYS,
    RPE_STRUGGLE_THRESHOLD,
    SWEET_SPOT_WEEK_MAX_RPE,
    TSB_BANDS,
    VOLUME_INTENSITY_RPE_MARGIN,
    RecoveryRate,
    VolumeIntensityPreference,
    WorkoutCategory,
)
from training_engine.models.fitness import FitnessState
from training_engine.models.patterns import (
    AthletePattern,
    PatternAnalysis,
    SessionOutcome,
    TSBBand,
    TypeSuccess,
)

logger = logging.getLogger(__name__)

# Neutral RPE used when a TSB band has no RPE reports
_NEUTRAL_RPE = 5.0
_DAY_RELATIVE_MARGIN = 0.2


def _to_frame(outcomes: Iterable[SessionOutcome]) -> pd.DataFrame:
    rows = [
        {
            "date": pd.Timestamp(o.date),
            "category": int(o.category),
            "completed": bool(o.completed),
            "rpe": np.nan if o.rpe is None else float(o.rpe),
            "tss": float(o.tss),
            "duration": float(o.duration_minutes),
            "tsb": np.nan if o.tsb is None else float(o.tsb),
        }
        for o in outcomes
    ]
    df = pd.DataFrame(
        rows, columns=["date", "category", "completed", "rpe", "tss", "duration", "tsb"]
    )
    df["weekday"] = df["date"].dt.isocalendar().day.astype(int)
    df["success"] = df["completed"] & (df["rpe"].isna() | (df["rpe"] <= RPE_STRUGGLE_THRESHOLD))
    return df.sort_values("date", kind="mergesort").reset_index(drop=True)


def _in(df: pd.DataFrame, categories: frozenset[WorkoutCategory]) -> pd.Series:
    return df["category"].isin([int(c) for c in categories])


def detect_day_affinity(df: pd.DataFrame, min_samples: int) -> dict[int, float]:
    """Per-weekday success of intensity sessions relative to the overall rate.

    Returns:
        ISO weekday → score in [-1, 1], only for weekdays with enough sessions.
    """
    intense = df[_in(df, INTENSITY_CATEGORIES)]
    if intense.empty:
        return {}
    overall = intense["success"].mean()
    grouped = intense.groupby("weekday")["success"].agg(["mean", "count"])
    grouped = grouped[grouped["count"] >= min_samples]
    return {
        int(day): float(np.clip(row["mean"] - overall, -1.0, 1.0))
        for day, row in grouped.iterrows()
    }


def detect_optimal_tsb(df: pd.DataFrame, min_samples: int) -> TSBBand | None:
    """Best-scoring TSB band, or None when fewer than two bands have data."""
    with_tsb = df.dropna(subset=["tsb"])
    if with_tsb.empty:
        return None
    edges = [TSB_BANDS[0][0]] + [high for _, high in TSB_BANDS]
    bands = pd.cut(with_tsb["tsb"], bins=edges, right=False, labels=False)
    stats = with_tsb.assign(band=bands).dropna(subset=["band"]).groupby("band").agg(
        completion=("completed", "mean"),
        rpe=("rpe", "mean"),
        count=("completed", "size"),
    )
    stats = stats[stats["count"] >= min_samples]
    if len(stats) < 2:
        return None
    score = stats["completion"] * 10 - stats["rpe"].fillna(_NEUTRAL_RPE)
    best = int(score.idxmax())
    low, high = TSB_BANDS[best]
    return TSBBand(min=low, max=high)


def detect_recovery(
    df: pd.DataFrame, min_measurements: int
) -> tuple[RecoveryRate, float | None]:
    """Mean days for RPE to return to the easy-day baseline after hard sessions."""
    rated = df.dropna(subset=["rpe"])
    easy = rated[_in(rated, EASY_CATEGORIES)]
    if easy.empty:
        return RecoveryRate.AVERAGE, None
    baseline = easy["rpe"].median()

    measurements: list[int] = []
    for _, hard in rated[_in(rated, HARD_CATEGORIES)].iterrows():
        window_end = hard["date"] + pd.Timedelta(days=RECOVERY_LOOKAHEAD_DAYS)
        after = rated[(rated["date"] > hard["date"]) & (rated["date"] <= window_end)]
        recovered = after[after["rpe"] <= baseline]
        if not recovered.empty:
            measurements.append((recovered["date"].iloc[0] - hard["date"]).days)

    if len(measurements) < min_measurements:
        return RecoveryRate.AVERAGE, None
    mean_days = float(np.mean(measurements))
    if mean_days < RECOVERY_FAST_DAYS:
        return RecoveryRate.FAST, mean_days
    if mean_days > RECOVERY_SLOW_DAYS:
        return RecoveryRate.SLOW, mean_days
    return RecoveryRate.AVERAGE, mean_days


def detect_volume_intensity(
    df: pd.DataFrame, min_weeks: int
) -> tuple[VolumeIntensityPreference, tuple[float, float] | None]:
    """Compare how the athlete copes with big-volume vs big-intensity weeks.

    Returns:
        Tuple of (preference, weekly-hours sweet spot or None).
    """
    weekly = (
        df.assign(
            week=df["date"].dt.to_period("W-SUN"),
            intense=_in(df, INTENSITY_CATEGORIES),
        )
        .groupby("week")
        .agg(
            hours=("duration", lambda s: s.sum() / 60),
            hard_share=("intense", "mean"),
            rpe=("rpe", "mean"),
        )
    )
    if len(weekly) < min_weeks:
        return VolumeIntensityPreference.BALANCED, None

    sweet_spot: tuple[float, float] | None = None
    comfortable = weekly[(weekly["rpe"] <= SWEET_SPOT_WEEK_MAX_RPE) & (weekly["hours"] > 0)]
    if not comfortable.empty:
        sweet_spot = (
            round(float(comfortable["hours"].min()), 1),
            round(float(comfortable["hours"].max()), 1),
        )

    volume_rpe = weekly[weekly["hours"] >= weekly["hours"].median()]["rpe"].mean()
    intensity_rpe = weekly[weekly["hard_share"] >= weekly["hard_share"].median()]["rpe"].mean()
    if pd.isna(volume_rpe) or pd.isna(intensity_rpe):
        return VolumeIntensityPreference.BALANCED, sweet_spot
    if volume_rpe + VOLUME_INTENSITY_RPE_MARGIN < intensity_rpe:
        return VolumeIntensityPreference.VOLUME, sweet_spot
    if intensity_rpe + VOLUME_INTENSITY_RPE_MARGIN < volume_rpe:
        return VolumeIntensityPreference.INTENSITY, sweet_spot
    return VolumeIntensityPreference.BALANCED, sweet_spot


def detect_type_success(
    df: pd.DataFrame, min_samples: int, day_min_samples: int
) -> dict[WorkoutCategory, TypeSuccess]:
    """Completion rate, mean RPE and best/worst weekdays per category."""
    result: dict[WorkoutCategory, TypeSuccess] = {}
    for code, group in df.groupby("category"):
        if len(group) < min_samples:
            continue
        rate = float(group["success"].mean())
        by_day = group.groupby("weekday")["success"].agg(["mean", "count"])
        by_day = by_day[by_day["count"] >= day_min_samples]
        best = tuple(int(d) for d, r in by_day.iterrows() if r["mean"] - rate >= _DAY_RELATIVE_MARGIN)
        worst = tuple(int(d) for d, r in by_day.iterrows() if rate - r["mean"] >= _DAY_RELATIVE_MARGIN)
        avg_rpe = group["rpe"].mean()
        result[WorkoutCategory(int(code))] = TypeSuccess(
            completion_rate=float(group["completed"].mean()),
            avg_rpe=None if pd.isna(avg_rpe) else float(avg_rpe),
            sample_size=int(len(group)),
            best_days=best,
            worst_days=worst,
        )
    return result


def with_session_tsb(
    outcomes: Iterable[SessionOutcome], start: FitnessState
) -> list[SessionOutcome]:
    """Attach the morning TSB to outcomes that lack one.

    Completed sessions' TSS is folded through the fitness model from
    ``start``; a session's TSB is the state at the end of the previous day.
    """
    items = sorted(outcomes, key=lambda o: o.date)
    if not items:
        return []
    tss_by_date: dict[date, float] = {}
    for o in items:
        if o.completed:
            tss_by_date[o.date] = tss_by_date.get(o.date, 0.0) + o.tss
    states = fitness_series(start, tss_by_date, items[-1].date)
    tsb_by_date = {s.date + timedelta(days=1): s.tsb for s in states}
    tsb_by_date[start.date + timedelta(days=1)] = start.tsb
    return [
        o if o.tsb is not None or o.date not in tsb_by_date
        else SessionOutcome(
            date=o.date,
            category=o.category,
            completed=o.completed,
            rpe=o.rpe,
            tss=o.tss,
            duration_minutes=o.duration_minutes,
            tsb=tsb_by_date[o.date],
        )
        for o in items
    ]


class PatternAnalyzer:
    """Batch analyzer producing an AthletePattern or an explicit shortfall.

    Usage:
        analyzer = PatternAnalyzer()
        analysis = analyzer.analyze(outcomes, as_of=date.today())
        if analysis.sufficient:
            use(analysis.pattern)
    """

    def __init__(self, defaults: EngineDefaults | None = None) -> None:
        self.defaults = defaults or EngineDefaults()

    def analyze(self, outcomes: Iterable[SessionOutcome], as_of: date) -> PatternAnalysis:
        """Analyze outcomes in the window ending on ``as_of``.

        Args:
            outcomes: Historical sessions, any order.
            as_of: Last day of the analysis window (inclusive).

        Returns:
            A PatternAnalysis; ``sufficient`` is False below the minimum
            sample size.
        """
        window_start = as_of - timedelta(days=self.defaults.pattern_window_days)
        in_window = [o for o in outcomes if window_start < o.date <= as_of]
        n = len(in_window)
        required = self.defaults.pattern_min_data_points
        if n < required:
            logger.info("Insufficient pattern data: %d sessions (need %d)", n, required)
            return PatternAnalysis(
                sufficient=False,
                data_points=n,
                reason=(
                    f"{n} sessions in the last {self.defaults.pattern_window_days} days; "
                    f"at least {required} required"
                ),
            )

        df = _to_frame(in_window)
        cfg = self.defaults
        recovery_rate, recovery_days = detect_recovery(df, cfg.recovery_min_measurements)
        preference, sweet_spot = detect_volume_intensity(df, cfg.volume_intensity_min_weeks)
        confidence = min(1.0, n / cfg.pattern_full_confidence_samples)
        pattern = AthletePattern(
            recovery_rate=recovery_rate,
            optimal_tsb=detect_optimal_tsb(df, cfg.tsb_band_min_samples),
            day_of_week_affinity=detect_day_affinity(df, cfg.day_affinity_min_samples),
            volume_intensity_preference=preference,
            type_success_rates=detect_type_success(
                df, cfg.type_stats_min_samples, cfg.day_affinity_min_samples
            ),
            confidence=confidence,
            data_points=n,
            recovery_days=recovery_days,
            weekly_hours_sweet_spot=sweet_spot,
        )
        logger.info("Pattern analysis: %d sessions, confidence %.2f", n, confidence)
        return PatternAnalysis(sufficient=True, data_points=n, pattern=pattern)


_DAY_NAMES = ("", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def summarize_patterns(pattern: AthletePattern) -> list[str]:
    """Human-readable one-line findings for display in coaching text."""
    lines: list[str] = []
    if pattern.recovery_days is not None:
        lines.append(
            f"Recovery: {pattern.recovery_rate.value} "
            f"({pattern.recovery_days:.1f} days back to baseline after hard sessions)"
        )
    if pattern.optimal_tsb is not None:
        lines.append(
            f"Best form window: TSB {pattern.optimal_tsb.min:g} to {pattern.optimal_tsb.max:g}"
        )
    good = [d for d, s in sorted(pattern.day_of_week_affinity.items()) if s > 0]
    bad = [d for d, s in sorted(pattern.day_of_week_affinity.items()) if s < 0]
    if good:
        lines.append("Strong intensity days: " + ", ".join(_DAY_NAMES[d] for d in good))
    if bad:
        lines.append("Weak intensity days: " + ", ".join(_DAY_NAMES[d] for d in bad))
    if pattern.volume_intensity_preference != VolumeIntensityPreference.BALANCED:
        lines.append(f"Responds best to {pattern.volume_intensity_preference.value}")
    if pattern.weekly_hours_sweet_spot is not None:
        low, high = pattern.weekly_hours_sweet_spot
        lines.append(f"Weekly hours sweet spot: {low:.1f}-{high:.1f} h")
    for category, stats in sorted(pattern.type_success_rates.items()):
        lines.append(
            f"{category.name.lower()}: {stats.completion_rate:.0%} completed "
            f"over {stats.sample_size} sessions"
        )
    return lines
