"""Default structured workout catalog for road cycling.

Target TSS and IF are the midpoints of each session's usual range. Interval
power is expressed as a fraction of FTP and resolved to watts per athlete by
``personalize_intervals``.

References:
    Coggan & Allen (2010), Training and Racing with a Power Meter.
    Laursen & Jenkins (2002), The scientific basis for high-intensity
        interval training.
    Rønnestad et al. (2020), Short intervals induce superior training
        adaptations compared with long intervals (30/15s).
"""

from __future__ import annotations

from typing import Iterable

from training_engine.errors import ValidationError
from training_engine.models.enums import WorkoutCategory
from training_engine.models.workout import (
    IntervalSet,
    PersonalizedInterval,
    Prerequisites,
    WorkoutTemplate,
)

_C = WorkoutCategory


def _w(
    id: str,
    name: str,
    category: WorkoutCategory,
    tss: float,
    minutes: int,
    intensity_factor: float,
    min_ctl: float | None = None,
    min_days_since_hard: int | None = None,
    intervals: tuple[IntervalSet, ...] = (),
    description: str = "",
) -> WorkoutTemplate:
    return WorkoutTemplate(
        id=id,
        name=name,
        category=category,
        target_tss=tss,
        target_duration_minutes=minutes,
        target_if=intensity_factor,
        prerequisites=Prerequisites(min_ctl=min_ctl, min_days_since_hard=min_days_since_hard),
        intervals=intervals,
        description=description,
    )


DEFAULT_CATALOG: tuple[WorkoutTemplate, ...] = (
    # --- Recovery ------------------------------------------------------
    _w("recovery_flush", "Recovery Flush", _C.RECOVERY, 15, 30, 0.50,
       description="Very easy spin to promote blood flow."),
    _w("recovery_easy_spin", "Easy Recovery Spin", _C.RECOVERY, 22, 45, 0.55,
       description="Zone 1 spin, high cadence, no efforts."),
    _w("recovery_openers", "Pre-Event Openers", _C.RECOVERY, 32, 45, 0.62,
       intervals=(IntervalSet(3, 30, 180, 1.20, 1.50),),
       description="Easy spin with three short sharp efforts to wake the legs."),
    # --- Endurance -----------------------------------------------------
    _w("endurance_zone2_60", "Zone 2 Endurance 60", _C.ENDURANCE, 48, 60, 0.70),
    _w("endurance_zone2_90", "Zone 2 Endurance 90", _C.ENDURANCE, 65, 90, 0.70,
       min_ctl=30),
    _w("endurance_progressive", "Progressive Endurance", _C.ENDURANCE, 70, 90, 0.72,
       min_ctl=35,
       intervals=(
           IntervalSet(1, 1800, 0, 0.60, 0.65),
           IntervalSet(1, 1800, 0, 0.68, 0.72),
           IntervalSet(1, 900, 0, 0.75, 0.80),
       )),
    _w("endurance_zone2_120", "Zone 2 Endurance 120", _C.ENDURANCE, 88, 120, 0.70,
       min_ctl=45),
    _w("endurance_zone2_180", "Long Endurance Ride", _C.ENDURANCE, 120, 180, 0.66,
       min_ctl=60),
    # --- Tempo ---------------------------------------------------------
    _w("tempo_3x10", "Tempo 3x10", _C.TEMPO, 62, 60, 0.78, min_ctl=30,
       intervals=(IntervalSet(3, 600, 300, 0.76, 0.87),)),
    _w("tempo_2x20", "Tempo 2x20", _C.TEMPO, 68, 70, 0.81, min_ctl=40,
       intervals=(IntervalSet(2, 1200, 600, 0.76, 0.87),)),
    _w("tempo_3x15", "Tempo 3x15", _C.TEMPO, 72, 75, 0.81, min_ctl=40,
       intervals=(IntervalSet(3, 900, 300, 0.76, 0.87),)),
    # --- Sweet spot ----------------------------------------------------
    _w("sweetspot_3x10", "Sweet Spot 3x10", _C.SWEETSPOT, 68, 60, 0.85, min_ctl=35,
       intervals=(IntervalSet(3, 600, 300, 0.88, 0.93),)),
    _w("sweetspot_2x20", "Sweet Spot 2x20", _C.SWEETSPOT, 78, 70, 0.86, min_ctl=45,
       intervals=(IntervalSet(2, 1200, 600, 0.88, 0.93),)),
    _w("sweetspot_3x15", "Sweet Spot 3x15", _C.SWEETSPOT, 82, 75, 0.88, min_ctl=50,
       intervals=(IntervalSet(3, 900, 300, 0.88, 0.93),)),
    _w("sweetspot_2x30", "Sweet Spot 2x30", _C.SWEETSPOT, 92, 90, 0.87, min_ctl=60,
       intervals=(IntervalSet(2, 1800, 600, 0.88, 0.92),)),
    # --- Threshold -----------------------------------------------------
    _w("threshold_3x8", "Threshold 3x8", _C.THRESHOLD, 72, 60, 0.89, min_ctl=40,
       intervals=(IntervalSet(3, 480, 360, 0.95, 1.00),)),
    _w("threshold_3x10", "Threshold 3x10", _C.THRESHOLD, 78, 65, 0.90, min_ctl=45,
       intervals=(IntervalSet(3, 600, 360, 0.95, 1.00),)),
    _w("threshold_2x20", "Threshold 2x20", _C.THRESHOLD, 88, 70, 0.92, min_ctl=55,
       intervals=(IntervalSet(2, 1200, 600, 0.96, 1.00),)),
    _w("threshold_40min_tt", "40 Minute Time Trial", _C.THRESHOLD, 98, 70, 0.95, min_ctl=60,
       intervals=(IntervalSet(1, 2400, 0, 0.95, 1.00),)),
    # --- VO2max --------------------------------------------------------
    _w("vo2max_6x3", "VO2max 6x3", _C.VO2MAX, 72, 55, 0.88,
       min_ctl=45, min_days_since_hard=2,
       intervals=(IntervalSet(6, 180, 180, 1.10, 1.20),)),
    _w("vo2max_5x4", "VO2max 5x4", _C.VO2MAX, 78, 60, 0.90,
       min_ctl=50, min_days_since_hard=2,
       intervals=(IntervalSet(5, 240, 240, 1.08, 1.15),)),
    _w("vo2max_5x5", "VO2max 5x5", _C.VO2MAX, 88, 75, 0.91,
       min_ctl=55, min_days_since_hard=2,
       intervals=(IntervalSet(5, 300, 300, 1.06, 1.12),)),
    # --- Anaerobic and sprint ------------------------------------------
    _w("anaerobic_30_30", "30/30 Intervals", _C.ANAEROBIC, 68, 55, 0.85,
       min_ctl=50, min_days_since_hard=2,
       intervals=(IntervalSet(2, 600, 300, 1.30, 1.50),)),
    _w("anaerobic_40_20", "40/20 Intervals", _C.ANAEROBIC, 68, 55, 0.85,
       min_ctl=55, min_days_since_hard=2,
       intervals=(IntervalSet(2, 600, 360, 1.25, 1.45),)),
    _w("sprint_neuromuscular", "Neuromuscular Sprints", _C.SPRINT, 52, 60, 0.75,
       min_ctl=40, min_days_since_hard=2,
       intervals=(IntervalSet(8, 12, 288, 2.00, 2.50),)),
)


def default_catalog() -> tuple[WorkoutTemplate, ...]:
    """Return the built-in workout catalog."""
    return DEFAULT_CATALOG


def validate_catalog(catalog: Iterable[WorkoutTemplate]) -> tuple[WorkoutTemplate, ...]:
    """Check template ids are unique and values are sane.

    Args:
        catalog: Templates to check.

    Returns:
        The catalog as a tuple.

    Raises:
        ValidationError: On a duplicate id or non-positive TSS/duration.
    """
    templates = tuple(catalog)
    seen: set[str] = set()
    for t in templates:
        if t.id in seen:
            raise ValidationError(f"Duplicate workout template id: {t.id}")
        seen.add(t.id)
        if t.target_tss <= 0 or t.target_duration_minutes <= 0:
            raise ValidationError(f"Template {t.id} must have positive TSS and duration")
    return templates


def personalize_intervals(
    template: WorkoutTemplate, ftp_watts: int
) -> tuple[PersonalizedInterval, ...]:
    """Resolve a template's interval power targets to watts.

    Args:
        template: Catalog template.
        ftp_watts: Athlete FTP.

    Returns:
        Interval sets with absolute power targets.
    """
    return tuple(
        PersonalizedInterval(
            sets=iv.sets,
            duration_seconds=iv.duration_seconds,
            rest_seconds=iv.rest_seconds,
            target_power_min=round(ftp_watts * iv.power_min_pct),
            target_power_max=round(ftp_watts * iv.power_max_pct),
        )
        for iv in template.intervals
    )
