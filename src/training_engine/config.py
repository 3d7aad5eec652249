"""Engine-wide tunables.

Every default the planner, prescriber, analyzer and service rely on lives in
the frozen ``EngineDefaults`` record so tests and deployments can override
them without touching call sites.

Environment overrides use the ``TRAINING_ENGINE_`` prefix, e.g.
``TRAINING_ENGINE_RAMP_CEILING=0.08``.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Mapping

ENV_PREFIX = "TRAINING_ENGINE_"


@dataclass(frozen=True)
class EngineDefaults:
    """Immutable engine configuration.

    Attributes:
        ftp_watts: Fallback FTP when the athlete has none on record.
        weight_kg: Fallback body weight.
        weekly_hours: Fallback weekly training hours for plan generation.
        ctl: Fallback CTL when no fitness snapshot exists.
        atl: Fallback ATL when no fitness snapshot exists.
        ramp_ceiling: Max week-over-week increase of planned weekly TSS.
        back_off_interval: Every Nth consecutive loading week is a back-off week.
        back_off_fraction: Back-off week TSS as a fraction of the prior week.
        weekly_tss_tolerance: Allowed deviation of a week's planned TSS from target.
        generic_tsb_min: Lower bound of the generic optimal TSB band.
        generic_tsb_max: Upper bound of the generic optimal TSB band.
        tsb_margin: Distance outside the band before a TSB is "clearly outside".
        alternatives: Number of runner-up workouts returned by the prescriber.
        pattern_window_days: Look-back window for pattern analysis.
        pattern_min_data_points: Sessions required before any pattern is emitted.
        pattern_min_confidence: Confidence below which patterns are ignored.
        pattern_full_confidence_samples: Sessions at which confidence reaches 1.0.
        type_success_min_samples: Sessions per category before type success scores.
        day_affinity_min_samples: Sessions per weekday before it gets an affinity score.
        tsb_band_min_samples: Sessions per TSB band before the band is scored.
        type_stats_min_samples: Sessions per category before type stats are reported.
        recovery_min_measurements: Hard-session recoveries needed to rate recovery.
        volume_intensity_min_weeks: Weeks needed to compare volume and intensity.
        taper_quiet_days: Days before an event forced to low/no stress.
        post_event_recovery_days: Days after an event kept to rest and easy spins.
        key_slot_tss_share: Nominal share of the weekly target per key workout.
        filler_preferred_tss: Preferred TSS of an endurance filler day.
        filler_max_tss: Upper bound of a single filler day.
        default_key_days: ISO weekdays (1=Mon) used when nothing else is known.
        storage_timeout_s: Timeout for each storage read at the service boundary.
    """

    ftp_watts: int = 250
    weight_kg: float = 70.0
    weekly_hours: float = 8.0
    ctl: float = 50.0
    atl: float = 50.0
    ramp_ceiling: float = 0.10
    back_off_interval: int = 4
    back_off_fraction: float = 0.75
    weekly_tss_tolerance: float = 0.10
    generic_tsb_min: float = -10.0
    generic_tsb_max: float = 5.0
    tsb_margin: float = 5.0
    alternatives: int = 3
    pattern_window_days: int = 90
    pattern_min_data_points: int = 5
    pattern_min_confidence: float = 0.25
    pattern_full_confidence_samples: int = 20
    type_success_min_samples: int = 5
    day_affinity_min_samples: int = 2
    tsb_band_min_samples: int = 2
    type_stats_min_samples: int = 3
    recovery_min_measurements: int = 3
    volume_intensity_min_weeks: int = 4
    taper_quiet_days: int = 2
    post_event_recovery_days: int = 3
    key_slot_tss_share: float = 0.25
    filler_preferred_tss: float = 60.0
    filler_max_tss: float = 150.0
    default_key_days: tuple[int, ...] = (2, 4, 6)
    storage_timeout_s: float = 2.0

    @property
    def generic_tsb_band(self) -> tuple[float, float]:
        return (self.generic_tsb_min, self.generic_tsb_max)

    def with_overrides(self, **changes: Any) -> EngineDefaults:
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineDefaults:
        """Build defaults, overriding any field present as ``TRAINING_ENGINE_<FIELD>``.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            An EngineDefaults instance.

        Raises:
            ValueError: If a variable cannot be parsed into the field's type.
        """
        env = os.environ if environ is None else environ
        base = cls()
        changes: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            current = getattr(base, f.name)
            if isinstance(current, tuple):
                changes[f.name] = tuple(int(part) for part in raw.split(",") if part.strip())
            elif isinstance(current, int):
                changes[f.name] = int(raw)
            else:
                changes[f.name] = float(raw)
        return dataclasses.replace(base, **changes)
