"""Enumerations and model constants for the training engine.

Thresholds cite their published source where one exists.
"""

from enum import Enum, IntEnum, auto


class TrainingPhase(IntEnum):
    """Macrocycle phases in chronological order.

    Follows the classic base → build → peak → taper progression
    (Bompa & Haff 2009), with MAINTENANCE for holding fitness between events.
    """

    BASE = auto()
    BUILD = auto()
    PEAK = auto()
    TAPER = auto()
    MAINTENANCE = auto()


class WorkoutCategory(IntEnum):
    """Cycling workout categories ordered by intensity (Coggan power zones)."""

    RECOVERY = auto()
    ENDURANCE = auto()
    TEMPO = auto()
    SWEETSPOT = auto()
    THRESHOLD = auto()
    VO2MAX = auto()
    ANAEROBIC = auto()
    SPRINT = auto()


class PlanGoal(str, Enum):
    """What a generated plan is trying to achieve."""

    BASE_BUILD = "base_build"
    FTP_BUILD = "ftp_build"
    EVENT_PREP = "event_prep"
    TAPER = "taper"
    MAINTENANCE = "maintenance"


class PlanStatus(str, Enum):
    """Plan lifecycle: draft → active → (abandoned | completed)."""

    DRAFT = "draft"
    ACTIVE = "active"
    ABANDONED = "abandoned"
    COMPLETED = "completed"

    def can_transition_to(self, target: "PlanStatus") -> bool:
        return target in _PLAN_TRANSITIONS[self]


_PLAN_TRANSITIONS: dict[PlanStatus, frozenset[PlanStatus]] = {
    PlanStatus.DRAFT: frozenset({PlanStatus.ACTIVE}),
    PlanStatus.ACTIVE: frozenset({PlanStatus.ABANDONED, PlanStatus.COMPLETED}),
    PlanStatus.ABANDONED: frozenset(),
    PlanStatus.COMPLETED: frozenset(),
}


class RecoveryRate(str, Enum):
    """How quickly an athlete returns to baseline after hard sessions."""

    FAST = "fast"
    AVERAGE = "average"
    SLOW = "slow"


class VolumeIntensityPreference(str, Enum):
    """Whether an athlete responds better to more hours or more intensity."""

    VOLUME = "volume"
    INTENSITY = "intensity"
    BALANCED = "balanced"


class IntensityPreference(str, Enum):
    """Athlete-chosen plan intensity, scaling the weekly hours target."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class EventForm(str, Enum):
    """Classification of TSB on event day."""

    FATIGUED = "fatigued"
    FRESH = "fresh"
    DETRAINED = "detrained"


# ---------------------------------------------------------------------------
# Performance Manager constants: Banister (1991), Coggan & Allen (2010)
# ---------------------------------------------------------------------------
CTL_TIME_CONSTANT_DAYS = 42  # Chronic load ("fitness")
ATL_TIME_CONSTANT_DAYS = 7  # Acute load ("fatigue")

# Event-day TSB window for peak performance: Coggan & Allen (2010)
EVENT_TSB_OPTIMAL_MIN = 5.0
EVENT_TSB_OPTIMAL_MAX = 25.0

# Decimal places used when presenting CTL/ATL/TSB
DISPLAY_DECIMALS = 1

# ---------------------------------------------------------------------------
# Category groupings
# ---------------------------------------------------------------------------
EASY_CATEGORIES = frozenset({WorkoutCategory.RECOVERY, WorkoutCategory.ENDURANCE})
MODERATE_CATEGORIES = frozenset({WorkoutCategory.TEMPO, WorkoutCategory.SWEETSPOT})
# Sessions that count as "hard" for days-since-hard spacing: Seiler (2010)
HARD_CATEGORIES = frozenset({
    WorkoutCategory.THRESHOLD,
    WorkoutCategory.VO2MAX,
    WorkoutCategory.ANAEROBIC,
    WorkoutCategory.SPRINT,
})
INTENSITY_CATEGORIES = MODERATE_CATEGORIES | HARD_CATEGORIES

# Categories a phase may prescribe at all (anything else is excluded)
PHASE_ALLOWED_CATEGORIES: dict[TrainingPhase, frozenset[WorkoutCategory]] = {
    TrainingPhase.BASE: frozenset({
        WorkoutCategory.RECOVERY,
        WorkoutCategory.ENDURANCE,
        WorkoutCategory.TEMPO,
        WorkoutCategory.SWEETSPOT,
    }),
    TrainingPhase.BUILD: frozenset({
        WorkoutCategory.RECOVERY,
        WorkoutCategory.ENDURANCE,
        WorkoutCategory.TEMPO,
        WorkoutCategory.SWEETSPOT,
        WorkoutCategory.THRESHOLD,
        WorkoutCategory.VO2MAX,
        WorkoutCategory.ANAEROBIC,
    }),
    TrainingPhase.PEAK: frozenset({
        WorkoutCategory.RECOVERY,
        WorkoutCategory.ENDURANCE,
        WorkoutCategory.THRESHOLD,
        WorkoutCategory.VO2MAX,
        WorkoutCategory.ANAEROBIC,
        WorkoutCategory.SPRINT,
    }),
    TrainingPhase.TAPER: frozenset({
        WorkoutCategory.RECOVERY,
        WorkoutCategory.ENDURANCE,
        WorkoutCategory.THRESHOLD,
        WorkoutCategory.VO2MAX,
        WorkoutCategory.SPRINT,
    }),
    TrainingPhase.MAINTENANCE: frozenset({
        WorkoutCategory.RECOVERY,
        WorkoutCategory.ENDURANCE,
        WorkoutCategory.TEMPO,
        WorkoutCategory.SWEETSPOT,
        WorkoutCategory.THRESHOLD,
        WorkoutCategory.VO2MAX,
    }),
}

# Categories that earn the phase-fit bonus
PHASE_CANONICAL_CATEGORIES: dict[TrainingPhase, frozenset[WorkoutCategory]] = {
    TrainingPhase.BASE: frozenset({
        WorkoutCategory.ENDURANCE,
        WorkoutCategory.TEMPO,
        WorkoutCategory.SWEETSPOT,
    }),
    TrainingPhase.BUILD: frozenset({
        WorkoutCategory.SWEETSPOT,
        WorkoutCategory.THRESHOLD,
        WorkoutCategory.VO2MAX,
    }),
    TrainingPhase.PEAK: frozenset({
        WorkoutCategory.THRESHOLD,
        WorkoutCategory.VO2MAX,
        WorkoutCategory.ANAEROBIC,
        WorkoutCategory.SPRINT,
    }),
    TrainingPhase.TAPER: frozenset({
        WorkoutCategory.RECOVERY,
        WorkoutCategory.THRESHOLD,
        WorkoutCategory.VO2MAX,
    }),
    TrainingPhase.MAINTENANCE: frozenset({
        WorkoutCategory.ENDURANCE,
        WorkoutCategory.SWEETSPOT,
        WorkoutCategory.THRESHOLD,
    }),
}

# Key-day workout categories per phase, most intense first
PHASE_KEY_CATEGORIES: dict[TrainingPhase, tuple[WorkoutCategory, ...]] = {
    TrainingPhase.BASE: (
        WorkoutCategory.SWEETSPOT,
        WorkoutCategory.TEMPO,
        WorkoutCategory.ENDURANCE,
    ),
    TrainingPhase.BUILD: (
        WorkoutCategory.THRESHOLD,
        WorkoutCategory.VO2MAX,
        WorkoutCategory.SWEETSPOT,
    ),
    TrainingPhase.PEAK: (
        WorkoutCategory.VO2MAX,
        WorkoutCategory.THRESHOLD,
        WorkoutCategory.ANAEROBIC,
    ),
    TrainingPhase.TAPER: (
        WorkoutCategory.THRESHOLD,
        WorkoutCategory.VO2MAX,
    ),
    TrainingPhase.MAINTENANCE: (
        WorkoutCategory.SWEETSPOT,
        WorkoutCategory.THRESHOLD,
        WorkoutCategory.ENDURANCE,
    ),
}

PHASE_FOCUS: dict[TrainingPhase, str] = {
    TrainingPhase.BASE: "Aerobic foundation: endurance volume with tempo and sweet spot",
    TrainingPhase.BUILD: "Raise threshold: sweet spot, threshold and VO2max intervals",
    TrainingPhase.PEAK: "Race-specific intensity with reduced volume",
    TrainingPhase.TAPER: "Shed fatigue while keeping short intensity touches",
    TrainingPhase.MAINTENANCE: "Hold fitness with balanced load",
}

# ---------------------------------------------------------------------------
# Periodization constants
# ---------------------------------------------------------------------------
MAX_PLAN_WEEKS = 52

# Weekly TSS level per phase as a multiple of the athlete's baseline week.
# Taper volume reduction of 41-60%: Mujika & Padilla (2003)
PHASE_WEEKLY_LOAD: dict[TrainingPhase, float] = {
    TrainingPhase.BASE: 1.00,
    TrainingPhase.BUILD: 1.15,
    TrainingPhase.PEAK: 1.00,
    TrainingPhase.TAPER: 0.70,
    TrainingPhase.MAINTENANCE: 1.00,
}
TAPER_FINAL_WEEK_LOAD = 0.55

# Nominal daily TSS as a multiple of CTL (daily TSS ≈ CTL holds fitness)
PHASE_DAILY_LOAD_FACTOR: dict[TrainingPhase, float] = {
    TrainingPhase.BASE: 1.0,
    TrainingPhase.BUILD: 1.1,
    TrainingPhase.PEAK: 1.0,
    TrainingPhase.TAPER: 0.7,
    TrainingPhase.MAINTENANCE: 1.0,
}

LOADING_PHASES = frozenset({
    TrainingPhase.BASE,
    TrainingPhase.BUILD,
    TrainingPhase.MAINTENANCE,
})

# Taper duration: event within this many weeks selects the taper goal
TAPER_GOAL_MAX_WEEKS = 4

# Short taper touches keep intensity and cut volume: Bosquet et al. (2007)
TAPER_TOUCH_MAX_MINUTES = 65

# Recovery filler below this TSS, endurance above
FILLER_RECOVERY_MAX_TSS = 35.0

# Intensity preference → weekly hours multiplier
INTENSITY_HOURS_MULTIPLIER: dict[IntensityPreference, float] = {
    IntensityPreference.LOW: 0.8,
    IntensityPreference.MODERATE: 1.0,
    IntensityPreference.HIGH: 1.2,
}

# ---------------------------------------------------------------------------
# Prescriber scoring weights
# ---------------------------------------------------------------------------
PHASE_FIT_BONUS = 20
TSB_ZONE_MATCH = 15
TSB_ZONE_MISMATCH = -15
DAY_AFFINITY_MATCH = 15
DAY_AFFINITY_AVOID = -20
TYPE_SUCCESS_BONUS = 10
TYPE_SUCCESS_PENALTY = -10

# Day affinity score needed before the weekday bias applies
DAY_AFFINITY_THRESHOLD = 0.15

# Type success thresholds on completion and session RPE (Foster 2001)
TYPE_SUCCESS_COMPLETION_HIGH = 0.8
TYPE_SUCCESS_COMPLETION_LOW = 0.5
RPE_STRUGGLE_THRESHOLD = 8.0

# ---------------------------------------------------------------------------
# Pattern analysis constants
# ---------------------------------------------------------------------------
# TSB bands used to locate the athlete's optimal form window
TSB_BANDS: tuple[tuple[float, float], ...] = (
    (-30.0, -15.0),
    (-15.0, -5.0),
    (-5.0, 5.0),
    (5.0, 15.0),
    (15.0, 30.0),
)
RECOVERY_LOOKAHEAD_DAYS = 7
RECOVERY_FAST_DAYS = 2.0
RECOVERY_SLOW_DAYS = 3.0
VOLUME_INTENSITY_RPE_MARGIN = 0.5
SWEET_SPOT_WEEK_MAX_RPE = 6.0
