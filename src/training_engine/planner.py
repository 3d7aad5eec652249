"""PeriodizationPlanner: turn a goal and calendar into a fully materialised plan.

Pipeline:
1. Validate the request and resolve goal, duration and weekly hours.
2. Allocate phases up to the event (maintenance for any weeks after it)
   and compute the weekly TSS schedule (back-off weeks, ramp ceiling).
3. Assign key workouts to key days and spread endurance/recovery filler
   over the remaining days to land within the weekly tolerance band.
4. Project fitness across the plan for a preview.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta

from training_engine.catalog.plan_goals import GOALS, select_goal
from training_engine.catalog.workout_library import default_catalog, personalize_intervals
from training_engine.config import EngineDefaults
from training_engine.errors import ValidationError
from training_engine.math.fitness_model import advance
from training_engine.math.periodization import (
    PhaseSpec,
    WeekTarget,
    allocate_phases,
    baseline_weekly_tss,
    compute_plan_weeks,
    phase_load,
    round_half_up,
    weekly_tss_schedule,
)
from training_engine.math.projection import (
    ProjectionOptions,
    daily_stress_from_plan_days,
    project,
)
from training_engine.models.enums import (
    FILLER_RECOVERY_MAX_TSS,
    INTENSITY_HOURS_MULTIPLIER,
    MAX_PLAN_WEEKS,
    PHASE_FOCUS,
    PHASE_KEY_CATEGORIES,
    TAPER_TOUCH_MAX_MINUTES,
    PlanGoal,
    RecoveryRate,
    TrainingPhase,
    WorkoutCategory,
)
from training_engine.models.fitness import DailyStress, FitnessState, Projection
from training_engine.models.patterns import AthletePattern
from training_engine.models.plan import (
    PhaseBlock,
    PlanDay,
    PlanRequest,
    PlanResult,
    TrainingPlan,
    WeekSummary,
)
from training_engine.models.recommendation import ScoringContext
from training_engine.models.workout import WorkoutTemplate
from training_engine.prescriber import WorkoutPrescriber

logger = logging.getLogger(__name__)

_OPENER_ID = "recovery_openers"
_POST_EVENT_ID = "recovery_easy_spin"


@dataclass
class _DaySlot:
    """Mutable working record for one calendar day during assignment."""

    date: date
    week: int
    template: WorkoutTemplate | None = None
    tss: float | None = None
    duration: int | None = None
    is_key: bool = False
    is_event: bool = False
    forced: bool = False


@dataclass
class _PlanState:
    """Running simulation carried from week to week."""

    fitness: FitnessState
    last_hard: date | None
    warnings: list[str] = field(default_factory=list)


def _round_minutes(minutes: float) -> int:
    return max(15, 5 * round_half_up(minutes / 5))


def _weekday_gap(a: int, b: int) -> int:
    diff = abs(a - b)
    return min(diff, 7 - diff)


class PeriodizationPlanner:
    """Generates periodized plans.

    Usage:
        planner = PeriodizationPlanner()
        result = planner.generate(PlanRequest(start_date=..., event_date=...))
    """

    def __init__(
        self,
        defaults: EngineDefaults | None = None,
        catalog: tuple[WorkoutTemplate, ...] | None = None,
        prescriber: WorkoutPrescriber | None = None,
    ) -> None:
        self.defaults = defaults or EngineDefaults()
        self.catalog = catalog if catalog is not None else default_catalog()
        self.prescriber = prescriber or WorkoutPrescriber(self.defaults)
        self._filler_catalog = tuple(t for t in self.catalog if t.id != _OPENER_ID)

    def with_catalog(self, catalog: tuple[WorkoutTemplate, ...]) -> PeriodizationPlanner:
        """A planner with the same defaults and prescriber over another catalog."""
        return PeriodizationPlanner(self.defaults, tuple(catalog), self.prescriber)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self, request: PlanRequest) -> PlanResult:
        """Generate a draft plan with its projection preview.

        Args:
            request: Plan parameters.

        Returns:
            A PlanResult holding the plan, week summaries, projection and
            warnings.

        Raises:
            ValidationError: On inconsistent dates, durations or hours.
        """
        self._validate(request)
        warnings: list[str] = []

        patterns, pattern_warnings = self.prescriber.confident_patterns(request.patterns)
        if pattern_warnings:
            warnings.append(
                pattern_warnings[0].replace("generic defaults", "generic phase templates")
            )

        start_state = self._start_state(request)
        hours = self._weekly_hours(request, patterns, warnings)

        if request.goal is not None:
            goal = request.goal
            template_reason = f"Requested goal: {goal.value}"
        else:
            goal, template_reason = select_goal(
                start_state.ctl, request.start_date, request.event_date
            )
        descriptor = GOALS[goal]
        if start_state.ctl < descriptor.min_ctl:
            warnings.append(
                f"Current CTL ({start_state.ctl:.0f}) is below the recommended "
                f"minimum ({descriptor.min_ctl:.0f}) for {descriptor.name}"
            )

        weeks = self._duration_weeks(request, goal)
        end_date = request.start_date + timedelta(days=weeks * 7 - 1)

        phases = self._allocate(goal, weeks, request)
        baseline = baseline_weekly_tss(start_state.ctl, hours)
        schedule, ramp_warnings = weekly_tss_schedule(
            phases,
            baseline,
            self.defaults.ramp_ceiling,
            self.defaults.back_off_interval,
            self.defaults.back_off_fraction,
        )
        warnings.extend(ramp_warnings)
        for message in ramp_warnings:
            logger.debug("Ramp clamp: %s", message)

        key_days = self.resolve_key_days(request.key_workout_days, patterns)
        taper_start = next(
            (s.start_week for s in phases if s.phase == TrainingPhase.TAPER), None
        )

        last_hard = (
            request.start_date - timedelta(days=request.days_since_hard)
            if request.days_since_hard is not None
            else None
        )
        state = _PlanState(fitness=start_state, last_hard=last_hard)
        ftp = request.ftp_watts or self.defaults.ftp_watts

        all_days: list[PlanDay] = []
        summaries: list[WeekSummary] = []
        for week_target in schedule:
            slots = self._assign_week(
                week_target, request, key_days, patterns, taper_start, state
            )
            days = [self._materialize(slot, ftp) for slot in slots]
            planned = sum(d.target_tss or 0.0 for d in days)
            summaries.append(
                WeekSummary(
                    week_number=week_target.week,
                    phase=week_target.phase,
                    focus=PHASE_FOCUS[week_target.phase],
                    target_tss=week_target.target_tss,
                    planned_tss=planned,
                    is_back_off=week_target.is_back_off,
                    days=tuple(days),
                    ramp_clamped=week_target.ramp_clamped,
                )
            )
            all_days.extend(days)
        warnings.extend(state.warnings)

        blocks = tuple(
            PhaseBlock(
                phase=spec.phase,
                start_week=spec.start_week,
                end_week=spec.end_week,
                focus_description=PHASE_FOCUS[spec.phase],
                target_weekly_tss=float(round_half_up(baseline * phase_load(spec.phase))),
            )
            for spec in phases
        )
        plan = TrainingPlan(
            id=request.plan_id or uuid.uuid4().hex,
            name=request.name or f"{descriptor.name} ({weeks} weeks)",
            goal=goal,
            start_date=request.start_date,
            end_date=end_date,
            duration_weeks=weeks,
            weekly_hours_target=hours,
            phases=blocks,
            days=tuple(all_days),
            event_date=request.event_date,
            key_workout_days=key_days,
            athlete_id=request.athlete_id,
        )
        projection = self.preview(plan, start_state, patterns)

        logger.info(
            "Generated %s plan %s: %d weeks, %d warnings",
            goal.value,
            plan.id,
            weeks,
            len(warnings),
        )
        return PlanResult(
            plan=plan,
            week_summaries=tuple(summaries),
            projection=projection,
            warnings=tuple(dict.fromkeys(warnings)),
            template_reason=template_reason,
        )

    def preview(
        self,
        plan: TrainingPlan,
        start_state: FitnessState,
        patterns: AthletePattern | None = None,
    ) -> Projection:
        """Project fitness across a plan, including an event on the day after it ends."""
        days = daily_stress_from_plan_days(plan.days)
        phase_by_date: dict[date, TrainingPhase] = {}
        taper_dates: set[date] = set()
        for day in plan.days:
            phase = plan.phase_for_week(day.week_number)
            if plan.event_date is not None and day.date > plan.event_date:
                phase = TrainingPhase.MAINTENANCE
            phase_by_date[day.date] = phase
            if phase == TrainingPhase.TAPER:
                taper_dates.add(day.date)
        if plan.event_date is not None and plan.event_date == plan.end_date + timedelta(days=1):
            days.append(DailyStress(date=plan.event_date, tss=0.0))

        band = self.prescriber.tsb_band(patterns)
        start = start_state
        if start.date >= plan.start_date:
            start = FitnessState(
                date=plan.start_date - timedelta(days=1), ctl=start.ctl, atl=start.atl
            )
        return project(
            start,
            days,
            ProjectionOptions(
                event_date=plan.event_date,
                optimal_tsb_range=(band.min, band.max),
                phase_by_date=phase_by_date,
                taper_dates=frozenset(taper_dates),
            ),
        )

    def resolve_key_days(
        self,
        explicit: tuple[int, ...] | None,
        patterns: AthletePattern | None,
    ) -> tuple[int, ...]:
        """Key weekdays: athlete preference, else learned affinity, else defaults.

        Learned days must be spaced at least one rest day apart (two for slow
        recoverers); fewer than two usable days falls back to the defaults.
        """
        if explicit:
            return tuple(sorted(set(explicit)))
        if patterns is not None and patterns.day_of_week_affinity:
            min_gap = 3 if patterns.recovery_rate == RecoveryRate.SLOW else 2
            ranked = sorted(
                (day for day, score in patterns.day_of_week_affinity.items() if score > 0),
                key=lambda d: (-patterns.day_of_week_affinity[d], d),
            )
            chosen: list[int] = []
            for day in ranked:
                if all(_weekday_gap(day, other) >= min_gap for other in chosen):
                    chosen.append(day)
                if len(chosen) == 3:
                    break
            if len(chosen) >= 2:
                return tuple(sorted(chosen))
        return tuple(self.defaults.default_key_days)

    # ------------------------------------------------------------------
    # Request resolution
    # ------------------------------------------------------------------

    def _validate(self, request: PlanRequest) -> None:
        if request.event_date is not None and request.event_date <= request.start_date:
            raise ValidationError(
                f"Event date {request.event_date} must be after start date {request.start_date}"
            )
        if request.duration_weeks is not None:
            if not 1 <= request.duration_weeks <= MAX_PLAN_WEEKS:
                raise ValidationError(
                    f"Plan duration must be 1-{MAX_PLAN_WEEKS} weeks, got {request.duration_weeks}"
                )
            if request.event_date is not None:
                day_after_end = request.start_date + timedelta(days=request.duration_weeks * 7)
                if request.event_date > day_after_end:
                    raise ValidationError(
                        f"Event date {request.event_date} falls after the plan ends "
                        f"({day_after_end - timedelta(days=1)})"
                    )
        if request.weekly_hours is not None and request.weekly_hours <= 0:
            raise ValidationError(f"Weekly hours must be positive, got {request.weekly_hours}")
        if request.ftp_watts is not None and request.ftp_watts <= 0:
            raise ValidationError(f"FTP must be positive, got {request.ftp_watts}")
        if request.key_workout_days is not None:
            bad = [d for d in request.key_workout_days if not 1 <= d <= 7]
            if bad:
                raise ValidationError(f"Key workout days must be ISO weekdays 1-7, got {bad}")

    def _allocate(self, goal: PlanGoal, weeks: int, request: PlanRequest) -> list[PhaseSpec]:
        """Goal phases over the weeks up to the event, maintenance after it."""
        if request.event_date is None:
            return allocate_phases(goal, weeks)
        prep_weeks = min(weeks, compute_plan_weeks(request.start_date, request.event_date))
        phases = allocate_phases(goal, prep_weeks)
        if prep_weeks == weeks:
            return phases
        start_week = prep_weeks + 1
        if phases[-1].phase == TrainingPhase.MAINTENANCE:
            start_week = phases.pop().start_week
        phases.append(
            PhaseSpec(
                phase=TrainingPhase.MAINTENANCE,
                start_week=start_week,
                end_week=weeks,
                duration_weeks=weeks - start_week + 1,
            )
        )
        return phases

    def _start_state(self, request: PlanRequest) -> FitnessState:
        day_before = request.start_date - timedelta(days=1)
        fitness = request.starting_fitness
        if fitness is None:
            return FitnessState(date=day_before, ctl=self.defaults.ctl, atl=self.defaults.atl)
        if fitness.date >= request.start_date:
            return FitnessState(date=day_before, ctl=fitness.ctl, atl=fitness.atl)
        return fitness

    def _weekly_hours(
        self,
        request: PlanRequest,
        patterns: AthletePattern | None,
        warnings: list[str],
    ) -> float:
        hours = (request.weekly_hours or self.defaults.weekly_hours) * INTENSITY_HOURS_MULTIPLIER[
            request.intensity
        ]
        if patterns is not None and patterns.weekly_hours_sweet_spot is not None:
            low, high = patterns.weekly_hours_sweet_spot
            if hours > high:
                warnings.append(
                    f"{hours:.1f} h/week is above your historical sweet spot "
                    f"({low:.1f}-{high:.1f} h); capped at {high:.1f} h"
                )
                hours = high
            elif hours < low:
                warnings.append(
                    f"{hours:.1f} h/week is below your historical sweet spot "
                    f"({low:.1f}-{high:.1f} h)"
                )
        return hours

    def _duration_weeks(self, request: PlanRequest, goal: PlanGoal) -> int:
        if request.duration_weeks is not None:
            return request.duration_weeks
        if request.event_date is not None:
            weeks = compute_plan_weeks(request.start_date, request.event_date)
            if weeks > MAX_PLAN_WEEKS:
                raise ValidationError(
                    f"Event is {weeks} weeks away; plans are limited to {MAX_PLAN_WEEKS} weeks"
                )
            return weeks
        return GOALS[goal].default_weeks

    # ------------------------------------------------------------------
    # Week assignment
    # ------------------------------------------------------------------

    def _assign_week(
        self,
        week_target: WeekTarget,
        request: PlanRequest,
        key_days: tuple[int, ...],
        patterns: AthletePattern | None,
        taper_start: int | None,
        state: _PlanState,
    ) -> list[_DaySlot]:
        week = week_target.week
        phase = week_target.phase
        target = week_target.target_tss
        week_start = request.start_date + timedelta(days=(week - 1) * 7)
        slots = [_DaySlot(date=week_start + timedelta(days=i), week=week) for i in range(7)]

        fixed_tss = 0.0
        for slot in slots:
            fixed_tss += self._apply_event_constraints(slot, request)

        # Key workouts, most intense category on the earliest key day
        categories = PHASE_KEY_CATEGORIES[phase]
        max_minutes: int | None = None
        if week_target.is_back_off:
            categories = categories[:1]
        elif phase == TrainingPhase.TAPER:
            touches = 2 if week == taper_start else 1
            categories = categories[:touches]
            max_minutes = TAPER_TOUCH_MAX_MINUTES

        key_slots = [s for s in slots if not s.forced and s.date.isoweekday() in key_days]
        last_hard = state.last_hard
        for slot, category in zip(key_slots, categories):
            template = self._pick_key(
                slot, category, phase, target, patterns, max_minutes, last_hard, state
            )
            if template is None:
                continue
            slot.template = template
            slot.tss = template.target_tss
            slot.duration = template.target_duration_minutes
            slot.is_key = True
            if template.is_hard:
                last_hard = slot.date

        tolerance = target * self.defaults.weekly_tss_tolerance
        keys = [s for s in slots if s.is_key]
        while len(keys) > 1 and fixed_tss + sum(s.tss or 0 for s in keys) > target + tolerance:
            dropped = keys.pop()
            dropped.template = dropped.tss = dropped.duration = None
            dropped.is_key = False
            state.warnings.append(
                f"Week {week}: dropped a key workout to stay within the weekly TSS target"
            )

        remaining = target - fixed_tss - sum(s.tss or 0 for s in keys)
        if remaining > tolerance:
            self._fill(slots, remaining, week, phase, patterns, state)

        planned = sum(s.tss or 0 for s in slots)
        if abs(planned - target) > tolerance:
            state.warnings.append(
                f"Week {week}: planned {planned:.0f} TSS is outside "
                f"±{self.defaults.weekly_tss_tolerance:.0%} of the {target:.0f} TSS target"
            )

        # Advance the running simulation through the week
        for slot in slots:
            stepped = advance(state.fitness, slot.tss or 0.0)
            state.fitness = FitnessState(date=slot.date, ctl=stepped.ctl, atl=stepped.atl)
            if slot.template is not None and slot.template.is_hard:
                state.last_hard = slot.date
        return slots

    def _apply_event_constraints(self, slot: _DaySlot, request: PlanRequest) -> float:
        """Fix the event day, pre-event quiet days and the post-event recovery window.

        Returns the TSS committed by the forced day.
        """
        event = request.event_date
        if event is None:
            return 0.0
        if slot.date == event:
            slot.is_event = slot.forced = True
            return 0.0
        if slot.date > event:
            days_after = (slot.date - event).days
            if days_after > self.defaults.post_event_recovery_days:
                return 0.0
            slot.forced = True
            if days_after > 1:
                return self._set_fixed(slot, _POST_EVENT_ID)
            return 0.0
        days_out = (event - slot.date).days
        if request.allow_pre_event_training or days_out > self.defaults.taper_quiet_days:
            return 0.0
        slot.forced = True
        if days_out == 1:
            return self._set_fixed(slot, _OPENER_ID)
        return 0.0

    def _set_fixed(self, slot: _DaySlot, template_id: str) -> float:
        template = next((t for t in self.catalog if t.id == template_id), None)
        if template is None:
            template = min(
                (t for t in self.catalog if t.category == WorkoutCategory.RECOVERY),
                key=lambda t: (t.target_tss, t.id),
                default=None,
            )
        if template is None:
            return 0.0
        slot.template = template
        slot.tss = template.target_tss
        slot.duration = template.target_duration_minutes
        return template.target_tss

    def _context(
        self,
        slot: _DaySlot,
        category: WorkoutCategory,
        phase: TrainingPhase,
        patterns: AthletePattern | None,
        max_minutes: int | None,
        last_hard: date | None,
        ctl: float,
    ) -> ScoringContext:
        return ScoringContext(
            phase=phase,
            ctl=ctl,
            tsb=None,
            weekday=slot.date.isoweekday(),
            days_since_hard=(slot.date - last_hard).days if last_hard is not None else None,
            patterns=patterns,
            tsb_band=self.prescriber.tsb_band(patterns),
            tsb_margin=self.defaults.tsb_margin,
            categories=frozenset({category}),
            max_duration_minutes=max_minutes,
            type_success_min_samples=self.defaults.type_success_min_samples,
        )

    def _pick_key(
        self,
        slot: _DaySlot,
        category: WorkoutCategory,
        phase: TrainingPhase,
        week_target: float,
        patterns: AthletePattern | None,
        max_minutes: int | None,
        last_hard: date | None,
        state: _PlanState,
    ) -> WorkoutTemplate | None:
        nominal = week_target * self.defaults.key_slot_tss_share
        ctl = state.fitness.ctl
        context = self._context(slot, category, phase, patterns, max_minutes, last_hard, ctl)
        result = self.prescriber.rank(self.catalog, context, nominal)
        if result.best is not None:
            return result.best.template

        fallback = self._context(
            slot, WorkoutCategory.ENDURANCE, phase, patterns, None, last_hard, ctl
        )
        fallback_result = self.prescriber.rank(self.catalog, fallback, nominal)
        blocked = result.warnings[0] if result.warnings else "none available"
        if fallback_result.best is None:
            state.warnings.append(
                f"No {category.name.lower()} or endurance workout available ({blocked})"
            )
            return None
        state.warnings.append(
            f"No {category.name.lower()} workout available ({blocked}); endurance used instead"
        )
        return fallback_result.best.template

    def _fill(
        self,
        slots: list[_DaySlot],
        remaining: float,
        week: int,
        phase: TrainingPhase,
        patterns: AthletePattern | None,
        state: _PlanState,
    ) -> None:
        """Spread ``remaining`` TSS over free days, keeping at least one rest day."""
        free = [s for s in slots if not s.forced and s.template is None]
        # Monday is the last choice: it follows the weekend's load
        free.sort(key=lambda s: (s.date.isoweekday() == 1, s.date))
        forced_rest = any(s.forced and s.template is None and not s.is_event for s in slots)
        max_fill = len(free) if forced_rest else len(free) - 1
        if max_fill <= 0:
            state.warnings.append(f"Week {week}: no free days left for filler workouts")
            return

        preferred = self.defaults.filler_preferred_tss
        cap = self.defaults.filler_max_tss
        count = max(1, round_half_up(remaining / preferred), math.ceil(remaining / cap))
        count = min(max_fill, count)
        total = min(remaining, count * cap)
        if total < remaining:
            state.warnings.append(
                f"Week {week}: target not reachable within available days "
                f"({count} filler days capped at {cap:.0f} TSS)"
            )

        quotient, extra = divmod(round_half_up(total), count)
        amounts = [quotient + 1] * extra + [quotient] * (count - extra)
        for slot, amount in zip(free, amounts):
            category = (
                WorkoutCategory.RECOVERY
                if amount < FILLER_RECOVERY_MAX_TSS
                else WorkoutCategory.ENDURANCE
            )
            context = self._context(
                slot, category, phase, patterns, None, None, state.fitness.ctl
            )
            result = self.prescriber.rank(self._filler_catalog, context, float(amount))
            if result.best is None:
                state.warnings.append(
                    f"Week {week}: no {category.name.lower()} filler available"
                )
                continue
            template = result.best.template
            slot.template = template
            slot.tss = float(amount)
            slot.duration = _round_minutes(
                template.target_duration_minutes * amount / template.target_tss
            )

    def _materialize(self, slot: _DaySlot, ftp: int) -> PlanDay:
        template = slot.template
        return PlanDay(
            date=slot.date,
            week_number=slot.week,
            day_of_week=slot.date.isoweekday(),
            workout_template_ref=template.id if template else None,
            workout_name=template.name if template else None,
            category=template.category if template else None,
            target_tss=slot.tss if template else None,
            target_duration_minutes=slot.duration if template else None,
            target_if=template.target_if if template else None,
            is_key_workout=slot.is_key,
            is_event=slot.is_event,
            intervals=personalize_intervals(template, ftp) if template else (),
        )
