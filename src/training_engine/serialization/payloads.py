"""Payload serialization for plan proposals, recommendations and patterns.

Converts engine records → camelCase dicts consumed by the chat tool and UI.
Values are rounded to one decimal here and nowhere earlier.

All functions are pure (no I/O).
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Iterable

from training_engine.math.fitness_model import round_display
from training_engine.models.enums import (
    RecoveryRate,
    TrainingPhase,
    VolumeIntensityPreference,
    WorkoutCategory,
)
from training_engine.models.fitness import FitnessState, Projection, ProjectionPoint
from training_engine.models.patterns import (
    AthletePattern,
    SessionOutcome,
    TSBBand,
    TypeSuccess,
)
from training_engine.models.plan import PhaseBlock, PlanDay, TrainingPlan, WeekSummary
from training_engine.models.recommendation import ScoredCandidate
from training_engine.models.workout import PersonalizedInterval, WorkoutTemplate
from training_engine.service import PlanProposal, Recommendation


def _name(member: TrainingPhase | WorkoutCategory | None) -> str | None:
    return member.name.lower() if member is not None else None


def _round(value: float | None) -> float | None:
    return round_display(value) if value is not None else None


# ---------------------------------------------------------------------------
# Plan proposal
# ---------------------------------------------------------------------------


def _interval(interval: PersonalizedInterval) -> dict:
    return {
        "sets": interval.sets,
        "durationSeconds": interval.duration_seconds,
        "restSeconds": interval.rest_seconds,
        "targetPowerMin": interval.target_power_min,
        "targetPowerMax": interval.target_power_max,
    }


def _day(day: PlanDay) -> dict:
    return {
        "date": day.date.isoformat(),
        "weekNumber": day.week_number,
        "dayOfWeek": day.day_of_week,
        "workoutTemplateRef": day.workout_template_ref,
        "workoutName": day.workout_name,
        "category": _name(day.category),
        "targetTSS": _round(day.target_tss),
        "targetDurationMinutes": day.target_duration_minutes,
        "targetIF": day.target_if,
        "isKeyWorkout": day.is_key_workout,
        "isEvent": day.is_event,
        "isRest": day.is_rest,
        "intervals": [_interval(i) for i in day.intervals],
        "completed": day.completed,
        "skipped": day.skipped,
        "actualTSS": _round(day.actual_tss),
        "actualDurationMinutes": day.actual_duration_minutes,
    }


def _phase_block(block: PhaseBlock) -> dict:
    return {
        "phase": _name(block.phase),
        "startWeek": block.start_week,
        "endWeek": block.end_week,
        "durationWeeks": block.duration_weeks,
        "focus": block.focus_description,
        "targetWeeklyTSS": _round(block.target_weekly_tss),
    }


def plan_to_dict(plan: TrainingPlan) -> dict:
    """Convert a TrainingPlan (header, phases and days) to a dict."""
    return {
        "id": plan.id,
        "name": plan.name,
        "goal": plan.goal.value,
        "status": plan.status.value,
        "version": plan.version,
        "athleteId": plan.athlete_id,
        "startDate": plan.start_date.isoformat(),
        "endDate": plan.end_date.isoformat(),
        "durationWeeks": plan.duration_weeks,
        "weeklyHoursTarget": _round(plan.weekly_hours_target),
        "targetEventDate": plan.event_date.isoformat() if plan.event_date else None,
        "keyWorkoutDays": list(plan.key_workout_days),
        "phases": [_phase_block(b) for b in plan.phases],
        "days": [_day(d) for d in plan.days],
    }


def _week_summary(week: WeekSummary) -> dict:
    return {
        "weekNumber": week.week_number,
        "phase": _name(week.phase),
        "focus": week.focus,
        "targetTSS": _round(week.target_tss),
        "plannedTSS": _round(week.planned_tss),
        "isBackOff": week.is_back_off,
        "rampClamped": week.ramp_clamped,
        "days": [_day(d) for d in week.days],
    }


def _state(state: FitnessState) -> dict:
    return {
        "date": state.date.isoformat(),
        "ctl": round_display(state.ctl),
        "atl": round_display(state.atl),
        "tsb": round_display(state.tsb),
    }


def _point(point: ProjectionPoint) -> dict:
    return {
        "date": point.date.isoformat(),
        "ctl": round_display(point.ctl),
        "atl": round_display(point.atl),
        "tsb": round_display(point.tsb),
        "tss": round_display(point.tss),
        "phase": _name(point.phase),
        "isEvent": point.is_event,
        "isTaper": point.is_taper,
    }


def projection_to_dict(projection: Projection) -> dict:
    """Convert a Projection to a dict with one entry per simulated day."""
    return {
        "points": [_point(p) for p in projection.points],
        "startFitness": _state(projection.start_fitness),
        "endFitness": _state(projection.end_fitness),
        "peakCTL": round_display(projection.peak_ctl),
        "peakCTLDate": projection.peak_ctl_date.isoformat(),
        "ctlGain": round_display(projection.ctl_gain),
        "eventFitness": _point(projection.event_fitness) if projection.event_fitness else None,
        "eventForm": projection.event_form.value if projection.event_form else None,
        "totalTSS": round_display(projection.total_tss),
        "daysInOptimalBand": projection.days_in_optimal_band,
    }


def proposal_to_payload(proposal: PlanProposal) -> dict:
    """Convert a PlanProposal to the plan proposal payload."""
    result = proposal.result
    return {
        "plan": plan_to_dict(result.plan),
        "weekSummaries": [_week_summary(w) for w in result.week_summaries],
        "projection": projection_to_dict(result.projection),
        "summary": {
            "workoutDays": result.workout_days,
            "restDays": result.rest_days,
            "averageWeeklyTSS": round_display(result.average_weekly_tss),
            "templateReason": result.template_reason,
        },
        "fitnessSource": proposal.fitness_source,
        "persisted": proposal.persisted,
        "warnings": list(proposal.warnings),
    }


# ---------------------------------------------------------------------------
# Single recommendation
# ---------------------------------------------------------------------------


def template_to_dict(
    template: WorkoutTemplate,
    intervals: Iterable[PersonalizedInterval] = (),
) -> dict:
    """Convert a WorkoutTemplate, with optional FTP-resolved intervals."""
    return {
        "id": template.id,
        "name": template.name,
        "category": _name(template.category),
        "targetTSS": template.target_tss,
        "targetDurationMinutes": template.target_duration_minutes,
        "targetIF": template.target_if,
        "description": template.description,
        "prerequisites": {
            "minCTL": template.prerequisites.min_ctl,
            "minDaysSinceHard": template.prerequisites.min_days_since_hard,
        },
        "intervals": [_interval(i) for i in intervals],
    }


def _alternative(candidate: ScoredCandidate) -> dict:
    return {
        "id": candidate.template.id,
        "name": candidate.template.name,
        "category": _name(candidate.template.category),
        "score": candidate.score,
        "targetTSS": candidate.template.target_tss,
        "targetDurationMinutes": candidate.template.target_duration_minutes,
        "reasons": list(candidate.reasons),
    }


def recommendation_to_payload(recommendation: Recommendation) -> dict:
    """Convert a Recommendation to the single-recommendation payload.

    ``workout`` is None when every candidate was gated out; the reason is
    in ``warnings``.
    """
    prescription = recommendation.prescription
    best = prescription.best
    return {
        "workout": template_to_dict(best.template, recommendation.intervals) if best else None,
        "context": {
            "currentTSB": round_display(recommendation.state.tsb),
            "currentCTL": round_display(recommendation.state.ctl),
            "currentATL": round_display(recommendation.state.atl),
            "phase": _name(recommendation.phase),
            "score": best.score if best else None,
            "selectedBecause": prescription.selected_because,
            "categoryReason": recommendation.category_reason,
            "usedPatterns": prescription.used_patterns,
            "alternatives": [_alternative(c) for c in prescription.alternatives],
            "excluded": [
                {"id": e.template.id, "requirement": e.requirement, "reason": e.reason}
                for e in prescription.excluded
            ],
        },
        "athlete": {
            "ftpWatts": recommendation.ftp_watts,
            "weightKg": recommendation.weight_kg,
        },
        "fitnessSource": recommendation.fitness_source,
        "warnings": list(recommendation.warnings),
    }


# ---------------------------------------------------------------------------
# Pattern and outcome codecs (scheduler files)
# ---------------------------------------------------------------------------


def pattern_to_dict(pattern: AthletePattern) -> dict:
    """Convert an AthletePattern to a JSON-safe dict (unrounded)."""
    return {
        "recoveryRate": pattern.recovery_rate.value,
        "recoveryDays": pattern.recovery_days,
        "optimalTSB": (
            {"min": pattern.optimal_tsb.min, "max": pattern.optimal_tsb.max}
            if pattern.optimal_tsb
            else None
        ),
        "dayOfWeekAffinity": {str(k): v for k, v in sorted(pattern.day_of_week_affinity.items())},
        "volumeIntensityPreference": pattern.volume_intensity_preference.value,
        "weeklyHoursSweetSpot": (
            list(pattern.weekly_hours_sweet_spot) if pattern.weekly_hours_sweet_spot else None
        ),
        "typeSuccessRates": {
            _name(category): {
                "completionRate": stats.completion_rate,
                "avgRPE": stats.avg_rpe,
                "sampleSize": stats.sample_size,
                "bestDays": list(stats.best_days),
                "worstDays": list(stats.worst_days),
            }
            for category, stats in sorted(pattern.type_success_rates.items())
        },
        "confidence": pattern.confidence,
        "dataPoints": pattern.data_points,
    }


def pattern_from_dict(data: dict[str, Any]) -> AthletePattern:
    """Inverse of ``pattern_to_dict``."""
    band = data.get("optimalTSB")
    sweet_spot = data.get("weeklyHoursSweetSpot")
    return AthletePattern(
        recovery_rate=RecoveryRate(data["recoveryRate"]),
        optimal_tsb=TSBBand(band["min"], band["max"]) if band else None,
        day_of_week_affinity={
            int(k): float(v) for k, v in data.get("dayOfWeekAffinity", {}).items()
        },
        volume_intensity_preference=VolumeIntensityPreference(data["volumeIntensityPreference"]),
        type_success_rates={
            WorkoutCategory[name.upper()]: TypeSuccess(
                completion_rate=stats["completionRate"],
                avg_rpe=stats.get("avgRPE"),
                sample_size=stats["sampleSize"],
                best_days=tuple(stats.get("bestDays", ())),
                worst_days=tuple(stats.get("worstDays", ())),
            )
            for name, stats in data.get("typeSuccessRates", {}).items()
        },
        confidence=data["confidence"],
        data_points=data["dataPoints"],
        recovery_days=data.get("recoveryDays"),
        weekly_hours_sweet_spot=tuple(sweet_spot) if sweet_spot else None,
    )


def outcome_to_dict(outcome: SessionOutcome) -> dict:
    return {
        "date": outcome.date.isoformat(),
        "category": _name(outcome.category),
        "completed": outcome.completed,
        "rpe": outcome.rpe,
        "tss": outcome.tss,
        "durationMinutes": outcome.duration_minutes,
        "tsb": outcome.tsb,
    }


def outcome_from_dict(data: dict[str, Any]) -> SessionOutcome:
    """Parse one session outcome; ``category`` is a lower-case name."""
    return SessionOutcome(
        date=date.fromisoformat(data["date"]),
        category=WorkoutCategory[data["category"].upper()],
        completed=bool(data["completed"]),
        rpe=data.get("rpe"),
        tss=float(data.get("tss", 0.0)),
        duration_minutes=float(data.get("durationMinutes", 0.0)),
        tsb=data.get("tsb"),
    )


def to_json_string(payload: dict, indent: int = 2) -> str:
    """Dump a payload dict to a JSON string."""
    return json.dumps(payload, indent=indent)
