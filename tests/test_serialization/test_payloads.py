"""Tests for payload serialization."""

from __future__ import annotations

import json
from datetime import date

import pytest

from training_engine.models.enums import TrainingPhase, WorkoutCategory
from training_engine.models.fitness import FitnessState
from training_engine.models.patterns import AthletePattern, SessionOutcome
from training_engine.models.plan import PlanRequest
from training_engine.models.recommendation import Prescription
from training_engine.models.workout import WorkoutTemplate
from training_engine.planner import PeriodizationPlanner
from training_engine.prescriber import WorkoutPrescriber
from training_engine.serialization import (
    outcome_from_dict,
    outcome_to_dict,
    pattern_from_dict,
    pattern_to_dict,
    proposal_to_payload,
    recommendation_to_payload,
    to_json_string,
)
from training_engine.service import PlanProposal, Recommendation


@pytest.fixture
def proposal(event_prep_request: PlanRequest) -> PlanProposal:
    return PlanProposal(
        result=PeriodizationPlanner().generate(event_prep_request),
        fitness_source="request",
        warnings=("example warning",),
        persisted=True,
    )


class TestProposalPayload:
    def test_top_level_keys(self, proposal: PlanProposal) -> None:
        payload = proposal_to_payload(proposal)
        assert set(payload) == {
            "plan",
            "weekSummaries",
            "projection",
            "summary",
            "fitnessSource",
            "persisted",
            "warnings",
        }
        assert payload["fitnessSource"] == "request"
        assert payload["warnings"] == ["example warning"]

    def test_plan_days(self, proposal: PlanProposal) -> None:
        plan = proposal_to_payload(proposal)["plan"]
        assert plan["status"] == "draft"
        assert plan["targetEventDate"] == "2025-03-03"
        assert len(plan["days"]) == 56
        monday, tuesday = plan["days"][0], plan["days"][1]
        assert monday["isRest"] and monday["category"] is None
        assert tuesday["category"] == "sweetspot"
        assert tuesday["isKeyWorkout"]
        assert tuesday["intervals"][0]["targetPowerMin"] == 220

    def test_week_summaries(self, proposal: PlanProposal) -> None:
        weeks = proposal_to_payload(proposal)["weekSummaries"]
        assert [w["targetTSS"] for w in weeks][:4] == [415.0, 415.0, 415.0, 311.0]
        assert weeks[0]["phase"] == "base"
        assert weeks[3]["isBackOff"]

    def test_projection_rounded(self, proposal: PlanProposal) -> None:
        projection = proposal_to_payload(proposal)["projection"]
        assert len(projection["points"]) == 57
        assert projection["eventFitness"]["date"] == "2025-03-03"
        assert projection["eventFitness"]["isEvent"]
        for point in projection["points"]:
            for key in ("ctl", "atl", "tsb"):
                assert point[key] == round(point[key], 1)

    def test_summary(self, proposal: PlanProposal) -> None:
        summary = proposal_to_payload(proposal)["summary"]
        assert summary["workoutDays"] + summary["restDays"] <= 56
        assert summary["templateReason"]

    def test_json_string(self, proposal: PlanProposal) -> None:
        text = to_json_string(proposal_to_payload(proposal))
        assert json.loads(text)["plan"]["id"] == "plan-event"


class TestRecommendationPayload:
    def _recommendation(self, prescription: Prescription) -> Recommendation:
        return Recommendation(
            prescription=prescription,
            state=FitnessState(date=date(2025, 1, 7), ctl=61.234, atl=70.06),
            phase=TrainingPhase.BUILD,
            fitness_source="stored",
            ftp_watts=260,
            weight_kg=72.5,
        )

    def test_gated_out(self) -> None:
        prescription = Prescription(
            best=None, warnings=("no candidates satisfy minDaysSinceHard=2",)
        )
        payload = recommendation_to_payload(self._recommendation(prescription))
        assert payload["workout"] is None
        assert payload["context"]["score"] is None
        assert payload["context"]["selectedBecause"] == "no candidates satisfy minDaysSinceHard=2"
        assert payload["context"]["currentCTL"] == 61.2
        assert payload["context"]["currentTSB"] == -8.8
        assert payload["context"]["phase"] == "build"
        assert payload["athlete"] == {"ftpWatts": 260, "weightKg": 72.5}

    def test_with_workout(self, catalog: tuple[WorkoutTemplate, ...]) -> None:
        prescription = WorkoutPrescriber().prescribe(
            FitnessState(date=date(2025, 1, 7), ctl=60.0, atl=60.0), TrainingPhase.BUILD, catalog
        )
        payload = recommendation_to_payload(self._recommendation(prescription))
        assert payload["workout"]["id"] == "sweetspot_3x10"
        assert payload["workout"]["category"] == "sweetspot"
        assert payload["context"]["score"] == 35
        assert [a["id"] for a in payload["context"]["alternatives"]] == [
            "threshold_3x8",
            "vo2max_6x3",
            "sweetspot_2x20",
        ]
        assert all("requirement" in e for e in payload["context"]["excluded"])


class TestPatternCodec:
    def test_pattern_survives_json(self, confident_pattern: AthletePattern) -> None:
        data = json.loads(json.dumps(pattern_to_dict(confident_pattern)))
        assert data["dayOfWeekAffinity"] == {"2": 0.3, "4": -0.3, "6": 0.2}
        assert set(data["typeSuccessRates"]) == {"threshold", "vo2max"}
        assert pattern_from_dict(data) == confident_pattern

    def test_outcome_dict(self) -> None:
        outcome = SessionOutcome(
            date=date(2025, 1, 7),
            category=WorkoutCategory.VO2MAX,
            completed=False,
            rpe=None,
            tss=0.0,
            duration_minutes=0.0,
        )
        data = outcome_to_dict(outcome)
        assert data["category"] == "vo2max"
        assert outcome_from_dict(data) == outcome

    def test_outcome_defaults(self) -> None:
        outcome = outcome_from_dict(
            {"date": "2025-01-07", "category": "threshold", "completed": True}
        )
        assert outcome.tss == 0.0
        assert outcome.rpe is None
        assert outcome.tsb is None
