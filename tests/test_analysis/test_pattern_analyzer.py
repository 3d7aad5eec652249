"""Tests for the pattern analyzer."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from training_engine.analysis.pattern_analyzer import (
    PatternAnalyzer,
    summarize_patterns,
    with_session_tsb,
)
from training_engine.config import EngineDefaults
from training_engine.models.enums import (
    RecoveryRate,
    VolumeIntensityPreference,
    WorkoutCategory,
)
from training_engine.models.fitness import FitnessState
from training_engine.models.patterns import SessionOutcome, TSBBand

AS_OF = date(2025, 3, 2)


class TestInsufficientData:
    def test_below_minimum(self, outcome_history: list[SessionOutcome]) -> None:
        analysis = PatternAnalyzer().analyze(outcome_history[:4], AS_OF)
        assert not analysis.sufficient
        assert analysis.pattern is None
        assert analysis.data_points == 4
        assert analysis.reason == "4 sessions in the last 90 days; at least 5 required"

    def test_window_excludes_old_sessions(self, outcome_history: list[SessionOutcome]) -> None:
        analysis = PatternAnalyzer().analyze(outcome_history, date(2025, 6, 1))
        assert not analysis.sufficient
        assert analysis.data_points == 0

    def test_empty(self) -> None:
        analysis = PatternAnalyzer().analyze([], AS_OF)
        assert not analysis.sufficient

    def test_threshold_from_defaults(self, outcome_history: list[SessionOutcome]) -> None:
        analyzer = PatternAnalyzer(EngineDefaults(pattern_min_data_points=40))
        assert not analyzer.analyze(outcome_history, AS_OF).sufficient


class TestAnalyzeHistory:
    def setup_method(self) -> None:
        self.analyzer = PatternAnalyzer()

    def test_confidence_and_count(self, outcome_history: list[SessionOutcome]) -> None:
        analysis = self.analyzer.analyze(outcome_history, AS_OF)
        assert analysis.sufficient
        assert analysis.data_points == 32
        assert analysis.pattern is not None
        assert analysis.pattern.confidence == 1.0
        assert analysis.pattern.is_confident(0.25, 5)

    def test_partial_confidence(self, outcome_history: list[SessionOutcome]) -> None:
        analysis = self.analyzer.analyze(outcome_history[:10], AS_OF)
        assert analysis.pattern is not None
        assert analysis.pattern.confidence == pytest.approx(0.5)

    def test_day_affinity(self, outcome_history: list[SessionOutcome]) -> None:
        pattern = self.analyzer.analyze(outcome_history, AS_OF).pattern
        assert pattern is not None
        assert pattern.day_of_week_affinity == {
            2: pytest.approx(0.5),
            4: pytest.approx(-0.5),
        }

    def test_recovery(self, outcome_history: list[SessionOutcome]) -> None:
        pattern = self.analyzer.analyze(outcome_history, AS_OF).pattern
        assert pattern is not None
        assert pattern.recovery_rate == RecoveryRate.FAST
        assert pattern.recovery_days == pytest.approx(1.2)

    def test_volume_intensity(self, outcome_history: list[SessionOutcome]) -> None:
        pattern = self.analyzer.analyze(outcome_history, AS_OF).pattern
        assert pattern is not None
        assert pattern.volume_intensity_preference == VolumeIntensityPreference.BALANCED
        assert pattern.weekly_hours_sweet_spot == (4.2, 5.2)

    def test_type_success(self, outcome_history: list[SessionOutcome]) -> None:
        pattern = self.analyzer.analyze(outcome_history, AS_OF).pattern
        assert pattern is not None
        threshold = pattern.type_success_rates[WorkoutCategory.THRESHOLD]
        assert threshold.completion_rate == 1.0
        assert threshold.avg_rpe == pytest.approx(7.0)
        assert threshold.sample_size == 8
        vo2 = pattern.type_success_rates[WorkoutCategory.VO2MAX]
        assert vo2.completion_rate == pytest.approx(0.25)
        assert vo2.avg_rpe == pytest.approx(9.0)

    def test_no_tsb_means_no_band(self, outcome_history: list[SessionOutcome]) -> None:
        pattern = self.analyzer.analyze(outcome_history, AS_OF).pattern
        assert pattern is not None
        assert pattern.optimal_tsb is None

    def test_input_order_irrelevant(self, outcome_history: list[SessionOutcome]) -> None:
        forward = self.analyzer.analyze(outcome_history, AS_OF)
        backward = self.analyzer.analyze(list(reversed(outcome_history)), AS_OF)
        assert forward == backward


class TestConfiguredThresholds:
    def test_volume_weeks(self, outcome_history: list[SessionOutcome]) -> None:
        analyzer = PatternAnalyzer(EngineDefaults(volume_intensity_min_weeks=50))
        pattern = analyzer.analyze(outcome_history, AS_OF).pattern
        assert pattern is not None
        assert pattern.volume_intensity_preference == VolumeIntensityPreference.BALANCED
        assert pattern.weekly_hours_sweet_spot is None

    def test_recovery_measurements(self, outcome_history: list[SessionOutcome]) -> None:
        analyzer = PatternAnalyzer(EngineDefaults(recovery_min_measurements=100))
        pattern = analyzer.analyze(outcome_history, AS_OF).pattern
        assert pattern is not None
        assert pattern.recovery_rate == RecoveryRate.AVERAGE
        assert pattern.recovery_days is None

    def test_type_stats_samples(self, outcome_history: list[SessionOutcome]) -> None:
        analyzer = PatternAnalyzer(EngineDefaults(type_stats_min_samples=10))
        pattern = analyzer.analyze(outcome_history, AS_OF).pattern
        assert pattern is not None
        assert WorkoutCategory.THRESHOLD not in pattern.type_success_rates

    def test_day_affinity_samples(self, outcome_history: list[SessionOutcome]) -> None:
        analyzer = PatternAnalyzer(EngineDefaults(day_affinity_min_samples=100))
        pattern = analyzer.analyze(outcome_history, AS_OF).pattern
        assert pattern is not None
        assert pattern.day_of_week_affinity == {}


class TestOptimalTSB:
    def test_band_samples_from_defaults(self) -> None:
        start = date(2025, 2, 3)
        outcomes = [
            SessionOutcome(
                date=start + timedelta(days=i),
                category=WorkoutCategory.THRESHOLD,
                completed=i % 2 == 0,
                rpe=6.0,
                tss=60.0,
                duration_minutes=60.0,
                tsb=-20.0 if i < 3 else 0.0,
            )
            for i in range(6)
        ]
        analyzer = PatternAnalyzer(EngineDefaults(tsb_band_min_samples=4))
        pattern = analyzer.analyze(outcomes, AS_OF).pattern
        assert pattern is not None
        assert pattern.optimal_tsb is None

    def test_best_band_selected(self) -> None:
        start = date(2025, 2, 3)
        outcomes = [
            SessionOutcome(
                date=start + timedelta(days=i),
                category=WorkoutCategory.THRESHOLD,
                completed=False,
                rpe=9.0,
                tss=40.0,
                duration_minutes=40.0,
                tsb=-20.0,
            )
            for i in range(3)
        ] + [
            SessionOutcome(
                date=start + timedelta(days=3 + i),
                category=WorkoutCategory.THRESHOLD,
                completed=True,
                rpe=5.0,
                tss=80.0,
                duration_minutes=70.0,
                tsb=0.0,
            )
            for i in range(3)
        ]
        pattern = PatternAnalyzer().analyze(outcomes, AS_OF).pattern
        assert pattern is not None
        assert pattern.optimal_tsb == TSBBand(-5.0, 5.0)


class TestWithSessionTSB:
    def test_fills_missing_tsb(self, outcome_history: list[SessionOutcome]) -> None:
        start = FitnessState(date=date(2025, 1, 5), ctl=50.0, atl=50.0)
        filled = with_session_tsb(outcome_history, start)
        assert len(filled) == len(outcome_history)
        assert all(o.tsb is not None for o in filled)
        # Tuesday 2025-01-07 follows one rest day from 50/50
        assert filled[0].date == date(2025, 1, 7)
        assert filled[0].tsb == pytest.approx(5.95, abs=0.01)

    def test_keeps_reported_tsb(self) -> None:
        outcome = SessionOutcome(
            date=date(2025, 1, 7), category=WorkoutCategory.TEMPO, completed=True, tsb=-12.0
        )
        filled = with_session_tsb([outcome], FitnessState(date=date(2025, 1, 5), ctl=50, atl=50))
        assert filled[0].tsb == -12.0

    def test_empty(self) -> None:
        assert with_session_tsb([], FitnessState(date=date(2025, 1, 5), ctl=50, atl=50)) == []


class TestSummarizePatterns:
    def test_mentions_findings(self, outcome_history: list[SessionOutcome]) -> None:
        pattern = PatternAnalyzer().analyze(outcome_history, AS_OF).pattern
        assert pattern is not None
        lines = summarize_patterns(pattern)
        assert any(line.startswith("Recovery: fast") for line in lines)
        assert "Strong intensity days: Tue" in lines
        assert "Weak intensity days: Thu" in lines
