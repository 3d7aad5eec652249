"""Tests for the built-in workout catalog."""

from __future__ import annotations

import dataclasses

import pytest

from training_engine.catalog.workout_library import (
    default_catalog,
    personalize_intervals,
    validate_catalog,
)
from training_engine.errors import ValidationError
from training_engine.models.enums import WorkoutCategory


class TestDefaultCatalog:
    def test_size_and_unique_ids(self) -> None:
        catalog = default_catalog()
        assert len(catalog) == 25
        assert len({t.id for t in catalog}) == 25

    def test_every_category_present(self) -> None:
        categories = {t.category for t in default_catalog()}
        assert categories == set(WorkoutCategory)

    def test_validates(self) -> None:
        assert validate_catalog(default_catalog()) == default_catalog()

    def test_hard_sessions_need_rest_between(self) -> None:
        for template in default_catalog():
            if template.category in (WorkoutCategory.VO2MAX, WorkoutCategory.ANAEROBIC):
                assert template.prerequisites.min_days_since_hard == 2


class TestValidateCatalog:
    def test_duplicate_id(self) -> None:
        first = default_catalog()[0]
        with pytest.raises(ValidationError, match="Duplicate"):
            validate_catalog([first, first])

    @pytest.mark.parametrize("field, value", [("target_tss", 0.0), ("target_duration_minutes", -5)])
    def test_non_positive_values(self, field: str, value: float) -> None:
        broken = dataclasses.replace(default_catalog()[0], **{field: value})
        with pytest.raises(ValidationError):
            validate_catalog([broken])


class TestPersonalizeIntervals:
    def _template(self, template_id: str):
        return next(t for t in default_catalog() if t.id == template_id)

    def test_threshold_watts(self) -> None:
        intervals = personalize_intervals(self._template("threshold_3x8"), 300)
        assert len(intervals) == 1
        assert intervals[0].sets == 3
        assert intervals[0].duration_seconds == 480
        assert (intervals[0].target_power_min, intervals[0].target_power_max) == (285, 300)

    def test_steady_ride_has_no_intervals(self) -> None:
        assert personalize_intervals(self._template("endurance_zone2_90"), 250) == ()
