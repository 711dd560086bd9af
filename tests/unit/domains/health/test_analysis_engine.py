"""Unit tests for the analysis engine pipeline."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from healthpath.domains.health.domain_logic.analysis_engine import (
    generate_analysis,
    overall_grade,
)
from healthpath.domains.health.domain_logic.profile_models import InvalidProfileError

_FIXED_TIME = datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)


def _fixed_clock():
    return _FIXED_TIME


class TestOverallGrade:
    @pytest.mark.parametrize("score,grade", [
        (100, "A+"), (97, "A+"), (93, "A"), (85, "B"), (72, "C-"), (60, "D-"), (59, "F"), (0, "F"),
    ])
    def test_bands(self, score, grade):
        assert overall_grade(score) == grade


class TestEnvelope:
    def test_accepts_dict_profile(self):
        profile = {
            "demographics": {"age": 52, "weight": 88, "height": 180, "gender": "male"},
            "healthMetrics": {"hydration": 4, "sleep": 5, "exercise": 3, "nutrition": 6},
        }
        result = generate_analysis(profile, "Sam")
        assert result.user_profile.name == "Sam"
        assert result.analysis_id.startswith("hp_")

    def test_invalid_dict_raises(self):
        with pytest.raises(InvalidProfileError):
            generate_analysis({"demographics": {"age": 40}})

    def test_default_display_name(self, profile_factory):
        assert generate_analysis(profile_factory()).user_profile.name == "there"

    def test_clock_and_id_injected(self, profile_factory):
        result = generate_analysis(
            profile_factory(), clock=_fixed_clock, id_factory=lambda: "hp_test"
        )
        assert result.generated_at == "2026-01-15T09:30:00+00:00"
        assert result.analysis_id == "hp_test"

    def test_overall_score_is_metric_mean(self, profile_factory):
        profile = profile_factory(
            health_metrics={"hydration": 7, "sleep": 8, "exercise": 6, "nutrition": 5},
        )
        result = generate_analysis(profile)
        assert result.overall_score == 65
        assert result.overall_grade == "D"

    def test_to_dict_is_json_serializable(self, profile_factory):
        profile = profile_factory(medical_data={"conditions": ["heart_condition"]})
        data = generate_analysis(profile).to_dict()
        encoded = json.loads(json.dumps(data))
        assert encoded["condition_analysis"]["has_critical"] is True
        assert len(encoded["transformation_roadmap"]["progressive_targets"]["weekly_targets"]) == 13


class TestDeterminism:
    def test_same_profile_same_numbers(self, profile_factory):
        profile = profile_factory(lifestyle_factors={"is_smoker": True})
        first = generate_analysis(profile, "A")
        second = generate_analysis(profile, "B")
        assert first.numeric_fingerprint() == second.numeric_fingerprint()
        assert first.analysis_id != second.analysis_id

    def test_fixed_clock_and_id_fully_identical(self, profile_factory):
        profile = profile_factory()
        kwargs = {"clock": _fixed_clock, "id_factory": lambda: "hp_same"}
        assert generate_analysis(profile, **kwargs) == generate_analysis(profile, **kwargs)


class TestReferenceProfiles:
    def test_underweight_woman(self, profile_factory):
        profile = profile_factory(
            demographics={"age": 45, "weight": 50, "height": 170, "gender": "female"},
            health_metrics={"hydration": 5, "sleep": 5, "exercise": 5, "nutrition": 5},
        )
        result = generate_analysis(profile)
        assert result.user_profile.bmi == pytest.approx(17.3, abs=0.05)
        assert result.personalized_targets.weight.direction == "gain"
        assert result.ninety_day_projection.weight.projected > 50
        assert "bmi" not in result.risk_analysis.modifiers["diabetes"]
        assert result.risk_analysis.modifiers["diabetes"]["age"] > 0

    def test_obese_type2_diabetic(self, profile_factory):
        profile = profile_factory(
            demographics__weight=100,
            demographics__height=165,
            medical_data={"conditions": ["diabetes_type2"]},
        )
        result = generate_analysis(profile)
        assert result.user_profile.bmi_category == "Severely obese"
        assert result.risk_analysis.diabetes_risk == 100
        steps = result.personalized_targets.steps.target_daily
        assert 3000 <= steps < 10000

    def test_stressed_unsupported(self, profile_factory):
        profile = profile_factory(lifestyle_factors={
            "stress_level": "high", "social_support": "unsupported",
        })
        risk = generate_analysis(profile).risk_analysis.mental_health_risk
        assert 50 <= risk <= 90
