"""Unit tests for the compound risk calculator."""

from __future__ import annotations

import pytest

from healthpath.domains.health.domain_logic.risk_calculator import (
    RiskContext,
    analyze_compound_risk,
    bmi_category,
    calculate_bmi,
    estimate_sleep_hours,
    mental_health_risk,
    risk_level,
)

_WORST_MENTAL = {
    "stress_level": "high",
    "energy_level": "low",
    "mindfulness_practice": "never",
    "social_support": "unsupported",
    "burnout_level": "high",
}
_BEST_MENTAL = {
    "stress_level": "low",
    "energy_level": "high",
    "mindfulness_practice": "regularly",
    "social_support": "supported",
    "burnout_level": "low",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestBmi:
    def test_calculate_bmi(self):
        assert calculate_bmi(70, 175) == pytest.approx(22.857, abs=0.001)

    @pytest.mark.parametrize("bmi,expected", [
        (18.49, "Underweight"),
        (18.5, "Normal weight"),
        (24.99, "Normal weight"),
        (25.0, "Overweight"),
        (30.0, "Obese"),
        (35.0, "Severely obese"),
    ])
    def test_category_boundaries(self, bmi, expected):
        assert bmi_category(bmi) == expected


class TestScales:
    @pytest.mark.parametrize("score,hours", [(1, 6.0), (3, 6.0), (5, 6.5), (7, 7.0), (8, 7.5)])
    def test_estimate_sleep_hours(self, score, hours):
        assert estimate_sleep_hours(score) == hours

    @pytest.mark.parametrize("pct,level", [
        (70, "critical"), (69.9, "high"), (50, "high"), (30, "moderate"), (29, "low"),
    ])
    def test_risk_level(self, pct, level):
        assert risk_level(pct) == level


# ---------------------------------------------------------------------------
# Mental health
# ---------------------------------------------------------------------------

class TestMentalHealth:
    def test_stressed_and_unsupported(self, profile_factory):
        profile = profile_factory(lifestyle_factors={
            "stress_level": "high", "social_support": "unsupported",
        })
        risk = analyze_compound_risk(profile)
        assert risk.mental_health_risk == 75
        assert risk.modifiers["mental_health"]["stress_isolation"] == 15

    def test_worst_case_capped(self, profile_factory):
        ctx = RiskContext.from_profile(profile_factory(lifestyle_factors=_WORST_MENTAL))
        assert mental_health_risk(ctx) == 90

    def test_best_case_floored(self, profile_factory):
        ctx = RiskContext.from_profile(profile_factory(lifestyle_factors=_BEST_MENTAL))
        assert mental_health_risk(ctx) == 0


# ---------------------------------------------------------------------------
# Diabetes
# ---------------------------------------------------------------------------

class TestDiabetes:
    def test_underweight_has_no_bmi_contribution(self, profile_factory):
        profile = profile_factory(
            demographics={"age": 45, "weight": 50, "height": 170, "gender": "female"},
            health_metrics={"hydration": 5, "sleep": 5, "exercise": 5, "nutrition": 5},
        )
        risk = analyze_compound_risk(profile)
        assert risk.diabetes_risk == 25
        assert "bmi" not in risk.modifiers["diabetes"]
        assert risk.modifiers["diabetes"]["age"] == 20

    def test_diagnosis_overrides_to_100(self, profile_factory):
        profile = profile_factory(medical_data={"conditions": ["diabetes_type2"]})
        risk = analyze_compound_risk(profile)
        assert risk.diabetes_risk == 100
        assert risk.modifiers["diabetes"]["diagnosed"] > 0

    def test_good_sleep_lowers_risk(self, profile_factory):
        good = analyze_compound_risk(profile_factory(health_metrics__sleep=8))
        poor = analyze_compound_risk(profile_factory(health_metrics__sleep=2))
        assert good.diabetes_risk < poor.diabetes_risk


# ---------------------------------------------------------------------------
# Cardiovascular and metabolic
# ---------------------------------------------------------------------------

class TestCardiovascular:
    def test_smoking_contribution(self, profile_factory):
        risk = analyze_compound_risk(profile_factory(lifestyle_factors={"is_smoker": True}))
        assert risk.modifiers["cardiovascular"]["smoking"] == 30

    def test_pregnancy_floor(self, profile_factory):
        profile = profile_factory(
            demographics={"age": 25, "weight": 60, "height": 165, "gender": "female"},
            health_metrics__exercise=8,
            medical_data={"conditions": ["pregnancy_breastfeeding"]},
        )
        assert analyze_compound_risk(profile).cardiovascular_risk == 5

    def test_female_age_bands_are_later(self, profile_factory):
        male = analyze_compound_risk(profile_factory(demographics__gender="male"))
        female = analyze_compound_risk(profile_factory(demographics__gender="female"))
        assert male.modifiers["cardiovascular"]["age"] == 15
        assert female.modifiers["cardiovascular"]["age"] == 5


class TestCaps:
    @pytest.fixture
    def extreme(self, profile_factory):
        return profile_factory(
            demographics={"age": 70, "weight": 130, "height": 175, "gender": "male"},
            health_metrics={"hydration": 1, "sleep": 1, "exercise": 1, "nutrition": 1},
            lifestyle_factors={**_WORST_MENTAL, "is_smoker": True, "alcohol_level": "heavy"},
            medical_data={"conditions": [
                "heart_condition", "high_blood_pressure", "kidney_issues", "diabetes_type2",
            ]},
        )

    def test_every_dimension_capped(self, extreme):
        risk = analyze_compound_risk(extreme)
        assert risk.diabetes_risk == 100
        assert risk.cardiovascular_risk == 95
        assert risk.metabolic_syndrome_risk == 90
        assert risk.mental_health_risk == 90
        assert risk.overall_risk_level == "critical"

    def test_critical_category(self, extreme):
        assert analyze_compound_risk(extreme).risk_category.startswith("Critical")


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

class TestSummary:
    @pytest.mark.parametrize("frequency,modifier", [
        ("never", 10.0), ("rare", 5.0), ("annual", 0.0), ("regular", 0.0),
    ])
    def test_checkup_modifier(self, profile_factory, frequency, modifier):
        risk = analyze_compound_risk(
            profile_factory(lifestyle_factors={"checkup_frequency": frequency})
        )
        assert risk.checkup_modifier == modifier
        base = (risk.diabetes_risk + risk.cardiovascular_risk + risk.metabolic_syndrome_risk) / 3
        assert risk.average_risk == pytest.approx(base + modifier, abs=0.01)

    def test_modifier_dimensions(self, profile_factory):
        risk = analyze_compound_risk(profile_factory())
        assert set(risk.modifiers) == {
            "diabetes", "cardiovascular", "metabolic_syndrome", "mental_health",
        }

    def test_underweight_factor(self, profile_factory):
        profile = profile_factory(demographics__weight=53, demographics__height=175)
        names = {f.name: f for f in analyze_compound_risk(profile).primary_risk_factors}
        factor = names["Underweight Health Risks"]
        assert factor.severity == "moderate"
        assert factor.risk_percentage == 50

    def test_dehydration_factor(self, profile_factory):
        profile = profile_factory(health_metrics__hydration=3)
        names = [f.name for f in analyze_compound_risk(profile).primary_risk_factors]
        assert "Severe Dehydration" in names
