"""Unit tests for the 90-day projection."""

from __future__ import annotations

import pytest

from healthpath.domains.health.domain_logic.projection_calculator import (
    adherence_quality,
    adherence_rate,
    calculate_ninety_day_projection,
    health_score,
    milestones,
    project_energy,
    project_sleep,
    project_weight,
    weekly_weight_rate,
)


class TestAdherence:
    def test_neutral_profile(self, profile_factory):
        # base 65 + low burnout 5
        assert adherence_rate(profile_factory()) == pytest.approx(0.70)

    def test_clamped_low(self, profile_factory):
        profile = profile_factory(lifestyle_factors={
            "energy_level": "low",
            "social_support": "unsupported",
            "stress_level": "high",
            "burnout_level": "high",
        })
        assert adherence_rate(profile) == pytest.approx(0.40)

    def test_clamped_high(self, profile_factory):
        profile = profile_factory(lifestyle_factors={
            "energy_level": "high",
            "social_support": "supported",
            "stress_level": "low",
            "burnout_level": "low",
        })
        assert adherence_rate(profile) == pytest.approx(0.80)

    @pytest.mark.parametrize("rate,quality", [
        (0.80, "high"), (0.70, "high"), (0.69, "moderate"), (0.55, "moderate"), (0.54, "low"),
    ])
    def test_quality(self, rate, quality):
        assert adherence_quality(rate) == quality


class TestWeight:
    @pytest.mark.parametrize("bmi,rate", [
        (17.0, 0.4), (22.0, 0.0), (26.0, -0.6), (31.0, -0.8), (36.0, -1.0),
    ])
    def test_weekly_rate(self, bmi, rate):
        assert weekly_weight_rate(bmi) == rate

    def test_underweight_gains(self):
        assert project_weight(50, 170, "moderate") == pytest.approx(54.8)

    def test_loss_capped_at_ten_percent(self):
        projected = project_weight(100, 165, "high")
        assert projected == pytest.approx(90.0, abs=0.1)
        assert projected >= 90.0

    def test_normal_drifts_toward_target_bmi(self):
        assert project_weight(70, 175, "high") == pytest.approx(68.6)

    def test_normal_stays_in_healthy_band(self):
        # BMI 18.6 at 175 cm; drift toward BMI 22 must not overshoot
        projected = project_weight(57.0, 175, "high")
        assert 57.0 < projected <= 76.3


class TestSleepAndEnergy:
    def test_sleep_closes_most_of_gap(self):
        assert project_sleep(6.0, 7.0) == 6.8

    def test_sleep_never_regresses(self):
        assert project_sleep(7.5, 7.0) == 7.5

    def test_energy_capped_at_ten(self):
        assert project_energy(5, 0.8, 50, 3, 2) == 10

    def test_energy_small_gain(self):
        assert project_energy(3, 0, 10, 1, 1) == 4

    def test_health_score(self):
        assert health_score(6, 6, 6, 6) == 60
        assert health_score(7, 8, 6, 5) == 65


class TestMilestones:
    def test_eight_checkpoints_ending_week_twelve(self):
        points = milestones(-6.0)
        assert len(points) == 8
        assert points[-1].week == 12
        assert "loss" in points[-1].description

    def test_gain_wording(self):
        assert "gain" in milestones(4.8)[-1].description

    def test_maintain_wording(self):
        assert milestones(0.0)[3].description.startswith("Weight steady")


class TestNinetyDayProjection:
    def test_underweight_profile_gains(self, profile_factory):
        profile = profile_factory(
            demographics={"age": 45, "weight": 50, "height": 170, "gender": "female"},
        )
        projection = calculate_ninety_day_projection(profile)
        assert projection.weight.change > 0
        assert projection.bmi.projected > projection.bmi.current
        assert "You don't crave junk food constantly" not in projection.daily_life_improvements

    def test_obese_profile_loses_safely(self, profile_factory):
        profile = profile_factory(demographics__weight=100, demographics__height=165)
        projection = calculate_ninety_day_projection(profile)
        assert projection.weight.change < 0
        assert projection.weight.projected >= 90.0

    @pytest.mark.parametrize("weight", [50, 70, 85, 115])
    def test_projected_bmi_follows_projected_weight(self, profile_factory, weight):
        # underweight, normal, overweight, severely obese at 175 cm
        profile = profile_factory(demographics__weight=weight, demographics__height=175)
        projection = calculate_ninety_day_projection(profile)
        meters_sq = 1.75 ** 2
        assert abs(projection.bmi.projected - projection.weight.projected / meters_sq) <= 0.2
        assert abs(projection.bmi.current - projection.weight.current / meters_sq) <= 0.2
        assert projection.bmi.change == pytest.approx(
            projection.bmi.projected - projection.bmi.current, abs=0.05,
        )

    def test_scores_within_bounds(self, profile_factory):
        projection = calculate_ninety_day_projection(profile_factory())
        assert 0 <= projection.health_score.projected <= 100
        assert projection.health_score.projected >= projection.health_score.current
        assert 1 <= projection.energy_level.projected <= 10
        assert projection.weeks == 12

    def test_change_is_signed_difference(self, profile_factory):
        projection = calculate_ninety_day_projection(profile_factory(health_metrics__sleep=3))
        sleep = projection.sleep
        assert sleep.change == pytest.approx(sleep.projected - sleep.current, abs=0.05)
