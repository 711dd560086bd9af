"""Unit tests for the 13-week transformation roadmap."""

from __future__ import annotations

import pytest

from healthpath.domains.health.domain_logic.condition_classifier import classify_conditions
from healthpath.domains.health.domain_logic.roadmap_generator import (
    diet_signal_for,
    format_bedtime,
    generate_roadmap,
    progressive_targets,
    safety_notes,
)
from healthpath.domains.health.domain_logic.target_calculator import calculate_all_targets


class TestHelpers:
    @pytest.mark.parametrize("score,signal", [
        (2, "fast_food_heavy"), (4, "fast_food_heavy"), (5, "mixed"), (7, "balanced"),
    ])
    def test_diet_signal(self, score, signal):
        assert diet_signal_for(score) == signal

    @pytest.mark.parametrize("hours,bedtime", [
        (7.5, "10:30 PM"), (8, "10:00 PM"), (6, "12:00 AM"), (7.2, "10:48 PM"),
    ])
    def test_format_bedtime(self, hours, bedtime):
        assert format_bedtime(hours) == bedtime


class TestProgressiveTargets:
    def test_thirteen_weeks(self, profile_factory):
        targets = calculate_all_targets(profile_factory())
        plan = progressive_targets(targets, "mixed", "moderate")
        assert [w.week for w in plan.weekly_targets] == list(range(1, 14))
        assert plan.foundation_ramp_weeks == 4
        assert plan.movement_ramp_weeks == 5

    def test_urgency_and_diet_ramps(self, profile_factory):
        targets = calculate_all_targets(profile_factory())
        plan = progressive_targets(targets, "balanced", "high")
        assert plan.foundation_ramp_weeks == 2
        assert plan.movement_ramp_weeks == 2

    def test_unknown_urgency_falls_back_to_moderate(self, profile_factory):
        targets = calculate_all_targets(profile_factory())
        assert progressive_targets(targets, "mixed", "whenever").foundation_ramp_weeks == 4

    def test_final_week_reaches_targets(self, profile_factory):
        targets = calculate_all_targets(profile_factory(
            health_metrics={"hydration": 2, "sleep": 2, "exercise": 2, "nutrition": 2},
        ))
        final = progressive_targets(targets, "fast_food_heavy", "low").weekly_targets[-1]
        assert final.sleep_hours == targets.sleep.target_min_hours
        assert final.hydration_liters == targets.hydration.target_liters
        assert final.steps == targets.steps.target_daily
        assert final.exercise_minutes == targets.exercise.target_minutes_weekly

    def test_monotone_non_decreasing(self, profile_factory):
        targets = calculate_all_targets(profile_factory(
            health_metrics={"hydration": 1, "sleep": 1, "exercise": 1, "nutrition": 1},
        ))
        weeks = progressive_targets(targets, "mixed", "moderate").weekly_targets
        for previous, current in zip(weeks, weeks[1:]):
            assert current.sleep_hours >= previous.sleep_hours
            assert current.hydration_liters >= previous.hydration_liters
            assert current.steps >= previous.steps
            assert current.exercise_minutes >= previous.exercise_minutes

    def test_steps_capped_below_current_from_week_one(self, profile_factory):
        profile = profile_factory(
            health_metrics__exercise=9,
            medical_data={"conditions": ["heart_condition"]},
        )
        targets = calculate_all_targets(profile)
        assert targets.steps.current_daily > targets.steps.target_daily
        weeks = progressive_targets(targets, "mixed", "moderate").weekly_targets
        assert {w.steps for w in weeks} == {6000}

    def test_already_above_target_holds(self, profile_factory):
        targets = calculate_all_targets(
            profile_factory(health_metrics__hydration=10, demographics__weight=60)
        )
        assert targets.hydration.current_liters == 2.5
        assert targets.hydration.target_liters == 2.1
        weeks = progressive_targets(targets, "mixed", "moderate").weekly_targets
        assert {w.hydration_liters for w in weeks} == {2.5}


class TestRoadmap:
    def test_three_named_phases(self, profile_factory):
        profile = profile_factory()
        targets = calculate_all_targets(profile)
        roadmap = generate_roadmap(40, targets, "mixed", "moderate", classify_conditions([]))
        assert [p.name for p in roadmap.phases] == ["Foundation", "Movement", "Nutrition"]
        assert [p.phase for p in roadmap.phases] == [1, 2, 3]
        assert roadmap.success_factors
        assert roadmap.safety_notes == ()

    def test_foundation_bedtime(self, profile_factory):
        targets = calculate_all_targets(profile_factory(health_metrics__sleep=8))
        roadmap = generate_roadmap(40, targets, "mixed", "moderate", classify_conditions([]))
        assert "10:30 PM" in roadmap.phases[0].actions[0].how


class TestSafetyNotes:
    def test_heart_condition_is_critical(self):
        notes = safety_notes(classify_conditions(["heart_condition"]))
        assert any(n.startswith("Heart condition") for n in notes)
        assert any(n.startswith("Critical conditions") for n in notes)

    def test_pregnancy_and_diabetes(self):
        notes = safety_notes(classify_conditions(["pregnancy_breastfeeding", "diabetes_type2"]))
        assert any(n.startswith("Pregnancy") for n in notes)
        assert any(n.startswith("Diabetes") for n in notes)
