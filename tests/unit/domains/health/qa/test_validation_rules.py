"""Unit tests for the shipped validation rules.

Each rule is exercised against a real analysis, then against a result
patched to break exactly the property the rule guards.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from healthpath.core.validation.models import RULE_CATEGORIES
from healthpath.domains.health.domain_logic.analysis_engine import generate_analysis
from healthpath.domains.health.qa.rule_catalog import RULE_MODULES, build_default_registry
from healthpath.domains.health.qa.synthetic_profiles import SyntheticProfile


@pytest.fixture(scope="module")
def registry():
    return build_default_registry()


@pytest.fixture
def analyzed(profile_factory):
    """Build ``(synthetic, result)`` for a profile with overrides."""

    def _analyzed(**overrides):
        synthetic = SyntheticProfile.build(
            "rule_test", "Rule test", "", "common", profile_factory(**overrides)
        )
        return synthetic, generate_analysis(synthetic.profile, id_factory=lambda: "hp_rule")

    return _analyzed


def _patch_targets(result, **sections):
    return replace(result, personalized_targets=replace(result.personalized_targets, **sections))


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class TestCatalog:
    def test_every_category_has_rules(self, registry):
        assert set(registry.categories()) == set(RULE_CATEGORIES)

    def test_rule_ids_unique_and_prefixed(self, registry):
        total = sum(len(module.RULES) for module in RULE_MODULES)
        assert len(registry) == total
        for rule in registry.all():
            assert rule.id.startswith(rule.category + "_")

    def test_fresh_registry_each_call(self, registry):
        assert build_default_registry() is not registry

    def test_neutral_profile_passes_every_rule(self, registry, analyzed):
        synthetic, result = analyzed()
        failures = [
            outcome.rule_id
            for rule in registry.all()
            if (outcome := rule.check(synthetic, result)) is not None and not outcome.passed
        ]
        assert failures == []


# ---------------------------------------------------------------------------
# Per-category behavior
# ---------------------------------------------------------------------------

class TestRiskRules:
    def test_diagnosed_diabetes(self, registry, analyzed):
        rule = registry.get("risk_diabetes_diagnosed_100")
        synthetic, result = analyzed(medical_data={"conditions": ["diabetes_type2"]})
        assert rule.check(synthetic, result).passed

        lowered = replace(result, risk_analysis=replace(result.risk_analysis, diabetes_risk=80))
        outcome = rule.check(synthetic, lowered)
        assert not outcome.passed
        assert outcome.severity == "critical"

    def test_diagnosed_diabetes_not_applicable(self, registry, analyzed):
        synthetic, result = analyzed()
        assert registry.get("risk_diabetes_diagnosed_100").check(synthetic, result) is None

    def test_negative_risk_detected(self, registry, analyzed):
        synthetic, result = analyzed()
        broken = replace(
            result, risk_analysis=replace(result.risk_analysis, cardiovascular_risk=-1)
        )
        assert not registry.get("risk_no_negative_values").check(synthetic, broken).passed

    def test_smoking_effect(self, registry, analyzed):
        synthetic, result = analyzed(lifestyle_factors={"is_smoker": True})
        assert registry.get("risk_cvd_smoking_effect").check(synthetic, result).passed

    def test_heart_condition_effect(self, registry, analyzed):
        synthetic, result = analyzed(medical_data={"conditions": ["heart_condition"]})
        assert registry.get("risk_cvd_heart_condition").check(synthetic, result).passed


class TestTargetRules:
    def test_heart_cap(self, registry, analyzed):
        rule = registry.get("target_steps_heart_cap")
        synthetic, result = analyzed(medical_data={"conditions": ["heart_condition"]})
        assert rule.check(synthetic, result).passed

        steps = replace(result.personalized_targets.steps, target_daily=8000)
        assert not rule.check(synthetic, _patch_targets(result, steps=steps)).passed

    def test_floor(self, registry, analyzed):
        synthetic, result = analyzed()
        steps = replace(result.personalized_targets.steps, target_daily=2500)
        outcome = registry.get("target_steps_floor").check(
            synthetic, _patch_targets(result, steps=steps)
        )
        assert not outcome.passed

    def test_pregnancy_bonus(self, registry, analyzed):
        synthetic, result = analyzed(
            demographics={"age": 30, "weight": 62, "height": 168, "gender": "female"},
            medical_data={"conditions": ["pregnancy_breastfeeding"]},
        )
        assert registry.get("target_hydration_pregnancy_bonus").check(synthetic, result).passed


class TestProjectionRules:
    def test_unsafe_loss_detected(self, registry, analyzed):
        rule = registry.get("projection_loss_rate_safe")
        synthetic, result = analyzed(demographics__weight=110)
        assert rule.check(synthetic, result).passed

        projection = result.ninety_day_projection
        weight = replace(projection.weight, projected=90.0, change=-20.0)
        broken = replace(result, ninety_day_projection=replace(projection, weight=weight))
        assert not rule.check(synthetic, broken).passed

    def test_underweight_gain(self, registry, analyzed):
        synthetic, result = analyzed(demographics__weight=50, demographics__height=172)
        assert registry.get("projection_underweight_gain").check(synthetic, result).passed


class TestLogicRules:
    def test_grade_mismatch(self, registry, analyzed):
        synthetic, result = analyzed()
        broken = replace(result, overall_grade="A+")
        assert not registry.get("logic_grade_matches_score").check(synthetic, broken).passed

    def test_self_referential_flag(self, registry):
        assert registry.get("logic_grade_matches_score").independent is False


class TestRoadmapRules:
    def test_truncated_roadmap(self, registry, analyzed):
        synthetic, result = analyzed()
        roadmap = result.transformation_roadmap
        plan = replace(
            roadmap.progressive_targets,
            weekly_targets=roadmap.progressive_targets.weekly_targets[:12],
        )
        broken = replace(
            result, transformation_roadmap=replace(roadmap, progressive_targets=plan)
        )
        assert not registry.get("roadmap_thirteen_weeks").check(synthetic, broken).passed


class TestExpectedRules:
    def test_direction_mismatch(self, registry, analyzed):
        synthetic, result = analyzed()
        expecting_loss = replace(
            synthetic, expected=replace(synthetic.expected, weight_direction="loss")
        )
        outcome = registry.get("expected_weight_direction").check(expecting_loss, result)
        assert not outcome.passed
        assert outcome.expected == "loss"
        assert outcome.actual == "maintain"

    def test_risk_ranges_skipped_without_ranges(self, registry, analyzed):
        synthetic, result = analyzed()
        assert registry.get("expected_risk_ranges").check(synthetic, result) is None
