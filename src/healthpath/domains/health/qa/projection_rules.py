"""Projection rules: direction, safety and bounds of the 90-day outlook."""

from __future__ import annotations

from healthpath.core.validation.registry import RuleBook
from healthpath.domains.health.domain_logic.analysis_models import (
    BMI_OVERWEIGHT,
    BMI_UNDERWEIGHT,
    HEALTHY_BMI_MAX,
    AnalysisResult,
)
from healthpath.domains.health.domain_logic.profile_models import METRIC_MAX
from healthpath.domains.health.domain_logic.risk_calculator import calculate_bmi
from healthpath.domains.health.qa.synthetic_profiles import SyntheticProfile

book = RuleBook("projection")

UNDERWEIGHT_GAIN_RANGE = (2.5, 6.5)
MAX_SAFE_LOSS_FRACTION = 0.12
BMI_TOLERANCE = 0.2
SLEEP_TOLERANCE = 0.05


def _bmi(profile: SyntheticProfile) -> float:
    demo = profile.profile.demographics
    return calculate_bmi(demo.weight, demo.height)


@book.rule(
    "projection_underweight_gain",
    "Underweight profiles gain weight",
    "BMI below 18.5 projects a 2.5-6.5 kg gain over 12 weeks",
    "critical",
)
def _underweight_gain(rule, profile: SyntheticProfile, result: AnalysisResult):
    if _bmi(profile) >= BMI_UNDERWEIGHT:
        return None
    low, high = UNDERWEIGHT_GAIN_RANGE
    change = result.ninety_day_projection.weight.change
    return rule.outcome(low <= change <= high, f"+{low:g} to +{high:g} kg", f"{change:+g} kg")


@book.rule(
    "projection_overweight_loss",
    "Overweight profiles lose weight",
    "BMI 25 or above projects a weight loss",
    "critical",
)
def _overweight_loss(rule, profile: SyntheticProfile, result: AnalysisResult):
    if _bmi(profile) < BMI_OVERWEIGHT:
        return None
    change = result.ninety_day_projection.weight.change
    return rule.outcome(change < 0, "< 0 kg", f"{change:+g} kg")


@book.rule(
    "projection_loss_rate_safe",
    "Projected loss is safe",
    "No projection loses more than 12% of starting weight",
    "critical",
)
def _loss_rate(rule, profile: SyntheticProfile, result: AnalysisResult):
    weight = result.ninety_day_projection.weight
    if weight.change >= 0:
        return None
    limit = weight.current * MAX_SAFE_LOSS_FRACTION
    return rule.outcome(-weight.change <= limit, f"<= {limit:.1f} kg", f"{-weight.change:g} kg")


@book.rule(
    "projection_bmi_direction",
    "Projected BMI moves the right way",
    "Gain raises BMI, loss lowers it, and maintenance stays in the healthy band",
    "high",
)
def _bmi_direction(rule, profile: SyntheticProfile, result: AnalysisResult):
    bmi = result.ninety_day_projection.bmi
    direction = result.personalized_targets.weight.direction
    if direction == "gain":
        return rule.outcome(bmi.projected >= bmi.current, f">= {bmi.current:g}", bmi.projected)
    if direction == "loss":
        return rule.outcome(bmi.projected <= bmi.current, f"<= {bmi.current:g}", bmi.projected)
    low, high = BMI_UNDERWEIGHT - 0.1, HEALTHY_BMI_MAX + 0.1
    return rule.outcome(low <= bmi.projected <= high, f"{low:g}-{high:g}", bmi.projected)


@book.rule(
    "projection_bmi_consistent",
    "Projected BMI matches projected weight",
    "Projected BMI equals BMI of the projected weight within 0.2",
    "high",
)
def _bmi_consistent(rule, profile: SyntheticProfile, result: AnalysisResult):
    projection = result.ninety_day_projection
    expected = calculate_bmi(projection.weight.projected, profile.profile.demographics.height)
    return rule.outcome(
        abs(projection.bmi.projected - expected) <= BMI_TOLERANCE,
        f"{expected:.2f} (+-{BMI_TOLERANCE})",
        projection.bmi.projected,
    )


@book.rule(
    "projection_sleep_maintained",
    "Projected sleep never regresses",
    "Projected sleep hours are at least the current estimate",
    "high",
)
def _sleep_maintained(rule, profile: SyntheticProfile, result: AnalysisResult):
    sleep = result.ninety_day_projection.sleep
    return rule.outcome(sleep.projected >= sleep.current, f">= {sleep.current:g}h", sleep.projected)


@book.rule(
    "projection_sleep_improvement_within_gap",
    "Sleep improvement stays within the gap",
    "Projected sleep does not overshoot the higher of current hours and the target minimum",
    "medium",
)
def _sleep_within_gap(rule, profile: SyntheticProfile, result: AnalysisResult):
    sleep = result.ninety_day_projection.sleep
    ceiling = max(sleep.current, result.personalized_targets.sleep.target_min_hours)
    return rule.outcome(
        sleep.projected <= ceiling + SLEEP_TOLERANCE, f"<= {ceiling:g}h", sleep.projected
    )


@book.rule(
    "projection_energy_bounds",
    "Projected energy bounded",
    "Projected energy is at most 10 and never below the current level",
    "high",
)
def _energy_bounds(rule, profile: SyntheticProfile, result: AnalysisResult):
    energy = result.ninety_day_projection.energy_level
    passed = energy.current <= energy.projected <= METRIC_MAX
    return rule.outcome(passed, f"{energy.current:g}-{METRIC_MAX:g}", energy.projected)


@book.rule(
    "projection_health_score_bounds",
    "Projected health score bounded",
    "Projected health score is within 0-100 and never below the current score",
    "high",
)
def _score_bounds(rule, profile: SyntheticProfile, result: AnalysisResult):
    score = result.ninety_day_projection.health_score
    passed = 0 <= score.current <= score.projected <= 100
    return rule.outcome(passed, f"{score.current:g}-100", score.projected)


@book.rule(
    "projection_non_negative",
    "Projection values sensible",
    "Projected weight and BMI positive, sleep non-negative, adherence within 0.40-0.80",
    "critical",
)
def _non_negative(rule, profile: SyntheticProfile, result: AnalysisResult):
    projection = result.ninety_day_projection
    bad: dict[str, float] = {}
    if not projection.weight.projected > 0:
        bad["weight"] = projection.weight.projected
    if not projection.bmi.projected > 0:
        bad["bmi"] = projection.bmi.projected
    if not projection.sleep.projected >= 0:
        bad["sleep"] = projection.sleep.projected
    if not 0.40 <= projection.adherence_rate <= 0.80:
        bad["adherence_rate"] = projection.adherence_rate
    return rule.outcome(not bad, "all projection values valid", bad or "all valid")


RULES = tuple(book.rules)
