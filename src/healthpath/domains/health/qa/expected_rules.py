"""Expected-output rules: compare each analysis to its profile's envelope."""

from __future__ import annotations

from healthpath.core.validation.registry import RuleBook
from healthpath.domains.health.domain_logic.analysis_models import AnalysisResult
from healthpath.domains.health.qa.synthetic_profiles import SyntheticProfile

book = RuleBook("expected")


def _within(value: float, bounds: tuple[float, float]) -> bool:
    return bounds[0] <= value <= bounds[1]


def _fmt(bounds: tuple[float, float]) -> str:
    return f"{bounds[0]:g}-{bounds[1]:g}"


@book.rule(
    "expected_bmi_range",
    "BMI within expected range",
    "Reported BMI inside the profile's expected BMI window",
    "medium",
)
def _bmi_range(rule, profile: SyntheticProfile, result: AnalysisResult):
    bounds = profile.expected.bmi_range
    bmi = result.user_profile.bmi
    return rule.outcome(_within(bmi, bounds), _fmt(bounds), bmi)


@book.rule(
    "expected_weight_direction",
    "Weight direction as expected",
    "Target weight direction equals the profile's expected direction",
    "medium",
)
def _weight_direction(rule, profile: SyntheticProfile, result: AnalysisResult):
    expected = profile.expected.weight_direction
    actual = result.personalized_targets.weight.direction
    return rule.outcome(actual == expected, expected, actual)


@book.rule(
    "expected_sleep_target_range",
    "Sleep target within expected range",
    "Minimum nightly sleep target inside the expected range",
    "medium",
)
def _sleep_range(rule, profile: SyntheticProfile, result: AnalysisResult):
    bounds = profile.expected.sleep_target_range
    hours = result.personalized_targets.sleep.target_min_hours
    return rule.outcome(_within(hours, bounds), f"{_fmt(bounds)}h", f"{hours:g}h")


@book.rule(
    "expected_steps_target_range",
    "Step target within expected range",
    "Daily step target inside the expected range",
    "medium",
)
def _steps_range(rule, profile: SyntheticProfile, result: AnalysisResult):
    bounds = profile.expected.steps_target_range
    steps = result.personalized_targets.steps.target_daily
    return rule.outcome(_within(steps, bounds), _fmt(bounds), steps)


@book.rule(
    "expected_risk_ranges",
    "Risks within expected ranges",
    "Each risk with an expected range falls inside it",
    "medium",
)
def _risk_ranges(rule, profile: SyntheticProfile, result: AnalysisResult):
    expected = profile.expected
    risk = result.risk_analysis
    checks = {
        "diabetes": (expected.diabetes_risk_range, risk.diabetes_risk),
        "cardiovascular": (expected.cvd_risk_range, risk.cardiovascular_risk),
        "metabolic_syndrome": (expected.metabolic_risk_range, risk.metabolic_syndrome_risk),
        "mental_health": (expected.mental_health_risk_range, risk.mental_health_risk),
    }
    ranged = {name: pair for name, pair in checks.items() if pair[0] is not None}
    if not ranged:
        return None
    outside = {
        name: value for name, (bounds, value) in ranged.items() if not _within(value, bounds)
    }
    return rule.outcome(
        not outside,
        {name: _fmt(bounds) for name, (bounds, _) in ranged.items()},
        outside or {name: value for name, (_, value) in ranged.items()},
    )


RULES = tuple(book.rules)
