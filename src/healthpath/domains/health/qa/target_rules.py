"""Target rules: safety caps, weight direction and age-appropriate goals."""

from __future__ import annotations

from healthpath.core.validation.registry import RuleBook
from healthpath.domains.health.domain_logic.analysis_models import (
    BMI_UNDERWEIGHT,
    HEART_STEP_CAP,
    PREGNANCY_STEP_CAP,
    STEP_CEILING,
    STEP_FLOOR,
    AnalysisResult,
)
from healthpath.domains.health.domain_logic.risk_calculator import calculate_bmi
from healthpath.domains.health.domain_logic.target_calculator import (
    HYDRATION_MULTIPLIERS,
    sleep_range_for_age,
)
from healthpath.domains.health.qa.synthetic_profiles import SyntheticProfile, direction_for_bmi

book = RuleBook("target")

UNDERWEIGHT_STEP_LIMIT = 6500
HYDRATION_TOLERANCE = 0.5
PREGNANCY_MIN_BONUS = 0.6
_HYDRATION_ADJUSTED = frozenset({"pregnancy_breastfeeding", "kidney_issues", "heart_condition"})


def _bmi(profile: SyntheticProfile) -> float:
    demo = profile.profile.demographics
    return calculate_bmi(demo.weight, demo.height)


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

@book.rule(
    "target_steps_underweight",
    "Underweight step target stays gentle",
    "BMI below 18.5 keeps the daily step target at or below 6500",
    "high",
)
def _steps_underweight(rule, profile: SyntheticProfile, result: AnalysisResult):
    if _bmi(profile) >= BMI_UNDERWEIGHT:
        return None
    steps = result.personalized_targets.steps.target_daily
    return rule.outcome(steps <= UNDERWEIGHT_STEP_LIMIT, f"<= {UNDERWEIGHT_STEP_LIMIT}", steps)


@book.rule(
    "target_steps_heart_cap",
    "Heart condition caps steps",
    "A heart condition keeps the daily step target at or below 6000",
    "critical",
)
def _steps_heart(rule, profile: SyntheticProfile, result: AnalysisResult):
    if "heart_condition" not in profile.profile.condition_tags:
        return None
    steps = result.personalized_targets.steps.target_daily
    return rule.outcome(steps <= HEART_STEP_CAP, f"<= {HEART_STEP_CAP}", steps)


@book.rule(
    "target_steps_pregnancy_cap",
    "Pregnancy caps steps",
    "Pregnancy or breastfeeding keeps the daily step target at or below 7000",
    "critical",
)
def _steps_pregnancy(rule, profile: SyntheticProfile, result: AnalysisResult):
    if "pregnancy_breastfeeding" not in profile.profile.condition_tags:
        return None
    steps = result.personalized_targets.steps.target_daily
    return rule.outcome(steps <= PREGNANCY_STEP_CAP, f"<= {PREGNANCY_STEP_CAP}", steps)


@book.rule(
    "target_steps_floor",
    "Step target floor",
    "No combination of caps and reductions drops the step target below 3000",
    "critical",
)
def _steps_floor(rule, profile: SyntheticProfile, result: AnalysisResult):
    steps = result.personalized_targets.steps.target_daily
    return rule.outcome(steps >= STEP_FLOOR, f">= {STEP_FLOOR}", steps)


@book.rule(
    "target_steps_ceiling",
    "Step target ceiling",
    "The daily step target never exceeds 15000",
    "high",
)
def _steps_ceiling(rule, profile: SyntheticProfile, result: AnalysisResult):
    steps = result.personalized_targets.steps.target_daily
    return rule.outcome(steps <= STEP_CEILING, f"<= {STEP_CEILING}", steps)


# ---------------------------------------------------------------------------
# Weight
# ---------------------------------------------------------------------------

@book.rule(
    "target_weight_direction",
    "Weight direction follows the BMI category",
    "Underweight gains, overweight and obese lose, normal weight maintains",
    "critical",
)
def _weight_direction(rule, profile: SyntheticProfile, result: AnalysisResult):
    bmi = _bmi(profile)
    expected = direction_for_bmi(bmi)
    actual = result.personalized_targets.weight.direction
    return rule.outcome(actual == expected, f"{expected} (BMI {bmi:.2f})", actual)


@book.rule(
    "target_weight_fields_exclusive",
    "Exactly one weight direction signal",
    "Exactly one of deficit_kg > 0, excess_kg > 0 or is_healthy holds and matches the direction",
    "critical",
)
def _weight_exclusive(rule, profile: SyntheticProfile, result: AnalysisResult):
    weight = result.personalized_targets.weight
    signals = {
        "gain": weight.deficit_kg > 0,
        "loss": weight.excess_kg > 0,
        "maintain": weight.is_healthy,
    }
    active = [direction for direction, on in signals.items() if on]
    passed = (
        active == [weight.direction]
        and weight.deficit_kg >= 0
        and weight.excess_kg >= 0
    )
    return rule.outcome(
        passed,
        f"only the {weight.direction} signal",
        {
            "deficit_kg": weight.deficit_kg,
            "excess_kg": weight.excess_kg,
            "is_healthy": weight.is_healthy,
        },
    )


# ---------------------------------------------------------------------------
# Sleep
# ---------------------------------------------------------------------------

@book.rule(
    "target_sleep_age_appropriate",
    "Sleep target within the age band",
    "Minimum within the age band (teens 8-10, adults 7-9, 65+ 7-8) and maximum at its top",
    "medium",
)
def _sleep_age(rule, profile: SyntheticProfile, result: AnalysisResult):
    low, high = sleep_range_for_age(profile.profile.demographics.age)
    sleep = result.personalized_targets.sleep
    passed = low <= sleep.target_min_hours <= high and sleep.target_max_hours == high
    return rule.outcome(
        passed,
        f"{low:g}-{high:g}h",
        f"{sleep.target_min_hours:g}-{sleep.target_max_hours:g}h",
    )


@book.rule(
    "target_sleep_optimal_maintained",
    "Adequate sleep is not reduced",
    "Someone already sleeping within their band is never asked to sleep less",
    "medium",
)
def _sleep_maintained(rule, profile: SyntheticProfile, result: AnalysisResult):
    low, high = sleep_range_for_age(profile.profile.demographics.age)
    sleep = result.personalized_targets.sleep
    if sleep.current_hours < low:
        return None
    floor = min(sleep.current_hours, high)
    return rule.outcome(
        sleep.target_min_hours >= floor, f">= {floor:g}h", f"{sleep.target_min_hours:g}h"
    )


# ---------------------------------------------------------------------------
# Hydration
# ---------------------------------------------------------------------------

@book.rule(
    "target_hydration_gender_range",
    "Hydration follows body weight",
    "Weight x gender multiplier (0.035 male, 0.031 female, 0.033 other), within 0.5 L",
    "medium",
    independent=False,
)
def _hydration_gender(rule, profile: SyntheticProfile, result: AnalysisResult):
    if profile.profile.condition_tags & _HYDRATION_ADJUSTED:
        return None
    demo = profile.profile.demographics
    expected = demo.weight * HYDRATION_MULTIPLIERS.get(demo.gender, HYDRATION_MULTIPLIERS["other"])
    actual = result.personalized_targets.hydration.target_liters
    return rule.outcome(
        abs(actual - expected) <= HYDRATION_TOLERANCE,
        f"{expected:.1f} L (+-{HYDRATION_TOLERANCE})",
        f"{actual:g} L",
    )


@book.rule(
    "target_hydration_pregnancy_bonus",
    "Pregnancy raises the hydration target",
    "Pregnancy or breastfeeding adds about 0.7 L over the weight-based goal",
    "high",
)
def _hydration_pregnancy(rule, profile: SyntheticProfile, result: AnalysisResult):
    tags = profile.profile.condition_tags
    # Kidney and heart factors scale the bonus down
    if "pregnancy_breastfeeding" not in tags or tags & {"kidney_issues", "heart_condition"}:
        return None
    demo = profile.profile.demographics
    base = demo.weight * HYDRATION_MULTIPLIERS.get(demo.gender, HYDRATION_MULTIPLIERS["other"])
    minimum = base + PREGNANCY_MIN_BONUS
    actual = result.personalized_targets.hydration.target_liters
    return rule.outcome(actual >= minimum, f">= {minimum:.2f} L", f"{actual:g} L")


@book.rule(
    "target_all_present_non_negative",
    "All targets present and sensible",
    "Sleep, hydration, steps and exercise targets are positive; currents and deficits non-negative",
    "critical",
)
def _all_present(rule, profile: SyntheticProfile, result: AnalysisResult):
    t = result.personalized_targets
    positive = {
        "sleep.target_min_hours": t.sleep.target_min_hours,
        "hydration.target_liters": t.hydration.target_liters,
        "steps.target_daily": t.steps.target_daily,
        "exercise.target_minutes_weekly": t.exercise.target_minutes_weekly,
        "weight.target_max_kg": t.weight.target_max_kg,
    }
    non_negative = {
        "sleep.current_hours": t.sleep.current_hours,
        "sleep.deficit_hours": t.sleep.deficit_hours,
        "hydration.current_liters": t.hydration.current_liters,
        "hydration.deficit_percentage": t.hydration.deficit_percentage,
        "steps.current_daily": t.steps.current_daily,
        "steps.deficit_steps": t.steps.deficit_steps,
        "exercise.current_minutes_weekly": t.exercise.current_minutes_weekly,
        "exercise.deficit_minutes": t.exercise.deficit_minutes,
    }
    bad = {k: v for k, v in positive.items() if not v > 0}
    bad.update({k: v for k, v in non_negative.items() if not v >= 0})
    return rule.outcome(not bad, "targets > 0, currents and deficits >= 0", bad or "all valid")


RULES = tuple(book.rules)
