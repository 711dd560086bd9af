"""Risk rules: bounds, overrides and directional effects of the risk model."""

from __future__ import annotations

import dataclasses

from healthpath.core.validation.registry import RuleBook
from healthpath.domains.health.domain_logic.analysis_models import (
    BMI_OBESE,
    BMI_OVERWEIGHT,
    CARDIOVASCULAR_RISK_CAP,
    DIABETES_RISK_CAP,
    MENTAL_HEALTH_RISK_CAP,
    METABOLIC_RISK_CAP,
    AnalysisResult,
)
from healthpath.domains.health.domain_logic.profile_models import ProfileInput
from healthpath.domains.health.domain_logic.risk_calculator import (
    analyze_compound_risk,
    calculate_bmi,
)
from healthpath.domains.health.qa.synthetic_profiles import SyntheticProfile

book = RuleBook("risk")

RISK_LEVELS = ("low", "moderate", "high", "critical")
MENTAL_HEALTH_TOLERANCE = 5


def _without(
    profile: ProfileInput, *, smoker: bool | None = None, condition: str | None = None
) -> ProfileInput:
    """A copy of ``profile`` with one risk factor removed."""
    if smoker is not None:
        lifestyle = dataclasses.replace(profile.lifestyle, is_smoker=smoker)
        profile = dataclasses.replace(profile, lifestyle=lifestyle)
    if condition is not None:
        medical = dataclasses.replace(
            profile.medical, conditions=profile.medical.conditions - {condition}
        )
        profile = dataclasses.replace(profile, medical=medical)
    return profile


def _bmi(profile: SyntheticProfile) -> float:
    demo = profile.profile.demographics
    return calculate_bmi(demo.weight, demo.height)


@book.rule(
    "risk_mental_health_baseline",
    "Mental health risk matches its answer table",
    "Sum of stress, energy, mindfulness, support and burnout deltas plus "
    "compound bonuses, clamped to [0, 90], within 5 points",
    "high",
    independent=False,
)
def _mental_health_baseline(rule, profile: SyntheticProfile, result: AnalysisResult):
    life = profile.profile.lifestyle
    expected = {"high": 30, "moderate": 15, "low": 5}[life.stress_level]
    expected += {"low": 20, "medium": 5}.get(life.energy_level, 0)
    expected += {"never": 15, "occasionally": 5, "regularly": -10}[life.mindfulness_practice]
    expected += {"unsupported": 20, "mixed": 10, "supported": -10}[life.social_support]
    expected += {"high": 25, "moderate": 10}.get(life.burnout_level, 0)
    if life.stress_level == "high" and life.social_support == "unsupported":
        expected += 15
    if life.energy_level == "low" and life.burnout_level == "high":
        expected += 15
    if life.mindfulness_practice == "never" and life.stress_level == "high":
        expected += 10
    if life.burnout_level == "high" and life.social_support == "unsupported":
        expected += 10
    expected = max(0, min(int(MENTAL_HEALTH_RISK_CAP), expected))

    actual = result.risk_analysis.mental_health_risk
    return rule.outcome(
        abs(actual - expected) <= MENTAL_HEALTH_TOLERANCE,
        f"{expected}% (+-{MENTAL_HEALTH_TOLERANCE})",
        f"{actual}%",
    )


@book.rule(
    "risk_diabetes_diagnosed_100",
    "Diagnosed diabetes pins diabetes risk at 100",
    "A recorded type 1 or type 2 diagnosis overrides every modifier",
    "critical",
)
def _diabetes_diagnosed(rule, profile: SyntheticProfile, result: AnalysisResult):
    if not profile.profile.condition_tags & {"diabetes_type1", "diabetes_type2"}:
        return None
    actual = result.risk_analysis.diabetes_risk
    return rule.outcome(actual == DIABETES_RISK_CAP, "100%", f"{actual}%")


@book.rule(
    "risk_diabetes_bmi_modifier",
    "Diabetes BMI modifier follows the BMI band",
    "No BMI contribution below BMI 25; at least +20 from BMI 30",
    "high",
)
def _diabetes_bmi(rule, profile: SyntheticProfile, result: AnalysisResult):
    if result.condition_analysis.has_diabetes:
        return None
    bmi = _bmi(profile)
    contribution = result.risk_analysis.modifiers.get("diabetes", {}).get("bmi", 0.0)
    if bmi < BMI_OVERWEIGHT:
        return rule.outcome(contribution == 0, "no BMI modifier", f"+{contribution:g}")
    if bmi >= BMI_OBESE:
        return rule.outcome(contribution >= 20, ">= +20", f"+{contribution:g}")
    return rule.outcome(contribution > 0, "> 0", f"+{contribution:g}")


@book.rule(
    "risk_cvd_smoking_effect",
    "Smoking raises cardiovascular risk",
    "Smoking contributes +30 and the same profile as a non-smoker never scores higher",
    "high",
)
def _cvd_smoking(rule, profile: SyntheticProfile, result: AnalysisResult):
    if not profile.profile.lifestyle.is_smoker:
        return None
    smoker = result.risk_analysis.cardiovascular_risk
    non_smoker = analyze_compound_risk(_without(profile.profile, smoker=False)).cardiovascular_risk
    contribution = result.risk_analysis.modifiers.get("cardiovascular", {}).get("smoking", 0.0)
    passed = contribution == 30 and smoker >= non_smoker
    return rule.outcome(
        passed,
        f"+30 smoking modifier, >= {non_smoker}% (non-smoker)",
        f"+{contribution:g}, {smoker}%",
    )


@book.rule(
    "risk_cvd_heart_condition",
    "A heart condition raises cardiovascular risk",
    "The heart condition contributes unless already at the cap, and removing it never raises risk",
    "high",
)
def _cvd_heart(rule, profile: SyntheticProfile, result: AnalysisResult):
    if "heart_condition" not in profile.profile.condition_tags:
        return None
    with_heart = result.risk_analysis.cardiovascular_risk
    without = analyze_compound_risk(
        _without(profile.profile, condition="heart_condition")
    ).cardiovascular_risk
    cvd_details = result.risk_analysis.modifiers.get("cardiovascular", {})
    contributed = cvd_details.get("heart_condition", 0.0) > 0
    passed = with_heart >= without and (contributed or with_heart >= CARDIOVASCULAR_RISK_CAP)
    return rule.outcome(passed, f">= {without}% (no heart condition)", f"{with_heart}%")


@book.rule(
    "risk_metabolic_bmi_modifier",
    "Metabolic BMI modifier follows the BMI band",
    "BMI >= 30 adds 30, BMI 25-29.9 adds 15, otherwise nothing",
    "medium",
    independent=False,
)
def _metabolic_bmi(rule, profile: SyntheticProfile, result: AnalysisResult):
    bmi = _bmi(profile)
    expected = 30.0 if bmi >= BMI_OBESE else 15.0 if bmi >= BMI_OVERWEIGHT else 0.0
    actual = result.risk_analysis.modifiers.get("metabolic_syndrome", {}).get("bmi", 0.0)
    return rule.outcome(actual == expected, f"+{expected:g}", f"+{actual:g}")


@book.rule(
    "risk_no_negative_values",
    "All risk values non-negative",
    "Risk percentages are never negative",
    "critical",
)
def _no_negative(rule, profile: SyntheticProfile, result: AnalysisResult):
    risk = result.risk_analysis
    values = {
        "diabetes": risk.diabetes_risk,
        "cardiovascular": risk.cardiovascular_risk,
        "metabolic_syndrome": risk.metabolic_syndrome_risk,
        "mental_health": risk.mental_health_risk,
    }
    negative = {k: v for k, v in values.items() if v < 0}
    return rule.outcome(not negative, "all risks >= 0", negative or "all non-negative")


@book.rule(
    "risk_capped",
    "Risk values respect their ceilings",
    "Diabetes <= 100, cardiovascular <= 95, metabolic and mental health <= 90",
    "critical",
)
def _capped(rule, profile: SyntheticProfile, result: AnalysisResult):
    risk = result.risk_analysis
    over = []
    if risk.diabetes_risk > DIABETES_RISK_CAP:
        over.append(f"diabetes {risk.diabetes_risk}")
    if risk.cardiovascular_risk > CARDIOVASCULAR_RISK_CAP:
        over.append(f"cardiovascular {risk.cardiovascular_risk}")
    if risk.metabolic_syndrome_risk > METABOLIC_RISK_CAP:
        over.append(f"metabolic {risk.metabolic_syndrome_risk}")
    if risk.mental_health_risk > MENTAL_HEALTH_RISK_CAP:
        over.append(f"mental health {risk.mental_health_risk}")
    return rule.outcome(
        not over,
        "diabetes <= 100, CVD <= 95, metabolic <= 90, mental <= 90",
        ", ".join(over) or "within caps",
    )


@book.rule(
    "risk_overall_level_exists",
    "Overall risk level present",
    "Risk analysis carries a valid overall risk level",
    "critical",
)
def _level_exists(rule, profile: SyntheticProfile, result: AnalysisResult):
    level = result.risk_analysis.overall_risk_level
    return rule.outcome(level in RISK_LEVELS, " | ".join(RISK_LEVELS), level)


@book.rule(
    "risk_overall_level_consistent",
    "Overall risk level matches the averaged risks",
    "mean(diabetes, cardiovascular, metabolic) plus checkup modifier, banded at 70/50/30",
    "high",
    independent=False,
)
def _level_consistent(rule, profile: SyntheticProfile, result: AnalysisResult):
    risk = result.risk_analysis
    checkup = {"never": 10, "rare": 5}.get(profile.profile.lifestyle.checkup_frequency, 0)
    average = (
        risk.diabetes_risk + risk.cardiovascular_risk + risk.metabolic_syndrome_risk
    ) / 3 + checkup
    if average >= 70:
        expected = "critical"
    elif average >= 50:
        expected = "high"
    elif average >= 30:
        expected = "moderate"
    else:
        expected = "low"
    return rule.outcome(
        risk.overall_risk_level == expected,
        f"{expected} (average {average:.1f})",
        risk.overall_risk_level,
    )


RULES = tuple(book.rules)
