"""Compound risk calculator.

Four risk dimensions (diabetes, cardiovascular, metabolic syndrome, mental
health) are each a ``ModifierSet``: a zero baseline plus banded and categorical
modifiers and compound-effect bonuses, clamped to the dimension ceiling. The
physical dimensions then receive condition adjustments and lifestyle
adjustments, each re-clamped. The diabetes diagnosis override runs last.

Usage::

    analysis = analyze_compound_risk(profile)
    analysis.diabetes_risk        # 0-100
    analysis.modifiers["diabetes"]  # {"age": 20.0, "bmi": 10.0, ...}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from healthpath.domains.health.domain_logic.analysis_models import (
    BMI_OBESE,
    BMI_OVERWEIGHT,
    BMI_SEVERELY_OBESE,
    BMI_UNDERWEIGHT,
    CARDIOVASCULAR_MODIFIER_CAP,
    CARDIOVASCULAR_RISK_CAP,
    DIABETES_MODIFIER_CAP,
    DIABETES_RISK_CAP,
    MENTAL_HEALTH_RISK_CAP,
    METABOLIC_RISK_CAP,
    CompoundRiskAnalysis,
    ConditionAnalysis,
    RiskFactor,
    RiskLevel,
)
from healthpath.domains.health.domain_logic.condition_classifier import classify_conditions
from healthpath.domains.health.domain_logic.modifier_tables import (
    Adjustment,
    Band,
    BandTable,
    Compound,
    LevelTable,
    ModifierSet,
    apply_adjustments,
)
from healthpath.domains.health.domain_logic.profile_models import ProfileInput

logger = logging.getLogger(__name__)

CHECKUP_MODIFIERS = {"never": 10.0, "rare": 5.0}


# ---------------------------------------------------------------------------
# Basic measures
# ---------------------------------------------------------------------------

def calculate_bmi(weight: float, height: float) -> float:
    """BMI from weight in kg and height in cm (unrounded)."""
    meters = height / 100
    return weight / (meters * meters)


def bmi_category(bmi: float) -> str:
    if bmi < BMI_UNDERWEIGHT:
        return "Underweight"
    if bmi < BMI_OVERWEIGHT:
        return "Normal weight"
    if bmi < BMI_OBESE:
        return "Overweight"
    if bmi < BMI_SEVERELY_OBESE:
        return "Obese"
    return "Severely obese"


def estimate_sleep_hours(score: float) -> float:
    """Nightly hours implied by a 1-10 sleep score."""
    if score <= 3:
        return 6.0
    if score <= 5:
        return 6.5
    if score <= 7:
        return 7.0
    return 7.5


def risk_level(percentage: float) -> RiskLevel:
    if percentage >= 70:
        return "critical"
    if percentage >= 50:
        return "high"
    if percentage >= 30:
        return "moderate"
    return "low"


# ---------------------------------------------------------------------------
# Evaluation context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RiskContext:
    """The flattened inputs every risk table reads from."""

    age: float
    bmi: float
    gender: str
    sleep_score: float
    sleep_hours: float
    hydration_score: float
    exercise_score: float
    is_smoker: bool
    alcohol_level: str
    stress_level: str
    energy_level: str
    mindfulness_practice: str
    social_support: str
    burnout_level: str
    conditions: ConditionAnalysis

    @classmethod
    def from_profile(
        cls, profile: ProfileInput, conditions: ConditionAnalysis | None = None
    ) -> RiskContext:
        demo = profile.demographics
        metrics = profile.health_metrics
        lifestyle = profile.lifestyle
        return cls(
            age=demo.age,
            bmi=calculate_bmi(demo.weight, demo.height),
            gender=demo.gender,
            sleep_score=metrics.sleep,
            sleep_hours=estimate_sleep_hours(metrics.sleep),
            hydration_score=metrics.hydration,
            exercise_score=metrics.exercise,
            is_smoker=lifestyle.is_smoker,
            alcohol_level=lifestyle.alcohol_level,
            stress_level=lifestyle.stress_level,
            energy_level=lifestyle.energy_level,
            mindfulness_practice=lifestyle.mindfulness_practice,
            social_support=lifestyle.social_support,
            burnout_level=lifestyle.burnout_level,
            conditions=conditions or classify_conditions(profile.condition_tags),
        )

    @property
    def stressed(self) -> bool:
        return self.stress_level in ("high", "moderate")


# ---------------------------------------------------------------------------
# Modifier tables
# ---------------------------------------------------------------------------

MENTAL_HEALTH = ModifierSet(
    name="mental_health",
    hi=MENTAL_HEALTH_RISK_CAP,
    modifiers=(
        LevelTable("stress", lambda c: c.stress_level, {"high": 30, "moderate": 15, "low": 5}),
        LevelTable("energy", lambda c: c.energy_level, {"low": 20, "medium": 5}),
        LevelTable(
            "mindfulness",
            lambda c: c.mindfulness_practice,
            {"never": 15, "occasionally": 5, "regularly": -10},
        ),
        LevelTable(
            "social_support",
            lambda c: c.social_support,
            {"unsupported": 20, "mixed": 10, "supported": -10},
        ),
        LevelTable("burnout", lambda c: c.burnout_level, {"high": 25, "moderate": 10}),
        Compound(
            "stress_isolation",
            lambda c: c.stress_level == "high" and c.social_support == "unsupported",
            15,
        ),
        Compound(
            "depletion",
            lambda c: c.energy_level == "low" and c.burnout_level == "high",
            15,
        ),
        Compound(
            "unmanaged_stress",
            lambda c: c.mindfulness_practice == "never" and c.stress_level == "high",
            10,
        ),
        Compound(
            "isolated_burnout",
            lambda c: c.burnout_level == "high" and c.social_support == "unsupported",
            10,
        ),
    ),
)

DIABETES = ModifierSet(
    name="diabetes",
    hi=DIABETES_MODIFIER_CAP,
    modifiers=(
        BandTable(
            "age",
            lambda c: c.age,
            (Band.at_least(45, 20), Band.at_least(35, 10), Band.at_least(25, 5)),
        ),
        BandTable(
            "bmi",
            lambda c: c.bmi,
            (
                Band.at_least(BMI_SEVERELY_OBESE, 30),
                Band.at_least(BMI_OBESE, 20),
                Band.at_least(BMI_OVERWEIGHT, 10),
            ),
        ),
        BandTable(
            "sleep",
            lambda c: c.sleep_hours,
            (
                Band.between(7, 9, -5),
                Band.below(5, 15),
                Band.below(6, 10),
                Band.below(7, 5),
                Band.above(9, 3),
            ),
        ),
        Compound("smoking", lambda c: c.is_smoker, 15),
        Compound(
            "age_obesity_sleep",
            lambda c: c.age >= 45 and c.bmi >= BMI_OBESE and c.sleep_hours < 6,
            15,
        ),
        Compound("smoking_obesity", lambda c: c.is_smoker and c.bmi >= BMI_OBESE, 10),
    ),
)

CARDIOVASCULAR = ModifierSet(
    name="cardiovascular",
    hi=CARDIOVASCULAR_MODIFIER_CAP,
    modifiers=(
        BandTable(
            "age",
            lambda c: c.age,
            (Band.at_least(45, 25), Band.at_least(35, 15), Band.at_least(25, 5)),
            applies=lambda c: c.gender == "male",
        ),
        BandTable(
            "age",
            lambda c: c.age,
            (Band.at_least(55, 25), Band.at_least(45, 15), Band.at_least(35, 5)),
            applies=lambda c: c.gender != "male",
        ),
        BandTable(
            "bmi",
            lambda c: c.bmi,
            (Band.at_least(BMI_OBESE, 20), Band.at_least(BMI_OVERWEIGHT, 10)),
        ),
        BandTable(
            "exercise",
            lambda c: c.exercise_score,
            (
                Band.at_least(7, -10),
                Band.at_least(5, 5),
                Band.at_least(3, 10),
                Band.always(20),
            ),
        ),
        Compound("smoking", lambda c: c.is_smoker, 30),
        LevelTable("stress", lambda c: c.stress_level, {"high": 15, "moderate": 5}),
        Compound(
            "age_obesity_inactivity",
            lambda c: c.age >= 40 and c.bmi >= BMI_OBESE and c.exercise_score <= 5,
            10,
        ),
        Compound("smoking_obesity", lambda c: c.is_smoker and c.bmi >= BMI_OBESE, 15),
        Compound(
            "stress_smoking",
            lambda c: c.stress_level == "high" and c.is_smoker,
            10,
        ),
    ),
)

METABOLIC = ModifierSet(
    name="metabolic_syndrome",
    hi=METABOLIC_RISK_CAP,
    modifiers=(
        BandTable(
            "bmi",
            lambda c: c.bmi,
            (Band.at_least(BMI_OBESE, 30), Band.at_least(BMI_OVERWEIGHT, 15)),
        ),
        BandTable("sleep", lambda c: c.sleep_score, (Band.at_most(3, 20), Band.at_most(5, 10))),
        BandTable(
            "hydration",
            lambda c: c.hydration_score,
            (Band.at_most(4, 15), Band.at_most(6, 8)),
        ),
        BandTable("age", lambda c: c.age, (Band.at_least(45, 10), Band.at_least(35, 5))),
        LevelTable(
            "alcohol",
            lambda c: c.alcohol_level,
            {"heavy": 15, "moderate": 8, "light": 3},
        ),
        LevelTable("stress", lambda c: c.stress_level, {"high": 12, "moderate": 5}),
        Compound(
            "stress_poor_sleep",
            lambda c: c.stress_level == "high" and c.sleep_score <= 5,
            10,
        ),
        Compound(
            "alcohol_poor_sleep",
            lambda c: c.alcohol_level in ("moderate", "heavy") and c.sleep_score <= 5,
            8,
        ),
    ),
)


# ---------------------------------------------------------------------------
# Post-clamp adjustments (applied in order)
# ---------------------------------------------------------------------------

_CVD_CAP = CARDIOVASCULAR_RISK_CAP
_MET_CAP = METABOLIC_RISK_CAP

DIABETES_ADJUSTMENTS = (
    Adjustment("low_energy", lambda c: c.energy_level == "low", 5, cap=DIABETES_MODIFIER_CAP),
    Adjustment(
        "burnout_stress",
        lambda c: c.burnout_level == "high" and c.stressed,
        5,
        cap=DIABETES_MODIFIER_CAP,
    ),
)

CARDIOVASCULAR_ADJUSTMENTS = (
    Adjustment("high_blood_pressure", lambda c: c.conditions.high_blood_pressure, 20, cap=_CVD_CAP),
    Adjustment("heart_condition", lambda c: c.conditions.heart_condition, 30, cap=_CVD_CAP),
    Adjustment("kidney_issues", lambda c: c.conditions.kidney_issues, 10, cap=_CVD_CAP),
    Adjustment("pregnancy", lambda c: c.conditions.pregnant, -10, cap=_CVD_CAP, floor=5),
    Adjustment(
        "diabetes_heart",
        lambda c: c.conditions.has_diabetes and c.conditions.heart_condition,
        15,
        cap=_CVD_CAP,
    ),
    Adjustment(
        "diabetes_high_blood_pressure",
        lambda c: c.conditions.has_diabetes and c.conditions.high_blood_pressure,
        10,
        cap=_CVD_CAP,
    ),
    Adjustment(
        "heart_high_blood_pressure",
        lambda c: c.conditions.heart_condition and c.conditions.high_blood_pressure,
        10,
        cap=_CVD_CAP,
    ),
    Adjustment("mindfulness", lambda c: c.mindfulness_practice == "regularly", -8, cap=_CVD_CAP),
    Adjustment(
        "unmanaged_stress",
        lambda c: c.mindfulness_practice == "never" and c.stress_level == "high",
        5,
        cap=_CVD_CAP,
    ),
    Adjustment(
        "burnout_stress",
        lambda c: c.burnout_level == "high" and c.stressed,
        8,
        cap=_CVD_CAP,
    ),
)

METABOLIC_ADJUSTMENTS = (
    Adjustment("thyroid_issues", lambda c: c.conditions.thyroid_issues, 15, cap=_MET_CAP),
    Adjustment("kidney_issues", lambda c: c.conditions.kidney_issues, 10, cap=_MET_CAP),
    Adjustment("liver_issues", lambda c: c.conditions.liver_issues, 15, cap=_MET_CAP),
    Adjustment("digestive_issues", lambda c: c.conditions.digestive_issues, 5, cap=_MET_CAP),
    Adjustment("pregnancy", lambda c: c.conditions.pregnant, -10, cap=_MET_CAP, floor=5),
    Adjustment(
        "diabetes_kidney",
        lambda c: c.conditions.has_diabetes and c.conditions.kidney_issues,
        10,
        cap=_MET_CAP,
    ),
    Adjustment("low_energy", lambda c: c.energy_level == "low", 10, cap=_MET_CAP),
    Adjustment("mindfulness", lambda c: c.mindfulness_practice == "regularly", -5, cap=_MET_CAP),
    Adjustment(
        "unmanaged_stress",
        lambda c: c.mindfulness_practice == "never" and c.stress_level == "high",
        5,
        cap=_MET_CAP,
    ),
    Adjustment(
        "burnout_stress",
        lambda c: c.burnout_level == "high" and c.stressed,
        8,
        cap=_MET_CAP,
    ),
    Adjustment(
        "burnout_low_energy",
        lambda c: c.burnout_level == "high" and c.energy_level == "low",
        10,
        cap=_MET_CAP,
    ),
)


# ---------------------------------------------------------------------------
# Per-dimension risk
# ---------------------------------------------------------------------------

def _evaluate(
    modifier_set: ModifierSet,
    adjustments: tuple[Adjustment, ...],
    ctx: RiskContext,
) -> tuple[float, dict[str, float]]:
    value, details = modifier_set.evaluate(ctx)
    value = apply_adjustments(value, adjustments, ctx, details)
    return value, details


def _diabetes(ctx: RiskContext) -> tuple[float, dict[str, float]]:
    value, details = _evaluate(DIABETES, DIABETES_ADJUSTMENTS, ctx)
    if ctx.conditions.has_diabetes:
        details["diagnosed"] = DIABETES_RISK_CAP - value
        value = DIABETES_RISK_CAP
    return value, details


def diabetes_risk(ctx: RiskContext) -> int:
    """Diabetes risk in [0, 100]; exactly 100 when diabetes is diagnosed."""
    return int(round(_diabetes(ctx)[0]))


def cardiovascular_risk(ctx: RiskContext) -> int:
    """Cardiovascular risk in [0, 95]."""
    return int(round(_evaluate(CARDIOVASCULAR, CARDIOVASCULAR_ADJUSTMENTS, ctx)[0]))


def metabolic_syndrome_risk(ctx: RiskContext) -> int:
    """Metabolic syndrome risk in [0, 90]."""
    return int(round(_evaluate(METABOLIC, METABOLIC_ADJUSTMENTS, ctx)[0]))


def mental_health_risk(ctx: RiskContext) -> int:
    """Mental health risk in [0, 90]."""
    return int(round(MENTAL_HEALTH.value(ctx)))


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

def risk_category(ctx: RiskContext) -> str:
    """One-sentence risk category driven by the dominant habit pattern."""
    bmi = ctx.bmi
    sleep = ctx.sleep_score
    positive = sum(
        (sleep >= 7, bmi < BMI_OVERWEIGHT, not ctx.is_smoker, ctx.stress_level == "low")
    )

    if ctx.age >= 45 and bmi >= BMI_OBESE and sleep <= 5 and ctx.is_smoker:
        return (
            "Critical risk category - multiple severe compounding factors "
            "requiring immediate intervention"
        )
    if bmi >= BMI_OBESE and sleep <= 5:
        return (
            "High risk category - obesity combined with poor sleep "
            "significantly increases disease risk"
        )
    if ctx.is_smoker and bmi >= BMI_OBESE:
        return "High risk category - smoking and obesity compound significantly"
    if bmi >= BMI_OVERWEIGHT and sleep <= 6:
        return "Moderate-high risk category - weight and sleep need attention"
    if bmi >= BMI_OVERWEIGHT and positive >= 2:
        return (
            "Moderate risk category - good habits mitigate overweight, "
            "focus on weight management"
        )
    if bmi < BMI_OVERWEIGHT and (sleep <= 6 or ctx.stress_level == "high"):
        return (
            "Moderate risk category - healthy weight but lifestyle factors "
            "need improvement"
        )
    if bmi < BMI_OVERWEIGHT and positive >= 3:
        return "Low risk category - excellent health foundation, maintain these habits"
    return "Moderate risk category - room for improvement in key areas"


def _cardiovascular_factor(ctx: RiskContext, cvd: int) -> RiskFactor:
    bmi_text = f"{ctx.bmi:.1f}"
    exercise = ctx.exercise_score
    factors: list[str] = []
    if exercise <= 3:
        factors.append("Sedentary lifestyle")
    elif exercise <= 5:
        factors.append("Low activity level")
    if ctx.bmi >= BMI_OBESE:
        factors.append("Obesity")
    elif ctx.bmi >= BMI_OVERWEIGHT:
        factors.append("Overweight")
    if ctx.age >= 45:
        factors.append("Age")
    if ctx.stress_level == "high":
        factors.append("High stress")

    if exercise <= 3:
        description = (
            f"Sedentary lifestyle combined with BMI {bmi_text} increases "
            f"cardiovascular disease risk by {cvd}%"
        )
    elif exercise <= 5:
        description = (
            f"Low activity level ({exercise:g}/10) combined with BMI {bmi_text} "
            f"increases cardiovascular disease risk by {cvd}%"
        )
    else:
        description = (
            f"At age {ctx.age:g} with BMI {bmi_text}, your cardiovascular disease "
            f"risk is {cvd}%. Regular exercise is helping mitigate this risk."
        )
    severity: RiskLevel = "critical" if cvd >= 70 else "high" if cvd >= 50 else "moderate"
    return RiskFactor(
        name="Cardiovascular Disease Risk",
        severity=severity,
        risk_percentage=cvd,
        description=description,
        compound_factors=tuple(factors),
    )


def identify_primary_risk_factors(
    ctx: RiskContext, diabetes: int, cardiovascular: int
) -> tuple[RiskFactor, ...]:
    """The compound risk patterns present in this profile, most severe first."""
    bmi = ctx.bmi
    bmi_text = f"{bmi:.1f}"
    sleep = ctx.sleep_score
    smoker_obese = ctx.is_smoker and bmi >= BMI_OBESE
    factors: list[RiskFactor] = []

    if smoker_obese:
        factors.append(RiskFactor(
            name="Smoking + Obesity = Critical Compound Risk",
            severity="critical",
            risk_percentage=cardiovascular,
            description=(
                f"As a smoker with BMI {bmi_text}, your cardiovascular disease risk is "
                f"{cardiovascular}%. Smoking + obesity creates a 6x higher mortality "
                "risk than either factor alone."
            ),
            compound_factors=("Smoking", "Obesity", "Age"),
        ))

    if bmi >= BMI_OBESE and sleep <= 5:
        factors.append(RiskFactor(
            name="Sleep Deprivation + Obesity",
            severity="critical",
            risk_percentage=diabetes,
            description=(
                f"At age {ctx.age:g} with BMI {bmi_text} and chronic sleep deprivation, "
                f"your risk of Type 2 diabetes within 5 years is {diabetes}%"
            ),
            compound_factors=("Obesity", "Sleep deprivation", "Age"),
        ))

    if ctx.stress_level == "high" and sleep <= 5:
        factors.append(RiskFactor(
            name="High Stress + Sleep Deprivation",
            severity="high",
            risk_percentage=45,
            description=(
                "High stress combined with poor sleep creates chronic cortisol "
                "elevation, leading to visceral fat storage, muscle breakdown, and "
                "30% increased weight gain"
            ),
            compound_factors=("High stress", "Sleep deprivation", "Cortisol dysregulation"),
        ))

    if ctx.alcohol_level in ("moderate", "heavy") and sleep <= 5:
        heavy = ctx.alcohol_level == "heavy"
        factors.append(RiskFactor(
            name="Alcohol Consumption + Sleep Disruption",
            severity="high" if heavy else "moderate",
            risk_percentage=35,
            description=(
                f"{'Heavy' if heavy else 'Moderate'} alcohol consumption reduces REM "
                "sleep by 20-30%, disrupts metabolism, and adds empty calories. "
                "Combined with poor sleep, this creates a metabolic crisis."
            ),
            compound_factors=("Alcohol", "Sleep disruption", "Metabolic dysfunction"),
        ))

    if ctx.hydration_score <= 4:
        deficit = int(round((10 - ctx.hydration_score) * 10))
        factors.append(RiskFactor(
            name="Severe Dehydration",
            severity="high" if ctx.hydration_score <= 3 else "moderate",
            risk_percentage=deficit,
            description=(
                f"At {deficit}% hydration deficit, experiencing chronic fatigue, poor "
                "cognitive function, and slower metabolism"
            ),
            compound_factors=("Dehydration", "Cellular dysfunction"),
        ))

    if bmi < BMI_UNDERWEIGHT:
        if bmi < 16:
            severity, percentage = "critical", 80
        elif bmi < 17:
            severity, percentage = "high", 65
        else:
            severity, percentage = "moderate", 50
        factors.append(RiskFactor(
            name="Underweight Health Risks",
            severity=severity,
            risk_percentage=percentage,
            description=(
                f"BMI {bmi_text} (underweight) increases risk of malnutrition, weakened "
                "immune system, osteoporosis, fertility issues, and anemia. Your body "
                "needs adequate nutrition to function properly."
            ),
            compound_factors=(
                "Underweight", "Malnutrition risk", "Weak immunity", "Low bone density",
            ),
        ))

    if cardiovascular >= 40 and not smoker_obese:
        factors.append(_cardiovascular_factor(ctx, cardiovascular))

    return tuple(factors)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def analyze_compound_risk(
    profile: ProfileInput, conditions: ConditionAnalysis | None = None
) -> CompoundRiskAnalysis:
    """Compute all four compound risks and their summary for one profile.

    Args:
        profile: The validated profile.
        conditions: A precomputed classification of the profile's condition
            tags; classified on the fly when omitted.

    Returns:
        A ``CompoundRiskAnalysis`` whose ``modifiers`` map explains every
        non-zero contribution per dimension.
    """
    ctx = RiskContext.from_profile(profile, conditions)

    diabetes_value, diabetes_details = _diabetes(ctx)
    cvd_value, cvd_details = _evaluate(CARDIOVASCULAR, CARDIOVASCULAR_ADJUSTMENTS, ctx)
    metabolic_value, metabolic_details = _evaluate(METABOLIC, METABOLIC_ADJUSTMENTS, ctx)
    mental_value, mental_details = MENTAL_HEALTH.evaluate(ctx)

    diabetes = int(round(diabetes_value))
    cardiovascular = int(round(cvd_value))
    metabolic = int(round(metabolic_value))
    mental = int(round(mental_value))

    checkup = CHECKUP_MODIFIERS.get(profile.lifestyle.checkup_frequency, 0.0)
    average = (diabetes + cardiovascular + metabolic) / 3 + checkup
    level = risk_level(average)
    logger.debug("Overall risk level %s", level)

    return CompoundRiskAnalysis(
        diabetes_risk=diabetes,
        cardiovascular_risk=cardiovascular,
        metabolic_syndrome_risk=metabolic,
        mental_health_risk=mental,
        overall_risk_level=level,
        average_risk=round(average, 2),
        checkup_modifier=checkup,
        primary_risk_factors=identify_primary_risk_factors(ctx, diabetes, cardiovascular),
        risk_category=risk_category(ctx),
        modifiers={
            "diabetes": diabetes_details,
            "cardiovascular": cvd_details,
            "metabolic_syndrome": metabolic_details,
            "mental_health": mental_details,
        },
    )
