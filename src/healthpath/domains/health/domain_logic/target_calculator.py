"""Personalized daily and weekly targets.

Each target pairs an estimate of where the person is now (derived from the
1-10 self-reported scores) with where they should be, adjusted for age, BMI
and medical conditions. Condition caps are hard limits: nothing downstream may
raise a capped step target.
"""

from __future__ import annotations

import logging
import math

from healthpath.domains.health.domain_logic.analysis_models import (
    BMI_OBESE,
    BMI_OVERWEIGHT,
    BMI_UNDERWEIGHT,
    HEALTHY_BMI_MAX,
    HEART_STEP_CAP,
    PREGNANCY_STEP_CAP,
    STEP_CEILING,
    STEP_FLOOR,
    TARGET_BMI,
    UNDERWEIGHT_STEP_CAP,
    BmiTarget,
    ConditionAnalysis,
    ExerciseTarget,
    HydrationTarget,
    PersonalizedTargets,
    SleepTarget,
    StepsTarget,
    WeightTarget,
)
from healthpath.domains.health.domain_logic.condition_classifier import classify_conditions
from healthpath.domains.health.domain_logic.modifier_tables import (
    Band,
    BandTable,
    ModifierSet,
    round1,
)
from healthpath.domains.health.domain_logic.profile_models import ProfileInput
from healthpath.domains.health.domain_logic.risk_calculator import (
    bmi_category,
    calculate_bmi,
    estimate_sleep_hours,
)

logger = logging.getLogger(__name__)

# Liters per kg of body weight
HYDRATION_MULTIPLIERS = {"male": 0.035, "female": 0.031, "other": 0.033}
PREGNANCY_HYDRATION_BONUS = 0.7
KIDNEY_HYDRATION_FACTOR = 0.85
HEART_HYDRATION_FACTOR = 0.9
ORGAN_STEP_REDUCTION = 1000
MIN_DIRECTION_KG = 0.1

STEPS = ModifierSet(
    name="steps",
    baseline=10000,
    hi=STEP_CEILING,
    modifiers=(
        BandTable(
            "age",
            lambda c: c[0],
            (Band.at_least(65, -3000), Band.at_least(50, -1500), Band.below(30, 2000)),
        ),
        BandTable(
            "bmi",
            lambda c: c[1],
            (
                Band.at_least(BMI_OBESE, -2000),
                Band.at_least(BMI_OVERWEIGHT, -1000),
                Band(1000, lo=BMI_UNDERWEIGHT, hi=20),
            ),
        ),
    ),
)


# ---------------------------------------------------------------------------
# Current-state estimators
# ---------------------------------------------------------------------------

def estimate_current_hydration(score: float) -> float:
    """Daily liters implied by a 1-10 hydration score."""
    if score <= 3:
        return 0.6
    if score <= 6:
        return 1.2
    if score <= 8:
        return 2.0
    return 2.5


def estimate_current_exercise(score: float) -> int:
    """Weekly exercise minutes implied by a 1-10 exercise score."""
    if score <= 3:
        return 40
    if score <= 5:
        return 80
    if score <= 7:
        return 120
    return 180


def estimate_current_steps(score: float) -> int:
    if score <= 3:
        return 3000
    if score <= 5:
        return 5000
    if score <= 7:
        return 7000
    return 10000


# ---------------------------------------------------------------------------
# Target helpers
# ---------------------------------------------------------------------------

def sleep_range_for_age(age: float) -> tuple[float, float]:
    """Recommended nightly (min, max) hours."""
    if age < 18:
        return 8.0, 10.0
    if age < 65:
        return 7.0, 9.0
    return 7.0, 8.0


def hydration_goal(weight: float, gender: str, conditions: ConditionAnalysis) -> float:
    """Daily liters: weight x gender multiplier, then condition adjustments."""
    goal = weight * HYDRATION_MULTIPLIERS.get(gender, HYDRATION_MULTIPLIERS["other"])
    if conditions.pregnant:
        goal += PREGNANCY_HYDRATION_BONUS
    if conditions.kidney_issues:
        goal *= KIDNEY_HYDRATION_FACTOR
    if conditions.heart_condition:
        goal *= HEART_HYDRATION_FACTOR
    return round1(goal)


def recommended_steps(
    age: float, bmi: float, conditions: ConditionAnalysis
) -> tuple[int, tuple[str, ...]]:
    """Daily step target and the safety caps that lowered it.

    Caps apply in priority order (underweight, heart, pregnancy), then the
    organ reduction, then the 3000 floor.
    """
    steps = STEPS.value((age, bmi))
    capped_by: list[str] = []

    caps = (
        ("underweight", bmi < BMI_UNDERWEIGHT, UNDERWEIGHT_STEP_CAP),
        ("heart_condition", conditions.heart_condition, HEART_STEP_CAP),
        ("pregnancy_breastfeeding", conditions.pregnant, PREGNANCY_STEP_CAP),
    )
    for name, active, cap in caps:
        if active and steps > cap:
            steps = cap
            capped_by.append(name)

    if conditions.kidney_issues or conditions.liver_issues:
        steps -= ORGAN_STEP_REDUCTION
        capped_by.append("organ_condition")

    return int(max(STEP_FLOOR, steps)), tuple(capped_by)


def exercise_target(age: float, bmi: float) -> int:
    """Weekly exercise minutes."""
    minutes = 150
    if bmi >= BMI_OBESE:
        minutes = 200
    elif bmi >= BMI_OVERWEIGHT:
        minutes = 175
    if age >= 60:
        minutes = max(120, minutes - 30)
    return minutes


def calculate_healthy_weight_range(height: float, gender: str = "other") -> tuple[float, float]:
    """Healthy (min, max) kg for a height in cm: BMI 18.5 to 24.9.

    ``gender`` is accepted for call-site symmetry; the band is the same for
    everyone so the range always agrees with the BMI category.
    """
    meters_sq = (height / 100) ** 2
    return round1(BMI_UNDERWEIGHT * meters_sq), round1(HEALTHY_BMI_MAX * meters_sq)


def weight_target(weight: float, height: float, gender: str) -> WeightTarget:
    """Classify the weight direction from the BMI category.

    Exactly one of ``deficit_kg > 0``, ``excess_kg > 0`` or ``is_healthy``
    holds. Amounts are measured against the healthy band and never reported
    below 0.1 kg when a direction is required.
    """
    bmi = calculate_bmi(weight, height)
    low, high = calculate_healthy_weight_range(height, gender)
    meters_sq = (height / 100) ** 2

    if bmi < BMI_UNDERWEIGHT:
        deficit = max(MIN_DIRECTION_KG, round1(BMI_UNDERWEIGHT * meters_sq - weight))
        return WeightTarget(weight, low, high, "gain", deficit_kg=deficit)
    if bmi >= BMI_OVERWEIGHT:
        excess = max(MIN_DIRECTION_KG, round1(weight - HEALTHY_BMI_MAX * meters_sq))
        return WeightTarget(weight, low, high, "loss", excess_kg=excess)
    return WeightTarget(weight, low, high, "maintain", is_healthy=True)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def calculate_all_targets(
    profile: ProfileInput, conditions: ConditionAnalysis | None = None
) -> PersonalizedTargets:
    """Build every personalized target for a profile."""
    conditions = conditions or classify_conditions(profile.condition_tags)
    demo = profile.demographics
    metrics = profile.health_metrics
    bmi = calculate_bmi(demo.weight, demo.height)

    target_liters = hydration_goal(demo.weight, demo.gender, conditions)
    current_liters = estimate_current_hydration(metrics.hydration)
    hydration = HydrationTarget(
        current_liters=current_liters,
        target_liters=target_liters,
        deficit_percentage=max(
            0, int(round((target_liters - current_liters) / target_liters * 100))
        ),
        glasses_needed=math.ceil(target_liters * 4),
    )

    band_min, band_max = sleep_range_for_age(demo.age)
    current_sleep = estimate_sleep_hours(metrics.sleep)
    # Never ask for less than what is already achieved
    target_min = min(current_sleep, band_max) if current_sleep >= band_min else band_min
    sleep = SleepTarget(
        current_hours=current_sleep,
        target_min_hours=target_min,
        target_max_hours=band_max,
        deficit_hours=round1(max(0.0, target_min - current_sleep)),
    )

    current_minutes = estimate_current_exercise(metrics.exercise)
    target_minutes = exercise_target(demo.age, bmi)
    exercise = ExerciseTarget(
        current_minutes_weekly=current_minutes,
        target_minutes_weekly=target_minutes,
        deficit_minutes=max(0, target_minutes - current_minutes),
    )

    current_steps = estimate_current_steps(metrics.exercise)
    target_steps, capped_by = recommended_steps(demo.age, bmi, conditions)
    steps = StepsTarget(
        current_daily=current_steps,
        target_daily=target_steps,
        deficit_steps=max(0, target_steps - current_steps),
        capped_by=capped_by,
    )

    weight = weight_target(demo.weight, demo.height, demo.gender)
    logger.debug("Weight direction %s", weight.direction)

    return PersonalizedTargets(
        sleep=sleep,
        hydration=hydration,
        steps=steps,
        exercise=exercise,
        weight=weight,
        bmi=BmiTarget(current=round1(bmi), target=TARGET_BMI, category=bmi_category(bmi)),
    )
