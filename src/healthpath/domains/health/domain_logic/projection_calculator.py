"""90-day outcome projection.

Simulates where weight, BMI, sleep, energy and the overall health score land
after 12 active weeks of following the plan, given an adherence rate derived
from the mental-health answers.

Direction is decided by the starting BMI category: underweight profiles gain,
overweight and obese profiles lose (at most 10% of starting weight), and
normal-weight profiles drift toward BMI 22 without leaving the healthy band.
"""

from __future__ import annotations

import logging
import math

from healthpath.domains.health.domain_logic.analysis_models import (
    BMI_OBESE,
    BMI_OVERWEIGHT,
    BMI_SEVERELY_OBESE,
    BMI_UNDERWEIGHT,
    HEALTHY_BMI_MAX,
    MAX_LOSS_FRACTION,
    PROJECTION_WEEKS,
    TARGET_BMI,
    AdherenceQuality,
    Milestone,
    NinetyDayProjection,
    PersonalizedTargets,
    ProjectedMetric,
)
from healthpath.domains.health.domain_logic.modifier_tables import clamp, round1
from healthpath.domains.health.domain_logic.profile_models import METRIC_MAX, ProfileInput
from healthpath.domains.health.domain_logic.risk_calculator import calculate_bmi
from healthpath.domains.health.domain_logic.target_calculator import calculate_all_targets

logger = logging.getLogger(__name__)

# Adherence, in whole percentage points
BASE_ADHERENCE = 65
ADHERENCE_MIN = 40
ADHERENCE_MAX = 80
_ADHERENCE_DELTAS = {
    "energy_level": {"high": 5, "low": -10},
    "social_support": {"supported": 10, "unsupported": -10},
    "stress_level": {"low": 5, "high": -5},
    "burnout_level": {"low": 5, "high": -15},
}
_QUALITY_FACTORS = {"high": 1.2, "moderate": 1.0, "low": 0.6}

# kg per week
UNDERWEIGHT_WEEKLY_GAIN = 0.4
NORMAL_WEEKLY_DRIFT = 0.1
SLEEP_GAP_CLOSURE = 0.8

ENERGY_BY_LEVEL = {"low": 3, "medium": 5, "high": 8}


def _metric(current: float, projected: float) -> ProjectedMetric:
    return ProjectedMetric(current, projected, round1(projected - current))


# ---------------------------------------------------------------------------
# Adherence
# ---------------------------------------------------------------------------

def adherence_rate(profile: ProfileInput) -> float:
    """Expected fraction of the plan followed, in [0.40, 0.80]."""
    lifestyle = profile.lifestyle
    points = BASE_ADHERENCE
    for attribute, deltas in _ADHERENCE_DELTAS.items():
        points += deltas.get(getattr(lifestyle, attribute), 0)
    return clamp(points, ADHERENCE_MIN, ADHERENCE_MAX) / 100


def adherence_quality(rate: float) -> AdherenceQuality:
    if rate >= 0.70:
        return "high"
    if rate >= 0.55:
        return "moderate"
    return "low"


# ---------------------------------------------------------------------------
# Per-metric projections
# ---------------------------------------------------------------------------

def weekly_weight_rate(bmi: float) -> float:
    """Signed kg/week before the adherence factor (positive is gain)."""
    if bmi < BMI_UNDERWEIGHT:
        return UNDERWEIGHT_WEEKLY_GAIN
    if bmi >= BMI_SEVERELY_OBESE:
        return -1.0
    if bmi >= BMI_OBESE:
        return -0.8
    if bmi >= BMI_OVERWEIGHT:
        return -0.6
    return 0.0


def project_weight(weight: float, height: float, quality: AdherenceQuality) -> float:
    """Projected weight in kg after the active weeks, rounded to 0.1."""
    bmi = calculate_bmi(weight, height)
    factor = _QUALITY_FACTORS[quality]
    meters_sq = (height / 100) ** 2

    if BMI_UNDERWEIGHT <= bmi < BMI_OVERWEIGHT:
        ideal = TARGET_BMI * meters_sq
        drift = min(NORMAL_WEEKLY_DRIFT * factor * PROJECTION_WEEKS, abs(ideal - weight))
        projected = weight + drift if ideal > weight else weight - drift
        projected = clamp(projected, BMI_UNDERWEIGHT * meters_sq, HEALTHY_BMI_MAX * meters_sq)
        return round1(projected)

    change = weekly_weight_rate(bmi) * factor * PROJECTION_WEEKS
    if change > 0:
        return round1(weight + change)
    floor = math.ceil(weight * (1 - MAX_LOSS_FRACTION) * 10) / 10
    return max(round1(weight + change), floor)


def project_sleep(current: float, target: float) -> float:
    """Close most of the gap to target; never regress when already there."""
    if current >= target:
        return round1(current)
    return round1(min(current + (target - current) * SLEEP_GAP_CLOSURE, target))


def exercise_improvement(score: float) -> int:
    return 3 if score <= 3 else 1


def nutrition_improvement(score: float) -> int:
    return 2 if score <= 5 else 1


def project_energy(
    current: float,
    sleep_change: float,
    hydration_deficit_pct: float,
    exercise_gain: int,
    nutrition_gain: int,
) -> float:
    improvement = 0
    if sleep_change >= 2:
        improvement += 3
    elif sleep_change >= 1:
        improvement += 2
    elif sleep_change == 0 and current >= 7:
        improvement += 2
    elif sleep_change > 0:
        improvement += 1

    if hydration_deficit_pct >= 40:
        improvement += 2
    elif hydration_deficit_pct >= 20:
        improvement += 1

    if exercise_gain >= 3:
        improvement += 2
    elif exercise_gain >= 1:
        improvement += 1

    if nutrition_gain >= 2:
        improvement += 1

    return min(current + improvement, METRIC_MAX)


def health_score(hydration: float, sleep: float, exercise: float, nutrition: float) -> int:
    """0-100 composite: mean of the four 1-10 metrics x 10, rounded."""
    return int(round((hydration + sleep + exercise + nutrition) / 4 * 10))


def project_health_score(
    profile: ProfileInput,
    sleep_change: float,
    hydration_deficit_fraction: float,
    exercise_gain: int,
    nutrition_gain: int,
) -> int:
    """Recompute the composite from projected component metrics."""
    metrics = profile.health_metrics
    points = {
        "sleep": min(max(sleep_change, 0.0) * 2.5, 6.0),
        "hydration": min(max(hydration_deficit_fraction, 0.0) * 25, 6.0),
        "exercise": min(exercise_gain * 2.5, 7.0),
        "nutrition": min(nutrition_gain * 2.5, 6.0),
    }
    projected = {
        name: min(METRIC_MAX, getattr(metrics, name) + gained / 2.5)
        for name, gained in points.items()
    }
    return health_score(**projected)


# ---------------------------------------------------------------------------
# Narrative fragments
# ---------------------------------------------------------------------------

def daily_life_improvements(
    weight_change: float, sleep_change: float, energy_change: float, bmi: float
) -> tuple[str, ...]:
    """Everyday changes the person should notice. ``weight_change`` is signed."""
    lines: list[str] = []
    magnitude = abs(weight_change)

    if sleep_change >= 2:
        lines += ["You wake up refreshed instead of groggy", "You think more clearly at work"]
    elif sleep_change >= 1:
        lines.append("You feel more rested in the mornings")

    if bmi < BMI_UNDERWEIGHT:
        if magnitude >= 4:
            lines += [
                "You notice clothes fitting better (less baggy)",
                "You have more strength and stamina",
                "You feel less cold and tired",
            ]
        elif magnitude >= 2:
            lines += [
                "You notice increased energy and strength",
                "You feel warmer and less fatigued",
            ]
    elif weight_change < 0:
        if magnitude >= 5:
            lines += [
                "You climb stairs without being winded",
                "Your clothes fit better",
                "You have more confidence in your appearance",
            ]
        elif magnitude >= 3:
            lines.append("You notice clothes fitting slightly looser")

    if energy_change >= 3:
        lines += [
            "You have energy for family and friends after work",
            "You don't need afternoon coffee to stay alert",
        ]
    elif energy_change >= 2:
        lines.append("You feel less tired throughout the day")

    if bmi >= BMI_OBESE and weight_change <= -5:
        lines += ["You experience less joint pain", "You sleep better (less snoring/apnea)"]

    if bmi >= BMI_UNDERWEIGHT:
        lines.append("You don't crave junk food constantly")

    return tuple(lines)


def milestones(weight_change: float) -> tuple[Milestone, ...]:
    """Week-numbered checkpoints, worded for the weight direction."""
    magnitude = abs(weight_change)
    if weight_change > 0:
        early = f"{magnitude / 3:.1f}kg gained, appetite more regular"
        final = f"{magnitude:.1f}kg total gain, more strength and stamina"
    elif weight_change < 0:
        early = f"{magnitude / 3:.1f}kg early weight loss, improved energy"
        final = f"{magnitude:.1f}kg total loss, better digestion"
    else:
        early = "Weight steady in the healthy range, improved energy"
        final = "Weight maintained, habits running on autopilot"

    return (
        Milestone(1, "Better morning alertness"),
        Milestone(2, "Reduced headaches, less afternoon fatigue"),
        Milestone(3, "Clearer thinking, better appetite control"),
        Milestone(4, early),
        Milestone(6, "Easier breathing, less winded"),
        Milestone(8, "Better mood, steadier energy through the day"),
        Milestone(10, "Reduced cravings, more stable energy"),
        Milestone(12, final),
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def calculate_ninety_day_projection(
    profile: ProfileInput, targets: PersonalizedTargets | None = None
) -> NinetyDayProjection:
    """Project the profile forward 90 days, using the targets as the attractor."""
    targets = targets or calculate_all_targets(profile)
    demo = profile.demographics
    metrics = profile.health_metrics

    rate = adherence_rate(profile)
    quality = adherence_quality(rate)

    current_weight = demo.weight
    projected_weight = project_weight(current_weight, demo.height, quality)
    weight = _metric(current_weight, projected_weight)

    bmi = calculate_bmi(current_weight, demo.height)
    bmi_metric = _metric(
        round1(bmi), round1(calculate_bmi(projected_weight, demo.height))
    )

    sleep_current = targets.sleep.current_hours
    sleep = _metric(sleep_current, project_sleep(sleep_current, targets.sleep.target_min_hours))

    hydration = targets.hydration
    deficit_fraction = (hydration.target_liters - hydration.current_liters) / hydration.target_liters
    exercise_gain = exercise_improvement(metrics.exercise)
    nutrition_gain = nutrition_improvement(metrics.nutrition)

    energy_current = ENERGY_BY_LEVEL[profile.lifestyle.energy_level]
    energy = _metric(
        energy_current,
        project_energy(
            energy_current, sleep.change, deficit_fraction * 100, exercise_gain, nutrition_gain
        ),
    )

    score_current = health_score(
        metrics.hydration, metrics.sleep, metrics.exercise, metrics.nutrition
    )
    score = _metric(
        score_current,
        project_health_score(profile, sleep.change, deficit_fraction, exercise_gain, nutrition_gain),
    )
    logger.debug("Projected weight change %.1f kg at %s adherence", weight.change, quality)

    return NinetyDayProjection(
        weight=weight,
        bmi=bmi_metric,
        sleep=sleep,
        energy_level=energy,
        health_score=score,
        adherence_rate=rate,
        adherence_quality=quality,
        weeks=PROJECTION_WEEKS,
        daily_life_improvements=daily_life_improvements(
            weight.change, sleep.change, energy.change, bmi
        ),
        milestones=milestones(weight.change),
    )
