"""Phased transformation roadmap with progressive weekly targets.

Three fixed phases (Foundation, Movement, Nutrition) of four weeks each, plus
a consolidation week. The weekly snapshots move each metric from the current
estimate toward its personalized target:

* sleep and hydration follow a non-linear ramp whose length depends on the
  urgency level (high 2 weeks, moderate 4, low 6);
* steps and exercise ramp linearly over the urgency length plus a diet
  offset, since heavy fast-food eaters start moving more slowly.

Values never move away from the target and never exceed the hard ceilings.
"""

from __future__ import annotations

import logging
import math

from healthpath.domains.health.domain_logic.analysis_models import (
    BMI_OBESE,
    ROADMAP_WEEKS,
    SLEEP_CEILING_HOURS,
    STEP_CEILING,
    ConditionAnalysis,
    DietSignal,
    PersonalizedTargets,
    PhaseAction,
    ProgressiveTargets,
    TransformationPhase,
    TransformationRoadmap,
    WeeklyMilestone,
    WeeklyTarget,
)
from healthpath.domains.health.domain_logic.modifier_tables import round1

logger = logging.getLogger(__name__)

URGENCY_WEEKS = {"high": 2, "moderate": 4, "low": 6}
FOUNDATION_RATES = {
    2: (0.30, 1.00),
    4: (0.20, 0.50, 0.80, 1.00),
    6: (0.15, 0.30, 0.50, 0.70, 0.85, 1.00),
}
DIET_RAMP_OFFSET = {"fast_food_heavy": 2, "mixed": 1, "balanced": 0}
WAKE_HOUR = 6

SUCCESS_FACTORS = (
    "Start with the easiest changes first (sleep + water)",
    "Build one habit at a time, don't try everything at once",
    "Track daily - what gets measured gets managed",
    "Expect setbacks - they're part of the process",
    "Focus on consistency over perfection",
)


def diet_signal_for(nutrition_score: float) -> DietSignal:
    """Coarse diet classification from the 1-10 nutrition score."""
    if nutrition_score <= 4:
        return "fast_food_heavy"
    if nutrition_score >= 7:
        return "balanced"
    return "mixed"


def _round_to(value: float, step: int) -> int:
    return int(math.floor(value / step + 0.5)) * step


def format_bedtime(sleep_hours: float, wake_hour: int = WAKE_HOUR) -> str:
    """Bedtime that yields ``sleep_hours`` before ``wake_hour``, e.g. ``10:30 PM``."""
    minutes = int(round((wake_hour - sleep_hours) * 60)) % (24 * 60)
    hour, minute = divmod(minutes, 60)
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}:{minute:02d} {suffix}"


# ---------------------------------------------------------------------------
# Progressive targets
# ---------------------------------------------------------------------------

def _toward(current: float, target: float, fraction: float) -> float:
    """Hold when already at or above target, else move ``fraction`` of the gap."""
    if current >= target:
        return current
    return current + (target - current) * fraction


def _steps_toward(current: int, target: int, fraction: float) -> float:
    # A safety cap below the current level applies from week one
    if current >= target:
        return target
    return current + (target - current) * fraction


def progressive_targets(
    targets: PersonalizedTargets, diet_signal: DietSignal, urgency_level: str
) -> ProgressiveTargets:
    """Build the 13 weekly snapshots."""
    foundation_weeks = URGENCY_WEEKS.get(urgency_level, URGENCY_WEEKS["moderate"])
    rates = FOUNDATION_RATES[foundation_weeks]
    movement_weeks = foundation_weeks + DIET_RAMP_OFFSET.get(diet_signal, 1)

    sleep, hydration = targets.sleep, targets.hydration
    steps, exercise = targets.steps, targets.exercise

    weekly: list[WeeklyTarget] = []
    for week in range(1, ROADMAP_WEEKS + 1):
        foundation = rates[week - 1] if week <= foundation_weeks else 1.0
        movement = min(1.0, week / movement_weeks)
        weekly.append(WeeklyTarget(
            week=week,
            sleep_hours=min(
                SLEEP_CEILING_HOURS,
                round1(_toward(sleep.current_hours, sleep.target_min_hours, foundation)),
            ),
            hydration_liters=round1(
                _toward(hydration.current_liters, hydration.target_liters, foundation)
            ),
            steps=min(
                STEP_CEILING,
                _round_to(_steps_toward(steps.current_daily, steps.target_daily, movement), 100),
            ),
            exercise_minutes=_round_to(
                _toward(exercise.current_minutes_weekly, exercise.target_minutes_weekly, movement),
                5,
            ),
        ))

    return ProgressiveTargets(
        weekly_targets=tuple(weekly),
        foundation_ramp_weeks=foundation_weeks,
        movement_ramp_weeks=movement_weeks,
        diet_signal=diet_signal,
        urgency_level=urgency_level,
    )


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------

def _weight_phrase(direction: str, amount: str) -> str:
    if direction == "gain":
        return f"{amount}kg healthy weight gain"
    if direction == "loss":
        return f"{amount}kg weight loss"
    return "Weight steady in the healthy range"


def _foundation_phase(
    targets: PersonalizedTargets, plan: ProgressiveTargets
) -> TransformationPhase:
    sleep_goal = max(targets.sleep.target_min_hours, targets.sleep.current_hours)
    liters = targets.hydration.target_liters
    weeks = {w.week: w for w in plan.weekly_targets}
    direction = targets.weight.direction

    return TransformationPhase(
        phase=1,
        name="Foundation",
        weeks="Weeks 1-4",
        focus=("Sleep", "Hydration"),
        actions=(
            PhaseAction(
                action="Sleep Protocol",
                how=(
                    f"Set bedtime: {format_bedtime(sleep_goal)} "
                    f"(to achieve {sleep_goal:g}-hour minimum)"
                ),
                why=(
                    "Sleep affects everything else. Without fixing it, food cravings "
                    "and low motivation undermine every other change"
                ),
                tracking=f"Did you sleep {sleep_goal:g}+ hours? Y/N",
            ),
            PhaseAction(
                action="Hydration Protocol",
                how=(
                    f"Start: {weeks[1].hydration_liters:g}L daily (Week 1), "
                    f"build to {liters:g}L by Week {plan.foundation_ramp_weeks}"
                ),
                why=(
                    "Easiest win. You'll feel the difference in 48 hours. Reduces "
                    "false hunger and improves energy"
                ),
                tracking=f"Drink {targets.hydration.glasses_needed} glasses daily",
            ),
        ),
        weekly_milestones=tuple(
            WeeklyMilestone(
                week=week,
                focus=(
                    f"Sleep {weeks[week].sleep_hours:g}h + "
                    f"{weeks[week].hydration_liters:g}L water"
                ),
                expected_changes=changes,
            )
            for week, changes in (
                (1, ("Better morning alertness", "Reduced brain fog")),
                (2, ("Reduced headaches", "Less afternoon fatigue")),
                (3, ("Clearer thinking", "Better appetite control")),
                (4, ("Improved energy", "Better skin")),
            )
        ),
        expected_results=(
            "Better morning alertness",
            "Reduced headaches and fatigue",
            "Clearer thinking and focus",
            _weight_phrase(direction, "1-2"),
            "Improved energy levels",
        ),
    )


def _movement_phase(
    age: float, targets: PersonalizedTargets, plan: ProgressiveTargets
) -> TransformationPhase:
    start = 20 if targets.bmi.current >= BMI_OBESE else 30
    weeks = {w.week: w for w in plan.weekly_targets}

    return TransformationPhase(
        phase=2,
        name="Movement",
        weeks="Weeks 5-8",
        focus=("Build exercise habit",),
        actions=(
            PhaseAction(
                action="Daily Walking",
                how=(
                    f"Week 5: {start}-min walk after lunch, Week 6: {start + 10}-min walk, "
                    "Week 7: add 2x bodyweight strength sessions, "
                    f"Week 8: {start + 20}-min walks + 2x strength"
                ),
                why=(
                    f"At {age:g} years old, walking builds an aerobic base without "
                    "injury risk and improves insulin sensitivity"
                ),
                tracking=(
                    f"Steps from {targets.steps.current_daily} to "
                    f"{targets.steps.target_daily} daily"
                ),
            ),
        ),
        weekly_milestones=tuple(
            WeeklyMilestone(
                week=week,
                focus=f"{weeks[week].steps} steps daily, {weeks[week].exercise_minutes} min/week",
                expected_changes=changes,
            )
            for week, changes in (
                (5, ("Easier breathing", "Less winded")),
                (6, ("Better stamina", "Improved mood")),
                (7, ("More strength",)),
                (8, ("Better posture", "Visible muscle tone")),
            )
        ),
        expected_results=(
            "Easier breathing, less winded",
            "Better mood and mental clarity",
            "Improved cardiovascular fitness",
            "Increased daily energy",
        ),
    )


_DIET_HOW = {
    "fast_food_heavy": (
        "Fast food several times a week -> 1x weekly. "
        "Replace with meal prep Sundays (3-4 meals ready)"
    ),
    "mixed": "Occasional fast food -> 1x weekly or less. Cook one extra meal at home",
    "balanced": "Keep your balanced base. Fine-tune portions and protein at each meal",
}


def _nutrition_phase(
    age: float, targets: PersonalizedTargets, diet_signal: DietSignal
) -> TransformationPhase:
    direction = targets.weight.direction
    breakfast_why = (
        "Supports steady weight gain with quality protein"
        if direction == "gain"
        else "Kickstarts the day and prevents afternoon overeating"
    )
    return TransformationPhase(
        phase=3,
        name="Nutrition",
        weeks="Weeks 9-12",
        focus=("Food quality", "Meal timing"),
        actions=(
            PhaseAction(
                action="Improve Food Quality",
                how=_DIET_HOW[diet_signal],
                why="Highly processed meals are calorie-dense and nutrient-poor",
                tracking="Fast food frequency: track weekly",
            ),
            PhaseAction(
                action="Add Breakfast",
                how="High-protein within 1 hour of waking",
                why=breakfast_why,
                tracking="Ate breakfast: Y/N daily",
            ),
            PhaseAction(
                action="Stop Late-Night Snacking",
                how="No food after 8 PM. Brush teeth after dinner as a trigger",
                why=f"At {age:g}, late calories disrupt sleep and blood sugar",
                tracking="No food after 8 PM: Y/N",
            ),
        ),
        weekly_milestones=(
            WeeklyMilestone(9, "Fewer fast-food meals + daily breakfast",
                            ("Reduced cravings", "More stable energy")),
            WeeklyMilestone(10, "Maintain changes + no late snacking",
                            ("Better digestion", "Less bloating")),
            WeeklyMilestone(11, "Consistent meal timing",
                            ("Natural hunger cues return", "Better sleep")),
            WeeklyMilestone(12, "All habits integrated",
                            (_weight_phrase(direction, "1-2"), "Sustained energy")),
        ),
        expected_results=(
            "Reduced cravings and hunger",
            "More stable energy throughout the day",
            "Better digestion and less bloating",
            "Improved relationship with food",
        ),
    )


def safety_notes(conditions: ConditionAnalysis) -> tuple[str, ...]:
    """Condition-aware cautions attached to the roadmap."""
    notes: list[str] = []
    if conditions.heart_condition:
        notes.append(
            "Heart condition: keep walks at a conversational pace, stop with chest pain "
            "or dizziness, and get cardiology clearance before strength training"
        )
    if conditions.pregnant:
        notes.append(
            "Pregnancy/breastfeeding: no weight-loss dieting; follow your obstetric "
            "team's activity guidance"
        )
    if conditions.has_diabetes:
        notes.append(
            "Diabetes: check blood glucose before and after new activity and review "
            "diet changes with your care team"
        )
    if conditions.kidney_issues:
        notes.append("Kidney issues: confirm the fluid target with your doctor")
    if conditions.severity == "critical":
        notes.append("Critical conditions: start this plan only under medical supervision")
    return tuple(notes)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def generate_roadmap(
    age: float,
    targets: PersonalizedTargets,
    diet_signal: DietSignal,
    urgency_level: str,
    medical_conditions: ConditionAnalysis,
) -> TransformationRoadmap:
    """Build the three-phase roadmap and its 13 weekly snapshots."""
    plan = progressive_targets(targets, diet_signal, urgency_level)
    logger.debug(
        "Roadmap ramps: foundation=%d movement=%d",
        plan.foundation_ramp_weeks,
        plan.movement_ramp_weeks,
    )
    return TransformationRoadmap(
        phases=(
            _foundation_phase(targets, plan),
            _movement_phase(age, targets, plan),
            _nutrition_phase(age, targets, diet_signal),
        ),
        progressive_targets=plan,
        overall_timeline="90 days (12 weeks + 1 consolidation week)",
        success_factors=SUCCESS_FACTORS,
        safety_notes=safety_notes(medical_conditions),
    )
