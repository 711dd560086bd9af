"""Narrative text rendered from a finished numeric analysis.

``render`` only reads the result envelope; it never recomputes a number, so
the text can change without touching any validated output.
"""

from __future__ import annotations

from healthpath.domains.health.domain_logic.analysis_models import (
    BMI_OBESE,
    AnalysisResult,
    LifestyleNarrative,
    MentalHealthFactors,
    MentalHealthNarrative,
    NarrativeSections,
)
from healthpath.domains.health.domain_logic.roadmap_generator import format_bedtime

STRESS_TEXT = {
    "high": "overwhelmed often",
    "moderate": "managing but struggling",
    "low": "handling well",
}


def _current_reality(result: AnalysisResult) -> str:
    profile = result.user_profile
    weight = result.personalized_targets.weight
    concerning = profile.bmi_category in ("Obese", "Severely obese", "Underweight")
    if weight.direction == "loss":
        position = f"{weight.excess_kg:g}kg above"
    elif weight.direction == "gain":
        position = f"{weight.deficit_kg:g}kg below"
    else:
        position = "within"

    text = (
        f"At {profile.age:g} years old with a BMI of {profile.bmi:.1f}, your assessment "
        f"reveals {'a concerning pattern' if concerning else 'areas for improvement'}. "
        f"You're carrying {profile.weight:g}kg on a {profile.height:g}cm frame, which "
        f"places you {position} the healthy weight range for your height "
        f"(target: {weight.target_min_kg:g}-{weight.target_max_kg:g}kg)."
    )
    if weight.excess_kg > 5:
        text += " Excess weight compounds your other health risks."
    return text


def _lifestyle_breakdown(result: AnalysisResult) -> dict[str, LifestyleNarrative]:
    targets = result.personalized_targets
    risk = result.risk_analysis
    bmi = result.user_profile.bmi
    sleep, hydration, exercise = targets.sleep, targets.hydration, targets.exercise

    if sleep.deficit_hours > 0:
        sleep_consequence = (
            f"You're about {sleep.deficit_hours:g} hours short of your target each night. "
            f"With BMI {bmi:.1f}, your Type 2 diabetes risk sits at {risk.diabetes_risk}%. "
            "Sleep-deprived people tend to eat 300-500 extra calories a day."
        )
    else:
        sleep_consequence = (
            "Your sleep already meets the recommended range for your age. "
            "Protect it; it makes every other change easier."
        )

    diet = result.transformation_roadmap.progressive_targets.diet_signal.replace("_", " ")

    return {
        "sleep": LifestyleNarrative(
            summary=(
                f"You sleep roughly {sleep.current_hours:g} hours a night; the target is "
                f"{sleep.target_min_hours:g}-{sleep.target_max_hours:g} hours."
            ),
            consequences=sleep_consequence,
        ),
        "hydration": LifestyleNarrative(
            summary=(
                f"You drink about {int(round(hydration.current_liters * 1000))}ml a day; "
                f"your body needs {hydration.target_liters:g}L."
            ),
            consequences=(
                f"That's a {hydration.deficit_percentage}% hydration deficit. Thirst is "
                "easily mistaken for hunger, which adds calories you don't need."
                if hydration.deficit_percentage > 0
                else "Your hydration is on target. Keep it steady as activity increases."
            ),
        ),
        "exercise": LifestyleNarrative(
            summary=(
                f"You're hitting about {exercise.current_minutes_weekly} minutes of "
                f"exercise weekly; you need {exercise.target_minutes_weekly}."
            ),
            consequences=(
                f"Closing the {exercise.deficit_minutes}-minute gap is the biggest lever "
                f"on your {risk.cardiovascular_risk}% cardiovascular risk."
                if exercise.deficit_minutes > 0
                else "Your activity level already meets the guideline. Maintain it."
            ),
        ),
        "nutrition": LifestyleNarrative(
            summary=f"Your eating pattern is {diet}.",
            consequences=(
                f"Your metabolic syndrome risk is {risk.metabolic_syndrome_risk}%. "
                "Food quality and meal timing are the focus of weeks 9-12."
            ),
        ),
    }


def _hard_truth(result: AnalysisResult) -> str:
    profile = result.user_profile
    risk = result.risk_analysis
    weight = result.personalized_targets.weight
    text = f"Your overall risk level is {risk.overall_risk_level}. "
    if profile.bmi >= BMI_OBESE:
        text += (
            f"Your BMI of {profile.bmi:.1f} means your joints carry {weight.excess_kg:g}kg "
            f"of extra load and your diabetes risk is {risk.diabetes_risk}%. "
        )
    elif weight.direction == "gain":
        text += (
            f"Being {weight.deficit_kg:g}kg under a healthy weight leaves little reserve "
            "for illness or recovery. "
        )
    return text + (
        "The good news? Small, consistent changes over the next 90 days move "
        "every one of these numbers."
    )


def _priority_actions(result: AnalysisResult) -> tuple[str, ...]:
    targets = result.personalized_targets
    sleep_goal = max(targets.sleep.target_min_hours, targets.sleep.current_hours)
    walk = 20 if result.user_profile.bmi >= BMI_OBESE else 30
    return (
        f"Sleep {sleep_goal:g} hours tonight - lights out by {format_bedtime(sleep_goal)}",
        f"Drink {targets.hydration.target_liters:g}L water today - fill a bottle in the morning",
        f"Take a {walk}-minute walk after lunch - block it in your calendar",
    )


def weakest_mental_area(factors: MentalHealthFactors) -> str:
    """The one or two mental-health areas most worth improving."""
    weak: list[str] = []
    if factors.stress_level == "high":
        weak.append("stress management")
    if factors.energy_level == "low":
        weak.append("energy levels")
    if factors.mindfulness_practice == "never":
        weak.append("mindfulness practice")
    if factors.social_support in ("unsupported", "mixed"):
        weak.append("social support")

    if not weak:
        return "maintaining your strong foundation"
    if len(weak) <= 2:
        return " and ".join(weak)
    return f"{weak[0]}, {weak[1]}, and others"


def mental_health_section(risk: int, factors: MentalHealthFactors) -> MentalHealthNarrative:
    stress_text = STRESS_TEXT[factors.stress_level]
    weakest = weakest_mental_area(factors)
    if risk >= 60:
        band = "high"
        headline = (
            "Your mental health pattern shows significant challenges that make "
            "weight management harder than it should be."
        )
        guidance = (
            "Start with sleep and hydration; both lift stress tolerance within 2-3 weeks",
            "Tell one person about your plan for accountability",
            "Add a 5-minute daily breathing reset",
        )
    elif risk >= 40:
        band = "moderate"
        headline = "Your mental health shows a mixed pattern adding extra challenge."
        guidance = (
            "Add simple stress resets to your day",
            "Build accountability with a friend or group",
        )
    elif risk >= 20:
        band = "low"
        headline = "Your mental health is relatively strong and an asset in this plan."
        guidance = (f"Small improvements in {weakest} would accelerate progress",)
    else:
        band = "excellent"
        headline = "Your mental health is excellent, a major advantage from day one."
        guidance = ("Maintain your current practices throughout the plan",)

    return MentalHealthNarrative(
        risk_band=band,
        headline=headline,
        stress_text=stress_text,
        weakest_area=weakest,
        guidance=guidance,
    )


def render(result: AnalysisResult) -> NarrativeSections:
    """Render narrative sections for a numeric analysis result."""
    return NarrativeSections(
        current_reality=_current_reality(result),
        lifestyle_breakdown=_lifestyle_breakdown(result),
        hard_truth=_hard_truth(result),
        priority_actions=_priority_actions(result),
        mental_health=mental_health_section(
            result.risk_analysis.mental_health_risk, result.mental_health_factors,
        ),
    )
