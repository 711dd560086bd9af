"""Synthetic profile families for batch validation.

Usage::

    generator = ProfileGenerator(seed=42)
    profiles = generator.generate_all(common_count=500)
"""

from __future__ import annotations

import logging
import random
from typing import Any

from healthpath.domains.health.domain_logic.profile_models import (
    KNOWN_CONDITIONS,
    Demographics,
    HealthMetrics,
    LifestyleFactors,
    MedicalData,
    ProfileInput,
)
from healthpath.domains.health.qa.synthetic_profiles import (
    ProfileCategory,
    SyntheticProfile,
    weight_for_bmi,
)

logger = logging.getLogger(__name__)

PROFILES_PER_CONDITION = 20
EDGE_PROFILES_PER_FAMILY = 20

# Fully adverse and fully protective mental-health answers
_WORST_MENTAL = {
    "stress_level": "high",
    "energy_level": "low",
    "mindfulness_practice": "never",
    "social_support": "unsupported",
    "burnout_level": "high",
}
_BEST_MENTAL = {
    "stress_level": "low",
    "energy_level": "high",
    "mindfulness_practice": "regularly",
    "social_support": "supported",
    "burnout_level": "low",
}

_MEDICATIONS = {
    "diabetes_type1": "insulin",
    "diabetes_type2": "metformin",
    "heart_condition": "statin",
    "high_blood_pressure": "lisinopril",
}


def _cycle(i: int, options: tuple[str, ...]) -> str:
    return options[i % len(options)]


def make_profile(
    *,
    age: float,
    bmi: float,
    height: float,
    gender: str,
    metrics: tuple[float, float, float, float],
    lifestyle: dict[str, Any] | None = None,
    conditions: tuple[str, ...] = (),
    medications: str = "",
) -> ProfileInput:
    """Build a profile from a target BMI; metrics are (hydration, sleep, exercise, nutrition)."""
    hydration, sleep, exercise, nutrition = metrics
    return ProfileInput(
        demographics=Demographics(
            age=age, weight=weight_for_bmi(bmi, height), height=height, gender=gender,
        ),
        health_metrics=HealthMetrics(
            hydration=hydration, sleep=sleep, exercise=exercise, nutrition=nutrition,
        ),
        lifestyle=LifestyleFactors(**(lifestyle or {})),
        medical=MedicalData(
            conditions=frozenset(conditions),
            has_critical_conditions=bool(
                set(conditions) & {"diabetes_type1", "heart_condition", "kidney_issues"}
            ),
            medications=medications,
        ),
    )


class ProfileGenerator:
    """Builds the edge-case, common, medical and mental-health families.

    Only the common family is random; it draws from a ``random.Random``
    seeded at construction so a run is reproducible.
    """

    def __init__(self, seed: int = 42) -> None:
        self._seed = seed

    def generate_all(self, common_count: int = 500) -> list[SyntheticProfile]:
        profiles = [
            *self.edge_cases(),
            *self.common(common_count),
            *self.medical(),
            *self.mental_health(),
        ]
        logger.info("Generated %d synthetic profiles (seed=%d)", len(profiles), self._seed)
        return profiles

    # ------------------------------------------------------------------
    # Edge cases
    # ------------------------------------------------------------------

    def edge_cases(self) -> list[SyntheticProfile]:
        profiles: list[SyntheticProfile] = []
        n = EDGE_PROFILES_PER_FAMILY
        category: ProfileCategory = "edge_case"

        for i in range(n):
            profile = make_profile(
                age=25 + i * 2,
                bmi=15.5 + (i % 6) * 0.5,
                height=160 + (i % 10) * 2,
                gender="female" if i % 2 == 0 else "male",
                metrics=(3 + i % 5, 4 + i % 4, 2 + i % 3, 3 + i % 4),
                lifestyle={
                    "is_smoker": i % 5 == 0,
                    "stress_level": "high" if i % 3 == 0 else "moderate",
                    "urgency_level": "high",
                    "energy_level": "low",
                    "mindfulness_practice": "never",
                    "burnout_level": "moderate",
                },
            )
            profiles.append(SyntheticProfile.build(
                f"edge_underweight_{i}", f"Underweight Profile {i}",
                "Underweight individual needing healthy weight gain", category, profile,
            ))

        for i in range(n):
            profile = make_profile(
                age=35 + i * 2,
                bmi=35.5 + (i % 10) * 0.8,
                height=160 + (i % 10) * 2,
                gender="male" if i % 2 == 0 else "female",
                metrics=(2 + i % 3, 2 + i % 3, 1 + i % 2, 2 + i % 3),
                lifestyle={
                    "is_smoker": i % 4 == 0,
                    "alcohol_level": "moderate" if i % 3 == 0 else "light",
                    "checkup_frequency": "never",
                    **_WORST_MENTAL,
                },
            )
            profiles.append(SyntheticProfile.build(
                f"edge_obese_{i}", f"Obese Profile {i}",
                "Severely obese individual with high health risks", category, profile,
                mental_health_risk_range=(70.0, 90.0),
            ))

        for i in range(n):
            profile = make_profile(
                age=30 + i * 2,
                bmi=20.0 + (i % 8) * 0.5,
                height=165 + (i % 10) * 2,
                gender="female" if i % 2 == 0 else "male",
                metrics=(3 + i % 3, 2 + i % 3, 2 + i % 3, 3 + i % 4),
                lifestyle={
                    "alcohol_level": "moderate" if i % 3 == 0 else "light",
                    "checkup_frequency": "never",
                    "urgency_level": "low",
                    **_WORST_MENTAL,
                },
            )
            profiles.append(SyntheticProfile.build(
                f"edge_burnout_{i}", f"Burnout Profile {i}",
                "High burnout and stress with low support", category, profile,
                mental_health_risk_range=(70.0, 90.0),
            ))

        for i in range(n):
            profile = make_profile(
                age=25 + i * 2,
                bmi=19.5 + (i % 10) * 0.5,
                height=165 + (i % 10) * 2,
                gender="male" if i % 2 == 0 else "female",
                metrics=(8 + i % 3, 8 + i % 3, 8 + i % 3, 8 + i % 3),
                lifestyle={
                    "checkup_frequency": "annual",
                    "urgency_level": "low",
                    **_BEST_MENTAL,
                },
            )
            profiles.append(SyntheticProfile.build(
                f"edge_optimal_{i}", f"Optimal Health Profile {i}",
                "Excellent health across all metrics", category, profile,
                mental_health_risk_range=(0.0, 20.0),
            ))

        for i in range(n):
            profile = make_profile(
                age=45 + i * 2,
                bmi=30.5 + (i % 8),
                height=165 + (i % 10) * 2,
                gender="male" if i % 2 == 0 else "female",
                metrics=(2 + i % 2, 2 + i % 2, 1 + i % 2, 2 + i % 2),
                lifestyle={
                    "is_smoker": True,
                    "alcohol_level": "heavy",
                    "checkup_frequency": "never",
                    **_WORST_MENTAL,
                },
            )
            profiles.append(SyntheticProfile.build(
                f"edge_compound_{i}", f"Compound Risk Profile {i}",
                "Smoking, obesity and poor sleep together", category, profile,
                mental_health_risk_range=(70.0, 90.0),
            ))

        return profiles

    # ------------------------------------------------------------------
    # Common
    # ------------------------------------------------------------------

    def common(self, count: int = 500) -> list[SyntheticProfile]:
        rng = random.Random(self._seed)

        def pick(*weighted: tuple[str, float]) -> str:
            roll = rng.random()
            for value, threshold in weighted:
                if roll < threshold:
                    return value
            return weighted[-1][0]

        profiles: list[SyntheticProfile] = []
        for i in range(count):
            profile = make_profile(
                age=rng.randint(25, 64),
                bmi=rng.randint(20, 31) + rng.choice((0.0, 0.3, 0.6)),
                height=rng.randint(155, 190),
                gender=_cycle(i, ("male", "female", "other")),
                metrics=(
                    rng.randint(3, 8), rng.randint(3, 8), rng.randint(2, 8), rng.randint(3, 8),
                ),
                lifestyle={
                    "is_smoker": rng.random() < 0.2,
                    "alcohol_level": pick(("none", 0.5), ("light", 0.8), ("moderate", 1.0)),
                    "stress_level": pick(("low", 0.3), ("moderate", 0.7), ("high", 1.0)),
                    "checkup_frequency": pick(("rare", 0.5), ("annual", 0.9), ("never", 1.0)),
                    "urgency_level": pick(("low", 0.4), ("moderate", 0.8), ("high", 1.0)),
                    "energy_level": pick(("low", 0.3), ("medium", 0.7), ("high", 1.0)),
                    "mindfulness_practice": pick(
                        ("never", 0.4), ("occasionally", 0.8), ("regularly", 1.0)
                    ),
                    "social_support": pick(
                        ("unsupported", 0.3), ("mixed", 0.7), ("supported", 1.0)
                    ),
                    "burnout_level": pick(("low", 0.3), ("moderate", 0.7), ("high", 1.0)),
                },
            )
            profiles.append(SyntheticProfile.build(
                f"common_{i}", f"Common Profile {i}",
                "Typical user with average health metrics", "common", profile,
            ))
        return profiles

    # ------------------------------------------------------------------
    # Medical
    # ------------------------------------------------------------------

    def medical(self) -> list[SyntheticProfile]:
        profiles: list[SyntheticProfile] = []
        levels = ("low", "moderate", "high")

        for condition in KNOWN_CONDITIONS:
            label = condition.replace("_", " ")
            for i in range(PROFILES_PER_CONDITION):
                profile = make_profile(
                    age=30 + i * 2,
                    bmi=21.0 + (i % 10) * 1.2,
                    height=160 + (i % 15) * 2,
                    gender=(
                        "female"
                        if condition == "pregnancy_breastfeeding" or i % 2 == 0
                        else "male"
                    ),
                    metrics=(4 + i % 5, 4 + i % 5, 3 + i % 5, 4 + i % 5),
                    lifestyle={
                        "is_smoker": i % 7 == 0 and condition != "pregnancy_breastfeeding",
                        "alcohol_level": "moderate" if i % 5 == 0 else "light" if i % 3 == 0 else "none",
                        "stress_level": _cycle(i, levels),
                        "checkup_frequency": (
                            "annual" if "diabetes" in condition or "heart" in condition else "rare"
                        ),
                        "energy_level": _cycle(i, ("low", "medium", "high")),
                        "mindfulness_practice": _cycle(i, ("never", "occasionally", "regularly")),
                        "social_support": _cycle(i, ("unsupported", "mixed", "supported")),
                        "burnout_level": _cycle(i, levels),
                    },
                    conditions=(condition,),
                    medications=_MEDICATIONS.get(condition, ""),
                )
                profiles.append(SyntheticProfile.build(
                    f"medical_{condition}_{i}", f"{label.title()} Profile {i}",
                    f"Profile with {label}", "medical", profile,
                ))

        for i in range(PROFILES_PER_CONDITION):
            profile = make_profile(
                age=50 + i,
                bmi=28.0 + (i % 8),
                height=165 + (i % 10) * 2,
                gender="male" if i % 2 == 0 else "female",
                metrics=(3 + i % 4, 3 + i % 4, 2 + i % 4, 3 + i % 4),
                lifestyle={
                    "is_smoker": i % 5 == 0,
                    "alcohol_level": "light",
                    "checkup_frequency": "annual",
                    "urgency_level": "high",
                    "energy_level": "low",
                    "social_support": "supported",
                    "burnout_level": "moderate",
                },
                conditions=("diabetes_type2", "high_blood_pressure"),
                medications="metformin, lisinopril",
            )
            profiles.append(SyntheticProfile.build(
                f"medical_compound_{i}", f"Compound Medical Conditions Profile {i}",
                "Type 2 diabetes with high blood pressure", "medical", profile,
            ))

        return profiles

    # ------------------------------------------------------------------
    # Mental health
    # ------------------------------------------------------------------

    def mental_health(self) -> list[SyntheticProfile]:
        profiles: list[SyntheticProfile] = []
        category: ProfileCategory = "mental_health"
        energies = ("low", "medium", "high")
        practices = ("never", "occasionally", "regularly")
        supports = ("unsupported", "mixed", "supported")
        levels = ("low", "moderate", "high")

        for i in range(40):
            profile = make_profile(
                age=28 + i,
                bmi=20.0 + (i % 8),
                height=165 + (i % 15),
                gender="female" if i % 2 == 0 else "male",
                metrics=(4 + i % 5, 3 + i % 5, 4 + i % 5, 4 + i % 5),
                lifestyle={
                    "alcohol_level": "moderate" if i % 4 == 0 else "light",
                    "stress_level": "high",
                    "energy_level": _cycle(i, energies),
                    "mindfulness_practice": _cycle(i // 3, practices),
                    "social_support": _cycle(i // 9, supports),
                    "burnout_level": _cycle(i, levels),
                },
            )
            profiles.append(SyntheticProfile.build(
                f"mental_high_stress_{i}", f"High Stress Profile {i}",
                "High stress with varying support systems", category, profile,
            ))

        for i in range(40):
            profile = make_profile(
                age=30 + i,
                bmi=21.0 + (i % 8),
                height=168 + (i % 12),
                gender="male" if i % 2 == 0 else "female",
                metrics=(3 + i % 5, 3 + i % 5, 2 + i % 4, 3 + i % 5),
                lifestyle={
                    "energy_level": "low",
                    "stress_level": _cycle(i, levels),
                    "burnout_level": _cycle(i // 3, levels),
                    "mindfulness_practice": _cycle(i, practices),
                    "social_support": _cycle(i // 3, supports),
                },
            )
            profiles.append(SyntheticProfile.build(
                f"mental_low_energy_{i}", f"Low Energy Profile {i}",
                "Low energy with varying stress and burnout", category, profile,
            ))

        for i in range(40):
            profile = make_profile(
                age=26 + i,
                bmi=20.5 + (i % 9) * 0.5,
                height=160 + (i % 20),
                gender=_cycle(i, ("female", "male", "other")),
                metrics=(3 + i % 4, 2 + i % 4, 3 + i % 4, 3 + i % 4),
                lifestyle={
                    "burnout_level": "high",
                    "stress_level": _cycle(i, ("moderate", "high")),
                    "energy_level": _cycle(i, ("low", "medium")),
                    "mindfulness_practice": _cycle(i, practices),
                    "social_support": _cycle(i, supports),
                },
            )
            profiles.append(SyntheticProfile.build(
                f"mental_burnout_{i}", f"High Burnout Profile {i}",
                "High burnout under moderate or high stress", category, profile,
            ))

        for i in range(40):
            profile = make_profile(
                age=25 + i,
                bmi=19.0 + (i % 10) * 0.5,
                height=160 + (i % 20),
                gender="male" if i % 2 == 0 else "female",
                metrics=(7 + i % 4, 7 + i % 4, 7 + i % 4, 7 + i % 4),
                lifestyle=_BEST_MENTAL,
            )
            profiles.append(SyntheticProfile.build(
                f"mental_optimal_{i}", f"Optimal Mental Health Profile {i}",
                "Low stress, high energy, regular mindfulness, strong support", category,
                profile, mental_health_risk_range=(0.0, 20.0),
            ))

        for i in range(40):
            profile = make_profile(
                age=30 + i,
                bmi=21.0 + (i % 10) * 0.7,
                height=162 + (i % 18),
                gender=_cycle(i, ("male", "female", "other")),
                metrics=(4 + i % 4, 4 + i % 4, 4 + i % 4, 4 + i % 4),
                lifestyle={
                    "stress_level": _cycle(i, levels),
                    "energy_level": _cycle(i // 2, energies),
                    "mindfulness_practice": _cycle(i // 3, practices),
                    "social_support": _cycle(i // 4, supports),
                    "burnout_level": _cycle(i // 5, levels),
                },
            )
            profiles.append(SyntheticProfile.build(
                f"mental_mixed_{i}", f"Mixed Mental Health Profile {i}",
                "Mixed mental-health answers", category, profile,
            ))

        return profiles
