"""Synthetic test profiles and their expected-output envelopes."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Literal

from healthpath.domains.health.domain_logic.analysis_models import (
    BMI_OVERWEIGHT,
    BMI_UNDERWEIGHT,
    HEART_STEP_CAP,
    PREGNANCY_STEP_CAP,
    STEP_CEILING,
    STEP_FLOOR,
    UNDERWEIGHT_STEP_CAP,
    WeightDirection,
)
from healthpath.domains.health.domain_logic.profile_models import ProfileInput
from healthpath.domains.health.domain_logic.risk_calculator import calculate_bmi

ProfileCategory = Literal["edge_case", "common", "medical", "mental_health", "scenario"]

Range = tuple[float, float]


def weight_for_bmi(bmi: float, height: float) -> float:
    """Weight in kg (rounded to 0.1) giving ``bmi`` at ``height`` cm."""
    return math.floor(bmi * (height / 100) ** 2 * 10 + 0.5) / 10


def direction_for_bmi(bmi: float) -> WeightDirection:
    if bmi < BMI_UNDERWEIGHT:
        return "gain"
    if bmi >= BMI_OVERWEIGHT:
        return "loss"
    return "maintain"


@dataclass(frozen=True)
class ExpectedOutputs:
    """Acceptable ranges for one profile's analysis.

    Risk ranges are optional: only profiles with a well-defined expectation
    (a diagnosis, a mental-health extreme) carry them.
    """

    bmi_range: Range
    weight_direction: WeightDirection
    sleep_target_range: Range = (7.0, 9.0)
    steps_target_range: Range = (STEP_FLOOR, STEP_CEILING)
    diabetes_risk_range: Range | None = None
    cvd_risk_range: Range | None = None
    metabolic_risk_range: Range | None = None
    mental_health_risk_range: Range | None = None

    @classmethod
    def for_profile(cls, profile: ProfileInput, **overrides: Any) -> ExpectedOutputs:
        """Derive the envelope every profile shares from its inputs.

        BMI window is +-0.5 around the true BMI; the direction follows the
        BMI category; sleep and steps ranges follow age and safety caps.
        """
        demo = profile.demographics
        bmi = calculate_bmi(demo.weight, demo.height)
        tags = profile.condition_tags

        step_max: float = STEP_CEILING
        if "heart_condition" in tags:
            step_max = HEART_STEP_CAP
        elif "pregnancy_breastfeeding" in tags:
            step_max = PREGNANCY_STEP_CAP
        elif bmi < BMI_UNDERWEIGHT:
            step_max = UNDERWEIGHT_STEP_CAP

        values: dict[str, Any] = {
            "bmi_range": (round(bmi - 0.5, 1), round(bmi + 0.5, 1)),
            "weight_direction": direction_for_bmi(bmi),
            "sleep_target_range": (8.0, 10.0) if demo.age < 18 else (7.0, 9.0),
            "steps_target_range": (STEP_FLOOR, step_max),
        }
        if tags & {"diabetes_type1", "diabetes_type2"}:
            values["diabetes_risk_range"] = (100.0, 100.0)
        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {k: list(v) if isinstance(v, tuple) else v for k, v in asdict(self).items()}


@dataclass(frozen=True)
class SyntheticProfile:
    """A named test profile plus what its analysis should look like."""

    id: str
    name: str
    description: str
    category: ProfileCategory
    profile: ProfileInput
    expected: ExpectedOutputs

    @classmethod
    def build(
        cls,
        id: str,
        name: str,
        description: str,
        category: ProfileCategory,
        profile: ProfileInput | dict[str, Any],
        **expected_overrides: Any,
    ) -> SyntheticProfile:
        if not isinstance(profile, ProfileInput):
            profile = ProfileInput.from_dict(profile)
        return cls(
            id=id,
            name=name,
            description=description,
            category=category,
            profile=profile,
            expected=ExpectedOutputs.for_profile(profile, **expected_overrides),
        )
