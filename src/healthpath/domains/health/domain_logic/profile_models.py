"""Profile input models for the analysis engine.

A ``ProfileInput`` is the single immutable value the engine consumes. Every
field is validated on construction so malformed input fails fast with
``InvalidProfileError`` instead of flowing NaN or negative values through the
pipeline.
"""

from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Literal, get_args

Gender = Literal["male", "female", "other"]
AlcoholLevel = Literal["none", "light", "moderate", "heavy"]
StressLevel = Literal["low", "moderate", "high"]
CheckupFrequency = Literal["never", "rare", "annual", "regular"]
UrgencyLevel = Literal["low", "moderate", "high"]
EnergyLevel = Literal["low", "medium", "high"]
MindfulnessPractice = Literal["never", "occasionally", "regularly"]
SocialSupport = Literal["supported", "unsupported", "mixed"]
BurnoutLevel = Literal["low", "moderate", "high"]

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

KNOWN_CONDITIONS = (
    "diabetes_type1",
    "diabetes_type2",
    "heart_condition",
    "high_blood_pressure",
    "kidney_issues",
    "liver_issues",
    "thyroid_issues",
    "pregnancy_breastfeeding",
    "digestive_issues",
)

METRIC_MIN = 1.0
METRIC_MAX = 10.0
AGE_MIN = 1.0
AGE_MAX = 120.0

# Legacy spellings accepted from the assessment front end
_VALUE_ALIASES: dict[str, dict[str, str]] = {
    "checkup_frequency": {
        "rarely": "rare",
        "yearly": "annual",
        "biannual": "annual",
    },
    "energy_level": {"moderate": "medium"},
    "social_support": {"partial": "mixed"},
}

_SECTION_KEYS = {
    "demographics": ("demographics",),
    "health_metrics": ("health_metrics", "healthMetrics"),
    "lifestyle": ("lifestyle_factors", "lifestyleFactors", "lifestyle"),
    "medical": ("medical_data", "medicalData", "medical"),
}


class InvalidProfileError(ValueError):
    """Raised when a profile violates an input precondition."""


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _number(name: str, value: Any, lo: float, hi: float) -> float:
    if isinstance(value, bool) or value is None:
        raise InvalidProfileError(f"{name} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidProfileError(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(number) or not lo <= number <= hi:
        raise InvalidProfileError(f"{name} must be within [{lo:g}, {hi:g}], got {value!r}")
    return number


def _choice(name: str, value: Any, literal: Any) -> str:
    allowed = get_args(literal)
    normalized = str(value).strip().lower()
    normalized = _VALUE_ALIASES.get(name, {}).get(normalized, normalized)
    if normalized not in allowed:
        raise InvalidProfileError(
            f"{name} must be one of: {' | '.join(allowed)} (got {value!r})"
        )
    return normalized


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    for key in _SECTION_KEYS[name]:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, dict):
            raise InvalidProfileError(f"{name} must be an object")
        return {_snake(k): v for k, v in value.items()}
    return {}


# ---------------------------------------------------------------------------
# Input structs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Demographics:
    """Who the analysis is for."""

    age: float
    weight: float               # kg
    height: float               # cm
    gender: Gender = "other"

    def __post_init__(self) -> None:
        object.__setattr__(self, "age", _number("age", self.age, AGE_MIN, AGE_MAX))
        object.__setattr__(self, "weight", _number("weight", self.weight, 20.0, 400.0))
        object.__setattr__(self, "height", _number("height", self.height, 100.0, 250.0))
        object.__setattr__(self, "gender", _choice("gender", self.gender, Gender))


@dataclass(frozen=True)
class HealthMetrics:
    """Self-reported 1-10 scores from the assessment."""

    hydration: float
    sleep: float
    exercise: float
    nutrition: float

    def __post_init__(self) -> None:
        for name in ("hydration", "sleep", "exercise", "nutrition"):
            value = _number(name, getattr(self, name), METRIC_MIN, METRIC_MAX)
            object.__setattr__(self, name, value)

    def mean(self) -> float:
        return (self.hydration + self.sleep + self.exercise + self.nutrition) / 4


@dataclass(frozen=True)
class LifestyleFactors:
    """Lifestyle and mental-health answers. Defaults are the neutral answers."""

    is_smoker: bool = False
    alcohol_level: AlcoholLevel = "none"
    stress_level: StressLevel = "moderate"
    checkup_frequency: CheckupFrequency = "rare"
    urgency_level: UrgencyLevel = "moderate"
    energy_level: EnergyLevel = "medium"
    mindfulness_practice: MindfulnessPractice = "occasionally"
    social_support: SocialSupport = "mixed"
    burnout_level: BurnoutLevel = "low"

    def __post_init__(self) -> None:
        if not isinstance(self.is_smoker, bool):
            raise InvalidProfileError(f"is_smoker must be a boolean, got {self.is_smoker!r}")
        checks = {
            "alcohol_level": AlcoholLevel,
            "stress_level": StressLevel,
            "checkup_frequency": CheckupFrequency,
            "urgency_level": UrgencyLevel,
            "energy_level": EnergyLevel,
            "mindfulness_practice": MindfulnessPractice,
            "social_support": SocialSupport,
            "burnout_level": BurnoutLevel,
        }
        for name, literal in checks.items():
            object.__setattr__(self, name, _choice(name, getattr(self, name), literal))


@dataclass(frozen=True)
class MedicalData:
    """Optional medical history. Absent data means no known conditions."""

    conditions: frozenset[str] = frozenset()
    has_critical_conditions: bool = False
    medications: str = ""
    allergies: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.conditions, str):
            raise InvalidProfileError("conditions must be a list of tags, not a string")
        tags = frozenset(
            str(tag).strip().lower()
            for tag in (self.conditions or ())
            if tag is not None and str(tag).strip().lower() not in ("", "none")
        )
        object.__setattr__(self, "conditions", tags)


@dataclass(frozen=True)
class ProfileInput:
    """Everything the engine needs for one analysis run."""

    demographics: Demographics
    health_metrics: HealthMetrics
    lifestyle: LifestyleFactors = field(default_factory=LifestyleFactors)
    medical: MedicalData = field(default_factory=MedicalData)

    @property
    def condition_tags(self) -> frozenset[str]:
        return self.medical.conditions

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProfileInput:
        """Build a profile from a nested dict (camelCase or snake_case keys).

        Raises:
            InvalidProfileError: On missing sections, unknown enum values or
                out-of-range numbers.
        """
        if not isinstance(data, dict):
            raise InvalidProfileError("profile must be an object")

        demo = _section(data, "demographics")
        metrics = _section(data, "health_metrics")
        if not demo:
            raise InvalidProfileError("demographics are required")
        if not metrics:
            raise InvalidProfileError("health_metrics are required")

        missing = [k for k in ("age", "weight", "height") if k not in demo]
        if missing:
            raise InvalidProfileError(f"demographics missing: {', '.join(missing)}")
        missing = [k for k in ("hydration", "sleep", "exercise", "nutrition") if k not in metrics]
        if missing:
            raise InvalidProfileError(f"health_metrics missing: {', '.join(missing)}")

        lifestyle_data = _section(data, "lifestyle")
        lifestyle_fields = set(LifestyleFactors.__dataclass_fields__)
        unknown = sorted(set(lifestyle_data) - lifestyle_fields)
        if unknown:
            raise InvalidProfileError(f"unknown lifestyle fields: {', '.join(unknown)}")

        medical_data = _section(data, "medical")
        conditions = medical_data.get("conditions") or ()
        if not isinstance(conditions, (list, tuple, set, frozenset)):
            raise InvalidProfileError("conditions must be a list of tags")

        return cls(
            demographics=Demographics(
                age=demo["age"],
                weight=demo["weight"],
                height=demo["height"],
                gender=demo.get("gender") or "other",
            ),
            health_metrics=HealthMetrics(
                hydration=metrics["hydration"],
                sleep=metrics["sleep"],
                exercise=metrics["exercise"],
                nutrition=metrics["nutrition"],
            ),
            lifestyle=LifestyleFactors(**lifestyle_data),
            medical=MedicalData(
                conditions=frozenset(conditions),
                has_critical_conditions=bool(medical_data.get("has_critical_conditions", False)),
                medications=str(medical_data.get("medications") or ""),
                allergies=str(medical_data.get("allergies") or ""),
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable snake_case dict (conditions sorted)."""
        data = asdict(self)
        data["medical"]["conditions"] = sorted(self.medical.conditions)
        return data
