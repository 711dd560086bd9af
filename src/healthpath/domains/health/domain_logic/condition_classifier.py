"""Medical-condition severity classification.

Maps raw condition tags to a five-level severity and per-condition flags.
Pure function of its input; unknown tags are ignored.
"""

from __future__ import annotations

from collections.abc import Iterable

from healthpath.domains.health.domain_logic.analysis_models import (
    ConditionAnalysis,
    Severity,
)
from healthpath.domains.health.domain_logic.profile_models import KNOWN_CONDITIONS

CONDITION_NAMES = {
    "diabetes_type1": "Type 1 Diabetes",
    "diabetes_type2": "Type 2 Diabetes",
    "heart_condition": "Heart Condition",
    "high_blood_pressure": "High Blood Pressure",
    "kidney_issues": "Kidney Issues",
    "liver_issues": "Liver Issues",
    "thyroid_issues": "Thyroid Issues",
    "pregnancy_breastfeeding": "Pregnancy/Breastfeeding",
    "digestive_issues": "Digestive Issues",
}

SEVERITY_DESCRIPTIONS: dict[str, str] = {
    "critical": "CRITICAL - Requires immediate medical supervision",
    "high": "HIGH - Close medical monitoring required",
    "moderate": "MODERATE - Regular medical checkups recommended",
    "low": "LOW - Monitor symptoms",
    "none": "None",
}

# Conditions that need medical sign-off before any plan change
CRITICAL_CONDITIONS = ("diabetes_type1", "heart_condition", "kidney_issues")

SERIOUS_CRITICAL_COUNT = 3
SERIOUS_HIGH_COUNT = 2


def condition_display_name(tag: str) -> str:
    """Human-readable name for a condition tag (falls back to title case)."""
    return CONDITION_NAMES.get(tag, tag.replace("_", " ").title())


def severity_description(severity: str) -> str:
    return SEVERITY_DESCRIPTIONS.get(severity, SEVERITY_DESCRIPTIONS["none"])


def active_conditions(tags: Iterable[str] | None) -> tuple[str, ...]:
    """Known, non-empty, non-``none`` tags in canonical order."""
    present = {str(t).strip().lower() for t in (tags or ()) if t is not None}
    return tuple(tag for tag in KNOWN_CONDITIONS if tag in present)


def _severity(active: set[str], serious_count: int) -> Severity:
    if not active:
        return "none"
    if "diabetes_type1" in active or "heart_condition" in active:
        return "critical"
    if serious_count >= SERIOUS_CRITICAL_COUNT:
        return "critical"
    if serious_count >= SERIOUS_HIGH_COUNT:
        return "high"
    if active & {"diabetes_type2", "high_blood_pressure", "kidney_issues"}:
        return "high"
    if active & {"thyroid_issues", "liver_issues", "pregnancy_breastfeeding"}:
        return "moderate"
    return "low"


def classify_conditions(tags: Iterable[str] | None) -> ConditionAnalysis:
    """Classify a list of condition tags.

    ``"none"``, empty strings and unrecognized tags are dropped before
    counting, so they never raise severity.
    """
    ordered = active_conditions(tags)
    active = set(ordered)

    has_diabetes = bool(active & {"diabetes_type1", "diabetes_type2"})
    heart = "heart_condition" in active
    high_bp = "high_blood_pressure" in active
    kidney = "kidney_issues" in active
    liver = "liver_issues" in active

    serious_count = sum((has_diabetes, heart, high_bp, kidney, liver))
    severity = _severity(active, serious_count)

    return ConditionAnalysis(
        severity=severity,
        description=severity_description(severity),
        has_diabetes=has_diabetes,
        has_type1_diabetes="diabetes_type1" in active,
        heart_condition=heart,
        high_blood_pressure=high_bp,
        kidney_issues=kidney,
        liver_issues=liver,
        thyroid_issues="thyroid_issues" in active,
        pregnant="pregnancy_breastfeeding" in active,
        digestive_issues="digestive_issues" in active,
        serious_count=serious_count,
        compound_risk=serious_count >= SERIOUS_HIGH_COUNT,
        critical_conditions=tuple(
            CONDITION_NAMES[tag] for tag in CRITICAL_CONDITIONS if tag in active
        ),
        active_conditions=ordered,
    )
