"""Logic rules: structural completeness and internal consistency."""

from __future__ import annotations

import math
from typing import Any

from healthpath.core.validation.registry import RuleBook
from healthpath.domains.health.domain_logic.analysis_engine import overall_grade
from healthpath.domains.health.domain_logic.analysis_models import AnalysisResult
from healthpath.domains.health.domain_logic.risk_calculator import calculate_bmi
from healthpath.domains.health.qa.synthetic_profiles import SyntheticProfile

book = RuleBook("logic")

BMI_TOLERANCE = 0.5
_CRITICAL_TAGS = frozenset({"diabetes_type1", "heart_condition"})


def _missing_paths(value: Any, path: str = "") -> list[str]:
    """Dotted paths to every None or NaN leaf in a nested structure."""
    if value is None:
        return [path or "<root>"]
    if isinstance(value, float) and math.isnan(value):
        return [path or "<root>"]
    if isinstance(value, dict):
        found: list[str] = []
        for key, item in value.items():
            found += _missing_paths(item, f"{path}.{key}" if path else str(key))
        return found
    if isinstance(value, (list, tuple)):
        found = []
        for index, item in enumerate(value):
            found += _missing_paths(item, f"{path}[{index}]")
        return found
    return []


@book.rule(
    "logic_no_missing_values",
    "No missing values",
    "The serialized analysis contains no None or NaN anywhere",
    "critical",
)
def _no_missing(rule, profile: SyntheticProfile, result: AnalysisResult):
    missing = _missing_paths(result.to_dict())
    return rule.outcome(not missing, "no None/NaN", missing[:10] or "complete")


@book.rule(
    "logic_bmi_matches",
    "Reported BMI matches the inputs",
    "user_profile.bmi within 0.5 of weight / height^2",
    "critical",
)
def _bmi_matches(rule, profile: SyntheticProfile, result: AnalysisResult):
    demo = profile.profile.demographics
    expected = calculate_bmi(demo.weight, demo.height)
    actual = result.user_profile.bmi
    return rule.outcome(
        abs(actual - expected) <= BMI_TOLERANCE,
        f"{expected:.2f} (+-{BMI_TOLERANCE})",
        actual,
    )


@book.rule(
    "logic_grade_matches_score",
    "Grade matches score",
    "overall_grade is the letter band of overall_score",
    "high",
    independent=False,
)
def _grade_matches(rule, profile: SyntheticProfile, result: AnalysisResult):
    expected = overall_grade(result.overall_score)
    return rule.outcome(
        result.overall_grade == expected,
        f"{expected} (score {result.overall_score})",
        result.overall_grade,
    )


@book.rule(
    "logic_condition_severity",
    "Condition severity consistent",
    "No conditions is 'none', type 1 diabetes or a heart condition is 'critical', "
    "any other condition is above 'none'",
    "high",
)
def _condition_severity(rule, profile: SyntheticProfile, result: AnalysisResult):
    tags = profile.profile.condition_tags
    severity = result.condition_analysis.severity
    if not tags:
        return rule.outcome(severity == "none", "none", severity)
    if tags & _CRITICAL_TAGS:
        return rule.outcome(severity == "critical", "critical", severity)
    return rule.outcome(severity != "none", "low | moderate | high | critical", severity)


RULES = tuple(book.rules)
