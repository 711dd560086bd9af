"""Data models for the analysis persistence layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class StoredAnalysis:
    """A generated analysis as kept in the data bank.

    The profile input and the full result are stored encrypted. The summary
    fields are stored in the clear so analyses can be listed and filtered
    without decrypting anything.
    """

    analysis_id: str
    created_at: str  # ISO 8601
    overall_score: int
    overall_grade: str
    overall_risk_level: str

    diabetes_risk: int | None = None
    cardiovascular_risk: int | None = None
    metabolic_risk: int | None = None
    mental_health_risk: int | None = None
    weight_direction: str | None = None

    # Encrypted at rest
    profile_input: dict[str, Any] | None = None
    result: dict[str, Any] | None = None

    display_name_hash: str = ""
    id: str = ""

    def summary(self) -> dict[str, Any]:
        """The unencrypted columns as a dict."""
        return {
            "analysis_id": self.analysis_id,
            "created_at": self.created_at,
            "overall_score": self.overall_score,
            "overall_grade": self.overall_grade,
            "overall_risk_level": self.overall_risk_level,
            "diabetes_risk": self.diabetes_risk,
            "cardiovascular_risk": self.cardiovascular_risk,
            "metabolic_risk": self.metabolic_risk,
            "mental_health_risk": self.mental_health_risk,
            "weight_direction": self.weight_direction,
        }


@dataclass
class StoredValidationRun:
    """Summary row of a validation pass."""

    run_id: str
    run_type: str
    total_profiles: int
    passed_profiles: int
    failed_profiles: int
    total_rules: int
    passed_rules: int
    failed_rules: int
    pass_rate: float
    critical_failures: int
    metrics: dict[str, float] = field(default_factory=dict)
    failed_rules_summary: dict[str, int] = field(default_factory=dict)
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "run_type": self.run_type,
            "total_profiles": self.total_profiles,
            "passed_profiles": self.passed_profiles,
            "failed_profiles": self.failed_profiles,
            "total_rules": self.total_rules,
            "passed_rules": self.passed_rules,
            "failed_rules": self.failed_rules,
            "pass_rate": self.pass_rate,
            "critical_failures": self.critical_failures,
            "metrics": dict(self.metrics),
            "failed_rules_summary": dict(self.failed_rules_summary),
            "created_at": self.created_at,
        }
