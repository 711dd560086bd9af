"""Data models for the engine validation harness.

A ``ValidationRule`` is a plain record holding an ``evaluate`` callable.
Rules are registered, not subclassed: adding a rule means adding a record to
a ``RuleRegistry``.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

logger = logging.getLogger(__name__)

RuleSeverity = Literal["low", "medium", "high", "critical"]
RuleCategory = Literal["risk", "target", "projection", "logic", "roadmap", "expected"]

RULE_CATEGORIES: tuple[str, ...] = ("risk", "target", "projection", "logic", "roadmap", "expected")
SEVERITY_ORDER = {"low": 0, "medium": 1, "high": 2, "critical": 3}


@dataclass(frozen=True)
class RuleOutcome:
    """The result of evaluating one rule against one profile."""

    rule_id: str
    passed: bool
    expected: Any
    actual: Any
    message: str
    severity: RuleSeverity
    category: str = ""
    independent: bool = True


@dataclass(frozen=True)
class ValidationRule:
    """An executable expectation about engine output.

    ``evaluate(profile, result)`` returns a ``RuleOutcome``, or ``None`` when
    the rule does not apply to the profile (e.g. a pregnancy rule for a
    profile without that condition).

    ``independent`` is False for rules that re-derive the expected value
    with the same formula the engine uses; their pass rate is reported
    separately because agreement there proves less.
    """

    id: str
    name: str
    description: str
    category: RuleCategory
    severity: RuleSeverity
    evaluate: Callable[[Any, Any], RuleOutcome | None]
    independent: bool = True

    def outcome(
        self, passed: bool, expected: Any, actual: Any, message: str = ""
    ) -> RuleOutcome:
        """Build an outcome tagged with this rule's id, severity and category."""
        return RuleOutcome(
            rule_id=self.id,
            passed=bool(passed),
            expected=expected,
            actual=actual,
            message=message or (f"{self.name}: ok" if passed else f"{self.name}: failed"),
            severity=self.severity,
            category=self.category,
            independent=self.independent,
        )

    def check(self, profile: Any, result: Any) -> RuleOutcome | None:
        """Evaluate the rule; an exception inside the rule counts as a failure."""
        try:
            return self.evaluate(profile, result)
        except Exception as exc:
            logger.exception("Rule %s raised while evaluating", self.id)
            return self.outcome(
                False, "rule evaluates cleanly", type(exc).__name__,
                f"{self.name}: rule raised {type(exc).__name__}: {exc}",
            )


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProfileValidationResult:
    """All rule outcomes for one profile."""

    profile_id: str
    profile_name: str
    profile_category: str
    outcomes: tuple[RuleOutcome, ...] = ()
    error: str | None = None        # engine raised instead of returning
    timestamp: str = ""

    @property
    def passed(self) -> bool:
        return self.error is None and all(o.passed for o in self.outcomes)

    @property
    def passed_outcomes(self) -> tuple[RuleOutcome, ...]:
        return tuple(o for o in self.outcomes if o.passed)

    @property
    def failed_outcomes(self) -> tuple[RuleOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.passed)

    @property
    def critical_failures(self) -> int:
        count = sum(1 for o in self.failed_outcomes if o.severity == "critical")
        return count + (1 if self.error else 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "profile_id": self.profile_id,
            "profile_name": self.profile_name,
            "profile_category": self.profile_category,
            "passed": self.passed,
            "error": self.error,
            "passed_rules": len(self.passed_outcomes),
            "failed_rules": [asdict(o) for o in self.failed_outcomes],
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class BatchValidationResult:
    """Summary of a validation pass over many profiles."""

    run_id: str
    run_type: str
    total_profiles: int
    passed_profiles: int
    failed_profiles: int
    pass_rate: float                      # percent of profiles with no failure
    total_rules: int                      # rule evaluations, not distinct rules
    passed_rules: int
    failed_rules: int
    critical_failures: int
    failed_rules_summary: dict[str, int] = field(default_factory=dict)
    metrics: dict[str, float] = field(default_factory=dict)
    profile_results: tuple[ProfileValidationResult, ...] = ()
    timestamp: str = ""

    def top_failed_rules(self, limit: int = 10) -> list[tuple[str, int]]:
        return Counter(self.failed_rules_summary).most_common(limit)

    def meets_threshold(self, threshold: float) -> bool:
        """Pass when the pass rate reaches ``threshold`` with no critical failure."""
        return self.pass_rate >= threshold and self.critical_failures == 0

    def to_dict(self, *, include_profiles: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "run_id": self.run_id,
            "run_type": self.run_type,
            "total_profiles": self.total_profiles,
            "passed_profiles": self.passed_profiles,
            "failed_profiles": self.failed_profiles,
            "pass_rate": self.pass_rate,
            "total_rules": self.total_rules,
            "passed_rules": self.passed_rules,
            "failed_rules": self.failed_rules,
            "critical_failures": self.critical_failures,
            "failed_rules_summary": dict(self.failed_rules_summary),
            "metrics": dict(self.metrics),
            "timestamp": self.timestamp,
        }
        if include_profiles:
            data["profile_results"] = [
                p.to_dict() for p in self.profile_results if not p.passed
            ]
        return data
