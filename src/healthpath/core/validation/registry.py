"""Rule registry: in-memory index of validation rules."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from healthpath.core.validation.models import (
    RuleCategory,
    RuleOutcome,
    RuleSeverity,
    ValidationRule,
)

logger = logging.getLogger(__name__)

RuleCheck = Callable[[ValidationRule, Any, Any], RuleOutcome | None]


class RuleRegistry:
    """In-memory registry of validation rules, indexed by id and category."""

    def __init__(self) -> None:
        self._rules: dict[str, ValidationRule] = {}
        self._by_category: dict[str, list[str]] = {}

    def register(self, rule: ValidationRule) -> None:
        """Add a rule to all indexes."""
        if rule.id in self._rules:
            raise ValueError(f"Duplicate rule id registered: {rule.id!r}")
        self._rules[rule.id] = rule
        self._by_category.setdefault(rule.category, []).append(rule.id)

    def register_all(self, rules: Iterable[ValidationRule]) -> int:
        count = 0
        for rule in rules:
            self.register(rule)
            count += 1
        return count

    def get(self, rule_id: str) -> ValidationRule | None:
        return self._rules.get(rule_id)

    def find_by_category(self, category: str) -> list[ValidationRule]:
        ids = self._by_category.get(category, [])
        return [self._rules[rid] for rid in ids]

    def categories(self) -> list[str]:
        return list(self._by_category)

    def all(self) -> list[ValidationRule]:
        """Return all registered rules in registration order."""
        return list(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules


class RuleBook:
    """Collects the rules of one category as they are declared.

    Usage::

        book = RuleBook("risk")

        @book.rule("risk_no_negative_values", "Risks non-negative", "...", "critical")
        def _no_negative(rule, profile, result):
            return rule.outcome(all_ok, ">= 0", values)

        registry.register_all(book.rules)
    """

    def __init__(self, category: RuleCategory) -> None:
        self.category = category
        self.rules: list[ValidationRule] = []

    def rule(
        self,
        rule_id: str,
        name: str,
        description: str,
        severity: RuleSeverity,
        *,
        independent: bool = True,
    ) -> Callable[[RuleCheck], ValidationRule]:
        """Decorator turning ``check(rule, profile, result)`` into a registered record."""

        def decorator(check: RuleCheck) -> ValidationRule:
            def evaluate(profile: Any, result: Any) -> RuleOutcome | None:
                return check(record, profile, result)

            record = ValidationRule(
                id=rule_id,
                name=name,
                description=description,
                category=self.category,
                severity=severity,
                evaluate=evaluate,
                independent=independent,
            )
            self.rules.append(record)
            return record

        return decorator
