"""Tests for validation result models and batch aggregation."""

from __future__ import annotations

import re

import pytest

from healthpath.core.validation.aggregator import aggregate, category_accuracy, new_run_id
from healthpath.core.validation.models import ProfileValidationResult, RuleOutcome


def _outcome(rule_id, passed, *, category="risk", severity="medium", independent=True):
    return RuleOutcome(
        rule_id=rule_id,
        passed=passed,
        expected="x",
        actual="y",
        message="",
        severity=severity,
        category=category,
        independent=independent,
    )


def _result(profile_id, *outcomes, error=None):
    return ProfileValidationResult(
        profile_id=profile_id,
        profile_name=profile_id,
        profile_category="common",
        outcomes=tuple(outcomes),
        error=error,
    )


class TestProfileValidationResult:
    def test_passed_requires_all_outcomes(self):
        ok = _result("a", _outcome("r1", True), _outcome("r2", True))
        bad = _result("b", _outcome("r1", True), _outcome("r2", False))
        assert ok.passed
        assert not bad.passed
        assert [o.rule_id for o in bad.failed_outcomes] == ["r2"]

    def test_engine_error_is_critical(self):
        result = _result("a", error="ZeroDivisionError: boom")
        assert not result.passed
        assert result.critical_failures == 1

    def test_critical_failures_counted(self):
        result = _result(
            "a",
            _outcome("r1", False, severity="critical"),
            _outcome("r2", False, severity="high"),
        )
        assert result.critical_failures == 1

    def test_to_dict_lists_failures_only(self):
        data = _result("a", _outcome("r1", True), _outcome("r2", False)).to_dict()
        assert data["passed_rules"] == 1
        assert [f["rule_id"] for f in data["failed_rules"]] == ["r2"]


class TestAggregate:
    def test_profile_based_pass_rate(self):
        results = [
            _result("a", _outcome("r1", True)),
            _result("b", _outcome("r1", True), _outcome("r2", False)),
            _result("c", _outcome("r1", True)),
            _result("d", _outcome("r2", False)),
        ]
        batch = aggregate(results, "quick", run_id="val_test", timestamp="t")
        assert batch.run_id == "val_test"
        assert batch.run_type == "quick"
        assert batch.total_profiles == 4
        assert batch.passed_profiles == 2
        assert batch.pass_rate == 50.0
        assert batch.total_rules == 5
        assert batch.failed_rules == 2
        assert batch.failed_rules_summary == {"r2": 2}
        assert batch.top_failed_rules(1) == [("r2", 2)]

    def test_empty_batch(self):
        batch = aggregate([])
        assert batch.total_profiles == 0
        assert batch.pass_rate == 0.0
        assert not batch.meets_threshold(95.0)

    def test_meets_threshold_blocks_on_critical(self):
        results = [_result(str(i), _outcome("r1", True)) for i in range(99)]
        results.append(_result("x", _outcome("r9", False, severity="critical")))
        batch = aggregate(results)
        assert batch.pass_rate == 99.0
        assert batch.critical_failures == 1
        assert not batch.meets_threshold(95.0)

    def test_meets_threshold(self):
        batch = aggregate([_result("a", _outcome("r1", True))])
        assert batch.meets_threshold(95.0)

    def test_independent_and_self_referential_rates(self):
        batch = aggregate([
            _result(
                "a",
                _outcome("r1", True),
                _outcome("r2", False, independent=False),
                _outcome("r3", True, independent=False),
            )
        ])
        assert batch.metrics["independent_rule_pass_rate"] == 100.0
        assert batch.metrics["self_referential_rule_pass_rate"] == 50.0

    def test_category_metrics_only_for_seen_categories(self):
        batch = aggregate([_result("a", _outcome("r1", True, category="target"))])
        assert "target_accuracy" in batch.metrics
        assert "risk_accuracy" not in batch.metrics

    def test_engine_errors_metric(self):
        batch = aggregate([_result("a", error="boom"), _result("b", _outcome("r1", True))])
        assert batch.metrics["engine_errors"] == 1.0
        assert batch.failed_profiles == 1

    def test_to_dict_without_profiles(self):
        batch = aggregate([_result("a", _outcome("r1", False))])
        assert "profile_results" not in batch.to_dict(include_profiles=False)
        assert len(batch.to_dict()["profile_results"]) == 1


class TestCategoryAccuracy:
    def test_mean_of_per_profile_shares(self):
        results = [
            _result("a", _outcome("r1", True), _outcome("r2", False)),
            _result("b", _outcome("r1", True)),
            _result("c", _outcome("t1", True, category="target")),
        ]
        assert category_accuracy(results, "risk") == pytest.approx(75.0)

    def test_no_outcomes(self):
        assert category_accuracy([], "risk") == 0.0


class TestRunId:
    def test_format(self):
        assert re.fullmatch(r"val_\d{8}T\d{6}_[0-9a-f]{6}", new_run_id())
