"""Unit tests for the engine validator."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from healthpath.core.validation.registry import RuleBook, RuleRegistry
from healthpath.domains.health.qa import validator as validator_module
from healthpath.domains.health.qa.profile_generators import ProfileGenerator
from healthpath.domains.health.qa.scenario_loader import load_scenario_directory
from healthpath.domains.health.qa.synthetic_profiles import SyntheticProfile
from healthpath.domains.health.qa.validator import EngineValidator

_FIXED = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _clock():
    return _FIXED


def _registry() -> RuleRegistry:
    book = RuleBook("logic")

    @book.rule("logic_score_in_range", "Score in range", "0-100", "critical")
    def _score(rule, profile, result):
        return rule.outcome(0 <= result.overall_score <= 100, "0-100", result.overall_score)

    @book.rule("logic_never_applies", "Never applies", "Skipped", "low")
    def _skip(rule, profile, result):
        return None

    registry = RuleRegistry()
    registry.register_all(book.rules)
    return registry


@pytest.fixture
def synthetic(profile_factory):
    def _build(profile_id="p1", **overrides):
        return SyntheticProfile.build(
            profile_id, f"Profile {profile_id}", "", "common", profile_factory(**overrides)
        )

    return _build


class TestValidateProfile:
    def test_outcomes_for_applicable_rules_only(self, synthetic):
        validator = EngineValidator(_registry(), clock=_clock)
        result = validator.validate_profile(synthetic())
        assert result.passed
        assert [o.rule_id for o in result.outcomes] == ["logic_score_in_range"]
        assert result.timestamp == _FIXED.isoformat()

    def test_engine_error_recorded(self, synthetic, monkeypatch):
        def _boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(validator_module, "generate_analysis", _boom)
        result = EngineValidator(_registry()).validate_profile(synthetic())
        assert not result.passed
        assert result.error == "RuntimeError: boom"
        assert result.critical_failures == 1
        assert result.outcomes == ()

    def test_default_registry(self, synthetic):
        validator = EngineValidator()
        assert len(validator.registry) > 40
        result = validator.validate_profile(synthetic())
        assert result.error is None
        assert result.outcomes


class TestValidateBatch:
    def test_order_preserved_with_workers(self, synthetic):
        profiles = [synthetic(f"p{i}", demographics__age=20 + i) for i in range(8)]
        validator = EngineValidator(_registry(), workers=4, clock=_clock)
        batch = validator.validate_batch(profiles, "quick")
        assert [r.profile_id for r in batch.profile_results] == [p.id for p in profiles]
        assert batch.run_type == "quick"
        assert batch.total_profiles == 8
        assert batch.pass_rate == 100.0
        assert batch.timestamp == _FIXED.isoformat()

    def test_worker_count_floor(self):
        assert EngineValidator(_registry(), workers=0)._workers == 1

    def test_bundled_scenarios_run_cleanly(self):
        batch = EngineValidator().validate_batch(load_scenario_directory(), "scenarios")
        assert batch.metrics["engine_errors"] == 0.0
        assert batch.critical_failures == 0

    def test_generated_population_passes_every_rule(self):
        profiles = ProfileGenerator(seed=42).generate_all(common_count=50)
        batch = EngineValidator(workers=4).validate_batch(profiles, "full")
        assert batch.total_profiles == 550
        assert batch.metrics["engine_errors"] == 0.0
        assert batch.critical_failures == 0
        assert batch.pass_rate == 100.0
