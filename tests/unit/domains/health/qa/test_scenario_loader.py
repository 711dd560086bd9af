"""Unit tests for YAML scenario loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from healthpath.domains.health.qa.scenario_loader import (
    SCENARIO_DIR,
    ScenarioLoadError,
    load_scenario_directory,
    load_scenario_file,
    validate_scenario_directory,
    validate_scenario_file,
)

_VALID = """\
id: lean_runner
name: Lean runner
description: Active adult at a healthy weight.
profile:
  demographics: {age: 34, weight: 64, height: 178, gender: male}
  health_metrics: {hydration: 8, sleep: 8, exercise: 9, nutrition: 8}
  lifestyle:
    stress_level: low
expected:
  weight_direction: maintain
  steps_target_range: [3000, 15000]
"""


def _write(directory: Path, name: str, text: str) -> Path:
    path = directory / name
    path.write_text(text)
    return path


class TestLoadScenarioFile:
    def test_valid_file(self, tmp_path):
        scenario = load_scenario_file(_write(tmp_path, "lean_runner.yaml", _VALID))
        assert scenario.id == "lean_runner"
        assert scenario.category == "scenario"
        assert scenario.profile.lifestyle.stress_level == "low"
        assert scenario.expected.weight_direction == "maintain"
        assert scenario.expected.steps_target_range == (3000.0, 15000.0)

    def test_missing_required_field(self, tmp_path):
        path = _write(tmp_path, "x.yaml", "id: x\nname: X\n")
        with pytest.raises(ScenarioLoadError, match="missing: profile"):
            load_scenario_file(path)

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ScenarioLoadError, match="not a mapping"):
            load_scenario_file(_write(tmp_path, "x.yaml", "- a\n- b\n"))

    def test_malformed_yaml(self, tmp_path):
        with pytest.raises(ScenarioLoadError, match="Cannot read"):
            load_scenario_file(_write(tmp_path, "x.yaml", "id: [unclosed\n"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ScenarioLoadError):
            load_scenario_file(tmp_path / "nope.yaml")

    def test_invalid_profile(self, tmp_path):
        text = _VALID.replace("height: 178", "height: 0")
        with pytest.raises(ScenarioLoadError, match="height"):
            load_scenario_file(_write(tmp_path, "x.yaml", text))

    def test_unknown_expected_field(self, tmp_path):
        text = _VALID + "  happiness_range: [1, 2]\n"
        with pytest.raises(ScenarioLoadError, match="Unknown expected field"):
            load_scenario_file(_write(tmp_path, "x.yaml", text))

    def test_inverted_range(self, tmp_path):
        text = _VALID.replace("[3000, 15000]", "[15000, 3000]")
        with pytest.raises(ScenarioLoadError, match="low > high"):
            load_scenario_file(_write(tmp_path, "x.yaml", text))


class TestLoadScenarioDirectory:
    def test_bundled_scenarios(self):
        scenarios = load_scenario_directory()
        ids = {s.id for s in scenarios}
        assert {"underweight_female_45", "obese_type2_diabetic", "stressed_unsupported"} <= ids
        assert len(scenarios) == len(list(SCENARIO_DIR.glob("*.yaml")))

    def test_skips_broken_and_underscored(self, tmp_path):
        _write(tmp_path, "lean_runner.yaml", _VALID)
        _write(tmp_path, "broken.yaml", "id: broken\n")
        _write(tmp_path, "_draft.yaml", _VALID.replace("lean_runner", "draft"))
        scenarios = load_scenario_directory(tmp_path)
        assert [s.id for s in scenarios] == ["lean_runner"]

    def test_missing_directory(self, tmp_path):
        assert load_scenario_directory(tmp_path / "absent") == []


class TestValidateScenarios:
    def test_bundled_directory_is_clean(self):
        count, errors = validate_scenario_directory()
        assert errors == []
        assert count >= 5

    def test_filename_must_match_id(self, tmp_path):
        scenario, errors = validate_scenario_file(_write(tmp_path, "runner.yaml", _VALID))
        assert scenario is not None
        assert any("Filename should match" in e for e in errors)

    def test_duplicate_ids(self, tmp_path):
        sub = tmp_path / "more"
        sub.mkdir()
        _write(tmp_path, "lean_runner.yaml", _VALID)
        _write(sub, "lean_runner.yaml", _VALID)
        count, errors = validate_scenario_directory(tmp_path)
        assert count == 2
        assert any("Duplicate ID" in e for e in errors)

    def test_empty_directory(self, tmp_path):
        count, errors = validate_scenario_directory(tmp_path)
        assert count == 0
        assert "No scenario YAML files" in errors[0]
