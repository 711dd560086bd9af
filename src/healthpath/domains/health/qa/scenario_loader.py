"""Reference scenario loader: reads YAML profiles with expected outputs.

A scenario file looks like::

    id: underweight_female_45
    name: Underweight woman, 45
    description: ...
    profile:
      demographics: {age: 45, weight: 50, height: 170, gender: female}
      health_metrics: {hydration: 5, sleep: 5, exercise: 5, nutrition: 5}
      lifestyle: {...}          # optional
      medical: {conditions: []} # optional
    expected:                   # optional overrides of the derived envelope
      weight_direction: gain
      diabetes_risk_range: [0, 40]
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from healthpath.domains.health.qa.synthetic_profiles import ExpectedOutputs, SyntheticProfile

logger = logging.getLogger(__name__)

SCENARIO_DIR = Path(__file__).parent / "scenarios"
REQUIRED_FIELDS = ["id", "name", "profile"]
_RANGE_FIELDS = {
    "bmi_range",
    "sleep_target_range",
    "steps_target_range",
    "diabetes_risk_range",
    "cvd_risk_range",
    "metabolic_risk_range",
    "mental_health_risk_range",
}
_EXPECTED_FIELDS = _RANGE_FIELDS | {"weight_direction"}


class ScenarioLoadError(Exception):
    """Raised when a scenario file cannot be parsed into a profile."""


def _expected_overrides(data: dict[str, Any]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key, value in (data or {}).items():
        if key not in _EXPECTED_FIELDS:
            raise ScenarioLoadError(f"Unknown expected field '{key}'")
        if key in _RANGE_FIELDS:
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise ScenarioLoadError(f"Expected field '{key}' must be a [low, high] pair")
            low, high = float(value[0]), float(value[1])
            if low > high:
                raise ScenarioLoadError(f"Expected field '{key}' has low > high")
            value = (low, high)
        overrides[key] = value
    return overrides


def load_scenario_file(path: Path) -> SyntheticProfile:
    """Parse a YAML file into a SyntheticProfile.

    Raises:
        ScenarioLoadError: On malformed YAML, missing fields or an invalid profile.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ScenarioLoadError(f"Cannot read scenario {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ScenarioLoadError(f"Scenario {path} is not a mapping")
    missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
    if missing:
        raise ScenarioLoadError(f"Scenario {path} missing: {', '.join(missing)}")

    try:
        return SyntheticProfile.build(
            str(data["id"]),
            str(data["name"]),
            str(data.get("description", "")).strip(),
            "scenario",
            data["profile"],
            **_expected_overrides(data.get("expected") or {}),
        )
    except ValueError as exc:
        # InvalidProfileError is a ValueError
        raise ScenarioLoadError(f"Scenario {path}: {exc}") from exc


def load_scenario_directory(directory: str | Path | None = None) -> list[SyntheticProfile]:
    """Load all YAML scenarios from a directory (recursively).

    Skips files starting with underscore. A file that fails to load is
    logged and skipped.
    """
    directory = Path(directory) if directory else SCENARIO_DIR
    if not directory.is_dir():
        logger.warning("Scenario directory does not exist: %s", directory)
        return []

    scenarios: list[SyntheticProfile] = []
    for path in sorted(directory.rglob("*.yaml")):
        if path.name.startswith("_"):
            continue
        try:
            scenario = load_scenario_file(path)
        except ScenarioLoadError:
            logger.exception("Failed to load scenario from %s", path)
            continue
        scenarios.append(scenario)
        logger.info("Loaded scenario: %s", scenario.id)
    return scenarios


def validate_scenario_file(path: Path) -> tuple[SyntheticProfile | None, list[str]]:
    """Validate a single scenario YAML file.

    Returns: (scenario_or_none, errors)
    """
    try:
        scenario = load_scenario_file(path)
    except ScenarioLoadError as exc:
        return None, [f"{path.name}: Failed to load: {exc}"]

    errors: list[str] = []
    if not scenario.description:
        errors.append(f"{path.name}: Missing description")
    if path.name != f"{scenario.id}.yaml":
        errors.append(
            f"{path.name}: Filename should match scenario id '{scenario.id}' "
            f"(expected '{scenario.id}.yaml')"
        )
    return scenario, errors


def validate_scenario_directory(directory: str | Path | None = None) -> tuple[int, list[str]]:
    """Validate all scenario YAML files in a directory.

    Returns: (scenario_count, errors)
    """
    directory = Path(directory) if directory else SCENARIO_DIR
    if not directory.is_dir():
        return 0, [f"Scenario directory not found: {directory}"]

    yaml_files = sorted(p for p in directory.rglob("*.yaml") if not p.name.startswith("_"))
    if not yaml_files:
        return 0, [f"No scenario YAML files found in {directory}"]

    errors: list[str] = []
    seen_ids: dict[str, Path] = {}
    loaded = 0
    for path in yaml_files:
        scenario, file_errors = validate_scenario_file(path)
        if file_errors:
            errors.extend(file_errors)
            continue
        assert scenario is not None  # for type checkers
        loaded += 1
        if scenario.id in seen_ids:
            errors.append(
                f"{path.name}: Duplicate ID '{scenario.id}' already defined in "
                f"{seen_ids[scenario.id].name}"
            )
        else:
            seen_ids[scenario.id] = path
    return loaded, errors
