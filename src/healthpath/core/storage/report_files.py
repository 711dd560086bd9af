"""File sink and Markdown report for validation runs.

Each run is written to ``<results_dir>/validation_<run_id>.json``. Run ids
sort chronologically, so the latest file is the last one by name.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from healthpath.core.validation.models import BatchValidationResult

logger = logging.getLogger(__name__)

_PREFIX = "validation_"
PROFILE_CATEGORIES = ("edge_case", "common", "medical", "mental_health", "scenario")


def write_validation_json(batch: BatchValidationResult, results_dir: str | Path) -> Path:
    """Write a batch result as indented JSON and return the file path."""
    directory = Path(results_dir).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{_PREFIX}{batch.run_id}.json"
    path.write_text(json.dumps(batch.to_dict(), indent=2, default=str), encoding="utf-8")
    logger.info("Validation results written to %s", path)
    return path


def find_latest_validation_json(results_dir: str | Path) -> Path | None:
    """Return the newest ``validation_*.json`` in ``results_dir``, or None."""
    directory = Path(results_dir).expanduser()
    if not directory.is_dir():
        return None
    files = sorted(directory.glob(f"{_PREFIX}*.json"))
    return files[-1] if files else None


def load_validation_json(path: str | Path) -> dict[str, Any]:
    return json.loads(Path(path).read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------

def _failed_rules_table(summary: dict[str, int]) -> str:
    if not summary:
        return "*No failures detected: all validation rules passed.*"
    lines = ["| Rule ID | Failures |", "|---------|----------|"]
    for rule_id, count in sorted(summary.items(), key=lambda item: (-item[1], item[0])):
        lines.append(f"| {rule_id} | {count} |")
    return "\n".join(lines)


def _metrics_table(metrics: dict[str, float]) -> str:
    if not metrics:
        return "*No metrics recorded.*"
    lines = ["| Metric | Value |", "|--------|-------|"]
    for name, value in metrics.items():
        label = name.replace("_", " ").title()
        lines.append(f"| {label} | {value:.1f} |")
    return "\n".join(lines)


def _category_breakdown(profile_results: list[dict[str, Any]]) -> str:
    lines = [
        "| Category | Failed profiles |",
        "|----------|-----------------|",
    ]
    failed: dict[str, int] = {}
    for profile in profile_results:
        failed[profile["profile_category"]] = failed.get(profile["profile_category"], 0) + 1
    for category in PROFILE_CATEGORIES:
        if category in failed:
            lines.append(f"| {category.replace('_', ' ')} | {failed.get(category, 0)} |")
    return "\n".join(lines)


def _critical_failures(profile_results: list[dict[str, Any]]) -> str:
    critical = [
        p for p in profile_results
        if p.get("error") or any(r["severity"] == "critical" for r in p["failed_rules"])
    ]
    if not critical:
        return "*No critical failures detected.*"
    lines = [f"**Found {len(critical)} profiles with critical failures:**", ""]
    for profile in critical[:20]:
        lines.append(f"- **{profile['profile_name']}** (`{profile['profile_id']}`)")
        if profile.get("error"):
            lines.append(f"  - engine error: {profile['error']}")
        for rule in profile["failed_rules"]:
            if rule["severity"] == "critical":
                lines.append(
                    f"  - `{rule['rule_id']}`: expected {rule['expected']}, got {rule['actual']}"
                )
    if len(critical) > 20:
        lines.append(f"- ... and {len(critical) - 20} more")
    return "\n".join(lines)


def render_markdown_report(data: dict[str, Any], *, threshold: float = 95.0) -> str:
    """Render a validation result dict (as written by ``write_validation_json``)."""
    pass_rate = float(data.get("pass_rate", 0.0))
    status = (
        "PASS"
        if pass_rate >= threshold and int(data.get("critical_failures", 0)) == 0
        else "FAIL"
    )
    profile_results = data.get("profile_results", [])

    sections = [
        "# HealthPath Analysis Engine: Validation Report",
        "",
        f"**Run ID:** {data.get('run_id', '')}  ",
        f"**Run Type:** {data.get('run_type', '')}  ",
        f"**Timestamp:** {data.get('timestamp', '')}",
        "",
        "## Summary",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Total Profiles | {data.get('total_profiles', 0)} |",
        f"| Passed Profiles | {data.get('passed_profiles', 0)} ({pass_rate:.1f}%) |",
        f"| Failed Profiles | {data.get('failed_profiles', 0)} ({100 - pass_rate:.1f}%) |",
        f"| Rule Evaluations | {data.get('total_rules', 0)} |",
        f"| Critical Failures | {data.get('critical_failures', 0)} |",
        f"| Status | {status} (threshold {threshold:.1f}%) |",
        "",
        "## Accuracy Metrics",
        "",
        _metrics_table(data.get("metrics", {})),
        "",
        "## Failed Rules",
        "",
        _failed_rules_table(data.get("failed_rules_summary", {})),
        "",
        "## Failed Profiles by Category",
        "",
        _category_breakdown(profile_results),
        "",
        "## Critical Failures",
        "",
        _critical_failures(profile_results),
        "",
    ]
    return "\n".join(sections)
