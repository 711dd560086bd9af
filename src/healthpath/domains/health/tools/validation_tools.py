"""MCP tools for the engine validation harness."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from healthpath.core.storage.report_files import (
    find_latest_validation_json,
    load_validation_json,
    render_markdown_report,
    write_validation_json,
)
from healthpath.core.validation.models import RULE_CATEGORIES
from healthpath.domains.health.qa.profile_generators import ProfileGenerator
from healthpath.domains.health.qa.scenario_loader import load_scenario_directory
from healthpath.domains.health.qa.validator import EngineValidator

if TYPE_CHECKING:
    from healthpath.core.audit.logger import AuditLogger
    from healthpath.core.config.settings import Settings
    from healthpath.core.storage.repository import AnalysisRepository

logger = logging.getLogger(__name__)

RUN_TYPES = ("quick", "full", "scenarios")
MAX_COMMON_PROFILES = 2000


def register_validation_tools(
    mcp: FastMCP,
    settings: Settings,
    repository: AnalysisRepository | None = None,
    audit_logger: AuditLogger | None = None,
    validator: EngineValidator | None = None,
) -> None:
    """Register validation harness tools on the MCP server."""
    validator = validator or EngineValidator(workers=settings.validation_workers)
    scenario_dir = settings.validation_scenario_dir or None

    def _validate_and_write(run_type: str, common_count: int):
        generator = ProfileGenerator(seed=settings.validation_seed)
        if run_type == "full":
            profiles = generator.generate_all(common_count=common_count)
        elif run_type == "quick":
            profiles = generator.edge_cases()
        else:
            profiles = []
        profiles += load_scenario_directory(scenario_dir)

        batch = validator.validate_batch(profiles, run_type)
        return batch, write_validation_json(batch, settings.results_dir)

    @mcp.tool
    async def run_engine_validation(
        ctx: Context,
        run_type: str = "quick",
        common_count: int = 100,
    ) -> str:
        """Run the analysis engine against synthetic profiles and check every rule.

        Args:
            run_type: 'quick' (edge cases + reference scenarios, default),
                'full' (every generated family + scenarios) or 'scenarios'.
            common_count: Number of random common profiles in a 'full' run
                (1-2000, default 100).
        """
        if run_type not in RUN_TYPES:
            return json.dumps({
                "status": "error",
                "error": f"run_type must be one of: {' | '.join(RUN_TYPES)}",
            })
        if not 1 <= common_count <= MAX_COMMON_PROFILES:
            return json.dumps({
                "status": "error",
                "error": f"common_count must be between 1 and {MAX_COMMON_PROFILES}",
            })

        start_time = time.monotonic()
        tool_input = {"run_type": run_type, "common_count": common_count}
        try:
            # Storage and audit stay on the loop thread that owns the sqlite connection.
            batch, report_path = await asyncio.to_thread(
                _validate_and_write, run_type, common_count,
            )
            if repository is not None:
                try:
                    repository.save_validation_run(batch)
                except Exception:
                    logger.exception("Failed to store validation run %s, continuing", batch.run_id)

            if audit_logger is not None:
                audit_logger.log_tool_call(
                    tool_name="run_engine_validation",
                    tool_input=tool_input,
                    action="validation_run",
                    run_id=batch.run_id,
                    duration_ms=(time.monotonic() - start_time) * 1000,
                    metadata={
                        "pass_rate": batch.pass_rate,
                        "critical_failures": batch.critical_failures,
                    },
                )

            threshold = settings.validation_pass_threshold
            return json.dumps({
                "status": "ok",
                "passed": batch.meets_threshold(threshold),
                "threshold": threshold,
                **batch.to_dict(include_profiles=False),
                "top_failed_rules": [
                    {"rule_id": rule_id, "failures": count}
                    for rule_id, count in batch.top_failed_rules(10)
                ],
                "report_path": str(report_path),
            }, indent=2)

        except Exception as exc:
            if audit_logger is not None:
                audit_logger.log_tool_call(
                    tool_name="run_engine_validation",
                    tool_input=tool_input,
                    action="validation_run",
                    duration_ms=(time.monotonic() - start_time) * 1000,
                    status="failure",
                    error_type=type(exc).__name__,
                )
            raise

    @mcp.tool
    async def list_validation_rules(
        ctx: Context,
        category: str | None = None,
    ) -> str:
        """List the validation rules the harness checks.

        Args:
            category: Optional filter: risk | target | projection | logic |
                roadmap | expected.
        """
        if category is not None and category not in RULE_CATEGORIES:
            return json.dumps({
                "status": "error",
                "error": f"category must be one of: {' | '.join(RULE_CATEGORIES)}",
            })
        registry = validator.registry
        rules = registry.find_by_category(category) if category else registry.all()
        return json.dumps({
            "status": "ok",
            "count": len(rules),
            "rules": [
                {
                    "id": rule.id,
                    "name": rule.name,
                    "description": rule.description,
                    "category": rule.category,
                    "severity": rule.severity,
                    "independent": rule.independent,
                }
                for rule in rules
            ],
        }, indent=2)

    @mcp.tool
    async def latest_validation_report(
        ctx: Context,
        output_format: str = "markdown",
    ) -> str:
        """Show the most recent validation run.

        Args:
            output_format: 'markdown' (default) for a readable report, or
                'json' for the raw result file.
        """
        if output_format not in ("markdown", "json"):
            return json.dumps({
                "status": "error",
                "error": "output_format must be one of: markdown | json",
            })

        path = find_latest_validation_json(settings.results_dir)
        if path is None:
            return json.dumps({
                "status": "not_found",
                "message": "No validation results yet. Run run_engine_validation first.",
            })

        data = load_validation_json(path)
        if output_format == "markdown":
            return render_markdown_report(data, threshold=settings.validation_pass_threshold)

        response = {"status": "ok", "report_path": str(path), "report": data}
        if repository is not None:
            response["recent_runs"] = [
                run.to_dict() for run in repository.list_validation_runs(limit=5)
            ]
            response["top_failed_rules_all_runs"] = [
                {"rule_id": rule_id, "failures": count}
                for rule_id, count in repository.top_failed_rules(limit=10)
            ]
        return json.dumps(response, indent=2)
