"""MCP tools for generating and managing health analyses.

``generate_health_analysis`` runs the engine on a submitted profile and, when
the encrypted data bank is enabled, stores the result. The remaining tools
read and delete stored analyses. Every call is audit-logged by input hash;
no profile values reach the audit trail.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from healthpath.core.audit.logger import hash_display_name
from healthpath.core.storage.models import StoredAnalysis
from healthpath.core.storage.repository import RepositoryError
from healthpath.domains.health.domain_logic.analysis_engine import generate_analysis
from healthpath.domains.health.domain_logic.analysis_models import AnalysisResult
from healthpath.domains.health.domain_logic.profile_models import (
    InvalidProfileError,
    ProfileInput,
)

if TYPE_CHECKING:
    from healthpath.core.audit.logger import AuditLogger
    from healthpath.core.storage.repository import AnalysisRepository

logger = logging.getLogger(__name__)

STORE_MODES = ("encrypted", "none")


def to_stored_analysis(
    result: AnalysisResult, profile: ProfileInput, display_name: str | None = None
) -> StoredAnalysis:
    """Data-bank record for an analysis: clear summary columns plus encrypted payloads."""
    risk = result.risk_analysis
    return StoredAnalysis(
        analysis_id=result.analysis_id,
        created_at=result.generated_at,
        overall_score=result.overall_score,
        overall_grade=result.overall_grade,
        overall_risk_level=risk.overall_risk_level,
        diabetes_risk=risk.diabetes_risk,
        cardiovascular_risk=risk.cardiovascular_risk,
        metabolic_risk=risk.metabolic_syndrome_risk,
        mental_health_risk=risk.mental_health_risk,
        weight_direction=result.personalized_targets.weight.direction,
        profile_input=profile.to_dict(),
        result=result.to_dict(),
        display_name_hash=hash_display_name(display_name),
    )


def register_analysis_tools(
    mcp: FastMCP,
    repository: AnalysisRepository | None = None,
    audit_logger: AuditLogger | None = None,
    *,
    default_display_name: str = "there",
) -> None:
    """Register analysis tools on the MCP server.

    The storage-backed tools (get, list, delete) are only registered when a
    repository is available.
    """

    def _audit(tool_name: str, tool_input: Any, start_time: float, **kwargs: Any) -> None:
        if audit_logger is not None:
            audit_logger.log_tool_call(
                tool_name=tool_name,
                tool_input=tool_input,
                duration_ms=(time.monotonic() - start_time) * 1000,
                **kwargs,
            )

    @mcp.tool
    async def generate_health_analysis(
        ctx: Context,
        profile: dict[str, Any],
        display_name: str | None = None,
        store_mode: str = "encrypted",
    ) -> str:
        """Generate a complete health analysis from a profile.

        Produces compound risk percentages (diabetes, cardiovascular,
        metabolic syndrome, mental health), personalized daily targets, a
        90-day projection and a 13-week transformation roadmap.

        Args:
            profile: Nested profile with ``demographics`` (age, weight kg,
                height cm, gender), ``health_metrics`` (hydration, sleep,
                exercise, nutrition scored 1-10), and optional
                ``lifestyle_factors`` and ``medical_data`` (conditions list).
            display_name: Name used in the narrative (default: 'there').
            store_mode: 'encrypted' (default) stores the analysis in the data
                bank when storage is enabled; 'none' skips persistence.
        """
        start_time = time.monotonic()
        tool_input = {"profile": profile, "store_mode": store_mode}

        if store_mode not in STORE_MODES:
            return json.dumps({
                "status": "error",
                "error": f"store_mode must be one of: {' | '.join(STORE_MODES)}",
            })

        try:
            profile_input = ProfileInput.from_dict(profile)
        except InvalidProfileError as exc:
            _audit(
                "generate_health_analysis", tool_input, start_time,
                action="analysis_generated", status="failure",
                error_type=type(exc).__name__,
            )
            return json.dumps({"status": "error", "error": str(exc)})

        try:
            result = generate_analysis(profile_input, display_name or default_display_name)

            stored = False
            if repository is not None and store_mode != "none":
                try:
                    repository.save_analysis(
                        to_stored_analysis(result, profile_input, display_name)
                    )
                    stored = True
                except Exception:
                    logger.exception("Failed to persist analysis, continuing")

            _audit(
                "generate_health_analysis", tool_input, start_time,
                action="analysis_generated", analysis_id=result.analysis_id,
                metadata={"stored": stored},
            )
            return json.dumps({
                "status": "ok",
                "analysis_id": result.analysis_id,
                "stored": stored,
                "analysis": result.to_dict(),
            })

        except Exception as exc:
            _audit(
                "generate_health_analysis", tool_input, start_time,
                action="analysis_generated", status="failure",
                error_type=type(exc).__name__,
            )
            raise

    if repository is None:
        return

    @mcp.tool
    async def get_stored_analysis(
        ctx: Context,
        analysis_id: str,
    ) -> str:
        """Retrieve a stored analysis, including its decrypted profile and result.

        Args:
            analysis_id: The ``hp_...`` id returned by generate_health_analysis.
        """
        start_time = time.monotonic()
        stored = repository.get_analysis(analysis_id)
        _audit(
            "get_stored_analysis", {"analysis_id": analysis_id}, start_time,
            analysis_id=analysis_id,
            status="success" if stored else "failure",
            error_type=None if stored else "NotFound",
        )
        if stored is None:
            return json.dumps({
                "status": "not_found",
                "analysis_id": analysis_id,
                "message": "No analysis found with that ID.",
            })
        return json.dumps({
            "status": "ok",
            **stored.summary(),
            "profile_input": stored.profile_input,
            "analysis": stored.result,
        })

    @mcp.tool
    async def list_stored_analyses(
        ctx: Context,
        risk_level: str | None = None,
        days: int | None = None,
        limit: int = 20,
    ) -> str:
        """List stored analyses newest first (summary columns only).

        Args:
            risk_level: Optional filter: low | moderate | high | critical.
            days: Only analyses from the last N days.
            limit: Maximum number of analyses (1-100, default 20).
        """
        if not 1 <= limit <= 100:
            return json.dumps({"status": "error", "error": "limit must be between 1 and 100"})
        if days is not None and days < 1:
            return json.dumps({"status": "error", "error": "days must be at least 1"})

        start_time = time.monotonic()
        since = (
            (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
            if days is not None
            else None
        )
        try:
            analyses = repository.list_analyses(risk_level=risk_level, since=since, limit=limit)
        except RepositoryError as exc:
            return json.dumps({"status": "error", "error": str(exc)})

        _audit(
            "list_stored_analyses",
            {"risk_level": risk_level, "days": days, "limit": limit},
            start_time,
            metadata={"returned": len(analyses)},
        )
        return json.dumps({
            "status": "ok",
            "count": len(analyses),
            "total_stored": repository.count_analyses(),
            "analyses": [a.summary() for a in analyses],
        })

    @mcp.tool
    async def delete_stored_analysis(
        ctx: Context,
        analysis_id: str = "",
        confirm: str = "",
    ) -> str:
        """Permanently delete one stored analysis, or all of them.

        Args:
            analysis_id: The analysis to delete. Leave empty to delete all.
            confirm: Must be exactly 'DELETE_ALL' when analysis_id is empty.
        """
        start_time = time.monotonic()

        if not analysis_id:
            if confirm != "DELETE_ALL":
                return json.dumps({
                    "status": "cancelled",
                    "message": (
                        "To delete all stored analyses, call this tool with "
                        "confirm='DELETE_ALL'. This action cannot be undone."
                    ),
                })
            count = repository.delete_all_analyses()
            if audit_logger is not None:
                audit_logger.log_data_delete(
                    tool_name="delete_stored_analysis",
                    count=count,
                    metadata={"confirmed": True},
                )
            return json.dumps({
                "status": "all_deleted",
                "analyses_deleted": count,
                "duration_ms": round((time.monotonic() - start_time) * 1000, 1),
            })

        if not repository.delete_analysis(analysis_id):
            return json.dumps({
                "status": "not_found",
                "analysis_id": analysis_id,
                "message": "No analysis found with that ID.",
            })
        if audit_logger is not None:
            audit_logger.log_data_delete(
                tool_name="delete_stored_analysis",
                analysis_id=analysis_id,
                count=1,
            )
        return json.dumps({
            "status": "deleted",
            "analysis_id": analysis_id,
            "duration_ms": round((time.monotonic() - start_time) * 1000, 1),
        })
