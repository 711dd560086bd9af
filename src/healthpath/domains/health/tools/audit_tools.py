"""MCP tools for viewing the audit trail.

The audit trail holds no profile data, only hashed input references and
the ids of stored analyses and validation runs.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from healthpath.core.audit.logger import AuditLogger

logger = logging.getLogger(__name__)


def register_audit_tools(
    mcp: FastMCP,
    audit_logger: AuditLogger,
) -> None:
    """Register audit trail tools on the MCP server."""

    @mcp.tool
    async def audit_summary(
        ctx: Context,
        days: int = 30,
        action: str | None = None,
    ) -> str:
        """View recent tool usage, analysis and deletion events.

        Args:
            days: Number of days to look back (default: 30).
            action: Optional filter: tool_invocation | analysis_generated |
                validation_run | data_delete.
        """
        if days < 1:
            return json.dumps({"status": "error", "error": "days must be at least 1"})

        since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()

        total_events = audit_logger.count_events(action=action, since=since)
        by_action = audit_logger.count_by_action(since=since)
        recent_events = audit_logger.get_events(action=action, since=since, limit=20)

        # Strip internal ids and input hashes for display
        display_events = []
        for event in recent_events:
            display_events.append({
                "timestamp": event.get("timestamp"),
                "action": event.get("action"),
                "tool_name": event.get("tool_name"),
                "analysis_id": event.get("analysis_id"),
                "run_id": event.get("run_id"),
                "status": event.get("status"),
                "error_type": event.get("error_type"),
                "duration_ms": event.get("duration_ms"),
            })

        return json.dumps({
            "status": "ok",
            "period_days": days,
            "total_events": total_events,
            "events_by_action": by_action,
            "recent_events": display_events,
            "note": (
                "This audit trail contains no profile data. "
                "It tracks tool usage, stored analyses and deletions."
            ),
        }, indent=2)
