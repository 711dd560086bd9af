"""HealthPath MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import json
import logging

from fastmcp import Context, FastMCP

from healthpath.core.audit.logger import AuditLogger
from healthpath.core.config.settings import get_settings
from healthpath.core.storage.database import AnalysisDatabase, DatabaseError
from healthpath.core.storage.encryption import EncryptionError, FieldEncryptor
from healthpath.core.storage.repository import AnalysisRepository
from healthpath.domains.health.qa.validator import EngineValidator
from healthpath.domains.health.tools.analysis_tools import register_analysis_tools
from healthpath.domains.health.tools.validation_tools import register_validation_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "HealthPath Analysis"
SERVER_VERSION = "0.1.0"


def create_app(
    *,
    repository_override: AnalysisRepository | None = None,
    audit_logger_override: AuditLogger | None = None,
) -> FastMCP:
    """Create and configure the HealthPath MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Initializes the encrypted storage layer and audit trail (if configured)
    3. Builds the validation harness
    4. Registers all tools
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "HealthPath analysis server. Turns a self-reported health profile "
            "into compound risk estimates, personalized targets, a 90-day "
            "projection and a 13-week roadmap, and validates the engine "
            "against synthetic profiles."
        ),
    )

    # --- Initialize encrypted storage (analysis data bank) ---
    repository: AnalysisRepository | None = None
    audit_logger: AuditLogger | None = audit_logger_override
    if repository_override is not None:
        repository = repository_override
    elif settings.encryption_key:
        try:
            encryptor = FieldEncryptor(settings.encryption_key)
            analysis_db = AnalysisDatabase(settings.db_path)
            analysis_db.initialize()
            data_bank = AnalysisRepository(analysis_db, encryptor)
            if encryptor.key_count > 1:
                # Older keys stay readable; move their rows onto the first key.
                data_bank.rotate_encryption()
            repository = data_bank
            if audit_logger is None:
                audit_logger = AuditLogger(analysis_db)
            logger.info(
                "Analysis data bank initialized: %s (schema v%d)",
                settings.db_path,
                analysis_db.get_schema_version(),
            )
        except (EncryptionError, DatabaseError) as exc:
            logger.error("Failed to initialize storage: %s", exc)
            logger.warning("Continuing without persistence, analyses will not be stored")
    else:
        logger.warning(
            "No ENCRYPTION_KEY configured, running without persistence. "
            "Set ENCRYPTION_KEY to enable the analysis data bank."
        )

    validator = EngineValidator(workers=settings.validation_workers)

    # --- Register tools ---
    @server.tool
    async def health_check(ctx: Context) -> str:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "storage_enabled": repository is not None,
            "audit_enabled": audit_logger is not None,
            "validation_rules": len(validator.registry),
        }
        if repository is not None:
            status["analyses_stored"] = repository.count_analyses()
        return json.dumps(status)

    register_analysis_tools(
        server,
        repository,
        audit_logger,
        default_display_name=settings.default_display_name,
    )
    logger.info("Analysis tools registered (storage %s)", "on" if repository else "off")

    register_validation_tools(server, settings, repository, audit_logger, validator)
    logger.info("Validation tools registered (%d rules)", len(validator.registry))

    # --- Register audit tools (requires storage) ---
    if audit_logger is not None:
        from healthpath.domains.health.tools.audit_tools import register_audit_tools

        register_audit_tools(server, audit_logger)
        logger.info("Audit tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
