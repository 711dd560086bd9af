"""SQLite database management for the HealthPath analysis data bank.

Handles connection lifecycle, schema creation, and migrations.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

# Current schema version
SCHEMA_VERSION = 2

# ---------------------------------------------------------------------------
# Schema DDL
# ---------------------------------------------------------------------------

_SCHEMA_V1 = """
-- One row per generated analysis
CREATE TABLE IF NOT EXISTS analysis_reports (
    id                  TEXT PRIMARY KEY,
    analysis_id         TEXT NOT NULL UNIQUE,
    display_name_hash   TEXT,
    created_at          TEXT NOT NULL,

    -- Unencrypted summary columns (for listing without decrypting)
    overall_score       INTEGER NOT NULL,
    overall_grade       TEXT NOT NULL,
    overall_risk_level  TEXT NOT NULL,
    diabetes_risk       INTEGER,
    cardiovascular_risk INTEGER,
    metabolic_risk      INTEGER,
    mental_health_risk  INTEGER,
    weight_direction    TEXT,

    -- Encrypted JSON blobs (profile input and full result)
    input_enc           TEXT NOT NULL,
    result_enc          TEXT NOT NULL
);

-- One row per validation pass
CREATE TABLE IF NOT EXISTS validation_runs (
    run_id              TEXT PRIMARY KEY,
    run_type            TEXT NOT NULL,
    total_profiles      INTEGER NOT NULL,
    passed_profiles     INTEGER NOT NULL,
    failed_profiles     INTEGER NOT NULL,
    total_rules         INTEGER NOT NULL,
    passed_rules        INTEGER NOT NULL,
    failed_rules        INTEGER NOT NULL,
    pass_rate           REAL NOT NULL,
    critical_failures   INTEGER NOT NULL,
    metrics_json        TEXT,
    failed_rules_json   TEXT,
    created_at          TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Denormalized for "which rules fail most often" across runs
CREATE TABLE IF NOT EXISTS validation_rule_failures (
    id            TEXT PRIMARY KEY,
    run_id        TEXT NOT NULL REFERENCES validation_runs(run_id) ON DELETE CASCADE,
    rule_id       TEXT NOT NULL,
    failure_count INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_reports_created ON analysis_reports(created_at);
CREATE INDEX IF NOT EXISTS idx_reports_risk    ON analysis_reports(overall_risk_level);
CREATE INDEX IF NOT EXISTS idx_runs_created    ON validation_runs(created_at);
CREATE INDEX IF NOT EXISTS idx_failures_rule   ON validation_rule_failures(rule_id);
"""

# ---------------------------------------------------------------------------
# V2: Audit log table
# ---------------------------------------------------------------------------

_SCHEMA_V2 = """
CREATE TABLE IF NOT EXISTS audit_log (
    id              TEXT PRIMARY KEY,
    timestamp       TEXT NOT NULL DEFAULT (datetime('now')),
    action          TEXT NOT NULL,
    tool_name       TEXT,
    tool_input_hash TEXT,
    analysis_id     TEXT,
    run_id          TEXT,
    duration_ms     REAL,
    status          TEXT NOT NULL DEFAULT 'success',
    error_type      TEXT,
    metadata_json   TEXT
);

CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_log(timestamp);
CREATE INDEX IF NOT EXISTS idx_audit_action    ON audit_log(action);
CREATE INDEX IF NOT EXISTS idx_audit_tool      ON audit_log(tool_name);
"""


class DatabaseError(Exception):
    """Raised when database operations fail."""


class AnalysisDatabase:
    """SQLite database manager for stored analyses and validation runs.

    Supports both file-based and in-memory (`:memory:`) databases.
    In-memory mode is used for testing.

    Usage::

        with AnalysisDatabase(":memory:") as db:
            db.connection.execute("SELECT COUNT(*) FROM analysis_reports")
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the active database connection.

        Raises:
            DatabaseError: If the database has not been initialized.
        """
        if self._conn is None:
            raise DatabaseError("Database not initialized. Call initialize() first.")
        return self._conn

    @property
    def path(self) -> str:
        return self._db_path

    def initialize(self) -> None:
        """Open the connection and ensure the schema exists. Idempotent."""
        if self._conn is not None:
            return

        try:
            if self._db_path != ":memory:":
                db_file = Path(self._db_path).expanduser()
                db_file.parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(str(db_file))
            else:
                self._conn = sqlite3.connect(":memory:")
        except (OSError, sqlite3.Error) as exc:
            raise DatabaseError(f"Cannot open database {self._db_path}: {exc}") from exc

        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")

        self._ensure_schema()
        logger.info("Analysis database initialized: %s", self._db_path)

    def _ensure_schema(self) -> None:
        """Create tables if they don't exist and apply migrations."""
        conn = self.connection
        conn.executescript(_SCHEMA_V1)

        current_version = self.get_schema_version()

        if current_version < 2:
            conn.executescript(_SCHEMA_V2)
            logger.info("Applied schema migration V2: audit_log table")

        if current_version < SCHEMA_VERSION:
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            conn.commit()
            logger.info(
                "Schema updated from version %d to %d", current_version, SCHEMA_VERSION
            )

    def get_schema_version(self) -> int:
        """Return the current schema version."""
        row = self.connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row[0] is not None else 0

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Analysis database closed")

    def __enter__(self) -> AnalysisDatabase:
        self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()
