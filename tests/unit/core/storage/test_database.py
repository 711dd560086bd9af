"""Tests for AnalysisDatabase: schema creation, versioning, lifecycle."""

from __future__ import annotations

import pytest

from healthpath.core.storage.database import SCHEMA_VERSION, AnalysisDatabase, DatabaseError


class TestInitialization:
    def test_in_memory_initialize(self):
        db = AnalysisDatabase(":memory:")
        db.initialize()
        assert db.connection is not None
        assert db.path == ":memory:"
        db.close()

    def test_double_initialize_is_idempotent(self):
        db = AnalysisDatabase(":memory:")
        db.initialize()
        conn1 = db.connection
        db.initialize()
        assert db.connection is conn1
        db.close()

    def test_connection_before_init_raises(self):
        db = AnalysisDatabase(":memory:")
        with pytest.raises(DatabaseError, match="not initialized"):
            _ = db.connection

    def test_context_manager(self):
        with AnalysisDatabase(":memory:") as db:
            assert db.connection is not None
        with pytest.raises(DatabaseError):
            _ = db.connection


class TestSchema:
    def test_schema_version_recorded(self):
        with AnalysisDatabase(":memory:") as db:
            assert db.get_schema_version() == SCHEMA_VERSION

    def test_tables_created(self):
        expected_tables = {
            "analysis_reports",
            "validation_runs",
            "validation_rule_failures",
            "schema_version",
            "audit_log",
        }
        with AnalysisDatabase(":memory:") as db:
            cursor = db.connection.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            tables = {row[0] for row in cursor.fetchall()}
            assert expected_tables <= tables

    def test_indexes_created(self):
        expected_indexes = {
            "idx_reports_created",
            "idx_reports_risk",
            "idx_runs_created",
            "idx_failures_rule",
            "idx_audit_timestamp",
            "idx_audit_action",
            "idx_audit_tool",
        }
        with AnalysisDatabase(":memory:") as db:
            cursor = db.connection.execute("SELECT name FROM sqlite_master WHERE type='index'")
            indexes = {row[0] for row in cursor.fetchall()}
            for idx in expected_indexes:
                assert idx in indexes, f"Missing index: {idx}"

    def test_foreign_keys_enabled(self):
        with AnalysisDatabase(":memory:") as db:
            assert db.connection.execute("PRAGMA foreign_keys").fetchone()[0] == 1


class TestFileDatabase:
    def test_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "analyses.db"
        db = AnalysisDatabase(str(db_path))
        db.initialize()
        assert db_path.exists()
        assert db.get_schema_version() == SCHEMA_VERSION
        db.close()

    def test_reopen_keeps_single_version_row(self, tmp_path):
        db_path = str(tmp_path / "analyses.db")
        with AnalysisDatabase(db_path):
            pass
        with AnalysisDatabase(db_path) as db:
            rows = db.connection.execute("SELECT COUNT(*) FROM schema_version").fetchone()
            assert rows[0] == 1
            assert db.get_schema_version() == SCHEMA_VERSION

    def test_unopenable_path_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(DatabaseError, match="Cannot open database"):
            AnalysisDatabase(str(blocker / "analyses.db")).initialize()


class TestClose:
    def test_double_close_is_safe(self):
        db = AnalysisDatabase(":memory:")
        db.initialize()
        db.close()
        db.close()
