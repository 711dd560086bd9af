"""Analysis repository: CRUD operations for the encrypted data bank.

The repository mediates between stored records (StoredAnalysis, validation
runs) and the SQLite database, using FieldEncryptor to encrypt/decrypt the
profile input and the full result payload.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any

from healthpath.core.storage.database import AnalysisDatabase
from healthpath.core.storage.encryption import FieldEncryptor
from healthpath.core.storage.models import StoredAnalysis, StoredValidationRun
from healthpath.core.validation.models import BatchValidationResult

logger = logging.getLogger(__name__)

_RISK_LEVELS = {"low", "moderate", "high", "critical"}


class RepositoryError(Exception):
    """Raised when repository operations fail."""


class AnalysisRepository:
    """CRUD repository for encrypted analyses and validation runs.

    Usage::

        db = AnalysisDatabase(":memory:")
        db.initialize()
        encryptor = FieldEncryptor(key="...")
        repo = AnalysisRepository(db, encryptor)

        repo.save_analysis(stored)
        repo.list_analyses(risk_level="high", limit=10)
    """

    def __init__(self, database: AnalysisDatabase, encryptor: FieldEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    def save_analysis(self, analysis: StoredAnalysis) -> str:
        """Persist an analysis with encrypted input and result payloads.

        Returns:
            The analysis ID.

        Raises:
            RepositoryError: If an analysis with the same ID already exists.
        """
        conn = self._db.connection
        try:
            conn.execute(
                """INSERT INTO analysis_reports (
                    id, analysis_id, display_name_hash, created_at,
                    overall_score, overall_grade, overall_risk_level,
                    diabetes_risk, cardiovascular_risk, metabolic_risk, mental_health_risk,
                    weight_direction, input_enc, result_enc
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    analysis.id or self._new_id(),
                    analysis.analysis_id,
                    analysis.display_name_hash or None,
                    analysis.created_at or self._now_iso(),
                    analysis.overall_score,
                    analysis.overall_grade,
                    analysis.overall_risk_level,
                    analysis.diabetes_risk,
                    analysis.cardiovascular_risk,
                    analysis.metabolic_risk,
                    analysis.mental_health_risk,
                    analysis.weight_direction,
                    self._enc.encrypt(analysis.profile_input or {}),
                    self._enc.encrypt(analysis.result or {}),
                ),
            )
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise RepositoryError(
                f"Analysis {analysis.analysis_id!r} is already stored"
            ) from exc
        conn.commit()
        logger.info("Saved analysis %s (risk=%s)", analysis.analysis_id, analysis.overall_risk_level)
        return analysis.analysis_id

    def get_analysis(self, analysis_id: str) -> StoredAnalysis | None:
        """Retrieve an analysis by ID, decrypting its payloads.

        Returns:
            The decrypted analysis, or None if not found.
        """
        row = self._db.connection.execute(
            "SELECT * FROM analysis_reports WHERE analysis_id = ?", (analysis_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_analysis(row, decrypt=True)

    def list_analyses(
        self,
        *,
        risk_level: str | None = None,
        since: str | None = None,
        limit: int = 20,
    ) -> list[StoredAnalysis]:
        """List analyses newest first, without decrypting payloads.

        Args:
            risk_level: Filter by overall risk level.
            since: ISO 8601 timestamp lower bound (inclusive).
            limit: Maximum results to return.
        """
        conditions: list[str] = []
        params: list[Any] = []

        if risk_level:
            if risk_level not in _RISK_LEVELS:
                raise RepositoryError(
                    f"Invalid risk level: {risk_level!r}. Valid: {sorted(_RISK_LEVELS)}"
                )
            conditions.append("overall_risk_level = ?")
            params.append(risk_level)
        if since:
            conditions.append("created_at >= ?")
            params.append(since)

        query = "SELECT * FROM analysis_reports"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [self._row_to_analysis(row, decrypt=False) for row in rows]

    def count_analyses(self) -> int:
        row = self._db.connection.execute("SELECT COUNT(*) FROM analysis_reports").fetchone()
        return row[0]

    def delete_analysis(self, analysis_id: str) -> bool:
        """Delete a single analysis.

        Returns:
            True if an analysis was found and deleted, False otherwise.
        """
        conn = self._db.connection
        cursor = conn.execute(
            "DELETE FROM analysis_reports WHERE analysis_id = ?", (analysis_id,)
        )
        conn.commit()
        if cursor.rowcount == 0:
            return False
        logger.info("Deleted analysis %s", analysis_id)
        return True

    def delete_all_analyses(self) -> int:
        """Delete every stored analysis. Returns the number removed."""
        conn = self._db.connection
        cursor = conn.execute("DELETE FROM analysis_reports")
        conn.commit()
        logger.warning("Deleted ALL analyses: %d removed", cursor.rowcount)
        return cursor.rowcount

    def rotate_encryption(self) -> int:
        """Re-encrypt every stored payload under the primary key.

        All rows are rewritten in one transaction; nothing is committed if any
        token cannot be decrypted by the configured keys.

        Returns:
            The number of analyses re-encrypted.

        Raises:
            EncryptionError: If a stored token is unreadable with every key.
        """
        conn = self._db.connection
        rows = conn.execute(
            "SELECT id, input_enc, result_enc FROM analysis_reports"
        ).fetchall()
        try:
            for row in rows:
                conn.execute(
                    "UPDATE analysis_reports SET input_enc = ?, result_enc = ? WHERE id = ?",
                    (self._enc.rotate(row["input_enc"]), self._enc.rotate(row["result_enc"]), row["id"]),
                )
        except Exception:
            conn.rollback()
            raise
        conn.commit()
        logger.info("Re-encrypted %d analyses under the primary key", len(rows))
        return len(rows)

    # ------------------------------------------------------------------
    # Validation runs
    # ------------------------------------------------------------------

    def save_validation_run(self, batch: BatchValidationResult) -> str:
        """Persist a batch validation summary and its per-rule failure counts."""
        conn = self._db.connection
        try:
            conn.execute(
                """INSERT INTO validation_runs (
                    run_id, run_type, total_profiles, passed_profiles, failed_profiles,
                    total_rules, passed_rules, failed_rules, pass_rate, critical_failures,
                    metrics_json, failed_rules_json, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    batch.run_id,
                    batch.run_type,
                    batch.total_profiles,
                    batch.passed_profiles,
                    batch.failed_profiles,
                    batch.total_rules,
                    batch.passed_rules,
                    batch.failed_rules,
                    batch.pass_rate,
                    batch.critical_failures,
                    json.dumps(batch.metrics, separators=(",", ":")),
                    json.dumps(batch.failed_rules_summary, separators=(",", ":")),
                    batch.timestamp or self._now_iso(),
                ),
            )
            for rule_id, count in batch.failed_rules_summary.items():
                conn.execute(
                    """INSERT INTO validation_rule_failures (id, run_id, rule_id, failure_count)
                       VALUES (?, ?, ?, ?)""",
                    (self._new_id(), batch.run_id, rule_id, count),
                )
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise RepositoryError(f"Validation run {batch.run_id!r} is already stored") from exc
        conn.commit()
        logger.info("Saved validation run %s (pass_rate=%.2f)", batch.run_id, batch.pass_rate)
        return batch.run_id

    def get_validation_run(self, run_id: str) -> StoredValidationRun | None:
        row = self._db.connection.execute(
            "SELECT * FROM validation_runs WHERE run_id = ?", (run_id,)
        ).fetchone()
        return self._row_to_run(row) if row is not None else None

    def get_latest_validation_run(self, run_type: str | None = None) -> StoredValidationRun | None:
        """Most recent validation run, optionally of one type."""
        query = "SELECT * FROM validation_runs"
        params: list[Any] = []
        if run_type:
            query += " WHERE run_type = ?"
            params.append(run_type)
        query += " ORDER BY created_at DESC LIMIT 1"
        row = self._db.connection.execute(query, params).fetchone()
        return self._row_to_run(row) if row is not None else None

    def list_validation_runs(self, *, limit: int = 20) -> list[StoredValidationRun]:
        rows = self._db.connection.execute(
            "SELECT * FROM validation_runs ORDER BY created_at DESC LIMIT ?", (limit,)
        ).fetchall()
        return [self._row_to_run(row) for row in rows]

    def top_failed_rules(self, *, limit: int = 10) -> list[tuple[str, int]]:
        """Rules with the most failures summed across all stored runs."""
        rows = self._db.connection.execute(
            """SELECT rule_id, SUM(failure_count) AS total
               FROM validation_rule_failures
               GROUP BY rule_id ORDER BY total DESC, rule_id ASC LIMIT ?""",
            (limit,),
        ).fetchall()
        return [(row[0], row[1]) for row in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _row_to_analysis(self, row: Any, *, decrypt: bool) -> StoredAnalysis:
        """Convert a database row to a StoredAnalysis, optionally decrypting."""
        return StoredAnalysis(
            id=row["id"],
            analysis_id=row["analysis_id"],
            display_name_hash=row["display_name_hash"] or "",
            created_at=row["created_at"],
            overall_score=row["overall_score"],
            overall_grade=row["overall_grade"],
            overall_risk_level=row["overall_risk_level"],
            diabetes_risk=row["diabetes_risk"],
            cardiovascular_risk=row["cardiovascular_risk"],
            metabolic_risk=row["metabolic_risk"],
            mental_health_risk=row["mental_health_risk"],
            weight_direction=row["weight_direction"],
            profile_input=self._enc.decrypt(row["input_enc"]) if decrypt else None,
            result=self._enc.decrypt(row["result_enc"]) if decrypt else None,
        )

    @staticmethod
    def _row_to_run(row: Any) -> StoredValidationRun:
        return StoredValidationRun(
            run_id=row["run_id"],
            run_type=row["run_type"],
            total_profiles=row["total_profiles"],
            passed_profiles=row["passed_profiles"],
            failed_profiles=row["failed_profiles"],
            total_rules=row["total_rules"],
            passed_rules=row["passed_rules"],
            failed_rules=row["failed_rules"],
            pass_rate=row["pass_rate"],
            critical_failures=row["critical_failures"],
            metrics=json.loads(row["metrics_json"]) if row["metrics_json"] else {},
            failed_rules_summary=(
                json.loads(row["failed_rules_json"]) if row["failed_rules_json"] else {}
            ),
            created_at=row["created_at"],
        )
