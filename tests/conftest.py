"""Shared test fixtures for HealthPath tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("DB_PATH", str(tmp_path / "analyses.db"))
    monkeypatch.setenv("RESULTS_DIR", str(tmp_path / "qa-results"))
    monkeypatch.setenv("VALIDATION_SCENARIO_DIR", "")
    monkeypatch.setenv("VALIDATION_WORKERS", "1")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from healthpath.domains.health.domain_logic.profile_models import ProfileInput  # noqa: E402


def make_profile_dict(**overrides: Any) -> dict[str, Any]:
    """A valid nested profile dict; top-level keys override whole sections.

    Section keys may also be patched field by field with ``<section>__<field>``,
    e.g. ``demographics__weight=50``.
    """
    data: dict[str, Any] = {
        "demographics": {"age": 40, "weight": 70.0, "height": 175.0, "gender": "male"},
        "health_metrics": {"hydration": 6, "sleep": 6, "exercise": 6, "nutrition": 6},
        "lifestyle_factors": {},
        "medical_data": {"conditions": []},
    }
    for key, value in overrides.items():
        if "__" in key:
            section, field_name = key.split("__", 1)
            data[section] = {**data[section], field_name: value}
        else:
            data[key] = value
    return data


def make_profile(**overrides: Any) -> ProfileInput:
    """A validated ``ProfileInput`` built from ``make_profile_dict``."""
    return ProfileInput.from_dict(make_profile_dict(**overrides))


@pytest.fixture
def profile_factory():
    """Build ``ProfileInput`` objects with per-field overrides."""
    return make_profile


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def analysis_db():
    """Create an in-memory AnalysisDatabase for testing."""
    from healthpath.core.storage.database import AnalysisDatabase

    db = AnalysisDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def field_encryptor():
    """Create a FieldEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from healthpath.core.storage.encryption import FieldEncryptor

    return FieldEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def analysis_repository(analysis_db, field_encryptor):
    """Create an AnalysisRepository backed by in-memory SQLite."""
    from healthpath.core.storage.repository import AnalysisRepository

    return AnalysisRepository(analysis_db, field_encryptor)


@pytest.fixture
def audit_logger(analysis_db):
    """Create an AuditLogger backed by in-memory SQLite."""
    from healthpath.core.audit.logger import AuditLogger

    return AuditLogger(analysis_db)
