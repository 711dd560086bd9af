"""Validation CLI: ``healthpath-validate`` and ``healthpath-report``.

``run`` performs a full validation pass and exits 0 when the pass rate meets
``validation_pass_threshold`` with no critical failure, else 1.
``report`` renders the newest JSON result as Markdown on stdout.
"""

from __future__ import annotations

import logging
import sys

from healthpath.core.config.settings import Settings, get_settings
from healthpath.core.storage.database import AnalysisDatabase, DatabaseError
from healthpath.core.storage.encryption import EncryptionError, FieldEncryptor
from healthpath.core.storage.report_files import (
    find_latest_validation_json,
    load_validation_json,
    render_markdown_report,
    write_validation_json,
)
from healthpath.core.storage.repository import AnalysisRepository
from healthpath.core.validation.models import BatchValidationResult
from healthpath.domains.health.qa.profile_generators import ProfileGenerator
from healthpath.domains.health.qa.scenario_loader import load_scenario_directory
from healthpath.domains.health.qa.synthetic_profiles import SyntheticProfile
from healthpath.domains.health.qa.validator import EngineValidator

logger = logging.getLogger(__name__)


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=getattr(logging, settings.hp_log_level.upper(), logging.INFO))


def collect_profiles(settings: Settings) -> list[SyntheticProfile]:
    """Generated families plus the reference scenarios."""
    generator = ProfileGenerator(seed=settings.validation_seed)
    profiles = generator.generate_all(common_count=settings.validation_common_profiles)
    profiles += load_scenario_directory(settings.validation_scenario_dir or None)
    return profiles


def _save_to_database(batch: BatchValidationResult, settings: Settings) -> None:
    if not settings.encryption_key:
        logger.warning("No ENCRYPTION_KEY configured; validation run not stored in SQLite")
        return
    try:
        encryptor = FieldEncryptor(settings.encryption_key)
        with AnalysisDatabase(settings.db_path) as database:
            AnalysisRepository(database, encryptor).save_validation_run(batch)
    except (EncryptionError, DatabaseError) as exc:
        logger.error("Failed to store validation run %s: %s", batch.run_id, exc)
        return
    logger.info("Validation run %s saved to %s", batch.run_id, settings.db_path)


def _log_summary(batch: BatchValidationResult, threshold: float) -> None:
    logger.info("Profiles: %d tested, %d passed, %d failed",
                batch.total_profiles, batch.passed_profiles, batch.failed_profiles)
    logger.info("Pass rate: %.2f%% (threshold %.1f%%)", batch.pass_rate, threshold)
    logger.info("Rules: %d evaluated, %d failed, %d critical failures",
                batch.total_rules, batch.failed_rules, batch.critical_failures)
    for name, value in batch.metrics.items():
        logger.info("  %s: %s", name, value)
    for rule_id, count in batch.top_failed_rules(10):
        logger.info("  failed %s x%d", rule_id, count)


def run_validation(settings: Settings | None = None) -> BatchValidationResult:
    """Generate, validate and persist one full run; returns the batch."""
    settings = settings or get_settings()
    profiles = collect_profiles(settings)
    validator = EngineValidator(workers=settings.validation_workers)
    batch = validator.validate_batch(profiles, "full")

    write_validation_json(batch, settings.results_dir)
    _save_to_database(batch, settings)
    return batch


def run() -> None:
    """Entry point for ``healthpath-validate``."""
    settings = get_settings()
    _configure_logging(settings)

    batch = run_validation(settings)
    threshold = settings.validation_pass_threshold
    _log_summary(batch, threshold)

    if batch.meets_threshold(threshold):
        logger.info("Validation PASSED")
        sys.exit(0)
    logger.error(
        "Validation FAILED: pass rate %.2f%%, %d critical failures",
        batch.pass_rate, batch.critical_failures,
    )
    sys.exit(1)


def report() -> None:
    """Entry point for ``healthpath-report``."""
    settings = get_settings()
    _configure_logging(settings)

    path = find_latest_validation_json(settings.results_dir)
    if path is None:
        logger.error("No validation results found in %s", settings.results_dir)
        sys.exit(1)
    data = load_validation_json(path)
    sys.stdout.write(render_markdown_report(data, threshold=settings.validation_pass_threshold))


if __name__ == "__main__":
    run()
