"""Batch aggregation of per-profile rule outcomes."""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timezone

from healthpath.core.validation.models import (
    RULE_CATEGORIES,
    BatchValidationResult,
    ProfileValidationResult,
)

logger = logging.getLogger(__name__)


def new_run_id() -> str:
    """Run ids sort chronologically: ``val_<UTC timestamp>_<random suffix>``."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    return f"val_{stamp}_{uuid.uuid4().hex[:6]}"


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def category_accuracy(results: Sequence[ProfileValidationResult], category: str) -> float:
    """Mean, over profiles that ran at least one rule of ``category``,
    of the share of those rules that passed (as a percentage)."""
    shares: list[float] = []
    for result in results:
        outcomes = [o for o in result.outcomes if o.category == category]
        if outcomes:
            shares.append(sum(1 for o in outcomes if o.passed) / len(outcomes))
    if not shares:
        return 0.0
    return round(sum(shares) / len(shares) * 100, 2)


def aggregate(
    results: Sequence[ProfileValidationResult],
    run_type: str = "full",
    *,
    run_id: str | None = None,
    timestamp: str | None = None,
) -> BatchValidationResult:
    """Fold per-profile results into one ``BatchValidationResult``.

    ``pass_rate`` is the share of profiles with no failed rule. The metrics
    carry per-category accuracy plus separate pass rates for independent and
    self-referential rules.
    """
    total = len(results)
    passed_profiles = sum(1 for r in results if r.passed)

    outcomes = [o for r in results for o in r.outcomes]
    passed_rules = sum(1 for o in outcomes if o.passed)
    failures = Counter(o.rule_id for o in outcomes if not o.passed)

    metrics: dict[str, float] = {}
    for category in RULE_CATEGORIES:
        if any(o.category == category for o in outcomes):
            metrics[f"{category}_accuracy"] = category_accuracy(results, category)

    independent = [o for o in outcomes if o.independent]
    self_referential = [o for o in outcomes if not o.independent]
    metrics["independent_rule_pass_rate"] = _percent(
        sum(1 for o in independent if o.passed), len(independent)
    )
    metrics["self_referential_rule_pass_rate"] = _percent(
        sum(1 for o in self_referential if o.passed), len(self_referential)
    )
    metrics["engine_errors"] = float(sum(1 for r in results if r.error))

    batch = BatchValidationResult(
        run_id=run_id or new_run_id(),
        run_type=run_type,
        total_profiles=total,
        passed_profiles=passed_profiles,
        failed_profiles=total - passed_profiles,
        pass_rate=_percent(passed_profiles, total),
        total_rules=len(outcomes),
        passed_rules=passed_rules,
        failed_rules=len(outcomes) - passed_rules,
        critical_failures=sum(r.critical_failures for r in results),
        failed_rules_summary=dict(failures.most_common()),
        metrics=metrics,
        profile_results=tuple(results),
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
    )
    logger.info(
        "Validation run %s: %d/%d profiles passed (%.2f%%), %d critical failures",
        batch.run_id, batch.passed_profiles, batch.total_profiles,
        batch.pass_rate, batch.critical_failures,
    )
    return batch
