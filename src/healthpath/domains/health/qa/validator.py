"""Engine validator: run profiles through the engine and every rule.

Usage::

    validator = EngineValidator(workers=4)
    batch = validator.validate_batch(ProfileGenerator().generate_all(), "full")
    batch.pass_rate, batch.critical_failures
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from healthpath.core.validation.aggregator import aggregate
from healthpath.core.validation.models import (
    BatchValidationResult,
    ProfileValidationResult,
    RuleOutcome,
)
from healthpath.core.validation.registry import RuleRegistry
from healthpath.domains.health.domain_logic.analysis_engine import generate_analysis
from healthpath.domains.health.qa.rule_catalog import build_default_registry
from healthpath.domains.health.qa.synthetic_profiles import SyntheticProfile

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EngineValidator:
    """Validates engine output against a rule registry.

    Each profile is analyzed once, then every registered rule is evaluated
    against the result. An exception from the engine is recorded as the
    profile's ``error`` (counted as a critical failure) rather than aborting
    the batch.
    """

    def __init__(
        self,
        registry: RuleRegistry | None = None,
        *,
        workers: int = 1,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._registry = registry or build_default_registry()
        self._workers = max(1, workers)
        self._clock = clock or _utc_now

    @property
    def registry(self) -> RuleRegistry:
        return self._registry

    def validate_profile(self, synthetic: SyntheticProfile) -> ProfileValidationResult:
        """Analyze one profile and evaluate every applicable rule."""
        timestamp = self._clock().isoformat()
        try:
            result = generate_analysis(
                synthetic.profile,
                clock=self._clock,
                id_factory=lambda: f"val_{synthetic.id}",
            )
        except Exception as exc:
            logger.exception("Engine failed on profile %s", synthetic.id)
            return ProfileValidationResult(
                profile_id=synthetic.id,
                profile_name=synthetic.name,
                profile_category=synthetic.category,
                error=f"{type(exc).__name__}: {exc}",
                timestamp=timestamp,
            )

        outcomes: list[RuleOutcome] = []
        for rule in self._registry.all():
            outcome = rule.check(synthetic, result)
            if outcome is None:
                continue
            if not outcome.passed and outcome.severity == "critical":
                logger.error(
                    "Critical rule %s failed for profile %s", rule.id, synthetic.id
                )
            outcomes.append(outcome)

        return ProfileValidationResult(
            profile_id=synthetic.id,
            profile_name=synthetic.name,
            profile_category=synthetic.category,
            outcomes=tuple(outcomes),
            timestamp=timestamp,
        )

    def validate_batch(
        self, profiles: Sequence[SyntheticProfile], run_type: str = "full"
    ) -> BatchValidationResult:
        """Validate every profile and aggregate the outcomes.

        Results keep the input order regardless of the worker count.
        """
        logger.info(
            "Validating %d profiles against %d rules (%d workers)",
            len(profiles), len(self._registry), self._workers,
        )
        if self._workers > 1:
            with ThreadPoolExecutor(max_workers=self._workers) as pool:
                results = list(pool.map(self.validate_profile, profiles))
        else:
            results = [self.validate_profile(p) for p in profiles]
        return aggregate(results, run_type, timestamp=self._clock().isoformat())
