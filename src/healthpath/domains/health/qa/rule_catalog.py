"""Default rule catalog: every shipped validation rule, in one registry."""

from __future__ import annotations

import logging

from healthpath.core.validation.registry import RuleRegistry
from healthpath.domains.health.qa import (
    expected_rules,
    logic_rules,
    projection_rules,
    risk_rules,
    roadmap_rules,
    target_rules,
)

logger = logging.getLogger(__name__)

RULE_MODULES = (
    risk_rules,
    target_rules,
    projection_rules,
    logic_rules,
    roadmap_rules,
    expected_rules,
)


def build_default_registry() -> RuleRegistry:
    """A fresh registry holding the rules of every category."""
    registry = RuleRegistry()
    for module in RULE_MODULES:
        registry.register_all(module.RULES)
    logger.debug("Registered %d validation rules", len(registry))
    return registry
