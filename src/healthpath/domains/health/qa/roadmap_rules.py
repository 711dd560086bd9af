"""Roadmap rules: shape, monotonicity and ceilings of the weekly plan."""

from __future__ import annotations

import math

from healthpath.core.validation.registry import RuleBook
from healthpath.domains.health.domain_logic.analysis_models import (
    ROADMAP_WEEKS,
    SLEEP_CEILING_HOURS,
    STEP_CEILING,
    AnalysisResult,
    WeeklyTarget,
)
from healthpath.domains.health.qa.synthetic_profiles import SyntheticProfile

book = RuleBook("roadmap")

_METRICS = ("sleep_hours", "hydration_liters", "steps", "exercise_minutes")


def _weeks(result: AnalysisResult) -> tuple[WeeklyTarget, ...]:
    return result.transformation_roadmap.progressive_targets.weekly_targets


@book.rule(
    "roadmap_thirteen_weeks",
    "Roadmap covers 13 weeks in three phases",
    "Weekly snapshots numbered 1-13 in order, and exactly three phases",
    "critical",
)
def _thirteen_weeks(rule, profile: SyntheticProfile, result: AnalysisResult):
    numbers = [w.week for w in _weeks(result)]
    phases = len(result.transformation_roadmap.phases)
    passed = numbers == list(range(1, ROADMAP_WEEKS + 1)) and phases == 3
    return rule.outcome(
        passed, f"weeks 1-{ROADMAP_WEEKS}, 3 phases", f"weeks {numbers}, {phases} phases"
    )


@book.rule(
    "roadmap_monotone",
    "Weekly targets never move backwards",
    "Sleep, hydration, steps and exercise are non-decreasing week over week",
    "high",
)
def _monotone(rule, profile: SyntheticProfile, result: AnalysisResult):
    weeks = _weeks(result)
    regressions = [
        f"{metric} week {b.week}: {getattr(a, metric)} -> {getattr(b, metric)}"
        for a, b in zip(weeks, weeks[1:])
        for metric in _METRICS
        if getattr(b, metric) < getattr(a, metric)
    ]
    return rule.outcome(not regressions, "non-decreasing", regressions or "monotone")


@book.rule(
    "roadmap_ceilings",
    "Weekly targets respect ceilings and caps",
    "Sleep <= 9h and steps <= 15000 every week; steps never exceed the capped daily target",
    "critical",
)
def _ceilings(rule, profile: SyntheticProfile, result: AnalysisResult):
    step_target = result.personalized_targets.steps.target_daily
    step_limit = min(STEP_CEILING, step_target)
    over = []
    for week in _weeks(result):
        if week.sleep_hours > SLEEP_CEILING_HOURS:
            over.append(f"week {week.week} sleep {week.sleep_hours}")
        if week.steps > step_limit:
            over.append(f"week {week.week} steps {week.steps}")
    return rule.outcome(
        not over, f"sleep <= {SLEEP_CEILING_HOURS:g}h, steps <= {step_limit}", over or "within"
    )


@book.rule(
    "roadmap_final_week_target",
    "Final week reaches the targets",
    "Week 13 matches each target (or the current level when already above it)",
    "medium",
)
def _final_week(rule, profile: SyntheticProfile, result: AnalysisResult):
    weeks = _weeks(result)
    if not weeks:
        return rule.outcome(False, "13 weekly snapshots", "none")
    final = weeks[-1]
    t = result.personalized_targets
    expected = {
        "sleep_hours": (
            min(SLEEP_CEILING_HOURS, max(t.sleep.current_hours, t.sleep.target_min_hours)),
            0.1,
        ),
        "hydration_liters": (max(t.hydration.current_liters, t.hydration.target_liters), 0.1),
        "steps": (min(STEP_CEILING, math.floor(t.steps.target_daily / 100 + 0.5) * 100), 100),
        "exercise_minutes": (
            max(t.exercise.current_minutes_weekly, t.exercise.target_minutes_weekly),
            5,
        ),
    }
    misses = {
        metric: getattr(final, metric)
        for metric, (value, tolerance) in expected.items()
        if abs(getattr(final, metric) - value) > tolerance + 1e-9
    }
    return rule.outcome(
        not misses,
        {metric: value for metric, (value, _) in expected.items()},
        misses or "on target",
    )


RULES = tuple(book.rules)
