"""Analysis orchestrator.

Sequences the condition classifier, risk calculator, target calculator,
projection and roadmap, then wraps everything in an ``AnalysisResult`` and
attaches the rendered narrative.

Usage::

    profile = ProfileInput.from_dict(payload)
    result = generate_analysis(profile, "Sam")
    result.to_dict()
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from healthpath.domains.health.domain_logic.analysis_models import (
    FAILING_GRADE,
    GRADE_BANDS,
    AnalysisResult,
    MentalHealthFactors,
    UserProfile,
)
from healthpath.domains.health.domain_logic.condition_classifier import classify_conditions
from healthpath.domains.health.domain_logic.narrative_renderer import render
from healthpath.domains.health.domain_logic.profile_models import ProfileInput
from healthpath.domains.health.domain_logic.projection_calculator import (
    calculate_ninety_day_projection,
    health_score,
)
from healthpath.domains.health.domain_logic.risk_calculator import (
    analyze_compound_risk,
    bmi_category,
    calculate_bmi,
)
from healthpath.domains.health.domain_logic.roadmap_generator import (
    diet_signal_for,
    generate_roadmap,
)
from healthpath.domains.health.domain_logic.target_calculator import calculate_all_targets

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "there"


def overall_grade(score: float) -> str:
    """Letter grade for a 0-100 score."""
    for threshold, grade in GRADE_BANDS:
        if score >= threshold:
            return grade
    return FAILING_GRADE


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_analysis_id() -> str:
    return f"hp_{uuid.uuid4().hex}"


def generate_analysis(
    profile: ProfileInput | dict[str, Any],
    display_name: str | None = None,
    *,
    clock: Callable[[], datetime] | None = None,
    id_factory: Callable[[], str] | None = None,
) -> AnalysisResult:
    """Run the full pipeline for one profile.

    Args:
        profile: A ``ProfileInput`` or the nested dict accepted by
            ``ProfileInput.from_dict``.
        display_name: Name shown in the narrative; defaults to ``"there"``.
        clock: Returns the timestamp recorded in ``generated_at``.
        id_factory: Returns the ``analysis_id``.

    Returns:
        The complete, immutable analysis envelope.

    Raises:
        InvalidProfileError: If a dict profile fails validation.
    """
    if not isinstance(profile, ProfileInput):
        profile = ProfileInput.from_dict(profile)

    demo = profile.demographics
    metrics = profile.health_metrics

    conditions = classify_conditions(profile.condition_tags)
    risk = analyze_compound_risk(profile, conditions)
    targets = calculate_all_targets(profile, conditions)
    projection = calculate_ninety_day_projection(profile, targets)
    roadmap = generate_roadmap(
        demo.age,
        targets,
        diet_signal_for(metrics.nutrition),
        profile.lifestyle.urgency_level,
        conditions,
    )

    score = health_score(metrics.hydration, metrics.sleep, metrics.exercise, metrics.nutrition)
    bmi = calculate_bmi(demo.weight, demo.height)

    result = AnalysisResult(
        overall_score=score,
        overall_grade=overall_grade(score),
        user_profile=UserProfile(
            name=display_name or DEFAULT_DISPLAY_NAME,
            age=demo.age,
            weight=demo.weight,
            height=demo.height,
            gender=demo.gender,
            bmi=targets.bmi.current,
            bmi_category=bmi_category(bmi),
        ),
        condition_analysis=conditions,
        risk_analysis=risk,
        personalized_targets=targets,
        ninety_day_projection=projection,
        transformation_roadmap=roadmap,
        generated_at=(clock or _utc_now)().isoformat(),
        analysis_id=(id_factory or _new_analysis_id)(),
        mental_health_factors=MentalHealthFactors(
            stress_level=profile.lifestyle.stress_level,
            energy_level=profile.lifestyle.energy_level,
            mindfulness_practice=profile.lifestyle.mindfulness_practice,
            social_support=profile.lifestyle.social_support,
        ),
    )
    logger.debug("Generated analysis %s", result.analysis_id)
    return dataclasses.replace(result, narrative=render(result))
