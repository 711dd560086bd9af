"""Result types and domain constants for the analysis engine.

Every result is a frozen dataclass built once per analysis call. Nothing here
is mutated after construction; the orchestrator swaps in the rendered
narrative with ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

Severity = Literal["none", "low", "moderate", "high", "critical"]
RiskLevel = Literal["low", "moderate", "high", "critical"]
WeightDirection = Literal["gain", "loss", "maintain"]
AdherenceQuality = Literal["low", "moderate", "high"]
DietSignal = Literal["fast_food_heavy", "mixed", "balanced"]


# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

BMI_UNDERWEIGHT = 18.5
BMI_OVERWEIGHT = 25.0
BMI_OBESE = 30.0
BMI_SEVERELY_OBESE = 35.0
HEALTHY_BMI_MAX = 24.9
TARGET_BMI = 22.0

# Risk ceilings
DIABETES_RISK_CAP = 100.0
DIABETES_MODIFIER_CAP = 90.0      # before the diagnosis override
CARDIOVASCULAR_RISK_CAP = 95.0
CARDIOVASCULAR_MODIFIER_CAP = 90.0
METABOLIC_RISK_CAP = 90.0
MENTAL_HEALTH_RISK_CAP = 90.0

# Hard ceilings shared by targets, projection and roadmap
STEP_FLOOR = 3000
STEP_CEILING = 15000
SLEEP_CEILING_HOURS = 9.0
HEART_STEP_CAP = 6000
PREGNANCY_STEP_CAP = 7000
UNDERWEIGHT_STEP_CAP = 6000

PROJECTION_WEEKS = 12             # active weeks driving weight change
ROADMAP_WEEKS = 13                # week 13 consolidates
MAX_LOSS_FRACTION = 0.10

# Letter grades, checked top-down
GRADE_BANDS: tuple[tuple[int, str], ...] = (
    (97, "A+"),
    (93, "A"),
    (90, "A-"),
    (87, "B+"),
    (83, "B"),
    (80, "B-"),
    (77, "C+"),
    (73, "C"),
    (70, "C-"),
    (67, "D+"),
    (63, "D"),
    (60, "D-"),
)
FAILING_GRADE = "F"


# ---------------------------------------------------------------------------
# Condition analysis
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConditionAnalysis:
    """Severity and flags derived from the active medical-condition tags."""

    severity: Severity
    description: str
    has_diabetes: bool = False
    has_type1_diabetes: bool = False
    heart_condition: bool = False
    high_blood_pressure: bool = False
    kidney_issues: bool = False
    liver_issues: bool = False
    thyroid_issues: bool = False
    pregnant: bool = False
    digestive_issues: bool = False
    serious_count: int = 0
    compound_risk: bool = False
    critical_conditions: tuple[str, ...] = ()
    active_conditions: tuple[str, ...] = ()

    @property
    def count(self) -> int:
        return len(self.active_conditions)

    @property
    def has_critical(self) -> bool:
        return bool(self.critical_conditions)

    @property
    def has_multiple(self) -> bool:
        return self.count > 1


# ---------------------------------------------------------------------------
# Risk analysis
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RiskFactor:
    """A named compound risk surfaced to the user."""

    name: str
    severity: RiskLevel
    risk_percentage: int
    description: str
    compound_factors: tuple[str, ...] = ()


@dataclass(frozen=True)
class CompoundRiskAnalysis:
    """Four compound risk percentages plus their summary."""

    diabetes_risk: int
    cardiovascular_risk: int
    metabolic_syndrome_risk: int
    mental_health_risk: int
    overall_risk_level: RiskLevel
    average_risk: float
    checkup_modifier: float
    primary_risk_factors: tuple[RiskFactor, ...] = ()
    risk_category: str = ""
    # {dimension: {modifier name: delta}} for explainability
    modifiers: dict[str, dict[str, float]] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SleepTarget:
    current_hours: float
    target_min_hours: float
    target_max_hours: float
    deficit_hours: float


@dataclass(frozen=True)
class HydrationTarget:
    current_liters: float
    target_liters: float
    deficit_percentage: int
    glasses_needed: int


@dataclass(frozen=True)
class StepsTarget:
    current_daily: int
    target_daily: int
    deficit_steps: int
    capped_by: tuple[str, ...] = ()   # safety caps that lowered the target


@dataclass(frozen=True)
class ExerciseTarget:
    current_minutes_weekly: int
    target_minutes_weekly: int
    deficit_minutes: int


@dataclass(frozen=True)
class WeightTarget:
    """Weight direction: exactly one of deficit_kg > 0, excess_kg > 0, is_healthy."""

    current_kg: float
    target_min_kg: float
    target_max_kg: float
    direction: WeightDirection
    excess_kg: float = 0.0
    deficit_kg: float = 0.0
    is_healthy: bool = False


@dataclass(frozen=True)
class BmiTarget:
    current: float
    target: float
    category: str


@dataclass(frozen=True)
class PersonalizedTargets:
    sleep: SleepTarget
    hydration: HydrationTarget
    steps: StepsTarget
    exercise: ExerciseTarget
    weight: WeightTarget
    bmi: BmiTarget


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProjectedMetric:
    """A current/projected pair; ``change`` is signed (projected - current)."""

    current: float
    projected: float
    change: float


@dataclass(frozen=True)
class Milestone:
    week: int
    description: str


@dataclass(frozen=True)
class NinetyDayProjection:
    weight: ProjectedMetric
    bmi: ProjectedMetric
    sleep: ProjectedMetric
    energy_level: ProjectedMetric
    health_score: ProjectedMetric
    adherence_rate: float
    adherence_quality: AdherenceQuality
    weeks: int = PROJECTION_WEEKS
    daily_life_improvements: tuple[str, ...] = ()
    milestones: tuple[Milestone, ...] = ()


# ---------------------------------------------------------------------------
# Roadmap
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PhaseAction:
    action: str
    how: str
    why: str
    tracking: str


@dataclass(frozen=True)
class WeeklyMilestone:
    week: int
    focus: str
    expected_changes: tuple[str, ...] = ()


@dataclass(frozen=True)
class TransformationPhase:
    phase: int
    name: str
    weeks: str
    focus: tuple[str, ...]
    actions: tuple[PhaseAction, ...]
    weekly_milestones: tuple[WeeklyMilestone, ...]
    expected_results: tuple[str, ...]


@dataclass(frozen=True)
class WeeklyTarget:
    """One week's snapshot of the progressive targets."""

    week: int
    sleep_hours: float
    hydration_liters: float
    steps: int
    exercise_minutes: int


@dataclass(frozen=True)
class ProgressiveTargets:
    weekly_targets: tuple[WeeklyTarget, ...]
    foundation_ramp_weeks: int
    movement_ramp_weeks: int
    diet_signal: DietSignal
    urgency_level: str


@dataclass(frozen=True)
class TransformationRoadmap:
    phases: tuple[TransformationPhase, ...]
    progressive_targets: ProgressiveTargets
    overall_timeline: str
    success_factors: tuple[str, ...] = ()
    safety_notes: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Narrative
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LifestyleNarrative:
    summary: str
    consequences: str


@dataclass(frozen=True)
class MentalHealthNarrative:
    risk_band: str
    headline: str
    stress_text: str
    weakest_area: str
    guidance: tuple[str, ...] = ()


@dataclass(frozen=True)
class NarrativeSections:
    current_reality: str
    lifestyle_breakdown: dict[str, LifestyleNarrative]
    hard_truth: str
    priority_actions: tuple[str, ...]
    mental_health: MentalHealthNarrative


# ---------------------------------------------------------------------------
# Result envelope
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MentalHealthFactors:
    """The mental-health answers the narrative reads. Defaults are the neutral answers."""

    stress_level: str = "moderate"
    energy_level: str = "medium"
    mindfulness_practice: str = "occasionally"
    social_support: str = "mixed"


@dataclass(frozen=True)
class UserProfile:
    name: str
    age: float
    weight: float
    height: float
    gender: str
    bmi: float
    bmi_category: str


@dataclass(frozen=True)
class AnalysisResult:
    """The envelope returned by ``generate_analysis``."""

    overall_score: int
    overall_grade: str
    user_profile: UserProfile
    condition_analysis: ConditionAnalysis
    risk_analysis: CompoundRiskAnalysis
    personalized_targets: PersonalizedTargets
    ninety_day_projection: NinetyDayProjection
    transformation_roadmap: TransformationRoadmap
    generated_at: str
    analysis_id: str
    mental_health_factors: MentalHealthFactors = field(default_factory=MentalHealthFactors)
    narrative: NarrativeSections | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable nested dict of the whole envelope."""
        data = asdict(self)
        condition = data["condition_analysis"]
        condition["count"] = self.condition_analysis.count
        condition["has_critical"] = self.condition_analysis.has_critical
        condition["has_multiple"] = self.condition_analysis.has_multiple
        return data

    def numeric_fingerprint(self) -> dict[str, Any]:
        """``to_dict`` without narrative, timestamp and id."""
        data = self.to_dict()
        for key in ("narrative", "generated_at", "analysis_id"):
            data.pop(key, None)
        data["user_profile"].pop("name", None)
        return data
