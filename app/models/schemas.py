"""Pydantic models describing training preferences, plans and AI payloads."""
from datetime import date
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that speaks camelCase JSON but exposes snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready, camelCase representation."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FrozenCamelModel(CamelModel):
    """Immutable variant used for caller-owned inputs."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class TrainingPhase(str, Enum):
    BASE_BUILDING = "Base Building"
    PEAK_TRAINING = "Peak Training"
    TAPER = "Taper"


class WorkoutType(str, Enum):
    EASY_RUN = "Easy Run"
    LONG_RUN = "Long Run"
    TEMPO_RUN = "Tempo Run"
    INTERVAL_TRAINING = "Interval Training"
    RECOVERY_RUN = "Recovery Run"
    REST_DAY = "Rest Day"


class AdjustmentType(str, Enum):
    PACE = "pace"
    DISTANCE = "distance"
    INTENSITY = "intensity"


# Training preferences (input to plan generation)
class RunningExperience(FrozenCamelModel):
    level: str
    fitness_level: str


class TrainingPreferenceSettings(FrozenCamelModel):
    """Weekly structure the runner asked for."""

    weekly_running_days: int = Field(ge=1, le=7)
    max_weekly_mileage: float = Field(ge=0)
    weekly_workouts: int = Field(ge=0, description="Quality sessions per week")
    preferred_long_run_day: str
    coaching_style: str


class CustomDistance(FrozenCamelModel):
    value: float = Field(gt=0)
    unit: str


class TargetRace(FrozenCamelModel):
    distance: str
    date: date
    custom_distance: CustomDistance | None = None
    previous_best: str | None = None
    goal_time: str | None = None


class TrainingPreferences(FrozenCamelModel):
    """Everything the coach needs to know to draft a plan."""

    goal: str
    goal_description: str = ""
    start_date: date
    end_date: date
    running_experience: RunningExperience
    training_preferences: TrainingPreferenceSettings
    target_race: TargetRace | None = None

    @model_validator(mode="after")
    def check_date_range(self) -> "TrainingPreferences":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


# Generated plans
class Workout(CamelModel):
    day: date
    type: WorkoutType
    distance: float = Field(ge=0)
    description: str


class WeeklyPlan(CamelModel):
    week: int = Field(ge=1)
    phase: TrainingPhase
    total_mileage: float = Field(ge=0)
    workouts: list[Workout]


class TrainingPlanResponse(CamelModel):
    """Structured plan returned by a provider."""

    weekly_plans: list[WeeklyPlan]
    reasoning: str | None = None

    @model_validator(mode="after")
    def check_week_sequence(self) -> "TrainingPlanResponse":
        if not self.weekly_plans:
            raise ValueError("weeklyPlans must contain at least one week")
        for expected, plan in enumerate(self.weekly_plans, start=1):
            if plan.week != expected:
                raise ValueError(
                    f"weeklyPlans must be numbered consecutively from 1 (expected week {expected}, got {plan.week})"
                )
        return self


# Workout analysis
class HeartRateSummary(FrozenCamelModel):
    average: int = Field(gt=0)
    max: int = Field(gt=0)


class WorkoutData(FrozenCamelModel):
    """A single completed (or planned) workout to critique."""

    date: date
    type: WorkoutType
    distance: float = Field(ge=0)
    duration: float = Field(ge=0, description="Minutes")
    average_pace: float = Field(ge=0, description="Minutes per mile")
    perceived_effort: int = Field(ge=1, le=10)
    heart_rate: HeartRateSummary | None = None
    notes: str | None = None


class SuggestedAdjustment(CamelModel):
    type: AdjustmentType
    change: str
    reason: str


class WorkoutAnalysis(CamelModel):
    rating: float = Field(ge=1, le=5)
    feedback: str
    recommendations: list[str]
    suggested_adjustments: list[SuggestedAdjustment] | None = None


class PlanAdjustments(CamelModel):
    reasoning: str
    suggested_plan: TrainingPlanResponse


class AdjustPlanRequest(CamelModel):
    """Body of the plan adjustment endpoint."""

    feedback: str = Field(min_length=1)
    current_plan: dict[str, Any]


# Service configuration
class AIServiceConfig(FrozenCamelModel):
    """Settings for one provider instance; immutable once the service exists."""

    provider: str
    api_key: str = ""
    model_name: str | None = None
    max_retries: int | None = Field(default=None, ge=1)
    timeout: float | None = Field(default=None, gt=0, description="Seconds")


# Planner output
class PlannedWorkout(Workout):
    completed: bool = False


class PlannedWeek(WeeklyPlan):
    workouts: list[PlannedWorkout]


class GeneratedPlan(CamelModel):
    """A plan ready to hand to the caller, annotated with the inputs used."""

    goal: str
    start_date: date
    end_date: date
    active: bool = True
    source: Literal["ai", "fallback"] = "ai"
    running_experience: RunningExperience
    training_preferences: TrainingPreferenceSettings
    target_race: TargetRace | None = None
    weekly_plans: list[PlannedWeek]
    reasoning: str | None = None
