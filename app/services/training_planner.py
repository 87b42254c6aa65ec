"""Training plan generation on top of the AI provider layer."""
from __future__ import annotations

import logging
from datetime import timedelta

from app.models.schemas import (
    GeneratedPlan,
    PlannedWeek,
    PlannedWorkout,
    TrainingPhase,
    TrainingPlanResponse,
    TrainingPreferences,
    WeeklyPlan,
    Workout,
    WorkoutType,
)
from app.services.ai.base import AIProvider
from app.services.ai.errors import AIServiceError, ErrorCategory


logger = logging.getLogger(__name__)

BASIC_PLAN_WEEKS = 12

# (phase, mileage multiplier) for weeks 1-4, 5-8 and 9-12 of the basic plan.
_PHASES = (
    (TrainingPhase.BASE_BUILDING, 1.0),
    (TrainingPhase.PEAK_TRAINING, 1.1),
    (TrainingPhase.TAPER, 0.8),
)

# Weekday (Mon=0) -> (workout type, share of weekly mileage, description)
_WEEK_TEMPLATE: dict[int, tuple[WorkoutType, float, str]] = {
    0: (WorkoutType.EASY_RUN, 0.15, "Easy-paced run to build aerobic base. Keep heart rate in Zone 2."),
    1: (
        WorkoutType.INTERVAL_TRAINING,
        0.15,
        "8-10 x 400m intervals at 5K race pace with 200m easy jog recovery.",
    ),
    2: (WorkoutType.EASY_RUN, 0.15, "Easy-paced run to build aerobic base. Keep heart rate in Zone 2."),
    3: (WorkoutType.TEMPO_RUN, 0.20, "20-30 minutes at half marathon pace, with warm-up and cool-down."),
    4: (WorkoutType.EASY_RUN, 0.15, "Easy-paced run to build aerobic base. Keep heart rate in Zone 2."),
    5: (WorkoutType.LONG_RUN, 0.30, "Long run at conversational pace. Focus on time on feet."),
    6: (WorkoutType.REST_DAY, 0.0, "Rest and recovery day. Light stretching or cross-training optional."),
}


def build_basic_plan(preferences: TrainingPreferences) -> TrainingPlanResponse:
    """
    Build a rule-based 12-week plan without calling any AI provider.

    Weeks 1-4 build base at the runner's maximum weekly mileage, weeks 5-8
    peak at 110% and weeks 9-12 taper at 80%. Each week follows a fixed
    Monday-to-Sunday pattern of easy, interval, tempo, long and rest days.

    Args:
        preferences: Runner preferences; only the start date and maximum
            weekly mileage are used

    Returns:
        TrainingPlanResponse with twelve consecutive weeks
    """
    weekly_mileage = preferences.training_preferences.max_weekly_mileage
    weekly_plans = []

    for week_index in range(BASIC_PLAN_WEEKS):
        phase, multiplier = _PHASES[week_index // 4]
        week_start = preferences.start_date + timedelta(days=week_index * 7)
        workouts = []
        for offset in range(7):
            day = week_start + timedelta(days=offset)
            workout_type, share, description = _WEEK_TEMPLATE[day.weekday()]
            workouts.append(
                Workout(
                    day=day,
                    type=workout_type,
                    distance=round(weekly_mileage * share * multiplier),
                    description=description,
                )
            )
        weekly_plans.append(
            WeeklyPlan(
                week=week_index + 1,
                phase=phase,
                total_mileage=round(weekly_mileage * multiplier),
                workouts=workouts,
            )
        )

    return TrainingPlanResponse(
        weekly_plans=weekly_plans,
        reasoning="Rule-based fallback plan generated without AI assistance.",
    )


class TrainingPlanner:
    """Turn runner preferences into a plan the application can store and display."""

    def __init__(self, provider: AIProvider) -> None:
        self.provider = provider

    async def generate_plan(
        self,
        preferences: TrainingPreferences,
        fallback: bool = False,
    ) -> GeneratedPlan:
        """Generate a plan with the configured provider.

        With ``fallback`` set, transport and response failures produce the
        rule-based plan instead of raising. Configuration errors always raise.
        """

        if not preferences.goal.strip():
            logger.error("Training plan generation failed: missing goal")
            raise ValueError("Training goal is required")

        source = "ai"
        try:
            response = await self.provider.generate_training_plan(preferences)
        except AIServiceError as err:
            if not fallback or err.category is ErrorCategory.CONFIGURATION:
                raise
            logger.warning(
                "AI plan generation failed (%s, %s); using rule-based fallback plan",
                err.provider,
                err.code.value,
            )
            response = build_basic_plan(preferences)
            source = "fallback"

        plan = self._to_generated_plan(preferences, response, source)
        logger.info(
            "Generated %s plan | goal=%s weeks=%d",
            source,
            preferences.goal,
            len(plan.weekly_plans),
        )
        return plan

    @staticmethod
    def _to_generated_plan(
        preferences: TrainingPreferences,
        response: TrainingPlanResponse,
        source: str,
    ) -> GeneratedPlan:
        weekly_plans = [
            PlannedWeek(
                week=week.week,
                phase=week.phase,
                total_mileage=week.total_mileage,
                workouts=[
                    PlannedWorkout(**workout.model_dump(), completed=False)
                    for workout in week.workouts
                ],
            )
            for week in response.weekly_plans
        ]
        return GeneratedPlan(
            goal=preferences.goal,
            start_date=preferences.start_date,
            end_date=preferences.end_date,
            source=source,
            running_experience=preferences.running_experience,
            training_preferences=preferences.training_preferences,
            target_race=preferences.target_race,
            weekly_plans=weekly_plans,
            reasoning=response.reasoning,
        )
