"""Tests for the domain models and their wire format."""
from __future__ import annotations

import copy
from datetime import date

import pytest
from pydantic import ValidationError

from app.models.schemas import (
    AIServiceConfig,
    TrainingPhase,
    TrainingPlanResponse,
    TrainingPreferences,
    WorkoutAnalysis,
    WorkoutType,
)


def test_preferences_parse_camel_case(preferences_payload):
    prefs = TrainingPreferences.model_validate(preferences_payload)

    assert prefs.start_date == date(2025, 3, 17)
    assert prefs.training_preferences.weekly_running_days == 5
    assert prefs.running_experience.fitness_level == "good"
    assert prefs.target_race is not None
    assert prefs.target_race.goal_time == "3:55:00"


def test_preferences_are_immutable(preferences):
    with pytest.raises(ValidationError):
        preferences.goal = "Run a 5K"


def test_preferences_reject_end_before_start(preferences_payload):
    payload = copy.deepcopy(preferences_payload)
    payload["endDate"] = "2025-03-01"

    with pytest.raises(ValidationError, match="end_date must not be before start_date"):
        TrainingPreferences.model_validate(payload)


def test_preferences_round_trip_to_camel_payload(preferences, preferences_payload):
    payload = preferences.to_payload()

    assert payload["goalDescription"] == preferences_payload["goalDescription"]
    assert payload["trainingPreferences"]["preferredLongRunDay"] == "Sunday"
    assert "goal_description" not in payload


class TestTrainingPlanResponse:
    def test_valid_plan(self, plan_payload):
        plan = TrainingPlanResponse.model_validate(plan_payload)

        assert [week.week for week in plan.weekly_plans] == [1, 2, 3]
        assert plan.weekly_plans[0].phase is TrainingPhase.BASE_BUILDING
        assert plan.weekly_plans[1].workouts[0].type is WorkoutType.INTERVAL_TRAINING

    def test_rejects_empty_plan(self):
        with pytest.raises(ValidationError, match="at least one week"):
            TrainingPlanResponse.model_validate({"weeklyPlans": []})

    def test_rejects_missing_weekly_plans(self):
        with pytest.raises(ValidationError):
            TrainingPlanResponse.model_validate({"plan": []})

    @pytest.mark.parametrize("weeks", [[2, 3], [1, 3], [1, 1], [2, 1]])
    def test_rejects_non_consecutive_weeks(self, plan_payload, weeks):
        payload = copy.deepcopy(plan_payload)
        payload["weeklyPlans"] = payload["weeklyPlans"][: len(weeks)]
        for entry, number in zip(payload["weeklyPlans"], weeks):
            entry["week"] = number

        with pytest.raises(ValidationError, match="numbered consecutively"):
            TrainingPlanResponse.model_validate(payload)

    def test_rejects_unknown_workout_type(self, plan_payload):
        payload = copy.deepcopy(plan_payload)
        payload["weeklyPlans"][0]["workouts"][0]["type"] = "Fartlek"

        with pytest.raises(ValidationError):
            TrainingPlanResponse.model_validate(payload)

    def test_rejects_unknown_phase(self, plan_payload):
        payload = copy.deepcopy(plan_payload)
        payload["weeklyPlans"][0]["phase"] = "Recovery Block"

        with pytest.raises(ValidationError):
            TrainingPlanResponse.model_validate(payload)


def test_workout_analysis_rating_bounds(analysis_payload):
    assert WorkoutAnalysis.model_validate(analysis_payload).rating == 4

    payload = dict(analysis_payload, rating=6)
    with pytest.raises(ValidationError):
        WorkoutAnalysis.model_validate(payload)


def test_workout_analysis_adjustments_are_optional(analysis_payload):
    payload = {k: v for k, v in analysis_payload.items() if k != "suggestedAdjustments"}

    assert WorkoutAnalysis.model_validate(payload).suggested_adjustments is None


def test_service_config_accepts_either_spelling():
    snake = AIServiceConfig(provider="openai", api_key="k", model_name="gpt-4o-mini", max_retries=2)
    camel = AIServiceConfig.model_validate(
        {"provider": "openai", "apiKey": "k", "modelName": "gpt-4o-mini", "maxRetries": 2}
    )

    assert snake == camel


def test_service_config_rejects_zero_retries():
    with pytest.raises(ValidationError):
        AIServiceConfig(provider="openai", api_key="k", max_retries=0)
