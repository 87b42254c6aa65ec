"""API endpoints that expose the AI coach capabilities."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request

from app.config import Settings, get_settings
from app.models.schemas import (
    AdjustPlanRequest,
    GeneratedPlan,
    PlanAdjustments,
    TrainingPreferences,
    WorkoutAnalysis,
    WorkoutData,
)
from app.services.ai.base import AIService
from app.services.ai.errors import AIErrorCode, AIServiceError, ErrorCategory
from app.services.ai.factory import AIServiceFactory
from app.services.training_planner import TrainingPlanner


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai_coach"])


def get_ai_factory(request: Request) -> AIServiceFactory:
    """FastAPI dependency returning the factory owned by the application."""
    return request.app.state.ai_factory


def _resolve_service(
    factory: AIServiceFactory,
    settings: Settings,
    provider: str | None,
) -> AIService:
    return factory.get_service(settings.ai_service_config(provider))


def _status_code_for(err: AIServiceError) -> int:
    if err.category is ErrorCategory.CONFIGURATION:
        return 503
    if err.code is AIErrorCode.RATE_LIMIT:
        return 429
    if err.code is AIErrorCode.TIMEOUT:
        return 504
    return 502


def _to_http_exception(err: AIServiceError) -> HTTPException:
    return HTTPException(status_code=_status_code_for(err), detail=err.to_dict())


@router.post("/plans/generate", response_model=GeneratedPlan, status_code=201)
async def generate_plan(
    preferences: TrainingPreferences,
    factory: Annotated[AIServiceFactory, Depends(get_ai_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
    provider: str | None = None,
    fallback: bool = False,
):
    """
    Generate a training plan from runner preferences.

    Args:
        provider: Optional backend override (defaults to AI_PROVIDER)
        fallback: Return a rule-based plan when the AI call fails

    Returns:
        GeneratedPlan: Weekly plans with every workout marked incomplete
    """
    try:
        service = _resolve_service(factory, settings, provider)
        logger.info("Handling plan generation request | provider=%s goal=%s", service.name, preferences.goal)
        return await TrainingPlanner(service).generate_plan(preferences, fallback=fallback)
    except AIServiceError as err:
        logger.error("Plan generation failed: %r", err)
        raise _to_http_exception(err)
    except ValueError as err:
        raise HTTPException(status_code=400, detail=str(err))


@router.post("/workouts/analyze", response_model=WorkoutAnalysis)
async def analyze_workout(
    workout: WorkoutData,
    factory: Annotated[AIServiceFactory, Depends(get_ai_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
    provider: str | None = None,
):
    """Critique a single workout and suggest adjustments."""
    try:
        service = _resolve_service(factory, settings, provider)
        return await service.analyze_workout(workout)
    except AIServiceError as err:
        logger.error("Workout analysis failed: %r", err)
        raise _to_http_exception(err)


@router.post("/plans/adjust", response_model=PlanAdjustments)
async def adjust_plan(
    body: AdjustPlanRequest,
    factory: Annotated[AIServiceFactory, Depends(get_ai_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
    provider: str | None = None,
):
    """Revise an existing plan in response to free-text runner feedback."""
    try:
        service = _resolve_service(factory, settings, provider)
        return await service.generate_adjustments(body.feedback, body.current_plan)
    except AIServiceError as err:
        logger.error("Plan adjustment failed: %r", err)
        raise _to_http_exception(err)
