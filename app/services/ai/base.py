"""Shared retry, prompt and parsing machinery for every AI provider."""
from __future__ import annotations

import asyncio
import json
import logging
import math
import re
from collections.abc import Awaitable, Callable, Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Protocol, TypeVar, runtime_checkable

import yaml
from pydantic import BaseModel, ValidationError

from app.models.schemas import (
    AdjustmentType,
    AIServiceConfig,
    PlanAdjustments,
    TrainingPhase,
    TrainingPlanResponse,
    TrainingPreferences,
    WorkoutAnalysis,
    WorkoutData,
    WorkoutType,
)
from app.services.ai.errors import AIErrorCode, AIServiceError


logger = logging.getLogger(__name__)

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)

Sleep = Callable[[float], Awaitable[None]]

DEFAULT_MAX_RETRIES = 3
DEFAULT_PROMPT_CONFIG = Path(__file__).resolve().parents[2] / "prompts" / "coach_prompts.yaml"

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


@runtime_checkable
class AIProvider(Protocol):
    """Capability set every provider service exposes to consumers."""

    name: str

    async def generate_training_plan(self, preferences: TrainingPreferences) -> TrainingPlanResponse:
        ...

    async def analyze_workout(self, workout: WorkoutData) -> WorkoutAnalysis:
        ...

    async def generate_adjustments(
        self,
        feedback: str,
        current_plan: TrainingPlanResponse | Mapping[str, Any],
    ) -> PlanAdjustments:
        ...


class ProviderTransport(Protocol):
    """Backend-specific half of a provider: one request, raw text back."""

    name: str
    model: str
    json_instruction: str

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str,
        operation: str,
        response_format: Literal["json", "text"] = "json",
    ) -> str:
        ...


class RetryPolicy:
    """Retry an async operation with exponential backoff.

    Waits ``backoff_base ** attempt`` seconds between attempts (attempt is
    1-based), so the defaults sleep 2s, then 4s, then 8s...
    """

    def __init__(
        self,
        provider: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
        sleep: Sleep = asyncio.sleep,
        backoff_base: float = 2.0,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.provider = provider
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._sleep = sleep

    def backoff_seconds(self, attempt: int) -> float:
        return self.backoff_base**attempt

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str,
        max_retries: int | None = None,
    ) -> T:
        """Invoke ``operation`` until it succeeds or attempts run out.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt
            operation_name: Human readable name used in logs and the terminal error
            max_retries: Overrides the policy's attempt count for this call

        Returns:
            Whatever the first successful attempt returned

        Raises:
            AIServiceError: immediately for non-retryable AIServiceErrors, otherwise
                once every attempt has failed (``cause`` is the final error)
            ValueError: if ``max_retries`` is given and less than 1
        """

        if max_retries is not None and max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        attempts = max_retries or self.max_retries
        last_error: BaseException | None = None

        for attempt in range(1, attempts + 1):
            try:
                return await operation()
            except AIServiceError as err:
                if not err.is_retryable:
                    logger.warning(
                        "[%s] Non-retryable %s error during %s; not retrying",
                        self.provider,
                        err.code.value,
                        operation_name,
                    )
                    raise
                last_error = err
            except Exception as err:
                last_error = err

            logger.warning(
                "[%s] Attempt %d/%d failed for %s: %s",
                self.provider,
                attempt,
                attempts,
                operation_name,
                last_error,
            )
            if attempt < attempts:
                delay = self.backoff_seconds(attempt)
                logger.info("[%s] Waiting %.1fs before retry %d", self.provider, delay, attempt + 1)
                await self._sleep(delay)

        logger.error("[%s] Max retries (%d) reached for %s", self.provider, attempts, operation_name)
        code = last_error.code if isinstance(last_error, AIServiceError) else AIErrorCode.NETWORK
        raise AIServiceError(
            f"Failed to {operation_name} after {attempts} attempts",
            self.provider,
            operation_name,
            code,
            last_error,
        ) from last_error


def _choices(enum_cls: type) -> str:
    return "|".join(member.value for member in enum_cls)


def _plan_shape() -> dict[str, Any]:
    return {
        "weeklyPlans": [
            {
                "week": "number (1, 2, 3, ... consecutive)",
                "phase": _choices(TrainingPhase),
                "totalMileage": "number",
                "workouts": [
                    {
                        "day": "YYYY-MM-DD",
                        "type": _choices(WorkoutType),
                        "distance": "number (miles)",
                        "description": "string",
                    }
                ],
            }
        ],
        "reasoning": "string explaining how the plan fits the runner",
    }


RESPONSE_SHAPES: dict[str, dict[str, Any]] = {
    "training_plan": _plan_shape(),
    "workout_analysis": {
        "rating": "number from 1 to 5",
        "feedback": "string with detailed analysis",
        "recommendations": ["string"],
        "suggestedAdjustments": [
            {
                "type": _choices(AdjustmentType),
                "change": "string",
                "reason": "string",
            }
        ],
    },
    "adjustments": {
        "reasoning": "string explaining your analysis and recommendations",
        "suggestedPlan": _plan_shape(),
    },
}


@lru_cache(maxsize=8)
def _load_prompt_config(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


class PromptBuilder:
    """Render the coaching prompts from the YAML template file."""

    def __init__(self, config_path: Path | None = None, json_instruction: str = "") -> None:
        self.config_path = Path(config_path or DEFAULT_PROMPT_CONFIG)
        self.json_instruction = json_instruction
        self._config = _load_prompt_config(self.config_path)

    def system_prompt(self, kind: str) -> str:
        return self._config["system_prompts"][kind].strip()

    def training_plan(self, preferences: TrainingPreferences) -> str:
        prefs = preferences.training_preferences
        return self._render(
            "training_plan",
            goal=preferences.goal,
            goal_description=preferences.goal_description or "Not provided",
            start_date=preferences.start_date.isoformat(),
            end_date=preferences.end_date.isoformat(),
            week_count=self.week_count(preferences),
            experience_level=preferences.running_experience.level,
            fitness_level=preferences.running_experience.fitness_level,
            weekly_running_days=prefs.weekly_running_days,
            max_weekly_mileage=_format_number(prefs.max_weekly_mileage),
            weekly_workouts=prefs.weekly_workouts,
            preferred_long_run_day=prefs.preferred_long_run_day,
            coaching_style=prefs.coaching_style,
            target_race=self._target_race_line(preferences),
            preferences_json=_dump(preferences.to_payload()),
        )

    def workout_analysis(self, workout: WorkoutData) -> str:
        return self._render("workout_analysis", workout_json=_dump(workout.to_payload()))

    def adjustments(
        self,
        feedback: str,
        current_plan: TrainingPlanResponse | Mapping[str, Any],
    ) -> str:
        if isinstance(current_plan, BaseModel):
            plan_payload: Any = current_plan.model_dump(mode="json", by_alias=True, exclude_none=True)
        else:
            plan_payload = current_plan
        return self._render(
            "adjustments",
            feedback=feedback.strip(),
            current_plan_json=_dump(plan_payload),
        )

    @staticmethod
    def week_count(preferences: TrainingPreferences) -> int:
        days = (preferences.end_date - preferences.start_date).days + 1
        return max(1, math.ceil(days / 7))

    def _target_race_line(self, preferences: TrainingPreferences) -> str:
        race_templates = self._config["target_race"]
        race = preferences.target_race
        if race is None:
            return race_templates["without_race"]

        details = []
        if race.custom_distance is not None:
            details.append(
                f"custom distance {_format_number(race.custom_distance.value)} {race.custom_distance.unit}"
            )
        if race.previous_best:
            details.append(f"previous best {race.previous_best}")
        if race.goal_time:
            details.append(f"goal time {race.goal_time}")
        return race_templates["with_race"].format(
            distance=race.distance,
            date=race.date.isoformat(),
            details=f" ({', '.join(details)})" if details else "",
        )

    def _render(self, kind: str, **values: Any) -> str:
        template = self._config["templates"][kind]
        prompt = template.format(response_shape=_dump(RESPONSE_SHAPES[kind]), **values).strip()
        if self.json_instruction:
            prompt = f"{prompt}\n\n{self.json_instruction}"
        return prompt


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _format_number(value: float) -> str:
    return f"{value:g}"


def extract_json_block(text: str) -> str:
    """Strip markdown fences and surrounding prose from a model reply.

    Returns the outermost ``{...}`` span when one exists, otherwise the
    stripped text unchanged so the caller's JSON parse reports the failure.
    """

    cleaned = _FENCE_RE.sub("", text.strip()).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}") + 1
    if start >= 0 and end > start:
        return cleaned[start:end]
    return cleaned


def parse_json_payload(text: str | None, provider: str, operation: str) -> dict[str, Any]:
    """Decode a JSON object reply or raise an ``INVALID_RESPONSE`` error."""

    if text is None or not text.strip():
        raise AIServiceError(
            f"Empty response from {provider}",
            provider,
            operation,
            AIErrorCode.INVALID_RESPONSE,
        )
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as err:
        logger.error("[%s] JSON parse error during %s: %s | preview=%s", provider, operation, err, text[:500])
        raise AIServiceError(
            "Failed to parse AI response",
            provider,
            operation,
            AIErrorCode.INVALID_RESPONSE,
            err,
        ) from err

    if not isinstance(payload, dict):
        raise AIServiceError(
            f"Expected a JSON object from {provider}, got {type(payload).__name__}",
            provider,
            operation,
            AIErrorCode.INVALID_RESPONSE,
        )
    return payload


class AIService:
    """A provider service: the capability set composed over one transport.

    The transport supplies the backend call; this class owns prompting,
    retries and turning replies into validated domain objects. It keeps no
    per-call state, so concurrent calls on one instance are independent.
    """

    def __init__(
        self,
        config: AIServiceConfig,
        transport: ProviderTransport,
        *,
        prompts: PromptBuilder | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config
        self.name = transport.name
        self._transport = transport
        self.prompts = prompts or PromptBuilder(json_instruction=transport.json_instruction)
        self.retry = RetryPolicy(
            self.name,
            max_retries=config.max_retries or DEFAULT_MAX_RETRIES,
            sleep=sleep,
        )

    @property
    def model(self) -> str:
        return self._transport.model

    async def generate_training_plan(self, preferences: TrainingPreferences) -> TrainingPlanResponse:
        prompt = self.prompts.training_plan(preferences)
        system_prompt = self.prompts.system_prompt("training_plan")
        logger.info("[%s] Generating training plan | goal=%s", self.name, preferences.goal)
        plan = await self.retry.run(
            lambda: self._request(prompt, system_prompt, "generate_training_plan", TrainingPlanResponse),
            "generate training plan",
        )
        logger.info("[%s] Training plan ready | weeks=%d", self.name, len(plan.weekly_plans))
        return plan

    async def analyze_workout(self, workout: WorkoutData) -> WorkoutAnalysis:
        prompt = self.prompts.workout_analysis(workout)
        system_prompt = self.prompts.system_prompt("workout_analysis")
        logger.info("[%s] Analyzing %s workout from %s", self.name, workout.type.value, workout.date.isoformat())
        return await self.retry.run(
            lambda: self._request(prompt, system_prompt, "analyze_workout", WorkoutAnalysis),
            "analyze workout",
        )

    async def generate_adjustments(
        self,
        feedback: str,
        current_plan: TrainingPlanResponse | Mapping[str, Any],
    ) -> PlanAdjustments:
        prompt = self.prompts.adjustments(feedback, current_plan)
        system_prompt = self.prompts.system_prompt("adjustments")
        logger.info("[%s] Generating plan adjustments", self.name)
        return await self.retry.run(
            lambda: self._request(prompt, system_prompt, "generate_adjustments", PlanAdjustments),
            "generate adjustments",
        )

    async def _request(
        self,
        prompt: str,
        system_prompt: str,
        operation: str,
        response_model: type[ModelT],
    ) -> ModelT:
        """One full attempt: transport call, JSON parse, shape validation."""

        logger.debug("[%s] Making %s request (model=%s)", self.name, operation, self.model)
        text = await self._transport.complete(prompt, system_prompt=system_prompt, operation=operation)
        payload = parse_json_payload(text, self.name, operation)
        try:
            result = response_model.model_validate(payload)
        except ValidationError as err:
            logger.error(
                "[%s] %s response failed validation (%d error(s)): %s",
                self.name,
                operation,
                err.error_count(),
                err.errors(include_url=False)[:3],
            )
            raise AIServiceError(
                f"Invalid response from {self.name}: does not match {response_model.__name__}",
                self.name,
                operation,
                AIErrorCode.INVALID_RESPONSE,
                err,
            ) from err
        logger.debug("[%s] %s request successful", self.name, operation)
        return result

    def __repr__(self) -> str:
        return f"AIService(provider={self.name!r}, model={self.model!r})"
