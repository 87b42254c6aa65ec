"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

os.environ["AI_PROVIDER"] = os.environ.get("AI_PROVIDER") or "openai"
os.environ["OPENAI_API_KEY"] = os.environ.get("OPENAI_API_KEY") or "test-openai-key"
os.environ["GOOGLE_API_KEY"] = os.environ.get("GOOGLE_API_KEY") or "test-google-key"
os.environ["ANTHROPIC_API_KEY"] = os.environ.get("ANTHROPIC_API_KEY") or "test-anthropic-key"

from app.logging_config import configure_logging

configure_logging()

from app.main import app
from app.models.schemas import AIServiceConfig, TrainingPreferences, WorkoutData
from app.services.ai.base import AIService
from app.services.ai.factory import AIServiceFactory

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _load_fixture(name: str) -> Dict[str, Any]:
    with (FIXTURES_DIR / name).open("r", encoding="utf-8") as fh:
        return json.load(fh)


class RecordingSleep:
    """Async stand-in for asyncio.sleep that records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ScriptedTransport:
    """Provider transport that replays canned replies (or raises canned errors).

    The last reply repeats once the script runs out.
    """

    model = "scripted-model"
    json_instruction = ""

    def __init__(self, replies: list[Any], name: str = "scripted") -> None:
        self.name = name
        self.replies = list(replies)
        self.calls: list[Dict[str, Any]] = []

    async def complete(self, prompt, *, system_prompt, operation, response_format="json"):
        self.calls.append(
            {"prompt": prompt, "system_prompt": system_prompt, "operation": operation}
        )
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def scripted_transport():
    """Return the ScriptedTransport class for building fake backends."""

    return ScriptedTransport


@pytest.fixture
def make_service(recording_sleep: RecordingSleep):
    """Build an AIService over a ScriptedTransport with instant backoff."""

    def _make(replies: list[Any], max_retries: int | None = None) -> tuple[AIService, ScriptedTransport]:
        transport = ScriptedTransport(replies)
        config = AIServiceConfig(provider="scripted", api_key="k", max_retries=max_retries)
        return AIService(config, transport, sleep=recording_sleep), transport

    return _make


@pytest.fixture
def test_client(recording_sleep: RecordingSleep) -> TestClient:
    """Provide a FastAPI test client with a fresh, fast-retrying AI factory."""

    app.state.ai_factory = AIServiceFactory(sleep=recording_sleep)
    return TestClient(app)


@pytest.fixture(scope="session")
def preferences_payload() -> Dict[str, Any]:
    """Return camelCase training preferences fixture data."""

    return _load_fixture("training_preferences.json")


@pytest.fixture
def preferences(preferences_payload: Dict[str, Any]) -> TrainingPreferences:
    return TrainingPreferences.model_validate(preferences_payload)


@pytest.fixture(scope="session")
def plan_payload() -> Dict[str, Any]:
    """Return a well-formed provider plan reply."""

    return _load_fixture("training_plan_response.json")


@pytest.fixture(scope="session")
def workout_payload() -> Dict[str, Any]:
    return _load_fixture("workout_data.json")


@pytest.fixture
def workout(workout_payload: Dict[str, Any]) -> WorkoutData:
    return WorkoutData.model_validate(workout_payload)


@pytest.fixture(scope="session")
def analysis_payload() -> Dict[str, Any]:
    return _load_fixture("workout_analysis_response.json")


@pytest.fixture(scope="session")
def adjustments_payload() -> Dict[str, Any]:
    return _load_fixture("plan_adjustments_response.json")
