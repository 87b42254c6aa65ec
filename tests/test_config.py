"""Tests for environment-driven settings."""
import pytest
from pydantic import ValidationError

from app.config import Settings


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    monkeypatch.setenv("AI_PROVIDER", " Google ")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
    monkeypatch.setenv("GOOGLE_API_KEY", "g-key")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
    monkeypatch.setenv("AI_MAX_RETRIES", "5")
    monkeypatch.setenv("AI_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("AI_MODEL_NAME", "gemini-2.5-flash")
    return Settings(_env_file=None)


def test_provider_is_normalized(settings):
    assert settings.ai_provider == "google"


def test_service_config_uses_default_provider(settings):
    config = settings.ai_service_config()

    assert config.provider == "google"
    assert config.api_key == "g-key"
    assert config.max_retries == 5
    assert config.timeout == 12.5
    assert config.model_name == "gemini-2.5-flash"


@pytest.mark.parametrize(
    "provider, key",
    [("openai", "sk-openai"), ("anthropic", "sk-ant"), ("Claude", "sk-ant"), ("gemini", "g-key"), ("mystery", "")],
)
def test_service_config_picks_key_per_provider(settings, provider, key):
    assert settings.ai_service_config(provider).api_key == key


def test_log_level_is_validated(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert Settings(_env_file=None).log_level == "DEBUG"

    monkeypatch.setenv("LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_retry_budget_bounds(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("AI_MAX_RETRIES", "0")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.parametrize("provider", ["openai", "anthropic"])
def test_model_override_only_applies_to_configured_provider(settings, provider):
    assert settings.ai_service_config(provider).model_name is None


@pytest.mark.parametrize("provider", [None, "google", "Gemini"])
def test_model_override_follows_provider_aliases(settings, provider):
    assert settings.ai_service_config(provider).model_name == "gemini-2.5-flash"


def test_ai_log_level_defaults_to_unset(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("AI_LOG_LEVEL", raising=False)
    assert Settings(_env_file=None).ai_log_level is None

    monkeypatch.setenv("AI_LOG_LEVEL", "debug")
    assert Settings(_env_file=None).ai_log_level == "DEBUG"
