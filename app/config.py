"""Application configuration management."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.models.schemas import AIServiceConfig
from app.services.ai.factory import normalize_provider


_PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"


class Settings(BaseSettings):
    """Centralised application settings derived from environment variables."""

    ai_provider: str = Field(
        default="openai",
        description="Which LLM backend to use (openai, google, anthropic).",
    )
    openai_api_key: str | None = None
    google_api_key: str | None = None
    anthropic_api_key: str | None = None
    ai_model_name: str | None = Field(
        default=None,
        description="Optional model override; each provider has its own default.",
    )
    ai_max_retries: int = Field(default=3, ge=1, le=10)
    ai_timeout_seconds: float = Field(default=30.0, gt=0)

    prompt_config_path: Path = Field(default=_PROMPTS_DIR / "coach_prompts.yaml")

    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=8000, ge=1, le=65535)

    debug: bool = Field(default=False)

    log_level: str = Field(default="INFO")
    ai_log_level: str | None = Field(
        default=None,
        description="Level for the app.services.ai loggers; defaults to LOG_LEVEL.",
    )
    log_dir: Path = Field(default=Path("logs"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("ai_provider")
    @classmethod
    def lowercase_provider(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("log_level", "ai_log_level")
    @classmethod
    def normalize_log_level(cls, value: str | None) -> str | None:
        if value is None:
            return None
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(sorted(valid))}")
        return upper

    def api_key_for(self, provider: str) -> str:
        """Return the credential configured for ``provider`` (empty if unset)."""

        keys = {
            "openai": self.openai_api_key,
            "google": self.google_api_key,
            "gemini": self.google_api_key,
            "anthropic": self.anthropic_api_key,
            "claude": self.anthropic_api_key,
        }
        return keys.get(provider.lower()) or ""

    def ai_service_config(self, provider: str | None = None) -> AIServiceConfig:
        """Build the service config for ``provider`` (defaults to ``AI_PROVIDER``).

        ``AI_MODEL_NAME`` names a model of the configured provider, so it is
        only applied when ``provider`` resolves to that same backend; any
        other provider runs on its own default model.
        """

        selected = (provider or self.ai_provider).strip().lower()
        same_backend = normalize_provider(selected) == normalize_provider(self.ai_provider)
        return AIServiceConfig(
            provider=selected,
            api_key=self.api_key_for(selected),
            model_name=self.ai_model_name if same_backend else None,
            max_retries=self.ai_max_retries,
            timeout=self.ai_timeout_seconds,
        )


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance so it can be reused across the app."""

    settings = Settings()
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    return settings
