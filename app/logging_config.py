"""Central logging configuration for the AI coach service."""
from __future__ import annotations

from logging.config import dictConfig
from pathlib import Path

from pydantic import ValidationError

from app.config import get_settings

_configured = False

# Vendor SDK loggers; their request traces duplicate our own [provider] lines.
_SDK_LOGGERS = ("httpx", "openai", "anthropic", "google_genai")


def build_logging_config(log_dir: Path, level: str, ai_level: str | None = None) -> dict:
    """Return the dictConfig mapping for console + file output.

    ``ai_level`` sets the provider layer (retries, transports, factory)
    independently of the root level, e.g. DEBUG to see every attempt.
    """
    log_path = log_dir / "ai_coach.log"
    loggers: dict[str, dict] = {name: {"level": "WARNING"} for name in _SDK_LOGGERS}
    loggers["app.services.ai"] = {"level": ai_level or level}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": "DEBUG",
            },
            "file": {
                "class": "logging.FileHandler",
                "filename": str(log_path),
                "encoding": "utf-8",
                "formatter": "standard",
                "level": "DEBUG",
            },
        },
        "loggers": loggers,
        "root": {
            "level": level,
            "handlers": ["console", "file"],
        },
    }


def configure_logging() -> None:
    """Configure application logging once per process."""

    global _configured
    if _configured:
        return

    try:
        settings = get_settings()
        log_dir, level, ai_level = settings.log_dir, settings.log_level, settings.ai_log_level
    except ValidationError:
        # Invalid environment (e.g. LOG_LEVEL typo); keep the service logging anyway.
        log_dir, level, ai_level = Path("logs"), "INFO", None
    log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig(build_logging_config(log_dir, level, ai_level))
    _configured = True
