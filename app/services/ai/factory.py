"""Keyed registry that builds and caches one AI service per provider credential."""
from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Mapping
from pathlib import Path

from app.models.schemas import AIServiceConfig
from app.services.ai.anthropic_provider import AnthropicTransport
from app.services.ai.base import AIService, PromptBuilder, ProviderTransport, Sleep
from app.services.ai.errors import AIErrorCode, AIServiceError
from app.services.ai.google_provider import GoogleTransport
from app.services.ai.openai_provider import OpenAITransport


logger = logging.getLogger(__name__)

TransportFactory = Callable[[AIServiceConfig], ProviderTransport]

PROVIDERS: dict[str, TransportFactory] = {
    "openai": OpenAITransport,
    "google": GoogleTransport,
    "anthropic": AnthropicTransport,
}

PROVIDER_ALIASES: dict[str, str] = {
    "gemini": "google",
    "claude": "anthropic",
}


def normalize_provider(provider: str | None) -> str:
    name = (provider or "").strip().lower()
    return PROVIDER_ALIASES.get(name, name)


class AIServiceFactory:
    """Create provider services on first use and hand back the same instance after.

    Instances are keyed by (provider, credential) so a warm SDK client is
    reused across requests. The check-then-insert step runs under a lock,
    which makes the factory safe to share between threads as well as tasks.
    """

    def __init__(
        self,
        *,
        sleep: Sleep = asyncio.sleep,
        prompt_config_path: Path | None = None,
        transports: Mapping[str, TransportFactory] | None = None,
    ) -> None:
        self._sleep = sleep
        self._prompt_config_path = prompt_config_path
        self._providers: dict[str, TransportFactory] = dict(PROVIDERS)
        if transports:
            self._providers.update({normalize_provider(name): factory for name, factory in transports.items()})
        self._instances: dict[tuple[str, str], AIService] = {}
        self._lock = threading.Lock()

    @property
    def supported_providers(self) -> list[str]:
        return sorted(self._providers)

    def get_service(self, config: AIServiceConfig) -> AIService:
        """Return the cached service for ``config``, creating it if needed.

        Raises:
            AIServiceError: ``CONFIGURATION`` when the provider is missing or
                unsupported, or the transport rejects the credential
        """

        provider = normalize_provider(config.provider)
        if not provider:
            raise AIServiceError(
                "AI provider must be specified",
                "unknown",
                "initialization",
                AIErrorCode.CONFIGURATION,
            )

        key = (provider, config.api_key)
        with self._lock:
            service = self._instances.get(key)
            if service is None:
                service = self._create_service(provider, config)
                self._instances[key] = service
                logger.info("Created %s AI service (model=%s)", provider, service.model)
        return service

    def _create_service(self, provider: str, config: AIServiceConfig) -> AIService:
        transport_factory = self._providers.get(provider)
        if transport_factory is None:
            raise AIServiceError(
                f"Unsupported AI provider: {config.provider}",
                provider,
                "initialization",
                AIErrorCode.CONFIGURATION,
            )

        transport = transport_factory(config)
        prompts = PromptBuilder(self._prompt_config_path, json_instruction=transport.json_instruction)
        return AIService(config, transport, prompts=prompts, sleep=self._sleep)

    def clear(self) -> None:
        """Drop every cached service (e.g. after rotating credentials)."""

        with self._lock:
            self._instances.clear()
        logger.info("AI service cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._instances)
