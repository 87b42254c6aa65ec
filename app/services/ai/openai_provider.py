"""OpenAI-compatible chat completions backend."""
from __future__ import annotations

import logging
from typing import Literal

import openai
from openai import AsyncOpenAI

from app.models.schemas import AIServiceConfig
from app.services.ai.errors import AIErrorCode, AIServiceError


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"


class OpenAITransport:
    """Sends prompts through ``chat.completions`` with JSON mode enabled."""

    name = "openai"
    json_instruction = ""

    def __init__(self, config: AIServiceConfig) -> None:
        if not config.api_key:
            raise AIServiceError(
                "OpenAI API key is not configured",
                self.name,
                "initialization",
                AIErrorCode.CONFIGURATION,
            )
        self.model = config.model_name or DEFAULT_MODEL
        # Retries are owned by RetryPolicy; keep the SDK from retrying underneath it.
        client_options: dict = {"api_key": config.api_key, "max_retries": 0}
        if config.timeout is not None:
            client_options["timeout"] = config.timeout
        self.client = AsyncOpenAI(**client_options)

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str,
        operation: str,
        response_format: Literal["json", "text"] = "json",
    ) -> str:
        request_payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
        }
        if response_format == "json":
            request_payload["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(**request_payload)
        except openai.APIError as err:
            raise _translate_error(err, operation) from err

        if not response.choices:
            raise AIServiceError(
                "Invalid response from OpenAI API: no choices returned",
                self.name,
                operation,
                AIErrorCode.INVALID_RESPONSE,
            )
        content = response.choices[0].message.content
        if not content:
            raise AIServiceError(
                "Invalid response from OpenAI API: empty message",
                self.name,
                operation,
                AIErrorCode.INVALID_RESPONSE,
            )
        return content


def _translate_error(err: openai.APIError, operation: str) -> AIServiceError:
    """Map an OpenAI SDK exception onto the shared error codes."""

    # APITimeoutError subclasses APIConnectionError, so check it first.
    if isinstance(err, openai.APITimeoutError):
        code = AIErrorCode.TIMEOUT
    elif isinstance(err, openai.APIConnectionError):
        code = AIErrorCode.NETWORK
    elif isinstance(err, (openai.AuthenticationError, openai.PermissionDeniedError)):
        code = AIErrorCode.AUTHENTICATION
    elif isinstance(err, openai.RateLimitError):
        code = AIErrorCode.RATE_LIMIT
    elif isinstance(err, (openai.BadRequestError, openai.NotFoundError, openai.UnprocessableEntityError)):
        code = AIErrorCode.INVALID_REQUEST
    elif isinstance(err, openai.APIStatusError):
        code = AIErrorCode.API_ERROR
    else:
        code = AIErrorCode.UNKNOWN
    logger.warning("OpenAI %s request failed (%s): %s", operation, code.value, err)
    return AIServiceError(
        f"Failed to make OpenAI API request: {err}",
        OpenAITransport.name,
        operation,
        code,
        err,
    )
