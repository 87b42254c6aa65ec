"""Anthropic Claude messages backend."""
from __future__ import annotations

import logging
from typing import Literal

import anthropic
from anthropic import AsyncAnthropic

from app.models.schemas import AIServiceConfig
from app.services.ai.base import extract_json_block
from app.services.ai.errors import AIErrorCode, AIServiceError


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"


class AnthropicTransport:
    """Sends prompts through ``messages.create``.

    The messages API has no JSON mode, so the prompt asks for bare JSON and
    the reply is trimmed to its outermost object before parsing.
    """

    name = "anthropic"
    json_instruction = "Respond with the JSON object only. Do not wrap it in markdown or add commentary."

    max_tokens = 4096

    def __init__(self, config: AIServiceConfig) -> None:
        if not config.api_key:
            raise AIServiceError(
                "Anthropic API key is not configured",
                self.name,
                "initialization",
                AIErrorCode.CONFIGURATION,
            )
        self.model = config.model_name or DEFAULT_MODEL
        client_options: dict = {"api_key": config.api_key, "max_retries": 0}
        if config.timeout is not None:
            client_options["timeout"] = config.timeout
        self.client = AsyncAnthropic(**client_options)

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
            "max_tokens": self.max_tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            response = await self.client.messages.create(**request_payload)
        except anthropic.APIError as err:
            raise _translate_error(err, operation) from err

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )
        if not text.strip():
            raise AIServiceError(
                "Invalid response from Anthropic API: empty message",
                self.name,
                operation,
                AIErrorCode.INVALID_RESPONSE,
            )
        if getattr(response, "stop_reason", None) == "max_tokens":
            logger.warning("Claude %s reply hit max_tokens; JSON is likely truncated", operation)
        return extract_json_block(text) if response_format == "json" else text


def _translate_error(err: anthropic.APIError, operation: str) -> AIServiceError:
    if isinstance(err, anthropic.APITimeoutError):
        code = AIErrorCode.TIMEOUT
    elif isinstance(err, anthropic.APIConnectionError):
        code = AIErrorCode.NETWORK
    elif isinstance(err, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
        code = AIErrorCode.AUTHENTICATION
    elif isinstance(err, anthropic.RateLimitError):
        code = AIErrorCode.RATE_LIMIT
    elif isinstance(err, (anthropic.BadRequestError, anthropic.NotFoundError, anthropic.UnprocessableEntityError)):
        code = AIErrorCode.INVALID_REQUEST
    elif isinstance(err, anthropic.APIStatusError):
        # Includes 529 overloaded responses.
        code = AIErrorCode.API_ERROR
    else:
        code = AIErrorCode.UNKNOWN
    logger.warning("Claude %s request failed (%s): %s", operation, code.value, err)
    return AIServiceError(
        f"Failed to make Anthropic API request: {err}",
        AnthropicTransport.name,
        operation,
        code,
        err,
    )
