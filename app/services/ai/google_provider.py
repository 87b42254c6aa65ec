"""Google Gemini backend via the ``google-genai`` SDK."""
from __future__ import annotations

import logging
from typing import Literal

import httpx
from google import genai
from google.genai import errors, types

from app.models.schemas import AIServiceConfig
from app.services.ai.base import extract_json_block
from app.services.ai.errors import AIErrorCode, AIServiceError


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"


class GoogleTransport:
    """Sends prompts through ``models.generate_content`` with a JSON mime type."""

    name = "google"
    json_instruction = "Respond with the JSON object only."

    temperature = 0.3

    def __init__(self, config: AIServiceConfig) -> None:
        if not config.api_key:
            raise AIServiceError(
                "Google AI API key is not configured",
                self.name,
                "initialization",
                AIErrorCode.CONFIGURATION,
            )
        self.model = config.model_name or DEFAULT_MODEL
        http_options = None
        if config.timeout is not None:
            # HttpOptions.timeout is expressed in milliseconds.
            http_options = types.HttpOptions(timeout=int(config.timeout * 1000))
        self.client = genai.Client(api_key=config.api_key, http_options=http_options)

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str,
        operation: str,
        response_format: Literal["json", "text"] = "json",
    ) -> str:
        generation_config = types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=self.temperature,
            response_mime_type="application/json" if response_format == "json" else None,
        )

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=generation_config,
            )
        except errors.APIError as err:
            raise _translate_api_error(err, operation) from err
        except httpx.TimeoutException as err:
            logger.warning("Gemini %s request timed out: %s", operation, err)
            raise AIServiceError(
                f"Gemini request timed out: {err}",
                self.name,
                operation,
                AIErrorCode.TIMEOUT,
                err,
            ) from err
        except httpx.TransportError as err:
            logger.warning("Gemini %s request failed at the network layer: %s", operation, err)
            raise AIServiceError(
                f"Failed to reach Gemini API: {err}",
                self.name,
                operation,
                AIErrorCode.NETWORK,
                err,
            ) from err

        text = response.text
        if not text:
            candidate = response.candidates[0] if response.candidates else None
            raise AIServiceError(
                f"Invalid response from Gemini API: empty text (finish_reason={getattr(candidate, 'finish_reason', None)})",
                self.name,
                operation,
                AIErrorCode.INVALID_RESPONSE,
            )
        return extract_json_block(text) if response_format == "json" else text


def _translate_api_error(err: errors.APIError, operation: str) -> AIServiceError:
    status = getattr(err, "code", None)
    if status in {401, 403}:
        code = AIErrorCode.AUTHENTICATION
    elif status == 429:
        code = AIErrorCode.RATE_LIMIT
    elif status == 408:
        code = AIErrorCode.TIMEOUT
    elif isinstance(err, errors.ServerError):
        code = AIErrorCode.API_ERROR
    elif isinstance(err, errors.ClientError):
        code = AIErrorCode.INVALID_REQUEST
    else:
        code = AIErrorCode.API_ERROR
    logger.warning("Gemini %s request failed (HTTP %s, %s): %s", operation, status, code.value, err)
    return AIServiceError(
        f"Failed to make Gemini API request: {err}",
        GoogleTransport.name,
        operation,
        code,
        err,
    )
