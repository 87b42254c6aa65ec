"""Tests for the AI error taxonomy."""

import pytest

from app.services.ai.errors import AI_ERROR_METADATA, AIErrorCode, AIServiceError, ErrorCategory


def test_every_code_has_metadata():
    assert set(AI_ERROR_METADATA) == set(AIErrorCode)


@pytest.mark.parametrize(
    "code, category, retryable",
    [
        (AIErrorCode.CONFIGURATION, ErrorCategory.CONFIGURATION, False),
        (AIErrorCode.AUTHENTICATION, ErrorCategory.CONFIGURATION, False),
        (AIErrorCode.NETWORK, ErrorCategory.TRANSPORT, True),
        (AIErrorCode.TIMEOUT, ErrorCategory.TRANSPORT, True),
        (AIErrorCode.RATE_LIMIT, ErrorCategory.TRANSPORT, True),
        (AIErrorCode.INVALID_REQUEST, ErrorCategory.TRANSPORT, False),
        (AIErrorCode.INVALID_RESPONSE, ErrorCategory.RESPONSE, True),
    ],
)
def test_category_and_retryability(code, category, retryable):
    err = AIServiceError("boom", "openai", "generate_training_plan", code)

    assert err.category is category
    assert err.is_retryable is retryable


def test_defaults_to_unknown_without_cause():
    err = AIServiceError("boom", "openai", "analyze_workout")

    assert err.code is AIErrorCode.UNKNOWN
    assert err.cause is None
    assert err.is_retryable is False
    assert str(err) == "boom"


def test_to_dict_exposes_machine_readable_fields():
    cause = ValueError("bad json")
    err = AIServiceError(
        "Failed to parse AI response",
        "google",
        "analyze_workout",
        AIErrorCode.INVALID_RESPONSE,
        cause,
    )

    assert err.cause is cause
    assert err.to_dict() == {
        "message": "Failed to parse AI response",
        "provider": "google",
        "operation": "analyze_workout",
        "code": "INVALID_RESPONSE",
        "category": "response",
        "suggested_action": "Validate response format",
    }
