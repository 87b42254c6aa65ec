"""Error taxonomy for the AI provider layer."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AIErrorCode(str, Enum):
    CONFIGURATION = "CONFIGURATION"
    AUTHENTICATION = "AUTHENTICATION"
    RATE_LIMIT = "RATE_LIMIT"
    API_ERROR = "API_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    INVALID_REQUEST = "INVALID_REQUEST"
    TIMEOUT = "TIMEOUT"
    NETWORK = "NETWORK"
    UNKNOWN = "UNKNOWN"


class ErrorCategory(str, Enum):
    """Coarse error kind callers can branch on without reading messages."""

    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    RESPONSE = "response"


@dataclass(frozen=True)
class AIErrorMetadata:
    retryable: bool
    category: ErrorCategory
    suggested_action: str | None = None


AI_ERROR_METADATA: dict[AIErrorCode, AIErrorMetadata] = {
    AIErrorCode.CONFIGURATION: AIErrorMetadata(
        False, ErrorCategory.CONFIGURATION, "Check API configuration settings"
    ),
    AIErrorCode.AUTHENTICATION: AIErrorMetadata(
        False, ErrorCategory.CONFIGURATION, "Verify API credentials"
    ),
    AIErrorCode.RATE_LIMIT: AIErrorMetadata(True, ErrorCategory.TRANSPORT, "Wait before retrying"),
    AIErrorCode.API_ERROR: AIErrorMetadata(
        True, ErrorCategory.TRANSPORT, "Retry with exponential backoff"
    ),
    AIErrorCode.INVALID_RESPONSE: AIErrorMetadata(
        True, ErrorCategory.RESPONSE, "Validate response format"
    ),
    AIErrorCode.INVALID_REQUEST: AIErrorMetadata(
        False, ErrorCategory.TRANSPORT, "Check request parameters"
    ),
    AIErrorCode.TIMEOUT: AIErrorMetadata(True, ErrorCategory.TRANSPORT, "Retry with increased timeout"),
    AIErrorCode.NETWORK: AIErrorMetadata(True, ErrorCategory.TRANSPORT, "Check network connectivity"),
    AIErrorCode.UNKNOWN: AIErrorMetadata(False, ErrorCategory.TRANSPORT, "Check error logs for details"),
}


class AIServiceError(Exception):
    """The single error type raised by the AI provider layer.

    Carries the provider and operation that failed plus a machine-readable
    ``code``; the underlying exception, if any, is available as ``cause``
    and is also chained as ``__cause__`` when raised with ``from``.
    """

    def __init__(
        self,
        message: str,
        provider: str,
        operation: str,
        code: AIErrorCode = AIErrorCode.UNKNOWN,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.operation = operation
        self.code = code
        self.cause = cause

    @property
    def metadata(self) -> AIErrorMetadata:
        return AI_ERROR_METADATA[self.code]

    @property
    def category(self) -> ErrorCategory:
        return self.metadata.category

    @property
    def is_retryable(self) -> bool:
        return self.metadata.retryable

    @property
    def suggested_action(self) -> str | None:
        return self.metadata.suggested_action

    def to_dict(self) -> dict[str, str | None]:
        """Serialisable summary for logs and HTTP error bodies."""

        return {
            "message": self.message,
            "provider": self.provider,
            "operation": self.operation,
            "code": self.code.value,
            "category": self.category.value,
            "suggested_action": self.suggested_action,
        }

    def __repr__(self) -> str:
        return (
            f"AIServiceError(message={self.message!r}, provider={self.provider!r}, "
            f"operation={self.operation!r}, code={self.code.value})"
        )
