"""AI provider layer: one capability set over interchangeable LLM backends."""

from .base import AIProvider, AIService, PromptBuilder, RetryPolicy
from .errors import AIErrorCode, AIServiceError, ErrorCategory
from .factory import AIServiceFactory

__all__ = [
    "AIErrorCode",
    "AIProvider",
    "AIService",
    "AIServiceError",
    "AIServiceFactory",
    "ErrorCategory",
    "PromptBuilder",
    "RetryPolicy",
]
