"""LLM provider exceptions."""

from .base import SuvidhaError


class LLMError(SuvidhaError):
    """Base error for language-model operations."""

    error_code = "SUV_LLM_001"


class ProviderUnavailableError(LLMError):
    """Language-model provider is unreachable or returned an unusable payload.

    Common causes:
    - Missing bearer token / API key
    - Network issues or timeouts
    - Model access not yet approved for the account
    - Response body without any text or tool call
    """

    error_code = "SUV_LLM_002"
