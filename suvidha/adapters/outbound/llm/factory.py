"""Selects the completion strategy named in the settings."""

import logging
from enum import Enum

from ....common.rate_limiter import RateLimiter
from ....config.settings import Settings
from ....core.domain.exceptions import InvalidConfigurationError
from ....core.ports.llm_port import LLMPort
from .bedrock_claude import BedrockClaudeProvider
from .bedrock_titan import BedrockTitanProvider
from .gemini_provider import GeminiProvider

logger = logging.getLogger(__name__)


class LLMProviderKind(str, Enum):
    BEDROCK_CLAUDE = "bedrock-claude"
    BEDROCK_TITAN = "bedrock-titan"
    GEMINI = "gemini"


def create_llm_provider(settings: Settings, rate_limiter: RateLimiter | None = None) -> LLMPort:
    """Build the provider strategy for ``settings.llm_provider``.

    Raises:
        InvalidConfigurationError: If the provider name is not recognised.
    """
    raw = (settings.llm_provider or "").strip().lower()
    try:
        kind = LLMProviderKind(raw)
    except ValueError as e:
        raise InvalidConfigurationError(
            f"Unknown LLM provider {settings.llm_provider!r}. "
            f"Choose one of: {', '.join(k.value for k in LLMProviderKind)}",
            cause=e,
            context={"llm_provider": settings.llm_provider},
        ) from e

    logger.info("Using LLM provider: %s", kind.value)

    if kind is LLMProviderKind.GEMINI:
        return GeminiProvider(
            api_key=settings.google_api_key,
            model=settings.gemini_model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            rate_limiter=rate_limiter,
        )

    provider_cls = BedrockClaudeProvider if kind is LLMProviderKind.BEDROCK_CLAUDE else BedrockTitanProvider
    model_id = (
        settings.bedrock_chat_model_id
        if kind is LLMProviderKind.BEDROCK_CLAUDE
        else settings.bedrock_text_model_id
    )
    return provider_cls(
        bearer_token=settings.aws_bearer_token_bedrock,
        endpoint=settings.aws_bedrock_endpoint,
        model_id=model_id,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.request_timeout_seconds,
        rate_limiter=rate_limiter,
    )
