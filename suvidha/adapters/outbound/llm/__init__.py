"""Completion provider strategies."""

from .bedrock_claude import BedrockClaudeProvider
from .bedrock_titan import BedrockTitanProvider
from .factory import LLMProviderKind, create_llm_provider
from .gemini_provider import GeminiProvider

__all__ = [
    "BedrockClaudeProvider",
    "BedrockTitanProvider",
    "GeminiProvider",
    "LLMProviderKind",
    "create_llm_provider",
]
