"""LLM Port Interface."""

from abc import ABC, abstractmethod
from typing import Any

from ..domain import ChatMessage, Completion, FunctionCallRequest


class LLMPort(ABC):
    """Abstract completion contract shared by every provider strategy.

    ``functions`` is a list of tool declarations
    (``{"name", "description", "parameters"}`` with a JSON schema). Strategies
    without function calling set ``supports_function_calling = False`` and
    ignore it.
    """

    name: str = "unknown"
    supports_function_calling: bool = False

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        functions: list[dict[str, Any]] | None = None,
    ) -> Completion:
        """Generate a reply (text or a function-call request)."""
        ...

    @abstractmethod
    def continue_with_function_result(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        functions: list[dict[str, Any]] | None,
        call: FunctionCallRequest,
        result: dict[str, Any],
    ) -> Completion:
        """Second pass: feed a function result back and get the final reply."""
        ...
