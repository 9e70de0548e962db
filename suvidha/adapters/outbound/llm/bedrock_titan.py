"""Amazon Titan Text on Bedrock: plain completion, no function calling."""

import json
from typing import Any

from ....core.domain import ChatMessage, Completion, FunctionCallRequest
from ....core.domain.exceptions import ProviderUnavailableError
from .bedrock_base import BedrockProvider, role_name


class BedrockTitanProvider(BedrockProvider):
    """Titan strategy. The whole history is flattened into one prompt."""

    name = "bedrock-titan"
    supports_function_calling = False

    top_p = 0.9

    @staticmethod
    def build_prompt(system_prompt: str, messages: list[ChatMessage], suffix: str = "") -> str:
        history = "\n".join(f"{role_name(m).capitalize()}: {m.content}" for m in messages)
        prompt = f"{system_prompt}\n\nConversation History:\n{history}"
        if suffix:
            prompt = f"{prompt}\n\n{suffix}"
        return f"{prompt}\n\nAssistant:"

    def _generate(self, prompt: str) -> Completion:
        data = self._invoke(
            {
                "inputText": prompt,
                "textGenerationConfig": {
                    "maxTokenCount": self.max_tokens,
                    "temperature": self.temperature,
                    "topP": self.top_p,
                },
            }
        )
        results = data.get("results")
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            raise ProviderUnavailableError("Unusable response from Titan: missing results")
        text = (results[0].get("outputText") or "").strip()
        return Completion(text=text or None)

    def complete(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        functions: list[dict[str, Any]] | None = None,
    ) -> Completion:
        return self._generate(self.build_prompt(system_prompt, messages))

    def continue_with_function_result(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        functions: list[dict[str, Any]] | None,
        call: FunctionCallRequest,
        result: dict[str, Any],
    ) -> Completion:
        suffix = f"Result of {call.name}: {json.dumps(result, default=str)}"
        return self._generate(self.build_prompt(system_prompt, messages, suffix))
