"""Anthropic Claude (messages API) on Bedrock, with tool use."""

import json
import logging
from typing import Any

from ....core.domain import ChatMessage, Completion, FunctionCallRequest
from ....core.domain.exceptions import ProviderUnavailableError
from .bedrock_base import BedrockProvider, role_name

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "bedrock-2023-05-31"


class BedrockClaudeProvider(BedrockProvider):
    """Claude strategy: the only Bedrock strategy with function calling."""

    name = "bedrock-claude"
    supports_function_calling = True

    @staticmethod
    def _to_messages(messages: list[ChatMessage]) -> list[dict[str, Any]]:
        converted = [{"role": role_name(m), "content": m.content} for m in messages]
        # The messages API requires the first turn to come from the user
        while converted and converted[0]["role"] != "user":
            converted.pop(0)
        return converted

    def _body(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        functions: list[dict[str, Any]] | None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "anthropic_version": ANTHROPIC_VERSION,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": system_prompt,
            "messages": messages,
        }
        if functions:
            body["tools"] = [
                {
                    "name": fn["name"],
                    "description": fn["description"],
                    "input_schema": fn["parameters"],
                }
                for fn in functions
            ]
        return body

    def _parse(self, data: dict[str, Any]) -> Completion:
        blocks = data.get("content")
        if not isinstance(blocks, list):
            raise ProviderUnavailableError(
                "Unusable response from Claude: missing content blocks",
                context={"stop_reason": data.get("stop_reason")},
            )

        text_parts = [
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        text = "".join(text_parts).strip() or None

        call = None
        tool_use = next(
            (b for b in blocks if isinstance(b, dict) and b.get("type") == "tool_use"), None
        )
        if tool_use is not None and tool_use.get("name"):
            arguments = tool_use.get("input") or {}
            if not isinstance(arguments, dict):
                raise ProviderUnavailableError(
                    "Unusable response from Claude: tool input is not an object",
                    context={"function": tool_use["name"], "input_type": type(arguments).__name__},
                )
            logger.info("Claude requested function call: %s", tool_use["name"])
            call = FunctionCallRequest(
                name=tool_use["name"],
                arguments=arguments,
                call_id=tool_use.get("id"),
            )

        return Completion(text=text, function_call=call)

    def complete(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        functions: list[dict[str, Any]] | None = None,
    ) -> Completion:
        body = self._body(system_prompt, self._to_messages(messages), functions)
        return self._parse(self._invoke(body))

    def continue_with_function_result(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        functions: list[dict[str, Any]] | None,
        call: FunctionCallRequest,
        result: dict[str, Any],
    ) -> Completion:
        conversation = self._to_messages(messages) + [
            {
                "role": "assistant",
                "content": [
                    {
                        "type": "tool_use",
                        "id": call.call_id,
                        "name": call.name,
                        "input": call.arguments,
                    }
                ],
            },
            {
                "role": "user",
                "content": [
                    {
                        "type": "tool_result",
                        "tool_use_id": call.call_id,
                        "content": json.dumps(result, default=str),
                    }
                ],
            },
        ]
        completion = self._parse(self._invoke(self._body(system_prompt, conversation, functions)))
        # A second tool request is not followed; only the text is used.
        return Completion(text=completion.text)
