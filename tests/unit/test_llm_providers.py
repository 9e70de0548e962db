"""Unit tests for the completion provider strategies and their factory."""

import json
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import pytest
import requests

from suvidha.adapters.outbound.llm import (
    BedrockClaudeProvider,
    BedrockTitanProvider,
    GeminiProvider,
    create_llm_provider,
)
from suvidha.config.settings import Settings
from suvidha.core.domain import ChatMessage, FunctionCallRequest, MessageRole
from suvidha.core.domain.exceptions import InvalidConfigurationError, ProviderUnavailableError

pytestmark = pytest.mark.unit

ENDPOINT = "https://bedrock-runtime.us-east-1.amazonaws.com"
TOOLS = [
    {
        "name": "get_user_bills",
        "description": "Get bills",
        "parameters": {"type": "object", "properties": {"isPaid": {"type": "boolean"}}},
    }
]


def message(role: MessageRole, content: str) -> ChatMessage:
    return ChatMessage(
        message_id=content,
        conversation_id="c1",
        role=role,
        content=content,
        created_at=datetime.now(UTC),
    )


def _response(body, status: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.text = json.dumps(body)
    response.json.return_value = body
    return response


@pytest.fixture
def claude():
    return BedrockClaudeProvider(bearer_token="token", endpoint=ENDPOINT, model_id="claude-test")


@pytest.fixture
def titan():
    return BedrockTitanProvider(bearer_token="token", endpoint=ENDPOINT, model_id="titan-test")


class TestClaude:
    def test_request_body(self, claude):
        history = [message(MessageRole.ASSISTANT, "welcome"), message(MessageRole.USER, "my bills")]
        with patch("requests.post", return_value=_response({"content": [{"type": "text", "text": "hi"}]})) as post:
            claude.complete("system", history, TOOLS)

        args, kwargs = post.call_args
        assert args[0] == f"{ENDPOINT}/model/claude-test/invoke"
        assert kwargs["headers"]["Authorization"] == "Bearer token"
        body = kwargs["json"]
        assert body["anthropic_version"] == "bedrock-2023-05-31"
        assert body["system"] == "system"
        # Leading assistant turns are dropped
        assert body["messages"] == [{"role": "user", "content": "my bills"}]
        assert body["tools"][0]["input_schema"] == TOOLS[0]["parameters"]

    def test_no_tools_without_functions(self, claude):
        with patch("requests.post", return_value=_response({"content": []})) as post:
            completion = claude.complete("system", [message(MessageRole.USER, "hi")])

        assert "tools" not in post.call_args.kwargs["json"]
        assert completion.text is None
        assert completion.function_call is None

    def test_parses_tool_use(self, claude):
        body = {
            "content": [
                {"type": "text", "text": "Let me check. "},
                {"type": "tool_use", "id": "tu-1", "name": "get_user_bills", "input": {"isPaid": False}},
            ]
        }
        with patch("requests.post", return_value=_response(body)):
            completion = claude.complete("system", [message(MessageRole.USER, "bills")], TOOLS)

        assert completion.text == "Let me check."
        assert completion.function_call == FunctionCallRequest("get_user_bills", {"isPaid": False}, "tu-1")

    @pytest.mark.parametrize("tool_input", ["dashboard", ["bills"], 3])
    def test_non_object_tool_input(self, claude, tool_input):
        body = {"content": [{"type": "tool_use", "id": "tu-1", "name": "navigate_to_page", "input": tool_input}]}
        with patch("requests.post", return_value=_response(body)):
            with pytest.raises(ProviderUnavailableError):
                claude.complete("system", [message(MessageRole.USER, "go")], TOOLS)

    def test_function_result_round_trip_shape(self, claude):
        call = FunctionCallRequest("get_user_bills", {"isPaid": False}, "tu-1")
        body = {"content": [{"type": "text", "text": "You owe 1165."}, {"type": "tool_use", "name": "x"}]}
        with patch("requests.post", return_value=_response(body)) as post:
            completion = claude.continue_with_function_result(
                "system", [message(MessageRole.USER, "bills")], TOOLS, call, {"totalAmount": 1165.0}
            )

        sent = post.call_args.kwargs["json"]["messages"]
        assert sent[1]["content"][0] == {"type": "tool_use", "id": "tu-1", "name": "get_user_bills", "input": {"isPaid": False}}
        assert sent[2]["content"][0]["tool_use_id"] == "tu-1"
        assert json.loads(sent[2]["content"][0]["content"]) == {"totalAmount": 1165.0}
        assert completion.text == "You owe 1165."
        assert completion.function_call is None

    def test_missing_content_blocks(self, claude):
        with patch("requests.post", return_value=_response({"stop_reason": "error"})):
            with pytest.raises(ProviderUnavailableError):
                claude.complete("system", [message(MessageRole.USER, "hi")])

    def test_http_error(self, claude):
        with patch("requests.post", return_value=_response({"message": "denied"}, status=403)):
            with pytest.raises(ProviderUnavailableError, match="HTTP 403"):
                claude.complete("system", [message(MessageRole.USER, "hi")])

    def test_transport_error(self, claude):
        with patch("requests.post", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(ProviderUnavailableError, match="Could not reach"):
                claude.complete("system", [message(MessageRole.USER, "hi")])

    def test_missing_credentials(self):
        provider = BedrockClaudeProvider(bearer_token="", endpoint="", model_id="m")
        with patch("requests.post") as post:
            with pytest.raises(ProviderUnavailableError):
                provider.complete("system", [message(MessageRole.USER, "hi")])
        post.assert_not_called()


class TestTitan:
    def test_flattened_prompt(self, titan):
        history = [message(MessageRole.USER, "hello"), message(MessageRole.ASSISTANT, "hi")]
        with patch("requests.post", return_value=_response({"results": [{"outputText": " answer "}]})) as post:
            completion = titan.complete("system", history, TOOLS)

        body = post.call_args.kwargs["json"]
        assert body["inputText"] == "system\n\nConversation History:\nUser: hello\nAssistant: hi\n\nAssistant:"
        assert body["textGenerationConfig"]["topP"] == 0.9
        assert completion.text == "answer"
        assert not titan.supports_function_calling

    def test_function_result_suffix(self, titan):
        call = FunctionCallRequest("get_user_bills", {})
        prompt = BedrockTitanProvider.build_prompt("s", [], 'Result of get_user_bills: {"total": 1}')
        assert prompt.endswith('Result of get_user_bills: {"total": 1}\n\nAssistant:')

        with patch("requests.post", return_value=_response({"results": [{"outputText": "done"}]})) as post:
            titan.continue_with_function_result("s", [], None, call, {"total": 1})
        assert "Result of get_user_bills" in post.call_args.kwargs["json"]["inputText"]

    def test_missing_results(self, titan):
        with patch("requests.post", return_value=_response({"results": []})):
            with pytest.raises(ProviderUnavailableError):
                titan.complete("system", [message(MessageRole.USER, "hi")])


class TestGemini:
    def test_missing_api_key(self):
        with pytest.raises(ProviderUnavailableError, match="Google API key not set"):
            GeminiProvider(api_key="").complete("system", [message(MessageRole.USER, "hi")])

    def test_function_call_response(self):
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(
            candidates=[object()],
            function_calls=[SimpleNamespace(name="get_user_bills", args={"isPaid": False}, id="fc-1")],
            text=None,
        )
        provider = GeminiProvider(api_key="key", client=client)

        completion = provider.complete("system", [message(MessageRole.USER, "bills")], TOOLS)

        assert completion.function_call == FunctionCallRequest("get_user_bills", {"isPaid": False}, "fc-1")
        assert completion.text is None
        config = client.models.generate_content.call_args.kwargs["config"]
        assert config.system_instruction == "system"
        assert config.tools[0].function_declarations[0].name == "get_user_bills"

    def test_text_response(self):
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(
            candidates=[object()], function_calls=None, text=" Namaste! "
        )
        completion = GeminiProvider(api_key="key", client=client).complete(
            "system", [message(MessageRole.USER, "hi")]
        )
        assert completion.text == "Namaste!"
        assert client.models.generate_content.call_args.kwargs["config"].tools is None

    def test_blocked_response(self):
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(candidates=[], function_calls=None, text=None)
        completion = GeminiProvider(api_key="key", client=client).complete("s", [message(MessageRole.USER, "hi")])
        assert completion.text is None
        assert completion.function_call is None

    def test_transport_error(self):
        client = MagicMock()
        client.models.generate_content.side_effect = httpx.ConnectError("refused")
        with pytest.raises(ProviderUnavailableError, match="Gemini request failed"):
            GeminiProvider(api_key="key", client=client).complete("s", [message(MessageRole.USER, "hi")])


class TestFactory:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("bedrock-claude", BedrockClaudeProvider),
            ("BEDROCK-TITAN", BedrockTitanProvider),
            (" gemini ", GeminiProvider),
        ],
    )
    def test_selects_strategy(self, name, expected):
        settings = Settings(_env_file=None, llm_provider=name)
        assert isinstance(create_llm_provider(settings), expected)

    def test_model_ids_follow_strategy(self):
        settings = Settings(_env_file=None, llm_provider="bedrock-titan", bedrock_text_model_id="titan-x")
        assert create_llm_provider(settings).model_id == "titan-x"

    def test_unknown_provider(self):
        with pytest.raises(InvalidConfigurationError, match="Unknown LLM provider"):
            create_llm_provider(Settings(_env_file=None, llm_provider="gpt-4"))
