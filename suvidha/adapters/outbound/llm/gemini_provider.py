"""Google Gemini strategy using the google-genai SDK."""

import logging
from typing import TYPE_CHECKING, Any

import httpx
from google.genai import errors, types

from ....common.rate_limiter import RateLimiter
from ....core.domain import ChatMessage, Completion, FunctionCallRequest
from ....core.domain.exceptions import ProviderUnavailableError
from ....core.ports.llm_port import LLMPort
from .bedrock_base import role_name

if TYPE_CHECKING:
    from google import genai

logger = logging.getLogger(__name__)


class GeminiProvider(LLMPort):
    """Gemini strategy with native function declarations."""

    name = "gemini"
    supports_function_calling = True

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        rate_limiter: RateLimiter | None = None,
        client: "genai.Client | None" = None,
    ) -> None:
        """Initialize the provider.

        Args:
            api_key: Google AI API key.
            model: Gemini model name.
            temperature: Sampling temperature.
            max_tokens: Maximum output tokens.
            rate_limiter: Optional limiter acquired before every request.
            client: Pre-built SDK client; created lazily from ``api_key`` if omitted.
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.rate_limiter = rate_limiter
        self._client = client

    def _get_client(self) -> "genai.Client":
        """Lazy load the Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise ProviderUnavailableError(
                    "Google API key not set. Set GOOGLE_API_KEY in your .env file."
                )

            from google import genai

            self._client = genai.Client(api_key=self.api_key)
            logger.info("Gemini client initialized for model: %s", self.model)

        return self._client

    @staticmethod
    def _to_contents(messages: list[ChatMessage]) -> list[types.Content]:
        return [
            types.Content(
                role="model" if role_name(m) == "assistant" else "user",
                parts=[types.Part.from_text(text=m.content)],
            )
            for m in messages
        ]

    def _config(self, system_prompt: str, functions: list[dict[str, Any]] | None) -> types.GenerateContentConfig:
        tools = None
        if functions:
            tools = [
                types.Tool(
                    function_declarations=[
                        types.FunctionDeclaration(
                            name=fn["name"],
                            description=fn["description"],
                            parameters_json_schema=fn["parameters"],
                        )
                        for fn in functions
                    ]
                )
            ]
        return types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
            tools=tools,
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
        )

    def _generate(
        self,
        contents: list[types.Content],
        system_prompt: str,
        functions: list[dict[str, Any]] | None,
    ) -> Completion:
        client = self._get_client()
        if self.rate_limiter is not None:
            self.rate_limiter.acquire()

        try:
            response = client.models.generate_content(
                model=self.model,
                contents=contents,
                config=self._config(system_prompt, functions),
            )
        except (errors.APIError, httpx.HTTPError) as e:
            raise ProviderUnavailableError(
                f"Gemini request failed: {e}", cause=e, context={"model": self.model}
            ) from e

        # Safety filters can leave no candidates at all
        if not response.candidates:
            return Completion()

        call = None
        function_calls = response.function_calls or []
        if function_calls:
            fc = function_calls[0]
            logger.info("Gemini requested function call: %s", fc.name)
            call = FunctionCallRequest(name=fc.name, arguments=dict(fc.args or {}), call_id=fc.id)

        text = response.text if not function_calls else None
        return Completion(text=(text or "").strip() or None, function_call=call)

    def complete(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        functions: list[dict[str, Any]] | None = None,
    ) -> Completion:
        return self._generate(self._to_contents(messages), system_prompt, functions)

    def continue_with_function_result(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        functions: list[dict[str, Any]] | None,
        call: FunctionCallRequest,
        result: dict[str, Any],
    ) -> Completion:
        contents = self._to_contents(messages) + [
            types.Content(
                role="model",
                parts=[
                    types.Part(
                        function_call=types.FunctionCall(
                            id=call.call_id, name=call.name, args=call.arguments
                        )
                    )
                ],
            ),
            types.Content(
                role="user",
                parts=[types.Part.from_function_response(name=call.name, response=result)],
            ),
        ]
        completion = self._generate(contents, system_prompt, functions)
        return Completion(text=completion.text)
