"""Shared HTTP plumbing for Bedrock-hosted completion models."""

import logging
from typing import Any

import requests

from ....common.rate_limiter import RateLimiter
from ....core.domain import ChatMessage, MessageRole
from ....core.domain.exceptions import ProviderUnavailableError
from ....core.ports.llm_port import LLMPort
from ..bedrock import bedrock_headers, invoke_url, response_excerpt

logger = logging.getLogger(__name__)


class BedrockProvider(LLMPort):
    """Base for strategies that call ``/model/{id}/invoke`` with a bearer token."""

    def __init__(
        self,
        bearer_token: str,
        endpoint: str,
        model_id: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: float = 60.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.bearer_token = bearer_token
        self.endpoint = endpoint
        self.model_id = model_id
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.rate_limiter = rate_limiter

    def _invoke(self, body: dict[str, Any]) -> dict[str, Any]:
        """POST a request body and return the decoded JSON response.

        Raises:
            ProviderUnavailableError: Missing credentials, transport failure,
                non-2xx status or a body that is not a JSON object.
        """
        if not (self.bearer_token and self.endpoint):
            raise ProviderUnavailableError(
                "AWS Bedrock credentials not configured", context={"provider": self.name}
            )

        if self.rate_limiter is not None:
            self.rate_limiter.acquire()

        url = invoke_url(self.endpoint, self.model_id)
        try:
            response = requests.post(
                url,
                json=body,
                headers=bedrock_headers(self.bearer_token, self.model_id),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProviderUnavailableError(
                f"Could not reach {self.name}: {e}",
                cause=e,
                context={"model": self.model_id},
            ) from e

        if not 200 <= response.status_code < 300:
            raise ProviderUnavailableError(
                f"{self.name} returned HTTP {response.status_code}",
                context={
                    "model": self.model_id,
                    "status": response.status_code,
                    "body": response_excerpt(response.text),
                },
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderUnavailableError(
                f"{self.name} returned a non-JSON body", cause=e, context={"model": self.model_id}
            ) from e

        if not isinstance(data, dict):
            raise ProviderUnavailableError(
                f"Empty response from {self.name}", context={"model": self.model_id}
            )
        return data


def role_name(message: ChatMessage) -> str:
    return "assistant" if message.role == MessageRole.ASSISTANT else "user"
