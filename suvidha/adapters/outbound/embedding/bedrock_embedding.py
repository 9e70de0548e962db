"""Titan text embeddings on AWS Bedrock, called over HTTPS with a bearer token."""

import logging
import time
from collections.abc import Callable
from typing import Any

import requests

from ....common.rate_limiter import RateLimiter
from ....core.domain.exceptions import (
    EmbeddingError,
    EmbeddingRequestFailedError,
    EmbeddingUnavailableError,
    InvalidInputError,
)
from ....core.domain.utils import collapse_whitespace
from ....core.ports.embedding_port import EmbeddingPort
from ..bedrock import bedrock_headers, invoke_url, response_excerpt

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "amazon.titan-embed-text-v1"
EMBEDDING_DIMENSION = 1536
MAX_INPUT_CHARS = 8000


class _RetryableResponse(Exception):
    """A response worth retrying: 5xx or a 2xx without a usable embedding."""


class BedrockEmbeddingClient(EmbeddingPort):
    """Embedding client for the Bedrock runtime ``invoke`` API.

    Retries a request when no response arrives (connection error, timeout),
    on a 5xx status, or when a 2xx body carries no embedding. The wait
    between attempts grows linearly (``attempt * backoff_seconds``). A 4xx
    status fails immediately.
    """

    def __init__(
        self,
        bearer_token: str,
        endpoint: str,
        model: str = DEFAULT_EMBEDDING_MODEL,
        dimension: int = EMBEDDING_DIMENSION,
        max_chars: int = MAX_INPUT_CHARS,
        max_retries: int = 3,
        backoff_seconds: float = 0.5,
        timeout: float = 60.0,
        rate_limiter: RateLimiter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            bearer_token: Bedrock API key sent as ``Authorization: Bearer``.
            endpoint: Bedrock runtime base URL, or a full model invoke URL.
            model: Embedding model id.
            dimension: Expected vector length; other lengths are rejected.
            max_chars: Input is truncated to this many characters.
            max_retries: Total attempts per text.
            backoff_seconds: Base delay between attempts.
            timeout: Per-request timeout in seconds.
            rate_limiter: Optional limiter acquired before every request.
            sleep: Sleep function used for backoff.
        """
        self.bearer_token = bearer_token
        self.endpoint = endpoint
        self.model = model
        self.dimension = dimension
        self.max_chars = max_chars
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds
        self.timeout = timeout
        self.rate_limiter = rate_limiter
        self._sleep = sleep

    @property
    def is_configured(self) -> bool:
        return bool(self.bearer_token and self.endpoint)

    def prepare(self, text: str) -> str:
        """Collapse whitespace and truncate to the model's input limit.

        Raises:
            InvalidInputError: If nothing is left to embed.
        """
        cleaned = collapse_whitespace(text or "")
        if not cleaned:
            raise InvalidInputError("Cannot generate embedding for empty text")
        return cleaned[: self.max_chars]

    def embed(self, text: str) -> list[float]:
        """Embed one text.

        Raises:
            EmbeddingUnavailableError: Credentials or endpoint are not configured.
            InvalidInputError: The text is empty after normalization.
            EmbeddingRequestFailedError: The provider rejected the request, kept
                failing until retries ran out, or returned a wrong-size vector.
        """
        if not self.is_configured:
            raise EmbeddingUnavailableError(
                "AWS Bedrock credentials not configured. "
                "Set AWS_BEARER_TOKEN_BEDROCK and AWS_BEDROCK_ENDPOINT",
            )

        payload = {"inputText": self.prepare(text)}
        url = invoke_url(self.endpoint, self.model)
        headers = bedrock_headers(self.bearer_token, self.model)

        last_error: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            if self.rate_limiter is not None:
                self.rate_limiter.acquire()
            try:
                return self._request(url, headers, payload)
            except (requests.RequestException, _RetryableResponse) as e:
                last_error = e
                if attempt == self.max_retries:
                    break
                delay = attempt * self.backoff_seconds
                logger.warning(
                    "Embedding attempt %d/%d failed (%s), retrying in %.1fs",
                    attempt,
                    self.max_retries,
                    e,
                    delay,
                )
                self._sleep(delay)

        raise EmbeddingRequestFailedError(
            f"Failed to generate embedding after {self.max_retries} attempts: {last_error}",
            cause=last_error,
            context={"model": self.model, "attempts": self.max_retries},
        )

    def _request(self, url: str, headers: dict[str, str], payload: dict[str, Any]) -> list[float]:
        response = requests.post(url, json=payload, headers=headers, timeout=self.timeout)

        if response.status_code >= 500:
            raise _RetryableResponse(f"HTTP {response.status_code}")
        if response.status_code >= 400:
            raise EmbeddingRequestFailedError(
                f"Bedrock embeddings API rejected the request (HTTP {response.status_code})",
                context={
                    "status": response.status_code,
                    "body": response_excerpt(response.text),
                },
            )

        try:
            data = response.json()
        except ValueError as e:
            raise _RetryableResponse("response body is not JSON") from e

        embedding = data.get("embedding") if isinstance(data, dict) else None
        if not isinstance(embedding, list) or not embedding:
            raise _RetryableResponse(
                f"invalid response format: {response_excerpt(data)}"
            )

        if len(embedding) != self.dimension:
            raise EmbeddingRequestFailedError(
                f"Expected a {self.dimension}-dimensional embedding, got {len(embedding)}",
                context={"model": self.model},
            )
        try:
            return [float(value) for value in embedding]
        except (TypeError, ValueError) as e:
            raise _RetryableResponse("embedding contains non-numeric values") from e

    def embed_documents(self, texts: list[str]) -> list[list[float] | None]:
        """Embed texts one at a time; a failed text yields None in its slot."""
        vectors: list[list[float] | None] = []
        for text in texts:
            try:
                vectors.append(self.embed(text))
            except EmbeddingUnavailableError:
                raise
            except (EmbeddingError, InvalidInputError) as e:
                logger.error("Failed to embed text %r: %s", (text or "")[:50], e.message)
                vectors.append(None)
        return vectors
