"""Embedding exceptions."""

from .base import SuvidhaError


class EmbeddingError(SuvidhaError):
    """Failed to generate embeddings."""

    error_code = "SUV_EMB_001"


class EmbeddingUnavailableError(EmbeddingError):
    """Embedding provider credentials or endpoint are not configured."""

    error_code = "SUV_EMB_002"


class EmbeddingRequestFailedError(EmbeddingError):
    """Embedding request failed after exhausting retries, or was rejected.

    Common causes:
    - Provider returned a 4xx (bad credentials, malformed input)
    - Provider kept failing with 5xx or timing out
    - Response did not contain a vector of the expected dimension
    """

    error_code = "SUV_EMB_003"
