"""Custom exception hierarchy for the Suvidha assistant.

Each exception includes an error code, the captured raise location, optional
cause chaining and JSON serialization for structured logging. Import from
this package directly:

    from suvidha.core.domain.exceptions import NotFoundError, SuvidhaError
"""

# Base classes
from .authorization import ForbiddenError, UnauthorizedError
from .base import ExceptionContext, SuvidhaError

# Configuration exceptions
from .configuration import ConfigurationError, InvalidConfigurationError

# Embedding exceptions
from .embedding import (
    EmbeddingError,
    EmbeddingRequestFailedError,
    EmbeddingUnavailableError,
)

# LLM exceptions
from .llm import LLMError, ProviderUnavailableError

# Retrieval exceptions
from .retrieval import DimensionMismatchError, RetrievalError

# Store exceptions
from .store import NotFoundError, PartialBatchInvalidError, StoreError

# Validation exceptions
from .validation import InvalidInputError, ValidationError, ValidationFailedError

__all__ = [
    # Base
    "ExceptionContext",
    "SuvidhaError",
    # Configuration
    "ConfigurationError",
    "InvalidConfigurationError",
    # Validation
    "ValidationError",
    "InvalidInputError",
    "ValidationFailedError",
    # Embedding
    "EmbeddingError",
    "EmbeddingUnavailableError",
    "EmbeddingRequestFailedError",
    # Retrieval
    "RetrievalError",
    "DimensionMismatchError",
    # LLM
    "LLMError",
    "ProviderUnavailableError",
    # Store
    "StoreError",
    "NotFoundError",
    "PartialBatchInvalidError",
    # Authorization
    "UnauthorizedError",
    "ForbiddenError",
]
