"""Retrieval and similarity exceptions."""

from .base import SuvidhaError


class RetrievalError(SuvidhaError):
    """Error during knowledge retrieval."""

    error_code = "SUV_RET_001"


class DimensionMismatchError(RetrievalError):
    """Two embedding vectors of different length were compared."""

    error_code = "SUV_RET_002"
