"""Validation exceptions."""

from .base import SuvidhaError


class ValidationError(SuvidhaError):
    """Input validation failed."""

    error_code = "SUV_VAL_001"


class InvalidInputError(ValidationError):
    """Caller supplied unusable input, such as empty text or a malformed answer."""

    error_code = "SUV_VAL_002"


class ValidationFailedError(ValidationError):
    """Function-call parameters do not match the declared schema."""

    error_code = "SUV_VAL_003"
