"""Structured formatting, logging and HTTP mapping of exceptions."""

import json
import logging
import traceback
from typing import Any

from ...core.domain.exceptions import (
    EmbeddingError,
    ForbiddenError,
    LLMError,
    NotFoundError,
    PartialBatchInvalidError,
    SuvidhaError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_CODE = "PYTHON_ERR"


def format_exception_json(
    exc: Exception,
    include_trace: bool = False,
    extra_context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Format any exception as structured JSON.

    SuvidhaError subclasses use their own ``to_dict``; anything else is
    described from its traceback. Both shapes carry a top-level ``message``.
    """
    if isinstance(exc, SuvidhaError):
        result = exc.to_dict(include_trace=include_trace)
        if extra_context:
            result.setdefault("context", {}).update(extra_context)
        return result

    tb = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    last_frame = tb[-1] if tb else None

    result: dict[str, Any] = {
        "error": {
            "type": type(exc).__name__,
            "code": GENERIC_ERROR_CODE,
            "message": str(exc),
        },
        "message": str(exc) or type(exc).__name__,
        "location": {
            "class": "<unknown>",
            "method": last_frame.name if last_frame else "<unknown>",
            "file": last_frame.filename.replace("\\", "/").split("/")[-1] if last_frame else "<unknown>",
            "line": last_frame.lineno if last_frame else 0,
        },
    }

    if extra_context:
        result["context"] = extra_context

    if include_trace:
        result["stack_trace"] = [
            line.strip()
            for line in traceback.format_exception(type(exc), exc, exc.__traceback__)
            if line.strip()
        ]

    return result


def log_exception(
    exc: Exception,
    log: logging.Logger | None = None,
    level: int | None = None,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """Log an exception as structured JSON.

    Client errors (4xx) are logged at WARNING without a trace unless a
    level is given; everything else at ERROR with the trace.
    """
    status = get_http_status_code(exc)
    if level is None:
        level = logging.WARNING if status < 500 else logging.ERROR

    exc_data = format_exception_json(exc, include_trace=status >= 500, extra_context=extra_context)
    (log or logger).log(level, json.dumps(exc_data, indent=2, default=str))


def get_error_code(exc: Exception) -> str:
    if isinstance(exc, SuvidhaError):
        return exc.error_code
    return GENERIC_ERROR_CODE


def get_http_status_code(exc: Exception) -> int:
    """Map an exception to the HTTP status returned to the client."""
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, UnauthorizedError):
        return 401
    if isinstance(exc, ForbiddenError):
        return 403
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, PartialBatchInvalidError):
        return 409
    if isinstance(exc, EmbeddingError | LLMError):
        return 503
    if isinstance(exc, SuvidhaError):
        return 500

    if isinstance(exc, ValueError):
        return 400
    if isinstance(exc, ConnectionError | TimeoutError):
        return 503
    return 500
