"""Unit tests for exception handling system.

Tests both the exception hierarchy and the exception handler utilities,
including negative tests to verify correct exceptions are raised.
"""

import json
import logging

import pytest

from suvidha.adapters.common.exception_handler import (
    format_exception_json,
    get_error_code,
    get_http_status_code,
    log_exception,
)
from suvidha.core.domain.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingError,
    EmbeddingRequestFailedError,
    EmbeddingUnavailableError,
    ForbiddenError,
    InvalidConfigurationError,
    InvalidInputError,
    LLMError,
    NotFoundError,
    PartialBatchInvalidError,
    ProviderUnavailableError,
    RetrievalError,
    StoreError,
    SuvidhaError,
    UnauthorizedError,
    ValidationError,
    ValidationFailedError,
)

# Apply @pytest.mark.unit to all tests in this module
pytestmark = pytest.mark.unit


class TestExceptionHierarchy:
    """Tests for the exception class hierarchy."""

    def test_suvidha_error_is_base(self):
        for cls in (
            ConfigurationError,
            ValidationError,
            EmbeddingError,
            RetrievalError,
            LLMError,
            StoreError,
            UnauthorizedError,
        ):
            assert issubclass(cls, SuvidhaError)

    def test_validation_family(self):
        assert issubclass(InvalidInputError, ValidationError)
        assert issubclass(ValidationFailedError, ValidationError)

    def test_store_family(self):
        assert issubclass(NotFoundError, StoreError)
        assert issubclass(PartialBatchInvalidError, StoreError)

    def test_provider_families(self):
        assert issubclass(EmbeddingUnavailableError, EmbeddingError)
        assert issubclass(EmbeddingRequestFailedError, EmbeddingError)
        assert issubclass(ProviderUnavailableError, LLMError)
        assert issubclass(DimensionMismatchError, RetrievalError)
        assert issubclass(InvalidConfigurationError, ConfigurationError)


class TestExceptionCreation:
    """Tests for creating and using exceptions."""

    def test_basic_exception_creation(self):
        exc = SuvidhaError("Test error message")
        assert str(exc) == "Test error message"
        assert exc.message == "Test error message"
        assert exc.error_code == "SUV_ERR_001"

    def test_exception_with_context(self):
        exc = NotFoundError("Scheme not found", context={"scheme_id": "jal-jeevan-mission"})
        assert exc.extra_context["scheme_id"] == "jal-jeevan-mission"

    def test_exception_with_cause(self):
        original = ConnectionError("Network unreachable")
        exc = ProviderUnavailableError("Bedrock unreachable", cause=original)
        assert exc.cause is original

    def test_exception_captures_location(self):
        """Location points at the raise site, not the exception module."""

        class Raiser:
            def fail(self):
                raise NotFoundError("missing")

        with pytest.raises(NotFoundError) as exc_info:
            Raiser().fail()

        location = exc_info.value.location
        assert location.class_name == "Raiser"
        assert location.method_name == "fail"
        assert location.file_name == "test_exceptions.py"
        assert location.line_number > 0

    def test_each_exception_has_unique_error_code(self):
        classes = [
            SuvidhaError,
            ConfigurationError,
            InvalidConfigurationError,
            ValidationError,
            InvalidInputError,
            ValidationFailedError,
            EmbeddingError,
            EmbeddingUnavailableError,
            EmbeddingRequestFailedError,
            RetrievalError,
            DimensionMismatchError,
            LLMError,
            ProviderUnavailableError,
            StoreError,
            NotFoundError,
            PartialBatchInvalidError,
            UnauthorizedError,
            ForbiddenError,
        ]
        codes = {cls("test").error_code for cls in classes}
        assert len(codes) == len(classes)


class TestExceptionToDict:
    """Tests for exception JSON serialization."""

    def test_to_dict_basic_structure(self):
        result = NotFoundError("Scheme not found").to_dict()

        assert result["error"] == {
            "type": "NotFoundError",
            "code": "SUV_STO_002",
            "message": "Scheme not found",
        }
        assert result["message"] == "Scheme not found"
        for key in ("class", "method", "file", "line", "timestamp"):
            assert key in result["location"]

    def test_to_dict_includes_context_and_cause(self):
        original = ValueError("Bad value")
        result = InvalidInputError("Invalid input", cause=original, context={"field": "answers"}).to_dict()

        assert result["context"] == {"field": "answers"}
        assert result["cause"] == {"type": "ValueError", "message": "Bad value"}

    def test_to_dict_excludes_trace_by_default(self):
        exc = InvalidInputError("Invalid input", cause=ValueError("x"))
        assert "stack_trace" not in exc.to_dict()

    def test_to_dict_is_json_serializable(self):
        exc = PartialBatchInvalidError("batch", context={"bill_ids": ["a", "b"]})
        assert isinstance(json.dumps(exc.to_dict()), str)


class TestExceptionHandler:
    """Tests for exception handler utilities."""

    def test_format_custom_exception(self):
        result = format_exception_json(UnauthorizedError("Please log in to continue."))
        assert result["error"]["type"] == "UnauthorizedError"
        assert result["error"]["code"] == "SUV_AUTH_001"
        assert result["message"] == "Please log in to continue."

    def test_format_standard_exception(self):
        try:
            raise ValueError("Standard error")
        except ValueError as e:
            result = format_exception_json(e)

        assert result["error"]["type"] == "ValueError"
        assert result["error"]["code"] == "PYTHON_ERR"
        assert result["message"] == "Standard error"
        assert result["location"]["file"] == "test_exceptions.py"

    def test_format_standard_exception_with_trace(self):
        try:
            raise RuntimeError("kaput")
        except RuntimeError as e:
            result = format_exception_json(e, include_trace=True)

        assert any("RuntimeError: kaput" in line for line in result["stack_trace"])

    def test_format_adds_extra_context(self):
        exc = NotFoundError("Test", context={"scheme_id": "x"})
        result = format_exception_json(exc, extra_context={"path": "/api/schemes/x"})

        assert result["context"] == {"scheme_id": "x", "path": "/api/schemes/x"}

    def test_get_error_code(self):
        assert get_error_code(EmbeddingUnavailableError("test")) == "SUV_EMB_002"
        assert get_error_code(ValidationFailedError("test")) == "SUV_VAL_003"
        assert get_error_code(RuntimeError("test")) == "PYTHON_ERR"

    def test_client_errors_logged_as_warning(self, caplog):
        log = logging.getLogger("suvidha.test.exceptions")
        with caplog.at_level(logging.DEBUG, logger="suvidha.test.exceptions"):
            log_exception(NotFoundError("gone"), log=log)
            log_exception(StoreError("disk"), log=log)

        levels = [record.levelno for record in caplog.records]
        assert levels == [logging.WARNING, logging.ERROR]
        assert '"SUV_STO_002"' in caplog.records[0].getMessage()


class TestHTTPStatusCodes:
    """Tests for HTTP status code mapping."""

    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (InvalidInputError("x"), 400),
            (ValidationFailedError("x"), 400),
            (UnauthorizedError("x"), 401),
            (ForbiddenError("x"), 403),
            (NotFoundError("x"), 404),
            (PartialBatchInvalidError("x"), 409),
            (EmbeddingUnavailableError("x"), 503),
            (EmbeddingRequestFailedError("x"), 503),
            (ProviderUnavailableError("x"), 503),
            (StoreError("x"), 500),
            (InvalidConfigurationError("x"), 500),
            (SuvidhaError("x"), 500),
            (ValueError("x"), 400),
            (ConnectionError("x"), 503),
            (TimeoutError("x"), 503),
            (RuntimeError("x"), 500),
        ],
    )
    def test_status_mapping(self, exc, status):
        assert get_http_status_code(exc) == status


class TestExceptionCatchPatterns:
    """Tests for exception catching patterns."""

    def test_catch_by_base_class(self):
        for exc in (NotFoundError("a"), ProviderUnavailableError("b"), InvalidInputError("c")):
            try:
                raise exc
            except SuvidhaError as caught:
                assert caught.error_code.startswith("SUV_")

    def test_context_preserved_through_raise_chain(self):
        try:
            try:
                raise ConnectionError("Network down")
            except ConnectionError as e:
                raise EmbeddingRequestFailedError(
                    "Failed to embed", cause=e, context={"attempts": 3}
                ) from e
        except EmbeddingRequestFailedError as exc:
            assert exc.extra_context["attempts"] == 3
            assert isinstance(exc.cause, ConnectionError)
            assert exc.stack_trace is not None
