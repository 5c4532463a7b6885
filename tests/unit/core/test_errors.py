"""Unit tests for the error taxonomy and transport classification."""

import asyncio

import aiohttp
import pytest

from docs_ingest.core.errors import (
    AppError,
    ErrorCode,
    classify_http_status,
    classify_network_error,
    internal_error,
    invalid_input_error,
    is_retryable,
    network_error,
    not_found_error,
    parse_error,
    server_error,
    timeout_error,
    validation_error,
)


class TestAppError:
    """Test AppError construction and serialization."""

    def test_defaults(self):
        """Test an AppError without explicit kind is an internal error."""
        error = AppError("boom")

        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.status_code == 500
        assert error.context == {}
        assert str(error) == "boom"

    def test_to_dict_includes_cause(self):
        """Test serialization carries the original error message."""
        cause = ValueError("bad value")
        error = parse_error("Could not parse", cause, {"html": "<p>"})

        data = error.to_dict()

        assert data["name"] == "AppError"
        assert data["code"] == "PARSE_ERROR"
        assert data["status_code"] == 422
        assert data["context"] == {"html": "<p>"}
        assert data["original_error"] == "bad value"
        assert "stack" not in data

    def test_to_dict_with_stack(self):
        """Test the stack is included only on request for raised errors."""
        try:
            raise internal_error("failed")
        except AppError as e:
            data = e.to_dict(include_stack=True)

        assert "stack" in data


class TestFactories:
    """Test factory helpers set kind and status."""

    @pytest.mark.parametrize(
        "error,code,status",
        [
            (network_error("x"), ErrorCode.NETWORK_ERROR, 0),
            (timeout_error(), ErrorCode.TIMEOUT, 408),
            (not_found_error("thing"), ErrorCode.NOT_FOUND, 404),
            (server_error("x", 503), ErrorCode.SERVER_ERROR, 503),
            (validation_error("x"), ErrorCode.VALIDATION_ERROR, 400),
            (parse_error("x"), ErrorCode.PARSE_ERROR, 422),
            (invalid_input_error("x"), ErrorCode.INVALID_INPUT, 400),
            (internal_error("x"), ErrorCode.INTERNAL_ERROR, 500),
        ],
    )
    def test_factory_kind_and_status(self, error, code, status):
        assert error.code == code
        assert error.status_code == status

    def test_messages(self):
        assert timeout_error().message == "Request timed out"
        assert not_found_error("https://x.test/a").message == "Resource not found: https://x.test/a"

    def test_retryable_kinds(self):
        """Test only network, timeout and server failures are retryable."""
        assert is_retryable(network_error("x"))
        assert is_retryable(timeout_error())
        assert is_retryable(server_error("x"))
        assert not is_retryable(not_found_error("x"))
        assert not is_retryable(validation_error("x"))
        assert not is_retryable(parse_error("x"))
        assert not is_retryable(ValueError("x"))


class TestClassification:
    """Test HTTP status and transport exception classification."""

    def test_http_status_404(self):
        error = classify_http_status(404, "https://docs.test/missing")

        assert error.code == ErrorCode.NOT_FOUND
        assert error.status_code == 404
        assert error.context["url"] == "https://docs.test/missing"

    def test_http_status_server_error(self):
        error = classify_http_status(502, "https://docs.test")

        assert error.code == ErrorCode.SERVER_ERROR
        assert error.status_code == 502

    def test_http_status_other(self):
        error = classify_http_status(418, "https://docs.test")

        assert error.code == ErrorCode.NETWORK_ERROR
        assert error.status_code == 418
        assert error.message == "HTTP error 418"

    def test_timeout(self):
        error = classify_network_error(asyncio.TimeoutError(), "https://docs.test")

        assert error.code == ErrorCode.TIMEOUT
        assert error.status_code == 408
        assert error.message == "Request timed out"

    def test_connection_failure(self):
        error = classify_network_error(aiohttp.ClientConnectionError("refused"))

        assert error.code == ErrorCode.NETWORK_ERROR
        assert error.status_code == 0
        assert error.message == "No response received from server"

    def test_other_exception(self):
        error = classify_network_error(RuntimeError("weird"))

        assert error.code == ErrorCode.NETWORK_ERROR
        assert error.message == "weird"
        assert isinstance(error.original_error, RuntimeError)

    def test_app_error_passes_through(self):
        original = not_found_error("x")

        assert classify_network_error(original) is original
