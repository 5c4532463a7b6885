"""Error taxonomy shared by every network-facing component.

Every failure that leaves a fetch, parse or index operation is an ``AppError``
carrying one of the ``ErrorCode`` kinds, the HTTP-like status, the wrapped cause
and a context map describing the input that failed.
"""

import asyncio
import logging
import traceback
from enum import Enum
from typing import Any, Dict, Optional

import aiohttp

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Error kinds raised by acquisition components."""

    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    NOT_FOUND = "NOT_FOUND"
    SERVER_ERROR = "SERVER_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


RETRYABLE_CODES = frozenset(
    {ErrorCode.NETWORK_ERROR, ErrorCode.TIMEOUT, ErrorCode.SERVER_ERROR}
)


class AppError(Exception):
    """Classified application error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        original_error: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.original_error = original_error
        self.context = context or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"AppError(code={self.code.value}, status_code={self.status_code}, message={self.message!r})"

    def to_dict(self, include_stack: bool = False) -> Dict[str, Any]:
        """Convert error to dictionary for serialization."""
        data: Dict[str, Any] = {
            "name": self.__class__.__name__,
            "message": self.message,
            "code": self.code.value,
            "status_code": self.status_code,
            "context": self.context,
        }
        if self.original_error is not None:
            data["original_error"] = str(self.original_error)
        if include_stack and self.__traceback__ is not None:
            data["stack"] = "".join(traceback.format_tb(self.__traceback__))
        return data


def is_retryable(error: BaseException) -> bool:
    """Network, timeout and server failures are transient; everything else is terminal."""
    return isinstance(error, AppError) and error.code in RETRYABLE_CODES


def network_error(
    message: str,
    original_error: Optional[BaseException] = None,
    context: Optional[Dict[str, Any]] = None,
) -> AppError:
    return AppError(message, ErrorCode.NETWORK_ERROR, 0, original_error, context)


def timeout_error(
    message: str = "Request timed out",
    original_error: Optional[BaseException] = None,
    context: Optional[Dict[str, Any]] = None,
) -> AppError:
    return AppError(message, ErrorCode.TIMEOUT, 408, original_error, context)


def not_found_error(
    resource: str,
    original_error: Optional[BaseException] = None,
    context: Optional[Dict[str, Any]] = None,
) -> AppError:
    return AppError(
        f"Resource not found: {resource}", ErrorCode.NOT_FOUND, 404, original_error, context
    )


def server_error(
    message: str,
    status_code: int = 500,
    original_error: Optional[BaseException] = None,
    context: Optional[Dict[str, Any]] = None,
) -> AppError:
    return AppError(message, ErrorCode.SERVER_ERROR, status_code, original_error, context)


def validation_error(
    message: str,
    original_error: Optional[BaseException] = None,
    context: Optional[Dict[str, Any]] = None,
) -> AppError:
    return AppError(message, ErrorCode.VALIDATION_ERROR, 400, original_error, context)


def parse_error(
    message: str,
    original_error: Optional[BaseException] = None,
    context: Optional[Dict[str, Any]] = None,
) -> AppError:
    return AppError(message, ErrorCode.PARSE_ERROR, 422, original_error, context)


def invalid_input_error(
    message: str,
    original_error: Optional[BaseException] = None,
    context: Optional[Dict[str, Any]] = None,
) -> AppError:
    return AppError(message, ErrorCode.INVALID_INPUT, 400, original_error, context)


def internal_error(
    message: str,
    original_error: Optional[BaseException] = None,
    context: Optional[Dict[str, Any]] = None,
) -> AppError:
    return AppError(message, ErrorCode.INTERNAL_ERROR, 500, original_error, context)


def classify_http_status(
    status: int, url: Optional[str] = None, context: Optional[Dict[str, Any]] = None
) -> AppError:
    """Map a non-success HTTP status to an error kind."""
    ctx = {"url": url, "status": status, **(context or {})}
    if status == 404:
        return not_found_error(url or "unknown", context=ctx)
    if status >= 500:
        return server_error(f"Server error {status}", status_code=status, context=ctx)
    return AppError(f"HTTP error {status}", ErrorCode.NETWORK_ERROR, status, context=ctx)


def classify_network_error(
    error: BaseException, url: Optional[str] = None, context: Optional[Dict[str, Any]] = None
) -> AppError:
    """Classify a transport exception raised while talking to a remote server.

    Already-classified errors pass through unchanged.
    """
    if isinstance(error, AppError):
        return error

    ctx = {"url": url, **(context or {})}

    if isinstance(error, (asyncio.TimeoutError, aiohttp.ServerTimeoutError)):
        return timeout_error(original_error=error, context=ctx)

    if isinstance(error, aiohttp.ClientResponseError):
        classified = classify_http_status(error.status, url, context)
        classified.original_error = error
        return classified

    if isinstance(error, aiohttp.ClientConnectionError):
        return network_error("No response received from server", error, ctx)

    return network_error(str(error) or error.__class__.__name__, error, ctx)
