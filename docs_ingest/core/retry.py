"""Retry executor with linear backoff."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .errors import AppError, ErrorCode, internal_error, is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def default_should_retry(error: AppError) -> bool:
    """Retry transient network failures; never missing resources or rejected content."""
    if error.code in (ErrorCode.NOT_FOUND, ErrorCode.VALIDATION_ERROR):
        return False
    return is_retryable(error)


class RetryConfig(BaseModel):
    """Retry policy for a single operation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    max_retries: int = Field(default=3, ge=1, description="Total attempts, including the first")
    retry_delay: float = Field(
        default=1.0, ge=0, description="Seconds; the wait after attempt N is N * retry_delay"
    )
    should_retry: Optional[Callable[[AppError], bool]] = Field(
        default=None, description="Predicate deciding whether a classified error is retried"
    )


async def with_retry(
    operation: Callable[[int], Awaitable[T]],
    config: Optional[RetryConfig] = None,
) -> T:
    """Run ``operation(attempt)`` until it succeeds or the policy gives up.

    Args:
        operation: Async callable receiving the 1-based attempt number
        config: Retry policy; defaults to three attempts one second apart

    Returns:
        The operation result on success

    Raises:
        AppError: The last classified error, unchanged
    """
    config = config or RetryConfig()
    should_retry = config.should_retry or default_should_retry

    for attempt in range(1, config.max_retries + 1):
        try:
            return await operation(attempt)
        except AppError as e:
            error = e
        except Exception as e:
            error = internal_error("Operation failed", e, {"attempt": attempt})

        if attempt >= config.max_retries or not should_retry(error):
            raise error

        delay = config.retry_delay * attempt
        logger.warning(
            f"Attempt {attempt}/{config.max_retries} failed with {error.code.value}: "
            f"{error.message}. Retrying in {delay:.1f}s..."
        )
        await asyncio.sleep(delay)

    # max_retries >= 1 guarantees the loop either returns or raises
    raise internal_error("Retry loop exited without a result")


def retry_config_from(config: dict, **overrides: Any) -> RetryConfig:
    """Build a RetryConfig from a component config dictionary."""
    return RetryConfig(
        max_retries=overrides.get("max_retries", config.get("max_retries", 3)),
        retry_delay=overrides.get("retry_delay", config.get("retry_delay", 1.0)),
        should_retry=overrides.get("should_retry"),
    )
