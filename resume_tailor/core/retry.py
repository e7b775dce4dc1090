"""Retry logic with exponential backoff for AI backend calls."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    ``max_retries`` counts retries, so a call is attempted at most
    ``max_retries + 1`` times.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    exponential_base: float = 2.0
    max_delay: float = 60.0
    jitter_factor: float = 0.0  # e.g. 0.2 for ±20% random variation

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """Delay before retrying after the given (1-based) failed attempt."""
        delay = min(self.base_delay * (self.exponential_base ** (attempt - 1)), self.max_delay)
        if self.jitter_factor:
            delay += delay * self.jitter_factor * (2 * random.random() - 1)
        return max(delay, 0.0)


class TransientError(Exception):
    """Exception for transient errors that should be retried."""


class PermanentError(Exception):
    """Exception for permanent errors that should not be retried."""


class MaxRetriesExceeded(Exception):
    """Every attempt failed with a transient error."""

    def __init__(self, attempts: int, last_error: Optional[BaseException]) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"max retries exceeded after {attempts} attempts: {type(last_error).__name__}")


async def retry_with_backoff(
    func: Callable[..., T],
    config: RetryConfig,
    *args: Any,
    **kwargs: Any,
) -> T:
    """
    Execute a function with exponential backoff retry logic.

    Args:
        func: Async (or plain) callable to execute
        config: Retry configuration
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result from successful function execution

    Raises:
        PermanentError: first non-transient failure, chained to the cause
        MaxRetriesExceeded: every attempt failed transiently
        asyncio.CancelledError: the enclosing task was cancelled
    """
    last_exception: Optional[BaseException] = None

    for attempt in range(1, config.max_attempts + 1):
        try:
            if asyncio.iscoroutinefunction(func):
                result = await func(*args, **kwargs)
            else:
                result = func(*args, **kwargs)
                if asyncio.iscoroutine(result):
                    result = await result

            if attempt > 1:
                logger.info("Retry succeeded on attempt %d", attempt)
            return result

        except asyncio.CancelledError:
            raise
        except PermanentError:
            logger.error("Permanent error encountered, not retrying")
            raise

        except Exception as e:
            last_exception = e

            if not is_transient_error(e):
                logger.error("Permanent error encountered, not retrying (%s)", type(e).__name__)
                raise PermanentError(str(e)) from e

            if attempt == config.max_attempts:
                logger.error("All %d attempts failed", config.max_attempts)
                raise MaxRetriesExceeded(attempt, e) from e

            delay = config.delay_for(attempt)
            logger.warning(
                "Attempt %d/%d failed (%s). Retrying in %.2fs...",
                attempt,
                config.max_attempts,
                type(e).__name__,
                delay,
            )

            # A cancelled task raises CancelledError out of the sleep immediately.
            await asyncio.sleep(delay)

    raise MaxRetriesExceeded(config.max_attempts, last_exception)


def is_transient_error(error: BaseException) -> bool:
    """
    Determine if an error is transient and should be retried.

    Args:
        error: Exception to check

    Returns:
        True if error is transient, False otherwise
    """
    if isinstance(error, TransientError):
        return True

    if isinstance(error, (ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return True

    # openai.APIStatusError exposes status_code; google-genai APIError exposes code.
    for attr in ("status_code", "code"):
        status = getattr(error, attr, None)
        if isinstance(status, int) and not isinstance(status, bool):
            return status in TRANSIENT_STATUS_CODES

    error_msg = str(error).lower()
    transient_patterns = [
        "timeout",
        "timed out",
        "connection",
        "rate limit",
        "rate_limit",
        "too many requests",
        "429",
        "500",
        "502",
        "503",
        "504",
        "ssl",
        "eof",
        "broken pipe",
        "temporary",
        "unavailable",
        "overloaded",
    ]

    return any(pattern in error_msg for pattern in transient_patterns)
