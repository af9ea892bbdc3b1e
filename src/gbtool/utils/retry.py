"""Caller-side retry policy for API fetches.

The API client itself never retries. Commands that want another try on a
transport failure wrap their fetch in :func:`retry_transport`.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from gbtool.utils.errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 1,
        max_wait_seconds: float = 30,
        min_wait_seconds: float = 1,
        jitter: bool = True,
    ):
        """Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts (including initial)
            max_wait_seconds: Maximum wait time between retries
            min_wait_seconds: Minimum wait time between retries
            jitter: Whether to add jitter to wait times
        """
        self.max_attempts = max_attempts
        self.max_wait_seconds = max_wait_seconds
        self.min_wait_seconds = min_wait_seconds
        self.jitter = jitter


# Fast configuration for testing (minimal delays)
TEST_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    max_wait_seconds=0.05,
    min_wait_seconds=0.01,
    jitter=False,
)


def log_retry_attempt(retry_state: RetryCallState) -> None:
    """Log retry attempts.

    Args:
        retry_state: Tenacity retry state
    """
    if retry_state.outcome and retry_state.outcome.failed:
        exception = retry_state.outcome.exception()
        logger.warning(
            f"Attempt {retry_state.attempt_number} failed: "
            f"{type(exception).__name__}: {exception}"
        )


async def retry_transport(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
) -> T:
    """Run an async operation, retrying only on :class:`TransportError`.

    API errors, empty responses and not-found outcomes are never retried.

    Args:
        operation: Zero-argument coroutine factory
        config: Retry configuration; a single attempt when omitted

    Returns:
        The operation's result
    """
    config = config or RetryConfig()

    retrying = AsyncRetrying(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential_jitter(
            multiplier=config.min_wait_seconds,
            max=config.max_wait_seconds,
            jitter=config.max_wait_seconds if config.jitter else 0,
        ),
        retry=retry_if_exception_type(TransportError),
        before_sleep=log_retry_attempt,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await operation()
    raise AssertionError("unreachable")  # pragma: no cover
