"""Retry policy and execution loop for unreliable external calls"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar
from finsight_gateway.domain.exceptions import (
    BureauAPIError,
    TransientBureauError,
    BureauRetriesExhaustedError,
)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Pure description of how often and how patiently to retry.

    Backoff is base^attempt seconds: 2s after attempt 1, 4s after attempt 2, ...
    """

    max_attempts: int = 3
    backoff_base: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def backoff_for_attempt(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt"""
        return self.backoff_base ** attempt

    def is_retryable(self, error: Exception) -> bool:
        return isinstance(error, TransientBureauError)

    def has_attempts_left(self, attempt: int) -> bool:
        return attempt < self.max_attempts


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """
    Run operation until it succeeds or the policy gives up.

    Raises:
        BureauAPIError: non-retryable errors immediately, as raised
        BureauRetriesExhaustedError: after max_attempts retryable failures
    """
    last_error: BureauAPIError | None = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except BureauAPIError as e:
            if not policy.is_retryable(e):
                raise
            last_error = e

            if not policy.has_attempts_left(attempt):
                break

            delay = policy.backoff_for_attempt(attempt)
            logger.warning(
                f"Bureau call attempt {attempt} failed, retrying in {delay}s: {e.message}",
                extra={"attempt": attempt, "delay_seconds": delay, "status_code": e.status_code},
            )
            await sleep(delay)

    raise BureauRetriesExhaustedError(policy.max_attempts, last_error)
