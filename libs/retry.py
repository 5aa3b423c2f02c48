"""
Bounded retry policy for async operations.

A RetryPolicy bundles the three knobs of a retry loop (attempt cap, delay
function, retryable-error predicate) so the loop itself can be tested
without touching the network or the clock.

Usage:
    policy = RetryPolicy(
        max_attempts=3,
        delay=linear_backoff(0.5),
        retry_on=lambda exc: isinstance(exc, DuplicateKey),
    )
    result = await policy.run(insert_row)
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def linear_backoff(base_seconds: float) -> Callable[[int], float]:
    """Delay of ``base_seconds * attempt`` after the given attempt number."""

    def _delay(attempt: int) -> float:
        return base_seconds * attempt

    return _delay


class RetryExhausted(Exception):
    """Raised when every attempt failed with a retryable error."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class RetryPolicy:
    """
    Retry an async callable with a fixed attempt cap.

    Attempts run strictly one after another: the backoff after attempt N
    completes before attempt N+1 starts. Non-retryable errors propagate
    immediately, retryable errors on the last attempt raise RetryExhausted.
    """

    def __init__(
        self,
        max_attempts: int,
        delay: Callable[[int], float],
        retry_on: Callable[[BaseException], bool],
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_retry: Optional[Callable[[int, BaseException], Awaitable[None]]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.delay = delay
        self.retry_on = retry_on
        self.sleep = sleep
        self.on_retry = on_retry

    async def run(self, operation: Callable[[int], Awaitable[T]]) -> T:
        """
        Run ``operation(attempt)`` until it succeeds or the policy gives up.

        Args:
            operation: coroutine function receiving the 1-based attempt number

        Returns:
            Whatever the successful attempt returned

        Raises:
            RetryExhausted: every attempt failed with a retryable error
            Exception: the first non-retryable error, unchanged
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation(attempt)
            except Exception as exc:
                if not self.retry_on(exc):
                    raise
                if attempt >= self.max_attempts:
                    raise RetryExhausted(attempt, exc) from exc

                wait = self.delay(attempt)
                logger.warning(
                    "Attempt %d/%d failed with retryable error (%s); retrying in %.2fs",
                    attempt,
                    self.max_attempts,
                    exc,
                    wait,
                )
                if self.on_retry is not None:
                    await self.on_retry(attempt, exc)
                await self.sleep(wait)

        # max_attempts >= 1 guarantees the loop returns or raises
        raise AssertionError("unreachable")
