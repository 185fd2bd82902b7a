"""
Retry Policy

Bounded retry with exponential backoff for batched store writes. The policy
is configured once (from Settings) and shared by every batched write path.

Backoff:
    delay after the n-th failed attempt = 2^n * base_delay_ms milliseconds

With the defaults (3 attempts, 100 ms base) a failing operation is tried at
t=0, t=200ms and t=600ms, then RetryExhaustedError is raised.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from dnc_backend.core.config import Settings
from dnc_backend.core.exceptions import RetryExhaustedError


logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry configuration and runner.

    Attributes:
        max_attempts: Total attempts, including the first one.
        base_delay_ms: Base of the exponential backoff in milliseconds.
        sleep: Awaitable sleep function; replaced in tests.
    """
    max_attempts: int = 3
    base_delay_ms: int = 100
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.base_delay_ms < 0:
            raise ValueError(f"base_delay_ms must not be negative, got {self.base_delay_ms}")

    @classmethod
    def from_settings(cls, settings: Settings) -> 'RetryPolicy':
        return cls(
            max_attempts=settings.upsert_max_attempts,
            base_delay_ms=settings.upsert_backoff_base_ms,
        )

    def backoff_seconds(self, failed_attempts: int) -> float:
        """Delay before the next attempt after failed_attempts failures."""
        return (2 ** failed_attempts) * self.base_delay_ms / 1000.0

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "operation") -> T:
        """
        Run operation until it succeeds or attempts run out.

        Args:
            operation: Zero-argument coroutine function to call per attempt.
            description: Label used in log messages.

        Returns:
            The operation's result from the first successful attempt.

        Raises:
            RetryExhaustedError: If every attempt raised. The last error is
                attached as cause.
        """
        failed_attempts = 0

        while True:
            try:
                return await operation()
            except Exception as e:
                failed_attempts += 1

                if failed_attempts >= self.max_attempts:
                    logger.error(f"{description} failed after {failed_attempts} attempts: {e}")
                    raise RetryExhaustedError(
                        f"{description} failed after {failed_attempts} attempts: {e}",
                        attempts=failed_attempts,
                        cause=e,
                    ) from e

                delay = self.backoff_seconds(failed_attempts)
                logger.warning(
                    f"{description} failed (attempt {failed_attempts}/{self.max_attempts}), "
                    f"retrying in {delay * 1000:.0f}ms: {e}"
                )
                await self.sleep(delay)


__all__ = [
    'RetryPolicy',
]
