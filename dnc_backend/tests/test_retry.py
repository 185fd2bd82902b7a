"""
Pytest test module for the retry policy.

Test Classes:
- TestBackoff: Delay schedule
- TestRetryRun: Attempts, success after failures, exhaustion
"""

from typing import List

import pytest

from dnc_backend.core.exceptions import RetryExhaustedError
from dnc_backend.services.retry import RetryPolicy


class TestBackoff:
    """Delay after the n-th failure is 2^n * base milliseconds."""

    def test_default_schedule(self) -> None:
        policy = RetryPolicy()

        assert policy.backoff_seconds(1) == pytest.approx(0.2)
        assert policy.backoff_seconds(2) == pytest.approx(0.4)

    def test_from_settings(self, mock_settings) -> None:
        policy = RetryPolicy.from_settings(mock_settings)

        assert policy.max_attempts == 3
        assert policy.base_delay_ms == 100

    @pytest.mark.parametrize("attempts,delay", [(0, 100), (3, -1)])
    def test_invalid_configuration(self, attempts: int, delay: int) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=attempts, base_delay_ms=delay)


class TestRetryRun:
    """RetryPolicy.run retries failing operations up to max_attempts."""

    @pytest.mark.asyncio
    async def test_success_first_try(
        self,
        no_wait_retry_policy: RetryPolicy,
        recorded_sleeps: List[float],
    ) -> None:
        async def operation() -> str:
            return "ok"

        assert await no_wait_retry_policy.run(operation) == "ok"
        assert recorded_sleeps == []

    @pytest.mark.asyncio
    async def test_success_after_failures(
        self,
        no_wait_retry_policy: RetryPolicy,
        recorded_sleeps: List[float],
    ) -> None:
        attempts: List[int] = []

        async def operation() -> int:
            attempts.append(1)
            if len(attempts) < 3:
                raise ConnectionError("temporary")
            return len(attempts)

        assert await no_wait_retry_policy.run(operation) == 3
        assert recorded_sleeps == [pytest.approx(0.2), pytest.approx(0.4)]

    @pytest.mark.asyncio
    async def test_exhaustion_raises_with_cause(
        self,
        no_wait_retry_policy: RetryPolicy,
        recorded_sleeps: List[float],
    ) -> None:
        attempts: List[int] = []

        async def operation() -> None:
            attempts.append(1)
            raise ConnectionError("still down")

        with pytest.raises(RetryExhaustedError) as exc_info:
            await no_wait_retry_policy.run(operation, description="upsert")

        assert len(attempts) == 3
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.cause, ConnectionError)
        # No sleep after the final attempt
        assert len(recorded_sleeps) == 2

    @pytest.mark.asyncio
    async def test_single_attempt_policy(self) -> None:
        async def _sleep(delay: float) -> None:
            raise AssertionError("should not sleep")

        policy = RetryPolicy(max_attempts=1, sleep=_sleep)

        async def operation() -> None:
            raise ValueError("bad")

        with pytest.raises(RetryExhaustedError):
            await policy.run(operation)
