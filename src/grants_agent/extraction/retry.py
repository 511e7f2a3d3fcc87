"""Retry policy for model calls: fixed attempt limit, exponential backoff."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from tenacity import AsyncRetrying, RetryCallState, before_sleep_log, stop_after_attempt

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Waits 2^attempt seconds after each failed attempt (2s, 4s, ...).
    `sleep` is injectable so tests can run against a fake clock.
    """

    max_attempts: int = 3
    base_delay: float = 2.0
    sleep: SleepFn = field(default=asyncio.sleep, compare=False)

    def backoff(self, attempt: int) -> float:
        """Seconds to wait after the given 1-based failed attempt."""
        return self.base_delay * 2 ** (attempt - 1)

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.backoff(retry_state.attempt_number)

    def with_attempts(self, max_attempts: int) -> "RetryPolicy":
        return RetryPolicy(max_attempts=max_attempts, base_delay=self.base_delay, sleep=self.sleep)

    def retrying(self) -> AsyncRetrying:
        """Iterate attempts; the final failure is re-raised unchanged."""
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            sleep=self.sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
