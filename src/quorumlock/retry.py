"""
Randomized pauses between acquisition attempts.

Competing clients that fail to reach a quorum at the same moment would
collide again if they retried after the same fixed delay. Each pause is
therefore drawn uniformly from ``[retry_delay_ms / 2, retry_delay_ms]``.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncIterator, Awaitable, Callable

logger = logging.getLogger(__name__)


def calculate_jittered_delay(retry_delay_ms: float) -> float:
    """
    Draw one retry pause in milliseconds.

    Example:
        >>> 100 <= calculate_jittered_delay(200) <= 200
        True
    """
    return random.uniform(retry_delay_ms / 2, retry_delay_ms)  # nosec B311 - not crypto


class RetryScheduler:
    """
    Bounded sequence of acquisition attempts separated by jittered pauses.

    Example:
        >>> scheduler = RetryScheduler(retry_count=3, retry_delay_ms=200)
        >>> async for attempt in scheduler.attempts():
        ...     if await try_once():
        ...         break
    """

    def __init__(
        self,
        retry_count: int,
        retry_delay_ms: float,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            retry_count: Total number of attempts (>= 1)
            retry_delay_ms: Maximum pause between attempts in milliseconds
            sleep: Coroutine function used to pause, taking seconds
        """
        if retry_count < 1:
            raise ValueError(f"retry_count must be >= 1, got {retry_count}.")
        if retry_delay_ms < 0:
            raise ValueError(f"retry_delay_ms must be >= 0, got {retry_delay_ms}.")
        self.retry_count = retry_count
        self.retry_delay_ms = retry_delay_ms
        self._sleep = sleep

    def next_delay_ms(self) -> float:
        """Draw the pause that precedes the next attempt."""
        return calculate_jittered_delay(self.retry_delay_ms)

    async def attempts(self) -> AsyncIterator[int]:
        """
        Yield attempt numbers 1..retry_count.

        There is no pause before the first attempt and none after the last.
        Leaving the loop early (break, return or cancellation) stops the
        sequence without sleeping again.
        """
        for attempt in range(1, self.retry_count + 1):
            if attempt > 1:
                delay_ms = self.next_delay_ms()
                logger.debug(
                    "Waiting before next lock attempt",
                    extra={"attempt": attempt, "delay_ms": delay_ms},
                )
                await self._sleep(delay_ms / 1000)
            yield attempt


__all__ = ["RetryScheduler", "calculate_jittered_delay"]
