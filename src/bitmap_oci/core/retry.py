"""
Retry Policy

A small collaborator describing how many times an async operation is
attempted and how long to wait between attempts. Callers decide which
exception types are retryable.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Tuple, Type, TypeVar

logger = logging.getLogger("bitmap.retry")

T = TypeVar("T")

# Maps a 1-indexed failed attempt number to the delay (seconds) before the next one.
Backoff = Callable[[int], float]


class RetryPolicy:
    """
    Retry an awaitable factory up to ``max_attempts`` times.

    The last exception is re-raised unchanged once attempts are exhausted,
    so callers see the same error type with or without retries.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff: Backoff | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.max_attempts = max_attempts
        self.backoff: Backoff = backoff or (lambda attempt: 0.0)
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def fixed(cls, max_attempts: int, delay: float) -> "RetryPolicy":
        return cls(max_attempts=max_attempts, backoff=lambda attempt: delay)

    @classmethod
    def exponential(
        cls,
        max_attempts: int,
        base: float,
        multiplier: float = 2.0,
        max_delay: float = 30.0,
    ) -> "RetryPolicy":
        """Delay ``base * multiplier^(attempt - 1)``, capped at ``max_delay``."""
        return cls(
            max_attempts=max_attempts,
            backoff=lambda attempt: min(base * (multiplier ** (attempt - 1)), max_delay),
        )

    @classmethod
    def none(cls) -> "RetryPolicy":
        return cls(max_attempts=1)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        description: str = "operation",
    ) -> T:
        """
        Await ``operation()`` until it succeeds or attempts run out.

        Only exceptions matching ``retry_on`` are retried; anything else
        propagates immediately.
        """
        attempt = 1
        while True:
            try:
                return await operation()
            except retry_on as exc:
                if attempt >= self.max_attempts:
                    raise
                delay = self.backoff(attempt)
                logger.warning(
                    "%s failed (%s), attempt %d/%d, retrying in %.2fs",
                    description,
                    type(exc).__name__,
                    attempt,
                    self.max_attempts,
                    delay,
                )
                if delay > 0:
                    await self._sleep(delay)
                attempt += 1
