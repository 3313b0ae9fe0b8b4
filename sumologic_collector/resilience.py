"""Retry handling for the Sumo Logic collector client.

Connect timeouts reported by the transport are retried with a delay that
starts at zero and grows by a fixed step after every failure. All attempts
share one overall deadline; once it has elapsed the call fails with
``TimeoutError``, including when the next backoff would end past it.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

import httpx
import structlog

from .exceptions import TimeoutError


logger = structlog.get_logger(__name__)


class DeadlineRetry:
    """Runs an async operation under a deadline, retrying connect timeouts."""

    def __init__(
        self,
        timeout: Optional[float],
        backoff_step: float = 10.0,
        retryable_exceptions: Tuple[Type[BaseException], ...] = (httpx.ConnectTimeout,),
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """Initialize the retry wrapper.

        Args:
            timeout: Overall deadline in seconds, ``None`` disables retries
            backoff_step: Seconds added to the delay after each failed attempt
            retryable_exceptions: Transport errors that trigger a retry
            clock: Monotonic time source
            sleep: Coroutine used to wait between attempts
        """
        if timeout is not None and timeout <= 0:
            raise ValueError("Timeout must be positive")
        if backoff_step < 0:
            raise ValueError("backoff_step must be non-negative")

        self.timeout = timeout
        self.backoff_step = backoff_step
        self.retryable_exceptions = retryable_exceptions
        self._clock = clock
        self._sleep = sleep

    async def execute(
        self,
        func: Callable[..., Awaitable[Any]],
        *args,
        operation: str = "request",
        **kwargs
    ) -> Any:
        """Execute ``func`` with deadline and retry handling.

        Args:
            func: Coroutine function performing one attempt
            *args: Positional arguments for function
            operation: Operation name used in logs and errors
            **kwargs: Keyword arguments for function

        Returns:
            Result of the first successful attempt

        Raises:
            TimeoutError: If the deadline elapses before an attempt succeeds
            Exception: Any non-retryable exception raised by ``func``
        """
        if self.timeout is None:
            return await func(*args, **kwargs)

        started = self._clock()
        delay = 0.0
        attempt = 0

        while True:
            remaining = self._remaining(started)
            if remaining <= 0:
                raise self._deadline_exceeded(operation, attempt)

            attempt += 1
            try:
                return await asyncio.wait_for(func(*args, **kwargs), timeout=remaining)
            except asyncio.TimeoutError as e:
                raise self._deadline_exceeded(operation, attempt) from e
            except self.retryable_exceptions as e:
                remaining = self._remaining(started)
                if delay >= remaining:
                    raise self._deadline_exceeded(operation, attempt) from e

                logger.warning(
                    "Sumo Logic API timed out, retrying",
                    operation=operation,
                    attempt=attempt,
                    delay=delay,
                    remaining=remaining,
                    exception_type=type(e).__name__
                )
                await self._sleep(delay)
                delay += self.backoff_step

    def _remaining(self, started: float) -> float:
        return self.timeout - (self._clock() - started)

    def _deadline_exceeded(self, operation: str, attempts: int) -> TimeoutError:
        logger.error(
            "Operation timed out",
            operation=operation,
            timeout=self.timeout,
            attempts=attempts
        )
        return TimeoutError(
            f"Operation '{operation}' timed out after {self.timeout}s",
            timeout_seconds=self.timeout,
            operation=operation,
            context={"attempts": attempts}
        )
