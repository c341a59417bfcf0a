"""WindowScheduler: Fixed-cadence execution with bounded, deadline-aware retry.

Every window runs one attempt of the window body. A failed attempt is retried
after ``retry_delay`` while the retry policy allows it and more than
``retry_delay`` of the window remains; otherwise the window is abandoned.
After the window ends the scheduler sleeps for whatever is left of it. A
window that overran starts the next one immediately: drift accumulates and
missed windows are never caught up.

Only one window, and within it only one attempt, is ever in flight.

.. code-block:: python

    >>> scheduler = WindowScheduler(window_length=30, retry=RetryPolicy())
    >>> await scheduler.run(relay_prices)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable

from .RelayerConfig import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class Window:
    """State of one scheduling window; discarded when the window ends.

    :ivar start: Clock value at window start.
    :ivar attempts: Retries performed so far (0 during the first attempt).
    :ivar success: Whether an attempt succeeded.
    :ivar last_error: Error of the most recent failed attempt.
    """

    start: float
    attempts: int = 0
    success: bool = False
    last_error: Exception | None = None


WindowBody = Callable[[Window], Awaitable[None]]
WindowHook = Callable[[Window], Awaitable[None]]


class WindowScheduler:
    """Single-flight window loop.

    :ivar window_length: Seconds per window.
    :ivar retry: Retry policy applied within each window.
    """

    def __init__(
        self,
        window_length: float,
        retry: RetryPolicy,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the scheduler.

        :param window_length: Seconds per window.
        :param retry: Retry policy.
        :param clock: Monotonic clock in seconds.
        :param sleep: Coroutine function used for all waits.
        """
        self.window_length = window_length
        self.retry = retry
        self.clock = clock
        self.sleep = sleep
        self._lock = asyncio.Lock()
        self._stopped = False

    def remaining(self, window: Window) -> float:
        """Seconds left in a window (negative once overrun)."""
        return self.window_length - (self.clock() - window.start)

    def should_retry(self, window: Window) -> bool:
        """Decide whether a failed attempt is retried within the window."""
        if not self.retry.enabled:
            return False
        if window.attempts >= self.retry.max_retries:
            return False
        return self.remaining(window) > self.retry.retry_delay

    def stop(self) -> None:
        """Stop the loop once the current window ends."""
        self._stopped = True

    async def run_window(self, body: WindowBody) -> Window:
        """Run a single window: attempts and retries, no trailing sleep.

        :param body: Coroutine function performing one attempt. Raising any
            exception marks the attempt as failed.
        :returns: The finished window.
        """
        async with self._lock:
            window = Window(start=self.clock())
            logger.info(
                f"Starting new execution window at "
                f"{datetime.now(timezone.utc).isoformat(timespec='seconds')}"
            )

            while True:
                try:
                    await body(window)
                except Exception as e:
                    window.last_error = e
                    if not self.should_retry(window):
                        logger.error(
                            f"Window abandoned after {window.attempts + 1} attempt(s): "
                            f"{type(e).__name__}: {e}"
                        )
                        return window
                    logger.warning(
                        f"Attempt {window.attempts + 1} failed: {type(e).__name__}: {e}. "
                        f"Retrying in {self.retry.retry_delay}s "
                        f"({self.retry.max_retries - window.attempts} retries left)"
                    )
                    await self.sleep(self.retry.retry_delay)
                    window.attempts += 1
                    continue

                window.success = True
                return window

    async def run(
        self,
        body: WindowBody,
        window_limit: int | None = None,
        on_window_end: WindowHook | None = None,
    ) -> None:
        """Run windows back to back until stopped.

        Errors raised by ``body`` or ``on_window_end`` never end the loop.

        :param body: Coroutine function performing one attempt.
        :param window_limit: Stop after this many windows (None: run forever).
        :param on_window_end: Optional coroutine function called with each
            finished window, before the remainder sleep.
        """
        logger.info(
            f"Starting window-based main loop - processing every {self.window_length}s"
        )

        count = 0
        while not self._stopped:
            window = await self.run_window(body)
            count += 1

            if on_window_end is not None:
                try:
                    await on_window_end(window)
                except Exception as e:
                    logger.error(f"Window end handler failed: {e}")

            if self._stopped or (window_limit is not None and count >= window_limit):
                break

            elapsed = self.clock() - window.start
            remaining = self.window_length - elapsed
            if remaining > 0:
                logger.info(
                    f"Execution took {elapsed:.3f}s, waiting {remaining:.3f}s until next window"
                )
                await self.sleep(remaining)
            else:
                logger.info(
                    f"Execution took {elapsed:.3f}s (longer than window), "
                    "starting next execution immediately"
                )
