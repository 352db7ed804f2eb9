"""
Sliding-window rate limiter for outbound API calls.

One instance is owned by each API client, so its call window is private
to that client and never shared between services.
"""

import logging
import math
import time
from collections import deque
from typing import Callable, Deque

logger = logging.getLogger(__name__)

DEFAULT_MAX_CALLS = 3
DEFAULT_WINDOW_SECONDS = 10.0
DEFAULT_BUFFER_SECONDS = 0.1


class RateLimiter:
    """Admits at most ``max_calls`` calls in any rolling ``window_seconds``.

    ``acquire()`` is called before every request. When the window is full the
    caller sleeps until the oldest recorded call leaves the window, plus a
    small buffer, then the call is recorded as admitted.

    Args:
        max_calls: Maximum admitted calls per window
        window_seconds: Length of the rolling window
        buffer_seconds: Extra wait added on top of the computed delay
        clock: Monotonic time source
        sleep: Blocking sleep function
    """

    def __init__(
        self,
        max_calls: int = DEFAULT_MAX_CALLS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        buffer_seconds: float = DEFAULT_BUFFER_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self.buffer_seconds = buffer_seconds
        self._clock = clock
        self._sleep = sleep
        self._calls: Deque[float] = deque()

    def _prune(self, now: float) -> None:
        while self._calls and now - self._calls[0] >= self.window_seconds:
            self._calls.popleft()

    @property
    def in_flight(self) -> int:
        """Number of recorded calls still inside the window"""
        self._prune(self._clock())
        return len(self._calls)

    def acquire(self) -> float:
        """Wait for a free slot and record the call.

        Returns:
            float: The recorded admission timestamp (pass to ``refund``)
        """
        now = self._clock()
        self._prune(now)

        if len(self._calls) >= self.max_calls:
            oldest = self._calls[0]
            wait_time = self.window_seconds - (now - oldest) + self.buffer_seconds
            logger.info(
                f"⏳ Rate limit: waiting {math.ceil(wait_time)} seconds before next API call..."
            )
            self._sleep(wait_time)
            now = self._clock()
            self._prune(now)

        self._calls.append(now)
        return now

    def refund(self, timestamp: float) -> None:
        """Give back a slot for a call that never left the process"""
        try:
            self._calls.remove(timestamp)
        except ValueError:
            # Already pruned out of the window
            pass
