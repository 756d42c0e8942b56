"""Single-slot rate limiter for remote calls."""

import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Enforces a minimum wall-clock interval between successive calls.

    This bounds call rate, not burst: only the time of the last call is kept.
    """

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the limiter.

        Args:
            interval: Minimum seconds between two calls
            clock: Monotonic time source
            sleep: Blocking sleep function
        """
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None

    def wait(self) -> float:
        """Block until the next call is allowed, then record it.

        Returns:
            Seconds spent waiting (0.0 for the first call)
        """
        waited = 0.0
        if self._last_call is not None:
            remaining = self.interval - (self._clock() - self._last_call)
            if remaining > 0:
                logger.debug(f"Rate limiting: sleeping {remaining:.2f}s")
                self._sleep(remaining)
                waited = remaining
        self._last_call = self._clock()
        return waited
