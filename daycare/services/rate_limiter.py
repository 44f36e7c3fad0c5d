# daycare/services/rate_limiter.py
import logging
import threading
import time
from typing import Callable, Optional


class RateLimiter:
    """
    Enforces a minimum interval between remote calls.
    One instance is created by the app factory and shared by every caller, so
    the interval holds for the whole process.
    """

    def __init__(self, min_interval: float = 1.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self.last_call: Optional[float] = None

    def wait(self) -> float:
        """Blocks until the interval since the last call has elapsed. Returns seconds waited."""
        with self._lock:
            last_call = self.last_call
        if last_call is None:
            return 0.0

        remaining = self.min_interval - (self._clock() - last_call)
        if remaining <= 0:
            return 0.0
        logging.info(f"Waiting {remaining * 1000:.0f}ms before the next API call...")
        self._sleep(remaining)
        return remaining

    def mark(self) -> None:
        with self._lock:
            self.last_call = self._clock()
