# daycare/services/retry.py
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from daycare.core.exceptions import SheetsFetchError
from daycare.services.rate_limiter import RateLimiter

RATE_LIMIT_MARKERS = ("429", "RATE_LIMIT_EXCEEDED")


class RetryState(Enum):
    IDLE = "IDLE"
    ATTEMPTING = "ATTEMPTING"
    RETRY_WAIT = "RETRY_WAIT"
    SUCCESS = "SUCCESS"
    EXHAUSTED = "EXHAUSTED"


@dataclass
class FetchOutcome:
    state: RetryState
    result: Any = None
    attempts: int = 0

    @property
    def succeeded(self) -> bool:
        return self.state is RetryState.SUCCESS


def is_rate_limit_error(error: BaseException) -> bool:
    if isinstance(error, SheetsFetchError) and error.status_code == 429:
        return True
    message = str(error)
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class RetryController:
    """
    Runs one logical fetch with bounded retries.

    - Throttles through the shared RateLimiter before the first attempt.
    - Rate-limit failures wait base_delay * 2^(attempt-1) and retry, up to max_attempts.
    - Any other failure propagates immediately.
    - Running out of attempts yields an EXHAUSTED outcome instead of raising.
    """

    def __init__(self, rate_limiter: RateLimiter, max_attempts: int = 3, base_delay: float = 2.0,
                 sleep: Callable[[float], None] = time.sleep):
        self.rate_limiter = rate_limiter
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep
        self.state = RetryState.IDLE
        self.attempt = 0

    def backoff_delay(self, attempt: int) -> float:
        return self.base_delay * (2 ** (attempt - 1))

    def run(self, operation: Callable[[], Any]) -> FetchOutcome:
        self.rate_limiter.wait()
        try:
            return self._run_attempts(operation)
        finally:
            self.attempt = 0
            self.state = RetryState.IDLE

    def _run_attempts(self, operation: Callable[[], Any]) -> FetchOutcome:
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.max_attempts + 1):
            self.attempt = attempt
            self.state = RetryState.ATTEMPTING
            logging.info(f"Sheets API call (attempt {attempt}/{self.max_attempts})")
            self.rate_limiter.mark()
            try:
                result = operation()
            except Exception as e:
                if not is_rate_limit_error(e):
                    logging.error(f"Attempt {attempt} failed, not retrying: {e}")
                    raise
                last_error = e
                logging.warning(f"Attempt {attempt} rate limited: {e}")
                if attempt < self.max_attempts:
                    delay = self.backoff_delay(attempt)
                    self.state = RetryState.RETRY_WAIT
                    logging.info(f"Retrying in {delay * 1000:.0f}ms...")
                    self._sleep(delay)
                continue

            self.state = RetryState.SUCCESS
            return FetchOutcome(RetryState.SUCCESS, result, attempt)

        self.state = RetryState.EXHAUSTED
        logging.warning(f"Giving up after {self.max_attempts} rate-limited attempts: {last_error}")
        return FetchOutcome(RetryState.EXHAUSTED, None, self.max_attempts)
