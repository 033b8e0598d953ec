"""Rate-limited, retrying wrapper around provider calls.

One RemoteCaller is built per pass. Every provider call of that pass goes
through `call()`, which:

  1. takes a token from the shared bucket (waiting at most until the pass
     deadline, and giving up early if the pass is cancelled);
  2. runs the call;
  3. on 429 waits for max(Retry-After, exponential backoff) and retries;
  4. on 5xx / network errors waits for the backoff and retries;
  5. re-raises any other error at once.

After `max_attempts` failed attempts it raises RetryExhausted carrying the
outcome code (RateLimitExhausted or TransientFailure).
"""

import threading
import time
from typing import Any, Callable, Optional, Tuple, TypeVar

from playsync.config import SYNC_BACKOFF_SECONDS, SYNC_MAX_ATTEMPTS
from playsync.core import log_warning

from .errors import (
    RATE_LIMIT_EXHAUSTED,
    TRANSIENT_FAILURE,
    PassInterrupted,
    ProviderRateLimited,
    ProviderUnavailable,
    RetryExhausted,
)
from .rate_limit import Deadline, TokenBucket

T = TypeVar("T")


class RemoteCaller:
    def __init__(
        self,
        rate_limiter: Optional[TokenBucket] = None,
        deadline: Optional[Deadline] = None,
        cancel_event: Optional[threading.Event] = None,
        max_attempts: int = SYNC_MAX_ATTEMPTS,
        backoff_seconds: float = SYNC_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.deadline = deadline or Deadline(None)
        self.cancel_event = cancel_event
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def check_interrupted(self) -> None:
        """Raise PassInterrupted when the pass must stop issuing calls."""
        if self.cancelled:
            raise PassInterrupted("Sync pass cancelled by caller.")
        if self.deadline.expired():
            raise PassInterrupted("Sync pass deadline exceeded.")

    def _take_token(self) -> None:
        self.check_interrupted()
        if self.rate_limiter is None:
            return
        if not self.rate_limiter.acquire(self.deadline, self.cancel_event):
            self.check_interrupted()
            # acquire() only gives up on deadline or cancellation
            raise PassInterrupted("Sync pass deadline exceeded while rate limited.")

    def _wait(self, seconds: float) -> None:
        remaining = self.deadline.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        if seconds > 0:
            self._sleep(seconds)

    def call(self, name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Tuple[T, int]:
        """Run `fn(*args, **kwargs)`; return (result, attempts used)."""
        attempt = 1
        while True:
            self._take_token()
            try:
                return fn(*args, **kwargs), attempt
            except ProviderRateLimited as e:
                code, error = RATE_LIMIT_EXHAUSTED, e
                wait = self.backoff_seconds * (2 ** (attempt - 1))
                if e.retry_after is not None:
                    wait = max(wait, e.retry_after)
            except ProviderUnavailable as e:
                code, error = TRANSIENT_FAILURE, e
                wait = self.backoff_seconds * (2 ** (attempt - 1))

            if attempt >= self.max_attempts:
                raise RetryExhausted(code, attempt, error) from error
            log_warning(
                f"{name} failed ({error}); retrying in {wait:.1f}s "
                f"(attempt {attempt}/{self.max_attempts})"
            )
            self._wait(wait)
            attempt += 1
