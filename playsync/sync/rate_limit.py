"""Process-wide token buckets and per-pass deadlines.

The provider quota is per account, so one bucket is shared by every pass
running for the same (provider, account) pair, whatever the playlist.
"""

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from playsync.config import RATE_LIMIT_CAPACITY, RATE_LIMIT_REFILL_PER_SECOND


class Deadline:
    """Absolute point in time after which a pass stops waiting."""

    def __init__(
        self,
        seconds: Optional[float],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._expires_at = None if seconds is None else clock() + seconds

    def remaining(self) -> Optional[float]:
        """Seconds left, or None when unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0


class TokenBucket:
    def __init__(
        self,
        capacity: int,
        refill_per_second: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if capacity <= 0 or refill_per_second <= 0:
            raise ValueError("capacity and refill_per_second must be positive")
        self.capacity = capacity
        self.refill_per_second = refill_per_second
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated_at = clock()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated_at)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.refill_per_second)
        self._updated_at = now

    @property
    def available(self) -> float:
        with self._lock:
            self._refill()
            return self._tokens

    def try_acquire(self) -> bool:
        """Withdraw one token if one is available. Atomic across threads."""
        with self._lock:
            self._refill()
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            return False

    def _time_until_token(self) -> float:
        with self._lock:
            self._refill()
            missing = max(0.0, 1.0 - self._tokens)
            return missing / self.refill_per_second

    def acquire(
        self,
        deadline: Optional[Deadline] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> bool:
        """
        Block until a token is withdrawn.

        Returns False without a token when the deadline elapses or the
        cancellation event is set while waiting.
        """
        while True:
            if cancel_event is not None and cancel_event.is_set():
                return False
            if self.try_acquire():
                return True

            wait = self._time_until_token()
            if deadline is not None:
                remaining = deadline.remaining()
                if remaining is not None:
                    if remaining <= 0.0:
                        return False
                    wait = min(wait, remaining)
            self._sleep(max(wait, 0.001))


_BUCKETS: Dict[Tuple[str, str], TokenBucket] = {}
_BUCKETS_LOCK = threading.Lock()


def get_rate_limiter(
    provider_name: str,
    account_key: str,
    capacity: int = RATE_LIMIT_CAPACITY,
    refill_per_second: float = RATE_LIMIT_REFILL_PER_SECOND,
) -> TokenBucket:
    """Return the shared bucket for (provider, account), creating it on first use."""
    key = (provider_name, account_key)
    with _BUCKETS_LOCK:
        bucket = _BUCKETS.get(key)
        if bucket is None:
            bucket = TokenBucket(capacity, refill_per_second)
            _BUCKETS[key] = bucket
        return bucket


def reset_rate_limiters() -> None:
    with _BUCKETS_LOCK:
        _BUCKETS.clear()
