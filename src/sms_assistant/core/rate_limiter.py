"""Per-sender token bucket rate limiter."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from sms_assistant.config import RateLimitConfig
from sms_assistant.log import get_logger

logger = get_logger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class RateBucket:
    tokens: float
    last_refill_ms: float


class RateLimiter:
    """Token bucket admission control keyed by sender identifier.

    Tokens refill continuously at ``capacity / refill_window_ms`` per millisecond
    and are capped at ``capacity``. A new sender starts with a full bucket.

    Refill and consume happen under one lock, so two calls inside this process
    can never both spend the same token. Buckets live in process memory only:
    several server instances each keep their own buckets, which makes the limit
    best-effort abuse mitigation rather than a security boundary.
    """

    def __init__(
        self,
        capacity: int = 5,
        refill_window_ms: int = 60_000,
        clock: Callable[[], float] = _monotonic_ms,
    ):
        self._capacity = float(capacity)
        self._window_ms = float(refill_window_ms)
        self._clock = clock
        self._buckets: dict[str, RateBucket] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: RateLimitConfig, clock: Callable[[], float] = _monotonic_ms) -> RateLimiter:
        return cls(config.capacity, config.refill_window_ms, clock=clock)

    @property
    def capacity(self) -> int:
        return int(self._capacity)

    def consume(self, identifier: str | None) -> bool:
        """Try to take one token for *identifier*. Returns False when the bucket is empty."""
        if not identifier:
            # Unknown senders are never blocked here
            return True

        with self._lock:
            now = self._clock()
            bucket = self._buckets.get(identifier)
            if bucket is None:
                bucket = RateBucket(tokens=self._capacity, last_refill_ms=now)
                self._buckets[identifier] = bucket

            elapsed = max(0.0, now - bucket.last_refill_ms)
            if elapsed >= self._window_ms:
                bucket.tokens = self._capacity
            else:
                bucket.tokens = min(self._capacity, bucket.tokens + elapsed * self._capacity / self._window_ms)
            bucket.last_refill_ms = now

            if bucket.tokens < 1:
                logger.info("rate_limited", identifier=identifier, tokens=round(bucket.tokens, 3))
                return False

            bucket.tokens -= 1
            return True

    def tokens(self, identifier: str) -> float:
        """Current token count without refilling. Unknown identifiers report a full bucket."""
        with self._lock:
            bucket = self._buckets.get(identifier)
            return self._capacity if bucket is None else bucket.tokens

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()
