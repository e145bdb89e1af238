"""Rate limiter — per-client token buckets guarding the validation endpoints."""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from app.config import get_settings


@dataclass
class _Bucket:
    tokens: float
    updated_at: float


class TokenBucketRateLimiter:
    """In-memory token bucket rate limiter.

    Each key may spend ``max_tokens`` requests per ``refill_seconds`` window; tokens
    trickle back continuously. Buckets live in this process only; full buckets are
    forgotten, since a fresh bucket behaves identically.
    """

    def __init__(
        self,
        max_tokens: Optional[int] = None,
        refill_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        settings = get_settings()
        self.max_tokens = max_tokens or settings.RATE_LIMIT_MAX_REQUESTS
        self.refill_seconds = refill_seconds or settings.RATE_LIMIT_WINDOW_SECONDS
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}
        self._last_sweep = clock()

    @property
    def _rate(self) -> float:
        return self.max_tokens / self.refill_seconds

    def _sweep(self, now: float) -> None:
        """Drop buckets that have refilled completely; at most once per window."""
        if now - self._last_sweep < self.refill_seconds:
            return
        self._last_sweep = now
        full = [
            key for key, bucket in self._buckets.items()
            if bucket.tokens + (now - bucket.updated_at) * self._rate >= self.max_tokens
        ]
        for key in full:
            del self._buckets[key]

    def _refill(self, key: str) -> _Bucket:
        now = self._clock()
        self._sweep(now)
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = self._buckets[key] = _Bucket(tokens=float(self.max_tokens), updated_at=now)
            return bucket
        bucket.tokens = min(float(self.max_tokens), bucket.tokens + (now - bucket.updated_at) * self._rate)
        bucket.updated_at = now
        return bucket

    def allow_request(self, key: str = "global") -> bool:
        """Consume one token for ``key``; False when the bucket is empty."""
        bucket = self._refill(key)
        if bucket.tokens >= 1:
            bucket.tokens -= 1
            return True
        return False

    def remaining_tokens(self, key: str = "global") -> int:
        return int(self._refill(key).tokens)

    def reset_time(self, key: str = "global") -> float:
        """Seconds until ``key`` can make another request."""
        missing = 1 - self._refill(key).tokens
        return max(0.0, missing / self._rate)

    def reset(self) -> None:
        self._buckets.clear()


# Module-level singleton
rate_limiter = TokenBucketRateLimiter()
