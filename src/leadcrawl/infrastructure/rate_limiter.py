"""
Token Bucket Rate Limiting.

This module provides per-credential token buckets and a key rotator that
spreads requests round-robin across several credentials (for example a set
of API keys), each refilled lazily at a fixed rate.
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from leadcrawl.constants import (
    MIN_RATE_LIMIT_WAIT_SECONDS,
    RATE_LIMIT_PER_KEY_PER_SECOND,
)

logger = logging.getLogger(__name__)


@dataclass
class RateBucket:
    """Token bucket for one credential."""
    name: str
    credential: str
    rate: float = float(RATE_LIMIT_PER_KEY_PER_SECOND)  # Tokens per second
    capacity: float = float(RATE_LIMIT_PER_KEY_PER_SECOND)  # Max burst size
    tokens: float = -1.0
    last_refill: float = 0.0
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    def __post_init__(self):
        if self.rate <= 0 or self.capacity <= 0:
            raise ValueError("rate and capacity must be positive")
        if self.tokens < 0:
            self.tokens = self.capacity
        if not self.last_refill:
            self.last_refill = self.clock()

    def refill(self) -> None:
        """Add tokens for the time elapsed since the last refill."""
        now = self.clock()
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.last_refill = now

    def try_take(self) -> bool:
        """Take one token if available. Never blocks."""
        self.refill()
        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False

    def time_until_available(self) -> float:
        """Seconds until this bucket holds a whole token."""
        self.refill()
        if self.tokens >= 1:
            return 0.0
        return (1 - self.tokens) / self.rate


class KeyRotator:
    """
    Round-robin credential selection over rate-limited buckets.

    Each call to acquire_credential() takes one token from the next bucket
    (after the last one used) that has a token available. When every bucket
    is empty the caller sleeps until the soonest refill. Waiters are served
    in arrival order, so no caller starves while at least one credential is
    configured.
    """

    def __init__(self, buckets: List[RateBucket]):
        """
        Initialize key rotator.

        Args:
            buckets: One bucket per active credential
        """
        if not buckets:
            raise ValueError("No active credentials configured")

        self.buckets = buckets
        self._last_index = -1
        self._lock = asyncio.Lock()

        # Statistics
        self._total_issued = 0
        self._total_wait_time = 0.0

    def try_acquire(self) -> Optional[str]:
        """
        Take a credential without waiting.

        Returns:
            Credential, or None if every bucket is empty
        """
        count = len(self.buckets)
        for offset in range(count):
            index = (self._last_index + 1 + offset) % count
            bucket = self.buckets[index]
            if bucket.try_take():
                self._last_index = index
                self._total_issued += 1
                logger.debug(
                    f"[rate] Using key: {bucket.name} ({bucket.tokens:.1f} tokens remaining)"
                )
                return bucket.credential
        return None

    def time_until_available(self) -> float:
        """Seconds until the soonest bucket holds a token."""
        return min(bucket.time_until_available() for bucket in self.buckets)

    async def acquire_credential(self) -> str:
        """
        Take a credential, waiting if all buckets are exhausted.

        Returns:
            Credential from the selected bucket
        """
        async with self._lock:
            while True:
                credential = self.try_acquire()
                if credential is not None:
                    return credential

                wait = max(MIN_RATE_LIMIT_WAIT_SECONDS, self.time_until_available())
                logger.debug(f"[rate] All keys exhausted, waiting {wait * 1000:.0f}ms")
                await asyncio.sleep(wait)
                self._total_wait_time += wait

    @property
    def total_rate(self) -> float:
        """Upper bound on credentials issued per second."""
        return sum(bucket.rate for bucket in self.buckets)

    def get_stats(self) -> Dict[str, float]:
        return {
            "keys": len(self.buckets),
            "total_issued": self._total_issued,
            "total_wait_time": self._total_wait_time,
            "total_rate": self.total_rate,
        }


class TokenBucketLimiter(KeyRotator):
    """
    Single-bucket rate limiter.

    Allows short bursts up to capacity while keeping the average rate.
    """

    def __init__(
        self,
        rate: float = float(RATE_LIMIT_PER_KEY_PER_SECOND),
        capacity: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize token bucket.

        Args:
            rate: Token generation rate (per second)
            capacity: Maximum tokens in bucket (defaults to rate)
            clock: Monotonic time source
        """
        bucket = RateBucket(
            name="default",
            credential="default",
            rate=rate,
            capacity=capacity if capacity is not None else rate,
            clock=clock,
        )
        super().__init__([bucket])

    async def acquire(self) -> None:
        """Take one token, waiting if necessary."""
        await self.acquire_credential()

    @property
    def available_tokens(self) -> float:
        """Current available tokens."""
        bucket = self.buckets[0]
        bucket.refill()
        return bucket.tokens


def create_key_rotator_from_env(
    prefix: str = "GOOGLE_API_KEY_",
    active_var: str = "GOOGLE_API_KEYS_ACTIVE",
    rate: float = float(RATE_LIMIT_PER_KEY_PER_SECOND),
) -> KeyRotator:
    """
    Build a key rotator from environment variables.

    Active key names come from a comma-separated variable (default
    ``original``); each name maps to ``<prefix><NAME>``. Names without a
    configured key are ignored.

    Raises:
        ValueError: If no active key is configured
    """
    names = [
        name.strip().lower()
        for name in os.getenv(active_var, "original").split(",")
        if name.strip()
    ]

    buckets = []
    for name in names:
        credential = os.getenv(f"{prefix}{name.upper()}")
        if credential:
            buckets.append(RateBucket(name=name, credential=credential, rate=rate, capacity=rate))

    rotator = KeyRotator(buckets)
    logger.info(
        f"API keys: {len(buckets)} active ({', '.join(b.name for b in buckets)}), "
        f"{rate:g} req/sec x {len(buckets)} keys = {rotator.total_rate:g} req/sec total"
    )
    return rotator
