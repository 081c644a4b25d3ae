"""Unit tests for token buckets and the key rotator."""

import pytest
import asyncio
from unittest.mock import patch

pytest_plugins = ('pytest_asyncio',)

from leadcrawl.infrastructure.rate_limiter import (
    KeyRotator,
    RateBucket,
    TokenBucketLimiter,
    create_key_rotator_from_env,
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


class TestRateBucket:
    """Tests for RateBucket."""

    def test_starts_full(self, clock):
        bucket = RateBucket(name="a", credential="key-a", rate=8, capacity=8, clock=clock)
        assert bucket.tokens == 8

    def test_rejects_non_positive_rate(self, clock):
        with pytest.raises(ValueError):
            RateBucket(name="a", credential="key-a", rate=0, clock=clock)

    def test_refill_is_lazy_and_capped(self, clock):
        bucket = RateBucket(name="a", credential="key-a", rate=8, capacity=8, clock=clock)
        for _ in range(8):
            assert bucket.try_take()
        assert not bucket.try_take()

        clock.advance(0.5)
        bucket.refill()
        assert bucket.tokens == pytest.approx(4.0)

        clock.advance(60)
        bucket.refill()
        assert bucket.tokens == 8

    def test_time_until_available(self, clock):
        bucket = RateBucket(name="a", credential="key-a", rate=8, capacity=8, tokens=0, clock=clock)
        assert bucket.time_until_available() == pytest.approx(0.125)


class TestTokenBucketLimiter:
    """Tests for the single-credential limiter."""

    def test_issues_capacity_instantly_then_blocks(self, clock):
        limiter = TokenBucketLimiter(rate=8, clock=clock)

        issued = [limiter.try_acquire() for _ in range(8)]
        assert all(c is not None for c in issued)
        assert limiter.try_acquire() is None
        assert limiter.time_until_available() == pytest.approx(0.125)

    def test_available_tokens(self, clock):
        limiter = TokenBucketLimiter(rate=4, clock=clock)
        limiter.try_acquire()
        assert limiter.available_tokens == pytest.approx(3.0)

    @pytest.mark.asyncio
    async def test_ninth_acquire_waits_for_refill(self, clock):
        limiter = TokenBucketLimiter(rate=8, clock=clock)
        waits = []

        async def fake_sleep(seconds):
            waits.append(seconds)
            clock.advance(seconds)

        with patch("leadcrawl.infrastructure.rate_limiter.asyncio.sleep", side_effect=fake_sleep):
            for _ in range(8):
                await limiter.acquire()
            assert waits == []

            await limiter.acquire()

        assert len(waits) == 1
        assert waits[0] == pytest.approx(0.125)
        assert limiter.get_stats()["total_issued"] == 9


class TestKeyRotator:
    """Tests for round-robin credential selection."""

    def test_requires_a_bucket(self):
        with pytest.raises(ValueError):
            KeyRotator([])

    def test_round_robin_across_buckets(self, clock):
        rotator = KeyRotator([
            RateBucket(name="a", credential="key-a", rate=8, capacity=8, clock=clock),
            RateBucket(name="b", credential="key-b", rate=8, capacity=8, clock=clock),
        ])

        issued = [rotator.try_acquire() for _ in range(4)]
        assert issued == ["key-a", "key-b", "key-a", "key-b"]

    def test_skips_exhausted_bucket(self, clock):
        rotator = KeyRotator([
            RateBucket(name="a", credential="key-a", rate=1, capacity=1, clock=clock),
            RateBucket(name="b", credential="key-b", rate=8, capacity=8, clock=clock),
        ])

        issued = [rotator.try_acquire() for _ in range(4)]
        assert issued == ["key-a", "key-b", "key-b", "key-b"]

    def test_burst_is_bounded_by_total_capacity(self, clock):
        rotator = KeyRotator([
            RateBucket(name="a", credential="key-a", rate=8, capacity=8, clock=clock),
            RateBucket(name="b", credential="key-b", rate=8, capacity=8, clock=clock),
        ])

        issued = []
        while True:
            credential = rotator.try_acquire()
            if credential is None:
                break
            issued.append(credential)

        assert len(issued) == 16
        assert rotator.total_rate == 16

    @pytest.mark.asyncio
    async def test_concurrent_waiters_are_all_served(self, clock):
        rotator = KeyRotator([
            RateBucket(name="a", credential="key-a", rate=2, capacity=2, clock=clock),
        ])

        async def fake_sleep(seconds):
            clock.advance(seconds)

        with patch("leadcrawl.infrastructure.rate_limiter.asyncio.sleep", side_effect=fake_sleep):
            results = await asyncio.gather(*(rotator.acquire_credential() for _ in range(5)))

        assert results == ["key-a"] * 5
        stats = rotator.get_stats()
        assert stats["total_issued"] == 5
        assert stats["total_wait_time"] == pytest.approx(1.5)


class TestCreateKeyRotatorFromEnv:
    """Tests for building a rotator from environment variables."""

    def test_builds_bucket_per_active_key(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEYS_ACTIVE", "original, backup")
        monkeypatch.setenv("GOOGLE_API_KEY_ORIGINAL", "k1")
        monkeypatch.setenv("GOOGLE_API_KEY_BACKUP", "k2")

        rotator = create_key_rotator_from_env(rate=8)

        assert [b.name for b in rotator.buckets] == ["original", "backup"]
        assert [b.credential for b in rotator.buckets] == ["k1", "k2"]
        assert rotator.total_rate == 16

    def test_ignores_names_without_keys(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEYS_ACTIVE", "original,missing")
        monkeypatch.setenv("GOOGLE_API_KEY_ORIGINAL", "k1")
        monkeypatch.delenv("GOOGLE_API_KEY_MISSING", raising=False)

        rotator = create_key_rotator_from_env()
        assert len(rotator.buckets) == 1

    def test_no_keys_raises(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEYS_ACTIVE", "nothing")
        monkeypatch.delenv("GOOGLE_API_KEY_NOTHING", raising=False)

        with pytest.raises(ValueError):
            create_key_rotator_from_env()
