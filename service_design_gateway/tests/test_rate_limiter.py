"""
Unit tests for the sliding-window rate limiter.
"""

import asyncio
import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_design_gateway.app.ratelimit.sliding_window import (
    SlidingWindowRateLimiter,
    TierQuota,
    DEFAULT_TIER_QUOTAS,
)
from shared.errors import ConfigurationError, OperationCancelledError, ValidationError
from shared.metrics import MetricsCollector
from shared.test_helpers import FakeClock


class TestTierQuota:
    """Test cases for TierQuota validation."""

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ConfigurationError):
            TierQuota(tier=1, request_limit=0, window_seconds=60)

    def test_rejects_non_positive_window(self):
        with pytest.raises(ConfigurationError):
            TierQuota(tier=1, request_limit=10, window_seconds=0)

    def test_default_quotas(self):
        limits = {quota.tier: quota.request_limit for quota in DEFAULT_TIER_QUOTAS}
        assert limits == {1: 10, 2: 25, 3: 50}


class TestSlidingWindowRateLimiter:
    """Test cases for SlidingWindowRateLimiter."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def rate_limiter(self, clock):
        """Limiter with a 10 per minute tier 1 on simulated time."""
        return SlidingWindowRateLimiter(
            [TierQuota(tier=1, request_limit=10, window_seconds=60), TierQuota(tier=2, request_limit=2, window_seconds=10)],
            clock=clock,
            sleep=clock.sleep,
        )

    @pytest.mark.asyncio
    async def test_admits_immediately_under_limit(self, rate_limiter, clock):
        """Calls under the limit never sleep."""
        start = clock.now
        for _ in range(10):
            await rate_limiter.wait_for_slot(1)

        assert clock.now == start
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_eleventh_call_waits_for_first_to_leave_window(self, rate_limiter, clock):
        """15 back-to-back calls: the 11th is admitted about 60s after the first."""
        start = clock.now
        admitted_at = []
        for _ in range(15):
            await rate_limiter.wait_for_slot(1)
            admitted_at.append(clock.now - start)

        assert admitted_at[:10] == [0] * 10
        assert admitted_at[10] == pytest.approx(60.1)
        assert all(t == pytest.approx(60.1) for t in admitted_at[10:])

    @pytest.mark.asyncio
    async def test_window_never_exceeds_limit(self, rate_limiter, clock):
        """No trailing window ever holds more admissions than the limit."""
        admitted_at = []
        for _ in range(35):
            await rate_limiter.wait_for_slot(2)
            admitted_at.append(clock.now)
            clock.now += 1.5

        for t in admitted_at:
            in_window = [a for a in admitted_at if t - 10 < a <= t]
            assert len(in_window) <= 2

    @pytest.mark.asyncio
    async def test_concurrent_waiters_all_admitted(self, rate_limiter, clock):
        """Seven callers racing for a 2 per 10s tier all get in, never more than 2 per window."""
        admitted_at = []

        async def caller():
            await rate_limiter.wait_for_slot(2)
            admitted_at.append(clock.now)

        await asyncio.gather(*(caller() for _ in range(7)))

        assert len(admitted_at) == 7
        for t in admitted_at:
            in_window = [a for a in admitted_at if t - 10 < a <= t]
            assert len(in_window) <= 2

    @pytest.mark.asyncio
    async def test_tiers_are_independent(self, rate_limiter, clock):
        """Exhausting tier 2 does not delay tier 1."""
        await rate_limiter.wait_for_slot(2)
        await rate_limiter.wait_for_slot(2)
        start = clock.now

        await rate_limiter.wait_for_slot(1)

        assert clock.now == start

    @pytest.mark.asyncio
    async def test_unknown_tier(self, rate_limiter):
        with pytest.raises(ValidationError):
            await rate_limiter.wait_for_slot(7)

    @pytest.mark.asyncio
    async def test_wait_can_be_cancelled(self):
        """A set cancellation event stops a pending wait."""
        limiter = SlidingWindowRateLimiter([TierQuota(tier=1, request_limit=1, window_seconds=60)])
        await limiter.wait_for_slot(1)

        cancel = asyncio.Event()
        waiter = asyncio.ensure_future(limiter.wait_for_slot(1, cancel))
        await asyncio.sleep(0)
        cancel.set()

        with pytest.raises(OperationCancelledError):
            await asyncio.wait_for(waiter, timeout=1)

    @pytest.mark.asyncio
    async def test_get_status(self, rate_limiter, clock):
        await rate_limiter.wait_for_slot(2)
        clock.now += 4

        status = rate_limiter.get_status(2)

        assert status["current_count"] == 1
        assert status["limit"] == 2
        assert status["remaining"] == 1
        assert status["reset_in_seconds"] == pytest.approx(6)

    @pytest.mark.asyncio
    async def test_reset_clears_admissions(self, rate_limiter, clock):
        await rate_limiter.wait_for_slot(2)
        await rate_limiter.wait_for_slot(2)

        rate_limiter.reset(2)
        start = clock.now
        await rate_limiter.wait_for_slot(2)

        assert clock.now == start

    @pytest.mark.asyncio
    async def test_records_wait_metrics(self, clock):
        metrics = MetricsCollector("gateway")
        limiter = SlidingWindowRateLimiter(
            [TierQuota(tier=1, request_limit=1, window_seconds=5)],
            clock=clock,
            sleep=clock.sleep,
            metrics=metrics,
        )

        await limiter.wait_for_slot(1)
        await limiter.wait_for_slot(1)

        assert metrics.get_sample_value("rate_limit_waits_total", tier="1") == 1.0
        assert metrics.get_sample_value("rate_limit_wait_seconds_count", tier="1") == 1.0
