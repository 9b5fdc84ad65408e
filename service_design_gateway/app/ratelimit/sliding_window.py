"""
Sliding-window rate limiter for outbound design API calls.
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, Iterable, Optional, TYPE_CHECKING

from shared.errors import ConfigurationError, ValidationError
from shared.logging import get_logger
from shared.retry import sleep_or_cancel

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


# Extra wait after the oldest admission leaves the window, so the re-check
# does not land on the boundary.
SETTLE_MARGIN_SECONDS = 0.1


@dataclass(frozen=True)
class TierQuota:
    """Admission budget for one tier of operations."""
    tier: int
    request_limit: int
    window_seconds: float

    def __post_init__(self):
        if self.request_limit <= 0:
            raise ConfigurationError(
                f"Tier {self.tier} request limit must be positive",
                details={"tier": self.tier, "request_limit": self.request_limit}
            )
        if self.window_seconds <= 0:
            raise ConfigurationError(
                f"Tier {self.tier} window must be positive",
                details={"tier": self.tier, "window_seconds": self.window_seconds}
            )


DEFAULT_TIER_QUOTAS = (
    TierQuota(tier=1, request_limit=10, window_seconds=60.0),
    TierQuota(tier=2, request_limit=25, window_seconds=60.0),
    TierQuota(tier=3, request_limit=50, window_seconds=60.0),
)


class SlidingWindowRateLimiter:
    """Per-tier sliding-window limiter.

    Each tier keeps an ordered log of admission times. A caller is admitted
    when fewer than ``request_limit`` admissions remain inside the trailing
    window; otherwise it sleeps until the oldest one ages out and checks
    again. Tiers never share budget. Waiting callers are not queued, so the
    first one to re-check after a slot frees up wins it.
    """

    def __init__(
        self,
        quotas: Iterable[TierQuota] = DEFAULT_TIER_QUOTAS,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.quotas: Dict[int, TierQuota] = {quota.tier: quota for quota in quotas}
        if not self.quotas:
            raise ConfigurationError("At least one rate limit tier is required")

        self._clock = clock
        self._sleep = sleep
        self.metrics = metrics
        self.logger = get_logger("gateway.rate_limiter")
        self._admissions: Dict[int, Deque[float]] = {tier: deque() for tier in self.quotas}

    def _get_quota(self, tier: int) -> TierQuota:
        quota = self.quotas.get(tier)
        if quota is None:
            raise ValidationError(
                f"Unknown rate limit tier: {tier}",
                details={"tier": tier, "known_tiers": sorted(self.quotas)}
            )
        return quota

    def _evict_expired(self, tier: int, now: float) -> Deque[float]:
        """Drop admissions that are no longer inside the window."""
        window = self.quotas[tier].window_seconds
        admissions = self._admissions[tier]
        while admissions and now - admissions[0] >= window:
            admissions.popleft()
        return admissions

    async def wait_for_slot(self, tier: int, cancel: Optional[asyncio.Event] = None) -> None:
        """Suspend until one more call in ``tier`` fits the quota, then record it."""
        quota = self._get_quota(tier)
        started = self._clock()
        waited = False

        while True:
            now = self._clock()
            admissions = self._evict_expired(tier, now)

            if len(admissions) < quota.request_limit:
                admissions.append(now)
                break

            delay = quota.window_seconds - (now - admissions[0]) + SETTLE_MARGIN_SECONDS
            if not waited:
                self.logger.info(
                    "Rate limit reached, waiting for slot",
                    tier=tier,
                    limit=quota.request_limit,
                    delay=round(delay, 3)
                )
                if self.metrics:
                    self.metrics.increment_counter("rate_limit_waits_total", tier=str(tier))
            waited = True
            await sleep_or_cancel(delay, cancel, self._sleep)

        if waited and self.metrics:
            self.metrics.observe_histogram(
                "rate_limit_wait_seconds", self._clock() - started, tier=str(tier)
            )

    def get_status(self, tier: int) -> Dict[str, Any]:
        """Get current admission status for a tier."""
        quota = self._get_quota(tier)
        now = self._clock()
        admissions = self._evict_expired(tier, now)
        reset_in = quota.window_seconds - (now - admissions[0]) if admissions else 0.0

        return {
            "tier": tier,
            "current_count": len(admissions),
            "limit": quota.request_limit,
            "remaining": max(0, quota.request_limit - len(admissions)),
            "reset_in_seconds": round(reset_in, 3)
        }

    def reset(self, tier: Optional[int] = None) -> None:
        """Forget recorded admissions for one tier, or all of them."""
        tiers = [self._get_quota(tier).tier] if tier is not None else list(self._admissions)
        for name in tiers:
            self._admissions[name].clear()
        self.logger.info("Rate limit reset", tiers=tiers)
