"""
Rate limiting package for the Gateway.

Holds the sliding-window admission limiter that keeps outbound calls
within the design API's per-tier request budgets.
"""

from .sliding_window import SlidingWindowRateLimiter, TierQuota, DEFAULT_TIER_QUOTAS

__all__ = ["SlidingWindowRateLimiter", "TierQuota", "DEFAULT_TIER_QUOTAS"]
