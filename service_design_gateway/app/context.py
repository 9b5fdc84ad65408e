"""
Per-session wiring of the gateway components.
"""

from dataclasses import dataclass
from typing import Optional

from shared.config import GatewaySettings, get_settings
from shared.logging import configure_logging, get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from shared.retry import RetryConfig

from .adapters.figma_client import FigmaClient
from .caching.response_cache import ResponseCache
from .chunking.response_chunker import ResponseChunker
from .chunking.token_estimator import TokenEstimator
from .ratelimit.sliding_window import SlidingWindowRateLimiter, TierQuota
from .session.state import SessionState


@dataclass
class GatewayContext:
    """Everything a handler needs for one agent session."""
    settings: GatewaySettings
    session: SessionState
    token_estimator: TokenEstimator
    chunker: ResponseChunker
    client: FigmaClient
    metrics: Optional[MetricsCollector] = None


def create_context(
    settings: Optional[GatewaySettings] = None,
    metrics: Optional[MetricsCollector] = None,
) -> GatewayContext:
    """Build a fresh context; construct once per session and pass it around."""
    settings = settings or get_settings()
    configure_logging("gateway", settings.log_level)
    metrics = metrics or get_metrics_collector("gateway")
    logger = get_logger("gateway.context")

    rate_limiter = SlidingWindowRateLimiter(
        [
            TierQuota(tier=tier, request_limit=limit, window_seconds=window)
            for tier, (limit, window) in settings.tier_limits().items()
        ],
        metrics=metrics,
    )
    client = FigmaClient(
        settings.figma_api_token,
        base_url=settings.figma_api_base,
        rate_limiter=rate_limiter,
        cache=ResponseCache(metrics=metrics),
        retry_config=RetryConfig(
            max_attempts=settings.max_throttle_retries,
            default_delay=settings.default_retry_after_seconds,
            jitter=settings.throttle_jitter,
        ),
        timeout=settings.request_timeout_seconds,
        metrics=metrics,
    )

    session = SessionState()
    token_estimator = TokenEstimator()
    chunker = ResponseChunker(token_estimator, session, page_size=settings.page_size, metrics=metrics)

    logger.info(
        "Gateway context created",
        env=settings.env,
        api_base=settings.figma_api_base,
        token_configured=bool(settings.figma_api_token)
    )
    return GatewayContext(
        settings=settings,
        session=session,
        token_estimator=token_estimator,
        chunker=chunker,
        client=client,
        metrics=metrics,
    )
