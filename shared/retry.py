"""
Retry mechanism for throttled upstream operations.
"""

import asyncio
import math
import random
from typing import Any, Awaitable, Callable, Dict, Optional, TYPE_CHECKING

from shared.errors import OperationCancelledError, RateLimitError, ThrottledError
from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


SleepFunc = Callable[[float], Awaitable[Any]]

DEFAULT_RETRY_AFTER = 60.0


class RetryConfig:
    """Configuration for throttle retry behavior.

    ``max_attempts=None`` retries for as long as the upstream keeps
    throttling. The delay is always the server hint; jitter only adds to it.
    """

    def __init__(self,
                 max_attempts: Optional[int] = None,
                 default_delay: float = DEFAULT_RETRY_AFTER,
                 jitter: bool = False,
                 jitter_ratio: float = 0.1):
        self.max_attempts = max_attempts
        self.default_delay = default_delay
        self.jitter = jitter
        self.jitter_ratio = jitter_ratio


def parse_retry_after(value: Optional[str], default: float = DEFAULT_RETRY_AFTER) -> float:
    """Read a Retry-After header given in seconds."""
    if value is None:
        return default
    try:
        seconds = float(value.strip())
    except (TypeError, ValueError):
        return default
    if not math.isfinite(seconds) or seconds < 0:
        return default
    return seconds


async def sleep_or_cancel(delay: float,
                          cancel: Optional[asyncio.Event] = None,
                          sleep: SleepFunc = asyncio.sleep) -> None:
    """Sleep for ``delay`` seconds, stopping early if ``cancel`` is set."""
    if cancel is None:
        await sleep(delay)
        return

    if cancel.is_set():
        raise OperationCancelledError(details={"delay": delay})

    sleeper = asyncio.ensure_future(sleep(delay))
    watcher = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({sleeper, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sleeper, watcher):
            if not task.done():
                task.cancel()

    if watcher in done:
        raise OperationCancelledError(details={"delay": delay})


def _calculate_delay(retry_after: float, config: RetryConfig) -> float:
    """Calculate the wait before the next attempt."""
    delay = max(0.0, retry_after)
    if config.jitter:
        delay += random.uniform(0, delay * config.jitter_ratio)
    return delay


class ThrottleRetryPolicy:
    """Re-runs an operation while it raises ``ThrottledError``.

    Every other exception propagates unchanged on the first occurrence.
    """

    def __init__(self,
                 config: Optional[RetryConfig] = None,
                 sleep: SleepFunc = asyncio.sleep,
                 metrics: Optional["MetricsCollector"] = None,
                 name: str = "upstream"):
        self.config = config or RetryConfig()
        self._sleep = sleep
        self.metrics = metrics
        self.name = name
        self.stats: Dict[str, int] = {"attempts": 0, "throttled": 0, "successes": 0}
        self.logger = get_logger(f"retry.{name}")

    async def run(self,
                  func: Callable[..., Awaitable[Any]],
                  *args,
                  cancel: Optional[asyncio.Event] = None,
                  **kwargs) -> Any:
        """Call ``func`` until it stops being throttled."""
        attempt = 0
        while True:
            attempt += 1
            self.stats["attempts"] += 1
            try:
                result = await func(*args, **kwargs)
            except ThrottledError as exc:
                self.stats["throttled"] += 1
                if self.metrics:
                    self.metrics.increment_counter("throttle_retries_total")

                if self.config.max_attempts is not None and attempt >= self.config.max_attempts:
                    self.logger.error(
                        "All throttle retry attempts exhausted",
                        attempt=attempt,
                        max_attempts=self.config.max_attempts,
                        retry_after=exc.retry_after
                    )
                    raise RateLimitError(
                        f"{self.name} still throttled after {attempt} attempts",
                        details={"attempts": attempt, "retry_after": exc.retry_after}
                    )

                delay = _calculate_delay(exc.retry_after, self.config)
                self.logger.warning(
                    "Upstream throttled, waiting before retry",
                    attempt=attempt,
                    delay=delay
                )
                await sleep_or_cancel(delay, cancel, self._sleep)
                continue

            self.stats["successes"] += 1
            if attempt > 1:
                self.logger.info("Retry succeeded", attempt=attempt)
            return result
