"""
Figma REST API client for the Gateway.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING, Union

import httpx

from shared.errors import ConfigurationError, ThrottledError, ValidationError
from shared.logging import get_logger
from shared.retry import RetryConfig, ThrottleRetryPolicy, parse_retry_after

from ..caching.response_cache import ResponseCache, make_cache_key
from ..domain.document_tree import DocumentNode, find_frame_by_name, find_page_by_name, prune_hidden
from ..ratelimit.sliding_window import SlidingWindowRateLimiter

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


FIGMA_API_BASE = "https://api.figma.com/v1"
TOKEN_HEADER = "X-Figma-Token"


def _endpoint_label(endpoint: str) -> str:
    """Collapse an endpoint path into a low-cardinality metrics label."""
    parts = [part for part in endpoint.strip("/").split("/") if part]
    if not parts:
        return "root"
    return "/".join([parts[0]] + parts[2:])


def parse_document(file_payload: Dict[str, Any]) -> DocumentNode:
    """Parse the ``document`` tree of a file response."""
    document = file_payload.get("document")
    if not isinstance(document, dict):
        raise ValidationError("File payload has no document tree")
    return DocumentNode.from_dict(document)


class FigmaClient:
    """Single funnel for outbound design API calls.

    Every request passes through the response cache, the tier rate limiter
    and the throttle retry policy. A cache hit returns immediately without
    taking an admission slot; a miss waits for a slot and then checks the
    cache once more, since another caller may have filled it meanwhile.
    """

    def __init__(
        self,
        token: Optional[str],
        *,
        base_url: str = FIGMA_API_BASE,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        cache: Optional[ResponseCache] = None,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 30.0,
        sleep=asyncio.sleep,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.metrics = metrics
        self.logger = get_logger("gateway.figma_client")

        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(sleep=sleep, metrics=metrics)
        self.cache = cache or ResponseCache(metrics=metrics)
        self.retry_policy = ThrottleRetryPolicy(
            retry_config or RetryConfig(),
            sleep=sleep,
            metrics=metrics,
            name="figma_api"
        )

    async def request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        tier: int = 1,
        cancel: Optional[asyncio.Event] = None,
    ) -> Any:
        """GET ``endpoint`` through cache, admission control and throttle retry."""
        params = params or {}
        cache_key = make_cache_key(endpoint, params)

        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        if not self.token:
            raise ConfigurationError("FIGMA_API_TOKEN not set. Export it or add it to your .env file.")

        return await self.retry_policy.run(
            self._admit_and_fetch, endpoint, params, tier, cache_key, cancel, cancel=cancel
        )

    async def _admit_and_fetch(
        self,
        endpoint: str,
        params: Dict[str, Any],
        tier: int,
        cache_key: str,
        cancel: Optional[asyncio.Event],
    ) -> Any:
        await self.rate_limiter.wait_for_slot(tier, cancel)

        if cache_key in self.cache:
            return self.cache.get(cache_key)

        url = f"{self.base_url}{endpoint}"
        start = time.perf_counter()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(url, params=params, headers={TOKEN_HEADER: self.token})

        if self.metrics:
            self.metrics.record_upstream_request(
                _endpoint_label(endpoint), response.status_code, time.perf_counter() - start
            )

        if response.status_code == 429:
            retry_after = parse_retry_after(
                response.headers.get("Retry-After"),
                self.retry_policy.config.default_delay
            )
            raise ThrottledError(retry_after, details={"endpoint": endpoint})

        if response.status_code >= 400:
            self.logger.error(
                "Design API request failed",
                url=url,
                params=params,
                status_code=response.status_code
            )
        response.raise_for_status()

        data = response.json()
        self.cache.set(cache_key, data)
        self.logger.debug("Design API response cached", url=url, params=params)
        return data

    async def get_file(self, file_key: str, depth: int = 1) -> Dict[str, Any]:
        """Fetch a file document down to ``depth`` levels."""
        _require("file_key", file_key)
        return await self.request(f"/files/{file_key}", {"depth": depth}, tier=1)

    async def get_node(self, file_key: str, node_id: str, visible_only: bool = False) -> Optional[Dict[str, Any]]:
        """Fetch one node's document, or None if the file has no such node."""
        _require("file_key", file_key)
        _require("node_id", node_id)
        data = await self.request(f"/files/{file_key}/nodes", {"ids": node_id}, tier=1)

        entry = (data.get("nodes") or {}).get(node_id)
        document = entry.get("document") if entry else None
        if document is None or not visible_only:
            return document

        pruned = prune_hidden(DocumentNode.from_dict(document))
        return pruned.to_dict() if pruned is not None else None

    async def get_image(
        self,
        file_key: str,
        node_ids: Union[str, Sequence[str]],
        format: str = "png",
        scale: float = 2,
    ) -> Dict[str, Any]:
        """Request rendered image URLs for one or more nodes."""
        _require("file_key", file_key)
        ids = node_ids if isinstance(node_ids, str) else ",".join(node_ids)
        _require("node_ids", ids)
        return await self.request(f"/images/{file_key}", {"ids": ids, "format": format, "scale": scale}, tier=1)

    async def get_styles(self, file_key: str) -> Dict[str, Any]:
        """Fetch the published styles of a file."""
        _require("file_key", file_key)
        return await self.request(f"/files/{file_key}/styles", {}, tier=2)

    def find_page_by_name(self, file_payload: Dict[str, Any], page_name: str) -> Optional[DocumentNode]:
        """Find a top-level page by partial, case-insensitive name."""
        return find_page_by_name(parse_document(file_payload), page_name)

    def find_frame_by_name(self, page: DocumentNode, frame_name: str) -> Optional[DocumentNode]:
        """Find a frame or component anywhere under ``page``."""
        return find_frame_by_name(page, frame_name)

    def clear_cache(self) -> int:
        """Discard every cached response."""
        return self.cache.clear()

    def page_names(self, file_payload: Dict[str, Any]) -> List[str]:
        """Names of the file's top-level pages, in document order."""
        return [page.name for page in parse_document(file_payload).children]


def _require(name: str, value: Any) -> None:
    if not value:
        raise ValidationError(f"{name} is required", details={"field": name})
