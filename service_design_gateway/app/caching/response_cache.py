"""
In-memory response cache for the design API client.
"""

import json
from typing import Any, Dict, Optional, TYPE_CHECKING

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


def make_cache_key(endpoint: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Build a deterministic signature for an endpoint and its parameters."""
    payload = json.dumps(params or {}, sort_keys=True, separators=(",", ":"), default=str)
    return f"{endpoint}:{payload}"


class ResponseCache:
    """Memo of decoded upstream payloads keyed by request signature."""

    def __init__(self, *, metrics: Optional["MetricsCollector"] = None):
        self.logger = get_logger("gateway.response_cache")
        self.metrics = metrics
        self._entries: Dict[str, Any] = {}
        self.hits = 0
        self.misses = 0

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        """Return the cached payload for ``key``, or None on a miss."""
        if key in self._entries:
            self.hits += 1
            if self.metrics:
                self.metrics.increment_counter("cache_hits_total")
            self.logger.debug("Cache hit", key=key)
            return self._entries[key]

        self.misses += 1
        if self.metrics:
            self.metrics.increment_counter("cache_misses_total")
        return None

    def set(self, key: str, value: Any) -> None:
        """Store a payload."""
        self._entries[key] = value

    def clear(self) -> int:
        """Drop every entry. Returns how many were removed."""
        removed = len(self._entries)
        self._entries.clear()
        self.logger.info("Response cache cleared", removed=removed)
        return removed

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        lookups = self.hits + self.misses
        return {
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "hit_ratio": self.hits / lookups if lookups else 0.0
        }
