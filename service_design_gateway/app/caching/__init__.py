"""
Gateway caching package.

Provides the response cache used by the design API client to avoid
re-fetching identical requests. Entries live for the process lifetime;
invalidation is explicit.
"""

from .response_cache import ResponseCache, make_cache_key

__all__ = ["ResponseCache", "make_cache_key"]
