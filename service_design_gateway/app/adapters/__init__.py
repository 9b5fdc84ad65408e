"""
Adapters package for the Gateway Service.

Contains the HTTP client wrapper for the upstream design API. The adapter
encapsulates:

- Base URL, credential header and request shapes
- Admission control, response caching and throttle retry
- Page/frame lookups over fetched documents

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .figma_client import FigmaClient, FIGMA_API_BASE, parse_document

__all__ = ["FigmaClient", "FIGMA_API_BASE", "parse_document"]
