"""
Response shaping package for the Gateway.

Estimates payload cost, pages oversized results through the session and
builds the envelope handed back to the agent.
"""

from .token_estimator import TokenEstimator, TokenBudget, CHARS_PER_TOKEN
from .response_chunker import (
    ResponseChunker,
    Navigation,
    Guidance,
    DEFAULT_PAGE_SIZE,
    make_operation_id,
    page_range,
)

__all__ = [
    "TokenEstimator",
    "TokenBudget",
    "CHARS_PER_TOKEN",
    "ResponseChunker",
    "Navigation",
    "Guidance",
    "DEFAULT_PAGE_SIZE",
    "make_operation_id",
    "page_range",
]
