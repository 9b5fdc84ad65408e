"""
Domain helpers for the Gateway.

Pure functions over the design document tree: parsing, visibility
pruning, page/frame lookup, search and structural summaries.
"""

from .document_tree import (
    BoundingBox,
    DocumentNode,
    CONTAINER_KINDS,
    prune_hidden,
    find_page_by_name,
    find_frame_by_name,
    count_elements,
    search_nodes,
    summarize_node,
)

__all__ = [
    "BoundingBox",
    "DocumentNode",
    "CONTAINER_KINDS",
    "prune_hidden",
    "find_page_by_name",
    "find_frame_by_name",
    "count_elements",
    "search_nodes",
    "summarize_node",
]
