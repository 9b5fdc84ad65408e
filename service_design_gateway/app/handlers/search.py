"""
Component search handler.
"""

from typing import Any, Dict, List, Optional

from shared.errors import NotFoundError

from ..adapters.figma_client import parse_document
from ..chunking.response_chunker import make_operation_id
from ..context import GatewayContext
from ..domain.document_tree import search_nodes
from .navigation import require, resume

# Depth requested for searches; deep enough to reach every nested layer.
SEARCH_DEPTH = 99


async def search_components(
    ctx: GatewayContext,
    file_key: str,
    query: str,
    page_name: Optional[str] = None,
    node_type: Optional[str] = None,
    continue_: bool = False,
) -> Dict[str, Any]:
    """Find nodes whose name contains ``query``, optionally limited to a page or node type."""
    require("file_key", file_key)
    require("query", query)
    operation_id = make_operation_id("search_components", file_key, query, page_name, node_type)

    if continue_:
        resumed = resume(
            ctx, operation_id, "results", "results",
            "Use get_frame_info on a specific result",
            extra={"query": query},
        )
        if resumed is not None:
            return resumed

    ctx.session.set_current_file(file_key)
    file_payload = await ctx.client.get_file(file_key, depth=SEARCH_DEPTH)

    if page_name:
        page = ctx.client.find_page_by_name(file_payload, page_name)
        if page is None:
            raise NotFoundError(f'Page "{page_name}" not found', details={"page_name": page_name})
        pages = [page]
    else:
        pages = parse_document(file_payload).children

    results: List[Dict[str, Any]] = []
    for page in pages:
        for node, path in search_nodes(page, query, node_type):
            if node is page:
                continue
            results.append({
                "name": node.name,
                "type": node.type,
                "id": node.id,
                "page": page.name,
                "path": " > ".join(path),
                "bounds": {
                    "width": round(node.bounds.width),
                    "height": round(node.bounds.height),
                } if node.bounds else None,
            })

    chunk = ctx.chunker.chunk_array(results, operation_id)
    if chunk is not None:
        page_names = list(dict.fromkeys(r["page"] for r in results))
        types = list(dict.fromkeys(r["type"] for r in results))
        refinement_options = []
        if len(page_names) > 1:
            refinement_options.append(f"Filter by page: {', '.join(page_names[:3])}")
        if len(types) > 1:
            refinement_options.append(f"Filter by type: {', '.join(types)}")
        refinement_options.append("Use more specific search term")

        return ctx.chunker.wrap_response(
            {"query": query, "resultCount": len(results), "results": chunk.items},
            step=f"Showing results 1-{len(chunk.items)} of {len(results)}",
            progress=f"1/{chunk.total_pages}",
            next_step="Call with continue=true for more, or refine search",
            alert=f"Found {len(results)} matches - showing first {len(chunk.items)}",
            refinement_options=refinement_options,
            operation_id=operation_id,
        )

    return ctx.chunker.wrap_response(
        {"query": query, "resultCount": len(results), "results": results},
        step="Search complete",
        progress=f"{len(results)} results",
        next_step="Use get_frame_info on a result for details" if results else "Try different search term",
    )
