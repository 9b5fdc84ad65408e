"""
Navigation handlers: pages, frames and frame details.

Each handler either resumes a pending paginated query (``continue_=True``
with pages left) or runs the query from scratch and pages it when needed.
"""

from typing import Any, Dict, List, Optional

from shared.errors import NotFoundError, ValidationError
from shared.logging import get_logger

from ..adapters.figma_client import parse_document
from ..chunking.response_chunker import make_operation_id, page_range
from ..context import GatewayContext
from ..domain.document_tree import CONTAINER_KINDS, DocumentNode, count_elements, summarize_node

logger = get_logger("gateway.handlers.navigation")

CONTINUE_HINT = "Call with continue=true for more"


def require(name: str, value: Any) -> None:
    """Reject a missing argument before anything goes upstream."""
    if not value:
        raise ValidationError(f"{name} is required", details={"field": name})


def resume(
    ctx: GatewayContext,
    operation_id: str,
    key: str,
    label: str,
    done_hint: str,
    extra: Optional[Dict[str, Any]] = None,
) -> Optional[Dict[str, Any]]:
    """Envelope for the next pending page of ``operation_id``, or None if nothing is pending."""
    chunk = ctx.chunker.next_chunk(operation_id)
    if chunk is None:
        return None

    data = dict(extra or {})
    data[key] = chunk.items
    return ctx.chunker.wrap_response(
        data,
        step=f"Showing {label} {page_range(chunk, ctx.chunker.page_size)}",
        progress=f"{chunk.page_index}/{chunk.total_pages}",
        next_step=CONTINUE_HINT if chunk.has_more else done_hint,
        operation_id=operation_id,
    )


async def list_pages(ctx: GatewayContext, file_key: str, continue_: bool = False) -> Dict[str, Any]:
    """List the pages of a file with their frame counts."""
    require("file_key", file_key)
    operation_id = make_operation_id("list_pages", file_key)

    if continue_:
        resumed = resume(ctx, operation_id, "pages", "pages", "Use list_frames to explore a page")
        if resumed is not None:
            return resumed

    ctx.session.set_current_file(file_key)
    file_payload = await ctx.client.get_file(file_key, depth=2)
    document = parse_document(file_payload)

    pages: List[Dict[str, Any]] = []
    for page in document.children:
        ctx.session.mark_page_explored(page.id)
        pages.append({
            "name": page.name,
            "id": page.id,
            "frameCount": sum(1 for child in page.children if child.type in ("FRAME", "COMPONENT")),
        })

    header = {"file": file_payload.get("name"), "lastModified": file_payload.get("lastModified")}
    chunk = ctx.chunker.chunk_array(pages, operation_id)
    if chunk is not None:
        return ctx.chunker.wrap_response(
            {**header, "pages": chunk.items},
            step=f"Showing pages 1-{len(chunk.items)} of {chunk.total_items}",
            progress=f"1/{chunk.total_pages}",
            next_step="Call with continue=true for more pages, or use list_frames to explore",
            alert=f"File has {len(pages)} pages - showing first {len(chunk.items)}",
            operation_id=operation_id,
        )

    return ctx.chunker.wrap_response(
        {**header, "pages": pages},
        step="Listed all pages",
        progress=f"{len(pages)} pages",
        next_step="Use list_frames(page_name) to explore frames in a page",
    )


def _frame_entry(frame: DocumentNode) -> Dict[str, Any]:
    bounds = frame.bounds.rounded() if frame.bounds else {"width": 0, "height": 0}
    return {
        "name": frame.name,
        "id": frame.id,
        "type": frame.type,
        "width": bounds["width"],
        "height": bounds["height"],
        "childCount": len(frame.children),
    }


async def list_frames(
    ctx: GatewayContext,
    file_key: str,
    page_name: str,
    continue_: bool = False,
) -> Dict[str, Any]:
    """List the frames and components directly under a page."""
    require("file_key", file_key)
    require("page_name", page_name)
    operation_id = make_operation_id("list_frames", file_key, page_name)

    if continue_:
        resumed = resume(ctx, operation_id, "frames", "frames", "Use get_frame_info to detail a frame")
        if resumed is not None:
            return resumed

    ctx.session.set_current_file(file_key)
    file_payload = await ctx.client.get_file(file_key, depth=2)
    page = ctx.client.find_page_by_name(file_payload, page_name)
    if page is None:
        available = ", ".join(ctx.client.page_names(file_payload))
        raise NotFoundError(
            f'Page "{page_name}" not found. Available: {available}',
            details={"page_name": page_name}
        )

    frames = []
    for child in page.children:
        if child.type in CONTAINER_KINDS:
            ctx.session.mark_frame_explored(child.id)
            frames.append(_frame_entry(child))

    chunk = ctx.chunker.chunk_array(frames, operation_id)
    if chunk is not None:
        return ctx.chunker.wrap_response(
            {"page": page.name, "frameCount": len(frames), "frames": chunk.items},
            step=f"Showing frames 1-{len(chunk.items)} of {chunk.total_items}",
            progress=f"1/{chunk.total_pages}",
            next_step="Call with continue=true for more, or get_frame_info for details",
            alert=f"Page has {len(frames)} frames - showing first {len(chunk.items)}",
            strategy="Review visible frames, continue if needed, then detail specific ones",
            operation_id=operation_id,
        )

    return ctx.chunker.wrap_response(
        {"page": page.name, "frameCount": len(frames), "frames": frames},
        step="Listed all frames",
        progress=f"{len(frames)} frames",
        next_step="Use get_frame_info(frame_name) for structure",
    )


async def _load_frame_by_node_id(ctx: GatewayContext, file_key: str, node_id: str) -> Dict[str, Any]:
    frame = ctx.session.get_cached_node(file_key, node_id)
    if frame is None:
        frame = await ctx.client.get_node(file_key, node_id, visible_only=True)
        if frame is None:
            raise NotFoundError(f'Node "{node_id}" not found or not accessible', details={"node_id": node_id})
        ctx.session.cache_node(file_key, node_id, frame)
    return frame


async def _load_frame_by_name(
    ctx: GatewayContext,
    file_key: str,
    page_name: str,
    frame_name: str,
) -> Dict[str, Any]:
    file_payload = await ctx.client.get_file(file_key, depth=2)
    page = ctx.client.find_page_by_name(file_payload, page_name)
    if page is None:
        raise NotFoundError(f'Page "{page_name}" not found', details={"page_name": page_name})

    frame_ref = ctx.client.find_frame_by_name(page, frame_name)
    if frame_ref is None:
        available = ", ".join(c.name for c in page.children if c.type in ("FRAME", "COMPONENT"))
        raise NotFoundError(
            f'Frame "{frame_name}" not found. Available: {available}',
            details={"page_name": page_name, "frame_name": frame_name}
        )

    frame = await ctx.client.get_node(file_key, frame_ref.id, visible_only=True)
    if frame is None:
        raise NotFoundError(f'Frame "{frame_name}" is hidden or no longer exists', details={"node_id": frame_ref.id})
    return frame


async def get_frame_info(
    ctx: GatewayContext,
    file_key: str,
    page_name: Optional[str] = None,
    frame_name: Optional[str] = None,
    depth: int = 2,
    continue_: bool = False,
    node_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Structural detail of one frame, addressed by node id or by page and frame name."""
    require("file_key", file_key)
    if not node_id and not (page_name and frame_name):
        raise ValidationError("Must provide either node_id OR both page_name and frame_name")

    if node_id:
        operation_id = make_operation_id("get_frame_info", file_key, node_id)
    else:
        operation_id = make_operation_id("get_frame_info", file_key, page_name, frame_name)

    if continue_:
        resumed = resume(ctx, operation_id, "children", "children", "Use search_components to locate nested elements")
        if resumed is not None:
            return resumed

    ctx.session.set_current_file(file_key)
    if node_id:
        frame = await _load_frame_by_node_id(ctx, file_key, node_id)
    else:
        frame = await _load_frame_by_name(ctx, file_key, page_name, frame_name)

    node = DocumentNode.from_dict(frame)
    ctx.session.mark_frame_explored(node.id)
    element_count = count_elements(node)
    estimated_tokens = ctx.token_estimator.estimate(frame)

    if estimated_tokens > ctx.settings.large_frame_token_limit:
        logger.warning(
            "Frame too large to return",
            node_id=node.id,
            estimated_tokens=estimated_tokens,
            element_count=element_count
        )
        return ctx.chunker.wrap_response(
            {
                "warning": "Frame too large to return directly",
                "estimated_tokens": estimated_tokens,
                "element_count": element_count,
                "recommended_action": "Use depth=1 or address a nested frame by node_id",
            },
            step="Frame size check",
            progress=f"~{element_count} elements",
            next_step="Request a smaller scope",
        )

    if element_count > ctx.settings.large_frame_element_limit:
        return ctx.chunker.wrap_response(
            summarize_node(node, 1),
            step="Frame summary (large frame detected)",
            progress=f"~{element_count} elements",
            next_step="Request specific child by name, or use depth=1 for top-level only",
            alert=f"Frame has ~{element_count} elements - showing summary",
            strategy="Use depth=1 for overview, then drill into specific sections",
        )

    analysis = summarize_node(node, depth)
    children = analysis.get("children") or []
    chunk = ctx.chunker.chunk_array(children, operation_id)
    if chunk is not None:
        return ctx.chunker.wrap_response(
            {**analysis, "children": chunk.items},
            step=f"Showing children 1-{len(chunk.items)} of {chunk.total_items}",
            progress=f"1/{chunk.total_pages}",
            next_step="Call with continue=true for more children",
            operation_id=operation_id,
        )

    return ctx.chunker.wrap_response(
        analysis,
        step="Frame details",
        progress=f"{len(children)} direct children" if children else "No children",
        next_step="Use search_components to locate nested elements",
    )
