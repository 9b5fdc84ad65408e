"""
File styles handler.
"""

from typing import Any, Dict

from ..context import GatewayContext
from .navigation import require

STYLE_CATEGORIES = {
    "FILL": "colors",
    "TEXT": "text",
    "EFFECT": "effects",
    "GRID": "grids",
}


async def get_file_styles(ctx: GatewayContext, file_key: str) -> Dict[str, Any]:
    """Published styles of a file, grouped by kind."""
    require("file_key", file_key)
    styles = await ctx.client.get_styles(file_key)

    organized = {category: [] for category in STYLE_CATEGORIES.values()}
    for style in (styles.get("meta") or {}).get("styles") or []:
        category = STYLE_CATEGORIES.get(style.get("style_type"))
        if category:
            organized[category].append({
                "name": style.get("name"),
                "key": style.get("key"),
                "description": style.get("description"),
            })

    total = sum(len(entries) for entries in organized.values())
    return ctx.chunker.wrap_response(
        {"fileKey": file_key, "styles": organized},
        step="File styles retrieved",
        progress=f"{total} styles",
        next_step="Use get_frame_info to see where styles are applied",
    )
