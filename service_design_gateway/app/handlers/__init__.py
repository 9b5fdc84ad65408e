"""
Agent-facing handlers for the Gateway.

Handlers compose the client, session and chunker into the operations an
exploring agent calls. ``dispatch_tool`` maps a tool name and its raw
arguments onto the matching handler.
"""

import inspect
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from shared.errors import DesignGatewayException, ValidationError
from shared.logging import get_logger, set_request_id

from ..context import GatewayContext
from .navigation import get_frame_info, list_frames, list_pages
from .search import search_components
from .session import get_session_state, repeat_last, reset_session
from .styles import get_file_styles

logger = get_logger("gateway.handlers")

Handler = Callable[..., Union[Dict[str, Any], Awaitable[Dict[str, Any]]]]

# Incoming argument names that differ from handler parameter names.
ARGUMENT_ALIASES = {"continue": "continue_", "type": "node_type"}

TOOLS: Dict[str, Handler] = {
    "list_pages": list_pages,
    "list_frames": list_frames,
    "get_frame_info": get_frame_info,
    "search_components": search_components,
    "get_file_styles": get_file_styles,
    "repeat_last": repeat_last,
    "get_session_state": get_session_state,
    "reset_session": reset_session,
}

# Tools that never reach the upstream API.
SESSION_TOOLS = frozenset({"repeat_last", "get_session_state", "reset_session"})


def _bind_arguments(name: str, handler: Handler, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Map wire arguments onto handler parameters; None means "use the default"."""
    signature = inspect.signature(handler)
    accepted = set(signature.parameters) - {"ctx"}
    bound = {}
    for key, value in arguments.items():
        param = ARGUMENT_ALIASES.get(key, key)
        if param not in accepted:
            raise ValidationError(
                f"Unexpected argument for {name}: {key}",
                details={"tool": name, "argument": key}
            )
        if value is not None:
            bound[param] = value

    try:
        signature.bind_partial(None, **bound)
    except TypeError as exc:
        raise ValidationError(str(exc), details={"tool": name}) from exc

    # Required parameters must be present and not None.
    for param in signature.parameters.values():
        if param.name != "ctx" and param.default is inspect.Parameter.empty and param.name not in bound:
            raise ValidationError(
                f"{param.name} is required",
                details={"tool": name, "field": param.name}
            )
    return bound


async def dispatch_tool(
    ctx: GatewayContext,
    name: str,
    arguments: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Run a tool by name.

    Gateway errors (not found, validation, configuration) come back as an
    error envelope so the agent can correct itself; upstream HTTP failures
    propagate unchanged.
    """
    set_request_id()
    handler = TOOLS.get(name)

    try:
        if handler is None:
            raise ValidationError(f"Unknown tool: {name}", details={"tools": sorted(TOOLS)})
        if name not in SESSION_TOOLS:
            ctx.settings.require_token()

        result = handler(ctx, **_bind_arguments(name, handler, arguments or {}))
        if inspect.isawaitable(result):
            result = await result
        return result

    except DesignGatewayException as exc:
        logger.warning("Tool call failed", tool=name, code=exc.code, error=exc.message)
        return ctx.chunker.wrap_response(
            {"error": exc.message, **exc.to_response().model_dump(exclude={"message"})},
            step="Error",
            progress="Failed",
            next_step="Check parameters and try again",
        )


__all__ = [
    "TOOLS",
    "dispatch_tool",
    "list_pages",
    "list_frames",
    "get_frame_info",
    "search_components",
    "get_file_styles",
    "repeat_last",
    "get_session_state",
    "reset_session",
]
