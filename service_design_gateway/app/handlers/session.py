"""
Session handlers: repeat, inspect and reset.
"""

from typing import Any, Dict

from ..context import GatewayContext


def repeat_last(ctx: GatewayContext) -> Dict[str, Any]:
    """Return the previous envelope again, unchanged."""
    last_response = ctx.session.get_last_response()
    if last_response is None:
        return ctx.chunker.wrap_response(
            {"message": "No previous response in session"},
            step="Repeat failed",
            next_step="Make a request first, then use repeat_last",
        )
    return last_response


def get_session_state(ctx: GatewayContext) -> Dict[str, Any]:
    state = ctx.session.get_state()
    return ctx.chunker.wrap_response(
        state,
        step="Session state retrieved",
        progress="Active session" if state["currentFile"] else "No active session",
        next_step="Use reset_session to clear state if needed",
    )


def reset_session(ctx: GatewayContext) -> Dict[str, Any]:
    ctx.session.reset()
    return ctx.chunker.wrap_response(
        {"message": "Session state cleared"},
        step="Session reset",
        progress="Complete",
        next_step="Start fresh with list_pages(file_key)",
    )
