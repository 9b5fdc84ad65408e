"""
Session package for the Gateway.

Holds per-session exploration progress and the pagination state machine
that lets a paginated query resume across independent calls.
"""

from .state import SessionState, PendingOperation, Chunk

__all__ = ["SessionState", "PendingOperation", "Chunk"]
