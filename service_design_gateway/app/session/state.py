"""
Session state for an exploring agent.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from shared.logging import clear_file_context, get_logger, set_file_context


@dataclass
class Chunk:
    """One delivered page of a larger result."""
    items: List[Any]
    page_index: int
    total_pages: int
    total_items: int

    @property
    def has_more(self) -> bool:
        return self.page_index < self.total_pages


@dataclass
class PendingOperation:
    """Pages of a paginated query that have not all been delivered yet.

    ``current_index`` points at the next page to hand out; page 0 went out
    with the first response.
    """
    pages: List[List[Any]]
    current_index: int = 1
    total_pages: int = field(init=False)

    def __post_init__(self):
        self.total_pages = len(self.pages)

    @property
    def exhausted(self) -> bool:
        return self.current_index >= self.total_pages

    @property
    def total_items(self) -> int:
        return sum(len(page) for page in self.pages)


class SessionState:
    """Exploration progress, last envelope and pending pagination for one session.

    Everything except the last response is scoped to the current file:
    switching files drops explored pages and frames, pending operations and
    memoized nodes together.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self.logger = get_logger("gateway.session")
        self.reset()

    def reset(self) -> None:
        """Forget everything."""
        self.current_file: Optional[str] = None
        self.explored_pages: Set[str] = set()
        self.explored_frames: Set[str] = set()
        self.pending_operations: Dict[str, PendingOperation] = {}
        self.node_cache: Dict[Tuple[str, str], Any] = {}
        self.last_response: Optional[Any] = None
        self.last_updated = self._clock()
        clear_file_context()

    def _touch(self) -> None:
        self.last_updated = self._clock()

    def set_current_file(self, file_key: str) -> None:
        """Make ``file_key`` the active file, clearing state that belonged to another one."""
        if self.current_file != file_key:
            self.logger.info(
                "Switching active file",
                previous_file=self.current_file,
                file_key=file_key,
                dropped_operations=len(self.pending_operations)
            )
            self.current_file = file_key
            self.explored_pages.clear()
            self.explored_frames.clear()
            self.pending_operations.clear()
            self.node_cache.clear()
            clear_file_context()
        set_file_context(file_key=file_key)
        self._touch()

    def mark_page_explored(self, page_id: str) -> None:
        self.explored_pages.add(page_id)
        self._touch()

    def mark_frame_explored(self, frame_id: str) -> None:
        self.explored_frames.add(frame_id)
        self._touch()

    def cache_node(self, file_key: str, node_id: str, node: Any) -> None:
        """Remember a fetched node for the active file."""
        self.node_cache[(file_key, node_id)] = node
        self._touch()

    def get_cached_node(self, file_key: str, node_id: str) -> Optional[Any]:
        return self.node_cache.get((file_key, node_id))

    def store_pending_chunks(self, operation_id: str, pages: Sequence[Sequence[Any]]) -> None:
        """Register all pages of a result; the first is assumed already delivered."""
        operation = PendingOperation(pages=[list(page) for page in pages])
        if operation.exhausted:
            self.pending_operations.pop(operation_id, None)
        else:
            self.pending_operations[operation_id] = operation
            self.logger.debug(
                "Pending operation registered",
                operation_id=operation_id,
                total_pages=operation.total_pages
            )
        self._touch()

    def get_next_chunk(self, operation_id: str) -> Optional[Chunk]:
        """Hand out the next page, or None when there is no more data."""
        operation = self.pending_operations.get(operation_id)
        if operation is None or operation.exhausted:
            return None

        chunk = Chunk(
            items=operation.pages[operation.current_index],
            page_index=operation.current_index + 1,
            total_pages=operation.total_pages,
            total_items=operation.total_items,
        )
        operation.current_index += 1
        if operation.exhausted:
            del self.pending_operations[operation_id]
            self.logger.debug("Pending operation completed", operation_id=operation_id)

        self._touch()
        return chunk

    def has_pending_chunks(self, operation_id: str) -> bool:
        operation = self.pending_operations.get(operation_id)
        return operation is not None and not operation.exhausted

    def store_last_response(self, response: Any) -> None:
        self.last_response = response
        self._touch()

    def get_last_response(self) -> Optional[Any]:
        return self.last_response

    def get_state(self) -> Dict[str, Any]:
        """Read-only diagnostic snapshot."""
        return {
            "currentFile": self.current_file,
            "exploredPages": sorted(self.explored_pages),
            "exploredFrames": sorted(self.explored_frames),
            "pendingOperations": sorted(self.pending_operations),
            "hasLastResponse": self.last_response is not None,
            "lastUpdated": datetime.fromtimestamp(self.last_updated, tz=timezone.utc).isoformat(),
        }
