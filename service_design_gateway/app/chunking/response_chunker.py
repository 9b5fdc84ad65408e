"""
Response chunker and envelope builder.
"""

from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from shared.errors import ValidationError
from shared.logging import get_logger, set_file_context

from ..session.state import Chunk, SessionState
from .token_estimator import TokenEstimator

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_PAGE_SIZE = 20


class Navigation(BaseModel):
    """Where the caller is and what it can do next."""

    model_config = ConfigDict(populate_by_name=True)

    step: Optional[str] = None
    progress: Optional[str] = None
    can_continue: bool = Field(default=False, alias="canContinue")
    next_step: Optional[str] = Field(default=None, alias="nextStep")
    operation_id: Optional[str] = Field(default=None, alias="operationId")
    tokens_this_response: Optional[int] = Field(default=None, alias="tokensThisResponse")


class Guidance(BaseModel):
    """Hints for callers facing a large or ambiguous result."""

    model_config = ConfigDict(populate_by_name=True)

    alert: Optional[str] = None
    strategy: Optional[str] = None
    refinement_options: Optional[List[str]] = Field(default=None, alias="refinementOptions")


def make_operation_id(tool: str, *parts: Optional[Any]) -> str:
    """Stable key for a logical query, built from its defining parameters."""
    rendered = ["all" if part is None or part == "" else str(part) for part in parts]
    return ":".join([tool] + rendered)


def page_range(chunk: Chunk, page_size: int = DEFAULT_PAGE_SIZE) -> str:
    """Human-readable item range of a chunk, e.g. ``21-40``."""
    first = (chunk.page_index - 1) * page_size + 1
    last = min(chunk.page_index * page_size, chunk.total_items)
    return f"{first}-{last}"


class ResponseChunker:
    """Pages oversized results through the session and wraps outgoing data."""

    def __init__(
        self,
        token_estimator: TokenEstimator,
        session: SessionState,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.token_estimator = token_estimator
        self.session = session
        self.page_size = page_size
        self.metrics = metrics
        self.logger = get_logger("gateway.response_chunker")

    def chunk_array(
        self,
        items: Sequence[Any],
        operation_id: str,
        page_size: Optional[int] = None,
    ) -> Optional[Chunk]:
        """Split ``items`` into pages if it does not fit in one.

        Returns None when the caller should send ``items`` whole. Otherwise all
        pages are registered under ``operation_id`` and the first is returned.
        """
        size = page_size if page_size is not None else self.page_size
        if size <= 0:
            raise ValidationError("page_size must be positive", details={"page_size": size})

        if len(items) <= size:
            return None

        pages = [list(items[start:start + size]) for start in range(0, len(items), size)]
        set_file_context(operation_id=operation_id)
        self.session.store_pending_chunks(operation_id, pages)

        self.logger.info(
            "Result paginated",
            operation_id=operation_id,
            total_items=len(items),
            total_pages=len(pages)
        )
        return Chunk(items=pages[0], page_index=1, total_pages=len(pages), total_items=len(items))

    def next_chunk(self, operation_id: str) -> Optional[Chunk]:
        """Next pending page of ``operation_id``, or None when nothing is left."""
        set_file_context(operation_id=operation_id)
        chunk = self.session.get_next_chunk(operation_id)
        if chunk is not None and self.metrics:
            self.metrics.increment_counter("pagination_pages_served_total")
        return chunk

    def wrap_response(
        self,
        data: Any,
        *,
        step: Optional[str] = None,
        progress: Optional[str] = None,
        next_step: Optional[str] = None,
        can_continue: bool = False,
        operation_id: Optional[str] = None,
        alert: Optional[str] = None,
        strategy: Optional[str] = None,
        refinement_options: Optional[List[str]] = None,
        progress_detail: Optional[Any] = None,
        include_token_estimate: bool = True,
    ) -> Dict[str, Any]:
        """Build the outgoing envelope and remember it as the session's last response.

        ``_navigation`` is only present when progress or a continuation flag is
        given; an operation with undelivered pages counts as a continuation flag.
        """
        if operation_id and self.session.has_pending_chunks(operation_id):
            can_continue = True

        response: Dict[str, Any] = {"data": data}

        navigation: Optional[Navigation] = None
        if progress or can_continue:
            navigation = Navigation(
                step=step,
                progress=progress,
                can_continue=can_continue,
                next_step=next_step,
                operation_id=operation_id,
            )
            response["_navigation"] = navigation.model_dump(by_alias=True, exclude_none=True)

        if alert or strategy or refinement_options:
            guidance = Guidance(alert=alert, strategy=strategy, refinement_options=refinement_options)
            response["_guidance"] = guidance.model_dump(by_alias=True, exclude_none=True)

        if progress_detail is not None:
            response["_progress"] = progress_detail

        if navigation is not None and include_token_estimate:
            response["_navigation"]["tokensThisResponse"] = self.token_estimator.estimate(response)

        self.session.store_last_response(response)
        return response
