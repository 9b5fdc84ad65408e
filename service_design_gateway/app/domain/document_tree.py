"""
Document tree model and pure lookups over fetched design files.

Nodes are parsed from the API's JSON into ``DocumentNode`` values so the
pruning and search helpers never touch the network or the cache.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

# Node kinds that behave like containers for frame/component lookups.
CONTAINER_KINDS = frozenset({"FRAME", "COMPONENT", "COMPONENT_SET"})

_STRUCTURAL_KEYS = {"id", "name", "type", "visible", "absoluteBoundingBox", "children"}


@dataclass(frozen=True)
class BoundingBox:
    """Absolute geometry of a node."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> Optional["BoundingBox"]:
        if not payload:
            return None
        return cls(
            x=float(payload.get("x") or 0),
            y=float(payload.get("y") or 0),
            width=float(payload.get("width") or 0),
            height=float(payload.get("height") or 0),
        )

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    def rounded(self) -> Dict[str, int]:
        return {key: round(value) for key, value in self.to_dict().items()}


@dataclass
class DocumentNode:
    """One node of a design document: kind, geometry and children."""
    id: str
    name: str
    type: str
    visible: bool = True
    bounds: Optional[BoundingBox] = None
    children: List["DocumentNode"] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_container(self) -> bool:
        return self.type in CONTAINER_KINDS

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "DocumentNode":
        """Parse an API node (and its subtree)."""
        return cls(
            id=str(payload.get("id", "")),
            name=str(payload.get("name", "")),
            type=str(payload.get("type", "")),
            visible=payload.get("visible", True) is not False,
            bounds=BoundingBox.from_dict(payload.get("absoluteBoundingBox")),
            children=[cls.from_dict(child) for child in payload.get("children") or []],
            attributes={k: v for k, v in payload.items() if k not in _STRUCTURAL_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Render back to the API's JSON shape."""
        payload: Dict[str, Any] = {"id": self.id, "name": self.name, "type": self.type}
        if not self.visible:
            payload["visible"] = False
        if self.bounds is not None:
            payload["absoluteBoundingBox"] = self.bounds.to_dict()
        payload.update(self.attributes)
        if self.children:
            payload["children"] = [child.to_dict() for child in self.children]
        return payload


def prune_hidden(node: DocumentNode) -> Optional[DocumentNode]:
    """Return a copy of the tree without hidden nodes or anything under them."""
    if not node.visible:
        return None
    kept = [pruned for pruned in (prune_hidden(child) for child in node.children) if pruned is not None]
    return DocumentNode(
        id=node.id,
        name=node.name,
        type=node.type,
        visible=True,
        bounds=node.bounds,
        children=kept,
        attributes=dict(node.attributes),
    )


def _matches(node: DocumentNode, needle: str) -> bool:
    return needle in node.name.lower()


def find_page_by_name(document: DocumentNode, name: str) -> Optional[DocumentNode]:
    """First top-level page whose name contains ``name``, ignoring case."""
    needle = name.lower()
    for page in document.children:
        if _matches(page, needle):
            return page
    return None


def find_frame_by_name(page: DocumentNode, name: str) -> Optional[DocumentNode]:
    """Depth-first search for a frame or component whose name contains ``name``."""
    needle = name.lower()

    def _search(children: Sequence[DocumentNode]) -> Optional[DocumentNode]:
        for child in children:
            if child.is_container and _matches(child, needle):
                return child
            found = _search(child.children)
            if found is not None:
                return found
        return None

    return _search(page.children)


def count_elements(node: Optional[DocumentNode]) -> int:
    """Number of nodes in the subtree, the root included."""
    if node is None:
        return 0
    return 1 + sum(count_elements(child) for child in node.children)


def walk(node: DocumentNode, path: Tuple[str, ...] = ()) -> Iterator[Tuple[DocumentNode, Tuple[str, ...]]]:
    """Yield every node depth-first with the names of its ancestors."""
    yield node, path
    for child in node.children:
        yield from walk(child, path + (node.name,))


def search_nodes(
    root: DocumentNode,
    query: str,
    node_type: Optional[str] = None,
) -> List[Tuple[DocumentNode, Tuple[str, ...]]]:
    """All nodes under ``root`` whose name contains ``query``, optionally of one kind."""
    needle = query.lower()
    return [
        (node, path)
        for node, path in walk(root)
        if (node_type is None or node.type == node_type) and _matches(node, needle)
    ]


def summarize_node(node: DocumentNode, depth: int, current_depth: int = 0) -> Dict[str, Any]:
    """Structural summary of a node: identity, geometry and children to ``depth``."""
    summary: Dict[str, Any] = {"name": node.name, "type": node.type, "id": node.id}
    if node.bounds is not None:
        summary["bounds"] = node.bounds.rounded()
    if node.type == "TEXT" and "characters" in node.attributes:
        summary["text"] = node.attributes["characters"]

    if node.children:
        if current_depth < depth:
            summary["children"] = [
                summarize_node(child, depth, current_depth + 1) for child in node.children
            ]
        else:
            summary["childCount"] = len(node.children)
    return summary
