"""
bvh.py: Static bounding volume hierarchy over timezone rings.

The tree is produced offline and shipped as JSON:

    internal node: {"b": [[min_x, min_y], [max_x, max_y]], "l": {...}, "r": {...}}
    leaf node:     {"b": [[...], [...]], "p": [{"tz": "Europe%2FParis", "i": 0, "b": [[...], [...]]}, ...]}

On load the nested objects are flattened into an arena (a list of nodes in
pre-order) whose internal nodes refer to their children by index. The arena is
never mutated afterwards.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence
from urllib.parse import unquote

from tzengine.errors import BvhLoadError
from tzengine.geometry import BoundingBox

logger = logging.getLogger(__name__)


# ── Records ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PolygonRef:
    """
    Pointer to one ring of one timezone.

    Attributes:
        timezone_id: Decoded IANA identifier, e.g. "America/New_York".
        ring_index:  Index of the ring file within the timezone's directory.
        bbox:        Bounding box of that ring alone.
        storage_key: The id exactly as the artifact encodes it; names the
                     ring directory on disk.
    """
    timezone_id: str
    ring_index: int
    bbox: BoundingBox
    storage_key: str


@dataclass(frozen=True)
class BvhNode:
    """
    One arena slot. Internal nodes carry the arena indices of their two
    children; leaves carry the rings they bound.
    """
    box: BoundingBox
    children: Optional[tuple[int, int]] = None
    refs: tuple[PolygonRef, ...] = ()

    @property
    def is_leaf(self) -> bool:
        return self.children is None


# ── Parsing ───────────────────────────────────────────────────────────────────

def _parse_box(raw: Any, where: str) -> BoundingBox:
    try:
        return BoundingBox.from_corners(raw)
    except (TypeError, ValueError) as exc:
        raise BvhLoadError(f"Invalid bounding box at {where}: {raw!r} ({exc})") from exc


def _parse_ref(raw: Any, where: str) -> PolygonRef:
    if not isinstance(raw, dict):
        raise BvhLoadError(f"Polygon entry at {where} is not an object")

    encoded_tz = raw.get("tz")
    ring_index = raw.get("i")
    if not isinstance(encoded_tz, str) or not encoded_tz:
        raise BvhLoadError(f"Polygon entry at {where} has no timezone id")
    if isinstance(ring_index, bool) or not isinstance(ring_index, int) or ring_index < 0:
        raise BvhLoadError(f"Polygon entry at {where} has invalid ring index {ring_index!r}")

    return PolygonRef(
        timezone_id=unquote(encoded_tz),
        ring_index=ring_index,
        bbox=_parse_box(raw.get("b"), where),
        storage_key=encoded_tz,
    )


def _flatten(root: Any) -> list[BvhNode]:
    """
    Convert the nested JSON tree into a pre-order arena.

    Both passes are iterative so tree depth is not limited by the
    interpreter's recursion limit.
    """
    order: list[dict] = []
    index_of: dict[int, int] = {}

    stack = [root]
    while stack:
        raw = stack.pop()
        if not isinstance(raw, dict):
            raise BvhLoadError(f"BVH node {len(order)} is not an object")
        index_of[id(raw)] = len(order)
        order.append(raw)

        left, right = raw.get("l"), raw.get("r")
        if (left is None) != (right is None):
            raise BvhLoadError(f"BVH node {len(order) - 1} has only one child")
        if left is not None:
            stack.append(right)
            stack.append(left)

    nodes: list[BvhNode] = []
    for position, raw in enumerate(order):
        where = f"node {position}"
        box = _parse_box(raw.get("b"), where)

        if raw.get("l") is not None:
            children = (index_of[id(raw["l"])], index_of[id(raw["r"])])
            nodes.append(BvhNode(box=box, children=children))
            continue

        entries = raw.get("p", [])
        if not isinstance(entries, list):
            raise BvhLoadError(f"Polygon list at {where} is not an array")
        refs = tuple(
            _parse_ref(entry, f"{where}, polygon {k}") for k, entry in enumerate(entries)
        )
        nodes.append(BvhNode(box=box, refs=refs))

    return nodes


# ── Index ─────────────────────────────────────────────────────────────────────

class BvhIndex:
    """Read-only BVH answering "which rings might contain this point?"."""

    def __init__(self, nodes: Sequence[BvhNode]):
        if not nodes:
            raise BvhLoadError("BVH has no nodes")
        self._nodes: tuple[BvhNode, ...] = tuple(nodes)

    @classmethod
    def from_dict(cls, root: Any) -> "BvhIndex":
        """Build an index from an already parsed JSON tree."""
        return cls(_flatten(root))

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def bounds(self) -> BoundingBox:
        return self._nodes[0].box

    @property
    def nodes(self) -> tuple[BvhNode, ...]:
        return self._nodes

    def refs(self) -> Iterator[PolygonRef]:
        """Every PolygonRef in the tree, leaves in pre-order."""
        for node in self._nodes:
            yield from node.refs

    def candidates(self, point: Sequence[float]) -> list[PolygonRef]:
        """
        Collect every ring whose bounding box contains the point.

        Descends depth-first, left before right, into every child box that
        contains the point, so overlapping branches are all visited. Refs of
        each hit leaf are filtered again by their own bbox.

        Args:
            point: (lon, lat) of the query.

        Returns:
            Matching refs in descent order; empty if the root misses.
        """
        nodes = self._nodes
        if not nodes[0].box.contains(point):
            return []

        hits: list[PolygonRef] = []
        stack = [0]
        while stack:
            node = nodes[stack.pop()]
            if node.is_leaf:
                hits.extend(ref for ref in node.refs if ref.bbox.contains(point))
                continue

            left, right = node.children
            # right first so the left subtree pops first
            if nodes[right].box.contains(point):
                stack.append(right)
            if nodes[left].box.contains(point):
                stack.append(left)

        return hits


# ── Loader ────────────────────────────────────────────────────────────────────

def load_bvh(path: Path) -> BvhIndex:
    """
    Read and flatten the BVH artifact.

    Args:
        path: Location of the JSON tree.

    Returns:
        A ready BvhIndex.

    Raises:
        BvhLoadError: If the file is missing, unreadable, not JSON, or does
            not describe a well-formed tree. No query can be served without
            it, so callers should treat this as fatal.
    """
    try:
        with Path(path).open(encoding="utf-8") as fh:
            root = json.load(fh)
    except FileNotFoundError as exc:
        raise BvhLoadError(f"BVH file not found: {path}") from exc
    except OSError as exc:
        raise BvhLoadError(f"Cannot read BVH file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise BvhLoadError(f"Invalid JSON in {path}: {exc}") from exc

    index = BvhIndex.from_dict(root)
    logger.info("Loaded BVH with %d nodes from %s", len(index), Path(path).name)
    return index
