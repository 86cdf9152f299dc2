"""Hierarchy construction from flat node records.

Turns an ordered list of ``NodeRecord`` objects into a rooted tree of
``HierarchyNode`` objects, following the stratify conventions used by
d3-hierarchy: children keep input order, ``depth`` counts from the root and
``height`` counts from the deepest leaf.
"""

import logging
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from .errors import MalformedHierarchyError
from .models import NodeRecord

logger = logging.getLogger(__name__)


class HierarchyNode:
    """A node of a laid-out tree.

    ``x`` and ``y`` stay ``None`` until a layout pass assigns them; ``parent``
    is a plain back-reference used for traversal only.
    """

    def __init__(self, data: NodeRecord):
        self.data = data
        self.id = data.id
        self.parent: HierarchyNode | None = None
        self.children: list[HierarchyNode] = []
        self.depth = 0
        self.height = 0
        self.x: float | None = None
        self.y: float | None = None

    def __repr__(self) -> str:
        return f"HierarchyNode(id={self.id!r}, depth={self.depth}, x={self.x}, y={self.y})"

    @property
    def css_class(self) -> str:
        return self.data.css_class

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def each_before(self) -> Iterator["HierarchyNode"]:
        """Pre-order traversal (parents before children)."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def each_after(self) -> Iterator["HierarchyNode"]:
        """Post-order traversal (children before parents)."""
        order = []
        stack = [self]
        while stack:
            node = stack.pop()
            order.append(node)
            stack.extend(node.children)
        yield from reversed(order)

    def descendants(self) -> list["HierarchyNode"]:
        """All nodes of this subtree in breadth-first order, self first."""
        result = []
        queue = deque([self])
        while queue:
            node = queue.popleft()
            result.append(node)
            queue.extend(node.children)
        return result

    def leaves(self) -> list["HierarchyNode"]:
        return [node for node in self.each_before() if node.is_leaf]

    def ancestors(self) -> list["HierarchyNode"]:
        """This node followed by each parent up to the root."""
        result = []
        node = self
        while node is not None:
            result.append(node)
            node = node.parent
        return result

    def links(self) -> list["HierarchyLink"]:
        """Parent links of every descendant, in breadth-first order."""
        return [
            HierarchyLink(source=node.parent, target=node)
            for node in self.descendants()
            if node.parent is not None
        ]

    def find(self, node_id: str) -> "HierarchyNode | None":
        for node in self.each_before():
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "parent": self.parent.id if self.parent else None,
            "class": self.css_class,
            "depth": self.depth,
            "height": self.height,
            "x": self.x,
            "y": self.y,
        }


@dataclass(frozen=True)
class HierarchyLink:
    """A parent-child connection; ``source`` is the parent."""
    source: HierarchyNode
    target: HierarchyNode

    @property
    def key(self) -> str:
        return self.target.id


def stratify(records: Iterable[NodeRecord]) -> HierarchyNode:
    """Build a tree from flat records.

    Args:
        records: Node records with unique ids; exactly one has no parent

    Returns:
        The root ``HierarchyNode`` with depth and height computed

    Raises:
        MalformedHierarchyError: On empty input, duplicate ids, unresolved
            parent ids, zero or several roots, or cycles
    """
    records = list(records)
    if not records:
        raise MalformedHierarchyError("no nodes")

    nodes: dict[str, HierarchyNode] = {}
    for record in records:
        if record.id in nodes:
            raise MalformedHierarchyError("ambiguous", record.id)
        nodes[record.id] = HierarchyNode(record)

    root = None
    for record in records:
        node = nodes[record.id]
        if record.parent is None:
            if root is not None:
                raise MalformedHierarchyError("multiple roots", record.id)
            root = node
            continue
        parent = nodes.get(record.parent)
        if parent is None:
            raise MalformedHierarchyError("missing", record.parent)
        node.parent = parent
        parent.children.append(node)

    if root is None:
        raise MalformedHierarchyError("no root")

    reached = root.descendants()
    if len(reached) != len(nodes):
        # every node has one parent, so anything unreachable sits on a cycle
        reached_ids = {node.id for node in reached}
        stray = next(record.id for record in records if record.id not in reached_ids)
        raise MalformedHierarchyError("cycle", stray)

    for node in reached:
        if node.parent is not None:
            node.depth = node.parent.depth + 1
    for node in root.each_after():
        node.height = 1 + max(child.height for child in node.children) if node.children else 0

    logger.debug(f"Built hierarchy rooted at {root.id} with {len(reached)} nodes, height {root.height}")
    return root
