"""Cluster (dendrogram) layout: every leaf is aligned at the same depth."""

from ..hierarchy import HierarchyNode
from .framework import LayoutAlgorithm


def _leftmost_leaf(node: HierarchyNode) -> HierarchyNode:
    while node.children:
        node = node.children[0]
    return node


def _rightmost_leaf(node: HierarchyNode) -> HierarchyNode:
    while node.children:
        node = node.children[-1]
    return node


class ClusterLayout(LayoutAlgorithm):
    """Leaves take successive breadth slots; parents center over children.

    Depth is measured from the leaves (a node's ``height``), so all leaves end
    up at ``y == height`` of the canvas and the root at ``y == 0``.
    """

    @property
    def mode_name(self) -> str:
        return "cluster"

    def _position(self, root: HierarchyNode) -> None:
        width, height = self.size
        previous = None
        slot = 0.0

        for node in root.each_after():
            if node.children:
                node.x = sum(child.x for child in node.children) / len(node.children)
            else:
                if previous is not None:
                    slot += self.separation(node, previous)
                node.x = slot
                previous = node

        left = _leftmost_leaf(root)
        right = _rightmost_leaf(root)
        x0 = left.x - self.separation(left, right) / 2
        x1 = right.x + self.separation(right, left) / 2

        for node in root.each_after():
            node.x = (node.x - x0) / (x1 - x0) * width
            node.y = (1 - (node.height / root.height if root.height else 1)) * height
