"""Layout framework: algorithms that assign positions to hierarchy nodes."""

import logging
from abc import ABC, abstractmethod

from ..hierarchy import HierarchyNode

logger = logging.getLogger(__name__)


def constant_separation(a: HierarchyNode, b: HierarchyNode) -> float:
    """Keep every pair of neighbouring nodes one slot apart."""
    return 1


class LayoutAlgorithm(ABC):
    """Abstract base class for hierarchy layouts.

    A layout assigns ``x`` (breadth) and ``y`` (depth) to every node so that
    all positions fall inside ``[0, width] x [0, height]``.
    """

    def __init__(self, size: tuple[float, float], separation=constant_separation):
        self.size = size
        self.separation = separation

    @property
    @abstractmethod
    def mode_name(self) -> str:
        """Name of the layout mode."""
        pass

    @abstractmethod
    def _position(self, root: HierarchyNode) -> None:
        """Assign ``x``/``y`` to every node of the tree."""
        pass

    def __call__(self, root: HierarchyNode) -> HierarchyNode:
        self._position(root)
        logger.debug(f"Applied {self.mode_name} layout to tree rooted at {root.id} within {self.size}")
        return root
