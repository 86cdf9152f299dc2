"""Hierarchy layout algorithms.

Provides the tidy tree layout and the cluster (dendrogram) layout; the mode
is picked once from the diagram configuration.
"""

from ..config import TreeConfig
from .cluster import ClusterLayout
from .framework import LayoutAlgorithm, constant_separation
from .tidy import TidyTreeLayout


def create_layout(config: TreeConfig) -> LayoutAlgorithm:
    """Select the layout algorithm for a diagram configuration."""
    if config.cluster:
        return ClusterLayout(config.size)
    return TidyTreeLayout(config.size)


__all__ = [
    "LayoutAlgorithm",
    "TidyTreeLayout",
    "ClusterLayout",
    "constant_separation",
    "create_layout",
]
