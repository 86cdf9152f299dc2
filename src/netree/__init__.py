"""netree - hierarchical network diagrams with animated message traffic.

netree lays out a tree of nodes, draws parent links (optionally sized by
capacity) and transient message curves into an SVG surface, and keeps the
drawn elements in sync as traffic comes and goes.
"""

__version__ = "0.1.0"
__description__ = "Hierarchical network diagrams with message traffic, rendered to SVG"

from netree.config import TreeConfig
from netree.errors import ConfigurationError, InvalidGeometryInput, MalformedHierarchyError
from netree.render import TreeDiagram

__all__ = [
    "__version__",
    "__description__",
    "TreeConfig",
    "TreeDiagram",
    "ConfigurationError",
    "InvalidGeometryInput",
    "MalformedHierarchyError",
]
