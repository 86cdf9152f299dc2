"""Rendering of tree diagrams into SVG.

The geometry module computes link and message paths, the svg module wraps
the ElementTree drawing surface, and ``TreeDiagram`` keeps drawn elements in
sync with nodes, links and traffic.
"""

from .diagram import TreeDiagram, log_click, no_capacity
from .geometry import (
    MESSAGE_RADIUS,
    LinkShape,
    MessageCurve,
    horizontal_link_path,
    link_path,
    link_shape,
    message_curve,
    message_path,
)
from .svg import create_canvas, load_canvas, to_string, write_canvas

__all__ = [
    "TreeDiagram",
    "log_click",
    "no_capacity",
    "MESSAGE_RADIUS",
    "LinkShape",
    "MessageCurve",
    "horizontal_link_path",
    "link_path",
    "link_shape",
    "message_curve",
    "message_path",
    "create_canvas",
    "load_canvas",
    "to_string",
    "write_canvas",
]
