"""Path geometry for tree links and message traffic.

All functions are pure. Inputs are in layout space (``x`` is breadth, ``y``
is depth); emitted SVG path strings swap the axes so depth runs along the
screen's horizontal axis.
"""

import logging
import math
import random
from dataclasses import dataclass

from ..errors import InvalidGeometryInput
from ..models import Point

logger = logging.getLogger(__name__)

# radius of the node circles that message curves attach to
MESSAGE_RADIUS = 20

# lenses over a shorter chord collapse to a line
MIN_LENS_BASE = 1e-6


def _fmt(value: float) -> str:
    """Format a coordinate compactly (no trailing zeros, no -0)."""
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _screen(p: Point) -> str:
    return f"{_fmt(p.y)} {_fmt(p.x)}"


def unit_vector(start: Point, end: Point) -> tuple[float, float, float]:
    """Direction and length of the segment from ``start`` to ``end``.

    Returns:
        ``(ux, uy, length)``

    Raises:
        InvalidGeometryInput: If the points coincide
    """
    dx = end.x - start.x
    dy = end.y - start.y
    length = math.hypot(dx, dy)
    if length == 0:
        raise InvalidGeometryInput(f"coincident points at ({start.x}, {start.y})")
    return dx / length, dy / length, length


@dataclass(frozen=True)
class LinkShape:
    """Control points of a lens built from two mirrored quadratic curves.

    ``source`` and ``target`` lie on the node boundaries; ``half_width`` is
    the apex distance of each arc from the chord.
    """
    source: Point
    control1: Point
    target: Point
    control2: Point
    half_width: float

    @property
    def base_length(self) -> float:
        return math.hypot(self.target.x - self.source.x, self.target.y - self.source.y)

    @property
    def enclosed_area(self) -> float:
        """Area between the two arcs (each arc encloses 2/3 of its box).

        With ``half_width = 3A/(8k)`` this is ``A/2`` for a requested area
        ``A``; the proportions of capacity links depend on that scale.
        """
        return 4 / 3 * self.base_length * self.half_width

    def to_path(self) -> str:
        return (
            f"M{_screen(self.source)} Q{_screen(self.control1)}, {_screen(self.target)} "
            f"Q{_screen(self.control2)}, {_screen(self.source)} Z"
        )


@dataclass(frozen=True)
class MessageCurve:
    """Control points of a cubic curve between two node boundaries."""
    start: Point
    control1: Point
    control2: Point
    end: Point

    def to_path(self) -> str:
        return (
            f"M{_screen(self.start)} C {_screen(self.control1)}, "
            f"{_screen(self.control2)}, {_screen(self.end)}"
        )


def link_shape(child: Point, parent: Point, source_radius: float,
               target_radius: float, area: float) -> LinkShape:
    """Compute the lens connecting a child node to its parent.

    Args:
        child: Position of the child node (source of the link)
        parent: Position of the parent node (target of the link)
        source_radius: Radius of the child node, so the lens touches its edge
        target_radius: Radius of the parent node
        area: Desired link area in square pixels

    Raises:
        InvalidGeometryInput: If the two nodes coincide
    """
    u, v, _ = unit_vector(child, parent)

    source = Point(child.x + source_radius * u, child.y + source_radius * v)
    target = Point(parent.x - target_radius * u, parent.y - target_radius * v)
    mx = (source.x + target.x) / 2
    my = (source.y + target.y) / 2

    k = math.hypot(target.x - source.x, target.y - source.y)
    # parabola area is 2/3 base x height, two arcs make the lens
    w = 3 * area / (8 * k) if k > MIN_LENS_BASE else 0.0

    # a quadratic curve peaks halfway to its control point
    control1 = Point(mx + v * 2 * w, my - u * 2 * w)
    control2 = Point(mx - v * 2 * w, my + u * 2 * w)
    return LinkShape(source, control1, target, control2, w)


def link_path(child: Point, parent: Point, source_radius: float,
              target_radius: float, area: float) -> str:
    """SVG path of the capacity lens between a child and its parent.

    Coincident nodes give a zero-size closed path at the child's position.
    """
    try:
        return link_shape(child, parent, source_radius, target_radius, area).to_path()
    except InvalidGeometryInput as e:
        logger.debug(f"Degenerate link: {e}")
        return f"M{_screen(child)} Z"


def message_curve(source: Point, target: Point, source_angle: float, source_radius: float,
                  target_angle: float, target_radius: float) -> MessageCurve:
    """Compute a cubic curve leaving ``source`` and entering ``target``.

    The curve leaves the source boundary at ``source_angle`` from the
    source-to-target axis and enters the target boundary at ``target_angle``
    (mirrored). The inner control points sit one more radius out along the
    same directions.

    Raises:
        InvalidGeometryInput: If the two nodes coincide
    """
    v, u, _ = unit_vector(source, target)

    sina = math.sin(source_angle)
    cosa = math.cos(source_angle)
    a = (-source_radius * (u * sina - v * cosa), source_radius * (u * cosa + v * sina))

    sina = math.sin(-target_angle)
    cosa = math.cos(-target_angle)
    b = (target_radius * (u * sina - v * cosa), -target_radius * (u * cosa + v * sina))

    return MessageCurve(
        start=Point(source.x + a[0], source.y + a[1]),
        control1=Point(source.x + 2 * a[0], source.y + 2 * a[1]),
        control2=Point(target.x + 2 * b[0], target.y + 2 * b[1]),
        end=Point(target.x + b[0], target.y + b[1]),
    )


def message_path(source: Point, target: Point, source_angle: float, source_radius: float,
                 target_angle: float, target_radius: float) -> str:
    """SVG path of a message curve; a point-sized path when the nodes coincide."""
    try:
        return message_curve(source, target, source_angle, source_radius,
                             target_angle, target_radius).to_path()
    except InvalidGeometryInput as e:
        logger.debug(f"Degenerate message curve: {e}")
        return f"M{_screen(source)} C {_screen(source)}, {_screen(source)}, {_screen(source)}"


def horizontal_link_path(source: Point, target: Point) -> str:
    """Smooth cubic link with horizontal tangents at both ends.

    ``source`` is the parent; the curve bends halfway along the depth axis.
    """
    mid = (source.y + target.y) / 2
    return (
        f"M{_fmt(source.y)},{_fmt(source.x)}"
        f"C{_fmt(mid)},{_fmt(source.x)} {_fmt(mid)},{_fmt(target.x)} {_fmt(target.y)},{_fmt(target.x)}"
    )


def random_angle() -> float:
    """Uniform departure angle in ``[0, pi/2)``."""
    return random.random() * math.pi / 2.0
