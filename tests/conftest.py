"""Pytest configuration and fixtures for netree tests."""

import pytest

from netree.config import TreeConfig
from netree.render import TreeDiagram, create_canvas


@pytest.fixture
def node_records():
    """Unbalanced three-level tree: leaves at depths 1 and 3."""
    return [
        {"id": "root"},
        {"id": "a", "parent": "root", "class": "router"},
        {"id": "b", "parent": "root"},
        {"id": "c", "parent": "a"},
        {"id": "d", "parent": "c", "class": "sensor"},
    ]


@pytest.fixture
def canvas():
    """Empty SVG canvas matching the default diagram size."""
    return create_canvas(800, 300)


@pytest.fixture
def fixed_angle():
    """Angle source that always departs along the link axis."""
    return lambda: 0.0


@pytest.fixture
def diagram(canvas, node_records, fixed_angle):
    """Diagram with the default configuration and deterministic angles."""
    return TreeDiagram(canvas, node_records, config=TreeConfig(), angle_source=fixed_angle)
