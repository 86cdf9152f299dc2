"""SVG drawing surface helpers built on ElementTree."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from defusedxml.ElementTree import parse as defused_parse

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"

ET.register_namespace("", SVG_NS)


def _namespace(element: ET.Element) -> str:
    if element.tag.startswith("{"):
        return element.tag[:element.tag.index("}") + 1]
    return ""


def local_name(element: ET.Element) -> str:
    """Tag name without its namespace."""
    return element.tag.rsplit("}", 1)[-1]


def append_element(parent: ET.Element, name: str, **attributes: str) -> ET.Element:
    """Append a child in the parent's namespace.

    Attribute names use ``_`` for ``-`` (``pointer_events`` becomes
    ``pointer-events``).
    """
    attrs = {key.replace("_", "-"): str(value) for key, value in attributes.items()}
    return ET.SubElement(parent, _namespace(parent) + name, attrs)


def elements_with_class(container: ET.Element, css_class: str) -> list[ET.Element]:
    """All descendants whose class list contains ``css_class``."""
    return [
        element for element in container.iter()
        if css_class in (element.get("class") or "").split()
    ]


def create_canvas(width: float, height: float) -> ET.Element:
    """Create an empty ``<svg>`` root of the given size."""
    return ET.Element(f"{{{SVG_NS}}}svg", {
        "width": f"{width:g}",
        "height": f"{height:g}",
        "viewBox": f"0 0 {width:g} {height:g}",
    })


def load_canvas(path: Path) -> ET.Element:
    """Parse an existing SVG document to draw into.

    Raises:
        ValueError: If the file is not an SVG document
    """
    root = defused_parse(str(path)).getroot()
    if local_name(root) != "svg":
        raise ValueError(f"{path} is not an SVG document (root element: {local_name(root)})")
    logger.debug(f"Loaded SVG canvas from {path}")
    return root


def to_string(canvas: ET.Element) -> str:
    """Serialize a canvas to indented SVG text."""
    tree = ET.ElementTree(canvas)
    ET.indent(tree)
    return ET.tostring(canvas, encoding="unicode") + "\n"


def write_canvas(canvas: ET.Element, path: Path) -> Path:
    """Write a canvas to ``path``, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_string(canvas), encoding="utf-8")
    logger.info(f"Wrote SVG to {path}")
    return path
