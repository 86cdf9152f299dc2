"""Interactive hierarchical network diagram rendered into an SVG surface.

``TreeDiagram`` owns the laid-out hierarchy, the message traffic buffer and
the references to everything it has drawn. Each draw method reconciles one
data set against its drawn elements: elements are created for new data,
updated for all data and removed when their data is gone.
"""

import logging
import math
import xml.etree.ElementTree as ET
from collections import deque
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from typing import Any

from pydantic import ValidationError

from ..config import LinkStyle, TreeConfig
from ..errors import MalformedHierarchyError
from ..hierarchy import HierarchyLink, HierarchyNode, stratify
from ..layout import LayoutAlgorithm, create_layout
from ..models import EdgeRecord, Message, MessageRecord, NodeRecord, Point
from .geometry import MESSAGE_RADIUS, horizontal_link_path, link_path, message_path, random_angle
from .svg import append_element

logger = logging.getLogger(__name__)

ClickHandler = Callable[[HierarchyNode, int, ET.Element | None], None]
LinkAreaFunction = Callable[[HierarchyLink], float]
AngleSource = Callable[[], float]


def log_click(node: HierarchyNode, index: int, element: ET.Element | None) -> None:
    """Default click handler: log the selected node."""
    logger.info(f"Clicked node {node!r} at index {index}")


def no_capacity(link: HierarchyLink) -> float:
    """Default link area policy: every link body is empty."""
    return 0


def _position(node: HierarchyNode) -> Point:
    return Point(node.x, node.y)


def _coerce(model, item):
    return item if isinstance(item, model) else model.model_validate(item)


def _coerce_records(model, items) -> list:
    try:
        return [_coerce(model, item) for item in items]
    except ValidationError as e:
        raise MalformedHierarchyError(f"invalid record: {e}") from e


class TreeDiagram:
    """A tree of nodes, links and message traffic drawn into ``container``.

    Args:
        container: Borrowed SVG element to draw into; never removed
        nodes: Node records (models or dicts) forming a single-root tree
        edges: Extra connections drawn over the tree links
        config: Diagram configuration, or a mapping of its options
            (defaults apply when omitted)
        angle_source: Zero-argument callable giving message angles in
            radians; defaults to uniform draws from ``[0, pi/2)``

    Raises:
        MalformedHierarchyError: If the records do not form one tree or an
            edge names an unknown node
        ConfigurationError: If configuration options are invalid
    """

    def __init__(
        self,
        container: ET.Element,
        nodes: Iterable[NodeRecord | dict[str, Any]],
        edges: Iterable[EdgeRecord | dict[str, Any]] = (),
        config: TreeConfig | Mapping[str, Any] | None = None,
        angle_source: AngleSource | None = None,
    ):
        if isinstance(config, Mapping):
            config = TreeConfig.create(**config)
        self.config = config or TreeConfig()
        self._layout: LayoutAlgorithm = create_layout(self.config)
        self._root, self._nodes_by_id, self._edges = self._load_tree(nodes, edges)

        self._traffic: deque[Message] = deque()
        self._click: ClickHandler = log_click
        self._link_area: LinkAreaFunction = no_capacity
        self._angle_source = angle_source or random_angle

        self.container = container
        self.group = append_element(container, "g", pointer_events="all", **{"class": "tree"})
        self._links_group = append_element(self.group, "g", **{"class": "links"})
        self._messages_group = append_element(self.group, "g", **{"class": "messaging"})
        self._nodes_group = append_element(self.group, "g", **{"class": "nodes"})

        self._link_elements: dict[str, ET.Element] = {}
        self._node_elements: dict[str, ET.Element] = {}
        self._message_elements: dict[str, ET.Element] = {}

        logger.info(
            f"Created {self._layout.mode_name} diagram with {len(self._nodes_by_id)} nodes "
            f"and {len(self._edges)} extra edges"
        )

    def _load_tree(self, nodes, edges) -> tuple[HierarchyNode, dict[str, HierarchyNode], list[EdgeRecord]]:
        """Build and lay out a tree without touching any diagram state."""
        records = _coerce_records(NodeRecord, nodes)
        edge_records = _coerce_records(EdgeRecord, edges)

        root = stratify(records)
        nodes_by_id = {node.id: node for node in root.descendants()}

        # edges repeating a parent link are already drawn
        tree_pairs = {frozenset((link.source.id, link.target.id)) for link in root.links()}
        extra = []
        for edge in edge_records:
            for endpoint in (edge.source, edge.target):
                if endpoint not in nodes_by_id:
                    raise MalformedHierarchyError("edge references unknown node", endpoint)
            if frozenset((edge.source, edge.target)) not in tree_pairs:
                extra.append(edge)

        self._layout(root)
        return root, nodes_by_id, extra

    def set_nodes(
        self,
        nodes: Iterable[NodeRecord | dict[str, Any]],
        edges: Iterable[EdgeRecord | dict[str, Any]] | None = None,
    ) -> "TreeDiagram":
        """Replace the node set and lay it out again.

        Buffered messages are rebound to the new nodes by id; messages whose
        endpoints disappeared are dropped. When ``edges`` is omitted the
        current extra edges are kept where both endpoints survive. Nothing
        changes if the new records are invalid.

        Raises:
            MalformedHierarchyError: If the records do not form one tree or an
                edge names an unknown node
        """
        records = _coerce_records(NodeRecord, nodes)
        if edges is None:
            ids = {record.id for record in records}
            edges = [edge for edge in self._edges if edge.source in ids and edge.target in ids]
        root, nodes_by_id, extra = self._load_tree(records, edges)

        kept = []
        for message in self._traffic:
            source = nodes_by_id.get(message.source.id)
            target = nodes_by_id.get(message.target.id)
            if source is None or target is None:
                logger.warning(f"Dropping message {message.message_id}: endpoint no longer in the tree")
                continue
            kept.append(replace(message, source=source, target=target))

        self._root, self._nodes_by_id, self._edges = root, nodes_by_id, extra
        self._traffic = deque(kept)
        logger.info(f"Replaced tree: {len(nodes_by_id)} nodes, {len(kept)} messages kept")
        return self

    # --- hierarchy ---------------------------------------------------------

    def hierarchy(self) -> HierarchyNode:
        """The laid-out tree. Treat it as read-only."""
        return self._root

    def node(self, node_id: str) -> HierarchyNode:
        """Look up a node by id.

        Raises:
            KeyError: If no node has that id
        """
        return self._nodes_by_id[node_id]

    def edges(self) -> tuple[EdgeRecord, ...]:
        """Extra (non-tree) edges drawn over the tree links."""
        return tuple(self._edges)

    def relayout(self) -> "TreeDiagram":
        """Recompute node positions with the configured layout mode."""
        self._layout(self._root)
        return self

    # --- callbacks ---------------------------------------------------------

    def click(self) -> ClickHandler:
        return self._click

    def set_click(self, handler: ClickHandler) -> "TreeDiagram":
        """Replace the node click handler."""
        self._click = handler
        return self

    def dispatch_click(self, node_id: str) -> None:
        """Deliver a click on a node to the active handler.

        Raises:
            KeyError: If no node has that id
        """
        node = self._nodes_by_id[node_id]
        index = self._root.descendants().index(node)
        self._click(node, index, self._node_elements.get(node_id))

    def link_area(self) -> LinkAreaFunction:
        return self._link_area

    def set_link_area(self, policy: LinkAreaFunction) -> "TreeDiagram":
        """Replace the policy mapping a link to its relative capacity."""
        self._link_area = policy
        return self

    # --- traffic buffer ----------------------------------------------------

    def message_from_record(self, record: MessageRecord | dict[str, Any]) -> Message:
        """Resolve an id-based message record against this diagram's nodes.

        Raises:
            MalformedHierarchyError: If an endpoint id is unknown
        """
        record = _coerce(MessageRecord, record)
        endpoints = []
        for node_id in (record.source, record.target):
            if node_id not in self._nodes_by_id:
                raise MalformedHierarchyError("message references unknown node", node_id)
            endpoints.append(self._nodes_by_id[node_id])

        options = {"message_id": record.message_id} if record.message_id else {}
        return Message(
            time=record.time,
            source=endpoints[0],
            target=endpoints[1],
            css_class=record.css_class,
            **options,
        )

    def _check_message(self, message: Message, buffered_ids) -> None:
        if message.message_id in buffered_ids:
            raise MalformedHierarchyError("duplicate message id", message.message_id)
        for endpoint in (message.source, message.target):
            if self._nodes_by_id.get(endpoint.id) is not endpoint:
                raise MalformedHierarchyError("message references a node outside this diagram", endpoint.id)

    def add_message(self, message: Message) -> "TreeDiagram":
        """Append a message to the traffic buffer.

        Messages should arrive in non-decreasing ``time`` order; expiry
        only trims the front of the buffer.

        Raises:
            MalformedHierarchyError: If an endpoint is not a node of this
                diagram or the message id is already buffered
        """
        self._check_message(message, {buffered.message_id for buffered in self._traffic})
        if self._traffic and message.time < self._traffic[-1].time:
            logger.warning(
                f"Message {message.message_id} at time {message.time} is older than "
                f"the newest buffered message ({self._traffic[-1].time}); expiry may keep it"
            )
        self._traffic.append(message)
        return self

    def expire_messages(self, expiration: float) -> int:
        """Drop buffered messages older than ``expiration`` from the front.

        Returns:
            Number of messages removed
        """
        removed = 0
        while self._traffic and self._traffic[0].time < expiration:
            self._traffic.popleft()
            removed += 1
        if removed:
            logger.debug(f"Expired {removed} messages older than {expiration}")
        return removed

    def clear_messages(self) -> None:
        """Remove all message traffic from the buffer."""
        self._traffic.clear()

    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the buffered messages, oldest first."""
        return tuple(self._traffic)

    def set_messages(self, messages: Iterable[Message]) -> "TreeDiagram":
        """Replace the traffic buffer with a copy of ``messages``.

        Raises:
            MalformedHierarchyError: If an endpoint is not a node of this
                diagram or two messages share an id
        """
        messages = list(messages)
        seen = set()
        for message in messages:
            self._check_message(message, seen)
            seen.add(message.message_id)
        self._traffic = deque(messages)
        return self

    # --- drawing -----------------------------------------------------------

    def render(self) -> None:
        """Full redraw: links and traffic first, nodes on top."""
        if self.config.link_style == LinkStyle.CAPACITY:
            self.draw_capacity_links()
        else:
            self.draw_links()
        self.draw_traffic()
        self.draw_nodes()
        logger.debug(
            f"Rendered {len(self._link_elements)} links, {len(self._message_elements)} messages "
            f"and {len(self._node_elements)} nodes"
        )

    def draw_links(self) -> None:
        """Draw parent links as smooth horizontal curves."""
        self._draw_link_paths(
            lambda link: horizontal_link_path(_position(link.source), _position(link.target))
        )

    def draw_capacity_links(self) -> None:
        """Draw parent links as lenses whose area follows the link area policy."""
        radius = self.config.base_radius
        node_area = math.pi * radius * radius

        def capacity_path(link: HierarchyLink) -> str:
            area = node_area * self._capacity(link)
            return link_path(_position(link.target), _position(link.source), radius, radius, area)

        self._draw_link_paths(capacity_path)

    def _capacity(self, link: HierarchyLink) -> float:
        ratio = self._link_area(link)
        if not math.isfinite(ratio):
            logger.warning(f"Link area {ratio} for {link.target.id} is outside [0, 1], using 0")
            ratio = 0
        elif not 0 <= ratio <= 1:
            logger.warning(f"Link area {ratio} for {link.target.id} is outside [0, 1], clamping")
            ratio = min(max(ratio, 0), 1)
        return ratio

    def _draw_link_paths(self, tree_path: Callable[[HierarchyLink], str]) -> None:
        entries = []
        for link in self._root.links():
            entries.append((link.key, link, {
                "class": "edge",
                "data-source": link.source.id,
                "data-target": link.target.id,
                "d": tree_path(link),
            }))
        for edge in self._edges:
            source = self._nodes_by_id[edge.source]
            target = self._nodes_by_id[edge.target]
            entries.append((edge.key, edge, {
                "class": f"edge extra {edge.css_class}".strip(),
                "data-source": edge.source,
                "data-target": edge.target,
                "d": horizontal_link_path(_position(source), _position(target)),
            }))

        self._reconcile(
            self._links_group, self._link_elements, entries,
            lambda datum: append_element(self._links_group, "path"),
        )

    def draw_nodes(self) -> None:
        """Draw one group per node, translated to its laid-out position."""
        radius = f"{self.config.base_radius:g}"
        entries = [
            (node.id, node, {
                "class": f"node {node.css_class}".strip(),
                "transform": f"translate({node.y:g}, {node.x:g})",
            })
            for node in self._root.descendants()
        ]

        def create(node: HierarchyNode) -> ET.Element:
            group = append_element(self._nodes_group, "g", data_id=node.id)
            append_element(group, "circle", r=radius)
            label = append_element(group, "text")
            label.text = node.id
            return group

        self._reconcile(self._nodes_group, self._node_elements, entries, create)

    def draw_traffic(self) -> None:
        """Draw every buffered message as a curve between its nodes."""
        entries = []
        for message in self._traffic:
            path = message_path(
                _position(message.source), _position(message.target),
                self._angle_source(), MESSAGE_RADIUS,
                self._angle_source(), MESSAGE_RADIUS,
            )
            entries.append((message.message_id, message, {"class": message.css_class, "d": path}))

        def create(message: Message) -> ET.Element:
            return append_element(self._messages_group, "path", data_message=message.message_id)

        self._reconcile(self._messages_group, self._message_elements, entries, create)

    @staticmethod
    def _reconcile(
        group: ET.Element,
        elements: dict[str, ET.Element],
        entries: list[tuple[str, Any, dict[str, str]]],
        create: Callable[[Any], ET.Element],
    ) -> None:
        """Sync drawn elements with ``entries`` of ``(key, datum, attributes)``.

        Every attribute value is computed by the caller before this runs, so
        the group is only touched once the whole pass is known to succeed.
        """
        keys = {key for key, _, _ in entries}
        for key in [key for key in elements if key not in keys]:
            group.remove(elements.pop(key))

        for key, datum, attributes in entries:
            element = elements.get(key)
            if element is None:
                element = create(datum)
                elements[key] = element
            for name, value in attributes.items():
                element.set(name, value)
