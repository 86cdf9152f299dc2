"""Input records and traffic messages for tree diagrams."""

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from .hierarchy import HierarchyNode


class Point(NamedTuple):
    """A point in layout space (x is breadth, y is depth)."""
    x: float
    y: float


class NodeRecord(BaseModel):
    """A flat node record; exactly one record in a set has no parent."""

    id: str = Field(description="Unique node identifier")
    parent: str | None = Field(default=None, description="Identifier of the parent node")
    css_class: str = Field(alias="class", default="", description="Extra CSS class for the node group")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        if not v:
            raise ValueError("node id must not be empty")
        return v

    @field_validator("parent", mode="before")
    @classmethod
    def normalize_parent(cls, v):
        # "" and null both mark the root
        return v or None


class EdgeRecord(BaseModel):
    """A connection between two nodes, drawn on top of the tree links."""

    source: str = Field(description="Identifier of the source node")
    target: str = Field(description="Identifier of the target node")
    css_class: str = Field(alias="class", default="", description="Extra CSS class for the edge path")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def key(self) -> str:
        return f"{self.source}->{self.target}"


class MessageRecord(BaseModel):
    """JSON form of a traffic message, referencing nodes by id."""

    time: float = Field(description="Timestamp used for expiry")
    source: str = Field(description="Identifier of the sending node")
    target: str = Field(description="Identifier of the receiving node")
    css_class: str = Field(alias="class", default="", description="CSS class of the message path")
    message_id: str | None = Field(alias="id", default=None, description="Optional stable identifier")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


def _new_message_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class Message:
    """A transient, timestamped message drawn between two laid-out nodes."""
    time: float
    source: "HierarchyNode"
    target: "HierarchyNode"
    css_class: str = ""
    message_id: str = field(default_factory=_new_message_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the id-based JSON form."""
        return {
            "id": self.message_id,
            "time": self.time,
            "source": self.source.id,
            "target": self.target.id,
            "class": self.css_class,
        }
