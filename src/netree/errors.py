"""Error types raised by netree."""


class NetreeError(Exception):
    """Base class for all netree errors."""
    pass


class MalformedHierarchyError(NetreeError, ValueError):
    """Raised when node records do not form a single-root acyclic tree."""

    def __init__(self, reason: str, node_id: str | None = None):
        self.reason = reason
        self.node_id = node_id
        if node_id is None:
            super().__init__(reason)
        else:
            super().__init__(f"{reason}: {node_id}")


class ConfigurationError(NetreeError, ValueError):
    """Raised when diagram configuration is invalid."""
    pass


class InvalidGeometryInput(NetreeError, ArithmeticError):
    """Raised when two points coincide and no direction can be derived.

    The public path builders catch this and fall back to a degenerate shape,
    so a live view never fails on it.
    """
    pass
