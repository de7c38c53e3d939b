"""Exceptions raised by the exploration engine."""

from __future__ import annotations


class PathSpectreError(Exception):
    """Base class for all engine errors."""


class MalformedGraphError(PathSpectreError):
    """A control-flow graph violates its structural contract.
    Attributes:
        node_id: Identifier of the offending node, if any.
        reason: Human readable description of the defect.
    """

    def __init__(self, node_id: int | None, reason: str):
        self.node_id = node_id
        self.reason = reason
        where = f"node {node_id}" if node_id is not None else "graph"
        super().__init__(f"Malformed {where}: {reason}")


class InvariantViolation(PathSpectreError, AssertionError):
    """Internal consistency check failed (engine defect, not user error)."""


__all__ = [
    "PathSpectreError",
    "MalformedGraphError",
    "InvariantViolation",
]
