"""
Core type definitions for ngac.

This module defines the data structures shared by the graph collaborators,
the traversal engine, and the deciders: nodes and their types, associations,
prohibitions, and decision results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ngac.operations import OperationSet


class NodeType(str, Enum):
    """Types of nodes in a policy graph."""

    PC = "PC"   # policy class
    UA = "UA"   # user attribute
    OA = "OA"   # object attribute
    U = "U"     # user
    O = "O"  # noqa: E741

    @property
    def is_attribute(self) -> bool:
        """Whether this type groups other nodes (UA or OA)."""
        return self in (NodeType.UA, NodeType.OA)

    @classmethod
    def parse(cls, value: str | NodeType) -> NodeType:
        """Convert a type name such as ``"oa"`` or ``"OA"`` to a NodeType."""
        if isinstance(value, NodeType):
            return value
        return cls(value.upper())


# child type -> parent types it may be assigned to
VALID_ASSIGNMENTS: dict[NodeType, frozenset[NodeType]] = {
    NodeType.PC: frozenset(),
    NodeType.OA: frozenset({NodeType.OA, NodeType.PC}),
    NodeType.O: frozenset({NodeType.OA}),
    NodeType.UA: frozenset({NodeType.UA, NodeType.PC}),
    NodeType.U: frozenset({NodeType.UA}),
}

# source type -> target types it may be associated with
VALID_ASSOCIATIONS: dict[NodeType, frozenset[NodeType]] = {
    NodeType.PC: frozenset(),
    NodeType.OA: frozenset(),
    NodeType.O: frozenset(),
    NodeType.UA: frozenset({NodeType.UA, NodeType.OA}),
    NodeType.U: frozenset(),
}


@dataclass(frozen=True)
class Node:
    """
    A node in the policy graph.

    Attributes:
        id: Unique identifier of the node.
        name: Display name, used in explanations.
        type: The node type.
        properties: Free-form string metadata.

    Example:
        >>> node = Node(id="o1", name="report.pdf", type=NodeType.O)
    """
    id: str
    name: str
    type: NodeType
    properties: dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "properties": dict(self.properties),
        }


@dataclass
class Association:
    """
    A permission-granting edge from a user attribute to an attribute.

    Attributes:
        source: Id of the user attribute holding the grant.
        target: Id of the user or object attribute the grant applies to.
        operations: The granted operations.
        recursive: If True the grant applies to everything contained in the
            target; if False it applies at the target only.
    """
    source: str
    target: str
    operations: OperationSet = field(default_factory=OperationSet)
    recursive: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.operations, OperationSet):
            self.operations = OperationSet(self.operations)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source,
            "target": self.target,
            "operations": sorted(self.operations),
            "recursive": self.recursive,
        }


@dataclass(frozen=True)
class ProhibitionNode:
    """
    A node condition of a prohibition.

    Attributes:
        id: Id of the container node the condition refers to.
        complement: If True the condition holds when the node is NOT reached.
    """
    id: str
    complement: bool = False


@dataclass
class Prohibition:
    """
    A deny rule overlaid on the granted permissions.

    Attributes:
        name: Unique name of the prohibition.
        subject: Id of the user, user attribute or process it applies to.
        operations: The denied operations.
        intersection: If True every node condition must hold for the
            prohibition to fire; if False any single condition suffices.
        nodes: Ordered node conditions.

    Example:
        >>> Prohibition(
        ...     name="deny-write",
        ...     subject="u1",
        ...     operations=OperationSet("write"),
        ...     intersection=True,
        ...     nodes=[ProhibitionNode("oa1")],
        ... )
    """
    name: str
    subject: str
    operations: OperationSet = field(default_factory=OperationSet)
    intersection: bool = False
    nodes: list[ProhibitionNode] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.operations, OperationSet):
            self.operations = OperationSet(self.operations)
        self.nodes = [
            n if isinstance(n, ProhibitionNode) else ProhibitionNode(*n)
            for n in self.nodes
        ]

    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "subject": self.subject,
            "operations": sorted(self.operations),
            "intersection": self.intersection,
            "nodes": [{"id": n.id, "complement": n.complement} for n in self.nodes],
        }


@dataclass
class Decision:
    """
    Result of an access check.

    Attributes:
        allowed: Whether the requested operations are permitted.
        reason: Human-readable explanation of the decision.
        permissions: The subject's full permission set on the target.
        metadata: Additional information about the decision.
    """
    allowed: bool
    reason: str | None = None
    permissions: OperationSet = field(default_factory=OperationSet)
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def allow(cls, reason: str | None = None,
              permissions: OperationSet | None = None,
              metadata: dict[str, Any] | None = None) -> Decision:
        """Create an allowed result."""
        return cls(
            allowed=True,
            reason=reason,
            permissions=permissions or OperationSet(),
            metadata=metadata or {},
        )

    @classmethod
    def deny(cls, reason: str,
             permissions: OperationSet | None = None,
             metadata: dict[str, Any] | None = None) -> Decision:
        """Create a denied result."""
        return cls(
            allowed=False,
            reason=reason,
            permissions=permissions or OperationSet(),
            metadata=metadata or {},
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "permissions": sorted(self.permissions),
            "metadata": self.metadata,
        }
