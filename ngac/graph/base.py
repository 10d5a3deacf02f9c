"""
Collaborator protocols for ngac.

The deciders never own policy data. They read it from two collaborators
described here: a Graph holding nodes, assignments and associations, and a
ProhibitionStore holding deny rules. Any storage backend that implements
these protocols can be plugged in; MemoryGraph and MemoryProhibitions are
the in-process reference implementations.

Implementations must raise NodeNotFoundError (or another NGACError) for
unknown identifiers instead of returning None or raising KeyError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ngac.types import Association, Node, Prohibition


@runtime_checkable
class Graph(Protocol):
    """
    Protocol defining the read interface the deciders need from a graph.

    Example:
        >>> class SqlGraph:
        ...     def get_node(self, node_id: str) -> Node:
        ...         row = self.db.fetch_node(node_id)
        ...         if row is None:
        ...             raise NodeNotFoundError(node_id)
        ...         return Node(row.id, row.name, NodeType(row.type))
        ...     ...
    """

    def get_node(self, node_id: str) -> Node:
        """
        Retrieve the node with the given id.

        Raises:
            NodeNotFoundError: If the node does not exist.
        """
        ...

    def exists(self, node_id: str) -> bool:
        """Check that a node with the given id exists."""
        ...

    def get_parents(self, node_id: str) -> set[str]:
        """
        Get the ids of the nodes the given node is assigned to.

        Raises:
            NodeNotFoundError: If the node does not exist.
        """
        ...

    def get_children(self, node_id: str) -> set[str]:
        """
        Get the ids of the nodes assigned to the given node.

        Raises:
            NodeNotFoundError: If the node does not exist.
        """
        ...

    def get_source_associations(self, source_id: str) -> dict[str, Association]:
        """
        Get the associations the node is the source of, keyed by target id.

        Raises:
            NodeNotFoundError: If the node does not exist.
        """
        ...

    def get_target_associations(self, target_id: str) -> dict[str, Association]:
        """
        Get the associations the node is the target of, keyed by source id.

        Raises:
            NodeNotFoundError: If the node does not exist.
        """
        ...

    def get_policy_classes(self) -> set[str]:
        """
        Get the ids of all policy class nodes.

        The deciders and the explainer find policy classes by walking up from
        the target and never call this. It is part of the protocol for
        callers that administer or inspect a graph.
        """
        ...


@runtime_checkable
class ProhibitionStore(Protocol):
    """Protocol defining the read interface the deciders need for prohibitions."""

    def get_prohibitions_for(self, subject: str) -> list[Prohibition]:
        """
        Get the prohibitions whose subject is the given user, user attribute
        or process id. Subjects without prohibitions yield an empty list.
        """
        ...
