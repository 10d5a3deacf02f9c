"""
Custom exceptions for ngac.

This module defines the exception hierarchy for the decision engine. Every
failure raised by the graph collaborators, the traversal engine, and the
deciders is one of these types, so callers can catch ``NGACError`` to handle
any domain failure and let everything else propagate.

Error kinds:
    - Not found: ``NodeNotFoundError``, ``ProhibitionNotFoundError``
    - Invalid argument: ``InvalidArgumentError``
    - Invalid policy: ``InvalidPolicyError`` and its subclasses
"""

from __future__ import annotations

from typing import Any


class NGACError(Exception):
    """
    Base exception for all ngac errors.

    Attributes:
        message: Human-readable error description.
        details: Additional context about the error.

    Example:
        >>> try:
        ...     decider.list("u1", None, "o1")
        ... except NGACError as e:
        ...     logger.error(f"Decision failed: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(NGACError):
    """Base class for lookups of identifiers that do not exist."""


class NodeNotFoundError(NotFoundError):
    """
    Raised when a node id is not present in the graph.

    Attributes:
        node_id: The id that was looked up.
    """

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(
            f"Node '{node_id}' does not exist in the graph",
            {"node_id": node_id},
        )


class ProhibitionNotFoundError(NotFoundError):
    """
    Raised when a prohibition name is unknown to the prohibition store.

    Attributes:
        name: The prohibition name that was looked up.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Prohibition '{name}' does not exist",
            {"name": name},
        )


class InvalidArgumentError(NGACError):
    """
    Raised when a component is constructed or called with a malformed argument.

    Attributes:
        argument: Name of the offending argument.
        reason: Why the value was rejected.

    Example:
        >>> raise InvalidArgumentError("graph", "graph collaborator cannot be None")
    """

    def __init__(self, argument: str, reason: str) -> None:
        self.argument = argument
        self.reason = reason
        super().__init__(
            f"Invalid argument '{argument}': {reason}",
            {"argument": argument, "reason": reason},
        )


class InvalidPolicyError(NGACError):
    """
    Raised when the policy graph violates a structural rule of the model.

    This covers relations between node types the model does not allow,
    cycles in the assignment graph, and targets whose containment chain
    never reaches a policy class.

    Attributes:
        reason: Explanation of the violated rule.
        context: Additional structured information.
    """

    def __init__(self, reason: str, context: dict[str, Any] | None = None) -> None:
        self.reason = reason
        super().__init__(f"Invalid policy: {reason}", context)


class InvalidAssignmentError(InvalidPolicyError):
    """Raised when a child node type cannot be assigned to a parent node type."""

    def __init__(self, child_type: str, parent_type: str) -> None:
        self.child_type = child_type
        self.parent_type = parent_type
        super().__init__(
            f"cannot assign a node of type {child_type} to a node of type {parent_type}",
            {"child_type": child_type, "parent_type": parent_type},
        )


class InvalidAssociationError(InvalidPolicyError):
    """Raised when an association is requested between disallowed node types."""

    def __init__(self, source_type: str, target_type: str) -> None:
        self.source_type = source_type
        self.target_type = target_type
        super().__init__(
            f"cannot associate a node of type {source_type} to a node of type {target_type}",
            {"source_type": source_type, "target_type": target_type},
        )


class CycleDetectedError(InvalidPolicyError):
    """
    Raised when the assignment graph contains, or would contain, a cycle.

    Attributes:
        node_id: A node on the cycle.
    """

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(
            f"assignment cycle detected at node '{node_id}'",
            {"node_id": node_id},
        )


class TraversalDepthError(NGACError):
    """
    Raised when a traversal exceeds its configured depth limit.

    Attributes:
        start_id: The node the traversal started from.
        max_depth: The configured limit.
    """

    def __init__(self, start_id: str, max_depth: int) -> None:
        self.start_id = start_id
        self.max_depth = max_depth
        super().__init__(
            f"Traversal from '{start_id}' exceeded max depth {max_depth}",
            {"start_id": start_id, "max_depth": max_depth},
        )
