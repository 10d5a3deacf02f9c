"""
In-memory policy graph for ngac.

MemoryGraph implements the Graph protocol over plain dictionaries and adds
the write operations needed to build a policy: node creation, assignment
and association. It validates node types and rejects assignments that would
introduce a cycle, so every graph it holds is a valid input for the
deciders.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import replace

from ngac.exceptions import (
    CycleDetectedError,
    InvalidArgumentError,
    InvalidAssignmentError,
    InvalidAssociationError,
    NodeNotFoundError,
)
from ngac.operations import OperationSet
from ngac.types import (
    VALID_ASSIGNMENTS,
    VALID_ASSOCIATIONS,
    Association,
    Node,
    NodeType,
)

logger = logging.getLogger(__name__)


class MemoryGraph:
    """
    Thread-safe in-memory policy graph.

    Example:
        >>> graph = MemoryGraph()
        >>> graph.create_node("pc1", "pc1", NodeType.PC)
        >>> graph.create_node("oa1", "oa1", NodeType.OA)
        >>> graph.create_node("ua1", "ua1", NodeType.UA)
        >>> graph.assign("oa1", "pc1")
        >>> graph.assign("ua1", "pc1")
        >>> graph.associate("ua1", "oa1", OperationSet("read"))

    Thread Safety:
        All operations are guarded by an internal lock and every read
        returns a copy, so callers never share mutable state with the graph.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}
        self._parents: dict[str, set[str]] = {}
        self._children: dict[str, set[str]] = {}
        self._source_associations: dict[str, dict[str, Association]] = {}
        self._target_associations: dict[str, dict[str, Association]] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def create_node(
        self,
        node_id: str,
        name: str,
        node_type: NodeType | str,
        properties: dict[str, str] | None = None,
    ) -> Node:
        """
        Create a node and add it to the graph.

        Args:
            node_id: Unique identifier for the node.
            name: Display name of the node.
            node_type: The node type, as a NodeType or its name.
            properties: Optional string metadata.

        Returns:
            The created node.

        Raises:
            InvalidArgumentError: If the id is taken or the name is empty.
        """
        if not name:
            raise InvalidArgumentError("name", "node name cannot be empty")

        node = Node(
            id=node_id,
            name=name,
            type=NodeType.parse(node_type),
            properties=dict(properties or {}),
        )

        with self._lock:
            if node_id in self._nodes:
                raise InvalidArgumentError("node_id", f"a node with id '{node_id}' already exists")

            self._nodes[node_id] = node
            self._parents[node_id] = set()
            self._children[node_id] = set()
            self._source_associations[node_id] = {}
            self._target_associations[node_id] = {}

        logger.debug(f"Created node {node.type.value}:{node.name} ({node_id})")
        return _copy_node(node)

    def update_node(
        self,
        node_id: str,
        name: str | None = None,
        properties: dict[str, str] | None = None,
    ) -> Node:
        """
        Update the name and/or properties of a node.

        A None or empty name keeps the current name. None properties keep the
        current properties; an empty dict clears them.
        """
        with self._lock:
            current = self.get_node(node_id)
            node = Node(
                id=node_id,
                name=name or current.name,
                type=current.type,
                properties=dict(current.properties if properties is None else properties),
            )
            self._nodes[node_id] = node
            return _copy_node(node)

    def delete_node(self, node_id: str) -> None:
        """Delete a node together with its assignments and associations."""
        with self._lock:
            self._require(node_id)

            for parent_id in self._parents.pop(node_id):
                self._children[parent_id].discard(node_id)
            for child_id in self._children.pop(node_id):
                self._parents[child_id].discard(node_id)
            for target_id in self._source_associations.pop(node_id):
                self._target_associations[target_id].pop(node_id, None)
            for source_id in self._target_associations.pop(node_id):
                self._source_associations[source_id].pop(node_id, None)

            del self._nodes[node_id]

        logger.debug(f"Deleted node {node_id}")

    def exists(self, node_id: str) -> bool:
        with self._lock:
            return node_id in self._nodes

    def get_node(self, node_id: str) -> Node:
        with self._lock:
            self._require(node_id)
            return _copy_node(self._nodes[node_id])

    def get_nodes(self) -> list[Node]:
        with self._lock:
            return [_copy_node(node) for node in self._nodes.values()]

    def get_policy_classes(self) -> set[str]:
        with self._lock:
            return {
                node_id for node_id, node in self._nodes.items()
                if node.type == NodeType.PC
            }

    def search(
        self,
        name: str | None = None,
        node_type: NodeType | str | None = None,
        properties: dict[str, str] | None = None,
    ) -> list[Node]:
        """
        Find nodes matching every given criterion.

        A property value of ``"*"`` matches any value for that key.

        Example:
            >>> graph.search(node_type="OA", properties={"owner": "*"})
        """
        wanted_type = NodeType.parse(node_type) if node_type is not None else None
        wanted_props = properties or {}

        with self._lock:
            results = []
            for node in self._nodes.values():
                if name is not None and node.name != name:
                    continue
                if wanted_type is not None and node.type != wanted_type:
                    continue
                if not _properties_match(node.properties, wanted_props):
                    continue
                results.append(_copy_node(node))
            return results

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def get_parents(self, node_id: str) -> set[str]:
        with self._lock:
            self._require(node_id)
            return set(self._parents[node_id])

    def get_children(self, node_id: str) -> set[str]:
        with self._lock:
            self._require(node_id)
            return set(self._children[node_id])

    def assign(self, child_id: str, parent_id: str) -> None:
        """
        Assign the child node to the parent node.

        Raises:
            NodeNotFoundError: If either node does not exist.
            InvalidAssignmentError: If the node types cannot be assigned.
            CycleDetectedError: If the assignment would create a cycle.
        """
        with self._lock:
            child = self.get_node(child_id)
            parent = self.get_node(parent_id)

            if parent.type not in VALID_ASSIGNMENTS[child.type]:
                raise InvalidAssignmentError(child.type.value, parent.type.value)

            if child_id == parent_id or self._is_ancestor(child_id, parent_id):
                raise CycleDetectedError(child_id)

            if parent_id in self._parents[child_id]:
                logger.debug(f"Assignment {child_id} -> {parent_id} already exists")
                return

            self._parents[child_id].add(parent_id)
            self._children[parent_id].add(child_id)

        logger.debug(f"Assigned {child_id} -> {parent_id}")

    def deassign(self, child_id: str, parent_id: str) -> None:
        with self._lock:
            self._require(child_id)
            self._require(parent_id)
            self._parents[child_id].discard(parent_id)
            self._children[parent_id].discard(child_id)

        logger.debug(f"Deassigned {child_id} -> {parent_id}")

    # ------------------------------------------------------------------
    # Associations
    # ------------------------------------------------------------------

    def associate(
        self,
        ua_id: str,
        target_id: str,
        operations: Iterable[str],
        recursive: bool = True,
    ) -> Association:
        """
        Associate a user attribute with a target attribute.

        An existing association between the two nodes is overwritten.

        Raises:
            NodeNotFoundError: If either node does not exist.
            InvalidAssociationError: If the source is not a UA or the target
                is not a UA or OA.
        """
        with self._lock:
            source = self.get_node(ua_id)
            target = self.get_node(target_id)

            if target.type not in VALID_ASSOCIATIONS[source.type]:
                raise InvalidAssociationError(source.type.value, target.type.value)

            if target_id in self._source_associations[ua_id]:
                logger.warning(f"Overwriting association {ua_id} -> {target_id}")

            association = Association(
                source=ua_id,
                target=target_id,
                operations=OperationSet(operations),
                recursive=recursive,
            )
            self._source_associations[ua_id][target_id] = association
            self._target_associations[target_id][ua_id] = association

        logger.debug(
            f"Associated {ua_id} -> {target_id} ops={sorted(association.operations)} "
            f"recursive={recursive}"
        )
        return _copy_association(association)

    def dissociate(self, ua_id: str, target_id: str) -> None:
        with self._lock:
            self._require(ua_id)
            self._require(target_id)
            self._source_associations[ua_id].pop(target_id, None)
            self._target_associations[target_id].pop(ua_id, None)

        logger.debug(f"Dissociated {ua_id} -> {target_id}")

    def get_source_associations(self, source_id: str) -> dict[str, Association]:
        with self._lock:
            self._require(source_id)
            return {
                target_id: _copy_association(a)
                for target_id, a in self._source_associations[source_id].items()
            }

    def get_target_associations(self, target_id: str) -> dict[str, Association]:
        with self._lock:
            self._require(target_id)
            return {
                source_id: _copy_association(a)
                for source_id, a in self._target_associations[target_id].items()
            }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, node_id: str) -> None:
        if node_id not in self._nodes:
            raise NodeNotFoundError(node_id)

    def _is_ancestor(self, candidate: str, node_id: str) -> bool:
        """Check if candidate is reachable upward from node_id."""
        stack = [node_id]
        seen: set[str] = set()
        while stack:
            current = stack.pop()
            if current == candidate:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._parents[current])
        return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)

    def __repr__(self) -> str:
        return f"MemoryGraph(nodes={len(self)})"


def _copy_node(node: Node) -> Node:
    return replace(node, properties=dict(node.properties))


def _copy_association(association: Association) -> Association:
    return Association(
        source=association.source,
        target=association.target,
        operations=OperationSet(association.operations),
        recursive=association.recursive,
    )


def _properties_match(actual: dict[str, str], wanted: dict[str, str]) -> bool:
    for key, value in wanted.items():
        if key not in actual:
            return False
        if value != "*" and actual[key] != value:
            return False
    return True
