"""
Access explanations for ngac.

The AccessExplainer answers why a user holds permissions on a target. It
reconstructs every chain of assignments and associations that connects the
user to the target, grouped by the policy class the chain is valid under,
so an auditor can see exactly which grants produced a decision.

Example:
    >>> explainer = AccessExplainer(graph)
    >>> explain = explainer.explain("u1", "o1")
    >>> print(explain)
    operations: [read]
    policy classes:
      pc1
        operations: [read, write]
        paths:
          u1-ua1-oa1-o1 ops=[read, write]
      pc2
        operations: [read]
        paths:
          u1-ua1-oa2-o1 ops=[read]

The reported permissions are the raw graph evidence. Prohibitions are not
applied; use a decider for the final decision.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ngac.exceptions import InvalidArgumentError
from ngac.graph.traversal import DepthFirstSearcher
from ngac.operations import (
    ADMIN_OPERATIONS,
    OperationSet,
    collapse_wildcard,
    resolve_policy_class_operations,
)
from ngac.types import Node, NodeType

if TYPE_CHECKING:
    from ngac.graph.base import Graph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    """
    An edge on a path.

    Attributes:
        source: The lower node (child, or association source).
        target: The upper node (parent, or association target).
        operations: None for an assignment, the granted operations for an
            association.
        recursive: The recursive flag of an association.
    """
    source: Node
    target: Node
    operations: frozenset[str] | None = None
    recursive: bool = True

    @property
    def is_association(self) -> bool:
        return self.operations is not None


# chain of edges leading upward from a node
EdgePath = tuple[Edge, ...]


@dataclass
class Path:
    """
    A chain of nodes from a user to a target, through one association.

    Attributes:
        nodes: Nodes from the user up to the association target and down to
            the target.
        operations: Operations of the association on the path that survive
            the descent to the target.
    """
    nodes: list[Node] = field(default_factory=list)
    operations: OperationSet = field(default_factory=OperationSet)

    def node_ids(self) -> tuple[str, ...]:
        return tuple(node.id for node in self.nodes)

    def __str__(self) -> str:
        names = "-".join(node.name for node in self.nodes)
        return f"{names} ops=[{', '.join(sorted(self.operations))}]"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "nodes": [node.name for node in self.nodes],
            "operations": sorted(self.operations),
        }


@dataclass
class PolicyClassExplain:
    """
    Evidence found under one policy class.

    Attributes:
        name: Name of the policy class.
        operations: Union of the operations of every path.
        paths: The distinct paths valid under this policy class.
    """
    name: str = ""
    operations: OperationSet = field(default_factory=OperationSet)
    paths: list[Path] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "operations": sorted(self.operations),
            "paths": [path.to_dict() for path in self.paths],
        }


@dataclass
class Explain:
    """
    Explanation of a user's access to a target.

    Attributes:
        permissions: Operations granted across all policy classes.
        policy_classes: Policy class id -> evidence under it. Every policy
            class containing the target is present, with no paths when it
            grants nothing.
    """
    permissions: OperationSet = field(default_factory=OperationSet)
    policy_classes: dict[str, PolicyClassExplain] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "permissions": sorted(self.permissions),
            "policy_classes": {
                pc_id: pc.to_dict() for pc_id, pc in self.policy_classes.items()
            },
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def __str__(self) -> str:
        lines = [
            f"operations: [{', '.join(sorted(self.permissions))}]",
            "policy classes:",
        ]
        for pc in self.policy_classes.values():
            lines.append(f"  {pc.name}")
            lines.append(f"    operations: [{', '.join(sorted(pc.operations))}]")
            lines.append("    paths:")
            lines.extend(f"      {path}" for path in pc.paths)
        return "\n".join(lines)


class AccessExplainer:
    """
    Reconstructs the paths that justify a user's access to a target.

    Two depth-first walks collect, for the user and for the target, every
    chain of edges leading upward from them. A target chain counts only if
    it ends at a policy class. A user chain counts only if it ends with an
    association. Whenever the association lands on a node of a target chain,
    the two chains are joined into one user-to-target path.

    A path carries the association's operations that survive the descent to
    the target, by the same rules the deciders apply. Paths that carry none
    are left out, so with no prohibitions in play ``explain(u, t).permissions``
    equals ``decider.list(u, None, t)``.

    Note:
        The number of chains grows with the number of distinct upward routes,
        which can be large in wide, deeply shared hierarchies.
    """

    def __init__(
        self,
        graph: Graph | None,
        max_depth: int | None = None,
        admin_operations: Iterable[str] = ADMIN_OPERATIONS,
    ) -> None:
        """
        Initialize the explainer.

        Raises:
            InvalidArgumentError: If graph is None.
        """
        if graph is None:
            raise InvalidArgumentError("graph", "policy graph cannot be None")
        self.graph = graph
        self.max_depth = max_depth
        self.admin_operations = frozenset(admin_operations)

    def explain(self, user_id: str, target_id: str) -> Explain:
        """
        Explain the user's access to the target.

        Raises:
            NodeNotFoundError: If the user or target does not exist.
            CycleDetectedError: If the graph holds a cycle.
        """
        user_paths = self._edge_paths(user_id)
        target_paths = self._edge_paths(target_id)

        policy_classes = self._resolve_paths(user_paths, target_paths)
        permissions = collapse_wildcard(resolve_policy_class_operations(
            pc.operations for pc in policy_classes.values()
        ))

        logger.debug(
            f"explain({user_id}, {target_id}): {len(user_paths)} user paths, "
            f"{len(target_paths)} target paths -> {sorted(permissions)}"
        )
        return Explain(permissions=permissions, policy_classes=policy_classes)

    def _edge_paths(self, start: str) -> list[EdgePath]:
        """Every chain of edges leading upward from start."""
        paths: dict[str, list[EdgePath]] = {}

        def visitor(node: Node) -> None:
            node_paths = paths.setdefault(node.id, [])
            if node.type != NodeType.UA:
                return
            associations = self.graph.get_source_associations(node.id)
            for target_id, association in sorted(associations.items()):
                edge = Edge(
                    node,
                    self.graph.get_node(target_id),
                    frozenset(association.operations),
                    association.recursive,
                )
                node_paths.append((edge,))

        def propagator(parent: Node, child: Node) -> None:
            child_paths = paths.setdefault(child.id, [])
            edge = Edge(child, parent)
            parent_paths = paths.get(parent.id, [])
            if not parent_paths:
                child_paths.append((edge,))
            else:
                child_paths.extend((edge, *path) for path in parent_paths)

        searcher = DepthFirstSearcher(self.graph, self.max_depth)
        searcher.traverse(start, propagator, visitor)
        return paths.get(start, [])

    def _resolve_paths(
        self,
        user_paths: list[EdgePath],
        target_paths: list[EdgePath],
    ) -> dict[str, PolicyClassExplain]:
        results: dict[str, PolicyClassExplain] = {}
        seen: dict[str, set[tuple[str, ...]]] = {}

        for target_path in target_paths:
            pc = target_path[-1].target
            if pc.type != NodeType.PC:
                continue

            pc_explain = results.setdefault(pc.id, PolicyClassExplain(name=pc.name))
            pc_seen = seen.setdefault(pc.id, set())

            for user_path in user_paths:
                association = user_path[-1]
                if not association.is_association:
                    continue

                for i, edge in enumerate(target_path):
                    if association.target.id not in (edge.source.id, edge.target.id):
                        continue

                    spliced = user_path + tuple(reversed(target_path[:i + 1]))
                    nodes, descent = _to_nodes(spliced, association)

                    key = tuple(node.id for node in nodes)
                    if key in pc_seen:
                        continue
                    pc_seen.add(key)

                    ops = self._surviving_operations(association, nodes[-1], descent)
                    if not ops:
                        continue

                    pc_explain.paths.append(Path(nodes=nodes, operations=ops))
                    pc_explain.operations.update(ops)

        return results

    def _surviving_operations(self, association: Edge, target: Node, descent: int) -> OperationSet:
        """
        Operations of the association that reach a target descent steps below
        the association target.

        Recursive grants keep every operation into attributes and only
        resource operations into users and objects. Non-recursive grants keep
        only admin operations into attributes and only resource operations
        into a user or object directly below the association target.
        """
        ops = OperationSet(association.operations or ())
        if descent == 0:
            return ops

        if target.type.is_attribute:
            return ops if association.recursive else ops.admin_ops(self.admin_operations)

        if association.recursive or descent == 1:
            return ops.resource_ops(self.admin_operations)
        return OperationSet()


def _to_nodes(edges: EdgePath, association: Edge) -> tuple[list[Node], int]:
    """
    Turn a spliced edge chain into the sequence of nodes it passes.

    Up to the association the chain climbs, so each edge contributes its
    upper node. After it the chain descends towards the target, so each edge
    contributes its lower node. The node where the two halves meet is listed
    once.

    Returns:
        The nodes, and how many of them lie below the association target.
    """
    nodes = [edges[0].source]
    descending = False
    descent = 0

    for edge in edges:
        node = edge.source if descending else edge.target
        if node.id != nodes[-1].id:
            nodes.append(node)
            if descending:
                descent += 1
        if edge is association:
            descending = True

    return nodes, descent
