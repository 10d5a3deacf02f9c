"""
Graph traversal engine for ngac.

The searchers walk a policy graph upward from a start node, following
assignment edges from child to parent. They know nothing about permissions:
the caller injects two callbacks that fold domain data into per-node records.

- ``visitor(node)`` runs once per reached node.
- ``propagator(parent, child)`` runs once per traversed edge.

DepthFirstSearcher processes every ancestor of a node (visitor included)
before propagating into that node, and runs the node's own visitor last, so
a node's record is complete when it flows to the next node down the chain.
BreadthFirstSearcher visits nodes in non-decreasing distance from the start.

Both searchers are iterative. Traversal state lives in locals of a single
``traverse`` call, so a searcher can be reused and shared between threads.

Example:
    >>> searcher = DepthFirstSearcher(graph)
    >>> order = []
    >>> searcher.traverse("o1", no_op_propagator, lambda node: order.append(node.id))
    >>> order
    ['pc1', 'oa1', 'o1']
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ngac.exceptions import CycleDetectedError, TraversalDepthError

if TYPE_CHECKING:
    from ngac.graph.base import Graph
    from ngac.types import Node

logger = logging.getLogger(__name__)

Visitor = Callable[["Node"], None]
Propagator = Callable[["Node", "Node"], None]


def no_op_propagator(parent: Node, child: Node) -> None:
    """Propagator for traversals that only need the visitor."""


def no_op_visitor(node: Node) -> None:
    """Visitor for traversals that only need the propagator."""


class Searcher(ABC):
    """
    Base class for graph searchers.

    Attributes:
        graph: The graph collaborator to read parents from.
        max_depth: Optional limit on the distance from the start node.
    """

    def __init__(self, graph: Graph, max_depth: int | None = None) -> None:
        self.graph = graph
        self.max_depth = max_depth

    @abstractmethod
    def traverse(self, start: str, propagator: Propagator, visitor: Visitor) -> None:
        """
        Walk every node reachable upward from start.

        Args:
            start: Id of the node to start from.
            propagator: Called once per traversed edge as (parent, child).
            visitor: Called once per reached node.

        Raises:
            NodeNotFoundError: If start or a reached node does not exist.
            CycleDetectedError: If the assignments reachable from start form
                a cycle.
            TraversalDepthError: If max_depth is exceeded.
        """

    def _parents_of(self, node_id: str) -> list[str]:
        # sorted for a deterministic visit order across set implementations
        return sorted(self.graph.get_parents(node_id))

    def _check_depth(self, start: str, depth: int) -> None:
        if self.max_depth is not None and depth > self.max_depth:
            raise TraversalDepthError(start, self.max_depth)


@dataclass
class _Frame:
    node: Node
    parents: Iterator[str]
    depth: int
    pending: Node | None = None


class DepthFirstSearcher(Searcher):
    """
    Depth-first upward traversal.

    For each node the searcher descends into every parent in turn, then
    calls ``propagator(parent, node)`` for that edge, and once all parents
    are done calls ``visitor(node)``. A parent that was already visited
    through another path is not re-entered but its edge is still propagated.
    """

    def traverse(self, start: str, propagator: Propagator, visitor: Visitor) -> None:
        start_node = self.graph.get_node(start)

        visited: set[str] = {start}
        on_path: set[str] = {start}
        stack = [_Frame(start_node, iter(self._parents_of(start)), 0)]

        while stack:
            frame = stack[-1]

            if frame.pending is not None:
                propagator(frame.pending, frame.node)
                frame.pending = None

            parent_id = next(frame.parents, None)
            if parent_id is None:
                visitor(frame.node)
                on_path.discard(frame.node.id)
                stack.pop()
                continue

            if parent_id in on_path:
                raise CycleDetectedError(parent_id)

            parent = self.graph.get_node(parent_id)
            frame.pending = parent

            if parent_id not in visited:
                depth = frame.depth + 1
                self._check_depth(start, depth)
                visited.add(parent_id)
                on_path.add(parent_id)
                stack.append(_Frame(parent, iter(self._parents_of(parent_id)), depth))

        logger.debug(f"DFS from {start} reached {len(visited)} nodes")


class BreadthFirstSearcher(Searcher):
    """
    Breadth-first upward traversal.

    Nodes are visited in non-decreasing distance from the start node. After
    a node is visited, ``propagator(parent, node)`` is called for each of its
    parent edges, before any parent is visited.

    Every node is enqueued once, so the walk always ends. A parent edge that
    leads to an already visited node may close a cycle; when one does, the
    reached subgraph is checked and CycleDetectedError is raised before
    traverse returns.
    """

    def traverse(self, start: str, propagator: Propagator, visitor: Visitor) -> None:
        start_node = self.graph.get_node(start)

        visited: set[str] = {start}
        parents: dict[str, list[str]] = {}
        rejoined = False
        queue: deque[tuple[Node, int]] = deque([(start_node, 0)])

        while queue:
            node, depth = queue.popleft()
            visitor(node)

            parents[node.id] = self._parents_of(node.id)
            for parent_id in parents[node.id]:
                parent = self.graph.get_node(parent_id)
                propagator(parent, node)

                if parent_id in visited:
                    rejoined = True
                    continue
                self._check_depth(start, depth + 1)
                visited.add(parent_id)
                queue.append((parent, depth + 1))

        if rejoined:
            _check_acyclic(parents)

        logger.debug(f"BFS from {start} reached {len(visited)} nodes")


def _check_acyclic(parents: dict[str, list[str]]) -> None:
    """
    Raise CycleDetectedError if the reached subgraph holds a cycle.

    Nodes are peeled off from the bottom, starting with those no reached node
    is assigned to. Whatever cannot be peeled sits on a cycle or above one.
    """
    pending = {node_id: 0 for node_id in parents}
    for node_parents in parents.values():
        for parent_id in node_parents:
            pending[parent_id] += 1

    ready = [node_id for node_id, count in pending.items() if count == 0]
    while ready:
        node_id = ready.pop()
        for parent_id in parents[node_id]:
            pending[parent_id] -= 1
            if pending[parent_id] == 0:
                ready.append(parent_id)

    stuck = {node_id for node_id, count in pending.items() if count > 0}
    if not stuck:
        return

    # every stuck node has a stuck child, so walking down ends on the cycle
    children: dict[str, list[str]] = {node_id: [] for node_id in stuck}
    for node_id in sorted(stuck):
        for parent_id in parents[node_id]:
            if parent_id in stuck:
                children[parent_id].append(node_id)

    seen: set[str] = set()
    current = min(stuck)
    while current not in seen:
        seen.add(current)
        current = children[current][0]

    raise CycleDetectedError(current)
