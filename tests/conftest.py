"""
Pytest fixtures for ngac tests.

Provides the policy graphs shared across test modules. Node names equal
node ids so explanation paths read the same as the ids used to build them.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from ngac import (
    MemoryGraph,
    MemoryProhibitions,
    NodeType,
    PolicyReviewDecider,
)
from ngac.exceptions import NodeNotFoundError
from ngac.types import Association, Node


def add_node(graph: MemoryGraph, node_id: str, node_type: NodeType, *parents: str) -> None:
    """Create a node named after its id and assign it to parents."""
    graph.create_node(node_id, node_id, node_type)
    for parent in parents:
        graph.assign(node_id, parent)


class FakeGraph:
    """
    Minimal dict-backed Graph with no structural validation.

    Used to feed the traversal engine and the deciders graphs a MemoryGraph
    refuses to build, such as assignment cycles.
    """

    def __init__(self) -> None:
        self.nodes: dict[str, Node] = {}
        self.parents: dict[str, set[str]] = {}
        self.children: dict[str, set[str]] = {}
        self.associations: dict[str, dict[str, Association]] = {}

    def add(self, node_id: str, node_type: NodeType) -> FakeGraph:
        self.nodes[node_id] = Node(node_id, node_id, node_type)
        self.parents.setdefault(node_id, set())
        self.children.setdefault(node_id, set())
        self.associations.setdefault(node_id, {})
        return self

    def assign(self, child_id: str, parent_id: str) -> FakeGraph:
        self.parents[child_id].add(parent_id)
        self.children[parent_id].add(child_id)
        return self

    def associate(self, ua_id: str, target_id: str, *ops: str, recursive: bool = True) -> FakeGraph:
        self.associations[ua_id][target_id] = Association(ua_id, target_id, ops, recursive)
        return self

    def _require(self, node_id: str) -> None:
        if node_id not in self.nodes:
            raise NodeNotFoundError(node_id)

    def get_node(self, node_id: str) -> Node:
        self._require(node_id)
        return self.nodes[node_id]

    def exists(self, node_id: str) -> bool:
        return node_id in self.nodes

    def get_parents(self, node_id: str) -> set[str]:
        self._require(node_id)
        return set(self.parents[node_id])

    def get_children(self, node_id: str) -> set[str]:
        self._require(node_id)
        return set(self.children[node_id])

    def get_source_associations(self, source_id: str) -> dict[str, Association]:
        self._require(source_id)
        return dict(self.associations[source_id])

    def get_target_associations(self, target_id: str) -> dict[str, Association]:
        self._require(target_id)
        return {
            source_id: targets[target_id]
            for source_id, targets in self.associations.items()
            if target_id in targets
        }

    def get_policy_classes(self) -> set[str]:
        return {n.id for n in self.nodes.values() if n.type == NodeType.PC}


# ============================================================================
# Graph Fixtures
# ============================================================================


@pytest.fixture
def graph() -> MemoryGraph:
    """
    Single policy class.

    pc1 <- oa1 <- o1, pc1 <- ua1 <- u1, ua1 --{read, write}--> oa1.
    u2 sits in ua2, which holds no associations.
    """
    g = MemoryGraph()
    add_node(g, "pc1", NodeType.PC)
    add_node(g, "oa1", NodeType.OA, "pc1")
    add_node(g, "o1", NodeType.O, "oa1")
    add_node(g, "ua1", NodeType.UA, "pc1")
    add_node(g, "u1", NodeType.U, "ua1")
    add_node(g, "ua2", NodeType.UA, "pc1")
    add_node(g, "u2", NodeType.U, "ua2")
    g.associate("ua1", "oa1", ["read", "write"])
    return g


@pytest.fixture
def two_pc_graph(graph: MemoryGraph) -> MemoryGraph:
    """
    The single policy class graph plus a second policy class.

    pc2 <- oa2 <- o1 and ua1 --{read}--> oa2, so o1 is governed by both.
    """
    add_node(graph, "pc2", NodeType.PC)
    add_node(graph, "oa2", NodeType.OA, "pc2")
    graph.assign("o1", "oa2")
    graph.associate("ua1", "oa2", ["read"])
    return graph


@pytest.fixture
def prohibitions() -> MemoryProhibitions:
    """Create an empty prohibition store."""
    return MemoryProhibitions()


@pytest.fixture
def make_decider(prohibitions: MemoryProhibitions) -> Callable[..., PolicyReviewDecider]:
    """Factory for deciders sharing the prohibitions fixture."""

    def _make(g, config=None) -> PolicyReviewDecider:
        return PolicyReviewDecider(g, prohibitions, config)

    return _make


@pytest.fixture
def decider(graph: MemoryGraph, make_decider) -> PolicyReviewDecider:
    """Create a decider over the single policy class graph."""
    return make_decider(graph)


@pytest.fixture
def fake_graph() -> FakeGraph:
    """Create an empty FakeGraph."""
    return FakeGraph()
