"""
Policy graph collaborators and traversal for ngac.

- Graph, ProhibitionStore: protocols the deciders read policy data through
- MemoryGraph: in-memory reference graph
- DepthFirstSearcher, BreadthFirstSearcher: upward traversal engine
"""

from ngac.graph.base import Graph, ProhibitionStore
from ngac.graph.memory import MemoryGraph
from ngac.graph.traversal import (
    BreadthFirstSearcher,
    DepthFirstSearcher,
    Propagator,
    Searcher,
    Visitor,
    no_op_propagator,
    no_op_visitor,
)

__all__ = [
    "Graph",
    "ProhibitionStore",
    "MemoryGraph",
    "Searcher",
    "DepthFirstSearcher",
    "BreadthFirstSearcher",
    "Visitor",
    "Propagator",
    "no_op_propagator",
    "no_op_visitor",
]
