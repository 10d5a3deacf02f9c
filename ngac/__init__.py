"""
ngac: Next Generation Access Control policy decisions.

ngac answers access requests against an attribute-based policy graph. Users,
objects and their attributes are nodes; assignments place nodes inside
attributes and policy classes; associations grant operations from user
attributes to target attributes; prohibitions take operations away.

Basic Usage:
    >>> from ngac import MemoryGraph, MemoryProhibitions, NodeType, create_decider
    >>>
    >>> graph = MemoryGraph()
    >>> graph.create_node("pc1", "pc1", NodeType.PC)
    >>> graph.create_node("oa1", "oa1", NodeType.OA)
    >>> graph.create_node("ua1", "ua1", NodeType.UA)
    >>> graph.create_node("o1", "o1", NodeType.O)
    >>> graph.create_node("u1", "u1", NodeType.U)
    >>> graph.assign("oa1", "pc1")
    >>> graph.assign("ua1", "pc1")
    >>> graph.assign("o1", "oa1")
    >>> graph.assign("u1", "ua1")
    >>> graph.associate("ua1", "oa1", ["read", "write"])
    >>>
    >>> decider = create_decider("policy_review", graph, MemoryProhibitions())
    >>> decider.check("u1", None, "o1", "read")
    True
    >>>
    >>> # Why does u1 have access?
    >>> from ngac import AccessExplainer
    >>> print(AccessExplainer(graph).explain("u1", "o1"))
"""

__version__ = "0.1.0"

from ngac.audit import AccessExplainer, Explain, Path, PolicyClassExplain
from ngac.config import DeciderConfig
from ngac.engines import (
    BaseDecider,
    Decider,
    DeciderFactory,
    PolicyReviewDecider,
    create_decider,
)
from ngac.exceptions import (
    CycleDetectedError,
    InvalidArgumentError,
    InvalidAssignmentError,
    InvalidAssociationError,
    InvalidPolicyError,
    NGACError,
    NodeNotFoundError,
    NotFoundError,
    ProhibitionNotFoundError,
    TraversalDepthError,
)
from ngac.graph import (
    BreadthFirstSearcher,
    DepthFirstSearcher,
    Graph,
    MemoryGraph,
    ProhibitionStore,
)
from ngac.operations import (
    ADMIN_OPERATIONS,
    ALL_OPERATIONS,
    ANY_OPERATIONS,
    OperationSet,
)
from ngac.prohibitions import MemoryProhibitions, ProhibitionEvaluator
from ngac.types import (
    Association,
    Decision,
    Node,
    NodeType,
    Prohibition,
    ProhibitionNode,
)

__all__ = [
    # Version
    "__version__",
    # Core types
    "Node",
    "NodeType",
    "Association",
    "Prohibition",
    "ProhibitionNode",
    "Decision",
    # Operations
    "OperationSet",
    "ALL_OPERATIONS",
    "ANY_OPERATIONS",
    "ADMIN_OPERATIONS",
    # Graph
    "Graph",
    "ProhibitionStore",
    "MemoryGraph",
    "DepthFirstSearcher",
    "BreadthFirstSearcher",
    # Prohibitions
    "MemoryProhibitions",
    "ProhibitionEvaluator",
    # Deciders
    "Decider",
    "BaseDecider",
    "PolicyReviewDecider",
    "DeciderFactory",
    "DeciderConfig",
    "create_decider",
    # Audit
    "AccessExplainer",
    "Explain",
    "PolicyClassExplain",
    "Path",
    # Exceptions
    "NGACError",
    "NotFoundError",
    "NodeNotFoundError",
    "ProhibitionNotFoundError",
    "InvalidArgumentError",
    "InvalidPolicyError",
    "InvalidAssignmentError",
    "InvalidAssociationError",
    "CycleDetectedError",
    "TraversalDepthError",
]
