"""
Policy review decider for ngac.

PolicyReviewDecider resolves permissions by walking the policy graph from
both ends of a request:

1. A breadth-first walk up from the subject collects every association
   reachable through the subject's user attributes (the border targets) and
   every prohibition that applies to the subject, its attributes, or its
   process.
2. A depth-first walk up from the target carries, per policy class, the
   operations granted by border targets down to the target.
3. The per-policy-class operations are folded into one set and the
   operations denied by firing prohibitions are removed.

Each call builds its own traversal state, so one decider can serve
concurrent requests as long as the graph it reads is not being mutated.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ngac.engines.base import BaseDecider
from ngac.exceptions import InvalidPolicyError
from ngac.graph.traversal import (
    BreadthFirstSearcher,
    DepthFirstSearcher,
    no_op_propagator,
)
from ngac.operations import (
    OperationSet,
    collapse_wildcard,
    resolve_policy_class_operations,
)
from ngac.prohibitions.evaluator import ProhibitionEvaluator
from ngac.types import NodeType, Prohibition

if TYPE_CHECKING:
    from ngac.config import DeciderConfig
    from ngac.graph.base import Graph, ProhibitionStore
    from ngac.types import Node

logger = logging.getLogger(__name__)


@dataclass
class AssociationContext:
    """Operations granted on a node, split by the recursive flag of their grant."""
    recursive: OperationSet = field(default_factory=OperationSet)
    non_recursive: OperationSet = field(default_factory=OperationSet)

    def add_recursive(self, ops: OperationSet) -> None:
        self.recursive.update(ops)

    def add_non_recursive(self, ops: OperationSet) -> None:
        self.non_recursive.update(ops)

    def all(self) -> OperationSet:
        return OperationSet(self.recursive | self.non_recursive)


@dataclass
class UserContext:
    """
    What the subject-side traversal found.

    Attributes:
        border_targets: Association target id -> operations granted on it.
        prohibitions: Applicable prohibitions by name.
        prohibited_targets: Condition node id -> prohibitions referring to it.
    """
    border_targets: dict[str, AssociationContext] = field(default_factory=dict)
    prohibitions: dict[str, Prohibition] = field(default_factory=dict)
    prohibited_targets: dict[str, list[Prohibition]] = field(default_factory=dict)


@dataclass
class TargetContext:
    """
    What the target-side traversal found.

    Attributes:
        pc_contexts: Policy class id -> operations that reached the target
            under that policy class.
        reached: Prohibition name -> condition node ids reached from the
            target.
    """
    pc_contexts: dict[str, AssociationContext] = field(default_factory=dict)
    reached: dict[str, set[str]] = field(default_factory=dict)


class PolicyReviewDecider(BaseDecider):
    """
    Decider that reviews the whole policy graph on every request.

    Example:
        >>> decider = PolicyReviewDecider(graph, prohibitions)
        >>> decider.list("u1", None, "o1")
        OperationSet(['read', 'write'])
        >>> decider.check("u1", None, "o1", "read")
        True

    Configuration (see DeciderConfig):
        - max_workers: threads for get_accessible_nodes.
        - max_depth: traversal depth limit.
        - require_policy_class: raise instead of returning nothing for
          targets outside every policy class.
        - admin_operations: catalogue used to split admin and resource ops.
    """

    name = "policy_review"

    def __init__(
        self,
        graph: Graph | None,
        prohibitions: ProhibitionStore | None = None,
        config: DeciderConfig | dict[str, Any] | None = None,
    ) -> None:
        super().__init__(graph, prohibitions, config)
        self.evaluator = ProhibitionEvaluator()
        logger.debug(f"PolicyReviewDecider initialized with config: {self.config}")

    def list(self, subject: str, process: str | None, target: str) -> OperationSet:
        """
        List the operations the subject may perform on the target.

        Args:
            subject: Id of the user (or user attribute) making the request.
            process: Optional process id acting for the subject.
            target: Id of the node being accessed.

        Returns:
            The permitted operations. ``{"*"}`` when everything is permitted.

        Raises:
            NodeNotFoundError: If the subject or target does not exist.
            InvalidPolicyError: If the graph holds a cycle, or the target is
                outside every policy class and require_policy_class is set.
        """
        user_ctx = self._process_user_dag(subject, process)

        # an unknown target fails the call even when the subject has no grants
        self.graph.get_node(target)

        if not user_ctx.border_targets:
            logger.debug(f"Subject {subject} reaches no associations")
            return OperationSet()

        target_ctx = self._process_target_dag(target, user_ctx)
        permissions = self._resolve_permissions(user_ctx, target_ctx)

        logger.debug(f"list({subject}, {process}, {target}) -> {sorted(permissions)}")
        return permissions

    def get_accessible_nodes(self, subject: str, process: str | None) -> dict[str, OperationSet]:
        """
        Get every node the subject can reach and its permissions on each.

        Every node contained (transitively) in a border target is resolved,
        the border target included. With ``max_workers > 1`` the nodes are
        resolved in parallel.

        Returns:
            Node id -> permitted operations.
        """
        user_ctx = self._process_user_dag(subject, process)
        if not user_ctx.border_targets:
            return {}

        nodes = self._descendants(user_ctx.border_targets)
        results: dict[str, OperationSet] = {}

        if self.config.max_workers > 1 and len(nodes) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                futures = {
                    executor.submit(self._resolve_target, node_id, user_ctx): node_id
                    for node_id in nodes
                }
                for future in as_completed(futures):
                    results[futures[future]] = future.result()
        else:
            for node_id in nodes:
                results[node_id] = self._resolve_target(node_id, user_ctx)

        logger.debug(f"Subject {subject} can reach {len(results)} nodes")
        return results

    def generate_acl(self, oa_id: str, process: str | None = None) -> dict[str, OperationSet]:
        """
        Generate the access control list of an attribute.

        Starting from each user attribute associated with ``oa_id``, walk
        down through the nodes it contains. Every node collects the
        operations of the associations on the path leading to it, including
        associations of intermediate user attributes. A node is expanded
        again only when its collected set grows, which bounds the work on
        shared descendants and stops on malformed cycles.

        Args:
            oa_id: Id of the attribute the ACL is generated for.
            process: Optional process id. Prohibitions are not applied.

        Returns:
            Node id -> operations granted on ``oa_id``.

        Raises:
            NodeNotFoundError: If oa_id or a reached node does not exist.
        """
        target_associations = self.graph.get_target_associations(oa_id)
        acl: dict[str, OperationSet] = {}

        stack = [
            (source_id, OperationSet(association.operations))
            for source_id, association in sorted(target_associations.items(), reverse=True)
        ]
        while stack:
            node_id, ops = stack.pop()

            current = acl.get(node_id)
            if current is not None and ops <= current:
                continue

            merged = OperationSet(ops | current) if current is not None else ops
            acl[node_id] = merged

            for child_id in sorted(self.graph.get_children(node_id), reverse=True):
                child_ops = OperationSet(merged)
                association = target_associations.get(child_id)
                if association is not None:
                    child_ops.update(association.operations)
                stack.append((child_id, child_ops))

        logger.debug(f"ACL for {oa_id} (process={process}) covers {len(acl)} nodes")
        return acl

    # ------------------------------------------------------------------
    # Subject side
    # ------------------------------------------------------------------

    def _process_user_dag(self, subject: str, process: str | None) -> UserContext:
        """
        Breadth-first walk up from the subject collecting border targets and
        applicable prohibitions.
        """
        user_ctx = UserContext()

        if process is not None:
            self._collect_prohibitions(process, user_ctx)

        def visitor(node: Node) -> None:
            self._collect_prohibitions(node.id, user_ctx)
            if node.type == NodeType.UA:
                self._collect_associations(node.id, user_ctx)

        searcher = BreadthFirstSearcher(self.graph, self.config.max_depth)
        searcher.traverse(subject, no_op_propagator, visitor)

        for prohibition in user_ctx.prohibitions.values():
            for node_id in prohibition.node_ids():
                user_ctx.prohibited_targets.setdefault(node_id, []).append(prohibition)

        return user_ctx

    def _collect_associations(self, ua_id: str, user_ctx: UserContext) -> None:
        for target_id, association in self.graph.get_source_associations(ua_id).items():
            ctx = user_ctx.border_targets.setdefault(target_id, AssociationContext())
            if association.recursive:
                ctx.add_recursive(association.operations)
            else:
                ctx.add_non_recursive(association.operations)

    def _collect_prohibitions(self, subject: str, user_ctx: UserContext) -> None:
        for prohibition in self.prohibitions.get_prohibitions_for(subject):
            user_ctx.prohibitions.setdefault(prohibition.name, prohibition)

    # ------------------------------------------------------------------
    # Target side
    # ------------------------------------------------------------------

    def _process_target_dag(self, target: str, user_ctx: UserContext) -> TargetContext:
        """
        Depth-first walk up from the target.

        Every policy class opens a context that flows down towards the target.
        Border targets add their operations to each context present on them.
        On the way down, recursive grants always survive; non-recursive
        resource grants survive only into objects and users; non-recursive
        admin grants survive only into attributes.
        """
        visited: dict[str, dict[str, AssociationContext]] = {}
        reached: dict[str, set[str]] = {}
        admin_operations = self.config.admin_operations

        def visitor(node: Node) -> None:
            if node.id != target:
                for prohibition in user_ctx.prohibited_targets.get(node.id, ()):
                    reached.setdefault(prohibition.name, set()).add(node.id)

            node_ctx = visited.setdefault(node.id, {})
            if node.type == NodeType.PC:
                node_ctx[node.id] = AssociationContext()
                return

            border = user_ctx.border_targets.get(node.id)
            if border is not None:
                for pc_ctx in node_ctx.values():
                    pc_ctx.add_recursive(border.recursive)
                    pc_ctx.add_non_recursive(border.non_recursive)

        def propagator(parent: Node, child: Node) -> None:
            parent_ctx = visited.get(parent.id, {})
            child_ctx = visited.setdefault(child.id, {})

            for pc_id, parent_ops in parent_ctx.items():
                ops = child_ctx.setdefault(pc_id, AssociationContext())
                if child.type.is_attribute:
                    ops.add_recursive(parent_ops.recursive)
                    ops.add_non_recursive(parent_ops.non_recursive.admin_ops(admin_operations))
                else:
                    ops.add_recursive(parent_ops.recursive.resource_ops(admin_operations))
                    ops.add_non_recursive(parent_ops.non_recursive.resource_ops(admin_operations))

        searcher = DepthFirstSearcher(self.graph, self.config.max_depth)
        searcher.traverse(target, propagator, visitor)

        pc_contexts = visited.get(target, {})
        if not pc_contexts and self.config.require_policy_class:
            raise InvalidPolicyError(
                f"node '{target}' is not contained in any policy class",
                {"target": target},
            )

        return TargetContext(pc_contexts=pc_contexts, reached=reached)

    def _resolve_target(self, target: str, user_ctx: UserContext) -> OperationSet:
        target_ctx = self._process_target_dag(target, user_ctx)
        return self._resolve_permissions(user_ctx, target_ctx)

    def _resolve_permissions(self, user_ctx: UserContext, target_ctx: TargetContext) -> OperationSet:
        permissions = resolve_policy_class_operations(
            ctx.all() for ctx in target_ctx.pc_contexts.values()
        )

        denied = self.evaluator.denied_operations(
            user_ctx.prohibitions.values(), target_ctx.reached
        )
        permissions = OperationSet(permissions - denied)

        return collapse_wildcard(permissions)

    def _descendants(self, roots: dict[str, AssociationContext]) -> list[str]:
        """Every node contained in one of roots, roots included, in discovery order."""
        seen: set[str] = set()
        ordered: list[str] = []
        stack = sorted(roots, reverse=True)

        while stack:
            node_id = stack.pop()
            if node_id in seen:
                continue
            seen.add(node_id)
            ordered.append(node_id)
            stack.extend(sorted(self.graph.get_children(node_id), reverse=True))

        return ordered
