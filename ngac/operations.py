"""
Operation sets for ngac.

An operation set is a plain set of operation names. Two names are special:

- ``"*"`` (``ALL_OPERATIONS``) grants every operation and absorbs any named
  operations it appears with in a final decision.
- ``"any"`` (``ANY_OPERATIONS``) is only meaningful as a check argument and
  asks whether the subject holds at least one operation.

Operations are split into administrative operations, which manage the
policy graph itself, and resource operations, which act on the data the
objects represent. Propagation of non-recursive grants differs between the
two kinds.
"""

from __future__ import annotations

from collections.abc import Iterable

ALL_OPERATIONS = "*"
ANY_OPERATIONS = "any"

ADMIN_OPERATIONS: frozenset[str] = frozenset({
    "create policy class",
    "create node",
    "create object",
    "create object attribute",
    "create user",
    "create user attribute",
    "update node",
    "delete node",
    "get node",
    "assign",
    "assign to",
    "assign object",
    "assign object to",
    "assign object attribute",
    "assign object attribute to",
    "deassign",
    "deassign from",
    "associate",
    "dissociate",
    "get associations",
    "create prohibition",
    "update prohibition",
    "delete prohibition",
    "get permissions",
    "view policy",
    "reset",
})


def is_admin(op: str, admin_operations: Iterable[str] = ADMIN_OPERATIONS) -> bool:
    """Check if an operation manages the policy graph."""
    return op in admin_operations


def is_resource(op: str, admin_operations: Iterable[str] = ADMIN_OPERATIONS) -> bool:
    """Check if an operation acts on resources. ``"*"`` is a resource operation."""
    return not is_admin(op, admin_operations)


class OperationSet(set[str]):
    """
    A set of operation names.

    Accepts either individual names or a single iterable of names:

        >>> OperationSet("read", "write")
        >>> OperationSet(["read", "write"])
    """

    def __init__(self, *ops: str | Iterable[str]) -> None:
        if len(ops) == 1 and not isinstance(ops[0], str):
            super().__init__(ops[0])
        else:
            super().__init__(ops)

    def admin_ops(self, admin_operations: Iterable[str] = ADMIN_OPERATIONS) -> OperationSet:
        """Return the administrative subset as a new set."""
        admin = frozenset(admin_operations)
        return OperationSet(op for op in self if op in admin)

    def resource_ops(self, admin_operations: Iterable[str] = ADMIN_OPERATIONS) -> OperationSet:
        """Return the resource subset as a new set."""
        admin = frozenset(admin_operations)
        return OperationSet(op for op in self if op not in admin)

    def has_all_operations(self) -> bool:
        return ALL_OPERATIONS in self

    def copy(self) -> OperationSet:
        return OperationSet(self)

    def __repr__(self) -> str:
        return f"OperationSet({sorted(self)!r})"


def resolve_policy_class_operations(pc_operations: Iterable[Iterable[str]]) -> OperationSet:
    """
    Fold the operations granted under each policy class into one set.

    Every policy class that contains the target must grant something: an
    empty set under any of them vetoes the whole decision. Named sets are
    intersected. A running result holding ``"*"`` is replaced by the next
    policy class's set, and a next set holding ``"*"`` leaves the running
    result unchanged.

    Args:
        pc_operations: Operations granted per policy class, in visit order.

    Returns:
        The folded operation set. ``"*"`` is not collapsed here.
    """
    result = OperationSet()
    first = True

    for ops in pc_operations:
        ops = OperationSet(ops)
        if first:
            result.update(ops)
            first = False
            continue

        if not ops:
            result.clear()
            break

        if ALL_OPERATIONS in result:
            result = ops
        elif ALL_OPERATIONS not in ops:
            result &= ops

    return result


def collapse_wildcard(ops: OperationSet) -> OperationSet:
    """Reduce a set holding ``"*"`` to exactly ``{"*"}``."""
    if ALL_OPERATIONS in ops:
        return OperationSet(ALL_OPERATIONS)
    return ops
