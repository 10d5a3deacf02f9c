"""
Configuration for ngac deciders.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any

from ngac.exceptions import InvalidArgumentError
from ngac.operations import ADMIN_OPERATIONS


@dataclass
class DeciderConfig:
    """
    Configuration for a decider.

    Attributes:
        max_workers: Threads used by get_accessible_nodes to resolve
            descendants. 1 resolves them sequentially.
        max_depth: Optional limit on traversal depth. None disables it.
        require_policy_class: If True, a target whose containment chain
            reaches no policy class raises InvalidPolicyError instead of
            resolving to the empty set.
        admin_operations: Operation names treated as administrative.
    """
    max_workers: int = 1
    max_depth: int | None = None
    require_policy_class: bool = False
    admin_operations: frozenset[str] = field(default=ADMIN_OPERATIONS)

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise InvalidArgumentError("max_workers", "must be at least 1")
        if self.max_depth is not None and self.max_depth < 1:
            raise InvalidArgumentError("max_depth", "must be at least 1 or None")
        self.admin_operations = frozenset(self.admin_operations)

    @classmethod
    def from_dict(cls, config: dict[str, Any] | None) -> DeciderConfig:
        """
        Build a config from a plain dictionary.

        Raises:
            InvalidArgumentError: If the dictionary holds an unknown key.
        """
        config = config or {}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config) - known)
        if unknown:
            raise InvalidArgumentError(
                "config", f"unknown keys {unknown}; expected a subset of {sorted(known)}"
            )
        return cls(**config)

    @classmethod
    def coerce(cls, config: DeciderConfig | dict[str, Any] | None) -> DeciderConfig:
        """Accept a DeciderConfig, a dict, or None."""
        if isinstance(config, DeciderConfig):
            return config
        return cls.from_dict(config)
