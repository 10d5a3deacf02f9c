"""
Decision engines for ngac.

- PolicyReviewDecider: resolves permissions by reviewing the graph per request

Quick Start:
    >>> from ngac.engines import create_decider
    >>>
    >>> decider = create_decider("policy_review", graph, prohibitions)
    >>> decider.check("u1", None, "o1", "read")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ngac.engines.base import BaseDecider, Decider, permits
from ngac.engines.review import PolicyReviewDecider
from ngac.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from ngac.config import DeciderConfig
    from ngac.graph.base import Graph, ProhibitionStore

logger = logging.getLogger(__name__)


class DeciderFactory:
    """
    Factory for creating deciders by name.

    Example:
        >>> decider = DeciderFactory.create("policy_review", graph)
        >>>
        >>> class CachedDecider(BaseDecider):
        ...     def list(self, subject, process, target):
        ...         ...
        >>> DeciderFactory.register("cached", CachedDecider)
    """

    _deciders: dict[str, type[BaseDecider]] = {
        PolicyReviewDecider.name: PolicyReviewDecider,
    }

    @classmethod
    def create(
        cls,
        decider_type: str,
        graph: Graph | None,
        prohibitions: ProhibitionStore | None = None,
        config: DeciderConfig | dict[str, Any] | None = None,
    ) -> BaseDecider:
        """
        Create a decider instance.

        Raises:
            InvalidArgumentError: If the decider type is unknown or the
                decider rejects its arguments.
        """
        decider_type = decider_type.lower()
        if decider_type not in cls._deciders:
            raise InvalidArgumentError(
                "decider_type",
                f"unknown decider '{decider_type}'. "
                f"Available deciders: {', '.join(cls.get_available_deciders())}",
            )
        return cls._deciders[decider_type](graph, prohibitions, config)

    @classmethod
    def register(cls, decider_type: str, decider_class: type[BaseDecider]) -> None:
        """Register a custom decider type."""
        cls._deciders[decider_type.lower()] = decider_class
        logger.debug(f"Registered decider type: {decider_type}")

    @classmethod
    def unregister(cls, decider_type: str) -> bool:
        """Unregister a decider type. The built-in decider cannot be removed."""
        decider_type = decider_type.lower()
        if decider_type in cls._deciders and decider_type != PolicyReviewDecider.name:
            del cls._deciders[decider_type]
            return True
        return False

    @classmethod
    def get_available_deciders(cls) -> list[str]:
        return sorted(cls._deciders)


def create_decider(
    decider_type: str = PolicyReviewDecider.name,
    graph: Graph | None = None,
    prohibitions: ProhibitionStore | None = None,
    config: DeciderConfig | dict[str, Any] | None = None,
) -> BaseDecider:
    """Convenience function that delegates to DeciderFactory.create()."""
    return DeciderFactory.create(decider_type, graph, prohibitions, config)


__all__ = [
    "Decider",
    "BaseDecider",
    "PolicyReviewDecider",
    "DeciderFactory",
    "create_decider",
    "permits",
]
