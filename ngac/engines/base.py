"""
Decider base classes and protocols for ngac.

This module defines the Decider protocol that every decision engine
implements, and BaseDecider, which derives check, filter and the async
variants from an engine's ``list`` so concrete engines only resolve
permission sets.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from ngac.config import DeciderConfig
from ngac.exceptions import InvalidArgumentError, NGACError
from ngac.operations import ALL_OPERATIONS, ANY_OPERATIONS, OperationSet
from ngac.prohibitions.store import MemoryProhibitions
from ngac.types import Decision

if TYPE_CHECKING:
    from ngac.graph.base import Graph, ProhibitionStore

logger = logging.getLogger(__name__)


def permits(permissions: OperationSet, perms: Iterable[str]) -> bool:
    """
    Decide whether a resolved permission set satisfies a request.

    Returns:
        - True if perms contains ``"any"`` and any operation is granted.
        - True if ``"*"`` is granted.
        - False if nothing is granted.
        - Otherwise True only if every one of perms is granted.
    """
    perms = set(perms)
    if ANY_OPERATIONS in perms:
        return bool(permissions)
    if ALL_OPERATIONS in permissions:
        return True
    if not permissions:
        return False
    return permissions.issuperset(perms)


@runtime_checkable
class Decider(Protocol):
    """
    Protocol defining the interface for decision engines.

    A decider answers which operations a subject may perform on a target,
    under the policy graph it was constructed with. ``process`` identifies
    the process acting for the subject; prohibitions may target it. Pass
    None when there is no process.
    """

    def list(self, subject: str, process: str | None, target: str) -> OperationSet:
        """
        List the operations the subject may perform on the target.

        Raises:
            NodeNotFoundError: If the subject or target does not exist.
        """
        ...

    def check(self, subject: str, process: str | None, target: str, *perms: str) -> bool:
        """Check that the subject holds every one of perms on the target."""
        ...

    def filter(
        self,
        subject: str,
        process: str | None,
        candidates: Iterable[str],
        *perms: str,
    ) -> list[str]:
        """Keep the candidates on which the subject holds perms."""
        ...


class BaseDecider(ABC):
    """
    Abstract base class for deciders.

    Subclasses implement ``list``. Everything else in the Decider protocol
    is derived from it here.

    Attributes:
        name: Human-readable name for the decider.
        graph: The graph collaborator.
        prohibitions: The prohibition store collaborator.
        config: Decider configuration.
    """

    name: str = "base"

    def __init__(
        self,
        graph: Graph | None,
        prohibitions: ProhibitionStore | None = None,
        config: DeciderConfig | dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize the decider.

        Args:
            graph: The policy graph to decide against. Required.
            prohibitions: The prohibition store. Defaults to an empty
                MemoryProhibitions.
            config: A DeciderConfig or a dict of its fields.

        Raises:
            InvalidArgumentError: If graph is None or config is malformed.
        """
        if graph is None:
            raise InvalidArgumentError("graph", "policy graph cannot be None")

        self.graph = graph
        self.prohibitions = prohibitions if prohibitions is not None else MemoryProhibitions()
        self.config = DeciderConfig.coerce(config)

    @abstractmethod
    def list(self, subject: str, process: str | None, target: str) -> OperationSet:
        """
        Resolve the subject's operations on the target.

        Subclasses must implement this method.
        """

    def check(self, subject: str, process: str | None, target: str, *perms: str) -> bool:
        """
        Check the subject's access to the target.

        See ``permits`` for how the resolved permissions are matched
        against perms.
        """
        return permits(self.list(subject, process, target), perms)

    def filter(
        self,
        subject: str,
        process: str | None,
        candidates: Iterable[str],
        *perms: str,
    ) -> list[str]:
        """
        Remove the candidates on which the subject lacks perms.

        A candidate whose check fails with an NGACError is removed rather
        than aborting the whole filter.

        Returns:
            The permitted candidates, in their original order.
        """
        permitted = []
        for candidate in candidates:
            try:
                if self.check(subject, process, candidate, *perms):
                    permitted.append(candidate)
            except NGACError as e:
                logger.warning(f"Excluding '{candidate}' from filter result: {e}")
        return permitted

    def get_children(
        self,
        subject: str,
        process: str | None,
        target: str,
        *perms: str,
    ) -> list[str]:
        """
        Get the children of target on which the subject holds perms.

        Raises:
            NodeNotFoundError: If target does not exist.
        """
        children = sorted(self.graph.get_children(target))
        return self.filter(subject, process, children, *perms)

    def decide(
        self,
        subject: str,
        target: str,
        *perms: str,
        process: str | None = None,
    ) -> Decision:
        """
        Check access and report the outcome as a Decision.

        Example:
            >>> decision = decider.decide("u1", "o1", "read")
            >>> decision.allowed, sorted(decision.permissions)
            (True, ['read', 'write'])
        """
        permissions = self.list(subject, process, target)
        requested = list(perms)
        metadata: dict[str, Any] = {"subject": subject, "target": target, "requested": requested}

        if permits(permissions, perms):
            return Decision.allow(
                reason=f"{self.name} decider granted {requested} on '{target}'",
                permissions=permissions,
                metadata=metadata,
            )

        missing = sorted(set(perms) - permissions - {ANY_OPERATIONS})
        metadata["missing"] = missing
        return Decision.deny(
            reason=f"Subject '{subject}' lacks {missing or requested} on '{target}'",
            permissions=permissions,
            metadata=metadata,
        )

    async def check_async(
        self,
        subject: str,
        process: str | None,
        target: str,
        *perms: str,
    ) -> bool:
        """
        Async version of check.

        Runs the synchronous check in the default executor so a large
        traversal does not block the event loop.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(self.check, subject, process, target, *perms)
        )
