"""
In-memory prohibition store for ngac.
"""

from __future__ import annotations

import copy
import logging
import threading

from ngac.exceptions import InvalidArgumentError, ProhibitionNotFoundError
from ngac.types import Prohibition

logger = logging.getLogger(__name__)


class MemoryProhibitions:
    """
    Thread-safe in-memory ProhibitionStore.

    Prohibitions are keyed by name and indexed by subject. Reads return
    copies so a caller cannot alter a stored rule by mutating a result.

    Example:
        >>> store = MemoryProhibitions()
        >>> store.add(Prohibition(
        ...     name="deny-write",
        ...     subject="u1",
        ...     operations=OperationSet("write"),
        ...     intersection=True,
        ...     nodes=[ProhibitionNode("oa1")],
        ... ))
        >>> [p.name for p in store.get_prohibitions_for("u1")]
        ['deny-write']
    """

    def __init__(self) -> None:
        self._prohibitions: dict[str, Prohibition] = {}
        self._lock = threading.RLock()

    def add(self, prohibition: Prohibition) -> None:
        """
        Add a prohibition.

        Raises:
            InvalidArgumentError: If the name is empty or already used.
        """
        if not prohibition.name:
            raise InvalidArgumentError("name", "prohibition name cannot be empty")

        with self._lock:
            if prohibition.name in self._prohibitions:
                raise InvalidArgumentError(
                    "name", f"a prohibition named '{prohibition.name}' already exists"
                )
            self._prohibitions[prohibition.name] = copy.deepcopy(prohibition)

        logger.debug(
            f"Added prohibition '{prohibition.name}' for subject {prohibition.subject}"
        )

    def get(self, name: str) -> Prohibition:
        with self._lock:
            if name not in self._prohibitions:
                raise ProhibitionNotFoundError(name)
            return copy.deepcopy(self._prohibitions[name])

    def get_all(self) -> list[Prohibition]:
        with self._lock:
            return [copy.deepcopy(p) for p in self._prohibitions.values()]

    def get_prohibitions_for(self, subject: str) -> list[Prohibition]:
        with self._lock:
            return [
                copy.deepcopy(p) for p in self._prohibitions.values()
                if p.subject == subject
            ]

    def update(self, prohibition: Prohibition) -> None:
        """Replace the prohibition with the same name."""
        with self._lock:
            if prohibition.name not in self._prohibitions:
                raise ProhibitionNotFoundError(prohibition.name)
            self._prohibitions[prohibition.name] = copy.deepcopy(prohibition)

        logger.debug(f"Updated prohibition '{prohibition.name}'")

    def remove(self, name: str) -> bool:
        """
        Remove a prohibition.

        Returns:
            True if a prohibition was removed, False if none had that name.
        """
        with self._lock:
            if name in self._prohibitions:
                del self._prohibitions[name]
                logger.debug(f"Removed prohibition '{name}'")
                return True
            return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._prohibitions)
