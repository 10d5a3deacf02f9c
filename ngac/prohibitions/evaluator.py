"""
Prohibition evaluation for ngac.

A prohibition denies its operations when its node conditions hold for the
target being decided. Which condition nodes were reached is recorded while
the decider walks up from the target; this module turns those records into
the set of operations to subtract from the granted permissions.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Set

from ngac.operations import OperationSet
from ngac.types import Prohibition

logger = logging.getLogger(__name__)


class ProhibitionEvaluator:
    """
    Computes denied operations from prohibitions and reached condition nodes.

    Modes:
        - Intersection: fires only if every condition holds. A positive
          condition holds when its node was reached; a complement condition
          holds when its node was not reached.
        - Union: fires if any single condition holds.

    A prohibition without conditions never fires.

    Example:
        >>> evaluator = ProhibitionEvaluator()
        >>> denied = evaluator.denied_operations(
        ...     [prohibition],
        ...     {prohibition.name: {"oa1"}},
        ... )
    """

    def fires(self, prohibition: Prohibition, reached: Set[str]) -> bool:
        """
        Check whether a single prohibition applies.

        Args:
            prohibition: The prohibition to test.
            reached: Ids of the prohibition's condition nodes that were
                reached from the target.

        Returns:
            True if the prohibition's operations are denied.
        """
        if not prohibition.nodes:
            return False

        for condition in prohibition.nodes:
            satisfied = (condition.id in reached) != condition.complement

            if prohibition.intersection and not satisfied:
                return False
            if not prohibition.intersection and satisfied:
                return True

        return prohibition.intersection

    def denied_operations(
        self,
        prohibitions: Iterable[Prohibition],
        reached: Mapping[str, Set[str]],
    ) -> OperationSet:
        """
        Union the operations of every prohibition that fires.

        Args:
            prohibitions: Prohibitions that apply to the subject.
            reached: Prohibition name -> condition node ids reached from the
                target. Missing names count as nothing reached.

        Returns:
            The denied operations.
        """
        denied = OperationSet()

        for prohibition in prohibitions:
            if self.fires(prohibition, reached.get(prohibition.name, frozenset())):
                logger.debug(
                    f"Prohibition '{prohibition.name}' fires, denying "
                    f"{sorted(prohibition.operations)}"
                )
                denied.update(prohibition.operations)

        return denied
