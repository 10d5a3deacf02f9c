"""
Audit module for ngac.

This module explains access decisions by reconstructing the assignment and
association paths that connect a user to a target.

Quick Start:
    >>> from ngac.audit import AccessExplainer
    >>>
    >>> explainer = AccessExplainer(graph)
    >>> explain = explainer.explain("u1", "o1")
    >>> sorted(explain.permissions)
    ['read']
    >>> print(explain.to_json())
"""

from ngac.audit.explainer import (
    AccessExplainer,
    Edge,
    EdgePath,
    Explain,
    Path,
    PolicyClassExplain,
)

__all__ = [
    "AccessExplainer",
    "Edge",
    "EdgePath",
    "Explain",
    "Path",
    "PolicyClassExplain",
]
