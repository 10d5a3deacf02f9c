"""
Prohibitions for ngac.

- MemoryProhibitions: in-memory prohibition store
- ProhibitionEvaluator: turns reached condition nodes into denied operations
"""

from ngac.prohibitions.evaluator import ProhibitionEvaluator
from ngac.prohibitions.store import MemoryProhibitions

__all__ = [
    "MemoryProhibitions",
    "ProhibitionEvaluator",
]
