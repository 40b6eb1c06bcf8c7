"""
Lightweight typing aliases used across core schemas, the store and the graph layer.

Notes:
    - Intended for annotations only; no runtime logic.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

__all__ = [
    "JsonDict",
    "Where",
    "Stage",
    "TypePair",
    "Predicate",
]

JsonDict = dict[str, Any]

# Store filter: field -> value, or field -> {"$in": [...]}.
Where = dict[str, Any]

# One aggregation stage, e.g. {"$match": {...}}.
Stage = dict[str, Any]

# (type_name, id) pair handed to the resolver.
TypePair = tuple[str, str]

# Target filter accepted by join/unjoin.
Predicate = Callable[[Any], bool]
