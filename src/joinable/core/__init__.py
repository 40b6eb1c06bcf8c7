"""
Core package aggregator for joinable contracts (grammar, schemas, tables, versioning, errors).

## Contracts (single source of truth)
- Grammar — EdgeSide, type-name canonicalization, history tokens.
- Schemas — JoinRecordRow and EntityRef pydantic models with validators.
- Tables — collection descriptors the IO layer validates frames against.
- Versioning — SCHEMA_V embedded in snapshots.
- Errors — graph-level exception types.

## Notes
- Zero-IO policy: stdlib + pydantic only.
- One join collection serves both directions; `side` names the owner list explicitly.

## Examples
```python
from joinable.core.schema import JoinRecordRow
row = JoinRecordRow.for_owner("joinable", ("Group", "g1"), ("User", "u1"))
row.owner_type, row.f_type  # ('Group', 'User')
```
"""

from .errors import (
    AmbiguousHistoryTokenError,
    CapabilityError,
    EmptyCollectionError,
    PartialEdgeError,
    ResolutionError,
    UnknownTypeError,
)
from .grammar import EdgeSide, canonical_type_name
from .schema import EntityRef, JoinRecordRow

__all__ = [
    "EdgeSide",
    "canonical_type_name",
    "EntityRef",
    "JoinRecordRow",
    "AmbiguousHistoryTokenError",
    "CapabilityError",
    "EmptyCollectionError",
    "PartialEdgeError",
    "ResolutionError",
    "UnknownTypeError",
]
