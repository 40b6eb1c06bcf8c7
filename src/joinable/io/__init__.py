"""
joinable.io — Storage layer for the join graph.

## Responsibilities
- Provide an in-process, Polars-backed document store that the graph engine talks to through
  create/delete/query/count/aggregate/find-by-ids calls.
- Validate writes against collection descriptors from joinable.core.tables.
- Optionally persist each collection as a Parquet snapshot (tmp → fsync → atomic rename) with
  the schema version embedded in key-value metadata.

## Public API
- StoreSettings / GraphSettings — configuration (env > TOML > defaults).
- DocumentStore / RecordHandle — the store and its record address.
- configure_logging — applies StoreSettings.log_level to the "joinable" logger.

## Import DAG discipline
- Depends only on stdlib, polars/pyarrow and joinable.core.*.
- MUST NOT import joinable.graph.

## Examples
```python
from joinable.io import DocumentStore, StoreSettings

store = DocumentStore.open(StoreSettings(root_dir="out", persist=True))  # doctest: +SKIP
store.query("joins", {"f_type": "Group"}, limit=10)  # doctest: +SKIP
store.flush()  # doctest: +SKIP
```
"""

from __future__ import annotations

from .config import GraphSettings, StoreSettings, configure_logging
from .store import DocumentStore, RecordHandle

__all__ = [
    "GraphSettings",
    "StoreSettings",
    "configure_logging",
    "DocumentStore",
    "RecordHandle",
]
