"""
joinable.graph — The join relationship engine.

## Responsibilities
- Entities and capability interfaces (HasJoinerEdges, HasJoinedEdges, HasHistory).
- An explicit type registry and a batched, type-grouped resolver.
- Symmetric join/unjoin transitions over the joins collection, with compensation and a
  PartialEdgeError when only one half of a pair could be written.
- History tokens, ranking queries and half-edge reconciliation.

## Import DAG discipline
- Depends on joinable.core and joinable.io only.

## Examples
```python
from joinable.graph import Entity, HasHistory, HasJoinedEdges, HasJoinerEdges, JoinGraph

class User(Entity, HasJoinerEdges, HasJoinedEdges, HasHistory):
    pass

graph = JoinGraph(types=[User])
a, b = graph.save(User(id="a")), graph.save(User(id="b"))
graph.joiner.join(a, b)
graph.history.ever_join(a)  # [User(id='b')]
```
"""

from __future__ import annotations

from .edges import JOINEES, JOINERS, EdgeStore
from .engine import JoinGraph
from .entity import Entity, HasHistory, HasJoinedEdges, HasJoinerEdges
from .reconcile import ReconcileReport
from .registry import EntityRegistry, EntityType
from .resolver import EntityResolver

__all__ = [
    "JoinGraph",
    "Entity",
    "HasHistory",
    "HasJoinedEdges",
    "HasJoinerEdges",
    "EntityRegistry",
    "EntityType",
    "EntityResolver",
    "EdgeStore",
    "JOINEES",
    "JOINERS",
    "ReconcileReport",
]
