"""
joinable — polymorphic, bidirectional join relationships over a document store.

Layers (each depends only on the ones above it):
- joinable.core — grammar, row models, descriptors, versioning, errors (zero-IO).
- joinable.io — settings, Polars-backed document store, Parquet snapshots.
- joinable.graph — entities, registry, resolver, join/joined/history operations,
  ranking and reconciliation behind the JoinGraph facade.
"""

from __future__ import annotations

from .graph import Entity, HasHistory, HasJoinedEdges, HasJoinerEdges, JoinGraph
from .io import DocumentStore, StoreSettings

__all__ = [
    "Entity",
    "HasHistory",
    "HasJoinedEdges",
    "HasJoinerEdges",
    "JoinGraph",
    "DocumentStore",
    "StoreSettings",
]

__version__ = "0.1.0"
