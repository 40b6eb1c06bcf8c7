"""
JoinGraph: the facade tying store, registry, resolver and edge operations together.

Examples:
    >>> from joinable.graph import JoinGraph, Entity, HasJoinerEdges, HasJoinedEdges
    >>> class User(Entity, HasJoinerEdges, HasJoinedEdges):
    ...     pass
    >>> class Group(Entity, HasJoinedEdges):
    ...     pass
    >>> graph = JoinGraph(types=[User, Group])
    >>> jim, ruby = graph.save(User(id="jim")), graph.save(Group(id="ruby"))
    >>> graph.joiner.join(jim, ruby)
    [Group(id='ruby')]
    >>> graph.joined.joiners_count(ruby)
    1
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Literal

from joinable.core.schema import JoinRecordRow
from joinable.core.typing import Predicate
from joinable.io.config import StoreSettings
from joinable.io.store import DocumentStore, RecordHandle

from .edges import EdgeStore
from .entity import Entity
from .history import HistoryOperations
from .joined import JoinedOperations
from .joiner import JoinerOperations
from .ranking import RankingQueries
from .reconcile import Mode, ReconcileReport, find_partial_edges, reconcile
from .registry import BatchLoader, EntityRegistry, EntityType
from .resolver import EntityResolver

logger = logging.getLogger(__name__)

__all__ = ["JoinGraph"]


class JoinGraph:
    """
    Join engine bound to one store and one type registry.

    Args:
        store (DocumentStore | None): Backing store; a fresh in-memory store if None.
        registry (EntityRegistry | None): Type registry; a new one if None.
        settings (StoreSettings | None): Defaults to the store's settings.
        types (Sequence[type[Entity]]): Entity classes to register up front.

    Attributes:
        edges (EdgeStore): Join rows.
        resolver (EntityResolver): (type, id) → entity lookup.
        joiner / joined / history / ranking: Operation groups, created on first use.
    """

    def __init__(
        self,
        store: DocumentStore | None = None,
        registry: EntityRegistry | None = None,
        settings: StoreSettings | None = None,
        *,
        types: Sequence[type[Entity]] = (),
    ) -> None:
        if settings is None:
            settings = store.settings if store is not None else StoreSettings()
        self.settings = settings
        self.store = store if store is not None else DocumentStore(settings)
        self.registry = registry if registry is not None else EntityRegistry()
        for cls in types:
            self.registry.register(cls)
        self.edges = EdgeStore(self.store)
        self.resolver = EntityResolver(self.store, self.registry)
        self._joiner: JoinerOperations | None = None
        self._joined: JoinedOperations | None = None
        self._history: HistoryOperations | None = None
        self._ranking: RankingQueries | None = None

    @property
    def joiner(self) -> JoinerOperations:
        if self._joiner is None:
            self._joiner = JoinerOperations(self)
        return self._joiner

    @property
    def joined(self) -> JoinedOperations:
        if self._joined is None:
            self._joined = JoinedOperations(self)
        return self._joined

    @property
    def history(self) -> HistoryOperations:
        if self._history is None:
            self._history = HistoryOperations(self)
        return self._history

    @property
    def ranking(self) -> RankingQueries:
        if self._ranking is None:
            self._ranking = RankingQueries(self)
        return self._ranking

    # ------------------------------------------------------------------
    # Entity lifecycle
    # ------------------------------------------------------------------

    def register(
        self,
        cls: type[Entity],
        *,
        collection: str | None = None,
        loader: BatchLoader | None = None,
    ) -> EntityType:
        return self.registry.register(cls, collection=collection, loader=loader)

    def save(self, entity: Entity) -> Entity:
        """Insert or replace the entity's document; returns the entity."""
        entry = self.registry.get(entity)
        self.store.upsert(entry.collection, entity.to_document())
        return entity

    def get(self, cls: type[Entity] | str, entity_id: Any) -> Entity | None:
        found = self.resolver.find_by_ids_of_type(cls, [str(entity_id)])
        return found[0] if found else None

    def all(self, cls: type[Entity] | str) -> list[Entity]:
        """Every stored entity of a type, in store order."""
        entry = self.registry.get(cls)
        return [entry.cls.from_document(d) for d in self.store.query(entry.collection)]

    def destroy(self, entity: Entity) -> int:
        """
        Delete an entity and every join row it owns or is pointed at by.

        Returns:
            int: Number of join rows removed.

        Raises:
            RecordNotFound: If the entity's document is not stored.
        """
        entry = self.registry.get(entity)
        removed = self.edges.delete_touching(entity)
        self.store.delete(RecordHandle(entry.collection, entity.id))
        logger.debug("destroyed %r with %d join rows", entity, removed)
        return removed

    # ------------------------------------------------------------------
    # Shortcuts
    # ------------------------------------------------------------------

    def join(self, entity: Entity, *targets: Entity, where: Predicate | None = None) -> list[Entity]:
        return self.joiner.join(entity, *targets, where=where)

    def unjoin(self, entity: Entity, *targets: Entity, where: Predicate | None = None) -> list[Entity]:
        return self.joiner.unjoin(entity, *targets, where=where)

    def rank(
        self,
        cls: type[Entity],
        *,
        by: Literal["joinees", "joiners"] = "joinees",
        extreme: Literal["max", "min"] = "max",
        partner_type: Any = None,
    ) -> list[Entity]:
        """
        Generic entry point for the ranking queries.

        Raises:
            ValueError: On an unknown `by` or `extreme`.
            EmptyCollectionError: If cls has no stored entities.
        """
        if by not in ("joinees", "joiners") or extreme not in ("max", "min"):
            raise ValueError(f"unsupported ranking by={by!r} extreme={extreme!r}")
        suffix = "_by_type" if partner_type is not None else ""
        query = getattr(self.ranking, f"with_{extreme}_{by}{suffix}")
        return query(cls) if partner_type is None else query(cls, partner_type)

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------

    def find_partial_edges(self) -> list[JoinRecordRow]:
        return find_partial_edges(self.edges)

    def reconcile(self, mode: Mode = "prune") -> ReconcileReport:
        return reconcile(self.edges, mode)
