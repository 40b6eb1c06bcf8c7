"""
Polymorphic lookup: (type_name, id) pairs back into typed entities.

Algorithm
- Group pairs by canonical type name, groups ordered by first appearance.
- One batched find per group (the type's loader, or a $in query on its collection).
- Concatenate per-type results. Within a group the order is the store's found order and
  duplicate ids collapse, so callers needing the input order must not rely on it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from joinable.core.constants import TARGET_ID_FIELD, TARGET_TYPE_FIELD
from joinable.core.grammar import canonical_type_name, parse_history_token
from joinable.core.schema import JoinRecordRow
from joinable.core.typing import TypePair
from joinable.io.store import DocumentStore

from .entity import Entity
from .registry import EntityRegistry

logger = logging.getLogger(__name__)


class EntityResolver:
    """Batched, type-grouped entity lookup over a DocumentStore."""

    def __init__(self, store: DocumentStore, registry: EntityRegistry) -> None:
        self.store = store
        self.registry = registry

    def find_by_ids_of_type(self, type_name: str | type[Entity], ids: Sequence[str]) -> list[Entity]:
        """
        Load entities of one type in a single round trip.

        Raises:
            UnknownTypeError: If type_name is not registered.
        """
        entry = self.registry.get(type_name)
        wanted = list(dict.fromkeys(str(i) for i in ids))
        if not wanted:
            return []
        if entry.loader is not None:
            return list(entry.loader(wanted))
        docs = self.store.find_by_ids(entry.collection, wanted)
        return [entry.cls.from_document(d) for d in docs]

    def resolve(self, pairs: Iterable[tuple[Any, Any]]) -> list[Entity]:
        """
        Resolve (type_name, id) pairs.

        Args:
            pairs (Iterable[tuple[Any, Any]]): Type names in any accepted spelling, ids
                string-comparable.

        Returns:
            list[Entity]: Per-type found order, types in order of first appearance.

        Raises:
            UnknownTypeError: On an unregistered type name.
        """
        groups: dict[str, list[str]] = {}
        for type_name, entity_id in pairs:
            groups.setdefault(canonical_type_name(type_name), []).append(str(entity_id))
        out: list[Entity] = []
        for type_name, ids in groups.items():
            found = self.find_by_ids_of_type(type_name, ids)
            logger.debug("resolved type=%s asked=%d found=%d", type_name, len(ids), len(found))
            out.extend(found)
        return out

    def resolve_records(self, rows: Iterable[JoinRecordRow | Mapping[str, Any]]) -> list[Entity]:
        """Resolve the other endpoint (f_type, f_id) of join rows."""
        pairs: list[TypePair] = []
        for row in rows:
            if isinstance(row, JoinRecordRow):
                pairs.append((row.f_type, row.f_id))
            else:
                pairs.append((row[TARGET_TYPE_FIELD], row[TARGET_ID_FIELD]))
        return self.resolve(pairs)

    def resolve_tokens(self, tokens: Iterable[str]) -> list[Entity]:
        """
        Resolve history tokens, splitting each after its registered type-name prefix.

        Raises:
            AmbiguousHistoryTokenError: If a token matches no or several registered types.
        """
        known = self.registry.type_names()
        return self.resolve(parse_history_token(t, known) for t in tokens)
