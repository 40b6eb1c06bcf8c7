"""
JoinRecord store: the edge rows of the joins collection.

A join A → B is two rows:
- B's joiners row: {side: joinable, joinable=B, f=A}
- A's joinees row: {side: joining, joining=A, f=B}

Owner lists are addressed by (side, owner). Filters mirror the classic "by_type" and
"by_model" scopes: f_type alone, or f_type plus f_id.
"""

from __future__ import annotations

import logging
from typing import Any

from joinable.core.constants import JOINS_COLLECTION, TARGET_ID_FIELD, TARGET_TYPE_FIELD
from joinable.core.errors import PartialEdgeError
from joinable.core.grammar import EdgeSide, canonical_type_name, edge_side_from_value
from joinable.core.schema import JoinRecordRow
from joinable.core.typing import JsonDict, Stage, TypePair, Where
from joinable.io.store import DocumentStore, RecordHandle

from .entity import Entity

logger = logging.getLogger(__name__)

__all__ = ["EdgeStore", "JOINEES", "JOINERS"]

# Owner lists.
JOINEES = EdgeSide.JOINING
JOINERS = EdgeSide.JOINABLE

Ref = Entity | TypePair


def _pair(ref: Ref) -> TypePair:
    if isinstance(ref, Entity):
        return ref.pair()
    return canonical_type_name(ref[0]), str(ref[1])


class EdgeStore:
    """Create, delete, count and list join rows owned by entities."""

    def __init__(self, store: DocumentStore, collection: str = JOINS_COLLECTION) -> None:
        self.store = store
        self.collection = collection

    @staticmethod
    def owner_where(
        side: EdgeSide | str,
        owner: Ref,
        *,
        by_type: Any = None,
        by_model: Ref | None = None,
    ) -> Where:
        """
        Filter selecting one owner list, optionally narrowed to a type or one model.

        Args:
            side (EdgeSide | str): JOINEES or JOINERS.
            owner (Entity | tuple[str, str]): Owner entity or (type_name, id).
            by_type (Any): Partner type in any accepted spelling, or an entity class.
            by_model (Entity | tuple[str, str] | None): Exact partner.
        """
        s = edge_side_from_value(side)
        owner_type, owner_id = _pair(owner)
        where: Where = {"side": s.value, s.type_field: owner_type, s.id_field: owner_id}
        if by_model is not None:
            f_type, f_id = _pair(by_model)
            where[TARGET_TYPE_FIELD] = f_type
            where[TARGET_ID_FIELD] = f_id
        elif by_type is not None:
            where[TARGET_TYPE_FIELD] = canonical_type_name(by_type)
        return where

    def create(self, side: EdgeSide | str, owner: Ref, target: Ref) -> JoinRecordRow:
        """Insert one row into owner's list pointing at target."""
        row = JoinRecordRow.for_owner(side, _pair(owner), _pair(target))
        self.store.create(self.collection, row.model_dump())
        logger.debug(
            "created edge side=%s owner=%s/%s target=%s/%s",
            row.side, row.owner_type, row.owner_id, row.f_type, row.f_id,
        )
        return row

    def rows(
        self,
        side: EdgeSide | str,
        owner: Ref,
        *,
        by_type: Any = None,
        by_model: Ref | None = None,
        skip: int | None = None,
        limit: int | None = None,
    ) -> list[JoinRecordRow]:
        where = self.owner_where(side, owner, by_type=by_type, by_model=by_model)
        return [
            JoinRecordRow.model_validate(r)
            for r in self.store.query(self.collection, where, skip=skip, limit=limit)
        ]

    def count(
        self,
        side: EdgeSide | str,
        owner: Ref,
        *,
        by_type: Any = None,
        by_model: Ref | None = None,
        limit: int | None = None,
    ) -> int:
        where = self.owner_where(side, owner, by_type=by_type, by_model=by_model)
        return self.store.count_where(self.collection, where, limit=limit)

    def is_linked(self, joining: Ref, joinable: Ref) -> bool:
        """
        True iff both halves of joining → joinable exist.

        The forward and reverse lookups are each capped at one row and multiplied, so a
        lone half-edge reads as "not linked".
        """
        forward = self.count(JOINEES, joining, by_model=joinable, limit=1)
        reverse = self.count(JOINERS, joinable, by_model=joining, limit=1)
        return forward * reverse > 0

    def delete_one(self, side: EdgeSide | str, owner: Ref, target: Ref) -> JoinRecordRow | None:
        """Delete the first row in owner's list pointing at target; None if there is none."""
        found = self.rows(side, owner, by_model=target, limit=1)
        if not found:
            return None
        row = found[0]
        self.store.delete(RecordHandle(self.collection, row.record_id))
        logger.debug(
            "deleted edge side=%s owner=%s/%s target=%s/%s",
            row.side, row.owner_type, row.owner_id, row.f_type, row.f_id,
        )
        return row

    def delete_row(self, row: JoinRecordRow) -> None:
        self.store.delete(RecordHandle(self.collection, row.record_id))

    def restore(self, row: JoinRecordRow) -> None:
        """Re-insert a previously deleted row under its original record_id."""
        self.store.create(self.collection, row.model_dump())

    def create_pair(self, joining: Ref, joinable: Ref, *, rollback: bool = True) -> None:
        """
        Write both rows of joining → joinable, joinable's joiners row first.

        Raises:
            PartialEdgeError: If the joiners row was written and the joinees row failed.
                With rollback the joiners row is deleted again before raising.
        """
        first = self.create(JOINERS, joinable, joining)
        try:
            self.create(JOINEES, joining, joinable)
        except Exception as exc:
            undone = rollback and self._compensate(self.delete_row, first)
            raise self._partial("join", joining, joinable, undone, exc) from exc

    def delete_pair(
        self,
        joining: Ref,
        joinable: Ref,
        *,
        first: EdgeSide = JOINERS,
        rollback: bool = True,
    ) -> None:
        """
        Delete one row on each side of joining → joinable.

        Args:
            first (EdgeSide): List deleted first; JOINERS when the joiner unjoins,
                JOINEES when the joined side drops the edge.

        Raises:
            PartialEdgeError: If the first delete succeeded and the second failed.
                With rollback the first row is re-inserted before raising.
        """
        ends = {JOINEES: (joining, joinable), JOINERS: (joinable, joining)}
        second = first.opposite()
        removed = self.delete_one(first, *ends[first])
        try:
            self.delete_one(second, *ends[second])
        except Exception as exc:
            undone = rollback and removed is not None and self._compensate(self.restore, removed)
            raise self._partial("unjoin", joining, joinable, undone, exc) from exc

    @staticmethod
    def _compensate(action: Any, row: JoinRecordRow) -> bool:
        try:
            action(row)
        except Exception:
            logger.exception("compensation failed for edge record_id=%s", row.record_id)
            return False
        return True

    @staticmethod
    def _partial(
        operation: str, joining: Ref, joinable: Ref, rolled_back: bool, exc: Exception
    ) -> PartialEdgeError:
        logger.warning(
            "partial edge during %s joining=%s joinable=%s rolled_back=%s: %s",
            operation, _pair(joining), _pair(joinable), rolled_back, exc,
        )
        return PartialEdgeError(
            f"{operation} wrote only one half of {_pair(joining)} -> {_pair(joinable)}",
            operation=operation,
            joining=joining,
            joinable=joinable,
            rolled_back=bool(rolled_back),
        )

    def delete_touching(self, entity: Ref) -> int:
        """
        Delete every row owned by entity and every row pointing at it.

        Returns:
            int: Number of rows removed.
        """
        type_name, entity_id = _pair(entity)
        removed = 0
        for side in EdgeSide:
            removed += self.store.delete_where(self.collection, self.owner_where(side, entity))
        removed += self.store.delete_where(
            self.collection, {TARGET_TYPE_FIELD: type_name, TARGET_ID_FIELD: entity_id}
        )
        return removed

    def all_rows(self) -> list[JoinRecordRow]:
        return [JoinRecordRow.model_validate(r) for r in self.store.query(self.collection)]

    def aggregate(self, stages: list[Stage]) -> list[JsonDict]:
        return self.store.aggregate(self.collection, stages)
