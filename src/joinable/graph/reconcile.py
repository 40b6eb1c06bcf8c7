"""
Detection and repair of half-edges in the joins collection.

A row is partial when its mirror (same endpoints, opposite side) is missing. Rows are
matched as multisets: n rows of one orientation pair with up to n mirrors, and the
surplus is reported in insertion order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from joinable.core.schema import JoinRecordRow

from .edges import EdgeStore

logger = logging.getLogger(__name__)

__all__ = ["ReconcileReport", "find_partial_edges", "reconcile"]

Mode = Literal["prune", "complete"]

_Key = tuple[str, str, str, str, str]


def _key(row: JoinRecordRow) -> _Key:
    return (row.side, row.owner_type, row.owner_id, row.f_type, row.f_id)


def _mirror_key(row: JoinRecordRow) -> _Key:
    return (row.edge_side.opposite().value, row.f_type, row.f_id, row.owner_type, row.owner_id)


@dataclass(frozen=True)
class ReconcileReport:
    """
    Outcome of a reconcile() pass.

    Attributes:
        mode (str): "prune" or "complete".
        partial (tuple[JoinRecordRow, ...]): Rows found without a mirror.
        pruned (int): Rows deleted.
        completed (int): Mirror rows created.
    """

    mode: str
    partial: tuple[JoinRecordRow, ...]
    pruned: int = 0
    completed: int = 0

    @property
    def clean(self) -> bool:
        return not self.partial


def find_partial_edges(edges: EdgeStore) -> list[JoinRecordRow]:
    """Rows whose mirror row is missing, in insertion order."""
    rows = edges.all_rows()
    buckets: dict[_Key, list[JoinRecordRow]] = {}
    for row in rows:
        buckets.setdefault(_key(row), []).append(row)
    surplus: set[str] = set()
    for key, group in buckets.items():
        mirrors = len(buckets.get(_mirror_key(group[0]), []))
        surplus.update(r.record_id for r in group[mirrors:])
    return [r for r in rows if r.record_id in surplus]


def reconcile(edges: EdgeStore, mode: Mode = "prune") -> ReconcileReport:
    """
    Repair half-edges.

    Args:
        edges (EdgeStore): Edge store to repair.
        mode (Literal["prune","complete"]): Delete orphan rows, or write their missing
            mirrors.

    Raises:
        ValueError: On an unknown mode.
    """
    if mode not in ("prune", "complete"):
        raise ValueError(f"unknown reconcile mode {mode!r}")
    partial = find_partial_edges(edges)
    pruned = completed = 0
    for row in partial:
        if mode == "prune":
            edges.delete_row(row)
            pruned += 1
        else:
            edges.restore(row.mirror())
            completed += 1
    if partial:
        logger.info("reconciled %d partial edges mode=%s", len(partial), mode)
    return ReconcileReport(mode=mode, partial=tuple(partial), pruned=pruned, completed=completed)
