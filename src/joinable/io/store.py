"""
In-process document store backed by Polars frames.

Overview
- One pl.DataFrame per collection; rows keep insertion order.
- Writes are validated against the collection's TableDescriptor (joins is strict,
  entity collections accept extra attribute columns).
- A column keeps the first concrete dtype it is given; a record whose value has another
  dtype raises StoreSchemaError instead of re-typing stored values.
- Reads support equality/$in filters, skip/limit, counts and an aggregation pipeline
  ($project, $match, $skip, $limit) compiled to Polars LazyFrames.
- Optional Parquet snapshots: DocumentStore.open() loads them when settings.persist is
  set, flush() writes one snapshot per collection.

Notes
- Each public call holds a re-entrant lock; multi-call sequences are not atomic.
- Failures surface as joinable.io.errors types; no retries.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import polars as pl

from joinable.core.tables import JOINS_DESC, TableDescriptor, get_table
from joinable.core.typing import JsonDict, Stage, Where

from .config import StoreSettings
from .errors import RecordNotFound, StoreError, StoreSchemaError, StoreWriteError
from .pipeline import apply_stages, apply_where
from .snapshot import list_snapshots, read_snapshot, write_snapshot
from .validate import empty_frame, frame_from_records, validate_frame_against_descriptor

logger = logging.getLogger(__name__)


def _untyped(dtype: Any) -> bool:
    """True for dtypes polars infers from nulls or empty lists alone."""
    return dtype == pl.Null or (isinstance(dtype, pl.List) and dtype.inner == pl.Null)


@dataclass(frozen=True, slots=True)
class RecordHandle:
    """
    Address of one stored record.

    Attributes:
        collection (str): Collection name.
        key (str): Value of the collection's key column.
    """

    collection: str
    key: str


class DocumentStore:
    """
    Polars-backed document store.

    Args:
        settings (StoreSettings | None): Store settings; defaults to StoreSettings().

    Examples:
        >>> from joinable.io import DocumentStore
        >>> store = DocumentStore()
        >>> h = store.create("joins", {
        ...     "side": "joining", "joining_type": "User", "joining_id": "1",
        ...     "f_type": "Group", "f_id": "9", "record_id": "r1", "created_at": "t",
        ... })
        >>> store.count_where("joins", {"f_type": "Group"})
        1
    """

    def __init__(self, settings: StoreSettings | None = None) -> None:
        self.settings = (settings or StoreSettings()).validate()
        self._lock = threading.RLock()
        self._frames: dict[str, pl.DataFrame] = {}
        self._descriptors: dict[str, TableDescriptor] = {}
        self.register_collection(JOINS_DESC)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def open(cls, settings: StoreSettings | None = None) -> DocumentStore:
        """
        Create a store, loading snapshots from settings.root_dir when persist is set.

        Raises:
            VersionMismatch: If a snapshot was written under an incompatible schema.
            StoreSnapshotError: If a snapshot cannot be read.
        """
        store = cls(settings)
        if not store.settings.persist:
            return store
        for name in list_snapshots(store.settings):
            df = read_snapshot(store.settings, name)
            if df is None:
                continue
            desc = store._descriptors.get(name)
            if desc is not None:
                df = validate_frame_against_descriptor(df, desc, strict=False)
            store._frames[name] = df
            logger.info("loaded snapshot collection=%s rows=%d", name, df.height)
        return store

    def flush(self) -> list[dict[str, Any]]:
        """
        Write every collection to its Parquet snapshot.

        Returns:
            list[dict[str, Any]]: One write summary per collection; [] when persist is off.
        """
        if not self.settings.persist:
            return []
        with self._lock:
            return [
                write_snapshot(self.settings, name, df) for name, df in self._frames.items()
            ]

    def register_collection(self, desc: TableDescriptor) -> TableDescriptor:
        """
        Declare a collection and its descriptor.

        Frames loaded from a snapshot before registration are brought up to the
        descriptor schema. Re-registering a name keeps the first descriptor.
        """
        with self._lock:
            existing = self._descriptors.setdefault(desc.name, desc)
            frame = self._frames.get(desc.name)
            if frame is None:
                self._frames[desc.name] = empty_frame(existing)
            elif existing is desc:
                self._frames[desc.name] = validate_frame_against_descriptor(
                    frame, existing, strict=False
                )
            return existing

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, collection: str, record: Mapping[str, Any]) -> RecordHandle:
        """
        Insert one record.

        Raises:
            StoreSchemaError: If the record does not satisfy the descriptor.
            StoreWriteError: If the key is missing or already present.
        """
        with self._lock:
            desc = self._descriptor(collection)
            key = self._key_of(desc, record)
            frame = self._frame(collection)
            if self._position(frame, desc.key, key) is not None:
                raise StoreWriteError(f"duplicate key {key!r} in collection {collection!r}")
            row = frame_from_records([record], desc, strict=self.settings.strict_schema)
            frame, row = self._align(collection, frame, row)
            self._frames[collection] = self._concat([frame, row])
            logger.debug("created record collection=%s key=%s", collection, key)
            return RecordHandle(collection, key)

    def upsert(self, collection: str, document: Mapping[str, Any]) -> RecordHandle:
        """
        Insert a document or replace the stored one with the same key in place.

        Raises:
            StoreSchemaError: If the document does not satisfy the descriptor.
            StoreWriteError: If the key is missing.
        """
        with self._lock:
            desc = self._descriptor(collection)
            key = self._key_of(desc, document)
            frame = self._frame(collection)
            row = frame_from_records([document], desc, strict=self.settings.strict_schema)
            pos = self._position(frame, desc.key, key)
            # The replaced record does not constrain the new one's dtypes.
            rest = frame if pos is None else frame.filter(pl.col(desc.key) != key)
            rest, row = self._align(collection, rest, row)
            if pos is None:
                parts = [rest, row]
            else:
                parts = [rest.slice(0, pos), row, rest.slice(pos)]
            self._frames[collection] = self._concat(parts)
            logger.debug("upserted record collection=%s key=%s", collection, key)
            return RecordHandle(collection, key)

    def delete(self, handle: RecordHandle) -> None:
        """
        Delete the record addressed by handle.

        Raises:
            RecordNotFound: If no record has that key.
        """
        with self._lock:
            desc = self._descriptor(handle.collection)
            frame = self._frame(handle.collection)
            kept = frame.filter(pl.col(desc.key) != handle.key)
            if kept.height == frame.height:
                raise RecordNotFound(f"{handle.collection}/{handle.key} not found")
            self._frames[handle.collection] = kept
            logger.debug("deleted record collection=%s key=%s", handle.collection, handle.key)

    def delete_where(self, collection: str, where: Where) -> int:
        """
        Delete all records matching a filter.

        Returns:
            int: Number of deleted records.
        """
        with self._lock:
            frame = self._frame(collection)
            doomed = apply_where(frame.lazy(), where).collect()
            if doomed.height == 0:
                return 0
            key = self._descriptor(collection).key
            keys = doomed.get_column(key).to_list()
            self._frames[collection] = frame.filter(~pl.col(key).is_in(keys))
            logger.debug("deleted %d records collection=%s", doomed.height, collection)
            return doomed.height

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(
        self,
        collection: str,
        where: Where | None = None,
        *,
        skip: int | None = None,
        limit: int | None = None,
    ) -> list[JsonDict]:
        """
        Return matching records in insertion order.

        Args:
            collection (str): Collection name.
            where (Where | None): Equality / {"$in": [...]} filter.
            skip (int | None): Records to skip.
            limit (int | None): Maximum records to return.
        """
        with self._lock:
            lf = apply_where(self._frame(collection).lazy(), where)
        if skip:
            lf = lf.slice(int(skip))
        if limit is not None:
            lf = lf.limit(int(limit))
        return lf.collect().to_dicts()

    def get(self, collection: str, key: str) -> JsonDict | None:
        """Return the record with the given key, or None."""
        desc = self._descriptor(collection)
        rows = self.query(collection, {desc.key: str(key)}, limit=1)
        return rows[0] if rows else None

    def count_where(
        self,
        collection: str,
        where: Where | None = None,
        *,
        limit: int | None = None,
    ) -> int:
        """Count matching records, capped at limit when given."""
        with self._lock:
            lf = apply_where(self._frame(collection).lazy(), where)
        if limit is not None:
            lf = lf.limit(int(limit))
        return lf.select(pl.len()).collect().item()

    def aggregate(self, collection: str, stages: Sequence[Stage]) -> list[JsonDict]:
        """
        Run an aggregation pipeline over a collection.

        Raises:
            StoreError: On an unsupported or malformed stage.
        """
        with self._lock:
            lf = self._frame(collection).lazy()
        return apply_stages(lf, stages).collect().to_dicts()

    def find_by_ids(self, collection: str, ids: Iterable[Any]) -> list[JsonDict]:
        """Return records whose key is in ids, in stored order (duplicates collapse)."""
        key = self._descriptor(collection).key
        wanted = list(dict.fromkeys(str(i) for i in ids))
        if not wanted:
            return []
        return self.query(collection, {key: {"$in": wanted}})

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _descriptor(self, collection: str) -> TableDescriptor:
        desc = self._descriptors.get(collection)
        if desc is not None:
            return desc
        try:
            return self.register_collection(get_table(collection))
        except KeyError as exc:
            raise StoreError(f"unknown collection {collection!r}") from exc

    def _frame(self, collection: str) -> pl.DataFrame:
        frame = self._frames.get(collection)
        if frame is None:
            self._descriptor(collection)
            frame = self._frames[collection]
        return frame

    @staticmethod
    def _key_of(desc: TableDescriptor, record: Mapping[str, Any]) -> str:
        value = record.get(desc.key)
        if value is None or str(value) == "":
            raise StoreWriteError(f"record for {desc.name!r} has no {desc.key!r}")
        return str(value)

    @staticmethod
    def _position(frame: pl.DataFrame, key_col: str, key: str) -> int | None:
        hits = frame.with_row_index("__pos").filter(pl.col(key_col) == key)
        if hits.height == 0:
            return None
        return int(hits.get_column("__pos")[0])

    @staticmethod
    def _align(
        collection: str, frame: pl.DataFrame, row: pl.DataFrame
    ) -> tuple[pl.DataFrame, pl.DataFrame]:
        """
        Give shared columns one dtype before a merge.

        An all-null side (or an empty-list column) takes the other side's dtype. Any
        other mismatch is a conflict: stored values are never re-typed to fit a new record.

        Raises:
            StoreSchemaError: If a column already holds values of a different dtype.
        """
        for col in row.columns:
            if col not in frame.columns:
                continue
            have, new = frame.schema[col], row.schema[col]
            if have == new:
                continue
            if _untyped(new) or row.get_column(col).null_count() == row.height:
                row = row.with_columns(pl.col(col).cast(have))
            elif _untyped(have) or frame.get_column(col).null_count() == frame.height:
                frame = frame.with_columns(pl.col(col).cast(new))
            else:
                raise StoreSchemaError(
                    f"column {col!r} of {collection!r} holds {have}, record has {new}"
                )
        return frame, row

    @staticmethod
    def _concat(parts: list[pl.DataFrame]) -> pl.DataFrame:
        try:
            return pl.concat([p for p in parts if p.width], how="diagonal")
        except Exception as exc:
            raise StoreWriteError(f"cannot merge record into collection: {exc}") from exc
