"""
Parquet snapshots of store collections.

Overview
- write_snapshot(): writes one collection frame to <root>/collections/<name>.parquet with
  atomic tmp → fsync → rename and embeds schema-version/collection metadata.
- read_snapshot(): loads a snapshot back into a Polars frame after a version check.
- list_snapshots(): collection names with a snapshot on disk.

Notes
- pyarrow is used for writing so key-value metadata can be embedded; reads go through it
  as well so metadata can be checked before the frame is handed to Polars.
- Single-writer semantics; no inter-process locking.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

import polars as pl
import pyarrow.parquet as pq

from joinable.core.errors import VersionMismatch
from joinable.core.versioning import SCHEMA_V, SchemaVersion, is_compatible

from .config import StoreSettings
from .errors import StoreSnapshotError
from .fs import fsync_path, listdir, makedirs, remove_if_exists, rename_atomic
from .paths import collection_from_path, collections_root, snapshot_path, snapshot_paths

logger = logging.getLogger(__name__)

_VERSION_KEY = b"joinable_schema_version"
_COLLECTION_KEY = b"joinable_collection"


def write_snapshot(settings: StoreSettings, collection: str, df: pl.DataFrame) -> dict[str, Any]:
    """
    Write a collection frame atomically.

    Args:
        settings (StoreSettings): Root directory, compression and row group size.
        collection (str): lower_snake collection name.
        df (pl.DataFrame): Full collection contents.

    Returns:
        dict[str, Any]: Summary {"collection", "path", "rows"}.

    Raises:
        StoreSnapshotError: If the tmp write, fsync or rename fails.
    """
    makedirs(collections_root(settings), exist_ok=True)
    paths = snapshot_paths(settings, collection, uuid.uuid4().hex)
    try:
        arrow_table = df.to_arrow()
        meta = dict(arrow_table.schema.metadata or {})
        meta.update(
            {
                _VERSION_KEY: SCHEMA_V.label().encode("utf-8"),
                _COLLECTION_KEY: collection.encode("utf-8"),
            }
        )
        arrow_table = arrow_table.replace_schema_metadata(meta)
        pq.write_table(
            arrow_table,
            paths.tmp_path,
            compression=settings.compression,
            row_group_size=settings.row_group_size,
        )
        fsync_path(paths.tmp_path)
        rename_atomic(paths.tmp_path, paths.final_path)
    except Exception as exc:
        remove_if_exists(paths.tmp_path)
        raise StoreSnapshotError(f"failed to write snapshot for {collection!r}: {exc}") from exc

    logger.info("wrote snapshot collection=%s rows=%d", collection, df.height)
    return {"collection": collection, "path": paths.final_path, "rows": df.height}


def read_snapshot(settings: StoreSettings, collection: str) -> pl.DataFrame | None:
    """
    Load a collection snapshot.

    Returns:
        pl.DataFrame | None: The frame, or None if no snapshot exists.

    Raises:
        VersionMismatch: If the snapshot was written under an incompatible SCHEMA_V.
        StoreSnapshotError: If the file cannot be read or carries no version metadata.
    """
    path = snapshot_path(settings, collection)
    try:
        table = pq.read_table(path)
    except FileNotFoundError:
        return None
    except Exception as exc:
        raise StoreSnapshotError(f"failed to read snapshot {path!r}: {exc}") from exc

    meta = table.schema.metadata or {}
    raw = meta.get(_VERSION_KEY)
    if raw is None:
        raise StoreSnapshotError(f"snapshot {path!r} has no schema version metadata")
    try:
        ver = SchemaVersion.from_label(raw.decode("utf-8"))
    except ValueError as exc:
        raise StoreSnapshotError(str(exc)) from exc
    if not is_compatible(ver):
        raise VersionMismatch(
            f"snapshot {path!r} has schema {ver.label()}, expected {SCHEMA_V.label()}"
        )
    return pl.from_arrow(table)  # type: ignore[return-value]


def list_snapshots(settings: StoreSettings) -> list[str]:
    """Return collection names that have a final snapshot file."""
    out: list[str] = []
    for p in listdir(collections_root(settings)):
        name = collection_from_path(p)
        if name is not None:
            out.append(name)
    return out
