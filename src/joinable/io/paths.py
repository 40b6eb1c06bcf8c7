"""
Path and layout helpers for joinable.io snapshots.

Overview (file protocol baseline)
- <root>/collections/<collection>.parquet
- <root>/collections/<collection>.parquet.tmp-<hex>   (transient, during writes)

Notes
- This module focuses solely on path construction; no IO is performed here.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from joinable.core.grammar import assert_lower_snake

from .config import StoreSettings

_COLLECTIONS_DIR: Final[str] = "collections"
_SUFFIX: Final[str] = ".parquet"


def collections_root(settings: StoreSettings) -> str:
    """
    Directory holding all collection snapshots.

    Returns:
        str: Path "<root>/collections".
    """
    return os.path.join(settings.root_dir, _COLLECTIONS_DIR)


@dataclass(slots=True, frozen=True)
class SnapshotPaths:
    """
    Container for a snapshot's temporary and final file paths.

    Attributes:
        tmp_path (str): Temporary file path used for the initial write.
        final_path (str): Final file path after atomic rename.
    """

    tmp_path: str
    final_path: str


def snapshot_path(settings: StoreSettings, collection: str) -> str:
    """
    Final snapshot path for a collection.

    Raises:
        GrammarError: If collection is not lower_snake.
    """
    assert_lower_snake(collection, "collection name")
    return os.path.join(collections_root(settings), collection + _SUFFIX)


def snapshot_paths(settings: StoreSettings, collection: str, uuid_str: str) -> SnapshotPaths:
    """
    Compute temporary and final snapshot paths for a collection.

    Args:
        settings (StoreSettings): Store settings.
        collection (str): lower_snake collection name.
        uuid_str (str): Hex string making the temporary name unique.
    """
    final_path = snapshot_path(settings, collection)
    return SnapshotPaths(tmp_path=f"{final_path}.tmp-{uuid_str}", final_path=final_path)


def collection_from_path(path: str) -> str | None:
    """Return the collection name for a final snapshot path, or None for other files."""
    name = os.path.basename(path)
    if not name.endswith(_SUFFIX):
        return None
    return name[: -len(_SUFFIX)]
