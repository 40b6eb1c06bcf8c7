"""
Joinable core defaults.

Defines collection names, history-token delimiter, and snapshot defaults consumed by
the IO and graph layers. This module is zero-IO and uses only the Python standard library.

Notes:
    - StoreSettings (precedence env > TOML > defaults) reads its defaults here.
    - Changing JOINS_COLLECTION or the f_* column names breaks compatibility with
      existing datasets.
"""

from __future__ import annotations

__all__ = [
    "JOINS_COLLECTION",
    "TARGET_TYPE_FIELD",
    "TARGET_ID_FIELD",
    "HISTORY_DELIMITER",
    "JOIN_HISTORY_FIELD",
    "JOINED_HISTORY_FIELD",
    "ROW_GROUP_SIZE",
    "COMPRESSION",
    "ROOT_DIR",
]

# Single edge collection serving both directions.
JOINS_COLLECTION: str = "joins"

# Field names kept for storage compatibility with existing join datasets.
TARGET_TYPE_FIELD: str = "f_type"
TARGET_ID_FIELD: str = "f_id"

# History tokens are "<TypeName><HISTORY_DELIMITER><id>".
HISTORY_DELIMITER: str = "_"
JOIN_HISTORY_FIELD: str = "join_history"
JOINED_HISTORY_FIELD: str = "joined_history"

# Parquet snapshot defaults.
ROW_GROUP_SIZE: int = 128 * 1024
COMPRESSION: str = "zstd"
ROOT_DIR: str = "data"
