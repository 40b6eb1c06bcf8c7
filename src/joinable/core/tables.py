"""
Frozen collection descriptors for joinable datasets.

Notes:
    - Descriptors declare column names/dtypes, required/nullable columns, strictness and the
      pinned schema version.
    - Column names are lower_snake.
    - The joins collection is strict; entity collections accept extra attribute columns.
    - Core is zero-IO (stdlib only); joinable.io materializes and validates frames.
"""

from __future__ import annotations

from dataclasses import dataclass

from .constants import JOIN_HISTORY_FIELD, JOINED_HISTORY_FIELD, JOINS_COLLECTION
from .grammar import assert_lower_snake
from .versioning import SCHEMA_V, SchemaVersion

__all__ = [
    "TableDescriptor",
    "JOINS_DESC",
    "entity_table",
    "get_table",
    "register_table",
    "list_tables",
]


@dataclass(frozen=True)
class TableDescriptor:
    """
    Frozen descriptor for a collection.

    Attributes:
        name (str): lower_snake collection name.
        columns (dict[str, str]): Mapping of column_name -> dtype where
            dtype ∈ {"i64","f64","str","bool","list[str]"}.
        required (list[str]): Columns that must exist and be populated (non-null).
        nullable (list[str]): Columns permitted to contain nulls.
        key (str): Primary key column.
        strict (bool): Reject columns outside required ∪ nullable.
        version (SchemaVersion): Pinned to joinable.core.versioning.SCHEMA_V.

    Examples:
        >>> from joinable.core.tables import get_table
        >>> desc = get_table("joins")
        >>> "f_type" in desc.columns and desc.key == "record_id"
        True
    """

    name: str
    columns: dict[str, str]
    required: list[str]
    nullable: list[str]
    key: str
    strict: bool
    version: SchemaVersion


# -----------------------------------------------------------------------------
# Collection descriptors
# -----------------------------------------------------------------------------

JOINS_DESC = TableDescriptor(
    name=JOINS_COLLECTION,
    columns={
        "record_id": "str",
        "side": "str",
        "joining_type": "str",
        "joining_id": "str",
        "joinable_type": "str",
        "joinable_id": "str",
        "f_type": "str",
        "f_id": "str",
        "created_at": "str",
    },
    required=[
        "record_id",
        "side",
        "f_type",
        "f_id",
        "created_at",
    ],
    nullable=[
        "joining_type",
        "joining_id",
        "joinable_type",
        "joinable_id",
    ],
    key="record_id",
    strict=True,
    version=SCHEMA_V,
)


def entity_table(name: str) -> TableDescriptor:
    """
    Build the descriptor for an entity collection.

    Args:
        name (str): lower_snake collection name (e.g., "users").

    Returns:
        TableDescriptor: Non-strict descriptor keyed on "id" with optional history lists.

    Raises:
        GrammarError: If name is not lower_snake.
    """
    assert_lower_snake(name, "collection name")
    return TableDescriptor(
        name=name,
        columns={
            "id": "str",
            JOIN_HISTORY_FIELD: "list[str]",
            JOINED_HISTORY_FIELD: "list[str]",
        },
        required=["id"],
        nullable=[JOIN_HISTORY_FIELD, JOINED_HISTORY_FIELD],
        key="id",
        strict=False,
        version=SCHEMA_V,
    )


# Registry
_TABLES: dict[str, TableDescriptor] = {
    JOINS_DESC.name: JOINS_DESC,
}


def get_table(name: str) -> TableDescriptor:
    """
    Look up a collection descriptor by name.

    Raises:
        KeyError: If no descriptor is registered under name.
    """
    return _TABLES[name]


def register_table(desc: TableDescriptor) -> TableDescriptor:
    """
    Register a descriptor, returning the already-registered one if the name is taken.

    Args:
        desc (TableDescriptor): Descriptor to register.

    Returns:
        TableDescriptor: The registered descriptor for desc.name.
    """
    return _TABLES.setdefault(desc.name, desc)


def list_tables() -> list[TableDescriptor]:
    """Return all registered descriptors in registration order."""
    return list(_TABLES.values())
