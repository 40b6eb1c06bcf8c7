"""
Custom exceptions for the joinable.io module.

Purpose
- Provide storage-layer error types distinct from joinable.core.errors.

Boundaries
- joinable.core.errors covers grammar/schema/graph failures.
- joinable.io raises Store* errors for configuration, validation, write and snapshot concerns:
  - StoreConfigError: invalid or unsupported configuration.
  - StoreSchemaError: record or frame failed validation against a collection descriptor.
  - StoreWriteError: a create/delete/upsert could not be applied.
  - StoreSnapshotError: snapshot load/write failed.
  - RecordNotFound: a handle or id does not name a stored record.

Notes
- The graph layer lets these propagate unchanged; it never retries.
"""

from __future__ import annotations


class StoreError(Exception):
    """
    Base class for storage-layer errors in joinable.io.

    Notes:
        Use this as a catch-all for store failures, distinct from joinable.core errors.
    """


class StoreConfigError(StoreError):
    """
    Raised when store configuration is invalid or unsupported.

    Examples:
        - Unknown compression codec
        - Non-positive row group size
    """


class StoreSchemaError(StoreError):
    """
    Raised when a record fails validation against a collection descriptor.

    Notes:
        Scalar columns (i64, f64, str, bool) may be safely cast prior to raising.
    """


class StoreWriteError(StoreError):
    """Raised when a write to a collection cannot be applied."""


class StoreSnapshotError(StoreError):
    """
    Raised when a collection snapshot is missing, corrupt, or cannot be written.

    Notes:
        The write path is tmp parquet → fsync → os.replace(tmp, final).
    """


class RecordNotFound(StoreError, LookupError):
    """Raised when a record handle or document id is unknown to the store."""
