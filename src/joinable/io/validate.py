"""
Schema validation utilities for joinable.io.

Purpose
- Build Polars frames from plain records and validate them against collection descriptors
  from joinable.core.tables.
- Apply pragmatic checks with safe casting for scalar dtypes.

Checks performed
- Required columns present and non-null.
- When strict: no columns outside (required ∪ nullable).
- Dtype compatibility:
  - Scalar types ("i64","f64","str","bool") are safely cast when possible.
  - "list[str]" is cast to pl.List(pl.Utf8) (empty lists infer as List(Null)).
- Missing nullable columns are added as typed nulls so every frame carries the full
  descriptor schema.

Notes
- Row-level semantic checks (back-reference rules) live in joinable.core.schema.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import polars as pl

from joinable.core.tables import TableDescriptor

from .errors import StoreSchemaError

# Polars exposes dtype singletons/classes; keep this mapping loosely typed.
_DTYPE_MAP: dict[str, Any] = {
    "i64": pl.Int64,
    "f64": pl.Float64,
    "str": pl.Utf8,
    "bool": pl.Boolean,
    "list[str]": pl.List(pl.Utf8),
}


def polars_dtype(name: str) -> Any:
    """
    Map a descriptor dtype name to a Polars dtype.

    Raises:
        StoreSchemaError: On an unknown descriptor dtype.
    """
    try:
        return _DTYPE_MAP[name]
    except KeyError as exc:
        raise StoreSchemaError(f"unknown descriptor dtype {name!r}") from exc


def descriptor_schema(desc: TableDescriptor) -> dict[str, Any]:
    """Return the Polars schema for all descriptor columns."""
    return {col: polars_dtype(dt) for col, dt in desc.columns.items()}


def empty_frame(desc: TableDescriptor) -> pl.DataFrame:
    """Create an empty frame carrying the descriptor schema."""
    return pl.DataFrame(schema=descriptor_schema(desc))


def _safe_cast(df: pl.DataFrame, col: str, target: Any) -> pl.DataFrame:
    try:
        return df.with_columns(pl.col(col).cast(target, strict=False))
    except Exception as exc:  # pragma: no cover - defensive
        raise StoreSchemaError(f"failed to cast column {col!r} to {target}: {exc}") from exc


def _ensure_columns_present(df: pl.DataFrame, needed: Iterable[str]) -> None:
    missing = [c for c in needed if c not in df.columns]
    if missing:
        raise StoreSchemaError(f"missing required columns: {missing!r}")


def _ensure_no_extra_columns(df: pl.DataFrame, allowed: set[str]) -> None:
    extras = [c for c in df.columns if c not in allowed]
    if extras:
        raise StoreSchemaError(f"unexpected columns present: {extras!r} (allowed={sorted(allowed)!r})")


def _ensure_required_populated(df: pl.DataFrame, required: Iterable[str]) -> None:
    for col in required:
        if df.get_column(col).null_count():
            raise StoreSchemaError(f"required column {col!r} contains nulls")


def validate_frame_against_descriptor(
    df: pl.DataFrame,
    desc: TableDescriptor,
    *,
    strict: bool = True,
) -> pl.DataFrame:
    """
    Validate a Polars DataFrame against a TableDescriptor.

    Args:
        df (pl.DataFrame): Frame to validate.
        desc (TableDescriptor): Collection descriptor.
        strict (bool): Enforce the exact column set when both this flag and desc.strict
            are True.

    Returns:
        pl.DataFrame: Frame with safe casts applied and typed nulls for absent nullable columns.

    Raises:
        StoreSchemaError: If required columns are missing or null, or extras are present
            under strict mode.
    """
    required = set(desc.required)
    nullable = set(desc.nullable)
    _ensure_columns_present(df, required)
    if strict and desc.strict:
        _ensure_no_extra_columns(df, required | nullable)

    for col, dtype_name in desc.columns.items():
        expected = polars_dtype(dtype_name)
        if col not in df.columns:
            df = df.with_columns(pl.lit(None, dtype=expected).alias(col))
            continue
        if df.schema[col] != expected:
            df = _safe_cast(df, col, expected)

    _ensure_required_populated(df, required)
    return df


def frame_from_records(
    records: Iterable[Mapping[str, Any]],
    desc: TableDescriptor,
    *,
    strict: bool = True,
) -> pl.DataFrame:
    """
    Build and validate a frame from plain records.

    Args:
        records (Iterable[Mapping[str, Any]]): Row mappings.
        desc (TableDescriptor): Collection descriptor.
        strict (bool): See validate_frame_against_descriptor().

    Returns:
        pl.DataFrame: Validated frame.

    Raises:
        StoreSchemaError: On validation failure or values Polars cannot load.
    """
    rows = [dict(r) for r in records]
    if not rows:
        return empty_frame(desc)
    present = {k for r in rows for k in r}
    overrides = {c: polars_dtype(dt) for c, dt in desc.columns.items() if c in present}
    try:
        df = pl.DataFrame(rows, schema_overrides=overrides, infer_schema_length=None, strict=False)
    except Exception as exc:
        raise StoreSchemaError(f"records for {desc.name!r} cannot be loaded: {exc}") from exc
    return validate_frame_against_descriptor(df, desc, strict=strict)
