"""
Filter and aggregation-pipeline compilation onto Polars LazyFrames.

Overview
- compile_where(): turns a store filter mapping into a Polars boolean expression.
- apply_stages(): applies document-store style stages ($project, $match, $skip, $limit)
  to a LazyFrame in caller order.

Filter grammar
- {"field": value}                 equality (None matches nulls)
- {"field": {"$in": [v1, v2]}}     set membership
- {"field": {"$eq": v}} / {"$ne": v}
- Fields absent from the frame never match a non-null value.

Notes
- Depends on polars and joinable.io.errors only.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import polars as pl

from joinable.core.typing import Stage, Where

from .errors import StoreError

__all__ = [
    "compile_where",
    "apply_where",
    "apply_stages",
    "SUPPORTED_STAGES",
]

SUPPORTED_STAGES = ("$project", "$match", "$skip", "$limit")


def _eq(col: str, value: Any, present: bool) -> pl.Expr:
    if value is None:
        return pl.col(col).is_null() if present else pl.lit(True)
    if not present:
        return pl.lit(False)
    return pl.col(col) == pl.lit(value)


def _condition(col: str, cond: Any, present: bool) -> pl.Expr:
    if not isinstance(cond, Mapping):
        return _eq(col, cond, present)
    exprs: list[pl.Expr] = []
    for op, arg in cond.items():
        if op == "$in":
            values = list(arg)
            exprs.append(pl.col(col).is_in(values) if present else pl.lit(None in values))
        elif op == "$eq":
            exprs.append(_eq(col, arg, present))
        elif op == "$ne":
            exprs.append(~_eq(col, arg, present))
        else:
            raise StoreError(f"unsupported filter operator {op!r} on field {col!r}")
    if not exprs:
        return pl.lit(True)
    out = exprs[0]
    for e in exprs[1:]:
        out = out & e
    return out


def compile_where(where: Where | None, columns: Iterable[str]) -> pl.Expr:
    """
    Compile a filter mapping into a boolean expression.

    Args:
        where (Where | None): Field conditions joined with AND.
        columns (Iterable[str]): Columns present in the target frame.

    Returns:
        pl.Expr: Boolean expression (pl.lit(True) for an empty filter).

    Raises:
        StoreError: On an unsupported operator.
    """
    present = set(columns)
    expr = pl.lit(True)
    for col, cond in (where or {}).items():
        expr = expr & _condition(col, cond, col in present)
    return expr


def apply_where(lf: pl.LazyFrame, where: Where | None) -> pl.LazyFrame:
    """Filter a LazyFrame by a store filter mapping."""
    if not where:
        return lf
    return lf.filter(compile_where(where, lf.collect_schema().names()))


def _project(lf: pl.LazyFrame, fields: Mapping[str, Any]) -> pl.LazyFrame:
    names = lf.collect_schema().names()
    include = [k for k, v in fields.items() if v and k in names]
    exclude = [k for k, v in fields.items() if not v and k in names]
    if any(v for v in fields.values()):
        return lf.select(include)
    return lf.drop(exclude)


def apply_stages(lf: pl.LazyFrame, stages: Iterable[Stage]) -> pl.LazyFrame:
    """
    Apply aggregation stages in order.

    Args:
        lf (pl.LazyFrame): Collection frame.
        stages (Iterable[Stage]): Single-key mappings such as {"$match": {...}}.

    Returns:
        pl.LazyFrame: Transformed frame (still lazy).

    Raises:
        StoreError: On an unknown stage, a multi-key stage, or a negative skip/limit.

    Notes:
        - $project with any truthy value is an inclusion projection (unknown fields are
          ignored); with only falsy values it drops the listed fields.
    """
    for stage in stages:
        if len(stage) != 1:
            raise StoreError(f"aggregation stage must have exactly one operator: {stage!r}")
        (op, arg), = stage.items()
        if op == "$project":
            lf = _project(lf, arg)
        elif op == "$match":
            lf = apply_where(lf, arg)
        elif op == "$skip":
            n = int(arg)
            if n < 0:
                raise StoreError("$skip must be >= 0")
            lf = lf.slice(n)
        elif op == "$limit":
            n = int(arg)
            if n < 0:
                raise StoreError("$limit must be >= 0")
            lf = lf.limit(n)
        else:
            raise StoreError(f"unsupported aggregation stage {op!r}; expected one of {SUPPORTED_STAGES}")
    return lf
