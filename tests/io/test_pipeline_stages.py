import polars as pl
import pytest

from joinable.io.errors import StoreError
from joinable.io.pipeline import apply_stages, apply_where


def _frame() -> pl.LazyFrame:
    return pl.DataFrame(
        {
            "f_id": ["a", "b", "c", "d"],
            "f_type": ["User", "User", "Group", "User"],
            "joinable_id": ["g", "g", None, "h"],
            "joinable_type": ["Group", "Group", None, "Group"],
        }
    ).lazy()


def test_equality_and_in_filters() -> None:
    out = apply_where(_frame(), {"f_type": "User", "f_id": {"$in": ["a", "d", "z"]}}).collect()
    assert out.get_column("f_id").to_list() == ["a", "d"]


def test_none_matches_nulls_and_ne() -> None:
    assert apply_where(_frame(), {"joinable_id": None}).collect().get_column("f_id").to_list() == ["c"]
    out = apply_where(_frame(), {"f_type": {"$ne": "User"}}).collect()
    assert out.get_column("f_id").to_list() == ["c"]


def test_missing_column_never_matches_a_value() -> None:
    assert apply_where(_frame(), {"nope": "x"}).collect().height == 0
    assert apply_where(_frame(), {"nope": None}).collect().height == 4


def test_unknown_operator_raises() -> None:
    with pytest.raises(StoreError):
        apply_where(_frame(), {"f_id": {"$regex": "a"}}).collect()


def test_stages_apply_in_caller_order() -> None:
    stages = [
        {"$project": {"f_id": 1, "joinable_id": 1, "joinable_type": 1}},
        {"$match": {"joinable_id": "g", "joinable_type": "Group"}},
        {"$skip": 1},
        {"$limit": 5},
        {"$project": {"f_id": 1}},
    ]
    out = apply_stages(_frame(), stages).collect()
    assert out.columns == ["f_id"]
    assert out.to_dicts() == [{"f_id": "b"}]


def test_exclusion_projection_drops_fields() -> None:
    out = apply_stages(_frame(), [{"$project": {"joinable_id": 0, "absent": 0}}]).collect()
    assert out.columns == ["f_id", "f_type", "joinable_type"]


@pytest.mark.parametrize(
    "stage",
    [
        {"$group": {"_id": "$f_type"}},
        {"$skip": -1},
        {"$limit": -2},
        {"$skip": 1, "$limit": 1},
    ],
)
def test_bad_stages_raise(stage) -> None:
    with pytest.raises(StoreError):
        apply_stages(_frame(), [stage])
