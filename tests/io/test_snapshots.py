from __future__ import annotations

import os
from pathlib import Path

import polars as pl
import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from joinable.core.errors import VersionMismatch
from joinable.core.schema import JoinRecordRow
from joinable.core.versioning import SCHEMA_V
from joinable.graph import JoinGraph
from joinable.io import DocumentStore, StoreSettings
from joinable.io.errors import StoreSnapshotError
from joinable.io.paths import snapshot_path
from joinable.io.snapshot import list_snapshots, read_snapshot, write_snapshot


def _settings(tmp_path: Path) -> StoreSettings:
    return StoreSettings(root_dir=str(tmp_path), persist=True)


def test_flush_writes_one_snapshot_per_collection_with_metadata(tmp_path: Path) -> None:
    settings = _settings(tmp_path)
    store = DocumentStore.open(settings)
    row = JoinRecordRow.for_owner("joining", ("User", "u"), ("Group", "g"))
    store.create("joins", row.model_dump())

    summaries = store.flush()

    assert [s["collection"] for s in summaries] == ["joins"]
    path = snapshot_path(settings, "joins")
    assert os.path.exists(path)
    meta = pq.read_schema(path).metadata
    assert meta[b"joinable_schema_version"] == SCHEMA_V.label().encode()
    assert meta[b"joinable_collection"] == b"joins"
    # no temporary files left behind
    assert [p.name for p in (tmp_path / "collections").iterdir()] == ["joins.parquet"]


def test_open_restores_collections(tmp_path: Path, types) -> None:
    settings = _settings(tmp_path)
    graph = JoinGraph(DocumentStore.open(settings), types=[types.User, types.Group])
    u = graph.save(types.User(id="u", name="jim"))
    g = graph.save(types.Group(id="g"))
    graph.joiner.join(u, g)
    graph.store.flush()

    assert sorted(list_snapshots(settings)) == ["groups", "joins", "users"]

    reopened = JoinGraph(DocumentStore.open(settings), types=[types.User, types.Group])
    u2 = reopened.get(types.User, "u")
    assert u2.name == "jim"
    assert u2.join_history == ["Group_g"]
    assert reopened.joiner.is_joiner_of(u2, g) is True
    assert reopened.joined.all_joiners(g) == [u]


def test_read_snapshot_missing_returns_none(tmp_path: Path) -> None:
    assert read_snapshot(_settings(tmp_path), "joins") is None
    assert list_snapshots(_settings(tmp_path)) == []


def test_incompatible_version_is_rejected(tmp_path: Path) -> None:
    settings = _settings(tmp_path)
    write_snapshot(settings, "joins", pl.DataFrame({"record_id": ["r1"]}))
    path = snapshot_path(settings, "joins")
    table = pq.read_table(path)
    future = f"{SCHEMA_V.major + 1}.0@{SCHEMA_V.date}".encode()
    meta = {**table.schema.metadata, b"joinable_schema_version": future}
    pq.write_table(table.replace_schema_metadata(meta), path)

    with pytest.raises(VersionMismatch):
        read_snapshot(settings, "joins")
    with pytest.raises(VersionMismatch):
        DocumentStore.open(settings)


def test_snapshot_without_version_metadata_is_rejected(tmp_path: Path) -> None:
    settings = _settings(tmp_path)
    os.makedirs(tmp_path / "collections")
    pq.write_table(pa.table({"record_id": ["r1"]}), snapshot_path(settings, "joins"))

    with pytest.raises(StoreSnapshotError):
        read_snapshot(settings, "joins")


def test_failed_write_cleans_up_tmp(tmp_path: Path, monkeypatch) -> None:
    settings = _settings(tmp_path)

    def boom(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("joinable.io.snapshot.pq.write_table", boom)

    with pytest.raises(StoreSnapshotError):
        write_snapshot(settings, "joins", pl.DataFrame({"record_id": ["r1"]}))
    assert list((tmp_path / "collections").iterdir()) == []
