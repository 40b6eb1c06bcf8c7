from __future__ import annotations

import pytest

from joinable.core.constants import JOINS_COLLECTION
from joinable.core.errors import PartialEdgeError
from joinable.graph import JoinGraph
from joinable.io import DocumentStore, GraphSettings, StoreSettings
from joinable.io.errors import StoreWriteError


class FlakyStore(DocumentStore):
    """Store that fails selected join-row writes."""

    def __init__(self, settings: StoreSettings) -> None:
        super().__init__(settings)
        self.fail_create_side: str | None = None
        self.deletes_before_failure: int | None = None

    def create(self, collection, record):
        if collection == JOINS_COLLECTION and record.get("side") == self.fail_create_side:
            raise StoreWriteError("injected create failure")
        return super().create(collection, record)

    def delete(self, handle):
        if handle.collection == JOINS_COLLECTION and self.deletes_before_failure is not None:
            if self.deletes_before_failure == 0:
                raise StoreWriteError("injected delete failure")
            self.deletes_before_failure -= 1
        return super().delete(handle)


def _graph(tmp_path, types, *, rollback: bool) -> JoinGraph:
    settings = StoreSettings(root_dir=str(tmp_path), graph=GraphSettings(rollback_partial=rollback))
    return JoinGraph(FlakyStore(settings), types=[types.User, types.Group])


def test_failed_join_is_rolled_back(tmp_path, types) -> None:
    graph = _graph(tmp_path, types, rollback=True)
    u = graph.save(types.User(id="u"))
    g = graph.save(types.Group(id="g"))
    graph.store.fail_create_side = "joining"

    with pytest.raises(PartialEdgeError) as excinfo:
        graph.joiner.join(u, g)

    err = excinfo.value
    assert (err.operation, err.rolled_back) == ("join", True)
    assert err.joining is u and err.joinable is g
    assert isinstance(err.__cause__, StoreWriteError)
    assert graph.store.count_where(JOINS_COLLECTION) == 0
    assert graph.find_partial_edges() == []
    # no history for a join that did not happen
    assert graph.get(types.User, "u").join_history == []


def test_failed_join_without_rollback_leaves_half_edge(tmp_path, types) -> None:
    graph = _graph(tmp_path, types, rollback=False)
    u = graph.save(types.User(id="u"))
    g = graph.save(types.Group(id="g"))
    graph.store.fail_create_side = "joining"

    with pytest.raises(PartialEdgeError) as excinfo:
        graph.joiner.join(u, g)

    assert excinfo.value.rolled_back is False
    partial = graph.find_partial_edges()
    assert len(partial) == 1
    assert (partial[0].side, partial[0].owner_id, partial[0].f_id) == ("joinable", "g", "u")
    # a lone half reads as not linked
    assert graph.joiner.is_joiner_of(u, g) is False
    assert graph.joined.is_joinee_of(g, u) is False


def test_reconcile_complete_recreates_missing_mirror(tmp_path, types) -> None:
    graph = _graph(tmp_path, types, rollback=False)
    u = graph.save(types.User(id="u"))
    g = graph.save(types.Group(id="g"))
    graph.store.fail_create_side = "joining"
    with pytest.raises(PartialEdgeError):
        graph.joiner.join(u, g)
    graph.store.fail_create_side = None

    report = graph.reconcile("complete")

    assert (report.mode, report.completed, report.pruned) == ("complete", 1, 0)
    assert len(report.partial) == 1
    assert graph.joiner.is_joiner_of(u, g) is True
    assert graph.reconcile().clean is True


def test_reconcile_prune_deletes_orphans(tmp_path, types) -> None:
    graph = _graph(tmp_path, types, rollback=False)
    u = graph.save(types.User(id="u"))
    g = graph.save(types.Group(id="g"))
    h = graph.save(types.Group(id="h"))
    graph.joiner.join(u, h)
    graph.store.fail_create_side = "joining"
    with pytest.raises(PartialEdgeError):
        graph.joiner.join(u, g)
    graph.store.fail_create_side = None

    report = graph.reconcile("prune")

    assert report.pruned == 1
    assert graph.store.count_where(JOINS_COLLECTION) == 2
    assert graph.joiner.is_joiner_of(u, h) is True
    assert graph.joined.joiners_count(g) == 0


def test_reconcile_rejects_unknown_mode(graph) -> None:
    with pytest.raises(ValueError):
        graph.reconcile("rewrite")


def test_failed_unjoin_restores_deleted_row(tmp_path, types) -> None:
    graph = _graph(tmp_path, types, rollback=True)
    u = graph.save(types.User(id="u"))
    g = graph.save(types.Group(id="g"))
    graph.joiner.join(u, g)
    graph.store.deletes_before_failure = 1

    with pytest.raises(PartialEdgeError) as excinfo:
        graph.joiner.unjoin(u, g)

    assert (excinfo.value.operation, excinfo.value.rolled_back) == ("unjoin", True)
    graph.store.deletes_before_failure = None
    assert graph.joiner.is_joiner_of(u, g) is True
    assert graph.find_partial_edges() == []


def test_failed_unjoined_without_rollback(tmp_path, types) -> None:
    graph = _graph(tmp_path, types, rollback=False)
    u = graph.save(types.User(id="u"))
    g = graph.save(types.Group(id="g"))
    graph.joiner.join(u, g)
    graph.store.deletes_before_failure = 1

    with pytest.raises(PartialEdgeError):
        graph.joined.unjoined(g, u)
    graph.store.deletes_before_failure = None

    (orphan,) = graph.find_partial_edges()
    # the joined side dropped the joiner's row first
    assert (orphan.side, orphan.owner_id) == ("joinable", "g")
    assert graph.reconcile("prune").pruned == 1
    assert graph.store.count_where(JOINS_COLLECTION) == 0


def test_first_write_failure_propagates_unchanged(tmp_path, types) -> None:
    graph = _graph(tmp_path, types, rollback=True)
    u = graph.save(types.User(id="u"))
    g = graph.save(types.Group(id="g"))
    graph.store.fail_create_side = "joinable"

    with pytest.raises(StoreWriteError):
        graph.joiner.join(u, g)
    assert graph.store.count_where(JOINS_COLLECTION) == 0


def test_destroy_cascades_to_join_rows(graph, make, types) -> None:
    u = make(types.User, "u")
    v = make(types.User, "v")
    g = make(types.Group, "g")
    graph.joiner.join(u, g)
    graph.joiner.join(v, u)

    assert graph.destroy(u) == 4

    assert graph.get(types.User, "u") is None
    assert graph.store.count_where(JOINS_COLLECTION) == 0
    assert graph.joined.joiners_count(g) == 0
    assert graph.joiner.joinees_count(v) == 0
    assert graph.find_partial_edges() == []
    # history is independent of live edges
    assert graph.history.ever_join(v) == []
    assert graph.history.has_ever_joined(v, u) is True
