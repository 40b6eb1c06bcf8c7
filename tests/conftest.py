from __future__ import annotations

from types import SimpleNamespace

import pytest

from joinable.graph import Entity, HasHistory, HasJoinedEdges, HasJoinerEdges, JoinGraph
from joinable.io import DocumentStore, StoreSettings


class User(Entity, HasJoinerEdges, HasJoinedEdges, HasHistory):
    pass


class ChildUser(User):
    pass


class Group(Entity, HasJoinerEdges, HasJoinedEdges, HasHistory):
    pass


class Badge(Entity, HasJoinedEdges):
    """Joinable only, no history."""


class Bot(Entity, HasJoinerEdges):
    """Joiner only, no history."""


ENTITY_TYPES = [User, ChildUser, Group, Badge, Bot]


@pytest.fixture
def types() -> SimpleNamespace:
    """Entity classes registered by the graph fixture."""
    return SimpleNamespace(**{cls.__name__: cls for cls in ENTITY_TYPES})


@pytest.fixture
def store(tmp_path) -> DocumentStore:
    return DocumentStore(StoreSettings(root_dir=str(tmp_path)))


@pytest.fixture
def graph(store: DocumentStore) -> JoinGraph:
    return JoinGraph(store, types=ENTITY_TYPES)


@pytest.fixture
def make(graph: JoinGraph):
    """Create and save an entity: make(User, "u1", name="jim")."""

    def _make(cls: type[Entity], entity_id: str | None = None, **attrs) -> Entity:
        return graph.save(cls(id=entity_id, **attrs))

    return _make
