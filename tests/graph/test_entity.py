from __future__ import annotations

import pytest

from joinable.core.errors import CapabilityError
from joinable.graph import Entity, HasHistory, HasJoinedEdges, HasJoinerEdges
from joinable.graph.entity import require_capability


def test_type_name_defaults_to_class_name(types) -> None:
    assert types.User.type_name == "User"
    assert types.ChildUser.type_name == "ChildUser"

    class Custom(Entity):
        type_name = "team_member"

    assert Custom.type_name == "TeamMember"


def test_equality_and_hash_by_type_and_id(types) -> None:
    assert types.User(id="1") == types.User(id="1", name="other")
    assert types.User(id="1") != types.Group(id="1")
    assert types.User(id=1) == types.User(id="1")
    assert len({types.User(id="1"), types.User(id="1"), types.ChildUser(id="1")}) == 2


def test_generated_ids_are_unique(types) -> None:
    assert types.User().id != types.User().id


def test_history_fields_follow_capabilities(types) -> None:
    assert types.User.history_fields() == ("join_history", "joined_history")
    assert types.Bot.history_fields() == ()

    class JoinOnly(Entity, HasJoinerEdges, HasHistory):
        pass

    class JoinedOnly(Entity, HasJoinedEdges, HasHistory):
        pass

    assert JoinOnly.history_fields() == ("join_history",)
    assert JoinedOnly.history_fields() == ("joined_history",)
    # undeclared history is dropped on load
    assert not hasattr(JoinOnly(id="x", joined_history=["User_1"]), "joined_history")


def test_document_round_trip(types) -> None:
    u = types.User(id="u", name="jim", join_history=["Group_g"])
    doc = u.to_document()

    assert doc == {"id": "u", "join_history": ["Group_g"], "joined_history": [], "name": "jim"}
    back = types.User.from_document({**doc, "email": None})
    assert back == u
    assert back.join_history == ["Group_g"]
    assert back.attributes == {"name": "jim"}


def test_missing_attribute_raises_attribute_error(types) -> None:
    with pytest.raises(AttributeError):
        types.User(id="u").nickname


def test_require_capability(types) -> None:
    require_capability(types.User(id="u"), HasJoinerEdges, "join")
    require_capability(types.Badge, HasJoinedEdges, "rank")
    with pytest.raises(CapabilityError):
        require_capability(types.Badge(id="b"), HasJoinerEdges, "join")
    with pytest.raises(CapabilityError):
        require_capability(types.Bot, HasJoinedEdges, "rank")


def test_graph_get_all_and_save(graph, make, types) -> None:
    a = make(types.User, "a", name="jim")
    make(types.User, "b")

    a.attributes["name"] = "tom"
    graph.save(a)

    assert graph.get("user", "a").name == "tom"
    assert [e.id for e in graph.all(types.User)] == ["a", "b"]
    assert graph.get(types.User, "missing") is None


def test_ref_matches_pair(types) -> None:
    ref = types.ChildUser(id="c1").ref()
    assert ref.pair() == ("ChildUser", "c1")
