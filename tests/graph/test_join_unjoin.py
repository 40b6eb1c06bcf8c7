from __future__ import annotations

import pytest

from joinable.core.errors import CapabilityError, UnknownTypeError
from joinable.graph import Entity, HasJoinedEdges


def test_join_links_both_sides(graph, make, types) -> None:
    a = make(types.User, "a")
    b = make(types.User, "b")

    assert graph.joiner.join(a, b) == [b]

    assert graph.joiner.is_joiner_of(a, b) is True
    assert graph.joined.is_joinee_of(b, a) is True
    assert graph.joiner.joinees_count(a) == 1
    assert graph.joined.joiners_count(b) == 1
    # direction matters
    assert graph.joiner.is_joiner_of(b, a) is False
    assert graph.joiner.joinees_count(b) == 0


def test_join_then_unjoin_restores_counts(graph, make, types) -> None:
    a = make(types.User, "a")
    b = make(types.Group, "b")
    before = (graph.joiner.joinees_count(a), graph.joined.joiners_count(b))

    graph.joiner.join(a, b)
    assert graph.joiner.unjoin(a, b) == [b]

    assert (graph.joiner.joinees_count(a), graph.joined.joiners_count(b)) == before
    assert graph.store.count_where("joins") == 0


def test_self_join_is_noop(graph, make, types) -> None:
    a = make(types.User, "a")

    assert graph.joiner.join(a, a) == []
    assert graph.joiner.joinees_count(a) == 0
    assert graph.joined.joiners_count(a) == 0
    assert graph.history.ever_join(a) == []


def test_second_join_creates_no_duplicate(graph, make, types) -> None:
    a = make(types.User, "a")
    b = make(types.User, "b")

    graph.joiner.join(a, b)
    assert graph.joiner.join(a, b) == []

    assert graph.joiner.joinees_count(a) == 1
    assert graph.joined.joiners_count(b) == 1
    assert graph.store.count_where("joins") == 2
    # no second history token either
    assert graph.get(types.User, "a").join_history == ["User_b"]


def test_join_writes_two_rows_with_explicit_sides(graph, make, types) -> None:
    a = make(types.User, "a")
    g = make(types.Group, "g")
    graph.joiner.join(a, g)

    rows = {r["side"]: r for r in graph.store.query("joins")}
    assert set(rows) == {"joining", "joinable"}
    assert rows["joinable"]["joinable_type"] == "Group"
    assert rows["joinable"]["joinable_id"] == "g"
    assert (rows["joinable"]["f_type"], rows["joinable"]["f_id"]) == ("User", "a")
    assert rows["joinable"]["joining_type"] is None
    assert rows["joining"]["joining_type"] == "User"
    assert (rows["joining"]["f_type"], rows["joining"]["f_id"]) == ("Group", "g")


def test_filtered_join_only_links_passing_targets(graph, make, types) -> None:
    u = make(types.User, "u")
    v = make(types.User, "v")
    w = make(types.User, "w")
    g = make(types.Group, "g")

    joined = graph.joiner.join(u, v, w, g, where=lambda m: m.type_name == "User")

    assert joined == [v, w]
    assert graph.joiner.all_joinees(u) == [v, w]
    assert graph.joined.is_joined(g) is False


def test_filtered_unjoin(graph, make, types) -> None:
    u = make(types.User, "u")
    v = make(types.User, "v")
    g = make(types.Group, "g")
    graph.joiner.join(u, v, g)

    assert graph.joiner.unjoin(u, v, g, where=lambda m: m.type_name == "Group") == [g]

    assert graph.joiner.all_joinees(u) == [v]


def test_unjoin_of_unlinked_target_is_noop(graph, make, types) -> None:
    u = make(types.User, "u")
    v = make(types.User, "v")

    assert graph.joiner.unjoin(u, v) == []
    assert graph.joiner.unjoin(u, u) == []


def test_unjoin_all(graph, make, types) -> None:
    u = make(types.User, "u")
    v = make(types.User, "v")
    g = make(types.Group, "g")
    graph.joiner.join(u, v, g)

    assert set(graph.joiner.unjoin_all(u)) == {v, g}

    assert graph.joiner.is_joining(u) is False
    assert graph.joiner.is_joiner_of(u, v) is False
    assert graph.joined.is_joinee_of(v, u) is False
    assert graph.joiner.all_joinees(u) == []
    assert graph.joined.all_joiners(v) == []
    assert graph.joiner.joinees_count_by_type(u, "user") == 0
    assert graph.joined.joiners_count_by_type(v, "user") == 0


def test_unjoined_from_joined_side(graph, make, types) -> None:
    u = make(types.User, "u")
    v = make(types.User, "v")
    g = make(types.Group, "g")
    graph.joiner.join(u, g)
    graph.joiner.join(v, g)

    assert graph.joined.unjoined(g, u) == [u]
    assert graph.joined.all_joiners(g) == [v]

    assert graph.joined.unjoined_all(g) == [v]
    assert graph.joined.is_joined(g) is False
    assert graph.store.count_where("joins") == 0


def test_join_requires_capabilities(graph, make, types) -> None:
    u = make(types.User, "u")
    bot = make(types.Bot, "bot")
    badge = make(types.Badge, "badge")

    with pytest.raises(CapabilityError):
        graph.joiner.join(u, bot)
    with pytest.raises(CapabilityError):
        graph.joiner.join(badge, u)

    # joiner-only and joined-only types still pair up
    assert graph.joiner.join(bot, badge) == [badge]
    assert graph.joined.joiners_count(badge) == 1


def test_joiner_scenario_with_users_and_groups(graph, make, types) -> None:
    u = make(types.User, "u")
    v = make(types.User, "v")
    make(types.User, "w")
    g = make(types.Group, "g")

    graph.joiner.join(u, v, g)

    assert graph.joiner.is_joining(u) is True
    assert graph.joined.is_joined(v) is True
    assert graph.joined.is_joined(g) is True

    assert graph.joiner.all_joinees(u) == [v, g]
    assert graph.joined.all_joiners(v) == [u]
    assert graph.joiner.joinees_by_type(u, "user") == [v]
    assert graph.joined.joiners_by_type(v, "user") == [u]
    assert graph.joiner.joinees_count(u) == 2
    assert graph.joiner.joinees_count_by_type(u, "user") == 1
    assert graph.joined.joiners_count_by_type(v, "user") == 1

    assert graph.joiner.joiners_of(types.User, g) == [u]
    assert graph.joined.joinees_of(types.Group, u) == [g]


def test_join_persists_both_entities(graph, make, types) -> None:
    u = types.User(id="u", name="jim")
    g = types.Group(id="g", title="ruby")
    graph.joiner.join(u, g)

    stored_u = graph.get(types.User, "u")
    stored_g = graph.get(types.Group, "g")
    assert stored_u.name == "jim"
    assert stored_g.title == "ruby"
    assert stored_u.join_history == ["Group_g"]
    assert stored_g.joined_history == ["User_u"]


def test_join_to_unregistered_type_writes_nothing(graph, make, store, types) -> None:
    class Stray(Entity, HasJoinedEdges):
        pass

    u = make(types.User, "u")
    with pytest.raises(UnknownTypeError):
        graph.joiner.join(u, Stray(id="s"))

    assert store.count_where("joins") == 0
    assert u.join_history == []
    assert graph.get(types.User, "u").join_history == []
    assert graph.joiner.all_joinees(u) == []


def test_unjoin_and_unjoined_require_capabilities(graph, make, types) -> None:
    u = make(types.User, "u")
    bot = make(types.Bot, "bot")
    badge = make(types.Badge, "badge")

    with pytest.raises(CapabilityError):
        graph.joiner.unjoin(u, bot)
    with pytest.raises(CapabilityError):
        graph.joined.unjoined(u, badge)
