"""
Class-level ranking queries: which entities of a type have the most or fewest edges.

Every query loads all instances of the class, sorts them ascending by count (stable, so
ties keep the store order), takes the extreme count from the last (max) or first (min)
element and returns every entity tied at it. An empty class raises EmptyCollectionError.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Literal

from joinable.core.errors import EmptyCollectionError

from .entity import Entity, HasJoinedEdges, HasJoinerEdges, require_capability

if TYPE_CHECKING:
    from .engine import JoinGraph

__all__ = ["RankingQueries"]

Extreme = Literal["max", "min"]


class RankingQueries:
    def __init__(self, graph: JoinGraph) -> None:
        self.graph = graph

    def with_max_joinees(self, cls: type[Entity]) -> list[Entity]:
        return self._joinees(cls, "max", None)

    def with_min_joinees(self, cls: type[Entity]) -> list[Entity]:
        return self._joinees(cls, "min", None)

    def with_max_joinees_by_type(self, cls: type[Entity], type_name: Any) -> list[Entity]:
        return self._joinees(cls, "max", type_name)

    def with_min_joinees_by_type(self, cls: type[Entity], type_name: Any) -> list[Entity]:
        return self._joinees(cls, "min", type_name)

    def with_max_joiners(self, cls: type[Entity]) -> list[Entity]:
        return self._joiners(cls, "max", None)

    def with_min_joiners(self, cls: type[Entity]) -> list[Entity]:
        return self._joiners(cls, "min", None)

    def with_max_joiners_by_type(self, cls: type[Entity], type_name: Any) -> list[Entity]:
        return self._joiners(cls, "max", type_name)

    def with_min_joiners_by_type(self, cls: type[Entity], type_name: Any) -> list[Entity]:
        return self._joiners(cls, "min", type_name)

    def _joinees(self, cls: type[Entity], extreme: Extreme, type_name: Any) -> list[Entity]:
        require_capability(cls, HasJoinerEdges, f"with_{extreme}_joinees")
        ops = self.graph.joiner
        if type_name is None:
            return self._rank(cls, extreme, ops.joinees_count)
        return self._rank(cls, extreme, lambda e: ops.joinees_count_by_type(e, type_name))

    def _joiners(self, cls: type[Entity], extreme: Extreme, type_name: Any) -> list[Entity]:
        require_capability(cls, HasJoinedEdges, f"with_{extreme}_joiners")
        ops = self.graph.joined
        if type_name is None:
            return self._rank(cls, extreme, ops.joiners_count)
        return self._rank(cls, extreme, lambda e: ops.joiners_count_by_type(e, type_name))

    def _rank(self, cls: type[Entity], extreme: Extreme, count: Callable[[Entity], int]) -> list[Entity]:
        scored = sorted(((count(e), e) for e in self.graph.all(cls)), key=lambda pair: pair[0])
        if not scored:
            raise EmptyCollectionError(f"no {cls.type_name} entities to rank")
        target = scored[-1][0] if extreme == "max" else scored[0][0]
        return [e for n, e in scored if n == target]
