"""
Operations for entities that initiate joins (HasJoinerEdges).

All methods take the acting entity first; JoinGraph.joiner exposes one shared instance.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from joinable.core.typing import Predicate

from .edges import JOINEES, JOINERS
from .entity import Entity, HasJoinedEdges, HasJoinerEdges, require_capability

if TYPE_CHECKING:
    from .engine import JoinGraph

logger = logging.getLogger(__name__)

__all__ = ["JoinerOperations", "ordered_intersection", "select_targets"]


def select_targets(targets: Iterable[Entity], where: Predicate | None) -> list[Entity]:
    """Targets kept by the optional predicate, in call order."""
    if where is None:
        return list(targets)
    return [t for t in targets if where(t)]


def ordered_intersection(left: Sequence[Entity], right: Sequence[Entity]) -> list[Entity]:
    """
    Entities present in both lists, in left's order, without repeats.

    Equality is by (type_name, id).
    """
    other = set(right)
    seen: set[Entity] = set()
    out: list[Entity] = []
    for e in left:
        if e in other and e not in seen:
            seen.add(e)
            out.append(e)
    return out


class JoinerOperations:
    """Outbound-edge behavior: join, unjoin, joinee counts and lookups."""

    def __init__(self, graph: JoinGraph) -> None:
        self.graph = graph

    def join(self, entity: Entity, *targets: Entity, where: Predicate | None = None) -> list[Entity]:
        """
        Join entity to each target.

        A target is skipped when it is the entity itself or the pair is already linked.
        Otherwise the target's joiners row is written, then the entity's joinees row;
        history tokens are appended where declared and both entities are saved.

        Args:
            entity (Entity): Joining entity (HasJoinerEdges).
            *targets (Entity): Entities to join (HasJoinedEdges).
            where (Predicate | None): Optional target filter.

        Returns:
            list[Entity]: Targets actually joined.

        Raises:
            CapabilityError: If entity or a target lacks the needed capability.
            UnknownTypeError: If entity or a target is of an unregistered type; raised
                before any row of that pair is written.
            PartialEdgeError: If only one row of a pair could be written.
        """
        require_capability(entity, HasJoinerEdges, "join")
        registry = self.graph.registry
        registry.get(entity)
        edges = self.graph.edges
        joined: list[Entity] = []
        for target in select_targets(targets, where):
            if target == entity:
                continue
            require_capability(target, HasJoinedEdges, "join")
            registry.get(target)
            if self.is_joiner_of(entity, target) or self.graph.joined.is_joinee_of(target, entity):
                continue
            edges.create_pair(entity, target, rollback=self.graph.settings.graph.rollback_partial)
            self.graph.history.record_join(entity, target)
            self.graph.save(target)
            self.graph.save(entity)
            joined.append(target)
            logger.debug("joined %r -> %r", entity, target)
        return joined

    def unjoin(self, entity: Entity, *targets: Entity, where: Predicate | None = None) -> list[Entity]:
        """
        Remove entity's edge to each target that is fully linked both ways.

        Returns:
            list[Entity]: Targets actually unjoined.

        Raises:
            CapabilityError: If entity or a target lacks the needed capability.
            PartialEdgeError: If only one row of a pair could be deleted.
        """
        require_capability(entity, HasJoinerEdges, "unjoin")
        edges = self.graph.edges
        dropped: list[Entity] = []
        for target in select_targets(targets, where):
            if target == entity:
                continue
            require_capability(target, HasJoinedEdges, "unjoin")
            if not self.is_joiner_of(entity, target) or not self.graph.joined.is_joinee_of(target, entity):
                continue
            edges.delete_pair(
                entity, target, first=JOINERS, rollback=self.graph.settings.graph.rollback_partial
            )
            dropped.append(target)
            logger.debug("unjoined %r -> %r", entity, target)
        return dropped

    def unjoin_all(self, entity: Entity) -> list[Entity]:
        return self.unjoin(entity, *self.all_joinees(entity))

    def is_joiner_of(self, entity: Entity, model: Entity) -> bool:
        """True iff entity → model exists on both sides."""
        require_capability(entity, HasJoinerEdges, "is_joiner_of")
        require_capability(model, HasJoinedEdges, "is_joiner_of")
        return self.graph.edges.is_linked(entity, model)

    def is_joining(self, entity: Entity) -> bool:
        return self.joinees_count(entity) > 0

    def joinees_count(self, entity: Entity) -> int:
        require_capability(entity, HasJoinerEdges, "joinees_count")
        return self.graph.edges.count(JOINEES, entity)

    def joinees_count_by_type(self, entity: Entity, type_name: Any) -> int:
        require_capability(entity, HasJoinerEdges, "joinees_count_by_type")
        return self.graph.edges.count(JOINEES, entity, by_type=type_name)

    def all_joinees(self, entity: Entity) -> list[Entity]:
        require_capability(entity, HasJoinerEdges, "all_joinees")
        return self.graph.resolver.resolve_records(self.graph.edges.rows(JOINEES, entity))

    def joinees_by_type(self, entity: Entity, type_name: Any) -> list[Entity]:
        require_capability(entity, HasJoinerEdges, "joinees_by_type")
        rows = self.graph.edges.rows(JOINEES, entity, by_type=type_name)
        return self.graph.resolver.resolve_records(rows)

    def has_common_joinees(self, entity: Entity, model: Entity) -> bool:
        return len(self.common_joinees_with(entity, model)) > 0

    def common_joinees_with(self, entity: Entity, model: Entity) -> list[Entity]:
        """Joinees shared by entity and model, in entity's resolved order."""
        require_capability(model, HasJoinerEdges, "common_joinees_with")
        return ordered_intersection(self.all_joinees(entity), self.all_joinees(model))

    def joiners_of(self, cls: type[Entity] | str, model: Entity) -> list[Entity]:
        """Model's joiners of type cls."""
        return self.graph.joined.joiners_by_type(model, cls)
