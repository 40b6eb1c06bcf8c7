"""
Operations for entities that receive joins (HasJoinedEdges).

Mirror of joinable.graph.joiner with joiner/joinee swapped, plus all_joiners(), which lists
inbound partners through an aggregation pipeline on the joins collection so it can page.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from joinable.core.constants import TARGET_ID_FIELD, TARGET_TYPE_FIELD
from joinable.core.grammar import EdgeSide
from joinable.core.typing import Predicate, Stage

from .edges import JOINEES, JOINERS
from .entity import Entity, HasJoinedEdges, HasJoinerEdges, require_capability
from .joiner import ordered_intersection, select_targets

if TYPE_CHECKING:
    from .engine import JoinGraph

logger = logging.getLogger(__name__)

__all__ = ["JoinedOperations", "joiners_pipeline"]

_OWNER = EdgeSide.JOINABLE


def joiners_pipeline(entity: Entity, page: int | None = None, per_page: int | None = None) -> list[Stage]:
    """
    Aggregation stages listing entity's joiner rows.

    Skip/limit are added only when both page and per_page are given; page is zero-based.

    Examples:
        >>> from joinable.graph.entity import Entity
        >>> class Group(Entity):
        ...     pass
        >>> [next(iter(s)) for s in joiners_pipeline(Group(id="g"), 0, 3)]
        ['$project', '$match', '$skip', '$limit', '$project']
    """
    stages: list[Stage] = [
        {
            "$project": {
                TARGET_ID_FIELD: 1,
                TARGET_TYPE_FIELD: 1,
                _OWNER.id_field: 1,
                _OWNER.type_field: 1,
            }
        },
        {"$match": {_OWNER.id_field: entity.id, _OWNER.type_field: entity.type_name}},
    ]
    if page is not None and per_page is not None:
        stages.append({"$skip": page * per_page})
        stages.append({"$limit": per_page})
    stages.append({"$project": {TARGET_ID_FIELD: 1, TARGET_TYPE_FIELD: 1}})
    return stages


class JoinedOperations:
    """Inbound-edge behavior: joiner counts, lookups and unjoined."""

    def __init__(self, graph: JoinGraph) -> None:
        self.graph = graph

    def is_joinee_of(self, entity: Entity, model: Entity) -> bool:
        """True iff model → entity exists on both sides."""
        require_capability(entity, HasJoinedEdges, "is_joinee_of")
        require_capability(model, HasJoinerEdges, "is_joinee_of")
        return self.graph.edges.is_linked(model, entity)

    def is_joined(self, entity: Entity) -> bool:
        return self.joiners_count(entity) > 0

    def joiners_count(self, entity: Entity) -> int:
        require_capability(entity, HasJoinedEdges, "joiners_count")
        return self.graph.edges.count(JOINERS, entity)

    def joiners_count_by_type(self, entity: Entity, type_name: Any) -> int:
        require_capability(entity, HasJoinedEdges, "joiners_count_by_type")
        return self.graph.edges.count(JOINERS, entity, by_type=type_name)

    def all_joiners(
        self,
        entity: Entity,
        page: int | None = None,
        per_page: int | None = None,
        resolve_as: Any = None,
    ) -> list[Entity]:
        """
        Entities that joined entity, optionally one page at a time.

        Args:
            entity (Entity): Joined entity.
            page (int | None): Zero-based page number.
            per_page (int | None): Page size.
            resolve_as (Any): Resolve every row against this one type instead of the
                row's own f_type. Falls back to settings.graph.resolve_joiners_as.

        Returns:
            list[Entity]: Resolved joiners (per-type found order).

        Raises:
            UnknownTypeError: If a row type (or resolve_as) is not registered.
        """
        require_capability(entity, HasJoinedEdges, "all_joiners")
        rows = self.graph.edges.aggregate(joiners_pipeline(entity, page, per_page))
        forced = resolve_as or self.graph.settings.graph.resolve_joiners_as
        if forced:
            return self.graph.resolver.find_by_ids_of_type(forced, [r[TARGET_ID_FIELD] for r in rows])
        return self.graph.resolver.resolve_records(rows)

    def joiners_by_type(self, entity: Entity, type_name: Any) -> list[Entity]:
        require_capability(entity, HasJoinedEdges, "joiners_by_type")
        rows = self.graph.edges.rows(JOINERS, entity, by_type=type_name)
        return self.graph.resolver.resolve_records(rows)

    def has_common_joiners(self, entity: Entity, model: Entity) -> bool:
        return len(self.common_joiners_with(entity, model)) > 0

    def common_joiners_with(self, entity: Entity, model: Entity) -> list[Entity]:
        """Joiners shared by entity and model, in entity's resolved order."""
        require_capability(entity, HasJoinedEdges, "common_joiners_with")
        require_capability(model, HasJoinedEdges, "common_joiners_with")
        mine = self.graph.resolver.resolve_records(self.graph.edges.rows(JOINERS, entity))
        theirs = self.graph.resolver.resolve_records(self.graph.edges.rows(JOINERS, model))
        return ordered_intersection(mine, theirs)

    def joinees_of(self, cls: type[Entity] | str, model: Entity) -> list[Entity]:
        """Model's joinees of type cls."""
        return self.graph.joiner.joinees_by_type(model, cls)

    def unjoined(self, entity: Entity, *targets: Entity, where: Predicate | None = None) -> list[Entity]:
        """
        Drop the edge from each target to entity, deleting the target's joinees row first.

        Returns:
            list[Entity]: Targets whose edge was removed.

        Raises:
            CapabilityError: If entity or a target lacks the needed capability.
            PartialEdgeError: If only one row of a pair could be deleted.
        """
        require_capability(entity, HasJoinedEdges, "unjoined")
        dropped: list[Entity] = []
        for target in select_targets(targets, where):
            if target == entity:
                continue
            require_capability(target, HasJoinerEdges, "unjoined")
            if not self.is_joinee_of(entity, target) or not self.graph.joiner.is_joiner_of(target, entity):
                continue
            self.graph.edges.delete_pair(
                target, entity, first=JOINEES, rollback=self.graph.settings.graph.rollback_partial
            )
            dropped.append(target)
            logger.debug("unjoined %r -> %r from the joined side", target, entity)
        return dropped

    def unjoined_all(self, entity: Entity) -> list[Entity]:
        return self.unjoined(entity, *self.all_joiners(entity))
