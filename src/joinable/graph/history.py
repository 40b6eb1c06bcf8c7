"""
Append-only history of join events.

Tokens are "<TypeName>_<id>". join_history (outbound) exists on HasHistory entities that
can join; joined_history (inbound) on HasHistory entities that can be joined. Tokens are
never deduplicated, survive unjoin and disappear only through the clear_* methods.
Operations on an undeclared field return None or do nothing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from joinable.core.constants import JOIN_HISTORY_FIELD, JOINED_HISTORY_FIELD
from joinable.core.grammar import history_token

from .entity import Entity

if TYPE_CHECKING:
    from .engine import JoinGraph

logger = logging.getLogger(__name__)

__all__ = ["HistoryOperations"]


class HistoryOperations:
    """Record, query, rebuild and clear history tokens."""

    def __init__(self, graph: JoinGraph) -> None:
        self.graph = graph

    def record_join(self, joining: Entity, joinable: Entity) -> None:
        """Append tokens for joining → joinable on whichever sides declare history."""
        if not self.graph.settings.graph.history_enabled:
            return
        if joinable.declares(JOINED_HISTORY_FIELD):
            joinable.joined_history.append(history_token(*joining.pair()))
        if joining.declares(JOIN_HISTORY_FIELD):
            joining.join_history.append(history_token(*joinable.pair()))

    def ever_join(self, entity: Entity) -> list[Entity] | None:
        """Entities entity has ever joined, rebuilt from join_history; None if undeclared."""
        return self._rebuild(entity, JOIN_HISTORY_FIELD)

    def ever_joined(self, entity: Entity) -> list[Entity] | None:
        """Entities that ever joined entity, rebuilt from joined_history; None if undeclared."""
        return self._rebuild(entity, JOINED_HISTORY_FIELD)

    def has_ever_joined(self, entity: Entity, model: Entity) -> bool | None:
        """Token membership of model in entity's join_history."""
        return self._contains(entity, JOIN_HISTORY_FIELD, model)

    def was_ever_joined_by(self, entity: Entity, model: Entity) -> bool | None:
        """Token membership of model in entity's joined_history."""
        return self._contains(entity, JOINED_HISTORY_FIELD, model)

    def clear_history(self, entity: Entity) -> None:
        self.clear_join_history(entity)
        self.clear_joined_history(entity)

    def clear_join_history(self, entity: Entity) -> None:
        self._clear(entity, JOIN_HISTORY_FIELD)

    def clear_joined_history(self, entity: Entity) -> None:
        self._clear(entity, JOINED_HISTORY_FIELD)

    def _rebuild(self, entity: Entity, field: str) -> list[Entity] | None:
        if not entity.declares(field):
            return None
        return self.graph.resolver.resolve_tokens(getattr(entity, field))

    @staticmethod
    def _contains(entity: Entity, field: str, model: Entity) -> bool | None:
        if not entity.declares(field):
            return None
        return history_token(*model.pair()) in getattr(entity, field)

    def _clear(self, entity: Entity, field: str) -> None:
        if not entity.declares(field):
            return
        setattr(entity, field, [])
        self.graph.save(entity)
        logger.debug("cleared %s of %r", field, entity)
