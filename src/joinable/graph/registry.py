"""
Explicit registry mapping canonical type names to entity types.

Populated at startup; every (type_name, id) reference the engine meets is resolved through
it, so an unregistered name fails loudly with UnknownTypeError.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from joinable.core.errors import UnknownTypeError
from joinable.core.grammar import assert_lower_snake, canonical_type_name
from joinable.core.tables import entity_table, register_table

from .entity import Entity

logger = logging.getLogger(__name__)

__all__ = ["BatchLoader", "EntityType", "EntityRegistry", "default_collection"]

# Batched lookup: ids of one type -> entities found.
BatchLoader = Callable[[Sequence[str]], Sequence[Entity]]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def default_collection(type_name: str) -> str:
    """
    Collection name for a type: lower_snake plural.

    Examples:
        >>> default_collection("ChildUser")
        'child_users'
    """
    return _CAMEL_BOUNDARY.sub("_", type_name).lower() + "s"


@dataclass(frozen=True)
class EntityType:
    """
    Registry entry.

    Attributes:
        cls (type[Entity]): Entity class.
        collection (str): Store collection holding its documents.
        loader (BatchLoader | None): Custom batched lookup replacing the store query.
    """

    cls: type[Entity]
    collection: str
    loader: BatchLoader | None = None

    @property
    def type_name(self) -> str:
        return self.cls.type_name


class EntityRegistry:
    """Type name → EntityType mapping."""

    def __init__(self, types: Sequence[type[Entity]] = ()) -> None:
        self._types: dict[str, EntityType] = {}
        for cls in types:
            self.register(cls)

    def register(
        self,
        cls: type[Entity],
        *,
        collection: str | None = None,
        loader: BatchLoader | None = None,
    ) -> EntityType:
        """
        Register an entity class.

        Args:
            cls (type[Entity]): Entity class to register.
            collection (str | None): lower_snake collection; defaults to default_collection().
            loader (BatchLoader | None): Optional batched loader.

        Returns:
            EntityType: The new entry (replaces a previous one with the same type name).

        Raises:
            GrammarError: If collection is not lower_snake.
        """
        name = cls.type_name
        coll = collection or default_collection(name)
        assert_lower_snake(coll, "collection name")
        register_table(entity_table(coll))
        entry = EntityType(cls=cls, collection=coll, loader=loader)
        self._types[name] = entry
        logger.debug("registered entity type=%s collection=%s", name, coll)
        return entry

    def get(self, value: str | type[Entity] | Entity) -> EntityType:
        """
        Look up an entry by type name (any accepted spelling), class or instance.

        Raises:
            UnknownTypeError: If the canonical name is not registered.
        """
        if isinstance(value, Entity):
            name = value.type_name
        else:
            name = canonical_type_name(value)
        try:
            return self._types[name]
        except KeyError:
            raise UnknownTypeError(name) from None

    def type_names(self) -> list[str]:
        return list(self._types)

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, (str, type)):
            return False
        try:
            self.get(value)  # type: ignore[arg-type]
        except UnknownTypeError:
            return False
        return True

    def __len__(self) -> int:
        return len(self._types)
