"""
Entities and the capability interfaces the join engine checks.

An entity is any object with a stable type name and id. Concrete types subclass Entity
and declare what they can take part in by also inheriting the capability markers:

- HasJoinerEdges: may initiate joins (owns "joinee" rows).
- HasJoinedEdges: may receive joins (owns "joiner" rows).
- HasHistory: records history tokens; join_history exists only alongside HasJoinerEdges,
  joined_history only alongside HasJoinedEdges.

Examples:
    >>> class User(Entity, HasJoinerEdges, HasJoinedEdges, HasHistory):
    ...     pass
    >>> u = User(id="1", name="jim")
    >>> u.type_name, u.name, u.join_history
    ('User', 'jim', [])
"""

from __future__ import annotations

import uuid
from abc import ABC
from collections.abc import Mapping
from typing import Any, ClassVar

from joinable.core.constants import JOIN_HISTORY_FIELD, JOINED_HISTORY_FIELD
from joinable.core.errors import CapabilityError
from joinable.core.grammar import canonical_type_name
from joinable.core.schema import EntityRef

__all__ = [
    "Entity",
    "HasJoinerEdges",
    "HasJoinedEdges",
    "HasHistory",
    "require_capability",
]


class HasJoinerEdges(ABC):
    """Capability marker: the entity can join others."""


class HasJoinedEdges(ABC):
    """Capability marker: the entity can be joined."""


class HasHistory(ABC):
    """Capability marker: the entity keeps history tokens for its edge capabilities."""


def require_capability(subject: Any, capability: type, operation: str) -> None:
    """
    Check that an entity (or entity class) declares a capability.

    Raises:
        CapabilityError: If it does not.
    """
    ok = issubclass(subject, capability) if isinstance(subject, type) else isinstance(subject, capability)
    if not ok:
        name = getattr(subject, "type_name", None) or type(subject).__name__
        raise CapabilityError(f"{operation} requires {capability.__name__}; {name} does not declare it")


class Entity:
    """
    Base class for joinable entities.

    Attributes:
        type_name (ClassVar[str]): Canonical type name; the class name unless the class
            body sets it. Subclasses get their own name.
        id (str): Stable identifier; a uuid4 hex when not given.
        attributes (dict[str, Any]): Free document attributes, readable as attributes.
    """

    type_name: ClassVar[str] = "Entity"

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        declared = cls.__dict__.get("type_name")
        cls.type_name = canonical_type_name(declared or cls.__name__)

    def __init__(self, id: Any = None, **attributes: Any) -> None:
        self.id = uuid.uuid4().hex if id is None else str(id)
        history = {f: list(attributes.pop(f, None) or []) for f in self.history_fields()}
        attributes.pop(JOIN_HISTORY_FIELD, None)
        attributes.pop(JOINED_HISTORY_FIELD, None)
        self.attributes: dict[str, Any] = attributes
        for name, tokens in history.items():
            setattr(self, name, tokens)

    def __getattr__(self, name: str) -> Any:
        try:
            return self.__dict__["attributes"][name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__!s} has no attribute {name!r}") from None

    @classmethod
    def history_fields(cls) -> tuple[str, ...]:
        """History list fields this type declares."""
        if not issubclass(cls, HasHistory):
            return ()
        fields: list[str] = []
        if issubclass(cls, HasJoinerEdges):
            fields.append(JOIN_HISTORY_FIELD)
        if issubclass(cls, HasJoinedEdges):
            fields.append(JOINED_HISTORY_FIELD)
        return tuple(fields)

    def declares(self, field: str) -> bool:
        return field in self.history_fields()

    def pair(self) -> tuple[str, str]:
        return self.type_name, self.id

    def ref(self) -> EntityRef:
        return EntityRef(type_name=self.type_name, id=self.id)

    def to_document(self) -> dict[str, Any]:
        """Serialize to a store document: id, history lists, then attributes."""
        doc: dict[str, Any] = {"id": self.id}
        for name in self.history_fields():
            doc[name] = list(getattr(self, name))
        doc.update(self.attributes)
        return doc

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> Entity:
        """
        Rebuild an entity from a stored document.

        Null attributes are dropped: a collection frame carries every column seen in the
        collection, so absent and null are the same thing here.
        """
        data = {k: v for k, v in doc.items() if v is not None}
        return cls(**data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return self.pair() == other.pair()

    def __hash__(self) -> int:
        return hash(self.pair())

    def __repr__(self) -> str:
        return f"{self.type_name}(id={self.id!r})"
