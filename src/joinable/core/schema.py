"""
Pydantic v2 models for join rows and entity references.

Validators normalize fields using grammar helpers and enforce the cross-field rule
that exactly one polymorphic back-reference is populated and matches the row's side.

Style
- Zero-IO (stdlib + pydantic only).
- Google-style docstrings with Attributes, Raises, Examples and Notes.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import SchemaError
from .grammar import EdgeSide, canonical_type_name, edge_side_from_value

__all__ = [
    "EntityRef",
    "JoinRecordRow",
    "new_record_id",
]


def new_record_id() -> str:
    """Return a fresh join-row handle (uuid4 hex)."""
    return uuid.uuid4().hex


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


class EntityRef(BaseModel):
    """
    Opaque (type_name, id) reference to an entity.

    Attributes:
        type_name (str): Canonical entity type name.
        id (str): Entity id (string-comparable).

    Examples:
        >>> from joinable.core.schema import EntityRef
        >>> EntityRef(type_name="user", id=7).pair()
        ('User', '7')
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    type_name: str
    id: str

    @field_validator("type_name", mode="before")
    @classmethod
    def _canonical_type(cls, v: Any) -> Any:
        return canonical_type_name(v)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        if v is None or str(v) == "":
            raise SchemaError("entity id must be non-empty")
        return str(v)

    def pair(self) -> tuple[str, str]:
        return self.type_name, self.id


class JoinRecordRow(BaseModel):
    """
    One directed edge observation stored in the joins collection.

    Attributes:
        record_id (str): Unique row handle.
        side (str): "joining" when the row belongs to the owner's joinees,
            "joinable" when it belongs to the owner's joiners.
        joining_type (str | None): Owner type when side == "joining".
        joining_id (str | None): Owner id when side == "joining".
        joinable_type (str | None): Owner type when side == "joinable".
        joinable_id (str | None): Owner id when side == "joinable".
        f_type (str): Type name of the other endpoint.
        f_id (str): Id of the other endpoint.
        created_at (str): ISO-8601 UTC creation time.

    Raises:
        joinable.core.errors.GrammarError: On an unknown side.
        joinable.core.errors.SchemaError: When the populated back-reference does not
            match side.

    Notes:
        A join A → B is stored as two rows:
            - {side: joinable, joinable=B, f=A}  (B's joiners)
            - {side: joining,  joining=A,  f=B}  (A's joinees)

    Examples:
        >>> from joinable.core.schema import JoinRecordRow
        >>> row = JoinRecordRow.for_owner("joining", ("User", "1"), ("Group", "9"))
        >>> row.owner_type, row.owner_id, row.f_type, row.f_id
        ('User', '1', 'Group', '9')
    """

    model_config = ConfigDict(extra="forbid")

    record_id: str = Field(default_factory=new_record_id)
    side: str

    joining_type: str | None = None
    joining_id: str | None = None
    joinable_type: str | None = None
    joinable_id: str | None = None

    f_type: str
    f_id: str
    created_at: str = Field(default_factory=_utc_now_iso)

    @field_validator("side", mode="before")
    @classmethod
    def _normalize_side(cls, v: Any) -> Any:
        return edge_side_from_value(v).value

    @field_validator("f_type", "joining_type", "joinable_type", mode="before")
    @classmethod
    def _normalize_type(cls, v: Any) -> Any:
        if v is None:
            return v
        return canonical_type_name(v)

    @field_validator("f_id", "joining_id", "joinable_id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        if v is None:
            return v
        return str(v)

    @model_validator(mode="after")
    def _validate_back_reference(self) -> JoinRecordRow:
        """
        Enforce that exactly the back-reference named by side is populated.

        Raises:
            SchemaError: On a missing, mixed or mismatched back-reference.
        """
        side = EdgeSide(self.side)
        own = (getattr(self, side.type_field), getattr(self, side.id_field))
        other = side.opposite()
        foreign = (getattr(self, other.type_field), getattr(self, other.id_field))
        if not all(own):
            raise SchemaError(
                f"side={self.side!r} requires fields {[side.type_field, side.id_field]}"
            )
        if any(foreign):
            raise SchemaError(
                f"side={self.side!r} forbids fields {[other.type_field, other.id_field]}"
            )
        return self

    @property
    def edge_side(self) -> EdgeSide:
        return EdgeSide(self.side)

    @property
    def owner_type(self) -> str:
        return str(getattr(self, self.edge_side.type_field))

    @property
    def owner_id(self) -> str:
        return str(getattr(self, self.edge_side.id_field))

    def owner(self) -> EntityRef:
        return EntityRef(type_name=self.owner_type, id=self.owner_id)

    def target(self) -> EntityRef:
        return EntityRef(type_name=self.f_type, id=self.f_id)

    def mirror(self) -> JoinRecordRow:
        """Return the paired row on the other owner's list (fresh record_id)."""
        return JoinRecordRow.for_owner(
            self.edge_side.opposite(), (self.f_type, self.f_id), (self.owner_type, self.owner_id)
        )

    @classmethod
    def for_owner(
        cls,
        side: EdgeSide | str,
        owner: tuple[str, str],
        target: tuple[str, str],
    ) -> JoinRecordRow:
        """
        Build a row owned by ``owner`` on ``side`` pointing at ``target``.

        Args:
            side (EdgeSide | str): Owner list the row belongs to.
            owner (tuple[str, str]): (type_name, id) of the owner.
            target (tuple[str, str]): (type_name, id) of the other endpoint.
        """
        s = edge_side_from_value(side)
        payload: dict[str, Any] = {
            "side": s.value,
            s.type_field: owner[0],
            s.id_field: owner[1],
            "f_type": target[0],
            "f_id": target[1],
        }
        return cls(**payload)
