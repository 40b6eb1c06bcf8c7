"""
Canonical joinable grammar and helpers.

Defines the edge-side enum, collection naming rules, type-name canonicalization and the
history-token format. Zero-IO helpers used by schemas, the store and the graph layer.

Design principles
-----------------
1) One naming standard:
   - Enum member names: UPPER_SNAKE
   - Enum serialized values (stored rows): lower_snake
   - Collection and column names: lower_snake
   - Entity type names: PascalCase class names ("User", "ChildUser")

2) Side is explicit:
   - A join row lives in exactly one owner list. `side == joining` means the row belongs
     to the owner's joinees; `side == joinable` means it belongs to the owner's joiners.

3) Type names are canonical:
   - Callers may pass "group", "Group", "child_user" or "childUser"; stored values and
     filters always use the canonical PascalCase form.

Examples
--------
>>> from joinable.core.grammar import canonical_type_name, history_token, parse_history_token
>>> canonical_type_name("child_user")
'ChildUser'
>>> canonical_type_name("childUser")
'ChildUser'
>>> history_token("User", "42")
'User_42'
>>> parse_history_token("User_42")
('User', '42')
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum
from typing import Final

from .constants import HISTORY_DELIMITER
from .errors import AmbiguousHistoryTokenError, GrammarError

__all__ = [
    "EdgeSide",
    "is_lower_snake",
    "assert_lower_snake",
    "edge_side_from_value",
    "canonical_type_name",
    "history_token",
    "parse_history_token",
]


class EdgeSide(Enum):
    """
    Which owner list a join row belongs to.

    JOINING rows are the owner's outbound edges (its joinees); JOINABLE rows are the
    owner's inbound edges (its joiners).
    """

    JOINING = "joining"
    JOINABLE = "joinable"

    def opposite(self) -> EdgeSide:
        return EdgeSide.JOINABLE if self is EdgeSide.JOINING else EdgeSide.JOINING

    @property
    def type_field(self) -> str:
        return f"{self.value}_type"

    @property
    def id_field(self) -> str:
        return f"{self.value}_id"


_LOWER_SNAKE_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")


def is_lower_snake(value: str) -> bool:
    """
    Check whether a string is lower_snake.

    Examples:
      >>> is_lower_snake("join_history")
      True
      >>> is_lower_snake("JoinHistory")
      False
    """
    return bool(_LOWER_SNAKE_RE.match(value or ""))


def assert_lower_snake(value: str, what: str = "value") -> None:
    """
    Validate that a string is lower_snake.

    Raises:
      GrammarError: If value is not lower_snake.
    """
    if not is_lower_snake(value):
        raise GrammarError(f"{what} must be lower_snake (got: {value!r})")


def edge_side_from_value(s: str | EdgeSide) -> EdgeSide:
    """
    Parse a serialized side into an EdgeSide.

    Raises:
      GrammarError: If s is not a known side.
    """
    if isinstance(s, EdgeSide):
        return s
    try:
        return EdgeSide(str(s).strip().lower())
    except ValueError as exc:
        raise GrammarError(f"unknown edge side {s!r}") from exc


def canonical_type_name(value: str | type) -> str:
    """
    Canonicalize an entity type name.

    Classes map to their declared ``type_name`` (or ``__name__``). Strings are split on
    underscores and each segment has its first character upper-cased; the remainder of
    each segment is preserved, so camelCase input keeps its inner capitals.

    Args:
      value (str | type): Type name in any supported spelling, or an entity class.

    Returns:
      str: Canonical PascalCase type name.

    Raises:
      GrammarError: If the name is empty.

    Examples:
      >>> canonical_type_name("user")
      'User'
      >>> canonical_type_name("ChildUser")
      'ChildUser'
    """
    if isinstance(value, type):
        return str(getattr(value, "type_name", None) or value.__name__)
    text = str(value or "").strip()
    parts = [p for p in text.split("_") if p]
    if not parts:
        raise GrammarError(f"type name must be non-empty (got: {value!r})")
    return "".join(p[0].upper() + p[1:] for p in parts)


def history_token(type_name: str, entity_id: str) -> str:
    """Encode a (type_name, id) pair as a history token."""
    return f"{type_name}{HISTORY_DELIMITER}{entity_id}"


def parse_history_token(token: str, known_types: Iterable[str] | None = None) -> tuple[str, str]:
    """
    Split a history token into (type_name, id).

    With ``known_types`` the token must start with exactly one registered type name
    followed by the delimiter; the rest of the token is the id, so ids may contain the
    delimiter. Without ``known_types`` the token must contain the delimiter exactly once.

    Args:
      token (str): Token produced by history_token().
      known_types (Iterable[str] | None): Registered canonical type names.

    Returns:
      tuple[str, str]: (type_name, id).

    Raises:
      AmbiguousHistoryTokenError: If the split is missing or not unique.

    Examples:
      >>> parse_history_token("User_a_b", known_types=["User", "Group"])
      ('User', 'a_b')
    """
    if known_types is None:
        if token.count(HISTORY_DELIMITER) != 1:
            raise AmbiguousHistoryTokenError(
                token, f"expected exactly one {HISTORY_DELIMITER!r} without a type registry"
            )
        type_name, entity_id = token.split(HISTORY_DELIMITER, 1)
        if not type_name or not entity_id:
            raise AmbiguousHistoryTokenError(token, "empty type name or id")
        return type_name, entity_id

    matches = [
        name
        for name in known_types
        if token.startswith(name + HISTORY_DELIMITER) and len(token) > len(name) + 1
    ]
    if len(matches) != 1:
        reason = "no registered type prefix" if not matches else f"several prefixes {sorted(matches)!r}"
        raise AmbiguousHistoryTokenError(token, reason)
    name = matches[0]
    return name, token[len(name) + len(HISTORY_DELIMITER):]
