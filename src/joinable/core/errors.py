"""
Core exception types raised by grammar checks, row schemas, and the join graph.

Provides typed exceptions for core-domain failures:
- GrammarError for naming/token violations.
- SchemaError for row-level constraints and cross-field combination rules.
- VersionMismatch for snapshot versions incompatible with SCHEMA_V.
- ResolutionError / UnknownTypeError when a type name cannot be resolved to entities.
- CapabilityError when an entity lacks the capability an operation needs.
- EmptyCollectionError for ranking queries over zero entities.
- PartialEdgeError when only one half of a join/unjoin write pair succeeded.
- AmbiguousHistoryTokenError when a history token cannot be split into (type, id).

Notes:
    - Stdlib only; storage failures use joinable.io.errors and propagate unchanged.

Examples:
    >>> from joinable.core.errors import UnknownTypeError, ResolutionError
    >>> issubclass(UnknownTypeError, ResolutionError)
    True
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "SchemaError",
    "GrammarError",
    "VersionMismatch",
    "ResolutionError",
    "UnknownTypeError",
    "CapabilityError",
    "EmptyCollectionError",
    "PartialEdgeError",
    "AmbiguousHistoryTokenError",
]


class SchemaError(ValueError):
    """Row-level validation failure (shape, constraints, cross-field rules)."""


class GrammarError(ValueError):
    """Naming normalization failure (e.g., empty type name or invalid side value)."""


class VersionMismatch(RuntimeError):
    """Incompatible or unexpected schema version encountered."""


class ResolutionError(LookupError):
    """A (type, id) reference could not be turned into entities."""


class UnknownTypeError(ResolutionError):
    """
    Type name with no registered entity type.

    Attributes:
        type_name (str): The unresolvable type name.
    """

    def __init__(self, type_name: str) -> None:
        super().__init__(f"no entity type registered for {type_name!r}")
        self.type_name = type_name


class CapabilityError(TypeError):
    """Entity does not declare the capability required by an operation."""


class EmptyCollectionError(ValueError):
    """Ranking query invoked on a collection with no entities."""


class PartialEdgeError(RuntimeError):
    """
    One half of a join/unjoin write pair succeeded and the other failed.

    Attributes:
        operation (str): "join" or "unjoin".
        joining (Any): Entity on the joining side.
        joinable (Any): Entity on the joinable side.
        rolled_back (bool): True if the completed half was compensated.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        joining: Any,
        joinable: Any,
        rolled_back: bool,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.joining = joining
        self.joinable = joinable
        self.rolled_back = rolled_back


class AmbiguousHistoryTokenError(GrammarError):
    """History token cannot be split unambiguously into (type_name, id)."""

    def __init__(self, token: str, reason: str) -> None:
        super().__init__(f"ambiguous history token {token!r}: {reason}")
        self.token = token
