"""
Schema version metadata and helpers for collection snapshots.

Exposes the canonical schema version (SCHEMA_V) embedded in Parquet snapshot metadata
and provides a compatibility check used when snapshots are loaded. This module is zero-IO.

Notes:
    - joinable.io.snapshot embeds SCHEMA_V.label() in every snapshot it writes.
    - Loaders raise VersionMismatch when is_compatible() is False.
"""

from dataclasses import dataclass
from datetime import date

SCHEMA_MAJOR_VERSION = 1
SCHEMA_MINOR_VERSION = 0


@dataclass(frozen=True)
class SchemaVersion:
    """
    Immutable semantic version with ISO release date.

    Attributes:
        major (int): Non-negative major component signalling breaking changes.
        minor (int): Non-negative minor component for additive changes.
        date (str): ISO YYYY-MM-DD release date.

    Raises:
        ValueError: If any component is negative or the date is not ISO compliant.
    """

    major: int
    minor: int
    date: str  # ISO YYYY-MM-DD

    def __post_init__(self) -> None:
        if self.major < 0:
            raise ValueError(f"SchemaVersion major must be non-negative, got {self.major}")
        if self.minor < 0:
            raise ValueError(f"SchemaVersion minor must be non-negative, got {self.minor}")
        try:
            date.fromisoformat(self.date)
        except ValueError as exc:
            raise ValueError(
                f"SchemaVersion date must be ISO YYYY-MM-DD, got {self.date!r}"
            ) from exc

    def label(self) -> str:
        """Return the compact "major.minor@date" form stored in snapshot metadata."""
        return f"{self.major}.{self.minor}@{self.date}"

    @classmethod
    def from_label(cls, text: str) -> "SchemaVersion":
        """
        Parse a "major.minor@date" label.

        Raises:
            ValueError: If the label is malformed.
        """
        try:
            nums, day = text.split("@", 1)
            major, minor = nums.split(".", 1)
            return cls(int(major), int(minor), day)
        except (AttributeError, ValueError) as exc:
            raise ValueError(f"malformed schema version label {text!r}") from exc


SCHEMA_V = SchemaVersion(SCHEMA_MAJOR_VERSION, SCHEMA_MINOR_VERSION, "2026-10-01")


def is_compatible(ver: SchemaVersion) -> bool:
    """
    Check whether a version matches the supported schema contract.

    Args:
        ver (SchemaVersion): Version read from a snapshot.

    Returns:
        bool: True if ver shares both the major and minor numbers with SCHEMA_V.

    Examples:
        >>> from joinable.core.versioning import SCHEMA_V, is_compatible
        >>> is_compatible(SCHEMA_V)
        True
    """
    return ver.major == SCHEMA_V.major and ver.minor == SCHEMA_V.minor
