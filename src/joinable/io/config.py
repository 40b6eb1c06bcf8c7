"""
Configuration for the joinable.io store and the graph engine built on it.

Defines StoreSettings, a frozen dataclass carrying runtime configuration for the document
store, with nested GraphSettings for join-engine behavior. Defaults are sourced from
joinable.core.constants (the single source of truth).

Precedence
- environment (JOINABLE_STORE_*) > TOML (./joinable.toml or [tool.joinable.store] in
  ./pyproject.toml) > defaults.

Notes
- persist=False keeps collections in memory only; flush() is then a no-op.
- Compression applies to Parquet snapshots written via pyarrow in joinable.io.snapshot.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal

try:  # Python 3.11+ stdlib TOML parser
    import tomllib  # type: ignore
except Exception:  # pragma: no cover - environments without tomllib
    tomllib = None  # type: ignore[assignment]

from joinable.core.constants import COMPRESSION as CORE_COMPRESSION
from joinable.core.constants import ROOT_DIR as CORE_ROOT_DIR
from joinable.core.constants import ROW_GROUP_SIZE as CORE_ROW_GROUP_SIZE

from .errors import StoreConfigError

Compression = Literal["zstd", "lz4", "snappy"]
LogLevel = Literal["debug", "info", "warning", "error"]

_COMPRESSIONS = ("zstd", "lz4", "snappy")
_LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass(frozen=True)
class GraphSettings:
    """Join-engine settings.

    Notes:
        - history_enabled gates history-token appends on join.
        - rollback_partial compensates the completed half of a failed join/unjoin write pair.
        - resolve_joiners_as forces all_joiners() to resolve every row against one type name
          (legacy behavior); None resolves each row by its own f_type.
    """

    history_enabled: bool = True
    rollback_partial: bool = True
    resolve_joiners_as: str | None = None


@dataclass(frozen=True)
class StoreSettings:
    """
    Runtime settings for the joinable.io store.

    Attributes:
        root_dir (str): Directory holding collection snapshots.
        persist (bool): Load snapshots on open and write them on flush.
        compression (Literal["zstd","lz4","snappy"]): Parquet compression codec.
        row_group_size (int): Parquet row group size used for snapshots.
        strict_schema (bool): Enforce descriptor strictness on writes.
        log_level (Literal["debug","info","warning","error"]): Level applied to the
            "joinable" logger by configure_logging().
        graph (GraphSettings): Nested join-engine settings.

    Examples:
        >>> from joinable.io import StoreSettings
        >>> StoreSettings(root_dir="data", persist=False)  # doctest: +ELLIPSIS
        StoreSettings(...)
    """

    root_dir: str = CORE_ROOT_DIR
    persist: bool = False
    compression: Compression = CORE_COMPRESSION  # type: ignore[assignment]
    row_group_size: int = CORE_ROW_GROUP_SIZE
    strict_schema: bool = True
    log_level: LogLevel = "warning"
    graph: GraphSettings = field(default_factory=GraphSettings)

    def validate(self) -> StoreSettings:
        """
        Check value ranges, returning self.

        Raises:
            StoreConfigError: On an unknown codec or log level, or row_group_size < 1.
        """
        if self.compression not in _COMPRESSIONS:
            raise StoreConfigError(f"unsupported compression {self.compression!r}")
        if self.row_group_size < 1:
            raise StoreConfigError("row_group_size must be >= 1")
        if self.log_level not in _LOG_LEVELS:
            raise StoreConfigError(f"unsupported log_level {self.log_level!r}")
        return self

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: StoreSettings, cfg: dict[str, Any] | None) -> StoreSettings:
        """Apply a loose config mapping onto StoreSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        def _bool(v: Any) -> bool:
            if isinstance(v, bool):
                return v
            if isinstance(v, (int, float)):
                return bool(v)
            if isinstance(v, str):
                return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
            return False

        if "root_dir" in cfg and isinstance(cfg["root_dir"], str):
            s = replace(s, root_dir=cfg["root_dir"])

        if "persist" in cfg:
            s = replace(s, persist=_bool(cfg["persist"]))

        if "compression" in cfg and isinstance(cfg["compression"], str):
            comp = cfg["compression"].strip().lower()
            if comp in _COMPRESSIONS:
                s = replace(s, compression=comp)  # type: ignore[arg-type]

        if "row_group_size" in cfg:
            try:
                s = replace(s, row_group_size=int(cfg["row_group_size"]))
            except (TypeError, ValueError):
                pass

        if "strict_schema" in cfg:
            s = replace(s, strict_schema=_bool(cfg["strict_schema"]))

        if "log_level" in cfg and isinstance(cfg["log_level"], str):
            lvl = cfg["log_level"].strip().lower()
            if lvl in _LOG_LEVELS:
                s = replace(s, log_level=lvl)  # type: ignore[arg-type]

        # graph (nested mapping)
        if "graph" in cfg and isinstance(cfg["graph"], dict):
            g = cfg["graph"]
            curr = s.graph
            resolve_as = g.get("resolve_joiners_as", curr.resolve_joiners_as)
            if isinstance(resolve_as, str) and not resolve_as.strip():
                resolve_as = None
            s = replace(
                s,
                graph=replace(
                    curr,
                    history_enabled=_bool(g.get("history_enabled", curr.history_enabled)),
                    rollback_partial=_bool(g.get("rollback_partial", curr.rollback_partial)),
                    resolve_joiners_as=None if resolve_as is None else str(resolve_as),
                ),
            )

        return s

    @classmethod
    def from_env(cls, base: StoreSettings | None = None, prefix: str = "JOINABLE_STORE_") -> StoreSettings:
        """
        Build StoreSettings from environment variables. Precedence is env > base > defaults.

        Recognized variables:
            - JOINABLE_STORE_ROOT_DIR
            - JOINABLE_STORE_PERSIST (1/0/true/false/yes/no/on/off)
            - JOINABLE_STORE_COMPRESSION ("zstd" | "lz4" | "snappy")
            - JOINABLE_STORE_ROW_GROUP_SIZE
            - JOINABLE_STORE_STRICT_SCHEMA
            - JOINABLE_STORE_LOG_LEVEL
            - JOINABLE_STORE_GRAPH_HISTORY_ENABLED
            - JOINABLE_STORE_GRAPH_ROLLBACK_PARTIAL
            - JOINABLE_STORE_GRAPH_RESOLVE_JOINERS_AS
        """
        s = base or cls()

        def get(name: str) -> str | None:
            return os.getenv(prefix + name)

        mapping: dict[str, Any] = {}
        for key in ("root_dir", "persist", "compression", "strict_schema", "log_level"):
            v = get(key.upper())
            if v:
                mapping[key] = v
        v = get("ROW_GROUP_SIZE")
        if v:
            try:
                mapping["row_group_size"] = int(v)
            except ValueError:
                pass

        for key in ("history_enabled", "rollback_partial", "resolve_joiners_as"):
            v = get("GRAPH_" + key.upper())
            if v:
                mapping.setdefault("graph", {})[key] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> StoreSettings:
        """
        Build StoreSettings from a TOML file.

        Search order when `path` is None:
            1) ./joinable.toml (with either a top-level [store] table or direct keys)
            2) ./pyproject.toml under [tool.joinable.store]

        Returns defaults if no file is present or tomllib is unavailable.
        """
        s = cls()
        if tomllib is None:
            return s

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)  # type: ignore[arg-type]
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cfg: dict[str, Any] | None = None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "joinable.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("joinable", {}).get("store", {}) if isinstance(tool, dict) else None
            else:
                if "store" in data and isinstance(data["store"], dict):
                    cfg = data["store"]
                else:
                    cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> StoreSettings:
        """
        Load StoreSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search joinable.toml, pyproject.toml.

        Returns:
            StoreSettings

        Raises:
            StoreConfigError: If the merged settings are out of range.
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s.validate()


def configure_logging(settings: StoreSettings) -> logging.Logger:
    """
    Apply settings.log_level to the package logger.

    Only the "joinable" logger's level is set; handlers are left to the application.
    """
    logger = logging.getLogger("joinable")
    logger.setLevel(settings.log_level.upper())
    return logger
