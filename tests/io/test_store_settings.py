from __future__ import annotations

import logging
from pathlib import Path

import pytest

from joinable.io.config import GraphSettings, StoreSettings, configure_logging
from joinable.io.errors import StoreConfigError

_ENV_KEYS = [
    "JOINABLE_STORE_ROOT_DIR",
    "JOINABLE_STORE_PERSIST",
    "JOINABLE_STORE_COMPRESSION",
    "JOINABLE_STORE_ROW_GROUP_SIZE",
    "JOINABLE_STORE_STRICT_SCHEMA",
    "JOINABLE_STORE_LOG_LEVEL",
    "JOINABLE_STORE_GRAPH_HISTORY_ENABLED",
    "JOINABLE_STORE_GRAPH_ROLLBACK_PARTIAL",
    "JOINABLE_STORE_GRAPH_RESOLVE_JOINERS_AS",
]


def _clear_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write_joinable_toml(tmp: Path, content: str) -> Path:
    p = tmp / "joinable.toml"
    p.write_text(content)
    return p


def test_store_settings_precedence_env_over_toml(tmp_path: Path, monkeypatch) -> None:
    # Arrange TOML
    _write_joinable_toml(
        tmp_path,
        """
        [store]
        root_dir = "tmp_out_toml"
        row_group_size = 256
        compression = "lz4"

        [store.graph]
        rollback_partial = false
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    # Arrange ENV that should override TOML
    monkeypatch.setenv("JOINABLE_STORE_ROOT_DIR", "tmp_out_env")
    monkeypatch.setenv("JOINABLE_STORE_ROW_GROUP_SIZE", "512")
    monkeypatch.setenv("JOINABLE_STORE_GRAPH_ROLLBACK_PARTIAL", "yes")

    # Act
    s = StoreSettings.load()

    # Assert precedence: env > TOML
    assert s.root_dir == "tmp_out_env"
    assert s.row_group_size == 512
    assert s.compression == "lz4"  # TOML only
    assert s.graph.rollback_partial is True


def test_store_settings_from_toml_when_no_env(tmp_path: Path, monkeypatch) -> None:
    _write_joinable_toml(
        tmp_path,
        """
        [store]
        root_dir = "tmp_out_toml"
        persist = true
        compression = "snappy"
        strict_schema = false
        log_level = "debug"

        [store.graph]
        history_enabled = false
        resolve_joiners_as = "user"
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = StoreSettings.load()

    assert s.root_dir == "tmp_out_toml"
    assert s.persist is True
    assert s.compression == "snappy"
    assert s.strict_schema is False
    assert s.log_level == "debug"
    assert s.graph == GraphSettings(history_enabled=False, rollback_partial=True, resolve_joiners_as="user")


def test_store_settings_from_pyproject(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
        [tool.joinable.store]
        root_dir = "from_pyproject"
        """.strip()
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    assert StoreSettings.load().root_dir == "from_pyproject"


def test_store_settings_defaults_when_no_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = StoreSettings.load()

    assert s == StoreSettings()
    assert s.root_dir == "data"
    assert s.compression == "zstd"
    assert s.persist is False
    assert s.graph.resolve_joiners_as is None


def test_invalid_values_are_ignored_by_loaders(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("JOINABLE_STORE_COMPRESSION", "gzip")
    monkeypatch.setenv("JOINABLE_STORE_ROW_GROUP_SIZE", "many")

    s = StoreSettings.load()

    assert s.compression == "zstd"
    assert s.row_group_size == StoreSettings().row_group_size


def test_validate_rejects_out_of_range_values() -> None:
    with pytest.raises(StoreConfigError):
        StoreSettings(row_group_size=0).validate()
    with pytest.raises(StoreConfigError):
        StoreSettings(compression="gzip").validate()  # type: ignore[arg-type]
    with pytest.raises(StoreConfigError):
        StoreSettings(log_level="loud").validate()  # type: ignore[arg-type]


def test_configure_logging_sets_package_level() -> None:
    logger = configure_logging(StoreSettings(log_level="debug"))
    try:
        assert logger.name == "joinable"
        assert logger.level == logging.DEBUG
        assert logging.getLogger("joinable.graph.joiner").getEffectiveLevel() == logging.DEBUG
    finally:
        logger.setLevel(logging.NOTSET)
