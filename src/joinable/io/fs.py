"""
Filesystem helpers for joinable.io (file protocol baseline).

Responsibilities
- Provide a minimal stdlib-only abstraction for the filesystem operations used by snapshots:
  directory creation, fsync, atomic renames, listing and best-effort cleanup.
- Establish clear semantics for the atomic write path: tmp write → fsync → atomic rename.

Notes
- Atomicity via os.replace is guaranteed only when src and dst reside on the same filesystem.
- All helpers are synchronous; the store serializes its own writers.
"""

from __future__ import annotations

import os


def makedirs(path: str, exist_ok: bool = True) -> None:
    """
    Create directories recursively.

    Args:
        path (str): Directory path to create.
        exist_ok (bool): Do not error if the directory already exists.
    """
    os.makedirs(path, exist_ok=exist_ok)


def fsync_path(path: str) -> None:
    """
    Open a path read-only and fsync its file descriptor.

    Notes:
        Used after pyarrow wrote the file directly, before the atomic rename.
    """
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def rename_atomic(src: str, dst: str) -> None:
    """
    Atomically rename src -> dst on the same filesystem.

    Notes:
        Uses os.replace, which is atomic only if src and dst reside on the same filesystem.
    """
    os.replace(src, dst)


def remove_if_exists(path: str) -> bool:
    """
    Remove a file if present.

    Returns:
        bool: True if a file was removed.
    """
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    return True


def listdir(path: str) -> list[str]:
    """
    List entries in a directory (non-recursive) as full paths.

    Returns:
        list[str]: Sorted full paths of entries; [] if the directory does not exist.
    """
    try:
        names = os.listdir(path)
    except FileNotFoundError:
        return []
    return [os.path.join(path, name) for name in sorted(names)]
