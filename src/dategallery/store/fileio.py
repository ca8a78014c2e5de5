"""Atomic file writes and per-store critical sections."""

from __future__ import annotations

import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .errors import PersistenceError

_LOCKS: dict[Path, threading.RLock] = {}
_REGISTRY_LOCK = threading.Lock()


def _lock_for(root: Path) -> threading.RLock:
    key = root.expanduser().resolve()
    with _REGISTRY_LOCK:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = threading.RLock()
            _LOCKS[key] = lock
        return lock


@contextmanager
def store_lock(root: Path) -> Iterator[None]:
    """Hold the critical section guarding catalog files for ``root``.

    The lock is re-entrant so an upload can hold it across the folder index and
    catalog updates while each writer also acquires it.
    """
    lock = _lock_for(root)
    with lock:
        yield


def atomic_write_text(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` via a temporary sibling and ``os.replace``.

    Raises:
        PersistenceError: If the file cannot be written.
    """
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        raise PersistenceError(f"Failed to write {path}: {exc}") from exc
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass


def read_text(path: Path) -> str:
    """Return the contents of ``path``.

    Raises:
        PersistenceError: If the file exists but cannot be read.
    """
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Failed to read {path}: {exc}") from exc


__all__ = ["atomic_write_text", "read_text", "store_lock"]
