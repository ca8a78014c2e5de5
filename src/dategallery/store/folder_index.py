"""Folder index: the newline-delimited list of active date buckets."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .buckets import DirectoryStore, is_date_bucket, validate_date
from .fileio import atomic_write_text, read_text, store_lock

LOGGER = logging.getLogger(__name__)


def _normalise(dates: Iterable[str]) -> list[str]:
    return sorted(set(dates), reverse=True)


class FolderIndex:
    """Read and rewrite the folder index file for a directory store."""

    def __init__(self, path: Path, store: DirectoryStore) -> None:
        self._path = path
        self._store = store

    @property
    def path(self) -> Path:
        """Return the index file location."""
        return self._path

    def read(self) -> list[str]:
        """Return entries in file order, skipping blank lines."""
        if not self._path.exists():
            return []
        return [line.strip() for line in read_text(self._path).splitlines() if line.strip()]

    def write(self, dates: Iterable[str]) -> list[str]:
        """Overwrite the index with ``dates``, deduplicated and sorted newest first."""
        entries = _normalise(dates)
        body = "".join(f"{entry}\n" for entry in entries) or "\n"
        atomic_write_text(self._path, body)
        return entries

    def add_if_absent(self, date: str) -> list[str]:
        """Ensure ``date`` is listed, dropping entries whose folder has disappeared.

        Returns:
            list[str]: The index contents after the rewrite.
        """
        date = validate_date(date)
        with store_lock(self._store.root):
            current = self.read()
            kept = [
                entry
                for entry in current
                if is_date_bucket(entry) and self._store.bucket_exists(entry)
            ]
            dropped = len(current) - len(kept)
            if dropped:
                LOGGER.info("Dropped %d stale folder index entries", dropped)
            kept.append(date)
            return self.write(kept)

    def rebuild(self) -> list[str]:
        """Rebuild the index from buckets that currently hold images."""
        with store_lock(self._store.root):
            active = [name for name in self._store.iter_buckets() if self._store.has_images(name)]
            entries = self.write(active)
        LOGGER.info("Rebuilt folder index with %d entries", len(entries))
        return entries


__all__ = ["FolderIndex"]
