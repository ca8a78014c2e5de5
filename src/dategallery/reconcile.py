"""Reconciliation of the folder index with the directory store."""

from __future__ import annotations

import logging

from dategallery.store import DirectoryStore, FolderIndex, FolderStatus, ReconcileResult
from dategallery.store.fileio import store_lock

LOGGER = logging.getLogger(__name__)

EMPTY_FOLDER_NOTE = "Directory exists but contains no images"


def reconcile(buckets: DirectoryStore, index: FolderIndex) -> ReconcileResult:
    """Rebuild the folder index and report the status of every date folder.

    Folders without images stay on disk but are left out of the index. Running
    this twice without intervening changes produces the same index.

    Raises:
        BucketNotFoundError: If the store root does not exist.
        PersistenceError: If the index cannot be written.
    """
    with store_lock(buckets.root):
        folders = []
        for name in buckets.iter_buckets():
            if buckets.has_images(name):
                folders.append(FolderStatus(name=name, has_images=True))
            else:
                folders.append(FolderStatus(name=name, has_images=False, note=EMPTY_FOLDER_NOTE))
        entries = index.rebuild()

    empty = [status.name for status in folders if not status.has_images]
    if empty:
        LOGGER.info("Folders without images left out of the index: %s", ", ".join(empty))
    return ReconcileResult(folders=folders, index=entries)


__all__ = ["EMPTY_FOLDER_NOTE", "reconcile"]
