"""Directory store, folder index, and catalog persistence."""

from __future__ import annotations

from dataclasses import dataclass

from dategallery.config.models import GalleryConfig

from .buckets import DATE_BUCKET_PATTERN, DirectoryStore, is_date_bucket, validate_date
from .catalog import (
    CatalogDocument,
    CatalogStore,
    parse_catalog_script,
    render_catalog_script,
    unrecognised_script_content,
)
from .errors import (
    BucketNotFoundError,
    EmptyBucketError,
    GalleryError,
    InvalidInputError,
    NoValidFilesError,
    PersistenceError,
)
from .folder_index import FolderIndex
from .models import FolderStatus, IncomingFile, ReconcileResult, UploadedImage, UploadResult


@dataclass(slots=True)
class GalleryStores:
    """The directory store together with the two catalog representations.

    Attributes:
        buckets: Directory store holding the date folders.
        index: Folder index writer.
        catalog: Catalog document and script writer.
    """

    buckets: DirectoryStore
    index: FolderIndex
    catalog: CatalogStore

    @classmethod
    def from_config(cls, config: GalleryConfig) -> "GalleryStores":
        """Wire the stores from configuration."""
        storage = config.storage
        buckets = DirectoryStore.from_settings(storage, config.uploads)
        return cls(
            buckets=buckets,
            index=FolderIndex(storage.folder_index_path(), buckets),
            catalog=CatalogStore(
                storage.catalog_data_path(),
                storage.catalog_script_path(),
                lock_root=buckets.root,
                variable=storage.script_variable,
            ),
        )


__all__ = [
    "BucketNotFoundError",
    "CatalogDocument",
    "CatalogStore",
    "DATE_BUCKET_PATTERN",
    "DirectoryStore",
    "EmptyBucketError",
    "FolderIndex",
    "FolderStatus",
    "GalleryError",
    "GalleryStores",
    "IncomingFile",
    "InvalidInputError",
    "NoValidFilesError",
    "PersistenceError",
    "ReconcileResult",
    "UploadResult",
    "UploadedImage",
    "is_date_bucket",
    "parse_catalog_script",
    "render_catalog_script",
    "unrecognised_script_content",
    "validate_date",
]
