"""Directory store holding one folder of images per date bucket."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterable, Iterator

from dategallery.config.models import (
    DEFAULT_IMAGE_EXTENSIONS,
    StorageSettings,
    UploadOptions,
    default_url_prefix,
)

from .errors import BucketNotFoundError, EmptyBucketError, InvalidInputError, PersistenceError

LOGGER = logging.getLogger(__name__)

DATE_BUCKET_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_date_bucket(value: str) -> bool:
    """Return True when ``value`` looks like ``YYYY-MM-DD``.

    Only the 4-2-2 digit shape is checked; ``2024-13-40`` is a valid bucket.
    """
    return bool(DATE_BUCKET_PATTERN.match(value))


def validate_date(value: str | None) -> str:
    """Return the trimmed bucket name or raise ``InvalidInputError``."""
    if value is None or not value.strip():
        raise InvalidInputError("Missing required parameter: date")
    date = value.strip()
    if not is_date_bucket(date):
        raise InvalidInputError(f"Invalid date format. Expected YYYY-MM-DD, got: {date}")
    return date


class DirectoryStore:
    """Filesystem area holding per-date image folders."""

    def __init__(
        self,
        root: Path,
        *,
        url_prefix: str | None = None,
        image_extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
    ) -> None:
        self._root = root
        self._prefix = (
            url_prefix if url_prefix is not None else default_url_prefix(root)
        ).rstrip("/")
        self._extensions = frozenset(ext.lower().lstrip(".") for ext in image_extensions)

    @classmethod
    def from_settings(cls, storage: StorageSettings, uploads: UploadOptions) -> "DirectoryStore":
        """Build a store from configuration sections."""
        return cls(
            storage.root_path(),
            url_prefix=storage.public_prefix(),
            image_extensions=uploads.image_extensions,
        )

    @property
    def root(self) -> Path:
        """Return the store root directory."""
        return self._root

    @property
    def image_extensions(self) -> frozenset[str]:
        """Return recognised image extensions (lowercase, no dot)."""
        return self._extensions

    def is_image_name(self, name: str) -> bool:
        """Return True when ``name`` carries a recognised image extension."""
        suffix = Path(name).suffix.lower().lstrip(".")
        return bool(suffix) and suffix in self._extensions

    def bucket_path(self, date: str) -> Path:
        """Return the folder for ``date`` without touching the filesystem."""
        return self._root / validate_date(date)

    def relative_path(self, date: str, stored_name: str) -> str:
        """Return the client-facing path of a stored file."""
        if not self._prefix:
            return f"{date}/{stored_name}"
        return f"{self._prefix}/{date}/{stored_name}"

    def ensure_bucket(self, date: str) -> Path:
        """Create the folder for ``date`` if needed and return it."""
        folder = self.bucket_path(date)
        if folder.is_dir():
            return folder
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(
                f"Failed to create date upload directory {folder}: {exc}"
            ) from exc
        LOGGER.debug("Created bucket folder %s", folder)
        return folder

    def write_file(self, date: str, stored_name: str, content: bytes) -> Path:
        """Persist ``content`` as a new file inside the bucket.

        Raises:
            PersistenceError: If the file already exists or cannot be written.
        """
        target = self.bucket_path(date) / stored_name
        try:
            with target.open("xb") as handle:
                handle.write(content)
        except OSError as exc:
            raise PersistenceError(f"Failed to store {stored_name}: {exc}") from exc
        return target

    def bucket_exists(self, date: str) -> bool:
        """Return True when the folder for ``date`` exists."""
        return self.bucket_path(date).is_dir()

    def has_images(self, date: str) -> bool:
        """Return True when the bucket folder holds at least one recognised image."""
        return next(self._image_files(self.bucket_path(date)), None) is not None

    def list_images(self, date: str) -> list[str]:
        """Return client-facing paths of readable images stored for ``date``.

        Raises:
            InvalidInputError: If ``date`` is not a bucket name.
            BucketNotFoundError: If the bucket folder does not exist.
            EmptyBucketError: If the folder holds no readable images.
        """
        folder = self.bucket_path(date)
        if not folder.is_dir():
            raise BucketNotFoundError(f"Directory does not exist: {self.relative_path(date, '')}")

        images = [
            self.relative_path(folder.name, path.name)
            for path in self._image_files(folder)
            if os.access(path, os.R_OK)
        ]
        if not images:
            raise EmptyBucketError(f"No images found in directory: {self.relative_path(date, '')}")
        return images

    def iter_buckets(self) -> Iterator[str]:
        """Yield names of folders under the root that look like date buckets.

        Raises:
            BucketNotFoundError: If the store root does not exist.
        """
        if not self._root.is_dir():
            raise BucketNotFoundError(f"Base directory does not exist: {self._root}")
        for entry in sorted(self._root.iterdir()):
            if entry.is_dir() and is_date_bucket(entry.name):
                yield entry.name

    def _image_files(self, folder: Path) -> Iterator[Path]:
        if not folder.is_dir():
            return
        for path in sorted(folder.iterdir()):
            if path.is_file() and self.is_image_name(path.name):
                yield path


__all__ = ["DATE_BUCKET_PATTERN", "DirectoryStore", "is_date_bucket", "validate_date"]
