"""Upload coordination: screen a batch, store it, and update both catalogs."""

from __future__ import annotations

import io
import logging
import mimetypes
import re
import secrets
import time
from pathlib import Path
from typing import Iterable, Optional

from PIL import Image, UnidentifiedImageError

from dategallery.config.models import UploadOptions
from dategallery.store import (
    CatalogStore,
    DirectoryStore,
    FolderIndex,
    GalleryError,
    GalleryStores,
    IncomingFile,
    InvalidInputError,
    NoValidFilesError,
    PersistenceError,
    UploadedImage,
    UploadResult,
    validate_date,
)
from dategallery.store.fileio import store_lock

LOGGER = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_GENERIC_TYPES = frozenset({"", "application/octet-stream"})
_KNOWN_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/pjpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
}


def sanitize_filename(name: str, max_length: int = 120) -> str:
    """Strip characters outside ``[A-Za-z0-9._-]`` and cap the length, keeping the suffix."""
    cleaned = _UNSAFE_CHARS.sub("", Path(name.replace("\\", "/")).name)
    if len(cleaned) <= max_length:
        return cleaned
    suffix = Path(cleaned).suffix[:16]
    return cleaned[: max_length - len(suffix)] + suffix


class UploadCoordinator:
    """Accept image batches for a date bucket and keep the catalogs in step."""

    def __init__(
        self,
        buckets: DirectoryStore,
        index: FolderIndex,
        catalog: CatalogStore,
        options: UploadOptions | None = None,
    ) -> None:
        self.buckets = buckets
        self.index = index
        self.catalog = catalog
        self.options = options or UploadOptions()

    @classmethod
    def from_stores(
        cls, stores: GalleryStores, options: UploadOptions | None = None
    ) -> "UploadCoordinator":
        return cls(stores.buckets, stores.index, stores.catalog, options)

    def submit(self, date: str | None, files: Iterable[IncomingFile] | None) -> UploadResult:
        """Store ``files`` under ``date`` and update the folder index and catalog.

        Args:
            date: Target bucket in ``YYYY-MM-DD`` form.
            files: Submitted file parts.

        Returns:
            UploadResult: Stored files plus skipped, failed, and warning notes.

        Raises:
            InvalidInputError: If the date is malformed or no files were sent.
            NoValidFilesError: If screening rejected every file.
            PersistenceError: If the bucket cannot be created or no file could be written.
        """
        date = validate_date(date)
        batch = list(files or [])
        if not batch:
            raise InvalidInputError("No files were uploaded")

        result = UploadResult(date=date)
        accepted: list[tuple[IncomingFile, str]] = []
        for incoming in batch:
            extension, reason = self._screen(incoming)
            if extension is None:
                LOGGER.info("Skipped %s for %s: %s", incoming.name, date, reason)
                result.skipped.append(f"{incoming.name}: {reason}")
                continue
            accepted.append((incoming, extension))

        if not accepted:
            raise NoValidFilesError(
                "Failed to upload any files. Please check file types and permissions."
            )

        self.buckets.ensure_bucket(date)
        for incoming, extension in accepted:
            stored_name = self._unique_name(incoming.name, extension)
            try:
                self.buckets.write_file(date, stored_name, incoming.content)
            except PersistenceError as exc:
                LOGGER.warning("Upload of %s to %s failed: %s", incoming.name, date, exc)
                result.failed.append(f"{incoming.name}: {exc}")
                continue
            result.files.append(
                UploadedImage(
                    name=incoming.name,
                    path=self.buckets.relative_path(date, stored_name),
                    stored_name=stored_name,
                )
            )

        if not result.files:
            raise PersistenceError("Failed to store any of the uploaded files.")

        self._update_catalogs(result)
        LOGGER.info(
            "Stored %d image(s) for %s (%d skipped, %d failed)",
            result.file_count,
            date,
            len(result.skipped),
            len(result.failed),
        )
        return result

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _update_catalogs(self, result: UploadResult) -> None:
        # Stored files are never rolled back; catalog failures become warnings.
        with store_lock(self.buckets.root):
            try:
                self.index.add_if_absent(result.date)
            except GalleryError as exc:
                LOGGER.error("Folder index update failed for %s: %s", result.date, exc)
                result.warnings.append(f"Folder index not updated: {exc}")
            try:
                self.catalog.upsert(result.date, result.file_paths, mode=self.options.catalog_mode)
            except GalleryError as exc:
                LOGGER.error("Catalog update failed for %s: %s", result.date, exc)
                result.warnings.append(f"Catalog not updated: {exc}")

    def _screen(self, incoming: IncomingFile) -> tuple[Optional[str], str]:
        """Return the extension to store ``incoming`` under, or None and a reason."""
        if not incoming.content:
            return None, "empty file"

        mime = incoming.mime_type.split(";", 1)[0].strip().lower()
        if mime not in _GENERIC_TYPES and not mime.startswith("image/"):
            return None, "not an image"

        extension = self._extension_for(incoming.name, mime)
        if extension is None:
            if mime in _GENERIC_TYPES:
                return None, "not an image"
            return None, f"unsupported image type {mime}"

        if self.options.verify_content and extension != "svg":
            if not _decodes_as_image(incoming.content):
                return None, "content is not a readable image"

        return extension, ""

    def _extension_for(self, name: str, mime: str) -> Optional[str]:
        allowed = self.buckets.image_extensions
        suffix = Path(name).suffix.lower().lstrip(".")
        if suffix in allowed:
            return suffix
        if mime in _GENERIC_TYPES:
            return None
        guessed = _KNOWN_EXTENSIONS.get(mime)
        if guessed is None:
            guessed = (mimetypes.guess_extension(mime) or "").lstrip(".")
        return guessed if guessed in allowed else None

    def _unique_name(self, original: str, extension: str) -> str:
        sanitized = sanitize_filename(original, self.options.max_name_length)
        if not self.buckets.is_image_name(sanitized):
            sanitized = f"{sanitized or 'image'}.{extension}"
        token = f"{time.time_ns():x}{secrets.token_hex(3)}"
        return f"{token}_{sanitized}"


def _decodes_as_image(content: bytes) -> bool:
    try:
        with Image.open(io.BytesIO(content)) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return False
    return True


__all__ = ["UploadCoordinator", "sanitize_filename"]
