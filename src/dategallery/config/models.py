"""Configuration models describing gallery settings."""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_IMAGE_EXTENSIONS = ["jpg", "jpeg", "png", "gif", "webp", "svg"]


def default_url_prefix(root: Path) -> str:
    """Return ``root`` as a client-facing prefix relative to the working directory.

    Raises:
        ValueError: If ``root`` is absolute and lies outside the working directory.
    """
    if root.is_absolute():
        try:
            root = root.resolve().relative_to(Path.cwd().resolve())
        except ValueError as exc:
            raise ValueError(
                f"storage.url_prefix is required when storage.root ({root}) "
                "is outside the working directory"
            ) from exc
    prefix = root.as_posix()
    return "" if prefix == "." else prefix.rstrip("/")


class GalleryBaseModel(BaseModel):
    """Shared configuration for gallery Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class StorageSettings(GalleryBaseModel):
    """Locations of the directory store and its catalog files.

    Relative paths are resolved against the working directory of the process,
    which is expected to be the site root.

    Attributes:
        root: Directory holding one folder per date bucket.
        url_prefix: Prefix used for paths reported to clients and written to the
            catalog. Defaults to ``root`` relative to the working directory;
            required when ``root`` lies outside it.
        folder_index: Folder index text file. Defaults to ``<root>/folder_list.txt``.
        catalog_data: Structured catalog document. Defaults to ``<root>/catalog.json``.
        catalog_script: Browser script rendered from the catalog.
        script_variable: Identifier the rendered script assigns the mapping to.
    """

    root: str = "assets/images/gallery-dates"
    url_prefix: Optional[str] = None
    folder_index: Optional[str] = None
    catalog_data: Optional[str] = None
    catalog_script: str = "image-locations.js"
    script_variable: str = "imageLocations"

    @field_validator("script_variable")
    @classmethod
    def _check_identifier(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"{value!r} is not a valid script identifier")
        return value

    def root_path(self) -> Path:
        """Return the directory store root."""
        return Path(self.root).expanduser()

    def folder_index_path(self) -> Path:
        """Return the folder index file location."""
        if self.folder_index:
            return Path(self.folder_index).expanduser()
        return self.root_path() / "folder_list.txt"

    def catalog_data_path(self) -> Path:
        """Return the structured catalog document location."""
        if self.catalog_data:
            return Path(self.catalog_data).expanduser()
        return self.root_path() / "catalog.json"

    def catalog_script_path(self) -> Path:
        """Return the rendered catalog script location."""
        return Path(self.catalog_script).expanduser()

    @model_validator(mode="after")
    def _check_public_prefix(self) -> "StorageSettings":
        self.public_prefix()
        return self

    def public_prefix(self) -> str:
        """Return the prefix used for client-facing image paths.

        Without ``url_prefix`` the root is reported relative to the working
        directory, so absolute server paths never reach clients.

        Raises:
            ValueError: If ``url_prefix`` is unset and the root lies outside the
                working directory.
        """
        if self.url_prefix is not None:
            return self.url_prefix.replace("\\", "/").rstrip("/")
        return default_url_prefix(Path(self.root.replace("\\", "/")).expanduser())


class UploadOptions(GalleryBaseModel):
    """Settings governing upload screening and catalog updates.

    Attributes:
        image_extensions: Extensions recognised as images (lowercase, no dot).
        catalog_mode: Whether a repeat upload replaces or extends a date's catalog entry.
        verify_content: Whether payloads must decode as images before being stored.
        max_name_length: Maximum length kept from a sanitized original filename.
    """

    image_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_IMAGE_EXTENSIONS))
    catalog_mode: Literal["replace", "append"] = "replace"
    verify_content: bool = False
    max_name_length: int = Field(default=120, ge=8)

    @field_validator("image_extensions")
    @classmethod
    def _normalise_extensions(cls, value: List[str]) -> List[str]:
        normalised = [item.strip().lower().lstrip(".") for item in value if item.strip()]
        if not normalised:
            raise ValueError("at least one image extension is required")
        return list(dict.fromkeys(normalised))


class ServerSettings(GalleryBaseModel):
    """HTTP server options.

    Attributes:
        host: Interface to bind.
        port: TCP port to listen on.
        max_request_mb: Upper bound on a request body, in megabytes.
        debug: Whether to run Flask in debug mode.
    """

    host: str = "127.0.0.1"
    port: int = 5000
    max_request_mb: int = Field(default=100, ge=1)
    debug: bool = False


class LoggingSettings(GalleryBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file path; console-only logging when unset.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "INFO"
    file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(GalleryBaseModel):
    """CLI behavior defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
    """

    quiet_default: bool = False


class GalleryConfig(GalleryBaseModel):
    """Top-level configuration struct for the gallery.

    Attributes:
        storage: Directory store and catalog locations.
        uploads: Upload screening and catalog update settings.
        server: HTTP server settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    storage: StorageSettings = Field(default_factory=StorageSettings)
    uploads: UploadOptions = Field(default_factory=UploadOptions)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "DEFAULT_IMAGE_EXTENSIONS",
    "default_url_prefix",
    "GalleryBaseModel",
    "StorageSettings",
    "UploadOptions",
    "ServerSettings",
    "LoggingSettings",
    "CLIOptions",
    "GalleryConfig",
]
