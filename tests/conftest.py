"""Shared fixtures for gallery tests."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from dategallery.config.models import GalleryConfig, StorageSettings
from dategallery.store import GalleryStores, IncomingFile
from dategallery.uploads import UploadCoordinator

URL_PREFIX = "assets/images/gallery-dates"


def png_bytes(color: str = "red") -> bytes:
    """Return a tiny valid PNG image.

    Args:
        color: Fill color for the single pixel.

    Returns:
        bytes: Encoded PNG payload.
    """
    buffer = io.BytesIO()
    Image.new("RGB", (1, 1), color).save(buffer, format="PNG")
    return buffer.getvalue()


def image_file(name: str = "a.png", mime_type: str = "image/png") -> IncomingFile:
    """Return an incoming file part carrying PNG bytes."""
    return IncomingFile(name=name, content=png_bytes(), mime_type=mime_type)


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """Return a temporary site root."""
    root = tmp_path / "site"
    root.mkdir()
    return root


@pytest.fixture
def gallery_config(site_root: Path) -> GalleryConfig:
    """Return a configuration whose store and catalog live under ``site_root``."""
    return GalleryConfig(
        storage=StorageSettings(
            root=str(site_root / URL_PREFIX),
            url_prefix=URL_PREFIX,
            catalog_script=str(site_root / "image-locations.js"),
        )
    )


@pytest.fixture
def stores(gallery_config: GalleryConfig) -> GalleryStores:
    """Return stores wired from ``gallery_config``."""
    return GalleryStores.from_config(gallery_config)


@pytest.fixture
def coordinator(stores: GalleryStores, gallery_config: GalleryConfig) -> UploadCoordinator:
    """Return an upload coordinator over ``stores``."""
    return UploadCoordinator.from_stores(stores, gallery_config.uploads)
