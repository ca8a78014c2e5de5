"""Reconciliation job tests."""

from __future__ import annotations

import shutil

import pytest
from conftest import image_file

from dategallery.reconcile import EMPTY_FOLDER_NOTE, reconcile
from dategallery.store import BucketNotFoundError, GalleryStores
from dategallery.uploads import UploadCoordinator


def test_reconcile_reports_empty_folders_and_excludes_them(
    coordinator: UploadCoordinator, stores: GalleryStores
) -> None:
    coordinator.submit("2024-01-01", [image_file()])
    stores.buckets.ensure_bucket("2024-02-01")

    result = reconcile(stores.buckets, stores.index)

    assert result.index == ["2024-01-01"]
    assert result.folder_count == 1
    statuses = {status.name: status for status in result.folders}
    assert statuses["2024-01-01"].has_images is True
    assert statuses["2024-01-01"].note is None
    assert statuses["2024-02-01"].has_images is False
    assert statuses["2024-02-01"].note == EMPTY_FOLDER_NOTE


def test_reconcile_is_idempotent(coordinator: UploadCoordinator, stores: GalleryStores) -> None:
    coordinator.submit("2024-01-01", [image_file()])
    coordinator.submit("2023-12-24", [image_file()])

    first = reconcile(stores.buckets, stores.index)
    first_text = stores.index.path.read_text(encoding="utf-8")
    second = reconcile(stores.buckets, stores.index)

    assert first.index == second.index == ["2024-01-01", "2023-12-24"]
    assert stores.index.path.read_text(encoding="utf-8") == first_text


def test_reconcile_drops_manually_deleted_folders(
    coordinator: UploadCoordinator, stores: GalleryStores
) -> None:
    coordinator.submit("2024-01-01", [image_file()])
    coordinator.submit("2024-01-02", [image_file()])
    shutil.rmtree(stores.buckets.root / "2024-01-02")

    result = reconcile(stores.buckets, stores.index)

    assert result.index == ["2024-01-01"]
    assert stores.index.read() == ["2024-01-01"]


def test_reconcile_missing_root_raises(stores: GalleryStores) -> None:
    with pytest.raises(BucketNotFoundError):
        reconcile(stores.buckets, stores.index)
    assert not stores.index.path.exists()
