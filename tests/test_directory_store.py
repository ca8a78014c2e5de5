"""Directory store tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from dategallery.store import (
    BucketNotFoundError,
    DirectoryStore,
    EmptyBucketError,
    InvalidInputError,
    PersistenceError,
    is_date_bucket,
    validate_date,
)


def _store(tmp_path: Path) -> DirectoryStore:
    """Return a store rooted in a temporary directory.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        DirectoryStore: Store with a fixed client-facing prefix.
    """
    return DirectoryStore(tmp_path / "dates", url_prefix="assets/dates")


@pytest.mark.parametrize("value", ["2024-01-01", "2024-13-40", "0000-00-00"])
def test_is_date_bucket_accepts_digit_shape(value: str) -> None:
    assert is_date_bucket(value)


@pytest.mark.parametrize("value", ["01-01-2024", "2024-1-01", "2024-01-01x", "", "2024/01/01"])
def test_is_date_bucket_rejects_other_shapes(value: str) -> None:
    assert not is_date_bucket(value)


def test_validate_date_trims_and_rejects_missing() -> None:
    assert validate_date(" 2024-02-03 ") == "2024-02-03"
    with pytest.raises(InvalidInputError):
        validate_date(None)
    with pytest.raises(InvalidInputError):
        validate_date("   ")


def test_list_images_missing_bucket_raises_not_found(tmp_path: Path) -> None:
    store = _store(tmp_path)

    with pytest.raises(BucketNotFoundError):
        store.list_images("2024-01-01")


def test_list_images_empty_bucket_raises_empty(tmp_path: Path) -> None:
    store = _store(tmp_path)
    folder = store.ensure_bucket("2024-01-01")
    (folder / "notes.txt").write_text("not an image", encoding="utf-8")

    with pytest.raises(EmptyBucketError):
        store.list_images("2024-01-01")
    assert store.bucket_exists("2024-01-01")
    assert not store.has_images("2024-01-01")


def test_list_images_returns_prefixed_image_paths(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.ensure_bucket("2024-01-01")
    store.write_file("2024-01-01", "b.JPG", b"jpg")
    store.write_file("2024-01-01", "a.png", b"png")
    store.write_file("2024-01-01", "skip.txt", b"txt")

    images = store.list_images("2024-01-01")

    assert sorted(images) == ["assets/dates/2024-01-01/a.png", "assets/dates/2024-01-01/b.JPG"]


def test_write_file_refuses_to_overwrite(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.ensure_bucket("2024-01-01")
    store.write_file("2024-01-01", "a.png", b"first")

    with pytest.raises(PersistenceError):
        store.write_file("2024-01-01", "a.png", b"second")
    assert (tmp_path / "dates" / "2024-01-01" / "a.png").read_bytes() == b"first"


def test_iter_buckets_skips_non_date_entries(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.ensure_bucket("2024-01-01")
    store.ensure_bucket("2023-12-31")
    (tmp_path / "dates" / "misc").mkdir()
    (tmp_path / "dates" / "2022-01-01").write_text("a file, not a folder", encoding="utf-8")

    assert sorted(store.iter_buckets()) == ["2023-12-31", "2024-01-01"]


def test_iter_buckets_missing_root_raises(tmp_path: Path) -> None:
    store = _store(tmp_path)

    with pytest.raises(BucketNotFoundError):
        list(store.iter_buckets())


def test_default_prefix_uses_root() -> None:
    store = DirectoryStore(Path("assets/images/dates"))

    assert store.relative_path("2024-01-01", "x.png") == "assets/images/dates/2024-01-01/x.png"


def test_absolute_root_prefix_is_relative_to_working_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    store = DirectoryStore(tmp_path / "assets" / "dates")

    assert store.relative_path("2024-01-01", "x.png") == "assets/dates/2024-01-01/x.png"


def test_absolute_root_outside_working_directory_needs_prefix(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    site = tmp_path / "site"
    site.mkdir()
    monkeypatch.chdir(site)

    with pytest.raises(ValueError):
        DirectoryStore(tmp_path / "elsewhere")
