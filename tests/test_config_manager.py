"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from dategallery.config import (
    ConfigError,
    ConfigManager,
    GalleryConfig,
    flatten_for_env,
    resolve_with_precedence,
)
from dategallery.config.models import StorageSettings


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager()


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".dategallery" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "dategallery configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, GalleryConfig)
    assert config.uploads.catalog_mode == "replace"


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"storage": {"root": "media/dates"}, "server": {"port": 8080}})

    env = {"DATEGALLERY__SERVER__PORT": "9000", "DATEGALLERY__UPLOADS__CATALOG_MODE": "append"}
    cli = {"server.port": 7000}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.storage.root == "media/dates"
    assert config.uploads.catalog_mode == "append"
    assert config.server.port == 7000


def test_env_overrides_beat_file_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"server": {"port": 8080}})

    config = manager.load(env_overrides={"DATEGALLERY__SERVER__PORT": "9000"})

    assert config.server.port == 9000


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_flatten_for_env_renders_defaults() -> None:
    flat = flatten_for_env(GalleryConfig())

    assert flat["DATEGALLERY__STORAGE__SCRIPT_VARIABLE"] == "imageLocations"
    assert flat["DATEGALLERY__SERVER__MAX_REQUEST_MB"] == "100"
    assert flat["DATEGALLERY__STORAGE__FOLDER_INDEX"] == "null"
    assert flat["DATEGALLERY__UPLOADS__IMAGE_EXTENSIONS"].startswith("[jpg, jpeg")


@pytest.mark.parametrize(
    "overrides",
    [
        {"uploads": {"catalog_mode": "merge"}},
        {"storage": {"script_variable": "not an identifier"}},
        {"uploads": {"image_extensions": []}},
        {"unknown": {"key": 1}},
    ],
)
def test_resolve_with_precedence_invalid_value_raises(overrides: dict) -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(defaults=GalleryConfig(), file_overrides=overrides)


def test_storage_paths_default_under_root() -> None:
    storage = GalleryConfig().storage

    assert storage.folder_index_path() == Path("assets/images/gallery-dates/folder_list.txt")
    assert storage.catalog_data_path() == Path("assets/images/gallery-dates/catalog.json")
    assert storage.public_prefix() == "assets/images/gallery-dates"


def test_image_extensions_are_normalised() -> None:
    config = resolve_with_precedence(
        defaults=GalleryConfig(),
        cli_overrides={"uploads.image_extensions": [".PNG", "jpg", "png"]},
    )

    assert config.uploads.image_extensions == ["png", "jpg"]


def test_absolute_root_is_reported_relative_to_working_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    storage = StorageSettings(root=str(tmp_path / "assets" / "dates"))

    assert storage.public_prefix() == "assets/dates"


def test_absolute_root_outside_working_directory_requires_url_prefix(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    site = tmp_path / "site"
    site.mkdir()
    monkeypatch.chdir(site)
    outside = str(tmp_path / "elsewhere" / "dates")

    with pytest.raises(ConfigError):
        resolve_with_precedence(defaults=GalleryConfig(), cli_overrides={"storage.root": outside})

    config = resolve_with_precedence(
        defaults=GalleryConfig(),
        cli_overrides={"storage.root": outside, "storage.url_prefix": "media/dates"},
    )
    assert config.storage.public_prefix() == "media/dates"
