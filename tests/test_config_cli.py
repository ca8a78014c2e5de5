"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from dategallery.cli import cli
from dategallery.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("DATEGALLERY__")}
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".dategallery" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "view"], env=env)

    assert result.exit_code == 0
    assert "storage:" in result.output
    assert _config_path(tmp_path).exists()


def test_config_path_honours_config_option(tmp_path: Path) -> None:
    runner = CliRunner()
    custom = tmp_path / "custom.yaml"

    result = runner.invoke(cli, ["--config", str(custom), "config", "path"])

    assert result.exit_code == 0
    assert result.output.strip() == str(custom)


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "uploads.catalog_mode", "--value", "append"], env=env
    )

    assert result.exit_code == 0
    assert "Updated uploads.catalog_mode" in result.output

    config = ConfigManager(config_path=_config_path(tmp_path)).load(include_env=False)
    assert config.uploads.catalog_mode == "append"


def test_config_set_same_value_reports_no_change(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "set", "server.port", "--value", "5000"], env=env)

    assert result.exit_code == 0
    assert "No changes applied" in result.output


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "uploads.catalog_mode", "--value", "merge"], env=env
    )

    assert result.exit_code != 0
    config = ConfigManager(config_path=_config_path(tmp_path)).load(include_env=False)
    assert config.uploads.catalog_mode == "replace"
