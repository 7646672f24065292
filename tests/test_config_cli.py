"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from mediashelf.cli import cli
from mediashelf.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".mediashelf" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "view"], env=env)

    assert result.exit_code == 0
    assert "thumbnails:" in result.output
    assert _config_path(tmp_path).exists()


def test_config_view_applies_environment(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    env["MEDIASHELF__ARCHIVE__ROWS"] = "77"

    with_env = runner.invoke(cli, ["config", "view"], env=env)
    without_env = runner.invoke(cli, ["config", "view", "--no-env"], env=env)

    assert "77" in with_env.output
    assert "77" not in without_env.output


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "set", "library.page_size", "--value", "25"], env=env)

    assert result.exit_code == 0
    assert "25" in result.output

    manager = ConfigManager(config_path=_config_path(tmp_path), env={})
    assert manager.load().library.page_size == 25


def test_config_set_rejects_invalid_values(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "thumbnails.edge", "--value", "enormous"], env=env
    )

    assert result.exit_code != 0
    manager = ConfigManager(config_path=_config_path(tmp_path), env={})
    assert manager.load().thumbnails.edge == 128
