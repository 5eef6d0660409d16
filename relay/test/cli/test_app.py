from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from relay import __version__
from relay.cli.app import app
from relay.cli.context import CONFIG_ENV, REPO_ENV
from relay.core.errors import ErrorCode

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("release", "interactive", "sync", "tools"):
        assert name in result.output


def test_tools_help() -> None:
    result = runner.invoke(app, ["tools", "--help"])
    assert result.exit_code == 0
    for name in ("tree", "status", "log", "revert", "goto", "compare"):
        assert name in result.output


def test_missing_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(CONFIG_ENV, "")
    result = runner.invoke(app, ["--config", str(tmp_path / "nope.toml"), "tools", "status"])
    assert result.exit_code == int(ErrorCode.USER_ERROR)


def test_repo_must_be_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(REPO_ENV, "")
    result = runner.invoke(app, ["--repo", str(tmp_path / "missing"), "tools", "status"])
    assert result.exit_code == int(ErrorCode.USER_ERROR)


def test_not_a_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(REPO_ENV, "")
    monkeypatch.setenv(CONFIG_ENV, "")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path.parent))

    result = runner.invoke(app, ["--repo", str(tmp_path), "tools", "status"])

    assert result.exit_code == int(ErrorCode.ENV_ERROR)
