"""Tests for relay.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from relay.core.result import Err, Ok
from relay.platform.process import ProcessError, run, run_attached


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("git", "status"), returncode=1, stdout="", stderr="fatal")
        assert str(error) == "git status failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("git", "-C", "/repo", "cherry-pick", "abc"),
            returncode=1,
            stdout="",
            stderr="conflict",
        )
        assert str(error) == "git -C /repo ... failed (exit 1)"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)
        assert isinstance(result, Ok)
        assert result.value.strip() == "hello"

    def test_failure_returns_process_error(self, tmp_path: Path) -> None:
        code = "import sys; sys.stderr.write('bad'); sys.exit(3)"
        result = run([sys.executable, "-c", code], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 3
        assert result.error.stderr == "bad"

    def test_missing_executable(self, tmp_path: Path) -> None:
        result = run(["definitely-not-a-real-binary-xyz"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == -1


class TestRunAttached:
    def test_success(self, tmp_path: Path) -> None:
        assert run_attached([sys.executable, "-c", "pass"], cwd=tmp_path) == Ok(None)

    def test_failure(self, tmp_path: Path) -> None:
        result = run_attached([sys.executable, "-c", "raise SystemExit(2)"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == 2
