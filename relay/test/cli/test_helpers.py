from __future__ import annotations

from pathlib import Path

import pytest
import typer

from relay.cli.commands._helpers import (
    execution_options,
    exit_on_error,
    relay_error_code,
    require_terminal_or_yes,
)
from relay.cli.context import CLIContext
from relay.core.config import Config
from relay.core.errors import ErrorCode
from relay.core.result import Err, Ok
from relay.git.memory import InMemoryBackend
from relay.git.models import GitError
from relay.output.console import MockConsole
from relay.services.errors import RelayError, RelayErrorKind, from_git_error


def _ctx(tmp_path: Path) -> CLIContext:
    return CLIContext(
        root=tmp_path, backend=InMemoryBackend(), config=Config(), console=MockConsole()
    )


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        ("invalid_input", ErrorCode.USER_ERROR),
        ("empty_plan", ErrorCode.USER_ERROR),
        ("unknown_remote", ErrorCode.ENV_ERROR),
        ("dirty_worktree", ErrorCode.ENV_ERROR),
        ("not_enough_remotes", ErrorCode.ENV_ERROR),
        ("ref_missing", ErrorCode.ENV_ERROR),
        ("checkout_failed", ErrorCode.GIT_ERROR),
        ("git_failed", ErrorCode.GIT_ERROR),
    ],
)
def test_relay_error_code(kind: RelayErrorKind, code: ErrorCode) -> None:
    assert relay_error_code(RelayError(kind=kind, message="x")) == code


def test_from_git_error() -> None:
    error = from_git_error(GitError(command="push", message="rejected"), hint="fetch first")
    assert error == RelayError(kind="git_failed", message="git push: rejected", hint="fetch first")


def test_exit_on_error_prints_hint(tmp_path: Path) -> None:
    ctx = _ctx(tmp_path)
    error = RelayError(kind="dirty_worktree", message="dirty", hint="stash first")

    with pytest.raises(typer.Exit) as exc:
        exit_on_error(Err(error), ctx)

    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.messages == ["error: dirty", "hint: stash first"]


def test_exit_on_error_returns_value(tmp_path: Path) -> None:
    assert exit_on_error(Ok(3), _ctx(tmp_path)) == 3


def test_require_terminal_or_yes(tmp_path: Path) -> None:
    ctx = _ctx(tmp_path)
    require_terminal_or_yes(ctx, yes=True, interactive=False)
    require_terminal_or_yes(ctx, yes=False, interactive=True)
    with pytest.raises(typer.Exit):
        require_terminal_or_yes(ctx, yes=False, interactive=False)


def test_execution_options() -> None:
    options = execution_options(yes=True, dry_run=False, force=True)
    assert (options.skip_confirm, options.dry_run, options.allow_force) == (True, False, True)
