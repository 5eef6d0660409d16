"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from relay.core.errors import ErrorCode
from relay.core.result import Err, Result
from relay.output.console import Style
from relay.services.errors import RelayError
from relay.services.options import ExecutionOptions

if TYPE_CHECKING:
    from relay.cli.context import CLIContext

T = TypeVar("T")


_ENV_KINDS = frozenset(
    {
        "unknown_remote",
        "dirty_worktree",
        "worktree_unknown",
        "not_enough_remotes",
        "ref_missing",
        "session_failed",
    }
)
_GIT_KINDS = frozenset({"checkout_failed", "divergence_failed", "git_failed"})


def relay_error_code(error: RelayError) -> ErrorCode:
    """Exit code for an engine error kind."""
    if error.kind in _ENV_KINDS:
        return ErrorCode.ENV_ERROR
    if error.kind in _GIT_KINDS:
        return ErrorCode.GIT_ERROR
    return ErrorCode.USER_ERROR


def print_error(error: RelayError, ctx: CLIContext) -> None:
    ctx.console.error(error.message)
    if error.hint:
        ctx.console.print(f"hint: {error.hint}", Style.DIM)


def exit_on_error(result: Result[T, RelayError], ctx: CLIContext) -> T:
    """Return the value of an Ok, or print the error and exit with its code.

    Replaces the common pattern:
        match result:
            case Err(e):
                ctx.console.error(e.message)
                raise typer.Exit(code=int(relay_error_code(e)))
            case Ok(value):
                ...
    """
    if isinstance(result, Err):
        print_error(result.error, ctx)
        raise typer.Exit(code=int(relay_error_code(result.error)))
    return result.value


def exit_with_code(code: ErrorCode) -> NoReturn:
    raise typer.Exit(code=int(code))


def require_terminal_or_yes(ctx: CLIContext, *, yes: bool, interactive: bool) -> None:
    """Refuse to prompt when stdin is not a terminal and --yes was not given."""
    if yes or interactive:
        return
    ctx.console.error("confirmation needed but stdin is not a terminal")
    ctx.console.print("hint: pass --yes to confirm non-interactively", Style.DIM)
    exit_with_code(ErrorCode.USER_ERROR)


def execution_options(*, yes: bool, dry_run: bool, force: bool = False) -> ExecutionOptions:
    return ExecutionOptions(skip_confirm=yes, dry_run=dry_run, allow_force=force)
