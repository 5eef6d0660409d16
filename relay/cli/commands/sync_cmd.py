"""Sync command: mirror a branch from one remote onto another."""

from __future__ import annotations

import typer

from relay.cli.commands._helpers import (
    exit_on_error,
    exit_with_code,
    execution_options,
    require_terminal_or_yes,
)
from relay.cli.context import CLIContext, build_context
from relay.cli.prompts import TyperPrompter, is_interactive_terminal
from relay.core.errors import ErrorCode
from relay.core.result import Err, Ok, Result
from relay.services.errors import RelayError, from_git_error
from relay.services.plan import SyncRequest
from relay.services.sync import SyncWorkflow


def sync(
    source: str | None = typer.Option(None, "--from", help="Remote to copy the branch from."),
    target: str | None = typer.Option(None, "--to", help="Remote to update."),
    branch: str | None = typer.Option(None, "--branch", "-b", help="Branch to sync."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip review confirmations."),
    force: bool = typer.Option(
        False,
        "--force",
        help="Accept a force-with-lease push when the target has diverged.",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without pushing."),
) -> None:
    """Make a branch on one remote match the same branch on another."""
    ctx = build_context()
    require_terminal_or_yes(ctx, yes=yes, interactive=is_interactive_terminal())

    request = exit_on_error(_request(ctx, source=source, target=target, branch=branch), ctx)
    workflow = SyncWorkflow(
        backend=ctx.backend,
        console=ctx.console,
        prompter=TyperPrompter(),
        options=execution_options(yes=yes, dry_run=dry_run, force=force),
        large_file_lines=ctx.config.safety.large_file_lines,
    )
    run = exit_on_error(workflow.run(request), ctx)
    if run.cancelled:
        exit_with_code(ErrorCode.USER_ERROR)


def _request(
    ctx: CLIContext, *, source: str | None, target: str | None, branch: str | None
) -> Result[SyncRequest, RelayError]:
    """Fill unset remotes from config, then from the first two configured remotes."""
    cfg = ctx.config.sync
    source = source or cfg.source_remote
    target = target or cfg.target_remote

    if source is None or target is None:
        listed = ctx.backend.remote_list()
        if isinstance(listed, Err):
            return Err(from_git_error(listed.error))
        names = [r.name for r in listed.value]
        if source is None:
            source = next((n for n in names if n != target), None)
        if target is None:
            target = next((n for n in names if n != source), None)
        if source is None or target is None:
            return Err(
                RelayError(
                    kind="not_enough_remotes",
                    message=f"sync needs at least 2 remotes, found {len(names)}",
                    hint="Add one with `git remote add <name> <url>`",
                )
            )

    return Ok(SyncRequest(source_remote=source, target_remote=target, branch=branch or cfg.branch))
