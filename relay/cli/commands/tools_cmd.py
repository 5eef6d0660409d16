from __future__ import annotations

import typer

from relay.cli.commands._helpers import (
    execution_options,
    exit_on_error,
    require_terminal_or_yes,
)
from relay.cli.context import build_context
from relay.cli.prompts import TyperPrompter, is_interactive_terminal
from relay.services import utilities

tools_app = typer.Typer(no_args_is_help=True, help="Repository inspection and recovery tools.")


@tools_app.command("tree")
def tree(limit: int = typer.Option(50, "--limit", "-n", help="Number of commits.")) -> None:
    """Show the commit graph of all branches."""
    ctx = build_context()
    exit_on_error(utilities.show_tree(backend=ctx.backend, console=ctx.console, limit=limit), ctx)


@tools_app.command("status")
def status() -> None:
    """Show short working tree status."""
    ctx = build_context()
    exit_on_error(utilities.show_status(backend=ctx.backend, console=ctx.console), ctx)


@tools_app.command("log")
def log(limit: int = typer.Option(20, "--limit", "-n", help="Number of commits.")) -> None:
    """Show recent commits on the current branch."""
    ctx = build_context()
    exit_on_error(utilities.show_log(backend=ctx.backend, console=ctx.console, limit=limit), ctx)


@tools_app.command("revert")
def revert(
    count: int = typer.Argument(..., help="How many of the newest commits to revert."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmations."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without modifying."),
) -> None:
    """Revert the last N commits of the current branch."""
    ctx = build_context()
    require_terminal_or_yes(ctx, yes=yes, interactive=is_interactive_terminal())
    exit_on_error(
        utilities.revert_last(
            backend=ctx.backend,
            console=ctx.console,
            prompter=TyperPrompter(),
            count=count,
            options=execution_options(yes=yes, dry_run=dry_run),
        ),
        ctx,
    )


@tools_app.command("goto")
def goto(
    ref: str = typer.Argument(..., help="Commit, tag or branch to go to."),
    mode: str = typer.Option(
        "detach", "--mode", "-m", help="detach | soft | mixed | hard"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmations."),
    force: bool = typer.Option(
        False, "--force", help="Allow a hard reset to discard uncommitted changes."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without modifying."),
) -> None:
    """Detach HEAD at a commit, or reset the current branch to it."""
    ctx = build_context()
    require_terminal_or_yes(ctx, yes=yes, interactive=is_interactive_terminal())
    exit_on_error(
        utilities.go_to_commit(
            backend=ctx.backend,
            console=ctx.console,
            prompter=TyperPrompter(),
            ref=ref,
            mode=mode,
            options=execution_options(yes=yes, dry_run=dry_run, force=force),
        ),
        ctx,
    )


@tools_app.command("compare")
def compare(
    base: str = typer.Argument(..., help="Base branch."),
    other: str = typer.Argument(..., help="Branch to compare against the base."),
) -> None:
    """Ahead/behind counts and diffstat between two branches."""
    ctx = build_context()
    exit_on_error(
        utilities.compare_branches(backend=ctx.backend, console=ctx.console, base=base, other=other),
        ctx,
    )
