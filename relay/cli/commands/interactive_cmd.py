from __future__ import annotations

import typer

from relay.cli.commands._helpers import exit_with_code
from relay.cli.conflicts import EditorConflictResolver
from relay.cli.context import build_context
from relay.cli.menus import ReleaseMenu
from relay.cli.prompts import TyperPrompter, is_interactive_terminal
from relay.core.errors import ErrorCode
from relay.core.result import Err
from relay.services.options import ExecutionOptions
from relay.services.plan import ReleaseDraft


def interactive(
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without modifying."),
) -> None:
    """Full release menu: switch branch, pick commits and remotes, execute."""
    ctx = build_context()
    if not is_interactive_terminal():
        ctx.console.error("interactive mode requires a terminal")
        exit_with_code(ErrorCode.USER_ERROR)

    ctx.console.info("fetching all remotes")
    fetched = ctx.backend.fetch()
    if isinstance(fetched, Err):
        ctx.console.warning(f"could not fetch from some remotes: {fetched.error.message}")

    prompter = TyperPrompter()
    menu = ReleaseMenu(
        ctx=ctx,
        prompter=prompter,
        draft=ReleaseDraft(target_branch=ctx.config.release.target_branch),
        options=ExecutionOptions(dry_run=dry_run),
        full=True,
        conflict_handler=EditorConflictResolver(
            console=ctx.console, prompter=prompter, root=ctx.root
        ),
    )
    code = menu.run()
    if code != ErrorCode.OK:
        exit_with_code(code)
