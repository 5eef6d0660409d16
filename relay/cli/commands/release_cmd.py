"""Quick release: cherry-pick recent commits from the source ref onto the release line."""

from __future__ import annotations

import typer

from relay.cli.commands._helpers import (
    execution_options,
    exit_on_error,
    exit_with_code,
    require_terminal_or_yes,
)
from relay.cli.conflicts import EditorConflictResolver
from relay.cli.context import CLIContext, build_context
from relay.cli.menus import ReleaseMenu, print_plan, record_stopped_run, run_exit_code
from relay.cli.prompts import TyperPrompter, is_interactive_terminal
from relay.core.errors import ErrorCode
from relay.core.result import Err, Ok, Result
from relay.git.models import Commit, RemoteTarget
from relay.output.console import Style
from relay.services.errors import RelayError, from_git_error
from relay.services.options import Prompter
from relay.services.plan import CommitSelection, ReleaseDraft, ReleasePlan
from relay.services.release import ConflictHandler, ReleaseExecutor
from relay.services.safety import SafetyAnalyzer, print_safety_report
from relay.services.selection import parse_selection
from relay.services.session import load_release_session


def release(
    count: int | None = typer.Argument(None, help="Release the last K commits of the source."),
    select: str | None = typer.Option(
        None, "--select", "-s", help='Commits to release by index, e.g. "1-5, 8".'
    ),
    source: str | None = typer.Option(None, "--source", help="Ref to pick commits from."),
    target_branch: str | None = typer.Option(
        None, "--target-branch", "-b", help="Branch to push on every remote."
    ),
    remote: list[str] | None = typer.Option(
        None, "--remote", "-r", help="Target remote (repeatable)."
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmations."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without modifying."),
    no_fetch: bool = typer.Option(False, "--no-fetch", help="Do not fetch before listing."),
    resume: bool = typer.Option(
        False, "--continue", help="Finish a release stopped on a resolved conflict."
    ),
    abort: bool = typer.Option(
        False, "--abort", help="Drop a stopped release and return to the original branch."
    ),
) -> None:
    """Cherry-pick commits onto the release branch and push to all target remotes."""
    ctx = build_context()
    cfg = ctx.config.release
    source_ref = source or cfg.source
    branch = target_branch or cfg.target_branch
    options = execution_options(yes=yes, dry_run=dry_run)
    interactive = is_interactive_terminal()

    prompter = TyperPrompter()
    handler: ConflictHandler | None = None
    if interactive and not yes:
        handler = EditorConflictResolver(console=ctx.console, prompter=prompter, root=ctx.root)

    if resume and abort:
        ctx.console.error("--continue and --abort cannot be combined")
        exit_with_code(ErrorCode.USER_ERROR)
    if resume or abort:
        code = finish_stopped_release(
            ctx, resume=resume, dry_run=dry_run, conflict_handler=handler
        )
        if code != ErrorCode.OK:
            exit_with_code(code)
        return

    if not no_fetch:
        ctx.console.info("fetching all remotes")
        fetched = ctx.backend.fetch()
        if isinstance(fetched, Err):
            ctx.console.warning(f"could not fetch from some remotes: {fetched.error.message}")

    remotes = exit_on_error(_target_remotes(ctx, remote), ctx)
    candidates = exit_on_error(_candidates(ctx, source_ref), ctx)

    draft = ReleaseDraft(target_branch=branch).set_remotes(remotes)

    if count is None and select is None:
        if not interactive or yes:
            ctx.console.error("no commits selected")
            ctx.console.print("hint: pass K or --select", Style.DIM)
            exit_with_code(ErrorCode.USER_ERROR)
        menu = ReleaseMenu(
            ctx=ctx,
            prompter=prompter,
            draft=draft,
            options=options,
            source=source_ref,
            conflict_handler=handler,
        )
        exit_with_code(menu.run())

    selection = exit_on_error(_selection(candidates, count=count, select=select), ctx)
    plan = exit_on_error(draft.select(selection).to_plan(), ctx)
    require_terminal_or_yes(ctx, yes=yes, interactive=interactive)

    code = run_release(
        ctx,
        plan,
        prompter=prompter,
        yes=yes,
        dry_run=dry_run,
        conflict_handler=handler,
    )
    if code != ErrorCode.OK:
        exit_with_code(code)


def run_release(
    ctx: CLIContext,
    plan: ReleasePlan,
    *,
    prompter: Prompter,
    yes: bool,
    dry_run: bool,
    conflict_handler: ConflictHandler | None = None,
) -> ErrorCode:
    """Show the plan and safety report, confirm, execute."""
    print_plan(plan, ctx)

    analyzer = SafetyAnalyzer(
        backend=ctx.backend, large_file_lines=ctx.config.safety.large_file_lines
    )
    ctx.console.header("Merge safety check")
    report = analyzer.analyze(plan.commits.commits, plan.base_ref)
    print_safety_report(report, ctx.console)

    if not yes:
        question = "Potential issues found. Proceed anyway?" if report.has_issues else "Proceed?"
        if not prompter.confirm(question, default=not report.has_issues):
            ctx.console.info("cancelled")
            return ErrorCode.USER_ERROR

    executor = ReleaseExecutor(
        backend=ctx.backend,
        console=ctx.console,
        options=execution_options(yes=yes, dry_run=dry_run),
        conflict_handler=conflict_handler,
    )
    run = exit_on_error(executor.execute(plan), ctx)
    record_stopped_run(run, ctx)
    return run_exit_code(run)


def finish_stopped_release(
    ctx: CLIContext,
    *,
    resume: bool,
    dry_run: bool,
    conflict_handler: ConflictHandler | None = None,
) -> ErrorCode:
    """Continue or abandon the release saved after a conflict was left unresolved."""
    stopped = exit_on_error(load_release_session(ctx.root), ctx)
    if stopped is None:
        ctx.console.error("no stopped release found")
        ctx.console.print("hint: start one with `relay release`", Style.DIM)
        return ErrorCode.USER_ERROR

    fault = stopped.fault
    if fault is not None and fault.commit is not None:
        ctx.console.info(
            f"release of {len(stopped.plan.commits)} commit(s) to {stopped.plan.target_branch} "
            f"stopped at {fault.commit.label()}"
        )

    executor = ReleaseExecutor(
        backend=ctx.backend,
        console=ctx.console,
        options=execution_options(yes=True, dry_run=dry_run),
        conflict_handler=conflict_handler,
    )
    finished = executor.resume(stopped) if resume else executor.abandon(stopped)
    run = exit_on_error(finished, ctx)
    record_stopped_run(run, ctx)
    if not resume:
        # Abandoned runs end faulted; an explicit --abort exits 0.
        return ErrorCode.OK
    return run_exit_code(run)


def _target_remotes(
    ctx: CLIContext, requested: list[str] | None
) -> Result[list[RemoteTarget], RelayError]:
    listed = ctx.backend.remote_list()
    if isinstance(listed, Err):
        return Err(from_git_error(listed.error))
    by_name = {r.name: r for r in listed.value}

    if requested:
        missing = [name for name in requested if name not in by_name]
        if missing:
            return Err(
                RelayError(
                    kind="unknown_remote",
                    message=f"remote not configured: {', '.join(missing)}",
                    hint=f"Configured remotes: {', '.join(by_name) or 'none'}",
                )
            )
        return Ok([by_name[name] for name in requested])

    chosen: list[RemoteTarget] = []
    for name in ctx.config.release.remotes:
        if name in by_name:
            chosen.append(by_name[name])
        else:
            ctx.console.info(f"remote '{name}' not configured, skipping")
    if not chosen:
        return Err(
            RelayError(
                kind="unknown_remote",
                message="none of the configured release remotes exist",
                hint="Pass --remote or add one with `git remote add`",
            )
        )
    return Ok(chosen)


def _candidates(ctx: CLIContext, source: str) -> Result[list[Commit], RelayError]:
    listed = ctx.backend.list_commits(source, ctx.config.release.commit_limit)
    if isinstance(listed, Err):
        return Err(
            from_git_error(listed.error, kind="ref_missing", hint="Fetch first or pass --source")
        )
    if not listed.value:
        return Err(RelayError(kind="ref_missing", message=f"no commits found on {source}"))
    return Ok(listed.value)


def _selection(
    candidates: list[Commit], *, count: int | None, select: str | None
) -> Result[CommitSelection, RelayError]:
    if select is not None:
        indices = parse_selection(select, len(candidates))
        if not indices:
            return Err(
                RelayError(
                    kind="invalid_input",
                    message=f"selection matches no commits: {select!r}",
                    hint=f"Use indices between 1 and {len(candidates)}",
                )
            )
        return Ok(CommitSelection.from_indices(candidates, indices))

    if count is None or count < 1:
        return Err(RelayError(kind="invalid_input", message="K must be at least 1"))
    if count > len(candidates):
        return Err(
            RelayError(
                kind="invalid_input",
                message=f"only {len(candidates)} commit(s) available",
            )
        )
    return Ok(CommitSelection.last(candidates, count))
