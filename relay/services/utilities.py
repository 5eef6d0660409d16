"""Developer utilities: inspect history, revert, move HEAD, compare branches."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import cast

from relay.core.result import Err, Ok, Result
from relay.git.backend import GitBackend, ResetMode
from relay.git.models import GitError
from relay.output.console import ConsoleProtocol, Style
from relay.services.errors import RelayError, from_git_error
from relay.services.options import ExecutionOptions, Prompter

__all__ = [
    "GO_TO_MODES",
    "GoToResult",
    "compare_branches",
    "go_to_commit",
    "revert_last",
    "safety_branch_name",
    "show_log",
    "show_status",
    "show_tree",
]

GO_TO_MODES = ("detach", "soft", "mixed", "hard")

_UNSAFE_BRANCH_CHARS = re.compile(r"[^a-zA-Z0-9._/-]+")


@dataclass(frozen=True, slots=True)
class GoToResult:
    moved: bool
    safety_branch: str | None = None


def safety_branch_name(branch: str | None, short_hash: str, now: datetime | None = None) -> str:
    """`backup/<branch>-<short>-<YYYYMMDD-HHMMSS>`, unsafe characters replaced by `-`."""
    base = _UNSAFE_BRANCH_CHARS.sub("-", branch or "detached")
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return f"backup/{base}-{short_hash}-{stamp}"


def show_tree(
    *, backend: GitBackend, console: ConsoleProtocol, limit: int = 50
) -> Result[None, RelayError]:
    console.header("Git tree")
    return _print_output(backend.log_graph(limit if limit > 0 else 50), console)


def show_status(*, backend: GitBackend, console: ConsoleProtocol) -> Result[None, RelayError]:
    console.header("Git status")
    return _print_output(backend.status_short(), console)


def show_log(
    *, backend: GitBackend, console: ConsoleProtocol, limit: int = 20
) -> Result[None, RelayError]:
    console.header("Recent commits")
    return _print_output(backend.log_oneline(limit if limit > 0 else 20), console)


def compare_branches(
    *, backend: GitBackend, console: ConsoleProtocol, base: str, other: str
) -> Result[tuple[int, int], RelayError]:
    """Print how far `other` is ahead of / behind `base`, plus a diffstat.

    Returns:
        (ahead, behind) of `other` relative to `base`
    """
    console.header("Compare branches")
    console.print(f"  base:    {base}")
    console.print(f"  compare: {other}")

    counts = backend.ahead_behind(base, other)
    if isinstance(counts, Err):
        return Err(from_git_error(counts.error, kind="divergence_failed"))
    behind, ahead = counts.value
    console.print(f"  {other} is {ahead} ahead, {behind} behind {base}")

    match backend.diff_stat(base, other):
        case Ok(text) if text.strip():
            console.newline()
            console.print(text.rstrip())
        case Ok(_):
            console.info("no file differences")
        case Err(e):
            console.warning(f"could not compute diffstat: {e.message}")

    return Ok((ahead, behind))


def revert_last(
    *,
    backend: GitBackend,
    console: ConsoleProtocol,
    prompter: Prompter,
    count: int,
    options: ExecutionOptions | None = None,
) -> Result[int, RelayError]:
    """Revert the newest `count` commits of the current branch, newest first.

    Returns:
        Number of commits reverted (0 when cancelled or in dry-run)
    """
    options = options or ExecutionOptions()
    console.header("Revert last commits")
    if count < 1:
        return Err(RelayError(kind="invalid_input", message="count must be at least 1"))

    branch = backend.current_branch()
    listed = backend.list_commits(branch or "HEAD", count)
    if isinstance(listed, Err):
        return Err(from_git_error(listed.error))
    commits = listed.value
    if not commits:
        return Err(RelayError(kind="ref_missing", message="no commits found to revert"))
    if len(commits) < count:
        console.warning(f"only {len(commits)} commit(s) on {branch or 'HEAD'}")

    console.print(f"  branch: {branch or 'HEAD (detached)'}")
    console.print("  commits to revert (newest first):")
    for i, commit in enumerate(commits, start=1):
        console.print(f"    [{i}] {commit.label()}")

    dirty = backend.has_uncommitted_tracked_changes()
    if isinstance(dirty, Ok) and dirty.value:
        console.warning("uncommitted changes detected; revert may fail")
        if not _confirm(prompter, options, "Continue with uncommitted changes?"):
            return Ok(0)

    if not _confirm(prompter, options, f"Revert the last {len(commits)} commit(s)?"):
        console.info("cancelled")
        return Ok(0)

    if options.dry_run:
        for commit in commits:
            console.print(f"  would revert {commit.label()}", Style.DIM)
        return Ok(0)

    reverted = 0
    for commit in commits:
        result = backend.revert(commit.full_hash)
        if isinstance(result, Err):
            console.error(f"revert of {commit.short_hash} failed: {result.error.message}")
            console.print("Resolve conflicts, then run: git revert --continue", Style.DIM)
            console.print("Or to abort: git revert --abort", Style.DIM)
            return Err(from_git_error(result.error, hint="git revert --continue / --abort"))
        console.success(f"reverted {commit.short_hash}")
        reverted += 1

    console.success("revert complete")
    return Ok(reverted)


def go_to_commit(
    *,
    backend: GitBackend,
    console: ConsoleProtocol,
    prompter: Prompter,
    ref: str,
    mode: str = "detach",
    options: ExecutionOptions | None = None,
    now: datetime | None = None,
) -> Result[GoToResult, RelayError]:
    """Detach HEAD at `ref`, or reset the current branch to it.

    Before a reset the operator is offered a safety branch at the current
    HEAD. A hard reset over a dirty tree needs an explicit yes (or
    `allow_force`); `skip_confirm` alone does not discard changes.
    """
    options = options or ExecutionOptions()
    console.header("Go to commit")
    if mode not in GO_TO_MODES:
        return Err(
            RelayError(
                kind="invalid_input",
                message=f"invalid mode: {mode}",
                hint=f"Use one of: {', '.join(GO_TO_MODES)}",
            )
        )
    if not ref.strip():
        return Err(RelayError(kind="invalid_input", message="commit reference is empty"))

    resolved = backend.resolve_ref(ref)
    if resolved is None:
        return Err(RelayError(kind="ref_missing", message=f"unable to resolve commit: {ref}"))

    short = resolved[:7]
    branch = backend.current_branch()
    console.print(f"  target:  {short} ({ref})")
    console.print(f"  current: {branch or 'HEAD (detached)'}")

    if mode == "detach":
        if not _confirm(prompter, options, f"Checkout {short} in detached HEAD mode?"):
            return Ok(GoToResult(moved=False))
        if options.dry_run:
            console.print(f"  would run: git checkout --detach {resolved}", Style.DIM)
            return Ok(GoToResult(moved=False))
        checked_out = backend.checkout(resolved, detach=True)
        if isinstance(checked_out, Err):
            return Err(from_git_error(checked_out.error, kind="checkout_failed"))
        console.success(f"now at {short} (detached HEAD)")
        return Ok(GoToResult(moved=True))

    dirty = backend.has_uncommitted_tracked_changes()
    if isinstance(dirty, Ok) and dirty.value:
        console.warning("uncommitted changes detected")
        if mode == "hard" and not (
            options.allow_force
            or prompter.confirm("Uncommitted changes will be lost. Continue?", default=False)
        ):
            return Ok(GoToResult(moved=False))

    safety_branch: str | None = None
    if _confirm(prompter, options, "Create safety branch before reset?"):
        safety_branch = safety_branch_name(branch, short, now)
        if options.dry_run:
            console.print(f"  would create safety branch {safety_branch}", Style.DIM)
        else:
            created = backend.branch_create(safety_branch)
            if isinstance(created, Err):
                console.warning(f"could not create safety branch: {created.error.message}")
                safety_branch = None
            else:
                console.success(f"created safety branch {safety_branch}")

    target = branch or "HEAD"
    if not _confirm(prompter, options, f"Reset {target} to {short} with --{mode}?"):
        return Ok(GoToResult(moved=False, safety_branch=safety_branch))

    if options.dry_run:
        console.print(f"  would run: git reset --{mode} {resolved}", Style.DIM)
        return Ok(GoToResult(moved=False, safety_branch=safety_branch))

    reset = backend.reset(resolved, cast(ResetMode, mode))
    if isinstance(reset, Err):
        return Err(from_git_error(reset.error))
    console.success(f"reset complete ({mode})")
    if safety_branch:
        console.print(f"  safety branch: {safety_branch}", Style.DIM)
    return Ok(GoToResult(moved=True, safety_branch=safety_branch))


def _confirm(prompter: Prompter, options: ExecutionOptions, question: str) -> bool:
    return options.skip_confirm or prompter.confirm(question, default=True)


def _print_output(
    result: Result[str, GitError], console: ConsoleProtocol
) -> Result[None, RelayError]:
    match result:
        case Ok(text):
            console.print(text.rstrip())
            return Ok(None)
        case Err(e):
            return Err(from_git_error(e))
