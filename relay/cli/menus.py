"""Numbered menus for interactive release.

Menu state is a ReleaseDraft; every action produces a new draft through the
draft's transition methods. Errors are printed and the menu is shown again.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from relay.cli.commands._helpers import print_error, relay_error_code
from relay.cli.context import CLIContext
from relay.core.errors import ErrorCode
from relay.core.result import Err, Ok
from relay.git.models import Commit
from relay.output.console import Style
from relay.services.options import ExecutionOptions, Prompter
from relay.services.plan import CommitSelection, ReleaseDraft, ReleasePlan
from relay.services.release import ConflictHandler, ReleaseExecutor, ReleaseRun, ReleaseState
from relay.services.safety import SafetyAnalyzer, print_safety_report
from relay.services.selection import parse_selection
from relay.services.session import clear_release_session, save_release_session

__all__ = ["MenuItem", "ReleaseMenu", "record_stopped_run", "run_exit_code"]

BRANCH_LIST_LIMIT = 20


@dataclass(frozen=True, slots=True)
class MenuItem:
    key: str
    label: str
    action: Callable[[], None]


def run_exit_code(run: ReleaseRun) -> ErrorCode:
    """Exit code for a finished release run."""
    if run.state == ReleaseState.DONE:
        return ErrorCode.OK
    if run.fault is not None and run.fault.stage == "push" and run.pushed_remotes:
        return ErrorCode.PARTIAL_PUSH
    return ErrorCode.GIT_ERROR


def record_stopped_run(run: ReleaseRun, ctx: CLIContext) -> None:
    """Save a run left on a conflicted cherry-pick; clear the saved run otherwise."""
    if run.stopped:
        match save_release_session(ctx.root, run):
            case Ok(_):
                ctx.console.print(
                    "or, once the files are staged, let relay finish the release:", Style.DIM
                )
                ctx.console.print("  relay release --continue   (or --abort)", Style.DIM)
            case Err(e):
                ctx.console.warning(e.message)
        return

    cleared = clear_release_session(ctx.root)
    if isinstance(cleared, Err):
        ctx.console.warning(cleared.error.message)


class ReleaseMenu:
    """Interactive release menu.

    The quick menu offers select / safety / reset / execute and returns after
    an execution. The full menu adds branch switching and remote management,
    takes commits from the current branch, and keeps running after an
    execution.
    """

    def __init__(
        self,
        *,
        ctx: CLIContext,
        prompter: Prompter,
        draft: ReleaseDraft,
        options: ExecutionOptions,
        source: str | None = None,
        full: bool = False,
        conflict_handler: ConflictHandler | None = None,
    ) -> None:
        self._ctx = ctx
        self._prompter = prompter
        self._options = options
        self._source = source
        self._full = full
        self._conflict_handler = conflict_handler
        self.draft = draft
        self.last_code = ErrorCode.OK
        self._done = False

    def run(self) -> ErrorCode:
        while not self._done:
            self._print_state()
            items = self._items()
            for item in items:
                self._ctx.console.print(f"  [{item.key}] {item.label}")
            choice = self._prompter.ask("Choice", default="0").lower()
            match [item for item in items if item.key == choice]:
                case [item]:
                    item.action()
                case _:
                    self._ctx.console.warning(f"invalid choice: {choice}")
        return self.last_code

    def _items(self) -> list[MenuItem]:
        if not self._full:
            return [
                MenuItem("1", "Select commits", self.select_commits),
                MenuItem("2", "Check merge safety", self.check_safety),
                MenuItem("3", "Reset selection", self.reset),
                MenuItem("4", "Execute cherry-pick and push", self.execute),
                MenuItem("0", "Quit", self.quit),
            ]
        return [
            MenuItem("1", "Switch branch", self.switch_branch),
            MenuItem("2", "Select commits to cherry-pick", self.select_commits),
            MenuItem("3", "Select target remotes", self.select_remotes),
            MenuItem("4", "Set target branch name", self.set_target),
            MenuItem("5", "Add new remote", self.add_remote),
            MenuItem("6", "Execute cherry-pick and push", self.execute),
            MenuItem("7", "Reset selections", self.reset),
            MenuItem("8", "Check merge safety", self.check_safety),
            MenuItem("0", "Quit", self.quit),
        ]

    def _print_state(self) -> None:
        console = self._ctx.console
        remotes = ", ".join(r.name for r in self.draft.remotes) or "none"
        console.header("Release")
        if self._full:
            console.print(f"  current branch:   {self._ctx.backend.current_branch() or 'HEAD'}")
        else:
            console.print(f"  source:           {self._source}")
        console.print(f"  selected commits: {len(self.draft.selection)}")
        console.print(f"  target remotes:   {remotes}")
        console.print(f"  target branch:    {self.draft.target_branch}")
        console.newline()

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def select_commits(self) -> None:
        console = self._ctx.console
        candidates = self._candidates()
        if not candidates:
            return

        console.table(
            ["#", "commit", "date", "subject"],
            [
                [str(i), c.short_hash, c.author_date, c.subject[:50]]
                for i, c in enumerate(candidates, start=1)
            ],
        )
        text = self._prompter.ask('Commits (e.g. "1-5, 8, 10", empty to cancel)')
        if not text or text == "0":
            return

        indices = parse_selection(text, len(candidates))
        if not indices:
            console.warning("nothing selected")
            return
        selection = CommitSelection.from_indices(candidates, indices)
        self.draft = self.draft.select(selection)
        console.success(f"selected {len(selection)} commit(s)")
        for commit in selection:
            console.print(f"  - {commit.label(40)}")

    def check_safety(self) -> None:
        console = self._ctx.console
        if not self.draft.selection:
            console.error("no commits selected to check")
            return
        if not self.draft.remotes:
            console.error("no target remote selected")
            return

        comparison = f"{self.draft.remotes[0].name}/{self.draft.target_branch}"
        console.header("Merge safety check")
        console.print(f"  {len(self.draft.selection)} commit(s) against {comparison}")
        analyzer = SafetyAnalyzer(
            backend=self._ctx.backend,
            large_file_lines=self._ctx.config.safety.large_file_lines,
        )
        report = analyzer.analyze(self.draft.selection.commits, comparison)
        print_safety_report(report, console)

    def reset(self) -> None:
        self.draft = self.draft.reset()
        self._ctx.console.info("selection cleared")

    def execute(self) -> None:
        console = self._ctx.console
        planned = self.draft.to_plan()
        if isinstance(planned, Err):
            print_error(planned.error, self._ctx)
            return
        plan = planned.value

        print_plan(plan, self._ctx)
        if not (
            self._options.skip_confirm
            or self._prompter.confirm("Proceed with cherry-pick and push?", default=False)
        ):
            console.info("cancelled")
            return

        executor = ReleaseExecutor(
            backend=self._ctx.backend,
            console=console,
            options=self._options,
            conflict_handler=self._conflict_handler,
        )
        match executor.execute(plan):
            case Err(e):
                print_error(e, self._ctx)
                self.last_code = relay_error_code(e)
            case Ok(run):
                self.last_code = run_exit_code(run)
                record_stopped_run(run, self._ctx)
                if run.succeeded:
                    self.draft = self.draft.reset()

        if not self._full:
            self._done = True

    def quit(self) -> None:
        self._done = True

    def switch_branch(self) -> None:
        console = self._ctx.console
        listed = self._ctx.backend.list_branches()
        if isinstance(listed, Err):
            console.error(listed.error.message)
            return

        branches = list(listed.value.all)
        search = ""
        while True:
            matches = [b for b in branches if search.lower() in b.lower()]
            shown = matches[:BRANCH_LIST_LIMIT]
            if search:
                console.print(f"  search: {search} ({len(matches)} matches)")
            for i, branch in enumerate(shown, start=1):
                console.print(f"  [{i}] {branch}")
            if len(matches) > len(shown):
                console.print(f"  ... and {len(matches) - len(shown)} more", Style.DIM)

            answer = self._prompter.ask("Branch number, or text to search (empty to cancel)")
            if not answer:
                return
            if answer.isdigit() and 1 <= int(answer) <= len(shown):
                self._checkout_branch(shown[int(answer) - 1], listed.value.remote)
                return
            search = answer

    def _checkout_branch(self, branch: str, remote_branches: tuple[str, ...]) -> None:
        console = self._ctx.console
        if self._ctx.backend.has_uncommitted_tracked_changes().unwrap_or(False):
            console.warning("uncommitted changes detected")
            if not self._prompter.confirm("Switch anyway?", default=False):
                return

        # origin/feature -> local feature tracking branch
        target = branch
        if branch in remote_branches:
            target = branch.split("/", 1)[1]

        if self._options.dry_run:
            console.print(f"  would check out {target}", Style.DIM)
            return
        match self._ctx.backend.checkout(target):
            case Ok(_):
                console.success(f"switched to {target}")
            case Err(e):
                console.error(f"checkout failed: {e.message}")

    def select_remotes(self) -> None:
        console = self._ctx.console
        listed = self._ctx.backend.remote_list()
        if isinstance(listed, Err):
            console.error(listed.error.message)
            return
        remotes = listed.value
        if not remotes:
            console.error("no remotes configured")
            return

        for i, remote in enumerate(remotes, start=1):
            console.print(f"  [{i}] {remote.name} -> {remote.url}")
        text = self._prompter.ask('Remotes (e.g. "1, 2", empty to cancel)')
        if not text or text == "0":
            return
        indices = parse_selection(text, len(remotes))
        if not indices:
            console.warning("nothing selected")
            return
        self.draft = self.draft.set_remotes([remotes[i - 1] for i in indices])
        console.success(f"selected remotes: {', '.join(r.name for r in self.draft.remotes)}")

    def set_target(self) -> None:
        branch = self._prompter.ask("Target branch", default=self.draft.target_branch)
        if branch and branch != self.draft.target_branch:
            self.draft = self.draft.set_target(branch)
            self._ctx.console.success(f"target branch set to {self.draft.target_branch}")

    def add_remote(self) -> None:
        console = self._ctx.console
        name = self._prompter.ask("Remote name")
        if not name:
            return
        url = self._prompter.ask("Remote URL")
        if not url:
            return
        match self._ctx.backend.remote_add(name, url):
            case Ok(_):
                console.success(f"added remote {name} -> {url}")
            case Err(e):
                console.error(f"failed to add remote: {e.message}")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _candidates(self) -> list[Commit]:
        console = self._ctx.console
        ref = self._source if not self._full else (self._ctx.backend.current_branch() or "HEAD")
        listed = self._ctx.backend.list_commits(ref or "HEAD", self._ctx.config.release.commit_limit)
        if isinstance(listed, Err):
            console.error(f"cannot list commits on {ref}: {listed.error.message}")
            return []
        if not listed.value:
            console.error(f"no commits found on {ref}")
        return listed.value


def print_plan(plan: ReleasePlan, ctx: CLIContext) -> None:
    console = ctx.console
    console.header("Release plan")
    console.print(f"  base:    {plan.base_ref}")
    console.print(f"  push to: {', '.join(f'{r}/{plan.target_branch}' for r in plan.remote_names)}")
    console.print("  commits (applied in this order):")
    for commit in plan.commits.chronological():
        console.print(f"    {commit.label()}")
