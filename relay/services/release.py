"""Cherry-pick a selection onto the release line and push it to every remote.

    idle -> preflight_checked -> branch_switched -> cherry_picking -> pushing
         -> restoring -> done

`faulted` is reachable from cherry_picking (conflict) and pushing (any remote
rejected the push). An abandoned cherry-pick passes through restoring before
ending faulted. Preflight failures return Err before any mutating git call.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Literal, Protocol

from relay.core.fsm import FINISH, StepHandler, StepOutcome, advance, run_state_machine
from relay.core.result import Err, Ok, Result
from relay.git.backend import GitBackend
from relay.git.models import Commit
from relay.output.console import ConsoleProtocol, Style
from relay.services.errors import RelayError, from_git_error
from relay.services.options import ExecutionOptions
from relay.services.plan import ReleasePlan

__all__ = [
    "ConflictDecision",
    "ConflictHandler",
    "Fault",
    "PushOutcome",
    "ReleaseExecutor",
    "ReleaseRun",
    "ReleaseState",
]

ConflictDecision = Literal["continue", "abort", "leave"]


class ReleaseState(StrEnum):
    IDLE = "idle"
    PREFLIGHT_CHECKED = "preflight_checked"
    BRANCH_SWITCHED = "branch_switched"
    CHERRY_PICKING = "cherry_picking"
    PUSHING = "pushing"
    RESTORING = "restoring"
    DONE = "done"
    FAULTED = "faulted"


class ConflictHandler(Protocol):
    """Decides what to do when a cherry-pick stops on conflicts.

    Called with the commit that failed and the conflicted files. Called again
    if `continue` was chosen but git still refuses to continue.
    """

    def resolve(self, commit: Commit, files: list[str]) -> ConflictDecision: ...


@dataclass(frozen=True, slots=True)
class Fault:
    """Why a run ended in `faulted`.

    Attributes:
        stage: "cherry_pick" or "push"
        message: What went wrong
        commit: Commit whose cherry-pick failed
        conflicted_files: Files git reported as conflicted
        abandoned: The cherry-pick was aborted and the workspace restored
    """

    stage: Literal["cherry_pick", "push"]
    message: str
    commit: Commit | None = None
    conflicted_files: tuple[str, ...] = ()
    abandoned: bool = False


@dataclass(frozen=True, slots=True)
class PushOutcome:
    remote: str
    ok: bool
    message: str = ""


@dataclass(frozen=True, slots=True)
class ReleaseRun:
    """One release attempt. Every step returns a new run value.

    Attributes:
        plan: What is being released
        state: Current state
        original_ref: Branch (or commit, when detached) to return to
        original_detached: HEAD was detached when the run started
        applied: Hashes cherry-picked so far, in apply order
        pushes: Per-remote push outcomes
        fault: Set when the run is (or will end) faulted
        after_restore: State entered once restoring finishes
    """

    plan: ReleasePlan
    state: ReleaseState = ReleaseState.IDLE
    original_ref: str | None = None
    original_detached: bool = False
    applied: tuple[str, ...] = ()
    pushes: tuple[PushOutcome, ...] = ()
    fault: Fault | None = None
    after_restore: ReleaseState = ReleaseState.DONE

    @property
    def remaining(self) -> tuple[Commit, ...]:
        """Commits still to apply, oldest selected first."""
        applied = set(self.applied)
        return tuple(c for c in self.plan.commits.chronological() if c.full_hash not in applied)

    @property
    def succeeded(self) -> bool:
        return self.state == ReleaseState.DONE

    @property
    def stopped(self) -> bool:
        """Faulted on a cherry-pick that was left for the operator to resolve."""
        return (
            self.state == ReleaseState.FAULTED
            and self.fault is not None
            and self.fault.stage == "cherry_pick"
            and not self.fault.abandoned
        )

    @property
    def pushed_remotes(self) -> tuple[str, ...]:
        return tuple(p.remote for p in self.pushes if p.ok)

    @property
    def failed_remotes(self) -> tuple[str, ...]:
        return tuple(p.remote for p in self.pushes if not p.ok)


class ReleaseExecutor:
    """Runs a ReleasePlan through the release state machine."""

    def __init__(
        self,
        *,
        backend: GitBackend,
        console: ConsoleProtocol,
        options: ExecutionOptions | None = None,
        conflict_handler: ConflictHandler | None = None,
        on_transition: Callable[[ReleaseRun], None] | None = None,
    ) -> None:
        self._backend = backend
        self._console = console
        self._options = options or ExecutionOptions()
        self._conflict_handler = conflict_handler
        self._on_transition = on_transition

    def execute(self, plan: ReleasePlan) -> Result[ReleaseRun, RelayError]:
        return self._drive(ReleaseRun(plan=plan))

    def resume(self, run: ReleaseRun) -> Result[ReleaseRun, RelayError]:
        """Continue a run left faulted on a cherry-pick the operator has since resolved."""
        fault = run.fault
        if run.state != ReleaseState.FAULTED or fault is None or fault.stage != "cherry_pick":
            return Err(_not_stopped())
        if fault.abandoned or fault.commit is None:
            return Err(RelayError(kind="invalid_input", message="run was abandoned"))

        if not self._options.dry_run:
            continued = self._backend.cherry_pick_continue()
            if isinstance(continued, Err):
                return Err(
                    from_git_error(
                        continued.error,
                        hint="Resolve remaining conflicts and stage the files first",
                    )
                )

        self._console.success(f"continued {fault.commit.label()}")
        return self._drive(
            replace(
                run,
                state=ReleaseState.CHERRY_PICKING,
                applied=(*run.applied, fault.commit.full_hash),
                fault=None,
            )
        )

    def abandon(self, run: ReleaseRun) -> Result[ReleaseRun, RelayError]:
        """Abort a stopped cherry-pick and return to where the run started."""
        fault = run.fault
        if run.state != ReleaseState.FAULTED or fault is None or fault.stage != "cherry_pick":
            return Err(_not_stopped())
        if fault.abandoned:
            return Ok(run)

        self._abort_cherry_pick()
        return self._drive(
            replace(
                run,
                state=ReleaseState.RESTORING,
                fault=replace(fault, abandoned=True),
                after_restore=ReleaseState.FAULTED,
            )
        )

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def _drive(self, run: ReleaseRun) -> Result[ReleaseRun, RelayError]:
        return run_state_machine(
            initial_state=run,
            get_step=lambda r: r.state.value,
            handlers=self._handlers(),
            unknown_step=lambda step: RelayError(
                kind="invalid_input", message=f"unknown release state: {step}"
            ),
            on_transition=self._on_transition,
        )

    def _handlers(self) -> dict[str, StepHandler[ReleaseRun, RelayError]]:
        return {
            ReleaseState.IDLE: self._step_preflight,
            ReleaseState.PREFLIGHT_CHECKED: self._step_switch_branch,
            ReleaseState.BRANCH_SWITCHED: self._step_start_picking,
            ReleaseState.CHERRY_PICKING: self._step_cherry_pick,
            ReleaseState.PUSHING: self._step_push,
            ReleaseState.RESTORING: self._step_restore,
            ReleaseState.DONE: self._step_finish,
            ReleaseState.FAULTED: self._step_finish,
        }

    def _step_preflight(self, run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RelayError]:
        plan = run.plan
        self._console.step("1/5", "Pre-flight checks")

        if not plan.commits:
            return Err(RelayError(kind="empty_plan", message="no commits selected"))
        if not plan.remotes:
            return Err(RelayError(kind="empty_plan", message="no target remotes selected"))
        if not plan.target_branch:
            return Err(RelayError(kind="invalid_input", message="target branch is empty"))

        remotes = self._backend.remote_list()
        if isinstance(remotes, Err):
            return Err(from_git_error(remotes.error))
        known = {r.name for r in remotes.value}
        missing = [r.name for r in plan.remotes if r.name not in known]
        if missing:
            return Err(
                RelayError(
                    kind="unknown_remote",
                    message=f"remote not configured: {', '.join(missing)}",
                    hint="Check `git remote -v`",
                )
            )

        match self._backend.has_uncommitted_tracked_changes():
            case Err(e):
                return Err(
                    RelayError(
                        kind="worktree_unknown",
                        message=f"cannot read working tree status: {e.message}",
                    )
                )
            case Ok(True):
                return Err(
                    RelayError(
                        kind="dirty_worktree",
                        message="working tree has uncommitted changes",
                        hint="Commit or stash them first",
                    )
                )
            case Ok(False):
                pass

        branch = self._backend.current_branch()
        if branch is not None:
            original, detached = branch, False
        else:
            head = self._backend.resolve_ref("HEAD")
            if head is None:
                return Err(
                    RelayError(kind="worktree_unknown", message="cannot determine current HEAD")
                )
            original, detached = head, True

        self._console.success(
            f"{len(plan.commits)} commit(s) -> {', '.join(plan.remote_names)} "
            f"({plan.target_branch})"
        )
        return Ok(
            advance(
                replace(
                    run,
                    state=ReleaseState.PREFLIGHT_CHECKED,
                    original_ref=original,
                    original_detached=detached,
                )
            )
        )

    def _step_switch_branch(self, run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RelayError]:
        base = run.plan.base_ref
        self._console.step("2/5", f"Checking out {base}")
        if self._options.dry_run:
            self._console.print(f"  would check out {base}", Style.DIM)
        else:
            checked_out = self._backend.checkout(base, detach=True)
            if isinstance(checked_out, Err):
                return Err(
                    from_git_error(
                        checked_out.error,
                        kind="checkout_failed",
                        hint=f"Fetch first so {base} exists locally",
                    )
                )
        return Ok(advance(replace(run, state=ReleaseState.BRANCH_SWITCHED)))

    def _step_start_picking(self, run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RelayError]:
        self._console.step("3/5", f"Cherry-picking {len(run.remaining)} commit(s)")
        return Ok(advance(replace(run, state=ReleaseState.CHERRY_PICKING)))

    def _step_cherry_pick(self, run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RelayError]:
        remaining = run.remaining
        if not remaining:
            return Ok(advance(replace(run, state=ReleaseState.PUSHING)))

        commit = remaining[0]
        if self._options.dry_run:
            self._console.print(f"  would cherry-pick {commit.label()}", Style.DIM)
            return Ok(advance(replace(run, applied=(*run.applied, commit.full_hash))))

        picked = self._backend.cherry_pick(commit.full_hash)
        if isinstance(picked, Ok):
            self._console.print(f"  {commit.label()}")
            return Ok(advance(replace(run, applied=(*run.applied, commit.full_hash))))

        self._console.error(f"cherry-pick failed: {commit.label()}")
        return Ok(advance(self._handle_conflict(run, commit, picked.error.message)))

    def _handle_conflict(self, run: ReleaseRun, commit: Commit, message: str) -> ReleaseRun:
        while True:
            files = self._conflicted_files()
            fault = Fault(
                stage="cherry_pick",
                message=message,
                commit=commit,
                conflicted_files=tuple(files),
            )
            if files:
                self._console.warning(f"conflicts in {len(files)} file(s):")
                for path in files:
                    self._console.print(f"  - {path}")

            if self._conflict_handler is None:
                self._print_conflict_guidance()
                return replace(run, state=ReleaseState.FAULTED, fault=fault)

            decision = self._conflict_handler.resolve(commit, files)
            if decision == "leave":
                self._print_conflict_guidance()
                return replace(run, state=ReleaseState.FAULTED, fault=fault)

            if decision == "abort":
                self._abort_cherry_pick()
                return replace(
                    run,
                    state=ReleaseState.RESTORING,
                    fault=replace(fault, abandoned=True),
                    after_restore=ReleaseState.FAULTED,
                )

            match self._backend.cherry_pick_continue():
                case Ok(_):
                    self._console.success(f"continued {commit.label()}")
                    return replace(run, applied=(*run.applied, commit.full_hash))
                case Err(e):
                    self._console.error(f"cannot continue: {e.message}")
                    message = e.message

    def _step_push(self, run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RelayError]:
        branch = run.plan.target_branch
        self._console.step("4/5", f"Pushing to {len(run.plan.remotes)} remote(s)")

        outcomes: list[PushOutcome] = []
        for remote in run.plan.remotes:
            if self._options.dry_run:
                self._console.print(f"  would push HEAD to {remote.name}/{branch}", Style.DIM)
                outcomes.append(PushOutcome(remote=remote.name, ok=True))
                continue
            match self._backend.push(remote.name, "HEAD", branch):
                case Ok(_):
                    self._console.success(f"pushed to {remote.name}/{branch}")
                    outcomes.append(PushOutcome(remote=remote.name, ok=True))
                case Err(e):
                    self._console.error(f"push to {remote.name} failed: {e.message}")
                    outcomes.append(PushOutcome(remote=remote.name, ok=False, message=e.message))

        pushed = replace(run, pushes=tuple(outcomes))
        failed = pushed.failed_remotes
        if not failed:
            return Ok(advance(replace(pushed, state=ReleaseState.RESTORING)))

        if pushed.pushed_remotes:
            self._console.warning(
                f"pushed to {', '.join(pushed.pushed_remotes)}; these pushes are not rolled back"
            )
        self._console.print("Workspace left on the cherry-picked HEAD. Retry with:", Style.DIM)
        for remote in failed:
            self._console.print(f"  git push {remote} HEAD:{branch}", Style.DIM)
        return Ok(
            advance(
                replace(
                    pushed,
                    state=ReleaseState.FAULTED,
                    fault=Fault(stage="push", message=f"push failed for {', '.join(failed)}"),
                )
            )
        )

    def _step_restore(self, run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RelayError]:
        self._console.step("5/5", "Restoring original branch")
        target = run.original_ref
        if target is None:
            self._console.warning("original branch unknown; staying where we are")
        elif self._options.dry_run:
            self._console.print(f"  would return to {target}", Style.DIM)
        else:
            match self._backend.checkout(target, detach=run.original_detached):
                case Ok(_):
                    self._console.success(f"back on {target}")
                case Err(e):
                    self._console.warning(f"could not return to {target}: {e.message}")
        return Ok(advance(replace(run, state=run.after_restore)))

    def _step_finish(self, run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RelayError]:
        if run.state == ReleaseState.DONE:
            targets = ", ".join(f"{r}/{run.plan.target_branch}" for r in run.pushed_remotes)
            self._console.success(f"released {len(run.applied)} commit(s) to {targets}")
        elif run.fault is not None and run.fault.abandoned:
            self._console.warning("release abandoned")
        return Ok(FINISH)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _conflicted_files(self) -> list[str]:
        files = self._backend.conflicted_files()
        if isinstance(files, Err):
            self._console.warning(f"could not list conflicted files: {files.error.message}")
            return []
        return files.value

    def _abort_cherry_pick(self) -> None:
        if self._options.dry_run:
            return
        aborted = self._backend.cherry_pick_abort()
        if isinstance(aborted, Err):
            self._console.warning(f"cherry-pick --abort failed: {aborted.error.message}")
        else:
            self._console.info("cherry-pick aborted")

    def _print_conflict_guidance(self) -> None:
        self._console.print("Resolve the conflicts, stage the files, then run:", Style.DIM)
        self._console.print("  git cherry-pick --continue", Style.DIM)
        self._console.print("or give up with:", Style.DIM)
        self._console.print("  git cherry-pick --abort", Style.DIM)


def _not_stopped() -> RelayError:
    return RelayError(kind="invalid_input", message="run is not stopped on a cherry-pick")
