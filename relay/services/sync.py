"""Mirror one remote's branch tip onto another remote.

    selecting -> safety_checked -> review_summary -> review_commits
              -> review_diffstat -> push_decision -> pushed -> verified

Declining any review gate, or the force-with-lease confirmation, ends the run
in `cancelled` without pushing. Equal tips skip straight to `verified`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum

from relay.core.config import DEFAULT_LARGE_FILE_LINES
from relay.core.fsm import FINISH, StepHandler, StepOutcome, advance, run_state_machine
from relay.core.result import Err, Ok, Result
from relay.git.backend import GitBackend
from relay.git.models import Commit
from relay.output.console import ConsoleProtocol, Style
from relay.services.divergence import DivergenceInfo, compare
from relay.services.errors import RelayError, from_git_error
from relay.services.options import ExecutionOptions, Prompter
from relay.services.plan import SyncPlan, SyncRequest
from relay.services.safety import SafetyAnalyzer, SafetyReport, print_safety_report

__all__ = ["SyncRun", "SyncState", "SyncWorkflow"]

COMMIT_LIST_LIMIT = 50
# A branch the target does not have yet carries the whole history; check only the newest.
NEW_BRANCH_SAFETY_LIMIT = 100


class SyncState(StrEnum):
    SELECTING = "selecting"
    SAFETY_CHECKED = "safety_checked"
    REVIEW_SUMMARY = "review_summary"
    REVIEW_COMMITS = "review_commits"
    REVIEW_DIFFSTAT = "review_diffstat"
    PUSH_DECISION = "push_decision"
    PUSHED = "pushed"
    VERIFIED = "verified"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class SyncRun:
    """One sync attempt.

    Attributes:
        request: Remotes and branch being synced
        state: Current state
        plan: Resolved tips and divergence, set once selecting completes
        report: Safety report for the commits the target lacks
        pushed: A push was issued (False in dry-run)
        heads_match: Both remotes reported the same tip after the push
    """

    request: SyncRequest
    state: SyncState = SyncState.SELECTING
    plan: SyncPlan | None = None
    report: SafetyReport | None = None
    pushed: bool = False
    heads_match: bool | None = None

    @property
    def in_sync(self) -> bool:
        return self.plan is not None and self.plan.in_sync

    @property
    def cancelled(self) -> bool:
        return self.state == SyncState.CANCELLED


class SyncWorkflow:
    def __init__(
        self,
        *,
        backend: GitBackend,
        console: ConsoleProtocol,
        prompter: Prompter,
        options: ExecutionOptions | None = None,
        large_file_lines: int = DEFAULT_LARGE_FILE_LINES,
        on_transition: Callable[[SyncRun], None] | None = None,
    ) -> None:
        self._backend = backend
        self._console = console
        self._prompter = prompter
        self._options = options or ExecutionOptions()
        self._analyzer = SafetyAnalyzer(backend=backend, large_file_lines=large_file_lines)
        self._on_transition = on_transition

    def run(self, request: SyncRequest) -> Result[SyncRun, RelayError]:
        return run_state_machine(
            initial_state=SyncRun(request=request),
            get_step=lambda r: r.state.value,
            handlers=self._handlers(),
            unknown_step=lambda step: RelayError(
                kind="invalid_input", message=f"unknown sync state: {step}"
            ),
            on_transition=self._on_transition,
        )

    def _handlers(self) -> dict[str, StepHandler[SyncRun, RelayError]]:
        return {
            SyncState.SELECTING: self._step_select,
            SyncState.SAFETY_CHECKED: self._step_show_safety,
            SyncState.REVIEW_SUMMARY: self._step_review_summary,
            SyncState.REVIEW_COMMITS: self._step_review_commits,
            SyncState.REVIEW_DIFFSTAT: self._step_review_diffstat,
            SyncState.PUSH_DECISION: self._step_push,
            SyncState.PUSHED: self._step_verify,
            SyncState.VERIFIED: self._step_finish,
            SyncState.CANCELLED: self._step_finish,
        }

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _step_select(self, run: SyncRun) -> Result[StepOutcome[SyncRun], RelayError]:
        request = run.request
        valid = self._validate(request)
        if isinstance(valid, Err):
            return valid

        self._console.header(f"Sync {request.source_ref} -> {request.target_ref}")
        for remote in (request.source_remote, request.target_remote):
            fetched = self._backend.fetch(remote)
            if isinstance(fetched, Err):
                self._console.warning(f"fetch {remote} failed: {fetched.error.message}")

        planned = self._plan(request)
        if isinstance(planned, Err):
            return planned
        plan = planned.value

        if plan.in_sync:
            self._console.success(
                f"{request.source_remote} and {request.target_remote} are in sync "
                f"at {plan.source_tip[:7]}; nothing to push"
            )
            return Ok(advance(replace(run, plan=plan, state=SyncState.VERIFIED)))

        checked = plan.commits
        if not plan.divergence.target_exists:
            checked = checked[-NEW_BRANCH_SAFETY_LIMIT:]
        report = self._analyzer.analyze(checked, self._target_ref(plan))
        report = replace(report, omitted=len(plan.commits) - len(checked))
        return Ok(advance(replace(run, plan=plan, report=report, state=SyncState.SAFETY_CHECKED)))

    def _step_show_safety(self, run: SyncRun) -> Result[StepOutcome[SyncRun], RelayError]:
        if run.report is not None:
            self._console.header("Safety check")
            print_safety_report(run.report, self._console)
        return Ok(advance(replace(run, state=SyncState.REVIEW_SUMMARY)))

    def _step_review_summary(self, run: SyncRun) -> Result[StepOutcome[SyncRun], RelayError]:
        plan = _require_plan(run)
        request = plan.request
        info = plan.divergence

        self._console.header("Summary")
        self._console.print(f"  branch:  {request.branch}")
        self._console.print(f"  source:  {request.source_remote} @ {plan.source_tip[:7]}")
        if plan.target_tip is None:
            self._console.print(f"  target:  {request.target_remote} (branch will be created)")
        else:
            self._console.print(f"  target:  {request.target_remote} @ {plan.target_tip[:7]}")
        self._console.print(f"  ahead:   {info.ahead}")
        self._console.print(f"  behind:  {info.behind}")
        if plan.force_required:
            self._console.warning(
                f"{request.target_remote} has {info.behind} commit(s) not on "
                f"{request.source_remote}; a force push would drop them"
            )

        return self._gate(run, "Continue to the commit list?", SyncState.REVIEW_COMMITS)

    def _step_review_commits(self, run: SyncRun) -> Result[StepOutcome[SyncRun], RelayError]:
        plan = _require_plan(run)
        self._console.header(f"Commits to push ({len(plan.commits)})")
        shown = plan.commits[-COMMIT_LIST_LIMIT:]
        if shown:
            self._console.table(
                ["commit", "date", "subject"],
                [[c.short_hash, c.author_date, c.subject] for c in shown],
            )
        if len(plan.commits) > len(shown):
            self._console.print(f"  ... and {len(plan.commits) - len(shown)} older", Style.DIM)

        return self._gate(run, "Commit list looks right?", SyncState.REVIEW_DIFFSTAT)

    def _step_review_diffstat(self, run: SyncRun) -> Result[StepOutcome[SyncRun], RelayError]:
        plan = _require_plan(run)
        self._console.header("Diffstat")
        if plan.target_tip is None:
            self._console.info("target branch does not exist; every file is new there")
        else:
            match self._backend.diff_stat(self._target_ref(plan), self._source_ref(plan)):
                case Ok(text):
                    self._console.print(text.rstrip() or "  (no file changes)")
                case Err(e):
                    self._console.warning(f"could not compute diffstat: {e.message}")

        return self._gate(run, "Diffstat looks right?", SyncState.PUSH_DECISION)

    def _step_push(self, run: SyncRun) -> Result[StepOutcome[SyncRun], RelayError]:
        plan = _require_plan(run)
        request = plan.request

        if plan.force_required and not self._confirm_force(plan):
            self._console.warning("force push declined; nothing pushed")
            return Ok(advance(replace(run, state=SyncState.CANCELLED)))

        refspec = f"{plan.source_tip[:7]} -> {request.target_remote}/{request.branch}"
        if self._options.dry_run:
            mode = " (force-with-lease)" if plan.force_required else ""
            self._console.print(f"  would push {refspec}{mode}", Style.DIM)
            return Ok(advance(replace(run, state=SyncState.PUSHED)))

        pushed = self._backend.push(
            request.target_remote,
            plan.source_tip,
            f"refs/heads/{request.branch}",
            force=plan.force_required,
            expected=plan.target_tip if plan.force_required else None,
        )
        if isinstance(pushed, Err):
            return Err(
                from_git_error(
                    pushed.error,
                    hint="The target may have moved; re-run sync to review again",
                )
            )
        self._console.success(f"pushed {refspec}")
        return Ok(advance(replace(run, state=SyncState.PUSHED, pushed=True)))

    def _step_verify(self, run: SyncRun) -> Result[StepOutcome[SyncRun], RelayError]:
        request = run.request
        if self._options.dry_run:
            self._console.print("  would verify both remotes report the same tip", Style.DIM)
            return Ok(advance(replace(run, state=SyncState.VERIFIED)))

        source = self._backend.ls_remote_head(request.source_remote, request.branch)
        target = self._backend.ls_remote_head(request.target_remote, request.branch)
        match (source, target):
            case (Ok(a), Ok(b)) if a is not None and a == b:
                self._console.success(f"verified: both remotes at {a[:7]}")
                matched = True
            case (Ok(a), Ok(b)):
                self._console.warning(
                    f"remotes differ after push ({_short(a)} vs {_short(b)}); "
                    "someone may have pushed in between"
                )
                matched = False
            case _:
                self._console.warning("could not verify remote heads")
                matched = False
        return Ok(advance(replace(run, state=SyncState.VERIFIED, heads_match=matched)))

    def _step_finish(self, run: SyncRun) -> Result[StepOutcome[SyncRun], RelayError]:
        if run.cancelled:
            self._console.info("sync cancelled")
        return Ok(FINISH)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _validate(self, request: SyncRequest) -> Result[None, RelayError]:
        if not request.branch.strip():
            return Err(RelayError(kind="invalid_input", message="branch name is empty"))

        remotes = self._backend.remote_list()
        if isinstance(remotes, Err):
            return Err(from_git_error(remotes.error))
        names = [r.name for r in remotes.value]
        if len(names) < 2:
            return Err(
                RelayError(
                    kind="not_enough_remotes",
                    message=f"sync needs at least 2 remotes, found {len(names)}",
                    hint="Add one with `git remote add <name> <url>`",
                )
            )
        if request.source_remote == request.target_remote:
            return Err(
                RelayError(kind="invalid_input", message="source and target remote are the same")
            )
        missing = [n for n in (request.source_remote, request.target_remote) if n not in names]
        if missing:
            return Err(
                RelayError(
                    kind="unknown_remote",
                    message=f"remote not configured: {', '.join(missing)}",
                    hint=f"Configured remotes: {', '.join(names)}",
                )
            )
        return Ok(None)

    def _plan(self, request: SyncRequest) -> Result[SyncPlan, RelayError]:
        source_tip = self._resolve_tip(request.source_remote, request.branch)
        if source_tip is None:
            return Err(
                RelayError(
                    kind="ref_missing",
                    message=f"{request.source_ref} does not exist",
                    hint="Check the branch name",
                )
            )
        target_tip = self._resolve_tip(request.target_remote, request.branch)

        if target_tip is not None and target_tip == source_tip:
            return Ok(
                SyncPlan(
                    request=request,
                    source_tip=source_tip,
                    target_tip=target_tip,
                    commits=(),
                    divergence=DivergenceInfo(
                        ahead=0, behind=0, can_fast_forward=False, target_exists=True, in_sync=True
                    ),
                    force_required=False,
                )
            )

        source_ref = self._local_ref(request.source_ref, source_tip)
        target_ref = request.target_ref
        if target_tip is not None:
            target_ref = self._local_ref(request.target_ref, target_tip)
        divergence = compare(self._backend, target_ref, source_ref)
        if isinstance(divergence, Err):
            return divergence
        info = divergence.value

        return Ok(
            SyncPlan(
                request=request,
                source_tip=source_tip,
                target_tip=target_tip,
                commits=self._missing_commits(
                    target_ref if info.target_exists else None, source_ref, info.ahead
                ),
                divergence=info,
                force_required=info.target_exists and not info.can_fast_forward,
            )
        )

    def _resolve_tip(self, remote: str, branch: str) -> str | None:
        tip = self._backend.resolve_ref(f"{remote}/{branch}")
        if tip is not None:
            return tip
        match self._backend.ls_remote_head(remote, branch):
            case Ok(head):
                return head
            case Err(e):
                self._console.warning(f"ls-remote {remote} failed: {e.message}")
                return None

    def _local_ref(self, ref: str, tip: str) -> str:
        """`remote/branch` when it is known locally, otherwise the tip hash."""
        return ref if self._backend.resolve_ref(ref) == tip else tip

    def _missing_commits(
        self, target_ref: str | None, source_ref: str, ahead: int
    ) -> tuple[Commit, ...]:
        """Commits the target lacks, oldest first. A missing target lacks the whole history."""
        if ahead <= 0:
            return ()
        if target_ref is None:
            listed = self._backend.list_commits(source_ref, ahead)
        else:
            listed = self._backend.list_commits_between(target_ref, source_ref)
        match listed:
            case Ok(commits):
                return tuple(reversed(commits))
            case Err(e):
                self._console.warning(f"could not list commits: {e.message}")
                return ()

    def _source_ref(self, plan: SyncPlan) -> str:
        return self._local_ref(plan.request.source_ref, plan.source_tip)

    def _target_ref(self, plan: SyncPlan) -> str:
        if plan.target_tip is None:
            return plan.request.target_ref
        return self._local_ref(plan.request.target_ref, plan.target_tip)

    def _gate(
        self, run: SyncRun, question: str, next_state: SyncState
    ) -> Result[StepOutcome[SyncRun], RelayError]:
        if self._options.skip_confirm or self._prompter.confirm(question, default=True):
            return Ok(advance(replace(run, state=next_state)))
        return Ok(advance(replace(run, state=SyncState.CANCELLED)))

    def _confirm_force(self, plan: SyncPlan) -> bool:
        request = plan.request
        if self._options.allow_force:
            self._console.warning(f"force-pushing {request.target_ref} (--force)")
            return True
        return self._prompter.confirm(
            f"Force-push (with lease) {request.target_remote}/{request.branch}, "
            f"dropping {plan.divergence.behind} commit(s)?",
            default=False,
        )


def _require_plan(run: SyncRun) -> SyncPlan:
    if run.plan is None:
        raise RuntimeError(f"sync state {run.state} reached without a plan")
    return run.plan


def _short(tip: str | None) -> str:
    return tip[:7] if tip else "missing"
