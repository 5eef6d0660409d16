"""In-memory GitBackend that records every call.

Used by the test suite to drive the release and sync workflows without a real
repository. Tests seed refs, commits and remotes, inject failures with
`fail()`, and then assert on `calls`.

Only behaviour the workflows observe is modelled: checking out a ref moves
HEAD, cherry-picks and pushes are recorded, pushes update remote heads, and a
forced push with an expected tip is rejected when the remote head differs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from relay.core.result import Err, Ok, Result
from relay.git.backend import ResetMode
from relay.git.models import BranchList, Commit, FileStat, GitError, RemoteTarget

__all__ = ["Call", "InMemoryBackend"]


@dataclass(frozen=True, slots=True)
class Call:
    method: str
    args: tuple[str, ...] = ()


@dataclass
class InMemoryBackend:
    """Scriptable backend.

    Attributes:
        refs: ref name -> commit hash ("origin/release", "HEAD", "main", ...)
        history: ref name -> commits reachable from it, newest first
        stats: commit hash -> per-file stats (also drives files_changed)
        diffs: (ref_a, ref_b) -> files changed on ref_b since the merge base
        diff_stats: (ref_a, ref_b) -> diffstat text
        divergence: (ref_a, ref_b) -> (only on a, only on b)
        ancestors: set of (ancestor, descendant) pairs
        branch: checked-out branch, None when detached
        dirty: tracked working tree changes present
        conflicts: files reported as conflicted
        remotes: configured remotes, in order
        remote_heads: (remote, branch) -> tip as seen by ls-remote
    """

    refs: dict[str, str] = field(default_factory=lambda: {})
    history: dict[str, list[Commit]] = field(default_factory=lambda: {})
    stats: dict[str, list[FileStat]] = field(default_factory=lambda: {})
    diffs: dict[tuple[str, str], list[str]] = field(default_factory=lambda: {})
    diff_stats: dict[tuple[str, str], str] = field(default_factory=lambda: {})
    divergence: dict[tuple[str, str], tuple[int, int]] = field(default_factory=lambda: {})
    ancestors: set[tuple[str, str]] = field(default_factory=lambda: set())
    branch: str | None = "main"
    local_branches: list[str] = field(default_factory=lambda: ["main"])
    dirty: bool = False
    conflicts: list[str] = field(default_factory=lambda: [])
    remotes: list[RemoteTarget] = field(default_factory=lambda: [])
    remote_heads: dict[tuple[str, str], str] = field(default_factory=lambda: {})
    calls: list[Call] = field(default_factory=lambda: [])
    _failures: dict[tuple[str, str | None], GitError] = field(default_factory=lambda: {})

    # Test helpers

    def add_remote(self, name: str, url: str | None = None) -> None:
        url = url or f"https://example.invalid/{name}.git"
        self.remotes.append(RemoteTarget(name=name, fetch_url=url, push_url=url))

    def add_commits(self, ref: str, commits: list[Commit]) -> None:
        """Register `commits` (newest first) as the history of `ref`."""
        self.history[ref] = list(commits)
        if commits:
            self.refs[ref] = commits[0].full_hash

    def fail(self, method: str, arg: str | None = None, message: str = "simulated failure") -> None:
        """Make `method` fail, for every call or only when its first argument is `arg`."""
        self._failures[(method, arg)] = GitError(command=method, message=message)

    def heal(self, method: str, arg: str | None = None) -> None:
        self._failures.pop((method, arg), None)

    def calls_to(self, method: str) -> list[Call]:
        return [c for c in self.calls if c.method == method]

    def mutating_calls(self) -> list[Call]:
        mutating = {
            "checkout",
            "cherry_pick",
            "cherry_pick_continue",
            "cherry_pick_abort",
            "push",
            "branch_create",
            "remote_add",
            "revert",
            "reset",
        }
        return [c for c in self.calls if c.method in mutating]

    def _record(self, method: str, *args: str) -> GitError | None:
        self.calls.append(Call(method=method, args=args))
        first = args[0] if args else None
        return self._failures.get((method, first)) or self._failures.get((method, None))

    def _history_of(self, ref: str) -> list[Commit] | None:
        if ref in self.history:
            return self.history[ref]
        for commits in self.history.values():
            if commits and commits[0].full_hash == ref:
                return commits
        return None

    def _reachable(self, ref: str) -> set[str]:
        """Hashes reachable from `ref`.

        A ref without registered history that points into another ref's
        history reaches that commit and everything older in the list.
        """
        commits = self._history_of(ref)
        if commits is not None:
            return {c.full_hash for c in commits}
        tip = self.refs.get(ref, ref)
        for commits in self.history.values():
            hashes = [c.full_hash for c in commits]
            if tip in hashes:
                return set(hashes[hashes.index(tip) :])
        return set()

    # Queries

    def toplevel(self) -> Result[Path, GitError]:
        if err := self._record("toplevel"):
            return Err(err)
        return Ok(Path("."))

    def resolve_ref(self, ref: str) -> str | None:
        if self._record("resolve_ref", ref):
            return None
        if ref in self.refs:
            return self.refs[ref]
        if any(c.full_hash == ref for commits in self.history.values() for c in commits):
            return ref
        return None

    def list_commits(self, ref: str, count: int) -> Result[list[Commit], GitError]:
        if err := self._record("list_commits", ref, str(count)):
            return Err(err)
        if ref not in self.history:
            return Err(GitError(command="log", message=f"unknown revision: {ref}"))
        return Ok(self.history[ref][:count])

    def list_commits_between(self, base: str, tip: str) -> Result[list[Commit], GitError]:
        if err := self._record("list_commits_between", base, tip):
            return Err(err)
        commits = self._history_of(tip)
        if commits is None:
            return Err(GitError(command="log", message=f"unknown revision: {tip}"))
        excluded = self._reachable(base)
        return Ok([c for c in commits if c.full_hash not in excluded])

    def count_commits(self, ref: str) -> Result[int, GitError]:
        if err := self._record("count_commits", ref):
            return Err(err)
        if ref not in self.history:
            return Err(GitError(command="rev-list", message=f"unknown revision: {ref}"))
        return Ok(len(self.history[ref]))

    def files_changed(self, commit: str) -> Result[list[str], GitError]:
        if err := self._record("files_changed", commit):
            return Err(err)
        return Ok([s.path for s in self.stats.get(commit, [])])

    def files_changed_with_stats(self, commit: str) -> Result[list[FileStat], GitError]:
        if err := self._record("files_changed_with_stats", commit):
            return Err(err)
        return Ok(list(self.stats.get(commit, [])))

    def diff_files(self, ref_a: str, ref_b: str) -> Result[list[str], GitError]:
        if err := self._record("diff_files", ref_a, ref_b):
            return Err(err)
        return Ok(list(self.diffs.get((ref_a, ref_b), [])))

    def diff_stat(self, ref_a: str, ref_b: str) -> Result[str, GitError]:
        if err := self._record("diff_stat", ref_a, ref_b):
            return Err(err)
        return Ok(self.diff_stats.get((ref_a, ref_b), ""))

    def ahead_behind(self, ref_a: str, ref_b: str) -> Result[tuple[int, int], GitError]:
        if err := self._record("ahead_behind", ref_a, ref_b):
            return Err(err)
        return Ok(self.divergence.get((ref_a, ref_b), (0, 0)))

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        if self._record("is_ancestor", ancestor, descendant):
            return False
        return (ancestor, descendant) in self.ancestors

    def current_branch(self) -> str | None:
        self._record("current_branch")
        return self.branch

    def has_uncommitted_tracked_changes(self) -> Result[bool, GitError]:
        if err := self._record("has_uncommitted_tracked_changes"):
            return Err(err)
        return Ok(self.dirty)

    def conflicted_files(self) -> Result[list[str], GitError]:
        if err := self._record("conflicted_files"):
            return Err(err)
        return Ok(list(self.conflicts))

    def list_branches(self) -> Result[BranchList, GitError]:
        if err := self._record("list_branches"):
            return Err(err)
        remote = tuple(
            ref for ref in self.refs if any(ref.startswith(f"{r.name}/") for r in self.remotes)
        )
        return Ok(BranchList(local=tuple(self.local_branches), remote=remote))

    def remote_list(self) -> Result[list[RemoteTarget], GitError]:
        if err := self._record("remote_list"):
            return Err(err)
        return Ok(list(self.remotes))

    def ls_remote_head(self, remote: str, branch: str) -> Result[str | None, GitError]:
        if err := self._record("ls_remote_head", remote, branch):
            return Err(err)
        return Ok(self.remote_heads.get((remote, branch)))

    def log_graph(self, limit: int) -> Result[str, GitError]:
        if err := self._record("log_graph", str(limit)):
            return Err(err)
        return Ok("* graph")

    def log_oneline(self, limit: int) -> Result[str, GitError]:
        if err := self._record("log_oneline", str(limit)):
            return Err(err)
        return Ok("\n".join(c.label() for c in self.history.get("HEAD", [])[:limit]))

    def status_short(self) -> Result[str, GitError]:
        if err := self._record("status_short"):
            return Err(err)
        return Ok(f"## {self.branch or 'HEAD (no branch)'}")

    # Mutations

    def checkout(self, ref: str, *, detach: bool = False) -> Result[None, GitError]:
        if err := self._record("checkout", ref, *(("--detach",) if detach else ())):
            return Err(err)
        self.branch = ref if ref in self.local_branches and not detach else None
        return Ok(None)

    def cherry_pick(self, commit: str) -> Result[None, GitError]:
        if err := self._record("cherry_pick", commit):
            return Err(err)
        return Ok(None)

    def cherry_pick_continue(self) -> Result[None, GitError]:
        if err := self._record("cherry_pick_continue"):
            return Err(err)
        self.conflicts = []
        return Ok(None)

    def cherry_pick_abort(self) -> Result[None, GitError]:
        if err := self._record("cherry_pick_abort"):
            return Err(err)
        self.conflicts = []
        return Ok(None)

    def push(
        self,
        remote: str,
        local_ref: str,
        remote_ref: str,
        *,
        force: bool = False,
        expected: str | None = None,
    ) -> Result[None, GitError]:
        lease: tuple[str, ...] = ()
        if force and expected:
            lease = (f"--force-with-lease={remote_ref}:{expected}",)
        elif force:
            lease = ("--force-with-lease",)
        if err := self._record("push", remote, local_ref, remote_ref, *lease):
            return Err(err)
        branch = remote_ref.removeprefix("refs/heads/")
        current = self.remote_heads.get((remote, branch))
        if force and expected and current != expected:
            return Err(GitError(command="push", message=f"! [rejected] {branch} (stale info)"))
        self.remote_heads[(remote, branch)] = self.refs.get(local_ref, local_ref)
        return Ok(None)

    def fetch(self, remote: str | None = None) -> Result[None, GitError]:
        if err := self._record("fetch", *((remote,) if remote is not None else ())):
            return Err(err)
        return Ok(None)

    def branch_create(self, name: str, start: str | None = None) -> Result[None, GitError]:
        if err := self._record("branch_create", name, *((start,) if start else ())):
            return Err(err)
        self.local_branches.append(name)
        return Ok(None)

    def remote_add(self, name: str, url: str) -> Result[None, GitError]:
        if err := self._record("remote_add", name, url):
            return Err(err)
        self.add_remote(name, url)
        return Ok(None)

    def revert(self, commit: str) -> Result[None, GitError]:
        if err := self._record("revert", commit):
            return Err(err)
        return Ok(None)

    def reset(self, ref: str, mode: ResetMode) -> Result[None, GitError]:
        if err := self._record("reset", ref, mode):
            return Err(err)
        return Ok(None)
