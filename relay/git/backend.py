"""The version-control collaborator consumed by the engine.

The engine never parses git output: it talks to a GitBackend, which returns
structured values or a GitError. `Repository` implements this over the git
CLI; `InMemoryBackend` implements it in memory for tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Protocol

from relay.core.result import Result
from relay.git.models import BranchList, Commit, FileStat, GitError, RemoteTarget

__all__ = ["GitBackend", "ResetMode"]

ResetMode = Literal["soft", "mixed", "hard"]


class GitBackend(Protocol):
    # Queries

    def toplevel(self) -> Result[Path, GitError]: ...

    def resolve_ref(self, ref: str) -> str | None:
        """Full hash of the commit `ref` points to, or None if it does not resolve."""
        ...

    def list_commits(self, ref: str, count: int) -> Result[list[Commit], GitError]:
        """Up to `count` commits reachable from `ref`, newest first."""
        ...

    def list_commits_between(self, base: str, tip: str) -> Result[list[Commit], GitError]:
        """Commits reachable from `tip` but not from `base` (`base..tip`), newest first."""
        ...

    def count_commits(self, ref: str) -> Result[int, GitError]: ...

    def files_changed(self, commit: str) -> Result[list[str], GitError]: ...

    def files_changed_with_stats(self, commit: str) -> Result[list[FileStat], GitError]: ...

    def diff_files(self, ref_a: str, ref_b: str) -> Result[list[str], GitError]:
        """Files changed on `ref_b` since its merge base with `ref_a`."""
        ...

    def diff_stat(self, ref_a: str, ref_b: str) -> Result[str, GitError]: ...

    def ahead_behind(self, ref_a: str, ref_b: str) -> Result[tuple[int, int], GitError]:
        """(commits only on ref_a, commits only on ref_b)."""
        ...

    def is_ancestor(self, ancestor: str, descendant: str) -> bool: ...

    def current_branch(self) -> str | None:
        """Checked-out branch name; None when HEAD is detached or unreadable."""
        ...

    def has_uncommitted_tracked_changes(self) -> Result[bool, GitError]:
        """True if tracked files differ from HEAD. Untracked files are ignored."""
        ...

    def conflicted_files(self) -> Result[list[str], GitError]: ...

    def list_branches(self) -> Result[BranchList, GitError]: ...

    def remote_list(self) -> Result[list[RemoteTarget], GitError]: ...

    def ls_remote_head(self, remote: str, branch: str) -> Result[str | None, GitError]:
        """Tip of refs/heads/<branch> as seen on the remote itself."""
        ...

    def log_graph(self, limit: int) -> Result[str, GitError]: ...

    def log_oneline(self, limit: int) -> Result[str, GitError]: ...

    def status_short(self) -> Result[str, GitError]: ...

    # Mutations

    def checkout(self, ref: str, *, detach: bool = False) -> Result[None, GitError]: ...

    def cherry_pick(self, commit: str) -> Result[None, GitError]: ...

    def cherry_pick_continue(self) -> Result[None, GitError]: ...

    def cherry_pick_abort(self) -> Result[None, GitError]: ...

    def push(
        self,
        remote: str,
        local_ref: str,
        remote_ref: str,
        *,
        force: bool = False,
        expected: str | None = None,
    ) -> Result[None, GitError]:
        """Push `local_ref:remote_ref`; `force` means --force-with-lease.

        With `expected`, the lease holds only while `remote_ref` on the remote
        still points at that commit.
        """
        ...

    def fetch(self, remote: str | None = None) -> Result[None, GitError]:
        """Fetch one remote, or all remotes when `remote` is None."""
        ...

    def branch_create(self, name: str, start: str | None = None) -> Result[None, GitError]: ...

    def remote_add(self, name: str, url: str) -> Result[None, GitError]: ...

    def revert(self, commit: str) -> Result[None, GitError]: ...

    def reset(self, ref: str, mode: ResetMode) -> Result[None, GitError]: ...
