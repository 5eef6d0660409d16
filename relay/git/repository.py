"""Git CLI implementation of the GitBackend collaborator.

Every method shells out to `git -C <path> ...` through the process layer and
turns the text output into model values. Path listings use `-z` so that file
names with spaces or unusual characters survive parsing unchanged.

Usage:
    repo = Repository(Path("."))

    match repo.list_commits("origin/develop", 30):
        case Ok(commits):
            for c in commits:
                print(c.label())
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

import re
from pathlib import Path

from relay.core.result import Err, Ok, Result
from relay.git.backend import ResetMode
from relay.git.models import (
    BranchList,
    Commit,
    FileStat,
    GitError,
    GitStatus,
    RemoteTarget,
    StatusEntry,
)
from relay.platform.process import ProcessError
from relay.platform.process import run as run_process

__all__ = ["Repository"]

_FIELD_SEP = "\x1f"
_COMMIT_FORMAT = f"%H{_FIELD_SEP}%as{_FIELD_SEP}%s"
_REMOTE_LINE = re.compile(r"^(\S+)\s+(\S+)\s+\((fetch|push)\)$")


class Repository:
    """Git repository rooted at `path`.

    Attributes:
        path: Path to the working tree (any directory inside it works)
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a valid git repository."""
        return isinstance(self._run(["rev-parse", "--git-dir"]), Ok)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def toplevel(self) -> Result[Path, GitError]:
        return self._git("rev-parse", ["rev-parse", "--show-toplevel"]).map(
            lambda out: Path(out.strip())
        )

    def resolve_ref(self, ref: str) -> str | None:
        result = self._run(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])
        match result:
            case Ok(stdout):
                return stdout.strip() or None
            case Err(_):
                return None

    def list_commits(self, ref: str, count: int) -> Result[list[Commit], GitError]:
        result = self._git(
            "log", ["log", "-z", f"--format={_COMMIT_FORMAT}", "-n", str(count), ref, "--"]
        )
        return result.map(_parse_commits)

    def list_commits_between(self, base: str, tip: str) -> Result[list[Commit], GitError]:
        # base..tip is exactly the set base lacks, whatever the commit dates.
        result = self._git(
            "log",
            ["log", "-z", f"--format={_COMMIT_FORMAT}", "--topo-order", f"{base}..{tip}", "--"],
        )
        return result.map(_parse_commits)

    def count_commits(self, ref: str) -> Result[int, GitError]:
        result = self._git("rev-list", ["rev-list", "--count", ref, "--"])
        if isinstance(result, Err):
            return result
        try:
            return Ok(int(result.value.strip()))
        except ValueError:
            return Err(GitError(command="rev-list", message=f"unexpected output: {result.value!r}"))

    def files_changed(self, commit: str) -> Result[list[str], GitError]:
        result = self._git(
            "diff-tree",
            ["diff-tree", "--no-commit-id", "--name-only", "-r", "--root", "-z", commit],
        )
        return result.map(_split_nul)

    def files_changed_with_stats(self, commit: str) -> Result[list[FileStat], GitError]:
        result = self._git(
            "diff-tree",
            ["diff-tree", "--no-commit-id", "--numstat", "-r", "--root", "-z", commit],
        )
        return result.map(_parse_numstat)

    def diff_files(self, ref_a: str, ref_b: str) -> Result[list[str], GitError]:
        result = self._git("diff", ["diff", "--name-only", "-z", f"{ref_a}...{ref_b}", "--"])
        return result.map(_split_nul)

    def diff_stat(self, ref_a: str, ref_b: str) -> Result[str, GitError]:
        result = self._git("diff", ["diff", "--stat", f"{ref_a}...{ref_b}", "--"])
        return result.map(lambda out: out.rstrip())

    def ahead_behind(self, ref_a: str, ref_b: str) -> Result[tuple[int, int], GitError]:
        result = self._git(
            "rev-list", ["rev-list", "--left-right", "--count", f"{ref_a}...{ref_b}", "--"]
        )
        if isinstance(result, Err):
            return result
        parts = result.value.split()
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            return Err(
                GitError(command="rev-list", message=f"unexpected output: {result.value!r}")
            )
        return Ok((int(parts[0]), int(parts[1])))

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return isinstance(self._run(["merge-base", "--is-ancestor", ancestor, descendant]), Ok)

    def current_branch(self) -> str | None:
        """Get current branch name. Returns None if detached HEAD or error."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def status(self) -> Result[GitStatus, GitError]:
        """Runs `git status --porcelain=v1 -b` and parses the output."""
        return self._git("status", ["status", "--porcelain=v1", "-b"]).map(_parse_status)

    def has_uncommitted_tracked_changes(self) -> Result[bool, GitError]:
        return self.status().map(lambda st: st.has_tracked_changes)

    def conflicted_files(self) -> Result[list[str], GitError]:
        result = self._git("diff", ["diff", "--name-only", "--diff-filter=U", "-z"])
        return result.map(_split_nul)

    def list_branches(self) -> Result[BranchList, GitError]:
        local = self._git("branch", ["branch", "--format=%(refname:short)"])
        if isinstance(local, Err):
            return local
        remote = self._git("branch", ["branch", "-r", "--format=%(refname)"])
        if isinstance(remote, Err):
            return remote

        local_names = tuple(ln.strip() for ln in local.value.splitlines() if ln.strip())
        remote_names: list[str] = []
        for line in remote.value.splitlines():
            name = line.strip().removeprefix("refs/remotes/")
            if not name or name.endswith("/HEAD"):
                continue
            remote_names.append(name)
        return Ok(BranchList(local=local_names, remote=tuple(remote_names)))

    def remote_list(self) -> Result[list[RemoteTarget], GitError]:
        return self._git("remote", ["remote", "-v"]).map(_parse_remotes)

    def ls_remote_head(self, remote: str, branch: str) -> Result[str | None, GitError]:
        result = self._git("ls-remote", ["ls-remote", remote, f"refs/heads/{branch}"])
        if isinstance(result, Err):
            return result
        for line in result.value.splitlines():
            parts = line.split()
            if len(parts) == 2 and parts[1] == f"refs/heads/{branch}":
                return Ok(parts[0])
        return Ok(None)

    def log_graph(self, limit: int) -> Result[str, GitError]:
        return self._git(
            "log", ["log", "--graph", "--decorate", "--oneline", "--all", "-n", str(limit)]
        ).map(lambda out: out.rstrip())

    def log_oneline(self, limit: int) -> Result[str, GitError]:
        return self._git("log", ["log", "-n", str(limit), "--oneline", "--decorate"]).map(
            lambda out: out.rstrip()
        )

    def status_short(self) -> Result[str, GitError]:
        return self._git("status", ["status", "-sb"]).map(lambda out: out.rstrip())

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def checkout(self, ref: str, *, detach: bool = False) -> Result[None, GitError]:
        args = ["checkout", "--detach", ref] if detach else ["checkout", ref]
        return self._git("checkout", args).map(_discard)

    def cherry_pick(self, commit: str) -> Result[None, GitError]:
        return self._git("cherry-pick", ["cherry-pick", commit]).map(_discard)

    def cherry_pick_continue(self) -> Result[None, GitError]:
        # Keep the original message instead of opening an editor.
        return self._git(
            "cherry-pick", ["-c", "core.editor=true", "cherry-pick", "--continue"]
        ).map(_discard)

    def cherry_pick_abort(self) -> Result[None, GitError]:
        return self._git("cherry-pick", ["cherry-pick", "--abort"]).map(_discard)

    def push(
        self,
        remote: str,
        local_ref: str,
        remote_ref: str,
        *,
        force: bool = False,
        expected: str | None = None,
    ) -> Result[None, GitError]:
        args = ["push"]
        if force and expected:
            args.append(f"--force-with-lease={remote_ref}:{expected}")
        elif force:
            args.append("--force-with-lease")
        args.extend([remote, f"{local_ref}:{remote_ref}"])
        return self._git("push", args).map(_discard)

    def fetch(self, remote: str | None = None) -> Result[None, GitError]:
        args = ["fetch", remote] if remote is not None else ["fetch", "--all"]
        return self._git("fetch", args).map(_discard)

    def branch_create(self, name: str, start: str | None = None) -> Result[None, GitError]:
        args = ["branch", name] if start is None else ["branch", name, start]
        return self._git("branch", args).map(_discard)

    def remote_add(self, name: str, url: str) -> Result[None, GitError]:
        return self._git("remote", ["remote", "add", name, url]).map(_discard)

    def revert(self, commit: str) -> Result[None, GitError]:
        return self._git("revert", ["revert", "--no-edit", commit]).map(_discard)

    def reset(self, ref: str, mode: ResetMode) -> Result[None, GitError]:
        return self._git("reset", ["reset", f"--{mode}", ref]).map(_discard)

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _git(self, command: str, args: list[str]) -> Result[str, GitError]:
        """Run git and convert a ProcessError into a GitError."""
        result = self._run(args)
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command=command,
                        message=e.stderr.strip() or e.stdout.strip() or f"git {command} failed",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path)


def _discard(_: str) -> None:
    return None


def _split_nul(output: str) -> list[str]:
    return [item for item in output.split("\0") if item]


def _parse_commits(output: str) -> list[Commit]:
    commits: list[Commit] = []
    for record in output.split("\0"):
        record = record.strip("\n")
        if not record:
            continue
        parts = record.split(_FIELD_SEP, 2)
        if len(parts) != 3:
            continue
        full_hash, date, subject = parts
        commits.append(Commit(full_hash=full_hash, subject=subject, author_date=date))
    return commits


def _parse_count(value: str) -> int | None:
    return None if value == "-" else int(value)


def _parse_numstat(output: str) -> list[FileStat]:
    """Parse `--numstat -z` output.

    Regular entries are `added\\tremoved\\tpath\\0`. Renames leave the path
    field empty and follow with `old\\0new\\0`; the new path is reported.
    """
    tokens = output.split("\0")
    stats: list[FileStat] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1
        if not token:
            continue
        fields = token.split("\t", 2)
        if len(fields) != 3:
            continue
        added, removed, path = fields
        if not path:
            if i + 1 >= len(tokens):
                break
            path = tokens[i + 1]
            i += 2
        stats.append(FileStat(path=path, added=_parse_count(added), removed=_parse_count(removed)))
    return stats


def _parse_remotes(output: str) -> list[RemoteTarget]:
    """Parse `git remote -v`, keeping first-seen order."""
    fetch_urls: dict[str, str] = {}
    push_urls: dict[str, str] = {}
    order: list[str] = []
    for line in output.splitlines():
        match = _REMOTE_LINE.match(line.strip())
        if match is None:
            continue
        name, url, kind = match.groups()
        if name not in order:
            order.append(name)
        if kind == "fetch":
            fetch_urls[name] = url
        else:
            push_urls[name] = url
    return [
        RemoteTarget(name=name, fetch_url=fetch_urls.get(name), push_url=push_urls.get(name))
        for name in order
    ]


def _parse_status(output: str) -> GitStatus:
    """Parse `git status --porcelain=v1 -b` output."""
    lines = [ln for ln in output.splitlines() if ln.strip()]
    if not lines:
        return GitStatus(branch="")

    # First line is branch info: ## branch...upstream [ahead N, behind M]
    head = lines[0]
    branch = ""
    if head.startswith("##"):
        branch = head[2:].strip().split(" [", 1)[0].split("...", 1)[0].strip()
        lines = lines[1:]

    entries: list[StatusEntry] = []
    for line in lines:
        if len(line) < 4:
            continue
        entries.append(StatusEntry(xy=line[:2], path=line[3:]))

    return GitStatus(branch=branch, entries=tuple(entries))
