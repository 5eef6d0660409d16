"""Commit metadata and other values produced by backend queries."""

from __future__ import annotations

from dataclasses import dataclass, field

__all__ = [
    "BranchList",
    "Commit",
    "FileStat",
    "GitError",
    "GitStatus",
    "RemoteTarget",
    "StatusEntry",
]

SHORT_HASH_LENGTH = 7


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed (e.g. "cherry-pick")
        message: Error message, usually git's stderr
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class Commit:
    """A single commit. Identity is the full hash.

    Attributes:
        full_hash: 40-char object name
        subject: First line of the commit message
        author_date: Author date, YYYY-MM-DD
    """

    full_hash: str
    subject: str
    author_date: str

    @property
    def short_hash(self) -> str:
        return self.full_hash[:SHORT_HASH_LENGTH]

    def label(self, width: int = 60) -> str:
        """`abc1234 - subject`, subject truncated to width."""
        return f"{self.short_hash} - {self.subject[:width]}"


@dataclass(frozen=True, slots=True)
class FileStat:
    """Per-file line counts for one commit (`git diff-tree --numstat`).

    Both counts are None when git reports the file as binary (`-\t-`).
    """

    path: str
    added: int | None
    removed: int | None

    @property
    def is_binary(self) -> bool:
        return self.added is None and self.removed is None


@dataclass(frozen=True, slots=True)
class RemoteTarget:
    """A configured remote. Names are opaque; only existence is validated."""

    name: str
    fetch_url: str | None = None
    push_url: str | None = None

    @property
    def url(self) -> str:
        return self.push_url or self.fetch_url or "unknown"


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single `git status --porcelain` entry.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str

    @property
    def is_untracked(self) -> bool:
        return self.xy == "??"

    @property
    def is_conflicted(self) -> bool:
        return self.xy in {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Parsed working tree status."""

    branch: str
    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def tracked_changes(self) -> list[StatusEntry]:
        """Entries for tracked files; untracked files are ignored."""
        return [e for e in self.entries if not e.is_untracked]

    @property
    def has_tracked_changes(self) -> bool:
        return bool(self.tracked_changes)


@dataclass(frozen=True, slots=True)
class BranchList:
    """Local and remote-tracking branch names (`origin/main` style)."""

    local: tuple[str, ...] = ()
    remote: tuple[str, ...] = ()

    @property
    def all(self) -> tuple[str, ...]:
        return self.local + self.remote
