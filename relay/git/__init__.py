"""Git collaborator for the release and sync engine.

- GitBackend: the protocol the engine depends on
- Repository: implementation over the git CLI
- InMemoryBackend: scriptable implementation used by tests

Usage:
    from relay.git import Repository

    repo = Repository(Path.cwd())
    commits = repo.list_commits("origin/develop", 30)
    if commits.is_ok():
        for commit in commits.unwrap():
            print(commit.label())
"""

from relay.git.backend import GitBackend, ResetMode
from relay.git.memory import InMemoryBackend
from relay.git.models import (
    BranchList,
    Commit,
    FileStat,
    GitError,
    GitStatus,
    RemoteTarget,
    StatusEntry,
)
from relay.git.repository import Repository

__all__ = [
    # Protocol
    "GitBackend",
    "ResetMode",
    # Implementations
    "InMemoryBackend",
    "Repository",
    # Models
    "BranchList",
    "Commit",
    "FileStat",
    "GitError",
    "GitStatus",
    "RemoteTarget",
    "StatusEntry",
]
