"""Value objects describing what a release or sync run will do."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field, replace

from relay.core.result import Err, Ok, Result
from relay.git.models import Commit, RemoteTarget
from relay.services.divergence import DivergenceInfo
from relay.services.errors import RelayError

__all__ = [
    "CommitSelection",
    "ReleaseDraft",
    "ReleasePlan",
    "SyncPlan",
    "SyncRequest",
]


@dataclass(frozen=True, slots=True)
class CommitSelection:
    """Commits picked by the operator, in the order they were picked.

    Candidates are listed newest first, so a selection built from ascending
    indices runs newest to oldest; `chronological()` gives apply order.
    """

    commits: tuple[Commit, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for commit in self.commits:
            if commit.full_hash in seen:
                raise ValueError(f"commit selected twice: {commit.short_hash}")
            seen.add(commit.full_hash)

    @classmethod
    def from_indices(cls, candidates: Sequence[Commit], indices: Sequence[int]) -> CommitSelection:
        """Pick candidates by 1-based index. Indices out of range are ignored."""
        picked: list[Commit] = []
        for index in indices:
            if 1 <= index <= len(candidates):
                commit = candidates[index - 1]
                if commit not in picked:
                    picked.append(commit)
        return cls(tuple(picked))

    @classmethod
    def last(cls, candidates: Sequence[Commit], count: int) -> CommitSelection:
        """The `count` newest candidates."""
        return cls(tuple(candidates[: max(count, 0)]))

    def chronological(self) -> tuple[Commit, ...]:
        return tuple(reversed(self.commits))

    @property
    def hashes(self) -> tuple[str, ...]:
        return tuple(c.full_hash for c in self.commits)

    def __len__(self) -> int:
        return len(self.commits)

    def __iter__(self) -> Iterator[Commit]:
        return iter(self.commits)


@dataclass(frozen=True, slots=True)
class ReleasePlan:
    """Everything a release run needs.

    `base_ref` defaults to `<first remote>/<target_branch>`, the release line
    the cherry-picks are stacked on.
    """

    commits: CommitSelection
    target_branch: str
    remotes: tuple[RemoteTarget, ...]
    base_ref: str = ""

    def __post_init__(self) -> None:
        if not self.base_ref and self.remotes:
            object.__setattr__(self, "base_ref", f"{self.remotes[0].name}/{self.target_branch}")

    @property
    def remote_names(self) -> tuple[str, ...]:
        return tuple(r.name for r in self.remotes)


@dataclass(frozen=True, slots=True)
class ReleaseDraft:
    """State behind the interactive release menu.

    Only the transition methods below produce new drafts; the menu never
    edits fields directly.
    """

    target_branch: str
    selection: CommitSelection = field(default_factory=CommitSelection)
    remotes: tuple[RemoteTarget, ...] = ()

    def select(self, selection: CommitSelection) -> ReleaseDraft:
        return replace(self, selection=selection)

    def reset(self) -> ReleaseDraft:
        return replace(self, selection=CommitSelection())

    def set_target(self, branch: str) -> ReleaseDraft:
        return replace(self, target_branch=branch.strip())

    def set_remotes(self, remotes: Sequence[RemoteTarget]) -> ReleaseDraft:
        unique: list[RemoteTarget] = []
        for remote in remotes:
            if all(r.name != remote.name for r in unique):
                unique.append(remote)
        return replace(self, remotes=tuple(unique))

    def to_plan(self) -> Result[ReleasePlan, RelayError]:
        if not self.selection:
            return Err(
                RelayError(
                    kind="empty_plan",
                    message="no commits selected",
                    hint="Select commits first",
                )
            )
        if not self.remotes:
            return Err(
                RelayError(
                    kind="empty_plan",
                    message="no target remotes selected",
                    hint="Select at least one remote",
                )
            )
        if not self.target_branch:
            return Err(RelayError(kind="invalid_input", message="target branch is empty"))
        return Ok(
            ReleasePlan(
                commits=self.selection,
                target_branch=self.target_branch,
                remotes=self.remotes,
            )
        )


@dataclass(frozen=True, slots=True)
class SyncRequest:
    """Which branch to mirror from one remote to another."""

    source_remote: str
    target_remote: str
    branch: str

    @property
    def source_ref(self) -> str:
        return f"{self.source_remote}/{self.branch}"

    @property
    def target_ref(self) -> str:
        return f"{self.target_remote}/{self.branch}"


@dataclass(frozen=True, slots=True)
class SyncPlan:
    """Resolved sync: both tips, what would be pushed, and whether it needs force.

    Attributes:
        request: The requested remotes and branch
        source_tip: Full hash of the source branch tip
        target_tip: Full hash of the target branch tip, None if it does not exist
        commits: Commits the target lacks, oldest first
        divergence: Ahead/behind counts of source relative to target
        force_required: Target is not an ancestor of source
    """

    request: SyncRequest
    source_tip: str
    target_tip: str | None
    commits: tuple[Commit, ...]
    divergence: DivergenceInfo
    force_required: bool

    @property
    def in_sync(self) -> bool:
        return self.target_tip is not None and self.target_tip == self.source_tip
