"""Error payload for the release and sync engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relay.git.models import GitError

__all__ = ["RelayError", "RelayErrorKind", "from_git_error"]

RelayErrorKind = Literal[
    "invalid_input",
    "empty_plan",
    "unknown_remote",
    "dirty_worktree",
    "worktree_unknown",
    "not_enough_remotes",
    "ref_missing",
    "checkout_failed",
    "divergence_failed",
    "git_failed",
    "session_failed",
]


@dataclass(frozen=True, slots=True)
class RelayError:
    """Canonical engine error payload.

    Precondition failures (returned before any mutating git call) and git
    failures that abort a workflow share this shape so the CLI can render them
    and pick an exit code from `kind` alone.
    """

    kind: RelayErrorKind
    message: str
    hint: str | None = None


def from_git_error(
    error: GitError, *, kind: RelayErrorKind = "git_failed", hint: str | None = None
) -> RelayError:
    return RelayError(kind=kind, message=f"git {error.command}: {error.message}", hint=hint)
