"""How far a source ref has moved relative to a target ref."""

from __future__ import annotations

from dataclasses import dataclass

from relay.core.result import Err, Ok, Result
from relay.git.backend import GitBackend
from relay.services.errors import RelayError, from_git_error

__all__ = ["DivergenceInfo", "compare"]


@dataclass(frozen=True, slots=True)
class DivergenceInfo:
    """Source relative to target.

    Attributes:
        ahead: Commits on source that target lacks
        behind: Commits on target that source lacks
        can_fast_forward: Target tip is a strict ancestor of source tip (or absent)
        target_exists: False when the target ref does not resolve
        in_sync: Both tips are the same commit
    """

    ahead: int
    behind: int
    can_fast_forward: bool
    target_exists: bool
    in_sync: bool = False

    @property
    def diverged(self) -> bool:
        return self.ahead > 0 and self.behind > 0


def compare(
    backend: GitBackend, target_ref: str, source_ref: str
) -> Result[DivergenceInfo, RelayError]:
    """Compare `source_ref` against `target_ref`.

    A target that does not exist counts as fast-forwardable with every source
    commit ahead.
    """
    source_tip = backend.resolve_ref(source_ref)
    if source_tip is None:
        return Err(
            RelayError(
                kind="ref_missing",
                message=f"source ref not found: {source_ref}",
                hint="Fetch the remote first",
            )
        )

    target_tip = backend.resolve_ref(target_ref)
    if target_tip is None:
        match backend.count_commits(source_ref):
            case Err(e):
                return Err(from_git_error(e, kind="divergence_failed"))
            case Ok(total):
                return Ok(
                    DivergenceInfo(
                        ahead=total, behind=0, can_fast_forward=True, target_exists=False
                    )
                )

    if target_tip == source_tip:
        return Ok(
            DivergenceInfo(
                ahead=0, behind=0, can_fast_forward=False, target_exists=True, in_sync=True
            )
        )

    counts = backend.ahead_behind(target_ref, source_ref)
    if isinstance(counts, Err):
        return Err(from_git_error(counts.error, kind="divergence_failed"))
    behind, ahead = counts.value

    return Ok(
        DivergenceInfo(
            ahead=ahead,
            behind=behind,
            can_fast_forward=backend.is_ancestor(target_tip, source_tip),
            target_exists=True,
        )
    )
