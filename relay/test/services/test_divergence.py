"""Tests for services/divergence.py."""

from __future__ import annotations

from relay.core.result import Err, Ok
from relay.git.memory import InMemoryBackend
from relay.git.models import Commit
from relay.services.divergence import DivergenceInfo, compare


def _backend() -> InMemoryBackend:
    return InMemoryBackend(refs={"origin/main": "s1", "mirror/main": "t1"})


def test_fast_forward() -> None:
    backend = _backend()
    backend.divergence[("mirror/main", "origin/main")] = (0, 3)
    backend.ancestors.add(("t1", "s1"))

    result = compare(backend, "mirror/main", "origin/main")

    assert result == Ok(
        DivergenceInfo(ahead=3, behind=0, can_fast_forward=True, target_exists=True)
    )


def test_diverged() -> None:
    backend = _backend()
    backend.divergence[("mirror/main", "origin/main")] = (2, 3)

    info = compare(backend, "mirror/main", "origin/main").unwrap()

    assert info.ahead == 3
    assert info.behind == 2
    assert info.can_fast_forward is False
    assert info.diverged is True


def test_in_sync() -> None:
    backend = InMemoryBackend(refs={"origin/main": "s1", "mirror/main": "s1"})

    info = compare(backend, "mirror/main", "origin/main").unwrap()

    assert info.in_sync is True
    assert info.can_fast_forward is False
    assert (info.ahead, info.behind) == (0, 0)
    assert backend.calls_to("ahead_behind") == []


def test_absent_target_counts_all_source_commits() -> None:
    backend = InMemoryBackend()
    backend.add_commits(
        "origin/main",
        [Commit(full_hash=h, subject=h, author_date="2026-01-01") for h in ("s2", "s1")],
    )

    info = compare(backend, "mirror/main", "origin/main").unwrap()

    assert info == DivergenceInfo(ahead=2, behind=0, can_fast_forward=True, target_exists=False)
    assert info.diverged is False



def test_missing_source() -> None:
    result = compare(InMemoryBackend(), "mirror/main", "origin/main")
    assert isinstance(result, Err)
    assert result.error.kind == "ref_missing"


def test_count_failure() -> None:
    backend = InMemoryBackend(refs={"origin/main": "s1"})
    backend.fail("count_commits")

    result = compare(backend, "mirror/main", "origin/main")

    assert isinstance(result, Err)
    assert result.error.kind == "divergence_failed"


def test_ahead_behind_failure() -> None:
    backend = _backend()
    backend.fail("ahead_behind")
    result = compare(backend, "mirror/main", "origin/main")
    assert isinstance(result, Err)
    assert result.error.kind == "divergence_failed"
