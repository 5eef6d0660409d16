"""Tests for git/memory.py."""

from __future__ import annotations

from relay.core.result import Err, Ok
from relay.git.memory import Call, InMemoryBackend
from relay.git.models import Commit, FileStat


def _commits(*hashes: str) -> list[Commit]:
    return [Commit(full_hash=h, subject=f"subject {h}", author_date="2026-01-01") for h in hashes]


def test_add_commits_sets_ref_tip() -> None:
    backend = InMemoryBackend()
    backend.add_commits("origin/dev", _commits("c3", "c2", "c1"))

    assert backend.resolve_ref("origin/dev") == "c3"
    assert backend.resolve_ref("c2") == "c2"
    assert backend.resolve_ref("nope") is None
    assert backend.list_commits("origin/dev", 2) == Ok(_commits("c3", "c2"))
    assert backend.count_commits("origin/dev") == Ok(3)


def test_unknown_ref_errors() -> None:
    backend = InMemoryBackend()
    assert isinstance(backend.list_commits("nope", 5), Err)
    assert isinstance(backend.count_commits("nope"), Err)


def test_fail_matches_first_argument() -> None:
    backend = InMemoryBackend()
    backend.fail("cherry_pick", "c2", message="conflict")

    assert isinstance(backend.cherry_pick("c1"), Ok)
    result = backend.cherry_pick("c2")
    assert isinstance(result, Err)
    assert result.error.message == "conflict"

    backend.heal("cherry_pick", "c2")
    assert isinstance(backend.cherry_pick("c2"), Ok)


def test_fail_every_call() -> None:
    backend = InMemoryBackend()
    backend.fail("fetch")
    assert isinstance(backend.fetch("origin"), Err)
    assert isinstance(backend.fetch(), Err)


def test_calls_are_recorded() -> None:
    backend = InMemoryBackend()
    backend.checkout("origin/release", detach=True)
    backend.push("mirror", "HEAD", "release", force=True)
    backend.fetch()

    assert backend.calls == [
        Call("checkout", ("origin/release", "--detach")),
        Call("push", ("mirror", "HEAD", "release", "--force-with-lease")),
        Call("fetch", ()),
    ]
    assert [c.method for c in backend.mutating_calls()] == ["checkout", "push"]


def test_checkout_tracks_branch() -> None:
    backend = InMemoryBackend(local_branches=["main", "dev"])
    backend.checkout("dev")
    assert backend.current_branch() == "dev"
    backend.checkout("abc123")
    assert backend.current_branch() is None
    backend.checkout("main", detach=True)
    assert backend.current_branch() is None


def test_push_updates_remote_heads() -> None:
    backend = InMemoryBackend(refs={"HEAD": "c9"})
    backend.push("origin", "HEAD", "release")
    backend.push("mirror", "c5", "refs/heads/main")

    assert backend.ls_remote_head("origin", "release") == Ok("c9")
    assert backend.ls_remote_head("mirror", "main") == Ok("c5")
    assert backend.ls_remote_head("mirror", "other") == Ok(None)


def test_stats_drive_files_changed() -> None:
    backend = InMemoryBackend(
        stats={"c1": [FileStat("a.py", 1, 0), FileStat("logo.png", None, None)]}
    )
    assert backend.files_changed("c1") == Ok(["a.py", "logo.png"])
    assert backend.files_changed("c2") == Ok([])


def test_remote_add_and_branches() -> None:
    backend = InMemoryBackend(refs={"origin/main": "c1", "main": "c1"})
    backend.add_remote("origin")
    backend.remote_add("mirror", "git@example.invalid:m.git")

    assert [r.name for r in backend.remote_list().unwrap()] == ["origin", "mirror"]
    branches = backend.list_branches().unwrap()
    assert branches.local == ("main",)
    assert branches.remote == ("origin/main",)


def test_conflicts_cleared_by_abort() -> None:
    backend = InMemoryBackend(conflicts=["a.py"])
    assert backend.conflicted_files() == Ok(["a.py"])
    backend.cherry_pick_abort()
    assert backend.conflicted_files() == Ok([])


def test_range_over_merged_history() -> None:
    # main's date-ordered history interleaves T, which target already has.
    backend = InMemoryBackend()
    backend.add_commits("target", _commits("T", "A"))
    backend.add_commits("main", _commits("M", "T", "F2", "F1", "A"))

    assert backend.list_commits_between("target", "main") == Ok(_commits("M", "F2", "F1"))


def test_range_from_a_hash_inside_history() -> None:
    backend = InMemoryBackend()
    backend.add_commits("origin/main", _commits("c3", "c2", "c1"))
    backend.refs["mirror/main"] = "c1"

    assert backend.list_commits_between("mirror/main", "origin/main") == Ok(
        _commits("c3", "c2")
    )
    assert backend.list_commits_between("c9", "origin/main") == Ok(_commits("c3", "c2", "c1"))
    assert isinstance(backend.list_commits_between("c1", "nope"), Err)


def test_forced_push_with_stale_lease_is_rejected() -> None:
    backend = InMemoryBackend(remote_heads={("mirror", "main"): "c7"})

    stale = backend.push("mirror", "c9", "refs/heads/main", force=True, expected="c5")
    assert isinstance(stale, Err)
    assert backend.ls_remote_head("mirror", "main") == Ok("c7")

    fresh = backend.push("mirror", "c9", "refs/heads/main", force=True, expected="c7")
    assert fresh == Ok(None)
    assert backend.ls_remote_head("mirror", "main") == Ok("c9")
    assert backend.calls_to("push")[-1] == Call(
        "push", ("mirror", "c9", "refs/heads/main", "--force-with-lease=refs/heads/main:c7")
    )
