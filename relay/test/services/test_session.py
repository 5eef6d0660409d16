"""Tests for services/session.py."""

from __future__ import annotations

import json
from pathlib import Path

from relay.core.result import Err, Ok
from relay.git.models import Commit, RemoteTarget
from relay.services.plan import CommitSelection, ReleasePlan
from relay.services.release import Fault, ReleaseRun, ReleaseState
from relay.services.session import (
    clear_release_session,
    load_release_session,
    save_release_session,
    session_path,
)

C2 = Commit(full_hash="b" * 40, subject="fix: two", author_date="2026-03-02")
C1 = Commit(full_hash="a" * 40, subject="fix: one", author_date="2026-03-01")
PLAN = ReleasePlan(
    commits=CommitSelection((C2, C1)),
    target_branch="release",
    remotes=(RemoteTarget("origin", "git@host:o.git", "git@host:o.git"), RemoteTarget("live")),
)


def _stopped() -> ReleaseRun:
    return ReleaseRun(
        plan=PLAN,
        state=ReleaseState.FAULTED,
        original_ref="feature/x",
        applied=(C1.full_hash,),
        fault=Fault(
            stage="cherry_pick",
            message="could not apply bbbbbbb",
            commit=C2,
            conflicted_files=("app/config.py",),
        ),
    )


def test_missing_session_is_none(tmp_path: Path) -> None:
    assert load_release_session(tmp_path) == Ok(None)


def test_saved_run_loads_back(tmp_path: Path) -> None:
    run = _stopped()

    assert save_release_session(tmp_path, run) == Ok(None)
    assert session_path(tmp_path).exists()
    assert load_release_session(tmp_path) == Ok(run)


def test_only_stopped_runs_are_saved(tmp_path: Path) -> None:
    done = ReleaseRun(plan=PLAN, state=ReleaseState.DONE)
    abandoned = ReleaseRun(
        plan=PLAN,
        state=ReleaseState.FAULTED,
        fault=Fault(stage="cherry_pick", message="x", commit=C2, abandoned=True),
    )
    pushed = ReleaseRun(
        plan=PLAN, state=ReleaseState.FAULTED, fault=Fault(stage="push", message="rejected")
    )

    for run in (done, abandoned, pushed):
        result = save_release_session(tmp_path, run)
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_input"
    assert not session_path(tmp_path).exists()


def test_corrupt_file(tmp_path: Path) -> None:
    path = session_path(tmp_path)
    path.parent.mkdir(parents=True)
    path.write_text("{not json", encoding="utf-8")

    result = load_release_session(tmp_path)

    assert isinstance(result, Err)
    assert result.error.kind == "session_failed"


def test_unknown_stopped_commit_is_invalid(tmp_path: Path) -> None:
    save_release_session(tmp_path, _stopped()).unwrap()
    path = session_path(tmp_path)
    data = json.loads(path.read_text(encoding="utf-8"))
    data["stopped_at"] = "f" * 40
    path.write_text(json.dumps(data), encoding="utf-8")

    result = load_release_session(tmp_path)

    assert isinstance(result, Err)
    assert result.error.message == "invalid release session format"


def test_clear(tmp_path: Path) -> None:
    save_release_session(tmp_path, _stopped()).unwrap()

    assert clear_release_session(tmp_path) == Ok(None)
    assert not session_path(tmp_path).exists()
    assert clear_release_session(tmp_path) == Ok(None)
