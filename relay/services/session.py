"""Release runs stopped on a conflict, saved between invocations.

A release that stops on a cherry-pick and is left for manual resolution is
written to `.relay/release-session.json` under the repository root.
`relay release --continue` and `--abort` load it and hand the run back to the
executor; a run that finishes (either way) clears it.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import cast

from relay.core.result import Err, Ok, Result
from relay.core.structured import StrDict, as_str_dict, get_int, get_str, get_str_list
from relay.git.models import Commit, RemoteTarget
from relay.platform.files import atomic_write_text
from relay.services.errors import RelayError
from relay.services.plan import CommitSelection, ReleasePlan
from relay.services.release import Fault, ReleaseRun, ReleaseState

__all__ = [
    "clear_release_session",
    "load_release_session",
    "save_release_session",
    "session_path",
]

SESSION_SCHEMA = 1


def session_path(root: Path) -> Path:
    return root / ".relay" / "release-session.json"


def save_release_session(root: Path, run: ReleaseRun) -> Result[None, RelayError]:
    fault = run.fault
    if not run.stopped or fault is None or fault.commit is None:
        return Err(
            RelayError(kind="invalid_input", message="run is not stopped on a cherry-pick")
        )

    plan = run.plan
    payload: dict[str, object] = {
        "schema": SESSION_SCHEMA,
        "target_branch": plan.target_branch,
        "base_ref": plan.base_ref,
        "remotes": [
            {"name": r.name, "fetch_url": r.fetch_url, "push_url": r.push_url}
            for r in plan.remotes
        ],
        "commits": [
            {"hash": c.full_hash, "subject": c.subject, "date": c.author_date}
            for c in plan.commits
        ],
        "original_ref": run.original_ref,
        "original_detached": run.original_detached,
        "applied": list(run.applied),
        "stopped_at": fault.commit.full_hash,
        "message": fault.message,
        "conflicted_files": list(fault.conflicted_files),
    }

    path = session_path(root)
    try:
        atomic_write_text(path, json.dumps(payload, indent=2) + "\n")
    except OSError as e:
        return Err(
            RelayError(
                kind="session_failed",
                message=f"failed to write release session: {e}",
                hint=str(path),
            )
        )
    return Ok(None)


def load_release_session(root: Path) -> Result[ReleaseRun | None, RelayError]:
    """The saved stopped run, or None when there is none."""
    path = session_path(root)
    if not path.exists():
        return Ok(None)

    try:
        obj: object = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        return Err(
            RelayError(
                kind="session_failed",
                message=f"failed to load release session: {e}",
                hint=str(path),
            )
        )

    d = as_str_dict(obj)
    run = _parse_session(d) if d is not None else None
    if run is None:
        return Err(
            RelayError(
                kind="session_failed",
                message="invalid release session format",
                hint=f"Delete {path} and finish the cherry-pick with git",
            )
        )
    return Ok(run)


def clear_release_session(root: Path) -> Result[None, RelayError]:
    path = session_path(root)
    if not path.exists():
        return Ok(None)
    try:
        path.unlink()
    except OSError as e:
        return Err(
            RelayError(
                kind="session_failed",
                message=f"failed to delete release session: {e}",
                hint=str(path),
            )
        )
    return Ok(None)


def _parse_session(d: StrDict) -> ReleaseRun | None:
    if get_int(d, "schema") != SESSION_SCHEMA:
        return None

    target_branch = get_str(d, "target_branch")
    base_ref = get_str(d, "base_ref")
    stopped_at = get_str(d, "stopped_at")
    applied = get_str_list(d, "applied")
    conflicted = get_str_list(d, "conflicted_files")
    remotes = _parse_remotes(d.get("remotes"))
    commits = _parse_commits(d.get("commits"))
    if (
        target_branch is None
        or base_ref is None
        or stopped_at is None
        or applied is None
        or conflicted is None
        or not remotes
        or not commits
    ):
        return None

    if len({c.full_hash for c in commits}) != len(commits):
        return None
    stopped = next((c for c in commits if c.full_hash == stopped_at), None)
    if stopped is None:
        return None

    message = d.get("message")
    return ReleaseRun(
        plan=ReleasePlan(
            commits=CommitSelection(tuple(commits)),
            target_branch=target_branch,
            remotes=tuple(remotes),
            base_ref=base_ref,
        ),
        state=ReleaseState.FAULTED,
        original_ref=get_str(d, "original_ref"),
        original_detached=d.get("original_detached") is True,
        applied=tuple(applied),
        fault=Fault(
            stage="cherry_pick",
            message=message if isinstance(message, str) else "",
            commit=stopped,
            conflicted_files=tuple(conflicted),
        ),
    )


def _tables(value: object) -> list[StrDict] | None:
    if not isinstance(value, list):
        return None
    out: list[StrDict] = []
    for item in cast(list[object], value):
        d = as_str_dict(item)
        if d is None:
            return None
        out.append(d)
    return out


def _parse_remotes(value: object) -> list[RemoteTarget] | None:
    tables = _tables(value)
    if tables is None:
        return None
    remotes: list[RemoteTarget] = []
    for t in tables:
        name = get_str(t, "name")
        if name is None:
            return None
        remotes.append(
            RemoteTarget(
                name=name, fetch_url=get_str(t, "fetch_url"), push_url=get_str(t, "push_url")
            )
        )
    return remotes


def _parse_commits(value: object) -> list[Commit] | None:
    tables = _tables(value)
    if tables is None:
        return None
    commits: list[Commit] = []
    for t in tables:
        full_hash = get_str(t, "hash")
        subject = t.get("subject")
        if full_hash is None or not isinstance(subject, str):
            return None
        commits.append(
            Commit(full_hash=full_hash, subject=subject, author_date=get_str(t, "date") or "")
        )
    return commits
