from __future__ import annotations

from pathlib import Path

import pytest
import typer

from relay.cli.context import CLIContext
from relay.cli.prompts import ScriptedPrompter
from relay.core.config import Config, SyncConfig
from relay.core.errors import ErrorCode
from relay.git.memory import InMemoryBackend
from relay.git.models import Commit
from relay.output.console import MockConsole

TIP = Commit(full_hash="2" * 40, subject="new", author_date="2026-01-02")
BASE = Commit(full_hash="1" * 40, subject="old", author_date="2026-01-01")


def _backend(*remotes: str) -> InMemoryBackend:
    backend = InMemoryBackend()
    for name in remotes or ("origin", "mirror"):
        backend.add_remote(name)
    backend.add_commits("origin/main", [TIP, BASE])
    backend.refs["mirror/main"] = BASE.full_hash
    backend.divergence[("mirror/main", "origin/main")] = (0, 1)
    backend.ancestors.add((BASE.full_hash, TIP.full_hash))
    backend.remote_heads[("origin", "main")] = TIP.full_hash
    return backend


def _setup(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    backend: InMemoryBackend,
    *,
    config: Config | None = None,
    interactive: bool = False,
    prompter: ScriptedPrompter | None = None,
) -> None:
    import relay.cli.commands.sync_cmd as sync_cmd

    ctx = CLIContext(
        root=tmp_path, backend=backend, config=config or Config(), console=MockConsole()
    )
    monkeypatch.setattr(sync_cmd, "build_context", lambda: ctx)
    monkeypatch.setattr(sync_cmd, "is_interactive_terminal", lambda: interactive)
    scripted = prompter or ScriptedPrompter()
    monkeypatch.setattr(sync_cmd, "TyperPrompter", lambda: scripted)


def _sync(
    *,
    source: str | None = None,
    target: str | None = None,
    yes: bool = True,
    force: bool = False,
    dry_run: bool = False,
) -> None:
    import relay.cli.commands.sync_cmd as sync_cmd

    sync_cmd.sync(
        source=source, target=target, branch=None, yes=yes, force=force, dry_run=dry_run
    )


def test_sync_defaults_to_first_two_remotes(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    backend = _backend()
    _setup(monkeypatch, tmp_path, backend)

    _sync()

    push = backend.calls_to("push")
    assert len(push) == 1
    assert push[0].args[:3] == ("mirror", TIP.full_hash, "refs/heads/main")


def test_sync_remotes_from_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = _backend("mirror", "origin")
    config = Config(sync=SyncConfig(source_remote="origin", target_remote="mirror"))
    _setup(monkeypatch, tmp_path, backend, config=config)

    _sync()

    assert backend.calls_to("push")[0].args[0] == "mirror"


def test_sync_single_remote(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = _backend("origin")
    _setup(monkeypatch, tmp_path, backend)

    with pytest.raises(typer.Exit) as exc:
        _sync()

    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)
    assert backend.calls_to("push") == []


def test_sync_requires_terminal_or_yes(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = _backend()
    _setup(monkeypatch, tmp_path, backend)

    with pytest.raises(typer.Exit) as exc:
        _sync(yes=False)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert backend.calls == []


def test_sync_cancelled(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = _backend()
    _setup(
        monkeypatch,
        tmp_path,
        backend,
        interactive=True,
        prompter=ScriptedPrompter(confirms=[True, False]),
    )

    with pytest.raises(typer.Exit) as exc:
        _sync(yes=False)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert backend.calls_to("push") == []


def test_sync_force_flag(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = _backend()
    backend.refs["mirror/main"] = "9" * 40
    backend.remote_heads[("mirror", "main")] = "9" * 40
    backend.divergence[("mirror/main", "origin/main")] = (1, 1)
    _setup(monkeypatch, tmp_path, backend)

    _sync(force=True)

    lease = "--force-with-lease=refs/heads/main:" + "9" * 40
    assert backend.calls_to("push")[0].args[-1] == lease


def test_sync_diverged_without_force_is_cancelled(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    backend = _backend()
    backend.refs["mirror/main"] = "9" * 40
    backend.divergence[("mirror/main", "origin/main")] = (1, 1)
    _setup(monkeypatch, tmp_path, backend)

    with pytest.raises(typer.Exit) as exc:
        _sync()

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert backend.calls_to("push") == []


def test_sync_dry_run(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend = _backend()
    _setup(monkeypatch, tmp_path, backend)

    _sync(dry_run=True)

    assert backend.mutating_calls() == []
