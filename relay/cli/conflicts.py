"""Interactive cherry-pick conflict resolution."""

from __future__ import annotations

import os
import shlex
from pathlib import Path

from relay.core.result import Err
from relay.git.models import Commit
from relay.output.console import ConsoleProtocol, Style
from relay.platform.process import run_attached
from relay.services.options import Prompter
from relay.services.release import ConflictDecision

__all__ = ["EditorConflictResolver", "editor_command"]


def editor_command() -> list[str]:
    """$VISUAL, then $EDITOR, then vi."""
    editor = os.environ.get("VISUAL") or os.environ.get("EDITOR") or "vi"
    return shlex.split(editor)


class EditorConflictResolver:
    """Lets the operator open conflicted files, then continue, abort or leave.

    The resolver never edits files itself; it only launches the editor and
    reports the operator's decision back to the release executor.
    """

    def __init__(
        self,
        *,
        console: ConsoleProtocol,
        prompter: Prompter,
        root: Path,
        editor: list[str] | None = None,
    ) -> None:
        self._console = console
        self._prompter = prompter
        self._root = root
        self._editor = editor or editor_command()

    def resolve(self, commit: Commit, files: list[str]) -> ConflictDecision:
        self._console.header(f"Conflict in {commit.label()}")
        while True:
            for i, path in enumerate(files, start=1):
                self._console.print(f"  [{i}] edit {path}")
            self._console.print("  [c] continue (files resolved and staged)")
            self._console.print("  [a] abort cherry-pick and restore")
            self._console.print("  [l] leave it for manual resolution")

            choice = self._prompter.ask("Choice", default="l").lower()
            if choice in {"c", "continue"}:
                return "continue"
            if choice in {"a", "abort"}:
                if self._prompter.confirm("Abort the cherry-pick?", default=False):
                    return "abort"
                continue
            if choice in {"l", "leave", "q"}:
                return "leave"
            if choice.isdigit() and 1 <= int(choice) <= len(files):
                self._open(files[int(choice) - 1])
                continue
            self._console.warning(f"invalid choice: {choice}")

    def _open(self, path: str) -> None:
        result = run_attached([*self._editor, str(self._root / path)], cwd=self._root)
        if isinstance(result, Err):
            self._console.warning(f"editor exited with {result.error.returncode}")
        else:
            self._console.print(f"  edited {path}; stage it with `git add {path}`", Style.DIM)
