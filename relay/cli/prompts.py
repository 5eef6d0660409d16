"""Operator prompts: typer-backed for terminals, scripted for tests."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field

import typer

__all__ = ["ScriptedPrompter", "TyperPrompter", "is_interactive_terminal"]


def is_interactive_terminal() -> bool:
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


class TyperPrompter:
    def confirm(self, message: str, *, default: bool = False) -> bool:
        return typer.confirm(message, default=default)

    def ask(self, message: str, *, default: str | None = None) -> str:
        answer: object = typer.prompt(message, default=default if default is not None else "")
        return str(answer).strip()


def _no_confirms() -> list[bool]:
    return []


def _no_answers() -> list[str]:
    return []


@dataclass
class ScriptedPrompter:
    """Prompter that replays canned answers and records every question.

    When a script runs out, the question's default is returned.
    """

    confirms: list[bool] = field(default_factory=_no_confirms)
    answers: list[str] = field(default_factory=_no_answers)
    questions: list[str] = field(default_factory=_no_answers)

    def confirm(self, message: str, *, default: bool = False) -> bool:
        self.questions.append(message)
        if self.confirms:
            return self.confirms.pop(0)
        return default

    def ask(self, message: str, *, default: str | None = None) -> str:
        self.questions.append(message)
        if self.answers:
            return self.answers.pop(0)
        return default or ""
