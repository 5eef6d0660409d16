"""Per-invocation execution options and the operator prompt seam."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

__all__ = ["ExecutionOptions", "Prompter"]


@dataclass(frozen=True, slots=True)
class ExecutionOptions:
    """How a workflow run should behave.

    Attributes:
        skip_confirm: Answer yes to every ordinary confirmation
        dry_run: Print mutating steps instead of running them
        allow_force: Accept a force-with-lease push without asking
    """

    skip_confirm: bool = False
    dry_run: bool = False
    allow_force: bool = False


class Prompter(Protocol):
    """Asks the operator questions. Declining is how a run is cancelled."""

    def confirm(self, message: str, *, default: bool = False) -> bool: ...

    def ask(self, message: str, *, default: str | None = None) -> str: ...
