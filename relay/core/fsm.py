"""Step runner shared by the release and sync workflows.

A workflow is a frozen "run" value plus one handler per step. Each handler
inspects the run and either advances to a new run value (usually with a
different step) or finishes. The runner stops at the first Err.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

from .result import Err, Ok, Result

S = TypeVar("S")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class StepAdvance(Generic[S]):
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish:
    pass


StepOutcome: TypeAlias = StepAdvance[S] | StepFinish
StepHandler: TypeAlias = Callable[[S], Result[StepOutcome[S], E]]
GetStep: TypeAlias = Callable[[S], str]
OnTransition: TypeAlias = Callable[[S], None]


FINISH = StepFinish()


def advance(session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


def run_state_machine(
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S, E]],
    unknown_step: Callable[[str], E],
    on_transition: OnTransition[S] | None = None,
) -> Result[S, E]:
    """Drive handlers until one finishes; return the final state.

    Args:
        initial_state: Run value to start from
        get_step: Extracts the step key from a run value
        handlers: Step key -> handler
        unknown_step: Builds the error returned when no handler matches
        on_transition: Called with every new run value after a step advances
    """
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            return Err(unknown_step(step))

        outcome = handler(current)
        if isinstance(outcome, Err):
            return outcome

        if isinstance(outcome.value, StepFinish):
            return Ok(current)

        current = outcome.value.session
        if on_transition is not None:
            on_transition(current)
