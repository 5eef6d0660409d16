from __future__ import annotations

from dataclasses import dataclass, replace

from relay.core.fsm import FINISH, StepOutcome, advance, run_state_machine
from relay.core.result import Err, Ok, Result


@dataclass(frozen=True, slots=True)
class _State:
    step: str
    counter: int


def _unknown(step: str) -> str:
    return f"unknown step: {step}"


def test_run_state_machine_advances_and_reports_transitions() -> None:
    seen: list[_State] = []

    def step_a(s: _State) -> Result[StepOutcome[_State], str]:
        return Ok(advance(replace(s, step="b", counter=s.counter + 1)))

    def step_b(s: _State) -> Result[StepOutcome[_State], str]:
        return Ok(FINISH)

    result = run_state_machine(
        initial_state=_State(step="a", counter=0),
        get_step=lambda s: s.step,
        handlers={"a": step_a, "b": step_b},
        unknown_step=_unknown,
        on_transition=seen.append,
    )

    assert result == Ok(_State(step="b", counter=1))
    assert seen == [_State(step="b", counter=1)]


def test_run_state_machine_can_loop_on_same_step() -> None:
    def count(s: _State) -> Result[StepOutcome[_State], str]:
        if s.counter >= 3:
            return Ok(FINISH)
        return Ok(advance(replace(s, counter=s.counter + 1)))

    result = run_state_machine(
        initial_state=_State(step="a", counter=0),
        get_step=lambda s: s.step,
        handlers={"a": count},
        unknown_step=_unknown,
    )

    assert result == Ok(_State(step="a", counter=3))


def test_run_state_machine_unknown_step_fails() -> None:
    result = run_state_machine(
        initial_state=_State(step="missing", counter=0),
        get_step=lambda s: s.step,
        handlers={},
        unknown_step=_unknown,
    )

    assert result == Err("unknown step: missing")


def test_run_state_machine_propagates_handler_error() -> None:
    def bad_step(_: _State) -> Result[StepOutcome[_State], str]:
        return Err("boom")

    result = run_state_machine(
        initial_state=_State(step="a", counter=0),
        get_step=lambda s: s.step,
        handlers={"a": bad_step},
        unknown_step=_unknown,
    )

    assert result == Err("boom")
