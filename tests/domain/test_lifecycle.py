"""Tests for the up-sequence states, events and transition table."""

import pytest

from composectl.domain.errors import InvalidTransitionError
from composectl.domain.lifecycle import (
    CREATE_EVENTS,
    DETACHED_START_EVENTS,
    RUN_EVENTS,
    UP_TRANSITIONS,
    Outcome,
    UpEvent,
    UpState,
    is_terminal,
    next_state,
)


def _walk(*events: UpEvent) -> list[UpState]:
    state = UpState.IDLE
    states = [state]
    for event in events:
        state = next_state(state, event)
        states.append(state)
    return states


class TestUpState:
    def test_members(self) -> None:
        assert {s.value for s in UpState} == {
            "idle",
            "created",
            "started",
            "running",
            "cancel_requested",
            "tearing_down",
            "terminated",
        }

    def test_every_state_has_a_row(self) -> None:
        assert set(UP_TRANSITIONS) == set(UpState)

    def test_only_terminated_is_terminal(self) -> None:
        assert [s for s in UpState if is_terminal(s)] == [UpState.TERMINATED]


class TestPaths:
    def test_detached(self) -> None:
        assert _walk(UpEvent.CREATE_OK, UpEvent.START_OK, UpEvent.FINISH) == [
            UpState.IDLE,
            UpState.CREATED,
            UpState.STARTED,
            UpState.TERMINATED,
        ]

    def test_foreground(self) -> None:
        assert _walk(UpEvent.CREATE_OK, UpEvent.ATTACH, UpEvent.EXIT_OK)[-2:] == [
            UpState.RUNNING,
            UpState.TERMINATED,
        ]

    def test_cancellation(self) -> None:
        states = _walk(
            UpEvent.CREATE_OK,
            UpEvent.ATTACH,
            UpEvent.INTERRUPT,
            UpEvent.TEARDOWN,
            UpEvent.TEARDOWN_DONE,
        )
        assert states[2:] == [
            UpState.RUNNING,
            UpState.CANCEL_REQUESTED,
            UpState.TEARING_DOWN,
            UpState.TERMINATED,
        ]

    def test_create_failure_terminates(self) -> None:
        assert _walk(UpEvent.CREATE_FAILED) == [UpState.IDLE, UpState.TERMINATED]

    def test_create_only(self) -> None:
        assert _walk(UpEvent.CREATE_OK, UpEvent.FINISH)[-1] is UpState.TERMINATED


class TestInvalidTransitions:
    @pytest.mark.parametrize(
        ("state", "event"),
        [
            (UpState.IDLE, UpEvent.INTERRUPT),
            (UpState.STARTED, UpEvent.INTERRUPT),
            (UpState.CANCEL_REQUESTED, UpEvent.EXIT_OK),
            (UpState.TERMINATED, UpEvent.CREATE_OK),
        ],
    )
    def test_rejected(self, state: UpState, event: UpEvent) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            next_state(state, event)
        assert exc_info.value.code == "INVALID_TRANSITION"


class TestOutcomeEvents:
    def test_cancelled_create_and_detached_start_are_failures(self) -> None:
        assert CREATE_EVENTS[Outcome.CANCELLED] is UpEvent.CREATE_FAILED
        assert DETACHED_START_EVENTS[Outcome.CANCELLED] is UpEvent.START_FAILED

    def test_cancelled_run_is_an_interrupt(self) -> None:
        assert RUN_EVENTS[Outcome.CANCELLED] is UpEvent.INTERRUPT
        assert RUN_EVENTS[Outcome.FAILED] is UpEvent.EXIT_FAILED
