"""Up-sequence lifecycle: states, events and the transition table.

Main path:      idle -> created -> started -> terminated (detached)
                idle -> created -> running -> terminated (foreground)
Cancellation:   running -> cancel_requested -> tearing_down -> terminated

Backends without separate create/start phases enter at ``started``
(detached) or ``running`` (foreground) straight from ``idle``.
"""

from __future__ import annotations

from enum import StrEnum

from composectl.domain.errors import InvalidTransitionError


class UpState(StrEnum):
    """Orchestration states of a single up/create run."""

    IDLE = "idle"
    CREATED = "created"
    STARTED = "started"
    RUNNING = "running"
    CANCEL_REQUESTED = "cancel_requested"
    TEARING_DOWN = "tearing_down"
    TERMINATED = "terminated"


class UpEvent(StrEnum):
    """Events that drive :data:`UP_TRANSITIONS`."""

    CREATE_OK = "create_ok"
    CREATE_FAILED = "create_failed"
    START_OK = "start_ok"
    START_FAILED = "start_failed"
    ATTACH = "attach"
    EXIT_OK = "exit_ok"
    EXIT_FAILED = "exit_failed"
    INTERRUPT = "interrupt"
    TEARDOWN = "teardown"
    TEARDOWN_DONE = "teardown_done"
    FINISH = "finish"


class Outcome(StrEnum):
    """Tagged result of one backend call."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


UP_TRANSITIONS: dict[UpState, dict[UpEvent, UpState]] = {
    UpState.IDLE: {
        UpEvent.CREATE_OK: UpState.CREATED,
        UpEvent.CREATE_FAILED: UpState.TERMINATED,
        UpEvent.START_OK: UpState.STARTED,
        UpEvent.START_FAILED: UpState.TERMINATED,
        UpEvent.ATTACH: UpState.RUNNING,
    },
    UpState.CREATED: {
        UpEvent.START_OK: UpState.STARTED,
        UpEvent.START_FAILED: UpState.TERMINATED,
        UpEvent.ATTACH: UpState.RUNNING,
        UpEvent.FINISH: UpState.TERMINATED,
    },
    UpState.STARTED: {
        UpEvent.FINISH: UpState.TERMINATED,
    },
    UpState.RUNNING: {
        UpEvent.EXIT_OK: UpState.TERMINATED,
        UpEvent.EXIT_FAILED: UpState.TERMINATED,
        UpEvent.INTERRUPT: UpState.CANCEL_REQUESTED,
    },
    UpState.CANCEL_REQUESTED: {
        UpEvent.TEARDOWN: UpState.TEARING_DOWN,
    },
    UpState.TEARING_DOWN: {
        UpEvent.TEARDOWN_DONE: UpState.TERMINATED,
    },
    UpState.TERMINATED: {},
}

# Outcome of the call made in each phase -> event fed to the table.
CREATE_EVENTS: dict[Outcome, UpEvent] = {
    Outcome.SUCCEEDED: UpEvent.CREATE_OK,
    Outcome.FAILED: UpEvent.CREATE_FAILED,
    Outcome.CANCELLED: UpEvent.CREATE_FAILED,
}

DETACHED_START_EVENTS: dict[Outcome, UpEvent] = {
    Outcome.SUCCEEDED: UpEvent.START_OK,
    Outcome.FAILED: UpEvent.START_FAILED,
    Outcome.CANCELLED: UpEvent.START_FAILED,
}

RUN_EVENTS: dict[Outcome, UpEvent] = {
    Outcome.SUCCEEDED: UpEvent.EXIT_OK,
    Outcome.FAILED: UpEvent.EXIT_FAILED,
    Outcome.CANCELLED: UpEvent.INTERRUPT,
}


def next_state(state: UpState, event: UpEvent) -> UpState:
    """Look up the state reached from *state* on *event*.

    Raises:
        InvalidTransitionError: *event* is not defined for *state*.
    """
    try:
        return UP_TRANSITIONS[state][event]
    except KeyError:
        raise InvalidTransitionError(state, event) from None


def is_terminal(state: UpState) -> bool:
    return not UP_TRANSITIONS[state]
