"""OrchestrationEngine — the up/create state machine.

Each backend call is classified into a tagged :class:`StepOutcome`
(succeeded / failed / cancelled), mapped to an :class:`UpEvent` and fed
through :data:`~composectl.domain.lifecycle.UP_TRANSITIONS`. A foreground
run whose context is cancelled is converted into a teardown that calls
the backend's ``down`` on a fresh background context, so the teardown is
not cut short by the cancellation that triggered it. The teardown's own
result is the final result.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TextIO

import structlog

from composectl.backends.base import BackendCapability
from composectl.domain.errors import OperationCancelledError
from composectl.domain.lifecycle import (
    CREATE_EVENTS,
    DETACHED_START_EVENTS,
    RUN_EVENTS,
    Outcome,
    UpEvent,
    UpState,
    is_terminal,
    next_state,
)
from composectl.infrastructure.context import ExecutionContext
from composectl.services.base import BaseService
from composectl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from composectl.backends.base import BackendClient
    from composectl.domain.project import Project

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StepOutcome:
    """Tagged result of one backend call."""

    outcome: Outcome
    error: BaseException | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is Outcome.SUCCEEDED


def attempt(ctx: ExecutionContext, call: Callable[[], Any]) -> StepOutcome:
    """Run *call* and classify how it ended.

    Cancellation is recognised from the context itself, from
    ``KeyboardInterrupt`` and from ``OperationCancelledError``; an error
    raised after the context was cancelled counts as cancellation too.
    """
    try:
        call()
    except KeyboardInterrupt:
        ctx.cancel()
        return StepOutcome(Outcome.CANCELLED)
    except OperationCancelledError as exc:
        return StepOutcome(Outcome.CANCELLED, exc)
    except Exception as exc:
        if ctx.cancelled:
            return StepOutcome(Outcome.CANCELLED, exc)
        return StepOutcome(Outcome.FAILED, exc)
    if ctx.cancelled:
        return StepOutcome(Outcome.CANCELLED)
    return StepOutcome(Outcome.SUCCEEDED)


@dataclass
class _Run:
    """State cursor and bookkeeping for one invocation."""

    op: str
    project: Project
    detach: bool = False
    state: UpState = UpState.IDLE
    states: list[UpState] = field(default_factory=lambda: [UpState.IDLE])
    phases: dict[str, float] = field(default_factory=dict)
    cancelled: bool = False

    def fire(self, event: UpEvent) -> None:
        target = next_state(self.state, event)
        log.debug(
            "up.transition",
            op=self.op,
            project=self.project.name,
            source=str(self.state),
            up_event=str(event),
            target=str(target),
        )
        self.state = target
        self.states.append(target)


class OrchestrationEngine(BaseService):
    """Drives create -> start -> run [-> teardown] against a backend.

    Args:
        backend: Backend of the active deployment context.
        on_stopping: Called once, before teardown, when a foreground run
            is cancelled (the CLI prints "Gracefully stopping...").
    """

    def __init__(
        self,
        backend: BackendClient,
        *,
        on_stopping: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(backend)
        self._on_stopping = on_stopping

    @property
    def phased(self) -> bool:
        """Whether the backend exposes separate create and start phases."""
        return self._backend.supports(BackendCapability.CREATE_START)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run_up(
        self,
        ctx: ExecutionContext,
        project: Project,
        *,
        detach: bool = False,
        writer: TextIO | None = None,
    ) -> ServiceResult:
        """Bring *project* up; tear it down again if a foreground run is cancelled."""
        run = _Run("up", project, detach=detach)
        backend = self._backend

        if not self.phased:
            if detach:
                started = self._step(run, "up", ctx, lambda: backend.up(ctx, project, True))
                return self._finish_detached(run, started)
            run.fire(UpEvent.ATTACH)
            ran = self._step(run, "run", ctx, lambda: backend.up(ctx, project, False))
            return self._finish_run(run, ran)

        created = self._step(run, "create", ctx, lambda: backend.create(ctx, project))
        run.fire(CREATE_EVENTS[created.outcome])
        if not created.succeeded:
            return self._failure(run, created, "create")

        if detach:
            started = self._step(run, "start", ctx, lambda: backend.start(ctx, project, None))
            return self._finish_detached(run, started)

        run.fire(UpEvent.ATTACH)
        ran = self._step(run, "run", ctx, lambda: backend.start(ctx, project, writer))
        return self._finish_run(run, ran)

    def run_create(self, ctx: ExecutionContext, project: Project) -> ServiceResult:
        """Provision *project* without starting it."""
        run = _Run("create", project)
        created = self._step(run, "create", ctx, lambda: self._backend.create(ctx, project))
        run.fire(CREATE_EVENTS[created.outcome])
        if not created.succeeded:
            return self._failure(run, created, "create")
        run.fire(UpEvent.FINISH)
        return self._success(run)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _step(
        self,
        run: _Run,
        phase: str,
        ctx: ExecutionContext,
        call: Callable[[], Any],
    ) -> StepOutcome:
        began = time.perf_counter()
        outcome = attempt(ctx, call)
        run.phases[phase] = round((time.perf_counter() - began) * 1000, 2)
        if outcome.error is not None and outcome.outcome is Outcome.FAILED:
            log.debug("up.phase_failed", phase=phase, error=str(outcome.error))
        return outcome

    def _finish_detached(self, run: _Run, started: StepOutcome) -> ServiceResult:
        run.fire(DETACHED_START_EVENTS[started.outcome])
        if not started.succeeded:
            return self._failure(run, started, "start")
        run.fire(UpEvent.FINISH)
        return self._success(run)

    def _finish_run(self, run: _Run, ran: StepOutcome) -> ServiceResult:
        run.fire(RUN_EVENTS[ran.outcome])
        if ran.outcome is Outcome.CANCELLED:
            return self._teardown(run)
        if not ran.succeeded:
            return self._failure(run, ran, "start")
        return self._success(run)

    def _teardown(self, run: _Run) -> ServiceResult:
        run.cancelled = True
        log.info("up.teardown", project=run.project.name)
        if self._on_stopping is not None:
            self._on_stopping()
        run.fire(UpEvent.TEARDOWN)

        # The invocation's context is cancelled; down runs on a fresh one.
        teardown_ctx = ExecutionContext.background()
        down = self._step(
            run, "down", teardown_ctx, lambda: self._backend.down(teardown_ctx, run.project.name)
        )
        run.fire(UpEvent.TEARDOWN_DONE)
        if not down.succeeded:
            return self._failure(run, down, "down")
        return self._success(
            run, warnings=[f"Interrupted; project '{run.project.name}' was stopped and removed"]
        )

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def _data(self, run: _Run) -> dict[str, Any]:
        if not is_terminal(run.state):
            raise RuntimeError(f"{run.op} result built in non-terminal state {run.state}")
        return {
            "project": run.project.name,
            "services": run.project.service_names,
            "detached": run.detach,
            "cancelled": run.cancelled,
            "states": [str(s) for s in run.states],
        }

    def _success(self, run: _Run, *, warnings: list[str] | None = None) -> ServiceResult:
        return ServiceResult(
            ok=True,
            op=run.op,
            data=self._data(run),
            warnings=warnings or [],
            meta={"phases": dict(run.phases)},
        )

    def _failure(self, run: _Run, step: StepOutcome, phase: str) -> ServiceResult:
        exc = step.error or OperationCancelledError(phase)
        return ServiceResult(
            ok=False,
            op=run.op,
            data=self._data(run),
            error=ServiceError.from_exception(exc),
            meta={"phases": dict(run.phases)},
        )
