"""SIGINT handling for foreground runs.

The first Ctrl-C cancels the run's ExecutionContext so the orchestration
engine can tear the project down gracefully. A second Ctrl-C aborts
immediately with the conventional exit status 130.
"""

from __future__ import annotations

import logging
import signal
import sys
import threading
from collections.abc import Callable
from types import FrameType, TracebackType
from typing import Any

from composectl.infrastructure.context import ExecutionContext

logger = logging.getLogger(__name__)

ABORT_EXIT_CODE = 130


class InterruptHandler:
    """Route SIGINT into an ExecutionContext for the duration of a ``with`` block.

    Installing is a no-op outside the main thread, where Python does not
    allow signal handlers; Ctrl-C then surfaces as KeyboardInterrupt,
    which the engine also treats as cancellation.
    """

    def __init__(
        self,
        context: ExecutionContext,
        *,
        on_abort: Callable[[], None] | None = None,
    ) -> None:
        self._context = context
        self._on_abort = on_abort
        self._interrupt_count = 0
        self._original_handler: Any = None
        self._installed = False

    @property
    def interrupt_count(self) -> int:
        return self._interrupt_count

    def install(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on main thread; SIGINT handler not installed")
            return
        self._original_handler = signal.signal(signal.SIGINT, self.handle)
        self._installed = True
        logger.debug("SIGINT handler installed")

    def restore(self) -> None:
        if not self._installed:
            return
        signal.signal(signal.SIGINT, self._original_handler)
        self._installed = False
        self._original_handler = None
        logger.debug("Original SIGINT handler restored")

    def handle(self, signum: int, frame: FrameType | None) -> None:
        """Signal handler: cancel on first interrupt, abort on the second."""
        self._interrupt_count += 1
        logger.debug("SIGINT received: interrupt_count=%d", self._interrupt_count)
        if self._interrupt_count == 1:
            self._context.cancel()
            return
        if self._on_abort is not None:
            self._on_abort()
        sys.exit(ABORT_EXIT_CODE)

    def __enter__(self) -> InterruptHandler:
        self.install()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.restore()
