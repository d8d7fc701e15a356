"""Tests for InterruptHandler — SIGINT to context cancellation."""

from __future__ import annotations

import signal
import threading
from unittest.mock import MagicMock

import pytest

from composectl.infrastructure.context import ExecutionContext
from composectl.infrastructure.signals import ABORT_EXIT_CODE, InterruptHandler


class TestInterruptHandler:
    def test_first_interrupt_cancels(self) -> None:
        ctx = ExecutionContext()
        handler = InterruptHandler(ctx)
        handler.handle(signal.SIGINT, None)
        assert ctx.cancelled
        assert handler.interrupt_count == 1

    def test_second_interrupt_aborts(self) -> None:
        on_abort = MagicMock()
        handler = InterruptHandler(ExecutionContext(), on_abort=on_abort)
        handler.handle(signal.SIGINT, None)
        with pytest.raises(SystemExit) as exc_info:
            handler.handle(signal.SIGINT, None)
        assert exc_info.value.code == ABORT_EXIT_CODE
        on_abort.assert_called_once()

    def test_context_manager_installs_and_restores(self) -> None:
        original = signal.getsignal(signal.SIGINT)
        with InterruptHandler(ExecutionContext()) as handler:
            assert signal.getsignal(signal.SIGINT) == handler.handle
        assert signal.getsignal(signal.SIGINT) == original

    def test_install_off_main_thread_is_noop(self) -> None:
        original = signal.getsignal(signal.SIGINT)
        handler = InterruptHandler(ExecutionContext())
        thread = threading.Thread(target=handler.install)
        thread.start()
        thread.join()
        assert signal.getsignal(signal.SIGINT) == original
        handler.restore()
        assert signal.getsignal(signal.SIGINT) == original
