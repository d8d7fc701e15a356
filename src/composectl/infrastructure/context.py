"""ExecutionContext — cooperative cancellation token.

A context is cancelled explicitly (``cancel()``) or through its parent.
Long-running backend calls poll ``cancelled`` or block in ``wait()``.
``background()`` returns a root context with no parent, used for work
that must still run after the invocation's own context was cancelled
(e.g. tearing a project down after Ctrl-C).
"""

from __future__ import annotations

import threading

from composectl.domain.errors import OperationCancelledError


class ExecutionContext:
    """Cancellation token with parent -> child propagation."""

    def __init__(self, parent: ExecutionContext | None = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: list[ExecutionContext] = []
        self._parent = parent
        if parent is not None:
            parent._adopt(self)

    @classmethod
    def background(cls) -> ExecutionContext:
        """A fresh root context, independent of any cancelled one."""
        return cls()

    @property
    def parent(self) -> ExecutionContext | None:
        return self._parent

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def derive(self) -> ExecutionContext:
        """Child context cancelled whenever this one is."""
        return ExecutionContext(parent=self)

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        with self._lock:
            self._event.set()
            children = list(self._children)
        for child in children:
            child.cancel()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or *timeout* elapses. Returns ``cancelled``."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self, operation: str = "operation") -> None:
        if self.cancelled:
            raise OperationCancelledError(operation)

    def _adopt(self, child: ExecutionContext) -> None:
        with self._lock:
            self._children.append(child)
            already = self._event.is_set()
        if already:
            child.cancel()
