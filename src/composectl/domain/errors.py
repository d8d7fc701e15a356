"""Error taxonomy shared by every layer.

Each error carries a stable ``code`` that services copy into
:class:`~composectl.services.result.ServiceError` so the CLI can tell
failure kinds apart without inspecting messages.
"""

from __future__ import annotations

from typing import Any, ClassVar


class ComposeError(Exception):
    """Base class for composectl errors."""

    code: ClassVar[str] = "COMPOSE_ERROR"

    def detail(self) -> dict[str, Any]:
        """Structured context merged into ``ServiceError.detail``."""
        return {}


class UnsupportedBackendError(ComposeError):
    """The active deployment context does not support this operation."""

    code: ClassVar[str] = "NOT_IMPLEMENTED"

    def __init__(self, context_type: str, operation: str | None = None) -> None:
        if operation:
            msg = f"'{operation}' is not implemented for context type '{context_type}'"
        else:
            msg = f"compose commands are not implemented for context type '{context_type}'"
        super().__init__(msg)
        self.context_type = context_type
        self.operation = operation

    def detail(self) -> dict[str, Any]:
        data: dict[str, Any] = {"context_type": self.context_type}
        if self.operation:
            data["operation"] = self.operation
        return data


class ServiceNotFoundError(ComposeError):
    """A requested or dependency-referenced service does not exist."""

    code: ClassVar[str] = "SERVICE_NOT_FOUND"

    def __init__(self, name: str, project: str | None = None) -> None:
        where = f" in project '{project}'" if project else ""
        super().__init__(f"no such service: '{name}'{where}")
        self.name = name
        self.project = project

    def detail(self) -> dict[str, Any]:
        return {"service": self.name}


class AssemblyError(ComposeError):
    """Project construction from configuration files failed."""

    code: ClassVar[str] = "ASSEMBLY_ERROR"

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path

    def detail(self) -> dict[str, Any]:
        return {"path": self.path} if self.path else {}


class BackendOperationError(ComposeError):
    """A backend primitive (create, start, down, ...) failed."""

    code: ClassVar[str] = "BACKEND_ERROR"

    def __init__(self, operation: str, message: str, *, stderr: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.stderr = stderr

    def detail(self) -> dict[str, Any]:
        data: dict[str, Any] = {"operation": self.operation}
        if self.stderr:
            data["stderr"] = self.stderr
        return data


class OperationCancelledError(ComposeError):
    """The execution context was cancelled while an operation was in flight."""

    code: ClassVar[str] = "CANCELLED"

    def __init__(self, operation: str = "operation") -> None:
        super().__init__(f"{operation} cancelled")
        self.operation = operation


class InvalidTransitionError(ComposeError):
    """An orchestration event is not valid in the current state."""

    code: ClassVar[str] = "INVALID_TRANSITION"

    def __init__(self, state: str, event: str) -> None:
        super().__init__(f"event '{event}' is not valid in state '{state}'")
        self.state = state
        self.event = event
