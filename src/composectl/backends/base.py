"""BackendClient — the polymorphic deployment backend abstraction.

One subclass per deployment context type. Each advertises what it can do
through ``capabilities``; primitives a backend does not provide raise
:class:`UnsupportedBackendError` so callers can report "not implemented"
instead of a generic failure.

Every primitive receives the ExecutionContext of the current flow and
must honour cancellation cooperatively.
"""

from __future__ import annotations

import json
from enum import StrEnum
from io import StringIO
from typing import TYPE_CHECKING, Any, ClassVar, TextIO

from ruamel.yaml import YAML

from composectl.domain.errors import UnsupportedBackendError

if TYPE_CHECKING:
    from composectl.config.settings import ComposeSettings
    from composectl.domain.project import ContainerSummary, Project, StackSummary
    from composectl.infrastructure.context import ExecutionContext


class BackendCapability(StrEnum):
    """Feature flags a backend advertises."""

    COMPOSE = "compose"
    CREATE_START = "create_start"
    IMAGES = "images"
    DOMAIN_NAME = "domain_name"


CONVERT_FORMATS = ("yaml", "json")


class BackendClient:
    """Base class for deployment backends.

    Subclasses set ``context_type`` and ``capabilities`` and override the
    primitives they support.
    """

    context_type: ClassVar[str] = ""
    capabilities: ClassVar[frozenset[BackendCapability]] = frozenset()

    def __init__(self, settings: ComposeSettings) -> None:
        self._settings = settings

    @classmethod
    def supports(cls, capability: BackendCapability) -> bool:
        return capability in cls.capabilities

    def _unsupported(self, operation: str) -> UnsupportedBackendError:
        return UnsupportedBackendError(self._settings.context.type, operation)

    # ------------------------------------------------------------------
    # Lifecycle primitives
    # ------------------------------------------------------------------

    def create(self, ctx: ExecutionContext, project: Project) -> None:
        """Provision every resource of *project* without starting it."""
        raise self._unsupported("create")

    def start(self, ctx: ExecutionContext, project: Project, writer: TextIO | None) -> None:
        """Start created resources.

        With a *writer* the call stays in the foreground, streaming output
        until the application exits or *ctx* is cancelled. Without one it
        returns as soon as everything is confirmed started.
        """
        raise self._unsupported("start")

    def up(self, ctx: ExecutionContext, project: Project, detach: bool) -> None:
        """Provision and start *project* in one step."""
        raise self._unsupported("up")

    def down(self, ctx: ExecutionContext, project_name: str) -> None:
        """Stop and remove every resource belonging to *project_name*."""
        raise self._unsupported("down")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def ps(self, ctx: ExecutionContext, project_name: str) -> list[ContainerSummary]:
        raise self._unsupported("ps")

    def list_stacks(self, ctx: ExecutionContext) -> list[StackSummary]:
        raise self._unsupported("list")

    def logs(self, ctx: ExecutionContext, project_name: str, writer: TextIO) -> None:
        raise self._unsupported("logs")

    def convert(self, ctx: ExecutionContext, project: Project, fmt: str = "yaml") -> str:
        """Render *project* as the backend would deploy it.

        The default renders the resolved compose model as YAML or JSON.
        """
        document: dict[str, Any] = project.to_document()
        if fmt == "json":
            return json.dumps(document, indent=2)
        if fmt != "yaml":
            raise ValueError(f"unknown convert format '{fmt}' (expected one of {CONVERT_FORMATS})")
        yaml = YAML(typ="safe", pure=True)
        yaml.default_flow_style = False
        buffer = StringIO()
        yaml.dump(document, buffer)
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def build(self, ctx: ExecutionContext, project: Project) -> list[str]:
        raise self._unsupported("build")

    def push(self, ctx: ExecutionContext, project: Project) -> list[str]:
        raise self._unsupported("push")

    def pull(self, ctx: ExecutionContext, project: Project) -> list[str]:
        raise self._unsupported("pull")
