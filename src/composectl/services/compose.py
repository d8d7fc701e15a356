"""ComposeService — project operations behind every compose command.

``prepare`` is the shared setup step: assemble the project, narrow it to
the requested services (plus their dependency closure) and apply the
``--domainname`` override. Selection errors abort before any backend
call is made.
"""

from __future__ import annotations

import io
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, TextIO

from composectl.domain.errors import AssemblyError, ComposeError
from composectl.domain.selection import filter_project
from composectl.infrastructure.assembler import ProjectAssembler, ProjectOptions
from composectl.services.base import BaseService
from composectl.services.orchestration import OrchestrationEngine
from composectl.services.result import ServiceResult

if TYPE_CHECKING:
    from composectl.backends.base import BackendClient
    from composectl.domain.project import Project
    from composectl.infrastructure.context import ExecutionContext


def apply_domain_name(project: Project, domain_name: str) -> Project:
    """Set *domain_name* on the first service of *project*.

    Only one domain name per deployment is supported: backends that expose
    a single endpoint publish the whole project under it.
    """
    if not project.services:
        raise AssemblyError("cannot set a domain name on a project without services")
    first, *rest = project.services
    return project.with_services([first.model_copy(update={"domainname": domain_name}), *rest])


class ComposeService(BaseService):
    """Compose operations against the active backend."""

    def __init__(self, backend: BackendClient, assembler: ProjectAssembler | None = None) -> None:
        super().__init__(backend)
        self._assembler = assembler or ProjectAssembler()

    def prepare(
        self,
        options: ProjectOptions,
        services: Sequence[str] = (),
        *,
        domain_name: str | None = None,
    ) -> Project:
        """Assemble, select and decorate the project to operate on.

        Raises:
            AssemblyError: the project could not be built.
            ServiceNotFoundError: a requested or referenced service is missing.
        """
        project = filter_project(self._assembler.load(options), services)
        if domain_name:
            project = apply_domain_name(project, domain_name)
        return project

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def up(
        self,
        ctx: ExecutionContext,
        options: ProjectOptions,
        services: Sequence[str] = (),
        *,
        detach: bool = False,
        domain_name: str | None = None,
        writer: TextIO | None = None,
        on_stopping: Callable[[], None] | None = None,
    ) -> ServiceResult:
        try:
            project = self.prepare(options, services, domain_name=domain_name)
        except ComposeError as exc:
            return ServiceResult.failure("up", exc)
        engine = OrchestrationEngine(self._backend, on_stopping=on_stopping)
        return engine.run_up(ctx, project, detach=detach, writer=None if detach else writer)

    def create(
        self,
        ctx: ExecutionContext,
        options: ProjectOptions,
        services: Sequence[str] = (),
    ) -> ServiceResult:
        try:
            project = self.prepare(options, services)
        except ComposeError as exc:
            return ServiceResult.failure("create", exc)
        return OrchestrationEngine(self._backend).run_create(ctx, project)

    def down(self, ctx: ExecutionContext, options: ProjectOptions) -> ServiceResult:
        def run() -> dict[str, Any]:
            name = self._assembler.project_name(options)
            self._backend.down(ctx, name)
            return {"project": name}

        return self._guard("down", run)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def ps(self, ctx: ExecutionContext, options: ProjectOptions) -> ServiceResult:
        def run() -> dict[str, Any]:
            name = self._assembler.project_name(options)
            items = [c.model_dump() for c in self._backend.ps(ctx, name)]
            return {"project": name, "count": len(items), "items": items}

        return self._guard("ps", run)

    def list_stacks(self, ctx: ExecutionContext, project_name: str | None = None) -> ServiceResult:
        def run() -> dict[str, Any]:
            stacks = self._backend.list_stacks(ctx)
            if project_name:
                stacks = [s for s in stacks if s.name == project_name]
            items = [s.model_dump() for s in stacks]
            return {"count": len(items), "items": items}

        return self._guard("list", run)

    def logs(
        self, ctx: ExecutionContext, options: ProjectOptions, writer: TextIO | None = None
    ) -> ServiceResult:
        """Write the project's logs to *writer*, or collect them as ``lines``."""

        def run() -> dict[str, Any]:
            name = self._assembler.project_name(options)
            if writer is not None:
                self._backend.logs(ctx, name, writer)
                return {"project": name}
            buffer = io.StringIO()
            self._backend.logs(ctx, name, buffer)
            return {"project": name, "lines": buffer.getvalue().splitlines()}

        return self._guard("logs", run)

    def convert(
        self,
        ctx: ExecutionContext,
        options: ProjectOptions,
        services: Sequence[str] = (),
        *,
        fmt: str = "yaml",
    ) -> ServiceResult:
        def run() -> dict[str, Any]:
            project = self.prepare(options, services)
            content = self._backend.convert(ctx, project, fmt)
            return {"project": project.name, "format": fmt, "content": content}

        return self._guard("convert", run)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def build(self, ctx: ExecutionContext, options: ProjectOptions, services: Sequence[str] = ()) -> ServiceResult:
        return self._images("build", ctx, options, services)

    def push(self, ctx: ExecutionContext, options: ProjectOptions, services: Sequence[str] = ()) -> ServiceResult:
        return self._images("push", ctx, options, services)

    def pull(self, ctx: ExecutionContext, options: ProjectOptions, services: Sequence[str] = ()) -> ServiceResult:
        return self._images("pull", ctx, options, services)

    def _images(
        self,
        op: str,
        ctx: ExecutionContext,
        options: ProjectOptions,
        services: Sequence[str],
    ) -> ServiceResult:
        def run() -> dict[str, Any]:
            project = self.prepare(options, services)
            images = getattr(self._backend, op)(ctx, project)
            return {"project": project.name, "count": len(images), "images": images}

        return self._guard(op, run)

    @staticmethod
    def _guard(op: str, run: Callable[[], dict[str, Any]]) -> ServiceResult:
        try:
            data = run()
        except ComposeError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data=data)
