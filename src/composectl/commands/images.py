"""Commands: ``build``, ``push`` and ``pull`` (local context only)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from composectl.commands._base import ComposeCommand
from composectl.commands._options import common_options, project_file_options, to_project_options
from composectl.infrastructure.context import ExecutionContext

if TYPE_CHECKING:
    from composectl.commands._context import AppContext

_HELP = {
    "build": "Build images for SERVICES that declare a build section.",
    "push": "Push images of SERVICES to their registries.",
    "pull": "Pull images of SERVICES that are not built locally.",
}


def image_command(op: str) -> click.Command:
    """Build one of the image commands; they differ only in the service call."""

    @click.command(
        op,
        cls=ComposeCommand,
        help=_HELP[op],
        examples=f"""\
  composectl {op}
  composectl {op} web worker""",
    )
    @click.argument("services", nargs=-1)
    @common_options
    @project_file_options
    @click.pass_obj
    def command(
        app: AppContext,
        services: tuple[str, ...],
        project_name: str | None,
        output_format: str,
        quiet: bool,
        workdir: str | None,
        files: tuple[str, ...],
        environment: tuple[str, ...],
    ) -> None:
        from composectl.services.compose import ComposeService

        svc = ComposeService(app.backend)
        options = to_project_options(project_name, workdir, files, environment)
        result = getattr(svc, op)(ExecutionContext(), options, services)
        app.emit(result, app.output_settings(output_format, quiet=quiet))

    return command


build = image_command("build")
push = image_command("push")
pull = image_command("pull")
