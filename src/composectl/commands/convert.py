"""Command: print the resolved project as the backend would deploy it."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from composectl.commands._base import ComposeCommand
from composectl.commands._options import common_options, project_file_options, to_project_options
from composectl.infrastructure.context import ExecutionContext

if TYPE_CHECKING:
    from composectl.commands._context import AppContext


@click.command(
    cls=ComposeCommand,
    examples="""\
  composectl convert
  composectl convert web
  composectl convert --format json -f compose.yml -f compose.override.yml""",
)
@click.argument("services", nargs=-1)
@common_options
@project_file_options
@click.pass_obj
def convert(
    app: AppContext,
    services: tuple[str, ...],
    project_name: str | None,
    output_format: str,
    quiet: bool,
    workdir: str | None,
    files: tuple[str, ...],
    environment: tuple[str, ...],
) -> None:
    """Resolve, merge and interpolate the compose files into one document."""
    from composectl.services.compose import ComposeService

    options = to_project_options(project_name, workdir, files, environment)
    fmt = "json" if output_format == "json" else "yaml"
    result = ComposeService(app.backend).convert(ExecutionContext(), options, services, fmt=fmt)
    app.emit(result, app.output_settings(output_format, quiet=quiet))
