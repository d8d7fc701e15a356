"""Command: list a project's containers."""

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
  composectl ps
  composectl ps -q
  composectl ps --format json""",
)
@common_options
@project_file_options
@click.pass_obj
def ps(
    app: AppContext,
    project_name: str | None,
    output_format: str,
    quiet: bool,
    workdir: str | None,
    files: tuple[str, ...],
    environment: tuple[str, ...],
) -> None:
    """List containers of the project."""
    from composectl.services.compose import ComposeService

    options = to_project_options(project_name, workdir, files, environment)
    result = ComposeService(app.backend).ps(ExecutionContext(), options)
    app.emit(result, app.output_settings(output_format, quiet=quiet))
