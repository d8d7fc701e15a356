"""Command: print a project's logs."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import click

from composectl.commands._base import ComposeCommand
from composectl.commands._options import common_options, project_file_options, to_project_options
from composectl.infrastructure.context import ExecutionContext
from composectl.infrastructure.signals import InterruptHandler

if TYPE_CHECKING:
    from composectl.commands._context import AppContext


@click.command(
    cls=ComposeCommand,
    examples="""\
  composectl logs
  composectl logs -p shop
  composectl logs --format json""",
)
@common_options
@project_file_options
@click.pass_obj
def logs(
    app: AppContext,
    project_name: str | None,
    output_format: str,
    quiet: bool,
    workdir: str | None,
    files: tuple[str, ...],
    environment: tuple[str, ...],
) -> None:
    """Print the logs of every container in the project.

    With --format json the lines are returned in a single result. The
    lines are already the minimal form, so -q prints them unchanged.
    """
    from composectl.services.compose import ComposeService

    ctx = ExecutionContext()
    options = to_project_options(project_name, workdir, files, environment)
    output = app.output_settings(output_format, quiet=quiet)
    # JSON collects the lines into the result; otherwise they stream as-is.
    writer = None if output.json_output else sys.stdout
    with InterruptHandler(ctx):
        result = ComposeService(app.backend).logs(ctx, options, writer)
    if output.json_output or not result.ok:
        app.emit(result, output)
