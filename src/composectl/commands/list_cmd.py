"""Command: list running projects."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from composectl.commands._base import ComposeCommand
from composectl.commands._options import common_options
from composectl.infrastructure.context import ExecutionContext

if TYPE_CHECKING:
    from composectl.commands._context import AppContext


@click.command(
    "list",
    cls=ComposeCommand,
    examples="""\
  composectl list
  composectl list -p shop
  composectl list --format json""",
)
@common_options
@click.pass_obj
def list_cmd(app: AppContext, project_name: str | None, output_format: str, quiet: bool) -> None:
    """List projects known to the backend (optionally just -p NAME)."""
    from composectl.services.compose import ComposeService

    result = ComposeService(app.backend).list_stacks(ExecutionContext(), project_name)
    app.emit(result, app.output_settings(output_format, quiet=quiet))
