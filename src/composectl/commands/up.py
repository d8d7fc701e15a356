"""Commands: ``up`` and ``create``.

``up`` runs in the foreground unless ``--detach`` is given. The first
Ctrl-C cancels the run and the project is stopped and removed again; a
second Ctrl-C aborts immediately.
"""

from __future__ import annotations

import sys
from contextlib import nullcontext
from typing import TYPE_CHECKING

import click

from composectl.commands._base import ComposeCommand
from composectl.commands._options import (
    project_file_options,
    project_name_option,
    to_project_options,
)
from composectl.infrastructure.context import ExecutionContext
from composectl.infrastructure.signals import InterruptHandler

if TYPE_CHECKING:
    from composectl.commands._context import AppContext

_UP_EXAMPLES = """\
  composectl up
  composectl up --detach
  composectl up web
  composectl up -f compose.yml -f compose.prod.yml -p shop
  composectl up -e TAG=1.4 --workdir ./deploy"""


def _stopping() -> None:
    click.echo("Gracefully stopping...", err=True)


def up_command(*, domain_name: bool = False) -> click.Command:
    """Build the ``up`` command; ``--domainname`` only where the backend takes it."""

    @click.command("up", cls=ComposeCommand, examples=_UP_EXAMPLES)
    @click.argument("services", nargs=-1)
    @click.option("-d", "--detach", is_flag=True, help="Run containers in the background.")
    @project_name_option
    @project_file_options
    @click.pass_obj
    def up(
        app: AppContext,
        services: tuple[str, ...],
        detach: bool,
        project_name: str | None,
        workdir: str | None,
        files: tuple[str, ...],
        environment: tuple[str, ...],
        domainname: str | None = None,
    ) -> None:
        """Create and start containers for SERVICES (default: all)."""
        from composectl.services.compose import ComposeService

        ctx = ExecutionContext()
        options = to_project_options(project_name, workdir, files, environment)
        svc = ComposeService(app.backend)
        with nullcontext() if detach else InterruptHandler(ctx):
            result = svc.up(
                ctx,
                options,
                services,
                detach=detach,
                domain_name=domainname,
                writer=sys.stdout,
                on_stopping=_stopping,
            )
        app.emit(result)

    if domain_name:
        up.params.append(
            click.Option(["--domainname"], default=None, help="Container NIS domain name.")
        )
    return up


@click.command(
    cls=ComposeCommand,
    examples="""\
  composectl create
  composectl create db cache""",
)
@click.argument("services", nargs=-1)
@project_name_option
@project_file_options
@click.pass_obj
def create(
    app: AppContext,
    services: tuple[str, ...],
    project_name: str | None,
    workdir: str | None,
    files: tuple[str, ...],
    environment: tuple[str, ...],
) -> None:
    """Create containers for SERVICES without starting them."""
    from composectl.services.compose import ComposeService

    options = to_project_options(project_name, workdir, files, environment)
    app.emit(ComposeService(app.backend).create(ExecutionContext(), options, services))
