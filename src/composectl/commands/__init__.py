"""Subcommand modules for composectl.

Provides register_commands(), which builds the command tree for one
deployment context type: the common compose commands everywhere, plus
the local-only commands for the ``local`` context.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from composectl.backends.base import BackendCapability
from composectl.config.models import LOCAL_CONTEXT_TYPE

if TYPE_CHECKING:
    from collections.abc import Iterable

    import click


def register_commands(
    cli: click.Group,
    context_type: str = LOCAL_CONTEXT_TYPE,
    capabilities: Iterable[BackendCapability] = (),
) -> None:
    """Register the commands available for *context_type* on the root group."""
    from composectl.commands.convert import convert
    from composectl.commands.down import down
    from composectl.commands.list_cmd import list_cmd
    from composectl.commands.logs import logs
    from composectl.commands.ps import ps
    from composectl.commands.up import up_command

    cli.add_command(up_command(domain_name=BackendCapability.DOMAIN_NAME in set(capabilities)))
    cli.add_command(down)
    cli.add_command(ps)
    cli.add_command(list_cmd)
    cli.add_command(logs)
    cli.add_command(convert)

    if context_type != LOCAL_CONTEXT_TYPE:
        return

    # --- Local-only commands ---
    from composectl.commands.images import build, pull, push
    from composectl.commands.up import create

    cli.add_command(create)
    cli.add_command(build)
    cli.add_command(push)
    cli.add_command(pull)
