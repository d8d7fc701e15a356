"""Root CLI group for composectl with global flags and command registration.

The command tree depends on the deployment context: ``main()`` resolves
the context type from env vars and the discovered ``composectl.toml``,
then builds the tree for it with :func:`create_cli`.
"""

from __future__ import annotations

import sys

import click

from composectl import __version__
from composectl.commands import register_commands
from composectl.commands._base import ComposeGroup
from composectl.commands._context import AppContext
from composectl.config.models import LOCAL_CONTEXT_TYPE
from composectl.config.settings import ComposeSettings
from composectl.plugins.manager import PluginManager

_EXAMPLES = """\
  composectl up --detach
  composectl ps
  composectl logs
  composectl down"""


def create_cli(
    context_type: str = LOCAL_CONTEXT_TYPE,
    plugins: PluginManager | None = None,
) -> click.Group:
    """Build the root group with the commands available for *context_type*."""
    manager = plugins or PluginManager()
    if not manager.is_loaded:
        manager.discover_and_load()
    backend_cls = manager.backend_class(context_type)
    capabilities = backend_cls.capabilities if backend_cls is not None else frozenset()

    @click.group(cls=ComposeGroup, invoke_without_command=True, examples=_EXAMPLES)
    @click.version_option(version=__version__, prog_name="composectl")
    @click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
    @click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
    @click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
    @click.pass_context
    def cli(ctx: click.Context, verbose: bool, log_json: bool, config_path: str | None) -> None:
        """composectl — run compose projects against a deployment backend."""
        settings = ComposeSettings.from_cli(
            config_path=config_path, verbose=verbose, log_json=log_json
        )
        if settings.context.type != context_type:
            # The command tree was built for context_type; keep the backend in step.
            settings = settings.model_copy(
                update={"context": settings.context.model_copy(update={"type": context_type})}
            )
        ctx.obj = AppContext(settings, plugins=manager)
        if ctx.invoked_subcommand is None:
            click.echo(ctx.get_help())

    register_commands(cli, context_type, capabilities)
    return cli


def main() -> None:
    """Console-script entry point."""
    try:
        settings = ComposeSettings.from_cli()
    except click.ClickException as exc:
        # Raised before click owns the process, so report it the way click would.
        exc.show()
        sys.exit(exc.exit_code)
    create_cli(settings.context.type)()
