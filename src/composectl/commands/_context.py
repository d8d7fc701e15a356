"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. The backend is resolved lazily so ``--help`` and
``--version`` never touch plugins' backends.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from composectl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from composectl.backends.base import BackendClient
    from composectl.config.settings import ComposeSettings
    from composectl.plugins.manager import PluginManager
    from composectl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: ComposeSettings, plugins: PluginManager | None = None) -> None:
        self.settings = settings
        self._plugins = plugins
        self._backend: BackendClient | None = None

        from composectl.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            context_name=settings.context.name,
        )

    @property
    def plugins(self) -> PluginManager:
        if self._plugins is None:
            from composectl.plugins.manager import PluginManager

            self._plugins = PluginManager()
        if not self._plugins.is_loaded:
            self._plugins.discover_and_load()
        return self._plugins

    @property
    def backend(self) -> BackendClient:
        """Backend of the active context (resolved on first access).

        Raises:
            UnsupportedBackendError: the context has no compose-capable backend.
        """
        if self._backend is None:
            self._backend = self.plugins.load_backend(self.settings)
        return self._backend

    def check_compose_support(self) -> None:
        """Fail with UnsupportedBackendError unless the backend supports compose."""
        _ = self.backend

    def output_settings(self, fmt: str | None = None, *, quiet: bool = False) -> OutputSettings:
        return OutputSettings.from_format(fmt, quiet=quiet, verbose=self.settings.verbose)

    def emit(self, result: ServiceResult, output: OutputSettings | None = None) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: stdout, returns normally; warnings go to stderr unless
          they are already part of the JSON payload.
        * Failure: stderr, exits with code 1.
        """
        settings = output or self.output_settings()
        text = format_result(result, settings=settings)
        if result.ok:
            click.echo(text)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(text, err=True)
            raise SystemExit(1)
