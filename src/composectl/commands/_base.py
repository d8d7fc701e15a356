"""Custom Click base classes: ``--examples`` support and the backend gate.

``ComposeCommand`` checks, before its callback runs, that the active
deployment context has a compose-capable backend. The check lives in
``invoke`` so ``--help`` and ``--examples`` (handled while parsing)
never trigger it.
"""

from __future__ import annotations

from typing import Any

import click

from composectl.commands._context import AppContext
from composectl.domain.errors import UnsupportedBackendError
from composectl.services.result import ServiceResult


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class ComposeCommand(click.Command):
    """Command with ``--examples`` that requires a compose-capable backend."""

    def __init__(
        self,
        *args: Any,
        examples: str | None = None,
        requires_backend: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        self.requires_backend = requires_backend
        if examples:
            _add_examples_option(self, examples)

    def invoke(self, ctx: click.Context) -> Any:
        if self.requires_backend:
            app = ctx.find_object(AppContext)
            if app is not None:
                try:
                    app.check_compose_support()
                except UnsupportedBackendError as exc:
                    output = app.output_settings(
                        ctx.params.get("output_format"), quiet=bool(ctx.params.get("quiet"))
                    )
                    app.emit(ServiceResult.failure(self.name or "compose", exc), output)
        return super().invoke(ctx)


class ComposeGroup(click.Group):
    """Group whose subcommands default to :class:`ComposeCommand`."""

    command_class = ComposeCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)
