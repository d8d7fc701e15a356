"""Shared option decorators and their translation into ProjectOptions."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

from composectl.infrastructure.assembler import ProjectOptions
from composectl.output.formatters import OUTPUT_FORMATS

F = TypeVar("F", bound=Callable[..., Any])


def project_name_option(f: F) -> F:
    return click.option("-p", "--project-name", default=None, help="Project name.")(f)


def output_options(f: F) -> F:
    """``--format`` and ``--quiet``."""
    f = click.option("-q", "--quiet", is_flag=True, help="Only display IDs.")(f)
    return click.option(
        "--format",
        "output_format",
        type=click.Choice(OUTPUT_FORMATS),
        default="pretty",
        show_default=True,
        help="Format the output.",
    )(f)


def common_options(f: F) -> F:
    """Flags every read/teardown command accepts: ``-p``, ``--format``, ``-q``."""
    return project_name_option(output_options(f))


def project_file_options(f: F) -> F:
    """``--workdir``, ``--file/-f`` and ``--environment/-e``."""
    f = click.option(
        "-e",
        "--environment",
        multiple=True,
        metavar="KEY=VALUE",
        help="Environment variables (repeatable).",
    )(f)
    f = click.option(
        "-f",
        "--file",
        "files",
        multiple=True,
        type=click.Path(dir_okay=False),
        help="Compose configuration files (repeatable).",
    )(f)
    return click.option(
        "--workdir",
        type=click.Path(file_okay=False),
        default=None,
        help="Working directory.",
    )(f)


def to_project_options(
    project_name: str | None,
    workdir: str | None,
    files: tuple[str, ...],
    environment: tuple[str, ...],
) -> ProjectOptions:
    return ProjectOptions(
        name=project_name or None,
        working_dir=workdir,
        config_paths=list(files),
        environment=list(environment),
    )
