"""Output mode dispatch.

The CLI renders ServiceResult for humans (``--format pretty``, Rich),
for machines (``--format json``) or minimally (``--quiet``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from composectl.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from composectl.services.result import ServiceResult

OUTPUT_FORMATS = ("pretty", "json")


@dataclass(frozen=True)
class OutputSettings:
    """How a single command wants its result rendered."""

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False

    @classmethod
    def from_format(cls, fmt: str | None, *, quiet: bool = False, verbose: bool = False) -> OutputSettings:
        return cls(json_output=(fmt or "pretty") == "json", quiet=quiet, verbose=verbose)


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display.

    JSON wins over quiet: machine consumers always get the full payload.
    """
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
