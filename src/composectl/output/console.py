"""Rich Console factory and theme for composectl output.

Consoles render into a StringIO buffer so renderers keep a
``ServiceResult -> str`` contract. Outside a terminal (tests, pipes)
Rich drops color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

COMPOSE_THEME = Theme(
    {
        "cc.ok": "bold green",
        "cc.error": "bold red",
        "cc.warning": "bold yellow",
        "cc.op": "bold cyan",
        "cc.key": "dim",
        "cc.id": "bold blue",
        "cc.service": "bold",
        "cc.state.running": "green",
        "cc.state.exited": "red",
        "cc.state.created": "yellow",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=COMPOSE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_state(state: str) -> str:
    """Rich style for a container state (``running``, ``exited``, ...)."""
    return f"cc.state.{state}" if state in {"running", "exited", "created"} else ""
