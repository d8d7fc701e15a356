"""Pluggy hook specifications for composectl.

Plugins contribute deployment backends keyed by context type.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from composectl.backends.base import BackendClient

hookspec = pluggy.HookspecMarker("composectl")


class ComposectlHookSpec:
    """Hook specifications for the composectl plugin system."""

    @hookspec
    def register_backends(self) -> dict[str, type[BackendClient]] | None:
        """Return context type -> BackendClient subclass mappings."""
