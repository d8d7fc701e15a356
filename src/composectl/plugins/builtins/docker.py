"""Built-in plugin registering the docker CLI backend for the local context."""

from __future__ import annotations

import pluggy

from composectl.backends.base import BackendClient
from composectl.backends.docker import DockerBackend

hookimpl = pluggy.HookimplMarker("composectl")


class DockerPlugin:
    """Provides the ``local`` deployment context."""

    @hookimpl
    def register_backends(self) -> dict[str, type[BackendClient]]:
        return {DockerBackend.context_type: DockerBackend}
