"""Plugin discovery and backend resolution.

Discovery: entry points in the ``composectl.plugins`` group (pip-installed
packages) plus the built-in docker plugin. Plugins contribute backends
through the ``register_backends`` hook; the manager maps the active
context type to a BackendClient and enforces the compose capability gate.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

import pluggy

from composectl.backends.base import BackendCapability, BackendClient
from composectl.domain.errors import UnsupportedBackendError
from composectl.plugins.hookspecs import ComposectlHookSpec

if TYPE_CHECKING:
    from composectl.config.settings import ComposeSettings

PROJECT_NAME = "composectl"
ENTRY_POINT_GROUP = "composectl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and backend lookup."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ComposectlHookSpec)
        self._loaded: bool = False

    def discover_and_load(self, *, builtins: bool = True) -> list[str]:
        """Load entry-point plugins and (optionally) the built-in ones.

        A plugin that fails to import is logged and skipped; it must not
        prevent other backends from working. Returns the loaded plugin names.
        """
        if builtins:
            from composectl.plugins.builtins.docker import DockerPlugin

            if not self._pm.has_plugin("docker"):
                self.register_plugin(DockerPlugin(), name="docker")
        try:
            self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        except Exception:
            logger.warning("Failed to load %s entry points", ENTRY_POINT_GROUP, exc_info=True)
        self._instantiate_plugin_classes()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (built-ins, tests)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Backends
    # ------------------------------------------------------------------

    def backend_types(self) -> dict[str, type[BackendClient]]:
        """Context type -> backend class across all plugins.

        Pluggy calls the most recently registered plugin first, so a later
        registration overrides an earlier one for the same context type.
        """
        backends: dict[str, type[BackendClient]] = {}
        for registrations in self._pm.hook.register_backends():
            if not isinstance(registrations, dict):
                logger.warning("Ignoring non-dict backend registration: %r", registrations)
                continue
            for context_type, backend_cls in registrations.items():
                if not (inspect.isclass(backend_cls) and issubclass(backend_cls, BackendClient)):
                    logger.warning("Ignoring backend %r for context %s", backend_cls, context_type)
                    continue
                if context_type in backends:
                    logger.debug(
                        "Backend %s for context %s shadowed by %s",
                        backend_cls.__name__,
                        context_type,
                        backends[context_type].__name__,
                    )
                    continue
                backends[context_type] = backend_cls
        return backends

    def backend_class(self, context_type: str) -> type[BackendClient] | None:
        return self.backend_types().get(context_type)

    def load_backend(self, settings: ComposeSettings) -> BackendClient:
        """Instantiate the backend for the active context.

        Raises:
            UnsupportedBackendError: no backend is registered for the
                context type, or it does not support compose operations.
        """
        context_type = settings.context.type
        backend_cls = self.backend_class(context_type)
        if backend_cls is None or not backend_cls.supports(BackendCapability.COMPOSE):
            raise UnsupportedBackendError(context_type)
        logger.debug("Using %s for context %s", backend_cls.__name__, settings.context.name)
        return backend_cls(settings)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _instantiate_plugin_classes(self) -> None:
        """Replace plugin classes registered by entry points with instances.

        Hook dispatch against a class object leaves ``self`` unbound.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Failed to instantiate plugin %s", plugin_name, exc_info=True)
                continue
            self._pm.register(instance, name=plugin_name)
