"""Deployment backends — one BackendClient subclass per context type.

Backends are registered through the ``register_backends`` plugin hook;
the local docker backend ships as a built-in plugin.
"""

from composectl.backends.base import BackendCapability, BackendClient

__all__ = ["BackendCapability", "BackendClient"]
