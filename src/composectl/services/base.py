"""BaseService — foundation for composectl services.

Every service receives the BackendClient of the active deployment
context at construction time and drives it through its primitives.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from composectl.backends.base import BackendClient


class BaseService:
    """Base for service-layer classes.

    Usage::

        class ComposeService(BaseService):
            def down(self, ctx, options) -> ServiceResult:
                self._backend.down(ctx, name)
                ...
    """

    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend

    @property
    def backend(self) -> BackendClient:
        return self._backend
