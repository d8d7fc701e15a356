"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All service-layer methods return ServiceResult.
The CLI renders it; exceptions never cross the service boundary except
programming errors.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from composectl.domain.errors import ComposeError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: BaseException) -> ServiceError:
        """Map an exception to its code; unknown exceptions become BACKEND_ERROR."""
        if isinstance(exc, ComposeError):
            return cls(code=exc.code, message=str(exc), detail=exc.detail())
        return cls(
            code="BACKEND_ERROR",
            message=str(exc) or exc.__class__.__name__,
            detail={"exception": exc.__class__.__name__},
        )


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"up"``).
        data: Operation-specific payload.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (phase timings, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: BaseException, **data: Any) -> ServiceResult:
        return cls(ok=False, op=op, data=data, error=ServiceError.from_exception(exc))
