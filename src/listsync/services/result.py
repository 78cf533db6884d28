"""ServiceResult and ServiceError — the contract every operation returns.

Drag transitions return a ServiceResult instead of raising, so the input
source keeps delivering events after a failed one. The CLI consumes the
same type.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Return type for all service operations and drag transitions.

    Attributes:
        ok: Whether the operation succeeded. Denied moves are ``ok``: a
            denial is a defined outcome, not an error.
        op: Name of the operation (e.g. ``"drag_over"``).
        data: Operation-specific payload.
        warnings: Non-fatal issues (plugin or channel failures).
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (telemetry span tree).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        *,
        warnings: list[str] | None = None,
        **detail: Any,
    ) -> ServiceResult:
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=code, message=message, detail=detail),
            warnings=warnings or [],
        )
