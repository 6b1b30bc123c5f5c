"""ServiceResult and ServiceError — the serializable view of a settled service.

The CLI and any other adapter consume this type instead of poking at
live service instances.
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
    """Snapshot of a service after execution.

    Attributes:
        ok: Whether the service settled to success.
        op: Snake-case name of the service class (e.g. ``"create_user"``).
        state: Lifecycle state at the time of the snapshot.
        data: Service-specific payload (see ``Service.result_data``).
        errors: Field-keyed errors accumulated by the service.
        warnings: Non-fatal issues (e.g. failing plugin observers).
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    state: str
    data: dict[str, Any] = Field(default_factory=dict)
    errors: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
