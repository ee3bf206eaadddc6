from typing import Any

from pydantic import Field

from weddingday.schemas.base import CamelModel


class ErrorLocation(CamelModel):
    field: str | None = None
    event_id: str | None = None
    lane_id: str | None = None
    op_index: int | None = None  # Position of the failing op in a publish batch


class SuggestedAction(CamelModel):
    action: str
    endpoint: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class ErrorInfo(CamelModel):
    code: str
    message: str
    location: ErrorLocation | None = None
    retryable: bool = False
    suggested_fix: str | None = None  # Human-readable fix suggestion
    suggested_actions: list[SuggestedAction] = Field(default_factory=list)


class ErrorResponse(CamelModel):
    error: ErrorInfo
