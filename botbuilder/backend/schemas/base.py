"""
Response Envelope.

Every JSON response of the management API has the same shape:

    {"success": bool, "data": ..., "error": {...} | null, "metadata": {...}}

List endpoints add a "pagination" block.
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from botbuilder.backend.core.utils import utc_now

DataT = TypeVar("DataT")


class ResponseMetadata(BaseModel):
    timestamp: datetime = Field(default_factory=utc_now)
    request_id: str | None = None


class ErrorDetail(BaseModel):
    """`code` is stable and machine-readable; `message` is for people."""

    code: str
    message: str
    details: dict[str, Any] | None = None


class _Envelope(BaseModel):
    success: bool = True
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


class ApiResponse(_Envelope, Generic[DataT]):
    """Successful single-object response."""

    data: DataT | None = None
    error: ErrorDetail | None = None

    model_config = ConfigDict(from_attributes=True)


class ErrorResponse(_Envelope):
    """Failed response; built only by the exception handlers."""

    success: bool = False
    data: None = None
    error: ErrorDetail


class PaginationInfo(BaseModel):
    total: int | None = None
    limit: int
    offset: int = 0
    has_more: bool = False


class PaginatedResponse(_Envelope, Generic[DataT]):
    """Successful list response, one page of items."""

    data: list[DataT]
    error: None = None
    pagination: PaginationInfo
