"""Unified API response format, error codes and shared parameter types."""

import math
from typing import Annotated, Any
from datetime import datetime
from uuid import uuid4

from fastapi import Path
from pydantic import BaseModel, Field

from core.models import MAX_ID
from utils.timezone import now_utc

# Path ids beyond SQLite's INTEGER range are rejected as validation errors
EntityId = Annotated[int, Path(ge=1, le=MAX_ID)]


class APIError(BaseModel):
    """One error entry in an API response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(None, description="Offending input field, for validation errors")


class APIMeta(BaseModel):
    """Metadata included in every API response."""

    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Unique request identifier for tracing")


class Pagination(BaseModel):
    """Page window for list responses. Field names match the client's contract."""

    page: int
    limit: int
    total: int
    totalPages: int
    hasNext: bool
    hasPrev: bool


class APIResponse(BaseModel):
    """
    Unified response format for all API endpoints.

    Every endpoint returns this structure, making client parsing predictable.
    """

    success: bool
    message: str | None = None
    data: Any | None = None
    errors: list[APIError] | None = None
    pagination: Pagination | None = None
    meta: APIMeta


def _meta(request_id: str | None) -> APIMeta:
    return APIMeta(
        timestamp=now_utc(),
        request_id=request_id or str(uuid4()),
    )


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    """Derive the page window from page/limit and the total row count."""
    total_pages = math.ceil(total / limit) if limit else 0
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        totalPages=total_pages,
        hasNext=page < total_pages,
        hasPrev=page > 1,
    )


def success_response(
    data: Any = None,
    message: str | None = None,
    pagination: Pagination | None = None,
    request_id: str | None = None,
) -> APIResponse:
    """Create a success response."""
    return APIResponse(
        success=True,
        message=message,
        data=data,
        pagination=pagination,
        meta=_meta(request_id),
    )


def error_response(
    code: str,
    message: str,
    errors: list[APIError] | None = None,
    request_id: str | None = None,
) -> APIResponse:
    """
    Create an error response.

    errors defaults to a single entry carrying code and message.
    """
    return APIResponse(
        success=False,
        message=message,
        data=None,
        errors=errors if errors is not None else [APIError(code=code, message=message)],
        meta=_meta(request_id),
    )


class ErrorCodes:
    """Standard error codes for consistent error handling."""

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
