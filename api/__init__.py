"""API modules for HTTP interface."""

from api.base import (
    APIError,
    APIMeta,
    APIResponse,
    Pagination,
    build_pagination,
    success_response,
    error_response,
    ErrorCodes,
)
