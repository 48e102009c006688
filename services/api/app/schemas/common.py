"""Common schemas used across the API."""

from typing import Any

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Structured error detail (e.g. code="PRODUCT_NOT_FOUND")."""

    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error format used in route `responses` and the global handler.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail
