"""
Standardized error response schemas.

Every failure the API returns uses the ApiError shape:
``{code, message, details?, timestamp}``.
"""
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, Field


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ValidationErrorDetail(BaseModel):
    """One failing constraint on one input field."""

    field: str = Field(..., description="Name of the offending field", examples=["email"])
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Please provide a valid email address"],
    )


class ApiError(BaseModel):
    """
    Uniform failure payload.

    Attributes:
        code: Short error code (e.g. "VALIDATION_ERROR")
        message: Human-readable error description
        details: Optional extra information, the per-field list for validation errors
        timestamp: ISO-8601 UTC time the error was produced
    """

    code: str = Field(
        ...,
        description="Error code",
        examples=["VALIDATION_ERROR", "RATE_LIMIT_EXCEEDED", "METHOD_NOT_ALLOWED"],
    )
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Any] = Field(
        None, description="Detailed error information for validation errors"
    )
    timestamp: str = Field(
        default_factory=_utc_now_iso, description="When the error occurred"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid input data",
                "details": [
                    {"field": "email", "message": "Please provide a valid email address"}
                ],
                "timestamp": "2026-02-08T14:30:00Z",
            }
        }
    }


class ValidationErrorResponse(ApiError):
    """400 Validation error response."""

    code: str = "VALIDATION_ERROR"
    details: Optional[List[ValidationErrorDetail]] = None


# Common error responses for OpenAPI documentation
ERROR_RESPONSES = {
    400: {"model": ValidationErrorResponse, "description": "Validation Error"},
    405: {"model": ApiError, "description": "Method Not Allowed"},
    429: {"model": ApiError, "description": "Rate Limit Exceeded"},
    500: {"model": ApiError, "description": "Internal Server Error"},
}
