"""
=============================================================================
CONTACT RELAY - ERROR HANDLING MODULE
=============================================================================
Error taxonomy, domain exceptions and global exception handlers.

Features:
- One ApiError body shape for every failure
- Catches unhandled exceptions and logs the full stack trace server-side
- Returns a generic message to the client, never internal detail

Usage:
    # In main.py
    from contact_relay.core.errors import register_exception_handlers
    register_exception_handlers(app)
=============================================================================
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contact_relay.schemas.error import ApiError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class ErrorCode(str, Enum):
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    NOT_FOUND = "NOT_FOUND"
    HTTP_ERROR = "HTTP_ERROR"


_STATUS_CODES = {
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.METHOD_NOT_ALLOWED,
    status.HTTP_429_TOO_MANY_REQUESTS: ErrorCode.RATE_LIMIT_EXCEEDED,
    status.HTTP_500_INTERNAL_SERVER_ERROR: ErrorCode.INTERNAL_SERVER_ERROR,
}


class ContactRelayError(Exception):
    """Base class for errors raised by the relay's collaborators."""


class EmailConfigurationError(ContactRelayError):
    """SMTP credentials could not be loaded or are incomplete."""


class EmailDeliveryError(ContactRelayError):
    """The mail relay did not accept the message."""


def api_error_response(
    status_code: int,
    code: ErrorCode,
    message: str,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build a JSONResponse carrying an ApiError body."""
    error = ApiError(code=code.value, message=message, details=details)
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = _STATUS_CODES.get(exc.status_code, ErrorCode.HTTP_ERROR)
        return api_error_response(
            exc.status_code,
            code,
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all handler: log the traceback, return a generic 500."""
        logger.error(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return api_error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorCode.INTERNAL_SERVER_ERROR,
            GENERIC_ERROR_MESSAGE,
        )
