import logging
import uuid
from typing import Dict, Iterable, Optional

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger("contact_relay.requests")


def generate_request_id() -> str:
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Assigns every request a server-generated correlation id.

    The id is:
    - Available in request.state.request_id for handlers
    - Bound to structlog context vars as ``correlation_id`` for every log line
    - Returned in the X-Request-ID response header
    """

    async def dispatch(self, request: Request, call_next):
        request_id = generate_request_id()
        request.state.request_id = request_id

        with structlog.contextvars.bound_contextvars(correlation_id=request_id):
            logger.info(
                "Request received",
                extra={"method": request.method, "path": request.url.path},
            )
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response


class AllowListCORSMiddleware(BaseHTTPMiddleware):
    """
    Attaches CORS headers only when the request Origin is allow-listed.

    Requests from other origins are still processed and answered; the
    response simply carries no Access-Control-* headers, so a browser will
    not expose it to the calling page.
    """

    def __init__(
        self,
        app: ASGIApp,
        allow_origins: Iterable[str],
        allow_methods: Iterable[str] = ("POST", "OPTIONS"),
        allow_headers: Iterable[str] = ("Content-Type", "Authorization", "X-Requested-With"),
        max_age: int = 86400,
    ):
        super().__init__(app)
        self.allow_origins = frozenset(allow_origins)
        self.allow_methods = ", ".join(allow_methods)
        self.allow_headers = ", ".join(allow_headers)
        self.max_age = str(max_age)

    def cors_headers(self, origin: Optional[str]) -> Dict[str, str]:
        if not origin or origin not in self.allow_origins:
            return {}
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Methods": self.allow_methods,
            "Access-Control-Allow-Headers": self.allow_headers,
            "Access-Control-Max-Age": self.max_age,
        }

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Vary"] = "Origin"
        for name, value in self.cors_headers(request.headers.get("Origin")).items():
            response.headers[name] = value
        return response
