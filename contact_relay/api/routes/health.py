"""
Health check endpoints.

Provides:
- /health - Liveness: service metadata
- /health/ready - Readiness: credentials load and SMTP handshake succeed
"""
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from contact_relay.api.deps import get_mail_sender
from contact_relay.schemas.health import HealthCheckResult, ServiceHealth
from contact_relay.services.email_service import MailSender

router = APIRouter(tags=["health"])


async def check_email(mail_sender: MailSender) -> ServiceHealth:
    """Check that the mail relay accepts our credentials."""
    verify = getattr(mail_sender, "verify_connection", None)
    if verify is None:
        return ServiceHealth(status="healthy")

    start = time.perf_counter()
    ok = await verify()
    latency = (time.perf_counter() - start) * 1000
    if ok:
        return ServiceHealth(status="healthy", response_time_ms=round(latency, 2))
    return ServiceHealth(
        status="unhealthy",
        response_time_ms=round(latency, 2),
        error="SMTP connection could not be verified",
    )


@router.get(
    "",
    summary="Liveness probe",
    description="Returns service metadata for monitoring and uptime checks.",
)
async def health_check(request: Request) -> Dict[str, Any]:
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }


@router.get(
    "/ready",
    response_model=HealthCheckResult,
    summary="Readiness probe",
    description="Checks that SMTP credentials load and the relay accepts a login.",
)
async def readiness_probe(
    mail_sender: MailSender = Depends(get_mail_sender),
) -> JSONResponse:
    checks = {"email": await check_email(mail_sender)}
    overall = "healthy" if all(c.status == "healthy" for c in checks.values()) else "unhealthy"
    result = HealthCheckResult(
        status=overall,
        checks=checks,
        timestamp=datetime.now(timezone.utc),
    )
    status_code = 200 if overall == "healthy" else 503
    return JSONResponse(
        content=result.model_dump(mode="json", exclude_none=True),
        status_code=status_code,
    )
