from datetime import datetime
from typing import Dict, Literal, Optional

from pydantic import BaseModel


class ServiceHealth(BaseModel):
    """Health status of an individual collaborator."""

    status: Literal["healthy", "unhealthy"]
    response_time_ms: Optional[float] = None
    error: Optional[str] = None


class HealthCheckResult(BaseModel):
    status: Literal["healthy", "unhealthy"]
    checks: Dict[str, ServiceHealth]
    timestamp: datetime

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "healthy",
                "checks": {"email": {"status": "healthy", "response_time_ms": 412.3}},
                "timestamp": "2026-02-08T14:30:00Z",
            }
        }
    }
