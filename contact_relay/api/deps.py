from typing import List

from fastapi import Request

from contact_relay.core.rate_limiter import RateLimiter
from contact_relay.services.email_service import MailSender


def get_rate_limiter(request: Request) -> RateLimiter:
    """
    Rate limiter shared by every request of this app instance.

    Usage:
        @router.post("/items")
        async def create(limiter: RateLimiter = Depends(get_rate_limiter)):
            ...
    """
    return request.app.state.rate_limiter


def get_mail_sender(request: Request) -> MailSender:
    return request.app.state.mail_sender


def get_trusted_networks(request: Request) -> List:
    return request.app.state.trusted_networks
