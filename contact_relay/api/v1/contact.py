"""
Contact form endpoint.

Public endpoint that validates, sanitizes and spam-filters a submission and
relays it by email. Pipeline per request:
method check -> rate limit -> validation -> spam check -> mail send.
"""
from __future__ import annotations

import logging
from typing import List, Optional

import redis
from fastapi import APIRouter, Depends, Request, Response, status

from contact_relay.api.deps import get_mail_sender, get_rate_limiter, get_trusted_networks
from contact_relay.core.errors import (
    GENERIC_ERROR_MESSAGE,
    EmailDeliveryError,
    ErrorCode,
    api_error_response,
)
from contact_relay.core.middleware import generate_request_id
from contact_relay.core.rate_limiter import RateLimiter, get_client_ip
from contact_relay.schemas.contact import ContactFormResponse
from contact_relay.schemas.error import ERROR_RESPONSES
from contact_relay.services.email_service import MailSender
from contact_relay.services.spam_filter import is_spam
from contact_relay.services.validation import body_error, validate_contact_form

logger = logging.getLogger(__name__)

router = APIRouter()

CONTACT_PATH = "/contact-form"
SUCCESS_MESSAGE = "Thank you for your message. We will get back to you soon."
REJECTED_METHODS = ["GET", "HEAD", "PUT", "PATCH", "DELETE"]


def _success_response(request_id: str) -> Response:
    body = ContactFormResponse(message=SUCCESS_MESSAGE, id=request_id)
    return Response(
        content=body.model_dump_json(),
        media_type="application/json",
        status_code=status.HTTP_200_OK,
    )


def method_not_allowed() -> Response:
    return api_error_response(
        status.HTTP_405_METHOD_NOT_ALLOWED,
        ErrorCode.METHOD_NOT_ALLOWED,
        "Only POST requests are allowed",
    )


async def _process_submission(
    request: Request,
    request_id: str,
    client_ip: str,
    rate_limiter: RateLimiter,
    mail_sender: MailSender,
) -> Response:
    if rate_limiter.is_rate_limited(client_ip):
        logger.warning(
            "Rate limit exceeded ip=%s",
            client_ip,
            extra={"event_name": "contact_rate_limited", "request_id": request_id},
        )
        return api_error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            ErrorCode.RATE_LIMIT_EXCEEDED,
            "Too many requests. Please try again later.",
            headers={"Retry-After": str(rate_limiter.retry_after_seconds)},
        )

    try:
        payload = await request.json()
    except ValueError:
        result = body_error("Request body must be valid JSON")
    else:
        result = validate_contact_form(payload)

    if not result.is_valid or result.sanitized_data is None:
        logger.warning(
            "Validation failed fields=%s",
            [error.field for error in result.errors],
            extra={"event_name": "contact_validation_failed", "request_id": request_id},
        )
        return api_error_response(
            status.HTTP_400_BAD_REQUEST,
            ErrorCode.VALIDATION_ERROR,
            "Invalid input data",
            details=[error.model_dump() for error in result.errors],
        )

    submission = result.sanitized_data

    # Spam gets the normal success body so senders cannot tell they were filtered
    if is_spam(submission.spam_check_text):
        logger.warning(
            "Spam detected ip=%s",
            client_ip,
            extra={"event_name": "contact_spam_detected", "request_id": request_id},
        )
        return _success_response(request_id)

    await mail_sender.send(submission, request_id)

    logger.info(
        "AUDIT: Contact form processed successfully id=%s",
        request_id,
        extra={
            "event_name": "contact_request_accepted",
            "request_id": request_id,
            "remaining_requests": _remaining_requests(rate_limiter, client_ip),
        },
    )
    return _success_response(request_id)


def _remaining_requests(rate_limiter: RateLimiter, client_ip: str) -> Optional[int]:
    """Remaining quota for the audit log; None if the store cannot be read.

    Runs after the mail has been sent; a store error only drops the value.
    """
    try:
        return rate_limiter.get_remaining_requests(client_ip)
    except redis.RedisError as exc:
        logger.warning("Could not read remaining requests: %s", exc)
        return None


@router.api_route(
    CONTACT_PATH,
    methods=["POST", "OPTIONS"],
    response_model=ContactFormResponse,
    responses=ERROR_RESPONSES,
    summary="Submit contact form",
    description="Validates a contact form submission and relays it by email.",
)
async def submit_contact_form(
    request: Request,
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    mail_sender: MailSender = Depends(get_mail_sender),
    trusted_networks: List = Depends(get_trusted_networks),
) -> Response:
    """Run the contact pipeline; every outcome is a terminal response."""
    request_id = getattr(request.state, "request_id", None) or generate_request_id()
    client_ip = get_client_ip(request, trusted_networks)

    logger.info(
        "Contact form request received method=%s ip=%s",
        request.method,
        client_ip,
        extra={"request_id": request_id, "origin": request.headers.get("Origin")},
    )

    # Preflight: CORS headers are added by AllowListCORSMiddleware
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK)

    try:
        return await _process_submission(
            request, request_id, client_ip, rate_limiter, mail_sender
        )
    except EmailDeliveryError:
        logger.error(
            "Contact delivery failed id=%s",
            request_id,
            extra={"event_name": "contact_delivery_failed", "request_id": request_id},
        )
    except Exception:
        logger.exception(
            "Unexpected error in contact form handler id=%s",
            request_id,
            extra={"event_name": "contact_unexpected_error", "request_id": request_id},
        )

    return api_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.INTERNAL_SERVER_ERROR,
        GENERIC_ERROR_MESSAGE,
    )


@router.api_route(CONTACT_PATH, methods=REJECTED_METHODS, include_in_schema=False)
async def reject_contact_method(request: Request) -> Response:
    logger.warning("Method not allowed method=%s", request.method)
    return method_not_allowed()
