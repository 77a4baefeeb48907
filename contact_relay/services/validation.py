"""Schema validation and sanitization of contact form submissions."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from contact_relay.core.sanitizer import sanitize_text
from contact_relay.schemas.contact import ContactFormRequest, SanitizedSubmission
from contact_relay.schemas.error import ValidationErrorDetail

logger = logging.getLogger(__name__)

BODY_FIELD = "body"

REQUIRED_MESSAGES: Dict[str, str] = {
    "name": "Name is required",
    "email": "Email is required",
    "message": "Message is required",
}

# (field, pydantic error type) -> message returned to the caller
ERROR_MESSAGES: Dict[Tuple[str, str], str] = {
    ("name", "string_type"): "Name must be a string",
    ("name", "string_too_long"): "Name must be less than 100 characters",
    ("name", "string_pattern_mismatch"): "Name contains invalid characters",
    ("email", "string_type"): "Email must be a string",
    ("email", "string_too_long"): "Email must be less than 254 characters",
    ("email", "value_error"): "Please provide a valid email address",
    ("subject", "string_type"): "Subject must be a string",
    ("subject", "string_too_long"): "Subject must be less than 200 characters",
    ("message", "string_type"): "Message must be a string",
    ("message", "string_too_short"): "Message must be at least 10 characters long",
    ("message", "string_too_long"): "Message must be less than 5000 characters",
}


@dataclass
class ValidationResult:
    is_valid: bool
    sanitized_data: Optional[SanitizedSubmission] = None
    errors: List[ValidationErrorDetail] = field(default_factory=list)


def _is_blank(value: Any) -> bool:
    return isinstance(value, str) and not value.strip()


def _to_details(exc: ValidationError) -> List[ValidationErrorDetail]:
    details = []
    for error in exc.errors():
        field_name = str(error["loc"][0]) if error["loc"] else BODY_FIELD
        error_type = error["type"]
        if error_type == "missing" or (
            error_type == "string_too_short" and _is_blank(error.get("input"))
        ):
            message = REQUIRED_MESSAGES.get(field_name, error["msg"])
        else:
            message = ERROR_MESSAGES.get((field_name, error_type), error["msg"])
        details.append(ValidationErrorDetail(field=field_name, message=message))
    return details


def body_error(message: str) -> ValidationResult:
    """Result for a payload that is not a JSON object at all."""
    return ValidationResult(
        is_valid=False,
        errors=[ValidationErrorDetail(field=BODY_FIELD, message=message)],
    )


def validate_contact_form(data: Any) -> ValidationResult:
    """
    Validate an untrusted payload and sanitize the accepted values.

    Every field is checked; all failures are returned together, in field
    order. The SanitizedSubmission is only built once every constraint holds,
    and is checked again after markup removal.
    """
    if not isinstance(data, dict):
        return body_error("Request body must be a JSON object")

    try:
        request = ContactFormRequest.model_validate(data)
    except ValidationError as exc:
        return ValidationResult(is_valid=False, errors=_to_details(exc))

    try:
        sanitized = SanitizedSubmission(
            name=sanitize_text(request.name),
            email=sanitize_text(request.email),
            subject=sanitize_text(request.subject) if request.subject else None,
            message=sanitize_text(request.message),
        )
    except ValidationError as exc:
        logger.info("Submission rejected after sanitization")
        return ValidationResult(is_valid=False, errors=_to_details(exc))

    return ValidationResult(is_valid=True, sanitized_data=sanitized)
