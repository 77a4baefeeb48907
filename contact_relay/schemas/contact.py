from __future__ import annotations

import html
from typing import Annotated, Dict, Optional, Tuple

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, StringConstraints, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

NAME_PATTERN = r"^[a-zA-Z\s'.-]+$"

# (min, max) visible characters per field after sanitization
FIELD_LENGTHS: Dict[str, Tuple[int, int]] = {
    "name": (1, 100),
    "email": (1, 254),
    "subject": (0, 200),
    "message": (10, 5000),
}

Name = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=100, pattern=NAME_PATTERN),
]
Subject = Annotated[str, StringConstraints(strip_whitespace=True, max_length=200)]
Message = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=10, max_length=5000)
]


class ContactFormRequest(BaseModel):
    """Untrusted submission as posted by the browser. Unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")

    name: Name
    email: Annotated[str, StringConstraints(min_length=1, max_length=254)]
    subject: Optional[Subject] = None
    message: Message

    @field_validator("email")
    @classmethod
    def check_email_syntax(cls, value: str) -> str:
        try:
            result = validate_email(value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValueError(str(exc)) from exc
        return result.normalized


class SanitizedSubmission(BaseModel):
    """Validated, markup-free projection of a ContactFormRequest. Never mutated.

    Values are HTML-escaped, so lengths are measured on the unescaped text:
    ``&`` stored as ``&amp;`` still counts as one character.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    subject: Optional[str] = None
    message: str

    @field_validator("name", "email", "subject", "message")
    @classmethod
    def check_visible_length(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if value is None:
            return value
        min_length, max_length = FIELD_LENGTHS[info.field_name]
        length = len(html.unescape(value))
        if length < min_length:
            raise PydanticCustomError(
                "string_too_short",
                "String should have at least {min_length} characters",
                {"min_length": min_length},
            )
        if length > max_length:
            raise PydanticCustomError(
                "string_too_long",
                "String should have at most {max_length} characters",
                {"max_length": max_length},
            )
        return value

    @property
    def spam_check_text(self) -> str:
        return f"{self.name} {self.subject or ''} {self.message}"


class ContactFormResponse(BaseModel):
    success: bool = True
    message: str
    id: str
