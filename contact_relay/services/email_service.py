from __future__ import annotations

import asyncio
import html
import logging
import os
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Dict, Optional, Protocol

import jinja2

from contact_relay.core.config import Settings
from contact_relay.core.email import send_email, verify_connection
from contact_relay.core.errors import EmailDeliveryError
from contact_relay.core.secrets import EmailCredentials, SecretProvider, load_email_credentials
from contact_relay.schemas.contact import SanitizedSubmission

logger = logging.getLogger(__name__)

# contact_relay/services/email_service.py -> contact_relay/templates/emails
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TEMPLATE_DIR = os.path.join(BASE_DIR, "templates", "emails")

template_env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(searchpath=TEMPLATE_DIR),
    autoescape=True,
)

DEFAULT_SUBJECT = "New Contact Form Submission"


class MailSender(Protocol):
    async def send(self, submission: SanitizedSubmission, correlation_id: str) -> None:
        """Deliver the submission; raise EmailDeliveryError on any failure."""
        ...


def _plain(value: Optional[str]) -> str:
    # Sanitized fields are HTML-escaped; templates and headers want the raw text
    return html.unescape(value) if value else ""


def build_template_context(
    submission: SanitizedSubmission, correlation_id: str, sent_at: datetime
) -> Dict[str, Any]:
    return {
        "name": _plain(submission.name),
        "email": _plain(submission.email),
        "subject": _plain(submission.subject),
        "message": _plain(submission.message),
        "request_id": correlation_id,
        "timestamp": sent_at.isoformat(),
    }


def render_text_body(context: Dict[str, Any]) -> str:
    lines = [
        "Contact Form Submission",
        "",
        f"Name: {context['name']}",
        f"Email: {context['email']}",
    ]
    if context["subject"]:
        lines.append(f"Subject: {context['subject']}")
    lines += [
        "",
        "Message:",
        context["message"],
        "",
        "---",
        f"Request ID: {context['request_id']}",
        f"Timestamp: {context['timestamp']}",
        "",
        "This message was sent via your website's contact form.",
    ]
    return "\n".join(lines)


def build_email_message(
    submission: SanitizedSubmission,
    correlation_id: str,
    credentials: EmailCredentials,
    from_name: str = "Contact Form",
    sent_at: Optional[datetime] = None,
) -> EmailMessage:
    context = build_template_context(
        submission, correlation_id, sent_at or datetime.now(timezone.utc)
    )

    subject = " ".join(context["subject"].split())
    msg = EmailMessage()
    msg["From"] = formataddr((from_name, credentials.smtp_user))
    msg["To"] = credentials.recipient
    msg["Reply-To"] = context["email"]
    msg["Subject"] = f"Contact Form: {subject}" if subject else DEFAULT_SUBJECT
    msg["X-Request-ID"] = correlation_id
    msg["X-Contact-Form"] = "true"

    msg.set_content(render_text_body(context))
    msg.add_alternative(
        template_env.get_template("contact_submission.html").render(**context),
        subtype="html",
    )
    return msg


class SmtpMailSender:
    """Relays submissions through an authenticated STARTTLS SMTP server.

    Credentials come from the secret provider on first use and are cached for
    the life of the sender.
    """

    def __init__(self, config: Settings, secret_provider: SecretProvider):
        self.config = config
        self.secret_provider = secret_provider
        self._credentials: Optional[EmailCredentials] = None

    async def _get_credentials(self) -> EmailCredentials:
        if self._credentials is None:
            self._credentials = await asyncio.to_thread(
                load_email_credentials, self.secret_provider
            )
        return self._credentials

    async def send(self, submission: SanitizedSubmission, correlation_id: str) -> None:
        try:
            credentials = await self._get_credentials()
            message = build_email_message(
                submission,
                correlation_id,
                credentials,
                from_name=self.config.EMAIL_FROM_NAME,
            )
            await send_email(
                message,
                host=self.config.SMTP_HOST,
                port=self.config.SMTP_PORT,
                username=credentials.smtp_user,
                password=credentials.smtp_password,
                timeout=self.config.SMTP_TIMEOUT,
            )
        except Exception as exc:
            logger.error(
                "Failed to send contact email id=%s error=%s",
                correlation_id,
                exc,
                extra={"event_name": "contact_email_failed", "request_id": correlation_id},
            )
            raise EmailDeliveryError("Failed to send email") from exc

        logger.info(
            "Contact email sent successfully id=%s",
            correlation_id,
            extra={"event_name": "contact_email_sent", "request_id": correlation_id},
        )

    async def verify_connection(self) -> bool:
        """Load credentials and complete an SMTP handshake; False on any failure."""
        try:
            credentials = await self._get_credentials()
            await verify_connection(
                host=self.config.SMTP_HOST,
                port=self.config.SMTP_PORT,
                username=credentials.smtp_user,
                password=credentials.smtp_password,
            )
        except Exception as exc:
            logger.error("Email configuration test failed: %s", exc)
            return False

        logger.info("SMTP connection verified successfully")
        return True
