from typing import Generator, List, Tuple

import pytest
from fastapi.testclient import TestClient

from contact_relay.core.config import Settings
from contact_relay.core.errors import EmailDeliveryError
from contact_relay.core.rate_limiter import RateLimiter
from contact_relay.main import create_app
from contact_relay.schemas.contact import SanitizedSubmission

ALLOWED_ORIGIN = "https://yourdomain.com"
MALICIOUS_ORIGIN = "https://malicious-site.com"

VALID_PAYLOAD = {
    "name": "John Doe",
    "email": "john@example.com",
    "subject": "Test Subject",
    "message": "This is a test message.",
}


# -----------------------------------------------------------------------------
# Collaborator fakes
# -----------------------------------------------------------------------------


class RecordingMailSender:
    """MailSender that records every call instead of talking to SMTP."""

    __test__ = False

    def __init__(self, error: Exception = None):
        self.calls: List[Tuple[SanitizedSubmission, str]] = []
        self.error = error

    async def send(self, submission: SanitizedSubmission, correlation_id: str) -> None:
        self.calls.append((submission, correlation_id))
        if self.error is not None:
            raise self.error

    async def verify_connection(self) -> bool:
        return self.error is None


class FakeClock:
    """Manually advanced time source for rate limiter tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# -----------------------------------------------------------------------------
# App Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        ALLOWED_ORIGINS=[ALLOWED_ORIGIN],
        EMAIL_SMTP_USER="relay@yourdomain.com",
        EMAIL_SMTP_PASSWORD="smtp-pass",
        RECIPIENT_EMAIL_ADDRESS="owner@yourdomain.com",
    )


@pytest.fixture()
def rate_limiter() -> RateLimiter:
    """Fresh limiter per test so counts never leak between cases."""
    return RateLimiter()


@pytest.fixture()
def mail_sender() -> RecordingMailSender:
    return RecordingMailSender()


@pytest.fixture()
def client(test_settings, rate_limiter, mail_sender) -> Generator[TestClient, None, None]:
    app = create_app(test_settings, rate_limiter=rate_limiter, mail_sender=mail_sender)
    # Using 'with' context manager to trigger lifespan events (startup/shutdown)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def failing_mail_sender() -> RecordingMailSender:
    return RecordingMailSender(error=EmailDeliveryError("Email service error"))


@pytest.fixture()
def failing_client(
    test_settings, rate_limiter, failing_mail_sender
) -> Generator[TestClient, None, None]:
    app = create_app(
        test_settings, rate_limiter=rate_limiter, mail_sender=failing_mail_sender
    )
    with TestClient(app) as c:
        yield c
