"""
Secret provider for SMTP credentials.

Reads the relay username, password and recipient address from Google Secret
Manager through Application Default Credentials. When no project is
configured the same three values are read from process configuration.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import DefaultCredentialsError
from google.cloud import secretmanager

from contact_relay.core.config import Settings
from contact_relay.core.errors import EmailConfigurationError

logger = logging.getLogger(__name__)

SMTP_USER_SECRET = "email-smtp-user"
SMTP_PASSWORD_SECRET = "email-smtp-password"
RECIPIENT_SECRET = "recipient-email-address"


@dataclass(frozen=True)
class EmailCredentials:
    """SMTP login plus the mailbox that receives contact submissions."""
    smtp_user: str
    smtp_password: str
    recipient: str

    def __repr__(self) -> str:
        return f"EmailCredentials(smtp_user={self.smtp_user!r}, recipient={self.recipient!r})"


class SecretProvider(Protocol):
    def get_secret(self, name: str) -> str:
        ...


class GoogleSecretManagerProvider:
    """Reads the latest version of each secret from one GCP project."""

    def __init__(self, project_id: str, client: Optional[secretmanager.SecretManagerServiceClient] = None):
        self.project_id = project_id
        self._client = client

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def get_secret(self, name: str) -> str:
        path = f"projects/{self.project_id}/secrets/{name}/versions/latest"
        response = self.client.access_secret_version(request={"name": path})
        return response.payload.data.decode("utf-8")


class EnvironmentSecretProvider:
    """Fallback provider backed by Settings (environment variables / .env)."""

    def __init__(self, config: Settings):
        password = config.EMAIL_SMTP_PASSWORD
        self._values = {
            SMTP_USER_SECRET: config.EMAIL_SMTP_USER or "",
            SMTP_PASSWORD_SECRET: password.get_secret_value() if password else "",
            RECIPIENT_SECRET: config.RECIPIENT_EMAIL_ADDRESS or "",
        }

    def get_secret(self, name: str) -> str:
        return self._values.get(name, "")


def build_secret_provider(config: Settings) -> SecretProvider:
    if config.SECRET_MANAGER_PROJECT:
        logger.info("Secret provider: Google Secret Manager")
        return GoogleSecretManagerProvider(config.SECRET_MANAGER_PROJECT)

    logger.warning(
        "SECRET_MANAGER_PROJECT not configured, using environment variables for email config"
    )
    return EnvironmentSecretProvider(config)


def load_email_credentials(provider: SecretProvider) -> EmailCredentials:
    """Fetch the three SMTP values; raise EmailConfigurationError if any is unavailable."""
    try:
        credentials = EmailCredentials(
            smtp_user=provider.get_secret(SMTP_USER_SECRET),
            smtp_password=provider.get_secret(SMTP_PASSWORD_SECRET),
            recipient=provider.get_secret(RECIPIENT_SECRET),
        )
    except (GoogleAPIError, DefaultCredentialsError) as exc:
        logger.error("Failed to load email configuration: %s", exc)
        raise EmailConfigurationError("Email configuration unavailable") from exc

    if not (credentials.smtp_user and credentials.smtp_password and credentials.recipient):
        raise EmailConfigurationError("Missing required email configuration")

    logger.info("Email configuration loaded via %s", type(provider).__name__)
    return credentials
