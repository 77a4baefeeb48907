"""Tests for SMTP credential loading."""
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from google.api_core.exceptions import PermissionDenied

from contact_relay.core.errors import EmailConfigurationError
from contact_relay.core.secrets import (
    RECIPIENT_SECRET,
    SMTP_PASSWORD_SECRET,
    SMTP_USER_SECRET,
    EnvironmentSecretProvider,
    GoogleSecretManagerProvider,
    build_secret_provider,
    load_email_credentials,
)


class DictProvider:
    def __init__(self, values):
        self.values = values

    def get_secret(self, name):
        return self.values.get(name, "")


def test_environment_provider_reads_settings(test_settings):
    provider = EnvironmentSecretProvider(test_settings)

    credentials = load_email_credentials(provider)

    assert credentials.smtp_user == "relay@yourdomain.com"
    assert credentials.smtp_password == "smtp-pass"
    assert credentials.recipient == "owner@yourdomain.com"


def test_credentials_repr_hides_password(test_settings):
    credentials = load_email_credentials(EnvironmentSecretProvider(test_settings))
    assert "smtp-pass" not in repr(credentials)


@pytest.mark.parametrize("missing", [SMTP_USER_SECRET, SMTP_PASSWORD_SECRET, RECIPIENT_SECRET])
def test_missing_value_raises(missing):
    values = {
        SMTP_USER_SECRET: "relay@yourdomain.com",
        SMTP_PASSWORD_SECRET: "smtp-pass",
        RECIPIENT_SECRET: "owner@yourdomain.com",
    }
    values[missing] = ""

    with pytest.raises(EmailConfigurationError, match="Missing required email configuration"):
        load_email_credentials(DictProvider(values))


def test_secret_manager_failure_is_wrapped():
    client = MagicMock()
    client.access_secret_version.side_effect = PermissionDenied("denied")
    provider = GoogleSecretManagerProvider("my-project", client=client)

    with pytest.raises(EmailConfigurationError, match="Email configuration unavailable"):
        load_email_credentials(provider)


def test_secret_manager_reads_latest_version():
    client = MagicMock()
    client.access_secret_version.return_value = SimpleNamespace(
        payload=SimpleNamespace(data=b"relay@yourdomain.com")
    )
    provider = GoogleSecretManagerProvider("my-project", client=client)

    assert provider.get_secret(SMTP_USER_SECRET) == "relay@yourdomain.com"
    client.access_secret_version.assert_called_once_with(
        request={"name": "projects/my-project/secrets/email-smtp-user/versions/latest"}
    )


def test_build_secret_provider_selects_backend(test_settings):
    assert isinstance(build_secret_provider(test_settings), EnvironmentSecretProvider)

    gcp = test_settings.model_copy(update={"SECRET_MANAGER_PROJECT": "my-project"})
    provider = build_secret_provider(gcp)
    assert isinstance(provider, GoogleSecretManagerProvider)
    assert provider.project_id == "my-project"
