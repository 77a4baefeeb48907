import pytest
from pydantic import ValidationError

from contact_relay.core.config import LOCAL_ORIGINS, Settings


def test_defaults():
    config = Settings(_env_file=None)

    assert config.SMTP_HOST == "mail.proton.me"
    assert config.SMTP_PORT == 587
    assert config.ALLOWED_METHODS == ["POST", "OPTIONS"]
    assert config.ALLOWED_HEADERS == ["Content-Type", "Authorization", "X-Requested-With"]
    assert config.CORS_MAX_AGE == 86400


def test_local_environment_defaults_to_dev_origins():
    config = Settings(_env_file=None, ENVIRONMENT="local")
    assert config.ALLOWED_ORIGINS == LOCAL_ORIGINS


def test_comma_separated_origins_from_env(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example ,")

    config = Settings(_env_file=None)

    assert config.ALLOWED_ORIGINS == ["https://a.example", "https://b.example"]


def test_comma_separated_trusted_proxies(monkeypatch):
    monkeypatch.setenv("TRUSTED_PROXIES", "10.0.0.0/8,127.0.0.1")

    config = Settings(_env_file=None)

    assert config.TRUSTED_PROXIES == ["10.0.0.0/8", "127.0.0.1"]


def test_production_requires_origins(monkeypatch):
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)

    with pytest.raises(ValidationError):
        Settings(_env_file=None, ENVIRONMENT="production")


def test_production_with_origins():
    config = Settings(
        _env_file=None,
        ENVIRONMENT="production",
        ALLOWED_ORIGINS="https://yourdomain.com,https://www.yourdomain.com",
    )
    assert config.ALLOWED_ORIGINS == ["https://yourdomain.com", "https://www.yourdomain.com"]


def test_smtp_password_is_secret():
    config = Settings(_env_file=None, EMAIL_SMTP_PASSWORD="hunter2")

    assert "hunter2" not in repr(config)
    assert config.EMAIL_SMTP_PASSWORD.get_secret_value() == "hunter2"
