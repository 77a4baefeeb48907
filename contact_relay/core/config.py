from typing import Annotated, List, Optional

from pydantic import Field, SecretStr, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

LOCAL_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


class Settings(BaseSettings):
    PROJECT_NAME: str = "Contact Form Relay"
    VERSION: str = "1.0.0"
    API_PREFIX: str = ""

    # --- Environment & Debug ---
    ENVIRONMENT: str = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # --- CORS ---
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        validate_default=True,
        description="Origins that receive CORS headers. Comma-separated in .env",
    )
    ALLOWED_METHODS: List[str] = Field(default_factory=lambda: ["POST", "OPTIONS"])
    ALLOWED_HEADERS: List[str] = Field(
        default_factory=lambda: ["Content-Type", "Authorization", "X-Requested-With"]
    )
    CORS_MAX_AGE: int = 86400

    # --- Rate Limiting / Proxy ---
    TRUSTED_PROXIES: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["127.0.0.1", "10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16"],
        description="CIDR ranges of trusted reverse proxies for X-Forwarded-For",
    )
    RATE_LIMIT_REDIS_URL: Optional[str] = None

    # --- Secrets ---
    SECRET_MANAGER_PROJECT: Optional[str] = None

    # --- SMTP relay ---
    SMTP_HOST: str = "mail.proton.me"
    SMTP_PORT: int = 587
    SMTP_TIMEOUT: float = 30.0
    EMAIL_FROM_NAME: str = "Contact Form"

    # Fallback credentials when no secret manager is configured
    EMAIL_SMTP_USER: Optional[str] = None
    EMAIL_SMTP_PASSWORD: Optional[SecretStr] = None
    RECIPIENT_EMAIL_ADDRESS: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )

    @field_validator("ALLOWED_ORIGINS", "TRUSTED_PROXIES", mode="before")
    @classmethod
    def split_comma_separated(cls, v):
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("ALLOWED_ORIGINS", mode="after")
    @classmethod
    def default_allowed_origins(cls, v: List[str], info: ValidationInfo) -> List[str]:
        env = info.data.get("ENVIRONMENT") or "local"
        if env != "production" and not v:
            return list(LOCAL_ORIGINS)
        return v

    @model_validator(mode="after")
    def validate_production_origins(self):
        """Refuse to start in production without an explicit origin allow-list."""
        if self.ENVIRONMENT == "production" and not self.ALLOWED_ORIGINS:
            raise ValueError("ALLOWED_ORIGINS must be set for production deployments")
        return self


settings = Settings()
