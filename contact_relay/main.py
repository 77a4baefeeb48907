import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from contact_relay.api.routes import health
from contact_relay.api.v1 import contact
from contact_relay.core.config import Settings, settings as default_settings
from contact_relay.core.errors import register_exception_handlers
from contact_relay.core.logging import setup_logging
from contact_relay.core.middleware import AllowListCORSMiddleware, RequestIdMiddleware
from contact_relay.core.rate_limiter import (
    RateLimiter,
    build_rate_limiter,
    parse_trusted_networks,
)
from contact_relay.core.secrets import build_secret_provider
from contact_relay.core.security_headers import SecurityHeadersMiddleware
from contact_relay.services.email_service import MailSender, SmtpMailSender

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


tags_metadata = [
    {
        "name": "contact",
        "description": "**Contact** - Public contact form relayed to the site owner by email.",
    },
    {
        "name": "health",
        "description": "**Health** - Liveness and readiness probes.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    config = app.state.settings
    logger.info("Starting %s v%s", config.PROJECT_NAME, config.VERSION)
    logger.info("Environment: %s", config.ENVIRONMENT)
    logger.info("Allowed origins: %s", ", ".join(config.ALLOWED_ORIGINS))

    yield

    logger.info("Shutting down...")


def create_app(
    config: Optional[Settings] = None,
    rate_limiter: Optional[RateLimiter] = None,
    mail_sender: Optional[MailSender] = None,
) -> FastAPI:
    """Build the application with explicit collaborators.

    Anything not passed in is built from ``config``: a rate limiter on the
    configured backend and an SMTP sender reading credentials through the
    configured secret provider.
    """
    config = config or default_settings

    app = FastAPI(
        title=config.PROJECT_NAME,
        version=config.VERSION,
        description="Validates contact form submissions and relays them by email.",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
        docs_url="/docs" if config.DEBUG else None,
        redoc_url=None,
    )

    app.state.settings = config
    app.state.rate_limiter = rate_limiter or build_rate_limiter(config)
    app.state.mail_sender = mail_sender or SmtpMailSender(
        config, build_secret_provider(config)
    )
    app.state.trusted_networks = parse_trusted_networks(config.TRUSTED_PROXIES)

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        AllowListCORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_methods=config.ALLOWED_METHODS,
        allow_headers=config.ALLOWED_HEADERS,
        max_age=config.CORS_MAX_AGE,
    )
    # Outermost, so every log line below carries the correlation id
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(contact.router, prefix=config.API_PREFIX, tags=["contact"])
    app.include_router(health.router, prefix="/health", tags=["health"])

    return app


app = create_app()
