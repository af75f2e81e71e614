from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mail_relay.config.settings import SERVICE_NAME, SERVICE_VERSION, Settings, get_settings
from mail_relay.infrastructure.email.factory import create_email_service
from mail_relay.infrastructure.email.models import EmailService
from mail_relay.interfaces.http.routers import email, meta
from mail_relay.interfaces.middleware.error_handler import register_error_handlers
from mail_relay.interfaces.middleware.request_middleware import (
    BodySizeLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)

logger = logging.getLogger(__name__)


def _log_startup(settings: Settings) -> None:
    email_base = f"http://localhost:{settings.port}{settings.api_prefix}/email"
    logger.info("%s %s started", SERVICE_NAME, SERVICE_VERSION)
    logger.info(
        "Listening on %s:%s (environment: %s)", settings.host, settings.port, settings.environment
    )
    logger.info("API documentation: http://localhost:%s/docs", settings.port)
    logger.info("Send email: POST %s/send", email_base)
    logger.info("Email provider: %s", settings.email_provider)
    logger.info("Email host: %s:%s", settings.email_host or "Not configured", settings.email_port)
    logger.info("Email user: %s", settings.email_user or "Not configured")


@asynccontextmanager
async def lifespan(app: FastAPI):
    _log_startup(app.state.settings)
    email_service: EmailService = app.state.email_service
    task = email_service.schedule_verification()
    try:
        yield
    finally:
        if task is not None and not task.done():
            task.cancel()


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    root = logging.getLogger()
    # Avoid adding duplicate handlers on reload
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)


def create_app(
    *,
    settings: Settings | None = None,
    email_service: EmailService | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    _configure_logging(settings.log_level)
    app = FastAPI(
        title=SERVICE_NAME,
        version=SERVICE_VERSION,
        description="Relays JSON email requests to an SMTP provider",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.email_service = email_service or create_email_service(settings)
    register_error_handlers(app)

    api = APIRouter(prefix=settings.api_prefix)
    api.include_router(email.router)
    app.include_router(api)
    app.include_router(meta.router)

    # Added innermost first; CORS last so it runs outermost and answers preflight
    app.add_middleware(SecurityHeadersMiddleware, settings=settings)
    app.add_middleware(BodySizeLimitMiddleware, settings=settings)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    return app
