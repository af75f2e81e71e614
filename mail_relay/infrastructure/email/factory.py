from __future__ import annotations

from mail_relay.config.settings import Settings
from mail_relay.infrastructure.email.models import EmailService
from mail_relay.infrastructure.email.providers.logging_provider import LoggingEmailService
from mail_relay.infrastructure.email.providers.smtp_provider import SMTPEmailService


def create_email_service(settings: Settings, *, verify_on_start: bool = True) -> EmailService:
    if settings.email_provider == "logging":
        return LoggingEmailService(default_from=settings.email_user)
    return SMTPEmailService(
        host=settings.email_host,
        port=settings.email_port,
        username=settings.email_user,
        password=settings.email_password,
        secure=settings.email_secure,
        tls_verify=settings.email_tls_verify,
        send_timeout=settings.email_send_timeout,
        verify_on_start=verify_on_start,
    )
