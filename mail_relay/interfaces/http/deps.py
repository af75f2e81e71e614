from __future__ import annotations

from fastapi import Depends, Request

from mail_relay.application.use_cases.email.send_email import SendEmailUseCase
from mail_relay.config.settings import Settings, get_settings
from mail_relay.infrastructure.email.models import EmailService


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_email_service(request: Request) -> EmailService:
    service = getattr(request.app.state, "email_service", None)
    if service is None:
        raise RuntimeError("Email service not configured")
    return service


def get_send_email_use_case(
    email_service: EmailService = Depends(get_email_service),
) -> SendEmailUseCase:
    return SendEmailUseCase(email_service)
