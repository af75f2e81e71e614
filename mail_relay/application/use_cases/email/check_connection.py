from __future__ import annotations

from dataclasses import dataclass

from mail_relay.infrastructure.email.models import EmailService


@dataclass(frozen=True, slots=True)
class ConnectionCheck:
    success: bool
    message: str


async def execute(email_service: EmailService, *, include_detail: bool = False) -> ConnectionCheck:
    if await email_service.verify():
        return ConnectionCheck(success=True, message="Email service connection is working")
    message = "Email service connection failed"
    if include_detail and email_service.last_error:
        message = f"{message}: {email_service.last_error}"
    return ConnectionCheck(success=False, message=message)
