from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from mail_relay.application.errors import (
    AppError,
    InfrastructureError,
    TransportError,
    ValidationError,
)
from mail_relay.domain.models.email_message import EmailMessage
from mail_relay.infrastructure.email.models import EmailService

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Email sent successfully"
FAILURE_MESSAGE = "Failed to send email"


class FailureKind(str, enum.Enum):
    VALIDATION = "validation"
    TRANSPORT = "transport"
    UNEXPECTED = "unexpected"


_FAILURE_ERRORS: dict[FailureKind, type[AppError]] = {
    FailureKind.VALIDATION: ValidationError,
    FailureKind.TRANSPORT: TransportError,
    FailureKind.UNEXPECTED: InfrastructureError,
}


@dataclass(frozen=True, slots=True)
class SentEmail:
    message_id: str
    to: list[str]
    subject: str
    sent_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "messageId": self.message_id,
            "to": self.to,
            "subject": self.subject,
            "sentAt": self.sent_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class SendResult:
    success: bool
    message: str
    data: SentEmail | None = None
    error: str | None = None
    failure: FailureKind | None = None

    @classmethod
    def ok(cls, data: SentEmail) -> SendResult:
        return cls(success=True, message=SUCCESS_MESSAGE, data=data)

    @classmethod
    def failed(cls, failure: FailureKind, error: str) -> SendResult:
        return cls(success=False, message=FAILURE_MESSAGE, error=error, failure=failure)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data.to_dict()
        if self.error is not None:
            payload["error"] = self.error
        return payload

    def to_error(self) -> AppError:
        if self.success or self.failure is None:
            raise ValueError("Successful results have no error")
        return _FAILURE_ERRORS[self.failure](self.error or self.message)


class SendEmailUseCase:
    def __init__(self, email_service: EmailService) -> None:
        self.email_service = email_service

    async def execute(self, raw_fields: Mapping[str, Any]) -> SendResult:
        try:
            message = EmailMessage.create(raw_fields)
            report = message.validate()
            if not report.is_valid:
                error = "Validation failed: " + ", ".join(report.errors)
                logger.info("Email rejected: %s", error)
                return SendResult.failed(FailureKind.VALIDATION, error)

            receipt = await self.email_service.send(message)
            return SendResult.ok(
                SentEmail(
                    message_id=receipt.message_id,
                    to=list(message.to or []),
                    subject=message.subject or "",
                    sent_at=datetime.now(timezone.utc),
                )
            )
        except TransportError as exc:
            return SendResult.failed(FailureKind.TRANSPORT, exc.message)
        except Exception as exc:
            logger.exception("Unexpected error while sending email")
            return SendResult.failed(FailureKind.UNEXPECTED, str(exc) or exc.__class__.__name__)
