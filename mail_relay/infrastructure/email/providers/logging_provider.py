from __future__ import annotations

import logging
from email.utils import make_msgid

from mail_relay.domain.models.email_message import EmailMessage
from mail_relay.infrastructure.email.models import EmailService, SendReceipt

logger = logging.getLogger(__name__)


class LoggingEmailService(EmailService):
    """Development transport: logs the message instead of delivering it."""

    def __init__(self, *, default_from: str | None = None) -> None:
        self.default_from = default_from
        self.last_error = None
        self._verification_task = None

    async def send(self, message: EmailMessage) -> SendReceipt:
        recipients = [*(message.to or []), *(message.cc or []), *(message.bcc or [])]
        logger.info(
            "Sending email (logging provider): subject=%s "
            "to=%s cc=%s bcc=%s from=%s text_len=%s html_len=%s attachments=%s",
            message.subject,
            ",".join(message.to or []),
            ",".join(message.cc or []),
            ",".join(message.bcc or []),
            message.from_email or self.default_from or "",
            len(message.text or ""),
            len(message.html or ""),
            len(message.attachments or ()),
        )
        return SendReceipt(
            message_id=make_msgid(domain="localhost"),
            response="250 Message logged",
            accepted=recipients,
        )

    async def verify(self) -> bool:
        return True
