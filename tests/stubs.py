from __future__ import annotations

from mail_relay.application.errors import TransportError
from mail_relay.domain.models.email_message import EmailMessage
from mail_relay.infrastructure.email.models import EmailService, SendReceipt


class StubEmailService(EmailService):
    def __init__(self, *, fail_send: bool = False, verify_ok: bool = True) -> None:
        self.fail_send = fail_send
        self.verify_ok = verify_ok
        self.send_calls = 0
        self.verify_calls = 0
        self.sent: list[EmailMessage] = []
        self.last_error = None
        self._verification_task = None

    async def send(self, message: EmailMessage) -> SendReceipt:
        self.send_calls += 1
        if self.fail_send:
            raise TransportError("Email sending failed: Connection refused")
        self.sent.append(message)
        return SendReceipt(
            message_id=f"<stub-{self.send_calls}@example.com>",
            response="250 OK",
            accepted=list(message.to or []),
        )

    async def verify(self) -> bool:
        self.verify_calls += 1
        if not self.verify_ok:
            self.last_error = "Connection refused"
        return self.verify_ok


class ExplodingEmailService(StubEmailService):
    async def send(self, message: EmailMessage) -> SendReceipt:
        self.send_calls += 1
        raise RuntimeError("boom")
