from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
import smtplib
import ssl
from email import encoders
from email.header import Header
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid, parseaddr
from typing import Any

from mail_relay.application.errors import TransportError
from mail_relay.domain.models.email_message import Attachment, EmailMessage
from mail_relay.domain.value_objects.email_address import join_addresses
from mail_relay.infrastructure.email.models import EmailService, SendReceipt

logger = logging.getLogger(__name__)

NOT_INITIALIZED = "Email transporter not initialized"


def build_mail_options(message: EmailMessage, default_from: str | None) -> dict[str, Any]:
    """Translate a message into the flat option set handed to the transport.

    ``cc``, ``bcc`` and ``attachments`` are only present when non-empty.
    """
    options: dict[str, Any] = {
        "from": message.from_email or default_from,
        "to": join_addresses(message.to or []),
        "subject": message.subject,
        "text": message.text,
        "html": message.html,
    }
    if message.cc:
        options["cc"] = join_addresses(message.cc)
    if message.bcc:
        options["bcc"] = join_addresses(message.bcc)
    if message.attachments:
        options["attachments"] = list(message.attachments)
    return options


def _attachment_bytes(attachment: Attachment) -> bytes:
    content = attachment.content
    if isinstance(content, bytes):
        return content
    encoding = (attachment.encoding or "utf-8").lower()
    if encoding == "base64":
        return base64.b64decode(content)
    if encoding == "hex":
        return bytes.fromhex(content)
    return content.encode(encoding)


def _attachment_part(attachment: Attachment) -> MIMEBase:
    content_type = (
        attachment.content_type
        or mimetypes.guess_type(attachment.filename)[0]
        or "application/octet-stream"
    )
    maintype, _, subtype = content_type.partition("/")
    part = MIMEBase(maintype, subtype or "octet-stream")
    part.set_payload(_attachment_bytes(attachment))
    encoders.encode_base64(part)
    part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
    return part


def _header_value(value: str) -> str | Header:
    # Non-ASCII subjects need RFC 2047 encoding
    return value if value.isascii() else Header(value, "utf-8")


def _build_mime(options: dict[str, Any], message_id: str) -> MIMEBase:
    text, html = options.get("text"), options.get("html")
    if text and html:
        body: MIMEBase = MIMEMultipart("alternative")
        body.attach(MIMEText(text, "plain", "utf-8"))
        body.attach(MIMEText(html, "html", "utf-8"))
    elif html:
        body = MIMEText(html, "html", "utf-8")
    else:
        body = MIMEText(text or "", "plain", "utf-8")

    attachments = options.get("attachments") or []
    if attachments:
        root: MIMEBase = MIMEMultipart("mixed")
        root.attach(body)
        for attachment in attachments:
            root.attach(_attachment_part(attachment))
    else:
        root = body

    root["Subject"] = _header_value(options["subject"])
    if options.get("from"):
        root["From"] = options["from"]
    root["To"] = options["to"]
    # Bcc is envelope-only and never written as a header
    if options.get("cc"):
        root["Cc"] = options["cc"]
    root["Message-ID"] = message_id
    root["Date"] = formatdate(usegmt=True)
    return root


class SMTPEmailService(EmailService):
    def __init__(
        self,
        *,
        host: str | None,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        secure: bool = False,
        tls_verify: bool = True,
        send_timeout: float = 30.0,
        verify_on_start: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.secure = secure
        self.tls_verify = tls_verify
        self.send_timeout = send_timeout
        self.last_error = None
        self._verification_task = None
        if verify_on_start:
            self.schedule_verification()

    @property
    def initialized(self) -> bool:
        return bool(self.host)

    @property
    def default_from(self) -> str | None:
        return self.username

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self.tls_verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def _connect(self) -> smtplib.SMTP:
        context = self._ssl_context()
        if self.secure:
            server: smtplib.SMTP = smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.send_timeout, context=context
            )
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.send_timeout)
        try:
            server.ehlo()
            if not self.secure and server.has_extn("starttls"):
                server.starttls(context=context)
                server.ehlo()
            if self.username and self.password:
                server.login(self.username, self.password)
        except BaseException:
            server.close()
            raise
        return server

    async def send(self, message: EmailMessage) -> SendReceipt:
        if not self.initialized:
            raise TransportError(f"Email sending failed: {NOT_INITIALIZED}")

        options = build_mail_options(message, self.default_from)
        sender = parseaddr(options["from"] or "")[1]
        domain = sender.rpartition("@")[2] or self.host
        message_id = make_msgid(domain=domain)
        mime = _build_mime(options, message_id)
        payload = mime.as_bytes(policy=mime.policy.clone(linesep="\r\n"))
        recipients = [*(message.to or []), *(message.cc or []), *(message.bcc or [])]

        def _send_sync() -> SendReceipt:
            with self._connect() as server:
                code, resp = server.mail(sender)
                if code != 250:
                    server.rset()
                    raise smtplib.SMTPSenderRefused(code, resp, sender)
                accepted: list[str] = []
                refused: dict[str, tuple[int, bytes]] = {}
                for rcpt in recipients:
                    code, resp = server.rcpt(rcpt)
                    if code in (250, 251):
                        accepted.append(rcpt)
                    else:
                        refused[rcpt] = (code, resp)
                if not accepted:
                    server.rset()
                    raise smtplib.SMTPRecipientsRefused(refused)
                code, resp = server.data(payload)
                if code != 250:
                    server.rset()
                    raise smtplib.SMTPDataError(code, resp)
                return SendReceipt(
                    message_id=message_id,
                    response=f"{code} {resp.decode('utf-8', 'replace')}",
                    accepted=accepted,
                    rejected=list(refused),
                )

        try:
            receipt = await asyncio.wait_for(asyncio.to_thread(_send_sync), self.send_timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Failed to send email: timed out after %ss", self.send_timeout)
            raise TransportError(
                f"Email sending failed: timed out after {self.send_timeout}s"
            ) from exc
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email: %s", exc)
            raise TransportError(f"Email sending failed: {exc}") from exc

        if receipt.rejected:
            logger.warning("SMTP server rejected recipients: %s", ",".join(receipt.rejected))
        logger.info(
            "Email sent: message_id=%s accepted=%d", receipt.message_id, len(receipt.accepted)
        )
        return receipt

    async def verify(self) -> bool:
        if not self.initialized:
            self.last_error = NOT_INITIALIZED
            return False

        def _verify_sync() -> None:
            with self._connect() as server:
                server.noop()

        try:
            await asyncio.wait_for(asyncio.to_thread(_verify_sync), self.send_timeout)
        except asyncio.TimeoutError:
            self.last_error = f"timed out after {self.send_timeout}s"
            return False
        except Exception as exc:
            self.last_error = str(exc) or exc.__class__.__name__
            logger.warning("SMTP verification against %s:%s failed", self.host, self.port)
            return False
        self.last_error = None
        return True
