from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from mail_relay.domain.models.email_message import EmailMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SendReceipt:
    message_id: str
    response: str | None = None
    accepted: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)


class EmailService:
    """Transport client contract.

    ``send`` raises :class:`TransportError` on failure; ``verify`` never raises
    and keeps the last failure text on ``last_error``.
    """

    last_error: str | None = None
    _verification_task: asyncio.Task | None = None

    async def send(self, message: EmailMessage) -> SendReceipt:  # pragma: no cover - interface
        raise NotImplementedError

    async def verify(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def schedule_verification(self) -> asyncio.Task | None:
        """Verify the connection in the background; the outcome is only logged."""
        if self._verification_task is not None and not self._verification_task.done():
            return self._verification_task
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; connection verification deferred")
            return None
        self._verification_task = loop.create_task(self._verify_and_log())
        return self._verification_task

    async def _verify_and_log(self) -> bool:
        ok = await self.verify()
        if ok:
            logger.info("Email transporter is ready to send messages")
        else:
            logger.warning("Email transporter verification failed: %s", self.last_error)
        return ok
