"""Outbound mail delivery."""

import asyncio
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage

import structlog

from supportdesk.core.exceptions import EmailDeliveryError

logger = structlog.get_logger()


class EmailTransport(ABC):
    """Delivers fully built messages."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> str:
        """Deliver ``message`` and return its Message-ID."""
        ...


class SMTPTransport(EmailTransport):
    """Sends through an SMTP relay, upgrading to TLS when configured.

    smtplib is blocking, so each delivery runs in a worker thread.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    async def send(self, message: EmailMessage) -> str:
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery failed", host=self.host, to=message["To"], error=str(e))
            raise EmailDeliveryError(f"Failed to send email: {e}") from e

        logger.info("Email delivered", host=self.host, message_id=message["Message-ID"])
        return message["Message-ID"]

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(message)
