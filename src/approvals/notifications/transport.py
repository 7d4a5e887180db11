"""Mail transports used by the notification dispatcher.

``SmtpTransport`` delivers through an SMTP relay with aiosmtplib.
``LogTransport`` only logs the message and is used when no SMTP host is
configured, so development setups never need a mail server.
"""

from __future__ import annotations

from email.message import EmailMessage
from typing import Protocol

import aiosmtplib
import structlog

from approvals.domain.errors import DeliveryError
from approvals.notifications.models import OutboundEmail

logger = structlog.get_logger()


class MailTransport(Protocol):
    """Anything that can deliver an :class:`OutboundEmail`."""

    async def send(self, email: OutboundEmail) -> None:
        """Deliver *email* or raise."""
        ...


class LogTransport:
    """Transport that logs emails instead of sending them."""

    async def send(self, email: OutboundEmail) -> None:
        logger.info(
            "email_logged",
            to=email.to,
            subject=email.subject,
            template=email.template,
            body=email.html,
        )


class SmtpTransport:
    """Deliver emails through an SMTP relay.

    Args:
        hostname: SMTP server host.
        port: SMTP server port.
        from_email: Envelope and header sender address.
        from_name: Display name for the ``From`` header.
        username: Optional SMTP login.
        password: Optional SMTP password.
        start_tls: Upgrade the connection with STARTTLS.
        timeout: Socket timeout in seconds.
    """

    def __init__(
        self,
        hostname: str,
        port: int,
        from_email: str,
        from_name: str = "Approval Service",
        username: str | None = None,
        password: str | None = None,
        start_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._hostname = hostname
        self._port = port
        self._from = f"{from_name} <{from_email}>"
        self._username = username or None
        self._password = password or None
        self._start_tls = start_tls
        self._timeout = timeout

    def build_message(self, email: OutboundEmail) -> EmailMessage:
        """Build the MIME message for *email* with an HTML body."""
        message = EmailMessage()
        message["From"] = self._from
        message["To"] = email.to
        message["Subject"] = email.subject
        message.set_content(email.html, subtype="html")
        return message

    async def send(self, email: OutboundEmail) -> None:
        """Send *email*.

        Raises:
            DeliveryError: If the SMTP exchange fails.
        """
        message = self.build_message(email)
        try:
            await aiosmtplib.send(
                message,
                hostname=self._hostname,
                port=self._port,
                username=self._username,
                password=self._password,
                start_tls=self._start_tls,
                timeout=self._timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"SMTP delivery to {email.to} failed: {exc}") from exc
