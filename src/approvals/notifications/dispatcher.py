"""Best-effort dispatch of approval notification emails.

Every send method returns ``True`` on success and ``False`` on any failure.
Failures are logged and never propagate: a notification that cannot be
delivered must not abort the workflow step that triggered it.
"""

from __future__ import annotations

import structlog

from approvals.notifications.models import OutboundEmail
from approvals.notifications.templates import (
    render_approval_confirmed,
    render_approval_link,
    render_approval_rejected,
)
from approvals.notifications.transport import MailTransport
from approvals.observability.metrics import EMAILS_SENT

logger = structlog.get_logger()


class NotificationDispatcher:
    """Render and send the three approval notification emails.

    Args:
        transport: The mail transport used for delivery.
    """

    def __init__(self, transport: MailTransport) -> None:
        self._transport = transport

    async def send_approval_link(
        self,
        client_email: str,
        client_name: str,
        approval_link: str,
        amount: str,
    ) -> bool:
        """Send the approval link to the client."""
        email = render_approval_link(client_email, client_name, approval_link, amount)
        return await self._deliver(email)

    async def send_approval_confirmed(
        self,
        owner_email: str,
        client_name: str,
        amount: str,
        approved_at: str,
    ) -> bool:
        """Tell the deal owner the deal was approved."""
        email = render_approval_confirmed(owner_email, client_name, amount, approved_at)
        return await self._deliver(email)

    async def send_approval_rejected(
        self,
        owner_email: str,
        client_name: str,
        amount: str,
        rejected_at: str,
    ) -> bool:
        """Tell the deal owner the deal was rejected."""
        email = render_approval_rejected(owner_email, client_name, amount, rejected_at)
        return await self._deliver(email)

    async def _deliver(self, email: OutboundEmail) -> bool:
        try:
            await self._transport.send(email)
        except Exception:
            logger.exception("email_send_failed", to=email.to, template=email.template)
            EMAILS_SENT.labels(template=email.template, outcome="failed").inc()
            return False

        logger.info("email_sent", to=email.to, template=email.template)
        EMAILS_SENT.labels(template=email.template, outcome="sent").inc()
        return True
