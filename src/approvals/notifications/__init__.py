"""Owner and client email notifications: templates, transports, and dispatcher."""

from approvals.notifications.dispatcher import NotificationDispatcher
from approvals.notifications.models import OutboundEmail
from approvals.notifications.templates import (
    format_amount,
    render_approval_confirmed,
    render_approval_link,
    render_approval_rejected,
)
from approvals.notifications.transport import LogTransport, MailTransport, SmtpTransport

__all__ = [
    "LogTransport",
    "MailTransport",
    "NotificationDispatcher",
    "OutboundEmail",
    "SmtpTransport",
    "format_amount",
    "render_approval_confirmed",
    "render_approval_link",
    "render_approval_rejected",
]
