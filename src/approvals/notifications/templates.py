"""HTML email templates for approval notifications.

Every interpolated value is HTML-escaped, including the approval link, so
client-controlled strings cannot inject markup into the rendered email.
"""

from __future__ import annotations

from html import escape

from approvals.notifications.models import OutboundEmail
from approvals.tokens.expiration import TOKEN_TTL

APPROVAL_LINK = "approval_link"
APPROVAL_CONFIRMED = "approval_confirmed"
APPROVAL_REJECTED = "approval_rejected"

_APPROVAL_LINK_HTML = """
<h2>Deal Approval Required</h2>
<p>Hi {client_name},</p>
<p>A new deal worth {amount} is awaiting your approval.</p>
<p>
  <a href="{link}" style="display: inline-block; padding: 10px 20px; background-color: #007bff; color: white; text-decoration: none; border-radius: 4px;">
    Review &amp; Approve Deal
  </a>
</p>
<p>This link will expire in {ttl_days} days.</p>
<p>Best regards,<br>Approval Service</p>
"""

_DECISION_HTML = """
<h2>Deal {outcome_title}</h2>
<p>The following deal has been {outcome}:</p>
<ul>
  <li><strong>Client:</strong> {client_name}</li>
  <li><strong>Amount:</strong> {amount}</li>
  <li><strong>{outcome_title} at:</strong> {decided_at}</li>
</ul>
<p>{next_step}</p>
<p>Best regards,<br>Approval Service</p>
"""


def format_amount(currency: str, total: int) -> str:
    """Format a minor-unit total for display, e.g. ``EUR 10.00``."""
    return f"{currency} {total / 100:.2f}"


def render_approval_link(
    client_email: str,
    client_name: str,
    approval_link: str,
    amount: str,
) -> OutboundEmail:
    """Render the email inviting the client to review a deal."""
    html = _APPROVAL_LINK_HTML.format(
        client_name=escape(client_name),
        amount=escape(amount),
        link=escape(approval_link),
        ttl_days=TOKEN_TTL.days,
    )
    return OutboundEmail(
        to=client_email,
        subject=f"Deal Approval Required - {amount}",
        html=html,
        template=APPROVAL_LINK,
    )


def _render_decision(
    owner_email: str,
    client_name: str,
    amount: str,
    decided_at: str,
    *,
    approved: bool,
) -> OutboundEmail:
    outcome_title = "Approved" if approved else "Rejected"
    next_step = (
        "You can now proceed with invoicing."
        if approved
        else "Please contact the client for more information."
    )
    html = _DECISION_HTML.format(
        outcome_title=outcome_title,
        outcome=outcome_title.lower(),
        client_name=escape(client_name),
        amount=escape(amount),
        decided_at=escape(decided_at),
        next_step=next_step,
    )
    return OutboundEmail(
        to=owner_email,
        subject=f"Deal {outcome_title} - {client_name}",
        html=html,
        template=APPROVAL_CONFIRMED if approved else APPROVAL_REJECTED,
    )


def render_approval_confirmed(
    owner_email: str, client_name: str, amount: str, approved_at: str
) -> OutboundEmail:
    """Render the owner notification for an approved deal."""
    return _render_decision(owner_email, client_name, amount, approved_at, approved=True)


def render_approval_rejected(
    owner_email: str, client_name: str, amount: str, rejected_at: str
) -> OutboundEmail:
    """Render the owner notification for a rejected deal."""
    return _render_decision(owner_email, client_name, amount, rejected_at, approved=False)
