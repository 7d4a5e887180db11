"""Domain enumerations for the deal approval lifecycle."""

from enum import StrEnum


class DealStatus(StrEnum):
    """Statuses a deal can be in.

    ``DRAFT`` and ``EXPIRED`` are representable but never written by the
    approval flow: a deal is ``SENT`` at creation, and ``EXPIRED`` is a
    read-time judgement about a lapsed, unconsumed token.
    """

    DRAFT = "DRAFT"
    SENT = "SENT"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class ApprovalEventType(StrEnum):
    """Types of events recorded in a deal's audit trail."""

    SENT = "SENT"
    VIEWED = "VIEWED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# Events a webhook registered at deal creation is subscribed to.
DEFAULT_WEBHOOK_EVENTS: frozenset[ApprovalEventType] = frozenset(
    {ApprovalEventType.SENT, ApprovalEventType.APPROVED, ApprovalEventType.REJECTED}
)
