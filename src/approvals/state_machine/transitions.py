"""Transition map defining all valid (status, event) -> status mappings."""

from enum import StrEnum

from approvals.domain.types import DealStatus


class DealEvent(StrEnum):
    """Events that can trigger deal status transitions."""

    APPROVE = "approve"
    REJECT = "reject"


# Any pair not in this dict is an invalid transition.
TRANSITIONS: dict[tuple[DealStatus, str], DealStatus] = {
    (DealStatus.SENT, DealEvent.APPROVE): DealStatus.APPROVED,
    (DealStatus.SENT, DealEvent.REJECT): DealStatus.REJECTED,
}

# States that reject all events -- a decision is final.
TERMINAL_STATES: frozenset[DealStatus] = frozenset({DealStatus.APPROVED, DealStatus.REJECTED})
