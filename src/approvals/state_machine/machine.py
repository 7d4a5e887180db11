"""DealStateMachine class with trigger and valid_events."""

from __future__ import annotations

from approvals.domain.errors import InvalidTransitionError
from approvals.domain.types import DealStatus
from approvals.state_machine.transitions import TERMINAL_STATES, TRANSITIONS, DealEvent


class DealStateMachine:
    """Finite state machine governing a deal's approval status.

    Usage::

        sm = DealStateMachine(DealStatus.SENT)
        sm.trigger("approve")   # -> APPROVED (terminal)
    """

    def __init__(self, initial_state: DealStatus = DealStatus.SENT) -> None:
        self._state: DealStatus = initial_state

    @property
    def state(self) -> DealStatus:
        """Return the current deal status."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Return True if the deal has been approved or rejected."""
        return self._state in TERMINAL_STATES

    @staticmethod
    def event_for(approved: bool) -> DealEvent:
        """Map an approver's yes/no decision to a state machine event."""
        return DealEvent.APPROVE if approved else DealEvent.REJECT

    def trigger(self, event: str) -> DealStatus:
        """Apply an event to the current status and transition.

        Args:
            event: The event string (``"approve"`` or ``"reject"``).

        Returns:
            The new status after the transition.

        Raises:
            InvalidTransitionError: If the transition is not allowed from
                the current status, or if the deal is already decided.
        """
        if self.is_terminal:
            raise InvalidTransitionError(self._state, event)

        key = (self._state, event)
        if key not in TRANSITIONS:
            raise InvalidTransitionError(self._state, event)

        self._state = TRANSITIONS[key]
        return self._state

    def get_valid_events(self) -> list[str]:
        """Return a sorted list of events valid from the current status."""
        if self.is_terminal:
            return []
        return sorted(event for state, event in TRANSITIONS if state == self._state)
