"""Deal status state machine with transition validation."""

from approvals.state_machine.machine import DealStateMachine
from approvals.state_machine.transitions import TERMINAL_STATES, TRANSITIONS, DealEvent

__all__ = [
    "TERMINAL_STATES",
    "TRANSITIONS",
    "DealEvent",
    "DealStateMachine",
]
