"""Tests for the transition map."""

from approvals.domain.types import DealStatus
from approvals.state_machine.transitions import TERMINAL_STATES, TRANSITIONS, DealEvent


def test_exactly_two_transitions() -> None:
    assert len(TRANSITIONS) == 2


def test_all_transitions_leave_sent() -> None:
    assert {state for state, _ in TRANSITIONS} == {DealStatus.SENT}


def test_targets_are_terminal() -> None:
    assert set(TRANSITIONS.values()) == TERMINAL_STATES


def test_event_values() -> None:
    assert [e.value for e in DealEvent] == ["approve", "reject"]


def test_expired_and_draft_are_not_terminal() -> None:
    assert DealStatus.EXPIRED not in TERMINAL_STATES
    assert DealStatus.DRAFT not in TERMINAL_STATES
