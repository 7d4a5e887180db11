"""Tests for approval email templates."""

from __future__ import annotations

from approvals.notifications.templates import (
    APPROVAL_CONFIRMED,
    APPROVAL_LINK,
    APPROVAL_REJECTED,
    format_amount,
    render_approval_confirmed,
    render_approval_link,
    render_approval_rejected,
)


class TestFormatAmount:
    def test_minor_units_to_two_decimals(self) -> None:
        assert format_amount("EUR", 2550) == "EUR 25.50"

    def test_small_amount(self) -> None:
        assert format_amount("USD", 5) == "USD 0.05"


class TestApprovalLink:
    def test_contains_link_and_expiry(self) -> None:
        email = render_approval_link(
            "buyer@acme.example", "Acme", "https://app.example/approve/abc", "EUR 25.50"
        )
        assert email.to == "buyer@acme.example"
        assert email.template == APPROVAL_LINK
        assert 'href="https://app.example/approve/abc"' in email.html
        assert "14 days" in email.html
        assert "EUR 25.50" in email.subject

    def test_escapes_client_controlled_values(self) -> None:
        email = render_approval_link(
            "x@example.com",
            "<script>alert(1)</script>",
            'https://app.example/approve/abc"><img src=x>',
            "EUR 1.00",
        )
        assert "<script>" not in email.html
        assert "&lt;script&gt;" in email.html
        assert '"><img' not in email.html


class TestDecisionEmails:
    def test_confirmed(self) -> None:
        email = render_approval_confirmed(
            "owner@example.com", "Acme", "EUR 25.50", "2026-03-01T12:00:00+00:00"
        )
        assert email.to == "owner@example.com"
        assert email.template == APPROVAL_CONFIRMED
        assert email.subject == "Deal Approved - Acme"
        assert "proceed with invoicing" in email.html

    def test_rejected(self) -> None:
        email = render_approval_rejected(
            "owner@example.com", "Acme & Sons", "EUR 25.50", "2026-03-01T12:00:00+00:00"
        )
        assert email.template == APPROVAL_REJECTED
        assert "rejected" in email.html
        assert "Acme &amp; Sons" in email.html
