"""Tests for the approval token validity window."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from approvals.tokens.expiration import TOKEN_TTL, expiration_from, is_expired

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def test_ttl_is_fourteen_days() -> None:
    assert TOKEN_TTL == timedelta(days=14)


def test_expiration_from_adds_ttl() -> None:
    assert expiration_from(NOW) == datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


def test_not_expired_before_deadline() -> None:
    assert is_expired(NOW + TOKEN_TTL, NOW + TOKEN_TTL - timedelta(seconds=1)) is False


def test_not_expired_at_exact_deadline() -> None:
    assert is_expired(NOW, NOW) is False


def test_expired_just_after_deadline() -> None:
    assert is_expired(NOW, NOW + timedelta(microseconds=1)) is True


def test_thirteen_days_valid_fifteen_expired() -> None:
    expires_at = expiration_from(NOW)
    assert is_expired(expires_at, NOW + timedelta(days=13)) is False
    assert is_expired(expires_at, NOW + timedelta(days=15)) is True
