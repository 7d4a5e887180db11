"""Validity window for approval tokens."""

from __future__ import annotations

from datetime import datetime, timedelta

TOKEN_TTL = timedelta(days=14)


def expiration_from(now: datetime) -> datetime:
    """Return the expiry timestamp for a token issued at *now*."""
    return now + TOKEN_TTL


def is_expired(expires_at: datetime, now: datetime) -> bool:
    """Return True if *now* is strictly past *expires_at*."""
    return now > expires_at
