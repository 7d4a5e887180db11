"""Approval token generation, hashing, and constant-time verification.

Only the SHA-256 digest of a token is ever persisted. The raw secret is
handed to the deal owner once, embedded in the approval link.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

TOKEN_BYTES = 32


def generate_token() -> str:
    """Generate a new approval secret.

    Returns:
        A lowercase hex string built from 32 bytes of CSPRNG output
        (64 characters).
    """
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Derive the storage digest of a token.

    Args:
        token: The raw token secret.

    Returns:
        The SHA-256 hex digest (64 characters).
    """
    return hashlib.sha256(token.encode()).hexdigest()


def verify_token(token: str, digest: str) -> bool:
    """Check a raw token against a stored digest in constant time.

    A digest of the wrong length simply fails to match.

    Args:
        token: The raw token secret presented by the approver.
        digest: The stored SHA-256 hex digest.

    Returns:
        True if ``hash_token(token)`` equals *digest*.
    """
    computed = hash_token(token).encode()
    return hmac.compare_digest(computed, digest.encode("utf-8", errors="replace"))
