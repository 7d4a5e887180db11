"""HMAC-SHA256 signatures for outbound webhook bodies.

The signature covers the exact body bytes and is sent as
``X-Webhook-Signature: sha256=<hex digest>``. Receivers must verify against
the raw request body before any JSON parsing.
"""

from __future__ import annotations

import hashlib
import hmac

SIGNATURE_HEADER = "X-Webhook-Signature"
SIGNATURE_PREFIX = "sha256="


def sign_payload(body: bytes, secret: str) -> str:
    """Return the ``X-Webhook-Signature`` header value for *body*.

    Args:
        body: The exact bytes sent as the HTTP body.
        secret: The shared secret of the receiving webhook.
    """
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(body: bytes, signature: str, secret: str) -> bool:
    """Verify a ``X-Webhook-Signature`` header value against *body*.

    Args:
        body: The raw request body bytes.
        signature: The header value, with or without the ``sha256=`` prefix.
        secret: The shared webhook secret.

    Returns:
        True if the computed signature matches the provided one.
    """
    expected = sign_payload(body, secret)
    if not signature.startswith(SIGNATURE_PREFIX):
        signature = f"{SIGNATURE_PREFIX}{signature}"
    return hmac.compare_digest(expected.encode(), signature.encode("utf-8", errors="replace"))
