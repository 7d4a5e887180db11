"""Outbound webhooks: payload construction, HMAC signing, and retried delivery."""

from approvals.webhooks.dispatcher import WebhookDispatcher
from approvals.webhooks.payload import WebhookPayload, build_payload, canonical_body
from approvals.webhooks.signing import SIGNATURE_HEADER, sign_payload, verify_signature

__all__ = [
    "SIGNATURE_HEADER",
    "WebhookDispatcher",
    "WebhookPayload",
    "build_payload",
    "canonical_body",
    "sign_payload",
    "verify_signature",
]
