"""Approval token primitives: secret generation, hashing, expiry, and request context."""

from approvals.tokens.codec import generate_token, hash_token, verify_token
from approvals.tokens.expiration import TOKEN_TTL, expiration_from, is_expired
from approvals.tokens.request_context import client_ip, extract_request_context, user_agent

__all__ = [
    "TOKEN_TTL",
    "client_ip",
    "expiration_from",
    "extract_request_context",
    "generate_token",
    "hash_token",
    "is_expired",
    "user_agent",
    "verify_token",
]
