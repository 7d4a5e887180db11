"""Audit metadata extraction from inbound HTTP requests.

Both values are client-controlled and trivially spoofable. They are recorded
as-is for audit and forensics only and are never used for authorization.
"""

from __future__ import annotations

from typing import Any

from approvals.domain.models import EventMetadata

UNKNOWN = "unknown"


def client_ip(request: Any) -> str:
    """Return the best-effort client IP for *request*.

    Prefers the first entry of ``X-Forwarded-For``, then the transport peer
    address, then ``"unknown"``.

    Args:
        request: A Starlette ``Request`` or any object with ``headers`` and
                 an optional ``client`` exposing ``host``.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    client = getattr(request, "client", None)
    host = getattr(client, "host", None) if client is not None else None
    return host or UNKNOWN


def user_agent(request: Any) -> str:
    """Return the ``User-Agent`` header of *request*, or ``"unknown"``."""
    return (request.headers.get("user-agent") or "").strip() or UNKNOWN


def extract_request_context(request: Any) -> EventMetadata:
    """Build the audit metadata for *request*."""
    return EventMetadata(ip=client_ip(request), user_agent=user_agent(request))
