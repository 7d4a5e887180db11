"""FastAPI dependencies shared by the API routers."""

from __future__ import annotations

import hmac

import structlog
from fastapi import Header, HTTPException, Request

from approvals.domain.models import EventMetadata
from approvals.tokens.request_context import extract_request_context
from approvals.workflow.service import DealWorkflow

logger = structlog.get_logger()


def get_workflow(request: Request) -> DealWorkflow:
    """Return the workflow constructed at startup."""
    return request.app.state.services["workflow"]


def get_request_context(request: Request) -> EventMetadata:
    """Return the audit metadata (client IP, user agent) of the current request."""
    return extract_request_context(request)


def require_owner(
    request: Request,
    x_api_key: str | None = Header(default=None),
) -> None:
    """Gate owner-only routes behind the configured owner API key.

    When no key is configured (development), the gate is open.

    Raises:
        HTTPException: 401 if the key is missing or wrong.
    """
    expected = request.app.state.settings.owner_api_key.get_secret_value()
    if not expected:
        return
    if not x_api_key or not hmac.compare_digest(x_api_key.encode(), expected.encode()):
        logger.warning("owner_auth_failed", path=request.url.path)
        raise HTTPException(status_code=401, detail="Invalid API key")
