"""Request ID middleware for HTTP request tracing.

Every response carries an ``X-Request-ID`` header.  A client-supplied ID is
echoed only when it is short and made of safe characters; otherwise a fresh
UUID4 is generated.  The ID, method, and path are bound into structlog
contextvars so all log entries for the request share them.
"""

from __future__ import annotations

import re
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

REQUEST_ID_HEADER = "X-Request-ID"
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to every HTTP request/response cycle.

    Args:
        app: The wrapped ASGI application.
        service: Service name bound alongside the request ID.
    """

    def __init__(self, app: ASGIApp, service: str = "deal-approvals") -> None:
        super().__init__(app)
        self._service = service

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = incoming if _SAFE_REQUEST_ID.match(incoming) else str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            service=self._service,
            method=request.method,
            path=request.url.path,
        )
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
