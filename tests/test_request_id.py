"""Tests for Request ID middleware."""

from __future__ import annotations

import re

import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from approvals.observability.middleware import RequestIdMiddleware

UUID4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def _make_app() -> FastAPI:
    """Create a minimal FastAPI app with RequestIdMiddleware."""
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware, service="test-service")

    @app.get("/test")
    async def test_endpoint():
        return dict(structlog.contextvars.get_contextvars())

    return app


def test_response_has_auto_generated_request_id() -> None:
    resp = TestClient(_make_app()).get("/test")
    assert resp.status_code == 200
    assert UUID4_PATTERN.match(resp.headers["X-Request-ID"])


def test_response_echoes_safe_client_request_id() -> None:
    resp = TestClient(_make_app()).get("/test", headers={"X-Request-ID": "test-123"})
    assert resp.headers["X-Request-ID"] == "test-123"


def test_unsafe_client_request_id_is_replaced() -> None:
    resp = TestClient(_make_app()).get("/test", headers={"X-Request-ID": "bad id <script>"})
    assert resp.headers["X-Request-ID"] != "bad id <script>"
    assert UUID4_PATTERN.match(resp.headers["X-Request-ID"])


def test_overlong_client_request_id_is_replaced() -> None:
    resp = TestClient(_make_app()).get("/test", headers={"X-Request-ID": "a" * 129})
    assert UUID4_PATTERN.match(resp.headers["X-Request-ID"])


def test_context_is_bound_for_the_request() -> None:
    resp = TestClient(_make_app()).get("/test", headers={"X-Request-ID": "abc"})
    bound = resp.json()
    assert bound["request_id"] == "abc"
    assert bound["service"] == "test-service"
    assert bound["method"] == "GET"
    assert bound["path"] == "/test"
