"""Tests for /health and /ready observability endpoints."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from approvals.health import register_health_routes
from approvals.store.schema import init_approval_db
from approvals.store.store import ApprovalStore

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_app(services: dict | None = None) -> FastAPI:
    """Create a minimal FastAPI app with health routes and given services."""
    app = FastAPI()
    app.state.services = services or {}
    register_health_routes(app)
    return app


# ---------------------------------------------------------------------------
# /health (liveness)
# ---------------------------------------------------------------------------

class TestHealthEndpoint:
    """GET /health liveness probe."""

    def test_health_returns_200(self) -> None:
        response = TestClient(_make_app()).get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


# ---------------------------------------------------------------------------
# /ready (readiness)
# ---------------------------------------------------------------------------

class TestReadyEndpoint:
    """GET /ready readiness probe."""

    def test_ready_with_working_database(self) -> None:
        store = ApprovalStore(init_approval_db(":memory:"))
        response = TestClient(_make_app({"store": store})).get("/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "checks": {"database": "ok"}}

    def test_not_ready_with_closed_database(self) -> None:
        conn = init_approval_db(":memory:")
        store = ApprovalStore(conn)
        conn.close()

        response = TestClient(_make_app({"store": store})).get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["database"] == "fail"

    def test_not_ready_without_store(self) -> None:
        response = TestClient(_make_app()).get("/ready")

        assert response.status_code == 503
        assert response.json() == {"status": "not_ready", "checks": {"database": "fail"}}
