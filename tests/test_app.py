"""Tests for application entry point: structlog config, service initialization, and app creation."""

from __future__ import annotations

import inspect
import sqlite3
from pathlib import Path

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from approvals.app import (
    build_mail_transport,
    configure_logging,
    create_app,
    initialize_services,
)
from approvals.config import Settings, get_settings
from approvals.notifications.transport import LogTransport, SmtpTransport
from approvals.store.store import ApprovalStore
from approvals.workflow.service import DealWorkflow


def _reset_structlog() -> None:
    """Reset structlog so cached loggers don't leak between tests."""
    structlog.reset_defaults()


def _base_settings(tmp_path: Path, **overrides) -> Settings:
    """Build a Settings instance pointing the database at tmp_path."""
    defaults = {"database_path": tmp_path / "data" / "approvals.db"}
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)  # type: ignore[call-arg]


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    get_settings.cache_clear()


class TestConfigureLogging:
    """Tests for structlog configuration in dev and production modes."""

    def test_development_mode_uses_console_renderer(self) -> None:
        _reset_structlog()
        configure_logging(production=False)
        processors = structlog.get_config()["processors"]
        assert any(isinstance(p, structlog.dev.ConsoleRenderer) for p in processors)

    def test_production_mode_uses_json_renderer(self) -> None:
        _reset_structlog()
        configure_logging(production=True)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_sentry_processor_inserted_when_enabled(self) -> None:
        from structlog_sentry import SentryProcessor

        _reset_structlog()
        configure_logging(production=True, sentry_enabled=True)
        processors = structlog.get_config()["processors"]
        assert any(isinstance(p, SentryProcessor) for p in processors)

    def test_sentry_processor_absent_by_default(self) -> None:
        from structlog_sentry import SentryProcessor

        _reset_structlog()
        configure_logging(production=True)
        processors = structlog.get_config()["processors"]
        assert not any(isinstance(p, SentryProcessor) for p in processors)


class TestInitializeServices:
    """Tests for explicit service construction."""

    def test_creates_database_and_services(self, tmp_path: Path) -> None:
        settings = _base_settings(tmp_path)

        services = initialize_services(settings)
        try:
            assert settings.database_path.exists()
            assert isinstance(services["db_conn"], sqlite3.Connection)
            assert isinstance(services["store"], ApprovalStore)
            assert isinstance(services["workflow"], DealWorkflow)
            assert services["_settings"] is settings
        finally:
            services["db_conn"].close()

    def test_log_transport_without_smtp_host(self, tmp_path: Path) -> None:
        assert isinstance(build_mail_transport(_base_settings(tmp_path)), LogTransport)

    def test_smtp_transport_with_smtp_host(self, tmp_path: Path) -> None:
        settings = _base_settings(tmp_path, smtp_host="smtp.example.com")
        assert isinstance(build_mail_transport(settings), SmtpTransport)


class TestCreateApp:
    """Tests for FastAPI app creation."""

    def test_returns_fastapi_instance_with_routes(self, tmp_path: Path) -> None:
        services = initialize_services(_base_settings(tmp_path))
        app = create_app(services)
        try:
            assert isinstance(app, FastAPI)
            paths = {getattr(route, "path", None) for route in app.routes}
            assert {
                "/api/deals",
                "/api/deals/{deal_id}",
                "/api/approval/deal",
                "/api/approval/confirm",
                "/health",
                "/ready",
                "/metrics",
            } <= paths
        finally:
            services["db_conn"].close()

    def test_settings_stored_on_app_state(self, tmp_path: Path) -> None:
        settings = _base_settings(tmp_path)
        services = initialize_services(settings)
        app = create_app(services)
        try:
            assert app.state.settings is settings
        finally:
            services["db_conn"].close()

    def test_no_deprecated_on_event(self) -> None:
        source = inspect.getsource(create_app)
        assert "on_event" not in source

    def test_lifespan_closes_resources(self, tmp_path: Path) -> None:
        services = initialize_services(_base_settings(tmp_path))
        app = create_app(services)

        with TestClient(app) as client:
            assert client.get("/ready").status_code == 200
            assert client.get("/health").headers["X-Request-ID"]

        assert services["http_client"].is_closed
        with pytest.raises(sqlite3.ProgrammingError):
            services["db_conn"].execute("SELECT 1")


class TestMainImport:
    """Test that main() can be imported without side effects."""

    def test_main_importable(self) -> None:
        from approvals.app import main, run

        assert callable(main)
        assert callable(run)
