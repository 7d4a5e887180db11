"""Application entry point for the deal approval service.

Configures:
- **structlog** with JSON rendering (production) or colored console (development),
  forwarding errors to Sentry when a DSN is set
- **Storage**: one SQLite connection opened at startup and injected into the
  store, closed on shutdown
- **Notifications** through SMTP, or a logging transport when SMTP is not configured
- **Webhooks** over a shared httpx client with signed, retried deliveries
- **HTTP API**, health probes, request IDs, and Prometheus metrics
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from approvals.api.errors import register_error_handlers
from approvals.api.routes import approval_router, deals_router
from approvals.config import Settings, get_settings, validate_settings
from approvals.health import register_health_routes
from approvals.notifications.dispatcher import NotificationDispatcher
from approvals.notifications.transport import LogTransport, MailTransport, SmtpTransport
from approvals.observability.metrics import setup_metrics
from approvals.observability.middleware import RequestIdMiddleware
from approvals.observability.sentry import get_sentry_processor, init_sentry
from approvals.store.schema import close_approval_db, init_approval_db
from approvals.store.store import ApprovalStore
from approvals.webhooks.dispatcher import WebhookDispatcher
from approvals.workflow.service import DealWorkflow

logger = structlog.get_logger()

SERVICE_NAME = "deal-approvals"


def configure_logging(production: bool = False, sentry_enabled: bool = False) -> None:
    """Configure structlog for production (JSON) or development (console).

    Production mode (*production=True*): JSON rendering at INFO level.
    Development mode: colored console rendering at DEBUG level.

    Args:
        production: Enable production mode if ``True``.
        sentry_enabled: Insert the Sentry processor so ERROR events are forwarded.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
    ]
    if sentry_enabled:
        processors.append(get_sentry_processor())
    processors.extend(
        [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]
    )

    if production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=SERVICE_NAME)


def build_mail_transport(settings: Settings) -> MailTransport:
    """Return an SMTP transport, or a logging transport when SMTP is not configured."""
    if not settings.smtp_host:
        logger.info("SMTP_HOST not set, emails will be logged only")
        return LogTransport()
    return SmtpTransport(
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        from_email=settings.smtp_from_email,
        from_name=settings.smtp_from_name,
        username=settings.smtp_user,
        password=settings.smtp_password.get_secret_value(),
        start_tls=settings.smtp_use_tls,
    )


def initialize_services(settings: Settings | None = None) -> dict[str, Any]:
    """Construct every shared service explicitly, once, at process start.

    Args:
        settings: Application settings.  If ``None``, ``get_settings()`` is used.

    Returns:
        A dict of initialized service instances keyed by name.
    """
    if settings is None:
        settings = get_settings()

    services: dict[str, Any] = {"_settings": settings}

    db_path = settings.database_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = init_approval_db(db_path)
    services["db_conn"] = conn

    store = ApprovalStore(conn)
    services["store"] = store

    notifier = NotificationDispatcher(build_mail_transport(settings))
    services["notifier"] = notifier

    http_client = httpx.AsyncClient(timeout=settings.webhook_timeout_seconds)
    services["http_client"] = http_client

    webhooks = WebhookDispatcher(
        http_client,
        signing_secret=settings.webhook_signing_secret.get_secret_value(),
        max_attempts=settings.webhook_max_attempts,
    )
    services["webhooks"] = webhooks

    services["workflow"] = DealWorkflow(
        store,
        notifier,
        webhooks,
        frontend_base_url=settings.frontend_base_url,
        owner_email=settings.owner_email,
    )

    logger.info("Services initialized", database=str(db_path))
    return services


async def shutdown_services(services: dict[str, Any]) -> None:
    """Release the HTTP client and the database connection."""
    http_client = services.get("http_client")
    if http_client is not None:
        await http_client.aclose()

    conn = services.get("db_conn")
    if conn is not None:
        close_approval_db(conn)
        logger.info("Approval database connection closed on shutdown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Close shared resources when the server stops."""
    yield
    await shutdown_services(app.state.services)


def create_app(services: dict[str, Any]) -> FastAPI:
    """Create the FastAPI app with routers, error handlers, probes, and metrics.

    Args:
        services: The initialized services dict from ``initialize_services``.

    Returns:
        The configured FastAPI application.
    """
    fastapi_app = FastAPI(title="Deal Approval Service", lifespan=lifespan)
    fastapi_app.state.services = services
    fastapi_app.state.settings = services.get("_settings") or get_settings()

    fastapi_app.add_middleware(RequestIdMiddleware, service=SERVICE_NAME)
    register_error_handlers(fastapi_app)
    fastapi_app.include_router(deals_router)
    fastapi_app.include_router(approval_router)
    register_health_routes(fastapi_app)
    setup_metrics(fastapi_app)

    return fastapi_app


async def main() -> None:
    """Main entry point: configure, initialize, and serve.

    1. Configure logging and Sentry
    2. Validate settings
    3. Initialize services and create the FastAPI app
    4. Serve with uvicorn until shutdown
    """
    settings = get_settings()
    init_sentry(settings.sentry_dsn, environment="production" if settings.production else "development")
    configure_logging(production=settings.production, sentry_enabled=bool(settings.sentry_dsn))
    logger.info("Application starting")

    validate_settings(settings)

    services = initialize_services(settings)
    fastapi_app = create_app(services)

    config = uvicorn.Config(
        fastapi_app,
        host=settings.host,
        port=settings.port,
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
