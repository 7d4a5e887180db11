"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by ``.env`` file and environment
variables, a cached ``get_settings()`` accessor, and a ``validate_settings()``
startup gate that enforces secret presence in production mode.

IMPORTANT: This module has ZERO imports from the ``approvals`` package to
prevent circular imports.  Only stdlib, pydantic, pydantic_settings, and
structlog are used.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env`` file.

    ``SecretStr`` fields prevent accidental leaks in logs or error output.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    database_path: Path = Path("data/approvals.db")

    # -- Approval links --------------------------------------------------------
    frontend_base_url: str = "http://localhost:3000"
    owner_email: str = "owner@example.com"
    owner_api_key: SecretStr = SecretStr("")

    # -- Webhooks --------------------------------------------------------------
    webhook_signing_secret: SecretStr = SecretStr("")
    webhook_max_attempts: int = 3
    webhook_timeout_seconds: float = 10.0

    # -- SMTP ------------------------------------------------------------------
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: SecretStr = SecretStr("")
    smtp_use_tls: bool = True
    smtp_from_email: str = "noreply@approval.service"
    smtp_from_name: str = "Approval Service"

    # -- Observability ---------------------------------------------------------
    sentry_dsn: str = ""


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    The ``@lru_cache`` decorator ensures environment variables are parsed
    exactly once.  Call ``get_settings.cache_clear()`` in tests to reset.

    Returns:
        The application ``Settings``.
    """
    try:
        return Settings()
    except ValidationError as exc:
        # Log only the structured errors list -- never the full exception
        # which may contain raw SecretStr values.
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def validate_settings(settings: Settings) -> None:
    """Enforce presence of secrets and transports at startup.

    In **production** mode the application exits with a clear error block if
    the owner API key, webhook signing secret, or SMTP host is missing.  In
    **development** mode each gap is logged as a warning.

    Args:
        settings: The loaded application settings.
    """
    errors: list[str] = []

    if not settings.owner_api_key.get_secret_value():
        errors.append("OWNER_API_KEY is empty or not set")

    if not settings.webhook_signing_secret.get_secret_value():
        errors.append("WEBHOOK_SIGNING_SECRET is empty or not set")

    if not settings.smtp_host:
        errors.append("SMTP_HOST is empty or not set")

    if not errors:
        logger.info("settings_validation_passed")
        return

    if settings.production:
        for err in errors:
            logger.error("setting_missing", detail=err)
        print("\n=== STARTUP FAILED ===", file=sys.stderr)
        print("Missing required settings for production mode:", file=sys.stderr)
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        print("======================\n", file=sys.stderr)
        sys.exit(1)
    else:
        for err in errors:
            logger.warning("setting_missing_dev", detail=err)
