"""Sentry SDK initialization with structlog-sentry bridge.

Provides:
- ``init_sentry(dsn)``: Initialize Sentry SDK.  No-op when *dsn* is empty.
- ``scrub_approval_secrets(event, hint)``: ``before_send`` hook that removes
  raw approval tokens from URLs, request bodies, and log messages.
- ``get_sentry_processor()``: Return a structlog processor that forwards
  ERROR-level log events to Sentry.

Raw approval tokens are bearer credentials: anyone holding one can approve
or reject a deal, so they must never reach an external error tracker.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import sentry_sdk
import structlog
from sentry_sdk.integrations.logging import LoggingIntegration
from structlog_sentry import SentryProcessor

REDACTED = "[redacted]"
_TOKEN_IN_PATH = re.compile(r"(/approve/)[0-9a-fA-F]{16,}")
_SENSITIVE_KEYS = frozenset({"token", "raw_token", "x-api-key", "authorization"})


def _scrub(value: Any) -> Any:
    if isinstance(value, str):
        return _TOKEN_IN_PATH.sub(rf"\g<1>{REDACTED}", value)
    if isinstance(value, dict):
        return {
            k: REDACTED if str(k).lower() in _SENSITIVE_KEYS else _scrub(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_scrub(v) for v in value]
    return value


def scrub_approval_secrets(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any]:
    """Redact approval tokens and API keys from a Sentry event.

    Args:
        event: The Sentry event about to be sent.
        hint: Sentry's hint dict (unused).

    Returns:
        The scrubbed event.
    """
    return _scrub(event)


def init_sentry(dsn: str, environment: str = "development") -> None:
    """Initialize Sentry SDK with the given *dsn*.

    When *dsn* is empty the function returns immediately -- no network calls,
    no SDK initialization.  Safe to call unconditionally at startup.

    Args:
        dsn: Sentry DSN string.  Empty string disables Sentry.
        environment: Environment tag attached to every event.
    """
    if not dsn:
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=0.1,
        send_default_pii=False,
        before_send=scrub_approval_secrets,
        integrations=[
            # structlog-sentry forwards errors; avoid double reporting.
            LoggingIntegration(event_level=None, level=None),
        ],
    )


def get_sentry_processor() -> structlog.types.Processor:
    """Return a structlog processor that forwards ERROR events to Sentry.

    Insert this into the structlog processor chain **after** ``add_log_level``
    and **before** the renderer.
    """
    return SentryProcessor(event_level=logging.ERROR)
