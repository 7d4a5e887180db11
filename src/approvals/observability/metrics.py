"""Prometheus metrics instrumentation for the approval service.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to a FastAPI app,
  exposing ``/metrics`` with HTTP request duration/count plus custom business metrics.
- ``DEALS_CREATED``: Counter of deals sent for approval.
- ``DEAL_DECISIONS``: Counter of approve/reject decisions, labelled by status.
- ``WEBHOOK_DELIVERIES``: Counter of webhook delivery results, labelled by outcome.
- ``EMAILS_SENT``: Counter of notification emails, labelled by template and outcome.

Business metrics are updated where the events happen, not by polling the database.
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

DEALS_CREATED: Counter = Counter(
    "approvals_deals_created_total",
    "Total number of deals sent for approval",
)

DEAL_DECISIONS: Counter = Counter(
    "approvals_deal_decisions_total",
    "Total number of approve/reject decisions",
    ["status"],
)

WEBHOOK_DELIVERIES: Counter = Counter(
    "approvals_webhook_deliveries_total",
    "Webhook delivery results after retries",
    ["outcome"],
)

EMAILS_SENT: Counter = Counter(
    "approvals_emails_total",
    "Notification email send results",
    ["template", "outcome"],
)


def setup_metrics(app: FastAPI) -> None:
    """Instrument *app* with Prometheus HTTP metrics and expose ``/metrics``.

    Excludes health/ready/metrics endpoints from instrumentation to avoid
    noise in dashboards.

    Args:
        app: The FastAPI application to instrument.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
