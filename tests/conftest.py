"""Shared pytest fixtures for the deal approval test suite."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import httpx
import pytest

from approvals.domain.models import EventMetadata
from approvals.notifications.dispatcher import NotificationDispatcher
from approvals.notifications.models import OutboundEmail
from approvals.store.schema import close_approval_db, init_approval_db
from approvals.store.store import ApprovalStore
from approvals.webhooks.dispatcher import WebhookDispatcher
from approvals.workflow.service import DealWorkflow

START = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class MutableClock:
    """Injectable clock that only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class RecordingTransport:
    """Mail transport that keeps sent emails in memory."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[OutboundEmail] = []
        self.fail = fail

    async def send(self, email: OutboundEmail) -> None:
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append(email)


class WebhookTarget:
    """httpx mock handler that records requests and answers with *status_code*."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code)


async def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def db_conn(tmp_path: Path) -> Iterator[sqlite3.Connection]:
    """An initialized approval database in a temporary directory."""
    conn = init_approval_db(tmp_path / "approvals.db")
    yield conn
    close_approval_db(conn)


@pytest.fixture
def store(db_conn: sqlite3.Connection) -> ApprovalStore:
    return ApprovalStore(db_conn)


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def mail() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def webhook_target() -> WebhookTarget:
    return WebhookTarget()


@pytest.fixture
def webhooks(webhook_target: WebhookTarget) -> WebhookDispatcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(webhook_target))
    return WebhookDispatcher(client, signing_secret="global-secret", sleep=no_sleep)


@pytest.fixture
def workflow(
    store: ApprovalStore,
    mail: RecordingTransport,
    webhooks: WebhookDispatcher,
    clock: MutableClock,
) -> DealWorkflow:
    return DealWorkflow(
        store,
        NotificationDispatcher(mail),
        webhooks,
        frontend_base_url="https://app.example.com/",
        owner_email="owner@example.com",
        clock=clock,
    )


@pytest.fixture
def context() -> EventMetadata:
    return EventMetadata(ip="203.0.113.7", user_agent="pytest-browser/1.0")


@pytest.fixture
def deal_request() -> dict[str, Any]:
    """A valid deal creation request: 2 x 10.00 + 1 x 5.50 = 25.50 EUR."""
    return {
        "client_name": "Acme GmbH",
        "client_email": "buyer@acme.example",
        "currency": "eur",
        "total": 2550,
        "items": [
            {"description": "Consulting day", "quantity": 2, "unit_price": 1000},
            {"description": "Travel", "quantity": 1, "unit_price": 550},
        ],
        "webhook_url": "https://hooks.acme.example/deals",
    }


@pytest.fixture
def failing_mail() -> RecordingTransport:
    return RecordingTransport(fail=True)
