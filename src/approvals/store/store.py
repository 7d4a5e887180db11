"""SQLite-backed store implementing the persistence contract of the approval workflow.

Mirrors the audit store conventions: accepts an open sqlite3.Connection,
uses parameterized queries exclusively, and commits synchronously. Every
``sqlite3.Error`` is surfaced as :class:`StorageUnavailableError`.

The connection is shared by request handlers running in worker threads, so
every statement and transaction runs under a single lock.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

import structlog

from approvals.domain.errors import (
    InvalidTransitionError,
    StorageUnavailableError,
    TokenAlreadyUsedError,
)
from approvals.domain.models import (
    ApprovalEvent,
    ApprovalToken,
    Deal,
    EventMetadata,
    LineItem,
    WebhookConfig,
)
from approvals.domain.types import ApprovalEventType, DealStatus

logger = structlog.get_logger()


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value is not None else None


class ApprovalStore:
    """Persist and retrieve deals, tokens, events, and webhook configs.

    Constructed once at process start around an explicitly opened
    connection (see :func:`~approvals.store.schema.init_approval_db`) and
    injected into the workflow.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialize with an open database connection.

        Args:
            conn: An open sqlite3.Connection whose database already has the
                  approval tables.
        """
        self._conn = conn
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block atomically: commit on success, roll back on any error."""
        with self._lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as exc:
                logger.error("storage_error", error=str(exc))
                raise StorageUnavailableError(str(exc)) from exc

    @contextmanager
    def _reading(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
            except sqlite3.Error as exc:
                logger.error("storage_error", error=str(exc))
                raise StorageUnavailableError(str(exc)) from exc

    def ping(self) -> None:
        """Execute a trivial query; raises StorageUnavailableError if the DB is unusable."""
        with self._reading() as conn:
            conn.execute("SELECT 1").fetchone()

    # ------------------------------------------------------------------
    # Row insertion helpers (must run inside a transaction)
    # ------------------------------------------------------------------

    @staticmethod
    def _insert_deal(conn: sqlite3.Connection, deal: Deal) -> None:
        items_json = json.dumps([item.model_dump() for item in deal.items])
        conn.execute(
            """
            INSERT INTO deals (
                id, client_name, client_email, currency, total,
                items_json, status, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                deal.id,
                deal.client_name,
                deal.client_email,
                deal.currency,
                deal.total,
                items_json,
                deal.status.value,
                _ts(deal.created_at),
                _ts(deal.updated_at),
            ),
        )

    @staticmethod
    def _insert_token(conn: sqlite3.Connection, token: ApprovalToken) -> None:
        conn.execute(
            """
            INSERT INTO approval_tokens (id, deal_id, token_hash, expires_at, used_at, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                token.id,
                token.deal_id,
                token.token_hash,
                _ts(token.expires_at),
                _ts(token.used_at),
                _ts(token.created_at),
            ),
        )

    @staticmethod
    def _insert_event(conn: sqlite3.Connection, event: ApprovalEvent) -> None:
        metadata_json: str | None = None
        if event.metadata is not None:
            metadata_json = event.metadata.model_dump_json()
        conn.execute(
            """
            INSERT INTO approval_events (id, deal_id, event_type, metadata, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.id,
                event.deal_id,
                event.event_type.value,
                metadata_json,
                _ts(event.created_at),
            ),
        )

    @staticmethod
    def _insert_webhook(conn: sqlite3.Connection, config: WebhookConfig) -> None:
        conn.execute(
            """
            INSERT INTO webhook_configs (id, deal_id, url, events, is_active, secret, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                config.id,
                config.deal_id,
                config.url,
                ",".join(sorted(e.value for e in config.events)),
                1 if config.is_active else 0,
                config.secret,
                _ts(config.created_at),
            ),
        )

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def create_deal(
        self,
        deal: Deal,
        token: ApprovalToken,
        event: ApprovalEvent,
        webhook: WebhookConfig | None = None,
    ) -> None:
        """Persist a new deal with its token, SENT event, and optional webhook atomically.

        Args:
            deal: The deal snapshot.
            token: The approval token row (digest only).
            event: The initial audit event.
            webhook: Optional webhook registration for this deal.
        """
        with self._transaction() as conn:
            self._insert_deal(conn, deal)
            self._insert_token(conn, token)
            self._insert_event(conn, event)
            if webhook is not None:
                self._insert_webhook(conn, webhook)

    def append_event(self, event: ApprovalEvent) -> None:
        """Append an audit event. Events are never updated or deleted."""
        with self._transaction() as conn:
            self._insert_event(conn, event)

    def create_webhook_config(self, config: WebhookConfig) -> None:
        """Register a webhook config."""
        with self._transaction() as conn:
            self._insert_webhook(conn, config)

    def consume_token(
        self,
        token_id: str,
        deal_id: str,
        from_status: DealStatus,
        to_status: DealStatus,
        event: ApprovalEvent,
        now: datetime,
    ) -> None:
        """Mark a token used and record the decision as one transaction.

        The token update is a compare-and-swap guarded by ``used_at IS NULL``;
        the deal update is guarded by the expected current status. If either
        affects zero rows the whole transaction is rolled back, so a token is
        never marked used without its status change and vice versa.

        Args:
            token_id: The token being consumed.
            deal_id: The deal the token belongs to.
            from_status: The status the deal must currently have.
            to_status: The decided status.
            event: The APPROVED/REJECTED audit event to append.
            now: The consumption timestamp.

        Raises:
            TokenAlreadyUsedError: Another confirmation consumed the token first.
            InvalidTransitionError: The deal is no longer in *from_status*.
            StorageUnavailableError: The database failed.
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE approval_tokens SET used_at = ? WHERE id = ? AND used_at IS NULL",
                (_ts(now), token_id),
            )
            if cursor.rowcount != 1:
                raise TokenAlreadyUsedError()

            cursor = conn.execute(
                "UPDATE deals SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (to_status.value, _ts(now), deal_id, from_status.value),
            )
            if cursor.rowcount != 1:
                raise InvalidTransitionError(from_status, to_status.value)

            self._insert_event(conn, event)

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def get_deal(self, deal_id: str) -> Deal | None:
        """Return the deal with *deal_id*, or None."""
        with self._reading() as conn:
            row = conn.execute("SELECT * FROM deals WHERE id = ?", (deal_id,)).fetchone()
        return self._row_to_deal(row) if row is not None else None

    def list_deals(self) -> list[Deal]:
        """Return all deals, newest first."""
        with self._reading() as conn:
            rows = conn.execute("SELECT * FROM deals ORDER BY created_at DESC, rowid DESC").fetchall()
        return [self._row_to_deal(row) for row in rows]

    def get_token_by_hash(self, token_hash: str) -> ApprovalToken | None:
        """Return the token whose digest is *token_hash*, or None."""
        with self._reading() as conn:
            row = conn.execute(
                "SELECT * FROM approval_tokens WHERE token_hash = ?", (token_hash,)
            ).fetchone()
        return self._row_to_token(row) if row is not None else None

    def get_latest_token(self, deal_id: str) -> ApprovalToken | None:
        """Return the most recently issued token for *deal_id*, or None."""
        with self._reading() as conn:
            row = conn.execute(
                """
                SELECT * FROM approval_tokens WHERE deal_id = ?
                ORDER BY created_at DESC, rowid DESC LIMIT 1
                """,
                (deal_id,),
            ).fetchone()
        return self._row_to_token(row) if row is not None else None

    def list_events(self, deal_id: str) -> list[ApprovalEvent]:
        """Return the audit trail of *deal_id* in chronological order."""
        with self._reading() as conn:
            rows = conn.execute(
                "SELECT * FROM approval_events WHERE deal_id = ? ORDER BY created_at, rowid",
                (deal_id,),
            ).fetchall()
        return [self._row_to_event(row) for row in rows]

    def get_webhook_configs(self, deal_id: str | None = None) -> list[WebhookConfig]:
        """Return active webhook configs scoped to *deal_id* plus global ones.

        Args:
            deal_id: The deal to scope by. When None, only global configs
                     are returned.
        """
        with self._reading() as conn:
            if deal_id is None:
                rows = conn.execute(
                    "SELECT * FROM webhook_configs WHERE is_active = 1 AND deal_id IS NULL "
                    "ORDER BY created_at, rowid"
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM webhook_configs WHERE is_active = 1 "
                    "AND (deal_id = ? OR deal_id IS NULL) ORDER BY created_at, rowid",
                    (deal_id,),
                ).fetchall()
        return [self._row_to_webhook(row) for row in rows]

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_deal(row: sqlite3.Row) -> Deal:
        items: list[dict[str, Any]] = json.loads(row["items_json"])
        return Deal(
            id=row["id"],
            client_name=row["client_name"],
            client_email=row["client_email"],
            currency=row["currency"],
            total=row["total"],
            items=[LineItem.model_validate(item) for item in items],
            status=DealStatus(row["status"]),
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )

    @staticmethod
    def _row_to_token(row: sqlite3.Row) -> ApprovalToken:
        return ApprovalToken(
            id=row["id"],
            deal_id=row["deal_id"],
            token_hash=row["token_hash"],
            expires_at=_parse_ts(row["expires_at"]),
            used_at=_parse_ts(row["used_at"]),
            created_at=_parse_ts(row["created_at"]),
        )

    @staticmethod
    def _row_to_event(row: sqlite3.Row) -> ApprovalEvent:
        metadata = None
        if row["metadata"] is not None:
            metadata = EventMetadata.model_validate_json(row["metadata"])
        return ApprovalEvent(
            id=row["id"],
            deal_id=row["deal_id"],
            event_type=ApprovalEventType(row["event_type"]),
            metadata=metadata,
            created_at=_parse_ts(row["created_at"]),
        )

    @staticmethod
    def _row_to_webhook(row: sqlite3.Row) -> WebhookConfig:
        events = frozenset(
            ApprovalEventType(name) for name in row["events"].split(",") if name
        )
        return WebhookConfig(
            id=row["id"],
            deal_id=row["deal_id"],
            url=row["url"],
            events=events,
            is_active=bool(row["is_active"]),
            secret=row["secret"],
            created_at=_parse_ts(row["created_at"]),
        )
