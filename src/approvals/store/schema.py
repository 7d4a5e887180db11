"""SQLite schema for the approval database.

Creates the four tables backing the approval workflow. Rows are never
deleted: deals, tokens, and events together form the audit record.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path


def init_approval_db(db_path: Path | str) -> sqlite3.Connection:
    """Create and initialize the approval database with WAL mode and indexes.

    The connection is shared across worker threads (``check_same_thread`` is
    disabled); :class:`~approvals.store.store.ApprovalStore` serializes access.

    Args:
        db_path: Path to the SQLite database file, or ``":memory:"``.

    Returns:
        An open sqlite3.Connection with ``sqlite3.Row`` rows.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    conn.execute("""
        CREATE TABLE IF NOT EXISTS deals (
            id TEXT PRIMARY KEY,
            client_name TEXT NOT NULL,
            client_email TEXT,
            currency TEXT NOT NULL DEFAULT 'EUR',
            total INTEGER NOT NULL,
            items_json TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'DRAFT',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS approval_tokens (
            id TEXT PRIMARY KEY,
            deal_id TEXT NOT NULL REFERENCES deals (id),
            token_hash TEXT NOT NULL UNIQUE,
            expires_at TEXT NOT NULL,
            used_at TEXT,
            created_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS approval_events (
            id TEXT PRIMARY KEY,
            deal_id TEXT NOT NULL REFERENCES deals (id),
            event_type TEXT NOT NULL,
            metadata TEXT,
            created_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS webhook_configs (
            id TEXT PRIMARY KEY,
            deal_id TEXT REFERENCES deals (id),
            url TEXT NOT NULL,
            events TEXT NOT NULL,
            is_active INTEGER NOT NULL DEFAULT 1,
            secret TEXT,
            created_at TEXT NOT NULL
        )
    """)

    conn.execute("CREATE INDEX IF NOT EXISTS idx_tokens_deal ON approval_tokens (deal_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_events_deal ON approval_events (deal_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_webhooks_deal ON webhook_configs (deal_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_deals_created ON deals (created_at)")

    conn.commit()
    return conn


def close_approval_db(conn: sqlite3.Connection) -> None:
    """Close the approval database connection.

    Args:
        conn: The database connection to close.
    """
    conn.close()
