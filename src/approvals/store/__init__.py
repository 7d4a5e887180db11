"""SQLite-backed persistence for deals, approval tokens, audit events, and webhook configs."""

from approvals.store.schema import close_approval_db, init_approval_db
from approvals.store.store import ApprovalStore

__all__ = [
    "ApprovalStore",
    "close_approval_db",
    "init_approval_db",
]
