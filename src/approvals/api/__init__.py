"""HTTP API for deal owners and approvers."""

from approvals.api.errors import register_error_handlers
from approvals.api.routes import approval_router, deals_router

__all__ = [
    "approval_router",
    "deals_router",
    "register_error_handlers",
]
