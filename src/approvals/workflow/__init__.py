"""Deal approval workflow: creation, review, and the approve/reject transition."""

from approvals.workflow.hooks import HookOutcome, PostCommitHooks
from approvals.workflow.service import DealWorkflow

__all__ = [
    "DealWorkflow",
    "HookOutcome",
    "PostCommitHooks",
]
