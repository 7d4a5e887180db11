"""Domain types, models, and errors for the deal approval service."""

from approvals.domain.errors import (
    ApprovalError,
    DealNotFoundError,
    DealValidationError,
    DeliveryError,
    InvalidTransitionError,
    StorageUnavailableError,
    TokenAlreadyUsedError,
    TokenExpiredError,
    TokenNotFoundError,
)
from approvals.domain.models import (
    ApprovalEvent,
    ApprovalToken,
    Deal,
    DealCreate,
    DealCreated,
    DealDecision,
    DealDetail,
    DealSummary,
    DealView,
    EventMetadata,
    LineItem,
    WebhookConfig,
    items_total,
)
from approvals.domain.types import DEFAULT_WEBHOOK_EVENTS, ApprovalEventType, DealStatus

__all__ = [
    "DEFAULT_WEBHOOK_EVENTS",
    "ApprovalError",
    "ApprovalEvent",
    "ApprovalEventType",
    "ApprovalToken",
    "Deal",
    "DealCreate",
    "DealCreated",
    "DealDecision",
    "DealDetail",
    "DealNotFoundError",
    "DealStatus",
    "DealSummary",
    "DealValidationError",
    "DealView",
    "DeliveryError",
    "EventMetadata",
    "InvalidTransitionError",
    "LineItem",
    "StorageUnavailableError",
    "TokenAlreadyUsedError",
    "TokenExpiredError",
    "TokenNotFoundError",
    "WebhookConfig",
    "items_total",
]
