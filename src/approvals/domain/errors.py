"""Domain-specific exception classes for the deal approval service.

Every error carries a stable ``code`` that the HTTP layer maps to a status
code and that approvers see instead of internal detail.
"""

from approvals.domain.types import DealStatus


class ApprovalError(Exception):
    """Base class for all domain errors in the approval service."""

    code: str = "INTERNAL"
    public_message: str = "The request could not be completed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)


class TokenNotFoundError(ApprovalError):
    """Raised when no approval token matches the presented secret."""

    code = "NOT_FOUND"
    public_message = "This approval link is invalid"


class DealNotFoundError(ApprovalError):
    """Raised when a deal referenced by id or by a token does not exist."""

    code = "NOT_FOUND"
    public_message = "Deal not found"

    def __init__(self, deal_id: str) -> None:
        self.deal_id = deal_id
        super().__init__(f"Deal '{deal_id}' not found")


class TokenAlreadyUsedError(ApprovalError):
    """Raised when a token has already been consumed by a confirmation."""

    code = "ALREADY_USED"
    public_message = "This approval link has already been used"


class TokenExpiredError(ApprovalError):
    """Raised when a token is presented after its validity window."""

    code = "EXPIRED"
    public_message = "This approval link has expired"


class DealValidationError(ApprovalError):
    """Raised when deal creation input is malformed.

    Attributes:
        errors: Field-level error descriptions.
    """

    code = "VALIDATION"
    public_message = "The deal request is invalid"

    def __init__(self, message: str, errors: list[dict[str, object]] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)


class StorageUnavailableError(ApprovalError):
    """Raised when the persistence collaborator cannot serve a request.

    Fatal for the triggering request; never retried inline.
    """

    code = "STORAGE_UNAVAILABLE"
    public_message = "The service is temporarily unavailable"


class DeliveryError(ApprovalError):
    """Raised by email transports when a message cannot be delivered.

    Always absorbed by the notification layer and never surfaced to callers
    of the workflow.
    """

    code = "DELIVERY_FAILURE"
    public_message = "Notification delivery failed"


class InvalidTransitionError(ApprovalError):
    """Raised when an invalid deal status transition is attempted.

    Attributes:
        current_state: The status the deal was in when the transition was attempted.
        event: The event that was rejected.
    """

    code = "INVALID_TRANSITION"
    public_message = "This deal can no longer be changed"

    def __init__(self, current_state: DealStatus, event: str) -> None:
        self.current_state = current_state
        self.event = event
        super().__init__(f"Cannot apply event '{event}' in state '{current_state}'")
