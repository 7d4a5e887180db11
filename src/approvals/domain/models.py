"""Pydantic v2 models for deals, approval tokens, audit events, and webhook configs."""

from __future__ import annotations

from datetime import datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    FiniteFloat,
    HttpUrl,
    field_validator,
    model_validator,
)

from approvals.domain.types import ApprovalEventType, DealStatus

# Largest amount, in minor units, that fits a signed 64-bit SQLite INTEGER.
MAX_MINOR_UNITS = 2**63 - 1


class LineItem(BaseModel):
    """A single priced line of a deal.

    ``unit_price`` is in minor currency units (cents).
    """

    model_config = ConfigDict(frozen=True)

    description: str
    quantity: int | FiniteFloat
    unit_price: int = Field(gt=0, le=MAX_MINOR_UNITS)

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int | float) -> int | float:
        """Ensure quantity is greater than zero."""
        if v <= 0:
            raise ValueError("quantity must be positive")
        return v

    @property
    def amount(self) -> float:
        """Return ``quantity * unit_price`` in minor units, unrounded."""
        return self.quantity * self.unit_price


def items_total(items: list[LineItem]) -> int:
    """Return the rounded sum of line item amounts in minor units."""
    return round(sum(item.amount for item in items))


class EventMetadata(BaseModel):
    """Request context recorded with every audit event.

    Values come from client-supplied headers and are kept for audit and
    forensics only. They are spoofable and must never drive authorization.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    ip: str = Field(min_length=1)
    user_agent: str = Field(min_length=1)


class Deal(BaseModel):
    """A deal snapshot as persisted."""

    id: str
    client_name: str
    client_email: str | None = None
    currency: str
    total: int
    items: list[LineItem]
    status: DealStatus
    created_at: datetime
    updated_at: datetime


class DealSummary(Deal):
    """A deal as shown on the owner dashboard.

    ``effective_status`` reads ``EXPIRED`` for a ``SENT`` deal whose token
    lapsed unused; the stored ``status`` is never rewritten.
    """

    effective_status: DealStatus


class ApprovalToken(BaseModel):
    """The persisted form of an approval token. Holds the digest, never the secret."""

    id: str
    deal_id: str
    token_hash: str
    expires_at: datetime
    used_at: datetime | None = None
    created_at: datetime


class ApprovalEvent(BaseModel):
    """An immutable audit trail entry."""

    id: str
    deal_id: str
    event_type: ApprovalEventType
    metadata: EventMetadata | None = None
    created_at: datetime


class WebhookConfig(BaseModel):
    """An external callback registered for deal lifecycle events."""

    id: str
    deal_id: str | None = None
    url: str
    events: frozenset[ApprovalEventType]
    is_active: bool = True
    secret: str | None = None
    created_at: datetime

    def subscribes_to(self, event: ApprovalEventType) -> bool:
        """Return True if this config is active and subscribed to *event*."""
        return self.is_active and event in self.events


# ---------------------------------------------------------------------------
# Request / response shapes
# ---------------------------------------------------------------------------


class DealCreate(BaseModel):
    """Deal creation request from the deal owner.

    The caller computes ``total``; it must equal the rounded sum of
    ``quantity * unit_price`` across items. It is checked here once and
    never re-derived afterwards.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    client_name: str = Field(min_length=1)
    client_email: EmailStr | None = None
    currency: str = Field(default="EUR", pattern=r"^[A-Za-z]{3}$")
    total: int = Field(gt=0, le=MAX_MINOR_UNITS)
    items: list[LineItem] = Field(min_length=1)
    webhook_url: HttpUrl | None = None

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Upper-case the ISO currency code."""
        return v.upper()

    @model_validator(mode="after")
    def total_must_match_items(self) -> DealCreate:
        """Ensure the caller-supplied total matches the line items."""
        try:
            expected = items_total(self.items)
        except OverflowError:
            raise ValueError("line item amounts are out of range") from None
        if self.total != expected:
            raise ValueError(
                f"total ({self.total}) must equal the sum of line items ({expected})"
            )
        return self


class DealCreated(BaseModel):
    """Result of deal creation. The only place the raw token is ever returned."""

    deal_id: str
    approval_link: str
    token: str


class DealView(BaseModel):
    """The deal fields an approver may see."""

    id: str
    client_name: str
    currency: str
    total: int
    items: list[LineItem]
    created_at: datetime


class DealDecision(BaseModel):
    """Result of an approve/reject confirmation."""

    success: bool = True
    status: DealStatus


class DealDetail(BaseModel):
    """A deal together with its chronological audit trail."""

    deal: DealSummary
    audit_trail: list[ApprovalEvent]
