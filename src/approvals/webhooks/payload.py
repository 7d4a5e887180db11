"""Webhook payload model and its canonical wire serialization.

The serialized bytes produced by :func:`canonical_body` are both the HTTP
body and the HMAC input, so receivers verify exactly what they received.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from approvals.domain.models import Deal, EventMetadata
from approvals.domain.types import ApprovalEventType, DealStatus


class WebhookPayload(BaseModel):
    """JSON body POSTed to webhook subscribers.

    Field names on the wire are camelCase; optional fields that are unset
    are omitted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    event: ApprovalEventType
    deal_id: str = Field(alias="dealId")
    deal_status: DealStatus = Field(alias="dealStatus")
    client_name: str = Field(alias="clientName")
    client_email: str | None = Field(default=None, alias="clientEmail")
    total: int
    currency: str
    timestamp: datetime
    metadata: dict[str, str] | None = None

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready dict with camelCase keys and no null fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def build_payload(
    event: ApprovalEventType,
    deal: Deal,
    metadata: EventMetadata | None = None,
    now: datetime | None = None,
) -> WebhookPayload:
    """Create a webhook payload describing *deal* at the time of *event*.

    Args:
        event: The lifecycle event being announced.
        deal: The deal after the event was committed.
        metadata: Optional request context of the triggering call.
        now: Timestamp of the payload; defaults to the current UTC time.
    """
    wire_metadata = None
    if metadata is not None:
        wire_metadata = {"ip": metadata.ip, "userAgent": metadata.user_agent}
    return WebhookPayload(
        event=event,
        deal_id=deal.id,
        deal_status=deal.status,
        client_name=deal.client_name,
        client_email=deal.client_email or None,
        total=deal.total,
        currency=deal.currency,
        timestamp=now or datetime.now(tz=UTC),
        metadata=wire_metadata,
    )


def canonical_body(payload: WebhookPayload) -> bytes:
    """Serialize *payload* to its canonical form: sorted keys, compact separators, UTF-8."""
    return json.dumps(
        payload.to_wire(),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
