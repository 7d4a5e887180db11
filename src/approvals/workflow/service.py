"""DealWorkflow: the approval state machine and its side effects.

Data flows one way per operation:

- creation: owner -> token codec -> store -> email / webhooks
- confirmation: approver -> token lookup -> expiry check -> store
  (token CAS + status update, one transaction) -> email / webhooks

Store calls run in worker threads so request handlers never block the
event loop.  Emails and webhooks run as post-commit hooks after the store
transaction returns; their failures are logged and never undo a commit.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from functools import partial
from typing import Any

import structlog
from pydantic import ValidationError

from approvals.domain.errors import (
    DealNotFoundError,
    DealValidationError,
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
    WebhookConfig,
)
from approvals.domain.types import DEFAULT_WEBHOOK_EVENTS, ApprovalEventType, DealStatus
from approvals.notifications.dispatcher import NotificationDispatcher
from approvals.notifications.templates import format_amount
from approvals.observability.metrics import DEAL_DECISIONS, DEALS_CREATED
from approvals.state_machine.machine import DealStateMachine
from approvals.store.store import ApprovalStore
from approvals.tokens.codec import generate_token, hash_token
from approvals.tokens.expiration import expiration_from, is_expired
from approvals.webhooks.dispatcher import WebhookDispatcher
from approvals.workflow.hooks import PostCommitHooks

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


def effective_status(deal: Deal, token: ApprovalToken | None, now: datetime) -> DealStatus:
    """Return the status to display for *deal*.

    A ``SENT`` deal whose token lapsed unused reads as ``EXPIRED``.  This is
    a read-time judgement only; the stored status is never rewritten.
    """
    if (
        deal.status == DealStatus.SENT
        and token is not None
        and token.used_at is None
        and is_expired(token.expires_at, now)
    ):
        return DealStatus.EXPIRED
    return deal.status


class DealWorkflow:
    """Orchestrate deal creation, approver review, and the approve/reject decision.

    Args:
        store: The persistence collaborator.
        notifier: Email notification dispatcher.
        webhooks: Webhook dispatcher.
        frontend_base_url: Base URL of the approver-facing frontend.
        owner_email: Recipient of approval/rejection notifications.
        clock: Returns the current aware UTC time.  Injected in tests.
    """

    def __init__(
        self,
        store: ApprovalStore,
        notifier: NotificationDispatcher,
        webhooks: WebhookDispatcher,
        *,
        frontend_base_url: str,
        owner_email: str,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._webhooks = webhooks
        self._frontend_base_url = frontend_base_url.rstrip("/")
        self._owner_email = owner_email
        self._clock = clock

    def approval_link(self, token: str) -> str:
        """Build the client-facing approval URL embedding the raw token."""
        return f"{self._frontend_base_url}/approve/{token}"

    # ------------------------------------------------------------------
    # Owner operations
    # ------------------------------------------------------------------

    async def create_deal(
        self,
        request: DealCreate | Mapping[str, Any],
        context: EventMetadata,
    ) -> DealCreated:
        """Create a deal, issue its approval token, and notify the client.

        Args:
            request: The validated creation request, or raw field data.
            context: Request context of the deal owner.

        Returns:
            The deal id, approval link, and raw token.  The raw token is
            never retrievable again.

        Raises:
            DealValidationError: If raw *request* data is malformed.
            StorageUnavailableError: If the store fails.
        """
        if not isinstance(request, DealCreate):
            try:
                request = DealCreate.model_validate(request)
            except ValidationError as exc:
                raise DealValidationError(
                    "Invalid deal request",
                    errors=exc.errors(include_url=False, include_context=False, include_input=False),
                ) from exc

        now = self._clock()
        deal = Deal(
            id=_new_id(),
            client_name=request.client_name,
            client_email=request.client_email,
            currency=request.currency,
            total=request.total,
            items=list(request.items),
            status=DealStatus.SENT,
            created_at=now,
            updated_at=now,
        )

        raw_token = generate_token()
        token = ApprovalToken(
            id=_new_id(),
            deal_id=deal.id,
            token_hash=hash_token(raw_token),
            expires_at=expiration_from(now),
            created_at=now,
        )
        event = ApprovalEvent(
            id=_new_id(),
            deal_id=deal.id,
            event_type=ApprovalEventType.SENT,
            metadata=context,
            created_at=now,
        )
        webhook = None
        if request.webhook_url is not None:
            webhook = WebhookConfig(
                id=_new_id(),
                deal_id=deal.id,
                url=str(request.webhook_url),
                events=DEFAULT_WEBHOOK_EVENTS,
                created_at=now,
            )

        await asyncio.to_thread(self._store.create_deal, deal, token, event, webhook)
        DEALS_CREATED.inc()
        logger.info("deal_created", deal_id=deal.id, total=deal.total, currency=deal.currency)

        link = self.approval_link(raw_token)
        hooks = PostCommitHooks()
        if deal.client_email:
            hooks.add(
                "approval_link_email",
                partial(
                    self._notifier.send_approval_link,
                    deal.client_email,
                    deal.client_name,
                    link,
                    format_amount(deal.currency, deal.total),
                ),
            )
        hooks.add("webhooks", partial(self._dispatch_webhooks, ApprovalEventType.SENT, deal))
        await hooks.run()

        return DealCreated(deal_id=deal.id, approval_link=link, token=raw_token)

    async def list_deals(self) -> list[DealSummary]:
        """Return all deals, newest first, with their effective status."""
        deals = await asyncio.to_thread(self._store.list_deals)
        now = self._clock()
        summaries: list[DealSummary] = []
        for deal in deals:
            token = await asyncio.to_thread(self._store.get_latest_token, deal.id)
            summaries.append(
                DealSummary(**deal.model_dump(), effective_status=effective_status(deal, token, now))
            )
        return summaries

    async def get_deal(self, deal_id: str) -> DealDetail:
        """Return a deal with its chronological audit trail.

        Raises:
            DealNotFoundError: If no deal has *deal_id*.
        """
        deal = await asyncio.to_thread(self._store.get_deal, deal_id)
        if deal is None:
            raise DealNotFoundError(deal_id)
        token = await asyncio.to_thread(self._store.get_latest_token, deal_id)
        events = await asyncio.to_thread(self._store.list_events, deal_id)
        summary = DealSummary(
            **deal.model_dump(), effective_status=effective_status(deal, token, self._clock())
        )
        return DealDetail(deal=summary, audit_trail=events)

    # ------------------------------------------------------------------
    # Approver operations
    # ------------------------------------------------------------------

    async def _load_consumable(self, raw_token: str) -> tuple[ApprovalToken, Deal]:
        """Resolve a raw token to its live token row and deal.

        Expiry is checked before single use, so a lapsed token reports
        EXPIRED whether or not it was consumed.
        """
        token = await asyncio.to_thread(self._store.get_token_by_hash, hash_token(raw_token))
        if token is None:
            raise TokenNotFoundError()
        if is_expired(token.expires_at, self._clock()):
            raise TokenExpiredError()
        if token.used_at is not None:
            raise TokenAlreadyUsedError()

        deal = await asyncio.to_thread(self._store.get_deal, token.deal_id)
        if deal is None:
            logger.error("token_without_deal", token_id=token.id, deal_id=token.deal_id)
            raise DealNotFoundError(token.deal_id)
        return token, deal

    async def view_deal(self, raw_token: str, context: EventMetadata) -> DealView:
        """Return the approver's view of a deal and record a VIEWED event.

        Every call appends a VIEWED event; repeated views are not collapsed.

        Raises:
            TokenNotFoundError, TokenExpiredError, TokenAlreadyUsedError,
            DealNotFoundError, StorageUnavailableError.
        """
        _, deal = await self._load_consumable(raw_token)

        event = ApprovalEvent(
            id=_new_id(),
            deal_id=deal.id,
            event_type=ApprovalEventType.VIEWED,
            metadata=context,
            created_at=self._clock(),
        )
        await asyncio.to_thread(self._store.append_event, event)
        logger.info("deal_viewed", deal_id=deal.id)

        hooks = PostCommitHooks()
        hooks.add(
            "webhooks",
            partial(self._dispatch_webhooks, ApprovalEventType.VIEWED, deal, context),
        )
        await hooks.run()

        return DealView(
            id=deal.id,
            client_name=deal.client_name,
            currency=deal.currency,
            total=deal.total,
            items=deal.items,
            created_at=deal.created_at,
        )

    async def confirm_deal(
        self,
        raw_token: str,
        approved: bool,
        context: EventMetadata,
    ) -> DealDecision:
        """Approve or reject a deal, consuming its token.

        The token consumption, the status change, and the decision event are
        committed together; only one confirmation per token can succeed.

        Raises:
            TokenNotFoundError, TokenExpiredError, TokenAlreadyUsedError,
            DealNotFoundError, InvalidTransitionError, StorageUnavailableError.
        """
        token, deal = await self._load_consumable(raw_token)

        machine = DealStateMachine(deal.status)
        if machine.is_terminal:
            # Token and status commit together, so a decided deal behind a
            # token read as unused means another confirmation just won.
            latest = await asyncio.to_thread(self._store.get_token_by_hash, token.token_hash)
            if latest is not None and latest.used_at is not None:
                raise TokenAlreadyUsedError()
        new_status = machine.trigger(machine.event_for(approved))
        event_type = ApprovalEventType.APPROVED if approved else ApprovalEventType.REJECTED

        now = self._clock()
        event = ApprovalEvent(
            id=_new_id(),
            deal_id=deal.id,
            event_type=event_type,
            metadata=context,
            created_at=now,
        )
        await asyncio.to_thread(
            self._store.consume_token,
            token.id,
            deal.id,
            deal.status,
            new_status,
            event,
            now,
        )
        DEAL_DECISIONS.labels(status=new_status.value).inc()
        logger.info("deal_decided", deal_id=deal.id, status=new_status.value)

        decided = deal.model_copy(update={"status": new_status, "updated_at": now})
        amount = format_amount(decided.currency, decided.total)
        send = (
            self._notifier.send_approval_confirmed
            if approved
            else self._notifier.send_approval_rejected
        )

        hooks = PostCommitHooks()
        hooks.add(
            "owner_email",
            partial(send, self._owner_email, decided.client_name, amount, now.isoformat()),
        )
        hooks.add("webhooks", partial(self._dispatch_webhooks, event_type, decided))
        await hooks.run()

        return DealDecision(success=True, status=new_status)

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    async def _dispatch_webhooks(
        self,
        event: ApprovalEventType,
        deal: Deal,
        metadata: EventMetadata | None = None,
    ) -> dict[str, bool]:
        configs = await asyncio.to_thread(self._store.get_webhook_configs, deal.id)
        return await self._webhooks.dispatch(event, deal, configs, metadata)
