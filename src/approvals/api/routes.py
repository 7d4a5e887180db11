"""Owner and approver routes.

Owner routes (``/api/deals``) are gated by :func:`require_owner`.
Approver routes (``/api/approval``) are public; the approval token in the
request body is the only credential.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from approvals.api.deps import get_request_context, get_workflow, require_owner
from approvals.domain.models import (
    DealCreate,
    DealCreated,
    DealDecision,
    DealDetail,
    DealSummary,
    DealView,
    EventMetadata,
)
from approvals.workflow.service import DealWorkflow

deals_router = APIRouter(prefix="/api/deals", dependencies=[Depends(require_owner)])
approval_router = APIRouter(prefix="/api/approval")


class TokenRequest(BaseModel):
    """Body of the get-deal-for-approval request."""

    token: str


class ConfirmRequest(BaseModel):
    """Body of the approve/reject request."""

    token: str
    approved: bool


class ApprovalDealResponse(BaseModel):
    """Deal view returned to the approver alongside the presented token."""

    token: str
    deal: DealView


@deals_router.post("", status_code=201)
async def create_deal(
    body: DealCreate,
    workflow: DealWorkflow = Depends(get_workflow),
    context: EventMetadata = Depends(get_request_context),
) -> DealCreated:
    """Create a deal and issue its approval link."""
    return await workflow.create_deal(body, context)


@deals_router.get("")
async def list_deals(workflow: DealWorkflow = Depends(get_workflow)) -> list[DealSummary]:
    """List all deals, newest first."""
    return await workflow.list_deals()


@deals_router.get("/{deal_id}")
async def get_deal(deal_id: str, workflow: DealWorkflow = Depends(get_workflow)) -> DealDetail:
    """Return a deal with its audit trail."""
    return await workflow.get_deal(deal_id)


@approval_router.post("/deal")
async def get_deal_for_approval(
    body: TokenRequest,
    workflow: DealWorkflow = Depends(get_workflow),
    context: EventMetadata = Depends(get_request_context),
) -> ApprovalDealResponse:
    """Return the deal behind an approval token and record the view."""
    deal = await workflow.view_deal(body.token, context)
    return ApprovalDealResponse(token=body.token, deal=deal)


@approval_router.post("/confirm")
async def confirm_deal(
    body: ConfirmRequest,
    workflow: DealWorkflow = Depends(get_workflow),
    context: EventMetadata = Depends(get_request_context),
) -> DealDecision:
    """Approve or reject the deal behind an approval token."""
    return await workflow.confirm_deal(body.token, body.approved, context)
