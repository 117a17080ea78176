"""Member endpoints for the rewards catalog, redemptions and coin ledger."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from berkomunitas_api.api.dependencies.notifications import get_notification_service
from berkomunitas_api.api.dependencies.session import require_member_session
from berkomunitas_api.api.errors import to_http_exception
from berkomunitas_api.db.session import get_session
from berkomunitas_api.domain.rewards import get_privilege_hierarchy
from berkomunitas_api.models.ledger import LedgerEntry
from berkomunitas_api.models.member import Member
from berkomunitas_api.models.rewards import Redemption, RedemptionStatus
from berkomunitas_api.services.notifications import NotificationService
from berkomunitas_api.services.rewards import (
    CatalogEntry,
    CatalogService,
    FulfillmentStateMachine,
    RedemptionError,
    RedemptionService,
)


router = APIRouter(prefix="/rewards", tags=["rewards"])


class EligibilityResponse(BaseModel):
    hasPrivilege: bool
    canAfford: bool
    inStock: bool
    canRedeem: bool
    maxQuantity: int
    coinsNeeded: int
    reasons: List[str]


class CatalogRewardResponse(BaseModel):
    id: UUID
    slug: str
    name: str
    description: Optional[str]
    unitCost: int
    stock: int
    requiredPrivilege: Optional[str]
    eligibility: EligibilityResponse


class CatalogResponse(BaseModel):
    memberId: UUID
    coinBalance: int
    privilege: str
    privilegeRank: int
    rewards: List[CatalogRewardResponse]


class RedemptionCreateRequest(BaseModel):
    rewardId: UUID = Field(..., description="Reward to redeem")
    quantity: int = Field(1, description="Units to redeem")
    shippingNotes: Optional[str] = Field(None, description="Delivery instructions for the administrator")


class RedemptionConfirmRequest(BaseModel):
    note: Optional[str] = Field(None, description="Optional note left by the member on receipt")


class RedemptionResponse(BaseModel):
    id: UUID
    memberId: UUID
    rewardId: UUID
    rewardName: Optional[str]
    quantity: int
    unitCost: int
    totalCost: int
    status: str
    shippingNotes: Optional[str]
    trackingNumber: Optional[str]
    adminNotes: Optional[str]
    memberNote: Optional[str]
    createdAt: datetime
    processingAt: Optional[datetime]
    shippedAt: Optional[datetime]
    deliveredAt: Optional[datetime]
    rejectedAt: Optional[datetime]
    cancelledAt: Optional[datetime]
    refundedAt: Optional[datetime]


class LedgerEntryResponse(BaseModel):
    id: UUID
    redemptionId: Optional[UUID]
    entryType: str
    amount: int
    description: Optional[str]
    metadata: dict[str, Any]
    occurredAt: datetime


def serialize_redemption(redemption: Redemption) -> RedemptionResponse:
    reward = redemption.reward
    return RedemptionResponse(
        id=redemption.id,
        memberId=redemption.member_id,
        rewardId=redemption.reward_id,
        rewardName=reward.name if reward is not None else None,
        quantity=redemption.quantity,
        unitCost=redemption.unit_cost,
        totalCost=redemption.total_cost,
        status=redemption.status.value,
        shippingNotes=redemption.shipping_notes,
        trackingNumber=redemption.tracking_number,
        adminNotes=redemption.admin_notes,
        memberNote=redemption.member_note,
        createdAt=redemption.created_at,
        processingAt=redemption.processing_at,
        shippedAt=redemption.shipped_at,
        deliveredAt=redemption.delivered_at,
        rejectedAt=redemption.rejected_at,
        cancelledAt=redemption.cancelled_at,
        refundedAt=redemption.refunded_at,
    )


def parse_status_filter(value: str | None) -> RedemptionStatus | None:
    if value is None:
        return None
    try:
        return RedemptionStatus(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Unsupported redemption status: {value}") from exc


def _serialize_catalog_entry(entry: CatalogEntry) -> CatalogRewardResponse:
    reward = entry.reward
    decision = entry.eligibility
    return CatalogRewardResponse(
        id=reward.id,
        slug=reward.slug,
        name=reward.name,
        description=reward.description,
        unitCost=reward.unit_cost,
        stock=reward.stock,
        requiredPrivilege=reward.required_privilege,
        eligibility=EligibilityResponse(
            hasPrivilege=decision.has_privilege,
            canAfford=decision.can_afford,
            inStock=decision.in_stock,
            canRedeem=decision.can_redeem_at_least_one,
            maxQuantity=decision.max_quantity,
            coinsNeeded=decision.coins_needed,
            reasons=[reason.value for reason in decision.reasons],
        ),
    )


def _serialize_ledger_entry(entry: LedgerEntry) -> LedgerEntryResponse:
    return LedgerEntryResponse(
        id=entry.id,
        redemptionId=entry.redemption_id,
        entryType=entry.entry_type.value,
        amount=entry.amount,
        description=entry.description,
        metadata=dict(entry.metadata_json or {}),
        occurredAt=entry.occurred_at,
    )


@router.get("/catalog", response_model=CatalogResponse)
async def get_member_catalog(
    member: Member = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> CatalogResponse:
    """Return active rewards annotated with the member's eligibility."""

    service = CatalogService(db)
    try:
        catalog = await service.member_catalog(member.id)
    except RedemptionError as error:
        raise to_http_exception(error) from error

    return CatalogResponse(
        memberId=catalog.member.id,
        coinBalance=catalog.member.coin_balance,
        privilege=catalog.member.privilege,
        privilegeRank=get_privilege_hierarchy().rank(catalog.member.privilege),
        rewards=[_serialize_catalog_entry(entry) for entry in catalog.entries],
    )


@router.post(
    "/redemptions",
    response_model=RedemptionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_redemption(
    request: RedemptionCreateRequest,
    member: Member = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
    notifier: NotificationService = Depends(get_notification_service),
) -> RedemptionResponse:
    """Exchange the member's coins for a reward."""

    service = RedemptionService(db, notifier=notifier)
    try:
        redemption = await service.redeem(
            member.id,
            request.rewardId,
            request.quantity,
            shipping_notes=request.shippingNotes,
        )
    except RedemptionError as error:
        raise to_http_exception(error) from error
    return serialize_redemption(redemption)


@router.get("/redemptions", response_model=List[RedemptionResponse])
async def list_member_redemptions(
    status_filter: str | None = Query(None, alias="status", description="Filter by redemption status"),
    limit: int | None = Query(None, ge=1, le=200),
    member: Member = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> List[RedemptionResponse]:
    """Return the member's redemption history, newest first."""

    service = CatalogService(db)
    redemptions = await service.list_member_redemptions(
        member.id,
        status=parse_status_filter(status_filter),
        limit=limit,
    )
    return [serialize_redemption(redemption) for redemption in redemptions]


@router.post("/redemptions/{redemption_id}/confirm", response_model=RedemptionResponse)
async def confirm_redemption_receipt(
    redemption_id: UUID,
    request: Optional[RedemptionConfirmRequest] = None,
    member: Member = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
    notifier: NotificationService = Depends(get_notification_service),
) -> RedemptionResponse:
    """Mark a shipped redemption as delivered."""

    machine = FulfillmentStateMachine(db, notifier=notifier)
    try:
        redemption = await machine.confirm_receipt(
            redemption_id,
            member.id,
            note=request.note if request else None,
        )
    except RedemptionError as error:
        raise to_http_exception(error) from error
    return serialize_redemption(redemption)


@router.get("/ledger", response_model=List[LedgerEntryResponse])
async def list_member_ledger(
    limit: int | None = Query(None, ge=1, le=200),
    member: Member = Depends(require_member_session),
    db: AsyncSession = Depends(get_session),
) -> List[LedgerEntryResponse]:
    """Return the member's coin ledger entries, newest first."""

    service = CatalogService(db)
    entries = await service.list_ledger(member.id, limit=limit)
    return [_serialize_ledger_entry(entry) for entry in entries]
