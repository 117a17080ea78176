"""Administrator endpoints for verifying and fulfilling redemptions."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from berkomunitas_api.api.dependencies.notifications import get_notification_service
from berkomunitas_api.api.dependencies.security import require_admin_actor, require_admin_api_key
from berkomunitas_api.api.errors import to_http_exception
from berkomunitas_api.db.session import get_session
from berkomunitas_api.models.rewards import RedemptionStatusEvent
from berkomunitas_api.services.notifications import NotificationService
from berkomunitas_api.services.rewards import (
    CatalogService,
    FulfillmentStateMachine,
    RedemptionActor,
    RedemptionError,
    RedemptionService,
)

from .rewards import RedemptionResponse, parse_status_filter, serialize_redemption


router = APIRouter(
    prefix="/admin/redemptions",
    tags=["admin-redemptions"],
    dependencies=[Depends(require_admin_api_key)],
)


class RedemptionStatusUpdateRequest(BaseModel):
    status: str = Field(..., description="Target redemption status")
    note: Optional[str] = Field(None, description="Administrator remark stored on the redemption")
    trackingNumber: Optional[str] = Field(None, description="Courier tracking number, used when shipping")


class AdminRedemptionResponse(RedemptionResponse):
    memberDisplayName: Optional[str]
    memberEmail: Optional[str]


class RedemptionEventResponse(BaseModel):
    id: UUID
    fromStatus: Optional[str]
    toStatus: str
    actorType: str
    actorId: Optional[str]
    notes: Optional[str]
    metadata: dict[str, Any]
    createdAt: datetime


def _serialize_event(event: RedemptionStatusEvent) -> RedemptionEventResponse:
    return RedemptionEventResponse(
        id=event.id,
        fromStatus=event.from_status,
        toStatus=event.to_status,
        actorType=event.actor_type.value,
        actorId=event.actor_id,
        notes=event.notes,
        metadata=dict(event.metadata_json or {}),
        createdAt=event.created_at,
    )


@router.get("", response_model=List[AdminRedemptionResponse])
async def list_redemptions(
    status_filter: str | None = Query(None, alias="status", description="Filter by redemption status"),
    limit: int | None = Query(None, ge=1, le=200),
    db: AsyncSession = Depends(get_session),
) -> List[AdminRedemptionResponse]:
    """Return the redemption queue, newest first."""

    service = CatalogService(db)
    redemptions = await service.list_redemptions(status=parse_status_filter(status_filter), limit=limit)
    return [
        AdminRedemptionResponse(
            **serialize_redemption(redemption).model_dump(),
            memberDisplayName=redemption.member.display_name if redemption.member else None,
            memberEmail=redemption.member.email if redemption.member else None,
        )
        for redemption in redemptions
    ]


@router.post("/{redemption_id}/status", response_model=RedemptionResponse)
async def update_redemption_status(
    redemption_id: UUID,
    request: RedemptionStatusUpdateRequest,
    actor: RedemptionActor = Depends(require_admin_actor),
    db: AsyncSession = Depends(get_session),
    notifier: NotificationService = Depends(get_notification_service),
) -> RedemptionResponse:
    """Advance a redemption through the fulfillment lifecycle."""

    machine = FulfillmentStateMachine(db, notifier=notifier)
    try:
        redemption = await machine.advance_status(
            redemption_id,
            request.status,
            actor,
            note=request.note,
            tracking_number=request.trackingNumber,
        )
    except RedemptionError as error:
        raise to_http_exception(error) from error
    return serialize_redemption(redemption)


@router.post("/{redemption_id}/refund", response_model=RedemptionResponse)
async def refund_redemption(
    redemption_id: UUID,
    actor: RedemptionActor = Depends(require_admin_actor),
    db: AsyncSession = Depends(get_session),
    notifier: NotificationService = Depends(get_notification_service),
) -> RedemptionResponse:
    """Return coins and stock for a cancelled or rejected redemption."""

    service = RedemptionService(db, notifier=notifier)
    try:
        redemption = await service.refund_redemption(redemption_id, actor_id=actor.id)
    except RedemptionError as error:
        raise to_http_exception(error) from error
    return serialize_redemption(redemption)


@router.get("/{redemption_id}/events", response_model=List[RedemptionEventResponse])
async def list_redemption_events(
    redemption_id: UUID,
    db: AsyncSession = Depends(get_session),
) -> List[RedemptionEventResponse]:
    """Return the status audit trail for a redemption."""

    try:
        events = await CatalogService(db).list_redemption_events(redemption_id)
    except RedemptionError as error:
        raise to_http_exception(error) from error
    return [_serialize_event(event) for event in events]
