"""Redemption fulfillment state machine and audit logging."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from berkomunitas_api.core.settings import get_settings
from berkomunitas_api.models.rewards import (
    Redemption,
    RedemptionActorType,
    RedemptionStatus,
    RedemptionStatusEvent,
)
from berkomunitas_api.observability.rewards import get_rewards_store
from berkomunitas_api.observability.tracing import get_tracer
from berkomunitas_api.services.notifications import NotificationService

from .catalog import CatalogService
from .errors import InvalidTransition, NotFound, RedemptionError, TransactionFailed, parse_identifier
from .redemption_service import default_notifier


@dataclass(frozen=True, slots=True)
class RedemptionActor:
    """Who is requesting a status change."""

    kind: RedemptionActorType
    id: str | None = None

    @classmethod
    def admin(cls, admin_id: str | None = None) -> "RedemptionActor":
        return cls(kind=RedemptionActorType.ADMIN, id=admin_id)

    @classmethod
    def member(cls, member_id: UUID | str) -> "RedemptionActor":
        return cls(kind=RedemptionActorType.MEMBER, id=str(member_id))


_ALLOWED_TRANSITIONS: dict[RedemptionStatus, dict[RedemptionStatus, RedemptionActorType]] = {
    RedemptionStatus.PENDING_VERIFICATION: {
        RedemptionStatus.PROCESSING: RedemptionActorType.ADMIN,
        RedemptionStatus.CANCELLED: RedemptionActorType.ADMIN,
    },
    RedemptionStatus.PROCESSING: {
        RedemptionStatus.SHIPPED: RedemptionActorType.ADMIN,
        RedemptionStatus.CANCELLED: RedemptionActorType.ADMIN,
    },
    RedemptionStatus.SHIPPED: {
        RedemptionStatus.DELIVERED: RedemptionActorType.MEMBER,
        RedemptionStatus.REJECTED: RedemptionActorType.ADMIN,
    },
    RedemptionStatus.DELIVERED: {},
    RedemptionStatus.REJECTED: {},
    RedemptionStatus.CANCELLED: {},
}

_TIMESTAMP_FIELDS: dict[RedemptionStatus, str] = {
    RedemptionStatus.PROCESSING: "processing_at",
    RedemptionStatus.SHIPPED: "shipped_at",
    RedemptionStatus.DELIVERED: "delivered_at",
    RedemptionStatus.REJECTED: "rejected_at",
    RedemptionStatus.CANCELLED: "cancelled_at",
}


def allowed_targets(status: RedemptionStatus) -> dict[RedemptionStatus, RedemptionActorType]:
    """Return the statuses reachable from ``status`` and the actor each one needs."""

    return dict(_ALLOWED_TRANSITIONS.get(status, {}))


class FulfillmentStateMachine:
    """Moves redemptions through their lifecycle with guarded updates."""

    def __init__(self, session: AsyncSession, *, notifier: Optional[NotificationService] = None) -> None:
        self._session = session
        self._notifier = notifier
        self._store = get_rewards_store()
        self._note_limit = get_settings().redemption_note_max_length

    @property
    def notifier(self) -> NotificationService:
        if self._notifier is None:
            self._notifier = default_notifier(self._session)
        return self._notifier

    async def advance_status(
        self,
        redemption_id: UUID | str,
        target_status: RedemptionStatus | str,
        actor: RedemptionActor,
        *,
        note: str | None = None,
        tracking_number: str | None = None,
    ) -> Redemption:
        """Transition a redemption if the edge and actor are allowed.

        The write is conditional on the status that was read, so a record
        advanced concurrently raises ``InvalidTransition`` instead of being
        overwritten.
        """

        try:
            redemption_id = parse_identifier(redemption_id, "redemption")
            with get_tracer().start_as_current_span("rewards.advance_status") as span:
                span.set_attribute("rewards.redemption_id", str(redemption_id))
                span.set_attribute("rewards.actor_type", actor.kind.value)
                redemption, previous = await self._apply_transition(
                    redemption_id, target_status, actor, note, tracking_number
                )
                await self._session.commit()
        except RedemptionError:
            await self._session.rollback()
            raise
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error(
                "Redemption status update failed",
                redemption_id=str(redemption_id),
                error=str(exc),
            )
            raise TransactionFailed("Status update could not be completed", redemption_id=redemption_id) from exc

        self._store.record_transition(previous.value, redemption.status.value)
        logger.info(
            "Redemption status transitioned",
            redemption_id=str(redemption.id),
            from_status=previous.value,
            to_status=redemption.status.value,
            actor_type=actor.kind.value,
            actor_id=actor.id,
        )
        reward_name = redemption.reward.name if redemption.reward else None
        await self.notifier.send_status_update(redemption, reward_name=reward_name, previous_status=previous)
        return redemption

    async def confirm_receipt(
        self,
        redemption_id: UUID | str,
        member_id: UUID | str,
        note: str | None = None,
    ) -> Redemption:
        """Member confirms a shipped redemption arrived."""

        return await self.advance_status(
            redemption_id,
            RedemptionStatus.DELIVERED,
            RedemptionActor.member(member_id),
            note=note,
        )

    async def list_events(self, redemption_id: UUID | str) -> list[RedemptionStatusEvent]:
        """Return the audit trail of a redemption, oldest first."""

        return await CatalogService(self._session).list_redemption_events(redemption_id)

    async def _apply_transition(
        self,
        redemption_id: UUID,
        target_status: RedemptionStatus | str,
        actor: RedemptionActor,
        note: str | None,
        tracking_number: str | None,
    ) -> tuple[Redemption, RedemptionStatus]:
        try:
            target = RedemptionStatus(target_status)
        except ValueError as exc:
            raise InvalidTransition("Unknown redemption status", requested_status=str(target_status)) from exc

        redemption = await self._get_redemption(redemption_id)
        current = redemption.status

        required_actor = _ALLOWED_TRANSITIONS.get(current, {}).get(target)
        if required_actor is None:
            raise InvalidTransition(
                f"Cannot transition redemption from {current.value} to {target.value}",
                current_status=current,
                requested_status=target,
            )
        if actor.kind != required_actor:
            raise InvalidTransition(
                f"Only {required_actor.value} actors may move a redemption to {target.value}",
                current_status=current,
                requested_status=target,
                actor_type=actor.kind,
            )
        if actor.kind == RedemptionActorType.MEMBER and str(redemption.member_id) != str(actor.id):
            raise InvalidTransition("Only the owning member may confirm this redemption", redemption_id=redemption_id)

        now = datetime.now(timezone.utc)
        values: dict[str, Any] = {"status": target, _TIMESTAMP_FIELDS[target]: now}
        cleaned_note = self._clip(note)
        if cleaned_note is not None:
            if actor.kind == RedemptionActorType.MEMBER:
                values["member_note"] = cleaned_note
            else:
                values["admin_notes"] = cleaned_note
        if target == RedemptionStatus.SHIPPED:
            tracking = (tracking_number or "").strip()
            if tracking:
                values["tracking_number"] = tracking[:128]

        result = await self._session.execute(
            update(Redemption)
            .where(Redemption.id == redemption.id, Redemption.status == current)
            .values(**values)
        )
        if result.rowcount != 1:
            raise InvalidTransition(
                "Redemption was updated concurrently",
                current_status=current,
                requested_status=target,
            )

        self._session.add(
            RedemptionStatusEvent(
                redemption_id=redemption.id,
                from_status=current.value,
                to_status=target.value,
                actor_type=actor.kind,
                actor_id=actor.id,
                notes=cleaned_note,
                metadata_json={"tracking_number": values["tracking_number"]} if "tracking_number" in values else {},
                created_at=now,
            )
        )
        await self._session.flush()
        await self._session.refresh(redemption)
        return redemption, current

    async def _get_redemption(self, redemption_id: UUID) -> Redemption:
        stmt = (
            select(Redemption)
            .options(selectinload(Redemption.reward))
            .where(Redemption.id == redemption_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        redemption = result.scalars().first()
        if redemption is None:
            raise NotFound("Redemption not found", redemption_id=redemption_id)
        return redemption

    def _clip(self, note: str | None) -> str | None:
        if note is None:
            return None
        note = note.strip()
        return note[: self._note_limit] if note else None


__all__ = ["FulfillmentStateMachine", "RedemptionActor", "allowed_targets"]
