"""Atomic coin-for-reward exchange and its compensating refund."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from berkomunitas_api.core.settings import get_settings
from berkomunitas_api.domain.rewards import PrivilegeHierarchy, get_privilege_hierarchy, total_cost
from berkomunitas_api.models.ledger import LedgerEntry, LedgerEntryType
from berkomunitas_api.models.member import Member
from berkomunitas_api.models.rewards import (
    Redemption,
    RedemptionActorType,
    RedemptionStatus,
    RedemptionStatusEvent,
    Reward,
)
from berkomunitas_api.observability.rewards import get_rewards_store
from berkomunitas_api.observability.tracing import get_tracer
from berkomunitas_api.services.notifications import DatabaseNotificationBackend, NotificationService

from .errors import (
    InsufficientBalance,
    InvalidQuantity,
    InvalidTransition,
    NotFound,
    OutOfStock,
    PrivilegeDenied,
    RedemptionError,
    TransactionFailed,
    parse_identifier,
)

REFUNDABLE_STATUSES = (RedemptionStatus.CANCELLED, RedemptionStatus.REJECTED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clip(value: str | None, limit: int) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value[:limit] if value else None


def default_notifier(session: AsyncSession) -> NotificationService:
    """Notification service writing in-app rows through a sibling session."""

    factory = async_sessionmaker(bind=session.bind, expire_on_commit=False, class_=AsyncSession)
    return NotificationService(DatabaseNotificationBackend(factory))


class RedemptionService:
    """Exchange member coins for catalog rewards.

    Every call is one unit of work: the balance debit, the stock decrement,
    the redemption row, its ledger entry and the initial status event commit
    together or not at all.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        notifier: Optional[NotificationService] = None,
        hierarchy: Optional[PrivilegeHierarchy] = None,
    ) -> None:
        self._db = db_session
        self._notifier = notifier or default_notifier(db_session)
        self._hierarchy = hierarchy or get_privilege_hierarchy()
        self._store = get_rewards_store()
        self._settings = get_settings()

    async def redeem(
        self,
        member_id: UUID | str,
        reward_id: UUID | str,
        quantity: int,
        shipping_notes: str | None = None,
    ) -> Redemption:
        """Debit coins, reserve stock and record a pending redemption.

        Raises ``InvalidQuantity``, ``NotFound``, ``PrivilegeDenied``,
        ``InsufficientBalance`` or ``OutOfStock`` (checked in that order) and
        ``TransactionFailed`` when storage fails. Nothing is persisted on any
        failure. Not idempotent: two calls create two redemptions.
        """

        try:
            self._validate_quantity(quantity)
            member_id = parse_identifier(member_id, "member")
            reward_id = parse_identifier(reward_id, "reward")
            with get_tracer().start_as_current_span("rewards.redeem") as span:
                span.set_attribute("rewards.reward_id", str(reward_id))
                span.set_attribute("rewards.quantity", quantity)
                redemption, reward = await self._apply_redemption(
                    member_id, reward_id, quantity, shipping_notes
                )
                await self._db.commit()
        except RedemptionError as exc:
            await self._db.rollback()
            self._store.record_rejection(exc.code)
            logger.info(
                "Redemption rejected",
                member_id=str(member_id),
                reward_id=str(reward_id),
                quantity=quantity,
                code=exc.code,
            )
            raise
        except SQLAlchemyError as exc:
            await self._db.rollback()
            self._store.record_rejection(TransactionFailed.code)
            logger.error(
                "Redemption transaction failed",
                member_id=str(member_id),
                reward_id=str(reward_id),
                error=str(exc),
            )
            raise TransactionFailed(
                "Redemption could not be completed", member_id=member_id, reward_id=reward_id
            ) from exc

        self._store.record_redemption(redemption.quantity, redemption.total_cost)
        logger.info(
            "Created reward redemption",
            redemption_id=str(redemption.id),
            member_id=str(member_id),
            reward_id=str(reward_id),
            quantity=redemption.quantity,
            coins=redemption.total_cost,
        )
        await self._notifier.send_redemption_created(redemption, reward_name=reward.name)
        return redemption

    async def refund_redemption(self, redemption_id: UUID | str, *, actor_id: str | None = None) -> Redemption:
        """Return coins and stock for a cancelled or rejected redemption.

        Allowed once per redemption; anything else raises ``InvalidTransition``.
        """

        try:
            redemption_id = parse_identifier(redemption_id, "redemption")
            with get_tracer().start_as_current_span("rewards.refund") as span:
                span.set_attribute("rewards.redemption_id", str(redemption_id))
                redemption = await self._apply_refund(redemption_id, actor_id)
                await self._db.commit()
        except RedemptionError:
            await self._db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self._db.rollback()
            logger.error("Redemption refund failed", redemption_id=str(redemption_id), error=str(exc))
            raise TransactionFailed("Refund could not be completed", redemption_id=redemption_id) from exc

        self._store.record_refund(redemption.total_cost)
        logger.info(
            "Refunded reward redemption",
            redemption_id=str(redemption.id),
            member_id=str(redemption.member_id),
            coins=redemption.total_cost,
            actor_id=actor_id,
        )
        reward_name = redemption.reward.name if redemption.reward else None
        await self._notifier.send_refund(redemption, reward_name=reward_name)
        return redemption

    def _validate_quantity(self, quantity: int) -> None:
        cap = self._settings.redemption_max_quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantity("Quantity must be a whole number", quantity=str(quantity))
        if quantity < 1 or quantity > cap:
            raise InvalidQuantity(f"Quantity must be between 1 and {cap}", quantity=quantity, max_quantity=cap)

    async def _apply_redemption(
        self,
        member_id: UUID,
        reward_id: UUID,
        quantity: int,
        shipping_notes: str | None,
    ) -> tuple[Redemption, Reward]:
        reward = await self._locked(select(Reward).where(Reward.id == reward_id))
        if reward is None or not reward.is_active:
            raise NotFound("Reward not found or no longer available", reward_id=reward_id)

        member = await self._locked(select(Member).where(Member.id == member_id))
        if member is None:
            raise NotFound("Member not found", member_id=member_id)

        if not self._hierarchy.dominates(member.privilege, reward.required_privilege):
            raise PrivilegeDenied(
                "Member privilege does not meet the reward requirement",
                member_privilege=member.privilege,
                required_privilege=reward.required_privilege,
            )

        cost = total_cost(reward.unit_cost, quantity)
        if member.coin_balance < cost:
            raise InsufficientBalance(
                "Not enough coins for this redemption", balance=member.coin_balance, required=cost
            )
        if reward.stock < quantity:
            raise OutOfStock("Not enough stock for this redemption", stock=reward.stock, requested=quantity)

        # Compare-and-swap guards keep balance and stock non-negative even if
        # the row lock above is unavailable on the current dialect.
        debit = await self._db.execute(
            update(Member)
            .where(Member.id == member.id, Member.coin_balance >= cost)
            .values(coin_balance=Member.coin_balance - cost)
        )
        if debit.rowcount != 1:
            raise InsufficientBalance("Not enough coins for this redemption", required=cost)

        reserve = await self._db.execute(
            update(Reward)
            .where(Reward.id == reward.id, Reward.stock >= quantity)
            .values(stock=Reward.stock - quantity)
        )
        if reserve.rowcount != 1:
            raise OutOfStock("Not enough stock for this redemption", requested=quantity)
        await self._db.refresh(member)
        await self._db.refresh(reward)

        now = _utcnow()
        redemption = Redemption(
            member_id=member.id,
            reward_id=reward.id,
            quantity=quantity,
            unit_cost=reward.unit_cost,
            total_cost=cost,
            shipping_notes=_clip(shipping_notes, self._settings.shipping_notes_max_length),
            status=RedemptionStatus.PENDING_VERIFICATION,
            created_at=now,
            updated_at=now,
        )
        self._db.add(redemption)
        await self._db.flush()

        self._db.add(
            LedgerEntry(
                member_id=member.id,
                redemption_id=redemption.id,
                entry_type=LedgerEntryType.REDEMPTION,
                amount=-cost,
                description=f"Redeemed {reward.name} x{quantity}",
                metadata_json={"reward_id": str(reward.id), "quantity": quantity, "unit_cost": reward.unit_cost},
                occurred_at=now,
            )
        )
        self._db.add(
            RedemptionStatusEvent(
                redemption_id=redemption.id,
                from_status=None,
                to_status=RedemptionStatus.PENDING_VERIFICATION.value,
                actor_type=RedemptionActorType.MEMBER,
                actor_id=str(member.id),
                metadata_json={},
                created_at=now,
            )
        )
        await self._db.flush()
        await self._db.refresh(redemption, attribute_names=["reward"])
        return redemption, reward

    async def _apply_refund(self, redemption_id: UUID, actor_id: str | None) -> Redemption:
        redemption = await self._locked(
            select(Redemption)
            .options(selectinload(Redemption.reward))
            .where(Redemption.id == redemption_id)
        )
        if redemption is None:
            raise NotFound("Redemption not found", redemption_id=redemption_id)
        if redemption.status not in REFUNDABLE_STATUSES:
            raise InvalidTransition(
                "Only cancelled or rejected redemptions can be refunded", status=redemption.status
            )
        if redemption.refunded_at is not None:
            raise InvalidTransition("Redemption was already refunded", redemption_id=redemption_id)

        now = _utcnow()
        marked = await self._db.execute(
            update(Redemption)
            .where(
                Redemption.id == redemption.id,
                Redemption.status.in_(REFUNDABLE_STATUSES),
                Redemption.refunded_at.is_(None),
            )
            .values(refunded_at=now)
        )
        if marked.rowcount != 1:
            raise InvalidTransition("Redemption was already refunded", redemption_id=redemption_id)

        # Reward before member, the same order redeem() locks them in.
        await self._db.execute(
            update(Reward)
            .where(Reward.id == redemption.reward_id)
            .values(stock=Reward.stock + redemption.quantity)
        )
        credit = await self._db.execute(
            update(Member)
            .where(Member.id == redemption.member_id)
            .values(coin_balance=Member.coin_balance + redemption.total_cost)
        )
        if credit.rowcount != 1:
            raise NotFound("Member not found", member_id=redemption.member_id)

        self._db.add(
            LedgerEntry(
                member_id=redemption.member_id,
                redemption_id=redemption.id,
                entry_type=LedgerEntryType.REFUND,
                amount=redemption.total_cost,
                description="Refund for redemption",
                metadata_json={"status": redemption.status.value, "actor_id": actor_id},
                occurred_at=now,
            )
        )
        self._db.add(
            RedemptionStatusEvent(
                redemption_id=redemption.id,
                from_status=redemption.status.value,
                to_status=redemption.status.value,
                actor_type=RedemptionActorType.ADMIN,
                actor_id=actor_id,
                notes="refund",
                metadata_json={"refunded_coins": redemption.total_cost, "restocked": redemption.quantity},
                created_at=now,
            )
        )
        await self._db.flush()
        await self._db.refresh(redemption)
        return redemption

    async def _locked(self, statement):  # noqa: ANN001
        """Load a single row, refreshing it and taking a write lock where supported."""

        stmt = statement.with_for_update().execution_options(populate_existing=True)
        result = await self._db.execute(stmt)
        return result.scalars().first()


__all__ = ["REFUNDABLE_STATUSES", "RedemptionService", "default_notifier"]
