"""Read side of the rewards engine: catalog, history and ledger listings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from berkomunitas_api.core.settings import get_settings
from berkomunitas_api.domain.rewards import (
    EligibilityDecision,
    PrivilegeHierarchy,
    get_privilege_hierarchy,
    list_eligibility,
)
from berkomunitas_api.models.ledger import LedgerEntry
from berkomunitas_api.models.member import Member
from berkomunitas_api.models.rewards import Redemption, RedemptionStatus, RedemptionStatusEvent, Reward

from .errors import NotFound, parse_identifier


@dataclass(slots=True)
class CatalogEntry:
    reward: Reward
    eligibility: EligibilityDecision


@dataclass(slots=True)
class MemberCatalog:
    """Active rewards annotated with eligibility for one member."""

    member: Member
    entries: list[CatalogEntry]


class CatalogService:
    """Queries backing the member and administrator reward views."""

    def __init__(self, session: AsyncSession, *, hierarchy: Optional[PrivilegeHierarchy] = None) -> None:
        self._session = session
        self._hierarchy = hierarchy or get_privilege_hierarchy()
        self._page_size = get_settings().redemption_history_page_size

    async def get_member(self, member_id: UUID) -> Member:
        stmt = select(Member).where(Member.id == member_id).execution_options(populate_existing=True)
        member = (await self._session.execute(stmt)).scalars().first()
        if member is None:
            raise NotFound("Member not found", member_id=member_id)
        return member

    async def list_active_rewards(self) -> list[Reward]:
        stmt = (
            select(Reward)
            .where(Reward.is_active.is_(True))
            .order_by(Reward.unit_cost.asc(), Reward.name.asc())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def member_catalog(self, member_id: UUID) -> MemberCatalog:
        """Evaluate every active reward for the member; advisory only."""

        member = await self.get_member(member_id)
        rewards = await self.list_active_rewards()
        decisions = list_eligibility(
            member.privilege,
            member.coin_balance,
            rewards,
            hierarchy=self._hierarchy,
        )
        entries = [CatalogEntry(reward=reward, eligibility=decision) for reward, decision in zip(rewards, decisions)]
        return MemberCatalog(member=member, entries=entries)

    async def list_member_redemptions(
        self,
        member_id: UUID,
        *,
        status: RedemptionStatus | None = None,
        limit: int | None = None,
    ) -> list[Redemption]:
        stmt = (
            select(Redemption)
            .options(selectinload(Redemption.reward))
            .where(Redemption.member_id == member_id)
        )
        if status is not None:
            stmt = stmt.where(Redemption.status == status)
        stmt = stmt.order_by(Redemption.created_at.desc()).limit(limit or self._page_size)
        result = await self._session.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def list_ledger(self, member_id: UUID, *, limit: int | None = None) -> list[LedgerEntry]:
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.member_id == member_id)
            .order_by(LedgerEntry.occurred_at.desc(), LedgerEntry.created_at.desc())
            .limit(limit or self._page_size)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_redemptions(
        self,
        *,
        status: RedemptionStatus | None = None,
        limit: int | None = None,
    ) -> list[Redemption]:
        """Administrator queue, newest first."""

        stmt = select(Redemption).options(
            selectinload(Redemption.reward),
            selectinload(Redemption.member),
        )
        if status is not None:
            stmt = stmt.where(Redemption.status == status)
        stmt = stmt.order_by(Redemption.created_at.desc()).limit(limit or self._page_size)
        result = await self._session.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def list_redemption_events(self, redemption_id: UUID | str) -> list[RedemptionStatusEvent]:
        """Status audit trail of one redemption, oldest first."""

        redemption_id = parse_identifier(redemption_id, "redemption")
        exists = await self._session.scalar(select(Redemption.id).where(Redemption.id == redemption_id))
        if exists is None:
            raise NotFound("Redemption not found", redemption_id=redemption_id)
        stmt = (
            select(RedemptionStatusEvent)
            .where(RedemptionStatusEvent.redemption_id == redemption_id)
            .order_by(RedemptionStatusEvent.created_at.asc(), RedemptionStatusEvent.id.asc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


__all__ = ["CatalogEntry", "CatalogService", "MemberCatalog"]
