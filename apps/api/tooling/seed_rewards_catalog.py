"""Seed development members and a small rewards catalog into the API database."""

from __future__ import annotations

import asyncio
import os
from typing import TypedDict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

import berkomunitas_api.models  # noqa: F401
from berkomunitas_api.core.settings import settings
from berkomunitas_api.db.base import Base
from berkomunitas_api.db.session import build_engine, build_session_factory
from berkomunitas_api.models.member import Member
from berkomunitas_api.models.rewards import Reward


class SeedMember(TypedDict):
    external_id: str
    display_name: str
    email: str
    privilege: str
    coin_balance: int


class SeedReward(TypedDict):
    slug: str
    name: str
    description: str
    unit_cost: int
    stock: int
    required_privilege: str | None


DEV_MEMBERS: list[SeedMember] = [
    {
        "external_id": "dev-member-basic",
        "display_name": "Member QA",
        "email": os.getenv("DEV_MEMBER_EMAIL", "member@berkomunitas.dev").lower(),
        "privilege": "user",
        "coin_balance": 500,
    },
    {
        "external_id": "dev-member-plus",
        "display_name": "Plus QA",
        "email": os.getenv("DEV_PLUS_EMAIL", "plus@berkomunitas.dev").lower(),
        "privilege": "plus",
        "coin_balance": 2_000,
    },
    {
        "external_id": "dev-member-partner",
        "display_name": "Partner QA",
        "email": os.getenv("DEV_PARTNER_EMAIL", "partner@berkomunitas.dev").lower(),
        "privilege": "partner",
        "coin_balance": 5_000,
    },
]

DEV_REWARDS: list[SeedReward] = [
    {
        "slug": "sticker-pack",
        "name": "Sticker Pack",
        "description": "Community sticker set.",
        "unit_cost": 50,
        "stock": 200,
        "required_privilege": None,
    },
    {
        "slug": "community-tshirt",
        "name": "Community T-Shirt",
        "description": "Limited run event shirt.",
        "unit_cost": 400,
        "stock": 25,
        "required_privilege": None,
    },
    {
        "slug": "plus-hoodie",
        "name": "Plus Hoodie",
        "description": "Hoodie reserved for plus members and above.",
        "unit_cost": 900,
        "stock": 10,
        "required_privilege": "plus",
    },
    {
        "slug": "partner-event-pass",
        "name": "Partner Event Pass",
        "description": "Backstage pass for partner meetups.",
        "unit_cost": 2_500,
        "stock": 3,
        "required_privilege": "partner",
    },
]


async def seed_members(session: AsyncSession) -> None:
    for member in DEV_MEMBERS:
        existing = await session.execute(select(Member).where(Member.external_id == member["external_id"]))
        record = existing.scalar_one_or_none()
        if record:
            record.display_name = member["display_name"]
            record.email = member["email"]
            record.privilege = member["privilege"]
            record.coin_balance = member["coin_balance"]
        else:
            session.add(Member(**member))


async def seed_rewards(session: AsyncSession) -> None:
    for reward in DEV_REWARDS:
        existing = await session.execute(select(Reward).where(Reward.slug == reward["slug"]))
        record = existing.scalar_one_or_none()
        if record:
            record.name = reward["name"]
            record.description = reward["description"]
            record.unit_cost = reward["unit_cost"]
            record.stock = reward["stock"]
            record.required_privilege = reward["required_privilege"]
            record.is_active = True
        else:
            session.add(Reward(**reward, is_active=True))


async def main() -> None:
    engine = build_engine(settings.database_url)
    session_factory = build_session_factory(engine)

    try:
        if settings.environment == "development":
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        async with session_factory() as session:
            await seed_members(session)
            await seed_rewards(session)
            await session.commit()
        print("Development members and rewards ready ✅")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
