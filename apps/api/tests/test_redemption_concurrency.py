import asyncio

import pytest
from sqlalchemy import func, select

from berkomunitas_api.models.member import Member
from berkomunitas_api.models.rewards import Redemption, RedemptionStatus, Reward
from berkomunitas_api.services.rewards import (
    FulfillmentStateMachine,
    InvalidTransition,
    OutOfStock,
    RedemptionActor,
    RedemptionService,
)


@pytest.mark.asyncio
async def test_concurrent_last_unit_has_exactly_one_winner(
    session_factory, create_member, create_reward, notifier
) -> None:
    first = await create_member(coin_balance=1000)
    second = await create_member(coin_balance=1000)
    reward = await create_reward(unit_cost=100, stock=1)

    async def attempt(member_id):
        async with session_factory() as session:
            return await RedemptionService(session, notifier=notifier).redeem(member_id, reward.id, 1)

    results = await asyncio.gather(attempt(first.id), attempt(second.id), return_exceptions=True)

    successes = [result for result in results if isinstance(result, Redemption)]
    failures = [result for result in results if isinstance(result, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], OutOfStock)

    async with session_factory() as session:
        stored_reward = await session.get(Reward, reward.id)
        assert stored_reward.stock == 0
        balances = sorted(
            (await session.execute(select(Member.coin_balance).where(Member.id.in_([first.id, second.id]))))
            .scalars()
            .all()
        )
        assert balances == [900, 1000]
        assert await session.scalar(select(func.count()).select_from(Redemption)) == 1


@pytest.mark.asyncio
async def test_many_concurrent_redemptions_never_oversell(
    session_factory, create_member, create_reward, notifier
) -> None:
    members = [await create_member(coin_balance=500) for _ in range(5)]
    reward = await create_reward(unit_cost=50, stock=3)

    async def attempt(member_id):
        async with session_factory() as session:
            return await RedemptionService(session, notifier=notifier).redeem(member_id, reward.id, 1)

    results = await asyncio.gather(*(attempt(member.id) for member in members), return_exceptions=True)

    assert sum(isinstance(result, Redemption) for result in results) == 3
    assert all(isinstance(result, (Redemption, OutOfStock)) for result in results)

    async with session_factory() as session:
        assert (await session.get(Reward, reward.id)).stock == 0


@pytest.mark.asyncio
async def test_concurrent_transitions_only_apply_once(
    session_factory, create_member, create_reward, notifier
) -> None:
    member = await create_member(coin_balance=1000)
    reward = await create_reward(unit_cost=100, stock=5)

    async with session_factory() as session:
        redemption = await RedemptionService(session, notifier=notifier).redeem(member.id, reward.id, 1)

    async def approve(admin_id: str):
        async with session_factory() as session:
            return await FulfillmentStateMachine(session, notifier=notifier).advance_status(
                redemption.id, RedemptionStatus.PROCESSING, RedemptionActor.admin(admin_id)
            )

    results = await asyncio.gather(approve("ops-1"), approve("ops-2"), return_exceptions=True)

    assert sum(isinstance(result, Redemption) for result in results) == 1
    assert sum(isinstance(result, InvalidTransition) for result in results) == 1
