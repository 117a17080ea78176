import pytest
from sqlalchemy import select

from berkomunitas_api.core.settings import settings
from berkomunitas_api.models.member import Member
from berkomunitas_api.models.notification import Notification, NotificationCategoryEnum
from berkomunitas_api.models.rewards import RedemptionStatus
from berkomunitas_api.services.notifications import (
    DatabaseNotificationBackend,
    InAppNotice,
    InMemoryNotificationBackend,
    NotificationService,
)
from berkomunitas_api.services.notifications.templates import (
    render_redemption_created,
    render_refund,
    render_status_update,
)
from berkomunitas_api.services.rewards import FulfillmentStateMachine, RedemptionActor, RedemptionService


class ExplodingBackend:
    def __init__(self) -> None:
        self.attempts = 0

    async def deliver(self, notice: InAppNotice) -> None:
        self.attempts += 1
        raise RuntimeError("notification store offline")


def test_templates_describe_each_status() -> None:
    assert render_redemption_created("Tumbler", 1) == (
        "Redemption of Tumbler succeeded and is awaiting admin verification."
    )
    assert "Tumbler (3x)" in render_status_update("Tumbler", 3, RedemptionStatus.SHIPPED)
    assert "rejected" in render_status_update("Tumbler", 1, RedemptionStatus.REJECTED)
    assert "cancelled" in render_status_update(None, 1, RedemptionStatus.CANCELLED)
    assert render_refund("Tumbler", 2, 300).startswith("300 coins")


@pytest.mark.asyncio
async def test_notification_failure_never_undoes_redemption(
    session_factory, create_member, create_reward
) -> None:
    member = await create_member(coin_balance=500)
    reward = await create_reward(unit_cost=100, stock=5)
    backend = ExplodingBackend()
    notifier = NotificationService(backend)

    async with session_factory() as session:
        redemption = await RedemptionService(session, notifier=notifier).redeem(member.id, reward.id, 1)
        machine = FulfillmentStateMachine(session, notifier=notifier)
        processing = await machine.advance_status(
            redemption.id, RedemptionStatus.PROCESSING, RedemptionActor.admin()
        )

    assert backend.attempts == 2
    assert processing.status == RedemptionStatus.PROCESSING
    assert notifier.sent_events == []

    async with session_factory() as session:
        assert (await session.get(Member, member.id)).coin_balance == 400


@pytest.mark.asyncio
async def test_database_backend_writes_in_app_rows(session_factory, create_member, create_reward) -> None:
    member = await create_member(coin_balance=500)
    reward = await create_reward(unit_cost=100, stock=5, name="Sticker Pack")
    notifier = NotificationService(DatabaseNotificationBackend(session_factory))

    async with session_factory() as session:
        await RedemptionService(session, notifier=notifier).redeem(member.id, reward.id, 2)

    async with session_factory() as session:
        rows = (await session.execute(select(Notification))).scalars().all()

    assert len(rows) == 1
    assert rows[0].member_id == member.id
    assert rows[0].category == NotificationCategoryEnum.REWARD_REDEMPTION
    assert rows[0].link_url == settings.notification_link_url
    assert rows[0].is_read is False
    assert "Sticker Pack (2x)" in rows[0].message
    assert notifier.sent_events[0].event_type == "redemption_created"


@pytest.mark.asyncio
async def test_disabled_notifications_skip_delivery(
    session_factory, create_member, create_reward, monkeypatch
) -> None:
    monkeypatch.setattr(settings, "notifications_enabled", False)
    member = await create_member(coin_balance=500)
    reward = await create_reward(unit_cost=100, stock=5)
    backend = InMemoryNotificationBackend()
    notifier = NotificationService(backend)

    async with session_factory() as session:
        await RedemptionService(session, notifier=notifier).redeem(member.id, reward.id, 1)

    assert backend.sent == []
