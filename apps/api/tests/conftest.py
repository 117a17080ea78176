import sys
from pathlib import Path


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

import berkomunitas_api.models  # noqa: E402,F401
from berkomunitas_api.api.dependencies.notifications import get_notification_service  # noqa: E402
from berkomunitas_api.app import create_app  # noqa: E402
from berkomunitas_api.db.base import Base  # noqa: E402
from berkomunitas_api.db.session import build_engine, build_session_factory, get_session  # noqa: E402
from berkomunitas_api.models.member import Member  # noqa: E402
from berkomunitas_api.models.rewards import Reward  # noqa: E402
from berkomunitas_api.observability.rewards import get_rewards_store  # noqa: E402
from berkomunitas_api.services.notifications import (  # noqa: E402
    InMemoryNotificationBackend,
    NotificationService,
)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    # File backed so concurrent sessions get their own connections and locks.
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'rewards.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = build_session_factory(engine)

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture(autouse=True)
def rewards_store():
    store = get_rewards_store()
    store.reset()
    yield store
    store.reset()


@pytest.fixture
def notification_backend() -> InMemoryNotificationBackend:
    return InMemoryNotificationBackend()


@pytest.fixture
def notifier(notification_backend) -> NotificationService:
    return NotificationService(notification_backend)


@pytest.fixture
def create_member(session_factory):
    async def _create(*, coin_balance: int = 0, privilege: str = "user", **extra) -> Member:
        async with session_factory() as session:
            member = Member(coin_balance=coin_balance, privilege=privilege, **extra)
            session.add(member)
            await session.commit()
            return member

    return _create


@pytest.fixture
def create_reward(session_factory):
    counter = {"value": 0}

    async def _create(
        *,
        unit_cost: int = 100,
        stock: int = 10,
        required_privilege: str | None = None,
        is_active: bool = True,
        name: str | None = None,
    ) -> Reward:
        counter["value"] += 1
        slug = f"reward-{counter['value']}"
        async with session_factory() as session:
            reward = Reward(
                slug=slug,
                name=name or f"Reward {counter['value']}",
                unit_cost=unit_cost,
                stock=stock,
                required_privilege=required_privilege,
                is_active=is_active,
            )
            session.add(reward)
            await session.commit()
            return reward

    return _create


@pytest_asyncio.fixture
async def app_with_db(session_factory, notifier):
    app = create_app()

    async def override_get_session():
        async with session_factory() as session:
            yield session

    async def override_get_notification_service():
        return notifier

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_notification_service] = override_get_notification_service

    try:
        yield app, session_factory
    finally:
        app.dependency_overrides.clear()
