from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from berkomunitas_api.models.rewards import RedemptionStatus
from berkomunitas_api.services.rewards import FulfillmentStateMachine, RedemptionActor


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _member_headers(member) -> dict[str, str]:
    return {"X-Session-User": str(member.id)}


@pytest.mark.asyncio
async def test_catalog_annotates_each_active_reward(app_with_db, create_member, create_reward) -> None:
    app, _ = app_with_db
    member = await create_member(coin_balance=250, privilege="plus")
    open_reward = await create_reward(unit_cost=100, stock=5, name="Sticker")
    locked_reward = await create_reward(unit_cost=200, stock=0, required_privilege="partner", name="Pass")
    await create_reward(unit_cost=10, stock=5, is_active=False, name="Retired")

    async with _client(app) as client:
        response = await client.get("/api/v1/rewards/catalog", headers=_member_headers(member))

    assert response.status_code == 200
    payload = response.json()
    assert payload["coinBalance"] == 250
    assert payload["privilege"] == "plus"
    assert payload["privilegeRank"] == 2

    rewards = {item["id"]: item for item in payload["rewards"]}
    assert set(rewards) == {str(open_reward.id), str(locked_reward.id)}

    open_eligibility = rewards[str(open_reward.id)]["eligibility"]
    assert open_eligibility["canRedeem"] is True
    assert open_eligibility["maxQuantity"] == 2
    assert open_eligibility["reasons"] == []

    locked_eligibility = rewards[str(locked_reward.id)]["eligibility"]
    assert locked_eligibility["canRedeem"] is False
    assert locked_eligibility["reasons"] == ["insufficient_privilege", "out_of_stock"]


@pytest.mark.asyncio
async def test_redeem_returns_created_redemption(app_with_db, create_member, create_reward, notification_backend) -> None:
    app, _ = app_with_db
    member = await create_member(coin_balance=500)
    reward = await create_reward(unit_cost=120, stock=4, name="Mug")

    async with _client(app) as client:
        response = await client.post(
            "/api/v1/rewards/redemptions",
            headers=_member_headers(member),
            json={"rewardId": str(reward.id), "quantity": 2, "shippingNotes": "Ring twice"},
        )
        ledger = await client.get("/api/v1/rewards/ledger", headers=_member_headers(member))

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending_verification"
    assert body["rewardName"] == "Mug"
    assert body["totalCost"] == 240
    assert body["shippingNotes"] == "Ring twice"
    assert len(notification_backend.sent) == 1

    assert ledger.status_code == 200
    entries = ledger.json()
    assert len(entries) == 1
    assert entries[0]["amount"] == -240
    assert entries[0]["entryType"] == "redemption"
    assert entries[0]["redemptionId"] == body["id"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("balance", "privilege", "required", "stock", "quantity", "status_code", "code"),
    [
        (50, "user", None, 5, 1, 409, "insufficient_balance"),
        (5000, "user", "partner", 5, 1, 403, "privilege_denied"),
        (5000, "user", None, 1, 2, 409, "out_of_stock"),
        (5000, "user", None, 50, 11, 422, "invalid_quantity"),
        (5000, "user", None, 50, 0, 422, "invalid_quantity"),
    ],
)
async def test_redeem_failures_map_to_http_errors(
    app_with_db, create_member, create_reward, balance, privilege, required, stock, quantity, status_code, code
) -> None:
    app, _ = app_with_db
    member = await create_member(coin_balance=balance, privilege=privilege)
    reward = await create_reward(unit_cost=100, stock=stock, required_privilege=required)

    async with _client(app) as client:
        response = await client.post(
            "/api/v1/rewards/redemptions",
            headers=_member_headers(member),
            json={"rewardId": str(reward.id), "quantity": quantity},
        )

    assert response.status_code == status_code
    assert response.json()["detail"]["code"] == code


@pytest.mark.asyncio
async def test_redeem_unknown_reward_is_404(app_with_db, create_member) -> None:
    app, _ = app_with_db
    member = await create_member(coin_balance=500)

    async with _client(app) as client:
        response = await client.post(
            "/api/v1/rewards/redemptions",
            headers=_member_headers(member),
            json={"rewardId": str(uuid4()), "quantity": 1},
        )

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "not_found"


@pytest.mark.asyncio
async def test_member_session_header_is_required(app_with_db) -> None:
    app, _ = app_with_db

    async with _client(app) as client:
        missing = await client.get("/api/v1/rewards/catalog")
        blank = await client.get("/api/v1/rewards/catalog", headers={"X-Session-User": "   "})
        oversized = await client.get("/api/v1/rewards/catalog", headers={"X-Session-User": "x" * 300})
        unknown_id = await client.get("/api/v1/rewards/catalog", headers={"X-Session-User": str(uuid4())})
        unknown_subject = await client.get("/api/v1/rewards/catalog", headers={"X-Session-User": "auth0|ghost"})

    assert missing.status_code == 401
    assert blank.status_code == 401
    assert oversized.status_code == 400
    assert unknown_id.status_code == 404
    assert unknown_subject.status_code == 404


@pytest.mark.asyncio
async def test_member_session_resolves_identity_provider_subject(app_with_db, create_member) -> None:
    app, _ = app_with_db
    member = await create_member(coin_balance=75, external_id="user_2abcXYZ")

    async with _client(app) as client:
        by_subject = await client.get("/api/v1/rewards/catalog", headers={"X-Session-User": "user_2abcXYZ"})
        by_id = await client.get("/api/v1/rewards/catalog", headers={"X-Session-User": str(member.id)})

    assert by_subject.status_code == 200
    assert by_subject.json()["memberId"] == str(member.id)
    assert by_subject.json()["coinBalance"] == 75
    assert by_id.json()["memberId"] == str(member.id)


@pytest.mark.asyncio
async def test_history_filters_by_status(app_with_db, create_member, create_reward, notifier) -> None:
    app, session_factory = app_with_db
    member = await create_member(coin_balance=1000)
    reward = await create_reward(unit_cost=100, stock=10)

    async with _client(app) as client:
        first = await client.post(
            "/api/v1/rewards/redemptions",
            headers=_member_headers(member),
            json={"rewardId": str(reward.id), "quantity": 1},
        )
        await client.post(
            "/api/v1/rewards/redemptions",
            headers=_member_headers(member),
            json={"rewardId": str(reward.id), "quantity": 1},
        )

        async with session_factory() as session:
            await FulfillmentStateMachine(session, notifier=notifier).advance_status(
                first.json()["id"], RedemptionStatus.PROCESSING, RedemptionActor.admin()
            )

        everything = await client.get("/api/v1/rewards/redemptions", headers=_member_headers(member))
        processing = await client.get(
            "/api/v1/rewards/redemptions",
            headers=_member_headers(member),
            params={"status": "processing"},
        )
        bogus = await client.get(
            "/api/v1/rewards/redemptions",
            headers=_member_headers(member),
            params={"status": "lost"},
        )

    assert len(everything.json()) == 2
    assert [item["id"] for item in processing.json()] == [first.json()["id"]]
    assert bogus.status_code == 400


@pytest.mark.asyncio
async def test_member_confirms_shipped_redemption(app_with_db, create_member, create_reward, notifier) -> None:
    app, session_factory = app_with_db
    member = await create_member(coin_balance=1000)
    other = await create_member(coin_balance=0)
    reward = await create_reward(unit_cost=100, stock=10)

    async with _client(app) as client:
        created = await client.post(
            "/api/v1/rewards/redemptions",
            headers=_member_headers(member),
            json={"rewardId": str(reward.id), "quantity": 1},
        )
        redemption_id = created.json()["id"]

        too_early = await client.post(
            f"/api/v1/rewards/redemptions/{redemption_id}/confirm",
            headers=_member_headers(member),
        )

        async with session_factory() as session:
            machine = FulfillmentStateMachine(session, notifier=notifier)
            await machine.advance_status(redemption_id, RedemptionStatus.PROCESSING, RedemptionActor.admin())
            await machine.advance_status(redemption_id, RedemptionStatus.SHIPPED, RedemptionActor.admin())

        not_owner = await client.post(
            f"/api/v1/rewards/redemptions/{redemption_id}/confirm",
            headers=_member_headers(other),
            json={"note": "mine?"},
        )
        confirmed = await client.post(
            f"/api/v1/rewards/redemptions/{redemption_id}/confirm",
            headers=_member_headers(member),
            json={"note": "Thanks!"},
        )

    assert too_early.status_code == 409
    assert too_early.json()["detail"]["code"] == "invalid_transition"
    assert not_owner.status_code == 409
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "delivered"
    assert confirmed.json()["memberNote"] == "Thanks!"
    assert confirmed.json()["deliveredAt"] is not None
