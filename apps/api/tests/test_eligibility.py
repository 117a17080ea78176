from types import SimpleNamespace

from berkomunitas_api.domain.rewards import IneligibilityReason, evaluate, list_eligibility


def test_eligible_member_gets_max_quantity() -> None:
    decision = evaluate(
        member_privilege="plus",
        member_balance=450,
        required_privilege="plus",
        unit_cost=100,
        stock=20,
    )

    assert decision.has_privilege
    assert decision.can_afford
    assert decision.in_stock
    assert decision.can_redeem_at_least_one
    assert decision.max_quantity == 4
    assert decision.coins_needed == 0
    assert decision.reasons == ()


def test_every_failing_fact_is_reported() -> None:
    decision = evaluate(
        member_privilege="user",
        member_balance=30,
        required_privilege="partner",
        unit_cost=100,
        stock=0,
    )

    assert not decision.can_redeem_at_least_one
    assert decision.reasons == (
        IneligibilityReason.INSUFFICIENT_PRIVILEGE,
        IneligibilityReason.INSUFFICIENT_BALANCE,
        IneligibilityReason.OUT_OF_STOCK,
    )
    assert decision.max_quantity == 0
    assert decision.coins_needed == 70


def test_missing_privilege_zeroes_quantity_even_when_affordable() -> None:
    decision = evaluate(
        member_privilege="user",
        member_balance=10_000,
        required_privilege="admin",
        unit_cost=10,
        stock=100,
    )

    assert decision.can_afford and decision.in_stock
    assert not decision.has_privilege
    assert decision.max_quantity == 0
    assert decision.reasons == (IneligibilityReason.INSUFFICIENT_PRIVILEGE,)


def test_unknown_member_label_meets_open_reward() -> None:
    decision = evaluate(
        member_privilege="visitor",
        member_balance=100,
        required_privilege=None,
        unit_cost=100,
        stock=1,
    )

    assert decision.can_redeem_at_least_one


def test_list_eligibility_preserves_reward_order() -> None:
    rewards = [
        SimpleNamespace(id="a", unit_cost=50, stock=5, required_privilege=None),
        SimpleNamespace(id="b", unit_cost=500, stock=5, required_privilege=None),
        SimpleNamespace(id="c", unit_cost=50, stock=5, required_privilege="partner"),
    ]

    decisions = list_eligibility("plus", 100, rewards)

    assert [decision.reward_id for decision in decisions] == ["a", "b", "c"]
    assert decisions[0].can_redeem_at_least_one
    assert decisions[1].reasons == (IneligibilityReason.INSUFFICIENT_BALANCE,)
    assert decisions[2].reasons == (IneligibilityReason.INSUFFICIENT_PRIVILEGE,)
