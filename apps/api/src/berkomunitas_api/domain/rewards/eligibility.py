"""Advisory redemption eligibility for catalog display."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Protocol

from .privileges import PrivilegeHierarchy, get_privilege_hierarchy
from .quantity import max_quantity


class IneligibilityReason(str, Enum):
    """Why a member cannot redeem at least one unit of a reward."""

    INSUFFICIENT_PRIVILEGE = "insufficient_privilege"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    OUT_OF_STOCK = "out_of_stock"


class RewardLike(Protocol):
    id: Any
    unit_cost: int
    stock: int
    required_privilege: str | None


@dataclass(frozen=True, slots=True)
class EligibilityDecision:
    """Independent eligibility facts for one member/reward pair."""

    reward_id: Any
    has_privilege: bool
    can_afford: bool
    in_stock: bool
    max_quantity: int
    coins_needed: int
    reasons: tuple[IneligibilityReason, ...] = field(default_factory=tuple)

    @property
    def can_redeem_at_least_one(self) -> bool:
        return self.has_privilege and self.can_afford and self.in_stock


def evaluate(
    *,
    member_privilege: str | None,
    member_balance: int,
    required_privilege: str | None,
    unit_cost: int,
    stock: int,
    reward_id: Any = None,
    hierarchy: PrivilegeHierarchy | None = None,
) -> EligibilityDecision:
    """Evaluate every eligibility fact; all failing facts are reported."""

    ranking = hierarchy or get_privilege_hierarchy()
    has_privilege = ranking.dominates(member_privilege, required_privilege)
    can_afford = member_balance >= unit_cost
    in_stock = stock > 0

    reasons: list[IneligibilityReason] = []
    if not has_privilege:
        reasons.append(IneligibilityReason.INSUFFICIENT_PRIVILEGE)
    if not can_afford:
        reasons.append(IneligibilityReason.INSUFFICIENT_BALANCE)
    if not in_stock:
        reasons.append(IneligibilityReason.OUT_OF_STOCK)

    # A member without the privilege cannot redeem any quantity.
    quantity = max_quantity(member_balance, unit_cost, stock) if has_privilege else 0

    return EligibilityDecision(
        reward_id=reward_id,
        has_privilege=has_privilege,
        can_afford=can_afford,
        in_stock=in_stock,
        max_quantity=quantity,
        coins_needed=max(0, unit_cost - member_balance),
        reasons=tuple(reasons),
    )


def list_eligibility(
    member_privilege: str | None,
    member_balance: int,
    rewards: Iterable[RewardLike],
    *,
    hierarchy: PrivilegeHierarchy | None = None,
) -> list[EligibilityDecision]:
    """Annotate each reward with the member's eligibility, preserving order."""

    ranking = hierarchy or get_privilege_hierarchy()
    return [
        evaluate(
            member_privilege=member_privilege,
            member_balance=member_balance,
            required_privilege=reward.required_privilege,
            unit_cost=reward.unit_cost,
            stock=reward.stock,
            reward_id=reward.id,
            hierarchy=ranking,
        )
        for reward in rewards
    ]
