"""Message templates for reward redemption notifications."""

from __future__ import annotations

from berkomunitas_api.models.rewards import RedemptionStatus


def _label(reward_name: str | None, quantity: int) -> str:
    name = (reward_name or "").strip() or "your reward"
    return f"{name} ({quantity}x)" if quantity > 1 else name


def render_redemption_created(reward_name: str | None, quantity: int) -> str:
    return f"Redemption of {_label(reward_name, quantity)} succeeded and is awaiting admin verification."


def render_status_update(
    reward_name: str | None,
    quantity: int,
    status: RedemptionStatus,
) -> str:
    label = _label(reward_name, quantity)
    if status == RedemptionStatus.PROCESSING:
        return f"Your redemption of {label} has been verified and is being prepared."
    if status == RedemptionStatus.SHIPPED:
        return f"{label} is on its way."
    if status == RedemptionStatus.DELIVERED:
        return f"{label} has been received."
    if status == RedemptionStatus.REJECTED:
        return f"Delivery of {label} failed and the redemption was rejected."
    if status == RedemptionStatus.CANCELLED:
        return f"Your redemption of {label} was cancelled."
    return f"The status of your {label} redemption was updated."


def render_refund(reward_name: str | None, quantity: int, coins: int) -> str:
    return f"{coins} coins for {_label(reward_name, quantity)} were returned to your balance."
