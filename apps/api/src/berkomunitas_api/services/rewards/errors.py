"""Typed failures raised by the reward redemption services."""

from __future__ import annotations

from typing import Any
from uuid import UUID


class RedemptionError(RuntimeError):
    """Base exception for expected, user-facing redemption outcomes."""

    code = "redemption_error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.context:
            payload["context"] = {key: _jsonable(value) for key, value in self.context.items()}
        return payload


class NotFound(RedemptionError):
    """Raised when a member, reward or redemption does not exist."""

    code = "not_found"


class InvalidQuantity(RedemptionError):
    code = "invalid_quantity"


class PrivilegeDenied(RedemptionError):
    code = "privilege_denied"


class InsufficientBalance(RedemptionError):
    code = "insufficient_balance"


class OutOfStock(RedemptionError):
    code = "out_of_stock"


class InvalidTransition(RedemptionError):
    """Raised when a status change violates the fulfillment state machine."""

    code = "invalid_transition"


class TransactionFailed(RedemptionError):
    """Raised when storage fails mid unit of work; nothing was persisted."""

    code = "transaction_failed"


def parse_identifier(value: UUID | str, label: str) -> UUID:
    """Return ``value`` as a UUID; an unparseable identifier cannot exist, so it is ``NotFound``."""

    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise NotFound(f"{label.capitalize()} not found", **{f"{label}_id": str(value)}) from exc


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if hasattr(value, "value"):
        return value.value
    return str(value)


__all__ = [
    "InsufficientBalance",
    "InvalidQuantity",
    "InvalidTransition",
    "NotFound",
    "OutOfStock",
    "PrivilegeDenied",
    "RedemptionError",
    "TransactionFailed",
    "parse_identifier",
]
