"""Reward redemption services."""

from .catalog import CatalogEntry, CatalogService, MemberCatalog
from .errors import (
    InsufficientBalance,
    InvalidQuantity,
    InvalidTransition,
    NotFound,
    OutOfStock,
    PrivilegeDenied,
    RedemptionError,
    TransactionFailed,
    parse_identifier,
)
from .fulfillment import FulfillmentStateMachine, RedemptionActor, allowed_targets
from .redemption_service import REFUNDABLE_STATUSES, RedemptionService

__all__ = [
    "CatalogEntry",
    "CatalogService",
    "FulfillmentStateMachine",
    "InsufficientBalance",
    "InvalidQuantity",
    "InvalidTransition",
    "MemberCatalog",
    "NotFound",
    "OutOfStock",
    "PrivilegeDenied",
    "REFUNDABLE_STATUSES",
    "RedemptionActor",
    "RedemptionError",
    "RedemptionService",
    "TransactionFailed",
    "allowed_targets",
    "parse_identifier",
]
