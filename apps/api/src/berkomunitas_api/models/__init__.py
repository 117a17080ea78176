"""SQLAlchemy models package."""

# Import all models
from .ledger import LedgerEntry, LedgerEntryType  # noqa: F401
from .member import Member  # noqa: F401
from .notification import Notification, NotificationCategoryEnum  # noqa: F401
from .rewards import (  # noqa: F401
    Redemption,
    RedemptionActorType,
    RedemptionStatus,
    RedemptionStatusEvent,
    Reward,
)

__all__ = [
    "LedgerEntry",
    "LedgerEntryType",
    "Member",
    "Notification",
    "NotificationCategoryEnum",
    "Redemption",
    "RedemptionActorType",
    "RedemptionStatus",
    "RedemptionStatusEvent",
    "Reward",
]
