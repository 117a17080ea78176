"""Fire-and-forget member notifications for reward redemptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from loguru import logger

from berkomunitas_api.core.settings import get_settings
from berkomunitas_api.models.notification import NotificationCategoryEnum
from berkomunitas_api.models.rewards import Redemption, RedemptionStatus

from .backend import InAppNotice, NotificationBackend
from .templates import render_redemption_created, render_refund, render_status_update


@dataclass
class NotificationEvent:
    """Representation of a notification that was delivered."""

    member_id: str
    message: str
    event_type: str
    metadata: dict[str, Any]


class NotificationService:
    """Coordinates notification delivery via a pluggable backend.

    Delivery failures are logged and dropped: a committed redemption or
    status change must never be undone because a notice could not be stored.
    """

    def __init__(self, backend: Optional[NotificationBackend] = None) -> None:
        settings = get_settings()
        self._backend = backend if settings.notifications_enabled else None
        self._link_url = settings.notification_link_url
        self._events: list[NotificationEvent] = []

    @property
    def sent_events(self) -> list[NotificationEvent]:
        """Expose delivered events (useful for tests)."""
        return self._events

    async def send_redemption_created(self, redemption: Redemption, *, reward_name: str | None) -> None:
        await self._deliver(
            redemption,
            category=NotificationCategoryEnum.REWARD_REDEMPTION,
            message=render_redemption_created(reward_name, redemption.quantity),
            event_type="redemption_created",
        )

    async def send_status_update(
        self,
        redemption: Redemption,
        *,
        reward_name: str | None,
        previous_status: RedemptionStatus,
    ) -> None:
        await self._deliver(
            redemption,
            category=NotificationCategoryEnum.REWARD_STATUS,
            message=render_status_update(reward_name, redemption.quantity, redemption.status),
            event_type="redemption_status_update",
            metadata={
                "previous_status": previous_status.value,
                "current_status": redemption.status.value,
            },
        )

    async def send_refund(self, redemption: Redemption, *, reward_name: str | None) -> None:
        await self._deliver(
            redemption,
            category=NotificationCategoryEnum.REWARD_STATUS,
            message=render_refund(reward_name, redemption.quantity, redemption.total_cost),
            event_type="redemption_refund",
            metadata={"coins": redemption.total_cost},
        )

    async def _deliver(
        self,
        redemption: Redemption,
        *,
        category: NotificationCategoryEnum,
        message: str,
        event_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if self._backend is None:
            return

        payload = {"redemption_id": str(redemption.id), **(metadata or {})}
        notice = InAppNotice(
            member_id=redemption.member_id,
            category=category,
            message=message,
            link_url=self._link_url,
            metadata=payload,
        )
        try:
            await self._backend.deliver(notice)
        except Exception as exc:
            logger.error(
                "Failed to deliver redemption notification",
                redemption_id=str(redemption.id),
                event_type=event_type,
                error=str(exc),
            )
            return

        self._events.append(
            NotificationEvent(
                member_id=str(redemption.member_id),
                message=message,
                event_type=event_type,
                metadata=payload,
            )
        )
