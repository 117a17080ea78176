"""Delivery backends for in-app member notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from berkomunitas_api.models.notification import Notification, NotificationCategoryEnum


@dataclass(slots=True)
class InAppNotice:
    """Notification payload addressed to a single member."""

    member_id: UUID
    category: NotificationCategoryEnum
    message: str
    link_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class NotificationBackend(Protocol):
    """Minimal protocol for delivering member notifications."""

    async def deliver(self, notice: InAppNotice) -> None:
        ...


class DatabaseNotificationBackend:
    """Persist notices as rows in the ``notifications`` table.

    Each delivery runs in its own session so a failed insert can never touch
    the caller's unit of work.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory

    async def deliver(self, notice: InAppNotice) -> None:
        async with self._session_factory() as session:
            session.add(
                Notification(
                    member_id=notice.member_id,
                    category=notice.category,
                    message=notice.message,
                    link_url=notice.link_url,
                )
            )
            await session.commit()


@dataclass
class InMemoryNotificationBackend:
    """Test backend storing notices in memory."""

    sent: List[InAppNotice]

    def __init__(self) -> None:
        self.sent = []

    async def deliver(self, notice: InAppNotice) -> None:
        self.sent.append(notice)
