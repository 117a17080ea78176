from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from berkomunitas_api.db.session import get_session
from berkomunitas_api.services.notifications import NotificationService
from berkomunitas_api.services.rewards.redemption_service import default_notifier


async def get_notification_service(db: AsyncSession = Depends(get_session)) -> NotificationService:
    """Notification service bound to the request's database."""

    return default_notifier(db)
