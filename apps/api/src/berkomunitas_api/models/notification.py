from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Enum as SqlEnum, ForeignKey, String, Text, false, func
from sqlalchemy.dialects.postgresql import UUID

from berkomunitas_api.db.base import Base


class NotificationCategoryEnum(str, Enum):
    REWARD_REDEMPTION = "reward_redemption"
    REWARD_STATUS = "reward_status"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    member_id = Column(UUID(as_uuid=True), ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(
        SqlEnum(
            NotificationCategoryEnum,
            name="notification_category_enum",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    message = Column(Text, nullable=False)
    link_url = Column(String, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
