"""Reward catalog and redemption domain models."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    func,
    true,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from berkomunitas_api.db.base import Base


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Reward(Base):
    """Catalog entry members can exchange coins for."""

    __tablename__ = "rewards"
    __table_args__ = (
        CheckConstraint("unit_cost > 0", name="ck_rewards_unit_cost_positive"),
        CheckConstraint("stock >= 0", name="ck_rewards_stock_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    slug = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    unit_cost = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False, default=0, server_default="0")
    required_privilege = Column(String(32), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    redemptions = relationship("Redemption", back_populates="reward")


class RedemptionStatus(str, Enum):
    """Fulfillment lifecycle of a redemption."""

    PENDING_VERIFICATION = "pending_verification"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in {
            RedemptionStatus.DELIVERED,
            RedemptionStatus.REJECTED,
            RedemptionStatus.CANCELLED,
        }


class Redemption(Base):
    """Committed exchange of coins for a reward.

    Quantity and costs are captured when the exchange commits and never
    change afterwards; only status, timestamps and notes move.
    """

    __tablename__ = "reward_redemptions"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_reward_redemptions_quantity_positive"),
        Index("ix_reward_redemptions_member_id_created_at", "member_id", "created_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    member_id = Column(
        UUID(as_uuid=True), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    reward_id = Column(UUID(as_uuid=True), ForeignKey("rewards.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Integer, nullable=False)
    total_cost = Column(Integer, nullable=False)
    shipping_notes = Column(Text, nullable=True)
    status = Column(
        SqlEnum(RedemptionStatus, name="reward_redemption_status", values_callable=_enum_values),
        nullable=False,
        default=RedemptionStatus.PENDING_VERIFICATION,
        server_default=RedemptionStatus.PENDING_VERIFICATION.value,
        index=True,
    )
    admin_notes = Column(Text, nullable=True)
    member_note = Column(Text, nullable=True)
    tracking_number = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    processing_at = Column(DateTime(timezone=True), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    member = relationship("Member", back_populates="redemptions")
    reward = relationship("Reward", back_populates="redemptions")
    events = relationship(
        "RedemptionStatusEvent",
        back_populates="redemption",
        cascade="all, delete-orphan",
        order_by="RedemptionStatusEvent.created_at",
    )


class RedemptionActorType(str, Enum):
    """Identity class of whoever moved a redemption."""

    SYSTEM = "system"
    ADMIN = "admin"
    MEMBER = "member"


class RedemptionStatusEvent(Base):
    """Audit log entry for every redemption status change."""

    __tablename__ = "reward_redemption_events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    redemption_id = Column(
        UUID(as_uuid=True),
        ForeignKey("reward_redemptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_status = Column(String(64), nullable=True)
    to_status = Column(String(64), nullable=False)
    actor_type = Column(
        SqlEnum(RedemptionActorType, name="reward_redemption_actor_type", values_callable=_enum_values),
        nullable=False,
    )
    actor_id = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    redemption = relationship("Redemption", back_populates="events")
