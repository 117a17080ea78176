"""Append-only coin ledger."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Integer,
    JSON,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from berkomunitas_api.db.base import Base


class LedgerEntryType(str, Enum):
    """Ledger entry types for coin balance movements."""

    REDEMPTION = "redemption"
    REFUND = "refund"


class LedgerEntry(Base):
    """Ledger entry mirroring a balance movement caused by a redemption."""

    __tablename__ = "coin_ledger_entries"
    __table_args__ = (
        UniqueConstraint("redemption_id", "entry_type", name="uq_coin_ledger_entries_redemption_type"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    member_id = Column(UUID(as_uuid=True), ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    redemption_id = Column(
        UUID(as_uuid=True), ForeignKey("reward_redemptions.id", ondelete="CASCADE"), nullable=True
    )
    entry_type = Column(
        SqlEnum(
            LedgerEntryType,
            name="coin_ledger_entry_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    amount = Column(Integer, nullable=False)
    description = Column(String, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    member = relationship("Member", back_populates="ledger_entries")
