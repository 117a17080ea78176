"""Community member records."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from berkomunitas_api.db.base import Base


class Member(Base):
    """Community member holding a coin balance and a single privilege label.

    The privilege label is granted and revoked by external administrative
    flows; the redemption engine only reads it.
    """

    __tablename__ = "members"
    __table_args__ = (
        CheckConstraint("coin_balance >= 0", name="ck_members_coin_balance_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    external_id = Column(String(255), nullable=True, unique=True, index=True)
    display_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    coin_balance = Column(Integer, nullable=False, default=0, server_default="0")
    privilege = Column(String(32), nullable=False, default="user", server_default="user")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    redemptions = relationship("Redemption", back_populates="member")
    ledger_entries = relationship("LedgerEntry", back_populates="member")
