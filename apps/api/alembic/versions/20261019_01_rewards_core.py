"""Create members, rewards, redemptions, coin ledger and notifications."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = "20261019_01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


REDEMPTION_STATUSES = (
    "pending_verification",
    "processing",
    "shipped",
    "delivered",
    "rejected",
    "cancelled",
)


def upgrade() -> None:
    op.create_table(
        "members",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("external_id", sa.String(length=255), nullable=True),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("coin_balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("privilege", sa.String(length=32), nullable=False, server_default="user"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("coin_balance >= 0", name="ck_members_coin_balance_non_negative"),
    )
    op.create_index("ix_members_external_id", "members", ["external_id"], unique=True)

    op.create_table(
        "rewards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit_cost", sa.Integer(), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("required_privilege", sa.String(length=32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("unit_cost > 0", name="ck_rewards_unit_cost_positive"),
        sa.CheckConstraint("stock >= 0", name="ck_rewards_stock_non_negative"),
    )
    op.create_index("ix_rewards_slug", "rewards", ["slug"], unique=True)

    op.create_table(
        "reward_redemptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "member_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("reward_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("rewards.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_cost", sa.Integer(), nullable=False),
        sa.Column("total_cost", sa.Integer(), nullable=False),
        sa.Column("shipping_notes", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*REDEMPTION_STATUSES, name="reward_redemption_status"),
            nullable=False,
            server_default="pending_verification",
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("member_note", sa.Text(), nullable=True),
        sa.Column("tracking_number", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("processing_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shipped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refunded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("quantity > 0", name="ck_reward_redemptions_quantity_positive"),
    )
    op.create_index("ix_reward_redemptions_status", "reward_redemptions", ["status"])
    op.create_index(
        "ix_reward_redemptions_member_id_created_at",
        "reward_redemptions",
        ["member_id", "created_at"],
    )

    op.create_table(
        "reward_redemption_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "redemption_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("reward_redemptions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("from_status", sa.String(length=64), nullable=True),
        sa.Column("to_status", sa.String(length=64), nullable=False),
        sa.Column(
            "actor_type",
            sa.Enum("system", "admin", "member", name="reward_redemption_actor_type"),
            nullable=False,
        ),
        sa.Column("actor_id", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_reward_redemption_events_redemption_id",
        "reward_redemption_events",
        ["redemption_id"],
    )

    op.create_table(
        "coin_ledger_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "member_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "redemption_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("reward_redemptions.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "entry_type",
            sa.Enum("redemption", "refund", name="coin_ledger_entry_type"),
            nullable=False,
        ),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("redemption_id", "entry_type", name="uq_coin_ledger_entries_redemption_type"),
    )
    op.create_index("ix_coin_ledger_entries_member_id", "coin_ledger_entries", ["member_id"])

    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "member_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "category",
            sa.Enum("reward_redemption", "reward_status", name="notification_category_enum"),
            nullable=False,
        ),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link_url", sa.String(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_member_id", "notifications", ["member_id"])


def downgrade() -> None:
    op.drop_index("ix_notifications_member_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_coin_ledger_entries_member_id", table_name="coin_ledger_entries")
    op.drop_table("coin_ledger_entries")
    op.drop_index("ix_reward_redemption_events_redemption_id", table_name="reward_redemption_events")
    op.drop_table("reward_redemption_events")
    op.drop_index("ix_reward_redemptions_member_id_created_at", table_name="reward_redemptions")
    op.drop_index("ix_reward_redemptions_status", table_name="reward_redemptions")
    op.drop_table("reward_redemptions")
    op.drop_index("ix_rewards_slug", table_name="rewards")
    op.drop_table("rewards")
    op.drop_index("ix_members_external_id", table_name="members")
    op.drop_table("members")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_name in (
            "notification_category_enum",
            "coin_ledger_entry_type",
            "reward_redemption_actor_type",
            "reward_redemption_status",
        ):
            op.execute(f"DROP TYPE IF EXISTS {enum_name}")
