"""create_billing_tables

Revision ID: 3f9c2a7b1d04
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7b1d04'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Step 1: Users (affiliate_link_used_id has no FK, affiliate_links already points here)
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(30), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False),
        sa.Column("plan", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False),
        sa.Column("verification_token", sa.String(1024), nullable=True),
        sa.Column("verification_token_expires_at", sa.DateTime(), nullable=True),
        sa.Column("maximum_funnels", sa.Integer(), nullable=False),
        sa.Column("maximum_custom_domains", sa.Integer(), nullable=False),
        sa.Column("maximum_subdomains", sa.Integer(), nullable=False),
        sa.Column("maximum_admins", sa.Integer(), nullable=False),
        sa.Column("trial_start_date", sa.DateTime(), nullable=True),
        sa.Column("trial_end_date", sa.DateTime(), nullable=True),
        sa.Column("affiliate_link_used_id", sa.UUID(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_affiliate_link_used_id", "users", ["affiliate_link_used_id"])

    # Step 2: Affiliate links
    op.create_table(
        "affiliate_links",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("token", sa.String(1024), nullable=False),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("total_commission", sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_affiliate_links_token", "affiliate_links", ["token"], unique=True)
    op.create_index("ix_affiliate_links_user_id", "affiliate_links", ["user_id"])

    # Step 3: Add-ons
    op.create_table(
        "addons",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_per_unit", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("billing_cycle", sa.String(10), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_addons_user_id", "addons", ["user_id"])

    # Step 4: Payments (transaction_id is the webhook idempotency key)
    op.create_table(
        "payments",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("transaction_id", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("payment_type", sa.String(20), nullable=False),
        sa.Column("item_type", sa.String(50), nullable=False),
        sa.Column("buyer_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("addon_id", sa.UUID(), sa.ForeignKey("addons.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "affiliate_link_id",
            sa.UUID(),
            sa.ForeignKey("affiliate_links.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("affiliate_commission", sa.Numeric(12, 2), nullable=False),
        sa.Column("raw_data", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_payments_transaction_id", "payments", ["transaction_id"], unique=True)
    op.create_index("ix_payments_buyer_id", "payments", ["buyer_id"])
    op.create_index("ix_payments_affiliate_link_id", "payments", ["affiliate_link_id"])

    # Step 5: Subscriptions
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("subscription_id", sa.String(255), nullable=False),
        sa.Column("subscriber_id", sa.String(255), nullable=True),
        sa.Column("starts_at", sa.DateTime(), nullable=False),
        sa.Column("ends_at", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("interval_unit", sa.String(10), nullable=False),
        sa.Column("interval_count", sa.Integer(), nullable=False),
        sa.Column("item_type", sa.String(10), nullable=False),
        sa.Column("subscription_type", sa.String(20), nullable=True),
        sa.Column("addon_type", sa.String(30), nullable=True),
        sa.Column("raw_data", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_subscriptions_subscription_id", "subscriptions", ["subscription_id"], unique=True)
    op.create_index("ix_subscriptions_user_id", "subscriptions", ["user_id"])


def downgrade() -> None:
    op.drop_table("subscriptions")
    op.drop_table("payments")
    op.drop_table("addons")
    op.drop_table("affiliate_links")
    op.drop_table("users")
