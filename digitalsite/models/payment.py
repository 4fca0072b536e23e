"""Payment model: one row per processed MamoPay charge."""

import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from digitalsite.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from digitalsite.models.enums import PaymentType


class Payment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A captured charge. ``transaction_id`` is the webhook idempotency key."""

    __tablename__ = "payments"

    # UNIQUE: a repeat delivery of the same charge must fail to insert
    transaction_id: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="USD")
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="captured")
    payment_type: Mapped[PaymentType] = mapped_column(
        Enum(PaymentType, native_enum=False, length=20),
        nullable=False,
        default=PaymentType.PLAN_PURCHASE,
    )
    item_type: Mapped[str] = mapped_column(String(50), nullable=False)

    buyer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    addon_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("addons.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Affiliate attribution
    affiliate_link_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("affiliate_links.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    affiliate_commission: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    raw_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<Payment id={self.id} transaction_id={self.transaction_id!r} amount={self.amount}>"
