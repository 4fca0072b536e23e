"""Subscription model: MamoPay billing state per purchased plan or add-on."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from digitalsite.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from digitalsite.models.enums import AddOnType, IntervalUnit, ItemType, SubscriptionStatus, UserPlan


class Subscription(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A plan or add-on subscription.

    ``ends_at`` is fixed at creation; cancelling only flips ``status`` and the
    holder keeps access until ``ends_at``.
    """

    __tablename__ = "subscriptions"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # MamoPay identifiers
    subscription_id: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    subscriber_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Period & status
    starts_at: Mapped[datetime] = mapped_column(nullable=False)
    ends_at: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[SubscriptionStatus] = mapped_column(
        Enum(SubscriptionStatus, native_enum=False, length=20),
        nullable=False,
        default=SubscriptionStatus.ACTIVE,
    )
    interval_unit: Mapped[IntervalUnit] = mapped_column(Enum(IntervalUnit, native_enum=False, length=10), nullable=False)
    interval_count: Mapped[int] = mapped_column(nullable=False, default=1)

    # What was bought
    item_type: Mapped[ItemType] = mapped_column(
        Enum(ItemType, native_enum=False, length=10), nullable=False, default=ItemType.PLAN
    )
    subscription_type: Mapped[UserPlan | None] = mapped_column(
        Enum(UserPlan, native_enum=False, length=20), nullable=True
    )
    addon_type: Mapped[AddOnType | None] = mapped_column(Enum(AddOnType, native_enum=False, length=30), nullable=True)

    raw_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="subscriptions", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return (
            f"<Subscription(id={self.id}, subscription_id={self.subscription_id}, "
            f"item_type={self.item_type}, status={self.status})>"
        )
