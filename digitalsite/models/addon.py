"""AddOn model: extra resources bought on top of a plan."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Enum, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from digitalsite.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from digitalsite.models.enums import AddOnStatus, AddOnType, IntervalUnit


class AddOn(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """An add-on whose status mirrors its paired ADDON subscription."""

    __tablename__ = "addons"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[AddOnType] = mapped_column(Enum(AddOnType, native_enum=False, length=30), nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False, default=1)
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[AddOnStatus] = mapped_column(
        Enum(AddOnStatus, native_enum=False, length=20),
        nullable=False,
        default=AddOnStatus.ACTIVE,
    )
    billing_cycle: Mapped[IntervalUnit] = mapped_column(Enum(IntervalUnit, native_enum=False, length=10), nullable=False)
    start_date: Mapped[datetime] = mapped_column(nullable=False)
    end_date: Mapped[datetime] = mapped_column(nullable=False)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="addons", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return f"<AddOn id={self.id} type={self.type} status={self.status}>"
