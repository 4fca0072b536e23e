"""AffiliateLink model: referral token and accumulated commission."""

import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from digitalsite.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class AffiliateLink(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Trackable referral link owned by a partner."""

    __tablename__ = "affiliate_links"

    token: Mapped[str] = mapped_column(String(1024), unique=True, index=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    total_commission: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    # Relationships
    owner: Mapped["User"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return f"<AffiliateLink id={self.id} user_id={self.user_id} total={self.total_commission}>"
