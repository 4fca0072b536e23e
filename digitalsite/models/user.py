"""User model: account, plan limits, and trial window."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from digitalsite.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from digitalsite.models.enums import UserPlan


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Account provisioned from a first plan purchase."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    username: Mapped[str] = mapped_column(String(30), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    plan: Mapped[UserPlan] = mapped_column(
        Enum(UserPlan, native_enum=False, length=20), nullable=False, default=UserPlan.FREE
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Email verification (single-use)
    verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verification_token: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    verification_token_expires_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Plan limits, fixed at creation time
    maximum_funnels: Mapped[int] = mapped_column(nullable=False, default=0)
    maximum_custom_domains: Mapped[int] = mapped_column(nullable=False, default=0)
    maximum_subdomains: Mapped[int] = mapped_column(nullable=False, default=0)
    maximum_admins: Mapped[int] = mapped_column(nullable=False, default=0)

    # Trial window
    trial_start_date: Mapped[datetime | None] = mapped_column(nullable=True)
    trial_end_date: Mapped[datetime | None] = mapped_column(nullable=True)

    # Affiliate link the user signed up through (no FK: affiliate_links already references users)
    affiliate_link_used_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True, index=True)

    # Relationships
    subscriptions: Mapped[list["Subscription"]] = relationship(  # noqa: F821
        "Subscription", back_populates="user", lazy="selectin"
    )
    addons: Mapped[list["AddOn"]] = relationship("AddOn", back_populates="user", lazy="selectin")  # noqa: F821

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} plan={self.plan!r}>"
