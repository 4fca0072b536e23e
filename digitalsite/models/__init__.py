"""SQLAlchemy models for Digitalsite billing.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from digitalsite.models.addon import AddOn
from digitalsite.models.affiliate_link import AffiliateLink
from digitalsite.models.payment import Payment
from digitalsite.models.subscription import Subscription
from digitalsite.models.user import User

__all__ = [
    "AddOn",
    "AffiliateLink",
    "Payment",
    "Subscription",
    "User",
]
