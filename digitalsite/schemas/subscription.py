"""Pydantic v2 schemas for subscription management endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from digitalsite.models.enums import AddOnType, ItemType, SubscriptionStatus, UserPlan


class CancelSubscriptionResponse(BaseModel):
    """Result of a cancellation; access remains until ``ends_at``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    subscription_id: str
    ends_at: datetime
    status: SubscriptionStatus
    item_type: ItemType
    addon_type: AddOnType | None = None
    subscription_type: UserPlan | None = None
    mamopay_cancelled: bool
