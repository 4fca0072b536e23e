"""Subscription management API routes, ownership-scoped."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from digitalsite.api.deps import get_current_active_user, get_db, get_gateway, get_mailer
from digitalsite.billing.gateway import MamoPayClient
from digitalsite.errors import ForbiddenError, NotFoundError, ValidationError
from digitalsite.models.enums import SubscriptionStatus
from digitalsite.models.user import User
from digitalsite.notifications.mailer import Mailer
from digitalsite.schemas.subscription import CancelSubscriptionResponse
from digitalsite.services.cancellation_service import cancel_subscription
from digitalsite.services.subscription_service import get_subscription_by_external_id

router = APIRouter(prefix="/api/v1/subscriptions", tags=["subscriptions"])


@router.post(
    "/{subscription_id}/cancel",
    response_model=CancelSubscriptionResponse,
    response_model_exclude_none=True,
    summary="Cancel a subscription at the end of its paid period",
)
async def cancel_user_subscription(
    subscription_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    gateway: MamoPayClient = Depends(get_gateway),
    mailer: Mailer = Depends(get_mailer),
) -> CancelSubscriptionResponse:
    """Cancel one of the current user's active subscriptions."""
    subscription = await get_subscription_by_external_id(db, subscription_id)
    if subscription is None:
        raise NotFoundError(f"Subscription {subscription_id} not found")
    if subscription.user_id != current_user.id:
        raise ForbiddenError("You do not have permission to cancel this subscription")
    if subscription.status != SubscriptionStatus.ACTIVE:
        raise ValidationError("Subscription is not active", code="subscription_not_active")

    return await cancel_subscription(db, subscription_id, current_user.id, gateway=gateway, mailer=mailer)
