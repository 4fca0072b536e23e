"""Subscription cancellation with best-effort gateway and email sync."""

import logging
import uuid

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from digitalsite.billing.gateway import MamoPayClient
from digitalsite.database import transaction
from digitalsite.errors import NotFoundError
from digitalsite.models.addon import AddOn
from digitalsite.models.enums import AddOnStatus, ItemType, SubscriptionStatus
from digitalsite.models.subscription import Subscription
from digitalsite.models.user import User
from digitalsite.notifications.mailer import Mailer
from digitalsite.notifications.templates import format_date, render, subscription_display_name
from digitalsite.schemas.subscription import CancelSubscriptionResponse
from digitalsite.services.side_effects import best_effort
from digitalsite.services.subscription_service import get_subscription_by_external_id

logger = logging.getLogger(__name__)


def _subscription_kind(subscription: Subscription) -> str | None:
    if subscription.item_type == ItemType.ADDON and subscription.addon_type is not None:
        return subscription.addon_type.value
    if subscription.subscription_type is not None:
        return subscription.subscription_type.value
    return None


async def _cancel_on_gateway(gateway: MamoPayClient, subscription: Subscription) -> bool:
    if not subscription.subscriber_id:
        logger.info(
            "Subscription %s has no MamoPay subscriber id, skipping gateway cancellation",
            subscription.subscription_id,
        )
        return False
    return await best_effort(
        f"MamoPay cancellation of {subscription.subscription_id}",
        gateway.cancel_subscription(subscription.subscription_id, subscription.subscriber_id),
    )


async def cancel_subscription(
    db: AsyncSession,
    subscription_id: str,
    user_id: uuid.UUID,
    *,
    gateway: MamoPayClient,
    mailer: Mailer,
) -> CancelSubscriptionResponse:
    """Cancel a subscription locally, then sync MamoPay and notify the user.

    The local cancellation is authoritative: gateway and email failures are
    logged and reported only through ``mamopay_cancelled``. ``ends_at`` is
    never changed, so access continues until the paid period ends.
    Ownership and active-status checks belong to the caller.

    Raises:
        NotFoundError: If no subscription has the given external id.
    """
    subscription = await get_subscription_by_external_id(db, subscription_id)
    if subscription is None:
        raise NotFoundError(f"Subscription {subscription_id} not found")

    async with transaction(db):
        subscription.status = SubscriptionStatus.CANCELLED
        if subscription.item_type == ItemType.ADDON and subscription.addon_type is not None:
            result = await db.execute(
                update(AddOn)
                .where(
                    AddOn.user_id == subscription.user_id,
                    AddOn.type == subscription.addon_type,
                    AddOn.status == AddOnStatus.ACTIVE,
                )
                .values(status=AddOnStatus.CANCELLED)
            )
            logger.info(
                "Cancelled %d active %s add-on(s) for user %s",
                result.rowcount,
                subscription.addon_type.value,
                subscription.user_id,
            )

    logger.info("Subscription %s cancelled by user %s", subscription_id, user_id)

    mamopay_cancelled = await _cancel_on_gateway(gateway, subscription)

    access_until = format_date(subscription.ends_at)
    user = await db.get(User, subscription.user_id)
    if user is not None:
        content = render(
            "subscription_cancellation",
            first_name=user.first_name,
            subscription_name=subscription_display_name(_subscription_kind(subscription)),
            subscription_id=subscription.subscription_id,
            ends_at=access_until,
        )
        await best_effort(f"cancellation email to {user.email}", mailer.send(user.email, content))

    return CancelSubscriptionResponse(
        message=f"Subscription cancelled successfully. You will retain access until {access_until}.",
        subscription_id=subscription.subscription_id,
        ends_at=subscription.ends_at,
        status=subscription.status,
        item_type=subscription.item_type,
        addon_type=subscription.addon_type,
        subscription_type=subscription.subscription_type,
        mamopay_cancelled=mamopay_cancelled,
    )
